from models import db


class AccessGrant(db.Model):
    """Permission tier held by a principal on one allocation.

    No foreign key to allocations: grants outlive a dissolved allocation.
    """

    __tablename__ = "access_grants"

    allocation_id = db.Column(db.BigInteger, primary_key=True, autoincrement=False)
    principal = db.Column(db.String(128), primary_key=True)
    permission_level = db.Column(db.Integer, nullable=False, default=0)

    __table_args__ = (
        db.CheckConstraint(
            "permission_level >= 0 AND permission_level <= 100",
            name="ck_grant_permission_level",
        ),
    )

    def to_dict(self):
        return {
            "allocation_id": self.allocation_id,
            "principal": self.principal,
            "permission_level": self.permission_level,
        }

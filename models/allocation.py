from models import db


class Allocation(db.Model):
    """A percentage-bounded, time-bounded treasury commitment owned by one manager."""

    __tablename__ = "allocations"

    # Assigned from RegistryState's sequence, never by the database
    id = db.Column(db.BigInteger, primary_key=True, autoincrement=False)
    label = db.Column(db.String(64), nullable=False)
    manager = db.Column(db.String(128), nullable=False, index=True)
    percentage = db.Column(db.Integer, nullable=False)  # basis points, 10000 = 100%
    genesis_height = db.Column(db.BigInteger, nullable=False)
    rebalancing_horizon = db.Column(db.BigInteger, nullable=False)
    thesis = db.Column(db.String(128), nullable=False)
    # JSON: ["equities", "treasuries", ...] in submitted order
    target_asset_classes = db.Column(db.JSON, nullable=False, default=list)

    performance = db.relationship(
        "PerformanceRecord",
        backref="allocation",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.CheckConstraint(
            "percentage > 0 AND percentage <= 10000", name="ck_allocation_percentage"
        ),
        db.CheckConstraint(
            "rebalancing_horizon > genesis_height", name="ck_allocation_horizon"
        ),
    )

    def is_active_at(self, now: int) -> bool:
        return now < self.rebalancing_horizon

    def to_dict(self):
        return {
            "allocation_id": self.id,
            "label": self.label,
            "manager": self.manager,
            "percentage": self.percentage,
            "genesis_height": self.genesis_height,
            "rebalancing_horizon": self.rebalancing_horizon,
            "thesis": self.thesis,
            "target_asset_classes": list(self.target_asset_classes),
        }

from models import db


class PerformanceRecord(db.Model):
    """Value, score and risk figures for one allocation."""

    __tablename__ = "performance_records"

    allocation_id = db.Column(
        db.BigInteger,
        db.ForeignKey("allocations.id", ondelete="CASCADE"),
        primary_key=True,
        autoincrement=False,
    )
    total_value_locked = db.Column(db.BigInteger, nullable=False)
    performance_score = db.Column(db.Integer, nullable=False, default=100)  # 0-1000
    risk_assessment = db.Column(db.Integer, nullable=False, default=50)  # 0-100
    last_rebalance = db.Column(db.BigInteger, nullable=False)

    def to_dict(self):
        return {
            "allocation_id": self.allocation_id,
            "total_value_locked": self.total_value_locked,
            "performance_score": self.performance_score,
            "risk_assessment": self.risk_assessment,
            "last_rebalance": self.last_rebalance,
        }

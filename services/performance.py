"""
Performance metrics for allocations.

Writes need the METRICS_WRITE tier, reads the ANALYTICS tier. Being the
manager does not bypass either check; the manager holds the owner grant
from creation.
"""

import logging

from models.performance import PerformanceRecord
from services.access_control import PermissionTier, require_level
from services.allocations import load_allocation
from services.errors import InvalidParameters
from services.ledger import TxContext, read_state, transaction
from services.validators import (
    valid_performance_score,
    valid_risk_score,
    valid_total_value,
)

logger = logging.getLogger(__name__)


def update_performance_metrics(
    ctx: TxContext,
    allocation_id: int,
    total_value: int,
    performance_score: int,
    risk_score: int,
):
    """Overwrite value, score and risk; stamps ``last_rebalance`` with the current time."""
    with transaction(ctx):
        allocation = load_allocation(allocation_id)
        require_level(allocation_id, ctx.caller, PermissionTier.METRICS_WRITE)

        if not valid_total_value(total_value):
            raise InvalidParameters(
                "Total value must be positive", {"total_value": total_value}
            )
        if not valid_performance_score(performance_score):
            raise InvalidParameters(
                "Performance score must be within [0, 1000]",
                {"performance_score": performance_score},
            )
        if not valid_risk_score(risk_score):
            raise InvalidParameters(
                "Risk score must be within [0, 100]", {"risk_score": risk_score}
            )

        record: PerformanceRecord = allocation.performance
        record.total_value_locked = total_value
        record.performance_score = performance_score
        record.risk_assessment = risk_score
        record.last_rebalance = ctx.now

    logger.info(
        "Allocation %s metrics: value=%s score=%s risk=%s",
        allocation_id, total_value, performance_score, risk_score,
    )


def retrieve_performance_analytics(ctx: TxContext, allocation_id: int) -> dict:
    """
    Performance record plus whether the allocation's window is still open.

    Returns:
        {
            "allocation_id": 1,
            "total_value_locked": 500000,
            "performance_score": 100,
            "risk_assessment": 50,
            "last_rebalance": 120,
            "allocation_active": True
        }
    """
    read_state(ctx)
    allocation = load_allocation(allocation_id)
    require_level(allocation_id, ctx.caller, PermissionTier.ANALYTICS)

    result = allocation.performance.to_dict()
    result["allocation_active"] = allocation.is_active_at(ctx.now)
    return result

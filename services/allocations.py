"""
Allocation store.

Creation, structural updates, horizon extension and dissolution of
allocation records. Every mutation runs inside one ledger transaction:
the record, its performance row, the owner grant and the counter advance
commit together or not at all.
"""

import logging

from models import db
from models.allocation import Allocation
from models.performance import PerformanceRecord
from services.access_control import PermissionTier, require_manager, set_grant
from services.errors import (
    AllocationNotFound,
    InvalidParameters,
    UnsupportedAssetType,
    WindowClosed,
)
from services.ledger import TxContext, transaction
from services.validators import (
    MAX_BIGINT,
    valid_asset_class_collection,
    valid_duration,
    valid_label,
    valid_percentage,
    valid_thesis,
    valid_total_value,
)

logger = logging.getLogger(__name__)

INITIAL_PERFORMANCE_SCORE = 100
INITIAL_RISK_ASSESSMENT = 50


def load_allocation(allocation_id: int) -> Allocation:
    allocation = db.session.get(Allocation, allocation_id)
    if allocation is None:
        raise AllocationNotFound(allocation_id)
    return allocation


def is_active(allocation_id: int, now: int) -> bool:
    """True while ``now`` is before the horizon; False for a missing allocation."""
    allocation = db.session.get(Allocation, allocation_id)
    if allocation is None:
        return False
    return allocation.is_active_at(now)


def _validate_structure(label, percentage, thesis, asset_classes):
    if not valid_label(label):
        raise InvalidParameters("Label must be 1-64 characters", {"label": label})
    if not valid_percentage(percentage):
        raise WindowClosed(
            "Percentage must be within (0, 10000] basis points", {"percentage": percentage}
        )
    if not valid_thesis(thesis):
        raise InvalidParameters("Thesis must be 1-128 characters")
    if not valid_asset_class_collection(asset_classes):
        raise UnsupportedAssetType(
            "Asset classes must be 1-10 entries of 1-32 characters",
            {"asset_classes": asset_classes},
        )


def create_allocation(
    ctx: TxContext,
    label: str,
    percentage: int,
    duration: int,
    thesis: str,
    asset_classes: list[str],
    initial_value: int,
) -> int:
    """
    Register a new allocation managed by the caller.

    Returns:
        the new allocation id (previous counter + 1)
    """
    with transaction(ctx) as state:
        _validate_structure(label, percentage, thesis, asset_classes)
        if not valid_duration(duration):
            raise WindowClosed(
                "Duration must be within (0, 2000000)", {"duration": duration}
            )
        if not valid_total_value(initial_value):
            raise InvalidParameters(
                "Initial value must be positive", {"initial_value": initial_value}
            )

        allocation_id = state.next_allocation_id()
        allocation = Allocation(
            id=allocation_id,
            label=label,
            manager=ctx.caller,
            percentage=percentage,
            genesis_height=ctx.now,
            rebalancing_horizon=ctx.now + duration,
            thesis=thesis,
            target_asset_classes=list(asset_classes),
        )
        allocation.performance = PerformanceRecord(
            allocation_id=allocation_id,
            total_value_locked=initial_value,
            performance_score=INITIAL_PERFORMANCE_SCORE,
            risk_assessment=INITIAL_RISK_ASSESSMENT,
            last_rebalance=ctx.now,
        )
        db.session.add(allocation)
        set_grant(allocation_id, ctx.caller, PermissionTier.OWNER)

    logger.info(
        "Created allocation %s '%s' (%s bp) for %s, horizon %s",
        allocation_id, label, percentage, ctx.caller, ctx.now + duration,
    )
    return allocation_id


def update_allocation(
    ctx: TxContext,
    allocation_id: int,
    label: str,
    percentage: int,
    thesis: str,
    asset_classes: list[str],
):
    """Replace the structural fields. Manager, genesis and horizon are left as they are."""
    with transaction(ctx):
        allocation = load_allocation(allocation_id)
        require_manager(allocation, ctx.caller)
        _validate_structure(label, percentage, thesis, asset_classes)

        allocation.label = label
        allocation.percentage = percentage
        allocation.thesis = thesis
        allocation.target_asset_classes = list(asset_classes)

    logger.info("Updated allocation %s", allocation_id)


def extend_horizon(ctx: TxContext, allocation_id: int, additional_duration: int):
    """Push the rebalancing horizon out. Extensions accumulate up to the 64-bit column limit."""
    with transaction(ctx):
        allocation = load_allocation(allocation_id)
        require_manager(allocation, ctx.caller)
        if not valid_duration(additional_duration):
            raise WindowClosed(
                "Additional duration must be within (0, 2000000)",
                {"additional_duration": additional_duration},
            )
        new_horizon = allocation.rebalancing_horizon + additional_duration
        if new_horizon > MAX_BIGINT:
            raise WindowClosed(
                "Rebalancing horizon cannot be extended further",
                {"rebalancing_horizon": allocation.rebalancing_horizon},
            )

        allocation.rebalancing_horizon = new_horizon

    logger.info("Extended allocation %s horizon to %s", allocation_id, new_horizon)


def dissolve_allocation(ctx: TxContext, allocation_id: int):
    """Remove an allocation and its performance record. Access grants are kept."""
    with transaction(ctx):
        allocation = load_allocation(allocation_id)
        require_manager(allocation, ctx.caller)
        # cascade removes the paired PerformanceRecord
        db.session.delete(allocation)

    logger.info("Dissolved allocation %s", allocation_id)

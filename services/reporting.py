"""
Read-only views composed from allocations, grants and performance records.
"""

from services.access_control import (
    PermissionTier,
    has_level,
    is_manager,
    permission_of,
    require_level,
)
from services.allocations import is_active, load_allocation
from services.ledger import TxContext, read_state


def fetch_allocation_details(ctx: TxContext, allocation_id: int) -> dict:
    """Full allocation record for the manager or any principal with READ access."""
    read_state(ctx)
    allocation = load_allocation(allocation_id)

    if not is_manager(allocation, ctx.caller):
        require_level(allocation_id, ctx.caller, PermissionTier.READ)

    details = allocation.to_dict()
    details["rebalancing_window_active"] = allocation.is_active_at(ctx.now)
    return details


def calculate_effective_allocation(ctx: TxContext, allocation_id: int) -> int:
    """Stored percentage while the window is open, otherwise 0. Never fails on a missing id."""
    read_state(ctx)
    if not is_active(allocation_id, ctx.now):
        return 0
    return load_allocation(allocation_id).percentage


def generate_treasury_overview(ctx: TxContext) -> dict:
    """
    Registry-wide figures.

    ``total_allocations_ever_created`` is the id counter: dissolved
    allocations still count.
    """
    state = read_state(ctx)
    return {
        "total_allocations_ever_created": state.allocation_counter,
        "controller": state.controller,
        "current_time": ctx.now,
    }


def verify_treasury_manager(allocation_id: int) -> str:
    return load_allocation(allocation_id).manager


def evaluate_treasury_permissions(ctx: TxContext, allocation_id: int, principal: str) -> dict:
    """What ``principal`` may do on an allocation right now."""
    read_state(ctx)
    allocation = load_allocation(allocation_id)
    level = permission_of(allocation_id, principal)
    manager = is_manager(allocation, principal)

    return {
        "allocation_id": allocation_id,
        "principal": principal,
        "permission_level": level,
        "is_manager": manager,
        "can_view_details": manager or has_level(allocation_id, principal, PermissionTier.READ),
        "can_view_analytics": has_level(allocation_id, principal, PermissionTier.ANALYTICS),
        "can_update_metrics": has_level(allocation_id, principal, PermissionTier.METRICS_WRITE),
        "can_manage": manager,
        "rebalancing_window_active": allocation.is_active_at(ctx.now),
    }

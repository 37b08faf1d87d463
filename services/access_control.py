"""
Tiered access to allocation metadata and performance data.

Tiers govern reads and metric writes only. Structural control (update,
extend, dissolve, issuing grants) belongs to the manager alone and is
checked by exact identity, never by tier.
"""

import logging
from enum import IntEnum

from models import db
from models.access_grant import AccessGrant
from services.errors import AccessDenied, AuthorityFailed, InvalidParameters
from services.ledger import TxContext, transaction
from services.validators import valid_permission_level, valid_principal

logger = logging.getLogger(__name__)


class PermissionTier(IntEnum):
    NONE = 0
    READ = 25
    ANALYTICS = 50
    METRICS_WRITE = 75
    OWNER = 100


def permission_of(allocation_id: int, principal: str) -> int:
    """Stored level for (allocation, principal), or 0 when no grant exists."""
    grant = db.session.get(AccessGrant, (allocation_id, principal))
    return grant.permission_level if grant else int(PermissionTier.NONE)


def has_level(allocation_id: int, principal: str, required: int) -> bool:
    return permission_of(allocation_id, principal) >= required


def require_level(allocation_id: int, principal: str, required: PermissionTier):
    if not has_level(allocation_id, principal, required):
        level = permission_of(allocation_id, principal)
        logger.warning(
            "Access denied on allocation %s for %s (level %s < %s)",
            allocation_id, principal, level, int(required),
        )
        raise AccessDenied(allocation_id, principal, int(required), level)


def is_manager(allocation, principal: str) -> bool:
    return allocation.manager == principal


def require_manager(allocation, principal: str):
    if not is_manager(allocation, principal):
        logger.warning(
            "Manager check failed for allocation %s (caller=%s)", allocation.id, principal
        )
        raise AuthorityFailed(allocation.id, principal)


def set_grant(allocation_id: int, principal: str, level: int):
    """Create or overwrite a grant in the current session (not yet committed)."""
    db.session.merge(
        AccessGrant(allocation_id=allocation_id, principal=principal, permission_level=int(level))
    )


def grant_access(ctx: TxContext, allocation_id: int, principal: str, level: int):
    """
    Manager-only: give ``principal`` a permission tier on an allocation.

    Overwrites any existing grant. The manager's own owner grant cannot be
    changed through this call.
    """
    # Local import: allocations imports this module for the owner grant
    from services.allocations import load_allocation

    with transaction(ctx):
        allocation = load_allocation(allocation_id)
        require_manager(allocation, ctx.caller)

        if not valid_principal(principal):
            raise InvalidParameters("Invalid principal", {"principal": principal})
        if not valid_permission_level(level):
            raise InvalidParameters("Permission level must be within [0, 100]", {"level": level})
        if is_manager(allocation, principal):
            raise InvalidParameters(
                "The manager's owner grant cannot be changed", {"principal": principal}
            )

        set_grant(allocation_id, principal, level)

    logger.info("Allocation %s: granted level %s to %s", allocation_id, level, principal)

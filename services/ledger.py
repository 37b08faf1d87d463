"""
Transaction boundary for registry operations.

Each public operation runs inside ``transaction(ctx)``: the registry state
row is locked, the caller's logical time is checked against the last
committed one, and every write made inside the block commits together or
is rolled back on the first exception.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass

from models import db
from models.registry_state import RegistryState
from services.errors import ClockRegression, InvalidParameters
from services.validators import MAX_HEIGHT, valid_height, valid_principal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TxContext:
    """Who is calling, and at which logical time."""

    caller: str
    now: int


def init_registry(controller: str) -> RegistryState:
    """Create the registry state row if it does not exist yet."""
    state = RegistryState.initialize(controller)
    logger.info("Registry initialized (controller=%s)", state.controller)
    return state


def _require_state(for_update=False) -> RegistryState:
    state = RegistryState.load(for_update=for_update)
    if state is None:
        raise RuntimeError("Registry not initialized. Run `flask --app app init-db`.")
    return state


def _check_clock(ctx: TxContext, state: RegistryState):
    if not valid_height(ctx.now):
        raise InvalidParameters(
            f"Logical time must be within [0, {MAX_HEIGHT}]", {"now": ctx.now}
        )
    if ctx.now < state.last_height:
        raise ClockRegression(ctx.now, state.last_height)



def current_height() -> int:
    """Latest committed logical time; the default when a caller supplies none."""
    return _require_state().last_height


def read_state(ctx: TxContext) -> RegistryState:
    """Load the registry state for a read-only operation."""
    state = _require_state()
    _check_clock(ctx, state)
    return state


@contextmanager
def transaction(ctx: TxContext):
    """Run a mutating operation atomically. Yields the locked registry state."""
    try:
        state = _require_state(for_update=True)
        _check_clock(ctx, state)
        if not valid_principal(ctx.caller):
            raise InvalidParameters("Invalid caller identity", {"caller": ctx.caller})
        yield state
        if ctx.now > state.last_height:
            state.last_height = ctx.now
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

"""
Registry error taxonomy.

Every failed precondition raises one of these before any write happens;
the surrounding transaction is rolled back and the error reaches the caller
unchanged. The HTTP layer maps each kind to a status code.
"""

from typing import Any, Dict, Optional


class RegistryError(Exception):
    """Base exception for all registry errors."""

    kind = "RegistryError"
    status_code = 400

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message

    def to_dict(self):
        return {"error": self.kind, "message": str(self)}


class AllocationNotFound(RegistryError):
    """Referenced id has no Allocation record."""

    kind = "AllocationNotFound"
    status_code = 404

    def __init__(self, allocation_id: int):
        self.allocation_id = allocation_id
        super().__init__("Allocation not found", {"allocation_id": allocation_id})


class InvalidParameters(RegistryError):
    """A structural validation predicate failed."""

    kind = "InvalidParameters"


class WindowClosed(RegistryError):
    """A percentage or duration bound fell outside its allowed range."""

    kind = "WindowClosed"


class UnsupportedAssetType(RegistryError):
    """The asset-class collection failed structural validation."""

    kind = "UnsupportedAssetType"


class AccessDenied(RegistryError):
    """Caller's permission tier is below the required threshold."""

    kind = "AccessDenied"
    status_code = 403

    def __init__(self, allocation_id: int, principal: str, required: int, actual: int):
        self.required = required
        self.actual = actual
        super().__init__(
            f"Permission level {required} required",
            {"allocation_id": allocation_id, "principal": principal, "level": actual},
        )


class AuthorityFailed(RegistryError):
    """Caller is not the manager of the allocation."""

    kind = "AuthorityFailed"
    status_code = 403

    def __init__(self, allocation_id: int, principal: str):
        super().__init__(
            "Only the allocation manager may perform this operation",
            {"allocation_id": allocation_id, "principal": principal},
        )


class ClockRegression(RegistryError):
    """Supplied logical time is below the last committed one."""

    kind = "ClockRegression"
    status_code = 409

    def __init__(self, now: int, last_height: int):
        self.now = now
        self.last_height = last_height
        super().__init__(
            "Logical time must not decrease",
            {"now": now, "last_height": last_height},
        )

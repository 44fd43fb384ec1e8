"""
Error hierarchy shared by the services and the HTTP layer.

Every error carries a machine readable ``code``, a human readable ``message``,
a ``data`` dict with context and the HTTP status it maps to.

Usage:
    try:
        await warehouse.write_off(product_id, 10)
    except InsufficientStock as e:
        print(f"only {e.available} left")
"""

from typing import Any, Dict, Optional


class WarehouseError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None, **data: Any):
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "data": {k: str(v) if not isinstance(v, (int, float, bool, type(None))) else v
                     for k, v in self.data.items()},
        }


class ValidationError(WarehouseError):
    """Malformed or missing input. Never worth retrying."""

    status_code = 400
    code = "INVALID_INPUT"
    default_message = "Invalid input"


class InvalidOperation(ValidationError):
    code = "INVALID_OPERATION"
    default_message = "Invalid warehouse operation data"


class NotFound(WarehouseError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class Conflict(WarehouseError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Conflicts with the current state"


class InsufficientStock(Conflict):
    code = "INSUFFICIENT_STOCK"
    default_message = "Insufficient stock"

    @property
    def available(self) -> float:
        return self.data.get("available", 0.0)

    @property
    def requested(self) -> float:
        return self.data.get("requested", 0.0)


class BadStatusTransition(Conflict):
    code = "BAD_STATUS_TRANSITION"
    default_message = "Invalid order status transition"


class AlreadyExists(Conflict):
    code = "ALREADY_EXISTS"
    default_message = "Already exists"


class BackendError(WarehouseError):
    """Storage failure. May be transient; the caller decides whether to retry."""

    code = "BACKEND_ERROR"
    default_message = "Storage backend failure"


class OperationTimeout(BackendError):
    status_code = 504
    code = "TIMEOUT"
    default_message = "Storage operation timed out"

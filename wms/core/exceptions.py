"""Custom exception hierarchy for the warehouse API.

Every error the service raises on purpose derives from ``WmsException`` so the
API layer can render them all through one handler.

Error codes follow pattern: [CATEGORY][NUMBER]
- REQ: Malformed or invalid caller input (001-099)
- ENT: Entity lookup / uniqueness / reference errors (100-199)
- STK: Stock accounting errors (200-299)
- SYS: System errors (400-499)
"""

from __future__ import annotations

from typing import Any


class WmsException(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        """Initialize exception with a human-readable message and metadata.

        Args:
            message: Human-readable error message
            code: Unique error code (e.g., "STK200")
            status_code: HTTP status code (default: 400 Bad Request)
            details: Optional additional context
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response format."""
        return {
            "message": self.message,
            "error": {
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        }


# ============================================================================
# REQUEST ERRORS (REQ001-099)
# ============================================================================

class InvalidArgumentError(WmsException):
    """Missing or malformed field, non-positive quantity, bad identifier."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message=message,
            code="REQ001",
            status_code=400,
            details={"field": field} if field else {},
        )


# ============================================================================
# ENTITY ERRORS (ENT100-199)
# ============================================================================

class EntityError(WmsException):
    """Base class for entity lookup and integrity errors."""
    pass


class EntityNotFoundError(EntityError):
    """Referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: str | None = None):
        message = f"{entity} not found" if not entity_id else f"{entity} {entity_id} not found"
        details: dict[str, Any] = {"entity": entity}
        if entity_id:
            details["id"] = entity_id
        super().__init__(
            message=message,
            code="ENT100",
            status_code=404,
            details=details,
        )


class DuplicateEntityError(EntityError):
    """A unique field (category name, product SKU) is already taken."""

    def __init__(self, entity: str, field: str, value: str):
        super().__init__(
            message=f"{entity} with {field} '{value}' already exists",
            code="ENT101",
            status_code=409,
            details={"entity": entity, "field": field, "value": value},
        )


class ReferencedEntityError(EntityError):
    """Delete refused because other records still point at the entity."""

    def __init__(self, entity: str, entity_id: str, references: dict[str, int]):
        described = ", ".join(f"{count} {name}" for name, count in references.items() if count)
        super().__init__(
            message=f"Cannot delete {entity} {entity_id}: still referenced by {described}",
            code="ENT102",
            status_code=409,
            details={"entity": entity, "id": entity_id, "references": references},
        )


# ============================================================================
# STOCK ERRORS (STK200-299)
# ============================================================================

class StockError(WmsException):
    """Base class for stock accounting errors."""
    pass


class CapacityExceededError(StockError):
    """Adding the requested quantity would push a warehouse past capacity."""

    def __init__(self, warehouse_id: str, current_usage: int, capacity: int, requested: int):
        super().__init__(
            message=(
                f"Warehouse overcapacity for ID: {warehouse_id} "
                f"(usage {current_usage} + {requested} > capacity {capacity})"
            ),
            code="STK200",
            status_code=409,
            details={
                "warehouse_id": warehouse_id,
                "current_usage": current_usage,
                "capacity": capacity,
                "requested": requested,
                "available": max(capacity - current_usage, 0),
            },
        )


class CapacityBelowUsageError(StockError):
    """A warehouse cannot be shrunk below the stock it already holds."""

    def __init__(self, warehouse_id: str, current_usage: int, capacity: int):
        super().__init__(
            message=(
                f"Capacity {capacity} is below current usage {current_usage} "
                f"of warehouse {warehouse_id}"
            ),
            code="STK202",
            status_code=409,
            details={"warehouse_id": warehouse_id, "current_usage": current_usage, "capacity": capacity},
        )


class InsufficientStockError(StockError):
    """A transfer or diminish asks for more units than the record holds."""

    def __init__(self, available: int, requested: int, inventory_id: str | None = None):
        details: dict[str, Any] = {"available": available, "requested": requested}
        if inventory_id:
            details["inventory_id"] = inventory_id
        super().__init__(
            message=f"Insufficient stock. Available: {available}, Requested: {requested}",
            code="STK201",
            status_code=400,
            details=details,
        )


# ============================================================================
# SYSTEM ERRORS (SYS400-499)
# ============================================================================

class SystemError(WmsException):
    """Base class for system/infrastructure errors."""
    pass


class RequestTimeoutError(SystemError):
    """The request did not finish within the configured budget."""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            message=f"Request timed out after {timeout_seconds:g} seconds",
            code="SYS400",
            status_code=504,
            details={"timeout_seconds": timeout_seconds},
        )

"""Typed service errors.

Every error carries a machine-readable ``code`` and an HTTP ``status_code``
so blueprints can render them without inspecting messages.

    BakeryOpsError
    +-- ValidationError            (422)
    |   +-- IncompatibleUnitsError
    +-- NotFoundError              (404)
    +-- ConflictError              (409)
    |   +-- RejectedNegativeStock
    |   +-- InvalidStatusTransition
    |   +-- CompositionCycleError
    |   +-- ReferencedItemError
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class BakeryOpsError(Exception):
    """Base class for all service-level errors."""

    code: str = "BAKERYOPS_ERROR"
    status_code: int = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(BakeryOpsError):
    code = "VALIDATION_ERROR"
    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.field = field
        merged = dict(details or {})
        if field:
            merged.setdefault("field", field)
        super().__init__(message, merged)


class IncompatibleUnitsError(ValidationError):
    """Conversion requested between units of different dimension groups."""

    code = "INCOMPATIBLE_UNITS"

    def __init__(self, from_unit: str, to_unit: str):
        self.from_unit = from_unit
        self.to_unit = to_unit
        super().__init__(
            f"Cannot convert {from_unit!r} to {to_unit!r}",
            details={"from_unit": from_unit, "to_unit": to_unit},
        )


class NotFoundError(BakeryOpsError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found", {"resource": resource, "id": identifier})


class ConflictError(BakeryOpsError):
    code = "CONFLICT"
    status_code = 409


class RejectedNegativeStock(ConflictError):
    """A stock movement would leave the item below zero."""

    code = "NEGATIVE_STOCK"

    def __init__(self, item_id: int, current_stock: float, qty_change: float):
        self.item_id = item_id
        self.current_stock = current_stock
        self.qty_change = qty_change
        super().__init__(
            f"Stock for item {item_id} cannot go negative "
            f"(current {current_stock:g}, change {qty_change:g})",
            {"item_id": item_id, "current_stock": current_stock, "qty_change": qty_change},
        )


class InvalidStatusTransition(ConflictError):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, entity: str, current: str, target: str):
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(
            f"{entity} cannot move from {current!r} to {target!r}",
            {"entity": entity, "from": current, "to": target},
        )


class CompositionCycleError(ConflictError):
    code = "COMPOSITION_CYCLE"

    def __init__(self, parent_item_id: int, path: list):
        self.parent_item_id = parent_item_id
        self.path = path
        super().__init__(
            f"Compound item {parent_item_id} would contain itself via {path}",
            {"parent_item_id": parent_item_id, "path": path},
        )


class ReferencedItemError(ConflictError):
    code = "ITEM_REFERENCED"

    def __init__(self, item_id: int, references: Dict[str, int]):
        self.item_id = item_id
        self.references = references
        super().__init__(
            f"Inventory item {item_id} is still referenced",
            {"item_id": item_id, "references": references},
        )

"""
Custom exception classes for the application.

Every error carries a stable code, a human-readable message meant to be shown
to the operator verbatim, an HTTP status and optional details.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "MATERIAL_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with current state (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DatabaseError(AppError):
    """Store operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# RECORD ERRORS
# ===================

class MaterialNotFoundError(NotFoundError):
    """Inventory material not found."""

    def __init__(self, material_id: str):
        super().__init__(
            resource="Material",
            identifier=material_id,
            code="MATERIAL_NOT_FOUND"
        )


class ProductNotFoundError(NotFoundError):
    """Product recipe not found."""

    def __init__(self, product_id: str):
        super().__init__(
            resource="Product",
            identifier=product_id,
            code="PRODUCT_NOT_FOUND"
        )


class ClientNotFoundError(NotFoundError):
    """Client not found."""

    def __init__(self, client_id: str):
        super().__init__(
            resource="Client",
            identifier=client_id,
            code="CLIENT_NOT_FOUND"
        )


class SupplierNotFoundError(NotFoundError):
    """Supplier not found."""

    def __init__(self, supplier_id: str):
        super().__init__(
            resource="Supplier",
            identifier=supplier_id,
            code="SUPPLIER_NOT_FOUND"
        )


class OrderNotFoundError(NotFoundError):
    """Production order not found."""

    def __init__(self, order_id: str):
        super().__init__(
            resource="Order",
            identifier=order_id,
            code="ORDER_NOT_FOUND"
        )


# ===================
# CALCULATION ERRORS
# ===================

class InvalidRecipeError(ValidationError):
    """Recipe cannot convert a weight request into meters."""

    def __init__(self, product_id: Optional[str], kg_per_meter: float):
        super().__init__(
            code="INVALID_RECIPE",
            message="Recipe weight per meter must be positive to order by weight",
            details={"product_id": product_id, "kg_per_meter": kg_per_meter}
        )


class DegenerateMaterialError(ValidationError):
    """Material has zero width, thickness or density."""

    def __init__(self, material_id: Optional[str], width_mm: float, thickness_microns: float):
        super().__init__(
            code="DEGENERATE_MATERIAL",
            message="Material width and thickness must be non-zero to convert weight into meters",
            details={
                "material_id": material_id,
                "width_mm": width_mm,
                "thickness_microns": thickness_microns,
            }
        )


# ===================
# ALLOCATION ERRORS
# ===================

class MissingSelectionError(ValidationError):
    """A required layer has no material chosen."""

    def __init__(self, layer: str, label: str):
        super().__init__(
            code="MISSING_MATERIAL_SELECTION",
            message=f"A material must be selected for {label}",
            details={"layer": layer}
        )


class NoCompatibleInventoryError(ConflictError):
    """No inventory roll is compatible with a required layer."""

    def __init__(self, layer: str, material_type: str, min_width_mm: float):
        super().__init__(
            code="NO_COMPATIBLE_INVENTORY",
            message=f"No compatible inventory for {material_type} at {min_width_mm:g}mm or wider",
            details={
                "layer": layer,
                "material_type": material_type,
                "min_width_mm": min_width_mm,
            }
        )


class StockShortfallError(ConflictError):
    """Primary roll is short and no substitute was chosen."""

    def __init__(self, material_id: str, required_kg: float, available_kg: float):
        super().__init__(
            code="STOCK_SHORTFALL",
            message=(
                f"Material has {available_kg:.2f} kg but {required_kg:.2f} kg are required; "
                "choose a substitute roll"
            ),
            details={
                "material_id": material_id,
                "required_kg": round(required_kg, 2),
                "available_kg": round(available_kg, 2),
                "missing_kg": round(required_kg - available_kg, 2),
            }
        )


class InvalidStageError(ValidationError):
    """Stage is not part of the order's workflow."""

    def __init__(self, stage: str, valid: list[str]):
        super().__init__(
            code="ORDER_INVALID_STAGE",
            message=f"Stage must be one of: {', '.join(valid)}",
            details={"provided": stage, "valid": valid}
        )

"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DatabaseError,

    # Records
    MaterialNotFoundError,
    ProductNotFoundError,
    ClientNotFoundError,
    SupplierNotFoundError,
    OrderNotFoundError,

    # Calculation
    InvalidRecipeError,
    DegenerateMaterialError,

    # Allocation
    MissingSelectionError,
    NoCompatibleInventoryError,
    StockShortfallError,

    # Orders
    InvalidStageError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DatabaseError",

    # Records
    "MaterialNotFoundError",
    "ProductNotFoundError",
    "ClientNotFoundError",
    "SupplierNotFoundError",
    "OrderNotFoundError",

    # Calculation
    "InvalidRecipeError",
    "DegenerateMaterialError",

    # Allocation
    "MissingSelectionError",
    "NoCompatibleInventoryError",
    "StockShortfallError",

    # Orders
    "InvalidStageError",
]

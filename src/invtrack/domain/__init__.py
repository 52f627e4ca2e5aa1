from .models import (
    Audit,
    Batch,
    BatchAllocation,
    Customer,
    ExitResult,
    Product,
    ProductCategory,
    Supplier,
    User,
)
from .errors import (
    AppError,
    AuthorizationError,
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "Audit",
    "Batch",
    "BatchAllocation",
    "Customer",
    "ExitResult",
    "Product",
    "ProductCategory",
    "Supplier",
    "User",
    "AppError",
    "AuthorizationError",
    "ConflictError",
    "InsufficientStockError",
    "NotFoundError",
    "ValidationError",
]

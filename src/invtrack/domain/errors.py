class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class ConflictError(AppError):
    """A unique value (SKU, username) is already taken."""


class InsufficientStockError(AppError):
    def __init__(self, product_id: int, available: int, requested: int):
        self.product_id = int(product_id)
        self.available = int(available)
        self.requested = int(requested)
        super().__init__(
            f"Not enough stock for product {self.product_id}. "
            f"Available: {self.available}, requested: {self.requested}, missing: {self.shortfall}"
        )

    @property
    def shortfall(self) -> int:
        return max(self.requested - self.available, 0)


class AuthorizationError(AppError):
    pass

# badminton_shop/domain/exceptions.py
from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"


HTTP_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


class ShopError(Exception):
    kind = ErrorKind.INTERNAL

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.kind]


class ValidationError(ShopError):
    kind = ErrorKind.VALIDATION


class NotFoundError(ShopError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(ShopError):
    kind = ErrorKind.CONFLICT


class AuthenticationRequiredError(ShopError):
    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class AccessDeniedError(ShopError):
    kind = ErrorKind.FORBIDDEN

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class EmptyCartError(ValidationError):
    def __init__(self):
        super().__init__("Cart is empty")


class ProductUnavailableError(ValidationError):
    def __init__(self, product_name: str):
        self.product_name = product_name
        super().__init__(f'Product "{product_name}" is no longer available')


class InsufficientStockError(ValidationError):
    def __init__(self, product_name: str, available: int, requested: int):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            f'Insufficient stock for product "{product_name}". '
            f"Available: {available}, requested: {requested}"
        )


class CouponRejectedError(ValidationError):
    pass


class InvalidStatusError(ValidationError):
    pass


class InvalidStatusTransitionError(ConflictError):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Invalid status transition: {current} -> {target}")


class CheckoutInProgressError(ConflictError):
    def __init__(self):
        super().__init__("A checkout for this cart is already in progress")

"""
Custom Exceptions

Exception Hierarchy:
    FoodCartError (base)
    ├── CartError
    │   ├── InvalidProductError
    │   ├── InvalidQuantityError
    │   └── LineItemNotFoundError
    ├── StorageError
    ├── CheckoutError
    │   ├── EmptyCartError
    │   ├── MissingContactError
    │   ├── VoucherNotFoundError
    │   ├── VoucherExpiredError
    │   ├── InvalidPointsError
    │   └── OrderSubmissionError
    ├── OrderNotFoundError
    ├── BackendError
    └── ChannelError

Storage failures are recovered inside the cart engine and only logged;
everything else propagates to the caller.
"""


class FoodCartError(Exception):
    """
    Base exception for all food cart errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable code used in API error responses
        details: Optional dict with additional context
    """

    error_code = "food_cart_error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


# =============================================================================
# CART
# =============================================================================

class CartError(FoodCartError):
    """Base exception for cart errors."""
    error_code = "cart_error"


class InvalidProductError(CartError):
    """Raised when add-to-cart receives product data that fails validation."""
    error_code = "invalid_product"

    def __init__(self, reason: str, product_id: str | None = None):
        super().__init__(
            f"Invalid product: {reason}",
            details={"product_id": product_id, "reason": reason},
        )
        self.product_id = product_id
        self.reason = reason


class InvalidQuantityError(CartError):
    """Raised when a quantity is not a positive integer."""
    error_code = "invalid_quantity"

    def __init__(self, quantity):
        super().__init__(
            f"Quantity must be a positive integer, got {quantity!r}",
            details={"quantity": quantity},
        )
        self.quantity = quantity


class LineItemNotFoundError(CartError):
    """Raised when a line key does not address any line item."""
    error_code = "line_item_not_found"

    def __init__(self, line_key: str):
        super().__init__(
            f"Line item {line_key} not found in cart",
            details={"line_key": line_key},
        )
        self.line_key = line_key


# =============================================================================
# STORAGE
# =============================================================================

class StorageError(FoodCartError):
    """Raised by key-value stores when a read or write fails."""
    error_code = "storage_error"

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message, details={"key": key})
        self.key = key


# =============================================================================
# CHECKOUT
# =============================================================================

class CheckoutError(FoodCartError):
    """Base exception for checkout errors."""
    error_code = "checkout_error"


class EmptyCartError(CheckoutError):
    """Raised when trying to check out an empty cart."""
    error_code = "empty_cart"

    def __init__(self):
        super().__init__("Cart is empty")


class MissingContactError(CheckoutError):
    """Raised when the delivery address or phone number is missing."""
    error_code = "missing_contact"

    def __init__(self, missing: list[str]):
        super().__init__(
            f"Missing delivery information: {', '.join(missing)}",
            details={"missing": missing},
        )
        self.missing = missing


class VoucherNotFoundError(CheckoutError):
    """Raised when a voucher code does not exist."""
    error_code = "voucher_not_found"

    def __init__(self, code: str):
        super().__init__(f"Voucher {code} does not exist", details={"code": code})
        self.code = code


class VoucherExpiredError(CheckoutError):
    """Raised when a voucher exists but is no longer active."""
    error_code = "voucher_expired"

    def __init__(self, code: str):
        super().__init__(f"Voucher {code} has expired", details={"code": code})
        self.code = code


class InvalidPointsError(CheckoutError):
    """Raised when a negative number of loyalty points is requested."""
    error_code = "invalid_points"

    def __init__(self, points):
        super().__init__(
            f"Points to redeem must be zero or more, got {points!r}",
            details={"points": points},
        )
        self.points = points


class OrderSubmissionError(CheckoutError):
    """Raised when the order channel reports a failed order creation."""
    error_code = "order_submission_failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or "Order creation failed")


# =============================================================================
# COLLABORATORS
# =============================================================================

class BackendError(FoodCartError):
    """Raised when the REST backend cannot be reached or answers with an error."""
    error_code = "backend_error"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, details={"status_code": status_code})
        self.status_code = status_code


class ChannelError(FoodCartError):
    """Raised when the realtime order channel is unavailable or times out."""
    error_code = "channel_error"


class OrderNotFoundError(FoodCartError):
    """Raised when the backend has no order with the requested id."""
    error_code = "order_not_found"

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found", details={"order_id": order_id})
        self.order_id = order_id

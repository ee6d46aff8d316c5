"""
Cart-related exceptions.

Write-path failures reach the caller as one of these; the read path
(`CartEngine.refresh`) logs and swallows them.
"""


class CartError(Exception):
    """
    Base exception for all cart errors.

    Attributes:
        message: Human-readable error message
        details: Optional dict with additional context (ids, error codes)
    """

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


class NotAuthenticated(CartError):
    """Raised by a mutating operation when nobody is signed in."""

    def __init__(self):
        super().__init__("Please sign in to modify your cart")


class ProfileNotFound(CartError):
    """The signed-in identity has no profile row yet."""

    def __init__(self, auth_id: str):
        super().__init__(
            f"No profile found for identity {auth_id}",
            details={"auth_id": auth_id},
        )
        self.auth_id = auth_id


class GatewayError(CartError):
    """Any network or storage failure reported by the row store."""

    UNIQUE_VIOLATION = "23505"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message, details={"code": code} if code else None)
        self.code = code

    @property
    def is_duplicate(self) -> bool:
        return self.code == self.UNIQUE_VIOLATION


class InvalidQuantity(CartError):
    """Quantity must be a positive integer."""

    def __init__(self, quantity: int):
        super().__init__(
            f"Quantity must be a positive integer, got {quantity}",
            details={"quantity": quantity},
        )
        self.quantity = quantity


class CartItemNotFound(CartError):
    """Raised when a cart item id does not match any row."""

    def __init__(self, item_id: str):
        super().__init__(
            f"Cart item {item_id} not found",
            details={"item_id": item_id},
        )
        self.item_id = item_id

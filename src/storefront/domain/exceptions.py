"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.

The hierarchy mirrors how the caller is expected to react:

- ``ValidationError``: the caller can correct the input and try again.
- ``ConcurrencyError``: state moved underneath the caller; retry after review.
- ``AuthorizationError``: sign in, or the actor is not allowed to do this.
- ``PersistenceFailure``: the operation failed as a whole; nothing committed.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


# --- Cart / inventory ---------------------------------------------------------


class OutOfStock(ValidationError):
    """The product can not be added at all (inactive or no stock)."""

    def __init__(self, product_id: str, message: str | None = None) -> None:
        self.product_id = product_id
        super().__init__(message or f"Product '{product_id}' is out of stock")


class InsufficientStock(ValidationError):
    """The requested quantity exceeds the available stock."""

    def __init__(self, product_id: str, requested: int, available: int) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product '{product_id}' "
            f"(requested {requested}, {available} available)"
        )


class ProductInactive(ValidationError):
    """The product exists but is not currently sold."""

    def __init__(self, product_id: str) -> None:
        self.product_id = product_id
        super().__init__(f"Product '{product_id}' is not available for sale")


class EmptyCart(ValidationError):
    """Checkout was attempted with nothing in the cart."""

    def __init__(self) -> None:
        super().__init__("Cart is empty")


class MissingShippingAddress(ValidationError):
    """Checkout was attempted without a shipping address."""

    def __init__(self) -> None:
        super().__init__("Shipping address is required")


class InvalidTransition(ValidationError):
    """An order status change is not allowed by the fulfillment workflow."""

    def __init__(self, from_status: str, to_status: str) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot move order from '{from_status}' to '{to_status}'"
        )


# --- Concurrency --------------------------------------------------------------


class ConcurrencyError(DomainException):
    """Shared state changed while the operation was running."""


class StockChanged(ConcurrencyError):
    """Stock for a cart item no longer covers the requested quantity."""

    def __init__(self, product_id: str, available: int) -> None:
        self.product_id = product_id
        self.available = available
        super().__init__(
            f"Stock changed for product '{product_id}' "
            f"({available} available), please review your cart"
        )


class StockConflict(ConcurrencyError):
    """Raised by a gateway when the conditional stock decrement fails."""

    def __init__(self, product_id: str, available: int) -> None:
        self.product_id = product_id
        self.available = available
        super().__init__(
            f"Stock for product '{product_id}' dropped to {available} "
            f"before the order could be stored"
        )


class SubmissionInProgress(ConcurrencyError):
    """Another checkout for the same session has not finished yet."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__("An order submission is already in progress, please wait")


class StatusChanged(ConcurrencyError):
    """The stored order status is no longer the one the change was based on."""

    def __init__(self, order_id: int, expected: str, actual: str) -> None:
        self.order_id = order_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Order #{order_id} is now {actual}, not {expected}; "
            f"reload it and try again"
        )


# --- Authorization ------------------------------------------------------------


class AuthorizationError(DomainException):
    """The acting identity may not perform this operation."""


class NotAuthenticated(AuthorizationError):
    def __init__(self) -> None:
        super().__init__("Please sign in to continue")


class Unauthorized(AuthorizationError):
    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f"You are not allowed to {action}")


# --- Infrastructure -----------------------------------------------------------


class PersistenceFailure(DomainException):
    """The store could not complete the operation; nothing was committed."""

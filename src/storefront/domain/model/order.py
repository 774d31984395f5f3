"""Order aggregate.

The Order is an aggregate root that owns its items.  Items and the
header's financial fields are fixed at creation; afterwards only the
fulfillment status (and its ``updated_at`` stamp) moves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from storefront.domain.exceptions import (
    EmptyCart,
    InvalidTransition,
    MissingShippingAddress,
    ValidationError,
)
from storefront.domain.model.value_objects import Money, Quantity


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"

    @property
    def is_terminal(self) -> bool:
        return self is OrderStatus.DELIVERED

    def next(self) -> OrderStatus | None:
        """The only status the normal workflow may move to, if any."""
        idx = FULFILLMENT_SEQUENCE.index(self)
        if idx + 1 < len(FULFILLMENT_SEQUENCE):
            return FULFILLMENT_SEQUENCE[idx + 1]
        return None


FULFILLMENT_SEQUENCE: tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)


class PaymentMethod(Enum):
    CASH_ON_DELIVERY = "cod"
    BANK_TRANSFER = "transfer"

    @staticmethod
    def parse(raw: str) -> PaymentMethod:
        try:
            return PaymentMethod(raw.strip().lower())
        except ValueError as exc:
            choices = ", ".join(m.value for m in PaymentMethod)
            raise ValidationError(
                f"Unknown payment method '{raw}' (expected one of: {choices})"
            ) from exc


@dataclass(frozen=True)
class OrderItem:
    """Price snapshot of one product at purchase time."""

    product_id: str
    product_name: str
    quantity: Quantity
    unit_price_at_purchase: Money

    @property
    def line_total(self) -> Money:
        return self.unit_price_at_purchase * self.quantity.value


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use ``Order.create()`` for new orders; it validates the checkout input
    and computes the total.  ``__init__`` still checks that a reconstituted
    order's stored total matches its items.
    """

    id: int | None
    order_number: str
    customer_id: str
    items: list[OrderItem]
    payment_method: PaymentMethod
    shipping_address: str
    total_amount: Money
    status: OrderStatus = OrderStatus.PENDING
    notes: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        computed = self.compute_total(self.items)
        if computed != self.total_amount:
            raise ValidationError(
                f"Order {self.order_number} total {self.total_amount} "
                f"does not match its items ({computed})"
            )

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        order_number: str,
        customer_id: str,
        items: list[OrderItem],
        payment_method: PaymentMethod,
        shipping_address: str,
        notes: str | None = None,
    ) -> Order:
        if not items:
            raise EmptyCart()

        address = (shipping_address or "").strip()
        if not address:
            raise MissingShippingAddress()

        if not customer_id:
            raise ValidationError("Customer id is required")

        notes = notes.strip() if notes else None
        now = _utcnow()
        return Order(
            id=None,
            order_number=order_number,
            customer_id=customer_id,
            items=list(items),
            payment_method=payment_method,
            shipping_address=address,
            total_amount=Order.compute_total(items),
            notes=notes or None,
            created_at=now,
            updated_at=now,
        )

    # --- State transitions ----------------------------------------------------

    def advance_to(self, target: OrderStatus, now: datetime | None = None) -> None:
        """Move one step forward along the fulfillment sequence.

        Backward moves, skips and anything out of ``delivered`` raise
        InvalidTransition and leave the status untouched.
        """
        if target is not self.status.next():
            raise InvalidTransition(self.status.value, target.value)
        self._set_status(target, now)

    def override_status(self, target: OrderStatus, now: datetime | None = None) -> None:
        """Administrative correction: set any status other than the current one."""
        if target is self.status:
            raise InvalidTransition(self.status.value, target.value)
        self._set_status(target, now)

    # --- Computed properties --------------------------------------------------

    @staticmethod
    def compute_total(items: list[OrderItem]) -> Money:
        result = Money.zero()
        for item in items:
            result = result + item.line_total
        return result

    @property
    def item_count(self) -> int:
        return sum(item.quantity.value for item in self.items)

    # --- Internal helpers -----------------------------------------------------

    def _set_status(self, target: OrderStatus, now: datetime | None) -> None:
        self.status = target
        self.updated_at = now or _utcnow()

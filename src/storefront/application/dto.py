"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.model.order import Order


@dataclass(frozen=True)
class CheckoutForm:
    """Input: what the customer typed in the checkout dialog."""

    shipping_address: str
    payment_method: str = "cod"
    notes: str | None = None


@dataclass(frozen=True)
class OrderItemDTO:
    """Output: a single order line as displayed to the user."""

    product_id: str
    product_name: str
    quantity: int
    unit_price: str  # formatted, e.g. "IDR 10,000.00"
    line_total: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    order_number: str
    customer_id: str
    status: str
    payment_method: str
    shipping_address: str
    notes: str | None
    items: list[OrderItemDTO]
    total: str
    created_at: str
    updated_at: str | None

    @staticmethod
    def from_order(order: Order) -> OrderDTO:
        return OrderDTO(
            id=order.id,  # type: ignore[arg-type]
            order_number=order.order_number,
            customer_id=order.customer_id,
            status=order.status.value,
            payment_method=order.payment_method.value,
            shipping_address=order.shipping_address,
            notes=order.notes,
            items=[
                OrderItemDTO(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity.value,
                    unit_price=str(item.unit_price_at_purchase),
                    line_total=str(item.line_total),
                )
                for item in order.items
            ],
            total=str(order.total_amount),
            created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
            updated_at=(
                order.updated_at.strftime("%Y-%m-%d %H:%M UTC")
                if order.updated_at is not None
                else None
            ),
        )


@dataclass(frozen=True)
class OrderStatsDTO:
    total_orders: int
    total_revenue: str
    pending_orders: int
    today_orders: int

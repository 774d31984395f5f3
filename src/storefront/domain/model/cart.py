"""Cart: a customer's working selection before checkout.

The cart is an in-memory aggregate owned by one customer session.  It
enforces stock-aware quantity rules against the *last observed* product
snapshot (optimistic, no lock) and freezes each item's price the first
time it is added.  Order submission re-runs admission against fresh
snapshots before anything is persisted.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, replace

from storefront.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStock,
    OutOfStock,
    ProductInactive,
    ValidationError,
)
from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from storefront.domain.service.inventory_guard import (
    Rejected,
    RejectionReason,
    validate,
)


@dataclass(frozen=True)
class CartItem:
    """One line of the cart.

    ``unit_price_snapshot`` is captured when the product is first added
    and never rewritten; quantity changes produce a copy with the same
    snapshot.
    """

    product_id: str
    name: str
    unit_label: str
    unit_price_snapshot: Money
    quantity: int
    image_ref: str | None = None

    @property
    def line_total(self) -> Money:
        return self.unit_price_snapshot * self.quantity


@dataclass(frozen=True)
class CartTotals:
    item_count: int
    subtotal: Money


@dataclass(frozen=True)
class PriceChange:
    """Live catalog price differs from the price frozen in the cart."""

    product_id: str
    name: str
    snapshot_price: Money
    current_price: Money


class Cart:
    """Insertion-ordered ``product_id -> CartItem`` mapping."""

    def __init__(self) -> None:
        self._items: dict[str, CartItem] = {}
        self._snapshots: dict[str, Product] = {}
        self._checkout_token: str | None = None

    # --- Mutations ------------------------------------------------------------

    def add_item(self, product: Product, requested_qty: int = 1) -> int:
        """Add *requested_qty* units of *product*; return the resulting quantity."""
        if requested_qty <= 0:
            raise ValidationError("Quantity to add must be positive")
        if not product.is_purchasable:
            raise OutOfStock(product.id)

        existing = self._items.get(product.id)
        if existing is not None:
            new_qty = existing.quantity + requested_qty
            self.update_quantity(product.id, new_qty, product=product)
            return new_qty

        verdict = validate(product, requested_qty)
        if isinstance(verdict, Rejected):
            _raise_for(verdict)

        self._items[product.id] = CartItem(
            product_id=product.id,
            name=product.name,
            unit_label=product.unit_label,
            unit_price_snapshot=product.unit_price,
            quantity=requested_qty,
            image_ref=product.image_ref,
        )
        self._snapshots[product.id] = product
        self._touch()
        return requested_qty

    def update_quantity(
        self,
        product_id: str,
        new_qty: int,
        product: Product | None = None,
    ) -> CartItem | None:
        """Set the quantity of an item already in the cart.

        Returns the updated item, or ``None`` when ``new_qty <= 0`` removed
        it.  A fresher ``product`` snapshot, when given, is used for the
        stock check and remembered on success.  On rejection the cart is
        left exactly as it was.
        """
        if new_qty <= 0:
            self.remove_item(product_id)
            return None

        item = self._items.get(product_id)
        if item is None:
            raise EntityNotFoundError(f"Product '{product_id}' is not in the cart")

        snapshot = product if product is not None else self._snapshots[product_id]
        verdict = validate(snapshot, new_qty)
        if isinstance(verdict, Rejected):
            _raise_for(verdict)

        updated = replace(item, quantity=new_qty)
        self._items[product_id] = updated
        self._snapshots[product_id] = snapshot
        self._touch()
        return updated

    def remove_item(self, product_id: str) -> None:
        """Remove an item. Removing an absent id is a no-op."""
        if self._items.pop(product_id, None) is not None:
            self._snapshots.pop(product_id, None)
            self._touch()

    def clear(self) -> None:
        self._items.clear()
        self._snapshots.clear()
        self._checkout_token = None

    # --- Queries --------------------------------------------------------------

    @property
    def items(self) -> list[CartItem]:
        return list(self._items.values())

    @property
    def is_empty(self) -> bool:
        return not self._items

    def quantity_of(self, product_id: str) -> int:
        item = self._items.get(product_id)
        return item.quantity if item is not None else 0

    def totals(self) -> CartTotals:
        subtotal = Money.zero()
        count = 0
        for item in self._items.values():
            subtotal = subtotal + item.line_total
            count += item.quantity
        return CartTotals(item_count=count, subtotal=subtotal)

    def price_changes(self, current: Mapping[str, Product]) -> list[PriceChange]:
        """Compare frozen prices with *current* snapshots, for display only."""
        changes: list[PriceChange] = []
        for item in self._items.values():
            live = current.get(item.product_id)
            if live is not None and live.unit_price != item.unit_price_snapshot:
                changes.append(
                    PriceChange(
                        product_id=item.product_id,
                        name=item.name,
                        snapshot_price=item.unit_price_snapshot,
                        current_price=live.unit_price,
                    )
                )
        return changes

    def checkout_token(self, issue: Callable[[], str]) -> str:
        """Return the idempotency key for the cart's current contents.

        The key is issued on first use and kept until the cart changes, so
        retries of the same checkout carry the same key.
        """
        if self._checkout_token is None:
            self._checkout_token = issue()
        return self._checkout_token

    def __iter__(self) -> Iterator[CartItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._items

    # --- Internal helpers -----------------------------------------------------

    def _touch(self) -> None:
        self._checkout_token = None


def _raise_for(verdict: Rejected) -> None:
    if verdict.reason is RejectionReason.INSUFFICIENT_STOCK:
        raise InsufficientStock(verdict.product_id, verdict.quantity, verdict.available)
    if verdict.reason is RejectionReason.PRODUCT_INACTIVE:
        raise ProductInactive(verdict.product_id)
    raise OutOfStock(verdict.product_id)

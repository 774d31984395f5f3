"""Product snapshot.

Products live independently of carts and orders. The catalog hands out
immutable snapshots: a point-in-time read of price, stock and the active
flag.  Administrative edits produce a *new* snapshot which the catalog
stores; nothing holding an older snapshot is affected.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.value_objects import Money


@dataclass(frozen=True)
class Product:
    """A product as seen by the core at one moment in time."""

    id: str
    name: str
    unit_price: Money
    stock_quantity: int
    unit_label: str = "pcs"
    is_active: bool = True
    original_price: Money | None = None
    image_ref: str | None = None
    category_id: str | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Product name is required")
        if not isinstance(self.stock_quantity, int) or self.stock_quantity < 0:
            raise ValidationError(
                f"Stock quantity must be a non-negative integer, got {self.stock_quantity!r}"
            )

    @property
    def is_purchasable(self) -> bool:
        return self.is_active and self.stock_quantity > 0

    @property
    def is_discounted(self) -> bool:
        return self.original_price is not None and self.original_price > self.unit_price

    # --- Administrative edits (return a new snapshot) -------------------------

    def with_price(self, new_price: Money, original_price: Money | None = None) -> Product:
        """Change the product price.

        Carts and orders keep the price they captured; only future
        additions see the new price.
        """
        return replace(self, unit_price=new_price, original_price=original_price)

    def with_stock(self, stock_quantity: int) -> Product:
        return replace(self, stock_quantity=stock_quantity)

    def with_active(self, is_active: bool) -> Product:
        return replace(self, is_active=is_active)

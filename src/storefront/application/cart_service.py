"""Application service: the customer's cart for one session.

Fetches product snapshots from the catalog and applies them to the
session's Cart.  All operations on one cart run behind an
``asyncio.Lock`` (FIFO), so two overlapping updates apply in arrival
order and the later one validates against the result of the earlier.
"""

from __future__ import annotations

import asyncio
import logging

from storefront.application.ports import (
    NotificationChannel,
    NotificationKind,
    send_notification,
)
from storefront.domain.exceptions import EntityNotFoundError, OutOfStock, ValidationError
from storefront.domain.model.cart import Cart, CartItem, CartTotals, PriceChange
from storefront.domain.model.product import Product
from storefront.domain.repository.product_repository import ProductCatalog

logger = logging.getLogger(__name__)


class CartService:

    def __init__(
        self,
        session_id: str,
        catalog: ProductCatalog,
        notifier: NotificationChannel | None = None,
        cart: Cart | None = None,
    ) -> None:
        self.session_id = session_id
        self.cart = cart if cart is not None else Cart()
        self._catalog = catalog
        self._notifier = notifier
        self._lock = asyncio.Lock()

    async def add_item(self, product_id: str, quantity: int = 1) -> int:
        """Add a product to the cart; return its resulting quantity."""
        async with self._lock:
            product = await self._load(product_id)
            try:
                result = self.cart.add_item(product, quantity)
            except ValidationError as exc:
                send_notification(self._notifier, NotificationKind.ERROR, str(exc))
                raise

        logger.info(
            "Session %s: %s x%d in cart", self.session_id, product_id, result
        )
        send_notification(
            self._notifier, NotificationKind.SUCCESS, f"{product.name} added to cart"
        )
        return result

    async def update_quantity(self, product_id: str, new_qty: int) -> CartItem | None:
        """Set an item's quantity; ``None`` means the item was removed."""
        async with self._lock:
            if new_qty <= 0:
                self._remove(product_id)
                return None

            product = await self._catalog.get_snapshot(product_id)
            if product is None:
                exc = OutOfStock(product_id, f"Product '{product_id}' is no longer available")
                send_notification(self._notifier, NotificationKind.ERROR, str(exc))
                raise exc
            try:
                item = self.cart.update_quantity(product_id, new_qty, product=product)
            except ValidationError as exc:
                send_notification(self._notifier, NotificationKind.ERROR, str(exc))
                raise

        logger.debug("Session %s: %s set to %d", self.session_id, product_id, new_qty)
        return item

    async def remove_item(self, product_id: str) -> None:
        async with self._lock:
            self._remove(product_id)

    async def abandon(self) -> None:
        """Explicitly throw the cart away."""
        async with self._lock:
            self.cart.clear()
        logger.info("Session %s abandoned its cart", self.session_id)

    async def price_changes(self) -> list[PriceChange]:
        """Re-fetch prices for display; the cart's snapshots are not touched."""
        current: dict[str, Product] = {}
        for item in self.cart.items:
            product = await self._catalog.get_snapshot(item.product_id)
            if product is not None:
                current[item.product_id] = product
        changes = self.cart.price_changes(current)
        for change in changes:
            send_notification(
                self._notifier,
                NotificationKind.WARNING,
                f"Price of {change.name} is now {change.current_price} "
                f"(your cart keeps {change.snapshot_price})",
            )
        return changes

    def totals(self) -> CartTotals:
        return self.cart.totals()

    @property
    def lock(self) -> asyncio.Lock:
        """Serialises checkout with the cart's own mutations."""
        return self._lock

    # --- Internal helpers -----------------------------------------------------

    async def _load(self, product_id: str) -> Product:
        product = await self._catalog.get_snapshot(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product not found: '{product_id}'")
        return product

    def _remove(self, product_id: str) -> None:
        if product_id not in self.cart:
            return
        name = next(i.name for i in self.cart.items if i.product_id == product_id)
        self.cart.remove_item(product_id)
        send_notification(
            self._notifier, NotificationKind.INFO, f"{name} removed from cart"
        )

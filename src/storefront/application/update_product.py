"""Application service: Update Product use case (staff only)."""

from __future__ import annotations

import logging

from storefront.application.ports import AuthGate, require_staff
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.product_repository import ProductCatalog

logger = logging.getLogger(__name__)


class UpdateProductHandler:

    def __init__(self, catalog: ProductCatalog, auth: AuthGate) -> None:
        self._catalog = catalog
        self._auth = auth

    async def handle(
        self,
        product_id: str,
        new_price: str | None = None,
        stock: int | None = None,
        is_active: bool | None = None,
    ) -> Product:
        """Update a product's price, stock level or active flag.

        This does NOT affect any existing carts or orders: they captured
        a price snapshot when the item was added.
        """
        await require_staff(self._auth, "edit products")
        product = await self._catalog.get_snapshot(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product with ID '{product_id}' not found")

        if new_price is not None:
            product = product.with_price(Money.of(new_price), original_price=product.original_price)
        if stock is not None:
            product = product.with_stock(stock)
        if is_active is not None:
            product = product.with_active(is_active)

        await self._catalog.save(product)
        logger.info(
            "Product #%s updated: price=%s stock=%d active=%s",
            product.id,
            product.unit_price,
            product.stock_quantity,
            product.is_active,
        )
        return product

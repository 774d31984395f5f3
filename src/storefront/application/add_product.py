"""Application service: Add Product use case (staff only)."""

from __future__ import annotations

import logging

from storefront.application.ports import AuthGate, require_staff
from storefront.domain.exceptions import ValidationError
from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.product_repository import ProductCatalog

logger = logging.getLogger(__name__)


class AddProductHandler:

    def __init__(self, catalog: ProductCatalog, auth: AuthGate) -> None:
        self._catalog = catalog
        self._auth = auth

    async def handle(
        self,
        name: str,
        price: str,
        stock: int,
        unit_label: str = "pcs",
        original_price: str | None = None,
        category_id: str | None = None,
    ) -> Product:
        """Add a new product to the catalog."""
        await require_staff(self._auth, "add products")
        if not name or not name.strip():
            raise ValidationError("Product name is required")

        all_products = await self._catalog.list_all()
        if any(p.name.lower() == name.strip().lower() for p in all_products):
            raise ValidationError(f"Product '{name}' already exists")

        # Auto-assign ID based on existing products
        numeric_ids = [int(p.id) for p in all_products if p.id.isdigit()]
        next_id = str(max(numeric_ids) + 1) if numeric_ids else "1"

        product = Product(
            id=next_id,
            name=name.strip(),
            unit_price=Money.of(price),
            original_price=Money.of(original_price) if original_price else None,
            stock_quantity=stock,
            unit_label=unit_label,
            category_id=category_id,
        )
        await self._catalog.save(product)
        logger.info("Product #%s '%s' added at %s", product.id, product.name, product.unit_price)
        return product

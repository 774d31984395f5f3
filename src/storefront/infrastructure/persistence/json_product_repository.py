"""JSON-file-backed implementation of ProductCatalog."""

from __future__ import annotations

from decimal import Decimal

from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import DEFAULT_CURRENCY, Money
from storefront.domain.repository.product_repository import ProductCatalog
from storefront.infrastructure.persistence.json_store import JsonDocumentStore


class JsonProductCatalog(ProductCatalog):

    def __init__(self, store: JsonDocumentStore) -> None:
        self._store = store

    # --- ProductCatalog interface ---------------------------------------------

    async def get_snapshot(self, product_id: str) -> Product | None:
        for raw in self._store.load()["products"]:
            if raw["id"] == product_id:
                return self.to_domain(raw)
        return None

    async def list_active(
        self,
        category_id: str | None = None,
        search_text: str | None = None,
    ) -> list[Product]:
        needle = search_text.strip().lower() if search_text else None
        result: list[Product] = []
        for product in await self.list_all():
            if not product.is_active:
                continue
            if category_id is not None and product.category_id != category_id:
                continue
            if needle and needle not in product.name.lower():
                continue
            result.append(product)
        return result

    async def list_all(self) -> list[Product]:
        return [self.to_domain(raw) for raw in self._store.load()["products"]]

    async def save(self, product: Product) -> None:
        async with self._store.lock:
            doc = self._store.load()
            records = doc["products"]
            for i, raw in enumerate(records):
                if raw["id"] == product.id:
                    records[i] = self.to_raw(product)
                    break
            else:
                records.append(self.to_raw(product))
            self._store.write(doc)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def to_raw(product: Product) -> dict:
        return {
            "id": product.id,
            "name": product.name,
            "unit_price": str(product.unit_price.amount),
            "original_price": (
                str(product.original_price.amount)
                if product.original_price is not None
                else None
            ),
            "currency": product.unit_price.currency,
            "stock_quantity": product.stock_quantity,
            "unit_label": product.unit_label,
            "is_active": product.is_active,
            "image_ref": product.image_ref,
            "category_id": product.category_id,
            "description": product.description,
        }

    @staticmethod
    def to_domain(raw: dict) -> Product:
        currency = raw.get("currency", DEFAULT_CURRENCY)
        original = raw.get("original_price")
        return Product(
            id=raw["id"],
            name=raw["name"],
            unit_price=Money(Decimal(raw["unit_price"]), currency),
            original_price=Money(Decimal(original), currency) if original else None,
            stock_quantity=raw["stock_quantity"],
            unit_label=raw.get("unit_label", "pcs"),
            is_active=raw.get("is_active", True),
            image_ref=raw.get("image_ref"),
            category_id=raw.get("category_id"),
            description=raw.get("description"),
        )

"""Abstract product catalog.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (JSON, SQL, in-memory)
live in the infrastructure layer.

Every call is a suspension point: implementations may block on I/O.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.product import Product


class ProductCatalog(ABC):

    @abstractmethod
    async def get_snapshot(self, product_id: str) -> Product | None:
        """Return the current snapshot of a product, or None if it is gone."""

    @abstractmethod
    async def list_active(
        self,
        category_id: str | None = None,
        search_text: str | None = None,
    ) -> list[Product]:
        """Return active products, optionally filtered by category and name."""

    @abstractmethod
    async def list_all(self) -> list[Product]:
        """Return every product, active or not."""

    @abstractmethod
    async def save(self, product: Product) -> None:
        """Persist a new or updated product (administrative edits only)."""

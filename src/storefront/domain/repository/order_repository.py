"""Abstract persistence gateway for the Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from storefront.domain.model.order import Order, OrderStatus


class OrderGateway(ABC):

    @abstractmethod
    async def create_order_atomic(self, order: Order) -> int:
        """Persist the order header and all of its items as one unit.

        Implementations must also decrement stock for every item in the
        same unit, refusing the whole write with ``StockConflict`` if any
        product no longer has enough.  Either everything is committed and
        the new order id is returned, or nothing is.

        ``order.order_number`` is the idempotency key: when an order with
        the same number is already committed, return its id without
        writing anything.
        """

    @abstractmethod
    async def update_order_status(
        self,
        order_id: int,
        status: OrderStatus,
        updated_at: datetime,
        expected_status: OrderStatus,
    ) -> None:
        """Persist a status change. Items and totals are never touched.

        The write only happens if the stored status is still
        *expected_status*; otherwise raise ``StatusChanged``.  Check and
        write are one step, so two overlapping changes can not both land.
        """

    @abstractmethod
    async def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    async def get_by_order_number(self, order_number: str) -> Order | None:
        """Return an order by its public number, or None if not found."""

    @abstractmethod
    async def list_for_customer(self, customer_id: str) -> list[Order]:
        """Return a customer's orders, newest first."""

    @abstractmethod
    async def list_all(self) -> list[Order]:
        """Return every order, newest first."""

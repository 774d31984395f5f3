"""Application service: Show Order use case (query)."""

from __future__ import annotations

from storefront.application.dto import OrderDTO
from storefront.application.ports import AuthGate, require_authenticated
from storefront.domain.exceptions import EntityNotFoundError, Unauthorized
from storefront.domain.repository.order_repository import OrderGateway


class ShowOrderHandler:

    def __init__(self, order_gateway: OrderGateway, auth: AuthGate) -> None:
        self._orders = order_gateway
        self._auth = auth

    async def handle(self, order_id: int) -> OrderDTO:
        """Staff see any order; customers only their own."""
        identity = await require_authenticated(self._auth)
        order = await self._orders.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        if not identity.is_staff and order.customer_id != identity.user_id:
            # Same answer as a missing order: never confirm someone else's id.
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return OrderDTO.from_order(order)


class ListOrdersHandler:

    def __init__(self, order_gateway: OrderGateway, auth: AuthGate) -> None:
        self._orders = order_gateway
        self._auth = auth

    async def for_current_customer(self) -> list[OrderDTO]:
        """The acting customer's order history, newest first."""
        identity = await require_authenticated(self._auth)
        orders = await self._orders.list_for_customer(identity.user_id)  # type: ignore[arg-type]
        return [OrderDTO.from_order(o) for o in orders]

    async def all_orders(self) -> list[OrderDTO]:
        identity = await require_authenticated(self._auth)
        if not identity.is_staff:
            raise Unauthorized("list all orders")
        return [OrderDTO.from_order(o) for o in await self._orders.list_all()]

"""Application service: staff dashboard figures (query).

Revenue only counts delivered orders; "today" is the current UTC date.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from storefront.application.dto import OrderStatsDTO
from storefront.application.ports import AuthGate, require_staff
from storefront.domain.model.order import OrderStatus
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.order_repository import OrderGateway


class OrderStatsHandler:

    def __init__(self, order_gateway: OrderGateway, auth: AuthGate) -> None:
        self._orders = order_gateway
        self._auth = auth

    async def handle(self, today: date | None = None) -> OrderStatsDTO:
        await require_staff(self._auth, "view order statistics")
        today = today or datetime.now(timezone.utc).date()
        orders = await self._orders.list_all()

        revenue = Money.zero()
        pending = 0
        created_today = 0
        for order in orders:
            if order.status is OrderStatus.DELIVERED:
                revenue = revenue + order.total_amount
            elif order.status is OrderStatus.PENDING:
                pending += 1
            if order.created_at.astimezone(timezone.utc).date() == today:
                created_today += 1

        return OrderStatsDTO(
            total_orders=len(orders),
            total_revenue=str(revenue),
            pending_orders=pending,
            today_orders=created_today,
        )

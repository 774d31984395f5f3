"""Application service: order fulfillment workflow (staff only).

``transition`` follows the monotonic sequence
pending -> processing -> shipped -> delivered, one step at a time.
``override_status`` is the separate administrative path that can set
any status, for manual corrections.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from storefront.application.dto import OrderDTO
from storefront.application.ports import (
    AuthGate,
    NotificationChannel,
    NotificationKind,
    require_staff,
    send_notification,
)
from storefront.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    PersistenceFailure,
    StatusChanged,
)
from storefront.domain.model.order import Order, OrderStatus
from storefront.domain.repository.order_repository import OrderGateway

logger = logging.getLogger(__name__)


class OrderFulfillmentWorkflow:

    def __init__(
        self,
        order_gateway: OrderGateway,
        auth: AuthGate,
        notifier: NotificationChannel | None = None,
    ) -> None:
        self._orders = order_gateway
        self._auth = auth
        self._notifier = notifier

    async def transition(self, order_id: int, target: OrderStatus) -> OrderDTO:
        """Advance an order to the next fulfillment status."""
        actor = await require_staff(self._auth, "update order status")
        order = await self._load(order_id)
        previous = order.status
        now = datetime.now(timezone.utc)

        order.advance_to(target, now)
        await self._store(order_id, order, previous, now)

        logger.info(
            "Order %s: %s -> %s by %s",
            order.order_number,
            previous.value,
            target.value,
            actor,
        )
        send_notification(
            self._notifier,
            NotificationKind.SUCCESS,
            f"Order {order.order_number} is now {target.value}",
        )
        return OrderDTO.from_order(order)

    async def override_status(self, order_id: int, target: OrderStatus) -> OrderDTO:
        """Set any status directly, bypassing the forward-only rule."""
        actor = await require_staff(self._auth, "override order status")
        order = await self._load(order_id)
        previous = order.status
        now = datetime.now(timezone.utc)

        order.override_status(target, now)
        await self._store(order_id, order, previous, now)

        logger.warning(
            "Order %s status overridden: %s -> %s by %s",
            order.order_number,
            previous.value,
            target.value,
            actor,
        )
        send_notification(
            self._notifier,
            NotificationKind.WARNING,
            f"Order {order.order_number} manually set to {target.value}",
        )
        return OrderDTO.from_order(order)

    # --- Internal helpers -----------------------------------------------------

    async def _load(self, order_id: int) -> Order:
        order = await self._orders.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order

    async def _store(
        self, order_id: int, order: Order, expected: OrderStatus, now: datetime
    ) -> None:
        try:
            await self._orders.update_order_status(
                order_id, order.status, now, expected_status=expected
            )
        except StatusChanged:
            logger.warning(
                "Order %s changed while being updated, %s -> %s not applied",
                order.order_number,
                expected.value,
                order.status.value,
            )
            raise
        except DomainException:
            raise
        except Exception as exc:
            logger.exception("Status update for order %s failed", order.order_number)
            raise PersistenceFailure("Could not update the order status") from exc

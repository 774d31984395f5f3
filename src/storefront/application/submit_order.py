"""Application service: Submit Order use case.

Turns the session's cart into a persisted order, exactly once:

1. Re-validate every cart item against a fresh catalog snapshot.  Any
   failure rejects the whole checkout; the cart stays as it is.
2. Compute the total from the cart's frozen prices only.
3. Write header and items through the gateway as one atomic unit.
4. Guard the whole attempt with a per-session single-flight slot and
   clear the cart only after a successful write.

The order number doubles as the idempotency key.  It is tied to the
cart's current contents, so a retry after a timed-out write reuses it
and the gateway can recognise a write that did land.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from storefront.application.cart_service import CartService
from storefront.application.dto import CheckoutForm, OrderDTO
from storefront.application.ports import (
    AuthGate,
    NotificationChannel,
    NotificationKind,
    require_authenticated,
    send_notification,
)
from storefront.application.single_flight import SingleFlightGuard
from storefront.domain.exceptions import (
    DomainException,
    EmptyCart,
    MissingShippingAddress,
    PersistenceFailure,
    StockChanged,
    StockConflict,
)
from storefront.domain.model.cart import Cart
from storefront.domain.model.identity import Identity
from storefront.domain.model.order import Order, OrderItem, PaymentMethod
from storefront.domain.model.value_objects import Quantity
from storefront.domain.repository.order_repository import OrderGateway
from storefront.domain.repository.product_repository import ProductCatalog
from storefront.domain.service.inventory_guard import Rejected, validate

logger = logging.getLogger(__name__)

DEFAULT_PERSIST_TIMEOUT = 10.0


def generate_order_number() -> str:
    """E.g. ``ORD-20261019-3F9A1C0B``."""
    today = datetime.now(timezone.utc).strftime("%Y%m%d")
    return f"ORD-{today}-{uuid.uuid4().hex[:8].upper()}"


class SubmitOrderHandler:

    def __init__(
        self,
        catalog: ProductCatalog,
        order_gateway: OrderGateway,
        auth: AuthGate,
        notifier: NotificationChannel | None = None,
        guard: SingleFlightGuard | None = None,
        persist_timeout: float = DEFAULT_PERSIST_TIMEOUT,
        issue_order_number: Callable[[], str] = generate_order_number,
    ) -> None:
        self._catalog = catalog
        self._orders = order_gateway
        self._auth = auth
        self._notifier = notifier
        self._guard = guard if guard is not None else SingleFlightGuard()
        self._persist_timeout = persist_timeout
        self._issue_order_number = issue_order_number

    async def handle(self, cart_service: CartService, form: CheckoutForm) -> OrderDTO:
        """Place an order from the session's cart.

        Raises SubmissionInProgress when the same session already has a
        checkout running.  On any error the cart is left untouched.
        """
        session_id = cart_service.session_id

        with self._guard.acquire(session_id):
            try:
                identity = await require_authenticated(self._auth)
                async with cart_service.lock:
                    order = await self._submit(identity, cart_service.cart, form, session_id)
                    cart_service.cart.clear()
            except DomainException as exc:
                send_notification(self._notifier, NotificationKind.ERROR, str(exc))
                raise

        logger.info(
            "Order %s placed by %s: %d item(s), total %s",
            order.order_number,
            identity,
            order.item_count,
            order.total_amount,
        )
        send_notification(
            self._notifier,
            NotificationKind.SUCCESS,
            f"Order {order.order_number} placed, thank you for shopping with us",
        )
        return OrderDTO.from_order(order)

    # --- Steps ----------------------------------------------------------------

    async def _submit(
        self, identity: Identity, cart: Cart, form: CheckoutForm, session_id: str
    ) -> Order:
        if cart.is_empty:
            raise EmptyCart()
        if not (form.shipping_address or "").strip():
            raise MissingShippingAddress()
        payment_method = PaymentMethod.parse(form.payment_method)

        order_number = cart.checkout_token(self._issue_order_number)

        # A previous attempt may have committed after we reported a timeout.
        committed = await self._find_committed(order_number, identity)
        if committed is not None:
            logger.info("Order %s already committed, replaying result", order_number)
            return committed

        await self._revalidate(cart)

        items = [
            OrderItem(
                product_id=item.product_id,
                product_name=item.name,
                quantity=Quantity(item.quantity),
                unit_price_at_purchase=item.unit_price_snapshot,
            )
            for item in cart.items
        ]
        order = Order.create(
            order_number=order_number,
            customer_id=identity.user_id,  # type: ignore[arg-type]
            items=items,
            payment_method=payment_method,
            shipping_address=form.shipping_address,
            notes=form.notes,
        )

        order.id = await self._persist(order, session_id)
        return order

    async def _revalidate(self, cart: Cart) -> None:
        for item in cart.items:
            product = await self._catalog.get_snapshot(item.product_id)
            verdict = validate(product, item.quantity, product_id=item.product_id)
            if isinstance(verdict, Rejected):
                logger.info(
                    "Checkout rejected: %s %s (wanted %d, %d available)",
                    item.product_id,
                    verdict.reason.value,
                    item.quantity,
                    verdict.available,
                )
                raise StockChanged(item.product_id, verdict.available)

    async def _find_committed(self, order_number: str, identity: Identity) -> Order | None:
        try:
            existing = await self._orders.get_by_order_number(order_number)
        except DomainException:
            raise
        except Exception as exc:
            logger.exception("Order lookup for %s failed", order_number)
            raise PersistenceFailure("Could not reach the order store, please retry") from exc
        if existing is not None and existing.customer_id == identity.user_id:
            return existing
        return None

    async def _persist(self, order: Order, session_id: str) -> int:
        write = asyncio.ensure_future(self._orders.create_order_atomic(order))
        try:
            return await asyncio.wait_for(asyncio.shield(write), timeout=self._persist_timeout)
        except asyncio.TimeoutError:
            # The write keeps running; the session stays busy until it settles.
            self._guard.hold_until(session_id, write)
            write.add_done_callback(lambda task: _log_late_outcome(order.order_number, task))
            logger.error(
                "Timed out after %.1fs storing order %s",
                self._persist_timeout,
                order.order_number,
            )
            raise PersistenceFailure("Storing the order timed out, please retry") from None
        except asyncio.CancelledError:
            self._guard.hold_until(session_id, write)
            write.add_done_callback(lambda task: _log_late_outcome(order.order_number, task))
            raise
        except StockConflict as exc:
            logger.info("Stock conflict storing order %s: %s", order.order_number, exc)
            raise StockChanged(exc.product_id, exc.available) from exc
        except PersistenceFailure:
            logger.error("Order store refused order %s", order.order_number)
            raise
        except Exception as exc:
            logger.exception("Storing order %s failed", order.order_number)
            raise PersistenceFailure("Could not store the order, please retry") from exc


def _log_late_outcome(order_number: str, task: asyncio.Future) -> None:
    if task.cancelled():
        logger.warning("Late write for order %s was cancelled", order_number)
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("Late write for order %s failed: %s", order_number, exc)
    else:
        logger.warning(
            "Order %s committed after its submission timed out; a retry will replay it",
            order_number,
        )

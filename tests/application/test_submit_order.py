"""Integration tests for the SubmitOrder use case.

Uses in-memory fakes, no file I/O.
"""

import asyncio
import itertools

import pytest

from storefront.application.cart_service import CartService
from storefront.application.dto import CheckoutForm
from storefront.application.ports import NotificationKind
from storefront.application.single_flight import SingleFlightGuard
from storefront.application.submit_order import SubmitOrderHandler, generate_order_number
from storefront.domain.exceptions import (
    EmptyCart,
    MissingShippingAddress,
    NotAuthenticated,
    PersistenceFailure,
    StockChanged,
    SubmissionInProgress,
    ValidationError,
)
from storefront.domain.model.identity import Identity
from storefront.domain.model.order import OrderStatus, PaymentMethod
from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from tests.fakes import (
    BrokenNotifier,
    FakeAuthGate,
    FakeOrderGateway,
    FakeProductCatalog,
    RecordingNotifier,
)

FORM = CheckoutForm(shipping_address="Jl. Merdeka 1, Jakarta", payment_method="cod")


def _catalog() -> FakeProductCatalog:
    return FakeProductCatalog(
        [
            Product(id="A", name="Beras", unit_price=Money.of("10000"), stock_quantity=10, unit_label="1kg"),
            Product(id="B", name="Gula", unit_price=Money.of("5000"), stock_quantity=10, unit_label="1kg"),
        ]
    )


def _setup(
    identity: Identity | None = None,
    delay: float = 0.0,
    fail_after_header: bool = False,
    persist_timeout: float = 5.0,
):
    catalog = _catalog()
    gateway = FakeOrderGateway(catalog=catalog, delay=delay, fail_after_header=fail_after_header)
    auth = FakeAuthGate(identity or Identity.customer("cust-1"))
    notifier = RecordingNotifier()
    numbers = (f"ORD-TEST-{n}" for n in itertools.count(1))
    handler = SubmitOrderHandler(
        catalog=catalog,
        order_gateway=gateway,
        auth=auth,
        notifier=notifier,
        persist_timeout=persist_timeout,
        issue_order_number=lambda: next(numbers),
    )
    cart = CartService("session-1", catalog, notifier)
    return handler, cart, catalog, gateway, notifier


def _contents(cart: CartService) -> dict[str, int]:
    return {item.product_id: item.quantity for item in cart.cart.items}


class TestSubmitHappyPath:

    @pytest.mark.asyncio
    async def test_places_order_with_frozen_total(self):
        handler, cart, _, gateway, notifier = _setup()
        await cart.add_item("A", 1)
        await cart.add_item("B", 3)

        dto = await handler.handle(cart, FORM)

        order = await gateway.get_by_id(dto.id)
        assert order is not None
        assert order.total_amount == Money.of("25000")
        assert order.status is OrderStatus.PENDING
        assert order.payment_method is PaymentMethod.CASH_ON_DELIVERY
        assert order.customer_id == "cust-1"
        assert dto.total == "IDR 25,000.00"
        assert cart.cart.is_empty
        assert notifier.kinds()[-1] is NotificationKind.SUCCESS

    @pytest.mark.asyncio
    async def test_total_equals_sum_of_items(self):
        handler, cart, _, gateway, _ = _setup()
        await cart.add_item("A", 2)
        await cart.add_item("B", 1)

        dto = await handler.handle(cart, FORM)

        order = await gateway.get_by_id(dto.id)
        expected = sum(i.unit_price_at_purchase.amount * i.quantity.value for i in order.items)
        assert order.total_amount.amount == expected

    @pytest.mark.asyncio
    async def test_uses_cart_snapshot_not_current_price(self):
        handler, cart, catalog, gateway, _ = _setup()
        await cart.add_item("A", 2)
        catalog.set_price("A", "99000")

        dto = await handler.handle(cart, FORM)

        order = await gateway.get_by_id(dto.id)
        assert order.items[0].unit_price_at_purchase == Money.of("10000")
        assert order.total_amount == Money.of("20000")

    @pytest.mark.asyncio
    async def test_decrements_stock(self):
        handler, cart, catalog, _, _ = _setup()
        await cart.add_item("A", 4)
        await handler.handle(cart, FORM)
        assert catalog.get("A").stock_quantity == 6

    @pytest.mark.asyncio
    async def test_order_numbers_unique(self):
        handler, cart, _, _, _ = _setup()
        await cart.add_item("A")
        first = await handler.handle(cart, FORM)
        await cart.add_item("A")
        second = await handler.handle(cart, FORM)
        assert first.order_number != second.order_number
        assert second.id == first.id + 1

    @pytest.mark.asyncio
    async def test_broken_notifier_does_not_fail_checkout(self):
        catalog = _catalog()
        gateway = FakeOrderGateway(catalog=catalog)
        handler = SubmitOrderHandler(
            catalog, gateway, FakeAuthGate(Identity.customer("c")), notifier=BrokenNotifier()
        )
        cart = CartService("s", catalog)
        await cart.add_item("A")
        await handler.handle(cart, FORM)
        assert gateway.count == 1


class TestSubmitPreconditions:

    @pytest.mark.asyncio
    async def test_anonymous_rejected(self):
        handler, cart, _, gateway, _ = _setup(identity=Identity.anonymous())
        await cart.add_item("A")
        with pytest.raises(NotAuthenticated):
            await handler.handle(cart, FORM)
        assert gateway.count == 0
        assert _contents(cart) == {"A": 1}

    @pytest.mark.asyncio
    async def test_empty_cart_rejected(self):
        handler, cart, _, gateway, notifier = _setup()
        with pytest.raises(EmptyCart):
            await handler.handle(cart, FORM)
        assert gateway.create_calls == 0
        assert notifier.kinds() == [NotificationKind.ERROR]

    @pytest.mark.asyncio
    async def test_blank_address_rejected(self):
        handler, cart, _, gateway, _ = _setup()
        await cart.add_item("A")
        with pytest.raises(MissingShippingAddress):
            await handler.handle(cart, CheckoutForm(shipping_address="   "))
        assert gateway.create_calls == 0
        assert _contents(cart) == {"A": 1}

    @pytest.mark.asyncio
    async def test_unknown_payment_method_rejected(self):
        handler, cart, _, _, _ = _setup()
        await cart.add_item("A")
        with pytest.raises(ValidationError, match="payment method"):
            await handler.handle(cart, CheckoutForm(FORM.shipping_address, "bitcoin"))


class TestRevalidation:

    @pytest.mark.asyncio
    async def test_stock_dropped_rejects_whole_order(self):
        handler, cart, catalog, gateway, _ = _setup()
        await cart.add_item("A", 2)
        await cart.add_item("B", 1)
        catalog.set_stock("A", 1)

        with pytest.raises(StockChanged) as exc_info:
            await handler.handle(cart, FORM)

        assert exc_info.value.product_id == "A"
        assert exc_info.value.available == 1
        assert _contents(cart) == {"A": 2, "B": 1}
        assert gateway.count == 0
        assert gateway.create_calls == 0

    @pytest.mark.asyncio
    async def test_deactivated_product_rejected(self):
        handler, cart, catalog, gateway, _ = _setup()
        await cart.add_item("B")
        await catalog.save(catalog.get("B").with_active(False))

        with pytest.raises(StockChanged) as exc_info:
            await handler.handle(cart, FORM)

        assert exc_info.value.product_id == "B"
        assert exc_info.value.available == 0
        assert gateway.count == 0

    @pytest.mark.asyncio
    async def test_deleted_product_rejected(self):
        handler, cart, catalog, gateway, _ = _setup()
        await cart.add_item("A")
        catalog.delete("A")

        with pytest.raises(StockChanged):
            await handler.handle(cart, FORM)
        assert gateway.count == 0


class TestAtomicity:

    @pytest.mark.asyncio
    async def test_failure_after_header_persists_nothing(self):
        handler, cart, catalog, gateway, _ = _setup(fail_after_header=True)
        await cart.add_item("A", 1)
        await cart.add_item("B", 3)

        with pytest.raises(PersistenceFailure):
            await handler.handle(cart, FORM)

        assert await gateway.get_by_id(1) is None
        assert await gateway.get_by_order_number("ORD-TEST-1") is None
        assert await gateway.list_all() == []
        assert catalog.get("A").stock_quantity == 10
        assert _contents(cart) == {"A": 1, "B": 3}

    @pytest.mark.asyncio
    async def test_retry_after_failure_succeeds(self):
        handler, cart, _, gateway, _ = _setup(fail_after_header=True)
        await cart.add_item("A")
        with pytest.raises(PersistenceFailure):
            await handler.handle(cart, FORM)

        gateway.fail_after_header = False
        dto = await handler.handle(cart, FORM)

        assert gateway.count == 1
        assert dto.order_number == "ORD-TEST-1"
        assert cart.cart.is_empty

    @pytest.mark.asyncio
    async def test_stock_conflict_at_commit_reported_as_stock_changed(self):
        handler, cart, catalog, gateway, _ = _setup(delay=0.05)
        await cart.add_item("A", 3)

        async def steal_stock():
            await asyncio.sleep(0.01)
            catalog.set_stock("A", 2)

        with pytest.raises(StockChanged) as exc_info:
            await asyncio.gather(handler.handle(cart, FORM), steal_stock())

        assert exc_info.value.available == 2
        assert gateway.count == 0
        assert _contents(cart) == {"A": 3}


class TestSingleFlight:

    @pytest.mark.asyncio
    async def test_concurrent_submissions_create_one_order(self):
        handler, cart, _, gateway, _ = _setup(delay=0.05)
        await cart.add_item("A", 1)

        results = await asyncio.gather(
            handler.handle(cart, FORM),
            handler.handle(cart, FORM),
            return_exceptions=True,
        )

        placed = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, SubmissionInProgress)]
        assert len(placed) == 1
        assert len(rejected) == 1
        assert gateway.count == 1
        assert gateway.create_calls == 1

    @pytest.mark.asyncio
    async def test_guard_is_per_session(self):
        catalog = _catalog()
        gateway = FakeOrderGateway(catalog=catalog, delay=0.02)
        guard = SingleFlightGuard()
        alice = SubmitOrderHandler(catalog, gateway, FakeAuthGate(Identity.customer("alice")), guard=guard)
        bob = SubmitOrderHandler(catalog, gateway, FakeAuthGate(Identity.customer("bob")), guard=guard)
        alice_cart = CartService("alice-session", catalog)
        bob_cart = CartService("bob-session", catalog)
        await alice_cart.add_item("A")
        await bob_cart.add_item("B")

        await asyncio.gather(alice.handle(alice_cart, FORM), bob.handle(bob_cart, FORM))

        assert gateway.count == 2

    @pytest.mark.asyncio
    async def test_timeout_is_failure_and_retry_does_not_duplicate(self):
        handler, cart, _, gateway, _ = _setup(delay=0.2, persist_timeout=0.05)
        await cart.add_item("A", 2)

        with pytest.raises(PersistenceFailure, match="timed out"):
            await handler.handle(cart, FORM)
        assert _contents(cart) == {"A": 2}

        # The slow write is still running: the session stays busy.
        with pytest.raises(SubmissionInProgress):
            await handler.handle(cart, FORM)

        await asyncio.sleep(0.3)
        assert gateway.count == 1

        dto = await handler.handle(cart, FORM)

        assert dto.order_number == "ORD-TEST-1"
        assert gateway.count == 1
        assert gateway.create_calls == 1
        assert cart.cart.is_empty

    @pytest.mark.asyncio
    async def test_guard_released_after_failure(self):
        handler, cart, catalog, _, _ = _setup()
        await cart.add_item("A", 2)
        catalog.set_stock("A", 1)
        with pytest.raises(StockChanged):
            await handler.handle(cart, FORM)

        catalog.set_stock("A", 5)
        dto = await handler.handle(cart, FORM)
        assert dto.status == "pending"


def test_generated_order_numbers_look_right():
    number = generate_order_number()
    assert number.startswith("ORD-")
    assert len(number.split("-")) == 3
    assert generate_order_number() != number

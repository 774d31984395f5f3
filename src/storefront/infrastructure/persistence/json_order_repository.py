"""JSON-file-backed implementation of OrderGateway.

``create_order_atomic`` builds the complete next document in memory
(new order plus decremented stock) and writes it once.  If anything
fails before that write, the file is untouched.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from storefront.domain.exceptions import PersistenceFailure, StatusChanged, StockConflict
from storefront.domain.model.order import Order, OrderItem, OrderStatus, PaymentMethod
from storefront.domain.model.value_objects import DEFAULT_CURRENCY, Money, Quantity
from storefront.domain.repository.order_repository import OrderGateway
from storefront.infrastructure.persistence.json_store import JsonDocumentStore

logger = logging.getLogger(__name__)


class JsonOrderGateway(OrderGateway):

    def __init__(self, store: JsonDocumentStore) -> None:
        self._store = store

    # --- OrderGateway interface -----------------------------------------------

    async def create_order_atomic(self, order: Order) -> int:
        async with self._store.lock:
            doc = self._store.load()
            orders = doc["orders"]

            for raw in orders:
                if raw["order_number"] == order.order_number:
                    logger.info("Order %s already stored as #%d", order.order_number, raw["id"])
                    return raw["id"]

            # Conditional decrement: every item must still fit in stock.
            products = {raw["id"]: raw for raw in doc["products"]}
            for item in order.items:
                raw_product = products.get(item.product_id)
                available = raw_product["stock_quantity"] if raw_product else 0
                if item.quantity.value > available:
                    raise StockConflict(item.product_id, available)
            for item in order.items:
                products[item.product_id]["stock_quantity"] -= item.quantity.value

            order_id = max((o["id"] for o in orders), default=0) + 1
            raw_order = self._to_raw(order)
            raw_order["id"] = order_id
            orders.append(raw_order)

            self._store.write(doc)
            return order_id

    async def update_order_status(
        self,
        order_id: int,
        status: OrderStatus,
        updated_at: datetime,
        expected_status: OrderStatus,
    ) -> None:
        async with self._store.lock:
            doc = self._store.load()
            for raw in doc["orders"]:
                if raw["id"] == order_id:
                    if raw["status"] != expected_status.value:
                        raise StatusChanged(order_id, expected_status.value, raw["status"])
                    raw["status"] = status.value
                    raw["updated_at"] = updated_at.isoformat()
                    self._store.write(doc)
                    return
        raise PersistenceFailure(f"Order #{order_id} is not stored")

    async def get_by_id(self, order_id: int) -> Order | None:
        for raw in self._store.load()["orders"]:
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    async def get_by_order_number(self, order_number: str) -> Order | None:
        for raw in self._store.load()["orders"]:
            if raw["order_number"] == order_number:
                return self._to_domain(raw)
        return None

    async def list_for_customer(self, customer_id: str) -> list[Order]:
        return [o for o in await self.list_all() if o.customer_id == customer_id]

    async def list_all(self) -> list[Order]:
        orders = [self._to_domain(raw) for raw in self._store.load()["orders"]]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "order_number": order.order_number,
            "customer_id": order.customer_id,
            "status": order.status.value,
            "payment_method": order.payment_method.value,
            "shipping_address": order.shipping_address,
            "notes": order.notes,
            "total_amount": str(order.total_amount.amount),
            "currency": order.total_amount.currency,
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat() if order.updated_at else None,
            "items": [
                {
                    "product_id": item.product_id,
                    "product_name": item.product_name,
                    "quantity": item.quantity.value,
                    "unit_price": str(item.unit_price_at_purchase.amount),
                }
                for item in order.items
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        currency = raw.get("currency", DEFAULT_CURRENCY)
        items = [
            OrderItem(
                product_id=i["product_id"],
                product_name=i["product_name"],
                quantity=Quantity(i["quantity"]),
                unit_price_at_purchase=Money(Decimal(i["unit_price"]), currency),
            )
            for i in raw["items"]
        ]
        return Order(
            id=raw["id"],
            order_number=raw["order_number"],
            customer_id=raw["customer_id"],
            items=items,
            payment_method=PaymentMethod(raw["payment_method"]),
            shipping_address=raw["shipping_address"],
            total_amount=Money(Decimal(raw["total_amount"]), currency),
            status=OrderStatus(raw["status"]),
            notes=raw.get("notes"),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=(
                datetime.fromisoformat(raw["updated_at"]) if raw.get("updated_at") else None
            ),
        )

"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from storefront.application.cart_service import CartService
from storefront.application.dto import CheckoutForm, OrderDTO
from storefront.application.fulfill_order import OrderFulfillmentWorkflow
from storefront.application.order_stats import OrderStatsHandler
from storefront.application.show_order import ListOrdersHandler, ShowOrderHandler
from storefront.application.submit_order import SubmitOrderHandler
from storefront.domain.model.order import OrderStatus
from storefront.infrastructure.bootstrap import Container
from storefront.infrastructure.cli.runner import run

_STATUS_CHOICE = click.Choice([s.value for s in OrderStatus], case_sensitive=False)


def _parse_items(raw: str) -> list[tuple[str, int]]:
    """Parse '1:3,2:5' into (product_id, quantity) pairs."""
    specs: list[tuple[str, int]] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductId:Quantity'."
            )
        product_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        specs.append((product_id.strip(), qty))
    return specs


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.order_number} (#{dto.id})  status={dto.status}")
    click.echo(f"Customer: {dto.customer_id}")
    click.echo(f"Payment:  {dto.payment_method}")
    click.echo(f"Ship to:  {dto.shipping_address}")
    if dto.notes:
        click.echo(f"Notes:    {dto.notes}")
    click.echo(f"Created:  {dto.created_at}")
    click.echo()
    click.echo(f"  {'Product':<24} {'Qty':>5} {'Price':>18} {'Total':>18}")
    click.echo(f"  {'-'*68}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<24} {item.quantity:>5} {item.unit_price:>18} {item.line_total:>18}"
        )
    click.echo(f"  {'-'*68}")
    click.echo(f"  {'Order Total':<30} {dto.total:>37}")


@click.command("place")
@click.option("--items", required=True, help="Items as 'ProductId:Qty,ProductId:Qty'.")
@click.option("--address", required=True, help="Shipping address.")
@click.option(
    "--payment",
    type=click.Choice(["cod", "transfer"]),
    default="cod",
    show_default=True,
    help="Cash on delivery or bank transfer.",
)
@click.option("--notes", default=None, help="Optional note for the shop.")
@click.pass_obj
def order_place(
    container: Container, items: str, address: str, payment: str, notes: str | None
) -> None:
    """Fill a cart and check out in one go (customer)."""
    specs = _parse_items(items)

    async def _place() -> OrderDTO:
        identity = await container.auth.current_identity()
        cart = CartService(
            session_id=str(identity),
            catalog=container.catalog,
            notifier=container.notifier,
        )
        for product_id, qty in specs:
            await cart.add_item(product_id, qty)
        handler = SubmitOrderHandler(
            catalog=container.catalog,
            order_gateway=container.orders,
            auth=container.auth,
            notifier=container.notifier,
            guard=container.submission_guard,
            persist_timeout=container.settings.persist_timeout,
        )
        return await handler.handle(
            cart, CheckoutForm(shipping_address=address, payment_method=payment, notes=notes)
        )

    _display_order(run(_place()))


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
@click.pass_obj
def order_show(container: Container, order_id: int) -> None:
    """Show details of an order."""
    handler = ShowOrderHandler(container.orders, container.auth)
    _display_order(run(handler.handle(order_id)))


@click.command("list")
@click.option("--all", "show_all", is_flag=True, default=False, help="Every customer's orders (staff).")
@click.pass_obj
def order_list(container: Container, show_all: bool) -> None:
    """List orders, newest first."""
    handler = ListOrdersHandler(container.orders, container.auth)
    orders = run(handler.all_orders() if show_all else handler.for_current_customer())

    if not orders:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':<5} {'Number':<22} {'Customer':<14} {'Status':<11} {'Total':>18}  Created")
    click.echo("-" * 92)
    for o in orders:
        click.echo(
            f"{o.id:<5} {o.order_number:<22} {o.customer_id:<14} {o.status:<11} {o.total:>18}  {o.created_at}"
        )


@click.command("status")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--to", "target", required=True, type=_STATUS_CHOICE, help="Next status.")
@click.pass_obj
def order_status(container: Container, order_id: int, target: str) -> None:
    """Advance an order to its next fulfillment status (staff)."""
    workflow = OrderFulfillmentWorkflow(container.orders, container.auth, container.notifier)
    dto = run(workflow.transition(order_id, OrderStatus(target.lower())))
    click.echo(f"Order {dto.order_number} is now {dto.status}.")


@click.command("override")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--to", "target", required=True, type=_STATUS_CHOICE, help="Status to force.")
@click.confirmation_option(prompt="Override the fulfillment workflow for this order?")
@click.pass_obj
def order_override(container: Container, order_id: int, target: str) -> None:
    """Force any status on an order, for manual corrections (staff)."""
    workflow = OrderFulfillmentWorkflow(container.orders, container.auth, container.notifier)
    dto = run(workflow.override_status(order_id, OrderStatus(target.lower())))
    click.echo(f"Order {dto.order_number} manually set to {dto.status}.")


@click.command("stats")
@click.pass_obj
def order_stats(container: Container) -> None:
    """Dashboard figures (staff)."""
    stats = run(OrderStatsHandler(container.orders, container.auth).handle())
    click.echo(f"Total orders:    {stats.total_orders}")
    click.echo(f"Revenue:         {stats.total_revenue}")
    click.echo(f"Pending orders:  {stats.pending_orders}")
    click.echo(f"Orders today:    {stats.today_orders}")

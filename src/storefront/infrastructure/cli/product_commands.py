"""CLI commands for the product catalog."""

from __future__ import annotations

import click

from storefront.application.add_product import AddProductHandler
from storefront.application.update_product import UpdateProductHandler
from storefront.infrastructure.bootstrap import Container
from storefront.infrastructure.cli.runner import run


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Price (e.g. 10000).")
@click.option("--stock", required=True, type=click.IntRange(min=0), help="Units in stock.")
@click.option("--unit", "unit_label", default="pcs", show_default=True, help="Unit label, e.g. '1kg'.")
@click.option("--original-price", default=None, help="Price before discount.")
@click.pass_obj
def product_add(
    container: Container,
    name: str,
    price: str,
    stock: int,
    unit_label: str,
    original_price: str | None,
) -> None:
    """Add a new product to the catalog (staff)."""
    handler = AddProductHandler(container.catalog, container.auth)
    product = run(
        handler.handle(
            name=name,
            price=price,
            stock=stock,
            unit_label=unit_label,
            original_price=original_price,
        )
    )
    click.echo(f"Product #{product.id} '{product.name}' added at {product.unit_price}")


@click.command("list")
@click.option("--all", "show_all", is_flag=True, default=False, help="Include inactive products.")
@click.option("--search", default=None, help="Filter by name.")
@click.pass_obj
def product_list(container: Container, show_all: bool, search: str | None) -> None:
    """List products in the catalog."""
    if show_all:
        products = run(container.catalog.list_all())
    else:
        products = run(container.catalog.list_active(search_text=search))

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<24} {'Unit':<8} {'Price':>18} {'Stock':>7} {'Active':>7}")
    click.echo("-" * 75)
    for p in products:
        click.echo(
            f"{p.id:<6} {p.name:<24} {p.unit_label:<8} {str(p.unit_price):>18} "
            f"{p.stock_quantity:>7} {'yes' if p.is_active else 'no':>7}"
        )


@click.command("update")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--price", default=None, help="New price.")
@click.option("--stock", default=None, type=click.IntRange(min=0), help="New stock level.")
@click.option("--active/--inactive", "is_active", default=None, help="Sell or hide the product.")
@click.pass_obj
def product_update(
    container: Container,
    product_id: str,
    price: str | None,
    stock: int | None,
    is_active: bool | None,
) -> None:
    """Update a product's price, stock or active flag (staff)."""
    if price is None and stock is None and is_active is None:
        raise click.UsageError("Nothing to update: give --price, --stock or --active/--inactive")

    handler = UpdateProductHandler(container.catalog, container.auth)
    product = run(
        handler.handle(product_id=product_id, new_price=price, stock=stock, is_active=is_active)
    )
    click.echo(
        f"Product #{product.id} updated: {product.unit_price}, "
        f"{product.stock_quantity} in stock, {'active' if product.is_active else 'inactive'}"
    )

import click

from storefront.domain.exceptions import DomainException
from storefront.infrastructure.auth import StaticAuthGate
from storefront.infrastructure.bootstrap import Container, Settings
from storefront.infrastructure.cli.order_commands import (
    order_list,
    order_override,
    order_place,
    order_show,
    order_stats,
    order_status,
)
from storefront.infrastructure.cli.product_commands import (
    product_add,
    product_list,
    product_update,
)
from storefront.infrastructure.logging_config import setup_logging


@click.group()
@click.option(
    "--as",
    "acting_as",
    envvar="STOREFRONT_IDENTITY",
    default=None,
    help="Acting identity: 'customer:ID' or 'staff:ID'. Anonymous if omitted.",
)
@click.pass_context
def cli(ctx: click.Context, acting_as: str | None) -> None:
    """Storefront — cart, checkout and order fulfillment"""
    settings = Settings.from_env()
    setup_logging(settings.log_level, settings.log_file)
    try:
        auth = StaticAuthGate.parse(acting_as)
    except DomainException as exc:
        raise click.BadParameter(str(exc), param_hint="--as")
    ctx.obj = Container(settings, auth)


@cli.group()
def order() -> None:
    """Place and manage orders."""


@cli.group()
def product() -> None:
    """Manage the product catalog."""


# Register subcommands
order.add_command(order_list)
order.add_command(order_override)
order.add_command(order_place)
order.add_command(order_show)
order.add_command(order_stats)
order.add_command(order_status)
product.add_command(product_add)
product.add_command(product_list)
product.add_command(product_update)

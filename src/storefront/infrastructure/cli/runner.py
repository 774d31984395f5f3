"""Run an application coroutine from a click command."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

import click

from storefront.domain.exceptions import DomainException

T = TypeVar("T")


def run(coro: Coroutine[Any, Any, T]) -> T:
    try:
        return asyncio.run(coro)
    except DomainException as exc:
        raise click.ClickException(str(exc))

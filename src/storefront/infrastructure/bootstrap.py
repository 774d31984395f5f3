"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.

Settings are read from the environment:

``STOREFRONT_DATA_DIR``        data directory (default: ``<repo>/data``)
``STOREFRONT_PERSIST_TIMEOUT`` seconds allowed for storing an order (default: 10)
``STOREFRONT_LOG_LEVEL``       logging level (default: INFO)
``STOREFRONT_LOG_FILE``        optional path of a daily-rotated log file
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from storefront.application.ports import AuthGate, NotificationChannel
from storefront.application.single_flight import SingleFlightGuard
from storefront.application.submit_order import DEFAULT_PERSIST_TIMEOUT
from storefront.infrastructure.notifications import ClickNotificationChannel
from storefront.infrastructure.persistence.json_order_repository import (
    JsonOrderGateway,
)
from storefront.infrastructure.persistence.json_product_repository import (
    JsonProductCatalog,
)
from storefront.infrastructure.persistence.json_store import JsonDocumentStore

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    persist_timeout: float
    log_level: str
    log_file: Path | None

    @staticmethod
    def from_env() -> Settings:
        log_file = os.environ.get("STOREFRONT_LOG_FILE")
        return Settings(
            data_dir=Path(os.environ.get("STOREFRONT_DATA_DIR", _DEFAULT_DATA_DIR)),
            persist_timeout=float(
                os.environ.get("STOREFRONT_PERSIST_TIMEOUT", DEFAULT_PERSIST_TIMEOUT)
            ),
            log_level=os.environ.get("STOREFRONT_LOG_LEVEL", "INFO"),
            log_file=Path(log_file) if log_file else None,
        )


class Container:
    """Adapters for one process, all sharing one document store."""

    def __init__(self, settings: Settings, auth: AuthGate) -> None:
        self.settings = settings
        self.auth = auth
        self.store = JsonDocumentStore(settings.data_dir / "storefront.json")
        self.catalog = JsonProductCatalog(self.store)
        self.orders = JsonOrderGateway(self.store)
        self.notifier: NotificationChannel = ClickNotificationChannel()
        self.submission_guard = SingleFlightGuard()

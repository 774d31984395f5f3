"""Ports the application layer consumes but does not implement.

Identity and user feedback are passed in explicitly; handlers never
reach for ambient state.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum

from storefront.domain.exceptions import NotAuthenticated, Unauthorized
from storefront.domain.model.identity import Identity

logger = logging.getLogger(__name__)


class AuthGate(ABC):

    @abstractmethod
    async def current_identity(self) -> Identity:
        """Return the acting identity (possibly anonymous)."""


class NotificationKind(Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class NotificationChannel(ABC):

    @abstractmethod
    def notify(self, kind: NotificationKind, message: str) -> None:
        """Show feedback to the user. Delivery is best effort."""


async def require_authenticated(auth: AuthGate) -> Identity:
    identity = await auth.current_identity()
    if not identity.is_authenticated:
        raise NotAuthenticated()
    return identity


async def require_staff(auth: AuthGate, action: str) -> Identity:
    identity = await require_authenticated(auth)
    if not identity.is_staff:
        logger.warning("Denied %s to %s", action, identity)
        raise Unauthorized(action)
    return identity


def send_notification(
    channel: NotificationChannel | None, kind: NotificationKind, message: str
) -> None:
    """Fire-and-forget: a broken channel never fails the calling operation."""
    if channel is None:
        return
    try:
        channel.notify(kind, message)
    except Exception:
        logger.warning("Notification delivery failed: %s", message, exc_info=True)

"""AuthGate for the command line: the identity is fixed per invocation."""

from __future__ import annotations

from storefront.application.ports import AuthGate
from storefront.domain.exceptions import ValidationError
from storefront.domain.model.identity import Identity


class StaticAuthGate(AuthGate):

    def __init__(self, identity: Identity) -> None:
        self._identity = identity

    async def current_identity(self) -> Identity:
        return self._identity

    @staticmethod
    def parse(raw: str | None) -> StaticAuthGate:
        """Build from ``customer:<id>``, ``staff:<id>`` or nothing (anonymous)."""
        if not raw:
            return StaticAuthGate(Identity.anonymous())
        role, _, user_id = raw.partition(":")
        if not user_id:
            raise ValidationError(f"Invalid identity '{raw}'. Expected 'customer:ID' or 'staff:ID'.")
        if role == "customer":
            return StaticAuthGate(Identity.customer(user_id))
        if role == "staff":
            return StaticAuthGate(Identity.staff(user_id))
        raise ValidationError(f"Unknown role '{role}'. Expected 'customer' or 'staff'.")

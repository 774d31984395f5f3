"""Acting identity, as reported by the auth gate."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    user_id: str | None
    is_staff: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @staticmethod
    def anonymous() -> Identity:
        return Identity(user_id=None)

    @staticmethod
    def customer(customer_id: str) -> Identity:
        return Identity(user_id=customer_id)

    @staticmethod
    def staff(staff_id: str) -> Identity:
        return Identity(user_id=staff_id, is_staff=True)

    def __str__(self) -> str:
        if not self.is_authenticated:
            return "anonymous"
        return f"{'staff' if self.is_staff else 'customer'}:{self.user_id}"

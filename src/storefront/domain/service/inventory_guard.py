"""Domain service: Inventory Guard.

Single place that answers "can quantity Q of product P be bought right
now?".  Both the cart (on add/update) and order submission (on
re-validation) call it, so the two never disagree about admission.

Pure: callers fetch the product snapshot and pass it in.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from storefront.domain.model.product import Product


class RejectionReason(Enum):
    PRODUCT_DELETED = "PRODUCT_DELETED"
    PRODUCT_INACTIVE = "PRODUCT_INACTIVE"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"


@dataclass(frozen=True)
class Admissible:
    product_id: str
    quantity: int

    @property
    def is_admissible(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    product_id: str
    quantity: int
    reason: RejectionReason
    available: int = 0

    @property
    def is_admissible(self) -> bool:
        return False


Verdict = Admissible | Rejected


def validate(product: Product | None, requested_qty: int, product_id: str = "") -> Verdict:
    """Decide whether *requested_qty* units of *product* are purchasable.

    ``product`` is ``None`` when the catalog no longer knows the id; pass
    ``product_id`` in that case so the verdict can still name it.
    """
    if product is None:
        return Rejected(product_id, requested_qty, RejectionReason.PRODUCT_DELETED)

    if not product.is_active:
        return Rejected(product.id, requested_qty, RejectionReason.PRODUCT_INACTIVE)

    if requested_qty > product.stock_quantity:
        return Rejected(
            product.id,
            requested_qty,
            RejectionReason.INSUFFICIENT_STOCK,
            available=product.stock_quantity,
        )

    return Admissible(product.id, requested_qty)

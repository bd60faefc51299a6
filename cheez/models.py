"""
Domain models — plain classes, no ORM.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

CENT = Decimal("0.01")

ORDER_STATUSES = ("pending", "packing", "out_for_delivery", "delivered", "cancelled")
PAYMENT_METHODS = ("cash_on_delivery", "jazzcash", "easypaisa")
WALLET_METHODS = ("jazzcash", "easypaisa")

# Upper bound for stock levels and line quantities.
MAX_QUANTITY = 2**31 - 1
MAX_STOCK = 2**31 - 1

# Forward moves for strict mode; "cancelled" is reachable from anywhere.
STATUS_TRANSITIONS = {
    "pending": {"packing"},
    "packing": {"out_for_delivery"},
    "out_for_delivery": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}


def money(value) -> Decimal:
    """Quantize to two decimal places (the storage precision)."""
    return Decimal(str(value)).quantize(CENT)


def is_legal_transition(current: str, target: str) -> bool:
    if current == target or target == "cancelled":
        return True
    return target in STATUS_TRANSITIONS.get(current, set())


@dataclass(frozen=True)
class Identity:
    """Who is making the request; passed explicitly into every handler."""

    user_id: Optional[int] = None
    username: str = ""
    is_admin: bool = False

    @property
    def is_authenticated(self):
        return self.user_id is not None

    def summary(self):
        return {"id": self.user_id, "username": self.username, "isAdmin": self.is_admin}


@dataclass
class OrderLine:
    product_id: int
    quantity: int
    price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return money(self.price * self.quantity)

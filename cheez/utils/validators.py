"""
Input validators — used by handlers before touching the DB.
"""

import re

from cheez.models import MAX_QUANTITY, ORDER_STATUSES, PAYMENT_METHODS, WALLET_METHODS

PHONE_PATTERN = r"^03\d{2}-\d{7}$"


def validate_phone(phone: str) -> bool:
    """Mobile number in the 03XX-XXXXXXX format."""
    return bool(re.match(PHONE_PATTERN, phone or ""))


def validate_quantity(qty) -> tuple[bool, str]:
    """Quantity must be a positive integer (bools and floats rejected)."""
    if isinstance(qty, bool) or not isinstance(qty, int):
        return False, "Quantity must be an integer"
    if qty < 1:
        return False, "Quantity must be at least 1"
    if qty > MAX_QUANTITY:
        return False, "Quantity is too large"
    return True, ""


def validate_status(status) -> tuple[bool, str]:
    if status not in ORDER_STATUSES:
        return False, "Invalid status"
    return True, ""


def validate_payment(method: str, payment_phone: str | None) -> tuple[bool, str]:
    """Mobile wallets need a wallet number; cash on delivery does not."""
    if method not in PAYMENT_METHODS:
        return False, "Invalid payment method"
    if method in WALLET_METHODS:
        if not payment_phone:
            return False, "Mobile wallet number is required"
        if not validate_phone(payment_phone):
            return False, "Mobile wallet number must be in format 03XX-XXXXXXX"
    return True, ""

"""
General‑purpose helper functions used across the project.
"""

from decimal import Decimal

MONEY_FIELDS = {"price", "subtotal", "delivery_fee", "total"}
BOOL_FIELDS = {"is_active", "is_admin"}


def camelize(name: str) -> str:
    """``delivery_fee`` -> ``deliveryFee``."""
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def format_money(amount) -> str:
    """Two-decimal string, the wire format for money fields."""
    return f"{Decimal(str(amount)):.2f}"


def serialize_row(row: dict) -> dict:
    """DB row -> JSON-ready dict with camelCase keys."""
    out = {}
    for key, value in row.items():
        if key in MONEY_FIELDS and value is not None:
            value = format_money(value)
        elif key in BOOL_FIELDS:
            value = bool(value)
        out[camelize(key)] = value
    return out


"""
Order routes — checkout, order history, status updates.
"""

import logging
from decimal import Decimal

from cheez import config
from cheez.auth import require_admin, require_user
from cheez.database import execute, execute_rowcount, query, transaction
from cheez.errors import NotFoundError, ValidationError, store_guard
from cheez.models import Identity, OrderLine, is_legal_transition, money
from cheez.utils.helpers import serialize_row
from cheez.utils.validators import validate_payment, validate_phone, validate_quantity, validate_status

logger = logging.getLogger(__name__)


def delivery_fee_for(subtotal: Decimal) -> Decimal:
    """Flat fee below the free-delivery threshold, free at or above it."""
    if subtotal >= config.FREE_DELIVERY_THRESHOLD:
        return money(0)
    return money(config.DELIVERY_FEE)


def handle_place_order(identity: Identity | None, data: dict) -> dict:
    """
    POST /api/orders
    data["items"]: [{"product_id": 1, "quantity": 2, "price": 45}, ...]

    The order row, its items and the stock decrements commit together or
    not at all.
    """
    if not data.get("items"):
        raise ValidationError("Order must contain at least one item")
    lines = []
    for item in data["items"]:
        ok, msg = validate_quantity(item["quantity"])
        if not ok:
            raise ValidationError(msg)
        lines.append(OrderLine(product_id=item["product_id"], quantity=item["quantity"],
                               price=money(item["price"])))

    if not validate_phone(data["phone"]):
        raise ValidationError("Phone must be in format 03XX-XXXXXXX")
    ok, msg = validate_payment(data["payment_method"], data.get("payment_phone"))
    if not ok:
        raise ValidationError(msg)

    subtotal = money(data["subtotal"])
    delivery_fee = money(data["delivery_fee"])
    total = money(data["total"])
    user_id = identity.user_id if identity is not None else None

    with store_guard("Failed to create order"):
        with transaction():
            products = _load_products({line.product_id for line in lines})
            for line in lines:
                if line.product_id not in products:
                    raise NotFoundError(f"Product {line.product_id} not found")

            if config.VERIFY_TOTALS:
                _verify_totals(lines, products, subtotal, delivery_fee, total)

            order_id = execute(
                "INSERT INTO orders (user_id, name, phone, address, instructions, status, "
                "payment_method, payment_phone, subtotal, delivery_fee, total) "
                "VALUES (?, ?, ?, ?, ?, 'pending', ?, ?, ?, ?, ?)",
                (user_id, data["name"], data["phone"], data["address"], data.get("instructions"),
                 data["payment_method"], data.get("payment_phone"),
                 str(subtotal), str(delivery_fee), str(total)),
            )
            for line in lines:
                execute(
                    "INSERT INTO order_items (order_id, product_id, quantity, price, subtotal) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (order_id, line.product_id, line.quantity, str(line.price), str(line.subtotal)),
                )
            for line in lines:
                _take_stock(line, products[line.product_id])

        order = _orders_with_items("WHERE id = ?", (order_id,))[0]

    logger.info("Order %s placed: %d item(s), total %s", order_id, len(lines), total)
    return order


def handle_list_own_orders(identity: Identity | None) -> list[dict]:
    """GET /api/orders — the caller's orders, newest first."""
    identity = require_user(identity)
    with store_guard("Failed to fetch orders"):
        return _orders_with_items("WHERE user_id = ?", (identity.user_id,))


def handle_list_all_orders(identity: Identity | None) -> list[dict]:
    """GET /api/orders/admin."""
    require_admin(identity)
    with store_guard("Failed to fetch orders"):
        return _orders_with_items()


def handle_get_order(identity: Identity | None, order_id: int) -> dict:
    """GET /api/orders/<id> — visible to its owner and to admins."""
    identity = require_user(identity)
    with store_guard("Failed to fetch order"):
        found = _orders_with_items("WHERE id = ?", (order_id,))
    if not found:
        raise NotFoundError("Order not found")
    order = found[0]
    if not identity.is_admin and order["userId"] != identity.user_id:
        raise NotFoundError("Order not found")
    return order


def handle_update_order_status(identity: Identity | None, order_id: int, status) -> dict:
    """PATCH /api/orders/<id> — admin sets the delivery status."""
    require_admin(identity)
    ok, msg = validate_status(status)
    if not ok:
        raise ValidationError(msg)

    with store_guard("Failed to update order"):
        with transaction():
            order = query("SELECT id, status FROM orders WHERE id = ?", (order_id,), one=True)
            if order is None:
                raise NotFoundError("Order not found")
            previous = order["status"]
            if config.STRICT_STATUS_TRANSITIONS and not is_legal_transition(previous, status):
                raise ValidationError(f"Cannot move order from {previous} to {status}")
            execute("UPDATE orders SET status = ? WHERE id = ?", (status, order_id))
        updated = query("SELECT * FROM orders WHERE id = ?", (order_id,), one=True)

    logger.info("Order %s status %s -> %s", order_id, previous, status)
    return serialize_row(updated)


# --------------- Helpers --------------------------------------------------

def _placeholders(values) -> str:
    return ", ".join("?" for _ in values)


def _load_products(ids) -> dict[int, dict]:
    ids = sorted(ids)
    rows = query(f"SELECT * FROM products WHERE id IN ({_placeholders(ids)})", ids)
    return {r["id"]: r for r in rows}


def _verify_totals(lines, products, subtotal, delivery_fee, total):
    """Cross-check the client's money fields against current catalog prices."""
    tolerance = config.TOTALS_TOLERANCE
    for line in lines:
        product = products[line.product_id]
        if abs(line.price - money(product["price"])) > tolerance:
            raise ValidationError(f"Price for {product['name']} has changed")

    expected_subtotal = sum((line.subtotal for line in lines), Decimal("0"))
    expected_fee = delivery_fee_for(expected_subtotal)
    expected_total = expected_subtotal + expected_fee

    if abs(subtotal - expected_subtotal) > tolerance:
        raise ValidationError(f"Subtotal mismatch: expected {expected_subtotal}")
    if abs(delivery_fee - expected_fee) > tolerance:
        raise ValidationError(f"Delivery fee mismatch: expected {expected_fee}")
    if abs(total - expected_total) > tolerance:
        raise ValidationError(f"Total mismatch: expected {expected_total}")


def _take_stock(line: OrderLine, product: dict):
    if config.OVERSELL_POLICY == "clamp":
        execute(
            "UPDATE products SET stock = MAX(0, stock - ?) WHERE id = ?",
            (line.quantity, line.product_id),
        )
        return
    touched = execute_rowcount(
        "UPDATE products SET stock = stock - ? WHERE id = ? AND stock >= ?",
        (line.quantity, line.product_id, line.quantity),
    )
    if touched == 0:
        logger.info("Order rejected: insufficient stock for product %s", line.product_id)
        raise ValidationError(f"Insufficient stock for {product['name']}")


def _orders_with_items(where: str = "", params=()) -> list[dict]:
    """Orders (newest first), each with ``items`` and each item's ``product``."""
    orders = query(f"SELECT * FROM orders {where} ORDER BY created_at DESC, id DESC", params)
    if not orders:
        return []
    order_ids = [o["id"] for o in orders]
    items = query(
        f"SELECT * FROM order_items WHERE order_id IN ({_placeholders(order_ids)}) ORDER BY id",
        order_ids,
    )
    products = {
        pid: serialize_row(p) for pid, p in _load_products({i["product_id"] for i in items}).items()
    } if items else {}

    by_order: dict[int, list[dict]] = {oid: [] for oid in order_ids}
    for item in items:
        entry = serialize_row(item)
        entry["product"] = products.get(item["product_id"])
        by_order[item["order_id"]].append(entry)

    out = []
    for order in orders:
        entry = serialize_row(order)
        entry["items"] = by_order[order["id"]]
        out.append(entry)
    return out

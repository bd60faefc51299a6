"""
Product routes — catalog listing, admin inventory.
"""

import logging

from cheez.auth import require_admin
from cheez.database import execute, execute_rowcount, query
from cheez.errors import NotFoundError, ValidationError, store_guard
from cheez.models import MAX_STOCK, Identity, money
from cheez.utils.helpers import serialize_row
from cheez.utils.validators import validate_quantity

logger = logging.getLogger(__name__)


def _with_category(products: list[dict]) -> list[dict]:
    """Attach each product's category object under ``category``."""
    categories = {c["id"]: serialize_row(c) for c in query("SELECT * FROM categories")}
    out = []
    for row in products:
        item = serialize_row(row)
        item["category"] = categories.get(row["category_id"])
        out.append(item)
    return out


def handle_list_categories() -> list[dict]:
    """GET /api/categories — active categories only."""
    with store_guard("Failed to fetch categories"):
        rows = query("SELECT * FROM categories WHERE is_active = 1 ORDER BY id")
    return [serialize_row(r) for r in rows]


def handle_list_products(category_id: int | None = None) -> list[dict]:
    """GET /api/products — active products, optionally one category."""
    with store_guard("Failed to fetch products"):
        if category_id:
            rows = query(
                "SELECT * FROM products WHERE is_active = 1 AND category_id = ? ORDER BY id",
                (category_id,),
            )
        else:
            rows = query("SELECT * FROM products WHERE is_active = 1 ORDER BY id")
        return _with_category(rows)


def handle_list_inventory(identity: Identity | None) -> list[dict]:
    """GET /api/products/inventory — every product, admin only."""
    require_admin(identity)
    with store_guard("Failed to fetch inventory"):
        rows = query("SELECT * FROM products ORDER BY name DESC")
    return [serialize_row(r) for r in rows]


def handle_adjust_inventory(identity: Identity | None, product_id: int, quantity) -> dict:
    """PATCH /api/products/<id>/inventory — add ``quantity`` units to stock."""
    require_admin(identity)
    ok, msg = validate_quantity(quantity)
    if not ok:
        raise ValidationError(msg)
    with store_guard("Failed to update inventory"):
        touched = execute_rowcount(
            "UPDATE products SET stock = stock + ? WHERE id = ? AND stock <= ?",
            (quantity, product_id, MAX_STOCK - quantity),
        )
        if touched == 0:
            if query("SELECT id FROM products WHERE id = ?", (product_id,), one=True) is None:
                raise NotFoundError("Product not found")
            raise ValidationError(f"Stock cannot exceed {MAX_STOCK}")
        product = query("SELECT * FROM products WHERE id = ?", (product_id,), one=True)
    logger.info("Stock for product %s adjusted by %+d to %d", product_id, quantity, product["stock"])
    return serialize_row(product)


# --------------- Store helpers (seeding) ----------------------------------

def create_category(name: str, emoji: str, description: str | None = None, is_active: bool = True) -> int:
    return execute(
        "INSERT INTO categories (name, emoji, description, is_active) VALUES (?, ?, ?, ?)",
        (name, emoji, description, int(is_active)),
    )


def create_product(name: str, description: str, price, image_url: str, category_id: int,
                   stock: int = 0, tag: str | None = None, is_active: bool = True) -> int:
    return execute(
        "INSERT INTO products (name, description, price, image_url, stock, tag, is_active, category_id) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
        (name, description, str(money(price)), image_url, stock, tag, int(is_active), category_id),
    )

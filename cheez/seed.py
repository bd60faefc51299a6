"""
Seed the store with demo users, categories and products.
Safe to run repeatedly; existing rows are left alone.
"""

import logging

from cheez.auth import create_user
from cheez.database import init_db, query
from cheez.routes.products import create_category, create_product

logger = logging.getLogger(__name__)

USERS = [
    {"username": "admin", "password": "admin123", "is_admin": True},
    {"username": "user", "password": "password", "is_admin": False},
]

CATEGORIES = [
    {"name": "After-School Snacks", "emoji": "🎒", "description": "Perfect for hungry kids after a long day of learning!"},
    {"name": "Weekend Specials", "emoji": "🎉", "description": "Special treats for weekend fun and family time!"},
    {"name": "Healthy Munchies", "emoji": "🍎", "description": "Nutritious and delicious options for health-conscious parents!"},
    {"name": "Homemade Treats", "emoji": "🧁", "description": "Freshly made treats that taste like they're from mom's kitchen!"},
    {"name": "Drinks & Juices", "emoji": "🥤", "description": "Refreshing beverages to quench your child's thirst!"},
]

_IMG = "https://images.unsplash.com/photo-{}?auto=format&fit=crop&w=400&h=300"

PRODUCTS = [
    {"name": "Masala Crunch Chips 🌶️", "description": "Tangy, spicy, aur ekdum crunchy!", "price": 45,
     "image_url": _IMG.format("1599490659213-e2b9527bd87e"), "stock": 50, "tag": "Kid's Favorite",
     "category": "After-School Snacks"},
    {"name": "Chocolatey Biscuit Sticks 🍫", "description": "Chocolate coated yummy sticks!", "price": 75,
     "image_url": _IMG.format("1531171673193-49affa0882e8"), "stock": 40, "tag": "New",
     "category": "After-School Snacks"},
    {"name": "Sweet Tooth Pack 🍭", "description": "Mix of sweet candies & chocolates!", "price": 120,
     "image_url": _IMG.format("1576618148400-f54bed99fcfd"), "stock": 30, "tag": "Bestseller",
     "category": "Weekend Specials"},
    {"name": "Fruit Munch Mix 🍓", "description": "Dried fruits aur nuts ka tasty mix!", "price": 95,
     "image_url": _IMG.format("1599490659652-9ae92426f537"), "stock": 25, "tag": "Healthy",
     "category": "Healthy Munchies"},
    {"name": "Homemade Muffins 🧁", "description": "Freshly baked every morning!", "price": 60,
     "image_url": _IMG.format("1614735241165-6756e1df61ab"), "stock": 20, "tag": "New",
     "category": "Homemade Treats"},
    {"name": "Fruit Jelly Cups 🍊", "description": "Colorful jelly with real fruits!", "price": 40,
     "image_url": _IMG.format("1525059337994-6f2a1311b4d4"), "stock": 35, "tag": None,
     "category": "Healthy Munchies"},
    {"name": "Crunchy Popcorn Mix 🍿", "description": "Sweet and savory popcorn mix for movie nights!", "price": 65,
     "image_url": _IMG.format("1578849278602-b88d0052e5b3"), "stock": 45, "tag": "Weekend Special",
     "category": "Weekend Specials"},
    {"name": "Fresh Fruit Juice 🍹", "description": "100% natural, no preservatives added!", "price": 85,
     "image_url": _IMG.format("1600271886742-f049cd451bba"), "stock": 30, "tag": "Healthy",
     "category": "Drinks & Juices"},
]


def seed() -> dict:
    """Insert whatever demo rows are missing; returns counts of rows created."""
    init_db()
    created = {"users": 0, "categories": 0, "products": 0}

    for user in USERS:
        if query("SELECT id FROM users WHERE username = ?", (user["username"],), one=True) is None:
            create_user(user["username"], user["password"], user["is_admin"])
            created["users"] += 1
            logger.info("User created: %s", user["username"])

    for category in CATEGORIES:
        if query("SELECT id FROM categories WHERE name = ?", (category["name"],), one=True) is None:
            create_category(**category)
            created["categories"] += 1
            logger.info("Category created: %s", category["name"])

    category_ids = {c["name"]: c["id"] for c in query("SELECT id, name FROM categories")}
    for product in PRODUCTS:
        if query("SELECT id FROM products WHERE name = ?", (product["name"],), one=True) is None:
            fields = {k: v for k, v in product.items() if k != "category"}
            create_product(category_id=category_ids[product["category"]], **fields)
            created["products"] += 1
            logger.info("Product created: %s", product["name"])

    return created


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    logger.info("Starting seed process...")
    created = seed()
    logger.info("Seed completed: %s", created)


if __name__ == "__main__":
    main()

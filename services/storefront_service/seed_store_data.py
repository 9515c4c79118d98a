"""Seed the sample catalog: five categories and eight products.

Usage:
    python -m services.storefront_service.seed_store_data

Uses whichever record store backend ``RECORD_STORE_BACKEND`` selects. The
in-memory backend is seeded automatically at app startup.
"""

import asyncio
from decimal import Decimal

from services.storefront_service.record_store import RecordStore

IMAGE_BASE = "https://images.pexels.com/photos"

CATEGORIES = [
    ("Electronics", "Latest gadgets and electronic devices", f"{IMAGE_BASE}/356056/pexels-photo-356056.jpeg"),
    ("Clothing", "Fashion and apparel for all occasions", f"{IMAGE_BASE}/996329/pexels-photo-996329.jpeg"),
    ("Home & Garden", "Everything for your home and garden", f"{IMAGE_BASE}/1571460/pexels-photo-1571460.jpeg"),
    ("Books", "Books and educational materials", f"{IMAGE_BASE}/159711/books-bookstore-book-reading-159711.jpeg"),
    ("Sports", "Sports equipment and fitness gear", f"{IMAGE_BASE}/863988/pexels-photo-863988.jpeg"),
]

PRODUCTS = [
    {
        "name": "Wireless Headphones",
        "description": "Premium wireless headphones with noise cancellation",
        "price": Decimal("199.99"),
        "category": "Electronics",
        "image_url": f"{IMAGE_BASE}/3394650/pexels-photo-3394650.jpeg",
        "stock_quantity": 50,
        "is_featured": True,
        "rating": Decimal("4.5"),
        "review_count": 128,
    },
    {
        "name": "Smart Watch",
        "description": "Advanced fitness tracking and smart notifications",
        "price": Decimal("299.99"),
        "category": "Electronics",
        "image_url": f"{IMAGE_BASE}/437037/pexels-photo-437037.jpeg",
        "stock_quantity": 30,
        "is_featured": True,
        "rating": Decimal("4.3"),
        "review_count": 89,
    },
    {
        "name": "Laptop Computer",
        "description": "High-performance laptop for work and gaming",
        "price": Decimal("1299.99"),
        "category": "Electronics",
        "image_url": f"{IMAGE_BASE}/18105/pexels-photo.jpg",
        "stock_quantity": 15,
        "is_featured": True,
        "rating": Decimal("4.7"),
        "review_count": 245,
    },
    {
        "name": "Designer T-Shirt",
        "description": "Premium cotton t-shirt with modern design",
        "price": Decimal("29.99"),
        "category": "Clothing",
        "image_url": f"{IMAGE_BASE}/996329/pexels-photo-996329.jpeg",
        "stock_quantity": 100,
        "is_featured": False,
        "rating": Decimal("4.2"),
        "review_count": 67,
    },
    {
        "name": "Running Shoes",
        "description": "Comfortable running shoes for daily exercise",
        "price": Decimal("89.99"),
        "category": "Clothing",
        "image_url": f"{IMAGE_BASE}/2529148/pexels-photo-2529148.jpeg",
        "stock_quantity": 75,
        "is_featured": True,
        "rating": Decimal("4.6"),
        "review_count": 156,
    },
    {
        "name": "Coffee Maker",
        "description": "Automatic coffee maker with programmable features",
        "price": Decimal("149.99"),
        "category": "Home & Garden",
        "image_url": f"{IMAGE_BASE}/324028/pexels-photo-324028.jpeg",
        "stock_quantity": 25,
        "is_featured": False,
        "rating": Decimal("4.1"),
        "review_count": 93,
    },
    {
        "name": "Programming Book",
        "description": "Complete guide to modern web development",
        "price": Decimal("49.99"),
        "category": "Books",
        "image_url": f"{IMAGE_BASE}/159711/books-bookstore-book-reading-159711.jpeg",
        "stock_quantity": 200,
        "is_featured": False,
        "rating": Decimal("4.8"),
        "review_count": 312,
    },
    {
        "name": "Yoga Mat",
        "description": "Premium non-slip yoga mat for home workouts",
        "price": Decimal("39.99"),
        "category": "Sports",
        "image_url": f"{IMAGE_BASE}/863988/pexels-photo-863988.jpeg",
        "stock_quantity": 80,
        "is_featured": False,
        "rating": Decimal("4.4"),
        "review_count": 178,
    },
]


async def seed_catalog(store: RecordStore) -> dict[str, dict]:
    """Insert the sample catalog unless categories already exist.

    Returns the products keyed by name (empty when seeding was skipped).
    """
    existing = await store.select("categories", limit=1)
    if existing:
        return {}

    category_ids = {}
    for name, description, image_url in CATEGORIES:
        row = await store.insert(
            "categories",
            {"name": name, "description": description, "image_url": image_url},
        )
        category_ids[name] = row["id"]

    products = {}
    for item in PRODUCTS:
        values = {k: v for k, v in item.items() if k != "category"}
        values["category_id"] = category_ids[item["category"]]
        products[item["name"]] = await store.insert("products", values)
    return products


async def main():
    from services.storefront_service.dependencies import get_record_store

    print("Seeding storefront catalog...")
    products = await seed_catalog(get_record_store())
    if not products:
        print("Catalog already exists. Skipping seed.")
        return
    print(f"Seeded {len(CATEGORIES)} categories and {len(products)} products.")


if __name__ == "__main__":
    asyncio.run(main())

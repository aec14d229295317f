"""
Seed the catalog with demo brands.

Adds each demo brand that is not already in the catalog (matched by name).
Existing brands are left untouched so the script can be re-run safely.

Usage:
    python scripts/seed_brands.py
"""

import sys
from decimal import Decimal
from pathlib import Path

# Add parent directory to path so we can import from services
sys.path.insert(0, str(Path(__file__).parent.parent))

from services.catalog_service import create_brand, list_brands


DEMO_BRANDS = [
    ("Marlboro Gold", Decimal("12.50"), 40),
    ("Camel Blue", Decimal("11.00"), 25),
    ("Lucky Strike", Decimal("10.75"), 30),
    ("Pall Mall", Decimal("9.25"), 50),
]


def seed_brands() -> int:
    """Create missing demo brands; returns how many were added."""

    existing = {brand.name for brand in list_brands()}
    added = 0

    for name, price, stock in DEMO_BRANDS:
        if name in existing:
            print(f"Brand already exists: {name}")
            continue

        brand = create_brand(name=name, price=price, stock=stock)
        added += 1
        print(f"[SUCCESS] Added {brand.name} ({brand.brand_id}) price={brand.price} stock={brand.stock}")

    return added


if __name__ == "__main__":
    count = seed_brands()
    print(f"\n{count} brand(s) added")

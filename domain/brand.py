"""
Domain: Brand catalog entries.

A Brand is a sellable product line with a unit price and units on hand.

Rules captured here:
- name is non-empty.
- price >= 0.
- stock is an integer >= 0; the sale path never lets it go negative.
- last_restocked is refreshed whenever stock is set directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class Brand:
    """
    Immutable snapshot of a catalog entry.

    Stock changes produce a new instance.
    """

    brand_id: UUID
    name: str
    price: Decimal
    stock: int
    last_restocked: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("name must be a non-empty string")
        if self.price < 0:
            raise ValueError("price must be >= 0")
        if isinstance(self.stock, bool) or not isinstance(self.stock, int):
            raise ValueError("stock must be an integer")
        if self.stock < 0:
            raise ValueError("stock must be >= 0")
        if self.last_restocked is not None:
            require_utc_timestamp("last_restocked", self.last_restocked)
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    def can_fulfill(self, quantity: int) -> bool:
        """True if there are at least `quantity` units on hand."""
        return self.stock >= quantity

"""
Pytest configuration.

Adds the project root to the Python path so tests can import domain,
repositories, services and api, and provides `fake_db`: an in-memory
stand-in for the Supabase client covering the query-builder calls the
repositories make plus the record_sale_atomic() RPC.
"""

import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def _comparable(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value


class FakeResponse:
    def __init__(self, data: Any, count: Optional[int] = None) -> None:
        self.data = data
        self.count = count


class FakeQuery:
    """Chainable subset of the postgrest query builder."""

    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self._db = db
        self._table = table
        self._op = "select"
        self._payload: Dict[str, Any] = {}
        self._filters: List[tuple] = []
        self._order: Optional[tuple] = None
        self._range: Optional[tuple] = None
        self._limit: Optional[int] = None
        self._count: Optional[str] = None
        self._embed_brand = False

    def select(self, columns: str = "*", count: Optional[str] = None) -> "FakeQuery":
        self._op = "select"
        self._count = count
        self._embed_brand = "brand:brands" in columns
        return self

    def insert(self, payload: Dict[str, Any]) -> "FakeQuery":
        self._op = "insert"
        self._payload = dict(payload)
        return self

    def update(self, payload: Dict[str, Any]) -> "FakeQuery":
        self._op = "update"
        self._payload = dict(payload)
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append((column, lambda v, x=value: str(v) == str(x)))
        return self

    def gte(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append((column, lambda v, x=value: _comparable(v) >= _comparable(x)))
        return self

    def lte(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append((column, lambda v, x=value: _comparable(v) <= _comparable(x)))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order = (column, desc)
        return self

    def range(self, start: int, end: int) -> "FakeQuery":
        self._range = (start, end)
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def _matching(self) -> List[Dict[str, Any]]:
        rows = self._db.tables.setdefault(self._table, [])
        return [
            row for row in rows
            if all(column in row and check(row[column]) for column, check in self._filters)
        ]

    def _with_brand(self, row: Dict[str, Any]) -> Dict[str, Any]:
        result = dict(row)
        if self._embed_brand:
            brand = next(
                (b for b in self._db.tables.get("brands", []) if b["brand_id"] == row["brand_id"]),
                None,
            )
            result["brand"] = dict(brand) if brand else None
        return result

    def execute(self) -> FakeResponse:
        if self._db.query_error is not None:
            raise self._db.query_error

        if self._op == "insert":
            self._db.tables.setdefault(self._table, []).append(dict(self._payload))
            return FakeResponse([dict(self._payload)])

        if self._op == "update":
            matched = self._matching()
            for row in matched:
                row.update(self._payload)
            return FakeResponse([dict(row) for row in matched])

        rows = self._matching()
        total = len(rows)
        if self._order is not None:
            column, desc = self._order
            rows = sorted(rows, key=lambda r: _comparable(r[column]), reverse=desc)
        if self._range is not None:
            start, end = self._range
            rows = rows[start:end + 1]
        if self._limit is not None:
            rows = rows[:self._limit]

        return FakeResponse(
            [self._with_brand(row) for row in rows],
            count=total if self._count == "exact" else None,
        )


class FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params: Dict[str, Any]) -> None:
        self._db = db
        self._name = name
        self._params = params

    def execute(self) -> FakeResponse:
        self._db.rpc_calls.append((self._name, dict(self._params)))
        if self._db.rpc_error is not None:
            raise self._db.rpc_error
        if self._name != "record_sale_atomic":
            raise ValueError(f"Unknown RPC: {self._name}")
        return FakeResponse(self._db.record_sale_atomic(**self._params))


class FakeSupabase:
    """In-memory Supabase double; `tables` maps table name to rows."""

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {"brands": [], "sales": []}
        self.rpc_calls: List[tuple] = []
        self.rpc_error: Optional[Exception] = None
        self.query_error: Optional[Exception] = None

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: Dict[str, Any]) -> FakeRpc:
        return FakeRpc(self, name, params)

    def record_sale_atomic(
        self,
        p_sale_id: str,
        p_brand_id: str,
        p_quantity: int,
        p_total_amount: str,
        p_amount_received: str,
        p_sale_type: str,
        p_sold_at: str,
    ) -> Dict[str, Any]:
        brand = self.brand_row(p_brand_id)
        if brand is None:
            return {"success": False, "error": "BRAND_NOT_FOUND", "message": f"Brand not found: {p_brand_id}"}
        if brand["stock"] < p_quantity:
            return {"success": False, "error": "INSUFFICIENT_STOCK", "message": "Insufficient stock"}

        previous = brand["stock"]
        brand["stock"] = previous - p_quantity
        self.tables["sales"].append({
            "sale_id": p_sale_id,
            "brand_id": p_brand_id,
            "quantity": p_quantity,
            "total_amount": float(p_total_amount),
            "amount_received": float(p_amount_received),
            "change_given": float(Decimal(p_amount_received) - Decimal(p_total_amount)),
            "sale_type": p_sale_type,
            "sold_at_utc": p_sold_at,
            "created_at_utc": p_sold_at,
        })
        return {"success": True, "sale_id": p_sale_id, "previous_stock": previous, "new_stock": brand["stock"]}

    # -- seeding helpers ---------------------------------------------------

    def brand_row(self, brand_id: Any) -> Optional[Dict[str, Any]]:
        return next((b for b in self.tables["brands"] if b["brand_id"] == str(brand_id)), None)

    def add_brand(self, name: str, price: str = "10.00", stock: int = 10) -> UUID:
        brand_id = uuid4()
        now = datetime.now(timezone.utc).isoformat()
        self.tables["brands"].append({
            "brand_id": str(brand_id),
            "name": name,
            "price": float(price),
            "stock": stock,
            "last_restocked_utc": now,
            "created_at_utc": now,
        })
        return brand_id

    def add_sale(
        self,
        brand_id: Any,
        quantity: int,
        total_amount: str,
        amount_received: str,
        sold_at: datetime,
    ) -> UUID:
        sale_id = uuid4()
        self.tables["sales"].append({
            "sale_id": str(sale_id),
            "brand_id": str(brand_id),
            "quantity": quantity,
            "total_amount": float(total_amount),
            "amount_received": float(amount_received),
            "change_given": float(Decimal(amount_received) - Decimal(total_amount)),
            "sale_type": "multi" if quantity > 1 else "single",
            "sold_at_utc": sold_at.isoformat(),
            "created_at_utc": sold_at.isoformat(),
        })
        return sale_id


@pytest.fixture
def fake_db(monkeypatch) -> FakeSupabase:
    """Route every repository call to a fresh in-memory database."""

    fake = FakeSupabase()
    monkeypatch.setattr("repositories.client.get_supabase", lambda: fake)
    return fake

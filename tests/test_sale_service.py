"""
Tests for `services/sale_service.py`.

Covers:
- Successful single sales decrement stock and leave one sale row each.
- Each failure kind is reported with its own code, in check order, and
  nothing is written when a sale fails.
- Bulk sales round amounts, see earlier items' stock decrements, stop at the
  first failure and keep earlier items committed.
- Paged listing.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from postgrest.exceptions import APIError

from domain.sale import SaleErrorCode, SaleType
from services.sale_service import SaleRequest, list_sales, record_bulk_sale, record_sale


def _request(brand_id, quantity=1, total="10.00", received="10.00") -> SaleRequest:
    return SaleRequest(
        brand_id=brand_id,
        quantity=quantity,
        total_amount=Decimal(total),
        amount_received=Decimal(received),
    )


def test_successful_sales_decrement_stock(fake_db) -> None:
    brand_id = fake_db.add_brand("Camel Blue", stock=10)
    quantities = [1, 3, 2]

    for quantity in quantities:
        result = record_sale(_request(brand_id, quantity=quantity))
        assert result.success, result.error_message

    assert fake_db.brand_row(brand_id)["stock"] == 10 - sum(quantities)
    sales = fake_db.tables["sales"]
    assert len(sales) == len(quantities)
    assert all(row["brand_id"] == str(brand_id) for row in sales)


def test_successful_sale_result(fake_db) -> None:
    brand_id = fake_db.add_brand("Camel Blue", stock=5)

    result = record_sale(_request(brand_id, quantity=2, total="20.00", received="25.00"))

    assert result.success
    assert result.previous_stock == 5
    assert result.new_stock == 3
    assert result.change_given == Decimal("5.00")
    assert result.sale.sale_type is SaleType.MULTI
    assert result.sale.brand_name == "Camel Blue"
    assert result.sale.brand.stock == 3
    assert fake_db.tables["sales"][0]["sale_type"] == "multi"


def test_single_unit_sale_is_single_type(fake_db) -> None:
    brand_id = fake_db.add_brand("Camel Blue", stock=5)

    result = record_sale(_request(brand_id, quantity=1))

    assert result.sale.sale_type is SaleType.SINGLE


def test_string_brand_id_and_float_amounts_are_accepted(fake_db) -> None:
    brand_id = fake_db.add_brand("Camel Blue", stock=5)

    result = record_sale(
        SaleRequest(brand_id=str(brand_id), quantity=2.0, total_amount=19.9, amount_received=20)
    )

    assert result.success
    assert result.sale.quantity == 2
    assert result.sale.total_amount == Decimal("19.9")


@pytest.mark.parametrize(
    "request_kwargs",
    [
        {"brand_id": None, "quantity": 1, "total_amount": 10, "amount_received": 10},
        {"brand_id": "not-a-uuid", "quantity": 1, "total_amount": 10, "amount_received": 10},
        {"quantity": None, "total_amount": 10, "amount_received": 10},
        {"quantity": "two", "total_amount": 10, "amount_received": 10},
        {"quantity": 1, "total_amount": "ten", "amount_received": 10},
        {"quantity": 1, "total_amount": 10},
    ],
)
def test_missing_or_mistyped_fields(fake_db, request_kwargs) -> None:
    brand_id = fake_db.add_brand("Camel Blue", stock=5)
    kwargs = {"brand_id": brand_id, **request_kwargs}

    result = record_sale(SaleRequest(**kwargs))

    assert not result.success
    assert result.error_code is SaleErrorCode.MISSING_FIELDS
    assert fake_db.rpc_calls == []
    assert fake_db.brand_row(brand_id)["stock"] == 5


def test_absent_brand_id_is_reported_by_name(fake_db) -> None:
    result = record_sale(SaleRequest(quantity=1, total_amount=10, amount_received=10))

    assert result.error_code is SaleErrorCode.MISSING_FIELDS
    assert result.details["fields"] == ["brand_id"]
    assert fake_db.rpc_calls == []


def test_insufficient_payment_writes_nothing(fake_db) -> None:
    brand_id = fake_db.add_brand("Camel Blue", stock=5)

    result = record_sale(_request(brand_id, quantity=1, total="10.00", received="9.98"))

    assert result.error_code is SaleErrorCode.INSUFFICIENT_PAYMENT
    assert fake_db.brand_row(brand_id)["stock"] == 5
    assert fake_db.tables["sales"] == []


def test_payment_within_tolerance_is_accepted(fake_db) -> None:
    brand_id = fake_db.add_brand("Camel Blue", stock=5)

    result = record_sale(_request(brand_id, quantity=1, total="10.00", received="9.99"))

    assert result.success
    assert result.change_given == Decimal("-0.01")


def test_payment_checked_before_brand(fake_db) -> None:
    result = record_sale(_request(uuid4(), total="10.00", received="1.00"))

    assert result.error_code is SaleErrorCode.INSUFFICIENT_PAYMENT


def test_unknown_brand(fake_db) -> None:
    result = record_sale(_request(uuid4()))

    assert result.error_code is SaleErrorCode.BRAND_NOT_FOUND
    assert fake_db.rpc_calls == []


def test_insufficient_stock_writes_nothing(fake_db) -> None:
    brand_id = fake_db.add_brand("Camel Blue", stock=2)

    result = record_sale(_request(brand_id, quantity=3))

    assert result.error_code is SaleErrorCode.INSUFFICIENT_STOCK
    assert result.details["available_stock"] == 2
    assert result.details["requested_quantity"] == 3
    assert fake_db.brand_row(brand_id)["stock"] == 2
    assert fake_db.tables["sales"] == []


@pytest.mark.parametrize(
    "quantity, total",
    [(1.5, "10.00"), (0, "10.00"), (-1, "10.00"), (1, "0.00")],
)
def test_schema_violations_are_validation_failures(fake_db, quantity, total) -> None:
    brand_id = fake_db.add_brand("Camel Blue", stock=5)

    result = record_sale(_request(brand_id, quantity=quantity, total=total, received="10.00"))

    assert result.error_code is SaleErrorCode.VALIDATION_FAILED
    assert fake_db.brand_row(brand_id)["stock"] == 5
    assert fake_db.rpc_calls == []


def test_sub_cent_amounts_are_rejected(fake_db) -> None:
    brand_id = fake_db.add_brand("Camel Blue", stock=5)

    result = record_sale(_request(brand_id, total="10.004", received="9.995"))

    assert result.error_code is SaleErrorCode.VALIDATION_FAILED
    assert "total_amount" in result.error_message
    assert fake_db.rpc_calls == []
    assert fake_db.tables["sales"] == []


def test_sub_cent_amount_received_is_rejected(fake_db) -> None:
    brand_id = fake_db.add_brand("Camel Blue", stock=5)

    result = record_sale(_request(brand_id, total="10.00", received="10.005"))

    assert result.error_code is SaleErrorCode.VALIDATION_FAILED
    assert "amount_received" in result.error_message
    assert fake_db.brand_row(brand_id)["stock"] == 5


def test_amounts_sent_to_database_match_reported_sale(fake_db) -> None:
    brand_id = fake_db.add_brand("Camel Blue", stock=5)

    result = record_sale(_request(brand_id, total="10.000", received="12.50"))

    assert result.success
    _, params = fake_db.rpc_calls[0]
    assert Decimal(params["p_total_amount"]) == result.sale.total_amount
    assert Decimal(params["p_amount_received"]) == result.sale.amount_received
    assert result.change_given == Decimal("2.50")


def test_bulk_sale_rounds_sub_cent_amounts_instead_of_rejecting(fake_db) -> None:
    brand_id = fake_db.add_brand("Camel Blue", stock=5)

    result = record_bulk_sale([_request(brand_id, total="10.004", received="9.995")])

    assert result.success
    assert result.sales[0].total_amount == Decimal("10.00")
    assert result.sales[0].amount_received == Decimal("10.00")
    assert result.sales[0].change_given == Decimal("0.00")
    _, params = fake_db.rpc_calls[0]
    assert params["p_total_amount"] == "10.00"


def test_stock_taken_between_check_and_commit(fake_db, monkeypatch) -> None:
    """The conditional decrement in the database has the final word."""

    brand_id = fake_db.add_brand("Camel Blue", stock=1)
    original = fake_db.record_sale_atomic

    def racing_sale(**params):
        fake_db.brand_row(brand_id)["stock"] = 0
        return original(**params)

    monkeypatch.setattr(fake_db, "record_sale_atomic", racing_sale)

    result = record_sale(_request(brand_id, quantity=1))

    assert result.error_code is SaleErrorCode.INSUFFICIENT_STOCK
    assert fake_db.tables["sales"] == []


def test_rpc_error_is_transaction_aborted(fake_db) -> None:
    brand_id = fake_db.add_brand("Camel Blue", stock=5)
    fake_db.rpc_error = APIError({"message": "could not serialize access", "code": "40001"})

    result = record_sale(_request(brand_id))

    assert result.error_code is SaleErrorCode.TRANSACTION_ABORTED
    assert "could not serialize access" in result.error_message
    assert fake_db.brand_row(brand_id)["stock"] == 5


def test_unexpected_exception_is_transaction_aborted(fake_db) -> None:
    brand_id = fake_db.add_brand("Camel Blue", stock=5)
    fake_db.rpc_error = ConnectionError("connection reset")

    result = record_sale(_request(brand_id))

    assert result.error_code is SaleErrorCode.TRANSACTION_ABORTED


def test_brand_lookup_failure_is_transaction_aborted(fake_db) -> None:
    fake_db.query_error = RuntimeError("database unreachable")

    result = record_sale(_request(uuid4()))

    assert result.error_code is SaleErrorCode.TRANSACTION_ABORTED


def test_bulk_sale_stops_at_first_failure(fake_db) -> None:
    brand_a = fake_db.add_brand("Brand A", stock=5)
    brand_b = fake_db.add_brand("Brand B", stock=5)

    result = record_bulk_sale([
        _request(brand_a, quantity=2, total="20.00", received="20.00"),
        _request(brand_b, quantity=1, total="5.00", received="5.00"),
        _request(brand_a, quantity=99, total="990.00", received="990.00"),
        _request(brand_b, quantity=1, total="5.00", received="5.00"),
    ])

    assert not result.success
    assert result.failed_index == 2
    assert result.error_code is SaleErrorCode.INSUFFICIENT_STOCK
    assert len(result.sales) == 2
    assert len(fake_db.tables["sales"]) == 2
    assert len(fake_db.rpc_calls) == 2
    assert fake_db.brand_row(brand_a)["stock"] == 3
    assert fake_db.brand_row(brand_b)["stock"] == 4


def test_bulk_sale_sees_earlier_decrements(fake_db) -> None:
    brand_id = fake_db.add_brand("Brand A", stock=3)

    result = record_bulk_sale([
        _request(brand_id, quantity=2),
        _request(brand_id, quantity=2),
    ])

    assert result.failed_index == 1
    assert result.error_code is SaleErrorCode.INSUFFICIENT_STOCK
    assert fake_db.brand_row(brand_id)["stock"] == 1


def test_bulk_sale_rounds_amounts(fake_db) -> None:
    brand_id = fake_db.add_brand("Brand A", stock=3)

    result = record_bulk_sale([
        SaleRequest(brand_id=brand_id, quantity=1, total_amount=3.333, amount_received=3.335),
    ])

    assert result.success
    assert result.sales[0].total_amount == Decimal("3.33")
    assert result.sales[0].amount_received == Decimal("3.34")


def test_bulk_sale_classifies_each_line(fake_db) -> None:
    brand_a = fake_db.add_brand("Brand A", stock=3)
    brand_b = fake_db.add_brand("Brand B", stock=3)

    result = record_bulk_sale([_request(brand_a), _request(brand_b)])

    assert result.success
    assert [sale.sale_type for sale in result.sales] == [SaleType.SINGLE, SaleType.SINGLE]


def test_empty_bulk_sale_succeeds(fake_db) -> None:
    result = record_bulk_sale([])

    assert result.success
    assert result.sales == []


def test_list_sales_pages_newest_first(fake_db) -> None:
    brand_id = fake_db.add_brand("Brand A", stock=10)
    for quantity in (1, 2, 3):
        assert record_sale(_request(brand_id, quantity=quantity)).success

    first = list_sales(page=1, page_size=2)
    second = list_sales(page=2, page_size=2)

    assert first.total_count == 3
    assert first.total_pages == 2
    assert first.current_page == 1
    assert len(first.sales) == 2
    assert len(second.sales) == 1
    assert all(sale.brand_name == "Brand A" for sale in first.sales + second.sales)
    assert first.sales[0].sold_at >= first.sales[1].sold_at >= second.sales[0].sold_at


def test_list_sales_rejects_bad_page(fake_db) -> None:
    with pytest.raises(ValueError):
        list_sales(page=0)

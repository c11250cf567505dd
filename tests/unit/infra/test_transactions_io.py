"""Tests for raw record parsing and JSON persistence of the log."""

from datetime import date
from decimal import Decimal

import pytest

from stockfolio.domain.enums import TransactionKind
from stockfolio.domain.models.transaction import Transaction
from stockfolio.exceptions import InvalidTransactionError
from stockfolio.infra.transactions import (
    dump_transactions,
    load_transactions,
    parse_transaction,
    parse_transactions,
)


class TestParseTransaction:
    def test_canonical_record(self):
        tx = parse_transaction({
            "id": "t1", "ticker": " pso ", "kind": "BUY",
            "quantity": "100", "price": "100.5", "date": "2025-01-02",
        })
        assert tx.ticker == "PSO"
        assert tx.kind == TransactionKind.BUY
        assert tx.price == Decimal("100.5")
        assert tx.commission is None

    def test_legacy_field_names(self):
        tx = parse_transaction({
            "id": 7, "type": "sell", "ticker": "HBL", "quantity": 5, "price": 90,
            "date": "2025-01-02", "brokerId": "akd", "cdcCharges": "0.5", "otherFees": "1",
        })
        assert tx.id == "7"
        assert tx.kind == TransactionKind.SELL
        assert tx.broker_ref == "akd"
        assert tx.depository_charge == Decimal("0.5")
        assert tx.other_fees == Decimal("1")

    def test_canonical_name_wins_over_alias(self):
        tx = parse_transaction({
            "id": "t1", "kind": "DEPOSIT", "type": "WITHDRAWAL", "price": 10, "date": "2025-01-02",
        })
        assert tx.kind == TransactionKind.DEPOSIT

    @pytest.mark.parametrize(("raw", "kind"), [
        ("TAX", TransactionKind.TAX_ADJUSTMENT),
        ("HISTORY", TransactionKind.HISTORICAL_ADJUSTMENT),
        ("annual_fee", TransactionKind.ANNUAL_FEE),
    ])
    def test_kind_aliases(self, raw, kind):
        tx = parse_transaction({"id": "t1", "kind": raw, "price": 10, "date": "2025-01-02"})
        assert tx.kind == kind

    def test_model_passes_through(self):
        tx = Transaction(id="t1", kind=TransactionKind.DEPOSIT, price=Decimal(1), date=date(2025, 1, 1))
        assert parse_transaction(tx) is tx

    def test_unknown_kind_rejected(self):
        with pytest.raises(InvalidTransactionError) as exc_info:
            parse_transaction({"id": "t9", "kind": "SPLIT", "date": "2025-01-02"})
        assert exc_info.value.transaction_id == "t9"
        assert "kind" in exc_info.value.reason

    def test_negative_price_rejected_for_trades(self):
        with pytest.raises(InvalidTransactionError):
            parse_transaction({
                "id": "t1", "kind": "BUY", "ticker": "PSO", "quantity": 1, "price": -1, "date": "2025-01-02",
            })

    def test_negative_price_allowed_for_historical(self):
        tx = parse_transaction({"id": "h1", "kind": "HISTORY", "price": "-300", "date": "2024-12-31"})
        assert tx.price == Decimal("-300")

    def test_ticker_required_for_trades(self):
        with pytest.raises(InvalidTransactionError, match="ticker is required"):
            parse_transaction({"id": "t1", "kind": "DIVIDEND", "quantity": 1, "price": 1, "date": "2025-01-02"})

    @pytest.mark.parametrize("record", [None, "BUY PSO 100", 42])
    def test_non_mapping_rejected(self, record):
        with pytest.raises(InvalidTransactionError, match="expected a mapping"):
            parse_transaction(record)

    def test_missing_id_reported(self):
        with pytest.raises(InvalidTransactionError) as exc_info:
            parse_transaction({"kind": "DEPOSIT", "price": 1, "date": "2025-01-02"})
        assert exc_info.value.transaction_id == "<missing id>"


class TestParseTransactions:
    def test_errors_collected_in_order(self):
        records = [
            {"id": "a", "kind": "DEPOSIT", "price": 100, "date": "2025-01-01"},
            {"id": "b", "kind": "DEPOSIT", "price": "x", "date": "2025-01-01"},
            {"id": "c", "kind": "WITHDRAWAL", "price": 50, "date": "2025-01-02"},
            {"id": "d", "kind": "BUY", "ticker": "PSO", "quantity": -1, "price": 1, "date": "2025-01-02"},
        ]
        transactions, errors = parse_transactions(records)

        assert [tx.id for tx in transactions] == ["a", "c"]
        assert [e.transaction_id for e in errors] == ["b", "d"]
        assert "price" in errors[0].reason
        assert "quantity" in errors[1].reason


class TestJsonRoundTrip:
    def test_log_survives_dump_and_load(self):
        log = [
            Transaction(
                id="b1", ticker="PSO", kind=TransactionKind.BUY, quantity=Decimal("100"),
                price=Decimal("100.1234"), date=date(2025, 1, 1), broker_ref="akd",
                commission=Decimal("15"), intraday=True, notes="opening",
            ),
            Transaction(id="d1", kind=TransactionKind.DEPOSIT, price=Decimal("20000"), date=date(2025, 1, 1)),
        ]
        assert load_transactions(dump_transactions(log)) == log

    def test_unrecorded_fees_stay_unrecorded(self):
        log = [Transaction(id="d1", kind=TransactionKind.DEPOSIT, price=Decimal("5"), date=date(2025, 1, 1))]
        restored = load_transactions(dump_transactions(log))
        assert restored[0].fees_recorded is False

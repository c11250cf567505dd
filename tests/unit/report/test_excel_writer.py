"""Tests for ExcelWriter — openpyxl workbook generation."""

from datetime import UTC, date, datetime
from decimal import Decimal
from io import BytesIO

from openpyxl import load_workbook

from stockfolio.accounting.portfolio_engine import PortfolioEngine
from stockfolio.config import Settings
from stockfolio.domain.enums import TransactionKind
from stockfolio.domain.models.portfolio import PortfolioReport, PortfolioStats
from stockfolio.domain.models.transaction import Transaction
from stockfolio.report.excel_writer import SHEET_DEFS, ExcelWriter, build_rows


def _empty_report() -> PortfolioReport:
    return PortfolioReport(as_of=datetime(2025, 1, 1, tzinfo=UTC), stats=PortfolioStats())


def _report() -> PortfolioReport:
    log = [
        Transaction(id="d1", kind=TransactionKind.DEPOSIT, price=Decimal("5000"), date=date(2025, 1, 1)),
        Transaction(id="b1", ticker="PSO", kind=TransactionKind.BUY, quantity=Decimal("20"),
                    price=Decimal("100"), date=date(2025, 1, 2), commission=Decimal(0)),
        Transaction(id="s1", ticker="PSO", kind=TransactionKind.SELL, quantity=Decimal("5"),
                    price=Decimal("120"), date=date(2025, 1, 3), commission=Decimal(0)),
        Transaction(id="b2", ticker="HBL", kind=TransactionKind.BUY, quantity=Decimal("10"),
                    price=Decimal("90"), date=date(2025, 1, 3), commission=Decimal(0)),
    ]
    return PortfolioEngine(Settings()).calculate(
        [*log, {"id": "bad", "kind": "NOPE", "date": "2025-01-01"}],
        prices={"PSO": 110},
        as_of=datetime(2025, 1, 4, tzinfo=UTC),
    )


class TestExcelWriterEmpty:
    def test_produces_valid_xlsx(self):
        buf = ExcelWriter().write_to_buffer(_empty_report())

        assert isinstance(buf, BytesIO)
        assert buf.tell() == 0  # Rewound to start
        assert len(buf.getvalue()) > 0

    def test_sheet_names(self):
        wb = load_workbook(ExcelWriter().write_to_buffer(_empty_report()))
        assert wb.sheetnames == [sd[0] for sd in SHEET_DEFS]

    def test_each_sheet_has_headers(self):
        wb = load_workbook(ExcelWriter().write_to_buffer(_empty_report()))
        for sheet_name, headers, _ in SHEET_DEFS:
            row1 = [cell.value for cell in wb[sheet_name][1]]
            assert row1[:len(headers)] == headers, f"Sheet '{sheet_name}' headers mismatch"


class TestExcelWriterWithData:
    def test_holdings_rows(self):
        ws = load_workbook(ExcelWriter().write_to_buffer(_report()))["holdings"]
        rows = list(ws.iter_rows(min_row=2, values_only=True))

        assert [r[0] for r in rows] == ["HBL", "PSO"]
        pso = rows[1]
        assert pso[1] == 15
        assert pso[5] == 1650.0
        assert not pso[8]

    def test_stale_price_flagged(self):
        ws = load_workbook(ExcelWriter().write_to_buffer(_report()))["holdings"]
        hbl = next(ws.iter_rows(min_row=2, values_only=True))
        assert hbl[8] == "yes"

    def test_realized_rows(self):
        ws = load_workbook(ExcelWriter().write_to_buffer(_report()))["realized_gains"]
        rows = list(ws.iter_rows(min_row=2, values_only=True))

        assert rows == [("2025-01-03", "PSO", 5, 120, 500.0, 600.0, 100.0, 0, 0, 0, 0)]

    def test_performance_rows(self):
        ws = load_workbook(ExcelWriter().write_to_buffer(_report()))["performance"]
        rows = {r[0]: r for r in ws.iter_rows(min_row=2, values_only=True)}

        assert set(rows) == {"HBL", "PSO"}
        assert rows["PSO"][2] == 100.0  # Realized
        assert rows["PSO"][3] == 150.0  # Unrealized: 15 * (110 - 100)
        assert rows["PSO"][7] == 2  # Trades
        assert rows["PSO"][8] == 250.0

    def test_columns_sized_to_content(self):
        ws = load_workbook(ExcelWriter().write_to_buffer(_report()))["errors"]
        assert ws.column_dimensions["B"].width == 50

    def test_errors_sheet(self):
        ws = load_workbook(ExcelWriter().write_to_buffer(_report()))["errors"]
        rows = list(ws.iter_rows(min_row=2, values_only=True))
        assert rows[0][0] == "bad"

    def test_summary_values_are_numbers(self):
        ws = load_workbook(ExcelWriter().write_to_buffer(_report()))["summary"]
        values = {r[0]: r[1] for r in ws.iter_rows(min_row=2, values_only=True)}

        assert values["Realized P&L"] == 100.0
        assert values["Free Cash"] == 5000.0 - 2000.0 + 600.0 - 900.0


class TestBuildRows:
    def test_one_entry_per_sheet(self):
        rows = build_rows(_empty_report())
        assert set(rows) == {sd[0] for sd in SHEET_DEFS}
        assert rows["holdings"] == []

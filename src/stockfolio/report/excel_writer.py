"""ExcelWriter — exports a PortfolioReport to xlsx with openpyxl."""

from decimal import Decimal
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from stockfolio.domain.models.portfolio import PortfolioReport

MONEY = "#,##0.00"
QTY = "#,##0"
PERCENT = "0.00"
MAX_WIDTH = 50

# (sheet_name, headers, {0-based column: number format})
SHEET_DEFS: list[tuple[str, list[str], dict[int, str]]] = [
    (
        "summary",
        ["Metric", "Value"],
        {1: MONEY},
    ),
    (
        "holdings",
        ["Ticker", "Quantity", "Avg Cost", "Total Cost", "Price", "Market Value",
         "Unrealized P&L", "Unrealized %", "Price Stale", "Open Fees"],
        {1: QTY, 2: MONEY, 3: MONEY, 4: MONEY, 5: MONEY, 6: MONEY, 7: PERCENT, 9: MONEY},
    ),
    (
        "realized_gains",
        ["Date", "Ticker", "Quantity", "Sell Price", "Cost Basis", "Net Proceeds", "Gain/Loss",
         "Commission", "Sales Tax", "Depository", "Other Fees"],
        {2: QTY, **{col: MONEY for col in range(3, 11)}},
    ),
    (
        "performance",
        ["Ticker", "Open Quantity", "Realized P&L", "Unrealized P&L", "Dividends (Gross)",
         "Dividend Tax", "Fees Paid", "Trades", "Total Return"],
        {1: QTY, 2: MONEY, 3: MONEY, 4: MONEY, 5: MONEY, 6: MONEY, 8: MONEY},
    ),
    (
        "warnings",
        ["Kind", "Ticker", "Transaction", "Message"],
        {},
    ),
    (
        "errors",
        ["Transaction", "Reason"],
        {},
    ),
]

HEADER_FONT = Font(bold=True)


def _cell_value(value):
    # Cells hold floats
    if isinstance(value, Decimal):
        return float(value)
    return value


def build_rows(report: PortfolioReport) -> dict[str, list[tuple]]:
    """Tabulate the report, one list of row tuples per sheet."""
    stats = report.stats
    summary = [
        ("Total Value", stats.total_value),
        ("Total Cost", stats.total_cost),
        ("Unrealized P&L", stats.unrealized_pl),
        ("Realized P&L", stats.realized_pl),
        ("Net Realized P&L", stats.net_realized_pl),
        ("Dividends (Gross)", stats.dividends_gross),
        ("Dividend Tax", stats.dividends_tax),
        ("Dividends (Net)", stats.dividends_net),
        ("Commission", stats.fees.commission),
        ("Sales Tax", stats.fees.sales_tax),
        ("Depository Charges", stats.fees.depository),
        ("Other Fees", stats.fees.other_fees),
        ("Capital Gains Tax", stats.fees.capital_gains_tax),
        ("Annual Fees", stats.fees.annual_fees),
        ("Free Cash", stats.free_cash),
        ("Net Principal", stats.net_principal),
        ("Peak Principal", stats.peak_principal),
        ("Net Worth", stats.net_worth),
        ("ROI %", stats.roi),
        ("MWRR %", stats.mwrr),
    ]
    holdings = [
        (h.ticker, h.quantity, h.avg_cost, h.total_cost, h.current_price, h.market_value,
         h.unrealized_pl, h.unrealized_pl_percent, "yes" if h.price_stale else None, h.open_fees.total)
        for h in report.holdings
    ]
    realized = [
        (r.date.isoformat(), r.ticker, r.quantity_sold, r.sell_price, r.cost_basis, r.net_proceeds, r.gain,
         r.commission, r.sales_tax, r.depository_charge, r.other_fees)
        for r in report.realized
    ]
    performance = [
        (p.ticker, p.open_quantity, p.realized_pl, p.unrealized_pl, p.dividends_gross,
         p.dividend_tax, p.fees_paid.total, p.trade_count, p.total_return)
        for p in report.performance
    ]
    warnings = [(w.kind.value, w.ticker, w.transaction_id, w.message) for w in report.warnings]
    errors = [(e.transaction_id, e.reason) for e in report.errors]

    return {
        "summary": summary,
        "holdings": holdings,
        "realized_gains": realized,
        "performance": performance,
        "warnings": warnings,
        "errors": errors,
    }


def _fill_sheet(ws: Worksheet, headers: list[str], rows: list[tuple], num_fmts: dict[int, str]) -> None:
    ws.append(headers)
    for cell in ws[1]:
        cell.font = HEADER_FONT

    widths = [len(h) for h in headers]
    for row in rows:
        values = [_cell_value(v) for v in row]
        ws.append(values)
        for col, value in enumerate(values):
            if value is not None:
                widths[col] = max(widths[col], len(str(value)))

    for col, fmt in num_fmts.items():
        for (cell,) in ws.iter_rows(min_row=2, min_col=col + 1, max_col=col + 1):
            cell.number_format = fmt

    # Approximate: character count plus padding
    for col, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(col)].width = min(width + 3, MAX_WIDTH)


class ExcelWriter:
    """Writes a PortfolioReport to an in-memory Excel buffer, one sheet per SHEET_DEFS entry."""

    def write_to_buffer(self, report: PortfolioReport) -> BytesIO:
        rows_by_sheet = build_rows(report)

        wb = Workbook()
        wb.remove(wb.active)
        for sheet_name, headers, num_fmts in SHEET_DEFS:
            _fill_sheet(wb.create_sheet(title=sheet_name), headers, rows_by_sheet[sheet_name], num_fmts)

        buf = BytesIO()
        wb.save(buf)
        buf.seek(0)
        return buf

"""Per-ticker lifetime performance across every ticker ever traded or paid out."""

from collections.abc import Iterable, Mapping
from decimal import Decimal

from stockfolio.accounting.income import dividend_amounts
from stockfolio.domain.enums import TransactionKind
from stockfolio.domain.models.ledger import TickerLedger
from stockfolio.domain.models.portfolio import Holding, TickerPerformance
from stockfolio.domain.models.transaction import Transaction


def ticker_performance(
    ledgers: Mapping[str, TickerLedger],
    transactions: Iterable[Transaction],
    holdings: Iterable[Holding],
) -> list[TickerPerformance]:
    """Realized and unrealized P&L, dividends, fees and trade count per ticker.

    Closed positions are kept; a ticker with only dividends on record gets a
    row with no trades.
    """
    rows: dict[str, TickerPerformance] = {
        ticker: TickerPerformance(
            ticker=ticker,
            open_quantity=ledger.open_quantity,
            realized_pl=sum((r.gain for r in ledger.realized), Decimal(0)),
            fees_paid=ledger.fees_paid,
            trade_count=ledger.trade_count,
        )
        for ticker, ledger in ledgers.items()
    }

    for tx in transactions:
        if tx.kind != TransactionKind.DIVIDEND:
            continue
        row = rows.setdefault(tx.ticker, TickerPerformance(ticker=tx.ticker))
        gross, tax, _ = dividend_amounts(tx)
        row.dividends_gross += gross
        row.dividend_tax += tax

    for holding in holdings:
        if holding.ticker in rows:
            rows[holding.ticker].unrealized_pl = holding.unrealized_pl

    return [rows[ticker] for ticker in sorted(rows)]

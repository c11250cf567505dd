"""Realized P&L, capital gains tax and dividend aggregation."""

from collections.abc import Iterable
from decimal import Decimal

from stockfolio.domain.enums import TransactionKind
from stockfolio.domain.models.ledger import RealizedGainRecord
from stockfolio.domain.models.portfolio import IncomeSummary
from stockfolio.domain.models.transaction import Transaction


def dividend_amounts(tx: Transaction) -> tuple[Decimal, Decimal, Decimal]:
    """(gross, withholding tax, net) for a DIVIDEND. Price is dividend per share."""
    gross = tx.gross_value
    tax = tx.tax or Decimal(0)
    return gross, tax, gross - tax


def aggregate_income(
    realized: Iterable[RealizedGainRecord],
    transactions: Iterable[Transaction],
) -> IncomeSummary:
    """Sum trade gains, historical adjustments, CGT and dividends over the whole log.

    Capital gains tax is levied at filing time, so it is totalled on its own
    rather than folded into per-trade fees.
    """
    summary = IncomeSummary(
        trade_realized_pl=sum((r.gain for r in realized), Decimal(0)),
    )

    for tx in transactions:
        match tx.kind:
            case TransactionKind.DIVIDEND:
                gross, tax, net = dividend_amounts(tx)
                summary.dividends_gross += gross
                summary.dividends_tax += tax
                summary.dividends_net += net
            case TransactionKind.TAX_ADJUSTMENT:
                summary.capital_gains_tax += tx.price
            case TransactionKind.HISTORICAL_ADJUSTMENT:
                summary.historical_pl += tx.price
                summary.capital_gains_tax += tx.tax or Decimal(0)
            case _:
                pass

    return summary

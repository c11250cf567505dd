from enum import Enum


class TransactionKind(str, Enum):
    """Every event a portfolio transaction log can record."""

    BUY = "BUY"
    SELL = "SELL"
    DIVIDEND = "DIVIDEND"
    TAX_ADJUSTMENT = "TAX_ADJUSTMENT"  # Capital gains tax paid
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    ANNUAL_FEE = "ANNUAL_FEE"
    HISTORICAL_ADJUSTMENT = "HISTORICAL_ADJUSTMENT"  # P&L realized before the log starts


TRADE_KINDS = frozenset({TransactionKind.BUY, TransactionKind.SELL})

"""Derived reporting types, recomputed on every engine call."""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel

from stockfolio.domain.models.broker import FeeBreakdown
from stockfolio.domain.models.ledger import LedgerWarning, RealizedGainRecord


class Holding(BaseModel):
    """Valuation of one ticker's open lots at a given price."""

    ticker: str
    quantity: Decimal
    avg_cost: Decimal
    total_cost: Decimal
    current_price: Decimal
    market_value: Decimal
    unrealized_pl: Decimal
    unrealized_pl_percent: Decimal
    price_as_of: dt.datetime | None = None
    price_stale: bool = False
    daily_pl: Decimal = Decimal(0)
    open_fees: FeeBreakdown = FeeBreakdown()  # Trade fees carried by the open lots, pro-rated on sells
    warnings: list[LedgerWarning] = []


class FeeTotals(BaseModel):
    """Charges by category. Capital gains tax is kept apart from trade fees."""

    commission: Decimal = Decimal(0)
    sales_tax: Decimal = Decimal(0)
    depository: Decimal = Decimal(0)
    other_fees: Decimal = Decimal(0)
    dividend_tax: Decimal = Decimal(0)
    capital_gains_tax: Decimal = Decimal(0)
    annual_fees: Decimal = Decimal(0)

    @property
    def trading_fees(self) -> Decimal:
        return self.commission + self.sales_tax + self.depository + self.other_fees


class IncomeSummary(BaseModel):
    """Lifetime realized P&L and dividend income."""

    trade_realized_pl: Decimal = Decimal(0)
    historical_pl: Decimal = Decimal(0)
    capital_gains_tax: Decimal = Decimal(0)
    dividends_gross: Decimal = Decimal(0)
    dividends_tax: Decimal = Decimal(0)
    dividends_net: Decimal = Decimal(0)

    @property
    def realized_pl(self) -> Decimal:
        return self.trade_realized_pl + self.historical_pl

    @property
    def net_realized_pl(self) -> Decimal:
        return self.realized_pl - self.capital_gains_tax


class PortfolioStats(BaseModel):
    """Portfolio-level aggregate consumed by dashboards."""

    total_value: Decimal = Decimal(0)
    total_cost: Decimal = Decimal(0)
    unrealized_pl: Decimal = Decimal(0)
    unrealized_pl_percent: Decimal = Decimal(0)
    realized_pl: Decimal = Decimal(0)
    net_realized_pl: Decimal = Decimal(0)
    dividends_gross: Decimal = Decimal(0)
    dividends_tax: Decimal = Decimal(0)
    dividends_net: Decimal = Decimal(0)
    fees: FeeTotals = FeeTotals()
    free_cash: Decimal = Decimal(0)
    total_deposits: Decimal = Decimal(0)
    total_withdrawals: Decimal = Decimal(0)
    net_principal: Decimal = Decimal(0)
    peak_principal: Decimal = Decimal(0)
    reinvested_profits: Decimal = Decimal(0)
    net_worth: Decimal = Decimal(0)  # total_value + free_cash
    daily_pl: Decimal = Decimal(0)
    daily_pl_percent: Decimal = Decimal(0)
    roi: float = 0.0  # Simple, non-annualized, percent
    mwrr: float = 0.0  # XIRR, annualized, percent


class TickerPerformance(BaseModel):
    """Lifetime results for one ticker, open or closed."""

    ticker: str
    open_quantity: Decimal = Decimal(0)
    realized_pl: Decimal = Decimal(0)
    unrealized_pl: Decimal = Decimal(0)
    dividends_gross: Decimal = Decimal(0)
    dividend_tax: Decimal = Decimal(0)
    fees_paid: FeeBreakdown = FeeBreakdown()
    trade_count: int = 0

    @property
    def dividends_net(self) -> Decimal:
        return self.dividends_gross - self.dividend_tax

    @property
    def total_return(self) -> Decimal:
        return self.realized_pl + self.unrealized_pl + self.dividends_net


class TransactionError(BaseModel):
    """A record that was skipped because it could not be read."""

    transaction_id: str
    reason: str


class PortfolioReport(BaseModel):
    """Everything one engine run produces."""

    as_of: dt.datetime
    holdings: list[Holding] = []
    realized: list[RealizedGainRecord] = []
    performance: list[TickerPerformance] = []
    stats: PortfolioStats = PortfolioStats()
    warnings: list[LedgerWarning] = []
    errors: list[TransactionError] = []

"""Domain types for FIFO lot matching."""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from stockfolio.domain.enums import WarningKind
from stockfolio.domain.models.broker import FeeBreakdown


class Lot(BaseModel):
    """An open (or partially consumed) purchase block. Lives for one ledger run."""

    transaction_id: str
    opened_at: dt.date
    quantity: Decimal  # Remaining
    cost_per_share: Decimal  # (quantity * price + fees) / quantity at purchase

    @property
    def cost(self) -> Decimal:
        return self.quantity * self.cost_per_share


class RealizedGainRecord(BaseModel):
    """Outcome of matching one SELL against open lots."""

    model_config = ConfigDict(frozen=True)

    transaction_id: str
    ticker: str
    date: dt.date
    quantity_sold: Decimal
    cost_basis: Decimal
    net_proceeds: Decimal  # price * quantity_sold - fees
    gain: Decimal  # net_proceeds - cost_basis
    sell_price: Decimal = Decimal(0)
    commission: Decimal = Decimal(0)
    sales_tax: Decimal = Decimal(0)
    depository_charge: Decimal = Decimal(0)
    other_fees: Decimal = Decimal(0)

    @property
    def fees(self) -> Decimal:
        return self.commission + self.sales_tax + self.depository_charge + self.other_fees

    @property
    def average_cost(self) -> Decimal:
        if self.quantity_sold == 0:
            return Decimal(0)
        return self.cost_basis / self.quantity_sold


class LedgerWarning(BaseModel):
    """A data anomaly that did not stop the computation."""

    kind: WarningKind
    ticker: str
    transaction_id: str | None = None
    message: str


class TickerLedger(BaseModel):
    """Result of one ticker's pass over the transaction log."""

    ticker: str
    open_lots: list[Lot] = []
    realized: list[RealizedGainRecord] = []
    warnings: list[LedgerWarning] = []
    last_trade_price: Decimal | None = None
    trade_fees: dict[str, FeeBreakdown] = {}  # transaction id -> fees applied
    fees_paid: FeeBreakdown = FeeBreakdown()  # All trades, lifetime
    open_fees: FeeBreakdown = FeeBreakdown()  # Share of fees still carried by open lots
    trade_count: int = 0

    @property
    def open_quantity(self) -> Decimal:
        return sum((lot.quantity for lot in self.open_lots), Decimal(0))

    @property
    def open_cost(self) -> Decimal:
        return sum((lot.cost for lot in self.open_lots), Decimal(0))

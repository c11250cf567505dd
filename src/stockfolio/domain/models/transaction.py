"""Transaction log types: the only input the engine derives everything from."""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from stockfolio.domain.enums import TransactionKind


class Transaction(BaseModel):
    """One recorded portfolio event. Never mutated by the engine."""

    model_config = ConfigDict(frozen=True)

    id: str
    ticker: str = ""
    kind: TransactionKind
    quantity: Decimal = Decimal(0)
    price: Decimal = Decimal(0)  # Per share for trades/dividends, cash amount otherwise
    date: dt.date
    broker_ref: str | None = None
    commission: Decimal | None = None  # None = not recorded, evaluate the broker schedule
    tax: Decimal | None = None  # Sales tax (trades), WHT (dividends), CGT (historical)
    depository_charge: Decimal | None = None
    other_fees: Decimal = Decimal(0)
    intraday: bool = False
    notes: str = ""

    @field_validator("ticker")
    @classmethod
    def _normalize_ticker(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("quantity", "commission", "tax", "depository_charge", "other_fees")
    @classmethod
    def _non_negative(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and v < 0:
            raise ValueError("must be non-negative")
        return v

    @model_validator(mode="after")
    def _check_price(self) -> "Transaction":
        # Historical adjustments carry a signed P&L in price
        if self.price < 0 and self.kind != TransactionKind.HISTORICAL_ADJUSTMENT:
            raise ValueError(f"price must be non-negative for {self.kind.value}")
        if self.kind in (TransactionKind.BUY, TransactionKind.SELL, TransactionKind.DIVIDEND) and not self.ticker:
            raise ValueError(f"ticker is required for {self.kind.value}")
        return self

    @property
    def gross_value(self) -> Decimal:
        """quantity * price: trade value, or gross dividend."""
        return self.quantity * self.price

    @property
    def fees_recorded(self) -> bool:
        return any(f is not None for f in (self.commission, self.tax, self.depository_charge))


class PriceQuote(BaseModel):
    """Last known market price for a ticker."""

    price: Decimal = Field(ge=0)
    as_of: dt.datetime | None = None


class CashFlow(BaseModel):
    """A dated cash movement. Negative = contributed, positive = returned."""

    amount: Decimal
    date: dt.date

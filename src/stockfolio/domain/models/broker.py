"""Broker fee configuration and evaluated charges."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from stockfolio.domain.enums import CommissionKind, DepositoryKind


class FeeSlab(BaseModel):
    """A price band of a tiered commission table (stored, never evaluated)."""

    min_price: Decimal
    max_price: Decimal | None = None
    rate: Decimal


class BrokerFeeSchedule(BaseModel):
    """Per-broker commission, sales tax and depository configuration.

    Rates are validated when the schedule is evaluated, not on construction,
    so a misconfigured broker surfaces as ConfigurationError.
    """

    broker_id: str
    name: str = ""
    commission_kind: CommissionKind = CommissionKind.HIGHER_OF
    rate1: Decimal = Decimal(0)  # Percent of trade value, or per-share / fixed amount
    rate2: Decimal | None = None  # Per-share floor for HIGHER_OF
    sales_tax_rate: Decimal = Decimal(0)  # Percent of commission
    depository_kind: DepositoryKind = DepositoryKind.PER_SHARE
    depository_rate: Decimal = Decimal(0)
    depository_min: Decimal | None = None
    slabs: list[FeeSlab] | None = None
    annual_fee: Decimal = Decimal(0)
    fee_start_date: date | None = None


class FeeBreakdown(BaseModel):
    """Itemized charges for one trade. Unrounded."""

    commission: Decimal = Decimal(0)
    sales_tax: Decimal = Decimal(0)
    depository_charge: Decimal = Decimal(0)
    other_fees: Decimal = Decimal(0)

    @property
    def total(self) -> Decimal:
        return self.commission + self.sales_tax + self.depository_charge + self.other_fees

    def plus(self, other: "FeeBreakdown") -> "FeeBreakdown":
        return FeeBreakdown(
            commission=self.commission + other.commission,
            sales_tax=self.sales_tax + other.sales_tax,
            depository_charge=self.depository_charge + other.depository_charge,
            other_fees=self.other_fees + other.other_fees,
        )

    def scaled(self, ratio: Decimal) -> "FeeBreakdown":
        return FeeBreakdown(
            commission=self.commission * ratio,
            sales_tax=self.sales_tax * ratio,
            depository_charge=self.depository_charge * ratio,
            other_fees=self.other_fees * ratio,
        )

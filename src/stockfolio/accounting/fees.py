"""Broker fee schedule evaluation — pure functions, no rounding.

Commission, sales tax on commission and the depository (CDC) charge are
itemized separately. Callers round at presentation time only.
"""

from decimal import Decimal
from typing import assert_never

from stockfolio.domain.enums import CommissionKind, DepositoryKind
from stockfolio.domain.models.broker import BrokerFeeSchedule, FeeBreakdown
from stockfolio.domain.models.transaction import Transaction
from stockfolio.exceptions import ConfigurationError

HUNDRED = Decimal(100)


def validate_schedule(schedule: BrokerFeeSchedule) -> None:
    """Raise ConfigurationError if a rate is negative or a required rate is missing."""
    rates = {
        "rate1": schedule.rate1,
        "rate2": schedule.rate2,
        "sales_tax_rate": schedule.sales_tax_rate,
        "depository_rate": schedule.depository_rate,
        "depository_min": schedule.depository_min,
        "annual_fee": schedule.annual_fee,
    }
    for name, value in rates.items():
        if value is not None and value < 0:
            raise ConfigurationError(schedule.broker_id, f"{name} must be non-negative, got {value}")

    if schedule.commission_kind == CommissionKind.HIGHER_OF and schedule.rate2 is None:
        raise ConfigurationError(schedule.broker_id, "HIGHER_OF commission requires rate2")
    if schedule.depository_kind == DepositoryKind.HIGHER_OF and schedule.depository_min is None:
        raise ConfigurationError(schedule.broker_id, "HIGHER_OF depository charge requires depository_min")


def calculate_commission(price: Decimal, quantity: Decimal, schedule: BrokerFeeSchedule) -> Decimal:
    trade_value = price * quantity
    match schedule.commission_kind:
        case CommissionKind.PERCENTAGE | CommissionKind.SLAB:
            # Slab tables are not evaluated; SLAB falls back to the flat rate
            return trade_value * schedule.rate1 / HUNDRED
        case CommissionKind.PER_SHARE:
            return quantity * schedule.rate1
        case CommissionKind.FIXED:
            return schedule.rate1
        case CommissionKind.HIGHER_OF:
            per_share = quantity * (schedule.rate2 or Decimal(0))
            percentage = trade_value * schedule.rate1 / HUNDRED
            return max(per_share, percentage)
        case _:
            assert_never(schedule.commission_kind)


def calculate_depository_charge(quantity: Decimal, schedule: BrokerFeeSchedule) -> Decimal:
    match schedule.depository_kind:
        case DepositoryKind.PER_SHARE:
            return quantity * schedule.depository_rate
        case DepositoryKind.FIXED:
            return schedule.depository_rate
        case DepositoryKind.HIGHER_OF:
            return max(quantity * schedule.depository_rate, schedule.depository_min or Decimal(0))
        case _:
            assert_never(schedule.depository_kind)


def evaluate_fees(price: Decimal, quantity: Decimal, schedule: BrokerFeeSchedule) -> FeeBreakdown:
    """Itemize the charges for one trade under a broker's schedule.

    Sales tax is levied on the commission, never on the trade value.
    """
    validate_schedule(schedule)

    commission = calculate_commission(price, quantity, schedule)
    sales_tax = commission * schedule.sales_tax_rate / HUNDRED
    depository = calculate_depository_charge(quantity, schedule)

    return FeeBreakdown(
        commission=commission,
        sales_tax=sales_tax,
        depository_charge=depository,
    )


def resolve_trade_fees(
    tx: Transaction,
    schedule: BrokerFeeSchedule | None,
) -> FeeBreakdown | None:
    """Fees to apply to a BUY/SELL.

    Recorded fees win; missing items among recorded ones count as zero.
    With nothing recorded, the broker schedule is evaluated. Returns None
    when nothing is recorded and no schedule is known.
    """
    if tx.fees_recorded:
        return FeeBreakdown(
            commission=tx.commission or Decimal(0),
            sales_tax=tx.tax or Decimal(0),
            depository_charge=tx.depository_charge or Decimal(0),
            other_fees=tx.other_fees,
        )
    if schedule is None:
        return None

    evaluated = evaluate_fees(tx.price, tx.quantity, schedule)
    return evaluated.model_copy(update={"other_fees": tx.other_fees})

"""Annual broker account fees, accrued as ANNUAL_FEE transactions."""

import datetime as dt
from collections.abc import Iterable

from stockfolio.domain.enums import TransactionKind
from stockfolio.domain.models.broker import BrokerFeeSchedule
from stockfolio.domain.models.transaction import Transaction


def _anniversary(start: dt.date, years: int) -> dt.date:
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        # 29 Feb start on a non-leap year
        return start.replace(year=start.year + years, day=28)


def annual_fee_id(broker_id: str, year: int) -> str:
    return f"auto-fee-{broker_id}-{year}"


def accrue_annual_fees(
    schedules: Iterable[BrokerFeeSchedule],
    transactions: Iterable[Transaction],
    today: dt.date,
) -> list[Transaction]:
    """ANNUAL_FEE transactions due up to `today` that the log does not have yet.

    A fee falls due on each anniversary of `fee_start_date`. Ids are
    deterministic per broker and year so re-running never duplicates.
    """
    existing = {tx.id for tx in transactions}
    new_fees: list[Transaction] = []

    for schedule in schedules:
        if schedule.annual_fee <= 0 or schedule.fee_start_date is None:
            continue

        years = 1
        due = _anniversary(schedule.fee_start_date, years)
        while due <= today:
            tx_id = annual_fee_id(schedule.broker_id, due.year)
            if tx_id not in existing:
                new_fees.append(Transaction(
                    id=tx_id,
                    ticker="",
                    kind=TransactionKind.ANNUAL_FEE,
                    quantity=1,
                    price=schedule.annual_fee,
                    date=due,
                    broker_ref=schedule.broker_id,
                    notes=f"Annual broker fee ({due.year})",
                ))
            years += 1
            due = _anniversary(schedule.fee_start_date, years)

    return new_fees

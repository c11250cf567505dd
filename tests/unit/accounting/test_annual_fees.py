"""Tests for annual broker fee accrual."""

from datetime import date
from decimal import Decimal

from stockfolio.accounting.annual_fees import accrue_annual_fees, annual_fee_id
from stockfolio.domain.enums import TransactionKind
from stockfolio.domain.models.broker import BrokerFeeSchedule


def _schedule(start: date | None = date(2023, 3, 15), fee: str = "500") -> BrokerFeeSchedule:
    return BrokerFeeSchedule(broker_id="akd", annual_fee=Decimal(fee), fee_start_date=start)


class TestAccrueAnnualFees:
    def test_one_fee_per_anniversary(self):
        fees = accrue_annual_fees([_schedule()], [], today=date(2025, 6, 1))

        assert [tx.date for tx in fees] == [date(2024, 3, 15), date(2025, 3, 15)]
        assert all(tx.kind == TransactionKind.ANNUAL_FEE for tx in fees)
        assert all(tx.price == Decimal("500") for tx in fees)
        assert fees[0].id == "auto-fee-akd-2024"
        assert fees[0].broker_ref == "akd"

    def test_anniversary_day_is_due(self):
        fees = accrue_annual_fees([_schedule()], [], today=date(2024, 3, 15))
        assert len(fees) == 1

    def test_nothing_due_in_first_year(self):
        assert accrue_annual_fees([_schedule()], [], today=date(2024, 3, 14)) == []

    def test_existing_fees_not_duplicated(self):
        first = accrue_annual_fees([_schedule()], [], today=date(2024, 6, 1))
        again = accrue_annual_fees([_schedule()], first, today=date(2025, 6, 1))

        assert [tx.id for tx in again] == [annual_fee_id("akd", 2025)]

    def test_schedules_without_fee_skipped(self):
        schedules = [_schedule(fee="0"), _schedule(start=None)]
        assert accrue_annual_fees(schedules, [], today=date(2030, 1, 1)) == []

    def test_leap_day_start(self):
        fees = accrue_annual_fees([_schedule(start=date(2024, 2, 29))], [], today=date(2028, 3, 1))
        assert [tx.date for tx in fees] == [
            date(2025, 2, 28), date(2026, 2, 28), date(2027, 2, 28), date(2028, 2, 29),
        ]

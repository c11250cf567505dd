"""PortfolioEngine — orchestrates ledgers, valuation, income and returns.

Every call recomputes from the full transaction log, the broker schedules and
the price map it is given. Nothing is cached between calls.
"""

import datetime as dt
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from stockfolio.accounting.fees import validate_schedule
from stockfolio.accounting.fifo import build_ledgers, chronological
from stockfolio.accounting.income import aggregate_income, dividend_amounts
from stockfolio.accounting.performance import ticker_performance
from stockfolio.accounting.valuation import PriceInput, value_holdings
from stockfolio.accounting.xirr import simple_roi, xirr
from stockfolio.config import Settings
from stockfolio.config import settings as default_settings
from stockfolio.domain.enums import TRADE_KINDS, TransactionKind
from stockfolio.domain.models.broker import BrokerFeeSchedule, FeeBreakdown
from stockfolio.domain.models.ledger import RealizedGainRecord, TickerLedger
from stockfolio.domain.models.portfolio import (
    FeeTotals,
    Holding,
    IncomeSummary,
    PortfolioReport,
    PortfolioStats,
)
from stockfolio.domain.models.transaction import CashFlow, Transaction
from stockfolio.infra.transactions import parse_transactions

logger = logging.getLogger(__name__)


@dataclass
class CashSummary:
    """Cash-side totals from one pass over the log."""

    deposits: Decimal = Decimal(0)
    withdrawals: Decimal = Decimal(0)
    buy_cost: Decimal = Decimal(0)  # Trade value + fees
    sell_proceeds: Decimal = Decimal(0)  # Trade value - fees
    annual_fees: Decimal = Decimal(0)
    tax_adjustments: Decimal = Decimal(0)
    historical_pl: Decimal = Decimal(0)
    historical_tax: Decimal = Decimal(0)
    dividends_net: Decimal = Decimal(0)

    @property
    def free_cash(self) -> Decimal:
        return (
            self.deposits
            - self.withdrawals
            - self.buy_cost
            + self.sell_proceeds
            + self.dividends_net
            - self.annual_fees
            - self.tax_adjustments
            + self.historical_pl
            - self.historical_tax
        )


@dataclass
class PrincipalSummary:
    net_principal: Decimal = Decimal(0)
    peak_principal: Decimal = Decimal(0)


def _as_schedule_map(
    schedules: Mapping[str, BrokerFeeSchedule] | Iterable[BrokerFeeSchedule] | None,
) -> dict[str, BrokerFeeSchedule]:
    if schedules is None:
        return {}
    if isinstance(schedules, Mapping):
        return dict(schedules)
    return {s.broker_id: s for s in schedules}


def _fee_total(tx: Transaction, trade_fees: Mapping[str, FeeBreakdown]) -> Decimal:
    fees = trade_fees.get(tx.id)
    return fees.total if fees is not None else Decimal(0)


class PortfolioEngine:
    """Transaction log + fee schedules + prices -> PortfolioReport."""

    def __init__(self, config: Settings | None = None) -> None:
        self._settings = config or default_settings

    def calculate(
        self,
        transactions: Iterable[Transaction | Mapping[str, Any]],
        schedules: Mapping[str, BrokerFeeSchedule] | Iterable[BrokerFeeSchedule] | None = None,
        prices: Mapping[str, PriceInput] | None = None,
        as_of: dt.datetime | None = None,
        previous_close: Mapping[str, PriceInput] | None = None,
    ) -> PortfolioReport:
        """Run the full computation.

        Args:
            transactions: Log in recorded order; raw dicts are validated one by one.
            schedules: broker_id -> schedule, or a list of schedules.
            prices: ticker -> PriceQuote or bare price.
            as_of: Valuation time; defaults to now (UTC).
            previous_close: ticker -> previous close, for daily P&L.

        Raises:
            ConfigurationError: a supplied fee schedule is invalid.
        """
        as_of = as_of or dt.datetime.now(dt.UTC)
        prices = prices or {}
        schedule_map = _as_schedule_map(schedules)
        for schedule in schedule_map.values():
            validate_schedule(schedule)

        log, errors = parse_transactions(transactions)
        log = chronological(log)

        # 1. Lot ledgers per ticker
        ledgers = build_ledgers(log, schedule_map, self._settings.matching_policy)
        realized = sorted(
            (r for ledger in ledgers.values() for r in ledger.realized),
            key=lambda r: r.date,
        )

        # 2. Holdings
        holdings = value_holdings(
            ledgers,
            prices,
            as_of,
            stale_after=dt.timedelta(hours=self._settings.price_stale_after_hours),
            previous_close=previous_close,
            include_closed=self._settings.include_closed_holdings,
        )

        # 3. Income, cash and fees. Trade fees come from the ledgers only.
        trade_fees = {
            tx_id: fb for ledger in ledgers.values() for tx_id, fb in ledger.trade_fees.items()
        }
        income = aggregate_income(realized, log)
        cash = self._summarize_cash(log, trade_fees)
        fees = self._fee_totals(log, trade_fees, income)
        principal = self._track_principal(log, ledgers)

        stats = self._build_stats(holdings, income, cash, fees, principal, log, trade_fees, as_of)

        warnings = [w for ledger in ledgers.values() for w in ledger.warnings]
        # Price warnings exist only on holdings
        warnings.extend(
            w for h in holdings for w in h.warnings
            if w not in ledgers[h.ticker].warnings
        )

        logger.info(
            "Portfolio computed: %d transactions, %d holdings, %d realized, %d warnings, %d errors",
            len(log), len(holdings), len(realized), len(warnings), len(errors),
        )

        return PortfolioReport(
            as_of=as_of,
            holdings=holdings,
            realized=realized,
            performance=ticker_performance(ledgers, log, holdings),
            stats=stats,
            warnings=warnings,
            errors=errors,
        )

    # ── Cash ────────────────────────────────────────────────────

    def _summarize_cash(
        self,
        log: list[Transaction],
        trade_fees: Mapping[str, FeeBreakdown],
    ) -> CashSummary:
        cash = CashSummary()
        for tx in log:
            if tx.kind in TRADE_KINDS and tx.quantity == 0:
                continue
            match tx.kind:
                case TransactionKind.DEPOSIT:
                    cash.deposits += tx.price
                case TransactionKind.WITHDRAWAL:
                    cash.withdrawals += tx.price
                case TransactionKind.BUY:
                    cash.buy_cost += tx.gross_value + _fee_total(tx, trade_fees)
                case TransactionKind.SELL:
                    cash.sell_proceeds += tx.gross_value - _fee_total(tx, trade_fees)
                case TransactionKind.DIVIDEND:
                    cash.dividends_net += dividend_amounts(tx)[2]
                case TransactionKind.ANNUAL_FEE:
                    cash.annual_fees += tx.price
                case TransactionKind.TAX_ADJUSTMENT:
                    cash.tax_adjustments += tx.price
                case TransactionKind.HISTORICAL_ADJUSTMENT:
                    cash.historical_pl += tx.price
                    cash.historical_tax += tx.tax or Decimal(0)
        return cash

    def _fee_totals(
        self,
        log: list[Transaction],
        trade_fees: Mapping[str, FeeBreakdown],
        income: IncomeSummary,
    ) -> FeeTotals:
        totals = FeeTotals(
            dividend_tax=income.dividends_tax,
            capital_gains_tax=income.capital_gains_tax,
        )
        for tx in log:
            if tx.kind == TransactionKind.ANNUAL_FEE:
                totals.annual_fees += tx.price
                continue
            fees = trade_fees.get(tx.id) if tx.kind in TRADE_KINDS else None
            if fees is None:
                continue
            totals.commission += fees.commission
            totals.sales_tax += fees.sales_tax
            totals.depository += fees.depository_charge
            totals.other_fees += fees.other_fees
        return totals

    # ── Principal ───────────────────────────────────────────────

    @staticmethod
    def _track_principal(log: list[Transaction], ledgers: Mapping[str, TickerLedger]) -> PrincipalSummary:
        """Walk deposits/withdrawals against a profit buffer.

        Withdrawals come out of accumulated profit first and only then out of
        principal. Losses, annual fees and tax payments drain the buffer.
        """
        gains: dict[str, Decimal] = {
            r.transaction_id: r.gain
            for ledger in ledgers.values()
            for r in ledger.realized
        }
        principal = Decimal(0)
        peak = Decimal(0)
        buffer = Decimal(0)

        for tx in log:
            match tx.kind:
                case TransactionKind.DEPOSIT:
                    principal += tx.price
                    peak = max(peak, principal)
                case TransactionKind.WITHDRAWAL:
                    if buffer >= tx.price:
                        buffer -= tx.price
                    else:
                        principal -= tx.price - buffer
                        buffer = Decimal(0)
                case TransactionKind.ANNUAL_FEE | TransactionKind.TAX_ADJUSTMENT:
                    buffer -= tx.price
                case TransactionKind.DIVIDEND:
                    net = dividend_amounts(tx)[2]
                    if net >= 0:
                        buffer += net
                case TransactionKind.HISTORICAL_ADJUSTMENT:
                    buffer += tx.price
                case TransactionKind.SELL:
                    buffer += gains.get(tx.id, Decimal(0))
                case _:
                    pass

        return PrincipalSummary(net_principal=max(Decimal(0), principal), peak_principal=peak)

    # ── Returns ─────────────────────────────────────────────────

    def _return_inputs(
        self,
        log: list[Transaction],
        trade_fees: Mapping[str, FeeBreakdown],
        cash: CashSummary,
        total_value: Decimal,
        as_of: dt.datetime,
    ) -> tuple[list[CashFlow], Decimal, Decimal, Decimal]:
        """(cash flows, current value, distributions, contributed) for ROI and XIRR.

        With deposits on record, only external cash movements count and the
        terminal value includes free cash. A trade-only log falls back to
        trades and dividends as the flows, valued at market value.
        """
        flows: list[CashFlow] = []
        today = as_of.date()

        if cash.deposits > 0:
            for tx in log:
                if tx.kind == TransactionKind.DEPOSIT:
                    flows.append(CashFlow(amount=-tx.price, date=tx.date))
                elif tx.kind == TransactionKind.WITHDRAWAL:
                    flows.append(CashFlow(amount=tx.price, date=tx.date))
            current = total_value + cash.free_cash
            distributions = cash.withdrawals
            contributed = cash.deposits
        else:
            for tx in log:
                if tx.kind in TRADE_KINDS and tx.quantity == 0:
                    continue
                if tx.kind == TransactionKind.BUY:
                    amount = tx.gross_value + _fee_total(tx, trade_fees)
                    flows.append(CashFlow(amount=-amount, date=tx.date))
                elif tx.kind == TransactionKind.SELL:
                    amount = tx.gross_value - _fee_total(tx, trade_fees)
                    flows.append(CashFlow(amount=amount, date=tx.date))
                elif tx.kind == TransactionKind.DIVIDEND:
                    flows.append(CashFlow(amount=dividend_amounts(tx)[2], date=tx.date))
            current = total_value
            distributions = cash.sell_proceeds + cash.dividends_net + cash.historical_pl
            contributed = cash.buy_cost

        if current > 0:
            flows.append(CashFlow(amount=current, date=today))
        return flows, current, distributions, contributed

    def _build_stats(
        self,
        holdings: list[Holding],
        income: IncomeSummary,
        cash: CashSummary,
        fees: FeeTotals,
        principal: PrincipalSummary,
        log: list[Transaction],
        trade_fees: Mapping[str, FeeBreakdown],
        as_of: dt.datetime,
    ) -> PortfolioStats:
        total_value = sum((h.market_value for h in holdings), Decimal(0))
        total_cost = sum((h.total_cost for h in holdings), Decimal(0))
        unrealized = total_value - total_cost
        daily_pl = sum((h.daily_pl for h in holdings), Decimal(0))
        yesterday_value = total_value - daily_pl

        flows, current, distributions, contributed = self._return_inputs(
            log, trade_fees, cash, total_value, as_of,
        )
        cfg = self._settings
        mwrr = xirr(
            flows,
            guess=cfg.xirr_guess,
            max_iterations=cfg.xirr_max_iterations,
            tolerance=cfg.xirr_tolerance,
            derivative_floor=cfg.xirr_derivative_floor,
            days_per_year=cfg.days_per_year,
        )

        free_cash = cash.free_cash
        return PortfolioStats(
            total_value=total_value,
            total_cost=total_cost,
            unrealized_pl=unrealized,
            unrealized_pl_percent=unrealized / total_cost * 100 if total_cost > 0 else Decimal(0),
            realized_pl=income.realized_pl,
            net_realized_pl=income.net_realized_pl,
            dividends_gross=income.dividends_gross,
            dividends_tax=income.dividends_tax,
            dividends_net=income.dividends_net,
            fees=fees,
            free_cash=free_cash,
            total_deposits=cash.deposits,
            total_withdrawals=cash.withdrawals,
            net_principal=principal.net_principal,
            peak_principal=principal.peak_principal,
            reinvested_profits=max(Decimal(0), total_cost - principal.net_principal),
            net_worth=total_value + free_cash,
            daily_pl=daily_pl,
            daily_pl_percent=daily_pl / yesterday_value * 100 if yesterday_value > 0 else Decimal(0),
            roi=simple_roi(current, distributions, contributed),
            mwrr=mwrr,
        )


def realized_history(report: PortfolioReport, ticker: str | None = None) -> list[RealizedGainRecord]:
    """Realized records, optionally for one ticker, oldest first."""
    if ticker is None:
        return list(report.realized)
    ticker = ticker.strip().upper()
    return [r for r in report.realized if r.ticker == ticker]

"""FIFO lot matching — pure functions, no I/O.

Each ticker gets its own queue of open lots, oldest first. A BUY appends a
lot carrying its acquisition fees in the per-share cost; a SELL consumes from
the head. Same-day trades keep the order they were recorded in.
"""

import logging
from collections import deque
from collections.abc import Iterable, Mapping
from decimal import Decimal

from stockfolio.accounting.fees import resolve_trade_fees
from stockfolio.domain.enums import MatchingPolicy, TransactionKind, WarningKind
from stockfolio.domain.models.broker import BrokerFeeSchedule, FeeBreakdown
from stockfolio.domain.models.ledger import LedgerWarning, Lot, RealizedGainRecord, TickerLedger
from stockfolio.domain.models.transaction import Transaction

logger = logging.getLogger(__name__)


def chronological(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Sort by date; the sort is stable so ties keep log order."""
    return sorted(transactions, key=lambda tx: tx.date)


def traded_tickers(transactions: Iterable[Transaction]) -> list[str]:
    return sorted({
        tx.ticker for tx in transactions
        if tx.kind in (TransactionKind.BUY, TransactionKind.SELL)
    })


def _fees_for(
    tx: Transaction,
    schedules: Mapping[str, BrokerFeeSchedule],
    warnings: list[LedgerWarning],
) -> FeeBreakdown:
    schedule = schedules.get(tx.broker_ref) if tx.broker_ref else None
    fees = resolve_trade_fees(tx, schedule)
    if fees is not None:
        return fees

    logger.warning("No fees recorded and no schedule for broker %r on %s", tx.broker_ref, tx.id)
    warnings.append(LedgerWarning(
        kind=WarningKind.MISSING_FEE_SCHEDULE,
        ticker=tx.ticker,
        transaction_id=tx.id,
        message=f"No fees recorded and no fee schedule for broker {tx.broker_ref!r}; fees taken as zero",
    ))
    return FeeBreakdown(other_fees=tx.other_fees)


def _consume(lot: Lot, wanted: Decimal) -> tuple[Decimal, Decimal]:
    """Take up to `wanted` shares from a lot. Returns (taken, cost)."""
    taken = min(wanted, lot.quantity)
    lot.quantity -= taken
    return taken, taken * lot.cost_per_share


def _match_sell(
    queue: deque[Lot],
    tx: Transaction,
    policy: MatchingPolicy,
) -> tuple[Decimal, Decimal]:
    """Consume lots for a SELL. Returns (matched_quantity, cost_basis)."""
    remaining = tx.quantity
    matched = Decimal(0)
    cost_basis = Decimal(0)

    if policy == MatchingPolicy.INTRADAY_FIRST and tx.intraday:
        for lot in queue:
            if remaining <= 0:
                break
            if lot.opened_at != tx.date:
                continue
            taken, cost = _consume(lot, remaining)
            remaining -= taken
            matched += taken
            cost_basis += cost
        # Same-day lots may sit mid-queue; drop the exhausted ones
        survivors = [lot for lot in queue if lot.quantity > 0]
        queue.clear()
        queue.extend(survivors)

    while remaining > 0 and queue:
        front = queue[0]
        taken, cost = _consume(front, remaining)
        remaining -= taken
        matched += taken
        cost_basis += cost
        if front.quantity <= 0:
            queue.popleft()

    return matched, cost_basis


def run_ledger(
    ticker: str,
    transactions: Iterable[Transaction],
    schedules: Mapping[str, BrokerFeeSchedule] | None = None,
    policy: MatchingPolicy = MatchingPolicy.FIFO,
) -> TickerLedger:
    """Match one ticker's BUY/SELL history.

    Args:
        ticker: Symbol to process; other tickers in `transactions` are ignored.
        transactions: Log in recorded order. Sorted by date here.
        schedules: broker_ref -> fee schedule, used when a trade has no recorded fees.
        policy: Lot selection order for SELLs flagged intraday.

    Returns:
        TickerLedger with surviving lots, one RealizedGainRecord per matched SELL
        and any warnings (over-sell, missing fee schedule, zero quantity).
    """
    schedules = schedules or {}
    queue: deque[Lot] = deque()
    realized: list[RealizedGainRecord] = []
    warnings: list[LedgerWarning] = []
    last_price: Decimal | None = None
    trade_fees: dict[str, FeeBreakdown] = {}
    fees_paid = FeeBreakdown()
    open_fees = FeeBreakdown()
    trade_count = 0

    trades = [
        tx for tx in chronological(transactions)
        if tx.ticker == ticker and tx.kind in (TransactionKind.BUY, TransactionKind.SELL)
    ]

    for tx in trades:
        if tx.quantity == 0:
            warnings.append(LedgerWarning(
                kind=WarningKind.ZERO_QUANTITY,
                ticker=ticker,
                transaction_id=tx.id,
                message=f"{tx.kind.value} with zero quantity ignored",
            ))
            continue

        fees = _fees_for(tx, schedules, warnings)
        last_price = tx.price
        trade_fees[tx.id] = fees
        trade_count += 1
        fees_paid = fees_paid.plus(fees)

        if tx.kind == TransactionKind.BUY:
            queue.append(Lot(
                transaction_id=tx.id,
                opened_at=tx.date,
                quantity=tx.quantity,
                cost_per_share=(tx.gross_value + fees.total) / tx.quantity,
            ))
            open_fees = open_fees.plus(fees)
            continue

        available = sum((lot.quantity for lot in queue), Decimal(0))
        matched, cost_basis = _match_sell(queue, tx, policy)

        if matched < tx.quantity:
            logger.warning(
                "Over-sell on %s (%s): requested %s, available %s",
                ticker, tx.id, tx.quantity, available,
            )
            warnings.append(LedgerWarning(
                kind=WarningKind.OVERSELL,
                ticker=ticker,
                transaction_id=tx.id,
                message=f"Sell of {tx.quantity} exceeds open quantity {available}; matched {matched}",
            ))

        if available > 0:
            open_fees = open_fees.scaled((available - matched) / available)

        if matched == 0:
            continue

        net_proceeds = tx.price * matched - fees.total
        realized.append(RealizedGainRecord(
            transaction_id=tx.id,
            ticker=ticker,
            date=tx.date,
            quantity_sold=matched,
            cost_basis=cost_basis,
            net_proceeds=net_proceeds,
            gain=net_proceeds - cost_basis,
            sell_price=tx.price,
            commission=fees.commission,
            sales_tax=fees.sales_tax,
            depository_charge=fees.depository_charge,
            other_fees=fees.other_fees,
        ))

    return TickerLedger(
        ticker=ticker,
        open_lots=[lot for lot in queue if lot.quantity > 0],
        realized=realized,
        warnings=warnings,
        last_trade_price=last_price,
        trade_fees=trade_fees,
        fees_paid=fees_paid,
        open_fees=open_fees,
        trade_count=trade_count,
    )


def build_ledgers(
    transactions: list[Transaction],
    schedules: Mapping[str, BrokerFeeSchedule] | None = None,
    policy: MatchingPolicy = MatchingPolicy.FIFO,
) -> dict[str, TickerLedger]:
    """Run the ledger for every traded ticker. Tickers are independent."""
    return {
        ticker: run_ledger(ticker, transactions, schedules, policy)
        for ticker in traded_tickers(transactions)
    }

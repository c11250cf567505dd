"""Position valuation: open lots + last known price -> Holding."""

import datetime as dt
from collections.abc import Mapping
from decimal import Decimal

from stockfolio.domain.enums import WarningKind
from stockfolio.domain.models.ledger import LedgerWarning, TickerLedger
from stockfolio.domain.models.portfolio import Holding
from stockfolio.domain.models.transaction import PriceQuote

PriceInput = PriceQuote | Decimal | int | float | str


def to_quote(value: PriceInput) -> PriceQuote:
    if isinstance(value, PriceQuote):
        return value
    return PriceQuote(price=Decimal(str(value)))


def _resolve_price(
    ledger: TickerLedger,
    quote: PriceQuote | None,
    as_of: dt.datetime,
    stale_after: dt.timedelta,
) -> tuple[Decimal, dt.datetime | None, LedgerWarning | None]:
    """Pick the valuation price: market quote, else last trade, else average cost."""
    if quote is None:
        fallback = ledger.last_trade_price
        source = "last trade price"
        if fallback is None:
            fallback = _average_cost(ledger)
            source = "average cost"
        warning = LedgerWarning(
            kind=WarningKind.MISSING_PRICE,
            ticker=ledger.ticker,
            message=f"No market price; valued at {source} {fallback}",
        )
        return fallback, None, warning

    if quote.as_of is not None and _age(as_of, quote.as_of) > stale_after:
        warning = LedgerWarning(
            kind=WarningKind.STALE_PRICE,
            ticker=ledger.ticker,
            message=f"Price {quote.price} last updated {quote.as_of.isoformat()}",
        )
        return quote.price, quote.as_of, warning

    return quote.price, quote.as_of, None


def _age(now: dt.datetime, then: dt.datetime) -> dt.timedelta:
    # Naive timestamps are compared as UTC
    if now.tzinfo is None:
        now = now.replace(tzinfo=dt.UTC)
    if then.tzinfo is None:
        then = then.replace(tzinfo=dt.UTC)
    return now - then


def _average_cost(ledger: TickerLedger) -> Decimal:
    quantity = ledger.open_quantity
    if quantity == 0:
        return Decimal(0)
    return ledger.open_cost / quantity


def _by_ticker(values: Mapping[str, PriceInput]) -> dict[str, PriceInput]:
    return {ticker.strip().upper(): value for ticker, value in values.items()}


def value_position(
    ledger: TickerLedger,
    quote: PriceQuote | None,
    as_of: dt.datetime,
    stale_after: dt.timedelta = dt.timedelta(hours=24),
    previous_close: Decimal | None = None,
) -> Holding:
    """Value a ticker's surviving lots.

    A missing or stale price never fails the valuation; the Holding is flagged
    `price_stale` and carries the warning so presentation layers can say so.
    """
    quantity = ledger.open_quantity
    total_cost = ledger.open_cost
    avg_cost = total_cost / quantity if quantity > 0 else Decimal(0)

    price, price_as_of, warning = _resolve_price(ledger, quote, as_of, stale_after)
    market_value = quantity * price
    unrealized = market_value - total_cost
    unrealized_pct = unrealized / total_cost * 100 if total_cost > 0 else Decimal(0)

    daily_pl = Decimal(0)
    if previous_close is not None:
        daily_pl = (price - previous_close) * quantity

    warnings = list(ledger.warnings)
    if warning is not None:
        warnings.append(warning)

    return Holding(
        ticker=ledger.ticker,
        quantity=quantity,
        avg_cost=avg_cost,
        total_cost=total_cost,
        current_price=price,
        market_value=market_value,
        unrealized_pl=unrealized,
        unrealized_pl_percent=unrealized_pct,
        price_as_of=price_as_of,
        price_stale=warning is not None,
        daily_pl=daily_pl,
        open_fees=ledger.open_fees,
        warnings=warnings,
    )


def value_holdings(
    ledgers: Mapping[str, TickerLedger],
    prices: Mapping[str, PriceInput],
    as_of: dt.datetime,
    stale_after: dt.timedelta = dt.timedelta(hours=24),
    previous_close: Mapping[str, PriceInput] | None = None,
    include_closed: bool = False,
) -> list[Holding]:
    """One Holding per ticker with open quantity (all tickers if include_closed)."""
    prices = _by_ticker(prices)
    previous_close = _by_ticker(previous_close or {})
    holdings: list[Holding] = []

    for ticker, ledger in ledgers.items():
        if ledger.open_quantity <= 0 and not include_closed:
            continue
        raw_price = prices.get(ticker)
        quote = to_quote(raw_price) if raw_price is not None else None
        prev = previous_close.get(ticker)
        holdings.append(value_position(
            ledger,
            quote,
            as_of,
            stale_after=stale_after,
            previous_close=to_quote(prev).price if prev is not None else None,
        ))

    return holdings

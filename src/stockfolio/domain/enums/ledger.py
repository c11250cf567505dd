from enum import Enum


class MatchingPolicy(str, Enum):
    """Lot selection order for SELL transactions."""

    FIFO = "FIFO"
    INTRADAY_FIRST = "INTRADAY_FIRST"  # Intraday sells close same-day lots first


class WarningKind(str, Enum):
    """Data anomalies reported alongside a ticker's results."""

    OVERSELL = "OVERSELL"
    MISSING_FEE_SCHEDULE = "MISSING_FEE_SCHEDULE"
    STALE_PRICE = "STALE_PRICE"
    MISSING_PRICE = "MISSING_PRICE"
    ZERO_QUANTITY = "ZERO_QUANTITY"

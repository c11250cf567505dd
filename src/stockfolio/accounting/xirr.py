"""Money-weighted rate of return (XIRR) and simple ROI.

XIRR solves  sum(amount_i * (1 + r) ** -years_i) = 0  by Newton-Raphson, where
years_i is days since the earliest flow divided by 365. Results are percent.
"""

import logging
import math
from collections.abc import Iterable
from decimal import Decimal

from stockfolio.domain.models.transaction import CashFlow

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365
DEFAULT_GUESS = 0.1
MAX_ITERATIONS = 50
TOLERANCE = 1e-7
DERIVATIVE_FLOOR = 1e-9
RATE_FLOOR = -0.99999999  # (1 + r) must stay positive


def xirr(
    cash_flows: Iterable[CashFlow],
    guess: float = DEFAULT_GUESS,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = TOLERANCE,
    derivative_floor: float = DERIVATIVE_FLOOR,
    days_per_year: int = DAYS_PER_YEAR,
) -> float:
    """Annualized return in percent.

    Returns 0 unless there is at least one negative and one positive flow.
    Non-convergence is not an error: the last finite estimate is returned.
    """
    flows = sorted((cf for cf in cash_flows if cf.amount != 0), key=lambda cf: cf.date)
    if len(flows) < 2:
        return 0.0
    if not any(cf.amount > 0 for cf in flows) or not any(cf.amount < 0 for cf in flows):
        return 0.0

    start = flows[0].date
    points = [(float(cf.amount), (cf.date - start).days / days_per_year) for cf in flows]
    # No annualized rate over a zero-length period
    if max(years for _, years in points) == 0:
        return 0.0

    rate = guess
    for iteration in range(max_iterations):
        if rate <= -1:
            rate = RATE_FLOOR

        base = 1 + rate
        value = 0.0
        derivative = 0.0
        try:
            for amount, years in points:
                value += amount * base ** -years
                derivative += -years * amount * base ** (-years - 1)
        except OverflowError:
            logger.debug("XIRR overflowed at rate %.8f", rate)
            break

        if abs(value) < tolerance:
            logger.debug("XIRR converged after %d iterations: %.8f", iteration, rate)
            return rate * 100

        if abs(derivative) < derivative_floor:
            logger.debug("XIRR derivative vanished at rate %.8f", rate)
            break

        next_rate = rate - value / derivative
        if not math.isfinite(next_rate):
            break
        rate = next_rate
    else:
        logger.debug("XIRR did not converge in %d iterations; last rate %.8f", max_iterations, rate)

    return rate * 100 if math.isfinite(rate) else 0.0


def simple_roi(current_value: Decimal, distributions: Decimal, contributed: Decimal) -> float:
    """Non-annualized return in percent: (value + distributions - contributed) / contributed."""
    if contributed <= 0:
        return 0.0
    return float((current_value + distributions - contributed) / contributed * 100)

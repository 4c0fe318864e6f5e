"""IRR and equity multiple.

Pure functions. No I/O.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from cre_underwriting.config import settings

logger = logging.getLogger(__name__)

FOUR_PLACES = Decimal("0.0001")

# Newton iterates outside this band are treated as divergence
RATE_FLOOR = -0.99
RATE_CEILING = 10.0


def npv(rate: Decimal, cash_flows: Sequence[Decimal]) -> Decimal:
    """Net present value with cash_flows[0] at t=0."""
    discount = 1 + rate
    return sum(
        (Decimal(cf) / discount ** t for t, cf in enumerate(cash_flows)),
        Decimal("0"),
    )


def solve_irr(
    cash_flows: Sequence[Decimal],
    guess: Decimal | float | None = None,
    tolerance: Decimal | float | None = None,
    max_iterations: int | None = None,
) -> Decimal | None:
    """Internal rate of return via Newton-Raphson.

    cash_flows[0] is conventionally negative (initial investment).

    Returns None when the iterate leaves (-0.99, 10) or the NPV derivative
    vanishes. When max_iterations runs out the last estimate is returned;
    callers should treat that as approximate.
    """
    if not cash_flows:
        return None

    rate = float(guess if guess is not None else settings.irr_guess)
    tol = float(tolerance if tolerance is not None else settings.irr_tolerance)
    iterations = max_iterations if max_iterations is not None else settings.irr_max_iterations

    # Convert to float for the iteration
    cf_float = [float(cf) for cf in cash_flows]

    for _ in range(iterations):
        value = 0.0
        derivative = 0.0
        for j, cf in enumerate(cf_float):
            value += cf / (1 + rate) ** j
            derivative -= j * cf / (1 + rate) ** (j + 1)

        if derivative == 0:
            logger.debug("IRR derivative vanished at rate %.6f", rate)
            return None

        new_rate = rate - value / derivative
        if abs(new_rate - rate) < tol:
            return Decimal(repr(new_rate))

        rate = new_rate
        if rate < RATE_FLOOR or rate > RATE_CEILING:
            logger.debug("IRR diverged (rate %.4f) for %d cash flows", rate, len(cf_float))
            return None

    logger.warning("IRR did not converge in %d iterations; returning estimate", iterations)
    return Decimal(repr(rate))


def round_irr(irr: Decimal | None) -> Decimal | None:
    if irr is None:
        return None
    return irr.quantize(FOUR_PLACES, ROUND_HALF_UP)


def compute_equity_multiple(
    total_cash_returned: Decimal, total_cash_invested: Decimal
) -> Decimal | None:
    """Equity multiple = total cash out / total cash in."""
    if total_cash_invested == 0:
        return None
    return (total_cash_returned / total_cash_invested).quantize(FOUR_PLACES, ROUND_HALF_UP)

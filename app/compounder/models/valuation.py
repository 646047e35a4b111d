"""Two-stage discounted cash flow valuation helpers.

The functions in this module are pure: they only operate on the scalars they
receive and never raise or clamp on degenerate inputs.  Callers are expected to
interpret the sign and magnitude of the results (see
:func:`implied_growth_or_none` for the guarded reverse DCF entry point).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

LOGGER = logging.getLogger(__name__)

DEFAULT_YEARS = 10
DEFAULT_TERMINAL_MULTIPLE = 15.0

GROWTH_LOWER_BOUND = -0.5
GROWTH_UPPER_BOUND = 1.0
MAX_ITERATIONS = 100
PRICE_TOLERANCE = 0.01


def safe_power(base: float, exponent: float) -> float:
    """Return ``base ** exponent``, overflowing to ``inf`` instead of raising.

    A negative base with a fractional exponent gives ``NaN``.
    """

    with np.errstate(over="ignore", invalid="ignore"):
        return float(np.power(np.float64(base), np.float64(exponent)))


def compute_intrinsic_value(
    current_cash_flow: float,
    growth_rate: float,
    discount_rate: float,
    years: int = DEFAULT_YEARS,
    terminal_multiple: float = DEFAULT_TERMINAL_MULTIPLE,
) -> float:
    """Return the per-share value from a two-stage DCF.

    Args:
        current_cash_flow: Current owner's earnings per share.
        growth_rate: Annual growth rate for the explicit forecast (decimal).
        discount_rate: Annual discount rate (decimal).
        years: Length of the explicit forecast in years.
        terminal_multiple: Earnings multiple applied to the final year's
            cash flow to obtain the terminal value.

    Returns:
        The sum of the discounted forecast cash flows and the discounted
        terminal value.
    """

    present_value = 0.0
    cash_flow = current_cash_flow
    for year in range(1, years + 1):
        cash_flow *= 1.0 + growth_rate
        present_value += cash_flow / safe_power(1.0 + discount_rate, year)

    terminal_value = cash_flow * terminal_multiple
    pv_terminal = terminal_value / safe_power(1.0 + discount_rate, years)

    return present_value + pv_terminal


def find_implied_growth(
    current_price: float,
    current_cash_flow: float,
    discount_rate: float,
    years: int = DEFAULT_YEARS,
    terminal_multiple: float = DEFAULT_TERMINAL_MULTIPLE,
) -> float:
    """Return the growth rate that makes the DCF value match ``current_price``.

    Bisection over ``[-0.5, 1.0]``.  The search relies on the value being
    increasing in the growth rate, which only holds for a positive
    ``current_cash_flow`` and ``terminal_multiple``; with non-positive cash
    flow the result is not meaningful.  When no midpoint lands within the
    price tolerance the last midpoint is returned.
    """

    low = GROWTH_LOWER_BOUND
    high = GROWTH_UPPER_BOUND
    guess = 0.0

    for iteration in range(MAX_ITERATIONS):
        guess = (low + high) / 2
        price = compute_intrinsic_value(
            current_cash_flow, guess, discount_rate, years, terminal_multiple
        )

        if abs(price - current_price) < PRICE_TOLERANCE:
            LOGGER.debug(
                "event=implied_growth_converged growth=%.6f iterations=%d",
                guess,
                iteration + 1,
            )
            return guess

        if price > current_price:
            high = guess
        else:
            low = guess

    LOGGER.debug(
        "event=implied_growth_exhausted growth=%.6f target=%s price=%s",
        guess,
        current_price,
        price,
    )
    return guess


def implied_growth_or_none(
    current_price: float,
    current_cash_flow: float,
    discount_rate: float,
    years: int = DEFAULT_YEARS,
    terminal_multiple: float = DEFAULT_TERMINAL_MULTIPLE,
) -> Optional[float]:
    """Return the implied growth rate, or ``None`` when it is indeterminate."""

    if not current_cash_flow > 0:
        LOGGER.info(
            "event=implied_growth_skipped reason=non_positive_cash_flow cash_flow=%s",
            current_cash_flow,
        )
        return None

    growth = find_implied_growth(
        current_price, current_cash_flow, discount_rate, years, terminal_multiple
    )
    if not math.isfinite(growth):
        return None
    return growth


def compute_scenario_cagr(
    current_price: float,
    current_cash_flow: float,
    growth_rate: float,
    exit_multiple: float,
    years: int,
) -> float:
    """Return the annualised share price return for a growth/exit scenario.

    The share price is assumed to converge to ``future cash flow * exit
    multiple`` after ``years``.  Returns ``0.0`` when ``current_price`` is not
    positive or the projected price is negative.
    """

    future_cash_flow = current_cash_flow * safe_power(1.0 + growth_rate, years)
    future_price = future_cash_flow * exit_multiple

    if current_price <= 0 or future_price < 0:
        return 0.0

    return safe_power(future_price / current_price, 1.0 / years) - 1.0


@dataclass(frozen=True)
class ValuationInputs:
    """Inputs of a single intrinsic value calculation."""

    current_cash_flow: float
    growth_rate: float
    discount_rate: float
    years: int = DEFAULT_YEARS
    terminal_multiple: float = DEFAULT_TERMINAL_MULTIPLE

    def intrinsic_value(self) -> float:
        return compute_intrinsic_value(
            self.current_cash_flow,
            self.growth_rate,
            self.discount_rate,
            self.years,
            self.terminal_multiple,
        )


@dataclass(frozen=True)
class ImpliedGrowthQuery:
    """Inputs of a reverse DCF search."""

    target_price: float
    current_cash_flow: float
    discount_rate: float
    years: int = DEFAULT_YEARS
    terminal_multiple: float = DEFAULT_TERMINAL_MULTIPLE

    def solve(self) -> float:
        return find_implied_growth(
            self.target_price,
            self.current_cash_flow,
            self.discount_rate,
            self.years,
            self.terminal_multiple,
        )


@dataclass(frozen=True)
class ScenarioParams:
    """Inputs of a single return scenario."""

    current_price: float
    current_cash_flow: float
    growth_rate: float
    exit_multiple: float
    years: int

    def cagr(self) -> float:
        return compute_scenario_cagr(
            self.current_price,
            self.current_cash_flow,
            self.growth_rate,
            self.exit_multiple,
            self.years,
        )


__all__ = [
    "GROWTH_LOWER_BOUND",
    "GROWTH_UPPER_BOUND",
    "ImpliedGrowthQuery",
    "ScenarioParams",
    "ValuationInputs",
    "compute_intrinsic_value",
    "compute_scenario_cagr",
    "find_implied_growth",
    "implied_growth_or_none",
    "safe_power",
]

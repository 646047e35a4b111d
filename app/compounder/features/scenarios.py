"""Batch scenario tables built on top of the valuation model."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pandas as pd

from ..models.valuation import (
    DEFAULT_TERMINAL_MULTIPLE,
    DEFAULT_YEARS,
    compute_intrinsic_value,
    compute_scenario_cagr,
)

DEFAULT_GROWTH_RATES: Sequence[float] = (0.0, 0.05, 0.10, 0.15, 0.20, 0.25)
DEFAULT_EXIT_MULTIPLES: Sequence[float] = (10, 15, 20, 25, 30, 40)
CURVE_HALF_WIDTH_PCT = 15
CURVE_FLOOR_PCT = -50


def returns_matrix(
    current_price: float,
    current_cash_flow: float,
    years: int,
    growth_rates: Sequence[float] = DEFAULT_GROWTH_RATES,
    exit_multiples: Sequence[float] = DEFAULT_EXIT_MULTIPLES,
) -> pd.DataFrame:
    """Return the scenario CAGR for every exit multiple and growth rate pair.

    Rows are exit multiples in reverse input order so the highest multiple is
    displayed first; columns are the growth rates in input order.
    """

    rows = []
    for multiple in exit_multiples:
        rows.append(
            [
                compute_scenario_cagr(current_price, current_cash_flow, growth, multiple, years)
                for growth in growth_rates
            ]
        )

    frame = pd.DataFrame(
        rows,
        index=pd.Index(list(exit_multiples), name="exit_multiple"),
        columns=pd.Index(list(growth_rates), name="growth_rate"),
        dtype=float,
    )
    return frame.iloc[::-1]


def _curve_center(implied_growth: Optional[float]) -> int:
    if implied_growth is None or not np.isfinite(implied_growth):
        return 0
    # Half-up rounding; round() would send 12.5 to 12.
    return int(np.floor(implied_growth * 100 + 0.5))


def sensitivity_curve(
    current_cash_flow: float,
    implied_growth: Optional[float],
    discount_rate: float,
    years: int = DEFAULT_YEARS,
    terminal_multiple: float = DEFAULT_TERMINAL_MULTIPLE,
    *,
    half_width: int = CURVE_HALF_WIDTH_PCT,
    floor: int = CURVE_FLOOR_PCT,
) -> pd.DataFrame:
    """Return intrinsic values for whole-percent growth rates around ``implied_growth``.

    The window spans ``half_width`` percentage points either side of the
    rounded implied growth and never starts below ``floor``.  A missing or
    non-finite implied growth centres the window on 0%.
    """

    center = _curve_center(implied_growth)
    start = max(floor, center - half_width)
    end = center + half_width

    points = []
    for pct in range(start, end + 1):
        growth = pct / 100
        points.append(
            {
                "growth_pct": pct,
                "growth_rate": growth,
                "price": compute_intrinsic_value(
                    current_cash_flow, growth, discount_rate, years, terminal_multiple
                ),
                "is_implied": pct == center,
            }
        )

    return pd.DataFrame(points, columns=["growth_pct", "growth_rate", "price", "is_implied"])


__all__ = [
    "DEFAULT_EXIT_MULTIPLES",
    "DEFAULT_GROWTH_RATES",
    "returns_matrix",
    "sensitivity_curve",
]

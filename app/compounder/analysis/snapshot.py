"""Valuation snapshot combining the reverse DCF and the return scenarios.

A snapshot is what the valuation screen shows for one company: the price to
owner's earnings multiple, the growth rate implied by the current price with a
short verdict, the headline return scenario, the returns matrix and the price
sensitivity curve.  Everything is computed from the pure helpers in
``models.valuation`` and ``features.scenarios``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from ..data.company import CompanyData
from ..features.owners_earnings import price_to_owners_earnings
from ..features.scenarios import returns_matrix, sensitivity_curve
from ..models.valuation import (
    DEFAULT_TERMINAL_MULTIPLE,
    DEFAULT_YEARS,
    compute_scenario_cagr,
    implied_growth_or_none,
)

LOGGER = logging.getLogger(__name__)

MODEST_GROWTH_THRESHOLD = 0.06
SOLID_GROWTH_THRESHOLD = 0.12
HEADLINE_GROWTH = 0.15
HEADLINE_MULTIPLE = 25.0

STRONG_RETURN = 0.20
GOOD_RETURN = 0.10

NON_POSITIVE_VERDICT = "Owner's Earnings must be positive to imply a growth rate in this model."


def market_verdict(implied_growth: Optional[float], owners_earnings: float) -> str:
    """Describe what the implied growth rate says about market expectations."""

    if owners_earnings <= 0 or implied_growth is None:
        return NON_POSITIVE_VERDICT

    percent = f"{implied_growth * 100:.1f}"
    if implied_growth < MODEST_GROWTH_THRESHOLD:
        return (
            f'At {percent}%, the market is pricing in modest growth. '
            '"If the moat is wide, this is a bargain."'
        )
    if implied_growth < SOLID_GROWTH_THRESHOLD:
        return (
            f'At {percent}%, the price demands solid execution. '
            '"Typical for high quality compounders."'
        )
    return (
        f'At {percent}%, the market expects exceptional growth. '
        '"The moat must be widening rapidly to justify this."'
    )


def return_band(cagr: float) -> str:
    """Bucket an annualised return into strong, good, flat or negative."""

    if cagr >= STRONG_RETURN:
        return "strong"
    if cagr >= GOOD_RETURN:
        return "good"
    if cagr >= 0.0:
        return "flat"
    return "negative"


def _finite_or_none(value: Optional[float]) -> Optional[float]:
    """Return ``value`` as a float, or ``None`` when it is missing or not finite."""

    if value is None or not np.isfinite(value):
        return None
    return float(value)


@dataclass(frozen=True)
class ValuationSnapshot:
    ticker: str
    price: float
    owners_earnings: float
    discount_rate: float
    terminal_multiple: float
    holding_period: int
    current_multiple: Optional[float]
    implied_growth: Optional[float]
    verdict: str
    headline_cagr: float
    matrix: pd.DataFrame
    curve: pd.DataFrame

    def matrix_bands(self) -> pd.DataFrame:
        return self.matrix.apply(lambda column: column.map(return_band))

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON serialisable representation of the snapshot."""

        matrix_rows = []
        for multiple, row in self.matrix.iterrows():
            matrix_rows.append(
                {
                    "multiple": float(multiple),
                    "returns": [
                        {
                            "growth": float(growth),
                            "cagr": _finite_or_none(cagr),
                            "band": return_band(cagr) if not np.isnan(cagr) else None,
                        }
                        for growth, cagr in row.items()
                    ],
                }
            )

        curve_points = [
            {
                "growth": int(point["growth_pct"]),
                "price": _finite_or_none(point["price"]),
                "is_implied": bool(point["is_implied"]),
            }
            for point in self.curve.to_dict(orient="records")
        ]

        return {
            "ticker": self.ticker,
            "price": _finite_or_none(self.price),
            "owners_earnings": _finite_or_none(self.owners_earnings),
            "assumptions": {
                "discount_rate": self.discount_rate,
                "terminal_multiple": self.terminal_multiple,
                "holding_period": self.holding_period,
            },
            "current_multiple": _finite_or_none(self.current_multiple),
            "implied_growth": _finite_or_none(self.implied_growth),
            "verdict": self.verdict,
            "headline": {
                "growth": HEADLINE_GROWTH,
                "multiple": HEADLINE_MULTIPLE,
                "cagr": _finite_or_none(self.headline_cagr),
            },
            "matrix": matrix_rows,
            "curve": curve_points,
        }


def build_snapshot(
    company: CompanyData,
    owners_earnings: Optional[float] = None,
    *,
    discount_rate: float = 0.10,
    terminal_multiple: float = DEFAULT_TERMINAL_MULTIPLE,
    holding_period: int = 5,
    dcf_years: int = DEFAULT_YEARS,
) -> ValuationSnapshot:
    """Return the valuation snapshot for ``company``.

    ``owners_earnings`` defaults to the company's free cash flow per share.
    """

    earnings = company.fcf_per_share if owners_earnings is None else owners_earnings
    price = company.price

    implied = implied_growth_or_none(price, earnings, discount_rate, dcf_years, terminal_multiple)
    curve = sensitivity_curve(earnings, implied, discount_rate, dcf_years, terminal_multiple)
    # Points the chart cannot draw are dropped rather than plotted.
    curve = curve[np.isfinite(curve["price"])].reset_index(drop=True)

    snapshot = ValuationSnapshot(
        ticker=company.ticker,
        price=price,
        owners_earnings=earnings,
        discount_rate=discount_rate,
        terminal_multiple=terminal_multiple,
        holding_period=holding_period,
        current_multiple=price_to_owners_earnings(price, earnings),
        implied_growth=implied,
        verdict=market_verdict(implied, earnings),
        headline_cagr=compute_scenario_cagr(
            price, earnings, HEADLINE_GROWTH, HEADLINE_MULTIPLE, holding_period
        ),
        matrix=returns_matrix(price, earnings, holding_period),
        curve=curve,
    )

    LOGGER.info(
        "event=snapshot_built ticker=%s implied_growth=%s multiple=%s",
        snapshot.ticker,
        snapshot.implied_growth,
        snapshot.current_multiple,
    )
    return snapshot


__all__ = [
    "ValuationSnapshot",
    "build_snapshot",
    "market_verdict",
    "return_band",
]

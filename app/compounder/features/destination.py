"""Destination analysis: value the business from its end state."""

from __future__ import annotations

from dataclasses import dataclass

from ..models.valuation import safe_power

DEFAULT_REVENUE_GROWTH = 0.15
DEFAULT_TARGET_MARGIN_PCT = 15.0
DEFAULT_TARGET_MULTIPLE = 20.0
DEFAULT_SHARE_CHANGE = 0.01
DEFAULT_DESTINATION_YEARS = 10


@dataclass(frozen=True)
class DestinationResult:
    future_revenue: float
    future_net_income: float
    future_shares: float
    future_eps: float
    future_price: float
    irr: float


def destination_analysis(
    current_price: float,
    current_revenue: float,
    revenue_growth: float = DEFAULT_REVENUE_GROWTH,
    target_margin_pct: float = DEFAULT_TARGET_MARGIN_PCT,
    target_multiple: float = DEFAULT_TARGET_MULTIPLE,
    share_change: float = DEFAULT_SHARE_CHANGE,
    shares_outstanding: float = 1.0,
    years: int = DEFAULT_DESTINATION_YEARS,
) -> DestinationResult:
    """Project revenue, margin and share count to ``years`` out and price the result.

    ``share_change`` is the annual reduction in share count, so a positive
    value is a buyback and a negative one dilution.  ``current_revenue`` and
    ``shares_outstanding`` must share a unit (billions in the research data).
    The annualised return is ``0.0`` when the current price is not positive or
    the projected price is negative.
    """

    future_revenue = current_revenue * safe_power(1.0 + revenue_growth, years)
    future_net_income = future_revenue * (target_margin_pct / 100.0)
    future_shares = shares_outstanding * safe_power(1.0 - share_change, years)
    future_eps = future_net_income / future_shares if future_shares > 0 else 0.0
    future_price = future_eps * target_multiple

    if current_price <= 0 or future_price < 0:
        irr = 0.0
    else:
        irr = safe_power(future_price / current_price, 1.0 / years) - 1.0

    return DestinationResult(
        future_revenue=future_revenue,
        future_net_income=future_net_income,
        future_shares=future_shares,
        future_eps=future_eps,
        future_price=future_price,
        irr=irr,
    )


__all__ = ["DestinationResult", "destination_analysis"]

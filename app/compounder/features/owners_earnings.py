"""Owner's earnings adjustment and the price multiple built on it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..data.company import CompanyData


@dataclass(frozen=True)
class OwnersEarnings:
    """Owner's earnings in billions and per share."""

    net_income: float
    depreciation: float
    stock_based_compensation: float
    change_in_working_capital: float
    maintenance_capex: float
    sbc_cost: float
    total: float
    per_share: float

    @classmethod
    def from_company(
        cls,
        company: CompanyData,
        *,
        maintenance_pct: float = 100.0,
        sbc_is_cost: bool = True,
    ) -> "OwnersEarnings":
        ttm = company.ttm_financials
        return compute_owners_earnings(
            net_income=ttm.net_income,
            depreciation=ttm.depreciation,
            change_in_working_capital=ttm.change_in_working_capital,
            capital_expenditures=ttm.capital_expenditures,
            shares_outstanding=company.shares_outstanding or 1.0,
            maintenance_pct=maintenance_pct,
            stock_based_compensation=ttm.stock_based_compensation,
            sbc_is_cost=sbc_is_cost,
        )


def compute_owners_earnings(
    net_income: float,
    depreciation: float,
    change_in_working_capital: float,
    capital_expenditures: float,
    shares_outstanding: float,
    maintenance_pct: float = 100.0,
    stock_based_compensation: float = 0.0,
    sbc_is_cost: bool = True,
) -> OwnersEarnings:
    """Return Buffett's owner's earnings.

    Net income plus depreciation and amortisation, plus the change in working
    capital as reported in the cash flow statement, less the share of capital
    expenditures that maintains the business.  Stock based compensation is
    added back as a non-cash charge and, when ``sbc_is_cost`` is set, deducted
    again as a real dilutive cost.

    Args:
        net_income: Trailing net income.
        depreciation: Depreciation and amortisation.
        change_in_working_capital: Change in working capital, signed as in the
            operating cash flow section (negative is a use of cash).
        capital_expenditures: Total capital expenditures as a positive number.
        shares_outstanding: Share count in the same unit as the other inputs.
        maintenance_pct: Percentage of capital expenditures treated as
            maintenance, between 0 and 100.
        stock_based_compensation: Stock based compensation expense.
        sbc_is_cost: Whether stock based compensation is treated as a cost.

    Raises:
        ValueError: If ``maintenance_pct`` is outside ``[0, 100]``.
    """

    if not 0.0 <= maintenance_pct <= 100.0:
        raise ValueError("maintenance_pct must be between 0 and 100")

    maintenance_capex = capital_expenditures * (maintenance_pct / 100.0)
    sbc_cost = stock_based_compensation if sbc_is_cost else 0.0

    total = (
        net_income
        + depreciation
        + stock_based_compensation
        + change_in_working_capital
        - maintenance_capex
        - sbc_cost
    )
    per_share = total / shares_outstanding if shares_outstanding > 0 else 0.0

    return OwnersEarnings(
        net_income=net_income,
        depreciation=depreciation,
        stock_based_compensation=stock_based_compensation,
        change_in_working_capital=change_in_working_capital,
        maintenance_capex=maintenance_capex,
        sbc_cost=sbc_cost,
        total=total,
        per_share=per_share,
    )


def price_to_owners_earnings(price: float, owners_earnings: float) -> Optional[float]:
    """Return price divided by owner's earnings, or ``None`` when undefined."""

    if owners_earnings == 0:
        return None
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        multiple = np.float64(price) / np.float64(owners_earnings)
    if not np.isfinite(multiple):
        return None
    return float(multiple)


__all__ = ["OwnersEarnings", "compute_owners_earnings", "price_to_owners_earnings"]

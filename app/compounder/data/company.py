"""Company financial data supplied by the research service."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

LOGGER = logging.getLogger(__name__)


class CompanyDataError(ValueError):
    """Raised when a company payload is missing required fields or is malformed."""


def _coerce_float(value: Any, name: str, *, default: Optional[float] = None) -> float:
    if value is None:
        if default is None:
            raise CompanyDataError(f"Field '{name}' is required")
        return default
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise CompanyDataError(f"Field '{name}' must be numeric, got {value!r}") from exc
    if math.isnan(number):
        if default is None:
            raise CompanyDataError(f"Field '{name}' must not be NaN")
        return default
    return number


@dataclass(frozen=True)
class AnnualFinancials:
    """Revenue (billions) and net margin (percent) for one fiscal year."""

    year: str
    revenue: float
    net_margin: float


@dataclass(frozen=True)
class TtmFinancials:
    """Trailing twelve month cash flow inputs in billions."""

    net_income: float = 0.0
    depreciation: float = 0.0
    stock_based_compensation: float = 0.0
    change_in_working_capital: float = 0.0
    capital_expenditures: float = 0.0

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "TtmFinancials":
        return cls(
            net_income=_coerce_float(payload.get("netIncome"), "netIncome", default=0.0),
            depreciation=_coerce_float(payload.get("depreciation"), "depreciation", default=0.0),
            stock_based_compensation=_coerce_float(
                payload.get("stockBasedCompensation"), "stockBasedCompensation", default=0.0
            ),
            change_in_working_capital=_coerce_float(
                payload.get("changeInWorkingCapital"), "changeInWorkingCapital", default=0.0
            ),
            capital_expenditures=_coerce_float(
                payload.get("capitalExpenditures"), "capitalExpenditures", default=0.0
            ),
        )


@dataclass(frozen=True)
class CompanyData:
    """Snapshot of the financials used by the valuation tools."""

    ticker: str
    name: str
    price: float
    eps: float = 0.0
    fcf_per_share: float = 0.0
    revenue_growth_5y: float = 0.0
    current_pe: float = 0.0
    description: str = ""
    shares_outstanding: float = 0.0
    financials: tuple[AnnualFinancials, ...] = field(default_factory=tuple)
    ttm_financials: TtmFinancials = field(default_factory=TtmFinancials)

    @property
    def latest_revenue(self) -> Optional[float]:
        if not self.financials:
            return None
        return self.financials[-1].revenue

    @property
    def first_net_margin(self) -> Optional[float]:
        """Net margin of the first year listed, the default destination margin."""

        if not self.financials:
            return None
        return self.financials[0].net_margin

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any], ticker: Optional[str] = None) -> "CompanyData":
        """Build a :class:`CompanyData` from the camelCase JSON payload.

        ``ticker`` overrides the symbol in the payload, which the research
        service does not always echo back.
        """

        if not isinstance(payload, Mapping):
            raise CompanyDataError("Company payload must be a JSON object")

        symbol = ticker or payload.get("ticker")
        if not symbol:
            raise CompanyDataError("Field 'ticker' is required")

        annual = []
        for row in payload.get("financials") or []:
            if not isinstance(row, Mapping):
                raise CompanyDataError("Entries of 'financials' must be objects")
            annual.append(
                AnnualFinancials(
                    year=str(row.get("year", "")),
                    revenue=_coerce_float(row.get("revenue"), "financials.revenue", default=0.0),
                    net_margin=_coerce_float(
                        row.get("netMargin"), "financials.netMargin", default=0.0
                    ),
                )
            )

        ttm_payload = payload.get("ttmFinancials") or {}
        if not isinstance(ttm_payload, Mapping):
            raise CompanyDataError("Field 'ttmFinancials' must be an object")

        return cls(
            ticker=str(symbol).strip().upper(),
            name=str(payload.get("name") or symbol),
            price=_coerce_float(payload.get("price"), "price"),
            eps=_coerce_float(payload.get("eps"), "eps", default=0.0),
            fcf_per_share=_coerce_float(payload.get("fcfPerShare"), "fcfPerShare", default=0.0),
            revenue_growth_5y=_coerce_float(
                payload.get("revenueGrowth5Y"), "revenueGrowth5Y", default=0.0
            ),
            current_pe=_coerce_float(payload.get("currentPe"), "currentPe", default=0.0),
            description=str(payload.get("description") or ""),
            shares_outstanding=_coerce_float(
                payload.get("sharesOutstanding"), "sharesOutstanding", default=0.0
            ),
            financials=tuple(annual),
            ttm_financials=TtmFinancials.from_mapping(ttm_payload),
        )


def load_company(path: Path | str, ticker: Optional[str] = None) -> CompanyData:
    """Read a company JSON document from ``path``."""

    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CompanyDataError(f"Invalid JSON in {path}: {exc.msg}") from exc

    company = CompanyData.from_mapping(payload, ticker=ticker)
    LOGGER.debug("event=company_loaded ticker=%s path=%s", company.ticker, path)
    return company


__all__ = [
    "AnnualFinancials",
    "CompanyData",
    "CompanyDataError",
    "TtmFinancials",
    "load_company",
]

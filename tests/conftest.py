"""Shared pytest fixtures for the test suite."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from compounder.config import get_config
from compounder.data.company import CompanyData


@pytest.fixture
def company_payload() -> Dict[str, Any]:
    """Return a deterministic research payload shaped like the service output."""

    return {
        "ticker": "cost",
        "name": "Costco Wholesale",
        "price": 100.0,
        "eps": 4.5,
        "fcfPerShare": 5.0,
        "sharesOutstanding": 0.5,
        "currentPe": 22.2,
        "revenueGrowth5Y": 0.1,
        "description": "Membership warehouse clubs.",
        "financials": [
            {"year": "2023", "revenue": 50.0, "netMargin": 12.0},
            {"year": "2024", "revenue": 60.0, "netMargin": 14.0},
        ],
        "ttmFinancials": {
            "netIncome": 2.5,
            "depreciation": 0.5,
            "stockBasedCompensation": 0.2,
            "changeInWorkingCapital": -0.25,
            "capitalExpenditures": 1.0,
        },
    }


@pytest.fixture
def company(company_payload: Dict[str, Any]) -> CompanyData:
    return CompanyData.from_mapping(company_payload)


@pytest.fixture
def company_file(tmp_path: Path, company_payload: Dict[str, Any]) -> Path:
    path = tmp_path / "company.json"
    path.write_text(json.dumps(company_payload), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def clean_config(monkeypatch: pytest.MonkeyPatch):
    """Isolate tests from the caller's environment and the config cache."""

    for name in (
        "COMPOUNDER_DISCOUNT_RATE",
        "COMPOUNDER_TERMINAL_MULTIPLE",
        "COMPOUNDER_HOLDING_PERIOD",
        "COMPOUNDER_DCF_YEARS",
    ):
        monkeypatch.delenv(name, raising=False)
    get_config.cache_clear()
    yield
    get_config.cache_clear()

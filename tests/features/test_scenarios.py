"""Tests for the returns matrix and price sensitivity curve."""

import math

import pytest

from compounder.features.scenarios import (
    DEFAULT_EXIT_MULTIPLES,
    DEFAULT_GROWTH_RATES,
    returns_matrix,
    sensitivity_curve,
)
from compounder.models.valuation import compute_intrinsic_value, compute_scenario_cagr


def test_matrix_shape_and_ordering():
    matrix = returns_matrix(100.0, 5.0, 5)

    assert matrix.shape == (6, 6)
    assert list(matrix.index) == list(reversed(DEFAULT_EXIT_MULTIPLES))
    assert list(matrix.columns) == list(DEFAULT_GROWTH_RATES)
    assert matrix.index[0] == 40


def test_matrix_cells_match_scenario_cagr():
    matrix = returns_matrix(100.0, 5.0, 5)

    assert matrix.loc[25, 0.15] == pytest.approx(compute_scenario_cagr(100.0, 5.0, 0.15, 25, 5))
    assert matrix.loc[10, 0.0] == pytest.approx(compute_scenario_cagr(100.0, 5.0, 0.0, 10, 5))


def test_matrix_accepts_custom_grid():
    matrix = returns_matrix(50.0, 2.0, 3, growth_rates=(0.0, 0.1), exit_multiples=(5, 60, 20))

    assert matrix.shape == (3, 2)
    assert list(matrix.index) == [20, 60, 5]


def test_matrix_is_all_zero_for_non_positive_price():
    matrix = returns_matrix(0.0, 5.0, 5)
    assert (matrix.to_numpy() == 0.0).all()


def test_curve_centres_on_rounded_implied_growth():
    curve = sensitivity_curve(5.0, 0.083, 0.1, 10, 15)

    assert curve["growth_pct"].iloc[0] == -7
    assert curve["growth_pct"].iloc[-1] == 23
    assert len(curve) == 31
    implied = curve[curve["is_implied"]]
    assert list(implied["growth_pct"]) == [8]


def test_curve_prices_come_from_intrinsic_value():
    curve = sensitivity_curve(5.0, 0.1, 0.1, 10, 15)
    row = curve[curve["growth_pct"] == 12].iloc[0]

    assert row["growth_rate"] == pytest.approx(0.12)
    assert row["price"] == pytest.approx(compute_intrinsic_value(5.0, 0.12, 0.1, 10, 15))


def test_curve_is_clamped_at_minus_fifty_percent():
    curve = sensitivity_curve(5.0, -0.45, 0.1, 10, 15)

    assert curve["growth_pct"].min() == -50
    assert curve["growth_pct"].max() == -30
    assert len(curve) == 21


@pytest.mark.parametrize("implied", [None, math.nan, math.inf])
def test_curve_defaults_to_zero_centre_when_indeterminate(implied):
    curve = sensitivity_curve(5.0, implied, 0.1)

    assert curve["growth_pct"].min() == -15
    assert curve["growth_pct"].max() == 15
    assert curve.loc[curve["is_implied"], "growth_pct"].tolist() == [0]


def test_curve_rounds_half_up():
    curve = sensitivity_curve(5.0, 0.125, 0.1)
    assert curve.loc[curve["is_implied"], "growth_pct"].tolist() == [13]


def test_curve_half_width_is_configurable():
    curve = sensitivity_curve(5.0, 0.1, 0.1, half_width=5)
    assert curve["growth_pct"].tolist() == list(range(5, 16))

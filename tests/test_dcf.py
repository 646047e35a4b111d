import math

import pytest

from compounder.models.valuation import (
    GROWTH_LOWER_BOUND,
    GROWTH_UPPER_BOUND,
    ImpliedGrowthQuery,
    ScenarioParams,
    ValuationInputs,
    compute_intrinsic_value,
    compute_scenario_cagr,
    find_implied_growth,
    implied_growth_or_none,
    safe_power,
)


def manual_intrinsic_value(cash_flow, growth, discount, years, multiple):
    flows = [cash_flow * (1 + growth) ** year for year in range(1, years + 1)]
    pv = sum(flow / (1 + discount) ** year for year, flow in enumerate(flows, start=1))
    return pv + flows[-1] * multiple / (1 + discount) ** years


def test_intrinsic_value_matches_manual_projection():
    expected = manual_intrinsic_value(5.0, 0.12, 0.10, 10, 15)
    assert compute_intrinsic_value(5.0, 0.12, 0.10, 10, 15) == pytest.approx(expected, rel=1e-12)


def test_intrinsic_value_zero_growth_closed_form():
    cash_flow, discount, years, multiple = 4.0, 0.09, 7, 18
    annuity = sum(cash_flow / (1 + discount) ** year for year in range(1, years + 1))
    terminal = cash_flow * multiple / (1 + discount) ** years

    assert compute_intrinsic_value(cash_flow, 0.0, discount, years, multiple) == pytest.approx(
        annuity + terminal, rel=1e-12
    )


def test_intrinsic_value_defaults_to_ten_years_and_fifteen_times():
    assert compute_intrinsic_value(3.0, 0.08, 0.1) == pytest.approx(
        manual_intrinsic_value(3.0, 0.08, 0.1, 10, 15)
    )


def test_intrinsic_value_strictly_increasing_in_growth():
    values = [compute_intrinsic_value(2.5, g / 100, 0.1, 10, 20) for g in range(-50, 101, 5)]
    assert all(later > earlier for earlier, later in zip(values, values[1:]))


def test_intrinsic_value_does_not_clamp_negative_cash_flow():
    value = compute_intrinsic_value(-2.0, 0.05, 0.1, 5, 15)
    assert value < 0
    assert value == pytest.approx(manual_intrinsic_value(-2.0, 0.05, 0.1, 5, 15))


@pytest.mark.parametrize("growth", [-0.3, 0.0, 0.07, 0.25, 0.6])
def test_implied_growth_recovers_input_growth(growth):
    price = compute_intrinsic_value(5.0, growth, 0.1, 10, 15)
    assert find_implied_growth(price, 5.0, 0.1, 10, 15) == pytest.approx(growth, abs=0.01)


def test_implied_growth_result_prices_within_tolerance():
    growth = find_implied_growth(150.0, 5.0, 0.1, 10, 15)
    assert compute_intrinsic_value(5.0, growth, 0.1, 10, 15) == pytest.approx(150.0, abs=0.01)


@pytest.mark.parametrize("target", [0.0, -100.0, 1e-9, 1e9, 1e15])
def test_implied_growth_never_leaves_bracket(target):
    growth = find_implied_growth(target, 5.0, 0.1, 10, 15)
    assert GROWTH_LOWER_BOUND <= growth <= GROWTH_UPPER_BOUND


def test_implied_growth_stays_in_bracket_for_non_positive_cash_flow():
    for cash_flow in (0.0, -3.0):
        growth = find_implied_growth(100.0, cash_flow, 0.1, 10, 15)
        assert GROWTH_LOWER_BOUND <= growth <= GROWTH_UPPER_BOUND


def test_implied_growth_is_deterministic():
    first = find_implied_growth(123.0, 4.0, 0.11, 10, 15)
    second = find_implied_growth(123.0, 4.0, 0.11, 10, 15)
    assert first == second


def test_implied_growth_or_none_flags_non_positive_cash_flow():
    assert implied_growth_or_none(100.0, 0.0, 0.1) is None
    assert implied_growth_or_none(100.0, -1.5, 0.1) is None
    assert implied_growth_or_none(100.0, math.nan, 0.1) is None


def test_implied_growth_or_none_matches_solver_for_positive_cash_flow():
    assert implied_growth_or_none(100.0, 5.0, 0.1) == find_implied_growth(100.0, 5.0, 0.1)


def test_scenario_cagr_seed_case():
    cagr = compute_scenario_cagr(100.0, 5.0, 0.15, 25, 5)
    future_price = 5.0 * 1.15**5 * 25
    assert future_price == pytest.approx(251.42, abs=0.01)
    assert cagr == pytest.approx((future_price / 100.0) ** (1 / 5) - 1)
    assert cagr == pytest.approx(0.2025, abs=1e-4)


@pytest.mark.parametrize("price", [0.0, -10.0])
def test_scenario_cagr_is_zero_for_non_positive_price(price):
    assert compute_scenario_cagr(price, 5.0, 0.1, 20, 5) == 0.0


def test_scenario_cagr_is_zero_for_negative_future_price():
    assert compute_scenario_cagr(100.0, -5.0, 0.1, 20, 5) == 0.0


def test_scenario_cagr_zero_growth_identity():
    price, cash_flow, multiple, years = 80.0, 4.0, 22, 6
    expected = ((cash_flow * multiple) / price) ** (1 / years) - 1
    assert compute_scenario_cagr(price, cash_flow, 0.0, multiple, years) == pytest.approx(expected)


def test_value_types_delegate_to_functions():
    inputs = ValuationInputs(5.0, 0.1, 0.1, 10, 15)
    assert inputs.intrinsic_value() == compute_intrinsic_value(5.0, 0.1, 0.1, 10, 15)

    query = ImpliedGrowthQuery(target_price=inputs.intrinsic_value(), current_cash_flow=5.0, discount_rate=0.1)
    assert query.solve() == pytest.approx(0.1, abs=0.01)

    params = ScenarioParams(100.0, 5.0, 0.15, 25, 5)
    assert params.cagr() == compute_scenario_cagr(100.0, 5.0, 0.15, 25, 5)


def test_scenario_cagr_overflows_to_infinity_for_extreme_growth():
    cagr = compute_scenario_cagr(100.0, 5.0, 10.0, 25, 300)
    assert math.isinf(cagr)
    assert cagr > 0


def test_intrinsic_value_overflows_to_infinity_for_extreme_growth():
    value = compute_intrinsic_value(5.0, 10.0, 0.1, 400, 15)
    assert math.isinf(value)


def test_intrinsic_value_with_extreme_discount_rate_does_not_raise():
    value = compute_intrinsic_value(5.0, 0.1, 100.0, 200, 15)

    # Discount factors overflow to infinity, so late years contribute nothing.
    assert math.isfinite(value)
    assert value == pytest.approx(manual_intrinsic_value(5.0, 0.1, 100.0, 3, 0), rel=1e-3)


def test_safe_power_matches_builtin_and_overflows_to_infinity():
    assert safe_power(1.1, 10) == pytest.approx(1.1**10)
    assert math.isinf(safe_power(101.0, 200))
    assert math.isnan(safe_power(-2.0, 0.5))

"""Command line interface for ad-hoc valuation calculations."""
from __future__ import annotations

import argparse
import json
import logging
import math
import sys
from typing import Any, Optional

import pandas as pd

from .analysis.snapshot import ValuationSnapshot, build_snapshot, return_band
from .config import ConfigurationError, get_config
from .data.company import CompanyDataError, load_company
from .features.destination import (
    DEFAULT_DESTINATION_YEARS,
    DEFAULT_REVENUE_GROWTH,
    DEFAULT_SHARE_CHANGE,
    DEFAULT_TARGET_MARGIN_PCT,
    DEFAULT_TARGET_MULTIPLE,
    destination_analysis,
)
from .features.owners_earnings import OwnersEarnings, compute_owners_earnings
from .features.scenarios import returns_matrix, sensitivity_curve
from .models.valuation import (
    compute_intrinsic_value,
    compute_scenario_cagr,
    implied_growth_or_none,
)

LOGGER = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected a whole number of years, got {value!r}") from exc
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _format_value(value: float | None, pattern: str) -> str:
    if value is None:
        return "N/A"
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return str(value)
    if math.isnan(numeric) or math.isinf(numeric):
        return "N/A"
    return pattern.format(numeric)


def _format_matrix(matrix: pd.DataFrame) -> list[str]:
    header = "EXIT P/OE " + " ".join(
        _format_value(growth, "{:>7.0%}") for growth in matrix.columns
    )
    lines = [header]
    for multiple, row in matrix.iterrows():
        cells = " ".join(_format_value(cagr, "{:>7.1%}") for cagr in row)
        lines.append(f"{_format_value(multiple, '{:>8.0f}x')} {cells}")
    return lines


def _format_curve(curve: pd.DataFrame) -> list[str]:
    lines = ["GROWTH     VALUE"]
    for point in curve.itertuples(index=False):
        marker = " <- implied" if point.is_implied else ""
        lines.append(f"{int(point.growth_pct):>5d}% {_format_value(point.price, '{:>9.2f}')}{marker}")
    return lines


def _print_lines(lines: list[str]) -> None:
    for line in lines:
        print(line)


def _command_value(args: argparse.Namespace) -> int:
    value = compute_intrinsic_value(
        args.cash_flow, args.growth, args.discount_rate, args.years, args.multiple
    )
    print(f"Intrinsic value {_format_value(value, '${:.2f}')}")
    return 0


def _command_implied(args: argparse.Namespace) -> int:
    growth = implied_growth_or_none(
        args.price, args.cash_flow, args.discount_rate, args.years, args.multiple
    )
    print(f"Implied growth {_format_value(growth, '{:.1%}')}")
    return 0


def _command_scenario(args: argparse.Namespace) -> int:
    cagr = compute_scenario_cagr(args.price, args.cash_flow, args.growth, args.multiple, args.holding)
    print(f"Annualised return {_format_value(cagr, '{:.1%}')} ({return_band(cagr)})")
    return 0


def _command_matrix(args: argparse.Namespace) -> int:
    matrix = returns_matrix(args.price, args.cash_flow, args.holding)
    print(f"{args.holding}YR CAGR")
    _print_lines(_format_matrix(matrix))
    return 0


def _command_curve(args: argparse.Namespace) -> int:
    implied = implied_growth_or_none(
        args.price, args.cash_flow, args.discount_rate, args.years, args.multiple
    )
    curve = sensitivity_curve(
        args.cash_flow,
        implied,
        args.discount_rate,
        args.years,
        args.multiple,
        half_width=args.half_width,
    )
    print(f"Current price {_format_value(args.price, '${:.2f}')}")
    _print_lines(_format_curve(curve))
    return 0


def _command_owners_earnings(args: argparse.Namespace) -> int:
    try:
        if args.company:
            company = load_company(args.company)
            result = OwnersEarnings.from_company(
                company, maintenance_pct=args.maintenance_pct, sbc_is_cost=not args.sbc_non_cash
            )
        else:
            result = compute_owners_earnings(
                net_income=args.net_income,
                depreciation=args.depreciation,
                change_in_working_capital=args.working_capital,
                capital_expenditures=args.capex,
                shares_outstanding=args.shares,
                maintenance_pct=args.maintenance_pct,
                stock_based_compensation=args.sbc,
                sbc_is_cost=not args.sbc_non_cash,
            )
    except (CompanyDataError, OSError) as exc:
        print(f"Failed to load company data: {exc}")
        return 1
    except ValueError as exc:
        print(str(exc))
        return 1

    print(f"Net Income:     {_format_value(result.net_income, '${:.2f}B')}")
    print(f"+ D&A:          {_format_value(result.depreciation, '${:.2f}B')}")
    print(f"+ SBC:          {_format_value(result.stock_based_compensation, '${:.2f}B')}")
    print(f"± Work. Cap:    {_format_value(result.change_in_working_capital, '${:+.2f}B')}")
    print(f"- Maint. CapEx: {_format_value(result.maintenance_capex, '-${:.2f}B')}")
    print(f"- SBC cost:     {_format_value(result.sbc_cost, '-${:.2f}B')}")
    print(f"Total OE:       {_format_value(result.total, '${:.2f}B')}")
    print(f"Per share:      {_format_value(result.per_share, '${:.2f}')}")
    return 0


def _command_destination(args: argparse.Namespace) -> int:
    try:
        company = load_company(args.company)
    except (CompanyDataError, OSError) as exc:
        print(f"Failed to load company data: {exc}")
        return 1

    revenue = args.revenue if args.revenue is not None else (company.latest_revenue or 10.0)
    margin = args.margin if args.margin is not None else (company.first_net_margin or DEFAULT_TARGET_MARGIN_PCT)
    result = destination_analysis(
        company.price,
        revenue,
        revenue_growth=args.revenue_growth,
        target_margin_pct=margin,
        target_multiple=args.multiple,
        share_change=args.share_change,
        shares_outstanding=company.shares_outstanding or 1.0,
        years=args.holding,
    )

    print(f"{company.ticker} destination in {args.holding} years")
    print(f"- Revenue {_format_value(result.future_revenue, '${:.1f}B')}")
    print(f"- Net income {_format_value(result.future_net_income, '${:.1f}B')}")
    print(f"- EPS {_format_value(result.future_eps, '${:.2f}')}")
    print(f"- Price {_format_value(result.future_price, '${:.2f}')}")
    print(f"- Annualised return {_format_value(result.irr, '{:.1%}')}")
    return 0


def _print_snapshot(snapshot: ValuationSnapshot) -> None:
    print(f"{snapshot.ticker} valuation snapshot")
    print(
        f"- Price {_format_value(snapshot.price, '${:.2f}')} | "
        f"Owner's earnings {_format_value(snapshot.owners_earnings, '${:.2f}')} | "
        f"P/OE {_format_value(snapshot.current_multiple, '{:.1f}x')}"
    )
    print(f"- Implied growth {_format_value(snapshot.implied_growth, '{:.1%}')}")
    print(f"  {snapshot.verdict}")
    print(
        f"- Scenario: 15% growth at 25x for {snapshot.holding_period} years returns "
        f"{_format_value(snapshot.headline_cagr, '{:.1%}')} a year"
    )
    print()
    print(f"Returns matrix ({snapshot.holding_period}YR CAGR)")
    _print_lines(_format_matrix(snapshot.matrix))
    print()
    print("Price sensitivity")
    _print_lines(_format_curve(snapshot.curve))


def _command_report(args: argparse.Namespace) -> int:
    try:
        config = get_config()
    except ConfigurationError as exc:
        print(f"Invalid configuration: {exc}")
        return 1

    try:
        company = load_company(args.company, ticker=args.ticker)
    except (CompanyDataError, OSError) as exc:
        print(f"Failed to load company data: {exc}")
        return 1

    snapshot = build_snapshot(
        company,
        owners_earnings=args.owners_earnings,
        discount_rate=args.discount_rate if args.discount_rate is not None else config.discount_rate,
        terminal_multiple=args.multiple if args.multiple is not None else config.terminal_multiple,
        holding_period=args.holding if args.holding is not None else config.holding_period,
        dcf_years=config.dcf_years,
    )

    if args.json:
        print(json.dumps(snapshot.to_dict(), indent=2))
    else:
        _print_snapshot(snapshot)
    return 0


def _add_dcf_arguments(parser: argparse.ArgumentParser, defaults: Any) -> None:
    parser.add_argument(
        "--discount-rate",
        type=float,
        default=defaults.discount_rate,
        help="Annual discount rate as a decimal (default: %(default)s)",
    )
    parser.add_argument(
        "--years",
        type=_positive_int,
        default=defaults.dcf_years,
        help="Explicit forecast length in years (default: %(default)s)",
    )
    parser.add_argument(
        "--multiple",
        type=float,
        default=defaults.terminal_multiple,
        help="Terminal earnings multiple (default: %(default)s)",
    )


def build_parser(defaults: Optional[Any] = None) -> argparse.ArgumentParser:
    if defaults is None:
        defaults = get_config()

    parser = argparse.ArgumentParser(description="Compounder valuation CLI")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    value = subparsers.add_parser("value", help="Two-stage DCF value per share")
    value.add_argument("--cash-flow", type=float, required=True, help="Owner's earnings per share")
    value.add_argument("--growth", type=float, required=True, help="Annual growth rate as a decimal")
    _add_dcf_arguments(value, defaults)
    value.set_defaults(func=_command_value)

    implied = subparsers.add_parser("implied", help="Growth rate implied by the current price")
    implied.add_argument("--price", type=float, required=True, help="Current share price")
    implied.add_argument("--cash-flow", type=float, required=True, help="Owner's earnings per share")
    _add_dcf_arguments(implied, defaults)
    implied.set_defaults(func=_command_implied)

    scenario = subparsers.add_parser("scenario", help="Annualised return for one scenario")
    scenario.add_argument("--price", type=float, required=True, help="Current share price")
    scenario.add_argument("--cash-flow", type=float, required=True, help="Owner's earnings per share")
    scenario.add_argument("--growth", type=float, required=True, help="Annual growth rate as a decimal")
    scenario.add_argument("--multiple", type=float, required=True, help="Exit multiple")
    scenario.add_argument(
        "--holding", type=_positive_int, default=defaults.holding_period, help="Holding period in years"
    )
    scenario.set_defaults(func=_command_scenario)

    matrix = subparsers.add_parser("matrix", help="Returns matrix over growth and exit multiples")
    matrix.add_argument("--price", type=float, required=True, help="Current share price")
    matrix.add_argument("--cash-flow", type=float, required=True, help="Owner's earnings per share")
    matrix.add_argument(
        "--holding", type=_positive_int, default=defaults.holding_period, help="Holding period in years"
    )
    matrix.set_defaults(func=_command_matrix)

    curve = subparsers.add_parser("curve", help="Price sensitivity around the implied growth")
    curve.add_argument("--price", type=float, required=True, help="Current share price")
    curve.add_argument("--cash-flow", type=float, required=True, help="Owner's earnings per share")
    curve.add_argument(
        "--half-width", type=int, default=15, help="Percentage points either side of the implied growth"
    )
    _add_dcf_arguments(curve, defaults)
    curve.set_defaults(func=_command_curve)

    owners = subparsers.add_parser("owners-earnings", help="Buffett's owner's earnings per share")
    owners.add_argument("--company", help="Company JSON document to read TTM figures from")
    owners.add_argument("--net-income", type=float, default=0.0, help="Net income (TTM) in billions")
    owners.add_argument("--depreciation", type=float, default=0.0, help="D&A (TTM) in billions")
    owners.add_argument(
        "--working-capital", type=float, default=0.0, help="Change in working capital in billions"
    )
    owners.add_argument("--capex", type=float, default=0.0, help="Capital expenditures in billions")
    owners.add_argument("--sbc", type=float, default=0.0, help="Stock based compensation in billions")
    owners.add_argument("--shares", type=float, default=1.0, help="Shares outstanding in billions")
    owners.add_argument(
        "--maintenance-pct",
        type=float,
        default=100.0,
        help="Share of capex treated as maintenance, 0-100",
    )
    owners.add_argument(
        "--sbc-non-cash",
        action="store_true",
        help="Treat stock based compensation as a non-cash add-back only",
    )
    owners.set_defaults(func=_command_owners_earnings)

    destination = subparsers.add_parser("destination", help="End-state destination analysis")
    destination.add_argument("--company", required=True, help="Company JSON document")
    destination.add_argument("--revenue", type=float, help="Current revenue in billions")
    destination.add_argument(
        "--revenue-growth", type=float, default=DEFAULT_REVENUE_GROWTH, help="Annual revenue growth"
    )
    destination.add_argument("--margin", type=float, help="Target net margin in percent")
    destination.add_argument(
        "--multiple", type=float, default=DEFAULT_TARGET_MULTIPLE, help="Target P/E multiple"
    )
    destination.add_argument(
        "--share-change",
        type=float,
        default=DEFAULT_SHARE_CHANGE,
        help="Annual share count reduction as a decimal",
    )
    destination.add_argument(
        "--holding", type=_positive_int, default=DEFAULT_DESTINATION_YEARS, help="Years to the destination"
    )
    destination.set_defaults(func=_command_destination)

    report = subparsers.add_parser("report", help="Full valuation snapshot for a company")
    report.add_argument("--company", required=True, help="Company JSON document")
    report.add_argument("--ticker", help="Override the ticker in the document")
    report.add_argument("--owners-earnings", type=float, help="Override owner's earnings per share")
    report.add_argument("--discount-rate", type=float, help="Annual discount rate as a decimal")
    report.add_argument("--multiple", type=float, help="Terminal multiple")
    report.add_argument("--holding", type=_positive_int, help="Holding period in years")
    report.add_argument("--json", action="store_true", help="Print the snapshot as JSON")
    report.set_defaults(func=_command_report)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    try:
        parser = build_parser()
    except ConfigurationError as exc:
        print(f"Invalid configuration: {exc}")
        return 1

    args = parser.parse_args(argv)
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

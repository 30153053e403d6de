"""CLI entry point for Flumen."""

from __future__ import annotations

import argparse
from datetime import date
import logging
import sys

from .allocation import AllocationError
from .lifecycle import (
    apply_config_change,
    apply_daily_expense_estimate,
    create_new_year,
    finalize_month,
    revert_month,
    update_month_real_data,
)
from .periods import is_month, parse_date
from .schema import FinancialState, SchemaError, load_state, write_state
from .summary import flow_rows, investment_summaries, total_yield
from .validate import validate_state


def _month_arg(value: str) -> str:
    if not is_month(value):
        raise argparse.ArgumentTypeError(f"'{value}' is not a YYYY-MM month")
    return value


def _date_arg(value: str) -> date:
    try:
        return parse_date(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not a YYYY-MM-DD date") from None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Flumen monthly cash-flow planner")
    parser.add_argument("state", help="Path to state JSON file")
    parser.add_argument("-o", "--output", help="Where to write the updated state (default: overwrite STATE)")
    parser.add_argument("--validate", action="store_true", help="Validate JSON only")
    parser.add_argument("--summary", action="store_true", help="Print month-by-month summary to stdout")
    parser.add_argument("--finalize", type=_month_arg, metavar="MONTH", help="Finalize MONTH (YYYY-MM)")
    parser.add_argument("--revert", type=_month_arg, metavar="MONTH", help="Revert finalized MONTH to projected")
    parser.add_argument(
        "--set-balance",
        nargs=3,
        metavar=("MONTH", "INVESTMENT", "BALANCE"),
        help="Record the real closing balance of an investment in a finalized month",
    )
    parser.add_argument(
        "--recalculate-daily",
        choices=("all", "3", "6", "12"),
        metavar="PERIOD",
        help="Set the daily expenses estimate to the average of the last PERIOD finalized months (all, 3, 6 or 12)",
    )
    parser.add_argument("--new-year", action="store_true", help="Roll over to the next year (all months must be finalized)")
    parser.add_argument("--today", type=_date_arg, help="Reference date for the ongoing month (default: system date)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _print_validation(errors: list[str], warnings: list[str]) -> None:
    for warning in warnings:
        print(f"WARNING: {warning}")
    for error in errors:
        print(f"ERROR: {error}", file=sys.stderr)


def _set_balance(state: FinancialState, month: str, investment_id: str, raw_balance: str) -> str | None:
    """Apply --set-balance. Returns an error message on failure."""
    try:
        balance = float(raw_balance)
    except ValueError:
        return f"--set-balance: '{raw_balance}' is not a number"
    record = state.find_month(month)
    if record is None or not record.is_finalized:
        return f"--set-balance: {month} is not finalized"
    if investment_id not in record.investments:
        return f"--set-balance: unknown investment '{investment_id}'"
    update_month_real_data(state, month, {"investments": {investment_id: {"final_balance": balance}}})
    return None


def _apply_actions(state: FinancialState, args: argparse.Namespace) -> str | None:
    if args.finalize and finalize_month(state, args.finalize) is None:
        return f"--finalize: month {args.finalize} not found in {state.year}"
    if args.set_balance:
        message = _set_balance(state, *args.set_balance)
        if message:
            return message
    if args.revert and revert_month(state, args.revert) is None:
        return f"--revert: month {args.revert} not found in {state.year}"
    if args.recalculate_daily:
        period = args.recalculate_daily if args.recalculate_daily == "all" else int(args.recalculate_daily)
        if apply_daily_expense_estimate(state, period) is None:
            return f"--recalculate-daily: no finalized month in {state.year}"
    if args.new_year and not create_new_year(state):
        return f"--new-year: every month of {state.year} must be finalized first"
    return None


def _print_summary(state: FinancialState, today: date) -> None:
    print(f"Year: {state.year}")
    print(f"{'Month':<8} {'Status':<10} {'Income':>12} {'Expenses':>12} {'Movements':>12} {'Balance':>14}")
    for row in flow_rows(state.months, today):
        print(
            f"{row.month:<8} {row.status:<10} {row.income:>12,.2f} {row.expenses:>12,.2f} "
            f"{row.movements:>12,.2f} {row.final_balance:>14,.2f}"
        )
    for summary in investment_summaries(state.config, state.months):
        print(
            f"{summary.name}: {summary.current_balance:,.2f} -> {summary.projected_balance:,.2f} "
            f"(yield {summary.total_yield:,.2f})"
        )
    print(f"Total yield: {total_yield(state.months):,.2f}")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        state = load_state(args.state)
    except (SchemaError, OSError, ValueError) as exc:
        print(f"Failed to load state: {exc}", file=sys.stderr)
        return 2

    validation = validate_state(state)
    _print_validation(validation.errors, validation.warnings)
    if not validation.is_valid:
        return 1

    if args.validate:
        print("State is valid.")
        return 0

    try:
        apply_config_change(state)
        message = _apply_actions(state, args)
    except AllocationError as exc:
        print(f"Allocation failed: {exc}", file=sys.stderr)
        return 1
    except SchemaError as exc:
        print(f"Invalid real data: {exc}", file=sys.stderr)
        return 2
    if message:
        print(message, file=sys.stderr)
        return 1

    output = write_state(args.output or args.state, state)
    print(f"Wrote state to {output}")

    if args.summary:
        _print_summary(state, args.today or date.today())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

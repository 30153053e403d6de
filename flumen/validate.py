"""Semantic and cross-reference validation for states."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from .periods import installment_end_month, is_date, is_month
from .schema import FinancialState, ScheduledIncrease

ALLOCATION_TOTAL = 100.0


@dataclass(slots=True)
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _check_month(result: ValidationResult, path: str, value: str) -> bool:
    if not is_month(value):
        result.errors.append(f"{path}: '{value}' is not valid; expected YYYY-MM")
        return False
    return True


def _check_date(result: ValidationResult, path: str, value: str) -> bool:
    if not is_date(value):
        result.errors.append(f"{path}: '{value}' is not valid; expected YYYY-MM-DD")
        return False
    return True


def _check_installments(result: ValidationResult, path: str, value: int) -> None:
    if value < 1:
        result.errors.append(f"{path}: must be >= 1")


def _check_non_negative(result: ValidationResult, path: str, value: float) -> None:
    if value < 0:
        result.errors.append(f"{path}: must be >= 0")


def _check_unique_ids(result: ValidationResult, base: str, ids: Iterable[str]) -> None:
    seen: set[str] = set()
    for idx, item_id in enumerate(ids):
        if item_id in seen:
            result.errors.append(f"{base}[{idx}].id: duplicate id '{item_id}'")
        seen.add(item_id)


def _check_increases(result: ValidationResult, base: str, increases: list[ScheduledIncrease]) -> None:
    for idx, item in enumerate(increases):
        _check_month(result, f"{base}.increases[{idx}].month", item.month)
    counts = Counter(item.month for item in increases)
    for month, count in sorted(counts.items()):
        if count > 1:
            result.warnings.append(
                f"{base}.increases: {count} entries share month '{month}'; the last one listed wins"
            )


def _warn_outside_year(result: ValidationResult, path: str, first: str, last: str, year: int) -> None:
    if last < f"{year}-01" or first > f"{year}-12":
        result.warnings.append(f"{path}: falls entirely outside {year}")


def validate_state(state: FinancialState) -> ValidationResult:
    result = ValidationResult()
    config = state.config
    year = state.year

    if not 1900 <= year <= 9998:
        result.errors.append(f"year: {year} is out of range")

    _check_increases(result, "config.salary", config.salary.increases)
    _check_non_negative(result, "config.daily_expenses_estimate", config.daily_expenses_estimate)

    _check_unique_ids(result, "config.fixed_expenses", (e.id for e in config.fixed_expenses))
    for idx, expense in enumerate(config.fixed_expenses):
        _check_increases(result, f"config.fixed_expenses[{idx}]", expense.increases)

    _check_unique_ids(result, "config.extraordinary_income", (i.id for i in config.extraordinary_income))
    for idx, income in enumerate(config.extraordinary_income):
        base = f"config.extraordinary_income[{idx}]"
        if _check_month(result, f"{base}.month", income.month):
            _warn_outside_year(result, base, income.month, income.month, year)

    _check_unique_ids(result, "config.extraordinary_expenses", (e.id for e in config.extraordinary_expenses))
    for idx, expense in enumerate(config.extraordinary_expenses):
        base = f"config.extraordinary_expenses[{idx}]"
        _check_installments(result, f"{base}.installments", expense.installments)
        if _check_month(result, f"{base}.start_month", expense.start_month) and expense.installments >= 1:
            end = installment_end_month(expense.start_month, expense.installments)
            _warn_outside_year(result, base, expense.start_month, end, year)

    _check_unique_ids(result, "config.investments", (inv.id for inv in config.investments))
    for idx, investment in enumerate(config.investments):
        base = f"config.investments[{idx}]"
        _check_non_negative(result, f"{base}.allocation_percent", investment.allocation_percent)
        _check_non_negative(result, f"{base}.initial_balance", investment.initial_balance)
        if investment.min_value_target is not None:
            _check_non_negative(result, f"{base}.min_value_target", investment.min_value_target)

    if config.investments:
        total = sum(inv.allocation_percent for inv in config.investments)
        if abs(total - ALLOCATION_TOTAL) > max(state.settings.tolerance, 0.0):
            result.warnings.append(
                f"config.investments: allocation_percent sums to {total:g}%, expected 100%"
            )
        priorities = Counter(inv.withdrawal_priority for inv in config.investments)
        for priority, count in sorted(priorities.items()):
            if count > 1:
                result.warnings.append(
                    f"config.investments: {count} investments share withdrawal_priority {priority}; configuration order breaks the tie"
                )

    _check_unique_ids(result, "config.trips", (t.id for t in config.trips))
    for idx, trip in enumerate(config.trips):
        base = f"config.trips[{idx}]"
        _check_non_negative(result, f"{base}.daily_budget", trip.daily_budget)
        start_ok = _check_date(result, f"{base}.start_date", trip.start_date)
        end_ok = _check_date(result, f"{base}.end_date", trip.end_date)
        if start_ok and end_ok and trip.start_date > trip.end_date:
            result.errors.append(f"{base}.start_date/{base}.end_date: start_date must be <= end_date")
        _check_unique_ids(result, f"{base}.pre_expenses", (p.id for p in trip.pre_expenses))
        for pidx, item in enumerate(trip.pre_expenses):
            pbase = f"{base}.pre_expenses[{pidx}]"
            _check_month(result, f"{pbase}.month", item.month)
            _check_installments(result, f"{pbase}.installments", item.installments)

    if state.settings.tolerance < 0:
        result.errors.append("settings.tolerance: must be >= 0")

    for idx, record in enumerate(state.months):
        base = f"months[{idx}]"
        _check_month(result, f"{base}.month", record.month)
        if record.status == "finalized" and record.real_data is None:
            result.errors.append(f"{base}.real_data: required when status is 'finalized'")
        elif record.status != "finalized" and record.real_data is not None:
            result.warnings.append(f"{base}.real_data: ignored because status is '{record.status}'")

    return result

"""Scheduled value overrides (salary raises, fixed-expense adjustments)."""

from __future__ import annotations

from typing import Iterable

from .schema import FixedExpense, SalaryConfig, ScheduledIncrease


def _sorted_increases(increases: Iterable[ScheduledIncrease]) -> list[ScheduledIncrease]:
    # sorted() is stable, so same-month entries keep their configured order
    return sorted(increases, key=lambda item: item.month)


def resolve_value(target_month: str, base_value: float, increases: Iterable[ScheduledIncrease]) -> float:
    """Return the value in effect for ``target_month``.

    The last increase dated at or before the target wins; with none, the base
    value applies.
    """
    current = base_value
    for increase in _sorted_increases(increases):
        if increase.month > target_month:
            break
        current = increase.value
    return current


def salary_for_month(month: str, salary: SalaryConfig) -> float:
    return resolve_value(month, salary.base_value, salary.increases)


def fixed_expense_for_month(month: str, expense: FixedExpense) -> float:
    return resolve_value(month, expense.value, expense.increases)


def fixed_expenses_for_month(month: str, expenses: Iterable[FixedExpense]) -> float:
    return sum(fixed_expense_for_month(month, expense) for expense in expenses)


def consolidate(
    base_value: float,
    increases: Iterable[ScheduledIncrease],
    cutoff_month: str,
) -> tuple[float, list[ScheduledIncrease]]:
    """Fold every increase dated at or before ``cutoff_month`` into the base value.

    Returns the new base value and the increases still in the future, in their
    original order.
    """
    items = list(increases)
    new_base = resolve_value(cutoff_month, base_value, items)
    future = [
        ScheduledIncrease(month=item.month, value=item.value) for item in items if item.month > cutoff_month
    ]
    return new_base, future

import pytest

from flumen.periods import months_of_year
from flumen.schedules import (
    consolidate,
    fixed_expense_for_month,
    fixed_expenses_for_month,
    resolve_value,
    salary_for_month,
)
from flumen.schema import FixedExpense, SalaryConfig, ScheduledIncrease


def _raise(month: str, value: float) -> ScheduledIncrease:
    return ScheduledIncrease(month=month, value=value)


def test_base_value_applies_before_first_increase():
    salary = SalaryConfig(base_value=15611.0, increases=[_raise("2026-05", 17050.0)])
    assert salary_for_month("2026-01", salary) == 15611.0
    assert salary_for_month("2026-04", salary) == 15611.0
    assert salary_for_month("2026-05", salary) == 17050.0
    assert salary_for_month("2026-12", salary) == 17050.0


def test_increases_are_applied_in_month_order_not_list_order():
    increases = [_raise("2026-09", 300.0), _raise("2026-03", 200.0)]
    assert resolve_value("2026-02", 100.0, increases) == 100.0
    assert resolve_value("2026-03", 100.0, increases) == 200.0
    assert resolve_value("2026-08", 100.0, increases) == 200.0
    assert resolve_value("2026-09", 100.0, increases) == 300.0


def test_increase_value_replaces_rather_than_adds():
    assert resolve_value("2026-06", 1000.0, [_raise("2026-01", 50.0)]) == 50.0


def test_same_month_increases_resolve_to_last_listed():
    increases = [_raise("2026-03", 200.0), _raise("2026-03", 250.0)]
    assert resolve_value("2026-03", 100.0, increases) == 250.0


def test_resolution_is_stable_between_increase_months():
    increases = [_raise("2026-03", 200.0), _raise("2026-10", 400.0)]
    values = [resolve_value(m, 100.0, increases) for m in months_of_year(2026)]
    assert values == [100.0, 100.0] + [200.0] * 7 + [400.0] * 3


def test_fixed_expenses_sum_with_individual_schedules():
    expenses = [
        FixedExpense(id="rent", name="Rent", value=2000.0, increases=[_raise("2026-07", 2200.0)]),
        FixedExpense(id="gym", name="Gym", value=100.0),
    ]
    assert fixed_expense_for_month("2026-06", expenses[0]) == 2000.0
    assert fixed_expenses_for_month("2026-06", expenses) == 2100.0
    assert fixed_expenses_for_month("2026-07", expenses) == 2300.0
    assert fixed_expenses_for_month("2026-07", []) == 0.0


def test_consolidate_folds_past_increases_and_keeps_future_ones():
    increases = [_raise("2027-03", 500.0), _raise("2026-05", 300.0), _raise("2026-11", 400.0)]
    base, future = consolidate(100.0, increases, "2026-12")
    assert base == 400.0
    assert [(item.month, item.value) for item in future] == [("2027-03", 500.0)]
    assert future[0] is not increases[0]


@pytest.mark.parametrize("increases", [[], [ScheduledIncrease(month="2027-01", value=9.0)]])
def test_consolidate_without_past_increases_keeps_base(increases):
    base, future = consolidate(100.0, increases, "2026-12")
    assert base == 100.0
    assert len(future) == len(increases)

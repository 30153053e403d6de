"""Installment and trip expansion into per-month amounts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .periods import inclusive_days, is_active_in_month, overlap_days, parse_date
from .schema import ExtraordinaryExpense, ExtraordinaryIncome, Trip, TripExpense


@dataclass(slots=True)
class TripMonthDetail:
    trip: Trip
    pre_expenses: float
    active_pre_expenses: list[TripExpense]
    daily_budget_days: int
    daily_budget_total: float

    @property
    def total(self) -> float:
        return self.pre_expenses + self.daily_budget_total


def extraordinary_income_details_for_month(month: str, incomes: Iterable[ExtraordinaryIncome]) -> list[ExtraordinaryIncome]:
    return [income for income in incomes if income.month == month]


def extraordinary_income_for_month(month: str, incomes: Iterable[ExtraordinaryIncome]) -> float:
    return sum(income.value for income in extraordinary_income_details_for_month(month, incomes))


def extraordinary_expense_details_for_month(
    month: str,
    expenses: Iterable[ExtraordinaryExpense],
) -> list[ExtraordinaryExpense]:
    return [
        expense
        for expense in expenses
        if is_active_in_month(month, expense.start_month, expense.installments)
    ]


def extraordinary_expenses_for_month(month: str, expenses: Iterable[ExtraordinaryExpense]) -> float:
    return sum(expense.installment_value for expense in extraordinary_expense_details_for_month(month, expenses))


def active_pre_expenses(month: str, trip: Trip) -> list[TripExpense]:
    return [item for item in trip.pre_expenses if is_active_in_month(month, item.month, item.installments)]


def trip_month_detail(month: str, trip: Trip) -> TripMonthDetail:
    active = active_pre_expenses(month, trip)
    days = overlap_days(month, trip.start_date, trip.end_date)
    return TripMonthDetail(
        trip=trip,
        pre_expenses=sum(item.installment_value for item in active),
        active_pre_expenses=active,
        daily_budget_days=days,
        daily_budget_total=days * trip.daily_budget,
    )


def trip_details_for_month(month: str, trips: Iterable[Trip]) -> list[TripMonthDetail]:
    """Per-trip cost breakdown, only for trips that cost something in ``month``."""
    details: list[TripMonthDetail] = []
    for trip in trips:
        detail = trip_month_detail(month, trip)
        if detail.pre_expenses > 0 or detail.daily_budget_total > 0:
            details.append(detail)
    return details


def trip_expenses_for_month(month: str, trips: Iterable[Trip]) -> float:
    return sum(trip_month_detail(month, trip).total for trip in trips)


def trip_days(trip: Trip) -> int:
    return inclusive_days(parse_date(trip.start_date), parse_date(trip.end_date))


def trip_total_cost(trip: Trip) -> float:
    """Whole-trip cost: every day of the budget plus every pre-expense installment."""
    pre_total = sum(item.installments * item.installment_value for item in trip.pre_expenses)
    return trip_days(trip) * trip.daily_budget + pre_total

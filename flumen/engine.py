"""Month-by-month projection engine."""

from __future__ import annotations

import logging
from typing import Mapping

from .allocation import allocate
from .periods import months_of_year
from .recurring import (
    extraordinary_expenses_for_month,
    extraordinary_income_for_month,
    trip_expenses_for_month,
)
from .schedules import fixed_expenses_for_month, salary_for_month
from .schema import Config, InvestmentMonthData, MonthData, MonthExpenses, MonthIncome, PlannerSettings

logger = logging.getLogger(__name__)

DAILY_EXPENSE_PERIODS = ("all", 3, 6, 12)


def project_month(
    month: str,
    config: Config,
    previous_month_investments: Mapping[str, InvestmentMonthData | float] | None,
    settings: PlannerSettings | None = None,
) -> MonthData:
    """Build the projected record for ``month`` from configuration alone."""
    settings = settings or PlannerSettings()

    income = MonthIncome(
        salary=salary_for_month(month, config.salary),
        extraordinary=extraordinary_income_for_month(month, config.extraordinary_income),
    )
    expenses = MonthExpenses(
        fixed=fixed_expenses_for_month(month, config.fixed_expenses),
        daily=config.daily_expenses_estimate,
        extraordinary=extraordinary_expenses_for_month(month, config.extraordinary_expenses),
        trips=trip_expenses_for_month(month, config.trips),
    )
    available = income.total - expenses.total

    investments = allocate(
        available,
        config.investments,
        previous_month_investments,
        strict=settings.strict_allocation,
        tolerance=settings.tolerance,
    )
    return MonthData(
        month=month,
        status="projected",
        income=income,
        expenses=expenses,
        investments=investments,
    )


def generate_year(
    year: int,
    config: Config,
    previous_year_end_balances: Mapping[str, float] | None = None,
    settings: PlannerSettings | None = None,
) -> list[MonthData]:
    """Project January through December, threading balances month to month.

    January starts from ``previous_year_end_balances`` when given; accounts
    missing from it fall back to their ``initial_balance``.
    """
    months: list[MonthData] = []
    previous: Mapping[str, InvestmentMonthData | float] | None = previous_year_end_balances
    for month in months_of_year(year):
        record = project_month(month, config, previous, settings)
        months.append(record)
        previous = record.investments
    logger.debug("projected %d months for %d", len(months), year)
    return months


def recalculate_daily_expenses(months: list[MonthData], period: str | int = "all") -> float:
    """Average real daily spending over the most recent finalized months.

    ``period`` is ``"all"`` or a month count (3, 6 or 12); with fewer finalized
    months than the period, all of them are used.
    """
    if period not in DAILY_EXPENSE_PERIODS:
        raise ValueError(f"period must be one of {DAILY_EXPENSE_PERIODS}, got {period!r}")
    finalized = [m for m in months if m.is_finalized]
    if period != "all" and len(finalized) > period:
        finalized = finalized[-period:]
    if not finalized:
        return 0.0
    return sum(m.real_data.expenses.daily for m in finalized) / len(finalized)

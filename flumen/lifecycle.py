"""Month finalization lifecycle and year rollover.

Months move ``projected -> finalized -> projected``. Finalizing freezes an
itemized ``RealData`` snapshot that later configuration edits do not touch;
reverting discards it and re-projects the year. Every configuration change
goes through :func:`apply_config_change`, the single re-projection transition.
Persisting the state afterwards is the caller's job.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Mapping

from .engine import generate_year, recalculate_daily_expenses
from .periods import installment_end_month, months_of_year
from .recurring import (
    TripMonthDetail,
    extraordinary_expense_details_for_month,
    extraordinary_income_details_for_month,
    trip_details_for_month,
)
from .schedules import consolidate, fixed_expense_for_month
from .schema import (
    Config,
    FinancialState,
    FixedExpenseLine,
    LineItem,
    MonthData,
    RealData,
    RealExpenses,
    RealIncome,
    RealInvestment,
    SalaryConfig,
    SchemaError,
    Trip,
    TripItem,
    TripLines,
)

logger = logging.getLogger(__name__)


def compute_yield(previous_balance: float, deposit: float, final_balance: float) -> float:
    return final_balance - previous_balance - deposit


def _reproject(state: FinancialState, config: Config, reverted: str | None = None) -> list[MonthData]:
    """Regenerate the state's year without touching ``state``.

    Finalized months other than ``reverted`` carry their status and real data over.
    """
    opening = state.year_end_balances.get(state.year - 1)
    regenerated = generate_year(state.year, copy.deepcopy(config), opening, state.settings)
    existing = {m.month: m for m in state.months}
    for record in regenerated:
        old = existing.get(record.month)
        if old is not None and old.is_finalized and record.month != reverted:
            record.status = "finalized"
            record.real_data = old.real_data
    return regenerated


def apply_config_change(state: FinancialState, config: Config | None = None) -> list[MonthData]:
    """Replace the configuration (when given) and re-project the state's year.

    Finalized months keep their status and real data; every other month is
    rebuilt from a private copy of the configuration. The state is left
    untouched when the projection raises.
    """
    new_config = copy.deepcopy(config) if config is not None else state.config
    months = _reproject(state, new_config)
    state.config = new_config
    state.months = months
    return state.months


def _trip_lines(detail: TripMonthDetail) -> TripLines:
    items = [TripItem(description=item.description, value=item.installment_value) for item in detail.active_pre_expenses]
    if detail.daily_budget_total > 0:
        items.append(
            TripItem(
                description=f"Daily budget ({detail.daily_budget_days} days)",
                value=detail.daily_budget_total,
            )
        )
    return TripLines(id=detail.trip.id, name=detail.trip.name, items=items)


def snapshot_month(record: MonthData, config: Config) -> RealData:
    """Itemize everything active in the record's month."""
    month = record.month
    income = RealIncome(
        salary=record.income.salary,
        extraordinary=[
            LineItem(id=item.id, description=item.description, value=item.value)
            for item in extraordinary_income_details_for_month(month, config.extraordinary_income)
        ],
    )
    expenses = RealExpenses(
        fixed=[
            FixedExpenseLine(id=item.id, name=item.name, value=fixed_expense_for_month(month, item))
            for item in config.fixed_expenses
        ],
        daily=record.expenses.daily,
        extraordinary=[
            LineItem(id=item.id, description=item.description, value=item.installment_value)
            for item in extraordinary_expense_details_for_month(month, config.extraordinary_expenses)
        ],
        trips=[_trip_lines(detail) for detail in trip_details_for_month(month, config.trips)],
    )
    investments = {
        inv_id: RealInvestment(
            deposit=entry.deposit,
            final_balance=entry.final_balance,
            yield_=compute_yield(entry.previous_balance, entry.deposit, entry.final_balance),
        )
        for inv_id, entry in record.investments.items()
    }
    return RealData(income=income, expenses=expenses, investments=investments)


def finalize_month(state: FinancialState, month: str) -> MonthData | None:
    """Freeze ``month`` into a real-data snapshot.

    Re-finalizing a finalized month takes a fresh snapshot. Returns ``None``
    when the month is not part of the state.
    """
    record = state.find_month(month)
    if record is None:
        logger.warning("cannot finalize %s: month not found", month)
        return None
    record.real_data = snapshot_month(record, state.config)
    record.status = "finalized"
    logger.info("finalized %s", month)
    return record


def revert_month(state: FinancialState, month: str) -> MonthData | None:
    record = state.find_month(month)
    if record is None:
        logger.warning("cannot revert %s: month not found", month)
        return None
    state.months = _reproject(state, state.config, reverted=month)
    logger.info("reverted %s to projected", month)
    return state.find_month(month)


def _section(raw: Mapping[str, Any], key: str, path: str) -> dict[str, Any]:
    value = raw.get(key, {})
    if not isinstance(value, Mapping):
        raise SchemaError(f"{path}.{key}: expected object")
    return dict(value)


def _merge_investments(record: MonthData, real: RealData, raw: dict[str, Any], path: str) -> None:
    for inv_id, value in raw.items():
        entry_path = f"{path}.{inv_id}"
        if not isinstance(value, Mapping):
            raise SchemaError(f"{entry_path}: expected object")
        current = real.investments.get(inv_id)
        projected = record.investments.get(inv_id)
        if current is None:
            current = RealInvestment(
                deposit=projected.deposit if projected else 0.0,
                final_balance=projected.final_balance if projected else 0.0,
            )
        # fill absent fields from the stored entry, then parse as one record
        merged = {**current.to_dict(), **value}
        parsed = RealInvestment.from_dict(merged, entry_path)
        if "yield" not in value:
            previous = projected.previous_balance if projected else 0.0
            parsed.yield_ = compute_yield(previous, parsed.deposit, parsed.final_balance)
        real.investments[inv_id] = parsed


def update_month_real_data(
    state: FinancialState,
    month: str,
    data: RealData | Mapping[str, Any],
) -> MonthData | None:
    """Overwrite parts of a finalized month's snapshot.

    ``data`` is either a whole ``RealData`` or a partial JSON-shaped mapping;
    lists given in the mapping replace the stored lists. Investment entries
    without an explicit ``yield`` get it recomputed from the month's previous
    balance.
    """
    record = state.find_month(month)
    if record is None or not record.is_finalized:
        logger.warning("cannot update real data for %s: month is not finalized", month)
        return None
    if isinstance(data, RealData):
        record.real_data = copy.deepcopy(data)
        return record

    path = f"real_data[{month}]"
    # work on a copy so a bad section leaves the stored snapshot as it was
    real = copy.deepcopy(record.real_data)

    income = _section(data, "income", path)
    if income:
        parsed_income = RealIncome.from_dict({**real.income.to_dict(), **income}, f"{path}.income")
        real.income.salary = parsed_income.salary
        real.income.extraordinary = parsed_income.extraordinary

    expenses = _section(data, "expenses", path)
    if expenses:
        parsed_expenses = RealExpenses.from_dict({**real.expenses.to_dict(), **expenses}, f"{path}.expenses")
        real.expenses.fixed = parsed_expenses.fixed
        real.expenses.daily = parsed_expenses.daily
        real.expenses.extraordinary = parsed_expenses.extraordinary
        real.expenses.trips = parsed_expenses.trips

    _merge_investments(record, real, _section(data, "investments", path), f"{path}.investments")
    record.real_data = real
    return record


def _year_end_balances(december: MonthData) -> dict[str, float]:
    real = december.real_data
    balances: dict[str, float] = {}
    for inv_id, entry in december.investments.items():
        if real is not None and inv_id in real.investments:
            balances[inv_id] = real.investments[inv_id].final_balance
        else:
            balances[inv_id] = entry.final_balance
    return balances


def save_year_end_balances(state: FinancialState, year: int) -> dict[str, float] | None:
    """Record December's closing balances, preferring real over projected values."""
    december = state.find_month(f"{year}-12")
    if december is None:
        return None
    balances = _year_end_balances(december)
    state.year_end_balances[year] = balances
    return balances


def _trip_reaches(trip: Trip, month: str) -> bool:
    if trip.end_date[:7] >= month:
        return True
    return any(
        item.installments >= 1 and installment_end_month(item.month, item.installments) >= month
        for item in trip.pre_expenses
    )


def rollover_config(config: Config, year: int) -> Config:
    """Configuration for ``year + 1``: past raises folded in, stale items dropped."""
    cutoff = f"{year}-12"
    new_start = f"{year + 1}-01"
    out = copy.deepcopy(config)

    base, future = consolidate(out.salary.base_value, out.salary.increases, cutoff)
    out.salary = SalaryConfig(base_value=base, increases=future)
    for expense in out.fixed_expenses:
        expense.value, expense.increases = consolidate(expense.value, expense.increases, cutoff)

    out.extraordinary_income = [item for item in out.extraordinary_income if item.month >= new_start]
    out.extraordinary_expenses = [
        item
        for item in out.extraordinary_expenses
        if item.installments >= 1 and installment_end_month(item.start_month, item.installments) >= new_start
    ]
    out.trips = [trip for trip in out.trips if _trip_reaches(trip, new_start)]
    return out


def create_new_year(state: FinancialState) -> bool:
    """Roll the state over to the next calendar year.

    Rejected, leaving the state untouched, unless every month of the current
    year is finalized. The new year is projected before anything is committed.
    """
    pending = [
        month
        for month in months_of_year(state.year)
        if (record := state.find_month(month)) is None or not record.is_finalized
    ]
    if pending:
        logger.warning(
            "cannot create %d: %d month(s) of %d not finalized (first: %s)",
            state.year + 1,
            len(pending),
            state.year,
            pending[0],
        )
        return False

    balances = _year_end_balances(state.find_month(f"{state.year}-12"))
    new_config = rollover_config(state.config, state.year)
    new_year = state.year + 1
    months = generate_year(new_year, copy.deepcopy(new_config), balances, state.settings)

    state.year_end_balances[state.year] = balances
    state.year = new_year
    if new_year not in state.available_years:
        state.available_years.append(new_year)
    state.config = new_config
    state.months = months
    logger.info("created year %d", new_year)
    return True


def apply_daily_expense_estimate(state: FinancialState, period: str | int = "all") -> float | None:
    """Set ``daily_expenses_estimate`` to the real average and re-project.

    Returns the new estimate, or ``None`` when no month is finalized yet.
    """
    if not any(m.is_finalized for m in state.months):
        logger.warning("cannot recalculate daily expenses: no finalized month in %d", state.year)
        return None
    estimate = recalculate_daily_expenses(state.months, period)
    config = copy.deepcopy(state.config)
    config.daily_expenses_estimate = estimate
    apply_config_change(state, config)
    logger.info("daily expenses estimate set to %.2f", estimate)
    return estimate

"""Display-oriented aggregates over projected and finalized months."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from .periods import month_of
from .recurring import trip_days, trip_total_cost
from .schema import Config, MonthData


@dataclass(slots=True)
class MonthTotals:
    month: str
    status: str
    income: float
    expenses: float
    movements: float
    final_balance: float
    yield_: float

    @property
    def net_flow(self) -> float:
        return self.income - self.expenses


@dataclass(slots=True)
class InvestmentSummary:
    id: str
    name: str
    initial_balance: float
    current_balance: float
    projected_balance: float
    total_yield: float

    @property
    def growth(self) -> float:
        return self.projected_balance - self.current_balance

    @property
    def growth_percent(self) -> float:
        if self.current_balance <= 0:
            return 0.0
        return self.growth / self.current_balance * 100.0


@dataclass(slots=True)
class TripSummary:
    id: str
    name: str
    days: int
    daily_total: float
    pre_expenses_total: float
    total: float


def display_status(record: MonthData, today: date) -> str:
    """Status to show: finalized months stay finalized, the current month is ongoing."""
    if record.is_finalized:
        return "finalized"
    if record.month == month_of(today):
        return "ongoing"
    return "projected"


def month_totals(record: MonthData, today: date | None = None) -> MonthTotals:
    status = display_status(record, today) if today is not None else record.status
    real = record.real_data if record.is_finalized else None
    if real is not None:
        return MonthTotals(
            month=record.month,
            status=status,
            income=real.income.total,
            expenses=real.expenses.total,
            movements=sum(inv.deposit for inv in real.investments.values()),
            final_balance=sum(inv.final_balance for inv in real.investments.values()),
            yield_=sum(inv.yield_ for inv in real.investments.values()),
        )
    return MonthTotals(
        month=record.month,
        status=status,
        income=record.income.total,
        expenses=record.expenses.total,
        movements=sum(inv.deposit for inv in record.investments.values()),
        final_balance=sum(inv.final_balance for inv in record.investments.values()),
        yield_=0.0,
    )


def flow_rows(months: list[MonthData], today: date | None = None) -> list[MonthTotals]:
    return [month_totals(record, today) for record in months]


def total_yield(months: list[MonthData]) -> float:
    return sum(
        inv.yield_
        for record in months
        if record.is_finalized
        for inv in record.real_data.investments.values()
    )


def investment_summaries(config: Config, months: list[MonthData]) -> list[InvestmentSummary]:
    if not months:
        return []
    first, last = months[0], months[-1]
    out: list[InvestmentSummary] = []
    for investment in config.investments:
        opening = first.investments.get(investment.id)
        closing = last.investments.get(investment.id)
        real_closing = last.real_data.investments.get(investment.id) if last.is_finalized else None
        out.append(
            InvestmentSummary(
                id=investment.id,
                name=investment.name,
                initial_balance=investment.initial_balance,
                current_balance=opening.previous_balance if opening else investment.initial_balance,
                projected_balance=(
                    real_closing.final_balance
                    if real_closing is not None
                    else (closing.final_balance if closing else 0.0)
                ),
                total_yield=sum(
                    record.real_data.investments[investment.id].yield_
                    for record in months
                    if record.is_finalized and investment.id in record.real_data.investments
                ),
            )
        )
    return out


def trip_summaries(config: Config) -> list[TripSummary]:
    out: list[TripSummary] = []
    for trip in config.trips:
        days = trip_days(trip)
        out.append(
            TripSummary(
                id=trip.id,
                name=trip.name,
                days=days,
                daily_total=days * trip.daily_budget,
                pre_expenses_total=sum(item.installments * item.installment_value for item in trip.pre_expenses),
                total=trip_total_cost(trip),
            )
        )
    return out

"""State schema dataclasses and JSON loading."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import math
from pathlib import Path
from typing import Any

from .periods import is_date, is_month

REAL_DATA_SCHEMA_VERSION = 1
MONTH_STATUSES = ("projected", "ongoing", "finalized")


class SchemaError(ValueError):
    """Raised when raw JSON cannot be parsed into schema objects."""


def _expect_dict(value: Any, path: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise SchemaError(f"{path}: expected object")
    return value


def _expect_list(value: Any, path: str) -> list[Any]:
    if not isinstance(value, list):
        raise SchemaError(f"{path}: expected array")
    return value


def _require(data: dict[str, Any], key: str, path: str) -> Any:
    if key not in data:
        raise SchemaError(f"{path}.{key}: missing required field")
    return data[key]


def _optional(data: dict[str, Any], key: str, default: Any = None) -> Any:
    return data.get(key, default)


def _number(value: Any, path: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SchemaError(f"{path}: expected number")
    if not math.isfinite(value):
        raise SchemaError(f"{path}: expected a finite number")
    return float(value)


def _integer(value: Any, path: str) -> int:
    number = _number(value, path)
    if not number.is_integer():
        raise SchemaError(f"{path}: expected integer")
    return int(number)


def _month(data: dict[str, Any], key: str, path: str) -> str:
    value = _require(data, key, path)
    if not is_month(value):
        raise SchemaError(f"{path}.{key}: '{value}' is not valid; expected YYYY-MM")
    return value


def _date(data: dict[str, Any], key: str, path: str) -> str:
    value = _require(data, key, path)
    if not is_date(value):
        raise SchemaError(f"{path}.{key}: '{value}' is not valid; expected YYYY-MM-DD")
    return value


def _installments(data: dict[str, Any], path: str) -> int:
    count = _integer(_require(data, "installments", path), f"{path}.installments")
    if count < 0:
        raise SchemaError(f"{path}.installments: must be >= 0")
    return count


def _items(data: dict[str, Any], key: str, path: str, parser: Any, required: bool = False) -> list[Any]:
    raw = _require(data, key, path) if required else _optional(data, key, [])
    return [
        parser(_expect_dict(item, f"{path}.{key}[{idx}]"), f"{path}.{key}[{idx}]")
        for idx, item in enumerate(_expect_list(raw, f"{path}.{key}"))
    ]


# Configuration


@dataclass(slots=True)
class ScheduledIncrease:
    month: str
    value: float

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "ScheduledIncrease":
        return cls(
            month=_month(data, "month", path),
            value=_number(_require(data, "value", path), f"{path}.value"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"month": self.month, "value": self.value}


@dataclass(slots=True)
class SalaryConfig:
    base_value: float = 0.0
    increases: list[ScheduledIncrease] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "config.salary") -> "SalaryConfig":
        return cls(
            base_value=_number(_optional(data, "base_value", 0.0), f"{path}.base_value"),
            increases=_items(data, "increases", path, ScheduledIncrease.from_dict),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"base_value": self.base_value, "increases": [i.to_dict() for i in self.increases]}


@dataclass(slots=True)
class ExtraordinaryIncome:
    id: str
    month: str
    description: str
    value: float

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "ExtraordinaryIncome":
        return cls(
            id=str(_require(data, "id", path)),
            month=_month(data, "month", path),
            description=_optional(data, "description", ""),
            value=_number(_require(data, "value", path), f"{path}.value"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "month": self.month, "description": self.description, "value": self.value}


@dataclass(slots=True)
class FixedExpense:
    id: str
    name: str
    value: float
    increases: list[ScheduledIncrease] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "FixedExpense":
        return cls(
            id=str(_require(data, "id", path)),
            name=_require(data, "name", path),
            value=_number(_require(data, "value", path), f"{path}.value"),
            increases=_items(data, "increases", path, ScheduledIncrease.from_dict),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "value": self.value,
            "increases": [i.to_dict() for i in self.increases],
        }


@dataclass(slots=True)
class ExtraordinaryExpense:
    id: str
    description: str
    start_month: str
    installments: int
    installment_value: float

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "ExtraordinaryExpense":
        return cls(
            id=str(_require(data, "id", path)),
            description=_optional(data, "description", ""),
            start_month=_month(data, "start_month", path),
            installments=_installments(data, path),
            installment_value=_number(_require(data, "installment_value", path), f"{path}.installment_value"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "start_month": self.start_month,
            "installments": self.installments,
            "installment_value": self.installment_value,
        }


@dataclass(slots=True)
class Investment:
    id: str
    name: str
    min_value_target: float | None
    allocation_percent: float
    initial_balance: float
    withdrawal_priority: int

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "Investment":
        min_value_target = _optional(data, "min_value_target")
        return cls(
            id=str(_require(data, "id", path)),
            name=_require(data, "name", path),
            min_value_target=(
                _number(min_value_target, f"{path}.min_value_target") if min_value_target is not None else None
            ),
            allocation_percent=_number(_require(data, "allocation_percent", path), f"{path}.allocation_percent"),
            initial_balance=_number(_optional(data, "initial_balance", 0.0), f"{path}.initial_balance"),
            withdrawal_priority=_integer(_require(data, "withdrawal_priority", path), f"{path}.withdrawal_priority"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "min_value_target": self.min_value_target,
            "allocation_percent": self.allocation_percent,
            "initial_balance": self.initial_balance,
            "withdrawal_priority": self.withdrawal_priority,
        }


@dataclass(slots=True)
class TripExpense:
    id: str
    month: str
    description: str
    installments: int
    installment_value: float

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "TripExpense":
        return cls(
            id=str(_require(data, "id", path)),
            month=_month(data, "month", path),
            description=_optional(data, "description", ""),
            installments=_installments(data, path),
            installment_value=_number(_require(data, "installment_value", path), f"{path}.installment_value"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "month": self.month,
            "description": self.description,
            "installments": self.installments,
            "installment_value": self.installment_value,
        }


@dataclass(slots=True)
class Trip:
    id: str
    name: str
    start_date: str
    end_date: str
    daily_budget: float
    pre_expenses: list[TripExpense] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "Trip":
        return cls(
            id=str(_require(data, "id", path)),
            name=_require(data, "name", path),
            start_date=_date(data, "start_date", path),
            end_date=_date(data, "end_date", path),
            daily_budget=_number(_require(data, "daily_budget", path), f"{path}.daily_budget"),
            pre_expenses=_items(data, "pre_expenses", path, TripExpense.from_dict),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "daily_budget": self.daily_budget,
            "pre_expenses": [p.to_dict() for p in self.pre_expenses],
        }


@dataclass(slots=True)
class Config:
    salary: SalaryConfig = field(default_factory=SalaryConfig)
    extraordinary_income: list[ExtraordinaryIncome] = field(default_factory=list)
    fixed_expenses: list[FixedExpense] = field(default_factory=list)
    daily_expenses_estimate: float = 0.0
    extraordinary_expenses: list[ExtraordinaryExpense] = field(default_factory=list)
    investments: list[Investment] = field(default_factory=list)
    trips: list[Trip] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "config") -> "Config":
        return cls(
            salary=SalaryConfig.from_dict(_expect_dict(_optional(data, "salary", {}), f"{path}.salary"), f"{path}.salary"),
            extraordinary_income=_items(data, "extraordinary_income", path, ExtraordinaryIncome.from_dict),
            fixed_expenses=_items(data, "fixed_expenses", path, FixedExpense.from_dict),
            daily_expenses_estimate=_number(
                _optional(data, "daily_expenses_estimate", 0.0), f"{path}.daily_expenses_estimate"
            ),
            extraordinary_expenses=_items(data, "extraordinary_expenses", path, ExtraordinaryExpense.from_dict),
            investments=_items(data, "investments", path, Investment.from_dict),
            trips=_items(data, "trips", path, Trip.from_dict),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "salary": self.salary.to_dict(),
            "extraordinary_income": [i.to_dict() for i in self.extraordinary_income],
            "fixed_expenses": [e.to_dict() for e in self.fixed_expenses],
            "daily_expenses_estimate": self.daily_expenses_estimate,
            "extraordinary_expenses": [e.to_dict() for e in self.extraordinary_expenses],
            "investments": [i.to_dict() for i in self.investments],
            "trips": [t.to_dict() for t in self.trips],
        }


@dataclass(slots=True)
class PlannerSettings:
    strict_allocation: bool = False
    tolerance: float = 0.01

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "settings") -> "PlannerSettings":
        return cls(
            strict_allocation=bool(_optional(data, "strict_allocation", False)),
            tolerance=_number(_optional(data, "tolerance", 0.01), f"{path}.tolerance"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"strict_allocation": self.strict_allocation, "tolerance": self.tolerance}


# Month records


@dataclass(slots=True)
class InvestmentMonthData:
    previous_balance: float
    deposit: float = 0.0
    yield_: float = 0.0
    final_balance: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "InvestmentMonthData":
        return cls(
            previous_balance=_number(_require(data, "previous_balance", path), f"{path}.previous_balance"),
            deposit=_number(_optional(data, "deposit", 0.0), f"{path}.deposit"),
            yield_=_number(_optional(data, "yield", 0.0), f"{path}.yield"),
            final_balance=_number(_require(data, "final_balance", path), f"{path}.final_balance"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "previous_balance": self.previous_balance,
            "deposit": self.deposit,
            "yield": self.yield_,
            "final_balance": self.final_balance,
        }


@dataclass(slots=True)
class MonthIncome:
    salary: float = 0.0
    extraordinary: float = 0.0

    @property
    def total(self) -> float:
        return self.salary + self.extraordinary

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "MonthIncome":
        return cls(
            salary=_number(_optional(data, "salary", 0.0), f"{path}.salary"),
            extraordinary=_number(_optional(data, "extraordinary", 0.0), f"{path}.extraordinary"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"salary": self.salary, "extraordinary": self.extraordinary}


@dataclass(slots=True)
class MonthExpenses:
    fixed: float = 0.0
    daily: float = 0.0
    extraordinary: float = 0.0
    trips: float = 0.0

    @property
    def total(self) -> float:
        return self.fixed + self.daily + self.extraordinary + self.trips

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "MonthExpenses":
        return cls(
            fixed=_number(_optional(data, "fixed", 0.0), f"{path}.fixed"),
            daily=_number(_optional(data, "daily", 0.0), f"{path}.daily"),
            extraordinary=_number(_optional(data, "extraordinary", 0.0), f"{path}.extraordinary"),
            trips=_number(_optional(data, "trips", 0.0), f"{path}.trips"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"fixed": self.fixed, "daily": self.daily, "extraordinary": self.extraordinary, "trips": self.trips}


# Real data snapshot


@dataclass(slots=True)
class LineItem:
    id: str
    description: str
    value: float

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "LineItem":
        return cls(
            id=str(_require(data, "id", path)),
            description=_optional(data, "description", ""),
            value=_number(_require(data, "value", path), f"{path}.value"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "description": self.description, "value": self.value}


@dataclass(slots=True)
class FixedExpenseLine:
    id: str
    name: str
    value: float

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "FixedExpenseLine":
        return cls(
            id=str(_require(data, "id", path)),
            name=_require(data, "name", path),
            value=_number(_require(data, "value", path), f"{path}.value"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "value": self.value}


@dataclass(slots=True)
class TripItem:
    description: str
    value: float

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "TripItem":
        return cls(
            description=_optional(data, "description", ""),
            value=_number(_require(data, "value", path), f"{path}.value"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"description": self.description, "value": self.value}


@dataclass(slots=True)
class TripLines:
    id: str
    name: str
    items: list[TripItem] = field(default_factory=list)

    @property
    def total(self) -> float:
        return sum(item.value for item in self.items)

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "TripLines":
        return cls(
            id=str(_require(data, "id", path)),
            name=_require(data, "name", path),
            items=_items(data, "items", path, TripItem.from_dict),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "items": [i.to_dict() for i in self.items]}


@dataclass(slots=True)
class RealIncome:
    salary: float = 0.0
    extraordinary: list[LineItem] = field(default_factory=list)

    @property
    def total(self) -> float:
        return self.salary + sum(line.value for line in self.extraordinary)

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "RealIncome":
        return cls(
            salary=_number(_optional(data, "salary", 0.0), f"{path}.salary"),
            extraordinary=_items(data, "extraordinary", path, LineItem.from_dict),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"salary": self.salary, "extraordinary": [line.to_dict() for line in self.extraordinary]}


@dataclass(slots=True)
class RealExpenses:
    fixed: list[FixedExpenseLine] = field(default_factory=list)
    daily: float = 0.0
    extraordinary: list[LineItem] = field(default_factory=list)
    trips: list[TripLines] = field(default_factory=list)

    @property
    def total(self) -> float:
        return (
            sum(line.value for line in self.fixed)
            + self.daily
            + sum(line.value for line in self.extraordinary)
            + sum(trip.total for trip in self.trips)
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "RealExpenses":
        return cls(
            fixed=_items(data, "fixed", path, FixedExpenseLine.from_dict),
            daily=_number(_optional(data, "daily", 0.0), f"{path}.daily"),
            extraordinary=_items(data, "extraordinary", path, LineItem.from_dict),
            trips=_items(data, "trips", path, TripLines.from_dict),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "fixed": [line.to_dict() for line in self.fixed],
            "daily": self.daily,
            "extraordinary": [line.to_dict() for line in self.extraordinary],
            "trips": [trip.to_dict() for trip in self.trips],
        }


@dataclass(slots=True)
class RealInvestment:
    deposit: float
    final_balance: float
    yield_: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "RealInvestment":
        return cls(
            deposit=_number(_require(data, "deposit", path), f"{path}.deposit"),
            final_balance=_number(_require(data, "final_balance", path), f"{path}.final_balance"),
            yield_=_number(_optional(data, "yield", 0.0), f"{path}.yield"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"deposit": self.deposit, "final_balance": self.final_balance, "yield": self.yield_}


@dataclass(slots=True)
class RealData:
    """Itemized snapshot frozen when a month is finalized."""

    income: RealIncome = field(default_factory=RealIncome)
    expenses: RealExpenses = field(default_factory=RealExpenses)
    investments: dict[str, RealInvestment] = field(default_factory=dict)
    schema_version: int = REAL_DATA_SCHEMA_VERSION

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "RealData":
        version = _integer(_optional(data, "schema_version", REAL_DATA_SCHEMA_VERSION), f"{path}.schema_version")
        if version != REAL_DATA_SCHEMA_VERSION:
            raise SchemaError(f"{path}.schema_version: unsupported version {version}")
        investments_raw = _expect_dict(_optional(data, "investments", {}), f"{path}.investments")
        return cls(
            income=RealIncome.from_dict(_expect_dict(_optional(data, "income", {}), f"{path}.income"), f"{path}.income"),
            expenses=RealExpenses.from_dict(
                _expect_dict(_optional(data, "expenses", {}), f"{path}.expenses"), f"{path}.expenses"
            ),
            investments={
                str(key): RealInvestment.from_dict(_expect_dict(value, f"{path}.investments.{key}"), f"{path}.investments.{key}")
                for key, value in investments_raw.items()
            },
            schema_version=version,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "income": self.income.to_dict(),
            "expenses": self.expenses.to_dict(),
            "investments": {key: value.to_dict() for key, value in self.investments.items()},
        }


@dataclass(slots=True)
class MonthData:
    month: str
    status: str = "projected"
    income: MonthIncome = field(default_factory=MonthIncome)
    expenses: MonthExpenses = field(default_factory=MonthExpenses)
    investments: dict[str, InvestmentMonthData] = field(default_factory=dict)
    real_data: RealData | None = None

    @property
    def is_finalized(self) -> bool:
        return self.status == "finalized" and self.real_data is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "MonthData":
        status = _optional(data, "status", "projected")
        if status not in MONTH_STATUSES:
            raise SchemaError(f"{path}.status: '{status}' is not valid; expected one of [{', '.join(MONTH_STATUSES)}]")
        investments_raw = _expect_dict(_optional(data, "investments", {}), f"{path}.investments")
        real_raw = _optional(data, "real_data")
        return cls(
            month=_month(data, "month", path),
            status=status,
            income=MonthIncome.from_dict(_expect_dict(_optional(data, "income", {}), f"{path}.income"), f"{path}.income"),
            expenses=MonthExpenses.from_dict(
                _expect_dict(_optional(data, "expenses", {}), f"{path}.expenses"), f"{path}.expenses"
            ),
            investments={
                str(key): InvestmentMonthData.from_dict(
                    _expect_dict(value, f"{path}.investments.{key}"), f"{path}.investments.{key}"
                )
                for key, value in investments_raw.items()
            },
            real_data=(
                RealData.from_dict(_expect_dict(real_raw, f"{path}.real_data"), f"{path}.real_data")
                if real_raw is not None
                else None
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "month": self.month,
            "status": self.status,
            "income": self.income.to_dict(),
            "expenses": self.expenses.to_dict(),
            "investments": {key: value.to_dict() for key, value in self.investments.items()},
        }
        if self.real_data is not None:
            out["real_data"] = self.real_data.to_dict()
        return out


@dataclass(slots=True)
class FinancialState:
    year: int
    config: Config = field(default_factory=Config)
    settings: PlannerSettings = field(default_factory=PlannerSettings)
    months: list[MonthData] = field(default_factory=list)
    available_years: list[int] = field(default_factory=list)
    year_end_balances: dict[int, dict[str, float]] = field(default_factory=dict)

    def find_month(self, month: str) -> MonthData | None:
        return next((m for m in self.months if m.month == month), None)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FinancialState":
        year = _integer(_require(data, "year", "state"), "state.year")
        balances_raw = _expect_dict(_optional(data, "year_end_balances", {}), "year_end_balances")
        year_end_balances: dict[int, dict[str, float]] = {}
        for key, value in balances_raw.items():
            try:
                balance_year = int(key)
            except ValueError:
                raise SchemaError(f"year_end_balances.{key}: expected year key") from None
            entries = _expect_dict(value, f"year_end_balances.{key}")
            year_end_balances[balance_year] = {
                str(inv_id): _number(amount, f"year_end_balances.{key}.{inv_id}") for inv_id, amount in entries.items()
            }
        available_years = [
            _integer(item, f"available_years[{idx}]")
            for idx, item in enumerate(_expect_list(_optional(data, "available_years", [year]), "available_years"))
        ]
        return cls(
            year=year,
            config=Config.from_dict(_expect_dict(_optional(data, "config", {}), "config")),
            settings=PlannerSettings.from_dict(_expect_dict(_optional(data, "settings", {}), "settings")),
            months=[
                MonthData.from_dict(_expect_dict(item, f"months[{idx}]"), f"months[{idx}]")
                for idx, item in enumerate(_expect_list(_optional(data, "months", []), "months"))
            ],
            available_years=available_years or [year],
            year_end_balances=year_end_balances,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "available_years": list(self.available_years),
            "config": self.config.to_dict(),
            "settings": self.settings.to_dict(),
            "months": [m.to_dict() for m in self.months],
            "year_end_balances": {
                str(year): dict(balances) for year, balances in sorted(self.year_end_balances.items())
            },
        }


def load_state(path: str | Path) -> FinancialState:
    """Load state JSON into strongly-typed dataclasses."""
    source = Path(path)
    raw = json.loads(source.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise SchemaError("state: root must be a JSON object")
    return FinancialState.from_dict(raw)


def dump_state(state: FinancialState) -> str:
    return json.dumps(state.to_dict(), indent=2, ensure_ascii=False)


def write_state(path: str | Path, state: FinancialState) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(dump_state(state) + "\n", encoding="utf-8")
    return target

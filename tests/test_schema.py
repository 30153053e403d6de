import json

import pytest

from flumen.schema import (
    REAL_DATA_SCHEMA_VERSION,
    FinancialState,
    SchemaError,
    dump_state,
    load_state,
    write_state,
)
from flumen.lifecycle import finalize_month
from tests.helpers import clone_state, projected_state, write_state as write_raw_state


def test_load_sample_state(sample_state_path):
    state = load_state(sample_state_path)

    assert state.year == 2026
    assert state.available_years == [2026]
    assert state.config.salary.base_value == 15611.0
    assert [inv.id for inv in state.config.investments] == ["cdb", "tesouro"]
    assert state.config.investments[1].min_value_target is None
    assert len(state.config.trips[1].pre_expenses) == 5
    assert state.settings.strict_allocation is False
    assert state.months == []


def test_minimal_state_uses_defaults():
    state = FinancialState.from_dict({"year": 2026})

    assert state.available_years == [2026]
    assert state.config.salary.base_value == 0.0
    assert state.config.investments == []
    assert state.settings.tolerance == 0.01
    assert state.year_end_balances == {}


def test_round_trip_preserves_finalized_snapshot(tmp_path, sample_state_dict):
    state = projected_state(sample_state_dict)
    finalize_month(state, "2026-01")
    state.year_end_balances[2025] = {"cdb": 2000.0}

    path = write_state(tmp_path / "nested" / "state.json", state)
    reloaded = load_state(path)

    assert reloaded.to_dict() == state.to_dict()
    assert reloaded.year_end_balances == {2025: {"cdb": 2000.0}}
    assert reloaded.find_month("2026-01").is_finalized
    assert reloaded.find_month("2026-02").real_data is None


def test_dump_uses_json_field_names(sample_state_dict):
    state = projected_state(sample_state_dict)
    finalize_month(state, "2026-01")
    data = json.loads(dump_state(state))

    january = data["months"][0]
    assert set(january["investments"]["cdb"]) == {"previous_balance", "deposit", "yield", "final_balance"}
    assert january["real_data"]["schema_version"] == REAL_DATA_SCHEMA_VERSION
    assert "real_data" not in data["months"][1]


@pytest.mark.parametrize(
    ("mutator", "expected_error"),
    [
        (lambda d: d.pop("year"), "state.year: missing required field"),
        (lambda d: d["config"].update({"investments": {}}), "config.investments: expected array"),
        (
            lambda d: d["config"]["extraordinary_expenses"][0].update({"start_month": "2026-1"}),
            "config.extraordinary_expenses[0].start_month: '2026-1' is not valid; expected YYYY-MM",
        ),
        (
            lambda d: d["config"]["extraordinary_expenses"][1].update({"installments": 1.5}),
            "config.extraordinary_expenses[1].installments: expected integer",
        ),
        (
            lambda d: d["config"]["trips"][1]["pre_expenses"][0].update({"installments": -1}),
            "config.trips[1].pre_expenses[0].installments: must be >= 0",
        ),
        (
            lambda d: d["config"]["trips"][0].update({"end_date": "2026-02-30"}),
            "config.trips[0].end_date: '2026-02-30' is not valid; expected YYYY-MM-DD",
        ),
        (
            lambda d: d["config"]["investments"][0].update({"allocation_percent": True}),
            "config.investments[0].allocation_percent: expected number",
        ),
        (
            lambda d: d["config"]["investments"][0].update({"withdrawal_priority": 1.5}),
            "config.investments[0].withdrawal_priority: expected integer",
        ),
        (
            lambda d: d["config"]["fixed_expenses"][0].update({"value": "6000"}),
            "config.fixed_expenses[0].value: expected number",
        ),
        (
            lambda d: d["config"].update({"daily_expenses_estimate": float("nan")}),
            "config.daily_expenses_estimate: expected a finite number",
        ),
        (
            lambda d: d["config"]["trips"][0].update({"daily_budget": float("inf")}),
            "config.trips[0].daily_budget: expected a finite number",
        ),
        (lambda d: d.update({"year": "2026"}), "state.year: expected number"),
        (lambda d: d["config"]["fixed_expenses"][0].pop("name"), "config.fixed_expenses[0].name: missing required field"),
        (lambda d: d.update({"year_end_balances": {"last": {}}}), "year_end_balances.last: expected year key"),
        (
            lambda d: d.update({"months": [{"month": "2026-01", "status": "done"}]}),
            "months[0].status: 'done' is not valid",
        ),
        (
            lambda d: d.update({"months": [{"month": "2026-01", "real_data": {"schema_version": 2}}]}),
            "months[0].real_data.schema_version: unsupported version 2",
        ),
    ],
)
def test_schema_errors_carry_json_path(sample_state_dict, mutator, expected_error):
    data = clone_state(sample_state_dict)
    mutator(data)
    with pytest.raises(SchemaError) as excinfo:
        FinancialState.from_dict(data)
    assert expected_error in str(excinfo.value)


def test_load_rejects_non_object_root(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(SchemaError, match="root must be a JSON object"):
        load_state(path)


def test_load_reports_missing_file(tmp_path):
    with pytest.raises(OSError):
        load_state(tmp_path / "missing.json")


def test_year_keys_are_parsed_as_integers(tmp_path, sample_state_dict):
    data = clone_state(sample_state_dict)
    data["year_end_balances"] = {"2025": {"cdb": 1500, "tesouro": 50000}}
    state = load_state(write_raw_state(tmp_path, data))
    assert state.year_end_balances == {2025: {"cdb": 1500.0, "tesouro": 50000.0}}


def test_load_rejects_non_finite_literals(tmp_path, sample_state_dict):
    data = clone_state(sample_state_dict)
    data["config"]["investments"][1]["initial_balance"] = float("inf")
    with pytest.raises(SchemaError, match="config.investments\\[1\\].initial_balance: expected a finite number"):
        load_state(write_raw_state(tmp_path, data))

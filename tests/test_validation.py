import pytest

from flumen.schema import FinancialState, load_state
from flumen.validate import validate_state
from tests.helpers import clone_state, write_state


def _run_validation(tmp_path, sample_state_dict, mutator):
    data = clone_state(sample_state_dict)
    mutator(data)
    path = write_state(tmp_path, data)
    state = load_state(path)
    return validate_state(state)


def test_sample_state_validates(sample_state_path):
    state = load_state(sample_state_path)
    result = validate_state(state)
    assert result.errors == []
    assert result.warnings == []
    assert result.is_valid


@pytest.mark.parametrize(
    ("mutator", "expected_error"),
    [
        (
            lambda d: d["config"]["fixed_expenses"][1].update({"id": "fx-credit-card"}),
            "config.fixed_expenses[1].id: duplicate id 'fx-credit-card'",
        ),
        (
            lambda d: d["config"]["investments"][1].update({"id": "cdb"}),
            "config.investments[1].id: duplicate id 'cdb'",
        ),
        (
            lambda d: d["config"]["extraordinary_expenses"][0].update({"installments": 0}),
            "config.extraordinary_expenses[0].installments: must be >= 1",
        ),
        (
            lambda d: d["config"]["trips"][1]["pre_expenses"][2].update({"installments": 0}),
            "config.trips[1].pre_expenses[2].installments: must be >= 1",
        ),
        (
            lambda d: d["config"]["trips"][0].update({"start_date": "2026-02-20"}),
            "config.trips[0].start_date/config.trips[0].end_date: start_date must be <= end_date",
        ),
        (
            lambda d: d["config"]["trips"][0].update({"daily_budget": -1}),
            "config.trips[0].daily_budget: must be >= 0",
        ),
        (
            lambda d: d["config"]["investments"][0].update({"initial_balance": -5}),
            "config.investments[0].initial_balance: must be >= 0",
        ),
        (
            lambda d: d["config"].update({"daily_expenses_estimate": -100}),
            "config.daily_expenses_estimate: must be >= 0",
        ),
        (
            lambda d: d["settings"].update({"tolerance": -0.5}),
            "settings.tolerance: must be >= 0",
        ),
        (
            lambda d: d.update({"months": [{"month": "2026-01", "status": "finalized"}]}),
            "months[0].real_data: required when status is 'finalized'",
        ),
    ],
)
def test_validation_errors(tmp_path, sample_state_dict, mutator, expected_error):
    result = _run_validation(tmp_path, sample_state_dict, mutator)
    assert expected_error in result.errors
    assert not result.is_valid


@pytest.mark.parametrize(
    ("mutator", "expected_warning"),
    [
        (
            lambda d: d["config"]["investments"][1].update({"allocation_percent": 70}),
            "config.investments: allocation_percent sums to 90%, expected 100%",
        ),
        (
            lambda d: d["config"]["investments"][1].update({"withdrawal_priority": 1}),
            "config.investments: 2 investments share withdrawal_priority 1; configuration order breaks the tie",
        ),
        (
            lambda d: d["config"]["salary"]["increases"].append({"month": "2026-05", "value": 18000}),
            "config.salary.increases: 2 entries share month '2026-05'; the last one listed wins",
        ),
        (
            lambda d: d["config"]["extraordinary_income"][0].update({"month": "2025-12"}),
            "config.extraordinary_income[0]: falls entirely outside 2026",
        ),
        (
            lambda d: d["config"]["extraordinary_expenses"][0].update({"start_month": "2025-01"}),
            "config.extraordinary_expenses[0]: falls entirely outside 2026",
        ),
    ],
)
def test_validation_warnings(tmp_path, sample_state_dict, mutator, expected_warning):
    result = _run_validation(tmp_path, sample_state_dict, mutator)
    assert expected_warning in result.warnings
    assert result.is_valid


def test_installments_reaching_into_year_do_not_warn(tmp_path, sample_state_dict):
    result = _run_validation(
        tmp_path,
        sample_state_dict,
        lambda d: d["config"]["extraordinary_expenses"][0].update({"start_month": "2025-11"}),
    )
    assert result.warnings == []


def test_real_data_on_projected_month_warns():
    state = FinancialState.from_dict(
        {"year": 2026, "months": [{"month": "2026-03", "status": "projected", "real_data": {}}]}
    )
    result = validate_state(state)
    assert result.warnings == ["months[0].real_data: ignored because status is 'projected'"]


def test_year_out_of_range():
    result = validate_state(FinancialState.from_dict({"year": 12}))
    assert "year: 12 is out of range" in result.errors

import copy
import json
from pathlib import Path

from flumen.schema import FinancialState
from flumen.lifecycle import apply_config_change


def write_state(tmp_path: Path, data: dict, filename: str = "state.json") -> Path:
    path = tmp_path / filename
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def clone_state(data: dict) -> dict:
    return copy.deepcopy(data)


def projected_state(data: dict) -> FinancialState:
    """Parse ``data`` and project its year, as the CLI does after loading."""
    state = FinancialState.from_dict(clone_state(data))
    apply_config_change(state)
    return state

import json
from pathlib import Path

import pytest

SAMPLE_STATE = Path(__file__).resolve().parent.parent / "sample_state.json"


@pytest.fixture
def sample_state_path() -> Path:
    return SAMPLE_STATE


@pytest.fixture
def sample_state_dict() -> dict:
    return json.loads(SAMPLE_STATE.read_text(encoding="utf-8"))

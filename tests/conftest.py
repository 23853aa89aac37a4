from pathlib import Path
import sys
from dataclasses import dataclass

import streamlit as st

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from stepform import StepNavigator


@pytest.fixture(autouse=True)
def _clear_stepform_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host environment flags from leaking into configuration tests."""

    for env_var in (
        "STEPFORM_LINEAR",
        "STEPFORM_SHOW_NAVIGATION",
        "STEPFORM_SHOW_PROGRESS",
        "STEPFORM_VIEW_TRANSITIONS",
        "STEPFORM_MAX_HISTORY",
        "STEPFORM_REASSIGN_ON_UNREGISTER",
    ):
        monkeypatch.delenv(env_var, raising=False)
    yield


@dataclass
class _SessionDict(dict[str, object]):
    """Lightweight replacement for ``st.session_state`` during tests."""

    def clear(self) -> None:  # type: ignore[override]
        super().clear()


@pytest.fixture(autouse=True)
def _stub_streamlit_session_state(monkeypatch: pytest.MonkeyPatch) -> None:
    """Replace Streamlit's runtime-bound session state with a plain dictionary."""

    session_state = _SessionDict()
    monkeypatch.setattr(st, "session_state", session_state, raising=False)
    yield


class _Clock:
    """Deterministic millisecond clock."""

    def __init__(self, start: int = 1_000) -> None:
        self.now = start

    def __call__(self) -> int:
        self.now += 10
        return self.now


@pytest.fixture
def clock() -> _Clock:
    return _Clock()


@pytest.fixture
def navigator(clock: _Clock) -> StepNavigator:
    return StepNavigator(clock=clock)


@pytest.fixture
def three_steps(navigator: StepNavigator) -> StepNavigator:
    navigator.register_step("step1", 0, "Step 1")
    navigator.register_step("step2", 1, "Step 2")
    navigator.register_step("step3", 2, "Step 3")
    return navigator

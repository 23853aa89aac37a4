from __future__ import annotations

import pytest
import streamlit as st

from config.models import NavigatorOptions
from core.errors import NavigatorStateError
from stepform import FormSessionKeys, StepNavigator, discard_navigator, get_navigator


def test_session_keys_are_namespaced_per_form() -> None:
    keys = FormSessionKeys(form_id="signup")

    assert keys.navigator == "stepform:signup:navigator"
    assert keys.namespace("extra") == "stepform:signup:extra"


def test_get_navigator_creates_once_in_streamlit_state() -> None:
    first = get_navigator("signup", options=NavigatorOptions(max_history=5))
    first.register_step("a", 0)

    again = get_navigator("signup")

    assert again is first
    assert again.options.max_history == 5
    assert again.form_id == "signup"
    assert st.session_state["stepform:signup:navigator"] is first


def test_forms_get_independent_navigators() -> None:
    signup = get_navigator("signup")
    checkout = get_navigator("checkout")
    signup.register_step("a", 0)

    assert checkout is not signup
    assert checkout.total_steps == 0


def test_custom_session_mapping_is_supported() -> None:
    state: dict[str, object] = {}

    navigator = get_navigator("wizard", session_state=state)

    assert state == {"stepform:wizard:navigator": navigator}
    assert "stepform:wizard:navigator" not in st.session_state


def test_discard_navigator_removes_instance() -> None:
    state: dict[str, object] = {}
    original = get_navigator("wizard", session_state=state)

    assert discard_navigator("wizard", session_state=state) is True
    assert discard_navigator("wizard", session_state=state) is False
    assert get_navigator("wizard", session_state=state) is not original


def test_foreign_value_in_slot_raises() -> None:
    state: dict[str, object] = {"stepform:wizard:navigator": {"current": "a"}}

    with pytest.raises(NavigatorStateError):
        get_navigator("wizard", session_state=state)


def test_returned_object_is_a_step_navigator() -> None:
    assert isinstance(get_navigator("plain"), StepNavigator)

"""Scope navigators to a form instance inside Streamlit's session state."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import MutableMapping, cast

import streamlit as st

from config.models import NavigatorOptions
from core.errors import NavigatorStateError
from stepform.navigator import StepNavigator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormSessionKeys:
    """Namespaced session-state keys for one form instance."""

    form_id: str

    @property
    def prefix(self) -> str:
        return f"stepform:{self.form_id}:"

    def namespace(self, key: str) -> str:
        return f"{self.prefix}{key}"

    @property
    def navigator(self) -> str:
        return self.namespace("navigator")


def _resolve_state(session_state: MutableMapping[str, object] | None) -> MutableMapping[str, object]:
    if session_state is not None:
        return session_state
    return cast(MutableMapping[str, object], st.session_state)


def get_navigator(
    form_id: str,
    *,
    session_state: MutableMapping[str, object] | None = None,
    options: NavigatorOptions | None = None,
) -> StepNavigator:
    """Return the navigator of ``form_id``, creating it on first access.

    ``options`` only applies when the navigator is created.

    Raises:
        NavigatorStateError: If the slot holds an unrelated object.
    """

    state = _resolve_state(session_state)
    key = FormSessionKeys(form_id=form_id).navigator
    existing = state.get(key)
    if existing is None:
        navigator = StepNavigator(options, form_id=form_id)
        state[key] = navigator
        logger.debug("Created navigator for form %s", form_id)
        return navigator
    if not isinstance(existing, StepNavigator):
        raise NavigatorStateError(
            f"Session key {key!r} holds {type(existing).__name__}, expected StepNavigator"
        )
    return existing


def discard_navigator(
    form_id: str,
    *,
    session_state: MutableMapping[str, object] | None = None,
) -> bool:
    """Drop the navigator of ``form_id``; return ``True`` if one existed."""

    state = _resolve_state(session_state)
    key = FormSessionKeys(form_id=form_id).navigator
    if key not in state:
        return False
    del state[key]
    logger.debug("Discarded navigator for form %s", form_id)
    return True


__all__ = ["FormSessionKeys", "discard_navigator", "get_navigator"]

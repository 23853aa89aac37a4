"""Central configuration for stepform.

Defaults come from environment variables (optionally loaded from a ``.env``
file) and can be layered with a TOML file holding ``[form]`` and
``[form.transition]`` tables. Form-level options are validated through
:class:`config.models.FormConfig`.
"""

from __future__ import annotations

import logging
import os
import tomllib
import warnings
from pathlib import Path
from typing import Any, Mapping

from dotenv import load_dotenv

from core.errors import FormConfigError

from .models import FormConfig, NavigatorOptions, TransitionConfig, TransitionType

load_dotenv()

logger = logging.getLogger(__name__)

_TRUTHY_ENV_VALUES: tuple[str, ...] = ("1", "true", "yes", "on")
_FALSY_ENV_VALUES: tuple[str, ...] = ("0", "false", "no", "off")

_FORM_FLAG_ENV: Mapping[str, str] = {
    "linear": "STEPFORM_LINEAR",
    "show_navigation": "STEPFORM_SHOW_NAVIGATION",
    "show_progress": "STEPFORM_SHOW_PROGRESS",
    "enable_view_transitions": "STEPFORM_VIEW_TRANSITIONS",
}


def _is_truthy_flag(value: str | None) -> bool:
    """Return ``True`` when ``value`` matches a truthy environment token."""

    if value is None:
        return False
    return value.strip().lower() in _TRUTHY_ENV_VALUES


def _parse_flag_env(env_var: str) -> bool | None:
    """Return the boolean stored in ``env_var`` or ``None`` when unset/unknown."""

    raw = os.getenv(env_var)
    if raw is None or not raw.strip():
        return None
    if _is_truthy_flag(raw):
        return True
    if raw.strip().lower() in _FALSY_ENV_VALUES:
        return False
    warnings.warn(f"{env_var}={raw!r} is not a boolean; ignoring", RuntimeWarning)
    return None


def _parse_non_negative_int_env(env_var: str) -> int | None:
    """Return a non-negative integer parsed from ``env_var`` or ``None``."""

    raw = os.getenv(env_var)
    if raw is None or not raw.strip():
        return None
    try:
        parsed = int(raw.strip())
    except ValueError:
        warnings.warn(f"{raw} is not a number; ignoring {env_var}", RuntimeWarning)
        return None
    if parsed < 0:
        warnings.warn(f"{env_var} must be >= 0; ignoring {parsed}", RuntimeWarning)
        return None
    return parsed


def _resolve_log_level() -> str:
    raw = (os.getenv("STEPFORM_LOG_LEVEL") or "INFO").strip().upper()
    if raw not in logging.getLevelNamesMapping():
        warnings.warn(f"Unknown STEPFORM_LOG_LEVEL {raw!r}; using INFO", RuntimeWarning)
        return "INFO"
    return raw


LOG_LEVEL = _resolve_log_level()


def env_form_overrides() -> dict[str, Any]:
    """Return form options explicitly set through environment variables."""

    overrides: dict[str, Any] = {}
    for field_name, env_var in _FORM_FLAG_ENV.items():
        value = _parse_flag_env(env_var)
        if value is not None:
            overrides[field_name] = value
    return overrides


def _load_toml(path: Path) -> dict[str, Any]:
    """Return the parsed TOML payload for ``path`` if available."""

    if not path.is_file():
        return {}
    with path.open("rb") as handle:
        try:
            return tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise FormConfigError(f"Could not parse {path}: {exc}") from exc


def load_form_config(
    path: str | Path | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
) -> FormConfig:
    """Build a :class:`FormConfig` from defaults, env, TOML and ``overrides``.

    Args:
        path: Optional TOML file with a ``[form]`` table.
        overrides: Explicit options applied last.

    Returns:
        The validated configuration.

    Raises:
        FormConfigError: If the merged payload fails validation.
    """

    config = FormConfig().merged(env_form_overrides())
    if path is not None:
        payload = _load_toml(Path(path))
        form_block = payload.get("form")
        if isinstance(form_block, Mapping):
            config = config.merged(form_block)
        elif form_block is not None:
            raise FormConfigError("[form] must be a table")
        else:
            logger.debug("No [form] table found in %s", path)
    return config.merged(overrides)


def load_navigator_options(**overrides: Any) -> NavigatorOptions:
    """Return :class:`NavigatorOptions` seeded from the environment."""

    values: dict[str, Any] = {}
    reassign = _parse_flag_env("STEPFORM_REASSIGN_ON_UNREGISTER")
    if reassign is not None:
        values["reassign_on_unregister"] = reassign
    max_history = _parse_non_negative_int_env("STEPFORM_MAX_HISTORY")
    if max_history is not None:
        values["max_history"] = max_history
    values.update(overrides)
    return NavigatorOptions(**values)


__all__ = [
    "FormConfig",
    "LOG_LEVEL",
    "NavigatorOptions",
    "TransitionConfig",
    "TransitionType",
    "env_form_overrides",
    "load_form_config",
    "load_navigator_options",
]

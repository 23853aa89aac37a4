"""Attach the form and step being worked on to every log record.

The navigator binds its ``form_id`` and the target step around each
transition, so interleaved output from several forms in one Streamlit
process stays attributable.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import Iterator

_DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [form=%(form_id)s step=%(step_id)s] %(name)s: %(message)s"

_form_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("form_id", default="-")
_step_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("step_id", default="-")
_DEFAULT_RECORD_FACTORY = logging.getLogRecordFactory()
_RECORD_FACTORY_INSTALLED = False


def _apply_context(record: logging.LogRecord) -> None:
    record.form_id = _form_id_var.get("-")
    record.step_id = _step_id_var.get("-")


class _ContextFilter(logging.Filter):
    """Inject contextual fields into log records for consistent formatting."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401 - logging protocol
        _apply_context(record)
        return True


def _coerce(value: object | None) -> str:
    if value is None:
        return "-"
    stripped = str(value).strip()
    return stripped or "-"


def configure_logging(*, level: int | str | None = None) -> None:
    """Ensure the root logger formats records with form/step metadata."""

    if level is None:
        from config import LOG_LEVEL

        level = LOG_LEVEL
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=_DEFAULT_LOG_FORMAT)
        root = logging.getLogger()
    for handler in root.handlers:
        formatter = handler.formatter or logging.Formatter(_DEFAULT_LOG_FORMAT)
        handler.setFormatter(formatter)
    has_filter = any(isinstance(flt, _ContextFilter) for flt in root.filters)
    if not has_filter:
        root.addFilter(_ContextFilter())
    global _RECORD_FACTORY_INSTALLED
    if not _RECORD_FACTORY_INSTALLED:
        default_factory = _DEFAULT_RECORD_FACTORY

        def _record_factory(*args: object, **kwargs: object) -> logging.LogRecord:
            record = default_factory(*args, **kwargs)
            _apply_context(record)
            return record

        logging.setLogRecordFactory(_record_factory)
        _RECORD_FACTORY_INSTALLED = True


def set_form_id(form_id: object | None) -> None:
    """Bind a form instance identifier for subsequent log records."""

    configure_logging()
    _form_id_var.set(_coerce(form_id))


def set_step_id(step_id: object | None) -> None:
    """Bind the current step to the logging context."""

    _step_id_var.set(_coerce(step_id))


@contextmanager
def log_context(
    *,
    form_id: object | None = None,
    step_id: object | None = None,
) -> Iterator[None]:
    """Temporarily override logging context variables."""

    tokens: list[tuple[contextvars.ContextVar[str], contextvars.Token[str]]] = []
    if form_id is not None:
        tokens.append((_form_id_var, _form_id_var.set(_coerce(form_id))))
    if step_id is not None:
        tokens.append((_step_id_var, _step_id_var.set(_coerce(step_id))))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)

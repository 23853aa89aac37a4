"""Utility helpers shared across stepform packages."""

from __future__ import annotations

from .logging_context import configure_logging, log_context, set_form_id, set_step_id

__all__ = ["configure_logging", "log_context", "set_form_id", "set_step_id"]

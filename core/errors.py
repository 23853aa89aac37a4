"""Custom exception types for form configuration and navigator scoping."""

from __future__ import annotations


class StepFormError(Exception):
    """Base exception for stepform configuration issues."""


class FormConfigError(StepFormError):
    """Raised when a form configuration payload cannot be validated."""

    def __init__(self, message: str, *, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class NavigatorStateError(StepFormError):
    """Raised when a session slot holds something other than a navigator."""

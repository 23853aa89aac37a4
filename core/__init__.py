"""Core package for stepform error types."""

from .errors import FormConfigError, NavigatorStateError, StepFormError

__all__ = ["FormConfigError", "NavigatorStateError", "StepFormError"]

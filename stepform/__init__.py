"""Step-navigation engine for multi-step forms."""

from __future__ import annotations

from stepform.navigator import StepNavigator
from stepform.session import FormSessionKeys, discard_navigator, get_navigator
from stepform.shell import FormShell, FormSubmission, StepContext, StepDefinition
from stepform.types import (
    ChangeKind,
    NavigationDirection,
    NavigationEvent,
    NavigatorChange,
    StepId,
    StepMetadata,
    ValidationResult,
)
from stepform.validation import StepValidator, WizardStep, resolve_validation, run_validator

__all__ = [
    "ChangeKind",
    "FormSessionKeys",
    "FormShell",
    "FormSubmission",
    "NavigationDirection",
    "NavigationEvent",
    "NavigatorChange",
    "StepContext",
    "StepDefinition",
    "StepId",
    "StepMetadata",
    "StepNavigator",
    "StepValidator",
    "ValidationResult",
    "WizardStep",
    "discard_navigator",
    "get_navigator",
    "resolve_validation",
    "run_validator",
]

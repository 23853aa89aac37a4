"""Shared types for the step navigator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Mapping

StepId = str | int


class NavigationDirection(StrEnum):
    """Direction of a step transition relative to the step order."""

    FORWARD = "forward"
    BACKWARD = "backward"


class ChangeKind(StrEnum):
    """Kinds of navigator mutations announced to listeners."""

    REGISTERED = "registered"
    UNREGISTERED = "unregistered"
    NAVIGATED = "navigated"
    METADATA = "metadata"
    RESET = "reset"


@dataclass(frozen=True, slots=True)
class StepMetadata:
    """Snapshot of a single registered step."""

    id: StepId
    index: int
    title: str | None = None
    is_valid: bool = True
    is_visited: bool = False
    is_active: bool = False


@dataclass(frozen=True, slots=True)
class NavigationEvent:
    """A recorded transition between two steps.

    ``timestamp`` is expressed in milliseconds since the epoch.
    """

    from_step: StepId
    to_step: StepId
    direction: NavigationDirection
    timestamp: int


@dataclass(frozen=True, slots=True)
class NavigatorChange:
    """Notification payload sent to navigator listeners after a mutation."""

    kind: ChangeKind
    step_id: StepId | None = None


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of a step validator."""

    valid: bool
    errors: Mapping[str, str] = field(default_factory=dict)


__all__ = [
    "ChangeKind",
    "NavigationDirection",
    "NavigationEvent",
    "NavigatorChange",
    "StepId",
    "StepMetadata",
    "ValidationResult",
]

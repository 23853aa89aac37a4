"""Step capability protocol and helpers for sync/async validators."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Mapping, Protocol, Union, runtime_checkable

from stepform.types import StepId, ValidationResult

logger = logging.getLogger(__name__)

ValidationOutcome = Union[bool, ValidationResult, Mapping[str, Any]]
ValidatorCallable = Callable[[], Union[ValidationOutcome, Awaitable[ValidationOutcome]]]


@runtime_checkable
class StepValidator(Protocol):
    """Anything exposing ``validate()`` returning an outcome or an awaitable of one."""

    def validate(self) -> ValidationOutcome | Awaitable[ValidationOutcome]: ...


class WizardStep(Protocol):
    """Contract a step-owning caller may implement.

    Only ``id`` is required by :class:`stepform.shell.FormShell`; the hooks are
    looked up with ``getattr`` so partial implementations are fine.
    """

    @property
    def id(self) -> StepId: ...

    @property
    def title(self) -> str | None: ...

    def validate(self) -> ValidationOutcome | Awaitable[ValidationOutcome]: ...

    def on_enter(self) -> None | Awaitable[None]: ...

    def on_exit(self) -> None | Awaitable[None]: ...

    def can_exit(self) -> bool | Awaitable[bool]: ...


def resolve_validation(outcome: object) -> ValidationResult:
    """Normalise a validator outcome into a :class:`ValidationResult`."""

    if isinstance(outcome, ValidationResult):
        return outcome
    if isinstance(outcome, bool):
        return ValidationResult(valid=outcome)
    if isinstance(outcome, Mapping):
        raw_errors = outcome.get("errors") or {}
        errors = {str(key): str(value) for key, value in raw_errors.items()} if isinstance(raw_errors, Mapping) else {}
        return ValidationResult(valid=outcome.get("valid") is True, errors=errors)
    raise TypeError(f"Unsupported validation outcome: {type(outcome).__name__}")


async def maybe_await(value: Any) -> Any:
    """Return ``value`` or the result of awaiting it."""

    if inspect.isawaitable(value):
        return await value
    return value


async def run_validator(validator: StepValidator | ValidatorCallable) -> ValidationResult:
    """Invoke ``validator`` and return its normalised outcome."""

    if isinstance(validator, StepValidator):
        raw = validator.validate()
    elif callable(validator):
        raw = validator()
    else:
        raise TypeError(f"Validator must be callable or expose validate(): {validator!r}")
    return resolve_validation(await maybe_await(raw))


async def call_hook(step: object, name: str, default: Any = None) -> Any:
    """Call the optional hook ``name`` on ``step`` when present."""

    hook = getattr(step, name, None)
    if hook is None or not callable(hook):
        return default
    logger.debug("Calling %s hook on step %r", name, getattr(step, "id", step))
    return await maybe_await(hook())


__all__ = [
    "StepValidator",
    "ValidationOutcome",
    "ValidatorCallable",
    "WizardStep",
    "call_hook",
    "maybe_await",
    "resolve_validation",
    "run_validator",
]

"""Validated configuration models for forms and navigators."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.errors import FormConfigError

logger = logging.getLogger(__name__)


class TransitionType(StrEnum):
    """Visual transition flavours a rendering layer may apply between steps."""

    SLIDE = "slide"
    FADE = "fade"
    MORPH = "morph"


class TransitionConfig(BaseModel):
    """Timing hints for step transitions."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    duration: int = Field(300, ge=0, description="Transition duration in milliseconds.")
    easing: str = Field("ease", min_length=1, description="CSS easing function name.")
    type: TransitionType = Field(TransitionType.SLIDE, description="Transition flavour.")


class FormConfig(BaseModel):
    """Presentation and navigation options for a single form instance.

    ``linear`` restricts direct jumps to steps that were already visited or
    to the immediate next step. The remaining flags are consumed by the
    rendering layer and carried here so hosts configure a form in one place.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    linear: bool = False
    show_navigation: bool = True
    show_progress: bool = True
    transition: TransitionConfig = Field(default_factory=TransitionConfig)
    enable_view_transitions: bool = True
    css_prefix: str = Field("sway", min_length=1)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> FormConfig:
        """Validate ``payload`` and wrap pydantic errors in :class:`FormConfigError`."""

        try:
            return cls.model_validate(dict(payload or {}))
        except ValidationError as exc:
            errors = [f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()]
            logger.warning("Rejected form configuration: %s", "; ".join(errors))
            raise FormConfigError("Invalid form configuration", errors=errors) from exc

    def merged(self, overrides: Mapping[str, Any] | None) -> FormConfig:
        """Return a copy with ``overrides`` layered over the current values."""

        if not overrides:
            return self
        payload = self.model_dump()
        for key, value in overrides.items():
            if key == "transition" and isinstance(value, Mapping):
                payload["transition"] = {**payload["transition"], **value}
            else:
                payload[key] = value
        return FormConfig.from_mapping(payload)


@dataclass(frozen=True, slots=True)
class NavigatorOptions:
    """Behavioural switches for :class:`stepform.navigator.StepNavigator`.

    Attributes:
        reassign_on_unregister: Move the current step to a neighbour when the
            active step is unregistered instead of leaving it dangling.
        max_history: Keep only the newest ``max_history`` navigation events.
            ``None`` keeps the full history.
    """

    reassign_on_unregister: bool = False
    max_history: int | None = None

    def __post_init__(self) -> None:
        if self.max_history is not None and self.max_history < 0:
            raise FormConfigError("max_history must be >= 0 when provided")


__all__ = [
    "FormConfig",
    "NavigatorOptions",
    "TransitionConfig",
    "TransitionType",
]

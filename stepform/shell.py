"""Host-facing form controller wrapping a :class:`StepNavigator`.

The shell owns what a form component needs beyond raw step state: the form
configuration, the step objects with their optional hooks, the direction of
the last move, rejection feedback and the submit notification. Rendering is
left to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from config.models import FormConfig
from stepform.listeners import ListenerRegistry
from stepform.navigator import StepNavigator
from stepform.types import NavigationDirection, NavigationEvent, StepId, StepMetadata
from stepform.validation import call_hook, run_validator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepContext:
    """Per-step values a template needs to render a step."""

    active: bool
    index: int
    total: int
    first: bool
    last: bool


@dataclass(frozen=True)
class StepDefinition:
    """Plain step description for hosts without step objects."""

    id: StepId
    title: str | None = None


@dataclass(frozen=True)
class FormSubmission:
    """Payload handed to submit listeners."""

    steps: tuple[StepMetadata, ...]
    history_length: int


def _coerce_step(raw: object) -> object:
    if isinstance(raw, tuple):
        if not raw or len(raw) > 2:
            raise ValueError(f"Step tuples must be (id,) or (id, title), got {raw!r}")
        return StepDefinition(*raw)
    if isinstance(raw, (str, int)):
        return StepDefinition(raw)
    if not hasattr(raw, "id"):
        raise TypeError(f"Step objects must expose an 'id' attribute: {raw!r}")
    return raw


class FormShell:
    """Drive a navigator the way a form component does."""

    def __init__(
        self,
        config: FormConfig | Mapping[str, Any] | None = None,
        navigator: StepNavigator | None = None,
    ) -> None:
        if isinstance(config, FormConfig):
            self._config = config
        else:
            self._config = FormConfig().merged(config)
        self._navigator = navigator if navigator is not None else StepNavigator()
        self._steps: dict[StepId, object] = {}
        self.current_direction = NavigationDirection.FORWARD
        self.rejections = 0
        self._step_change: ListenerRegistry[NavigationEvent] = ListenerRegistry("step change")
        self._submit: ListenerRegistry[FormSubmission] = ListenerRegistry("form submit")
        self._reject: ListenerRegistry[StepId | None] = ListenerRegistry("navigation rejected")
        self._detach = self._navigator.subscribe_navigation(self._step_change.emit)

    @property
    def config(self) -> FormConfig:
        return self._config

    @property
    def navigator(self) -> StepNavigator:
        return self._navigator

    def on_step_change(self, listener: Callable[[NavigationEvent], None]) -> Callable[[], None]:
        return self._step_change.subscribe(listener)

    def on_submit(self, listener: Callable[[FormSubmission], None]) -> Callable[[], None]:
        return self._submit.subscribe(listener)

    def on_reject(self, listener: Callable[[StepId | None], None]) -> Callable[[], None]:
        """Listen for refused moves, e.g. to play a rejection animation."""

        return self._reject.subscribe(listener)

    def step(self, step_id: StepId) -> object | None:
        return self._steps.get(step_id)

    def initialize_steps(self, steps: Iterable[object]) -> None:
        """Register ``steps`` in iteration order and activate the first one."""

        coerced = [_coerce_step(raw) for raw in steps]
        for index, step in enumerate(coerced):
            step_id = getattr(step, "id")
            self._steps[step_id] = step
            self._navigator.register_step(step_id, index, getattr(step, "title", None))
        if coerced:
            self._navigator.go_to_step(getattr(coerced[0], "id"))
        logger.debug("Initialised form with %s steps", len(coerced))

    def step_context(self, step_id: StepId) -> StepContext | None:
        metadata = self._navigator.get_step_metadata(step_id)
        if metadata is None:
            return None
        order = self._navigator.step_order
        # Registration indexes go stale once unregister_step compacts the order.
        position = order.index(step_id) if step_id in order else metadata.index
        total = self._navigator.total_steps
        return StepContext(
            active=metadata.is_active,
            index=position,
            total=total,
            first=position == 0,
            last=position == total - 1,
        )

    async def next(self) -> bool:
        """Advance when the current step may be left and validates."""

        navigator = self._navigator
        leaving = navigator.current_step_id
        if not navigator.has_next:
            return False
        if not await self._can_leave(leaving):
            return self._rejected(leaving)
        step = self._steps.get(leaving) if leaving is not None else None
        validator = step if callable(getattr(step, "validate", None)) else None
        if validator is None and not navigator.can_navigate_next:
            return self._rejected(leaving)
        self.current_direction = NavigationDirection.FORWARD
        if not await navigator.validate_and_next(validator):
            return self._rejected(leaving)
        await self._run_transition_hooks(leaving, navigator.current_step_id)
        return True

    async def previous(self) -> bool:
        navigator = self._navigator
        leaving = navigator.current_step_id
        if not navigator.has_previous:
            return False
        if not await self._can_leave(leaving):
            return self._rejected(leaving)
        self.current_direction = NavigationDirection.BACKWARD
        if not navigator.previous():
            return False
        await self._run_transition_hooks(leaving, navigator.current_step_id)
        return True

    async def go_to(self, step_id: StepId) -> bool:
        """Jump to ``step_id``; linear forms only allow visited steps or the next one."""

        navigator = self._navigator
        leaving = navigator.current_step_id
        if leaving is not None and step_id == leaving:
            return True
        target = navigator.get_step_metadata(step_id)
        if target is None:
            return False
        if self._config.linear and not target.is_visited:
            next_index = navigator.current_step_index + 1
            if next_index < navigator.total_steps and navigator.step_order[next_index] == step_id:
                return await self.next()
            logger.debug("Linear form refused jump to unvisited step %r", step_id)
            return self._rejected(leaving)
        if not await self._can_leave(leaving):
            return self._rejected(leaving)
        target_index = navigator.step_order.index(step_id) if step_id in navigator.step_order else -1
        self.current_direction = (
            NavigationDirection.FORWARD
            if target_index > navigator.current_step_index
            else NavigationDirection.BACKWARD
        )
        if not navigator.go_to_step(step_id):
            return False
        await self._run_transition_hooks(leaving, step_id)
        return True

    async def submit(self) -> bool:
        """Notify submit listeners; linear forms must be complete first."""

        navigator = self._navigator
        current = navigator.current_step_id
        step = self._steps.get(current) if current is not None else None
        if step is not None and callable(getattr(step, "validate", None)):
            try:
                outcome = await run_validator(step)
            except Exception:  # noqa: BLE001 - a broken validator refuses the submit
                logger.exception("Validator of step %r failed during submit", current)
                return self._rejected(current)
            if not outcome.valid:
                return self._rejected(current)
            navigator.set_step_validity(current, True)
        if self._config.linear and not navigator.is_complete:
            return self._rejected(current)
        self._submit.emit(FormSubmission(steps=navigator.steps, history_length=len(navigator.history)))
        logger.info("Form submitted from step %r", current)
        return True

    def close(self) -> None:
        """Detach from the navigator and drop all listeners."""

        self._detach()
        self._step_change.clear()
        self._submit.clear()
        self._reject.clear()

    async def _can_leave(self, step_id: StepId | None) -> bool:
        if step_id is None:
            return True
        step = self._steps.get(step_id)
        if step is None:
            return True
        try:
            return bool(await call_hook(step, "can_exit", default=True))
        except Exception:  # noqa: BLE001 - a broken guard keeps the user on the step
            logger.exception("can_exit hook of step %r failed", step_id)
            return False

    async def _run_transition_hooks(self, leaving: StepId | None, entered: StepId | None) -> None:
        for step_id, hook in ((leaving, "on_exit"), (entered, "on_enter")):
            step = self._steps.get(step_id) if step_id is not None else None
            if step is None:
                continue
            try:
                await call_hook(step, hook)
            except Exception:  # noqa: BLE001 - hooks must not undo a completed move
                logger.exception("%s hook of step %r failed", hook, step_id)

    def _rejected(self, step_id: StepId | None) -> bool:
        self.rejections += 1
        self._reject.emit(step_id)
        return False


__all__ = [
    "FormShell",
    "FormSubmission",
    "StepContext",
    "StepDefinition",
]

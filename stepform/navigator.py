"""Step-navigation state machine for multi-step forms."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Callable

from config.models import NavigatorOptions
from stepform.listeners import ListenerRegistry
from stepform.types import (
    ChangeKind,
    NavigationDirection,
    NavigationEvent,
    NavigatorChange,
    StepId,
    StepMetadata,
    ValidationResult,
)
from stepform.validation import StepValidator, ValidatorCallable, run_validator
from utils.logging_context import log_context

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS: frozenset[str] = frozenset({"index", "title", "is_valid", "is_visited", "is_active"})


def _now_ms() -> int:
    return int(time.time() * 1000)


class StepNavigator:
    """Own the step records, step order, current step and navigation history.

    One instance belongs to one form instance. Every mutating call runs to
    completion before it returns; derived values are recomputed on read.
    Navigation failures are reported as ``False`` and never raise.
    """

    def __init__(
        self,
        options: NavigatorOptions | None = None,
        *,
        form_id: str | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self._options = options or NavigatorOptions()
        self._form_id = form_id
        self._clock = clock or _now_ms
        self._current_step_id: StepId | None = None
        self._steps: dict[StepId, StepMetadata] = {}
        self._order: list[StepId | None] = []
        self._history: list[NavigationEvent] = []
        self._validation_results: dict[StepId, ValidationResult] = {}
        self._validation_lock = asyncio.Lock()
        self._pending_step: StepId | None = None
        self._deferred_updates: list[tuple[StepId, dict[str, Any]]] = []
        self._changes: ListenerRegistry[NavigatorChange] = ListenerRegistry("navigator change")
        self._navigation: ListenerRegistry[NavigationEvent] = ListenerRegistry("navigation")

    def __repr__(self) -> str:
        return (
            f"StepNavigator(form_id={self._form_id!r}, current={self._current_step_id!r}, "
            f"steps={self.total_steps})"
        )

    @property
    def form_id(self) -> str | None:
        return self._form_id

    @property
    def options(self) -> NavigatorOptions:
        return self._options

    @property
    def current_step_id(self) -> StepId | None:
        return self._current_step_id

    @property
    def current_step_index(self) -> int:
        if self._current_step_id is None:
            return -1
        return self._index_of(self._current_step_id)

    @property
    def total_steps(self) -> int:
        return len(self._order)

    @property
    def current_step_metadata(self) -> StepMetadata | None:
        if self._current_step_id is None:
            return None
        return self._steps.get(self._current_step_id)

    @property
    def has_previous(self) -> bool:
        return self.current_step_index > 0

    @property
    def has_next(self) -> bool:
        current = self.current_step_index
        return 0 <= current < self.total_steps - 1

    @property
    def progress(self) -> float:
        """Completion percentage in the range 0-100."""

        total = self.total_steps
        if total == 0:
            return 0.0
        return (self.current_step_index + 1) / total * 100

    @property
    def is_complete(self) -> bool:
        """``True`` when the last step is current and valid."""

        metadata = self.current_step_metadata
        return self.current_step_index == self.total_steps - 1 and metadata is not None and metadata.is_valid

    @property
    def can_navigate_next(self) -> bool:
        metadata = self.current_step_metadata
        return metadata is not None and metadata.is_valid

    @property
    def history(self) -> tuple[NavigationEvent, ...]:
        return tuple(self._history)

    @property
    def step_order(self) -> tuple[StepId | None, ...]:
        return tuple(self._order)

    @property
    def steps(self) -> tuple[StepMetadata, ...]:
        """Registered records following the step order, gaps skipped."""

        ordered: list[StepMetadata] = []
        seen: set[StepId] = set()
        for step_id in self._order:
            if step_id is None or step_id in seen:
                continue
            record = self._steps.get(step_id)
            if record is not None:
                ordered.append(record)
                seen.add(step_id)
        return tuple(ordered)

    @property
    def validation_pending(self) -> bool:
        return self._pending_step is not None

    def get_step_metadata(self, step_id: StepId) -> StepMetadata | None:
        return self._steps.get(step_id)

    def validation_result(self, step_id: StepId) -> ValidationResult | None:
        """Return the last validator outcome recorded for ``step_id``."""

        return self._validation_results.get(step_id)

    def subscribe(self, listener: Callable[[NavigatorChange], None]) -> Callable[[], None]:
        """Call ``listener`` after every state-changing operation."""

        return self._changes.subscribe(listener)

    def subscribe_navigation(self, listener: Callable[[NavigationEvent], None]) -> Callable[[], None]:
        """Call ``listener`` with each recorded :class:`NavigationEvent`."""

        return self._navigation.subscribe(listener)

    def register_step(self, step_id: StepId, index: int, title: str | None = None) -> None:
        """Register ``step_id`` at ``index``, overwriting any previous entry.

        Re-registering an id replaces its record, so earlier validity and
        visited flags are lost. Registering at an occupied index evicts the
        previous id from that position. The first step registered at index 0
        becomes current when no step is current yet.
        """

        if index < 0:
            raise ValueError(f"Step index must be >= 0, got {index}")
        is_current = self._current_step_id is not None and step_id == self._current_step_id
        self._steps[step_id] = StepMetadata(
            id=step_id,
            index=index,
            title=title,
            is_valid=True,
            is_visited=is_current,
            is_active=is_current,
        )
        if index >= len(self._order):
            self._order.extend([None] * (index + 1 - len(self._order)))
        evicted = self._order[index]
        self._order[index] = step_id
        if evicted is not None and evicted != step_id:
            logger.debug("Step %r replaced %r at index %s", step_id, evicted, index)
        logger.debug("Registered step %r at index %s", step_id, index)
        self._notify(ChangeKind.REGISTERED, step_id)

        if self._current_step_id is None and index == 0:
            self.go_to_step(step_id)

    def unregister_step(self, step_id: StepId) -> None:
        """Remove ``step_id`` from the records and the step order.

        Gaps in the step order are dropped as well. The current step is only
        reassigned when ``NavigatorOptions.reassign_on_unregister`` is set;
        otherwise it keeps pointing at the removed id.
        """

        if step_id not in self._steps and step_id not in self._order:
            return
        position = self._index_of(step_id)
        self._steps.pop(step_id, None)
        self._validation_results.pop(step_id, None)
        self._order = [entry for entry in self._order if entry is not None and entry != step_id]
        logger.debug("Unregistered step %r", step_id)
        self._notify(ChangeKind.UNREGISTERED, step_id)

        if self._current_step_id is None or step_id != self._current_step_id:
            return
        if not self._options.reassign_on_unregister:
            logger.warning("Active step %r was unregistered; current step left dangling", step_id)
            return
        self._reassign_current(position)

    def _reassign_current(self, removed_position: int) -> None:
        self._current_step_id = None
        if not self._order:
            self._notify(ChangeKind.NAVIGATED, None)
            return
        position = removed_position if 0 <= removed_position < len(self._order) else len(self._order) - 1
        neighbour = self._order[position]
        if neighbour is None or not self.go_to_step(neighbour):
            self._notify(ChangeKind.NAVIGATED, None)

    def go_to_step(self, step_id: StepId) -> bool:
        """Make ``step_id`` current; return ``False`` if it is not registered."""

        current = self._current_step_id
        if current is not None and step_id == current:
            return True
        if step_id not in self._steps:
            logger.debug("Refusing navigation to unknown step %r", step_id)
            return False

        current_index = self._index_of(current) if current is not None else -1
        target_index = self._index_of(step_id)
        direction = NavigationDirection.FORWARD if target_index > current_index else NavigationDirection.BACKWARD

        if current is not None:
            self._replace(current, is_active=False)
        self._replace(step_id, is_active=True, is_visited=True)
        self._current_step_id = step_id

        event: NavigationEvent | None = None
        if current is not None:
            event = NavigationEvent(
                from_step=current,
                to_step=step_id,
                direction=direction,
                timestamp=self._clock(),
            )
            self._append_history(event)

        with log_context(form_id=self._form_id, step_id=step_id):
            logger.debug("Navigated %s from %r to %r", direction.value, current, step_id)
        self._notify(ChangeKind.NAVIGATED, step_id)
        if event is not None:
            self._navigation.emit(event)
        return True

    def next(self, force: bool = True) -> bool:
        """Advance one step; with ``force=False`` the current step must be valid."""

        if not self.has_next:
            return False
        if not force and not self.can_navigate_next:
            logger.debug("Blocked forward navigation from invalid step %r", self._current_step_id)
            return False
        target = self._order[self.current_step_index + 1]
        if target is None:
            return False
        return self.go_to_step(target)

    def previous(self) -> bool:
        if not self.has_previous:
            return False
        target = self._order[self.current_step_index - 1]
        if target is None:
            return False
        return self.go_to_step(target)

    async def validate_and_next(self, validator: StepValidator | ValidatorCallable | None = None) -> bool:
        """Validate the current step and advance when it passes.

        Without ``validator`` the stored validity flag gates the move. With a
        validator the outcome is awaited first; while it is pending, metadata
        writes aimed at the step are deferred until the decision is made.
        Failure, an exception raised by the validator, or a current step that
        changed during the wait leave the model untouched and return
        ``False``. Cancellation propagates and also leaves it untouched.
        """

        async with self._validation_lock:
            step_id = self._current_step_id
            if step_id is None:
                return False
            if validator is None:
                if not self.can_navigate_next:
                    return False
                return self.next(True)

            self._pending_step = step_id
            try:
                outcome = await self._await_validation(step_id, validator)
                if outcome is None or not outcome.valid:
                    return False
                if self._current_step_id != step_id or step_id not in self._steps:
                    logger.info("Step %r changed while validation was pending; not advancing", step_id)
                    return False
                if not self._steps[step_id].is_valid:
                    self._replace(step_id, is_valid=True)
                    self._notify(ChangeKind.METADATA, step_id)
                return self.next(True)
            finally:
                self._pending_step = None
                self._flush_deferred()

    async def _await_validation(
        self,
        step_id: StepId,
        validator: StepValidator | ValidatorCallable,
    ) -> ValidationResult | None:
        try:
            outcome = await run_validator(validator)
        except asyncio.CancelledError:
            logger.debug("Validation of step %r cancelled", step_id)
            raise
        except Exception:  # noqa: BLE001 - validator failures count as invalid
            with log_context(form_id=self._form_id, step_id=step_id):
                logger.exception("Validator for step %r failed", step_id)
            return None
        self._validation_results[step_id] = outcome
        if not outcome.valid:
            logger.debug("Step %r failed validation: %s", step_id, dict(outcome.errors))
        return outcome

    def update_step_metadata(self, step_id: StepId, **updates: Any) -> None:
        """Merge ``updates`` into the record of ``step_id``.

        Unregistered ids are ignored. Writes to a step whose validation is
        pending are applied once the pending decision is made.
        """

        unknown = set(updates) - _UPDATABLE_FIELDS
        if unknown:
            raise TypeError(f"Unknown step metadata fields: {', '.join(sorted(unknown))}")
        if step_id not in self._steps or not updates:
            return
        if self._pending_step is not None and step_id == self._pending_step:
            logger.debug("Deferring metadata update for step %r until validation settles", step_id)
            self._deferred_updates.append((step_id, dict(updates)))
            return
        self._replace(step_id, **updates)
        self._notify(ChangeKind.METADATA, step_id)

    def set_step_validity(self, step_id: StepId, valid: bool) -> None:
        self.update_step_metadata(step_id, is_valid=valid)

    def reset(self) -> None:
        """Return to the first step with every step unvalidated and no history."""

        first = self._order[0] if self._order else None
        for step_id, record in list(self._steps.items()):
            is_first = first is not None and step_id == first
            self._steps[step_id] = replace(record, is_valid=False, is_visited=is_first, is_active=is_first)
        self._current_step_id = first
        self._history.clear()
        self._validation_results.clear()
        logger.debug("Reset navigator to %r", first)
        self._notify(ChangeKind.RESET, first)

    def _index_of(self, step_id: StepId) -> int:
        try:
            return self._order.index(step_id)
        except ValueError:
            return -1

    def _replace(self, step_id: StepId, **updates: Any) -> None:
        record = self._steps.get(step_id)
        if record is not None:
            self._steps[step_id] = replace(record, **updates)

    def _append_history(self, event: NavigationEvent) -> None:
        self._history.append(event)
        limit = self._options.max_history
        if limit is not None and len(self._history) > limit:
            del self._history[: len(self._history) - limit]

    def _flush_deferred(self) -> None:
        pending, self._deferred_updates = self._deferred_updates, []
        for step_id, updates in pending:
            if step_id in self._steps:
                self._replace(step_id, **updates)
                self._notify(ChangeKind.METADATA, step_id)

    def _notify(self, kind: ChangeKind, step_id: StepId | None) -> None:
        self._changes.emit(NavigatorChange(kind=kind, step_id=step_id))


__all__ = ["StepNavigator"]

from __future__ import annotations

import asyncio
import logging

import pytest

from stepform import StepNavigator, ValidationResult


class _GatedValidator:
    """Validator whose outcome is released by the test."""

    def __init__(self, outcome: object = True) -> None:
        self.outcome = outcome
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def validate(self) -> object:
        self.started.set()
        await self.release.wait()
        return self.outcome


@pytest.mark.asyncio
async def test_validate_and_next_uses_stored_validity(three_steps: StepNavigator) -> None:
    three_steps.set_step_validity("step1", False)
    assert await three_steps.validate_and_next() is False
    assert three_steps.current_step_id == "step1"

    three_steps.set_step_validity("step1", True)
    assert await three_steps.validate_and_next() is True
    assert three_steps.current_step_id == "step2"


@pytest.mark.asyncio
async def test_validate_and_next_without_steps(navigator: StepNavigator) -> None:
    assert await navigator.validate_and_next() is False


@pytest.mark.asyncio
async def test_validate_and_next_on_last_step_fails(three_steps: StepNavigator) -> None:
    three_steps.go_to_step("step3")

    assert await three_steps.validate_and_next() is False
    assert three_steps.current_step_id == "step3"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "outcome",
    [True, ValidationResult(valid=True), {"valid": True}],
)
async def test_validator_outcome_shapes_allow_advance(three_steps: StepNavigator, outcome: object) -> None:
    three_steps.set_step_validity("step1", False)

    assert await three_steps.validate_and_next(lambda: outcome) is True
    assert three_steps.current_step_id == "step2"
    assert three_steps.get_step_metadata("step1").is_valid is True


@pytest.mark.asyncio
async def test_failed_validation_leaves_state_untouched(three_steps: StepNavigator) -> None:
    result = ValidationResult(valid=False, errors={"email": "required"})

    assert await three_steps.validate_and_next(lambda: result) is False

    assert three_steps.current_step_id == "step1"
    assert three_steps.get_step_metadata("step1").is_valid is True
    assert three_steps.history == ()
    assert three_steps.validation_result("step1") == result


@pytest.mark.asyncio
async def test_async_validator_is_awaited(three_steps: StepNavigator) -> None:
    async def _validate() -> bool:
        await asyncio.sleep(0)
        return True

    assert await three_steps.validate_and_next(_validate) is True
    assert three_steps.current_step_id == "step2"


@pytest.mark.asyncio
async def test_raising_validator_counts_as_invalid(
    three_steps: StepNavigator, caplog: pytest.LogCaptureFixture
) -> None:
    def _broken() -> bool:
        raise RuntimeError("backend unavailable")

    with caplog.at_level(logging.ERROR, logger="stepform.navigator"):
        assert await three_steps.validate_and_next(_broken) is False

    assert three_steps.current_step_id == "step1"
    assert three_steps.validation_pending is False
    assert any("Validator for step" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_validity_writes_are_deferred_while_pending(three_steps: StepNavigator) -> None:
    validator = _GatedValidator(outcome=True)
    task = asyncio.create_task(three_steps.validate_and_next(validator))
    await validator.started.wait()

    assert three_steps.validation_pending is True
    three_steps.set_step_validity("step1", False)
    three_steps.set_step_validity("step2", False)
    assert three_steps.get_step_metadata("step1").is_valid is True
    assert three_steps.get_step_metadata("step2").is_valid is False

    validator.release.set()
    assert await task is True

    assert three_steps.current_step_id == "step2"
    assert three_steps.validation_pending is False
    assert three_steps.get_step_metadata("step1").is_valid is False


@pytest.mark.asyncio
async def test_navigation_during_pending_validation_aborts_advance(three_steps: StepNavigator) -> None:
    validator = _GatedValidator(outcome=True)
    task = asyncio.create_task(three_steps.validate_and_next(validator))
    await validator.started.wait()

    three_steps.go_to_step("step3")
    validator.release.set()

    assert await task is False
    assert three_steps.current_step_id == "step3"
    assert len(three_steps.history) == 1


@pytest.mark.asyncio
async def test_cancellation_leaves_state_untouched(three_steps: StepNavigator) -> None:
    three_steps.set_step_validity("step1", False)
    validator = _GatedValidator(outcome=True)
    task = asyncio.create_task(three_steps.validate_and_next(validator))
    await validator.started.wait()
    three_steps.update_step_metadata("step1", title="Renamed")

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    metadata = three_steps.get_step_metadata("step1")
    assert three_steps.current_step_id == "step1"
    assert three_steps.history == ()
    assert metadata.is_valid is False
    assert metadata.title == "Renamed"
    assert three_steps.validation_pending is False
    assert three_steps.validation_result("step1") is None


@pytest.mark.asyncio
async def test_concurrent_calls_are_serialised(three_steps: StepNavigator) -> None:
    async def _validate() -> bool:
        await asyncio.sleep(0)
        return True

    results = await asyncio.gather(
        three_steps.validate_and_next(_validate),
        three_steps.validate_and_next(_validate),
    )

    assert results == [True, True]
    assert three_steps.current_step_id == "step3"
    assert [event.to_step for event in three_steps.history] == ["step2", "step3"]

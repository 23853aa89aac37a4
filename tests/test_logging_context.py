from __future__ import annotations

import logging
from typing import Any

from stepform import StepNavigator
from utils.logging_context import configure_logging, log_context, set_form_id, set_step_id


def test_navigation_logging_includes_context(caplog: Any) -> None:
    configure_logging()
    caplog.set_level(logging.DEBUG, logger="stepform.navigator")
    navigator = StepNavigator(form_id="signup")
    navigator.register_step("a", 0)
    navigator.register_step("b", 1)

    navigator.next()

    records = [record for record in caplog.records if "to 'b'" in record.getMessage()]
    assert records, "Expected a log entry for the move to step b"
    assert records[0].form_id == "signup"
    assert records[0].step_id == "b"


def test_log_context_restores_previous_values(caplog: Any) -> None:
    configure_logging()
    set_form_id("outer")
    set_step_id("intro")
    logger = logging.getLogger("test.logging.context")
    caplog.set_level(logging.INFO, logger=logger.name)

    with log_context(step_id=3):
        logger.info("inside")
    logger.info("outside")

    inside, outside = (record for record in caplog.records if record.name == logger.name)
    assert inside.form_id == "outer"
    assert inside.step_id == "3"
    assert outside.step_id == "intro"

    set_form_id(None)
    set_step_id(None)

from __future__ import annotations

import logging

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.dispatcher",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Failed to send alert email",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_known_extra_fields_are_appended_in_order() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s %(message)s")

    rendered = formatter.format(_record(severity="critical", batch_id="BATCH-1", unrelated="x"))

    assert rendered == "WARNING Failed to send alert email | batch_id=BATCH-1 severity=critical"


def test_message_is_unchanged_without_context() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", extra_keys=["tick"])

    assert formatter.format(_record(batch_id="BATCH-1")) == "Failed to send alert email"

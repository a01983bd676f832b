"""Tests for log redaction."""

import logging

from petshop.security.logging_filters import REDACTED, SensitiveFilter, scrub


def _record(msg: str, *args: object) -> logging.LogRecord:
    return logging.LogRecord("petshop", logging.INFO, __file__, 1, msg, args, None)


def test_scrub_masks_tokens_and_personal_data() -> None:
    message = scrub(
        "Authorization: Bearer abc.def-123 owner ana@example.com cpf 123.456.789-09"
    )

    assert "abc.def-123" not in message
    assert "ana@example.com" not in message
    assert "123.456.789-09" not in message
    assert message.count(REDACTED) == 3


def test_filter_renders_args_before_scrubbing() -> None:
    record = _record("Owner %s booked %s", "ana@example.com", "Banho")

    assert SensitiveFilter().filter(record) is True
    assert record.getMessage() == f"Owner {REDACTED} booked Banho"
    assert record.args is None


def test_filter_leaves_plain_messages_alone() -> None:
    record = _record("Appointment confirmed")

    SensitiveFilter().filter(record)

    assert record.getMessage() == "Appointment confirmed"

"""Logging filters that scrub sensitive content."""

from __future__ import annotations

import logging
import re

_SENSITIVE_PATTERN = re.compile(
    r"(Authorization: Bearer\s+[\w\.-]+|Bearer\s+[\w\.-]{16,}"
    r"|access_token\"\s*:\s*\"[^\"]+\"|password\"\s*:\s*\"[^\"]+\")",
    re.IGNORECASE,
)
_CPF_PATTERN = re.compile(r"\b\d{3}\.?\d{3}\.?\d{3}-?\d{2}\b")
_EMAIL_PATTERN = re.compile(r"\b[\w.+-]+@[\w-]+(?:\.[\w-]+)+\b")

REDACTED = "**REDACTED**"


def scrub(message: str) -> str:
    """Return ``message`` with tokens, CPF numbers and e-mails masked."""
    message = _SENSITIVE_PATTERN.sub(REDACTED, message)
    message = _CPF_PATTERN.sub(REDACTED, message)
    return _EMAIL_PATTERN.sub(REDACTED, message)


class SensitiveFilter(logging.Filter):
    """Replace sensitive tokens in log messages with a redaction marker."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            try:
                rendered = record.getMessage()
            except (TypeError, ValueError):
                return True
            record.msg = scrub(rendered)
            record.args = None
        elif isinstance(record.msg, str):
            record.msg = scrub(record.msg)
        return True


__all__ = ["REDACTED", "SensitiveFilter", "scrub"]

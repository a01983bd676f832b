"""Process-wide logging setup."""

from __future__ import annotations

import logging

from asgi_correlation_id import CorrelationIdFilter

from petshop.core.config import Settings
from petshop.security.logging_filters import SensitiveFilter

LOG_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"

_FILTERED_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "")


def configure_logging(settings: Settings) -> None:
    """Attach redaction and correlation id filters and set the root level."""
    root = logging.getLogger()
    root.setLevel(settings.log_level.upper())
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(CorrelationIdFilter(uuid_length=32, default_value="-"))
        root.addHandler(handler)

    for name in _FILTERED_LOGGERS:
        target = logging.getLogger(name)
        if not any(isinstance(flt, SensitiveFilter) for flt in target.filters):
            target.addFilter(SensitiveFilter())

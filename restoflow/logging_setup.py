"""Logging wiring: per-request structured line + WARN+ ring buffer.

The ring buffer keeps the most recent warnings/errors (with request id and
path when raised inside a request) so a failing scheduled task or a denied
channel authorisation can be inspected without external log aggregation.
"""

from __future__ import annotations

import collections
import logging
import time

from flask import g, has_request_context, request

LOG_BUFFER: collections.deque[dict] = collections.deque(maxlen=500)

REQUEST_LOGGER_NAME = "restoflow.request"


class SupportLogHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        if has_request_context():
            rid = getattr(g, "request_id", "-")
            path = request.path
        else:
            rid = "-"
            path = "-"
        LOG_BUFFER.append(
            {
                "ts": time.time(),
                "level": record.levelname,
                "logger": record.name,
                "msg": self.format(record),
                "request_id": rid,
                "path": path,
            }
        )


def install_support_log_handler() -> None:
    root = logging.getLogger()
    # Avoid duplicate attachment when create_app runs more than once
    if any(isinstance(h, SupportLogHandler) for h in root.handlers):
        return
    h = SupportLogHandler(level=logging.WARNING)
    h.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(h)


def request_logger() -> logging.Logger:
    log = logging.getLogger(REQUEST_LOGGER_NAME)
    if not log.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("%(message)s"))
        log.addHandler(h)
    log.setLevel(logging.INFO)
    return log


__all__ = ["LOG_BUFFER", "SupportLogHandler", "install_support_log_handler", "request_logger"]

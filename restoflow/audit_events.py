"""Lightweight audit event recorder for security-sensitive and domain actions.

Events are kept in a bounded in-memory buffer (process local) and mirrored to
the ``restoflow.audit`` logger so they reach whatever sink logging is wired to.
"""
from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from typing import Any

logger = logging.getLogger("restoflow.audit")

_AUDIT_BUFFER: list[dict[str, Any]] = []
_MAX_BUFFER = 500


@dataclass
class AuditEvent:
    ts: int
    action: str
    actor_user_id: int | None = None
    restaurant_id: int | None = None
    meta: dict[str, Any] | None = None


def record_audit_event(
    action: str,
    actor_user_id: int | None = None,
    restaurant_id: int | None = None,
    **meta: Any,
) -> AuditEvent:
    ev = AuditEvent(int(time.time()), action, actor_user_id, restaurant_id, meta or None)
    if len(_AUDIT_BUFFER) >= _MAX_BUFFER:
        del _AUDIT_BUFFER[0 : max(50, _MAX_BUFFER // 10)]  # drop oldest slice
    _AUDIT_BUFFER.append(asdict(ev))
    logger.info("audit action=%s actor=%s restaurant=%s meta=%s", action, actor_user_id, restaurant_id, meta)
    return ev


def list_audit_events(action: str | None = None) -> list[dict[str, Any]]:
    if action is None:
        return list(_AUDIT_BUFFER)
    return [e for e in _AUDIT_BUFFER if e["action"] == action]


def clear_audit_events() -> None:  # test helper
    _AUDIT_BUFFER.clear()


__all__ = ["AuditEvent", "record_audit_event", "list_audit_events", "clear_audit_events"]

"""Domain signals.

Built on blinker, the signal library Flask itself uses for ``request_started``
and friends. Senders pass the model instance as a keyword argument.
"""

from __future__ import annotations

import logging

from blinker import Namespace

from .audit_events import record_audit_event

logger = logging.getLogger(__name__)

_signals = Namespace()

#: Sent once per verification dispatch with ``user=<User>``.
registered = _signals.signal("registered")


def _request_email_verification(sender, user=None, **extra) -> None:
    if user is None:
        return
    record_audit_event("verification_email_requested", actor_user_id=user.id, email=user.email)
    logger.info("verification email requested user_id=%s", user.id)


def connect_default_listeners() -> None:
    # blinker ignores duplicate connections of the same receiver
    registered.connect(_request_email_verification)


__all__ = ["registered", "connect_default_listeners"]

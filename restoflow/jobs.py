"""Queueable jobs.

A job is a small serializable object: ``name`` identifies its class in the
registry, ``to_payload()`` returns the JSON-safe constructor kwargs and
``handle()`` does the work. Queues may run a job more than once, so handlers
must tolerate repeats.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Protocol

from sqlalchemy.orm import Session

from .db import get_new_session
from .events import registered
from .models import User

logger = logging.getLogger(__name__)


class Job(Protocol):
    name: ClassVar[str]

    def to_payload(self) -> dict[str, Any]: ...  # pragma: no cover - interface only

    def handle(self, db: Session | None = None) -> None: ...  # pragma: no cover - interface only


class JobError(Exception):
    """Raised by a handler when the job cannot complete; queues retry it."""


@dataclass
class SendVerificationEmail:
    """Fire the ``registered`` signal for a newly created owner account."""

    name: ClassVar[str] = "send_verification_email"
    user_id: int

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)

    def handle(self, db: Session | None = None) -> None:
        own = db is None
        sess = get_new_session() if own else db
        try:
            user = sess.get(User, self.user_id)
            if user is None:
                raise JobError(f"user {self.user_id} not found")
            logger.info("dispatching registered signal user_id=%s", user.id)
            registered.send(self, user=user)
        finally:
            if own:
                sess.close()


JOB_REGISTRY: dict[str, type] = {
    SendVerificationEmail.name: SendVerificationEmail,
}


def job_from_payload(name: str, payload: dict[str, Any]) -> Job:
    cls = JOB_REGISTRY.get(name)
    if cls is None:
        raise JobError(f"unknown job: {name}")
    return cls(**payload)


__all__ = ["Job", "JobError", "SendVerificationEmail", "JOB_REGISTRY", "job_from_payload"]

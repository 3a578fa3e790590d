"""Job queue with an env/config-selected backend (sync, memory or redis).

``dispatch(job)`` hands a job to the active backend. ``sync`` runs it inline;
``memory`` and ``redis`` defer it until ``work()`` drains the queue, retrying a
failing job up to ``max_attempts`` times before moving it to the failed list.
Delivery is at-least-once and unordered across retries.
"""

from __future__ import annotations

import json
import logging
import os
from collections import deque
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from .jobs import Job, job_from_payload
from .metrics import increment

logger = logging.getLogger(__name__)


@dataclass
class FailedJob:
    name: str
    payload: dict[str, Any]
    attempts: int
    error: str


@runtime_checkable
class QueueBackend(Protocol):
    failed: list[FailedJob]

    def push(self, job: Job) -> None: ...  # pragma: no cover
    def work(self, max_jobs: int | None = None) -> int: ...  # pragma: no cover
    def size(self) -> int: ...  # pragma: no cover


def _run(job: Job) -> None:
    job.handle()
    increment("queue.job_processed", {"job": job.name})


class SyncQueue:
    """Run each job at dispatch time; a failure propagates to the caller."""

    def __init__(self) -> None:
        self.failed: list[FailedJob] = []

    def push(self, job: Job) -> None:
        _run(job)

    def work(self, max_jobs: int | None = None) -> int:
        return 0

    def size(self) -> int:
        return 0


@dataclass
class _Envelope:
    name: str
    payload: dict[str, Any]
    attempts: int = 0


class MemoryQueue:
    def __init__(self, max_attempts: int = 3) -> None:
        self.max_attempts = max(1, max_attempts)
        self._pending: deque[_Envelope] = deque()
        self.failed: list[FailedJob] = []

    def push(self, job: Job) -> None:
        self._pending.append(_Envelope(job.name, job.to_payload()))

    def size(self) -> int:
        return len(self._pending)

    def work(self, max_jobs: int | None = None) -> int:
        processed = 0
        while self._pending and (max_jobs is None or processed < max_jobs):
            env = self._pending.popleft()
            processed += 1
            env.attempts += 1
            try:
                _run(job_from_payload(env.name, env.payload))
            except Exception as exc:
                self._on_failure(env, exc)
        return processed

    def _on_failure(self, env: _Envelope, exc: Exception) -> None:
        if env.attempts < self.max_attempts:
            logger.warning("job %s failed (attempt %s/%s): %s", env.name, env.attempts, self.max_attempts, exc)
            self._pending.append(env)
            return
        logger.error("job %s failed permanently after %s attempts: %s", env.name, env.attempts, exc)
        increment("queue.job_failed", {"job": env.name})
        self.failed.append(FailedJob(env.name, env.payload, env.attempts, str(exc)))


class RedisQueue:
    """JSON envelopes on a Redis list; failed jobs go to ``<key>:failed``."""

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        key: str = "restoflow:queue",
        max_attempts: int = 3,
        client: Any = None,
    ) -> None:
        if client is None:
            import redis  # optional dependency boundary (extra: redis)

            client = redis.Redis.from_url(url, decode_responses=True)
        self._client = client
        self.key = key
        self.failed_key = f"{key}:failed"
        self.max_attempts = max(1, max_attempts)

    @property
    def failed(self) -> list[FailedJob]:
        return [FailedJob(**json.loads(raw)) for raw in self._client.lrange(self.failed_key, 0, -1)]

    def push(self, job: Job) -> None:
        self._client.rpush(self.key, json.dumps({"name": job.name, "payload": job.to_payload(), "attempts": 0}))

    def size(self) -> int:
        return int(self._client.llen(self.key))

    def work(self, max_jobs: int | None = None) -> int:
        processed = 0
        while max_jobs is None or processed < max_jobs:
            raw = self._client.lpop(self.key)
            if raw is None:
                break
            processed += 1
            env = json.loads(raw)
            env["attempts"] += 1
            try:
                _run(job_from_payload(env["name"], env["payload"]))
            except Exception as exc:
                if env["attempts"] < self.max_attempts:
                    logger.warning("job %s failed (attempt %s/%s): %s", env["name"], env["attempts"], self.max_attempts, exc)
                    self._client.rpush(self.key, json.dumps(env))
                else:
                    logger.error("job %s failed permanently after %s attempts: %s", env["name"], env["attempts"], exc)
                    increment("queue.job_failed", {"job": env["name"]})
                    failed = FailedJob(env["name"], env["payload"], env["attempts"], str(exc))
                    self._client.rpush(self.failed_key, json.dumps(failed.__dict__))
        return processed


@dataclass
class _QueueConfig:
    backend: str = "sync"
    max_attempts: int = 3
    redis_url: str | None = None

    def reload(self) -> None:
        self.backend = os.getenv("QUEUE_BACKEND", "sync").strip().lower() or "sync"
        self.max_attempts = int(os.getenv("QUEUE_MAX_ATTEMPTS", "3"))
        self.redis_url = os.getenv("REDIS_URL")


_cfg = _QueueConfig()
_cfg.reload()

_instance: QueueBackend | None = None


def configure_queue(backend: str, max_attempts: int = 3, redis_url: str | None = None) -> None:
    """Adopt app configuration; the backend is rebuilt on next use."""
    global _instance
    _cfg.backend = (backend or "sync").strip().lower()
    _cfg.max_attempts = int(max_attempts)
    _cfg.redis_url = redis_url
    _instance = None


def _build() -> QueueBackend:
    if _cfg.backend == "memory":
        return MemoryQueue(_cfg.max_attempts)
    if _cfg.backend == "redis":
        return RedisQueue(_cfg.redis_url or "redis://localhost:6379/0", max_attempts=_cfg.max_attempts)
    if _cfg.backend != "sync":
        logger.warning("unknown QUEUE_BACKEND=%s; using sync", _cfg.backend)
    return SyncQueue()


def get_queue() -> QueueBackend:
    global _instance
    if _instance is None:
        _instance = _build()
    return _instance


def dispatch(job: Job) -> None:
    logger.info("dispatch job=%s backend=%s", job.name, _cfg.backend)
    get_queue().push(job)


__all__ = [
    "FailedJob",
    "QueueBackend",
    "SyncQueue",
    "MemoryQueue",
    "RedisQueue",
    "configure_queue",
    "get_queue",
    "dispatch",
]

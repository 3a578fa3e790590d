"""Periodic task schedule driven by an external once-a-minute trigger.

``restoflow schedule:run`` is meant to be invoked every minute (system cron,
a platform scheduler, ...). Each call evaluates the five-field cron
expression of every registered task against the current minute and runs the
due ones. Tasks are isolated: one raising never prevents the others.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime

from .audit_events import record_audit_event
from .metrics import increment

logger = logging.getLogger(__name__)

# (min, max) per field: minute hour day-of-month month day-of-week
_FIELD_BOUNDS = ((0, 59), (0, 23), (1, 31), (1, 12), (0, 6))


class CronError(ValueError):
    pass


def _parse_field(expr: str, lo: int, hi: int) -> frozenset[int]:
    values: set[int] = set()
    for part in expr.split(","):
        step = 1
        stepped = "/" in part
        if stepped:
            part, step_s = part.split("/", 1)
            if not step_s.isdigit() or int(step_s) == 0:
                raise CronError(f"bad step in {expr!r}")
            step = int(step_s)
        if part == "*":
            start, end = lo, hi
        elif "-" in part:
            a, b = part.split("-", 1)
            if not (a.isdigit() and b.isdigit()):
                raise CronError(f"bad range in {expr!r}")
            start, end = int(a), int(b)
        elif part.isdigit():
            start = int(part)
            end = hi if stepped else start  # "5/15" runs from 5 to the field maximum
        else:
            raise CronError(f"bad cron field {expr!r}")
        if start < lo or end > hi or start > end:
            raise CronError(f"cron field {expr!r} out of range {lo}-{hi}")
        values.update(range(start, end + 1, step))
    return frozenset(values)


@dataclass(frozen=True)
class CronExpression:
    """Minimal five-field cron matcher (numbers, ``*``, ranges, lists, steps)."""

    expression: str
    minutes: frozenset[int]
    hours: frozenset[int]
    days: frozenset[int]
    months: frozenset[int]
    weekdays: frozenset[int]

    @classmethod
    def parse(cls, expression: str) -> CronExpression:
        fields = expression.split()
        if len(fields) != 5:
            raise CronError(f"expected 5 fields, got {len(fields)}: {expression!r}")
        # Sunday may be written as 7
        fields[4] = ",".join("0" if p == "7" else p for p in fields[4].split(","))
        parsed = [_parse_field(f, lo, hi) for f, (lo, hi) in zip(fields, _FIELD_BOUNDS)]
        return cls(expression, *parsed)

    def matches(self, when: datetime) -> bool:
        weekday = (when.weekday() + 1) % 7  # cron: 0 = Sunday
        return (
            when.minute in self.minutes
            and when.hour in self.hours
            and when.day in self.days
            and when.month in self.months
            and weekday in self.weekdays
        )


@dataclass(frozen=True)
class ScheduledTask:
    command: str
    cron: str
    name: str
    description: str

    def is_due(self, now: datetime) -> bool:
        return CronExpression.parse(self.cron).matches(now)


@dataclass(frozen=True)
class TaskResult:
    task: ScheduledTask
    ok: bool
    detail: str


class Schedule:
    def __init__(self, tasks: Iterable[ScheduledTask], handlers: Mapping[str, Callable[[], object]]):
        self.tasks = tuple(tasks)
        self._handlers = dict(handlers)
        for t in self.tasks:
            CronExpression.parse(t.cron)  # fail fast on a bad expression
            if t.command not in self._handlers:
                raise KeyError(f"no handler for scheduled command {t.command}")

    def due(self, now: datetime) -> list[ScheduledTask]:
        return [t for t in self.tasks if t.is_due(now)]

    def run_task(self, task: ScheduledTask) -> TaskResult:
        try:
            outcome = self._handlers[task.command]()
        except Exception as exc:
            logger.exception("Scheduled task '%s' failed", task.name)
            increment("scheduler.task_failed", {"task": task.name})
            record_audit_event("scheduled_task_failed", task=task.name, error=str(exc))
            return TaskResult(task, False, str(exc))
        logger.info("Scheduled task '%s' completed: %s", task.name, outcome)
        increment("scheduler.task_completed", {"task": task.name})
        return TaskResult(task, True, str(outcome))

    def run_due(self, now: datetime | None = None) -> list[TaskResult]:
        now = now or datetime.now()
        return [self.run_task(t) for t in self.due(now)]


__all__ = ["CronError", "CronExpression", "ScheduledTask", "TaskResult", "Schedule"]

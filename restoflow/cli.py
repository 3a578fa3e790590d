"""Command-line entry point for scheduled and background work.

Usage::

    restoflow schedule:run            # run due tasks; invoke every minute from cron
    restoflow schedule:list
    restoflow menu-plans:archive-expired
    restoflow reservations:update-expired
    restoflow queue:work [--max-jobs N]

Exit codes: 0 success, 1 when a task (or job) failed, 2 on bad usage.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from contextlib import suppress
from datetime import datetime

from flask import Flask

from .bootstrap import build_schedule, get_boot_config
from .job_queue import get_queue
from .maintenance import TASK_HANDLERS


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="restoflow", description="Restoflow maintenance commands.")
    sub = p.add_subparsers(dest="command", required=True)
    run = sub.add_parser("schedule:run", help="Run every scheduled task due this minute.")
    run.add_argument("--at", help="Evaluate the schedule at this ISO timestamp instead of now.")
    sub.add_parser("schedule:list", help="List scheduled tasks.")
    for command in TASK_HANDLERS:
        sub.add_parser(command, help=f"Run {command} now.")
    work = sub.add_parser("queue:work", help="Drain the job queue.")
    work.add_argument("--max-jobs", type=int, default=None)
    return p.parse_args(argv)


def _schedule_run(app: Flask, at: str | None) -> int:
    now = datetime.fromisoformat(at) if at else datetime.now()
    schedule = build_schedule(get_boot_config(app))
    results = schedule.run_due(now)
    if not results:
        print(f"No scheduled tasks are due at {now:%Y-%m-%d %H:%M}.")
    for r in results:
        state = "ok" if r.ok else "FAILED"
        print(f"{r.task.name}: {state} ({r.detail})")
    return 0 if all(r.ok for r in results) else 1


def _schedule_list(app: Flask) -> int:
    for t in get_boot_config(app).scheduled_tasks:
        print(f"{t.cron:<15} {t.command:<30} {t.name}  {t.description}")
    return 0


def _queue_work(max_jobs: int | None) -> int:
    queue = get_queue()
    before = len(queue.failed)
    processed = queue.work(max_jobs)
    failed = len(queue.failed) - before
    print(f"processed {processed} job attempt(s); {failed} failed permanently")
    return 1 if failed else 0


def main(argv: Sequence[str] | None = None, app: Flask | None = None) -> int:
    args = _parse_args(argv)
    if app is None:
        from .app_factory import create_app

        app = create_app()
    with app.app_context():
        if args.command == "schedule:run":
            return _schedule_run(app, args.at)
        if args.command == "schedule:list":
            return _schedule_list(app)
        if args.command == "queue:work":
            return _queue_work(args.max_jobs)
        try:
            outcome = TASK_HANDLERS[args.command]()
        except Exception as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
        print(f"{args.command}: {outcome}")
        return 0


if __name__ == "__main__":  # pragma: no cover
    with suppress(SystemExit):
        sys.exit(main())

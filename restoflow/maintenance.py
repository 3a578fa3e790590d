"""Housekeeping tasks run by the scheduler (or by hand from the CLI)."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from .db import get_new_session
from .models import RESERVATION_ACTIVE_STATUSES, MenuPlan, TableReservation

logger = logging.getLogger(__name__)

# Table statuses released once the reservation holding them is over
_RELEASABLE_TABLE_STATUSES = ("reserved", "occupied")


@dataclass
class ArchiveSummary:
    archived: int = 0
    skipped_default: int = 0
    total_expired: int = 0

    def __str__(self) -> str:
        return f"archived={self.archived} skipped_default={self.skipped_default} total_expired={self.total_expired}"


def archive_expired_menu_plans(db: Session, today: date | None = None) -> ArchiveSummary:
    """Deactivate active plans whose end date is before today; default plans stay active."""
    today = today or date.today()
    expired = (
        db.execute(
            select(MenuPlan).where(MenuPlan.is_active.is_(True), MenuPlan.end_date < today)
        )
        .scalars()
        .all()
    )
    summary = ArchiveSummary(total_expired=len(expired))
    for plan in expired:
        if plan.is_default:
            logger.info("Skipping default plan: %s (ID: %s)", plan.plan_name, plan.menu_plan_id)
            summary.skipped_default += 1
            continue
        plan.is_active = False
        logger.info("Archived plan: %s (ID: %s) - Ended: %s", plan.plan_name, plan.menu_plan_id, plan.end_date)
        summary.archived += 1
    db.commit()
    logger.info(
        "Menu plans archived archived_count=%s total_expired=%s date=%s",
        summary.archived,
        summary.total_expired,
        today.isoformat(),
    )
    return summary


@dataclass
class ReservationSummary:
    completed: int = 0
    tables_released: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"completed={self.completed} tables_released={','.join(self.tables_released) or '-'}"


def update_expired_reservations(db: Session, now: datetime | None = None) -> ReservationSummary:
    """Complete reservations whose slot has ended and free their tables."""
    now = now or datetime.now()
    candidates = (
        db.execute(
            select(TableReservation)
            .options(selectinload(TableReservation.table))
            .where(TableReservation.status.in_(RESERVATION_ACTIVE_STATUSES))
        )
        .scalars()
        .all()
    )
    summary = ReservationSummary()
    for reservation in candidates:
        if reservation.ends_at >= now:
            continue
        old_status = reservation.status
        reservation.status = "completed"
        table = reservation.table
        if table is not None and table.status in _RELEASABLE_TABLE_STATUSES:
            table.status = "available"
            summary.tables_released.append(table.table_name)
        logger.info(
            "Updated reservation ID %s from '%s' to 'completed' for table %s",
            reservation.id,
            old_status,
            table.table_name if table is not None else "-",
        )
        summary.completed += 1
    db.commit()
    if summary.completed:
        logger.info("Successfully updated %s expired reservations.", summary.completed)
    else:
        logger.info("No expired reservations found.")
    return summary


def _in_new_session(task: Callable[[Session], object]) -> Callable[[], object]:
    def run() -> object:
        db = get_new_session()
        try:
            return task(db)
        finally:
            db.close()

    return run


#: Command identifier -> zero-arg callable, as consumed by ``Schedule``.
TASK_HANDLERS: dict[str, Callable[[], object]] = {
    "menu-plans:archive-expired": _in_new_session(archive_expired_menu_plans),
    "reservations:update-expired": _in_new_session(update_expired_reservations),
}


__all__ = [
    "ArchiveSummary",
    "ReservationSummary",
    "archive_expired_menu_plans",
    "update_expired_reservations",
    "TASK_HANDLERS",
]

"""Route middleware, addressable by alias.

Each entry of ``MIDDLEWARE_ALIASES`` is a factory returning a view decorator.
Parameterised aliases take their arguments after a colon, so
``use_middleware("employee.auth", "role:waiter")`` stacks the employee guard
check and the waiter role check (outermost first).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from functools import wraps
from types import MappingProxyType
from typing import ParamSpec, TypeVar

from flask import flash, jsonify, redirect, request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .auth_context import current_admin, current_employee, current_owner
from .db import get_session
from .errors import AuthzError, SessionError
from .models import UserSubscription

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")
ViewDecorator = Callable[[Callable[P, R]], Callable[P, R]]

SUBSCRIPTIONS_URL = "/subscriptions"
SUBSCRIPTIONS_RENEW_URL = "/subscriptions/renew"
MSG_EXPIRED = "Your subscription has expired. Please renew your subscription to continue."
MSG_REQUIRED = "You need an active subscription to access this feature."


def _guarded(check: Callable[[], object]) -> ViewDecorator:
    """Build a decorator that runs ``check`` first; a non-None result short-circuits."""

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            early = check()
            if early is not None:
                return early
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def admin_auth() -> ViewDecorator:
    def check():
        if current_admin(get_session()) is None:
            raise SessionError("admin authentication required")
        return None

    return _guarded(check)


def employee_auth() -> ViewDecorator:
    def check():
        if current_employee(get_session()) is None:
            raise SessionError("employee authentication required")
        return None

    return _guarded(check)


def role(name: str) -> ViewDecorator:
    """Require an employee whose role label equals ``name`` (case-insensitive)."""
    wanted = name.strip().lower()

    def check():
        employee = current_employee(get_session())
        if employee is None:
            raise SessionError("Unauthorized.")
        actual = employee.role
        if actual is None or actual.label().lower() != wanted:
            raise AuthzError(f"Access denied. {name.strip().capitalize()} role required.", required=wanted)
        return None

    return _guarded(check)


def _expects_json() -> bool:
    if request.path.startswith("/api/"):
        return True
    if request.headers.get("X-Requested-With") == "XMLHttpRequest":
        return True
    accept = request.headers.get("Accept", "")
    return "/json" in accept or "+json" in accept


def _reject(message: str, target: str):
    if _expects_json():
        resp = jsonify({"success": False, "message": message, "redirect": target})
        resp.status_code = 403
        return resp
    flash(message, "error")
    return redirect(target)


def _now() -> datetime:
    return datetime.now()


def _subscription_gate(db: Session, user_id: int, trial_only: bool):
    stmt = select(UserSubscription).where(
        UserSubscription.user_id == user_id,
        UserSubscription.subscription_status == "active",
    )
    if trial_only:
        stmt = stmt.where(UserSubscription.is_trial.is_(True))
    sub = db.execute(stmt.limit(1)).scalars().first()
    if sub is None:
        if trial_only:
            return None  # no trial in play; paid plans are check.subscription's concern
        return _reject(MSG_REQUIRED, SUBSCRIPTIONS_URL)
    if _now() > sub.subscription_end_date:
        sub.subscription_status = "archive"
        sub.remaining_days = 0
        db.commit()
        logger.info("archived expired subscription id=%s user_id=%s trial=%s", sub.id, user_id, sub.is_trial)
        return _reject(MSG_EXPIRED, SUBSCRIPTIONS_RENEW_URL)
    return None


def check_subscription() -> ViewDecorator:
    def check():
        db = get_session()
        owner = current_owner(db)
        if owner is None:
            return None
        return _subscription_gate(db, owner.id, trial_only=False)

    return _guarded(check)


def check_demo_subscription() -> ViewDecorator:
    def check():
        db = get_session()
        owner = current_owner(db)
        if owner is None:
            return None
        return _subscription_gate(db, owner.id, trial_only=True)

    return _guarded(check)


MIDDLEWARE_ALIASES: Mapping[str, Callable[..., ViewDecorator]] = MappingProxyType(
    {
        "check.demo.subscription": check_demo_subscription,
        "check.subscription": check_subscription,
        "admin.auth": admin_auth,
        "employee.auth": employee_auth,
        "role": role,
    }
)


def resolve_middleware(entry: str) -> ViewDecorator:
    alias, _, arg = entry.partition(":")
    factory = MIDDLEWARE_ALIASES.get(alias)
    if factory is None:
        raise KeyError(f"unknown middleware alias: {alias}")
    args = [a for a in arg.split(",") if a] if arg else []
    return factory(*args)


def use_middleware(*entries: str) -> ViewDecorator:
    decorators = [resolve_middleware(e) for e in entries]

    def decorator(fn):
        for d in reversed(decorators):
            fn = d(fn)
        return fn

    return decorator


__all__ = [
    "MIDDLEWARE_ALIASES",
    "admin_auth",
    "employee_auth",
    "role",
    "check_subscription",
    "check_demo_subscription",
    "resolve_middleware",
    "use_middleware",
]

"""Guards and the per-request authentication context.

Three independent guards read the Flask session: ``web`` (restaurant owner,
``user_id``), ``employee`` (``employee_id``) and ``admin`` (``admin_id``).
``resolve_auth_context`` folds the first two into a tagged union that is
computed once per request and handed to validators explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from flask import g, has_request_context
from flask import session as flask_session
from sqlalchemy.orm import Session

from .models import Administrator, Employee, User

OWNER_SESSION_KEY = "user_id"
EMPLOYEE_SESSION_KEY = "employee_id"
ADMIN_SESSION_KEY = "admin_id"


@dataclass(frozen=True)
class OwnerContext:
    user: User


@dataclass(frozen=True)
class EmployeeContext:
    employee: Employee


@dataclass(frozen=True)
class AnonymousContext:
    pass


AuthContext = Union[OwnerContext, EmployeeContext, AnonymousContext]


def _session_id(key: str, sess=flask_session) -> int | None:
    raw = sess.get(key)
    try:
        return int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


def current_owner(db: Session, sess=flask_session) -> User | None:
    uid = _session_id(OWNER_SESSION_KEY, sess)
    return db.get(User, uid) if uid is not None else None


def current_employee(db: Session, sess=flask_session) -> Employee | None:
    eid = _session_id(EMPLOYEE_SESSION_KEY, sess)
    return db.get(Employee, eid) if eid is not None else None


def current_admin(db: Session, sess=flask_session) -> Administrator | None:
    aid = _session_id(ADMIN_SESSION_KEY, sess)
    return db.get(Administrator, aid) if aid is not None else None


def resolve_auth_context(db: Session, sess=flask_session) -> AuthContext:
    """Owner wins when present; employee only when no owner is logged in."""
    if has_request_context():
        cached = getattr(g, "auth_context", None)
        if cached is not None:
            return cached
    owner = current_owner(db, sess)
    ctx: AuthContext
    if owner is not None:
        ctx = OwnerContext(owner)
    else:
        employee = current_employee(db, sess)
        ctx = EmployeeContext(employee) if employee is not None else AnonymousContext()
    if has_request_context():
        g.auth_context = ctx
    return ctx


def login_owner(user: User, sess=flask_session) -> None:
    sess[OWNER_SESSION_KEY] = int(user.id)
    if has_request_context():
        g.pop("auth_context", None)


def login_employee(employee: Employee, sess=flask_session) -> None:
    sess[EMPLOYEE_SESSION_KEY] = int(employee.employee_id)
    if has_request_context():
        g.pop("auth_context", None)


__all__ = [
    "AuthContext",
    "OwnerContext",
    "EmployeeContext",
    "AnonymousContext",
    "current_owner",
    "current_employee",
    "current_admin",
    "resolve_auth_context",
    "login_owner",
    "login_employee",
    "OWNER_SESSION_KEY",
    "EMPLOYEE_SESSION_KEY",
    "ADMIN_SESSION_KEY",
]

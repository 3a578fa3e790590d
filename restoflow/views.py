"""Account endpoints (register, login, profile) and the app-shell pages."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from flask import Blueprint, current_app, jsonify, redirect, request, session, url_for
from sqlalchemy import select
from werkzeug.security import check_password_hash, generate_password_hash

from .audit_events import record_audit_event
from .auth_context import (
    AnonymousContext,
    OwnerContext,
    current_employee,
    current_owner,
    login_employee,
    login_owner,
    resolve_auth_context,
)
from .db import get_session
from .errors import AuthzError, SessionError
from .form_requests import profile_update_rules, registration_rules
from .job_queue import dispatch
from .jobs import SendVerificationEmail
from .middleware import use_middleware
from .models import Employee, RestaurantData, User
from .realtime_client import RealtimeSettings, bootstrap_realtime
from .rendering import render_app_shell
from .roles import Role
from .security import csrf_token
from .validation import PasswordPolicy, validate_or_raise

logger = logging.getLogger(__name__)

bp = Blueprint("views", __name__)

# Role.redirect_route() names -> Flask endpoints
ROUTE_ENDPOINTS = {
    "dashboard": "views.dashboard",
    "menu-planning.mobile-view": "views.menu_planning_mobile",
}


def _payload() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def _landing(role: Role | None, status: int = 200):
    target = url_for(ROUTE_ENDPOINTS[(role or Role.RESTAURANT_OWNER).redirect_route()])
    if request.is_json:
        resp = jsonify({"ok": True, "redirect": target})
        resp.status_code = status
        return resp
    return redirect(target)


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


@bp.post("/register")
def register():
    data = _payload()
    if isinstance(data.get("email"), str):
        data["email"] = data["email"].strip()
    db = get_session()
    policy = PasswordPolicy(min_length=int(current_app.config.get("PASSWORD_MIN_LENGTH", 8)))
    validate_or_raise(data, registration_rules(db, policy))
    user = User(
        name=data["name"],
        age=int(data["age"]),
        gender=data["gender"],
        address=data["address"],
        email=data["email"],
        phonenumber=data["phonenumber"],
        password_hash=generate_password_hash(data["password"]),
        role_id=int(Role.RESTAURANT_OWNER),
    )
    user.restaurant = RestaurantData(
        restaurant_name=data["restaurant_name"],
        address=data["restaurant_address"],
        contact_number=data["contact_number"],
    )
    db.add(user)
    db.commit()
    login_owner(user)
    record_audit_event("owner_registered", actor_user_id=user.id)
    dispatch(SendVerificationEmail(user.id))
    return _landing(user.role, status=201)


@bp.patch("/settings/profile")
def update_profile():
    data = _payload()
    db = get_session()
    ctx = resolve_auth_context(db)
    # Runs even for anonymous callers: uniqueness is then checked with no exclusion
    validated = validate_or_raise(data, profile_update_rules(db, ctx))
    if isinstance(ctx, AnonymousContext):
        raise SessionError("authentication required")
    account: User | Employee = ctx.user if isinstance(ctx, OwnerContext) else ctx.employee
    email_changed = account.email != validated["email"]
    account.first_name = validated["first_name"]
    account.middle_name = validated.get("middle_name") or None
    account.last_name = validated["last_name"]
    account.date_of_birth = _parse_date(validated["date_of_birth"])
    account.gender = validated["gender"]
    account.email = validated["email"]
    if isinstance(account, User) and email_changed:
        account.email_verified_at = None
    db.commit()
    actor = account.id if isinstance(ctx, OwnerContext) else None
    record_audit_event("profile_updated", actor_user_id=actor, guard="web" if actor else "employee")
    return jsonify({"ok": True})


@bp.post("/login")
def login():
    data = _payload()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    db = get_session()
    user = db.execute(select(User).where(User.email == email)).scalars().first()
    if user is None or not check_password_hash(user.password_hash, password):
        logger.info("owner login failed email=%s", email)
        raise SessionError("invalid credentials")
    session.clear()
    login_owner(user)
    return _landing(user.role)


@bp.post("/employee/login")
def employee_login():
    data = _payload()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    db = get_session()
    employee = db.execute(select(Employee).where(Employee.email == email)).scalars().first()
    if employee is None or not check_password_hash(employee.password_hash, password):
        logger.info("employee login failed email=%s", email)
        raise SessionError("invalid credentials")
    if employee.status != "active":
        raise SessionError("account inactive")
    session.clear()
    login_employee(employee)
    return _landing(employee.role)


@bp.post("/logout")
def logout():
    session.clear()
    if request.is_json:
        return jsonify({"ok": True})
    return redirect(url_for("views.home"))


def _realtime_options() -> dict[str, Any] | None:
    cfg = current_app.extensions["restoflow.config"]
    settings = RealtimeSettings.from_config(cfg, app_url=request.host_url.rstrip("/"))
    client = bootstrap_realtime(settings, csrf_token())
    return client.browser_options() if client is not None else None


@bp.get("/")
def home():
    return render_app_shell("welcome")


@bp.get("/dashboard")
@use_middleware("check.subscription")
def dashboard():
    db = get_session()
    owner = current_owner(db)
    if owner is None:
        employee = current_employee(db)
        if employee is None:
            raise SessionError("authentication required")
        role = employee.role
        if role is None:
            raise AuthzError("unknown role")
        if not role.is_dashboard_role():
            return _landing(role)
    return render_app_shell("dashboard", realtime=_realtime_options())


@bp.get("/menu-planning/mobile")
@use_middleware("employee.auth", "role:waiter")
def menu_planning_mobile():
    return render_app_shell("menu-planning/mobile", realtime=_realtime_options())


__all__ = ["bp", "ROUTE_ENDPOINTS"]

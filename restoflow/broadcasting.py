"""Server side of the realtime channel authorisation handshake.

``POST /broadcasting-custom-auth`` picks the first authenticated guard
(employee, then owner), checks the requested channel against the rules below
and answers with the Pusher-protocol signature the broker expects::

    {"auth": "<app key>:<hex hmac-sha256(secret, '<socket_id>:<channel_name>')>"}

Channel rules (``private-`` prefix optional), ``{id}`` being the owner's user id:
 - ``restaurant.{id}.kitchen`` / ``.cashier`` / ``.waiter`` / ``.inventory``:
   the owner, or any employee of that restaurant.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import re

from flask import Blueprint, current_app, jsonify, request

from .auth_context import current_employee, current_owner
from .db import get_session
from .errors import AuthzError, DomainError
from .http_errors import problem
from .models import Employee, User

logger = logging.getLogger(__name__)

bp = Blueprint("broadcasting", __name__)

_CHANNEL_RE = re.compile(r"^(?:private-)?restaurant\.(\d+)\.(kitchen|cashier|waiter|inventory)$")


def can_join(identity: User | Employee, channel_name: str) -> bool:
    m = _CHANNEL_RE.match(channel_name or "")
    if not m:
        return False
    restaurant_id = int(m.group(1))
    if isinstance(identity, User):
        return identity.id == restaurant_id
    return identity.user_id == restaurant_id


def sign_channel(secret: str, socket_id: str, channel_name: str) -> str:
    return hmac.new(secret.encode(), f"{socket_id}:{channel_name}".encode(), hashlib.sha256).hexdigest()


@bp.post("/broadcasting-custom-auth")
def broadcasting_auth():
    db = get_session()
    employee = current_employee(db)
    identity: User | Employee | None = employee if employee is not None else current_owner(db)
    if identity is None:
        logger.warning("Broadcasting auth failed - no authenticated user")
        resp = jsonify({"message": "Unauthenticated"})
        resp.status_code = 403
        return resp
    body = request.get_json(silent=True)
    data = body if isinstance(body, dict) else request.form
    socket_id = str(data.get("socket_id") or "")
    channel_name = str(data.get("channel_name") or "")
    if not socket_id or not channel_name:
        raise DomainError(400, "bad_request", "socket_id and channel_name are required")
    guard = "employee" if employee is not None else "web"
    logger.info(
        "Broadcasting auth request guard=%s id=%s channel=%s",
        guard,
        getattr(identity, "employee_id", None) or identity.id,
        channel_name,
    )
    if not can_join(identity, channel_name):
        raise AuthzError("channel access denied")
    key = current_app.config.get("REVERB_APP_KEY")
    secret = current_app.config.get("REVERB_APP_SECRET")
    if not key or not secret:
        logger.error("Broadcasting auth requested but broker credentials are not configured")
        return problem(503, "https://restoflow.app/errors/unavailable", "Service Unavailable", "broadcasting_disabled")
    return jsonify({"auth": f"{key}:{sign_channel(secret, socket_id, channel_name)}"})


__all__ = ["bp", "can_join", "sign_channel"]

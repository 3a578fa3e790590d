"""Security middleware and helpers.

Features:
 - CORS allow-list.
 - CSRF (double-submit cookie OR session synchronizer token OR same-origin).
 - Security headers (HSTS, CSP, Referrer-Policy, Permissions-Policy).

CSRF Policy:
 - SAFE methods always allowed.
 - Otherwise require a token (``X-CSRF-TOKEN`` header or ``csrf_token`` form
   field) matching the CSRF cookie or the session token, or a same-origin
   ``Origin`` header.
 - Under TESTING the check is skipped unless ``STRICT_CSRF_IN_TESTS`` is set.
 - Returns RFC7807 problem+json on denial with reason in ``detail``.
"""

from __future__ import annotations

import logging
import os
import secrets

from flask import Flask, g, request, session

from .http_errors import csrf_invalid
from .metrics import increment

logger = logging.getLogger(__name__)

SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}
CSRF_SESSION_KEY = "CSRF_TOKEN"


def _is_testing(app: Flask) -> bool:
    return bool(app.config.get("TESTING") or os.getenv("PYTEST_CURRENT_TEST"))


def _validate_cors(app: Flask, resp):
    allowed: list[str] = app.config.get("CORS_ALLOWED_ORIGINS", []) or []
    if not allowed:
        return resp  # CORS disabled
    origin = request.headers.get("Origin")
    if not origin:
        return resp
    if origin in allowed:
        resp.headers.setdefault("Vary", "Origin")
        resp.headers["Access-Control-Allow-Origin"] = origin
        resp.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,PATCH,DELETE,OPTIONS"
        req_hdrs = request.headers.get("Access-Control-Request-Headers")
        if req_hdrs:
            resp.headers["Access-Control-Allow-Headers"] = req_hdrs
        resp.headers["Access-Control-Allow-Credentials"] = "true"
        resp.headers["Access-Control-Max-Age"] = "600"
    return resp


def csrf_token() -> str:
    """Token for the current request, minting one (cookie + session) when absent.

    Rendered into the app shell's ``csrf-token`` meta tag, from where the
    realtime authoriser echoes it back as ``X-CSRF-TOKEN``.
    """
    existing = getattr(g, "_csrf_token", None)
    if existing:
        return existing
    cookie_name = "csrf_token"
    token = request.cookies.get(cookie_name) or session.get(CSRF_SESSION_KEY)
    if not token:
        token = secrets.token_hex(16)
        g._new_csrf_token = token
    session[CSRF_SESSION_KEY] = token
    g._csrf_token = token
    return token


def _set_csrf_cookie(app: Flask, resp, token: str) -> None:
    # Readable by scripts so XHR callers can double-submit it. Secure only where
    # HTTPS is forced (production), never under DEBUG/TESTING.
    secure = app.config.get("APP_ENV") == "production" and not (app.config.get("DEBUG") or app.config.get("TESTING"))
    resp.set_cookie("csrf_token", token, secure=secure, httponly=False, samesite="Lax", path="/")


def _csrf_check(app: Flask):
    method = request.method.upper()
    if method in SAFE_METHODS or not app.config.get("ENABLE_CSRF", True):
        return None
    if _is_testing(app) and not app.config.get("STRICT_CSRF_IN_TESTS"):
        return None
    header_name = app.config.get("CSRF_HEADER_NAME", "X-CSRF-TOKEN")
    sent_cookie = request.cookies.get("csrf_token")
    sent_header = request.headers.get(header_name)
    sent_field = request.form.get("csrf_token")
    session_tok = session.get(CSRF_SESSION_KEY)
    origin = request.headers.get("Origin")
    host = (request.host_url or "").rstrip("/")
    same_origin = bool(origin and host and origin.rstrip("/") == host)
    candidate = sent_header or sent_field
    if candidate:
        if sent_cookie and secrets.compare_digest(sent_cookie, candidate):
            return None
        if session_tok and secrets.compare_digest(str(session_tok), str(candidate)):
            return None
        reason = "mismatch"
    elif same_origin:
        return None
    else:
        reason = "origin" if origin else "missing"
    increment("security.csrf_blocked", {"reason": reason})
    logger.info("csrf blocked path=%s reason=%s", request.path, reason)
    return csrf_invalid()


def init_security(app: Flask):
    @app.before_request
    def _security_before_request():
        return _csrf_check(app)

    @app.after_request
    def _security_after_request(resp):
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("X-Frame-Options", "DENY")
        resp.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        resp.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
        if app.config.get("APP_ENV") == "production" and not app.config.get("TESTING"):
            resp.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains")
        # Inline scripts in the app shell (appearance + preload promotion) need 'unsafe-inline'
        resp.headers.setdefault(
            "Content-Security-Policy",
            "default-src 'self'; script-src 'self' 'unsafe-inline'; style-src 'self' 'unsafe-inline'; "
            "connect-src 'self' ws: wss:; object-src 'none'; base-uri 'self'; frame-ancestors 'none'",
        )
        if hasattr(g, "_new_csrf_token"):
            _set_csrf_cookie(app, resp, g._new_csrf_token)
        return _validate_cors(app, resp)

    return app


__all__ = ["init_security", "csrf_token", "SAFE_METHODS", "CSRF_SESSION_KEY"]

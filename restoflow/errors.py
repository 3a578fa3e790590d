"""Domain error system + RFC7807 handler registration."""
from __future__ import annotations

import traceback
import uuid
from collections.abc import Callable
from typing import Any

from flask import request
from werkzeug.wrappers.response import Response

from .audit_events import record_audit_event
from .http_errors import (
    bad_request,
    forbidden,
    internal_server_error,
    not_found,
    problem,
    unauthorized,
    unprocessable_entity,
)


class DomainError(Exception):
    def __init__(self, status: int, code: str, detail: str | None = None, **extra: Any):
        self.status = status
        self.code = code
        self.detail = detail or code
        self.extra = extra
        super().__init__(self.detail)


class ValidationError(DomainError):
    """Carries every field violation at once: ``errors`` maps field -> messages."""

    def __init__(self, errors: dict[str, list[str]], detail: str = "validation_error", **extra: Any):
        super().__init__(422, "validation_error", detail, **extra)
        self.errors = errors


class SessionError(Exception):
    """Signals a 401 unauthorized due to missing/invalid session."""

    def __init__(self, message: str = "authentication required"):
        super().__init__(message)


class AuthzError(Exception):
    """Signals an authorization (403) failure."""

    required: str | None

    def __init__(self, message: str = "forbidden", required: str | None = None):
        super().__init__(message)
        self.required = required


_STATUS_HELPERS: dict[int, Callable[..., Response]] = {
    400: bad_request,
    401: unauthorized,
    403: forbidden,
    404: not_found,
}


def _emit_problem(resp_payload: dict[str, Any] | None) -> None:
    payload = resp_payload or {}
    record_audit_event(
        "problem_response",
        type=payload.get("type"),
        status=payload.get("status"),
        detail=payload.get("detail"),
        path=request.path,
    )


def register_error_handlers(app: Any) -> None:
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(SessionError)
    def _h_session(err: SessionError) -> Response:
        resp = unauthorized(detail=str(err) or "authentication_required")
        _emit_problem(resp.get_json())
        return resp

    @app.errorhandler(AuthzError)
    def _h_authz(err: AuthzError) -> Response:
        extra = {"required_role": err.required} if err.required else {}
        resp = forbidden(detail=str(err) or "forbidden", **extra)
        _emit_problem(resp.get_json())
        return resp

    @app.errorhandler(ValidationError)
    def _h_validation(err: ValidationError) -> Response:
        resp = unprocessable_entity(err.errors, detail=err.detail, **err.extra)
        _emit_problem(resp.get_json())
        return resp

    @app.errorhandler(DomainError)
    def _h_domain(err: DomainError) -> Response:
        helper = _STATUS_HELPERS.get(err.status, bad_request)
        resp = helper(detail=err.detail, **err.extra)
        _emit_problem(resp.get_json())
        return resp

    @app.errorhandler(HTTPException)
    def _h_http(ex: HTTPException) -> Response:
        status = ex.code or 500
        helper = _STATUS_HELPERS.get(status)
        if helper:
            resp = helper(detail=ex.description)
        elif status >= 500:
            resp = internal_server_error()
        else:
            resp = problem(status, f"https://restoflow.app/errors/http_{status}", ex.name, str(ex.description))
        _emit_problem(resp.get_json())
        return resp

    @app.errorhandler(Exception)
    def _h_exception(ex: Exception) -> Response:
        incident_id = str(uuid.uuid4())
        app.logger.error(
            "Unhandled exception incident_id=%s path=%s\n%s", incident_id, request.path, traceback.format_exc()
        )
        resp = internal_server_error(incident_id=incident_id)
        record_audit_event("incident", incident_id=incident_id, path=request.path)
        _emit_problem(resp.get_json())
        return resp


__all__ = ["DomainError", "ValidationError", "SessionError", "AuthzError", "register_error_handlers"]

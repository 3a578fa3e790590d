"""Shared RFC7807 problem+json helpers for consistent error responses."""
from __future__ import annotations

import uuid

from flask import g, jsonify
from werkzeug.wrappers.response import Response


def problem(status: int, type_: str, title: str, detail: str, **extra: object) -> Response:
    payload = {
        "type": type_,
        "title": title,
        "status": status,
        "detail": detail,
    }
    rid = getattr(g, "request_id", None)
    if rid:
        payload["request_id"] = rid
    for k, v in extra.items():
        if v is not None:
            payload[k] = v
    resp = jsonify(payload)
    resp.status_code = status
    resp.mimetype = "application/problem+json"
    if rid and "X-Request-Id" not in resp.headers:
        resp.headers["X-Request-Id"] = rid
    return resp


_BASE_TYPE_PREFIX = "https://restoflow.app/errors/"


def _ptype(slug: str) -> str:
    return _BASE_TYPE_PREFIX + slug


def _std(status: int, slug: str, title: str, detail: str | None = None, **extra: object) -> Response:
    d = detail if detail is not None else slug
    return problem(status, _ptype(slug), title, d, **extra)


def bad_request(detail: str = "bad_request", **extra: object) -> Response:
    return _std(400, "bad_request", "Bad Request", detail, **extra)


def unauthorized(detail: str = "unauthorized", **extra: object) -> Response:
    return _std(401, "unauthorized", "Unauthorized", detail, **extra)


def forbidden(detail: str = "forbidden", **extra: object) -> Response:
    return _std(403, "forbidden", "Forbidden", detail, **extra)


def csrf_invalid() -> Response:
    return forbidden("invalid_csrf")


def not_found(detail: str = "not_found", **extra: object) -> Response:
    return _std(404, "not_found", "Not Found", detail, **extra)


def unprocessable_entity(errors: object, detail: str = "validation_error", **extra: object) -> Response:
    return _std(422, "validation_error", "Unprocessable Entity", detail, errors=errors, **extra)


def internal_server_error(detail: str = "internal_error", incident_id: str | None = None, **extra: object) -> Response:
    if not incident_id:
        incident_id = str(uuid.uuid4())
    return _std(500, "internal_error", "Internal Server Error", detail, incident_id=incident_id, **extra)


__all__ = [
    "problem",
    "bad_request",
    "unauthorized",
    "forbidden",
    "csrf_invalid",
    "not_found",
    "unprocessable_entity",
    "internal_server_error",
]

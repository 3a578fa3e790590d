"""Flask application factory.

Provides:
 - App factory with configuration override (``Config`` fields or upper-case Flask keys)
 - DB engine initialization
 - Boot configuration (HTTPS forcing, middleware aliases, scheduled tasks)
 - Security middleware, RFC7807 error handlers, request-id + structured request log
 - Queue backend + domain signal wiring
 - Blueprint registration (accounts/app shell, broadcasting auth, supplier links)
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from dotenv import load_dotenv
from flask import Flask, g, request, session
from werkzeug.wrappers.response import Response

from .bootstrap import apply_boot_config, build_boot_config
from .broadcasting import bp as broadcasting_bp
from .config import Config
from .db import init_engine, remove_session
from .errors import register_error_handlers
from .events import connect_default_listeners
from .job_queue import configure_queue
from .logging_setup import install_support_log_handler, request_logger
from .metrics import set_metrics
from .metrics_logging import LoggingMetrics
from .security import csrf_token, init_security
from .supplier import bp as supplier_bp
from .views import bp as views_bp

logger = logging.getLogger(__name__)

# Test-mode identity headers -> session keys
_TEST_IDENTITY_HEADERS = {
    "X-User-Id": "user_id",
    "X-Employee-Id": "employee_id",
    "X-Admin-Id": "admin_id",
}


def create_app(config_override: dict[str, Any] | None = None) -> Flask:
    load_dotenv()
    app = Flask(__name__, static_url_path="/static")

    # --- Configuration ---
    cfg = Config.from_env()
    if config_override:
        known = {k: v for k, v in config_override.items() if hasattr(cfg, k)}
        if known:
            cfg.override(known)
    app.config.update(cfg.to_flask_dict())
    if config_override:
        for k, v in config_override.items():  # also allow direct Flask config keys
            if k.isupper():
                app.config[k] = v
    app.extensions["restoflow.config"] = cfg

    # --- DB setup ---
    init_engine(cfg.database_url)

    @app.teardown_appcontext
    def _remove_db_session(exc: BaseException | None) -> None:
        remove_session()

    # --- Boot configuration (HTTPS, middleware aliases, schedule) ---
    apply_boot_config(app, build_boot_config(cfg))

    # --- Security middleware (CORS, CSRF, headers) ---
    init_security(app)

    # --- Metrics backend wiring ---
    if (app.config.get("METRICS_BACKEND") or "noop") == "log":
        set_metrics(LoggingMetrics())
        app.logger.info("Metrics backend initialized: log")

    # --- Queue + signals ---
    configure_queue(cfg.queue_backend, cfg.queue_max_attempts, cfg.redis_url)
    connect_default_listeners()

    app.jinja_env.globals["csrf_token"] = csrf_token

    # --- Logging / timing middleware ---
    log = request_logger()

    @app.before_request
    def _before_req() -> Response | None:
        g._t0 = time.perf_counter()
        g.request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        if app.config.get("TESTING"):
            for header, key in _TEST_IDENTITY_HEADERS.items():
                value = request.headers.get(header)
                if value and value.isdigit():
                    session[key] = int(value)
        return None

    @app.after_request
    def _after_req(resp: Response) -> Response:
        dur_ms = int((time.perf_counter() - getattr(g, "_t0", time.perf_counter())) * 1000)
        rid = getattr(g, "request_id", None) or str(uuid.uuid4())
        resp.headers["X-Request-Id"] = rid
        resp.headers["X-Request-Duration-ms"] = str(dur_ms)
        if "Cache-Control" not in resp.headers:
            resp.headers["Cache-Control"] = "no-store"
        log.info(
            {
                "request_id": rid,
                "user_id": session.get("user_id"),
                "employee_id": session.get("employee_id"),
                "method": request.method,
                "path": request.path,
                "status": resp.status_code,
                "duration_ms": dur_ms,
            }
        )
        return resp

    # --- Register blueprints ---
    app.register_blueprint(views_bp)
    app.register_blueprint(broadcasting_bp)
    app.register_blueprint(supplier_bp)

    # --- Error handling ---
    register_error_handlers(app)
    install_support_log_handler()

    return app


__all__ = ["create_app"]

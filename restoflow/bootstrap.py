"""Boot-time configuration: HTTPS forcing, middleware aliases, scheduled tasks.

``build_boot_config`` is computed once from ``Config`` and frozen; the app
factory applies it and stores it under ``app.extensions["restoflow.boot"]``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from flask import Flask

from .config import Config
from .middleware import MIDDLEWARE_ALIASES
from .scheduling import Schedule, ScheduledTask

logger = logging.getLogger(__name__)

SCHEDULED_TASKS: tuple[ScheduledTask, ...] = (
    ScheduledTask(
        command="menu-plans:archive-expired",
        cron="1 0 * * *",  # daily at 00:01
        name="archive-expired-menu-plans",
        description="Archive menu plans that have passed their end date",
    ),
    ScheduledTask(
        command="reservations:update-expired",
        cron="*/15 * * * *",
        name="update-expired-reservations",
        description="Update table status to available for expired reservations",
    ),
)


@dataclass(frozen=True)
class BootConfig:
    force_https: bool
    middleware_aliases: Mapping[str, Callable[..., Any]]
    scheduled_tasks: tuple[ScheduledTask, ...]


def build_boot_config(cfg: Config) -> BootConfig:
    return BootConfig(
        force_https=cfg.is_production,
        middleware_aliases=MIDDLEWARE_ALIASES,
        scheduled_tasks=SCHEDULED_TASKS,
    )


class ForceHttpsMiddleware:
    """WSGI wrapper: every request (and so every generated URL) uses ``https``."""

    def __init__(self, wsgi_app: Callable[..., Any]):
        self.wsgi_app = wsgi_app

    def __call__(self, environ: dict[str, Any], start_response: Callable[..., Any]):
        environ["wsgi.url_scheme"] = "https"
        return self.wsgi_app(environ, start_response)


def apply_boot_config(app: Flask, boot: BootConfig) -> None:
    if boot.force_https:
        app.wsgi_app = ForceHttpsMiddleware(app.wsgi_app)  # type: ignore[method-assign]
        app.config["PREFERRED_URL_SCHEME"] = "https"
        logger.info("HTTPS forced for all generated URLs")
    app.extensions["restoflow.boot"] = boot


def get_boot_config(app: Flask) -> BootConfig:
    return app.extensions["restoflow.boot"]


def build_schedule(boot: BootConfig, handlers: Mapping[str, Callable[[], object]] | None = None) -> Schedule:
    if handlers is None:
        from .maintenance import TASK_HANDLERS

        handlers = TASK_HANDLERS
    return Schedule(boot.scheduled_tasks, handlers)


__all__ = [
    "SCHEDULED_TASKS",
    "BootConfig",
    "ForceHttpsMiddleware",
    "build_boot_config",
    "apply_boot_config",
    "get_boot_config",
    "build_schedule",
]

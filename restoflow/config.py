from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass
class Config:
    secret_key: str = "change-me"
    database_url: str = "sqlite:///dev.db"
    app_env: str = "local"  # local / testing / production
    app_name: str = "Restoflow"
    cors_allowed_origins: list[str] = field(default_factory=list)
    queue_backend: str = "sync"  # sync / memory / redis
    queue_max_attempts: int = 3
    redis_url: str | None = None
    password_min_length: int = 8
    signed_link_max_age_seconds: int = 7 * 24 * 3600
    reverb_app_key: str | None = None
    reverb_app_secret: str | None = None
    reverb_host: str = "localhost"
    reverb_port: int = 8080
    reverb_scheme: str = "http"
    metrics_backend: str = "noop"

    @classmethod
    def from_env(cls) -> Config:
        cors = os.getenv("CORS_ALLOW_ORIGINS", "")
        return cls(
            secret_key=os.getenv("SECRET_KEY", "change-me"),
            database_url=os.getenv("DATABASE_URL", "sqlite:///dev.db"),
            app_env=os.getenv("APP_ENV", "local").strip().lower() or "local",
            app_name=os.getenv("APP_NAME", "Restoflow"),
            cors_allowed_origins=[o for o in [c.strip() for c in cors.split(",")] if o],
            queue_backend=os.getenv("QUEUE_BACKEND", "sync").strip().lower() or "sync",
            queue_max_attempts=int(os.getenv("QUEUE_MAX_ATTEMPTS", "3")),
            redis_url=os.getenv("REDIS_URL") or None,
            password_min_length=int(os.getenv("PASSWORD_MIN_LENGTH", "8")),
            signed_link_max_age_seconds=int(os.getenv("SIGNED_LINK_MAX_AGE_SECONDS", str(7 * 24 * 3600))),
            # Empty key disables the realtime client entirely
            reverb_app_key=os.getenv("REVERB_APP_KEY") or None,
            reverb_app_secret=os.getenv("REVERB_APP_SECRET") or None,
            reverb_host=os.getenv("REVERB_HOST", "localhost"),
            reverb_port=int(os.getenv("REVERB_PORT", "8080")),
            reverb_scheme=os.getenv("REVERB_SCHEME", "http").strip().lower() or "http",
            metrics_backend=os.getenv("METRICS_BACKEND", "noop"),
        )

    def override(self, d: dict):
        for k, v in d.items():
            if hasattr(self, k):
                setattr(self, k, v)

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    def to_flask_dict(self):
        return {
            "SECRET_KEY": self.secret_key,
            "SQLALCHEMY_DATABASE_URI": self.database_url,
            "APP_ENV": self.app_env,
            "APP_NAME": self.app_name,
            "CORS_ALLOWED_ORIGINS": self.cors_allowed_origins,
            "QUEUE_BACKEND": self.queue_backend,
            "QUEUE_MAX_ATTEMPTS": self.queue_max_attempts,
            "REDIS_URL": self.redis_url,
            "PASSWORD_MIN_LENGTH": self.password_min_length,
            "SIGNED_LINK_MAX_AGE_SECONDS": self.signed_link_max_age_seconds,
            "REVERB_APP_KEY": self.reverb_app_key,
            "REVERB_APP_SECRET": self.reverb_app_secret,
            "REVERB_HOST": self.reverb_host,
            "REVERB_PORT": self.reverb_port,
            "REVERB_SCHEME": self.reverb_scheme,
            "METRICS_BACKEND": self.metrics_backend,
            "STRICT_CSRF_IN_TESTS": bool(int(os.getenv("STRICT_CSRF_IN_TESTS", "0"))),
            # Harden session cookie defaults (still allow override in tests)
            "SESSION_COOKIE_HTTPONLY": True,
            "SESSION_COOKIE_SAMESITE": "Lax",
        }

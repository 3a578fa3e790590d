"""Restaurant management backend: accounts, staff roles, menu plans, reservations, purchasing."""

from .app_factory import create_app

__all__ = ["create_app"]

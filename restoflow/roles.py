"""Staff roles and their dashboard routing.

Role ids are persisted on ``users.role_id`` and ``employees.role_id``; the set
is closed, so every helper below is an exhaustive match over the members.
"""

from __future__ import annotations

from enum import IntEnum


class Role(IntEnum):
    MANAGER = 1
    SUPERVISOR = 2
    WAITER = 3
    RESTAURANT_OWNER = 4

    def label(self) -> str:
        match self:
            case Role.MANAGER:
                return "Manager"
            case Role.SUPERVISOR:
                return "Supervisor"
            case Role.WAITER:
                return "Waiter"
            case Role.RESTAURANT_OWNER:
                return "Restaurant Owner"

    def redirect_route(self) -> str:
        """Endpoint name a freshly logged-in member of this role lands on."""
        match self:
            case Role.WAITER:
                return "menu-planning.mobile-view"
            case Role.MANAGER | Role.SUPERVISOR | Role.RESTAURANT_OWNER:
                return "dashboard"

    def is_dashboard_role(self) -> bool:
        return self in (Role.MANAGER, Role.SUPERVISOR, Role.RESTAURANT_OWNER)

    def is_waiter(self) -> bool:
        return self is Role.WAITER

    @classmethod
    def from_id(cls, role_id: object) -> Role | None:
        # bool is an int subclass; True must not resolve to MANAGER
        if not isinstance(role_id, int) or isinstance(role_id, bool):
            return None
        try:
            return cls(role_id)
        except ValueError:
            return None


__all__ = ["Role"]

"""Server-rendered pages: the SPA shell and the supplier purchase-order response."""

from __future__ import annotations

from typing import Any

from flask import render_template, request

APPEARANCES = ("light", "dark", "system")


def appearance_hint() -> str:
    """Theme from the ``appearance`` cookie; anything unknown means ``system``."""
    value = request.cookies.get("appearance", "system")
    return value if value in APPEARANCES else "system"


def render_app_shell(page: str, realtime: dict[str, Any] | None = None) -> str:
    return render_template("app.html", appearance=appearance_hint(), page=page, realtime=realtime)


def render_purchase_order_response(*, action: str, po_number: str, message: str) -> str:
    """Render the supplier's confirmation page.

    ``action == "confirm"`` selects the success variant; any other value the
    rejection one. All three values are required.
    """
    missing = [k for k, v in (("action", action), ("po_number", po_number), ("message", message)) if v is None]
    if missing:
        raise ValueError(f"missing template values: {', '.join(missing)}")
    return render_template(
        "supplier/purchase_order_response.html",
        action=action,
        po_number=po_number,
        message=message,
    )


__all__ = ["APPEARANCES", "appearance_hint", "render_app_shell", "render_purchase_order_response"]

"""Supplier-facing purchase-order response links.

Suppliers receive an emailed, signed and time-limited link per action
(``confirm`` / ``reject``). Following it records their answer on the order
and shows the response page; no supplier login is involved.
"""

from __future__ import annotations

import logging
from datetime import datetime

from flask import Blueprint, current_app, request, url_for
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from .audit_events import record_audit_event
from .db import get_session
from .http_errors import bad_request, forbidden, not_found
from .models import PurchaseOrder
from .rendering import render_purchase_order_response

logger = logging.getLogger(__name__)

bp = Blueprint("supplier", __name__, url_prefix="/supplier")

ACTIONS = {
    # action -> (new status, message shown to the supplier)
    "confirm": ("confirmed", "You have confirmed the purchase order. Thank you."),
    "reject": ("cancelled", "You have rejected the purchase order."),
}
_SALT = "supplier-po-response"


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=_SALT)


def signed_response_url(purchase_order_id: int, action: str, *, external: bool = True) -> str:
    signature = _serializer().dumps({"po": int(purchase_order_id), "action": action})
    return url_for(
        "supplier.respond",
        purchase_order_id=purchase_order_id,
        action=action,
        signature=signature,
        _external=external,
    )


def _signature_valid(purchase_order_id: int, action: str | None) -> bool:
    token = request.args.get("signature", "")
    max_age = int(current_app.config.get("SIGNED_LINK_MAX_AGE_SECONDS", 7 * 24 * 3600))
    try:
        data = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        logger.warning("Expired signature for PO response id=%s", purchase_order_id)
        return False
    except BadSignature:
        logger.warning("Invalid signature for PO response id=%s", purchase_order_id)
        return False
    return data.get("po") == purchase_order_id and data.get("action") == action


@bp.get("/purchase-orders/<int:purchase_order_id>/respond")
def respond(purchase_order_id: int):
    action = request.args.get("action")
    if not _signature_valid(purchase_order_id, action):
        return forbidden("Invalid or expired link.")
    if action not in ACTIONS:
        logger.warning("Invalid action for PO response action=%s", action)
        return bad_request("Invalid action.")
    db = get_session()
    po = db.get(PurchaseOrder, purchase_order_id)
    if po is None:
        return not_found("purchase_order_not_found")
    status, message = ACTIONS[action]
    previous = po.status
    po.status = status
    po.supplier_response = action
    po.supplier_responded_at = datetime.now()
    db.commit()
    logger.info("PO response saved po_id=%s action=%s previous_status=%s", po.purchase_order_id, action, previous)
    record_audit_event("supplier_po_response", restaurant_id=po.restaurant_id, po_id=po.purchase_order_id, action=action)
    return render_purchase_order_response(action=action, po_number=po.po_number or str(po.purchase_order_id), message=message)


__all__ = ["bp", "ACTIONS", "signed_response_url"]

import pytest

from restoflow.rendering import render_app_shell, render_purchase_order_response


def test_confirmed_variant(app):
    with app.test_request_context():
        html = render_purchase_order_response(action="confirm", po_number="PO-7", message="Thanks!")
    assert "icon success" in html
    assert "✓" in html
    assert "Order Confirmed!" in html
    assert "Purchase Order: <strong>PO-7</strong>" in html
    assert "Thanks!" in html
    assert "Thank you for your response!" in html


@pytest.mark.parametrize("action", ["reject", "anything-else"])
def test_rejected_variant_for_any_other_action(app, action):
    with app.test_request_context():
        html = render_purchase_order_response(action=action, po_number="PO-8", message="Noted.")
    assert "icon danger" in html
    assert "✕" in html
    assert "Order Rejected" in html
    assert "Order Confirmed!" not in html


def test_values_are_escaped(app):
    with app.test_request_context():
        html = render_purchase_order_response(action="confirm", po_number="<b>1</b>", message="a & b")
    assert "&lt;b&gt;1&lt;/b&gt;" in html
    assert "a &amp; b" in html


def test_missing_value_is_an_error(app):
    with app.test_request_context(), pytest.raises(ValueError):
        render_purchase_order_response(action="confirm", po_number=None, message="x")


def test_shell_dark_appearance_from_cookie(app):
    with app.test_request_context(headers={"Cookie": "appearance=dark"}):
        html = render_app_shell("dashboard")
    assert '<html lang="en" class="dark">' in html
    assert 'const appearance = "dark";' in html


def test_shell_defaults_to_system(app):
    with app.test_request_context(headers={"Cookie": "appearance=neon"}):
        html = render_app_shell("dashboard")
    assert 'class="dark"' not in html.split("<head>")[0]
    assert 'const appearance = "system";' in html


def test_shell_carries_csrf_token_and_assets(client):
    rv = client.get("/")
    html = rv.get_data(as_text=True)
    assert rv.status_code == 200
    assert '<meta name="csrf-token" content="' in html
    assert "/static/logo.svg" in html
    assert 'rel="preload"' in html
    assert "<title>Restoflow</title>" in html
    assert 'data-page="welcome"' in html
    assert any(c.startswith("csrf_token=") for c in rv.headers.getlist("Set-Cookie"))


def test_shell_embeds_realtime_config_when_keyed(client, make_owner, make_subscription, realtime_keys):
    owner = make_owner()
    make_subscription(owner)
    html = client.get("/dashboard", headers={"X-User-Id": str(owner.id)}).get_data(as_text=True)
    assert 'id="realtime-config"' in html
    assert '"key": "app-key"' in html or '"key":"app-key"' in html


def test_shell_omits_realtime_config_without_key(client, make_owner, make_subscription):
    owner = make_owner()
    make_subscription(owner)
    html = client.get("/dashboard", headers={"X-User-Id": str(owner.id)}).get_data(as_text=True)
    assert 'id="realtime-config"' not in html

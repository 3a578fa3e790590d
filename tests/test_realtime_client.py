import asyncio
import json

import httpx

from restoflow.config import Config
from restoflow.realtime_client import AUTH_ENDPOINT, RealtimeSettings, bootstrap_realtime


def _settings(**kw):
    base = {"app_key": "app-key", "host": "ws.example.test", "port": 443, "scheme": "https", "app_url": "http://app.test"}
    base.update(kw)
    return RealtimeSettings(**base)


class _Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, *args):
        self.calls.append(args)


def _client(handler, **kw):
    http = httpx.Client(base_url="http://app.test", transport=httpx.MockTransport(handler))
    return bootstrap_realtime(_settings(**kw), "csrf-123", http=http)


def test_no_key_disables_realtime():
    assert bootstrap_realtime(_settings(app_key=None), "csrf") is None
    assert bootstrap_realtime(_settings(app_key=""), "csrf") is None


def test_settings_from_config():
    cfg = Config(reverb_app_key="k", reverb_host="h", reverb_port=6001, reverb_scheme="http")
    s = RealtimeSettings.from_config(cfg, app_url="http://x")
    assert (s.app_key, s.host, s.port, s.scheme, s.app_url) == ("k", "h", 6001, "http", "http://x")


def test_browser_options():
    client = bootstrap_realtime(_settings(), "csrf")
    opts = client.browser_options()
    assert opts["broadcaster"] == "reverb"
    assert opts["key"] == "app-key"
    assert opts["wsHost"] == "ws.example.test"
    assert opts["wsPort"] == opts["wssPort"] == 443
    assert opts["forceTLS"] is True
    assert opts["enabledTransports"] == ["ws", "wss"]
    assert opts["authEndpoint"] == AUTH_ENDPOINT
    assert bootstrap_realtime(_settings(scheme="http"), "csrf").force_tls is False


def test_successful_authorization_passes_payload():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["csrf"] = request.headers["X-CSRF-TOKEN"]
        seen["ctype"] = request.headers["Content-Type"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"auth": "app-key:abc"})

    cb = _Recorder()
    _client(handler).authorizer("private-restaurant.1.kitchen").authorize("123.456", cb)

    assert cb.calls == [(False, {"auth": "app-key:abc"})]
    assert seen["path"] == AUTH_ENDPOINT
    assert seen["csrf"] == "csrf-123"
    assert seen["ctype"] == "application/json"
    assert seen["body"] == {"socket_id": "123.456", "channel_name": "private-restaurant.1.kitchen"}


def test_error_status_reports_failure_once():
    cb = _Recorder()
    _client(lambda r: httpx.Response(500, text="boom")).authorizer("c").authorize("1.2", cb)
    assert cb.calls == [(True,)]


def test_forbidden_reports_failure():
    cb = _Recorder()
    _client(lambda r: httpx.Response(403, json={"message": "Unauthenticated"})).authorizer("c").authorize("1.2", cb)
    assert cb.calls == [(True,)]


def test_non_json_body_reports_failure():
    cb = _Recorder()
    _client(lambda r: httpx.Response(200, text="<html>")).authorizer("c").authorize("1.2", cb)
    assert cb.calls == [(True,)]


def test_json_array_body_reports_failure():
    cb = _Recorder()
    _client(lambda r: httpx.Response(200, json=["auth"])).authorizer("c").authorize("1.2", cb)
    assert cb.calls == [(True,)]


def test_network_error_reports_failure():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    cb = _Recorder()
    _client(handler).authorizer("c").authorize("1.2", cb)
    assert cb.calls == [(True,)]


def test_async_authorization():
    def handler(request):
        assert request.headers["X-CSRF-TOKEN"] == "csrf-async"
        return httpx.Response(200, json={"auth": "k:sig"})

    client = bootstrap_realtime(_settings(), "csrf-async", async_transport=httpx.MockTransport(handler))
    cb = _Recorder()
    asyncio.run(client.authorizer("private-restaurant.2.cashier").authorize_async("9.9", cb))
    assert cb.calls == [(False, {"auth": "k:sig"})]


def test_async_failure():
    client = bootstrap_realtime(
        _settings(), "csrf", async_transport=httpx.MockTransport(lambda r: httpx.Response(502))
    )
    cb = _Recorder()
    asyncio.run(client.authorizer("c").authorize_async("9.9", cb))
    assert cb.calls == [(True,)]

"""Realtime (Pusher-protocol) client bootstrap with a custom channel authoriser.

Mirrors what the browser does on page load: when a broker key is configured
an ``EchoClient`` is built for the broker's host/port/scheme, and every
private-channel subscription is authorised by POSTing ``{socket_id,
channel_name}`` to ``/broadcasting-custom-auth`` with the page's CSRF token.

Each authorisation attempt completes exactly once: ``callback(False, payload)``
on success, ``callback(True)`` on any failure (network error, timeout, non-2xx
status, body that is not a JSON object). Failures are logged, never raised,
and never retried.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from .config import Config

logger = logging.getLogger(__name__)

AUTH_ENDPOINT = "/broadcasting-custom-auth"
DEFAULT_TIMEOUT = 10.0

AuthCallback = Callable[..., None]


@dataclass(frozen=True)
class RealtimeSettings:
    app_key: str | None
    host: str = "localhost"
    port: int = 8080
    scheme: str = "http"
    app_url: str = "http://localhost:5000"
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_config(cls, cfg: Config, app_url: str = "http://localhost:5000") -> RealtimeSettings:
        return cls(
            app_key=cfg.reverb_app_key,
            host=cfg.reverb_host,
            port=cfg.reverb_port,
            scheme=cfg.reverb_scheme,
            app_url=app_url,
        )


def _parse_auth_response(resp: httpx.Response) -> dict[str, Any]:
    resp.raise_for_status()
    payload = resp.json()
    if not isinstance(payload, dict):
        raise ValueError("authorization response is not a JSON object")
    return payload


class ChannelAuthorizer:
    def __init__(self, client: EchoClient, channel_name: str):
        self.client = client
        self.channel_name = channel_name

    def _request_kwargs(self, socket_id: str) -> dict[str, Any]:
        return {
            "json": {"socket_id": socket_id, "channel_name": self.channel_name},
            "headers": {
                "Content-Type": "application/json",
                "X-CSRF-TOKEN": self.client.csrf_token,
                "Accept": "application/json",
            },
            "timeout": self.client.settings.timeout,
        }

    def _fail(self, socket_id: str, exc: Exception, callback: AuthCallback) -> None:
        logger.error("Authorization error channel=%s socket_id=%s: %s", self.channel_name, socket_id, exc)
        callback(True)

    def authorize(self, socket_id: str, callback: AuthCallback) -> None:
        try:
            resp = self.client.http.post(AUTH_ENDPOINT, **self._request_kwargs(socket_id))
            payload = _parse_auth_response(resp)
        except (httpx.HTTPError, ValueError) as exc:
            self._fail(socket_id, exc, callback)
            return
        callback(False, payload)

    async def authorize_async(self, socket_id: str, callback: AuthCallback) -> None:
        """Non-blocking variant for event-loop callers; same completion contract."""
        try:
            async with self.client.async_http() as http:
                resp = await http.post(AUTH_ENDPOINT, **self._request_kwargs(socket_id))
            payload = _parse_auth_response(resp)
        except (httpx.HTTPError, ValueError) as exc:
            self._fail(socket_id, exc, callback)
            return
        callback(False, payload)


class EchoClient:
    broadcaster = "reverb"

    def __init__(
        self,
        settings: RealtimeSettings,
        csrf_token: str,
        http: httpx.Client | None = None,
        async_transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.csrf_token = csrf_token
        self._http = http
        self._async_transport = async_transport

    @property
    def http(self) -> httpx.Client:
        if self._http is None:
            self._http = httpx.Client(base_url=self.settings.app_url, timeout=self.settings.timeout)
        return self._http

    @property
    def key(self) -> str:
        return self.settings.app_key or ""

    @property
    def ws_host(self) -> str:
        return self.settings.host

    @property
    def ws_port(self) -> int:
        return self.settings.port

    @property
    def wss_port(self) -> int:
        return self.settings.port

    @property
    def force_tls(self) -> bool:
        return self.settings.scheme == "https"

    @property
    def enabled_transports(self) -> tuple[str, ...]:
        return ("ws", "wss")

    def async_http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.app_url,
            timeout=self.settings.timeout,
            transport=self._async_transport,
        )

    def authorizer(self, channel_name: str) -> ChannelAuthorizer:
        return ChannelAuthorizer(self, channel_name)

    def close(self) -> None:
        if self._http is not None:
            self._http.close()

    def browser_options(self) -> dict[str, Any]:
        """Options as handed to the browser-side Echo constructor."""
        return {
            "broadcaster": self.broadcaster,
            "key": self.key,
            "wsHost": self.ws_host,
            "wsPort": self.ws_port,
            "wssPort": self.wss_port,
            "forceTLS": self.force_tls,
            "enabledTransports": list(self.enabled_transports),
            "authEndpoint": AUTH_ENDPOINT,
        }


def bootstrap_realtime(
    settings: RealtimeSettings,
    csrf_token: str,
    http: httpx.Client | None = None,
    async_transport: httpx.AsyncBaseTransport | None = None,
) -> EchoClient | None:
    if not settings.app_key:
        logger.info("Realtime broker key not configured; realtime features disabled")
        return None
    return EchoClient(settings, csrf_token, http=http, async_transport=async_transport)


__all__ = [
    "AUTH_ENDPOINT",
    "RealtimeSettings",
    "ChannelAuthorizer",
    "EchoClient",
    "bootstrap_realtime",
]

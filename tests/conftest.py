"""Shared test fixtures for clashkeys.

Provides an in-memory fake of the developer portal, the IP checker and the
target API, wired into :class:`httpx.Client` instances through
:class:`httpx.MockTransport`, plus isolation of config and output state.
These fixtures are automatically discovered by pytest.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import httpx
import pytest

from clashkeys.auth import DeveloperSession, IPResolver, KeyManager
from clashkeys.models import ClientConfig
from clashkeys.output import OutputManager, reset_output, set_output

EMAIL = "chief@example.com"
PASSWORD = "hunter2"
SESSION_COOKIE = "session=s3cr3t"


# ---------------------------------------------------------------------------
# Fake provider
# ---------------------------------------------------------------------------


class FakeProvider:
    """In-memory developer portal, IP checker and target API.

    Key records are stored in their wire shape (camelCase). Every request
    is appended to :attr:`requests` so tests can assert on traffic.
    """

    def __init__(self, ip: str = "1.2.3.4") -> None:
        self.ip = ip
        self.ip_body: Optional[str] = None
        self.ip_status = 200
        self.revoke_status = 200
        self.revoke_unreachable = False
        self.api_status = 200
        self.api_payload: Optional[dict[str, Any]] = None
        self.keys: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []
        self._next_id = 1

    def add_key(self, cidr_ranges: list[str], token: Optional[str] = None) -> str:
        key_id = str(self._next_id)
        self._next_id += 1
        token = token or f"token-{key_id}"
        self.keys.append(
            {
                "id": key_id,
                "developerId": "dev-1",
                "tier": "developer/silver",
                "name": f"key {key_id}",
                "description": "added by test",
                "origins": None,
                "scopes": ["clash"],
                "cidrRanges": cidr_ranges,
                "key": token,
            }
        )
        return token

    def paths(self, host: str) -> list[str]:
        return [r.url.path for r in self.requests if r.url.host == host]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host == "checkip.amazonaws.com":
            body = self.ip_body if self.ip_body is not None else f"{self.ip}\n"
            return httpx.Response(self.ip_status, text=body)
        if host == "developer.clashofclans.com":
            return self._portal(request)
        if host == "api.clashofclans.com":
            return self._api(request)
        return httpx.Response(404)

    def _portal(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/api/login":
            body = json.loads(request.content)
            if body == {"email": EMAIL, "password": PASSWORD}:
                return httpx.Response(
                    200,
                    json={"status": {"code": 0, "message": "ok"}},
                    headers={"set-cookie": f"{SESSION_COOKIE}; Path=/"},
                )
            return httpx.Response(
                403, json={"status": {"code": 403}, "reason": "invalidCredentials"}
            )

        if request.headers.get("cookie") != SESSION_COOKIE:
            return httpx.Response(403, json={"reason": "accessDenied", "message": "no session"})

        if path == "/api/apikey/list":
            return httpx.Response(200, json={"status": {"code": 0}, "keys": self.keys})
        if path == "/api/apikey/create":
            body = json.loads(request.content)
            self.add_key(body["cidrRanges"])
            record = dict(self.keys[-1], name=body["name"], description=body["description"])
            self.keys[-1] = record
            return httpx.Response(200, json={"status": {"code": 0}, "key": record})
        if path == "/api/apikey/revoke":
            if self.revoke_unreachable:
                raise httpx.ConnectError("connection reset", request=request)
            if self.revoke_status != 200:
                return httpx.Response(self.revoke_status, json={"reason": "notFound"})
            token = json.loads(request.content)["key"]
            self.keys = [k for k in self.keys if k["key"] != token]
            return httpx.Response(200, json={"status": {"code": 0}})
        return httpx.Response(404)

    def _api(self, request: httpx.Request) -> httpx.Response:
        if self.api_status != 200:
            return httpx.Response(self.api_status, json=self.api_payload or {})
        return httpx.Response(
            200,
            json={
                "method": request.method,
                "path": request.url.path,
                "params": dict(request.url.params),
                "authorization": request.headers.get("authorization"),
                "body": json.loads(request.content) if request.content else None,
            },
        )


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def http_client(provider: FakeProvider) -> httpx.Client:
    """A transport routed to the fake provider."""
    client = httpx.Client(transport=httpx.MockTransport(provider.handler))
    yield client
    client.close()


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig()


@pytest.fixture
def credentials() -> tuple[str, str]:
    """The (email, password) pair the fake portal accepts."""
    return EMAIL, PASSWORD


@pytest.fixture
def session(http_client: httpx.Client, config: ClientConfig) -> DeveloperSession:
    """A developer session that is already logged in."""
    session = DeveloperSession(http_client, config)
    session.login(EMAIL, PASSWORD)
    return session


@pytest.fixture
def manager(
    session: DeveloperSession, http_client: httpx.Client, config: ClientConfig
) -> KeyManager:
    return KeyManager(session, IPResolver(http_client, config.ip_checker_url), config)


# ---------------------------------------------------------------------------
# Config and output isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG directories at tmp_path and clear CLASHKEYS_* variables."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "CLASHKEYS_API_URL",
        "CLASHKEYS_API_VERSION",
        "CLASHKEYS_DEVELOPER_URL",
        "CLASHKEYS_IP_CHECKER_URL",
        "CLASHKEYS_TIMEOUT",
        "CLASHKEYS_VERIFY_SSL",
        "CLASHKEYS_ROTATION",
        "CLASHKEYS_EMAIL",
        "CLASHKEYS_PASSWORD",
    ]:
        monkeypatch.delenv(var, raising=False)
    return tmp_path


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Install a quiet, colourless OutputManager and reset it afterwards."""
    set_output(OutputManager(no_color=True, quiet=True))
    yield
    reset_output()

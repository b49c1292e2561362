"""Developer portal login and the session it establishes.

The portal authenticates key-management calls with a session cookie set by
``POST /login``. :class:`DeveloperSession` makes that state explicit: it is
bound to one :class:`httpx.Client`, whose cookie jar holds the session, and
every key-management request goes through :meth:`DeveloperSession.post`.

Typical usage::

    with httpx.Client() as http_client:
        session = DeveloperSession(http_client, config)
        session.login(email, password)
        response = session.post("/list")
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from clashkeys.client.response import classify_response
from clashkeys.exceptions import AuthError, NetworkError
from clashkeys.models import ClientConfig, Credentials

logger = logging.getLogger(__name__)


class DeveloperSession:
    """Cookie-backed session with the developer portal.

    Args:
        http_client: The transport that owns the session cookies. Its
            lifetime bounds the session's lifetime.
        config: Supplies ``developer_url``.
    """

    def __init__(self, http_client: httpx.Client, config: ClientConfig) -> None:
        self._client = http_client
        self._base_url = config.developer_url.rstrip("/")
        self._authenticated = False

    @property
    def is_authenticated(self) -> bool:
        """Whether :meth:`login` succeeded and :meth:`logout` was not called since."""
        return self._authenticated

    def login(self, email: str, password: str) -> None:
        """Log in and keep the session cookie in the transport.

        Args:
            email: Account email.
            password: Account password. Used for this request only.

        Raises:
            AuthError: On HTTP 403 (invalid credentials).
            NetworkError: On transport failure or any other non-2xx status.
        """
        body = Credentials(email=email, password=password).model_dump()
        try:
            response = self._client.post(f"{self._base_url}/login", json=body)
        except httpx.HTTPError as exc:
            self.logout()
            raise NetworkError(f"Login request failed: {exc}") from exc

        if response.status_code == 403:
            self.logout()
            raise AuthError("invalid credentials")
        if not response.is_success:
            self.logout()
            raise NetworkError(f"Login failed with HTTP {response.status_code}")

        self._authenticated = True
        logger.info("Logged in to the developer portal as %s", email)

    def logout(self) -> None:
        """Drop the session cookies held by the transport."""
        self._client.cookies.clear()
        self._authenticated = False

    def post(self, path: str, body: Optional[Any] = None) -> httpx.Response:
        """Send an authenticated POST to ``{developer_url}/apikey{path}``.

        The response is passed through
        :func:`~clashkeys.client.response.classify_response`, so a non-2xx
        status raises a :class:`~clashkeys.exceptions.ProviderError`.

        Raises:
            AuthError: If called before a successful :meth:`login`.
            NetworkError: On transport failure.
            ProviderError: On a non-2xx response.
        """
        if not self._authenticated:
            raise AuthError("Not logged in to the developer portal")

        url = f"{self._base_url}/apikey{path}"
        logger.debug("POST %s", url)
        try:
            if body is None:
                response = self._client.post(url)
            else:
                response = self._client.post(url, json=body)
        except httpx.HTTPError as exc:
            raise NetworkError(f"Request to {url} failed: {exc}") from exc

        return classify_response(response)

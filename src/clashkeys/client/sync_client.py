"""Synchronous API client with token rotation and response classification.

This module provides :class:`ClashClient`, the blocking client that embedding
code builds domain calls on. It wraps :class:`httpx.Client` and layers on:

- **Bearer injection** -- every request carries
  ``authorization: Bearer <token>`` with a token taken from a
  :class:`~clashkeys.auth.pool.TokenPool`.
- **Versioned URLs** -- paths are appended to ``{api_url}/{api_version}``.
- **Response classification** -- non-2xx responses raise through
  :func:`~clashkeys.client.response.classify_response`.
- **Credential bootstrap** -- :meth:`ClashClient.from_credentials` logs in
  to the developer portal and mints (or reuses) a key for the caller's IP.

No retries are attempted; every failure reaches the caller.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, Sequence

import httpx

from clashkeys.auth.pool import TokenPool
from clashkeys.client.response import classify_response
from clashkeys.exceptions import NetworkError
from clashkeys.models import ClientConfig

if TYPE_CHECKING:
    from clashkeys.auth.keys import KeyManager
    from clashkeys.auth.session import DeveloperSession

logger = logging.getLogger(__name__)


def make_http_client(config: ClientConfig) -> httpx.Client:
    """Build the transport used by clients and commands from *config*."""
    return httpx.Client(
        timeout=config.timeout,
        verify=config.verify_ssl,
        follow_redirects=True,
    )


class ClashClient:
    """Authenticated client for the target API.

    Construct it with one token or a list of tokens, or use
    :meth:`from_credentials` to obtain a token from account credentials.
    Usable as a context manager; the underlying :class:`httpx.Client` is
    closed on exit unless it was supplied by the caller.

    Args:
        tokens: A bearer token or a non-empty list of tokens.
        config: Endpoints, timeout and rotation policy. Defaults to
            :class:`~clashkeys.models.ClientConfig` defaults.
        http_client: Optional transport to use instead of a new one.

    Example::

        with ClashClient(["tok-a", "tok-b"]) as client:
            clan = client.get("/clans/%232PP").json()
    """

    def __init__(
        self,
        tokens: str | Sequence[str],
        config: Optional[ClientConfig] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._pool = TokenPool(tokens, self._config.rotation)
        self._owns_client = http_client is None
        self._client = http_client or make_http_client(self._config)
        self._base_url = (
            f"{self._config.api_url.rstrip('/')}/{self._config.api_version.strip('/')}"
        )
        self.session: Optional[DeveloperSession] = None
        self.key_manager: Optional[KeyManager] = None

    # ------------------------------------------------------------------ #
    # Construction from credentials
    # ------------------------------------------------------------------ #

    @classmethod
    def from_credentials(
        cls,
        email: str,
        password: str,
        config: Optional[ClientConfig] = None,
        http_client: Optional[httpx.Client] = None,
        reuse_existing: bool = False,
    ) -> ClashClient:
        """Log in, obtain a key for the caller's IP, and return a ready client.

        Args:
            email: Developer portal account email.
            password: Developer portal account password.
            config: Client configuration.
            http_client: Optional transport; it will hold the session cookie.
            reuse_existing: Reuse a valid key for this IP instead of failing
                with :class:`~clashkeys.exceptions.ConflictError`.

        Raises:
            AuthError: If the credentials are rejected.
            ConflictError: If a valid key exists and ``reuse_existing`` is off.
            NetworkError: On transport failure.
            ProviderError: If the portal refuses a key-management call.
        """
        from clashkeys.auth.ip import IPResolver
        from clashkeys.auth.keys import KeyManager
        from clashkeys.auth.session import DeveloperSession

        config = config or ClientConfig()
        owns_client = http_client is None
        transport = http_client or make_http_client(config)
        try:
            session = DeveloperSession(transport, config)
            session.login(email, password)
            manager = KeyManager(session, IPResolver(transport, config.ip_checker_url), config)
            if reuse_existing:
                token = manager.ensure_token()
            else:
                token = manager.create_key()
            client = cls(token, config=config, http_client=transport)
        except Exception:
            if owns_client:
                transport.close()
            raise

        client._owns_client = owns_client
        client.session = session
        client.key_manager = manager
        return client

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> ClashClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying transport if this client created it."""
        if self._owns_client:
            self._client.close()

    @property
    def tokens(self) -> TokenPool:
        """The token pool requests draw from."""
        return self._pool

    # ------------------------------------------------------------------ #
    # Request building and execution
    # ------------------------------------------------------------------ #

    def build_request(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
        method: str = "GET",
        json_body: Optional[Any] = None,
    ) -> httpx.Request:
        """Compose a request for ``{api_url}/{api_version}{path}``.

        Args:
            path: Path suffix, e.g. ``"/players/%23ABC"``.
            params: Query parameters; ``None`` values are dropped.
            method: HTTP method.
            json_body: JSON-serialisable body.

        Returns:
            An :class:`httpx.Request` carrying the next pool token.
        """
        if not path.startswith("/"):
            path = f"/{path}"
        query = {k: v for k, v in (params or {}).items() if v is not None}
        headers = {
            "authorization": f"Bearer {self._pool.get()}",
            "accept": "application/json",
        }
        kwargs: dict[str, Any] = {"params": query or None, "headers": headers}
        if json_body is not None:
            kwargs["json"] = json_body
        return self._client.build_request(method, f"{self._base_url}{path}", **kwargs)

    def get(self, path: str, params: Optional[dict[str, Any]] = None) -> httpx.Response:
        """Send a GET request and return the classified response.

        Raises:
            NetworkError: On transport failure.
            ProviderError: On a non-2xx response.
        """
        return self._send(self.build_request(path, params))

    def post(self, path: str, json_body: Optional[Any] = None) -> httpx.Response:
        """Send a POST request with a JSON body and return the classified response.

        Raises:
            NetworkError: On transport failure.
            ProviderError: On a non-2xx response.
        """
        return self._send(self.build_request(path, method="POST", json_body=json_body))

    def _send(self, request: httpx.Request) -> httpx.Response:
        logger.debug("%s %s", request.method, request.url)
        try:
            response = self._client.send(request)
        except httpx.HTTPError as exc:
            raise NetworkError(f"{request.method} {request.url} failed: {exc}") from exc
        return classify_response(response)

"""Public IP discovery.

API keys are allowlisted by IP, so before a key can be matched or minted the
client needs the address the provider will see. :class:`IPResolver` asks an
external plain-text service for it.
"""

from __future__ import annotations

import ipaddress
import logging

import httpx

from clashkeys.exceptions import NetworkError

logger = logging.getLogger(__name__)


class IPResolver:
    """Fetch the caller's public IP address from a plain-text checker service.

    Args:
        http_client: Transport used for the lookup.
        url: Service answering ``GET`` with the caller's IP as the body.
    """

    def __init__(self, http_client: httpx.Client, url: str) -> None:
        self._client = http_client
        self._url = url

    def resolve(self) -> str:
        """Return the caller's public IP as a normalised string.

        Raises:
            NetworkError: If the service is unreachable, answers with a
                non-2xx status, or returns something that is not an IP.
        """
        try:
            response = self._client.get(self._url)
        except httpx.HTTPError as exc:
            raise NetworkError(f"IP lookup via {self._url} failed: {exc}") from exc

        if not response.is_success:
            raise NetworkError(
                f"IP lookup via {self._url} returned HTTP {response.status_code}"
            )

        text = response.text.strip()
        try:
            ip = str(ipaddress.ip_address(text))
        except ValueError as exc:
            raise NetworkError(
                f"IP lookup via {self._url} returned malformed data: {text[:50]!r}"
            ) from exc

        logger.debug("Resolved public IP %s", ip)
        return ip

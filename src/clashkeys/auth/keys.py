"""API key management on the developer portal.

:class:`KeyManager` lists, creates and revokes the account's API keys. Keys
are allowlisted by CIDR range, so a key is only usable by this client when
one of its ranges contains the caller's public IP. The manager refuses to
mint a key when a usable one already exists, which keeps the account clear
of duplicate keys and under the portal's per-account key limit.

All calls require a logged-in :class:`~clashkeys.auth.session.DeveloperSession`.
"""

from __future__ import annotations

import ipaddress
import logging
import threading
from typing import Any, Iterable, Optional

import httpx
from pydantic import ValidationError

from clashkeys.auth.ip import IPResolver
from clashkeys.auth.session import DeveloperSession
from clashkeys.exceptions import (
    ConflictError,
    InvalidUsageError,
    NetworkError,
    ProviderError,
)
from clashkeys.models import ClientConfig, Key, KeyCreation, KeyDeletion, KeyList

logger = logging.getLogger(__name__)

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network
IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


def mask_token(token: str) -> str:
    """Shorten a token for log output, e.g. ``eyJ0…Q3ho``."""
    if len(token) <= 12:
        return "…"
    return f"{token[:4]}…{token[-4:]}"


def _parse_networks(ranges: Iterable[str]) -> list[IPNetwork]:
    networks: list[IPNetwork] = []
    for cidr in ranges:
        try:
            networks.append(ipaddress.ip_network(cidr.strip(), strict=False))
        except ValueError:
            logger.warning("Skipping unparseable CIDR range %r", cidr)
    return networks


def _parse_addresses(ips: Iterable[str]) -> list[IPAddress]:
    addresses: list[IPAddress] = []
    for ip in ips:
        try:
            addresses.append(ipaddress.ip_address(ip.strip()))
        except ValueError as exc:
            raise InvalidUsageError(f"Not an IP address: {ip!r}") from exc
    return addresses


def ranges_contain(ranges: Iterable[str], ips: Iterable[str]) -> bool:
    """Return True if any of *ips* lies inside any of the CIDR *ranges*.

    A bare address in *ranges* is treated as a single-host network. Addresses
    of different IP versions never match.

    Example::

        >>> ranges_contain(["1.2.3.0/24"], ["1.2.3.4"])
        True
        >>> ranges_contain(["1.2.4.0/24"], ["1.2.3.4"])
        False
    """
    addresses = _parse_addresses(ips)
    networks = _parse_networks(ranges)
    for address in addresses:
        for network in networks:
            if address.version == network.version and address in network:
                return True
    return False


class KeyManager:
    """List, create and revoke API keys for the caller's IP.

    The public IP is looked up lazily through *ip_resolver* on first use and
    cached for the lifetime of the manager.

    Args:
        session: A logged-in developer portal session.
        ip_resolver: Source of the caller's public IP.
        config: Supplies the name and description given to created keys.
    """

    def __init__(
        self,
        session: DeveloperSession,
        ip_resolver: IPResolver,
        config: Optional[ClientConfig] = None,
    ) -> None:
        self._session = session
        self._ip_resolver = ip_resolver
        self._config = config or ClientConfig()
        self._ip: Optional[str] = None
        self._ip_lock = threading.Lock()

    @property
    def ip(self) -> str:
        """The caller's public IP, resolved once and cached."""
        with self._ip_lock:
            if self._ip is None:
                self._ip = self._ip_resolver.resolve()
            return self._ip

    def fetch_keys(self) -> list[Key]:
        """Return every key registered for the account.

        Raises:
            NetworkError: On transport failure or an unreadable response body.
            ProviderError: If the portal answers with a non-2xx status.
        """
        response = self._session.post("/list")
        try:
            keys = KeyList.model_validate(response.json()).keys
        except (ValueError, ValidationError) as exc:
            raise NetworkError(f"Malformed key list response: {exc}") from exc
        logger.debug("Fetched %d key(s)", len(keys))
        return keys

    def get_valid_tokens(
        self,
        ips: Optional[list[str]] = None,
        keys: Optional[list[Key]] = None,
    ) -> list[str]:
        """Return the tokens of keys usable from any of *ips*.

        Args:
            ips: Addresses to test. Defaults to the caller's public IP.
            keys: A pre-fetched key list. Fetched from the portal when omitted.

        Returns:
            Token strings, in the portal's key order.

        Raises:
            InvalidUsageError: If an entry of *ips* is not an IP address.
        """
        ips = ips or [self.ip]
        _parse_addresses(ips)
        if keys is None:
            keys = self.fetch_keys()
        return [key.key for key in keys if ranges_contain(key.cidr_ranges, ips)]

    def create_key(
        self,
        ips: Optional[list[str]] = None,
        keys: Optional[list[Key]] = None,
    ) -> str:
        """Create a key allowlisted for *ips* and return its token.

        Args:
            ips: Addresses to allowlist. Defaults to the caller's public IP.
            keys: A pre-fetched key list used for the duplicate check.

        Raises:
            InvalidUsageError: If an entry of *ips* is not an IP address.
            ConflictError: If a valid key already covers *ips*.
            NetworkError: On transport failure or an unreadable response body.
            ProviderError: If the portal answers with a non-2xx status.
        """
        ips = ips or [self.ip]
        if self.get_valid_tokens(ips, keys):
            raise ConflictError(
                "valid tokens already exist; revoke them before creating a new key"
            )

        creation = KeyCreation(
            name=self._config.key_name,
            description=self._config.key_description,
            cidr_ranges=ips,
        )
        response = self._session.post("/create", creation.model_dump(by_alias=True))
        key = self._parse_key(response)
        logger.info("Created key %s for %s", mask_token(key.key), ", ".join(ips))
        return key.key

    def delete_key(self, key: str) -> None:
        """Revoke the key whose token is *key*.

        Raises:
            NetworkError: On transport failure.
            ProviderError: If the portal refuses the revocation.
        """
        try:
            self._session.post("/revoke", KeyDeletion(key=key).model_dump())
        except (NetworkError, ProviderError) as exc:
            logger.warning("Failed to revoke key %s: %s", mask_token(key), exc)
            raise
        logger.info("Revoked key %s", mask_token(key))

    def ensure_token(self, ips: Optional[list[str]] = None) -> str:
        """Return a usable token for *ips*, creating a key only if none exists.

        The key list is fetched once and shared by the check and the creation.
        """
        ips = ips or [self.ip]
        keys = self.fetch_keys()
        valid = self.get_valid_tokens(ips, keys)
        if valid:
            logger.debug("Reusing existing key %s", mask_token(valid[0]))
            return valid[0]
        return self.create_key(ips, keys)

    def revoke_invalid(self, keys: Optional[list[Key]] = None) -> list[str]:
        """Revoke every key not usable from the caller's current IP.

        Keys are revoked in the portal's order and the operation stops at
        the first failed revocation. Keys revoked before the failure stay
        revoked and are logged.

        Returns:
            The revoked tokens.

        Raises:
            NetworkError: On transport failure.
            ProviderError: If the portal refuses a revocation.
        """
        if keys is None:
            keys = self.fetch_keys()
        ips = [self.ip]
        revoked: list[str] = []
        for key in keys:
            if ranges_contain(key.cidr_ranges, ips):
                continue
            try:
                self.delete_key(key.key)
            except (NetworkError, ProviderError):
                if revoked:
                    logger.warning(
                        "Stopped after revoking %d key(s): %s",
                        len(revoked),
                        ", ".join(mask_token(t) for t in revoked),
                    )
                raise
            revoked.append(key.key)
        return revoked

    @staticmethod
    def _parse_key(response: httpx.Response) -> Key:
        try:
            data: Any = response.json()
            # The portal wraps the created key as {"key": {...}}.
            if isinstance(data, dict) and isinstance(data.get("key"), dict):
                data = data["key"]
            return Key.model_validate(data)
        except (ValueError, ValidationError) as exc:
            raise NetworkError(f"Malformed key creation response: {exc}") from exc

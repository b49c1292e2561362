"""Credential and API-key lifecycle for clashkeys.

This package turns account credentials into usable bearer tokens:

- :class:`IPResolver` -- discovers the caller's public IP.
- :class:`DeveloperSession` -- logs in to the developer portal and carries
  the session cookie for key-management calls.
- :class:`KeyManager` -- lists, creates and revokes keys allowlisted for
  the caller's IP, refusing to create duplicates.
- :class:`TokenPool` -- rotates outgoing requests across several tokens.

Typical usage::

    from clashkeys.auth import DeveloperSession, IPResolver, KeyManager

    session = DeveloperSession(http_client, config)
    session.login(email, password)
    manager = KeyManager(session, IPResolver(http_client, config.ip_checker_url), config)
    token = manager.ensure_token()
"""

from clashkeys.auth.ip import IPResolver
from clashkeys.auth.session import DeveloperSession
from clashkeys.auth.keys import KeyManager, mask_token, ranges_contain
from clashkeys.auth.pool import TokenPool

__all__ = [
    "DeveloperSession",
    "IPResolver",
    "KeyManager",
    "TokenPool",
    "mask_token",
    "ranges_contain",
]

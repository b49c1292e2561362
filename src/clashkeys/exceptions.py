"""Exception hierarchy for clashkeys.

All exceptions inherit from :class:`ClashKeysError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`clashkeys.exit_codes`.
The command-line entry point in :func:`clashkeys.app.main` catches
``ClashKeysError`` and exits with the matching code; library callers catch
the specific subclasses and own any retry or re-login policy.

Subclass hierarchy::

    ClashKeysError (exit 1)
    +-- InvalidUsageError     (exit 2)
    +-- ConfigError           (exit 1)
    +-- AuthError             (exit 3)
    +-- ConflictError         (exit 8)
    +-- NetworkError          (exit 6)
    +-- ProviderError         (exit 5)
        +-- BadRequestError   (400)
        +-- ForbiddenError    (403)
        +-- NotFoundError     (404, exit 4)
        +-- RateLimitError    (429, exit 9)
        +-- ServerError       (5xx)
        +-- MaintenanceError  (503)
"""

from __future__ import annotations

from typing import Any, Optional

from clashkeys.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONFLICT,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_PROVIDER_ERROR,
    EXIT_RATE_LIMITED,
)


class ClashKeysError(Exception):
    """Base exception for all clashkeys errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`clashkeys.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ClashKeysError):
    """Raised for invalid arguments, such as an empty token list."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(ClashKeysError):
    """Raised for configuration problems (invalid JSON, bad values, unresolvable credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class AuthError(ClashKeysError):
    """Raised when the developer portal rejects the credentials or no session exists."""

    exit_code = EXIT_AUTH_FAILURE


class ConflictError(ClashKeysError):
    """Raised when creating a key while valid keys already cover the requested IPs."""

    exit_code = EXIT_CONFLICT


class NetworkError(ClashKeysError):
    """Raised on transport-level failures (timeout, DNS, refused connection, malformed body)."""

    exit_code = EXIT_CONNECTION_ERROR


class ProviderError(ClashKeysError):
    """Raised when the API or developer portal answers with a non-2xx status.

    Args:
        message: Human-readable error description.
        status_code: The HTTP status code of the response.
        payload: The decoded JSON error body, when the provider sent one.
    """

    exit_code = EXIT_PROVIDER_ERROR

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        payload: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}

    @property
    def reason(self) -> Optional[str]:
        """The provider's machine-readable reason, e.g. ``"accessDenied"``."""
        return self.payload.get("reason")


class BadRequestError(ProviderError):
    """HTTP 400: the request parameters were rejected."""


class ForbiddenError(ProviderError):
    """HTTP 403: the token is invalid or not allowed from this IP."""


class NotFoundError(ProviderError):
    """HTTP 404: the resource does not exist."""

    exit_code = EXIT_NOT_FOUND


class RateLimitError(ProviderError):
    """HTTP 429: the token exceeded its request budget."""

    exit_code = EXIT_RATE_LIMITED


class ServerError(ProviderError):
    """HTTP 5xx: the provider failed to serve the request."""


class MaintenanceError(ServerError):
    """HTTP 503: the service is down for maintenance."""

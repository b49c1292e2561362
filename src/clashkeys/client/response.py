"""Response classification -- the single place where HTTP status is judged.

Every response from the target API and from the developer portal's key
endpoints passes through :func:`classify_response`. A 2xx response is
returned unchanged for the caller to decode; anything else becomes a
:class:`~clashkeys.exceptions.ProviderError` subclass carrying the status
code and the provider's error payload.

See Also:
    :mod:`clashkeys.exceptions` -- the error taxonomy raised here.
"""

from __future__ import annotations

from typing import Any

import httpx

from clashkeys.exceptions import (
    BadRequestError,
    ForbiddenError,
    MaintenanceError,
    NotFoundError,
    ProviderError,
    RateLimitError,
    ServerError,
)

_STATUS_ERRORS: dict[int, type[ProviderError]] = {
    400: BadRequestError,
    403: ForbiddenError,
    404: NotFoundError,
    429: RateLimitError,
    503: MaintenanceError,
}


def classify_response(response: httpx.Response) -> httpx.Response:
    """Return *response* if it is a 2xx, otherwise raise the matching error.

    Args:
        response: The raw :class:`httpx.Response`.

    Returns:
        The same response object, untouched.

    Raises:
        BadRequestError: On 400.
        ForbiddenError: On 403.
        NotFoundError: On 404.
        RateLimitError: On 429.
        MaintenanceError: On 503.
        ServerError: On any other 5xx.
        ProviderError: On any other non-2xx status.
    """
    status = response.status_code
    if response.is_success:
        return response

    data = extract_response_data(response)
    payload = data if isinstance(data, dict) else {}

    if payload:
        msg = payload.get("message") or payload.get("reason") or ""
    elif isinstance(data, str):
        msg = data[:200]
    else:
        msg = ""

    prefix = f"HTTP {status}"
    full_msg = f"{prefix}: {msg}" if msg else prefix

    error_cls = _STATUS_ERRORS.get(status)
    if error_cls is None:
        error_cls = ServerError if status >= 500 else ProviderError
    raise error_cls(full_msg, status_code=status, payload=payload)


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Attempts to parse the body as JSON first. If that fails (e.g. the
    response is HTML or plain text), returns the raw text. Returns
    ``None`` for responses with no content.
    """
    if not response.content:
        return None

    try:
        return response.json()
    except ValueError:
        return response.text

"""HTTP client module for clashkeys.

Classes and functions:
    :class:`ClashClient` -- blocking client backed by :class:`httpx.Client`
    with bearer-token rotation.
    :func:`classify_response` -- maps non-2xx responses to
    :class:`~clashkeys.exceptions.ProviderError` subclasses.

Example::

    from clashkeys.client import ClashClient

    with ClashClient.from_credentials(email, password) as client:
        resp = client.get("/locations")
"""

from clashkeys.client.response import classify_response, extract_response_data
from clashkeys.client.sync_client import ClashClient

__all__ = ["ClashClient", "classify_response", "extract_response_data"]

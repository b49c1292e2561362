"""clashkeys -- credential and API-key lifecycle for the Clash of Clans API.

The API only accepts bearer tokens from keys allowlisted for the caller's
IP, and each key is rate limited. This package logs in to the developer
portal, finds or mints a key for the current public IP, and rotates
requests across one or more tokens.

Typical usage::

    from clashkeys import ClashClient

    with ClashClient.from_credentials(email, password, reuse_existing=True) as client:
        player = client.get("/players/%23ABC123").json()

Modules:
    app: Typer application and CLI entry point.
    auth: IP discovery, developer session, key management, token pool.
    client: Authenticated request building and response classification.
    config: XDG-aware configuration resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    models: Pydantic models shared across the package.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"

from clashkeys.client import ClashClient  # noqa: E402
from clashkeys.auth import TokenPool  # noqa: E402
from clashkeys.models import ClientConfig  # noqa: E402

__all__ = ["ClashClient", "ClientConfig", "TokenPool", "__version__"]

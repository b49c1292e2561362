"""Canonical Pydantic models shared across all clashkeys modules.

The models fall into two groups:

**Configuration** -- :class:`ClientConfig` holds every endpoint and transport
setting. It is built by :func:`~clashkeys.config.resolve_config` from
defaults, the user config file, environment variables and explicit overrides.

**Developer portal wire models** -- :class:`Credentials`, :class:`Key`,
:class:`KeyCreation`, :class:`KeyDeletion` and :class:`KeyList` mirror the
JSON bodies of the login and ``apikey`` endpoints. Python attribute names are
snake_case; the camelCase wire names are declared as aliases, and models are
serialised with ``by_alias=True`` before they are sent.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class RotationPolicy(str, enum.Enum):
    """How :class:`~clashkeys.auth.pool.TokenPool` picks the next token."""

    ROUND_ROBIN = "round_robin"
    RANDOM = "random"


# --- Configuration ---


class ClientConfig(BaseModel):
    """Endpoints and transport settings for the API and its developer portal.

    Example::

        ClientConfig(timeout=10, rotation="random")
    """

    api_url: str = Field(
        default="https://api.clashofclans.com",
        description="Base URL of the target API (without version)",
    )
    api_version: str = Field(default="v1", description="API version path segment")
    developer_url: str = Field(
        default="https://developer.clashofclans.com/api",
        description="Base URL of the developer portal (login and key management)",
    )
    ip_checker_url: str = Field(
        default="https://checkip.amazonaws.com",
        description="Service returning the caller's public IP as plain text",
    )
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    key_name: str = Field(
        default="clashkeys",
        description="Name given to keys created by this client",
    )
    key_description: str = Field(
        default=(
            "Generated automatically by clashkeys for the IP address "
            "of the machine that logged in with these credentials."
        ),
        description="Description given to keys created by this client",
    )
    rotation: RotationPolicy = Field(
        default=RotationPolicy.ROUND_ROBIN,
        description="Token selection policy: round_robin or random",
    )


# --- Developer portal ---


class Credentials(BaseModel):
    """Account credentials sent once to the login endpoint."""

    email: str
    password: str = Field(repr=False)


class Key(BaseModel):
    """An API key record as returned by the developer portal.

    Only :attr:`key` and :attr:`cidr_ranges` matter to this client; the
    other fields are kept for display.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    name: str = ""
    description: Optional[str] = None
    key: str
    cidr_ranges: list[str] = Field(default_factory=list, alias="cidrRanges")
    scopes: list[str] = Field(default_factory=list)
    developer_id: Optional[str] = Field(default=None, alias="developerId")
    tier: Optional[str] = None
    origins: Optional[Any] = None


class KeyCreation(BaseModel):
    """Body of ``POST /apikey/create``."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    cidr_ranges: list[str] = Field(alias="cidrRanges")


class KeyDeletion(BaseModel):
    """Body of ``POST /apikey/revoke``."""

    key: str


class KeyList(BaseModel):
    """Response of ``POST /apikey/list``."""

    model_config = ConfigDict(extra="ignore")

    keys: list[Key] = Field(default_factory=list)

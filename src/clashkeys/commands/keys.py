"""Key commands -- inspect and manage developer portal API keys.

Provides the ``clashkeys keys`` sub-command group and the top-level
``clashkeys ip`` command. Account credentials are read from source
descriptors (``env:VAR``, ``file:/path`` or ``prompt``), by default the
``CLASHKEYS_EMAIL`` and ``CLASHKEYS_PASSWORD`` environment variables.

Typical workflow::

    clashkeys ip              # which IP will the API see?
    clashkeys keys list       # which keys exist, which work from here?
    clashkeys keys ensure     # print a usable token, creating a key if needed
    clashkeys keys prune      # revoke keys bound to other IPs
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Optional

import httpx
import typer

from clashkeys.auth import DeveloperSession, IPResolver, KeyManager, mask_token, ranges_contain
from clashkeys.client.sync_client import make_http_client
from clashkeys.config import resolve_config, resolve_credential
from clashkeys.exceptions import ClashKeysError
from clashkeys.models import ClientConfig
from clashkeys.output import error, info, print_data, print_table, success


keys_app = typer.Typer(no_args_is_help=True)

_EMAIL_OPTION = typer.Option(
    "env:CLASHKEYS_EMAIL", "--email", help="Email source: env:VAR, file:/path or prompt."
)
_PASSWORD_OPTION = typer.Option(
    "env:CLASHKEYS_PASSWORD", "--password", help="Password source: env:VAR, file:/path or prompt."
)
_IP_OPTION = typer.Option(
    None, "--ip", help="IP address to allowlist (repeatable). Defaults to the public IP."
)


@contextmanager
def _errors_to_exit() -> Iterator[None]:
    """Print a :class:`ClashKeysError` and exit with its code."""
    try:
        yield
    except ClashKeysError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _config(ctx: typer.Context) -> ClientConfig:
    obj = ctx.obj or {}
    config = obj.get("config")
    if config is None:
        config = resolve_config()
    return config


def _transport(ctx: typer.Context, config: ClientConfig) -> httpx.Client:
    """Return the transport supplied in ``ctx.obj`` or a new one built from *config*."""
    return (ctx.obj or {}).get("http_client") or make_http_client(config)


@contextmanager
def _key_manager(ctx: typer.Context, email_source: str, password_source: str) -> Iterator[KeyManager]:
    """Log in and yield a :class:`KeyManager` bound to a fresh transport."""
    config = _config(ctx)
    email = resolve_credential(email_source, prompt="Email: ")
    password = resolve_credential(password_source, prompt="Password: ")
    with _transport(ctx, config) as transport:
        session = DeveloperSession(transport, config)
        session.login(email, password)
        yield KeyManager(session, IPResolver(transport, config.ip_checker_url), config)


@keys_app.command("list")
def keys_list(
    ctx: typer.Context,
    email: str = _EMAIL_OPTION,
    password: str = _PASSWORD_OPTION,
    show_tokens: bool = typer.Option(False, "--show-tokens", help="Print full tokens."),
) -> None:
    """List the account's keys and whether each one works from this IP."""
    with _errors_to_exit(), _key_manager(ctx, email, password) as manager:
        keys = manager.fetch_keys()
        ip = manager.ip
        rows = [
            [
                key.id or "",
                key.name,
                ", ".join(key.cidr_ranges),
                "yes" if ranges_contain(key.cidr_ranges, [ip]) else "no",
                key.key if show_tokens else mask_token(key.key),
            ]
            for key in keys
        ]
        print_table(["id", "name", "cidr_ranges", "valid", "token"], rows, title=f"Keys (IP {ip})")


@keys_app.command("valid")
def keys_valid(
    ctx: typer.Context,
    email: str = _EMAIL_OPTION,
    password: str = _PASSWORD_OPTION,
    ips: Optional[List[str]] = _IP_OPTION,
) -> None:
    """Print the tokens usable from the given IPs, one per line."""
    with _errors_to_exit(), _key_manager(ctx, email, password) as manager:
        tokens = manager.get_valid_tokens(ips or None)
        if not tokens:
            info("No valid tokens.")
        for token in tokens:
            print_data(token)


@keys_app.command("create")
def keys_create(
    ctx: typer.Context,
    email: str = _EMAIL_OPTION,
    password: str = _PASSWORD_OPTION,
    ips: Optional[List[str]] = _IP_OPTION,
) -> None:
    """Create a key for the given IPs and print its token.

    Fails with exit code 8 when a valid key already exists.
    """
    with _errors_to_exit(), _key_manager(ctx, email, password) as manager:
        token = manager.create_key(ips or None)
        success("Key created.")
        print_data(token)


@keys_app.command("ensure")
def keys_ensure(
    ctx: typer.Context,
    email: str = _EMAIL_OPTION,
    password: str = _PASSWORD_OPTION,
    ips: Optional[List[str]] = _IP_OPTION,
) -> None:
    """Print a usable token, creating a key only when none exists."""
    with _errors_to_exit(), _key_manager(ctx, email, password) as manager:
        print_data(manager.ensure_token(ips or None))


@keys_app.command("revoke")
def keys_revoke(
    ctx: typer.Context,
    key: str = typer.Argument(help="Token of the key to revoke."),
    email: str = _EMAIL_OPTION,
    password: str = _PASSWORD_OPTION,
) -> None:
    """Revoke a key by its token."""
    with _errors_to_exit(), _key_manager(ctx, email, password) as manager:
        manager.delete_key(key)
        success(f"Revoked {mask_token(key)}.")


@keys_app.command("prune")
def keys_prune(
    ctx: typer.Context,
    email: str = _EMAIL_OPTION,
    password: str = _PASSWORD_OPTION,
) -> None:
    """Revoke every key that does not allow the current IP."""
    with _errors_to_exit(), _key_manager(ctx, email, password) as manager:
        revoked = manager.revoke_invalid()
        for token in revoked:
            info(f"Revoked {mask_token(token)}")
        success(f"{len(revoked)} key(s) revoked.")


def ip_command(ctx: typer.Context) -> None:
    """Print the public IP address the API will see."""
    with _errors_to_exit():
        config = _config(ctx)
        with _transport(ctx, config) as transport:
            print_data(IPResolver(transport, config.ip_checker_url).resolve())

"""Typer application and CLI entry point for clashkeys.

This module wires together the top-level Typer application: the ``ip``
command and the ``keys`` sub-command group from
:mod:`clashkeys.commands.keys`.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.

See Also:
    :mod:`clashkeys.config`: Configuration resolution.
    :mod:`clashkeys.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from clashkeys import __version__
from clashkeys.commands.keys import ip_command, keys_app
from clashkeys.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="clashkeys",
    help="Manage IP-allowlisted API keys for the Clash of Clans API.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("ip")(ip_command)
app.add_typer(keys_app, name="keys", help="List, create and revoke API keys.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"clashkeys {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Config file (default: ~/.config/clashkeys/config.json)."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Request timeout in seconds."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~clashkeys.output.OutputManager`, routes
    library logging to stderr, and stores the resolved
    :class:`~clashkeys.models.ClientConfig` in ``ctx.obj["config"]``.
    """
    from clashkeys.config import resolve_config
    from clashkeys.exceptions import ConfigError
    from clashkeys.output import OutputFormat, OutputManager, error, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    output.configure_logging()

    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = resolve_config(config_path, timeout=timeout)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from clashkeys.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``clashkeys`` console script.

    Unhandled :class:`~clashkeys.exceptions.ClashKeysError` instances cause
    a clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.
    """
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from clashkeys.exceptions import ClashKeysError
        from clashkeys.output import error

        if isinstance(exc, ClashKeysError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)

"""Typer application and CLI entry point for mcpx-cli.

This module builds the root Typer application, registers the built-in
commands, and defines :func:`main`, the console-script entry point declared
in ``pyproject.toml``.

Errors raised as :class:`~mcpx_cli.exceptions.McpxError` end the process
with their exit code and a one-line message on stderr. Any other exception
writes a crash log under the data directory.

See Also:
    :mod:`mcpx_cli.config`: settings resolved in :func:`main_callback`.
    :mod:`mcpx_cli.output`: output manager installed in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from mcpx_cli import __version__
from mcpx_cli.commands.auth import auth_status_command, login_command, logout_command
from mcpx_cli.commands.servers import (
    delete_command,
    health_command,
    publish_command,
    server_command,
    servers_command,
    update_command,
)
from mcpx_cli.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="mcpx-cli",
    help="Command-line client for the MCP server registry API.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"mcpx-cli {__version__}")
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
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Registry base URL (default: http://localhost:8080)."
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Credential file path (default: ~/.mcpx-cli-config.json)."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Trace requests on stderr."),
) -> None:
    """Root callback executed before every command.

    Installs the global :class:`~mcpx_cli.output.OutputManager`, resolves the
    :class:`~mcpx_cli.models.ClientSettings`, and stores both the settings and
    the output flags in ``ctx.obj`` for the commands.
    """
    from mcpx_cli.commands import handle_errors
    from mcpx_cli.config import resolve_settings
    from mcpx_cli.output import OutputFormat, OutputManager, configure_logging, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    configure_logging(output)

    ctx.ensure_object(dict)
    ctx.obj["no_color"] = no_color
    ctx.obj["quiet"] = quiet
    ctx.obj["verbose"] = verbose
    with handle_errors():
        ctx.obj["settings"] = resolve_settings(base_url, config_path)


app.command("health")(health_command)
app.command("servers")(servers_command)
app.command("server")(server_command)
app.command("publish")(publish_command)
app.command("update")(update_command)
app.command("delete")(delete_command)
app.command("login")(login_command)
app.command("logout")(logout_command)
app.command("auth-status")(auth_status_command)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback to the data directory and return its path."""
    from mcpx_cli.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``mcpx-cli`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from mcpx_cli.exceptions import McpxError
        from mcpx_cli.output import error

        if isinstance(exc, McpxError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)

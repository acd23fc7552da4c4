"""Auth commands -- manage the stored registry credential.

Typical workflow::

    mcpx-cli login                  # anonymous token, saved to ~/.mcpx-cli-config.json
    mcpx-cli auth-status            # inspect it
    mcpx-cli logout                 # remove it
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Optional

import typer

from mcpx_cli.auth.manager import ANONYMOUS
from mcpx_cli.commands import handle_errors, open_client
from mcpx_cli.models import Credential
from mcpx_cli.output import (
    OutputFormat,
    format_response,
    get_output,
    info,
    print_data,
    success,
    suggest,
)


def _mask(token: str) -> str:
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}...{token[-4:]}"


def _expiry_text(credential: Credential) -> str:
    if credential.expires_at == 0:
        return "never"
    when = datetime.fromtimestamp(credential.expires_at, tz=timezone.utc)
    remaining = credential.expires_at - int(time.time())
    return f"{when.isoformat()} ({remaining}s remaining)"


def login_command(
    ctx: typer.Context,
    method: str = typer.Option(
        ANONYMOUS,
        "--method",
        "-m",
        help="Authentication method: anonymous, github-oauth, github-oidc, dns, http.",
    ),
    domain: Optional[str] = typer.Option(
        None, "--domain", help="Domain to authenticate for (dns and http methods)."
    ),
) -> None:
    """Obtain a registry token and store it.

    Only ``anonymous`` is implemented; the other methods report that they are
    not supported.

    Example::

        mcpx-cli login --method anonymous
    """
    with handle_errors(), open_client(ctx) as client:
        credential = client.login(method, domain=domain)
    success(f"Logged in with method '{credential.method}'.")
    info(f"Token expires: {_expiry_text(credential)}")


def logout_command(ctx: typer.Context) -> None:
    """Remove the stored credential. Succeeds when none is stored."""
    with handle_errors(), open_client(ctx) as client:
        client.logout()
    success("Logged out.")


def auth_status_command(ctx: typer.Context) -> None:
    """Show the stored credential, if it is still valid.

    The token is masked. An expired credential is reported as not
    authenticated.
    """
    with handle_errors(), open_client(ctx) as client:
        credential = client.status()

    if get_output().format == OutputFormat.JSON:
        format_response(
            {
                "authenticated": not credential.is_empty(),
                "method": credential.method,
                "domain": credential.domain,
                "expires_at": credential.expires_at,
                "token": _mask(credential.token),
            }
        )
        return

    if credential.is_empty():
        print_data("Not authenticated")
        suggest("Log in with: mcpx-cli login")
        return
    print_data(f"Method: {credential.method}")
    if credential.domain:
        print_data(f"Domain: {credential.domain}")
    print_data(f"Token: {_mask(credential.token)}")
    print_data(f"Expires: {_expiry_text(credential)}")

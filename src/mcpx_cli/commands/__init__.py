"""Built-in CLI commands for mcpx-cli.

* :mod:`~mcpx_cli.commands.servers` -- ``health``, ``servers``, ``server``,
  ``publish``, ``update``, ``delete``.
* :mod:`~mcpx_cli.commands.auth` -- ``login``, ``logout``, ``auth-status``.

Every command is a plain callback registered on the root app in
:mod:`mcpx_cli.app`. Commands share two helpers defined here:
:func:`open_client`, which wires settings, credential store, auth methods and
transport into a :class:`~mcpx_cli.client.RegistryClient`, and
:func:`handle_errors`, which turns a :class:`~mcpx_cli.exceptions.McpxError`
into an error message and the matching exit code.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import typer

from mcpx_cli.exceptions import McpxError
from mcpx_cli.models import ClientSettings
from mcpx_cli.output import error, get_output


@contextmanager
def handle_errors() -> Iterator[None]:
    """Report a :class:`McpxError` on stderr and exit with its code."""
    try:
        yield
    except McpxError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def get_settings(ctx: typer.Context) -> ClientSettings:
    """Return the settings resolved by the root callback."""
    obj = ctx.ensure_object(dict)
    settings = obj.get("settings")
    if settings is None:
        from mcpx_cli.config import resolve_settings

        settings = resolve_settings()
        obj["settings"] = settings
    return settings


@contextmanager
def open_client(ctx: typer.Context):  # noqa: ANN201
    """Yield a :class:`~mcpx_cli.client.RegistryClient` for this invocation.

    ``ctx.obj["http_transport"]``, when set, replaces the network for both
    registry requests and token issuance (the test suite injects an
    :class:`httpx.MockTransport` this way).
    """
    from mcpx_cli.auth import CredentialStore, create_default_registry
    from mcpx_cli.client import AuthenticatedTransport, RegistryClient

    settings = get_settings(ctx)
    http_transport = ctx.ensure_object(dict).get("http_transport")
    store = CredentialStore(settings.credential_path)
    auth_registry = create_default_registry(
        settings.base_url,
        store,
        timeout=settings.timeout,
        http_transport=http_transport,
    )
    get_output().debug(f"Registry: {settings.base_url}; credential file: {store.path}")
    with AuthenticatedTransport(
        settings.base_url,
        store,
        auth_registry,
        timeout=settings.timeout,
        http_transport=http_transport,
    ) as transport:
        yield RegistryClient(transport)

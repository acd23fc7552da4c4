"""Registry commands -- browse and manage registry entries.

Read-only commands (``health``, ``servers``, ``server``) never send a token
unless one is stored, and never trigger a login. The mutating commands
(``publish``, ``update``, ``delete``) accept ``--token``; without one they
use the stored credential, and with neither they fall back to an anonymous
login when the registry asks for authorization.

Typical usage::

    mcpx-cli servers --limit 10
    mcpx-cli servers --json --detailed
    mcpx-cli server 58031f85-792f-4c22-9d76-b4dd01e287aa
    mcpx-cli publish server.json
"""

from __future__ import annotations

from typing import Optional

import typer

from mcpx_cli.client.registry import load_document
from mcpx_cli.commands import handle_errors, open_client
from mcpx_cli.exceptions import InvalidUsageError
from mcpx_cli.models import MutationResult, Server, ServerDetail
from mcpx_cli.output import (
    OutputFormat,
    OutputManager,
    format_response,
    get_output,
    info,
    print_data,
    print_table,
    set_output,
    success,
    suggest,
)

DEFAULT_PAGE_LIMIT = 30


def _use_json(ctx: typer.Context, json_output: bool) -> bool:
    """Switch output to JSON for a per-command ``--json`` and report the result."""
    if json_output and get_output().format != OutputFormat.JSON:
        obj = ctx.ensure_object(dict)
        set_output(
            OutputManager(
                format=OutputFormat.JSON,
                no_color=obj.get("no_color", False),
                quiet=obj.get("quiet", False),
                verbose=obj.get("verbose", False),
            )
        )
    return get_output().format == OutputFormat.JSON


def _version_of(server: Server) -> str:
    if server.version:
        return server.version
    if server.version_detail is not None:
        return server.version_detail.version
    return ""


def _detail_lines(server: ServerDetail) -> list[str]:
    lines = [
        f"ID: {server.id}",
        f"Name: {server.name}",
        f"Description: {server.description}",
    ]
    if server.status:
        lines.append(f"Status: {server.status}")
    if server.repository.url:
        lines.append(f"Repository: {server.repository.url} ({server.repository.source})")
    lines.append(f"Version: {_version_of(server)}")
    if server.version_detail is not None and server.version_detail.release_date:
        lines.append(f"Release Date: {server.version_detail.release_date}")

    if server.packages:
        lines.append("")
        lines.append("Packages:")
        for i, package in enumerate(server.packages, 1):
            lines.append(f"  Package {i}:")
            lines.append(f"    Registry: {package.registry_type}")
            lines.append(f"    Identifier: {package.identifier}")
            lines.append(f"    Version: {package.version}")
            if package.runtime_hint:
                lines.append(f"    Runtime Hint: {package.runtime_hint}")
            if package.environment_variables:
                lines.append("    Environment Variables:")
                for variable in package.environment_variables:
                    lines.append(
                        f"      - {variable.get('name', '')}: {variable.get('description', '')}"
                    )

    if server.remotes:
        lines.append("")
        lines.append("Remotes:")
        for i, remote in enumerate(server.remotes, 1):
            lines.append(f"  Remote {i}:")
            lines.append(f"    Transport: {remote.type}")
            lines.append(f"    URL: {remote.url}")
    return lines


def _report_mutation(result: MutationResult) -> None:
    if get_output().format == OutputFormat.JSON:
        format_response(result)
        return
    success(result.message)
    if result.id:
        print_data(result.id)


def health_command(ctx: typer.Context) -> None:
    """Check the registry's health endpoint.

    Example::

        mcpx-cli health
    """
    with handle_errors(), open_client(ctx) as client:
        health = client.health()
    if get_output().format == OutputFormat.JSON:
        format_response(health)
        return
    print_data(f"Status: {health.status}")
    if health.github_client_id:
        print_data(f"GitHub Client ID: {health.github_client_id}")


def servers_command(
    ctx: typer.Context,
    cursor: Optional[str] = typer.Option(None, "--cursor", help="Pagination cursor."),
    limit: int = typer.Option(
        DEFAULT_PAGE_LIMIT, "--limit", min=1, help="Maximum number of servers to return."
    ),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format."),
    detailed: bool = typer.Option(
        False,
        "--detailed",
        help="Include packages and remotes, one request per server (requires --json).",
    ),
) -> None:
    """List registry entries, one page at a time.

    Example::

        mcpx-cli servers --limit 10 --cursor <next-cursor>
    """
    as_json = _use_json(ctx, json_output)
    with handle_errors():
        if detailed and not as_json:
            raise InvalidUsageError("--detailed requires --json")
        with open_client(ctx) as client:
            if detailed:
                format_response(client.list_servers_detailed(cursor=cursor, limit=limit))
                return
            page = client.list_servers(cursor=cursor, limit=limit)

    if as_json:
        format_response(page)
        return

    rows = [
        [server.id, server.name, _version_of(server), server.status or "", server.description]
        for server in page.servers
    ]
    print_table(
        ["ID", "Name", "Version", "Status", "Description"],
        rows,
        title=f"Servers ({len(page.servers)})",
    )
    if page.metadata.next_cursor:
        info(f"Next cursor: {page.metadata.next_cursor}")
        suggest(f"Next page: mcpx-cli servers --cursor {page.metadata.next_cursor}")


def server_command(
    ctx: typer.Context,
    server_id: str = typer.Argument(help="Server id, or server name when --version is given."),
    version: Optional[str] = typer.Option(None, "--version", help="Fetch this version by name."),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format."),
) -> None:
    """Show one registry entry with its packages and remotes.

    Example::

        mcpx-cli server 58031f85-792f-4c22-9d76-b4dd01e287aa
        mcpx-cli server io.github.example/weather --version 1.0.2
    """
    as_json = _use_json(ctx, json_output)
    with handle_errors(), open_client(ctx) as client:
        if version:
            detail = client.get_server_version(server_id, version)
        else:
            detail = client.get_server(server_id)

    if as_json:
        format_response(detail)
        return
    for line in _detail_lines(detail):
        print_data(line)


def publish_command(
    ctx: typer.Context,
    server_file: str = typer.Argument(help="Path of the server JSON document."),
    token: Optional[str] = typer.Option(
        None, "--token", help="Bearer token; overrides the stored credential."
    ),
) -> None:
    """Publish a server document to the registry.

    Example::

        mcpx-cli publish server.json
        mcpx-cli publish server.json --token "$REGISTRY_TOKEN"
    """
    with handle_errors():
        document = load_document(server_file)
        with open_client(ctx) as client:
            result = client.publish(document, token=token)
    _report_mutation(result)


def update_command(
    ctx: typer.Context,
    server: str = typer.Argument(help="Server id, or server name when --version is given."),
    server_file: str = typer.Argument(help="Path of the replacement server JSON document."),
    version: Optional[str] = typer.Option(None, "--version", help="Update this version by name."),
    token: Optional[str] = typer.Option(
        None, "--token", help="Bearer token; overrides the stored credential."
    ),
) -> None:
    """Replace a registry entry with the content of a JSON document.

    Example::

        mcpx-cli update io.github.example/weather server.json --version 1.0.2
    """
    with handle_errors():
        document = load_document(server_file)
        with open_client(ctx) as client:
            result = client.update(server, document, version=version, token=token)
    _report_mutation(result)


def delete_command(
    ctx: typer.Context,
    server: str = typer.Argument(help="Server id, or server name when --version is given."),
    version: Optional[str] = typer.Option(
        None, "--version", help="Mark only this version as deleted."
    ),
    token: Optional[str] = typer.Option(
        None, "--token", help="Bearer token; overrides the stored credential."
    ),
) -> None:
    """Delete a registry entry, or mark one version as deleted.

    Example::

        mcpx-cli delete io.github.example/weather --version 1.0.2
    """
    with handle_errors(), open_client(ctx) as client:
        result = client.delete(server, version=version, token=token)
    _report_mutation(result)

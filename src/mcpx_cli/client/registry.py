"""High-level registry operations.

:class:`RegistryClient` turns the registry's HTTP contract into typed calls.
It sends everything through an
:class:`~mcpx_cli.client.transport.AuthenticatedTransport` and passes every
entity payload through :mod:`mcpx_cli.client.normalizer`, so callers only ever
see the canonical models from :mod:`mcpx_cli.models`.

Any non-2xx response becomes :class:`~mcpx_cli.exceptions.NotFoundError`
(404) or :class:`~mcpx_cli.exceptions.APIError` carrying the status and the
raw body.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from mcpx_cli.client import normalizer
from mcpx_cli.client.transport import AuthenticatedTransport
from mcpx_cli.exceptions import (
    APIError,
    DecodeError,
    InvalidUsageError,
    NotFoundError,
    TransportError,
)
from mcpx_cli.models import (
    Credential,
    DetailedServerList,
    HealthStatus,
    MutationResult,
    ServerDetail,
    ServerList,
)
from mcpx_cli.output import get_output

DELETED_STATUS = "deleted"


def load_document(path: Union[str, Path]) -> dict[str, Any]:
    """Read a publish/update document from a JSON file.

    Raises:
        InvalidUsageError: If the file is missing, unreadable, not JSON, or
            not a JSON object.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise InvalidUsageError(f"Server file not found: {path}") from exc
    except OSError as exc:
        raise InvalidUsageError(f"Cannot read server file {path}: {exc}") from exc

    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"Invalid JSON in server file {path}: {exc}") from exc
    if not isinstance(document, dict):
        raise InvalidUsageError(f"Server file {path} must contain a JSON object")
    return document


def _segment(value: str) -> str:
    return quote(value, safe="")


def _check(response: httpx.Response, context: str) -> None:
    """Raise the typed error for a non-2xx *response*."""
    if response.is_success:
        return
    if response.status_code == 404:
        raise NotFoundError(response.status_code, response.text, context)
    raise APIError(response.status_code, response.text, context)


class RegistryClient:
    """Typed access to the registry API.

    Args:
        transport: An entered :class:`AuthenticatedTransport`.

    Example::

        with AuthenticatedTransport(url, store, auth_registry) as transport:
            client = RegistryClient(transport)
            page = client.list_servers(limit=10)
    """

    def __init__(self, transport: AuthenticatedTransport) -> None:
        self._transport = transport

    # ------------------------------------------------------------------ #
    # Read operations
    # ------------------------------------------------------------------ #

    def health(self) -> HealthStatus:
        """``GET /v0/health``."""
        response = self._transport.request("GET", "/v0/health")
        _check(response, "Health check failed")
        data = normalizer.decode_json(response.content)
        if not isinstance(data, dict):
            raise DecodeError("Health response is not a JSON object")
        try:
            return HealthStatus.model_validate(data)
        except ValidationError as exc:
            raise DecodeError(f"Unexpected health response: {exc}") from exc

    def list_servers(
        self,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> ServerList:
        """``GET /v0/servers`` -- one page of entries."""
        params: dict[str, Any] = {}
        if cursor:
            params["cursor"] = cursor
        if limit is not None and limit > 0:
            params["limit"] = limit
        response = self._transport.request("GET", "/v0/servers", params=params)
        _check(response, "List servers failed")
        return normalizer.parse_server_list(response.content)

    def list_servers_detailed(
        self,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> DetailedServerList:
        """List one page, then fetch the detail record of every entry.

        Detail fetches run one after another in list order. An entry whose
        detail fetch fails (or that has no id to fetch by) is kept as its
        list-level summary with no packages or remotes; the page as a whole
        never fails because of one entry.
        """
        page = self.list_servers(cursor=cursor, limit=limit)
        output = get_output()
        details: list[ServerDetail] = []
        for summary in page.servers:
            if not summary.id:
                output.warning(f"Server '{summary.name}' has no id; using list summary")
                details.append(normalizer.summary_as_detail(summary))
                continue
            try:
                details.append(self.get_server(summary.id))
            except (APIError, DecodeError, TransportError) as exc:
                output.warning(f"Details for server {summary.id} unavailable ({exc}); using list summary")
                details.append(normalizer.summary_as_detail(summary))
        return DetailedServerList(servers=details, metadata=page.metadata)

    def get_server(self, server_id: str) -> ServerDetail:
        """``GET /v0/servers/{id}``."""
        response = self._transport.request("GET", f"/v0/servers/{_segment(server_id)}")
        _check(response, f"Get server {server_id} failed")
        return normalizer.parse_server_detail(response.content)

    def get_server_version(self, name: str, version: str) -> ServerDetail:
        """``GET /v0/servers/{name}/versions/{version}`` with *name* URL-encoded."""
        response = self._transport.request("GET", self._version_path(name, version))
        _check(response, f"Get server {name} version {version} failed")
        return normalizer.parse_server_detail(response.content)

    # ------------------------------------------------------------------ #
    # Mutating operations
    # ------------------------------------------------------------------ #

    def publish(self, document: dict[str, Any], token: Optional[str] = None) -> MutationResult:
        """``POST /v0/publish``."""
        response = self._transport.request(
            "POST", "/v0/publish", body=document, explicit_token=token, mutating=True
        )
        _check(response, "Publish failed")
        return self._mutation_result(response, "Server published")

    def update(
        self,
        server: str,
        document: dict[str, Any],
        version: Optional[str] = None,
        token: Optional[str] = None,
    ) -> MutationResult:
        """Replace an entry.

        With *version*, *server* is a name and the request goes to
        ``PUT /v0/servers/{name}/versions/{version}``; otherwise *server* is
        an id and the request goes to ``PUT /v0/servers/{id}``.
        """
        path = self._version_path(server, version) if version else f"/v0/servers/{_segment(server)}"
        response = self._transport.request(
            "PUT", path, body=document, explicit_token=token, mutating=True
        )
        _check(response, f"Update of {server} failed")
        return self._mutation_result(response, "Server updated")

    def delete(
        self,
        server: str,
        version: Optional[str] = None,
        token: Optional[str] = None,
    ) -> MutationResult:
        """Delete an entry.

        With *version*, the entry is soft-deleted: the version document is
        fetched, its ``status`` set to ``"deleted"``, and the result ``PUT``
        back. Without *version*, ``DELETE /v0/servers/{id}`` is sent.
        """
        if not version:
            response = self._transport.request(
                "DELETE",
                f"/v0/servers/{_segment(server)}",
                explicit_token=token,
                mutating=True,
            )
            _check(response, f"Delete of {server} failed")
            return self._mutation_result(response, "Server deleted")

        path = self._version_path(server, version)
        current = self._transport.request("GET", path, explicit_token=token)
        _check(current, f"Get server {server} version {version} failed")
        payload = normalizer.decode_json(current.content)
        if not isinstance(payload, dict):
            raise DecodeError(f"Server {server} version {version} is not a JSON object")
        document = payload.get("server") if isinstance(payload.get("server"), dict) else payload
        document = {**document, "status": DELETED_STATUS}

        response = self._transport.request(
            "PUT", path, body=document, explicit_token=token, mutating=True
        )
        _check(response, f"Delete of {server} version {version} failed")
        return self._mutation_result(response, "Server version marked as deleted")

    # ------------------------------------------------------------------ #
    # Credential operations
    # ------------------------------------------------------------------ #

    def login(self, method: str, domain: Optional[str] = None) -> Credential:
        """Mint and save a credential with the named method."""
        return self._transport.auth_registry.login(method, domain=domain)

    def logout(self) -> None:
        """Remove the stored credential. Succeeds when none is stored."""
        self._transport.store.clear()

    def status(self) -> Credential:
        """Return the stored credential if still valid, else the zero value."""
        return self._transport.store.load()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _version_path(name: str, version: str) -> str:
        return f"/v0/servers/{_segment(name)}/versions/{_segment(version)}"

    @staticmethod
    def _mutation_result(response: httpx.Response, default_message: str) -> MutationResult:
        """Build a :class:`MutationResult` from a 2xx response.

        The registry either echoes the entry (in any shape the normaliser
        understands) or sends ``{"message": ..., "id": ...}``; an empty body
        is also accepted.
        """
        result = MutationResult(message=default_message, status_code=response.status_code)
        if not response.content.strip():
            return result
        data = normalizer.decode_json(response.content)
        if not isinstance(data, dict):
            return result

        entry = normalizer.normalize_server_detail(data)
        message = data.get("message")
        return result.model_copy(
            update={
                "message": message if isinstance(message, str) and message else default_message,
                "id": entry.id,
                "name": entry.name,
                "version": entry.version,
            }
        )

"""Canonical Pydantic models shared across all mcpx-cli modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Credential and settings** -- persisted or resolved at startup:
    :class:`Credential` and :class:`ClientSettings`.

**Registry entities** -- the canonical model every API response shape is
normalised into by :mod:`mcpx_cli.client.normalizer`:
    :class:`Repository`, :class:`VersionDetail`, :class:`Package`,
    :class:`Remote`, :class:`Server`, :class:`ServerDetail`,
    :class:`ListMetadata`, :class:`ServerList`, and
    :class:`DetailedServerList`.

**Operation results** -- small response envelopes:
    :class:`HealthStatus`, :class:`TokenResponse`, and
    :class:`MutationResult`.

Entity models use ``extra="allow"`` so that fields added by newer registry
releases are kept (and re-emitted in JSON output) instead of rejected.
"""

from __future__ import annotations

import time
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

CREDENTIAL_EXPIRY_BUFFER = 60
"""Seconds subtracted from ``expires_at`` before a credential counts as expired."""


# --- Credential ---


class Credential(BaseModel):
    """The single locally persisted credential.

    The zero value (``Credential()``) means "not authenticated": every field
    is empty and ``expires_at`` is ``0``. A credential whose ``expires_at``
    is ``0`` never expires.

    Attributes:
        method: Identifier of the authentication method that minted the token.
        token: The bearer token sent to the registry.
        domain: Domain the credential was issued for (``dns``/``http`` methods).
        expires_at: Expiry as a Unix timestamp, ``0`` when none was declared.
    """

    method: str = ""
    token: str = ""
    domain: Optional[str] = None
    expires_at: int = 0

    def is_valid(self, now: Optional[float] = None) -> bool:
        """Return ``True`` when the credential may still be used.

        A credential is valid iff it declares no expiry, or the current time
        is at least :data:`CREDENTIAL_EXPIRY_BUFFER` seconds before
        ``expires_at``.

        Args:
            now: Current Unix time; defaults to :func:`time.time`.
        """
        if self.expires_at == 0:
            return True
        if now is None:
            now = time.time()
        return now <= self.expires_at - CREDENTIAL_EXPIRY_BUFFER

    def is_empty(self) -> bool:
        """Return ``True`` for the zero value (no token)."""
        return not self.token


# --- Settings ---


class ClientSettings(BaseModel):
    """Resolved client settings for a single CLI invocation.

    Produced by :func:`~mcpx_cli.config.resolve_settings`.
    """

    base_url: str = Field(description="Registry base URL without trailing slash")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    credential_path: str = Field(description="Path of the credential file")


# --- Registry entities ---


class Repository(BaseModel):
    """Source repository of a registry entry."""

    model_config = ConfigDict(extra="allow")

    url: str = ""
    source: str = ""
    id: str = ""


class VersionDetail(BaseModel):
    """Legacy version block (``version_detail``) of older registry releases."""

    model_config = ConfigDict(extra="allow")

    version: str = ""
    release_date: str = ""
    is_latest: bool = False


class Package(BaseModel):
    """An installable package of a server.

    Older registry releases describe packages with ``registry_name`` and
    ``name``; current ones use ``registry_type`` and ``identifier``. The
    normaliser maps both onto the current names.
    """

    model_config = ConfigDict(extra="allow")

    registry_type: str = ""
    identifier: str = ""
    version: str = ""
    runtime_hint: str = ""
    environment_variables: list[dict[str, Any]] = Field(default_factory=list)


class Remote(BaseModel):
    """A remotely hosted endpoint of a server (``transport_type`` in older releases)."""

    model_config = ConfigDict(extra="allow")

    type: str = ""
    url: str = ""
    headers: list[dict[str, Any]] = Field(default_factory=list)


class Server(BaseModel):
    """Canonical registry entry as returned by list endpoints.

    ``id`` may have been recovered from ``registry_meta`` when the server did
    not send it at the top level; it is left empty when no identifier could
    be found anywhere.
    """

    model_config = ConfigDict(extra="allow")

    id: str = ""
    name: str = ""
    description: str = ""
    status: Optional[str] = None
    repository: Repository = Field(default_factory=Repository)
    version: str = ""
    version_detail: Optional[VersionDetail] = None
    registry_meta: dict[str, Any] = Field(default_factory=dict)


class ServerDetail(Server):
    """A registry entry with its packages and remotes."""

    packages: list[Package] = Field(default_factory=list)
    remotes: list[Remote] = Field(default_factory=list)


class ListMetadata(BaseModel):
    """Pagination block of list responses."""

    next_cursor: str = ""
    count: int = 0
    total: int = 0


class ServerList(BaseModel):
    """One page of registry entries."""

    servers: list[Server] = Field(default_factory=list)
    metadata: ListMetadata = Field(default_factory=ListMetadata)


class DetailedServerList(BaseModel):
    """One page of registry entries, each expanded with its detail record."""

    servers: list[ServerDetail] = Field(default_factory=list)
    metadata: ListMetadata = Field(default_factory=ListMetadata)


# --- Operation results ---


class HealthStatus(BaseModel):
    """Body of ``GET /v0/health``."""

    model_config = ConfigDict(extra="allow")

    status: str = ""
    github_client_id: str = ""


class TokenResponse(BaseModel):
    """Body of the token-issuance endpoints.

    Current releases name the token ``registry_token``; older ones ``token``.
    """

    model_config = ConfigDict(extra="allow")

    registry_token: str = ""
    token: str = ""
    expires_at: int = 0

    @property
    def value(self) -> str:
        """The issued token, whichever field carried it."""
        return self.registry_token or self.token


class MutationResult(BaseModel):
    """Outcome of a publish/update/delete request.

    ``id``, ``name`` and ``version`` are taken from the response body when the
    registry echoes the affected entry back.
    """

    model_config = ConfigDict(extra="allow")

    message: str = ""
    id: str = ""
    name: str = ""
    version: str = ""
    status_code: int = 0

"""Response normalisation -- every registry payload shape into one model.

The registry API has described the same entries in several incompatible
ways over its releases. This module reconciles them into the canonical
:class:`~mcpx_cli.models.Server` / :class:`~mcpx_cli.models.ServerDetail`
models.

Known shapes:

**Wrapper** (current)::

    {"server": {"name": "...", "version": "1.0.0", ...},
     "_meta": {"io.modelcontextprotocol.registry/official": {"serverId": "...", ...}}}

   or, in earlier wrapper releases, a sibling
   ``"x-io.modelcontextprotocol.registry": {"id": "...", ...}`` map.

**Legacy flat**::

    {"id": "...", "name": "...", "version_detail": {"version": "1.0.0"},
     "_meta": {...}}

Decoding tries the shapes in order (:func:`detect_shape`) and produces a
:data:`DecodedShape`. Anything that is valid JSON but matches no shape
degrades to best-effort extraction instead of failing. When no identifier
is found at the top level, it is recovered from the registry metadata
(:func:`recover_id`). Fields are merged non-destructively: a populated
field is never replaced by an empty one.

Only syntactically invalid JSON (and JSON that is not an object where an
object is required) raises :class:`~mcpx_cli.exceptions.DecodeError`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, TypeVar, Union

from mcpx_cli.exceptions import DecodeError
from mcpx_cli.models import (
    ListMetadata,
    Package,
    Remote,
    Repository,
    Server,
    ServerDetail,
    ServerList,
    VersionDetail,
)

logger = logging.getLogger(__name__)

# Keys whose object value is merged into ``registry_meta``.
_META_CONTAINER_KEYS = ("_meta", "registry_meta", "registryMeta")
# Prefixes of namespaced extension keys.
_NAMESPACE_PREFIXES = ("io.modelcontextprotocol.registry", "x-io.modelcontextprotocol.registry")
# Id-like keys inside metadata, in order of preference.
_ID_KEYS = ("serverId", "server_id", "id", "versionId", "version_id")

_ENTITY_KEYS = frozenset(
    {
        "id",
        "name",
        "description",
        "status",
        "repository",
        "version",
        "version_detail",
        "versionDetail",
        "packages",
        "remotes",
    }
)
_DETAIL_KEYS = frozenset({"packages", "remotes"})

ServerT = TypeVar("ServerT", bound=Server)


# --- Shapes ---


@dataclass(frozen=True)
class WrapperShape:
    """Entity nested under ``server`` with sibling registry metadata."""

    server: dict[str, Any]
    outer: dict[str, Any]
    meta: dict[str, Any]


@dataclass(frozen=True)
class LegacyShape:
    """Entity fields at the top level, metadata embedded alongside."""

    server: dict[str, Any]
    meta: dict[str, Any]


@dataclass(frozen=True)
class Unrecognized:
    """Valid JSON object matching no known shape."""

    raw: dict[str, Any]


DecodedShape = Union[WrapperShape, LegacyShape, Unrecognized]


def _is_namespaced(key: str) -> bool:
    return key.startswith(_NAMESPACE_PREFIXES)


def collect_meta(obj: dict[str, Any]) -> dict[str, Any]:
    """Gather the registry metadata carried by *obj*.

    Contents of ``_meta``/``registry_meta``/``registryMeta`` objects are
    merged, and top-level namespaced extension keys are kept under their own
    name. The first occurrence of a key wins.
    """
    meta: dict[str, Any] = {}
    for key in _META_CONTAINER_KEYS:
        value = obj.get(key)
        if isinstance(value, dict):
            for inner_key, inner_value in value.items():
                meta.setdefault(inner_key, inner_value)
    for key, value in obj.items():
        if isinstance(key, str) and _is_namespaced(key):
            meta.setdefault(key, value)
    return meta


def _has_meta(obj: dict[str, Any]) -> bool:
    if any(isinstance(obj.get(key), dict) for key in _META_CONTAINER_KEYS):
        return True
    return any(_is_namespaced(key) and isinstance(value, dict) for key, value in obj.items())


def _try_wrapper(raw: dict[str, Any]) -> Optional[WrapperShape]:
    server = raw.get("server")
    if not isinstance(server, dict):
        return None
    if not (_as_str(server.get("id")) or _has_meta(raw)):
        return None
    meta = collect_meta(raw)
    for key, value in collect_meta(server).items():
        meta.setdefault(key, value)
    return WrapperShape(server=server, outer=raw, meta=meta)


def _try_legacy(raw: dict[str, Any]) -> Optional[LegacyShape]:
    if not _ENTITY_KEYS.intersection(raw):
        return None
    return LegacyShape(server=raw, meta=collect_meta(raw))


_DECODE_ATTEMPTS = (_try_wrapper, _try_legacy)


def detect_shape(raw: dict[str, Any]) -> DecodedShape:
    """Return the first shape that accepts *raw*, or :class:`Unrecognized`."""
    for attempt in _DECODE_ATTEMPTS:
        shape = attempt(raw)
        if shape is not None:
            return shape
    return Unrecognized(raw)


# --- Coercion helpers ---


def _as_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return 0


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _dict_items(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _first(obj: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in obj and obj[key] is not None:
            return obj[key]
    return None


def _extras(obj: dict[str, Any], known: set[str] | frozenset[str]) -> dict[str, Any]:
    return {key: value for key, value in obj.items() if key not in known}


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, dict, list)):
        return not value
    if isinstance(value, Repository):
        return not (value.url or value.source or value.id)
    return False


def merge_fields(primary: dict[str, Any], fallback: dict[str, Any]) -> dict[str, Any]:
    """Fill blank fields of *primary* from *fallback*.

    A field that is already populated in *primary* is never overwritten.
    Returns *primary*, modified in place.
    """
    for key, value in fallback.items():
        if _is_blank(primary.get(key)) and not _is_blank(value):
            primary[key] = value
    return primary


# --- Field extraction ---


def _repository(value: Any) -> Repository:
    obj = _as_dict(value)
    known = {"url", "source", "id"}
    return Repository(
        url=_as_str(obj.get("url")),
        source=_as_str(obj.get("source")),
        id=_as_str(obj.get("id")),
        **_extras(obj, known),
    )


def _version_detail(value: Any) -> Optional[VersionDetail]:
    if not isinstance(value, dict):
        return None
    known = {"version", "release_date", "releaseDate", "is_latest", "isLatest"}
    return VersionDetail(
        version=_as_str(value.get("version")),
        release_date=_as_str(_first(value, "release_date", "releaseDate")),
        is_latest=_first(value, "is_latest", "isLatest") is True,
        **_extras(value, known),
    )


def _package(obj: dict[str, Any]) -> Package:
    known = {
        "registry_type",
        "registryType",
        "registry_name",
        "identifier",
        "name",
        "version",
        "runtime_hint",
        "runtimeHint",
        "environment_variables",
        "environmentVariables",
    }
    return Package(
        registry_type=_as_str(_first(obj, "registry_type", "registryType", "registry_name")),
        identifier=_as_str(_first(obj, "identifier", "name")),
        version=_as_str(obj.get("version")),
        runtime_hint=_as_str(_first(obj, "runtime_hint", "runtimeHint")),
        environment_variables=_dict_items(
            _first(obj, "environment_variables", "environmentVariables")
        ),
        **_extras(obj, known),
    )


def _remote(obj: dict[str, Any]) -> Remote:
    known = {"type", "transport_type", "url", "headers"}
    return Remote(
        type=_as_str(_first(obj, "type", "transport_type")),
        url=_as_str(obj.get("url")),
        headers=_dict_items(obj.get("headers")),
        **_extras(obj, known),
    )


def _entity_fields(obj: dict[str, Any], detail: bool) -> dict[str, Any]:
    """Extract canonical fields from a flat entity object, coercing types."""
    fields: dict[str, Any] = {
        "id": _as_str(obj.get("id")),
        "name": _as_str(obj.get("name")),
        "description": _as_str(obj.get("description")),
        "status": _as_str(obj.get("status")) or None,
        "repository": _repository(obj.get("repository")),
    }

    version = obj.get("version")
    version_detail = _version_detail(_first(obj, "version_detail", "versionDetail"))
    if isinstance(version, dict) and version_detail is None:
        version_detail = _version_detail(version)
    fields["version"] = _as_str(version)
    fields["version_detail"] = version_detail
    if not fields["version"] and version_detail is not None:
        fields["version"] = version_detail.version

    if detail:
        fields["packages"] = [_package(item) for item in _dict_items(obj.get("packages"))]
        fields["remotes"] = [_remote(item) for item in _dict_items(obj.get("remotes"))]

    # Summaries keep packages/remotes verbatim as extra fields.
    skip = (_ENTITY_KEYS - _DETAIL_KEYS) | set(_META_CONTAINER_KEYS) | {"server"}
    for key, value in obj.items():
        if key in skip or key in fields or _is_namespaced(key):
            continue
        fields[key] = value
    return fields


def recover_id(meta: dict[str, Any]) -> str:
    """Find an identifier in registry metadata.

    Namespaced extension objects (``io.modelcontextprotocol.registry/...``)
    are searched first, then the metadata map itself. Within an object the
    keys ``serverId``, ``server_id``, ``id``, ``versionId``, ``version_id``
    are tried in that order, and the first non-empty string wins.

    Returns:
        The identifier, or ``""`` when none is present.
    """
    candidates = [value for key, value in meta.items() if _is_namespaced(key)]
    candidates.append(meta)
    for candidate in candidates:
        if not isinstance(candidate, dict):
            continue
        for key in _ID_KEYS:
            value = candidate.get(key)
            if isinstance(value, str) and value:
                return value
    return ""


# --- Public decoding ---


def decode_json(body: Union[str, bytes]) -> Any:
    """Parse a response body.

    Raises:
        DecodeError: If *body* is not valid JSON.
    """
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        preview = body[:200] if isinstance(body, str) else body[:200].decode("utf-8", "replace")
        raise DecodeError(f"Invalid JSON in registry response: {exc}: {preview}") from exc


def _require_object(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise DecodeError(f"Expected a JSON object for {what}, got {type(data).__name__}")
    return data


def _normalize(raw: dict[str, Any], model: type[ServerT], detail: bool) -> ServerT:
    shape = detect_shape(raw)
    if isinstance(shape, WrapperShape):
        fields = _entity_fields(shape.server, detail)
        merge_fields(fields, _entity_fields(shape.outer, detail))
        meta = shape.meta
    elif isinstance(shape, LegacyShape):
        fields = _entity_fields(shape.server, detail)
        meta = shape.meta
    else:
        inner = shape.raw.get("server")
        source = inner if isinstance(inner, dict) else shape.raw
        logger.debug("Unrecognised entity shape with keys %s", sorted(shape.raw))
        fields = _entity_fields(source, detail)
        meta = collect_meta(shape.raw)
        if source is not shape.raw:
            for key, value in collect_meta(source).items():
                meta.setdefault(key, value)

    fields["registry_meta"] = meta
    if not fields["id"]:
        fields["id"] = recover_id(meta)
    return model(**fields)


def normalize_server(data: Any) -> Server:
    """Normalise one list element into a :class:`~mcpx_cli.models.Server`."""
    return _normalize(_require_object(data, "server entry"), Server, detail=False)


def normalize_server_detail(data: Any) -> ServerDetail:
    """Normalise a detail payload into a :class:`~mcpx_cli.models.ServerDetail`."""
    return _normalize(_require_object(data, "server detail"), ServerDetail, detail=True)


def normalize_metadata(data: dict[str, Any]) -> ListMetadata:
    """Decode pagination metadata, independently of the entity shape.

    Each field is read from the ``metadata`` object when present there,
    otherwise from the top level of the payload. The cursor is accepted as
    ``next_cursor`` or ``nextCursor``.
    """
    meta = _as_dict(data.get("metadata"))

    def _field(*keys: str) -> Any:
        value = _first(meta, *keys)
        return value if value is not None else _first(data, *keys)

    return ListMetadata(
        next_cursor=_as_str(_field("next_cursor", "nextCursor")),
        count=_as_int(_field("count")),
        total=_as_int(_field("total")),
    )


def normalize_server_list(data: Any) -> ServerList:
    """Normalise a list payload into a :class:`~mcpx_cli.models.ServerList`.

    A bare JSON array is accepted as the ``servers`` list. Elements that are
    not objects are skipped.
    """
    if isinstance(data, list):
        data = {"servers": data}
    payload = _require_object(data, "server list")
    items = payload.get("servers")
    if not isinstance(items, list):
        items = []
    servers = []
    for item in items:
        if not isinstance(item, dict):
            logger.debug("Skipping non-object server list entry: %r", item)
            continue
        servers.append(_normalize(item, Server, detail=False))
    return ServerList(servers=servers, metadata=normalize_metadata(payload))


def parse_server_list(body: Union[str, bytes]) -> ServerList:
    """Decode and normalise a list response body."""
    return normalize_server_list(decode_json(body))


def parse_server_detail(body: Union[str, bytes]) -> ServerDetail:
    """Decode and normalise a detail response body."""
    return normalize_server_detail(decode_json(body))


def summary_as_detail(server: Server) -> ServerDetail:
    """Widen a list-level summary into a detail record without packages or remotes."""
    return ServerDetail(**server.model_dump(exclude={"packages", "remotes"}))

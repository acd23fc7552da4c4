"""Test helpers shared across the suite: a scripted registry and sample payloads."""

from __future__ import annotations

import json
from typing import Any, Union

import httpx

REGISTRY_URL = "http://registry.test"
SERVER_ID = "58031f85-792f-4c22-9d76-b4dd01e287aa"
OTHER_SERVER_ID = "69142f85-792f-4c22-9d76-b4dd01e287bb"

MISSING_AUTH_BODY: dict[str, Any] = {
    "title": "Unprocessable Entity",
    "status": 422,
    "detail": "validation failed",
    "errors": [
        {
            "message": "required header parameter is missing",
            "location": "header.Authorization",
            "value": "",
        }
    ],
}

Payload = Union[dict[str, Any], list[Any], str, bytes, None]


class FakeRegistry:
    """Scripted registry server.

    Responses are queued per ``(method, path)``; each request consumes the
    next one, and the last one repeats. Unscripted routes answer 404.
    Every request is recorded in :attr:`requests`.

    Example::

        registry = FakeRegistry()
        registry.add("GET", "/v0/health", 200, {"status": "ok"})
        client = httpx.Client(transport=registry.transport)
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[tuple[int, Payload]]] = {}

    def add(self, method: str, path: str, status: int, payload: Payload = None) -> FakeRegistry:
        self._routes.setdefault((method.upper(), path), []).append((status, payload))
        return self

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.method == method.upper() and request.url.path == path
        ]

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"title": "Not Found", "status": 404})
        status, payload = queue.pop(0) if len(queue) > 1 else queue[0]
        if payload is None:
            return httpx.Response(status)
        if isinstance(payload, bytes):
            return httpx.Response(status, content=payload)
        if isinstance(payload, str):
            return httpx.Response(status, text=payload)
        return httpx.Response(status, json=payload)


def request_json(request: httpx.Request) -> Any:
    """Decode the JSON body of a recorded request."""
    return json.loads(request.content)


def wrapper_entry(
    name: str,
    server_id: str = "",
    meta_id: str = SERVER_ID,
    version: str = "1.0.0",
) -> dict[str, Any]:
    """A list/detail element in the current wrapper shape."""
    server: dict[str, Any] = {
        "name": name,
        "description": f"{name} server",
        "repository": {"url": f"https://github.com/example/{name}", "source": "github"},
        "version": version,
    }
    if server_id:
        server["id"] = server_id
    return {
        "server": server,
        "_meta": {
            "io.modelcontextprotocol.registry/official": {
                "serverId": meta_id,
                "versionId": "0b6c1e0e-2b4f-4f0e-9d51-7c4c9a1d2e3f",
                "publishedAt": "2025-09-01T10:00:00Z",
                "isLatest": True,
            }
        },
    }


def legacy_entry(name: str, server_id: str = SERVER_ID, meta_id: str = "") -> dict[str, Any]:
    """A list/detail element in the legacy flat shape."""
    entry: dict[str, Any] = {
        "id": server_id,
        "name": name,
        "description": f"{name} server",
        "repository": {"url": f"https://github.com/example/{name}", "source": "github"},
        "version_detail": {
            "version": "0.9.0",
            "release_date": "2025-03-01T00:00:00Z",
            "is_latest": True,
        },
    }
    if meta_id:
        entry["_meta"] = {
            "io.modelcontextprotocol.registry/official": {"serverId": meta_id},
        }
    return entry

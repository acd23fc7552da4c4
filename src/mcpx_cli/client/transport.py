"""Authenticated HTTP transport with the anonymous auth-fallback retry.

This module provides :class:`AuthenticatedTransport`, the only component that
talks to the registry over HTTP (token issuance aside). It wraps
:class:`httpx.Client` and layers on:

- **Token resolution** -- an explicit ``--token`` wins; otherwise the
  currently valid credential from the
  :class:`~mcpx_cli.auth.credential_store.CredentialStore` is used. An expired
  credential resolves to no token at all.
- **Header policy** -- ``Authorization: Bearer`` only when a token was
  resolved, ``Content-Type: application/json`` only when a body is sent, and
  a fixed ``User-Agent`` on every request.
- **Auth-fallback retry** -- for mutating requests sent without any token,
  a ``422`` "missing Authorization header" validation error triggers one
  anonymous login and exactly one retry of the original request.

Network failures become :class:`~mcpx_cli.exceptions.TransportError` and are
never retried. Non-2xx responses are returned as-is; mapping them to
exceptions is the caller's business (see
:class:`~mcpx_cli.client.registry.RegistryClient`).
"""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx

from mcpx_cli import __version__
from mcpx_cli.auth.credential_store import CredentialStore
from mcpx_cli.auth.manager import ANONYMOUS, AuthMethodRegistry
from mcpx_cli.exceptions import TransportError
from mcpx_cli.output import get_output

DEFAULT_TIMEOUT = 30.0
USER_AGENT = f"mcpx-cli/{__version__}"

# Status and error location the registry uses for a missing bearer token.
MISSING_AUTH_STATUS = 422
MISSING_AUTH_LOCATION = "header.Authorization"


def is_missing_authorization(response: httpx.Response) -> bool:
    """Return ``True`` for the registry's "missing authorization" validation error.

    The registry answers a mutating request without a bearer token with::

        HTTP 422
        {"title": "Unprocessable Entity", "status": 422,
         "detail": "validation failed",
         "errors": [{"message": "required header parameter is missing",
                     "location": "header.Authorization", "value": ""}]}

    Any other status, a non-JSON body, or an error list that does not point
    at the ``Authorization`` header is not recognised.
    """
    if response.status_code != MISSING_AUTH_STATUS:
        return False
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return False
    if not isinstance(body, dict):
        return False
    errors = body.get("errors")
    if not isinstance(errors, list):
        return False
    for item in errors:
        if not isinstance(item, dict):
            continue
        location = item.get("location")
        if isinstance(location, str) and location.lower() == MISSING_AUTH_LOCATION.lower():
            return True
        message = item.get("message")
        if isinstance(message, str) and "authorization" in message.lower():
            return True
    return False


class AuthenticatedTransport:
    """Synchronous registry transport with credential resolution.

    Must be used as a context manager so that the underlying
    :class:`httpx.Client` is opened and closed.

    Args:
        base_url: Registry base URL without trailing slash.
        store: Credential store consulted for the stored token.
        auth_registry: Registry of authentication methods; its ``anonymous``
            method is used by the auth-fallback retry.
        timeout: Request timeout in seconds.
        http_transport: Optional httpx transport (tests pass an
            :class:`httpx.MockTransport`).

    Example::

        with AuthenticatedTransport(url, store, registry) as transport:
            response = transport.request("POST", "/v0/publish", body=doc, mutating=True)
    """

    def __init__(
        self,
        base_url: str,
        store: CredentialStore,
        auth_registry: AuthMethodRegistry,
        timeout: float = DEFAULT_TIMEOUT,
        http_transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        self._store = store
        self._auth_registry = auth_registry
        self._timeout = timeout
        self._http_transport = http_transport
        self._client: Optional[httpx.Client] = None

    @property
    def store(self) -> CredentialStore:
        return self._store

    @property
    def auth_registry(self) -> AuthMethodRegistry:
        return self._auth_registry

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> AuthenticatedTransport:
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._http_transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request method
    # ------------------------------------------------------------------ #

    def resolve_token(self, explicit_token: Optional[str] = None) -> str:
        """Return the token to send, or ``""`` when there is none.

        Raises:
            CredentialStoreError: If the credential file exists but is unreadable.
        """
        if explicit_token:
            return explicit_token
        return self._store.load().token

    def request(
        self,
        method: str,
        path: str,
        body: Optional[Any] = None,
        explicit_token: Optional[str] = None,
        params: Optional[dict[str, Any]] = None,
        mutating: bool = False,
    ) -> httpx.Response:
        """Send one logical request to the registry.

        Args:
            method: HTTP method.
            path: URL path appended to the base URL.
            body: JSON-serialisable request body, if any.
            explicit_token: Token given on the command line; overrides the store.
            params: Query parameters.
            mutating: Whether this is a publish/update/delete request, which
                is eligible for the auth-fallback retry.

        Returns:
            The final :class:`httpx.Response`, whatever its status.

        Raises:
            TransportError: On network or timeout failure.
            AuthError: If the anonymous login of the fallback fails.
            CredentialStoreError: If the credential file is unreadable or the
                fallback credential cannot be saved.
        """
        output = get_output()
        token = self.resolve_token(explicit_token)
        response = self._send(method, path, body, token, params)

        if not mutating or token or not is_missing_authorization(response):
            return response

        output.debug(
            f"{method.upper()} {path} rejected for missing authorization; "
            "logging in anonymously and retrying once"
        )
        credential = self._auth_registry.login(ANONYMOUS)
        response = self._send(method, path, body, credential.token, params)
        if not response.is_success:
            output.debug(f"Retry after anonymous login failed with HTTP {response.status_code}")
        return response

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _build_headers(self, token: str, has_body: bool) -> dict[str, str]:
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        if has_body:
            headers["Content-Type"] = "application/json"
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _send(
        self,
        method: str,
        path: str,
        body: Optional[Any],
        token: str,
        params: Optional[dict[str, Any]],
    ) -> httpx.Response:
        assert self._client is not None, "Transport not initialised -- use as context manager"

        kwargs: dict[str, Any] = {
            "method": method,
            "url": path,
            "headers": self._build_headers(token, body is not None),
        }
        if params:
            kwargs["params"] = params
        if body is not None:
            kwargs["content"] = json.dumps(body).encode("utf-8")

        output = get_output()
        output.debug(f"{method.upper()} {path} ({'with' if token else 'no'} token)")
        try:
            response = self._client.request(**kwargs)
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"Request to {self._base_url}{path} timed out after {self._timeout:g}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Request to {self._base_url}{path} failed: {exc}") from exc
        output.debug(f"HTTP {response.status_code} {response.reason_phrase or ''}".rstrip())
        return response

"""Anonymous token issuance.

This module provides :class:`AnonymousAuthMethod`, which implements the
``anonymous`` method: a ``POST`` to the registry's unauthenticated token
endpoint (``/v0/auth/none``) returns a bearer token that may publish under
the anonymous namespace.

The endpoint answers with ``{"registry_token": "...", "expires_at": <unix>}``
(older releases use ``token`` instead of ``registry_token``). When the
server does not declare an expiry, the credential is given one hour.

See Also:
    :class:`mcpx_cli.auth.base.AuthMethod` for the base interface.
"""

from __future__ import annotations

import json
import time
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from mcpx_cli import __version__
from mcpx_cli.auth.base import AuthMethod
from mcpx_cli.exceptions import AuthError
from mcpx_cli.models import Credential, TokenResponse

ANONYMOUS_TOKEN_PATH = "/v0/auth/none"
DEFAULT_TOKEN_LIFETIME = 3600


class AnonymousAuthMethod(AuthMethod):
    """Obtain a token from the registry without credentials.

    Args:
        base_url: Registry base URL.
        timeout: Request timeout in seconds.
        http_transport: Optional httpx transport used instead of the network.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        http_transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._http_transport = http_transport

    @property
    def method_id(self) -> str:
        return "anonymous"

    def authenticate(self, domain: Optional[str] = None) -> Credential:
        """Request a token from the anonymous issuance endpoint.

        Returns:
            A :class:`~mcpx_cli.models.Credential` with ``method="anonymous"``.

        Raises:
            AuthError: On network failure, a non-2xx status, or a response
                without a token.
        """
        data = self._request_token()

        try:
            token = TokenResponse.model_validate(data)
        except ValidationError as exc:
            raise AuthError(f"Anonymous authentication returned an invalid token response: {exc}") from exc

        if not token.value:
            raise AuthError(
                "Anonymous authentication response has no token. "
                f"Available fields: {', '.join(data.keys()) or '(none)'}"
            )

        expires_at = token.expires_at or int(time.time()) + DEFAULT_TOKEN_LIFETIME
        return Credential(method=self.method_id, token=token.value, expires_at=expires_at)

    def _request_token(self) -> dict[str, Any]:
        """POST to the token endpoint and return the decoded JSON object."""
        try:
            with httpx.Client(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._http_transport,
            ) as client:
                response = client.post(
                    ANONYMOUS_TOKEN_PATH,
                    headers={
                        "Accept": "application/json",
                        "User-Agent": f"mcpx-cli/{__version__}",
                    },
                )
        except httpx.HTTPError as exc:
            raise AuthError(f"Anonymous authentication request failed: {exc}") from exc

        if not response.is_success:
            raise AuthError(
                f"Anonymous authentication failed with status {response.status_code}: "
                f"{response.text}"
            )

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise AuthError(
                f"Anonymous authentication returned invalid JSON: {response.text[:200]}"
            ) from exc
        if not isinstance(data, dict):
            raise AuthError("Anonymous authentication returned a non-object JSON body")
        return data

"""Authentication methods that are registered but not implemented.

GitHub OAuth (device flow), GitHub OIDC (Actions identity token), DNS and
HTTP domain verification all need an interactive or externally driven
exchange with the registry. They are registered so that the CLI can name
them, and each fails with an :class:`~mcpx_cli.exceptions.AuthError`
instead of pretending to succeed.
"""

from __future__ import annotations

from typing import Optional

from mcpx_cli.auth.base import AuthMethod
from mcpx_cli.exceptions import AuthError
from mcpx_cli.models import Credential


class UnsupportedAuthMethod(AuthMethod):
    """An :class:`~mcpx_cli.auth.base.AuthMethod` that always refuses.

    Args:
        method_id: The identifier to register under (e.g. ``"github-oauth"``).
    """

    def __init__(self, method_id: str) -> None:
        self._method_id = method_id

    @property
    def method_id(self) -> str:
        return self._method_id

    def authenticate(self, domain: Optional[str] = None) -> Credential:
        target = f" for domain '{domain}'" if domain else ""
        raise AuthError(
            f"Authentication method '{self._method_id}'{target} is not supported "
            "by this client. Use --method anonymous, or pass a token obtained "
            "elsewhere with --token."
        )

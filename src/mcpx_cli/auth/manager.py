"""Auth method registry -- dispatch by method identifier.

The :class:`AuthMethodRegistry` maps method identifiers (``"anonymous"``,
``"github-oauth"``, ``"github-oidc"``, ``"dns"``, ``"http"``) to concrete
:class:`~mcpx_cli.auth.base.AuthMethod` instances. :meth:`~AuthMethodRegistry.login`
mints a credential and persists it through the
:class:`~mcpx_cli.auth.credential_store.CredentialStore`.

For most use cases, call :func:`create_default_registry` to get a registry
pre-loaded with every built-in method.

See Also:
    :class:`~mcpx_cli.client.transport.AuthenticatedTransport` -- triggers
    anonymous login during the auth-fallback retry.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from mcpx_cli.auth.base import AuthMethod
from mcpx_cli.auth.credential_store import CredentialStore
from mcpx_cli.exceptions import AuthError
from mcpx_cli.models import Credential

logger = logging.getLogger(__name__)

ANONYMOUS = "anonymous"
GITHUB_OAUTH = "github-oauth"
GITHUB_OIDC = "github-oidc"
DNS = "dns"
HTTP = "http"


class AuthMethodRegistry:
    """Registry and dispatcher for authentication methods.

    An unknown method identifier is a configuration error reported
    immediately; nothing is attempted.

    Args:
        store: Where :meth:`login` persists the minted credential.

    Example::

        registry = AuthMethodRegistry(store)
        registry.register(AnonymousAuthMethod("http://localhost:8080"))
        credential = registry.login("anonymous")
    """

    def __init__(self, store: CredentialStore) -> None:
        self._store = store
        self._methods: dict[str, AuthMethod] = {}

    @property
    def store(self) -> CredentialStore:
        """The credential store used by :meth:`login`."""
        return self._store

    def register(self, method: AuthMethod) -> None:
        """Register *method* under its :attr:`~AuthMethod.method_id`.

        A method already registered under the same identifier is replaced.
        """
        self._methods[method.method_id] = method

    def get_method(self, method_id: str) -> AuthMethod:
        """Retrieve a registered method by identifier.

        Raises:
            AuthError: If no method is registered for *method_id*.
        """
        method = self._methods.get(method_id)
        if method is None:
            available = ", ".join(self.list_methods()) or "(none)"
            raise AuthError(
                f"Unknown authentication method '{method_id}'. "
                f"Available methods: {available}"
            )
        return method

    def authenticate(self, method_id: str, domain: Optional[str] = None) -> Credential:
        """Mint a credential with the named method without persisting it."""
        return self.get_method(method_id).authenticate(domain=domain)

    def login(self, method_id: str, domain: Optional[str] = None) -> Credential:
        """Mint a credential with the named method and save it.

        The saved credential replaces whatever was stored before. A *domain*
        is recorded on the credential when the method did not set one.

        Raises:
            AuthError: If the method is unknown or fails.
            CredentialStoreError: If the credential cannot be saved.
        """
        credential = self.authenticate(method_id, domain=domain)
        if domain and not credential.domain:
            credential = credential.model_copy(update={"domain": domain})
        self._store.save(credential)
        logger.debug("Saved %s credential to %s", method_id, self._store.path)
        return credential

    def list_methods(self) -> list[str]:
        """Return the identifiers of all registered methods, sorted."""
        return sorted(self._methods)


def create_default_registry(
    base_url: str,
    store: CredentialStore,
    timeout: float = 30.0,
    http_transport: Optional[httpx.BaseTransport] = None,
) -> AuthMethodRegistry:
    """Create an :class:`AuthMethodRegistry` pre-loaded with all built-in methods.

    The following methods are registered:

    - ``anonymous`` -- token from the registry's unauthenticated endpoint.
    - ``github-oauth``, ``github-oidc``, ``dns``, ``http`` -- interactive or
      externally driven flows this client does not implement; they fail with
      a descriptive :class:`~mcpx_cli.exceptions.AuthError`.

    Args:
        base_url: Registry base URL.
        store: Credential store used by :meth:`AuthMethodRegistry.login`.
        timeout: Request timeout for token issuance, in seconds.
        http_transport: Optional httpx transport (tests inject a
            :class:`httpx.MockTransport`).
    """
    from mcpx_cli.plugins.anonymous import AnonymousAuthMethod
    from mcpx_cli.plugins.unsupported import UnsupportedAuthMethod

    registry = AuthMethodRegistry(store)
    registry.register(
        AnonymousAuthMethod(base_url, timeout=timeout, http_transport=http_transport)
    )
    for method_id in (GITHUB_OAUTH, GITHUB_OIDC, DNS, HTTP):
        registry.register(UnsupportedAuthMethod(method_id))
    return registry

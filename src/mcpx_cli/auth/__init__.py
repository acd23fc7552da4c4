"""Credential lifecycle for mcpx-cli.

This package owns everything about the single user credential:

- :class:`AuthMethod` -- abstract base class for token-minting strategies.
- :class:`AuthMethodRegistry` -- maps method identifiers to
  :class:`AuthMethod` instances and persists what they mint.
- :func:`create_default_registry` -- factory that returns a registry
  pre-loaded with all built-in methods.
- :class:`CredentialStore` -- the file-backed credential with its expiry policy.

Typical usage::

    from mcpx_cli.auth import CredentialStore, create_default_registry

    store = CredentialStore()
    registry = create_default_registry("http://localhost:8080", store)
    credential = registry.login("anonymous")
"""

from mcpx_cli.auth.base import AuthMethod
from mcpx_cli.auth.credential_store import CredentialStore
from mcpx_cli.auth.manager import AuthMethodRegistry, create_default_registry

__all__ = [
    "AuthMethod",
    "AuthMethodRegistry",
    "CredentialStore",
    "create_default_registry",
]

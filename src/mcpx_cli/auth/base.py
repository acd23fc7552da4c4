"""Abstract base class for authentication methods.

Every way of obtaining a registry token (anonymous, GitHub OAuth, GitHub
OIDC, DNS, HTTP) is an :class:`AuthMethod` with a single capability,
:meth:`~AuthMethod.authenticate`, which returns a fresh
:class:`~mcpx_cli.models.Credential` or raises
:class:`~mcpx_cli.exceptions.AuthError`.

To implement a new method, subclass :class:`AuthMethod`, set the
:attr:`~AuthMethod.method_id` property, and implement
:meth:`~AuthMethod.authenticate`. Persisting the result is the job of
:class:`~mcpx_cli.auth.manager.AuthMethodRegistry`, not of the method.

See Also:
    :mod:`mcpx_cli.auth.manager` for registration and dispatch.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from mcpx_cli.models import Credential


class AuthMethod(ABC):
    """Abstract base class for authentication methods.

    Methods are registered with
    :class:`~mcpx_cli.auth.manager.AuthMethodRegistry` and looked up by
    their :attr:`method_id` at runtime.
    """

    @property
    @abstractmethod
    def method_id(self) -> str:
        """Return the identifier this method is registered under.

        Returns:
            A lowercase string such as ``"anonymous"`` or ``"github-oauth"``.
        """
        ...

    @abstractmethod
    def authenticate(self, domain: Optional[str] = None) -> Credential:
        """Obtain a fresh credential from the registry.

        Args:
            domain: Domain to prove ownership of, for the ``dns`` and
                ``http`` methods. Ignored by the others.

        Returns:
            A well-formed :class:`~mcpx_cli.models.Credential` whose
            ``method`` equals :attr:`method_id`.

        Raises:
            AuthError: If no credential could be obtained.
        """
        ...

"""Registry client for mcpx-cli.

- :class:`AuthenticatedTransport` -- blocking transport backed by
  :class:`httpx.Client`, with token resolution and the one-shot anonymous
  auth-fallback retry for mutating requests.
- :class:`RegistryClient` -- typed registry operations on top of the
  transport.
- :mod:`mcpx_cli.client.normalizer` -- reconciles every known response shape
  into the canonical models.

Example::

    from mcpx_cli.client import AuthenticatedTransport, RegistryClient

    with AuthenticatedTransport(url, store, auth_registry) as transport:
        server = RegistryClient(transport).get_server("58031f85-...")
"""

from mcpx_cli.client.registry import RegistryClient
from mcpx_cli.client.transport import AuthenticatedTransport

__all__ = ["AuthenticatedTransport", "RegistryClient"]

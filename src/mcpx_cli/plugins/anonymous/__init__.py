"""Anonymous authentication method.

Implements the ``anonymous`` method, which asks the registry for a
short-lived token without presenting any identity.

See Also:
    :class:`~mcpx_cli.plugins.anonymous.plugin.AnonymousAuthMethod`
    :mod:`mcpx_cli.auth.base` for the method interface contract.
"""

from mcpx_cli.plugins.anonymous.plugin import AnonymousAuthMethod

__all__ = ["AnonymousAuthMethod"]

"""Built-in authentication methods for mcpx-cli.

Each sub-package implements one :class:`~mcpx_cli.auth.base.AuthMethod`:

* :mod:`~mcpx_cli.plugins.anonymous` -- token from the registry's
  unauthenticated issuance endpoint.
* :mod:`~mcpx_cli.plugins.unsupported` -- placeholder for the GitHub OAuth,
  GitHub OIDC, DNS and HTTP flows, which always fail with a descriptive
  :class:`~mcpx_cli.exceptions.AuthError`.

Methods are wired together by
:func:`~mcpx_cli.auth.manager.create_default_registry`.
"""

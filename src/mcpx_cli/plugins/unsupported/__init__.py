"""Placeholder for authentication methods this client does not implement."""

from mcpx_cli.plugins.unsupported.plugin import UnsupportedAuthMethod

__all__ = ["UnsupportedAuthMethod"]

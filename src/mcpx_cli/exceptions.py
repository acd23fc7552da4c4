"""Exception hierarchy for mcpx-cli.

All exceptions inherit from :class:`McpxError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`mcpx_cli.exit_codes`.
The top-level error handler in :func:`mcpx_cli.app.main` catches
``McpxError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    McpxError (exit 1)
    +-- InvalidUsageError     (exit 2)
    +-- AuthError             (exit 3)
    +-- APIError              (exit 5)
    |   +-- NotFoundError     (exit 4)
    +-- TransportError        (exit 6)
    +-- DecodeError           (exit 7)
    +-- CredentialStoreError  (exit 8)
    +-- ConfigError           (exit 1)
"""

from __future__ import annotations

from typing import Optional

from mcpx_cli.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_CREDENTIAL_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
)


class McpxError(Exception):
    """Base exception for all mcpx-cli errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`mcpx_cli.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(McpxError):
    """Raised for invalid CLI arguments or an unusable publish/update document."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(McpxError):
    """Raised when an authentication method cannot mint a credential.

    Also raised for unknown or unsupported method identifiers, before any
    network traffic happens.
    """

    exit_code = EXIT_AUTH_FAILURE


class APIError(McpxError):
    """Raised when the registry answers with a non-2xx status.

    The message always starts with ``HTTP <status>`` followed by the raw
    response body so that scripts can branch on it.

    Args:
        status_code: The HTTP status returned by the registry.
        body: The raw (undecoded) response body.
        context: Optional prefix naming the failed operation.
    """

    exit_code = EXIT_API_ERROR

    def __init__(self, status_code: int, body: str, context: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        message = f"HTTP {status_code}: {body}" if body else f"HTTP {status_code}"
        if context:
            message = f"{context}: {message}"
        super().__init__(message)


class NotFoundError(APIError):
    """Raised when the registry returns HTTP 404 (entry not found)."""

    exit_code = EXIT_NOT_FOUND


class TransportError(McpxError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Transport errors are never retried automatically.
    """

    exit_code = EXIT_CONNECTION_ERROR


class DecodeError(McpxError):
    """Raised when a registry response body is not syntactically valid JSON."""

    exit_code = EXIT_DECODE_ERROR


class CredentialStoreError(McpxError):
    """Raised when the credential file exists but cannot be read, parsed, or written."""

    exit_code = EXIT_CREDENTIAL_ERROR


class ConfigError(McpxError):
    """Raised for configuration problems (bad base URL, unusable config path)."""

    exit_code = EXIT_GENERIC_FAILURE

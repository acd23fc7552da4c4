"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~mcpx_cli.exceptions.McpxError` subclass.
Scripts wrapping ``mcpx-cli`` can branch on the exit code without parsing
stderr.

Example::

    $ mcpx-cli publish server.json
    $ echo $?
    5   # EXIT_API_ERROR -- the registry rejected the request
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or an unreadable input file."""

EXIT_AUTH_FAILURE = 3
"""An authentication method failed to produce a credential."""

EXIT_NOT_FOUND = 4
"""The requested registry entry was not found (HTTP 404)."""

EXIT_API_ERROR = 5
"""The registry answered with a non-2xx status other than 404."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_DECODE_ERROR = 7
"""The registry returned a body that is not valid JSON."""

EXIT_CREDENTIAL_ERROR = 8
"""The credential file could not be read or written."""

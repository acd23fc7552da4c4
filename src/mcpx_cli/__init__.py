"""mcpx-cli -- command-line client for the MCP server registry API.

The package talks to a registry server over HTTP: it authenticates, lists,
fetches, publishes, updates and deletes server entries, and renders the
results as text or JSON.

Typical workflow::

    mcpx-cli login --method anonymous
    mcpx-cli servers --limit 10
    mcpx-cli publish server.json

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models for credentials, settings and registry entities.
    config: Settings resolution, credential path and atomic file writes.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.3.0"

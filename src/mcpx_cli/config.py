"""Settings resolution, file locations, and atomic writes.

This module handles all persistent configuration for mcpx-cli:

* **Credential path** -- a single file, ``~/.mcpx-cli-config.json`` by
  default (see :func:`default_credential_path`). The file itself is owned
  by :class:`~mcpx_cli.auth.credential_store.CredentialStore`.
* **Data directory** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.mcpx-cli/`` elsewhere. Only crash logs live there.
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  environment variables, and defaults into a
  :class:`~mcpx_cli.models.ClientSettings`.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) so a crash never leaves a half-written file behind.
"""

from __future__ import annotations

import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from mcpx_cli.exceptions import ConfigError
from mcpx_cli.models import ClientSettings

_APP_NAME = "mcpx-cli"
CREDENTIAL_FILENAME = ".mcpx-cli-config.json"

DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_TIMEOUT = 30.0

ENV_BASE_URL = "MCPX_BASE_URL"
ENV_CONFIG = "MCPX_CONFIG"


# --- Paths ---


def default_credential_path() -> Path:
    """Return ``<home>/.mcpx-cli-config.json``."""
    return Path.home() / CREDENTIAL_FILENAME


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/mcpx-cli/`` (default ``~/.local/share/mcpx-cli/``).
    On macOS/Windows: ``~/.mcpx-cli/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. When *mode* is
    given it is applied to the temp file before any content is written, so
    the final file never exists with looser permissions. On any failure the
    temp file is cleaned up and the previous content of *path* is untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Precedence resolution ---


def normalize_base_url(url: str) -> str:
    """Strip trailing slashes and reject URLs without an http(s) scheme.

    Raises:
        ConfigError: If *url* is empty or not an http(s) URL.
    """
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        raise ConfigError(f"Invalid base URL '{url}': expected http:// or https://")
    return url.rstrip("/")


def resolve_settings(
    cli_base_url: Optional[str] = None,
    cli_config_path: Optional[str] = None,
) -> ClientSettings:
    """Resolve settings with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``--base-url``, ``--config``)
        2. Environment variables (``MCPX_BASE_URL``, ``MCPX_CONFIG``)
        3. Defaults (``http://localhost:8080``, ``~/.mcpx-cli-config.json``)

    Returns:
        The effective :class:`~mcpx_cli.models.ClientSettings`.

    Raises:
        ConfigError: If the resolved base URL is not usable.
    """
    base_url = cli_base_url or os.environ.get(ENV_BASE_URL) or DEFAULT_BASE_URL
    config_path = cli_config_path or os.environ.get(ENV_CONFIG)
    credential_path = (
        Path(config_path).expanduser() if config_path else default_credential_path()
    )
    return ClientSettings(
        base_url=normalize_base_url(base_url),
        timeout=DEFAULT_TIMEOUT,
        credential_path=str(credential_path),
    )

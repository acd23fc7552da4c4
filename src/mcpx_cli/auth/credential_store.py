"""Persistent single-user credential store.

Stores the current :class:`~mcpx_cli.models.Credential` in one JSON file,
``~/.mcpx-cli-config.json`` unless another path is injected. Files are
written atomically via :func:`~mcpx_cli.config.atomic_write` with ``0o600``
permissions so that tokens are never world-readable, even momentarily.

On-disk format::

    {"method": "anonymous", "token": "...", "domain": null, "expires_at": 1735689600}

There is no cross-process locking: concurrent invocations race on the file
and the last writer wins.

See Also:
    :class:`~mcpx_cli.auth.manager.AuthMethodRegistry` -- mints and saves credentials.
    :class:`~mcpx_cli.client.transport.AuthenticatedTransport` -- reads them.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from mcpx_cli.config import atomic_write, default_credential_path
from mcpx_cli.exceptions import CredentialStoreError
from mcpx_cli.models import Credential

logger = logging.getLogger(__name__)


class CredentialStore:
    """Read/write the credential file.

    ``load`` never reports a missing or expired credential as an error: both
    come back as the zero-value :class:`~mcpx_cli.models.Credential`. Only
    an unreadable or unparseable file raises
    :class:`~mcpx_cli.exceptions.CredentialStoreError`. An expired file is
    left on disk; :meth:`clear` is the only operation that removes it.

    Args:
        path: Location of the credential file. Defaults to
            :func:`~mcpx_cli.config.default_credential_path`.

    Example::

        store = CredentialStore(tmp_path / "creds.json")
        store.save(Credential(method="anonymous", token="tok123"))
        assert store.load().token == "tok123"
    """

    def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
        self._path = Path(path) if path is not None else default_credential_path()

    @property
    def path(self) -> Path:
        """The filesystem path of the credential file."""
        return self._path

    def save(self, credential: Credential) -> None:
        """Persist *credential* atomically with ``0o600`` permissions.

        Raises:
            CredentialStoreError: If the file cannot be written.
        """
        text = json.dumps(credential.model_dump(mode="json"), indent=2) + "\n"
        try:
            atomic_write(self._path, text, mode=0o600)
        except OSError as exc:
            raise CredentialStoreError(
                f"Cannot write credential file {self._path}: {exc}"
            ) from exc

    def read(self) -> Credential:
        """Return the stored credential without applying the expiry policy.

        Returns:
            The stored :class:`~mcpx_cli.models.Credential`, or the zero
            value when the file does not exist.

        Raises:
            CredentialStoreError: If the file exists but is unreadable or
                not a valid credential document.
        """
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return Credential()
        except (OSError, UnicodeDecodeError) as exc:
            raise CredentialStoreError(
                f"Cannot read credential file {self._path}: {exc}"
            ) from exc

        try:
            data = json.loads(text)
            return Credential.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as exc:
            raise CredentialStoreError(
                f"Invalid credential file {self._path}: {exc}"
            ) from exc

    def load(self) -> Credential:
        """Return the stored credential if it is still valid.

        Returns:
            The stored credential, or the zero value when the file is absent
            or the credential is within :data:`~mcpx_cli.models.CREDENTIAL_EXPIRY_BUFFER`
            seconds of its expiry (or past it).

        Raises:
            CredentialStoreError: If the file exists but cannot be loaded.
        """
        credential = self.read()
        if not credential.is_valid():
            logger.debug("Stored %s credential has expired", credential.method)
            return Credential()
        return credential

    def clear(self) -> None:
        """Delete the credential file.

        A file that is already absent counts as success.

        Raises:
            CredentialStoreError: If the file exists but cannot be removed.
        """
        try:
            os.unlink(self._path)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise CredentialStoreError(
                f"Cannot remove credential file {self._path}: {exc}"
            ) from exc

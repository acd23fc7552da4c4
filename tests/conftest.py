"""Shared test fixtures for mcpx-cli.

Provides an isolated credential file and environment, output-state
management, and a :class:`~helpers.FakeRegistry` per test. These fixtures
are discovered by pytest and available to every test module.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from helpers import FakeRegistry
from mcpx_cli.auth import CredentialStore
from mcpx_cli.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and log handlers after every test.

    The manager holds references to the sys.stdout/sys.stderr objects that
    existed when it was created; CliRunner swaps those per invocation, and
    the log handler installed by the root callback shares its console.
    """
    yield
    reset_output()
    logger = logging.getLogger("mcpx_cli")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests away from the real home directory and environment."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("MCPX_BASE_URL", raising=False)
    monkeypatch.delenv("MCPX_CONFIG", raising=False)


# ---------------------------------------------------------------------------
# Credential fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def credential_path(tmp_path: Path) -> Path:
    return tmp_path / "mcpx-cli-config.json"


@pytest.fixture
def store(credential_path: Path) -> CredentialStore:
    """A CredentialStore backed by a file under tmp_path."""
    return CredentialStore(credential_path)


# ---------------------------------------------------------------------------
# Registry fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry()


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet, colourless PLAIN output manager."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Typer CLI test runner."""
    return CliRunner()

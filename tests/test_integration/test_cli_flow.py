"""Integration tests for the mcpx-cli command line.

Every invocation goes through the real root app, so settings resolution,
output installation, error-to-exit-code mapping and the transport are all
exercised. The network is replaced by a :class:`~helpers.FakeRegistry`
injected through ``ctx.obj``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from mcpx_cli import __version__
from mcpx_cli.app import app
from mcpx_cli.auth import CredentialStore
from mcpx_cli.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_CREDENTIAL_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SUCCESS,
)
from mcpx_cli.models import Credential

from helpers import (
    MISSING_AUTH_BODY,
    REGISTRY_URL,
    SERVER_ID,
    FakeRegistry,
    legacy_entry,
    request_json,
    wrapper_entry,
)


@pytest.fixture
def run(cli_runner: CliRunner, fake_registry: FakeRegistry, credential_path: Path):
    """Invoke the CLI against the fake registry and an isolated credential file."""

    def _run(*args: str) -> Any:
        argv = ["--base-url", REGISTRY_URL, "--config", str(credential_path), "--no-color", *args]
        return cli_runner.invoke(app, argv, obj={"http_transport": fake_registry.transport})

    return _run


def _detail_payload() -> dict[str, Any]:
    entry = wrapper_entry("io.github.example/weather", meta_id=SERVER_ID)
    entry["server"]["packages"] = [
        {
            "registryType": "npm",
            "identifier": "@example/weather",
            "version": "1.0.0",
            "runtimeHint": "npx",
            "environmentVariables": [{"name": "API_KEY", "description": "Weather API key"}],
        }
    ]
    entry["server"]["remotes"] = [{"type": "sse", "url": "https://weather.example.com/sse"}]
    return entry


# ---------------------------------------------------------------------------
# Root options
# ---------------------------------------------------------------------------


class TestRootOptions:
    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == EXIT_SUCCESS
        assert f"mcpx-cli {__version__}" in result.output

    def test_invalid_base_url(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["--base-url", "ftp://registry", "health"])
        assert result.exit_code != EXIT_SUCCESS
        assert "Invalid base URL" in result.output

    def test_env_base_url(
        self,
        cli_runner: CliRunner,
        fake_registry: FakeRegistry,
        credential_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("MCPX_BASE_URL", "http://env-registry.test/")
        fake_registry.add("GET", "/v0/health", 200, {"status": "ok"})
        result = cli_runner.invoke(
            app,
            ["--config", str(credential_path), "health"],
            obj={"http_transport": fake_registry.transport},
        )
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert fake_registry.requests[0].url.host == "env-registry.test"


# ---------------------------------------------------------------------------
# Read commands
# ---------------------------------------------------------------------------


class TestHealthCommand:
    def test_text(self, run, fake_registry: FakeRegistry) -> None:
        fake_registry.add("GET", "/v0/health", 200, {"status": "ok", "github_client_id": "Iv1.abc"})
        result = run("health")
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert "Status: ok" in result.stdout
        assert "GitHub Client ID: Iv1.abc" in result.stdout

    def test_json(self, run, fake_registry: FakeRegistry) -> None:
        fake_registry.add("GET", "/v0/health", 200, {"status": "ok"})
        result = run("--json", "health")
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert json.loads(result.stdout)["status"] == "ok"

    def test_server_error(self, run, fake_registry: FakeRegistry) -> None:
        fake_registry.add("GET", "/v0/health", 500, "down")
        result = run("health")
        assert result.exit_code == EXIT_API_ERROR
        assert "HTTP 500: down" in result.output


class TestServersCommand:
    def _script(self, registry: FakeRegistry, **metadata: Any) -> None:
        registry.add(
            "GET",
            "/v0/servers",
            200,
            {
                "servers": [wrapper_entry("io.github.example/weather"), legacy_entry("news")],
                "metadata": metadata,
            },
        )

    def test_table(self, run, fake_registry: FakeRegistry) -> None:
        self._script(fake_registry, count=2)
        result = run("servers")
        assert result.exit_code == EXIT_SUCCESS, result.output
        lines = result.stdout.splitlines()
        assert lines[0] == "ID\tName\tVersion\tStatus\tDescription"
        assert lines[1].startswith(f"{SERVER_ID}\tio.github.example/weather\t1.0.0")
        assert lines[2].startswith(f"{SERVER_ID}\tnews\t0.9.0")
        assert fake_registry.requests[0].url.params["limit"] == "30"

    def test_next_cursor_hint(self, run, fake_registry: FakeRegistry) -> None:
        self._script(fake_registry, nextCursor="page-2")
        result = run("servers", "--limit", "2")
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert "Next cursor: page-2" in result.output
        assert "--cursor page-2" in result.output
        assert fake_registry.requests[0].url.params["limit"] == "2"

    def test_json(self, run, fake_registry: FakeRegistry) -> None:
        self._script(fake_registry, count=2)
        result = run("servers", "--json")
        assert result.exit_code == EXIT_SUCCESS, result.output
        data = json.loads(result.stdout)
        assert [s["name"] for s in data["servers"]] == ["io.github.example/weather", "news"]
        assert data["servers"][0]["id"] == SERVER_ID
        assert data["metadata"]["count"] == 2

    def test_detailed_requires_json(self, run, fake_registry: FakeRegistry) -> None:
        result = run("servers", "--detailed")
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "--detailed requires --json" in result.output
        assert fake_registry.requests == []

    def test_detailed(self, run, fake_registry: FakeRegistry) -> None:
        fake_registry.add(
            "GET", "/v0/servers", 200, {"servers": [wrapper_entry("io.github.example/weather")]}
        )
        fake_registry.add("GET", f"/v0/servers/{SERVER_ID}", 200, _detail_payload())
        result = run("servers", "--json", "--detailed")
        assert result.exit_code == EXIT_SUCCESS, result.output
        (server,) = json.loads(result.stdout)["servers"]
        assert server["packages"][0]["identifier"] == "@example/weather"
        assert server["remotes"][0]["url"] == "https://weather.example.com/sse"

    def test_limit_must_be_positive(self, run) -> None:
        result = run("servers", "--limit", "0")
        assert result.exit_code == EXIT_INVALID_USAGE


class TestServerCommand:
    def test_text(self, run, fake_registry: FakeRegistry) -> None:
        fake_registry.add("GET", f"/v0/servers/{SERVER_ID}", 200, _detail_payload())
        result = run("server", SERVER_ID)
        assert result.exit_code == EXIT_SUCCESS, result.output
        out = result.stdout
        assert f"ID: {SERVER_ID}" in out
        assert "Name: io.github.example/weather" in out
        assert "Repository: https://github.com/example/io.github.example/weather (github)" in out
        assert "Registry: npm" in out
        assert "Runtime Hint: npx" in out
        assert "- API_KEY: Weather API key" in out
        assert "Transport: sse" in out

    def test_by_name_and_version(self, run, fake_registry: FakeRegistry) -> None:
        fake_registry.add(
            "GET",
            "/v0/servers/io.github.example/weather/versions/1.0.0",
            200,
            _detail_payload(),
        )
        result = run("server", "io.github.example/weather", "--version", "1.0.0", "--json")
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert json.loads(result.stdout)["id"] == SERVER_ID

    def test_not_found(self, run) -> None:
        result = run("server", "missing")
        assert result.exit_code == EXIT_NOT_FOUND
        assert "HTTP 404" in result.output

    def test_no_token_sent_without_credential(self, run, fake_registry: FakeRegistry) -> None:
        fake_registry.add("GET", f"/v0/servers/{SERVER_ID}", 200, _detail_payload())
        run("server", SERVER_ID)
        assert "authorization" not in fake_registry.requests[0].headers


# ---------------------------------------------------------------------------
# Mutating commands
# ---------------------------------------------------------------------------


class TestPublishCommand:
    @pytest.fixture
    def server_file(self, tmp_path: Path) -> Path:
        path = tmp_path / "server.json"
        path.write_text(json.dumps({"name": "io.github.example/weather", "version": "1.0.0"}))
        return path

    def test_publish_with_anonymous_fallback(
        self, run, fake_registry: FakeRegistry, server_file: Path, store: CredentialStore
    ) -> None:
        fake_registry.add("POST", "/v0/publish", 422, MISSING_AUTH_BODY)
        fake_registry.add("POST", "/v0/publish", 201, {"message": "Server publication successful", "id": SERVER_ID})
        fake_registry.add("POST", "/v0/auth/none", 200, {"registry_token": "anon_tok"})

        result = run("publish", str(server_file))

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert "Server publication successful" in result.output
        assert SERVER_ID in result.stdout
        assert [r.url.path for r in fake_registry.requests] == [
            "/v0/publish",
            "/v0/auth/none",
            "/v0/publish",
        ]
        assert fake_registry.requests[2].headers["authorization"] == "Bearer anon_tok"
        assert store.load().token == "anon_tok"

    def test_publish_with_explicit_token(
        self, run, fake_registry: FakeRegistry, server_file: Path
    ) -> None:
        fake_registry.add("POST", "/v0/publish", 201, {"id": SERVER_ID})
        result = run("--json", "publish", str(server_file), "--token", "gh_tok")
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert json.loads(result.stdout)["id"] == SERVER_ID
        (request,) = fake_registry.requests
        assert request.headers["authorization"] == "Bearer gh_tok"
        assert request_json(request)["name"] == "io.github.example/weather"

    def test_missing_file(self, run, tmp_path: Path, fake_registry: FakeRegistry) -> None:
        result = run("publish", str(tmp_path / "nope.json"))
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "not found" in result.output
        assert fake_registry.requests == []

    def test_rejected(self, run, fake_registry: FakeRegistry, server_file: Path) -> None:
        fake_registry.add("POST", "/v0/publish", 400, "invalid server name")
        result = run("publish", str(server_file), "--token", "t")
        assert result.exit_code == EXIT_API_ERROR
        assert "HTTP 400: invalid server name" in result.output


class TestUpdateAndDelete:
    def test_update_by_version(
        self, run, fake_registry: FakeRegistry, tmp_path: Path
    ) -> None:
        path = tmp_path / "server.json"
        path.write_text(json.dumps({"name": "io.github.example/weather", "description": "new"}))
        fake_registry.add(
            "PUT", "/v0/servers/io.github.example/weather/versions/1.0.0", 200, {"id": SERVER_ID}
        )
        result = run(
            "update", "io.github.example/weather", str(path), "--version", "1.0.0", "--token", "t"
        )
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert "Server updated" in result.output

    def test_soft_delete(self, run, fake_registry: FakeRegistry) -> None:
        path = "/v0/servers/io.github.example/weather/versions/1.0.0"
        fake_registry.add("GET", path, 200, wrapper_entry("io.github.example/weather"))
        fake_registry.add("PUT", path, 200, wrapper_entry("io.github.example/weather"))
        result = run("delete", "io.github.example/weather", "--version", "1.0.0", "--token", "t")
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert request_json(fake_registry.calls("PUT", path)[0])["status"] == "deleted"


# ---------------------------------------------------------------------------
# Auth commands
# ---------------------------------------------------------------------------


class TestAuthCommands:
    def test_login_status_logout(
        self, run, fake_registry: FakeRegistry, store: CredentialStore
    ) -> None:
        fake_registry.add("POST", "/v0/auth/none", 200, {"registry_token": "anon_token_1234"})

        login = run("login")
        assert login.exit_code == EXIT_SUCCESS, login.output
        assert "Logged in with method 'anonymous'" in login.output
        assert store.load().token == "anon_token_1234"

        status = run("auth-status")
        assert status.exit_code == EXIT_SUCCESS, status.output
        assert "Method: anonymous" in status.stdout
        assert "Token: anon...1234" in status.stdout
        assert "anon_token_1234" not in status.stdout

        logout = run("logout")
        assert logout.exit_code == EXIT_SUCCESS, logout.output
        assert store.load() == Credential()

        status = run("--json", "auth-status")
        assert json.loads(status.stdout)["authenticated"] is False

    def test_logout_without_credential(self, run) -> None:
        assert run("logout").exit_code == EXIT_SUCCESS

    @pytest.mark.parametrize("method", ["github-oauth", "github-oidc", "dns", "http"])
    def test_unsupported_method(self, run, method: str, fake_registry: FakeRegistry) -> None:
        result = run("login", "--method", method)
        assert result.exit_code == EXIT_AUTH_FAILURE
        assert "not supported" in result.output
        assert fake_registry.requests == []

    def test_unknown_method(self, run) -> None:
        result = run("login", "-m", "magic")
        assert result.exit_code == EXIT_AUTH_FAILURE
        assert "Unknown authentication method" in result.output

    def test_corrupt_credential_file(self, run, credential_path: Path) -> None:
        credential_path.write_text("{not json")
        result = run("auth-status")
        assert result.exit_code == EXIT_CREDENTIAL_ERROR
        assert str(credential_path) in result.output

    def test_non_utf8_credential_file(self, run, credential_path: Path) -> None:
        credential_path.write_bytes(b"\xff\xfe\x00garbage")
        result = run("auth-status")
        assert result.exit_code == EXIT_CREDENTIAL_ERROR
        assert "Cannot read credential file" in result.output

"""Tests for entitykit CLI commands."""

import textwrap

import pytest
from click.testing import CliRunner

from entitykit.auth import JWTService
from entitykit.cli.main import cli

SECRET = "test-secret-key-that-is-long-enough"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def service_file(tmp_path):
    path = tmp_path / "service.yaml"
    path.write_text(
        textwrap.dedent(
            """\
            service: auth
            database_url: "sqlite://"
            repositories:
              - entity: entitykit.auth.login:Login
                backend: document
              - entity: entitykit.entity.principal:AuthInfo
                backend: remote
                origin: http://users:8080
            """
        )
    )
    return path


class TestConfigValidate:
    def test_valid_file(self, runner, service_file):
        result = runner.invoke(cli, ["config", "validate", str(service_file)])
        assert result.exit_code == 0
        assert "is valid (2 repositories)" in result.output

    def test_schema_errors(self, runner, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("service: auth\nrepositories:\n  - entity: x:Y\n    backend: mongo\n")
        result = runner.invoke(cli, ["config", "validate", str(path)])
        assert result.exit_code == 1
        assert "[ERROR]" in result.output
        assert "error(s) found" in result.output

    def test_unresolvable_entity(self, runner, tmp_path):
        path = tmp_path / "ghost.yaml"
        path.write_text(
            "service: auth\nrepositories:\n  - entity: ghost.models:Ghost\n    backend: document\n"
        )
        result = runner.invoke(cli, ["config", "validate", str(path)])
        assert result.exit_code == 1
        assert "ghost.models:Ghost" in result.output

    def test_no_resolve_skips_imports(self, runner, tmp_path):
        path = tmp_path / "ghost.yaml"
        path.write_text(
            "service: auth\nrepositories:\n  - entity: ghost.models:Ghost\n    backend: document\n"
        )
        result = runner.invoke(cli, ["config", "validate", "--no-resolve", str(path)])
        assert result.exit_code == 0

    def test_invalid_yaml(self, runner, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("service: [")
        result = runner.invoke(cli, ["config", "validate", str(path)])
        assert result.exit_code == 1
        assert "Invalid YAML" in result.output


class TestTokenIssue:
    def test_issues_decodable_token(self, runner):
        result = runner.invoke(
            cli,
            ["token", "issue", "user-1", "--role", "admin", "--role", "editor"],
            env={"ENTITYKIT_SECRET_KEY": SECRET},
        )
        assert result.exit_code == 0
        claims = JWTService(SECRET).decode_token(result.output.strip())
        assert claims.subject == "user-1"
        assert claims.roles == ["admin", "editor"]

    def test_service_token(self, runner):
        result = runner.invoke(
            cli,
            ["token", "issue", "billing", "--type", "service", "--secret-key", SECRET],
        )
        assert result.exit_code == 0
        assert JWTService(SECRET).decode_token(result.output.strip()).type == "service"

    def test_requires_secret(self, runner, monkeypatch):
        monkeypatch.delenv("ENTITYKIT_SECRET_KEY", raising=False)
        result = runner.invoke(cli, ["token", "issue", "user-1"])
        assert result.exit_code != 0


class TestServe:
    def test_runs_uvicorn_with_app(self, runner, service_file, monkeypatch):
        calls = []
        monkeypatch.setattr(
            "entitykit.cli.serve_cmd.uvicorn.run",
            lambda app, **kwargs: calls.append((app, kwargs)),
        )

        result = runner.invoke(
            cli,
            ["serve", "--config", str(service_file), "--port", "9001", "--log-level", "debug"],
            env={"ENTITYKIT_SECRET_KEY": SECRET},
        )

        assert result.exit_code == 0, result.output
        app, kwargs = calls[0]
        assert kwargs == {"host": "127.0.0.1", "port": 9001, "log_level": "debug"}
        assert app.state.service.name == "auth"

    def test_invalid_config_exits(self, runner, tmp_path, monkeypatch):
        monkeypatch.setattr(
            "entitykit.cli.serve_cmd.uvicorn.run",
            lambda app, **kwargs: pytest.fail("server should not start"),
        )
        path = tmp_path / "bad.yaml"
        path.write_text("service: auth\n")
        result = runner.invoke(cli, ["serve", "--config", str(path)])
        assert result.exit_code == 1

    def test_config_required(self, runner, monkeypatch):
        monkeypatch.delenv("ENTITYKIT_CONFIG", raising=False)
        result = runner.invoke(cli, ["serve"])
        assert result.exit_code != 0

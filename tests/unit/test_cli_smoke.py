import json

import httpx
import pytest
from typer.testing import CliRunner

from victorops import cli
from victorops.services.victorops_client import VictorOpsClient

runner = CliRunner()


@pytest.fixture
def credentials(monkeypatch) -> None:
    monkeypatch.setenv("VICTOROPS_API_ID", "cli-id")
    monkeypatch.setenv("VICTOROPS_API_KEY", "cli-key")
    monkeypatch.setenv("VICTOROPS_BASE_URL", "https://api.victorops.test")


def _serve(monkeypatch, status_code: int, body: str) -> list[httpx.Request]:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code, text=body)

    monkeypatch.setattr(
        cli,
        "_make_client",
        lambda config: VictorOpsClient.from_config(config, transport=httpx.MockTransport(handler)),
    )
    return seen


def test_config_show_smoke(credentials) -> None:
    result = runner.invoke(cli.app, ["config", "show"])
    assert result.exit_code == 0
    assert "Target VictorOps: https://api.victorops.test" in result.stdout
    assert "cli-key" not in result.stdout


def test_missing_credentials(monkeypatch) -> None:
    monkeypatch.delenv("VICTOROPS_API_ID", raising=False)
    monkeypatch.delenv("VICTOROPS_API_KEY", raising=False)
    result = runner.invoke(cli.app, ["incidents", "list"])
    assert result.exit_code == 2


def test_incidents_list(monkeypatch, credentials) -> None:
    seen = _serve(monkeypatch, 200, json.dumps({"incidents": [{"incidentNumber": "7", "host": "db-1"}]}))
    result = runner.invoke(cli.app, ["incidents", "list"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"incidents": [{"incidentNumber": "7", "host": "db-1"}]}
    assert seen[0].headers["X-VO-Api-Id"] == "cli-id"


def test_teams_schedule_passes_options(monkeypatch, credentials) -> None:
    seen = _serve(monkeypatch, 200, json.dumps({"team": {"slug": "ops"}}))
    result = runner.invoke(cli.app, ["teams", "schedule", "ops", "--days-forward", "3"])

    assert result.exit_code == 0
    assert seen[0].url.params["daysForward"] == "3"


def test_api_error_exit_code(monkeypatch, credentials) -> None:
    _serve(monkeypatch, 404, "missing")
    result = runner.invoke(cli.app, ["users", "get", "ghost"])

    assert result.exit_code == 1
    assert "Resource not found" in result.output


def test_unknown_log_level(credentials) -> None:
    result = runner.invoke(cli.app, ["--log-level", "foo", "config", "show"])

    assert result.exit_code == 2
    assert "unknown log level 'FOO'" in result.output
    assert "Traceback" not in result.output


def test_invalid_timeout_setting(monkeypatch, credentials) -> None:
    monkeypatch.setenv("VICTOROPS_TIMEOUT", "abc")
    result = runner.invoke(cli.app, ["config", "show"])

    assert result.exit_code == 2
    assert "Invalid VICTOROPS_ settings" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)


def test_invalid_base_url_setting(monkeypatch, credentials) -> None:
    monkeypatch.setenv("VICTOROPS_BASE_URL", "https://api.victorops.com?x=1")
    result = runner.invoke(cli.app, ["incidents", "list"])

    assert result.exit_code == 1
    assert "Error: " in result.output

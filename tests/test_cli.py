"""Tests for the command line interface."""

import json

import httpx
import pytest
from typer.testing import CliRunner

from foundersnet import cli
from foundersnet.client.session import Session

from conftest import TEST_PASSWORD, TEST_USER

runner = CliRunner()


@pytest.fixture
def cli_env(monkeypatch, backend, tmp_path):
    """Point the CLI at the fake backend and a temporary storage file."""
    monkeypatch.setenv("FOUNDERSNET_CONFIG", str(tmp_path / "absent.yaml"))
    monkeypatch.setenv("FOUNDERSNET_BASE_URL", "http://testserver")
    monkeypatch.setenv("FOUNDERSNET_STORAGE", str(tmp_path / "storage.json"))
    monkeypatch.setenv("FOUNDERSNET_USERNAME", TEST_USER["username"])
    monkeypatch.setenv("FOUNDERSNET_PASSWORD", TEST_PASSWORD)
    monkeypatch.setattr(
        cli,
        "Session",
        lambda config: Session(config, transport=httpx.ASGITransport(app=backend.app)),
    )
    return backend


class TestListCommand:
    """Tests for `foundersnet list`."""

    def test_list_json(self, cli_env, make_record):
        cli_env.notifications = [
            make_record(1, "Rahul Verma sent you a connection request"),
            make_record(2, "Infosys posted a new job", type="job", read=True),
        ]

        result = runner.invoke(cli.app, ["list", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [n["id"] for n in data] == [1, 2]
        assert data[0]["actor"]["name"] == "Rahul"

    def test_list_tab_and_unread(self, cli_env, make_record):
        cli_env.notifications = [
            make_record(1, "Rahul Verma sent you a connection request"),
            make_record(2, "Infosys posted a new job", type="job"),
            make_record(3, "Wipro posted a new job", type="job", read=True),
        ]

        result = runner.invoke(cli.app, ["list", "--tab", "jobs", "--unread", "--json"])

        assert result.exit_code == 0
        assert [n["id"] for n in json.loads(result.stdout)] == [2]

    def test_list_table(self, cli_env, make_record):
        cli_env.notifications = [make_record(1, "Rahul Verma sent you a connection request")]

        result = runner.invoke(cli.app, ["list"])

        assert result.exit_code == 0
        assert "Rahul" in result.stdout
        assert "Unread: 1" in result.stdout

    def test_list_bracketed_text(self, cli_env, make_record):
        """Test that bracketed notification text is printed as delivered."""
        cli_env.notifications = [make_record(1, "Amit wrote [/x] here")]

        result = runner.invoke(cli.app, ["list"])

        assert result.exit_code == 0
        assert "Amit wrote [/x] here" in result.stdout

    def test_list_empty(self, cli_env):
        result = runner.invoke(cli.app, ["list"])

        assert result.exit_code == 0
        assert "No notifications yet" in result.stdout

    def test_list_wrong_password(self, cli_env, monkeypatch):
        """Test that a failed login exits with an error."""
        monkeypatch.setenv("FOUNDERSNET_PASSWORD", "wrong")

        result = runner.invoke(cli.app, ["list"])

        assert result.exit_code == 1
        assert "Invalid username or password" in result.stdout


class TestReadCommands:
    """Tests for `foundersnet read` and `foundersnet read-all`."""

    def test_read(self, cli_env, make_record):
        cli_env.notifications = [make_record(4, "Neha Gupta mentioned you", type="mention")]

        result = runner.invoke(cli.app, ["read", "4"])

        assert result.exit_code == 0
        assert cli_env.read_calls == ["4"]
        assert cli_env.notifications[0]["read"] is True

    def test_read_unknown(self, cli_env):
        result = runner.invoke(cli.app, ["read", "99"])

        assert result.exit_code == 1
        assert "Notification not found" in result.stdout

    def test_read_all(self, cli_env, make_record):
        cli_env.notifications = [
            make_record(1, "Rahul Verma sent you a connection request"),
            make_record(2, "Infosys posted a new job", type="job"),
        ]

        result = runner.invoke(cli.app, ["read-all"])

        assert result.exit_code == 0
        assert cli_env.read_all_calls == 1


class TestSettingsCommands:
    """Tests for `foundersnet settings`."""

    def test_show_defaults(self, cli_env):
        result = runner.invoke(cli.app, ["settings", "show", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["jobAlerts"] is True

    def test_set(self, cli_env):
        result = runner.invoke(cli.app, ["settings", "set", "jobAlerts", "false"])
        assert result.exit_code == 0
        assert "Saved jobAlerts = false" in result.stdout

        result = runner.invoke(cli.app, ["settings", "show", "--json"])
        assert json.loads(result.stdout)["jobAlerts"] is False

    def test_set_unknown_key(self, cli_env):
        result = runner.invoke(cli.app, ["settings", "set", "smsAlerts", "true"])

        assert result.exit_code == 1
        assert "Unknown preference" in result.stdout


class TestConfigCommand:
    """Tests for `foundersnet config`."""

    def test_shows_environment_values(self, cli_env):
        result = runner.invoke(cli.app, ["config"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["base_url"] == "http://testserver"

    def test_invalid_config_file(self, cli_env, tmp_path, monkeypatch):
        path = tmp_path / "broken.yaml"
        path.write_text("poll_interval: -1\n")
        monkeypatch.setenv("FOUNDERSNET_CONFIG", str(path))

        result = runner.invoke(cli.app, ["config"])

        assert result.exit_code == 1
        assert "Error loading configuration" in result.stdout

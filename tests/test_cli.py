"""
Tests for the typer CLI.

The SQL connector factory is patched with the fake connector, so these run
without pyodbc or a server.
"""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from autodbreclaim.domain.errors import DriverNotFoundError
from autodbreclaim.interface.cli import EXIT_CONFIG, EXIT_FAILED, app
from tests.fakes import make_connector, remediated_databases

runner = CliRunner()


@pytest.fixture
def config_dir(tmp_path):
    path = tmp_path / "config"
    path.mkdir()
    return path


def invoke(*args, env=None):
    return runner.invoke(app, list(args), env=env)


class TestRun:

    def test_single_server(self, config_dir):
        connector = make_connector([("sales", 850), ("hr", 750)], {"sales": 1000, "hr": 1000})

        with patch("autodbreclaim.interface.cli._build_connector", return_value=connector) as build:
            result = invoke("run", "--server", "sql01", "-u", "admin", "-p", "pw",
                            "--config-dir", str(config_dir))

        assert result.exit_code == 0, result.output
        assert "Perform action on sales (850 MB > 800 MB)" in result.stdout
        assert "Do not perform action on hr (750 MB <= 800 MB)" in result.stdout
        assert remediated_databases(connector) == ["sales"]

        target = build.call_args.args[0]
        assert target.server == "sql01"
        assert target.credential.get_password() == "pw"

    def test_password_from_environment(self, config_dir):
        connector = make_connector([], {})

        with patch("autodbreclaim.interface.cli._build_connector", return_value=connector) as build:
            result = invoke("run", "--server", "sql01", "-u", "admin",
                            "--config-dir", str(config_dir),
                            env={"RECLAIM_PASSWORD": "from-env"})

        assert result.exit_code == 0, result.output
        assert build.call_args.args[0].credential.get_password() == "from-env"

    def test_threshold_override(self, config_dir):
        connector = make_connector([("sales", 850)], {"sales": 1000})

        with patch("autodbreclaim.interface.cli._build_connector", return_value=connector):
            result = invoke("run", "--server", "sql01", "--integrated",
                            "--threshold", "0.9", "--config-dir", str(config_dir))

        assert result.exit_code == 0, result.output
        assert "Do not perform action on sales (850 MB <= 900 MB)" in result.stdout
        connector.execute.assert_not_called()

    def test_dry_run(self, config_dir):
        connector = make_connector([("sales", 850)], {"sales": 1000})

        with patch("autodbreclaim.interface.cli._build_connector", return_value=connector):
            result = invoke("run", "--server", "sql01", "--integrated", "--dry-run",
                            "--config-dir", str(config_dir))

        assert result.exit_code == 0, result.output
        assert "[DRY RUN] Perform action on sales (850 MB > 800 MB)" in result.stdout
        connector.execute.assert_not_called()

    def test_database_failure_sets_exit_code(self, config_dir):
        connector = make_connector([("a", 900), ("b", 900)], {"a": 1000, "b": 1000},
                                   failing={"a"})

        with patch("autodbreclaim.interface.cli._build_connector", return_value=connector):
            result = invoke("run", "--server", "sql01", "--integrated",
                            "--config-dir", str(config_dir))

        assert result.exit_code == EXIT_FAILED
        assert "Failed a:" in result.stdout
        assert "Perform action on b (900 MB > 800 MB)" in result.stdout

    def test_catalog_failure_moves_to_next_target(self, config_dir):
        (config_dir / "sql_targets.json").write_text(json.dumps({"targets": [
            {"id": "down", "server": "sql-down", "auth": "integrated"},
            {"id": "up", "server": "sql-up", "auth": "integrated"},
            {"id": "off", "server": "sql-off", "auth": "integrated", "enabled": False},
        ]}), encoding="utf-8")
        down = make_connector([], {}, catalog_error=RuntimeError("timeout expired"))
        up = make_connector([("app", 900)], {"app": 1000})

        with patch("autodbreclaim.interface.cli._build_connector", side_effect=[down, up]) as build:
            result = invoke("run", "--config-dir", str(config_dir))

        assert result.exit_code == EXIT_FAILED
        assert build.call_count == 2
        assert "timeout expired" in result.stdout
        assert remediated_databases(up) == ["app"]

    def test_missing_driver_stops_all_targets(self, config_dir):
        (config_dir / "sql_targets.json").write_text(json.dumps({"targets": [
            {"id": "one", "server": "sql-one", "auth": "integrated"},
            {"id": "two", "server": "sql-two", "auth": "integrated"},
        ]}), encoding="utf-8")
        no_driver = make_connector(
            [], {}, catalog_error=DriverNotFoundError("No SQL Server ODBC driver found")
        )
        second = make_connector([("app", 900)], {"app": 1000})

        with patch("autodbreclaim.interface.cli._build_connector",
                   side_effect=[no_driver, second]) as build:
            result = invoke("run", "--config-dir", str(config_dir))

        assert result.exit_code == EXIT_FAILED
        assert build.call_count == 1
        assert "No SQL Server ODBC driver found" in result.stdout
        assert "Catalog query failed" not in result.stdout
        second.execute.assert_not_called()

    def test_sql_auth_requires_credentials(self, config_dir):
        result = invoke("run", "--server", "sql01", "--config-dir", str(config_dir))

        assert result.exit_code == EXIT_CONFIG
        assert "--username and --password are required" in result.stdout

    def test_invalid_threshold(self, config_dir):
        result = invoke("run", "--server", "sql01", "--integrated", "--threshold", "1.5",
                        "--config-dir", str(config_dir))

        assert result.exit_code == EXIT_CONFIG

    def test_no_targets_file(self, config_dir):
        result = invoke("run", "--config-dir", str(config_dir))

        assert result.exit_code == EXIT_CONFIG
        assert "not found" in result.stdout


class TestOtherCommands:

    def test_targets_lists_configured_servers(self, config_dir):
        (config_dir / "sql_targets.json").write_text(json.dumps({"targets": [
            {"id": "prod", "server": "sql01", "auth": "integrated"},
        ]}), encoding="utf-8")

        result = invoke("targets", "--config-dir", str(config_dir))

        assert result.exit_code == 0, result.output
        assert "prod" in result.stdout

    def test_validate_config_reports_errors(self, config_dir):
        (config_dir / "reclaim_config.json").write_text('{"threshold": 2}', encoding="utf-8")

        result = invoke("validate-config", "--config-dir", str(config_dir))

        assert result.exit_code == EXIT_CONFIG
        assert "Invalid reclaim settings" in result.stdout

    def test_validate_config_passes(self, config_dir):
        (config_dir / "sql_targets.json").write_text(json.dumps({"targets": [
            {"id": "prod", "server": "sql01", "auth": "integrated"},
        ]}), encoding="utf-8")

        result = invoke("validate-config", "--config-dir", str(config_dir))

        assert result.exit_code == 0, result.output
        assert "passed" in result.stdout

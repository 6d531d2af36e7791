"""Tests for the codex-analysis CLI.

Commands that run the Codex CLI use a small shell script standing in for
the real binary, so those tests only run on POSIX.
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from codex_analysis.cli import app
from codex_analysis.engine.nodes import NodeDefinition
from codex_analysis.models.configuration import GlobalConfiguration, JobConfiguration
from codex_analysis.services.config_store import ConfigStore
from codex_analysis.utils.platform import IS_POSIX

posix_only = pytest.mark.skipif(not IS_POSIX, reason="fake Codex CLI is a shell script")

FAKE_CODEX = """\
#!/bin/sh
case "$1" in
  --version) echo "codex 1.2.3" ;;
  models) printf 'Available models:\\ngpt-4\\nkimi-k2\\n' ;;
  mcp) printf 'github\\njira\\n' ;;
  analyze)
    if [ -n "$FAKE_CODEX_FAIL" ]; then echo "rate limited" >&2; exit 1; fi
    echo "Root cause: flaky network" ;;
  query) echo "Retry the build" ;;
  *) echo "unknown: $1" >&2; exit 2 ;;
esac
"""

CODEX_TOML = """\
[mcp.servers.github]
command = "npx"
args = ["-y", "server-github"]

[mcp.servers.jira]
transport = "http"
url = "https://mcp.example.com/jira"
"""

API_KEY = "sk-0123456789abcdef"


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def configured_store(store_path: Path, tmp_path: Path) -> ConfigStore:
    """Store whose global configuration points at the fake Codex CLI."""
    script = tmp_path / "bin" / "codex"
    script.parent.mkdir()
    script.write_text(FAKE_CODEX, encoding="utf-8")
    script.chmod(0o755)
    config_file = tmp_path / "config.toml"
    config_file.write_text(CODEX_TOML, encoding="utf-8")

    store = ConfigStore(store_path)
    store.save_global(
        GlobalConfiguration(cli_path=str(script), config_path=str(config_file), api_key=API_KEY)
    )
    return store


def _invoke(runner: CliRunner, store_path: Path, *args: str, **kwargs):
    return runner.invoke(app, ["--store", str(store_path), *args], **kwargs)


# =============================================================================
# version
# =============================================================================


class TestVersion:
    """Tests for version output."""

    def test_version_command(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "codex-analysis" in result.output

    def test_version_flag(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "version" in result.output


# =============================================================================
# config
# =============================================================================


class TestConfigCommands:
    """Tests for the config command group."""

    def test_show_masks_secrets(self, cli_runner: CliRunner, store_path: Path) -> None:
        result = _invoke(cli_runner, store_path, "config", "show")

        assert result.exit_code == 0
        assert "api_key: '****'" in result.output
        assert "sk-1234" not in result.output

    def test_set_global_field(self, cli_runner: CliRunner, store_path: Path) -> None:
        result = _invoke(cli_runner, store_path, "config", "set", "timeout_seconds", "300")

        assert result.exit_code == 0
        assert ConfigStore.load(store_path).global_config().timeout_seconds == 300

    def test_set_rejects_bad_value(self, cli_runner: CliRunner, store_path: Path) -> None:
        result = _invoke(cli_runner, store_path, "config", "set", "timeout_seconds", "soon")

        assert result.exit_code == 1
        assert not store_path.exists()

    def test_set_rejects_non_positive_timeout(
        self, cli_runner: CliRunner, store_path: Path
    ) -> None:
        result = _invoke(cli_runner, store_path, "config", "set", "timeout_seconds", "0")

        assert result.exit_code == 1
        assert "Timeout must be positive" in result.output

    def test_set_unknown_key(self, cli_runner: CliRunner, store_path: Path) -> None:
        result = _invoke(cli_runner, store_path, "config", "set", "label", "linux")

        assert result.exit_code == 1
        assert "Unknown configuration key: label" in result.output

    def test_set_creates_job(self, cli_runner: CliRunner, store_path: Path) -> None:
        for key, value in [("use_job_config", "true"), ("selected_mcp_servers", "github, jira")]:
            result = _invoke(
                cli_runner, store_path, "config", "set", key, value, "--job", "app/main"
            )
            assert result.exit_code == 0

        job = ConfigStore.load(store_path).job_config("app/main")
        assert job.use_job_config is True
        assert job.selected_mcp_servers == ["github", "jira"]

    def test_show_unknown_job(self, cli_runner: CliRunner, store_path: Path) -> None:
        result = _invoke(cli_runner, store_path, "config", "show", "--job", "nope")

        assert result.exit_code == 1
        assert "No configuration stored for job" in result.output

    def test_effective_for_job(self, cli_runner: CliRunner, store: ConfigStore) -> None:
        store.save_job("app/main", JobConfiguration(use_job_config=True, default_model="gpt-4"))

        result = _invoke(cli_runner, store.path, "config", "effective", "--job", "app/main")

        assert result.exit_code == 0
        assert "default_model: gpt-4" in result.output
        assert "job_scoped: true" in result.output

    def test_validate_errors_exit_non_zero(self, cli_runner: CliRunner, store: ConfigStore) -> None:
        store.save_global(GlobalConfiguration(timeout_seconds=0, api_key=API_KEY))

        result = _invoke(cli_runner, store.path, "config", "validate")

        assert result.exit_code == 1
        assert "Timeout must be positive" in result.output

    def test_validate_clean(self, cli_runner: CliRunner, store: ConfigStore) -> None:
        store.save_global(GlobalConfiguration(api_key=API_KEY))

        result = _invoke(cli_runner, store.path, "config", "validate")

        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_policy_legacy(self, cli_runner: CliRunner, store_path: Path) -> None:
        result = _invoke(cli_runner, store_path, "config", "policy", "--legacy")

        assert result.exit_code == 0
        policy = ConfigStore.load(store_path).global_config().resolution_policy
        assert policy.job_only_fields == [
            "default_model",
            "enable_mcp_servers",
            "selected_mcp_servers",
        ]

    def test_policy_rejects_unknown_field(self, cli_runner: CliRunner, store_path: Path) -> None:
        result = _invoke(cli_runner, store_path, "config", "policy", "--job-only", "colour")

        assert result.exit_code == 1

    def test_invalid_store_file(self, cli_runner: CliRunner, store_path: Path) -> None:
        store_path.parent.mkdir(parents=True)
        store_path.write_text("global: [oops\n", encoding="utf-8")

        result = _invoke(cli_runner, store_path, "config", "show")

        assert result.exit_code == 1
        assert "Invalid YAML" in result.output


# =============================================================================
# models / mcp
# =============================================================================


class TestListCommands:
    """Tests for the models and mcp command groups."""

    def test_models_list_builtin(self, cli_runner: CliRunner, store_path: Path) -> None:
        result = _invoke(cli_runner, store_path, "models", "list")

        assert result.exit_code == 0
        assert "kimi-k2" in result.output
        assert "gemini-pro" in result.output

    @posix_only
    def test_models_refresh(self, cli_runner: CliRunner, configured_store: ConfigStore) -> None:
        result = _invoke(cli_runner, configured_store.path, "models", "refresh")

        assert result.exit_code == 0
        assert "Successfully fetched 2 models" in result.output
        reloaded = ConfigStore.load(configured_store.path)
        assert reloaded.model_cache.get()[0] == ["gpt-4", "kimi-k2"]

        status = _invoke(cli_runner, configured_store.path, "models", "status")
        assert "Model cache is current" in status.output

    def test_models_refresh_unmatched_label(
        self, cli_runner: CliRunner, store: ConfigStore
    ) -> None:
        store.save_nodes([NodeDefinition(name="win", host="h", labels=["windows"])])
        store.save_job("app/main", JobConfiguration(use_job_config=True, label="linux"))

        result = _invoke(cli_runner, store.path, "models", "refresh", "--job", "app/main")

        assert result.exit_code == 1
        assert "No online agents match" in result.output

    @posix_only
    def test_mcp_refresh_and_list(
        self, cli_runner: CliRunner, configured_store: ConfigStore
    ) -> None:
        refresh = _invoke(cli_runner, configured_store.path, "mcp", "refresh")
        listing = _invoke(cli_runner, configured_store.path, "mcp", "list")

        assert refresh.exit_code == 0
        assert "Successfully fetched 2 MCP servers" in refresh.output
        assert "github" in listing.output
        assert "jira" in listing.output

    def test_mcp_list_details(self, cli_runner: CliRunner, configured_store: ConfigStore) -> None:
        result = _invoke(cli_runner, configured_store.path, "mcp", "list", "--details")

        assert result.exit_code == 0
        assert "stdio" in result.output
        assert "http" in result.output

    def test_mcp_status_empty(self, cli_runner: CliRunner, store_path: Path) -> None:
        result = _invoke(cli_runner, store_path, "mcp", "status")

        assert "No MCP servers cached" in result.output


# =============================================================================
# cli
# =============================================================================


class TestCliMaintenance:
    """Tests for the cli command group."""

    @posix_only
    def test_cli_test(self, cli_runner: CliRunner, configured_store: ConfigStore) -> None:
        result = _invoke(cli_runner, configured_store.path, "cli", "test")

        assert result.exit_code == 0
        assert "Version: codex 1.2.3" in result.output

    def test_cli_test_missing_binary(
        self, cli_runner: CliRunner, store: ConfigStore, tmp_path: Path
    ) -> None:
        store.save_global(GlobalConfiguration(cli_path=str(tmp_path / "missing" / "codex")))

        result = _invoke(cli_runner, store.path, "cli", "test")

        assert result.exit_code == 1
        assert "Codex CLI test failed" in result.output

    def test_cli_update_requires_job_scope(
        self, cli_runner: CliRunner, store: ConfigStore
    ) -> None:
        store.save_job("app/main", JobConfiguration(cli_download_url="https://dl.example.com/c"))

        result = _invoke(cli_runner, store.path, "cli", "update", "--job", "app/main")

        assert result.exit_code == 1
        assert "only available for job-level" in result.output


# =============================================================================
# analyze / stage / chat
# =============================================================================


@posix_only
class TestAnalysisCommands:
    """Tests for analysis and chat commands against the fake CLI."""

    def test_analyze(
        self, cli_runner: CliRunner, configured_store: ConfigStore, tmp_path: Path
    ) -> None:
        log_file = tmp_path / "build.log"
        log_file.write_text("BUILD FAILED\n", encoding="utf-8")
        record_file = tmp_path / "record.json"

        result = _invoke(
            cli_runner,
            configured_store.path,
            "analyze",
            "--file",
            str(log_file),
            "--type",
            "build_analysis",
            "--record",
            str(record_file),
        )

        assert result.exit_code == 0
        assert "Root cause: flaky network" in result.output
        record = json.loads(record_file.read_text(encoding="utf-8"))
        assert record["analysis_type"] == "build_analysis"
        assert record["stage_name"] == "Build Analysis"

    def test_analyze_rejects_unknown_type(
        self, cli_runner: CliRunner, configured_store: ConfigStore
    ) -> None:
        result = _invoke(cli_runner, configured_store.path, "analyze", "-c", "x", "-t", "vibes")

        assert result.exit_code == 1

    def test_failure_is_soft_by_default(
        self, cli_runner: CliRunner, configured_store: ConfigStore
    ) -> None:
        result = _invoke(
            cli_runner,
            configured_store.path,
            "analyze",
            "--content",
            "log",
            env={"FAKE_CODEX_FAIL": "1"},
        )

        assert result.exit_code == 0
        assert "rate limited" in result.output

    def test_fail_on_error(self, cli_runner: CliRunner, configured_store: ConfigStore) -> None:
        result = _invoke(
            cli_runner,
            configured_store.path,
            "analyze",
            "--content",
            "log",
            "--fail-on-error",
            env={"FAKE_CODEX_FAIL": "1"},
        )

        assert result.exit_code == 1

    def test_reserved_param(self, cli_runner: CliRunner, configured_store: ConfigStore) -> None:
        result = _invoke(
            cli_runner,
            configured_store.path,
            "analyze",
            "--content",
            "log",
            "--param",
            "prompt=override",
            "--fail-on-error",
        )

        assert result.exit_code == 1
        assert "reserved flag" in result.output

    def test_stage(self, cli_runner: CliRunner, configured_store: ConfigStore) -> None:
        result = _invoke(cli_runner, configured_store.path, "stage", "Unit Tests")

        assert result.exit_code == 0
        assert "Codex Analysis - Unit Tests" in result.output
        assert "test_analysis" in result.output

    def test_chat(self, cli_runner: CliRunner, configured_store: ConfigStore) -> None:
        result = _invoke(cli_runner, configured_store.path, "chat", "Why did it fail?")

        assert result.exit_code == 0
        assert "Retry the build" in result.output

    def test_chat_blank_message(self, cli_runner: CliRunner, configured_store: ConfigStore) -> None:
        result = _invoke(cli_runner, configured_store.path, "chat", "  ")

        assert result.exit_code == 1
        assert "Message is required" in result.output

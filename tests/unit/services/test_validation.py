"""Tests for configuration validation."""

from codex_analysis.models.configuration import GlobalConfiguration, JobConfiguration
from codex_analysis.models.enums import IssueLevel
from codex_analysis.services.validation import has_errors, validate_configuration

LONG_KEY = "sk-0123456789abcdef"


def _fields(issues) -> dict[str, IssueLevel]:
    return {issue.field: issue.level for issue in issues}


class TestValidateGlobal:
    """Tests for global configuration findings."""

    def test_defaults_only_flag_the_placeholder_key(self) -> None:
        fields = _fields(validate_configuration(GlobalConfiguration()))

        assert fields == {"api_key": IssueLevel.WARNING}

    def test_complete_configuration_is_clean(self) -> None:
        assert validate_configuration(GlobalConfiguration(api_key=LONG_KEY)) == []

    def test_non_positive_timeout_is_error(self) -> None:
        issues = validate_configuration(GlobalConfiguration(timeout_seconds=0, api_key=LONG_KEY))

        assert _fields(issues)["timeout_seconds"] == IssueLevel.ERROR
        assert has_errors(issues)

    def test_long_timeout_warns(self) -> None:
        issues = validate_configuration(GlobalConfiguration(timeout_seconds=3601, api_key=LONG_KEY))

        assert _fields(issues) == {"timeout_seconds": IssueLevel.WARNING}
        assert not has_errors(issues)

    def test_empty_fields_warn(self) -> None:
        config = GlobalConfiguration(cli_path="", config_path="", default_model="", api_key="")

        fields = _fields(validate_configuration(config))

        assert fields == {
            "cli_path": IssueLevel.WARNING,
            "config_path": IssueLevel.WARNING,
            "default_model": IssueLevel.WARNING,
            "api_key": IssueLevel.WARNING,
        }

    def test_empty_field_messages_describe_resolved_behaviour(self) -> None:
        config = GlobalConfiguration(cli_path="", default_model="", api_key="")

        messages = {issue.field: issue.message for issue in validate_configuration(config)}

        assert messages["cli_path"] == "Codex CLI path is empty, will use '~/.local/bin/codex'"
        assert "kimi-k2" not in messages["default_model"]
        assert "its own default model" in messages["default_model"]
        assert "sk-1234" not in messages["api_key"]
        assert messages["api_key"] == (
            "LiteLLM API key is empty, no key will be passed to the Codex CLI"
        )

    def test_download_settings(self) -> None:
        config = GlobalConfiguration(
            cli_download_url="ftp://example.com/codex",
            cli_download_username="a",
            cli_download_password="abc",
            api_key=LONG_KEY,
        )

        fields = _fields(validate_configuration(config))

        assert set(fields) == {
            "cli_download_url",
            "cli_download_username",
            "cli_download_password",
        }

    def test_short_api_key(self) -> None:
        fields = _fields(validate_configuration(GlobalConfiguration(api_key="sk-1")))

        assert fields == {"api_key": IssueLevel.WARNING}

    def test_unknown_model(self) -> None:
        issues = validate_configuration(
            GlobalConfiguration(default_model="gpt-5", api_key=LONG_KEY), available_models=["gpt-4"]
        )

        assert len(issues) == 1
        assert "'gpt-5' is not in the current model list" in issues[0].message


class TestValidateJob:
    """Job configurations treat empty fields as inherit."""

    def test_disabled_job_is_not_checked(self) -> None:
        assert validate_configuration(JobConfiguration(timeout_seconds=-1)) == []

    def test_empty_job_is_clean(self) -> None:
        assert validate_configuration(JobConfiguration(use_job_config=True)) == []

    def test_set_job_fields_are_checked(self) -> None:
        config = JobConfiguration(use_job_config=True, timeout_seconds=-5, api_key="short")

        fields = _fields(validate_configuration(config))

        assert fields == {"timeout_seconds": IssueLevel.ERROR, "api_key": IssueLevel.WARNING}

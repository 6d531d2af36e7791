"""Tests for CLI argument construction."""

import pytest

from codex_analysis.engine.command_builder import (
    CommandRequest,
    build,
    build_analyze_args,
    build_mcp_list_args,
    build_models_list_args,
    build_query_args,
    build_version_args,
    parse_additional_params,
    resolve_model,
    resolve_timeout,
)
from codex_analysis.engine.resolver import resolve
from codex_analysis.exceptions import ReservedFlagError, ValidationError
from codex_analysis.models.configuration import EffectiveConfig, GlobalConfiguration


def _effective(**overrides: object) -> EffectiveConfig:
    values: dict[str, object] = {
        "default_model": "kimi-k2",
        "timeout_seconds": 120,
        "enable_mcp_servers": False,
    }
    values.update(overrides)
    return resolve(GlobalConfiguration(**values))


def _expander(path: str) -> str:
    return path.replace("~", "/home/agent", 1)


# =============================================================================
# analyze
# =============================================================================


class TestBuildAnalyzeArgs:
    """Tests for the analyze subcommand."""

    def test_minimal_vector(self) -> None:
        args = build_analyze_args(_effective(), "log text")

        assert args == [
            "analyze",
            "--content",
            "log text",
            "--model",
            "kimi-k2",
            "--timeout",
            "120",
        ]

    def test_type_and_prompt(self) -> None:
        args = build_analyze_args(
            _effective(), "log", analysis_type="build_analysis", prompt="Why?"
        )

        assert args[3:7] == ["--type", "build_analysis", "--prompt", "Why?"]

    def test_blank_type_and_prompt_skipped(self) -> None:
        args = build_analyze_args(_effective(), "log", analysis_type="  ", prompt="")

        assert "--type" not in args
        assert "--prompt" not in args

    def test_blank_model_omits_flag(self) -> None:
        args = build_analyze_args(_effective(default_model=""), "log")

        assert "--model" not in args
        assert args[-2:] == ["--timeout", "120"]

    def test_mcp_config_expanded_for_node(self) -> None:
        effective = _effective(enable_mcp_servers=True, config_path="~/.codex/config.toml")

        args = build_analyze_args(effective, "log", path_expander=_expander)

        assert args[-2:] == ["--mcp-config", "/home/agent/.codex/config.toml"]

    def test_mcp_disabled_omits_flag(self) -> None:
        assert "--mcp-config" not in build_analyze_args(_effective(), "log")

    def test_call_args_override_model_and_timeout(self) -> None:
        args = build_analyze_args(
            _effective(), "log", call_args={"model": "gpt-4", "timeout": "30"}
        )

        assert args[3:] == ["--model", "gpt-4", "--timeout", "30"]

    def test_extra_flags_keep_insertion_order(self) -> None:
        args = build_analyze_args(
            _effective(), "log", call_args={"temperature": "0.2", "max-tokens": "512"}
        )

        assert args[-4:] == ["--temperature", "0.2", "--max-tokens", "512"]

    @pytest.mark.parametrize("flag", ["content", "type", "prompt", "mcp-config"])
    def test_reserved_flag_rejected(self, flag: str) -> None:
        with pytest.raises(ReservedFlagError) as exc_info:
            build_analyze_args(_effective(), "log", call_args={flag: "x"})

        assert exc_info.value.flag == flag

    def test_invalid_timeout_override(self) -> None:
        with pytest.raises(ValidationError):
            build_analyze_args(_effective(), "log", call_args={"timeout": "soon"})

    def test_same_inputs_same_vector(self) -> None:
        effective = _effective(enable_mcp_servers=True)
        call_args = {"temperature": "0.2"}

        first = build_analyze_args(effective, "log", "general", "p", call_args, _expander)
        second = build_analyze_args(effective, "log", "general", "p", call_args, _expander)

        assert first == second


# =============================================================================
# query and listing
# =============================================================================


class TestOtherSubcommands:
    """Tests for query, version and list vectors."""

    def test_query_with_context(self) -> None:
        args = build_query_args(_effective(), "What failed?", context="build #4")

        assert args == [
            "query",
            "--query",
            "What failed?",
            "--context",
            "build #4",
            "--model",
            "kimi-k2",
            "--timeout",
            "120",
        ]

    def test_query_rejects_context_in_call_args(self) -> None:
        with pytest.raises(ReservedFlagError):
            build_query_args(_effective(), "q", call_args={"context": "x"})

    def test_query_never_passes_mcp_config(self) -> None:
        args = build_query_args(_effective(enable_mcp_servers=True), "q")

        assert "--mcp-config" not in args

    def test_version(self) -> None:
        assert build_version_args() == ["--version"]

    def test_models_list(self) -> None:
        assert build_models_list_args() == ["models", "list"]

    def test_mcp_list_with_config(self) -> None:
        args = build_mcp_list_args("~/.codex/config.toml", path_expander=_expander)

        assert args == ["mcp", "list", "--config", "/home/agent/.codex/config.toml"]

    def test_mcp_list_without_config(self) -> None:
        assert build_mcp_list_args("") == ["mcp", "list"]

    def test_build_dispatch(self) -> None:
        request = CommandRequest(query="hi")

        assert build("query", _effective(), request)[:3] == ["query", "--query", "hi"]
        assert build("--version", _effective()) == ["--version"]

    def test_build_unknown_subcommand(self) -> None:
        with pytest.raises(ValueError):
            build("delete-everything", _effective())


# =============================================================================
# Parameters and overrides
# =============================================================================


class TestParameters:
    """Tests for additional parameter parsing and per-call overrides."""

    def test_parse_newlines_and_semicolons(self) -> None:
        params = parse_additional_params("temperature=0.2\nmax-tokens=512; top-p = 0.9")

        assert params == {"temperature": "0.2", "max-tokens": "512", "top-p": "0.9"}

    def test_parse_skips_malformed_entries(self) -> None:
        assert parse_additional_params("novalue\n=orphan\n\nok=1") == {"ok": "1"}

    def test_parse_blank(self) -> None:
        assert parse_additional_params(None) == {}
        assert parse_additional_params("   ") == {}

    def test_resolve_model_prefers_override(self) -> None:
        assert resolve_model(_effective(), {"model": " gpt-4 "}) == "gpt-4"
        assert resolve_model(_effective(), {"model": ""}) == "kimi-k2"

    def test_resolve_timeout_rejects_zero(self) -> None:
        with pytest.raises(ValidationError):
            resolve_timeout(_effective(), {"timeout": "0"})

    def test_resolve_timeout_default(self) -> None:
        assert resolve_timeout(_effective(timeout_seconds=45), None) == 45

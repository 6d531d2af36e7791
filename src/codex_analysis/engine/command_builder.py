"""Argument vector construction for Codex CLI subcommands.

Argument order is fixed so identical inputs always give identical argv:
content/query, then type/prompt/context, then model, then timeout, then
mcp-config, then extra parameters in the order they were supplied.

``model`` and ``timeout`` in the per-call arguments override the effective
configuration; every other reserved flag is owned by the builder and
rejected if it shows up among the extras.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from codex_analysis.constants import (
    ANALYZE_RESERVED_FLAGS,
    FLAG_CONFIG,
    FLAG_CONTENT,
    FLAG_CONTEXT,
    FLAG_MCP_CONFIG,
    FLAG_MODEL,
    FLAG_PROMPT,
    FLAG_QUERY,
    FLAG_TIMEOUT,
    FLAG_TYPE,
    FLAG_VERSION,
    QUERY_RESERVED_FLAGS,
    SUBCOMMAND_ANALYZE,
    SUBCOMMAND_LIST,
    SUBCOMMAND_MCP,
    SUBCOMMAND_MODELS,
    SUBCOMMAND_QUERY,
)
from codex_analysis.exceptions import ReservedFlagError, ValidationError
from codex_analysis.models.configuration import EffectiveConfig

PathExpander = Callable[[str], str]

_PARAM_SEPARATORS = re.compile(r"[\r\n;]+")


@dataclass(frozen=True)
class CommandRequest:
    """Call-specific inputs for one CLI invocation."""

    content: str = ""
    analysis_type: str | None = None
    prompt: str | None = None
    query: str = ""
    context: str | None = None
    call_args: dict[str, str] = field(default_factory=dict)


def _flag(name: str) -> str:
    return f"--{name}"


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def parse_additional_params(text: str | None) -> dict[str, str]:
    """Parse ``key=value`` pairs separated by newlines or semicolons.

    Entries without ``=`` or with an empty key are skipped. A repeated key
    keeps its first position but takes the last value.
    """
    params: dict[str, str] = {}
    if _is_blank(text):
        return params

    for entry in _PARAM_SEPARATORS.split(text or ""):
        entry = entry.strip()
        key, sep, value = entry.partition("=")
        if not sep or not key.strip():
            continue
        params[key.strip()] = value.strip()
    return params


def resolve_model(effective: EffectiveConfig, call_args: Mapping[str, str] | None) -> str:
    """Per-call model override, else the effective default model."""
    override = (call_args or {}).get(FLAG_MODEL)
    if not _is_blank(override):
        return str(override).strip()
    return effective.default_model.strip()


def resolve_timeout(effective: EffectiveConfig, call_args: Mapping[str, str] | None) -> int:
    """Per-call timeout override, else the effective timeout.

    Raises:
        ValidationError: If the override is not a positive integer.
    """
    override = (call_args or {}).get(FLAG_TIMEOUT)
    if _is_blank(override):
        return effective.timeout_seconds
    try:
        seconds = int(str(override).strip())
    except ValueError:
        seconds = 0
    if seconds <= 0:
        raise ValidationError(
            "Timeout override must be a positive integer",
            field=FLAG_TIMEOUT,
            value=override,
            expected="seconds > 0",
        )
    return seconds


def _extra_args(call_args: Mapping[str, str] | None, reserved: frozenset[str]) -> list[str]:
    args: list[str] = []
    for key, value in (call_args or {}).items():
        if key in (FLAG_MODEL, FLAG_TIMEOUT):
            continue
        name = key.strip()
        if not name:
            raise ValidationError(
                "Extra parameter has an empty name", field="additional_params", value=value
            )
        if name in reserved:
            raise ReservedFlagError(name, reserved)
        args.extend([_flag(name), str(value)])
    return args


def _model_and_timeout(
    effective: EffectiveConfig, call_args: Mapping[str, str] | None
) -> list[str]:
    args: list[str] = []
    model = resolve_model(effective, call_args)
    # A blank model leaves the choice to the CLI's own default
    if model:
        args.extend([_flag(FLAG_MODEL), model])
    args.extend([_flag(FLAG_TIMEOUT), str(resolve_timeout(effective, call_args))])
    return args


def build_analyze_args(
    effective: EffectiveConfig,
    content: str,
    analysis_type: str | None = None,
    prompt: str | None = None,
    call_args: Mapping[str, str] | None = None,
    path_expander: PathExpander | None = None,
) -> list[str]:
    """Build ``analyze`` arguments (without the executable).

    Args:
        effective: Resolved configuration.
        content: Text to analyse; always passed.
        analysis_type: Value for ``--type``, skipped when blank.
        prompt: Value for ``--prompt``, skipped when blank.
        call_args: Per-call overrides (model, timeout) and extra flags.
        path_expander: Expands ``~`` for the node the CLI will run on.

    Returns:
        Argument vector starting with the subcommand.

    Raises:
        ReservedFlagError: If an extra flag collides with a builder-owned flag.
    """
    args = [SUBCOMMAND_ANALYZE, _flag(FLAG_CONTENT), content]
    if not _is_blank(analysis_type):
        args.extend([_flag(FLAG_TYPE), str(analysis_type)])
    if not _is_blank(prompt):
        args.extend([_flag(FLAG_PROMPT), str(prompt)])
    args.extend(_model_and_timeout(effective, call_args))
    if effective.enable_mcp_servers:
        mcp_path = effective.mcp_config_path
        if path_expander:
            mcp_path = path_expander(mcp_path)
        args.extend([_flag(FLAG_MCP_CONFIG), mcp_path])
    args.extend(_extra_args(call_args, ANALYZE_RESERVED_FLAGS))
    return args


def build_query_args(
    effective: EffectiveConfig,
    query: str,
    context: str | None = None,
    call_args: Mapping[str, str] | None = None,
) -> list[str]:
    """Build ``query`` arguments (without the executable)."""
    args = [SUBCOMMAND_QUERY, _flag(FLAG_QUERY), query]
    if not _is_blank(context):
        args.extend([_flag(FLAG_CONTEXT), str(context)])
    args.extend(_model_and_timeout(effective, call_args))
    args.extend(_extra_args(call_args, QUERY_RESERVED_FLAGS))
    return args


def build_version_args() -> list[str]:
    return [FLAG_VERSION]


def build_models_list_args() -> list[str]:
    return [SUBCOMMAND_MODELS, SUBCOMMAND_LIST]


def build_mcp_list_args(
    config_path: str | None = None, path_expander: PathExpander | None = None
) -> list[str]:
    args = [SUBCOMMAND_MCP, SUBCOMMAND_LIST]
    if not _is_blank(config_path):
        path = str(config_path)
        args.extend([_flag(FLAG_CONFIG), path_expander(path) if path_expander else path])
    return args


def build(
    subcommand: str,
    effective: EffectiveConfig,
    request: CommandRequest | None = None,
    path_expander: PathExpander | None = None,
) -> list[str]:
    """Build arguments for any supported subcommand.

    Args:
        subcommand: One of ``analyze``, ``query``, ``--version``,
            ``models list`` or ``mcp list``.
        effective: Resolved configuration.
        request: Call-specific inputs.
        path_expander: Expands ``~`` for the executing node.

    Raises:
        ValueError: If the subcommand is not supported.
    """
    request = request or CommandRequest()
    if subcommand == SUBCOMMAND_ANALYZE:
        return build_analyze_args(
            effective,
            request.content,
            analysis_type=request.analysis_type,
            prompt=request.prompt,
            call_args=request.call_args,
            path_expander=path_expander,
        )
    if subcommand == SUBCOMMAND_QUERY:
        return build_query_args(
            effective, request.query, context=request.context, call_args=request.call_args
        )
    if subcommand == FLAG_VERSION:
        return build_version_args()
    if subcommand == f"{SUBCOMMAND_MODELS} {SUBCOMMAND_LIST}":
        return build_models_list_args()
    if subcommand == f"{SUBCOMMAND_MCP} {SUBCOMMAND_LIST}":
        return build_mcp_list_args(effective.config_path, path_expander=path_expander)
    raise ValueError(f"Unsupported Codex CLI subcommand: {subcommand!r}")

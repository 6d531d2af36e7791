"""Configuration resolution and CLI invocation engine.

This package holds the parts with real invariants: precedence rules,
list caching, argument composition and process execution.

Example usage:
    from codex_analysis.engine import LocalExecutor, build_analyze_args, resolve

    effective = resolve(global_config, job_config)
    args = build_analyze_args(effective, content="build log ...")
    result = LocalExecutor().execute(
        effective.cli_path, args, timeout=effective.timeout_seconds
    )
    result.raise_for_status()
"""

from codex_analysis.engine.cache import CacheStore
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
from codex_analysis.engine.executor import Executor, LocalExecutor, ProcessExecutor, expand_home
from codex_analysis.engine.fetcher import (
    RemoteListFetcher,
    parse_list_output,
    parse_mcp_servers_from_toml,
    read_mcp_server_descriptors,
)
from codex_analysis.engine.nodes import (
    Node,
    NodeDefinition,
    NodeRegistry,
    RemoteNodeExecutor,
    label_matches,
)
from codex_analysis.engine.resolver import BUILTIN_DEFAULTS, is_set, resolve

__all__ = [
    "BUILTIN_DEFAULTS",
    "CacheStore",
    "CommandRequest",
    "Executor",
    "LocalExecutor",
    "Node",
    "NodeDefinition",
    "NodeRegistry",
    "ProcessExecutor",
    "RemoteListFetcher",
    "RemoteNodeExecutor",
    "build",
    "build_analyze_args",
    "build_mcp_list_args",
    "build_models_list_args",
    "build_query_args",
    "build_version_args",
    "expand_home",
    "is_set",
    "label_matches",
    "parse_additional_params",
    "parse_list_output",
    "parse_mcp_servers_from_toml",
    "read_mcp_server_descriptors",
    "resolve",
    "resolve_model",
    "resolve_timeout",
]

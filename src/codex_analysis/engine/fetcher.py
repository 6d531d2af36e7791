"""Remote discovery of available models and MCP servers.

The CLI prints free text, so lists are recovered line by line: headers and
separators are dropped and only identifier-like lines are kept. For MCP
servers, an empty CLI answer falls back to scanning the TOML config file
on the executing node for ``[mcp.servers.<name>]`` tables.
"""

from __future__ import annotations

import logging
import re
import tomllib
from typing import Any

from codex_analysis.constants import (
    LIST_HEADER_PREFIXES,
    LIST_ITEM_PATTERN,
    MCP_SERVER_HEADER_PATTERN,
)
from codex_analysis.engine.command_builder import build_mcp_list_args, build_models_list_args
from codex_analysis.engine.executor import Executor
from codex_analysis.models.configuration import HttpMcpServer, StdioMcpServer, parse_mcp_server
from codex_analysis.models.enums import FetchSource
from codex_analysis.models.results import ExecResult, FetchResult

logger = logging.getLogger(__name__)

_ITEM_RE = re.compile(LIST_ITEM_PATTERN)
_SERVER_HEADER_RE = re.compile(MCP_SERVER_HEADER_PATTERN)


def parse_list_output(output: str) -> list[str]:
    """Extract identifiers from CLI list output.

    Args:
        output: Combined stdout/stderr of ``models list`` or ``mcp list``.

    Returns:
        Items in order of appearance, without duplicates.
    """
    items: list[str] = []
    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(LIST_HEADER_PREFIXES):
            continue
        if _ITEM_RE.match(line) and line not in items:
            items.append(line)
    return items


def parse_mcp_servers_from_toml(text: str) -> list[str]:
    """Extract server names from ``[mcp.servers."name"]`` / ``[mcp.servers.name]`` headers."""
    names: list[str] = []
    for match in _SERVER_HEADER_RE.finditer(text):
        name = (match.group(1) or match.group(2) or "").strip()
        if name and name not in names:
            names.append(name)
    return names


def read_mcp_server_descriptors(text: str) -> list[StdioMcpServer | HttpMcpServer]:
    """Load full MCP server descriptors from a Codex TOML config.

    Tables that do not describe a valid stdio or http server are skipped.
    """
    try:
        data: dict[str, Any] = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        logger.warning(f"Could not parse Codex config TOML: {e}")
        return []

    servers = data.get("mcp", {}).get("servers", {})
    descriptors: list[StdioMcpServer | HttpMcpServer] = []
    for name, table in servers.items():
        if not isinstance(table, dict):
            continue
        try:
            descriptors.append(parse_mcp_server({**table, "name": name}))
        except ValueError as e:
            logger.warning(f"Skipping MCP server '{name}': {e}")
    return descriptors


class RemoteListFetcher:
    """Lists models and MCP servers by asking the CLI on one node.

    Example usage:
        fetcher = RemoteListFetcher(LocalExecutor())
        result = fetcher.fetch_models("~/.local/bin/codex", timeout=30)
        print(result.items)
    """

    def __init__(self, executor: Executor, env: dict[str, str] | None = None):
        """Initialize fetcher.

        Args:
            executor: Node capability used to run the CLI and read files.
            env: Extra environment for the CLI process.
        """
        self.executor = executor
        self.env = env

    def _run(self, cli_path: str, args: list[str], timeout: float) -> ExecResult:
        return self.executor.execute(
            cli_path, args, env=self.env, timeout=timeout, combine_output=True
        )

    def fetch_models(self, cli_path: str, timeout: float) -> FetchResult:
        """Run ``models list`` and parse the output.

        Returns:
            FetchResult with the parsed models; a failed command carries its
            output as the error instead of raising.
        """
        result = self._run(cli_path, build_models_list_args(), timeout)
        if not result.success:
            logger.warning(f"'models list' failed on {self.executor.node_name}: {result.error}")
            return FetchResult(
                error=result.stdout.strip() or result.error,
                exit_code=result.exit_code,
                output=result.stdout,
            )

        items = parse_list_output(result.stdout)
        logger.info(f"Parsed {len(items)} models from Codex CLI on {self.executor.node_name}")
        return FetchResult(
            items=items,
            source=FetchSource.CLI if items else FetchSource.NONE,
            exit_code=result.exit_code,
            output=result.stdout,
        )

    def fetch_mcp_servers(self, cli_path: str, config_path: str, timeout: float) -> FetchResult:
        """Run ``mcp list --config <path>``, falling back to the TOML file.

        The fallback runs when the CLI fails or prints nothing usable. The
        command error is kept on the result only if the fallback is empty too.
        """
        args = build_mcp_list_args(config_path, path_expander=self.executor.expand_path)
        result = self._run(cli_path, args, timeout)

        items = parse_list_output(result.stdout) if result.success else []
        if items:
            logger.info(f"Parsed {len(items)} MCP servers from Codex CLI")
            return FetchResult(
                items=items,
                source=FetchSource.CLI,
                exit_code=result.exit_code,
                output=result.stdout,
            )

        fallback = self.read_config_servers(config_path)
        if fallback:
            logger.info(f"Found {len(fallback)} MCP servers in {config_path}")
            return FetchResult(
                items=fallback,
                source=FetchSource.CONFIG_FILE,
                exit_code=result.exit_code,
                output=result.stdout,
            )

        error = None
        if not result.success:
            error = result.stdout.strip() or result.error
            logger.warning(f"'mcp list' failed on {self.executor.node_name}: {error}")
        return FetchResult(error=error, exit_code=result.exit_code, output=result.stdout)

    def read_config_servers(self, config_path: str) -> list[str]:
        """Server names declared in the TOML config on the executing node."""
        if not config_path or not config_path.strip():
            return []
        text = self.executor.read_text(config_path)
        if text is None:
            return []
        return parse_mcp_servers_from_toml(text)

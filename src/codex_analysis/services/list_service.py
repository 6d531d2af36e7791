"""Model and MCP server list refresh, options and cache status.

Feeds selection lists without running the CLI on every render: options are
served from the caches in ConfigStore and only a refresh invokes the CLI.
"""

import logging
from dataclasses import dataclass, field

from codex_analysis.config.messages import (
    CACHE_STATUS_MESSAGES,
    ERROR_MESSAGES,
    SUCCESS_MESSAGES,
    WARNING_MESSAGES,
)
from codex_analysis.config.settings import engine_settings
from codex_analysis.constants import DEFAULT_MODEL_OPTIONS
from codex_analysis.engine.cache import CacheStore
from codex_analysis.engine.executor import Executor
from codex_analysis.engine.fetcher import RemoteListFetcher
from codex_analysis.exceptions import CodexAnalysisError
from codex_analysis.models.configuration import EffectiveConfig
from codex_analysis.models.enums import IssueLevel
from codex_analysis.models.results import FetchResult
from codex_analysis.services.config_store import ConfigStore

logger = logging.getLogger(__name__)


@dataclass
class RefreshOutcome:
    """What a refresh did, phrased for the person who asked for it."""

    level: IssueLevel
    message: str
    items: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.level == IssueLevel.OK


class ListService:
    """Refreshes and serves the model and MCP server lists.

    Example usage:
        service = ListService(store)
        outcome = service.refresh_models(effective, LocalExecutor())
        print(outcome.message)
        options = service.model_options()
    """

    def __init__(self, store: ConfigStore, ttl_seconds: float | None = None):
        self.store = store
        self.ttl_seconds = (
            ttl_seconds if ttl_seconds is not None else engine_settings.cache_ttl_seconds
        )

    # -------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------

    def refresh_models(
        self, effective: EffectiveConfig, executor: Executor, env: dict[str, str] | None = None
    ) -> RefreshOutcome:
        """Fetch models from the CLI and update the cache when any were found."""
        fetcher = RemoteListFetcher(executor, env=env)
        try:
            result = fetcher.fetch_models(effective.cli_path, timeout=effective.timeout_seconds)
        except CodexAnalysisError as e:
            logger.warning(f"Model refresh failed: {e}")
            return RefreshOutcome(
                IssueLevel.ERROR, ERROR_MESSAGES["fetch_models_failed"].format(error=e)
            )

        return self._apply(
            result,
            self.store.model_cache,
            found_key="models_fetched",
            empty_key="no_models_found",
            failed_key="fetch_models_failed",
        )

    def refresh_mcp_servers(
        self, effective: EffectiveConfig, executor: Executor, env: dict[str, str] | None = None
    ) -> RefreshOutcome:
        """Fetch MCP servers (with TOML fallback) and update the cache when any were found."""
        fetcher = RemoteListFetcher(executor, env=env)
        try:
            result = fetcher.fetch_mcp_servers(
                effective.cli_path,
                effective.mcp_config_path,
                timeout=effective.timeout_seconds,
            )
        except CodexAnalysisError as e:
            logger.warning(f"MCP server refresh failed: {e}")
            return RefreshOutcome(
                IssueLevel.ERROR, ERROR_MESSAGES["fetch_mcp_servers_failed"].format(error=e)
            )

        return self._apply(
            result,
            self.store.mcp_server_cache,
            found_key="mcp_servers_fetched",
            empty_key="no_mcp_servers_found",
            failed_key="fetch_mcp_servers_failed",
        )

    def _apply(
        self,
        result: FetchResult,
        cache: CacheStore,
        found_key: str,
        empty_key: str,
        failed_key: str,
    ) -> RefreshOutcome:
        if result.found:
            cache.put(result.items)
            self.store.save()
            return RefreshOutcome(
                IssueLevel.OK,
                SUCCESS_MESSAGES[found_key].format(count=len(result.items)),
                items=list(result.items),
            )

        if result.error is None:
            return RefreshOutcome(IssueLevel.WARNING, WARNING_MESSAGES[empty_key])

        if result.exit_code is None:
            return RefreshOutcome(
                IssueLevel.ERROR, ERROR_MESSAGES[failed_key].format(error=result.error)
            )

        return RefreshOutcome(
            IssueLevel.ERROR,
            ERROR_MESSAGES["cli_exit_code"].format(
                exit_code=result.exit_code, output=result.output or result.error
            ),
        )

    # -------------------------------------------------------------------------
    # Options
    # -------------------------------------------------------------------------

    def model_options(self) -> list[str]:
        """Cached models while fresh, otherwise the built-in list."""
        items, fresh = self.store.model_cache.get(self.ttl_seconds)
        if fresh:
            return items
        return list(DEFAULT_MODEL_OPTIONS)

    def mcp_server_options(self) -> list[str]:
        """Cached MCP servers, stale or not; there is no built-in list."""
        items, _ = self.store.mcp_server_cache.get(self.ttl_seconds)
        return items

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def model_cache_status(self) -> str:
        return self._status(self.store.model_cache, "models")

    def mcp_server_cache_status(self) -> str:
        return self._status(self.store.mcp_server_cache, "mcp_servers")

    def _status(self, cache: CacheStore, prefix: str) -> str:
        items, _ = cache.get(self.ttl_seconds)
        if not items:
            return CACHE_STATUS_MESSAGES[f"{prefix}_empty"]

        age = cache.age_seconds()
        minutes = int(age // 60)
        if age > self.ttl_seconds:
            return CACHE_STATUS_MESSAGES[f"{prefix}_expired"].format(minutes=minutes)
        return CACHE_STATUS_MESSAGES[f"{prefix}_current"].format(
            minutes=minutes, count=len(items)
        )

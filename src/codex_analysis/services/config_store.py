"""Persisted configuration store.

One YAML document holds everything that survives a restart:

    global:  the process-wide configuration
    jobs:    job configurations keyed by job name
    nodes:   agent definitions for label-based dispatch
    cache:   last fetched model / MCP server lists

The store is the only owner of the global configuration. Readers get deep
copies; writers swap a whole object in under the lock and persist.
"""

import logging
import threading
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from codex_analysis.config.settings import engine_settings
from codex_analysis.constants import CACHE_MCP_SERVERS, CACHE_MODELS
from codex_analysis.engine.cache import CacheStore
from codex_analysis.engine.nodes import NodeDefinition
from codex_analysis.exceptions import ConfigurationError
from codex_analysis.models.configuration import GlobalConfiguration, JobConfiguration

logger = logging.getLogger(__name__)


class StoreDocument(BaseModel):
    """Shape of the persisted YAML document."""

    model_config = ConfigDict(populate_by_name=True)

    global_config: GlobalConfiguration = Field(
        default_factory=GlobalConfiguration, alias="global"
    )
    jobs: dict[str, JobConfiguration] = Field(default_factory=dict)
    nodes: list[NodeDefinition] = Field(default_factory=list)
    cache: dict[str, dict[str, Any]] = Field(default_factory=dict)


class _InlineListDumper(yaml.SafeDumper):
    pass


def _represent_list(dumper: yaml.SafeDumper, data: list[Any]) -> yaml.nodes.Node:
    # Keep short lists (≤3 items) inline, longer ones multi-line
    if len(data) <= 3:
        return dumper.represent_sequence("tag:yaml.org,2002:seq", data, flow_style=True)
    return dumper.represent_sequence("tag:yaml.org,2002:seq", data, flow_style=False)


_InlineListDumper.add_representer(list, _represent_list)


class ConfigStore:
    """Thread-safe owner of persisted configuration and list caches.

    Example usage:
        store = ConfigStore.load(Path("~/.codex-analysis/config.yaml").expanduser())
        cfg = store.global_config()
        cfg.default_model = "gpt-4"
        store.save_global(cfg)
    """

    def __init__(self, path: Path, document: StoreDocument | None = None):
        """Initialize store.

        Args:
            path: YAML file backing the store.
            document: Already-parsed contents (defaults when omitted).
        """
        self.path = path
        self._document = document or StoreDocument()
        self._lock = threading.RLock()
        self.model_cache = CacheStore.from_dict(self._document.cache.get(CACHE_MODELS))
        self.mcp_server_cache = CacheStore.from_dict(self._document.cache.get(CACHE_MCP_SERVERS))

    @classmethod
    def load(cls, path: Path | None = None) -> "ConfigStore":
        """Load the store from disk; a missing or empty file yields defaults.

        Raises:
            ConfigurationError: If the file is not valid YAML or does not
                match the expected shape.
        """
        path = path or Path(engine_settings.store_path).expanduser()
        if not path.exists():
            logger.info(f"No configuration at {path}, using defaults")
            return cls(path)

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration: {e}", config_file=path) from e

        if not data:
            return cls(path)

        try:
            document = StoreDocument.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}", config_file=path) from e

        logger.debug(f"Loaded configuration from {path} ({len(document.jobs)} jobs)")
        return cls(path, document)

    # -------------------------------------------------------------------------
    # Global configuration
    # -------------------------------------------------------------------------

    def global_config(self) -> GlobalConfiguration:
        with self._lock:
            return self._document.global_config.model_copy(deep=True)

    def save_global(self, config: GlobalConfiguration) -> None:
        with self._lock:
            self._document.global_config = config.model_copy(deep=True)
            self._persist()

    # -------------------------------------------------------------------------
    # Job configurations
    # -------------------------------------------------------------------------

    def job_config(self, job_name: str) -> JobConfiguration | None:
        with self._lock:
            config = self._document.jobs.get(job_name)
            return config.model_copy(deep=True) if config else None

    def job_names(self) -> list[str]:
        with self._lock:
            return sorted(self._document.jobs)

    def save_job(self, job_name: str, config: JobConfiguration) -> None:
        with self._lock:
            self._document.jobs[job_name] = config.model_copy(deep=True)
            self._persist()

    def remove_job(self, job_name: str) -> bool:
        with self._lock:
            removed = self._document.jobs.pop(job_name, None) is not None
            if removed:
                self._persist()
            return removed

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def nodes(self) -> list[NodeDefinition]:
        with self._lock:
            return [node.model_copy(deep=True) for node in self._document.nodes]

    def save_nodes(self, nodes: list[NodeDefinition]) -> None:
        with self._lock:
            self._document.nodes = [node.model_copy(deep=True) for node in nodes]
            self._persist()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self) -> None:
        """Persist current state, including both list caches."""
        with self._lock:
            self._persist()

    def _persist(self) -> None:
        self._document.cache = {
            CACHE_MODELS: self.model_cache.to_dict(),
            CACHE_MCP_SERVERS: self.mcp_server_cache.to_dict(),
        }
        data = self._document.model_dump(mode="json", by_alias=True)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.dump(
                data,
                f,
                Dumper=_InlineListDumper,
                default_flow_style=False,
                sort_keys=False,
            )
        logger.debug(f"Saved configuration to {self.path}")

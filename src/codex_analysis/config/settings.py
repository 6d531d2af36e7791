"""Runtime settings for codex-analysis.

This module uses Pydantic Settings for knobs that can be overridden via
environment variables with the CODEX_ANALYSIS_ prefix. Persisted plugin
configuration (global/job/nodes) lives in the YAML store instead.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from codex_analysis.constants import (
    CACHE_TTL_SECONDS,
    DEFAULT_STORE_DIR,
    DEFAULT_STORE_FILE,
    PROBE_TIMEOUT_SECONDS,
    PROCESS_KILL_GRACE_SECONDS,
)


class EngineSettings(BaseSettings):
    """Process execution and caching settings.

    Can be overridden via environment variables with CODEX_ANALYSIS_ prefix.
    """

    model_config = SettingsConfigDict(env_prefix="CODEX_ANALYSIS_")

    store_path: str = Field(
        default=f"{DEFAULT_STORE_DIR}/{DEFAULT_STORE_FILE}",
        description="YAML file holding global, job, node and cache state",
    )
    cache_ttl_seconds: int = Field(
        default=CACHE_TTL_SECONDS,
        description="How long fetched model/MCP server lists stay fresh",
    )
    probe_timeout_seconds: float = Field(
        default=PROBE_TIMEOUT_SECONDS,
        description="Deadline for the '--version' availability check",
    )
    kill_grace_seconds: float = Field(
        default=PROCESS_KILL_GRACE_SECONDS,
        description="Time to wait for pipes to drain after killing a process group",
    )


class LoggingSettings(BaseSettings):
    """Logging settings.

    Can be overridden via environment variables with CODEX_ANALYSIS_LOG_ prefix.
    """

    model_config = SettingsConfigDict(env_prefix="CODEX_ANALYSIS_LOG_")

    level: str = Field(default="WARNING", description="Log level for the package logger")
    file: str | None = Field(default=None, description="Optional rotating log file path")


# Singleton instances for easy import
engine_settings = EngineSettings()
logging_settings = LoggingSettings()

"""Services built on the engine: persistence, list refresh, analysis, install."""

from pathlib import Path

from codex_analysis.services.analysis_service import (
    AnalysisOutcome,
    AnalysisRequest,
    AnalysisService,
    ChatReply,
    PipelineContext,
    TaskListener,
)
from codex_analysis.services.cli_installer import CliInstaller
from codex_analysis.services.config_store import ConfigStore
from codex_analysis.services.list_service import ListService, RefreshOutcome
from codex_analysis.services.validation import has_errors, validate_configuration


def get_analysis_service(store_path: Path | None = None) -> AnalysisService:
    """Get an AnalysisService backed by the configured store.

    Args:
        store_path: Store file (defaults to CODEX_ANALYSIS_STORE_PATH).

    Returns:
        AnalysisService instance
    """
    return AnalysisService(ConfigStore.load(store_path))


__all__ = [
    "AnalysisOutcome",
    "AnalysisRequest",
    "AnalysisService",
    "ChatReply",
    "CliInstaller",
    "ConfigStore",
    "ListService",
    "PipelineContext",
    "RefreshOutcome",
    "TaskListener",
    "get_analysis_service",
    "has_errors",
    "validate_configuration",
]

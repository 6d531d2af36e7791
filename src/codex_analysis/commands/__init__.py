"""CLI commands - shared utilities.

Holds the helpers every command module uses to reach the configuration
store, resolve a job's effective configuration and pick its node.
"""

import logging
from pathlib import Path

import typer
from rich.console import Console

from codex_analysis.config.messages import ERROR_MESSAGES
from codex_analysis.engine.executor import Executor
from codex_analysis.engine.nodes import NodeRegistry
from codex_analysis.engine.resolver import resolve
from codex_analysis.exceptions import CodexAnalysisError
from codex_analysis.models.configuration import EffectiveConfig, JobConfiguration
from codex_analysis.services.config_store import ConfigStore
from codex_analysis.utils import print_error

logger = logging.getLogger(__name__)
console = Console()

STORE_PATH_KEY = "store_path"


def store_path_from(ctx: typer.Context) -> Path | None:
    return (ctx.obj or {}).get(STORE_PATH_KEY)


def load_store(store_path: Path | None) -> ConfigStore:
    """Load a store, exiting with the configuration error if it is unreadable."""
    try:
        return ConfigStore.load(store_path)
    except CodexAnalysisError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def get_store(ctx: typer.Context) -> ConfigStore:
    """Load the store named on the command line (or the default one)."""
    return load_store(store_path_from(ctx))


def get_job_config(store: ConfigStore, job: str | None) -> JobConfiguration | None:
    """Look up a job configuration, exiting if a named job is unknown."""
    if job is None:
        return None
    job_config = store.job_config(job)
    if job_config is None:
        print_error(ERROR_MESSAGES["unknown_job"].format(job=job))
        raise typer.Exit(code=1)
    return job_config


def resolve_for_job(
    store: ConfigStore, job: str | None
) -> tuple[EffectiveConfig, JobConfiguration | None]:
    job_config = get_job_config(store, job)
    return resolve(store.global_config(), job_config), job_config


def select_executor(store: ConfigStore, job_config: JobConfiguration | None) -> Executor:
    """Pick the node a job runs on, exiting when no node matches its label."""
    registry = NodeRegistry.from_definitions(store.nodes())
    label = job_config.label if job_config is not None else ""
    try:
        return registry.select(label).executor
    except CodexAnalysisError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


__all__ = [
    "STORE_PATH_KEY",
    "console",
    "get_job_config",
    "get_store",
    "load_store",
    "logger",
    "resolve_for_job",
    "select_executor",
    "store_path_from",
]

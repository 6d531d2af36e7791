"""Effective configuration resolution.

Priority for every field (highest first):
1. Job configuration, when ``use_job_config`` is set and the field is set
2. Global configuration, when the field is set and the policy allows it
3. Built-in default

"Set" means non-blank for strings, positive for the timeout, True for
booleans and non-empty for lists. Lists are taken whole from one tier and
never merged across tiers.
"""

import logging
from typing import Any

from codex_analysis.constants import DEFAULT_CLI_PATH, DEFAULT_CONFIG_PATH, DEFAULT_TIMEOUT_SECONDS
from codex_analysis.exceptions import ConfigurationAbsentError
from codex_analysis.models.configuration import (
    RESOLVABLE_FIELDS,
    Configuration,
    EffectiveConfig,
    GlobalConfiguration,
    JobConfiguration,
    ResolutionPolicy,
)

logger = logging.getLogger(__name__)

BUILTIN_DEFAULTS: dict[str, Any] = {
    "cli_path": DEFAULT_CLI_PATH,
    "cli_download_url": "",
    "cli_download_username": "",
    "cli_download_password": "",
    "config_path": DEFAULT_CONFIG_PATH,
    "default_model": "",
    "timeout_seconds": DEFAULT_TIMEOUT_SECONDS,
    "enable_mcp_servers": False,
    "api_key": "",
    "selected_mcp_servers": (),
}


def is_set(value: Any) -> bool:
    """Return True if a field value should override lower tiers."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value > 0
    if isinstance(value, str):
        return bool(value.strip())
    if value is None:
        return False
    return len(value) > 0


def _resolve_field(
    field_name: str,
    global_config: Configuration,
    job_config: JobConfiguration | None,
    policy: ResolutionPolicy,
) -> Any:
    if job_config is not None and job_config.use_job_config:
        job_value = getattr(job_config, field_name)
        if is_set(job_value):
            return job_value

    if policy.allows_global_fallback(field_name):
        global_value = getattr(global_config, field_name)
        if is_set(global_value):
            return global_value

    return BUILTIN_DEFAULTS[field_name]


def resolve(
    global_config: Configuration | None,
    job_config: JobConfiguration | None = None,
    policy: ResolutionPolicy | None = None,
) -> EffectiveConfig:
    """Compute the effective configuration for one invocation.

    Args:
        global_config: Process-wide configuration.
        job_config: Optional job configuration.
        policy: Fallback policy. Defaults to the global configuration's own
            policy, or "fall back for every field" for plain configurations.

    Returns:
        Frozen EffectiveConfig snapshot.

    Raises:
        ConfigurationAbsentError: If no global configuration was supplied.
    """
    if global_config is None:
        raise ConfigurationAbsentError()

    if policy is None:
        if isinstance(global_config, GlobalConfiguration):
            policy = global_config.resolution_policy
        else:
            policy = ResolutionPolicy()

    values = {
        name: _resolve_field(name, global_config, job_config, policy)
        for name in RESOLVABLE_FIELDS
    }
    values["selected_mcp_servers"] = tuple(values["selected_mcp_servers"])
    job_scoped = job_config is not None and job_config.use_job_config

    effective = EffectiveConfig(**values, job_scoped=job_scoped)
    logger.debug(
        f"Resolved configuration (job_scoped={job_scoped}): cli_path={effective.cli_path}, "
        f"model={effective.default_model or '<cli default>'}, "
        f"timeout={effective.timeout_seconds}s, mcp={effective.enable_mcp_servers}"
    )
    return effective

"""Configuration validation.

Produces advisory findings for a configuration before it is saved. Only
a non-positive global timeout is an error; everything else warns.
"""

from codex_analysis.config.messages import VALIDATION_MESSAGES
from codex_analysis.constants import (
    MAX_RECOMMENDED_TIMEOUT_SECONDS,
    MIN_API_KEY_LENGTH,
    MIN_PASSWORD_LENGTH,
    MIN_USERNAME_LENGTH,
)
from codex_analysis.models.configuration import Configuration, JobConfiguration
from codex_analysis.models.enums import IssueLevel
from codex_analysis.models.results import ValidationIssue


def _warn(field: str, key: str, **kwargs: str) -> ValidationIssue:
    return ValidationIssue(IssueLevel.WARNING, field, VALIDATION_MESSAGES[key].format(**kwargs))


def validate_configuration(
    config: Configuration,
    available_models: list[str] | None = None,
) -> list[ValidationIssue]:
    """Check a configuration and return its findings.

    Job configurations treat empty fields as "inherit", so they are only
    checked for values that are actually set, and not at all unless
    ``use_job_config`` is on.

    Args:
        config: Global or job configuration.
        available_models: Current model options, to flag unknown models.

    Returns:
        Warnings and errors; an empty list means the configuration is fine.
    """
    is_job = isinstance(config, JobConfiguration)
    if is_job and not config.use_job_config:
        return []

    issues: list[ValidationIssue] = []

    if not config.cli_path.strip():
        if not is_job:
            issues.append(_warn("cli_path", "cli_path_empty"))

    url = config.cli_download_url.strip()
    if url and not url.startswith(("http://", "https://")):
        issues.append(_warn("cli_download_url", "download_url_scheme"))

    username = config.cli_download_username.strip()
    if username and len(username) < MIN_USERNAME_LENGTH:
        issues.append(_warn("cli_download_username", "username_short"))

    password = config.cli_download_password.strip()
    if password and len(password) < MIN_PASSWORD_LENGTH:
        issues.append(_warn("cli_download_password", "password_short"))

    if not config.config_path.strip() and not is_job:
        issues.append(_warn("config_path", "config_path_empty"))

    timeout = config.timeout_seconds
    if timeout < 0 or (timeout == 0 and not is_job):
        issues.append(
            ValidationIssue(
                IssueLevel.ERROR, "timeout_seconds", VALIDATION_MESSAGES["timeout_not_positive"]
            )
        )
    elif timeout > MAX_RECOMMENDED_TIMEOUT_SECONDS:
        issues.append(_warn("timeout_seconds", "timeout_long"))

    model = config.default_model.strip()
    if not model:
        if not is_job:
            issues.append(_warn("default_model", "model_empty"))
    elif available_models is not None and model not in available_models:
        issues.append(_warn("default_model", "model_unknown", model=model))

    api_key = config.api_key.strip()
    if not api_key:
        if not is_job:
            issues.append(_warn("api_key", "api_key_empty"))
    elif len(api_key) < MIN_API_KEY_LENGTH:
        issues.append(_warn("api_key", "api_key_short"))

    return issues


def has_errors(issues: list[ValidationIssue]) -> bool:
    return any(issue.level == IssueLevel.ERROR for issue in issues)

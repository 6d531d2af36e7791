"""Configuration commands.

Commands:
- show: Print the stored global or job configuration
- set: Change one field of the global or a job configuration
- validate: Report warnings and errors for a configuration
- effective: Print the configuration a job would actually run with
- policy: Choose which fields may fall back from job to global
"""

from typing import Any

import typer
import yaml
from pydantic import ValidationError as PydanticValidationError

from codex_analysis.commands import console, get_job_config, get_store, resolve_for_job
from codex_analysis.config.messages import ERROR_MESSAGES, SUCCESS_MESSAGES
from codex_analysis.models.configuration import (
    JOB_ONLY_POLICY,
    RESOLVABLE_FIELDS,
    Configuration,
    JobConfiguration,
    ResolutionPolicy,
)
from codex_analysis.models.enums import IssueLevel
from codex_analysis.services.list_service import ListService
from codex_analysis.services.validation import has_errors, validate_configuration
from codex_analysis.utils import print_error, print_header, print_info, print_success, print_warning

config_app = typer.Typer(
    name="config",
    help="Show and edit global and job configuration",
    no_args_is_help=True,
)

SECRET_FIELDS = ("cli_download_password", "api_key")
JOB_ONLY_KEYS = ("use_job_config", "label")


def _masked(config: Configuration) -> dict[str, Any]:
    data = config.model_dump(mode="json")
    for secret in SECRET_FIELDS:
        if data.get(secret):
            data[secret] = "****"
    return data


def _print_yaml(data: dict[str, Any]) -> None:
    text = yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip()
    console.print(text, markup=False, highlight=False)


def _coerce(key: str, value: str) -> Any:
    if key == "selected_mcp_servers":
        return [name.strip() for name in value.split(",") if name.strip()]
    return value


def _apply(config: Configuration, key: str, value: str) -> None:
    """Assign a field through pydantic validation, exiting on a bad or rejected value."""
    try:
        setattr(config, key, _coerce(key, value))
    except PydanticValidationError as e:
        print_error(f"Invalid value for {key}: {e.errors()[0]['msg']}")
        raise typer.Exit(code=1) from e

    for issue in validate_configuration(config):
        if issue.field != key:
            continue
        if issue.level == IssueLevel.ERROR:
            print_error(str(issue))
            raise typer.Exit(code=1)
        print_warning(str(issue))


@config_app.command("show")
def show_config(
    ctx: typer.Context,
    job: str | None = typer.Option(None, "--job", "-j", help="Show this job's configuration"),
) -> None:
    """Print a stored configuration with secrets masked.

    Example:
        codex-analysis config show
        codex-analysis config show --job app/main
    """
    store = get_store(ctx)
    if job is None:
        print_header(f"Global configuration ({store.path})")
        _print_yaml(_masked(store.global_config()))
        jobs = store.job_names()
        if jobs:
            print_info(f"Job configurations: {', '.join(jobs)}")
        return

    job_config = get_job_config(store, job)
    print_header(f"Job configuration: {job}")
    _print_yaml(_masked(job_config))


@config_app.command("set")
def set_config(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Field name, e.g. default_model"),
    value: str = typer.Argument(..., help="New value (comma-separated for lists)"),
    job: str | None = typer.Option(
        None, "--job", "-j", help="Edit this job's configuration (created if missing)"
    ),
) -> None:
    """Set one configuration field and save.

    Example:
        codex-analysis config set timeout_seconds 300
        codex-analysis config set use_job_config true --job app/main
        codex-analysis config set selected_mcp_servers "github,jira" --job app/main
    """
    store = get_store(ctx)
    allowed = set(RESOLVABLE_FIELDS) | (set(JOB_ONLY_KEYS) if job is not None else set())
    if key not in allowed:
        print_error(ERROR_MESSAGES["unknown_key"].format(key=key))
        raise typer.Exit(code=1)

    if job is None:
        global_config = store.global_config()
        _apply(global_config, key, value)
        store.save_global(global_config)
    else:
        job_config = store.job_config(job) or JobConfiguration()
        _apply(job_config, key, value)
        store.save_job(job, job_config)
    print_success(SUCCESS_MESSAGES["config_saved"].format(path=store.path))


@config_app.command("validate")
def validate_config(
    ctx: typer.Context,
    job: str | None = typer.Option(None, "--job", "-j", help="Validate this job's configuration"),
) -> None:
    """Validate a configuration; exits 1 when any error is found.

    Example:
        codex-analysis config validate --job app/main
    """
    store = get_store(ctx)
    config: Configuration
    config = store.global_config() if job is None else get_job_config(store, job)

    models = ListService(store).model_options()
    issues = validate_configuration(config, available_models=models)
    if not issues:
        print_success("Configuration is valid")
        return

    for issue in issues:
        if issue.level == IssueLevel.ERROR:
            print_error(str(issue))
        else:
            print_warning(str(issue))
    if has_errors(issues):
        raise typer.Exit(code=1)


@config_app.command("effective")
def effective_config(
    ctx: typer.Context,
    job: str | None = typer.Option(None, "--job", "-j", help="Resolve for this job"),
) -> None:
    """Print the resolved configuration a job would run with.

    Example:
        codex-analysis config effective --job app/main
    """
    store = get_store(ctx)
    effective, _ = resolve_for_job(store, job)
    print_header(f"Effective configuration ({job or 'global'})")
    _print_yaml(effective.redacted())


@config_app.command("policy")
def resolution_policy(
    ctx: typer.Context,
    job_only: list[str] | None = typer.Option(
        None, "--job-only", help="Field that never falls back to global (repeatable)"
    ),
    legacy: bool = typer.Option(
        False, "--legacy", help="Model and MCP settings are job-only"
    ),
    reset: bool = typer.Option(False, "--reset", help="Every field falls back to global"),
) -> None:
    """Show or change which fields may fall back from job to global.

    Example:
        codex-analysis config policy
        codex-analysis config policy --legacy
        codex-analysis config policy --job-only default_model --job-only api_key
    """
    store = get_store(ctx)
    config = store.global_config()

    if reset or legacy or job_only:
        try:
            if reset:
                policy = ResolutionPolicy()
            elif legacy:
                policy = JOB_ONLY_POLICY.model_copy(deep=True)
            else:
                policy = ResolutionPolicy(job_only_fields=job_only or [])
        except PydanticValidationError as e:
            print_error(f"Invalid policy: {e.errors()[0]['msg']}")
            raise typer.Exit(code=1) from e
        config.resolution_policy = policy
        store.save_global(config)
        print_success(SUCCESS_MESSAGES["config_saved"].format(path=store.path))

    fields = config.resolution_policy.job_only_fields
    if fields:
        print_info(f"Job-only fields: {', '.join(fields)}")
    else:
        print_info("All fields fall back to the global configuration")

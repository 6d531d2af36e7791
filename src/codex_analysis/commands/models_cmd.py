"""Model list commands.

Commands:
- list: Show the model options a job would be offered
- refresh: Ask the Codex CLI for its models and update the cache
- status: Describe the age of the model cache
"""

import typer

from codex_analysis.commands import console, get_store, resolve_for_job, select_executor
from codex_analysis.models.enums import IssueLevel
from codex_analysis.services.list_service import ListService
from codex_analysis.utils import print_error, print_info, print_success, print_warning

models_app = typer.Typer(
    name="models",
    help="Inspect and refresh the available model list",
    no_args_is_help=True,
)


@models_app.command("list")
def list_models(ctx: typer.Context) -> None:
    """List model options (cached while fresh, built-in otherwise).

    Example:
        codex-analysis models list
    """
    service = ListService(get_store(ctx))
    for model in service.model_options():
        console.print(f"  {model}", markup=False)


@models_app.command("refresh")
def refresh_models(
    ctx: typer.Context,
    job: str | None = typer.Option(None, "--job", "-j", help="Resolve settings for this job"),
) -> None:
    """Fetch the model list from the Codex CLI.

    The CLI runs on the node the job's label selects, with the job's
    effective configuration.

    Example:
        codex-analysis models refresh --job app/main
    """
    store = get_store(ctx)
    effective, job_config = resolve_for_job(store, job)
    executor = select_executor(store, job_config)

    outcome = ListService(store).refresh_models(effective, executor)
    if outcome.level == IssueLevel.OK:
        print_success(outcome.message)
        for model in outcome.items:
            console.print(f"  {model}", markup=False)
    elif outcome.level == IssueLevel.WARNING:
        print_warning(outcome.message)
    else:
        print_error(outcome.message)
        raise typer.Exit(code=1)


@models_app.command("status")
def models_status(ctx: typer.Context) -> None:
    """Show whether the model cache is current."""
    print_info(ListService(get_store(ctx)).model_cache_status())

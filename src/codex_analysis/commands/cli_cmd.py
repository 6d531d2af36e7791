"""Codex CLI maintenance commands.

Commands:
- test: Run ``codex --version`` on the job's node
- update: Download the CLI and install it at the configured path
"""

import typer

from codex_analysis.commands import get_store, resolve_for_job, select_executor
from codex_analysis.constants import API_KEY_ENV_VAR
from codex_analysis.exceptions import ExecutionError
from codex_analysis.services.cli_installer import CliInstaller
from codex_analysis.utils import print_error, print_success

cli_app = typer.Typer(
    name="cli",
    help="Test and update the Codex CLI binary",
    no_args_is_help=True,
)


@cli_app.command("test")
def test_cli(
    ctx: typer.Context,
    job: str | None = typer.Option(None, "--job", "-j", help="Resolve settings for this job"),
) -> None:
    """Check that the Codex CLI runs on the job's node.

    Example:
        codex-analysis cli test --job app/main
    """
    store = get_store(ctx)
    effective, job_config = resolve_for_job(store, job)
    executor = select_executor(store, job_config)
    env = {API_KEY_ENV_VAR: effective.api_key} if effective.api_key else None

    try:
        message = CliInstaller(executor).test_cli(effective, env=env)
    except ExecutionError as e:
        print_error(f"Codex CLI test failed: {e.message}")
        raise typer.Exit(code=1) from e
    print_success(message)


@cli_app.command("update")
def update_cli(
    ctx: typer.Context,
    job: str = typer.Option(..., "--job", "-j", help="Job whose download settings are used"),
) -> None:
    """Download the Codex CLI and install it for a job.

    Only job configurations with ``use_job_config`` enabled may update the
    CLI; the binary is written to the job's effective CLI path.

    Example:
        codex-analysis cli update --job app/main
    """
    store = get_store(ctx)
    effective, job_config = resolve_for_job(store, job)
    executor = select_executor(store, job_config)

    result = CliInstaller(executor).update_cli(effective)
    if not result.success:
        print_error(result.message)
        raise typer.Exit(code=1)
    print_success(result.message)

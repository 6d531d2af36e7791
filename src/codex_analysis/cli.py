"""Main CLI entry point for codex-analysis."""

import logging
import sys
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console

from codex_analysis import __version__
from codex_analysis.commands import STORE_PATH_KEY, store_path_from
from codex_analysis.commands.analyze_cmd import analyze_command, chat_command, stage_command
from codex_analysis.commands.cli_cmd import cli_app
from codex_analysis.commands.config_cmd import config_app
from codex_analysis.commands.mcp_cmd import mcp_app
from codex_analysis.commands.models_cmd import models_app
from codex_analysis.config.messages import PROJECT_TAGLINE
from codex_analysis.config.settings import logging_settings
from codex_analysis.models.enums import AnalysisType, BuildResult
from codex_analysis.utils import configure_logging, print_error, print_panel
from codex_analysis.utils.log_config import PACKAGE_LOGGER

# Load .env file from current directory if it exists
load_dotenv(Path.cwd() / ".env", verbose=False)

# Create main Typer app
app = typer.Typer(
    name="codex-analysis",
    help=PROJECT_TAGLINE,
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

# Add command groups
app.add_typer(models_app, name="models")
app.add_typer(mcp_app, name="mcp")
app.add_typer(config_app, name="config")
app.add_typer(cli_app, name="cli")

# Create console for output
console = Console()

ANALYSIS_TYPE_HELP = f"Analysis type: {', '.join(AnalysisType.values())}"
BUILD_RESULT_HELP = f"Build result so far: {', '.join(BuildResult.values())}"


def _check_choice(value: str | None, choices: list[str], name: str) -> None:
    if value is not None and value not in choices:
        print_error(f"Invalid {name} '{value}'. Options: {', '.join(choices)}")
        raise typer.Exit(code=1)


@app.command("analyze")
def analyze(
    ctx: typer.Context,
    content: str | None = typer.Option(None, "--content", "-c", help="Content to analyse"),
    content_file: Path | None = typer.Option(
        None, "--file", "-f", help="Read content from a file ('-' for stdin)"
    ),
    analysis_type: str = typer.Option(
        AnalysisType.GENERAL.value, "--type", "-t", help=ANALYSIS_TYPE_HELP
    ),
    prompt: str | None = typer.Option(None, "--prompt", "-p", help="Custom prompt"),
    model: str | None = typer.Option(None, "--model", "-m", help="Override the model"),
    timeout: int = typer.Option(0, "--timeout", help="Override the timeout in seconds"),
    params: list[str] = typer.Option(
        None, "--param", help="Extra CLI flag as key=value (can specify multiple times)"
    ),
    include_context: bool = typer.Option(
        True, "--context/--no-context", help="Wrap content with build context"
    ),
    fail_on_error: bool = typer.Option(
        False, "--fail-on-error", help="Exit 1 when the analysis fails"
    ),
    job: str | None = typer.Option(None, "--job", "-j", help="Use this job's configuration"),
    build_number: int = typer.Option(0, "--build-number", help="Build number for context"),
    build_result: str | None = typer.Option(None, "--build-result", help=BUILD_RESULT_HELP),
    record_file: Path | None = typer.Option(
        None, "--record", help="Write the analysis record as JSON"
    ),
) -> None:
    """Analyse build output with the Codex CLI.

    Example:
        codex-analysis analyze --file build.log --type build_analysis --fail-on-error
    """
    _check_choice(analysis_type, AnalysisType.values(), "analysis type")
    _check_choice(build_result, BuildResult.values(), "build result")
    analyze_command(
        store_path=store_path_from(ctx),
        job=job,
        content=content,
        content_file=content_file,
        analysis_type=analysis_type,
        prompt=prompt,
        model=model,
        timeout=timeout,
        params=params or [],
        include_context=include_context,
        fail_on_error=fail_on_error,
        build_number=build_number,
        build_result=build_result,
        record_file=record_file,
    )


@app.command("stage")
def stage(
    ctx: typer.Context,
    stage_name: str = typer.Argument(..., help="Pipeline stage name"),
    log_file: Path | None = typer.Option(
        None, "--log", "-l", help="Recent stage log lines ('-' for stdin)"
    ),
    job: str | None = typer.Option(None, "--job", "-j", help="Use this job's configuration"),
    build_number: int = typer.Option(0, "--build-number", help="Build number for context"),
    build_result: str | None = typer.Option(None, "--build-result", help=BUILD_RESULT_HELP),
    record_file: Path | None = typer.Option(
        None, "--record", help="Write the analysis record as JSON"
    ),
) -> None:
    """Analyse a pipeline stage; the analysis type follows the stage name.

    Example:
        codex-analysis stage "Integration Tests" --log test.log
    """
    _check_choice(build_result, BuildResult.values(), "build result")
    stage_command(
        store_path=store_path_from(ctx),
        job=job,
        stage_name=stage_name,
        log_file=log_file,
        build_number=build_number,
        build_result=build_result,
        record_file=record_file,
    )


@app.command("chat")
def chat(
    ctx: typer.Context,
    message: str = typer.Argument(..., help="Message to send"),
    context: str | None = typer.Option(None, "--context", help="Context instead of build info"),
    model: str | None = typer.Option(None, "--model", "-m", help="Override the model"),
    timeout: int = typer.Option(0, "--timeout", help="Override the timeout in seconds"),
    params: list[str] = typer.Option(
        None, "--param", help="Extra CLI flag as key=value (can specify multiple times)"
    ),
    job: str | None = typer.Option(None, "--job", "-j", help="Use this job's configuration"),
) -> None:
    """Ask the Codex CLI a question.

    Example:
        codex-analysis chat "Why would a Gradle daemon be killed?"
    """
    chat_command(
        store_path=store_path_from(ctx),
        job=job,
        message=message,
        context=context,
        model=model,
        timeout=timeout,
        params=params or [],
    )


@app.command("version")
def version() -> None:
    """Show version information."""
    print_panel(
        f"[bold cyan]codex-analysis[/bold cyan] version [green]{__version__}[/green]\n\n"
        f"{PROJECT_TAGLINE}",
        title="Version",
        style="cyan",
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version_flag: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version information",
        is_eager=True,
    ),
    store: Path | None = typer.Option(
        None,
        "--store",
        "-s",
        help="Configuration store file (default: ~/.codex-analysis/config.yaml)",
    ),
    log_level: str = typer.Option(
        logging_settings.level, "--log-level", help="DEBUG, INFO, WARNING or ERROR"
    ),
    log_file: str | None = typer.Option(
        logging_settings.file, "--log-file", help="Write logs to a rotating file"
    ),
) -> None:
    """codex-analysis - Codex CLI analysis for CI pipelines.

    Resolves global and job configuration, picks the node a job runs on and
    invokes the Codex CLI there for analysis, chat and list discovery.

    Get started:
        codex-analysis config show        # Inspect configuration
        codex-analysis cli test           # Check the Codex CLI
        codex-analysis analyze -f build.log
    """
    if version_flag:
        version()
        raise typer.Exit()

    configure_logging(log_level, log_file)
    ctx.obj = {STORE_PATH_KEY: store.expanduser() if store else None}

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit()


def cli_main() -> None:
    """Main entry point for the CLI.

    This is the function that gets called when running 'codex-analysis'.
    It handles exceptions and provides user-friendly error messages.
    """
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        if isinstance(e, typer.Exit):
            sys.exit(e.exit_code)

        from codex_analysis.config.messages import ERROR_MESSAGES

        print_error(ERROR_MESSAGES["generic_error"].format(error=str(e)))

        # Show traceback when running with --log-level DEBUG
        if logging.getLogger(PACKAGE_LOGGER).isEnabledFor(logging.DEBUG):
            import traceback

            console.print("\n[dim]Traceback:[/dim]")
            traceback.print_exc()

        sys.exit(1)


if __name__ == "__main__":
    cli_main()

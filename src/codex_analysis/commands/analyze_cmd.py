"""Analysis and chat commands.

These run the same operations a pipeline step would, against the current
directory as workspace and the current environment as build environment.

Commands:
- analyze: Analyse log or report content with the Codex CLI
- stage: Analyse a pipeline stage by name
- chat: Send one message to the Codex CLI
"""

import json
import os
import sys
from pathlib import Path

import typer
from rich.markup import escape

from codex_analysis.commands import console, get_job_config, load_store
from codex_analysis.engine.command_builder import parse_additional_params
from codex_analysis.exceptions import ValidationError
from codex_analysis.models.context import RunInfo
from codex_analysis.models.enums import BuildResult
from codex_analysis.models.records import AnalysisRecord
from codex_analysis.services.analysis_service import (
    AnalysisRequest,
    AnalysisService,
    PipelineContext,
)
from codex_analysis.utils import print_error, print_info, print_warning

LOCAL_JOB_NAME = "local"


def _read_content(content: str | None, content_file: Path | None) -> str | None:
    if content_file is None:
        return content
    if str(content_file) == "-":
        return sys.stdin.read()
    try:
        return content_file.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        print_error(f"Cannot read {content_file}: {e}")
        raise typer.Exit(code=1) from e


def _pipeline_context(
    store_path: Path | None,
    job: str | None,
    build_number: int,
    build_result: str | None,
) -> tuple[AnalysisService, PipelineContext]:
    store = load_store(store_path)
    job_config = get_job_config(store, job)
    run = RunInfo(
        number=build_number,
        job_name=job or LOCAL_JOB_NAME,
        result=BuildResult(build_result) if build_result else None,
    )
    ctx = PipelineContext(
        run=run,
        environment=dict(os.environ),
        workspace=str(Path.cwd()),
        job_config=job_config,
    )
    return AnalysisService(store), ctx


def _write_record(record: AnalysisRecord, record_file: Path | None) -> None:
    if record_file is None:
        return
    record_file.parent.mkdir(parents=True, exist_ok=True)
    record_file.write_text(json.dumps(record.to_dict(), indent=2), encoding="utf-8")
    print_info(f"Analysis record written to {record_file}")


def analyze_command(
    store_path: Path | None,
    job: str | None,
    content: str | None,
    content_file: Path | None,
    analysis_type: str,
    prompt: str | None,
    model: str | None,
    timeout: int,
    params: list[str],
    include_context: bool,
    fail_on_error: bool,
    build_number: int,
    build_result: str | None,
    record_file: Path | None,
) -> None:
    """Run an analysis and exit 1 only when it failed and ``fail_on_error`` is set."""
    service, ctx = _pipeline_context(store_path, job, build_number, build_result)
    request = AnalysisRequest(
        content=_read_content(content, content_file),
        analysis_type=analysis_type,
        prompt=prompt,
        model=model,
        timeout_seconds=timeout,
        include_context=include_context,
        fail_on_error=fail_on_error,
        additional_params=parse_additional_params("\n".join(params)),
    )

    outcome = service.analyze(request, ctx)
    if outcome.record is not None:
        _write_record(outcome.record, record_file)
    if outcome.fail_build:
        raise typer.Exit(code=1)
    if not outcome.success:
        print_warning("Analysis failed; continuing because --fail-on-error is not set")


def stage_command(
    store_path: Path | None,
    job: str | None,
    stage_name: str,
    log_file: Path | None,
    build_number: int,
    build_result: str | None,
    record_file: Path | None,
) -> None:
    """Analyse one stage and print its summary."""
    service, ctx = _pipeline_context(store_path, job, build_number, build_result)
    recent_logs = None
    if log_file is not None:
        text = _read_content(None, log_file) or ""
        recent_logs = text.splitlines()

    record = service.analyze_stage(stage_name, ctx, recent_logs=recent_logs)
    console.print(f"[bold]{escape(record.display_name)}[/bold] ({record.analysis_type})")
    console.print(record.summary(), markup=False)
    if record.has_issues():
        print_warning(f"{record.issue_count()} issue keyword(s) found")
    _write_record(record, record_file)


def chat_command(
    store_path: Path | None,
    job: str | None,
    message: str,
    context: str | None,
    model: str | None,
    timeout: int,
    params: list[str],
) -> None:
    """Send a chat message and print the reply."""
    service, ctx = _pipeline_context(store_path, job, 0, None)
    try:
        reply = service.chat(
            message,
            ctx,
            context=context,
            model=model,
            timeout_seconds=timeout,
            additional_params=parse_additional_params("\n".join(params)),
        )
    except ValidationError as e:
        print_error(e.message)
        raise typer.Exit(code=1) from e

    if not reply.success:
        raise typer.Exit(code=1)

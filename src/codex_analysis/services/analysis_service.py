"""Analysis and chat operations invoked from pipeline steps and builders.

The CI host supplies run metadata, the build environment, a workspace path,
the job configuration and a listener for the build log. This service
resolves the effective configuration, picks the execution node, builds the
CLI arguments, runs them and reports back. It never decides whether a build
fails; AnalysisOutcome.fail_build tells the host what the step asked for.
"""

from __future__ import annotations

import logging
import sys
import threading
from dataclasses import dataclass, field
from typing import TextIO

from codex_analysis.config.messages import ERROR_MESSAGES, LOG_BANNERS
from codex_analysis.constants import (
    API_KEY_ENV_VAR,
    FLAG_MODEL,
    FLAG_TIMEOUT,
    NO_CONTENT_PLACEHOLDER,
    STAGE_ANALYSIS_PROMPT,
)
from codex_analysis.engine.command_builder import (
    build_analyze_args,
    build_query_args,
    resolve_timeout,
)
from codex_analysis.engine.executor import Executor
from codex_analysis.engine.nodes import NodeRegistry
from codex_analysis.engine.resolver import resolve
from codex_analysis.exceptions import (
    CodexAnalysisError,
    ExecutionCancelledError,
    ExecutionError,
    ValidationError,
)
from codex_analysis.models.configuration import EffectiveConfig, JobConfiguration
from codex_analysis.models.context import AnalysisContext, RunInfo
from codex_analysis.models.enums import AnalysisType
from codex_analysis.models.records import AnalysisRecord, determine_analysis_type
from codex_analysis.services.config_store import ConfigStore

logger = logging.getLogger(__name__)

BUILDER_RECORD_NAME = "Build Analysis"


class TaskListener:
    """Build log sink, mirroring messages into the package logger."""

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream or sys.stdout

    def println(self, message: str = "") -> None:
        self.stream.write(f"{message}\n")
        self.stream.flush()

    def error(self, message: str) -> None:
        logger.error(message)
        self.println(f"ERROR: {message}")


@dataclass
class PipelineContext:
    """Inputs the CI host provides for one step execution."""

    run: RunInfo | None = None
    environment: dict[str, str] = field(default_factory=dict)
    workspace: str | None = None
    job_config: JobConfiguration | None = None
    listener: TaskListener = field(default_factory=TaskListener)
    cancel_event: threading.Event | None = None

    @property
    def label(self) -> str:
        if self.job_config is not None and self.job_config.label.strip():
            return self.job_config.label
        return self.run.label if self.run is not None else ""


@dataclass
class AnalysisRequest:
    """Parameters of an analysis step or builder."""

    content: str | None = None
    analysis_type: str = AnalysisType.GENERAL.value
    prompt: str | None = None
    model: str | None = None
    timeout_seconds: int = 0
    include_context: bool = True
    fail_on_error: bool = False
    additional_params: dict[str, str] = field(default_factory=dict)
    record_name: str = BUILDER_RECORD_NAME


@dataclass
class AnalysisOutcome:
    """Result of one analysis step."""

    success: bool
    output: str
    record: AnalysisRecord | None = None
    error: str | None = None
    fail_on_error: bool = False

    @property
    def fail_build(self) -> bool:
        return not self.success and self.fail_on_error


@dataclass
class ChatReply:
    """Response to one chat message."""

    success: bool
    response: str = ""
    error: str | None = None


def _call_args(
    additional_params: dict[str, str], model: str | None, timeout_seconds: int
) -> dict[str, str]:
    params = dict(additional_params)
    if model and model.strip():
        params[FLAG_MODEL] = model.strip()
    if timeout_seconds > 0:
        params[FLAG_TIMEOUT] = str(timeout_seconds)
    return params


class AnalysisService:
    """Runs Codex analysis and chat for pipeline steps.

    Example usage:
        service = AnalysisService(ConfigStore.load())
        ctx = PipelineContext(run=RunInfo(42, "app/main"), workspace="/ws")
        outcome = service.analyze(AnalysisRequest(content=log_text), ctx)
        if outcome.fail_build:
            ...
    """

    def __init__(self, store: ConfigStore, registry: NodeRegistry | None = None):
        self.store = store
        self.registry = registry or NodeRegistry.from_definitions(store.nodes())

    def prepare(self, ctx: PipelineContext) -> tuple[EffectiveConfig, Executor]:
        """Resolve configuration and select the node for this context.

        Raises:
            ConfigurationAbsentError: No global configuration.
            NodeUnavailableError: The job's label matches no online node.
        """
        effective = resolve(self.store.global_config(), ctx.job_config)
        node = self.registry.select(ctx.label)
        return effective, node.executor

    def environment(self, effective: EffectiveConfig, ctx: PipelineContext) -> dict[str, str]:
        env = dict(ctx.environment)
        if effective.api_key:
            env[API_KEY_ENV_VAR] = effective.api_key
        return env

    # -------------------------------------------------------------------------
    # Analysis
    # -------------------------------------------------------------------------

    def analyze(self, request: AnalysisRequest, ctx: PipelineContext) -> AnalysisOutcome:
        """Run ``analyze`` for a step or builder.

        Failures are logged to the listener and returned, not raised, except
        cancellation which propagates so the host can abort the build.
        """
        listener = ctx.listener
        listener.println(LOG_BANNERS["analysis_start"])

        def failed(output: str, error: str) -> AnalysisOutcome:
            return AnalysisOutcome(
                success=False, output=output, error=error, fail_on_error=request.fail_on_error
            )

        try:
            effective, executor = self.prepare(ctx)
            env = self.environment(effective, ctx)

            if not executor.is_available(effective.cli_path, env=env, work_dir=ctx.workspace):
                listener.error(ERROR_MESSAGES["cli_unavailable"])
                return failed("Codex CLI not available", ERROR_MESSAGES["cli_unavailable"])

            content = request.content
            if not content or not content.strip():
                content = NO_CONTENT_PLACEHOLDER
            if request.include_context:
                content = AnalysisContext(
                    run=ctx.run,
                    step_name="codexAnalysis",
                    content=content,
                    environment=ctx.environment,
                    workspace_path=ctx.workspace,
                ).build_focused_context(request.analysis_type)

            call_args = _call_args(
                request.additional_params, request.model, request.timeout_seconds
            )
            args = build_analyze_args(
                effective,
                content,
                analysis_type=request.analysis_type,
                prompt=request.prompt,
                call_args=call_args,
                path_expander=executor.expand_path,
            )
            result = executor.execute(
                effective.cli_path,
                args,
                env=env,
                work_dir=ctx.workspace,
                timeout=resolve_timeout(effective, call_args),
                cancel_event=ctx.cancel_event,
            )
            result.raise_for_status()
        except ExecutionCancelledError:
            listener.error("Codex analysis aborted")
            raise
        except ExecutionError as e:
            error = ERROR_MESSAGES["analysis_failed"].format(error=e.message)
            listener.error(error)
            return failed(f"Analysis failed: {e.message}", error)
        except CodexAnalysisError as e:
            error = ERROR_MESSAGES["analysis_error"].format(error=e)
            listener.error(error)
            return failed(f"Analysis error: {e}", error)

        listener.println(LOG_BANNERS["analysis_result"])
        listener.println(f"Analysis Type: {request.analysis_type}")
        listener.println("Result:")
        listener.println(result.stdout)
        listener.println(LOG_BANNERS["analysis_end"])

        record = AnalysisRecord(request.record_name, result.stdout, request.analysis_type)
        return AnalysisOutcome(
            success=True,
            output=result.stdout,
            record=record,
            fail_on_error=request.fail_on_error,
        )

    def analyze_stage(
        self,
        stage_name: str,
        ctx: PipelineContext,
        recent_logs: list[str] | None = None,
    ) -> AnalysisRecord:
        """Analyse one pipeline stage and return its display record.

        Errors are folded into the record text rather than raised.
        """
        listener = ctx.listener
        analysis_type = determine_analysis_type(stage_name)

        if recent_logs is None:
            recent_logs = [f"Stage '{stage_name}' execution context"]
            if ctx.run is not None:
                result_name = ctx.run.result.value if ctx.run.result else "null"
                recent_logs.append(f"Build #{ctx.run.number} - {result_name}")

        try:
            effective, executor = self.prepare(ctx)
            env = self.environment(effective, ctx)

            if not executor.is_available(effective.cli_path, env=env, work_dir=ctx.workspace):
                listener.error("Codex CLI not available for stage analysis")
                return AnalysisRecord(stage_name, "Codex CLI not available", analysis_type)

            content = AnalysisContext(
                run=ctx.run,
                stage_name=stage_name,
                content="Stage execution analysis",
                environment=ctx.environment,
                recent_logs=recent_logs,
                workspace_path=ctx.workspace,
            ).build_focused_context(analysis_type)

            args = build_analyze_args(
                effective,
                content,
                analysis_type=analysis_type,
                prompt=STAGE_ANALYSIS_PROMPT,
                path_expander=executor.expand_path,
            )
            result = executor.execute(
                effective.cli_path,
                args,
                env=env,
                work_dir=ctx.workspace,
                timeout=effective.timeout_seconds,
                cancel_event=ctx.cancel_event,
            )
        except ExecutionCancelledError:
            raise
        except CodexAnalysisError as e:
            listener.error(ERROR_MESSAGES["stage_analysis_error"].format(error=e))
            return AnalysisRecord(stage_name, f"Analysis error: {e}", "error")

        if not result.success:
            listener.error(ERROR_MESSAGES["stage_analysis_failed"].format(error=result.error))
            return AnalysisRecord(stage_name, f"Analysis failed: {result.error}", analysis_type)

        listener.println(LOG_BANNERS["stage_complete"])
        listener.println(f"Stage: {stage_name}")
        listener.println(f"Analysis Type: {analysis_type}")
        listener.println(f"Result: {result.stdout}")
        return AnalysisRecord(stage_name, result.stdout, analysis_type)

    # -------------------------------------------------------------------------
    # Chat
    # -------------------------------------------------------------------------

    def chat(
        self,
        message: str,
        ctx: PipelineContext,
        context: str | None = None,
        model: str | None = None,
        timeout_seconds: int = 0,
        additional_params: dict[str, str] | None = None,
    ) -> ChatReply:
        """Send one chat message through the ``query`` subcommand.

        Raises:
            ValidationError: If the message is blank.
            ExecutionCancelledError: If the host aborted the call.
        """
        if not message or not message.strip():
            raise ValidationError(ERROR_MESSAGES["message_required"], field="message")

        listener = ctx.listener
        try:
            effective, executor = self.prepare(ctx)
            env = self.environment(effective, ctx)

            if not executor.is_available(effective.cli_path, env=env, work_dir=ctx.workspace):
                listener.error(ERROR_MESSAGES["cli_unavailable"])
                return ChatReply(success=False, error=ERROR_MESSAGES["cli_unavailable"])

            if not context or not context.strip():
                context = AnalysisContext(
                    run=ctx.run,
                    step_name="codexChat",
                    content="Interactive chat session",
                    environment=ctx.environment,
                    workspace_path=ctx.workspace,
                ).build_context_string()

            call_args = _call_args(additional_params or {}, model, timeout_seconds)
            args = build_query_args(effective, message, context=context, call_args=call_args)
            result = executor.execute(
                effective.cli_path,
                args,
                env=env,
                work_dir=ctx.workspace,
                timeout=resolve_timeout(effective, call_args),
                cancel_event=ctx.cancel_event,
            )
            result.raise_for_status()
        except ExecutionCancelledError:
            raise
        except CodexAnalysisError as e:
            error = ERROR_MESSAGES["chat_error"].format(error=e)
            listener.error(error)
            return ChatReply(success=False, error=str(e))

        listener.println(result.stdout)
        return ChatReply(success=True, response=result.stdout)

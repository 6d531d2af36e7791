"""Run metadata and analysis context passed in by the CI host."""

from __future__ import annotations

from dataclasses import dataclass, field

from codex_analysis.constants import SENSITIVE_ENV_MARKERS
from codex_analysis.models.enums import AnalysisType, BuildResult


@dataclass(frozen=True)
class RunInfo:
    """What the host tells us about the build being analysed.

    Attributes:
        number: Build number.
        job_name: Full name of the job.
        result: Build result so far, None while the build is running.
        label: Label expression the job is restricted to ("" for any node).
    """

    number: int
    job_name: str
    result: BuildResult | None = None
    label: str = ""


_FOCUS_BANNERS: dict[str, tuple[str, str]] = {
    AnalysisType.BUILD.value: (
        "BUILD ANALYSIS",
        "Analyzing build process and output for potential issues and improvements.",
    ),
    AnalysisType.TEST.value: (
        "TEST ANALYSIS",
        "Analyzing test results and coverage for quality assessment.",
    ),
    AnalysisType.DEPLOYMENT.value: (
        "DEPLOYMENT ANALYSIS",
        "Analyzing deployment process and configuration.",
    ),
    AnalysisType.SECURITY.value: (
        "SECURITY ANALYSIS",
        "Analyzing code and configuration for security vulnerabilities.",
    ),
    AnalysisType.PERFORMANCE.value: (
        "PERFORMANCE ANALYSIS",
        "Analyzing performance metrics and bottlenecks.",
    ),
}
_GENERAL_BANNER = (
    "GENERAL ANALYSIS",
    "Analyzing pipeline execution for insights and recommendations.",
)

_RESULT_SUGGESTIONS: dict[BuildResult, str] = {
    BuildResult.FAILURE: "Build failed - focus on error analysis and troubleshooting.",
    BuildResult.UNSTABLE: "Build unstable - analyze test failures and warnings.",
    BuildResult.SUCCESS: "Build successful - focus on optimization and best practices.",
}

_STAGE_SUGGESTIONS: dict[str, str] = {
    "build": "Build stage - analyze compilation, dependencies, and build artifacts.",
    "test": "Test stage - analyze test coverage, failures, and quality metrics.",
    "deploy": "Deploy stage - analyze deployment process and configuration.",
    "security": "Security stage - analyze security scans and vulnerabilities.",
}


def is_sensitive_variable(name: str) -> bool:
    """Return True if an environment variable name looks like it holds a secret."""
    lowered = name.lower()
    return any(marker in lowered for marker in SENSITIVE_ENV_MARKERS)


@dataclass
class AnalysisContext:
    """Pipeline context rendered into the text sent to the CLI."""

    run: RunInfo | None = None
    stage_name: str | None = None
    step_name: str | None = None
    content: str | None = None
    environment: dict[str, str] = field(default_factory=dict)
    recent_logs: list[str] = field(default_factory=list)
    workspace_path: str | None = None

    def build_context_string(self) -> str:
        """Render the full context block.

        Environment variables that look like secrets are left out.
        """
        lines = ["=== JENKINS PIPELINE ANALYSIS CONTEXT ===", ""]

        if self.stage_name is not None:
            lines.append(f"Stage: {self.stage_name}")
        if self.step_name is not None:
            lines.append(f"Step: {self.step_name}")

        if self.run is not None:
            status = self.run.result.value if self.run.result else "null"
            lines.append(f"Build: #{self.run.number}")
            lines.append(f"Job: {self.run.job_name}")
            lines.append(f"Status: {status}")

        if self.workspace_path is not None:
            lines.append(f"Workspace: {self.workspace_path}")

        if self.environment:
            lines.extend(["", "=== ENVIRONMENT VARIABLES ==="])
            for key, value in self.environment.items():
                if not is_sensitive_variable(key):
                    lines.append(f"{key}={value}")

        if self.recent_logs:
            lines.extend(["", "=== RECENT LOGS ==="])
            lines.extend(self.recent_logs)

        if self.content and self.content.strip():
            lines.extend(["", "=== CONTENT TO ANALYZE ===", self.content])

        return "\n".join(lines) + "\n"

    def build_focused_context(self, analysis_type: str | None) -> str:
        """Prefix the context with a banner for the given analysis type."""
        title, description = _FOCUS_BANNERS.get((analysis_type or "").lower(), _GENERAL_BANNER)
        return f"=== {title} ===\n{description}\n\n" + self.build_context_string()

    def analysis_suggestions(self) -> str:
        """Hints derived from the build result and stage name."""
        suggestions: list[str] = []

        if self.run is not None and self.run.result is not None:
            suggestions.append(
                _RESULT_SUGGESTIONS.get(
                    self.run.result, "Build in progress - monitor for potential issues."
                )
            )

        if self.stage_name is not None:
            stage_hint = _STAGE_SUGGESTIONS.get(self.stage_name.lower())
            if stage_hint:
                suggestions.append(stage_hint)

        return "".join(f"{s}\n" for s in suggestions)

"""Result types returned by the engine.

Results are immutable snapshots created once per operation and handed to
the caller, which decides how to log them and whether they are fatal.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from codex_analysis.exceptions import (
    CommandTimeoutError,
    LaunchError,
    NonZeroExitError,
)
from codex_analysis.models.enums import ExecState, FetchSource, IssueLevel


@dataclass(frozen=True)
class ExecResult:
    """Outcome of one CLI process execution.

    Attributes:
        argv: Argument vector that was executed (or attempted).
        stdout: Captured standard output (combined output when requested).
        stderr: Captured standard error, or the OS error for launch failures.
        exit_code: Process exit status, None if the process never exited normally.
        state: Terminal execution state.
        duration_seconds: Wall time spent running.
        timeout_seconds: Deadline the process ran under.
    """

    argv: list[str]
    stdout: str
    stderr: str
    exit_code: int | None
    state: ExecState
    duration_seconds: float = 0.0
    timeout_seconds: float | None = None

    @property
    def success(self) -> bool:
        return self.state == ExecState.SUCCEEDED

    @property
    def error(self) -> str:
        """Diagnostic text for a failed execution."""
        if self.state == ExecState.FAILED_TIMEOUT:
            return f"timed out after {self.timeout_seconds:g}s"
        return self.stderr.strip()

    def raise_for_status(self) -> ExecResult:
        """Raise the typed error for a failed execution.

        Returns:
            self, so calls can be chained on success.

        Raises:
            LaunchError: The executable could not be started.
            NonZeroExitError: The CLI exited with a non-zero status.
            CommandTimeoutError: The CLI was killed at its deadline.
        """
        if self.state == ExecState.FAILED_TO_LAUNCH:
            raise LaunchError(
                f"Failed to launch Codex CLI: {self.stderr.strip()}", argv=self.argv
            )
        if self.state == ExecState.FAILED_NON_ZERO:
            raise NonZeroExitError(self.exit_code or -1, self.stderr, argv=self.argv)
        if self.state == ExecState.FAILED_TIMEOUT:
            raise CommandTimeoutError(self.timeout_seconds or 0.0, argv=self.argv)
        return self


@dataclass(frozen=True)
class FetchResult:
    """Outcome of listing models or MCP servers."""

    items: list[str] = field(default_factory=list)
    source: FetchSource = FetchSource.NONE
    error: str | None = None
    exit_code: int | None = None
    output: str = ""

    @property
    def found(self) -> bool:
        return bool(self.items)


@dataclass(frozen=True)
class ValidationIssue:
    """Single configuration validation finding."""

    level: IssueLevel
    field: str
    message: str

    def __str__(self) -> str:
        return f"[{self.level.value.upper()}] {self.field}: {self.message}"


@dataclass
class InstallResult:
    """Result of a CLI download/update."""

    success: bool
    message: str
    path: str | None = None

"""Custom exceptions for codex-analysis.

All exceptions inherit from CodexAnalysisError so callers can catch every
engine failure with a single except clause when they only need to log it.

Exception hierarchy:
    CodexAnalysisError (base)
    ├── ConfigurationError
    │   ├── ValidationError
    │   │   └── ReservedFlagError
    │   └── ConfigurationAbsentError
    ├── ExecutionError
    │   ├── LaunchError
    │   ├── NonZeroExitError
    │   ├── CommandTimeoutError
    │   └── ExecutionCancelledError
    ├── NodeError
    │   └── NodeUnavailableError
    └── DownloadError
"""

from pathlib import Path
from typing import Any


class CodexAnalysisError(Exception):
    """Base exception for engine failures.

    ``details`` carries structured context such as the offending field, which
    ``__str__`` appends so a single log line explains the failure.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(CodexAnalysisError):
    """The configuration store could not be read.

    Raised by ConfigStore.load when the YAML file does not parse or does not
    match the store schema.
    """

    def __init__(self, message: str, config_file: Path | None = None):
        details = {}
        if config_file:
            details["config_file"] = str(config_file)
        super().__init__(message, details)
        self.config_file = config_file


class ValidationError(ConfigurationError):
    """A per-call input was rejected before the CLI was launched.

    Examples:
        - Blank chat message
        - Timeout override that is not a positive integer
        - Extra CLI parameter with an empty name
    """

    def __init__(
        self,
        message: str,
        field: str,
        value: Any = None,
        expected: str | None = None,
    ):
        """Initialize validation error.

        Args:
            message: Error description.
            field: The input that was rejected.
            value: The rejected value (truncated if too long).
            expected: What an accepted value looks like.
        """
        super().__init__(message)
        self.details["field"] = field
        if value is not None:
            value_str = str(value)
            self.details["value"] = value_str[:100] + "..." if len(value_str) > 100 else value_str
        if expected:
            self.details["expected"] = expected
        self.field = field
        self.value = value
        self.expected = expected


class ReservedFlagError(ValidationError):
    """Raised when an extra CLI parameter collides with a flag the builder owns."""

    def __init__(self, flag: str, reserved: frozenset[str]):
        super().__init__(
            f"Extra parameter '--{flag}' collides with a reserved flag",
            field="additional_params",
            value=flag,
            expected=f"a key other than: {', '.join(sorted(reserved))}",
        )
        self.flag = flag


class ConfigurationAbsentError(ConfigurationError):
    """Raised when no global configuration is reachable for resolution."""

    def __init__(self, message: str = "Codex Analysis global configuration not found"):
        super().__init__(message)


# =============================================================================
# Execution Errors
# =============================================================================


class ExecutionError(CodexAnalysisError):
    """Raised when a CLI invocation does not succeed.

    Attributes:
        argv: The argument vector that was executed.
    """

    def __init__(
        self,
        message: str,
        argv: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.argv = argv or []


class LaunchError(ExecutionError):
    """Raised when the executable is missing or cannot be started."""


class NonZeroExitError(ExecutionError):
    """Raised when the CLI ran but exited with a non-zero status.

    Attributes:
        exit_code: The process exit status.
        stderr: Captured diagnostic output.
    """

    def __init__(self, exit_code: int, stderr: str, argv: list[str] | None = None):
        super().__init__(
            f"Codex CLI execution failed: {stderr.strip()}",
            argv=argv,
            details={"exit_code": exit_code},
        )
        self.exit_code = exit_code
        self.stderr = stderr


class CommandTimeoutError(ExecutionError):
    """Raised when the CLI exceeded its deadline and was killed."""

    def __init__(self, timeout: float, argv: list[str] | None = None):
        super().__init__(
            f"Codex CLI timed out after {timeout:g}s",
            argv=argv,
            details={"timeout": timeout},
        )
        self.timeout = timeout


class ExecutionCancelledError(ExecutionError):
    """Raised when the caller aborted a running invocation."""


# =============================================================================
# Node Errors
# =============================================================================


class NodeError(CodexAnalysisError):
    """Raised when an execution node cannot be used."""


class NodeUnavailableError(NodeError):
    """Raised when no online node satisfies a job's label expression."""

    def __init__(self, label: str):
        super().__init__(f"No online agents match the job's label: '{label}'")
        self.label = label


# =============================================================================
# Download Errors
# =============================================================================


class DownloadError(CodexAnalysisError):
    """Raised when the CLI binary cannot be downloaded."""

    def __init__(self, message: str, url: str, status_code: int | None = None):
        details: dict[str, Any] = {"url": url}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.url = url
        self.status_code = status_code

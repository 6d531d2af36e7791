"""Enum types for codex-analysis.

String enums keep persisted YAML and CLI options readable while still
giving type checking and iteration over the allowed values.
"""

from enum import Enum


class AnalysisType(str, Enum):
    """Kinds of analysis the CLI understands via ``--type``."""

    GENERAL = "general"
    BUILD = "build_analysis"
    TEST = "test_analysis"
    DEPLOYMENT = "deployment_analysis"
    SECURITY = "security_analysis"
    PERFORMANCE = "performance_analysis"
    QUALITY = "quality_analysis"

    @classmethod
    def values(cls) -> list[str]:
        """Return list of all analysis type values."""
        return [t.value for t in cls]


class ExecState(str, Enum):
    """Lifecycle of a single CLI invocation."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED_NON_ZERO = "failed_non_zero"
    FAILED_TIMEOUT = "failed_timeout"
    FAILED_TO_LAUNCH = "failed_to_launch"

    @property
    def is_terminal(self) -> bool:
        """True once the invocation can no longer change state."""
        return self not in (ExecState.NOT_STARTED, ExecState.RUNNING)


class BuildResult(str, Enum):
    """Build outcome reported by the CI host. ``None`` means still running."""

    SUCCESS = "SUCCESS"
    UNSTABLE = "UNSTABLE"
    FAILURE = "FAILURE"
    NOT_BUILT = "NOT_BUILT"
    ABORTED = "ABORTED"

    @classmethod
    def values(cls) -> list[str]:
        """Return list of all build result values."""
        return [r.value for r in cls]


class FetchSource(str, Enum):
    """Where a fetched list came from."""

    CLI = "cli"
    CONFIG_FILE = "config_file"
    NONE = "none"


class IssueLevel(str, Enum):
    """Severity of a configuration validation finding."""

    OK = "ok"
    WARNING = "warning"
    ERROR = "error"

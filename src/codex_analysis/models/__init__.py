"""Data models for codex-analysis"""

from .configuration import (
    JOB_ONLY_POLICY,
    RESOLVABLE_FIELDS,
    Configuration,
    EffectiveConfig,
    GlobalConfiguration,
    HttpMcpServer,
    JobConfiguration,
    McpServerDescriptor,
    ResolutionPolicy,
    StdioMcpServer,
    parse_mcp_server,
)
from .context import AnalysisContext, RunInfo, is_sensitive_variable
from .enums import AnalysisType, BuildResult, ExecState, FetchSource, IssueLevel
from .records import AnalysisRecord, determine_analysis_type
from .results import ExecResult, FetchResult, InstallResult, ValidationIssue

__all__ = [
    "AnalysisContext",
    "AnalysisRecord",
    "AnalysisType",
    "BuildResult",
    "Configuration",
    "EffectiveConfig",
    "ExecResult",
    "ExecState",
    "FetchResult",
    "FetchSource",
    "GlobalConfiguration",
    "HttpMcpServer",
    "InstallResult",
    "IssueLevel",
    "JOB_ONLY_POLICY",
    "JobConfiguration",
    "McpServerDescriptor",
    "RESOLVABLE_FIELDS",
    "ResolutionPolicy",
    "RunInfo",
    "StdioMcpServer",
    "ValidationIssue",
    "determine_analysis_type",
    "is_sensitive_variable",
    "parse_mcp_server",
]

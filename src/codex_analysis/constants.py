"""Constants for codex-analysis.

Defaults mirror the values the CI plugin ships with. Anything that can be
tuned at runtime lives in config/settings.py instead.
"""

from typing import Final

# =============================================================================
# CLI Defaults
# =============================================================================

DEFAULT_CLI_PATH: Final[str] = "~/.local/bin/codex"
DEFAULT_CONFIG_PATH: Final[str] = "~/.codex/config.toml"
DEFAULT_TIMEOUT_SECONDS: Final[int] = 120
FALLBACK_CLI_NAME: Final[str] = "codex"

# Values a freshly created global configuration starts with
GLOBAL_DEFAULT_MODEL: Final[str] = "kimi-k2"
GLOBAL_DEFAULT_API_KEY: Final[str] = "sk-1234"
GLOBAL_DEFAULT_ENABLE_MCP: Final[bool] = True

DEFAULT_MODEL_OPTIONS: Final[tuple[str, ...]] = (
    "kimi-k2",
    "gpt-4",
    "gpt-4-turbo",
    "gpt-3.5-turbo",
    "claude-3-opus",
    "claude-3-sonnet",
    "claude-3-haiku",
    "gemini-pro",
    "gemini-pro-vision",
)

# =============================================================================
# CLI Subcommands and Flags
# =============================================================================

SUBCOMMAND_ANALYZE: Final[str] = "analyze"
SUBCOMMAND_QUERY: Final[str] = "query"
SUBCOMMAND_MODELS: Final[str] = "models"
SUBCOMMAND_MCP: Final[str] = "mcp"
SUBCOMMAND_LIST: Final[str] = "list"
FLAG_VERSION: Final[str] = "--version"

FLAG_CONTENT: Final[str] = "content"
FLAG_TYPE: Final[str] = "type"
FLAG_PROMPT: Final[str] = "prompt"
FLAG_MODEL: Final[str] = "model"
FLAG_TIMEOUT: Final[str] = "timeout"
FLAG_MCP_CONFIG: Final[str] = "mcp-config"
FLAG_QUERY: Final[str] = "query"
FLAG_CONTEXT: Final[str] = "context"
FLAG_CONFIG: Final[str] = "config"

# Flags the builder emits itself; per-call extras may not reuse them
ANALYZE_RESERVED_FLAGS: Final[frozenset[str]] = frozenset(
    {FLAG_MODEL, FLAG_TIMEOUT, FLAG_CONTENT, FLAG_TYPE, FLAG_PROMPT, FLAG_MCP_CONFIG}
)
QUERY_RESERVED_FLAGS: Final[frozenset[str]] = frozenset(
    {FLAG_MODEL, FLAG_TIMEOUT, FLAG_QUERY, FLAG_CONTEXT}
)

# =============================================================================
# Cache
# =============================================================================

CACHE_TTL_SECONDS: Final[int] = 300
CACHE_MODELS: Final[str] = "models"
CACHE_MCP_SERVERS: Final[str] = "mcp_servers"

# =============================================================================
# List Parsing
# =============================================================================

LIST_HEADER_PREFIXES: Final[tuple[str, ...]] = ("Available", "Model", "Server", "-")
LIST_ITEM_PATTERN: Final[str] = r"^(?:\S*[-/]\S*|[a-zA-Z0-9_]+)$"
MCP_SERVER_HEADER_PATTERN: Final[str] = (
    r'\[mcp\.servers\."([^"]+)"\]|\[mcp\.servers\.([^\]]+)\]'
)

# =============================================================================
# Process Execution
# =============================================================================

PROBE_TIMEOUT_SECONDS: Final[float] = 10.0
PROCESS_POLL_INTERVAL_SECONDS: Final[float] = 0.1
PROCESS_KILL_GRACE_SECONDS: Final[float] = 5.0

API_KEY_ENV_VAR: Final[str] = "LITELLM_API_KEY"
# Describe the host a variable was read on; an agent keeps its own values
HOST_IDENTITY_VARIABLES: Final[frozenset[str]] = frozenset(
    {
        "HOME",
        "PATH",
        "USER",
        "LOGNAME",
        "SHELL",
        "PWD",
        "OLDPWD",
        "HOSTNAME",
        "TMPDIR",
        "TERM",
        "DISPLAY",
        "MAIL",
        "SHLVL",
        "LD_LIBRARY_PATH",
        "XDG_RUNTIME_DIR",
        "SSH_AUTH_SOCK",
        "SSH_CLIENT",
        "SSH_CONNECTION",
        "SSH_TTY",
        "_",
    }
)

# =============================================================================
# MCP Servers
# =============================================================================

MCP_TRANSPORT_STDIO: Final[str] = "stdio"
MCP_TRANSPORT_HTTP: Final[str] = "http"
MCP_DEFAULT_STARTUP_TIMEOUT_SECONDS: Final[int] = 10
MCP_DEFAULT_TOOL_TIMEOUT_SECONDS: Final[int] = 60

# =============================================================================
# Download
# =============================================================================

DOWNLOAD_CONNECT_TIMEOUT_SECONDS: Final[float] = 30.0
DOWNLOAD_READ_TIMEOUT_SECONDS: Final[float] = 60.0

# =============================================================================
# Analysis
# =============================================================================

NO_CONTENT_PLACEHOLDER: Final[str] = "No specific content provided for analysis."
STAGE_ANALYSIS_PROMPT: Final[str] = (
    "Analyze this Jenkins pipeline stage execution and provide insights, "
    "recommendations, and potential issues."
)
SUMMARY_MAX_LINES: Final[int] = 3
SENSITIVE_ENV_MARKERS: Final[tuple[str, ...]] = (
    "password",
    "secret",
    "token",
    "key",
    "credential",
    "auth",
)
ISSUE_KEYWORDS: Final[tuple[str, ...]] = (
    "error",
    "warning",
    "issue",
    "problem",
    "failed",
    "critical",
)
ISSUE_COUNT_KEYWORDS: Final[tuple[str, ...]] = ("error", "warning", "issue", "problem")

# =============================================================================
# Validation Thresholds
# =============================================================================

MAX_RECOMMENDED_TIMEOUT_SECONDS: Final[int] = 3600
MIN_USERNAME_LENGTH: Final[int] = 2
MIN_PASSWORD_LENGTH: Final[int] = 4
MIN_API_KEY_LENGTH: Final[int] = 10

# =============================================================================
# Storage
# =============================================================================

DEFAULT_STORE_DIR: Final[str] = "~/.codex-analysis"
DEFAULT_STORE_FILE: Final[str] = "config.yaml"
LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
LOG_FILE_BACKUP_COUNT: Final[int] = 3

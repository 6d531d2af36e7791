"""Configuration models for codex-analysis.

Two Configuration instances take part in every resolution:
- global: process-wide, owned by the ConfigStore
- job: per pipeline job, only consulted when ``use_job_config`` is set

EffectiveConfig is the resolved, read-only snapshot one invocation uses.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from codex_analysis.constants import (
    DEFAULT_CLI_PATH,
    DEFAULT_CONFIG_PATH,
    DEFAULT_TIMEOUT_SECONDS,
    GLOBAL_DEFAULT_API_KEY,
    GLOBAL_DEFAULT_ENABLE_MCP,
    GLOBAL_DEFAULT_MODEL,
    MCP_DEFAULT_STARTUP_TIMEOUT_SECONDS,
    MCP_DEFAULT_TOOL_TIMEOUT_SECONDS,
    MCP_TRANSPORT_HTTP,
    MCP_TRANSPORT_STDIO,
)

# Fields the resolver computes; order matches EffectiveConfig
RESOLVABLE_FIELDS: tuple[str, ...] = (
    "cli_path",
    "cli_download_url",
    "cli_download_username",
    "cli_download_password",
    "config_path",
    "default_model",
    "timeout_seconds",
    "enable_mcp_servers",
    "api_key",
    "selected_mcp_servers",
)


# =============================================================================
# MCP Server Descriptors
# =============================================================================


class _McpServerBase(BaseModel):
    """Fields shared by every MCP server transport."""

    name: str = Field(..., min_length=1, description="Server name referenced by selections")
    startup_timeout_seconds: int = Field(
        default=MCP_DEFAULT_STARTUP_TIMEOUT_SECONDS,
        gt=0,
        description="Seconds the CLI waits for the server to start",
    )
    tool_timeout_seconds: int = Field(
        default=MCP_DEFAULT_TOOL_TIMEOUT_SECONDS,
        gt=0,
        description="Seconds the CLI waits for a single tool call",
    )
    enabled: bool = Field(default=True, description="Whether the server may be used")


class StdioMcpServer(_McpServerBase):
    """MCP server launched as a local process speaking over stdio."""

    transport: Literal["stdio"] = MCP_TRANSPORT_STDIO
    command: str = Field(..., min_length=1, description="Executable to launch")
    args: list[str] = Field(default_factory=list, description="Arguments for the command")


class HttpMcpServer(_McpServerBase):
    """MCP server reached over streamable HTTP."""

    transport: Literal["http"] = MCP_TRANSPORT_HTTP
    url: str = Field(..., min_length=1, description="Server endpoint")
    bearer_token_env_var: str | None = Field(
        default=None,
        description="Environment variable holding the bearer token",
    )


McpServerDescriptor = Annotated[StdioMcpServer | HttpMcpServer, Field(discriminator="transport")]

mcp_server_adapter: TypeAdapter[StdioMcpServer | HttpMcpServer] = TypeAdapter(McpServerDescriptor)


def parse_mcp_server(data: dict[str, Any]) -> StdioMcpServer | HttpMcpServer:
    """Build a descriptor from a plain mapping, dispatching on ``transport``.

    A mapping without ``transport`` is treated as stdio when it has a
    ``command`` and as http when it has a ``url``.
    """
    if "transport" not in data:
        data = {**data, "transport": MCP_TRANSPORT_HTTP if "url" in data else MCP_TRANSPORT_STDIO}
    return mcp_server_adapter.validate_python(data)


# =============================================================================
# Resolution Policy
# =============================================================================


class ResolutionPolicy(BaseModel):
    """Per-field choice of whether a job value may fall back to global.

    Fields listed in ``job_only_fields`` never read the global tier: when the
    job does not set them they resolve straight to the built-in default.
    """

    job_only_fields: list[str] = Field(
        default_factory=list,
        description="Fields that skip the global tier during resolution",
    )

    @field_validator("job_only_fields")
    @classmethod
    def _known_fields(cls, value: list[str]) -> list[str]:
        unknown = [name for name in value if name not in RESOLVABLE_FIELDS]
        if unknown:
            raise ValueError(f"Unknown configuration fields: {', '.join(unknown)}")
        return value

    def allows_global_fallback(self, field_name: str) -> bool:
        return field_name not in self.job_only_fields


# Behaviour of the last plugin revision: model and MCP settings are job-only
JOB_ONLY_POLICY = ResolutionPolicy(
    job_only_fields=["default_model", "enable_mcp_servers", "selected_mcp_servers"]
)


# =============================================================================
# Configurations
# =============================================================================


class Configuration(BaseModel):
    """Settings shared by the global and job scopes.

    Empty strings, zero and empty lists mean "not set" so the resolver can
    fall through to the next tier.
    """

    model_config = ConfigDict(validate_assignment=True)

    cli_path: str = Field(default="", description="Path to the Codex CLI binary")
    cli_download_url: str = Field(default="", description="URL to download the CLI from")
    cli_download_username: str = Field(default="", description="Basic auth username")
    cli_download_password: str = Field(default="", description="Basic auth password")
    config_path: str = Field(default="", description="Codex TOML configuration file")
    default_model: str = Field(default="", description="Model passed via --model")
    timeout_seconds: int = Field(default=0, description="CLI deadline in seconds")
    enable_mcp_servers: bool = Field(default=False, description="Pass --mcp-config")
    api_key: str = Field(default="", description="LiteLLM API key exported to the CLI")
    selected_mcp_servers: list[str] = Field(
        default_factory=list,
        description="Ordered MCP server names to use",
    )
    mcp_servers: list[McpServerDescriptor] = Field(
        default_factory=list,
        description="MCP server descriptors owned by this configuration",
    )

    def server(self, name: str) -> StdioMcpServer | HttpMcpServer | None:
        """Look up a descriptor by name."""
        for descriptor in self.mcp_servers:
            if descriptor.name == name:
                return descriptor
        return None


class GlobalConfiguration(Configuration):
    """Process-wide configuration, created with the plugin's shipped defaults."""

    cli_path: str = DEFAULT_CLI_PATH
    config_path: str = DEFAULT_CONFIG_PATH
    default_model: str = GLOBAL_DEFAULT_MODEL
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    enable_mcp_servers: bool = GLOBAL_DEFAULT_ENABLE_MCP
    api_key: str = GLOBAL_DEFAULT_API_KEY
    resolution_policy: ResolutionPolicy = Field(
        default_factory=ResolutionPolicy,
        description="Which fields may fall back from job to global",
    )


class JobConfiguration(Configuration):
    """Per-job configuration; ignored entirely unless ``use_job_config`` is set."""

    use_job_config: bool = Field(default=False, description="Let job fields override global")
    label: str = Field(default="", description="Label expression selecting the execution node")


class EffectiveConfig(BaseModel):
    """Resolved settings snapshot for a single invocation. Never persisted."""

    model_config = ConfigDict(frozen=True)

    cli_path: str
    cli_download_url: str
    cli_download_username: str
    cli_download_password: str
    config_path: str
    default_model: str
    timeout_seconds: int
    enable_mcp_servers: bool
    api_key: str
    selected_mcp_servers: tuple[str, ...]
    job_scoped: bool = False

    @property
    def mcp_config_path(self) -> str:
        """The MCP servers live in the same TOML file as the main config."""
        return self.config_path

    def redacted(self) -> dict[str, Any]:
        """Return a dict safe to print, with secrets masked."""
        data = self.model_dump()
        for secret in ("cli_download_password", "api_key"):
            if data.get(secret):
                data[secret] = "****"
        data["selected_mcp_servers"] = list(self.selected_mcp_servers)
        return data

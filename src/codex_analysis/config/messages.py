"""User-facing messages for codex-analysis.

This module consolidates strings shown in build logs, CLI output and
configuration validation so wording stays consistent across callers.
"""

PROJECT_TAGLINE = "Codex CLI analysis for CI pipelines"

# =============================================================================
# Success Messages
# =============================================================================

SUCCESS_MESSAGES = {
    "models_fetched": "Successfully fetched {count} models from Codex CLI",
    "mcp_servers_fetched": "Successfully fetched {count} MCP servers from Codex CLI",
    "cli_working": "Codex CLI is working on {node}! Version: {version}",
    "cli_updated": "Codex CLI updated successfully at {path}",
    "config_saved": "Configuration saved to {path}",
}

# =============================================================================
# Error Messages
# =============================================================================

ERROR_MESSAGES = {
    "generic_error": "An error occurred: {error}",
    "cli_unavailable": "Codex CLI is not available. Please ensure it's installed and configured.",
    "cli_exit_code": "Codex CLI returned exit code: {exit_code}. Output: {output}",
    "cli_command_failed": "Codex CLI {command} failed with exit code {exit_code}: {stderr}",
    "fetch_models_failed": "Failed to fetch models from Codex CLI: {error}",
    "fetch_mcp_servers_failed": "Failed to fetch MCP servers from Codex CLI: {error}",
    "analysis_failed": "Codex analysis failed: {error}",
    "analysis_error": "Error during Codex analysis: {error}",
    "stage_analysis_failed": "Stage analysis failed: {error}",
    "stage_analysis_error": "Error during stage analysis: {error}",
    "chat_error": "Error during Codex chat: {error}",
    "message_required": "Message is required",
    "download_not_job_scoped": "CLI update is only available for job-level configuration",
    "download_url_missing": "No Codex CLI download URL configured",
    "unknown_job": "No configuration stored for job '{job}'",
    "unknown_key": "Unknown configuration key: {key}",
}

# =============================================================================
# Warning / Info Messages
# =============================================================================

WARNING_MESSAGES = {
    "no_models_found": "No models found in Codex CLI output",
    "no_mcp_servers_found": "No MCP servers found in Codex CLI output",
}

CACHE_STATUS_MESSAGES = {
    "models_empty": "No models cached. Click 'Update Model List' to fetch from Codex CLI.",
    "models_expired": (
        "Model cache expired ({minutes} minutes old). Click 'Update Model List' to refresh."
    ),
    "models_current": "Model cache is current ({minutes} minutes old, {count} models cached).",
    "mcp_servers_empty": (
        "No MCP servers cached. Click 'Update MCP Servers List' to fetch from Codex CLI."
    ),
    "mcp_servers_expired": (
        "MCP servers cache expired ({minutes} minutes old). "
        "Click 'Update MCP Servers List' to refresh."
    ),
    "mcp_servers_current": (
        "MCP servers cache is current ({minutes} minutes old, {count} servers cached)."
    ),
}

VALIDATION_MESSAGES = {
    "cli_path_empty": "Codex CLI path is empty, will use '~/.local/bin/codex'",
    "download_url_optional": (
        "Codex CLI download URL is optional. Leave empty if CLI is already installed "
        "or will be installed manually."
    ),
    "download_url_scheme": "Download URL should start with http:// or https://",
    "username_short": "Username seems too short",
    "password_short": "Password seems too short",
    "config_path_empty": "Config path is empty, will use '~/.codex/config.toml'",
    "timeout_not_positive": "Timeout must be positive",
    "timeout_long": "Very long timeout may cause build delays",
    "model_empty": "Default model is empty, the Codex CLI will pick its own default model",
    "model_unknown": (
        "Selected model '{model}' is not in the current model list. "
        "Click 'Update Model List' to refresh available models."
    ),
    "api_key_empty": "LiteLLM API key is empty, no key will be passed to the Codex CLI",
    "api_key_short": "API key seems too short",
}

# =============================================================================
# Build Log Banners
# =============================================================================

LOG_BANNERS = {
    "analysis_start": "Starting Codex analysis...",
    "analysis_result": "=== CODEX ANALYSIS RESULT ===",
    "analysis_end": "=== END ANALYSIS ===",
    "stage_complete": "=== STAGE ANALYSIS COMPLETE ===",
}

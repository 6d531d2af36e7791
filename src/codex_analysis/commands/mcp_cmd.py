"""MCP server list commands.

Commands:
- list: Show cached MCP server names, or descriptors from the Codex config
- refresh: Ask the Codex CLI for its MCP servers and update the cache
- status: Describe the age of the MCP server cache
"""

import typer
from rich.markup import escape
from rich.table import Table

from codex_analysis.commands import console, get_store, resolve_for_job, select_executor
from codex_analysis.engine.fetcher import read_mcp_server_descriptors
from codex_analysis.models.configuration import HttpMcpServer
from codex_analysis.models.enums import IssueLevel
from codex_analysis.services.list_service import ListService
from codex_analysis.utils import print_error, print_info, print_success, print_warning

mcp_app = typer.Typer(
    name="mcp",
    help="Inspect and refresh the available MCP server list",
    no_args_is_help=True,
)


@mcp_app.command("list")
def list_mcp_servers(
    ctx: typer.Context,
    details: bool = typer.Option(
        False, "--details", "-d", help="Read full descriptors from the Codex config file"
    ),
    job: str | None = typer.Option(None, "--job", "-j", help="Resolve settings for this job"),
) -> None:
    """List MCP servers.

    Without ``--details`` this prints the cached names. With it, the Codex
    TOML config on the job's node is read and each server's transport and
    timeouts are shown.

    Example:
        codex-analysis mcp list
        codex-analysis mcp list --details --job app/main
    """
    store = get_store(ctx)
    if not details:
        names = ListService(store).mcp_server_options()
        if not names:
            print_info("No MCP servers cached")
        for name in names:
            console.print(f"  {name}", markup=False)
        return

    effective, job_config = resolve_for_job(store, job)
    executor = select_executor(store, job_config)
    text = executor.read_text(effective.mcp_config_path)
    if text is None:
        print_warning(f"Could not read {effective.mcp_config_path} on {executor.node_name}")
        return

    descriptors = read_mcp_server_descriptors(text)
    if not descriptors:
        print_info("No MCP servers declared in the Codex config")
        return

    table = Table(title="MCP Servers")
    table.add_column("Name", style="cyan")
    table.add_column("Transport")
    table.add_column("Target")
    table.add_column("Startup (s)", justify="right")
    table.add_column("Tool (s)", justify="right")
    table.add_column("Enabled")
    for server in descriptors:
        if isinstance(server, HttpMcpServer):
            target = server.url
        else:
            target = " ".join([server.command, *server.args])
        table.add_row(
            server.name,
            server.transport,
            escape(target),
            str(server.startup_timeout_seconds),
            str(server.tool_timeout_seconds),
            "yes" if server.enabled else "no",
        )
    console.print(table)


@mcp_app.command("refresh")
def refresh_mcp_servers(
    ctx: typer.Context,
    job: str | None = typer.Option(None, "--job", "-j", help="Resolve settings for this job"),
) -> None:
    """Fetch the MCP server list from the Codex CLI (or its config file).

    Example:
        codex-analysis mcp refresh --job app/main
    """
    store = get_store(ctx)
    effective, job_config = resolve_for_job(store, job)
    executor = select_executor(store, job_config)

    outcome = ListService(store).refresh_mcp_servers(effective, executor)
    if outcome.level == IssueLevel.OK:
        print_success(outcome.message)
        for name in outcome.items:
            console.print(f"  {name}", markup=False)
    elif outcome.level == IssueLevel.WARNING:
        print_warning(outcome.message)
    else:
        print_error(outcome.message)
        raise typer.Exit(code=1)


@mcp_app.command("status")
def mcp_status(ctx: typer.Context) -> None:
    """Show whether the MCP server cache is current."""
    print_info(ListService(get_store(ctx)).mcp_server_cache_status())

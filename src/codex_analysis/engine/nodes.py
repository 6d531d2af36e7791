"""Execution nodes and label-based node selection.

A job may be restricted to agents with certain labels. The CLI then has to
run (and ``~`` has to expand) on that agent rather than on the controller.
Agents are reached over ssh; the controller runs commands directly.
"""

from __future__ import annotations

import dataclasses
import logging
import re
import shlex
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from pydantic import BaseModel, Field

from codex_analysis.config.settings import engine_settings
from codex_analysis.constants import API_KEY_ENV_VAR, HOST_IDENTITY_VARIABLES
from codex_analysis.engine.executor import Executor, LocalExecutor, ProcessExecutor
from codex_analysis.exceptions import NodeError, NodeUnavailableError
from codex_analysis.models.context import is_sensitive_variable
from codex_analysis.models.enums import ExecState
from codex_analysis.models.results import ExecResult

logger = logging.getLogger(__name__)

# Exit codes that mean the remote side never started the CLI
_SHELL_NOT_EXECUTABLE = 126
_SHELL_NOT_FOUND = 127
_SSH_CONNECTION_FAILED = 255

_ENV_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class NodeDefinition(BaseModel):
    """Persisted description of an agent node."""

    name: str = Field(..., min_length=1, description="Node name shown in logs")
    host: str = Field(..., min_length=1, description="ssh destination (user@host or alias)")
    labels: list[str] = Field(default_factory=list, description="Labels jobs can target")
    online: bool = Field(default=True, description="Whether the node accepts work")
    ssh_options: list[str] = Field(
        default_factory=list, description="Extra options passed to ssh before the host"
    )


class RemoteNodeExecutor(Executor):
    """Runs the CLI on an agent through ``ssh``.

    The local ssh client is the child process, so killing its process group
    on timeout tears down the session and the remote command with it.
    """

    def __init__(
        self,
        node_name: str,
        host: str,
        ssh_options: list[str] | None = None,
        ssh_binary: str = "ssh",
        process_executor: ProcessExecutor | None = None,
        forward_secrets: frozenset[str] = frozenset({API_KEY_ENV_VAR}),
    ):
        super().__init__(node_name, process_executor)
        self.host = host
        self.ssh_options = list(ssh_options or [])
        self.ssh_binary = ssh_binary
        self.forward_secrets = forward_secrets
        self._home: str | None = None
        self._home_lock = threading.Lock()

    def _ssh_argv(self, remote_command: str) -> list[str]:
        return [
            self.ssh_binary,
            "-o",
            "BatchMode=yes",
            *self.ssh_options,
            self.host,
            remote_command,
        ]

    def forwarded_environment(self, env: dict[str, str] | None) -> dict[str, str]:
        """Select the variables an agent receives from the caller's environment.

        Variables describing the controller (HOME, PATH, USER, ...) are left to
        the agent, and secret-looking names are dropped unless listed in
        ``forward_secrets``.
        """
        forwarded: dict[str, str] = {}
        for key, value in (env or {}).items():
            if key in HOST_IDENTITY_VARIABLES or not _ENV_NAME_RE.match(key):
                continue
            if is_sensitive_variable(key) and key not in self.forward_secrets:
                continue
            forwarded[key] = value
        return forwarded

    @staticmethod
    def environment_script(env: dict[str, str]) -> str:
        """Render variables as ``export`` lines for the remote shell to evaluate."""
        return "".join(f"export {key}={shlex.quote(value)}\n" for key, value in env.items())

    @staticmethod
    def remote_command(
        argv: list[str], work_dir: str | None = None, read_environment: bool = False
    ) -> str:
        """Render an argument vector as a single shell command for the agent.

        With ``read_environment`` the remote shell first evaluates the export
        script sent on stdin, so variable values never appear in any argv.
        """
        parts: list[str] = []
        if work_dir:
            parts.append(f"cd {shlex.quote(work_dir)} &&")
        if read_environment:
            parts.append('eval "$(cat)" &&')
        parts.append("exec")
        parts.append(shlex.join(argv))
        return " ".join(parts)

    def home(self) -> str:
        with self._home_lock:
            if self._home is not None:
                return self._home

        result = self.process_executor.run(
            self._ssh_argv("printenv HOME"),
            timeout=engine_settings.probe_timeout_seconds,
        )
        home = result.stdout.strip()
        if not result.success or not home:
            raise NodeError(
                f"Could not determine home directory on node '{self.node_name}'",
                details={"host": self.host, "error": result.error},
            )

        with self._home_lock:
            self._home = home
        return home

    def run(
        self,
        argv: list[str],
        *,
        env: dict[str, str] | None = None,
        work_dir: str | None = None,
        timeout: float,
        cancel_event: threading.Event | None = None,
        combine_output: bool = False,
    ) -> ExecResult:
        forwarded = self.forwarded_environment(env)
        command = self.remote_command(argv, work_dir=work_dir, read_environment=bool(forwarded))
        logger.debug(
            f"Dispatching to node {self.node_name} ({self.host}), "
            f"forwarding {len(forwarded)} variables"
        )
        result = self.process_executor.run(
            self._ssh_argv(command),
            timeout=timeout,
            cancel_event=cancel_event,
            combine_output=combine_output,
            input_text=self.environment_script(forwarded) if forwarded else None,
        )

        if result.state == ExecState.FAILED_NON_ZERO and result.exit_code in (
            _SHELL_NOT_EXECUTABLE,
            _SHELL_NOT_FOUND,
            _SSH_CONNECTION_FAILED,
        ):
            result = dataclasses.replace(result, state=ExecState.FAILED_TO_LAUNCH)

        # Report the command the caller asked for, not the ssh wrapper
        return dataclasses.replace(result, argv=list(argv))

    def read_text(self, path: str) -> str | None:
        try:
            result = self.run(
                ["cat", self.expand_path(path)],
                timeout=engine_settings.probe_timeout_seconds,
            )
        except NodeError as e:
            logger.debug(f"Could not read {path} on {self.node_name}: {e}")
            return None
        return result.stdout if result.success else None

    def write_executable(self, path: str, data: bytes) -> None:
        target = self.expand_path(path)
        parent = str(PurePosixPath(target).parent)
        quoted = shlex.quote(target)
        command = f"mkdir -p {shlex.quote(parent)} && cat > {quoted} && chmod +x {quoted}"
        try:
            completed = subprocess.run(
                self._ssh_argv(command),
                input=data,
                capture_output=True,
                timeout=engine_settings.probe_timeout_seconds * 6,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise NodeError(
                f"Failed to write {target} on node '{self.node_name}'", details={"error": e}
            ) from e
        if completed.returncode != 0:
            raise NodeError(
                f"Failed to write {target} on node '{self.node_name}'",
                details={"stderr": completed.stderr.decode(errors="replace").strip()},
            )


# =============================================================================
# Label expressions
# =============================================================================


def label_matches(expression: str, labels: set[str] | list[str]) -> bool:
    """Evaluate a label expression against a node's labels.

    Supports ``a``, ``!a``, ``a && b`` and ``a || b``; ``&&`` binds tighter
    than ``||``. Parentheses are not supported.
    """
    available = set(labels)
    for alternative in expression.split("||"):
        terms = [term.strip() for term in alternative.split("&&")]
        if not all(terms):
            continue
        if all(
            (term[1:].strip() not in available) if term.startswith("!") else (term in available)
            for term in terms
        ):
            return True
    return False


@dataclass
class Node:
    """An execution target: the controller or a labelled agent."""

    name: str
    executor: Executor
    labels: set[str] = field(default_factory=set)
    online: bool = True

    @classmethod
    def from_definition(cls, definition: NodeDefinition) -> Node:
        return cls(
            name=definition.name,
            executor=RemoteNodeExecutor(
                definition.name, definition.host, ssh_options=definition.ssh_options
            ),
            labels=set(definition.labels),
            online=definition.online,
        )


class NodeRegistry:
    """Known nodes, with the controller always present.

    Example usage:
        registry = NodeRegistry.from_definitions(store.nodes())
        node = registry.select("linux && docker")
        node.executor.execute(cli_path, args, timeout=120)
    """

    def __init__(self, controller: Node | None = None, agents: list[Node] | None = None):
        self.controller = controller or Node(name="controller", executor=LocalExecutor())
        self.agents = list(agents or [])

    @classmethod
    def from_definitions(
        cls, definitions: list[NodeDefinition], controller: Node | None = None
    ) -> NodeRegistry:
        return cls(controller=controller, agents=[Node.from_definition(d) for d in definitions])

    def select(self, label_expression: str | None) -> Node:
        """Pick the node a job with this label expression runs on.

        Args:
            label_expression: The job's label restriction; blank means the controller.

        Returns:
            The controller for a blank expression, else the first online agent
            whose labels satisfy the expression.

        Raises:
            NodeUnavailableError: If no online agent matches.
        """
        if not label_expression or not label_expression.strip():
            return self.controller

        expression = label_expression.strip()
        for node in self.agents:
            if node.online and label_matches(expression, node.labels):
                logger.debug(f"Label '{expression}' selected node {node.name}")
                return node

        raise NodeUnavailableError(expression)

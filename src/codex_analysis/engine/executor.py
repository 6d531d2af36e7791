"""Process execution for Codex CLI invocations.

ProcessExecutor owns the subprocess lifecycle: launch in a new process
group, capture stdout/stderr separately, enforce the deadline and kill the
whole group on timeout or cancellation. Executor is the node-agnostic
capability the rest of the engine talks to; LocalExecutor runs on this
host and RemoteNodeExecutor (see nodes.py) dispatches over ssh.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import subprocess
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path

from codex_analysis.config.settings import engine_settings
from codex_analysis.constants import FALLBACK_CLI_NAME, PROCESS_POLL_INTERVAL_SECONDS
from codex_analysis.exceptions import ExecutionCancelledError
from codex_analysis.models.enums import ExecState
from codex_analysis.models.results import ExecResult
from codex_analysis.utils.platform import get_process_group_kwargs, kill_process_group

logger = logging.getLogger(__name__)


def expand_home(path: str, home: str) -> str:
    """Expand a leading ``~`` against the given home directory.

    Only ``~`` and ``~/...`` are expanded; ``~user`` forms are left alone.
    """
    if path == "~":
        return home
    if path.startswith("~/"):
        return home.rstrip("/") + path[1:]
    return path


class ProcessExecutor:
    """Runs a single argument vector on this host with a deadline.

    Example usage:
        executor = ProcessExecutor()
        result = executor.run(["codex", "--version"], timeout=10)
        if result.success:
            print(result.stdout)
    """

    def __init__(
        self,
        poll_interval: float = PROCESS_POLL_INTERVAL_SECONDS,
        kill_grace: float | None = None,
    ):
        """Initialize process executor.

        Args:
            poll_interval: How often to check for cancellation while waiting.
            kill_grace: Seconds to wait for pipes to drain after a kill.
        """
        self.poll_interval = poll_interval
        self.kill_grace = (
            kill_grace if kill_grace is not None else engine_settings.kill_grace_seconds
        )

    def run(
        self,
        argv: list[str],
        *,
        env: dict[str, str] | None = None,
        work_dir: str | None = None,
        timeout: float,
        cancel_event: threading.Event | None = None,
        combine_output: bool = False,
        input_text: str | None = None,
    ) -> ExecResult:
        """Run a command to completion, timeout or cancellation.

        Args:
            argv: Full argument vector, executable first.
            env: Variables layered over the current environment.
            work_dir: Working directory for the child.
            timeout: Deadline in seconds.
            cancel_event: When set, the child's process group is killed.
            combine_output: Merge stderr into stdout.
            input_text: Written to the child's stdin, which is then closed.
                Without it stdin is /dev/null.

        Returns:
            ExecResult in one of the terminal states.

        Raises:
            ExecutionCancelledError: If cancel_event was set before the child exited.
        """
        started = time.monotonic()
        merged_env = {**os.environ, **env} if env else None

        try:
            proc = subprocess.Popen(
                argv,
                cwd=work_dir or None,
                env=merged_env,
                stdin=subprocess.DEVNULL if input_text is None else subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if combine_output else subprocess.PIPE,
                text=True,
                errors="replace",
                **get_process_group_kwargs(),
            )
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to launch {argv[0] if argv else '<empty>'}: {e}")
            return ExecResult(
                argv=list(argv),
                stdout="",
                stderr=str(e),
                exit_code=None,
                state=ExecState.FAILED_TO_LAUNCH,
                duration_seconds=time.monotonic() - started,
                timeout_seconds=timeout,
            )

        logger.debug(f"Started pid {proc.pid}: {argv[0]} ({len(argv) - 1} args)")
        deadline = started + timeout
        pending_input = input_text

        try:
            while True:
                if cancel_event is not None and cancel_event.is_set():
                    self._kill(proc)
                    logger.info(f"Cancelled Codex CLI process {proc.pid}")
                    raise ExecutionCancelledError(
                        "Codex CLI invocation was cancelled", argv=list(argv)
                    )

                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    stdout, stderr = self._kill(proc)
                    logger.warning(f"Codex CLI exceeded {timeout:g}s timeout; process group killed")
                    return ExecResult(
                        argv=list(argv),
                        stdout=stdout,
                        stderr=stderr,
                        exit_code=None,
                        state=ExecState.FAILED_TIMEOUT,
                        duration_seconds=time.monotonic() - started,
                        timeout_seconds=timeout,
                    )

                wait = remaining if cancel_event is None else min(remaining, self.poll_interval)
                try:
                    # Input may only be passed on the first communicate() call
                    stdout, stderr = proc.communicate(input=pending_input, timeout=wait)
                    break
                except subprocess.TimeoutExpired:
                    pending_input = None
                    continue
        except KeyboardInterrupt:
            self._kill(proc)
            raise

        exit_code = proc.returncode
        state = ExecState.SUCCEEDED if exit_code == 0 else ExecState.FAILED_NON_ZERO
        if state == ExecState.FAILED_NON_ZERO:
            logger.error(f"Codex CLI execution failed with exit code {exit_code}")
            logger.error(f"Error output: {(stderr or '').strip()}")

        return ExecResult(
            argv=list(argv),
            stdout=stdout or "",
            stderr=stderr or "",
            exit_code=exit_code,
            state=state,
            duration_seconds=time.monotonic() - started,
            timeout_seconds=timeout,
        )

    def _kill(self, proc: subprocess.Popen[str]) -> tuple[str, str]:
        """Kill the process group and collect whatever output was produced."""
        kill_process_group(proc)
        try:
            stdout, stderr = proc.communicate(timeout=self.kill_grace)
        except subprocess.TimeoutExpired:
            # Something outside the group still holds the pipes open
            proc.kill()
            proc.wait()
            return "", ""
        return stdout or "", stderr or ""


class Executor(ABC):
    """Capability to run the Codex CLI on one execution node.

    Resolution and command building never ask where they run; they hand
    an argument vector to an Executor and get an ExecResult back.
    """

    def __init__(self, node_name: str, process_executor: ProcessExecutor | None = None):
        self.node_name = node_name
        self.process_executor = process_executor or ProcessExecutor()

    @abstractmethod
    def home(self) -> str:
        """Home directory of the user the CLI runs as on this node."""
        ...

    @abstractmethod
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
        """Run an argument vector on this node."""
        ...

    @abstractmethod
    def read_text(self, path: str) -> str | None:
        """Read a text file on this node, None if it cannot be read."""
        ...

    @abstractmethod
    def write_executable(self, path: str, data: bytes) -> None:
        """Write a file on this node and mark it executable."""
        ...

    def expand_path(self, path: str) -> str:
        """Expand ``~`` against this node's home, only calling home() when needed."""
        if path == "~" or path.startswith("~/"):
            return expand_home(path, self.home())
        return path

    def resolve_executable(self, cli_path: str) -> str:
        """Turn a configured CLI path into the executable to launch."""
        if not cli_path or not cli_path.strip():
            return FALLBACK_CLI_NAME
        return self.expand_path(cli_path.strip())

    def execute(
        self,
        cli_path: str,
        args: list[str],
        *,
        env: dict[str, str] | None = None,
        work_dir: str | None = None,
        timeout: float,
        cancel_event: threading.Event | None = None,
        combine_output: bool = False,
    ) -> ExecResult:
        """Run the Codex CLI with a prepared argument vector."""
        argv = [self.resolve_executable(cli_path), *args]
        return self.run(
            argv,
            env=env,
            work_dir=work_dir,
            timeout=timeout,
            cancel_event=cancel_event,
            combine_output=combine_output,
        )

    def is_available(
        self,
        cli_path: str,
        *,
        env: dict[str, str] | None = None,
        work_dir: str | None = None,
        timeout: float | None = None,
    ) -> bool:
        """Run the CLI with ``--version``; any failure means unavailable."""
        from codex_analysis.engine.command_builder import build_version_args

        try:
            result = self.execute(
                cli_path,
                build_version_args(),
                env=env,
                work_dir=work_dir,
                timeout=timeout or engine_settings.probe_timeout_seconds,
            )
        except Exception as e:
            logger.info(f"Codex CLI not available on {self.node_name}: {e}")
            return False

        if not result.success:
            logger.info(f"Codex CLI not available on {self.node_name}: {result.error}")
        return result.success


class LocalExecutor(Executor):
    """Runs the CLI on the host this process lives on (the controller)."""

    def __init__(
        self,
        node_name: str = "controller",
        process_executor: ProcessExecutor | None = None,
    ):
        super().__init__(node_name, process_executor)

    def home(self) -> str:
        return str(Path.home())

    def resolve_executable(self, cli_path: str) -> str:
        executable = super().resolve_executable(cli_path)
        if os.sep not in executable:
            return shutil.which(executable) or executable
        return executable

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
        return self.process_executor.run(
            argv,
            env=env,
            work_dir=work_dir,
            timeout=timeout,
            cancel_event=cancel_event,
            combine_output=combine_output,
        )

    def read_text(self, path: str) -> str | None:
        try:
            return Path(self.expand_path(path)).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Could not read {path}: {e}")
            return None

    def write_executable(self, path: str, data: bytes) -> None:
        target = Path(self.expand_path(path))
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        mode = target.stat().st_mode
        target.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

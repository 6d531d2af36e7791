"""Tests for process execution and the local executor.

These start real child processes using the running interpreter.
"""

import os
import sys
import threading
import time
from pathlib import Path

import pytest

from codex_analysis.engine.executor import LocalExecutor, ProcessExecutor, expand_home
from codex_analysis.exceptions import (
    CommandTimeoutError,
    ExecutionCancelledError,
    LaunchError,
    NonZeroExitError,
)
from codex_analysis.models.enums import ExecState
from codex_analysis.utils.platform import IS_POSIX

posix_only = pytest.mark.skipif(not IS_POSIX, reason="process groups are POSIX-only")


def _python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


def _group_alive(pgid: int) -> bool:
    try:
        os.killpg(pgid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


# =============================================================================
# ProcessExecutor
# =============================================================================


class TestProcessExecutor:
    """Tests for the subprocess lifecycle."""

    def test_success_captures_stdout_and_stderr_separately(self) -> None:
        result = ProcessExecutor().run(
            _python("import sys; print('out'); print('err', file=sys.stderr)"), timeout=30
        )

        assert result.state == ExecState.SUCCEEDED
        assert result.success
        assert result.exit_code == 0
        assert result.stdout.strip() == "out"
        assert result.stderr.strip() == "err"

    def test_combined_output(self) -> None:
        result = ProcessExecutor().run(
            _python("import sys; print('out', flush=True); print('err', file=sys.stderr)"),
            timeout=30,
            combine_output=True,
        )

        assert "out" in result.stdout
        assert "err" in result.stdout
        assert result.stderr == ""

    def test_non_zero_exit(self) -> None:
        result = ProcessExecutor().run(
            _python("import sys; print('bad input', file=sys.stderr); sys.exit(3)"), timeout=30
        )

        assert result.state == ExecState.FAILED_NON_ZERO
        assert result.exit_code == 3
        with pytest.raises(NonZeroExitError) as exc_info:
            result.raise_for_status()
        assert exc_info.value.exit_code == 3
        assert "bad input" in exc_info.value.message

    def test_launch_failure(self, tmp_path: Path) -> None:
        missing = str(tmp_path / "no-such-codex")

        result = ProcessExecutor().run([missing, "--version"], timeout=30)

        assert result.state == ExecState.FAILED_TO_LAUNCH
        assert result.exit_code is None
        assert result.stderr
        with pytest.raises(LaunchError):
            result.raise_for_status()

    def test_env_is_layered_over_process_environment(self) -> None:
        result = ProcessExecutor().run(
            _python("import os; print(os.environ['CODEX_TEST_VAR'], 'PATH' in os.environ)"),
            env={"CODEX_TEST_VAR": "layered"},
            timeout=30,
        )

        assert result.stdout.split() == ["layered", "True"]

    def test_input_text_is_written_to_stdin(self) -> None:
        result = ProcessExecutor().run(
            _python("import sys; print(sys.stdin.read().upper())"),
            input_text="export A='1'\n",
            timeout=30,
        )

        assert result.stdout.strip() == "EXPORT A='1'"

    def test_stdin_is_empty_without_input(self) -> None:
        result = ProcessExecutor().run(
            _python("import sys; print(repr(sys.stdin.read()))"), timeout=30
        )

        assert result.stdout.strip() == "''"

    def test_work_dir(self, tmp_path: Path) -> None:
        result = ProcessExecutor().run(
            _python("import os; print(os.getcwd())"), work_dir=str(tmp_path), timeout=30
        )

        assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()

    @posix_only
    def test_timeout_kills_process_group(self) -> None:
        started = time.monotonic()

        result = ProcessExecutor(kill_grace=5).run(
            _python("import os, time; print(os.getpid(), flush=True); time.sleep(30)"),
            timeout=0.5,
        )

        assert time.monotonic() - started < 10
        assert result.state == ExecState.FAILED_TIMEOUT
        assert result.exit_code is None
        assert result.error == "timed out after 0.5s"
        pid = int(result.stdout.split()[0])
        assert not _group_alive(pid)
        with pytest.raises(CommandTimeoutError):
            result.raise_for_status()

    @posix_only
    def test_cancellation_raises_and_kills(self) -> None:
        cancel = threading.Event()
        timer = threading.Timer(0.3, cancel.set)
        timer.start()
        started = time.monotonic()

        try:
            with pytest.raises(ExecutionCancelledError):
                ProcessExecutor(poll_interval=0.05).run(
                    _python("import time; time.sleep(30)"), timeout=60, cancel_event=cancel
                )
        finally:
            timer.cancel()

        assert time.monotonic() - started < 10

    def test_result_is_terminal(self) -> None:
        result = ProcessExecutor().run(_python("pass"), timeout=30)

        assert result.state.is_terminal


# =============================================================================
# Home expansion
# =============================================================================


class TestExpandHome:
    """Tests for ~ expansion against a node's home."""

    def test_tilde_slash(self) -> None:
        assert expand_home("~/.local/bin/codex", "/home/agent") == "/home/agent/.local/bin/codex"

    def test_bare_tilde(self) -> None:
        assert expand_home("~", "/home/agent") == "/home/agent"

    def test_trailing_slash_on_home(self) -> None:
        assert expand_home("~/x", "/home/agent/") == "/home/agent/x"

    def test_other_user_untouched(self) -> None:
        assert expand_home("~bob/codex", "/home/agent") == "~bob/codex"

    def test_absolute_untouched(self) -> None:
        assert expand_home("/opt/codex", "/home/agent") == "/opt/codex"


# =============================================================================
# LocalExecutor
# =============================================================================


class TestLocalExecutor:
    """Tests for running on the controller."""

    def test_expand_path_uses_local_home(self) -> None:
        assert LocalExecutor().expand_path("~/bin/codex") == str(Path.home() / "bin" / "codex")

    def test_blank_cli_path_falls_back_to_codex(self) -> None:
        executable = LocalExecutor().resolve_executable("  ")

        assert os.path.basename(executable) == "codex"

    def test_read_text(self, tmp_path: Path) -> None:
        config = tmp_path / "config.toml"
        config.write_text("[mcp.servers.github]\n", encoding="utf-8")

        assert LocalExecutor().read_text(str(config)) == "[mcp.servers.github]\n"
        assert LocalExecutor().read_text(str(tmp_path / "missing.toml")) is None

    @posix_only
    def test_write_executable(self, tmp_path: Path) -> None:
        target = tmp_path / "bin" / "codex"

        LocalExecutor().write_executable(str(target), b"#!/bin/sh\necho codex 1.0\n")

        assert target.read_bytes() == b"#!/bin/sh\necho codex 1.0\n"
        assert os.access(target, os.X_OK)

    @posix_only
    def test_is_available(self, tmp_path: Path) -> None:
        target = tmp_path / "codex"
        executor = LocalExecutor()
        executor.write_executable(str(target), b"#!/bin/sh\necho codex 1.0\n")

        assert executor.is_available(str(target)) is True
        assert executor.is_available(str(tmp_path / "missing")) is False

    @posix_only
    def test_execute_prepends_executable(self, tmp_path: Path) -> None:
        target = tmp_path / "codex"
        executor = LocalExecutor()
        executor.write_executable(str(target), b'#!/bin/sh\necho "$@"\n')

        result = executor.execute(str(target), ["models", "list"], timeout=30)

        assert result.argv == [str(target), "models", "list"]
        assert result.stdout.strip() == "models list"

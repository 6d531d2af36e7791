"""Pytest configuration and fixtures for codex-analysis tests."""

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from codex_analysis.engine.executor import Executor
from codex_analysis.engine.nodes import Node, NodeRegistry
from codex_analysis.models.configuration import GlobalConfiguration, JobConfiguration
from codex_analysis.models.enums import ExecState
from codex_analysis.models.results import ExecResult
from codex_analysis.services.config_store import ConfigStore


@dataclass
class FakeCall:
    argv: list[str]
    env: dict[str, str] | None
    work_dir: str | None
    timeout: float
    combine_output: bool


@dataclass
class FakeExecutor(Executor):
    """In-memory node that answers CLI invocations from a table.

    ``responses`` maps the first CLI argument (``analyze``, ``query``,
    ``--version``, ``models``, ``mcp``) to either ``(exit_code, stdout, stderr)``
    or an ExecState for timeouts and launch failures. Unlisted commands succeed
    with empty output.
    """

    responses: dict[str, tuple[int, str, str] | ExecState] = field(default_factory=dict)
    files: dict[str, str] = field(default_factory=dict)
    home_dir: str = "/home/agent"
    name: str = "fake-node"
    calls: list[FakeCall] = field(default_factory=list)
    written: dict[str, bytes] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.name)

    def home(self) -> str:
        return self.home_dir

    def run(
        self,
        argv,
        *,
        env=None,
        work_dir=None,
        timeout,
        cancel_event=None,
        combine_output=False,
    ) -> ExecResult:
        self.calls.append(FakeCall(list(argv), env, work_dir, timeout, combine_output))
        key = argv[1] if len(argv) > 1 else ""
        spec = self.responses.get(key, (0, "", ""))
        if isinstance(spec, ExecState):
            return ExecResult(
                argv=list(argv),
                stdout="",
                stderr="no such file" if spec == ExecState.FAILED_TO_LAUNCH else "",
                exit_code=None,
                state=spec,
                timeout_seconds=timeout,
            )
        exit_code, stdout, stderr = spec
        return ExecResult(
            argv=list(argv),
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
            state=ExecState.SUCCEEDED if exit_code == 0 else ExecState.FAILED_NON_ZERO,
            timeout_seconds=timeout,
        )

    def read_text(self, path: str) -> str | None:
        return self.files.get(self.expand_path(path))

    def write_executable(self, path: str, data: bytes) -> None:
        self.written[path] = data

    def argvs(self, subcommand: str) -> list[list[str]]:
        return [c.argv for c in self.calls if len(c.argv) > 1 and c.argv[1] == subcommand]


@pytest.fixture
def fake_executor() -> FakeExecutor:
    """A node whose CLI succeeds with empty output unless told otherwise."""
    return FakeExecutor()


@pytest.fixture
def registry_for():
    """Build a registry whose controller runs on the given executor."""

    def _build(executor: Executor) -> NodeRegistry:
        return NodeRegistry(controller=Node(name=executor.node_name, executor=executor))

    return _build


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "codex-analysis" / "config.yaml"


@pytest.fixture
def store(store_path: Path) -> ConfigStore:
    """An empty store backed by a temporary file."""
    return ConfigStore(store_path)


@pytest.fixture
def global_config() -> GlobalConfiguration:
    return GlobalConfiguration()


@pytest.fixture
def job_config() -> JobConfiguration:
    """Job configuration that overrides the model and timeout."""
    return JobConfiguration(use_job_config=True, default_model="gpt-4", timeout_seconds=60)

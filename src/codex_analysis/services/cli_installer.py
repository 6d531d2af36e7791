"""Download/update and self-test of the Codex CLI binary on a node."""

import logging

import httpx

from codex_analysis.config.messages import ERROR_MESSAGES, SUCCESS_MESSAGES
from codex_analysis.config.settings import engine_settings
from codex_analysis.constants import (
    DOWNLOAD_CONNECT_TIMEOUT_SECONDS,
    DOWNLOAD_READ_TIMEOUT_SECONDS,
    FLAG_VERSION,
)
from codex_analysis.engine.command_builder import build_version_args
from codex_analysis.engine.executor import Executor
from codex_analysis.exceptions import CodexAnalysisError, DownloadError, ExecutionError
from codex_analysis.models.configuration import EffectiveConfig
from codex_analysis.models.enums import ExecState
from codex_analysis.models.results import InstallResult

logger = logging.getLogger(__name__)


class CliInstaller:
    """Fetches the CLI from a download URL and installs it on a node.

    Example usage:
        installer = CliInstaller(LocalExecutor())
        result = installer.update_cli(effective)
        print(result.message)
    """

    def __init__(self, executor: Executor, transport: httpx.BaseTransport | None = None):
        """Initialize installer.

        Args:
            executor: Node the CLI is installed on and tested against.
            transport: Optional httpx transport (used by tests).
        """
        self.executor = executor
        self.transport = transport

    def download(self, url: str, username: str = "", password: str = "") -> bytes:
        """Download the CLI binary.

        Basic auth is sent only when both username and password are set.

        Raises:
            DownloadError: On HTTP errors or connection failures.
        """
        auth = (username, password) if username and password else None
        timeout = httpx.Timeout(
            DOWNLOAD_READ_TIMEOUT_SECONDS, connect=DOWNLOAD_CONNECT_TIMEOUT_SECONDS
        )

        logger.info(f"Downloading Codex CLI from {url}")
        try:
            with httpx.Client(
                timeout=timeout, follow_redirects=True, transport=self.transport
            ) as client:
                response = client.get(url, auth=auth)
                response.raise_for_status()
                return response.content
        except httpx.HTTPStatusError as e:
            raise DownloadError(
                f"Download failed with HTTP {e.response.status_code}",
                url=url,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise DownloadError(f"Download failed: {e}", url=url) from e

    def update_cli(self, effective: EffectiveConfig) -> InstallResult:
        """Download the CLI and write it, executable, to the effective CLI path.

        Only job-scoped configurations may update the CLI.
        """
        if not effective.job_scoped:
            return InstallResult(False, ERROR_MESSAGES["download_not_job_scoped"])

        url = effective.cli_download_url.strip()
        if not url:
            return InstallResult(False, ERROR_MESSAGES["download_url_missing"])

        try:
            data = self.download(
                url, effective.cli_download_username, effective.cli_download_password
            )
            target = self.executor.expand_path(effective.cli_path)
            self.executor.write_executable(target, data)
        except (CodexAnalysisError, OSError) as e:
            logger.error(f"Codex CLI update failed: {e}")
            return InstallResult(False, str(e))

        logger.info(f"Installed Codex CLI ({len(data)} bytes) at {target}")
        return InstallResult(True, SUCCESS_MESSAGES["cli_updated"].format(path=target), target)

    def test_cli(self, effective: EffectiveConfig, env: dict[str, str] | None = None) -> str:
        """Run ``--version`` and describe the result.

        Returns:
            Success message naming the node and version.

        Raises:
            ExecutionError: If the CLI is missing, exits non-zero or times out.
        """
        result = self.executor.execute(
            effective.cli_path,
            build_version_args(),
            env=env,
            timeout=engine_settings.probe_timeout_seconds,
        )
        if result.state == ExecState.FAILED_NON_ZERO:
            raise ExecutionError(
                ERROR_MESSAGES["cli_command_failed"].format(
                    command=FLAG_VERSION,
                    exit_code=result.exit_code,
                    stderr=result.stderr.strip(),
                ),
                argv=result.argv,
            )
        result.raise_for_status()
        return SUCCESS_MESSAGES["cli_working"].format(
            node=self.executor.node_name, version=result.stdout.strip()
        )

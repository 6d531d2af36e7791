"""Tests for downloading, installing and testing the Codex CLI."""

import base64

import httpx
import pytest

from codex_analysis.engine.resolver import resolve
from codex_analysis.exceptions import DownloadError, ExecutionError
from codex_analysis.models.configuration import GlobalConfiguration, JobConfiguration
from codex_analysis.models.enums import ExecState
from codex_analysis.services.cli_installer import CliInstaller

BINARY = b"\x7fELF fake codex"


def _job_effective(**job_fields: object):
    job = JobConfiguration(use_job_config=True, **job_fields)
    return resolve(GlobalConfiguration(), job)


def _transport(status: int = 200, seen: list[httpx.Request] | None = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, content=BINARY if status == 200 else b"nope")

    return httpx.MockTransport(handler)


class TestDownload:
    """Tests for the HTTP download."""

    def test_basic_auth_sent_when_both_set(self, fake_executor) -> None:
        seen: list[httpx.Request] = []
        installer = CliInstaller(fake_executor, transport=_transport(seen=seen))

        data = installer.download("https://dl.example.com/codex", "ci-bot", "s3cret")

        assert data == BINARY
        expected = base64.b64encode(b"ci-bot:s3cret").decode()
        assert seen[0].headers["Authorization"] == f"Basic {expected}"

    def test_no_auth_without_password(self, fake_executor) -> None:
        seen: list[httpx.Request] = []
        installer = CliInstaller(fake_executor, transport=_transport(seen=seen))

        installer.download("https://dl.example.com/codex", "ci-bot", "")

        assert "Authorization" not in seen[0].headers

    def test_http_error(self, fake_executor) -> None:
        installer = CliInstaller(fake_executor, transport=_transport(status=404))

        with pytest.raises(DownloadError) as exc_info:
            installer.download("https://dl.example.com/codex")

        assert exc_info.value.status_code == 404


class TestUpdateCli:
    """Tests for installing the CLI on a node."""

    def test_installs_at_expanded_cli_path(self, fake_executor) -> None:
        effective = _job_effective(cli_download_url="https://dl.example.com/codex")
        installer = CliInstaller(fake_executor, transport=_transport())

        result = installer.update_cli(effective)

        assert result.success
        assert result.path == "/home/agent/.local/bin/codex"
        assert fake_executor.written == {"/home/agent/.local/bin/codex": BINARY}
        assert result.message == "Codex CLI updated successfully at /home/agent/.local/bin/codex"

    def test_requires_job_scope(self, fake_executor) -> None:
        effective = resolve(GlobalConfiguration(cli_download_url="https://dl.example.com/codex"))

        result = CliInstaller(fake_executor, transport=_transport()).update_cli(effective)

        assert not result.success
        assert result.message == "CLI update is only available for job-level configuration"
        assert fake_executor.written == {}

    def test_requires_url(self, fake_executor) -> None:
        result = CliInstaller(fake_executor, transport=_transport()).update_cli(_job_effective())

        assert not result.success
        assert result.message == "No Codex CLI download URL configured"

    def test_download_failure_reported(self, fake_executor) -> None:
        effective = _job_effective(cli_download_url="https://dl.example.com/codex")

        result = CliInstaller(fake_executor, transport=_transport(status=500)).update_cli(
            effective
        )

        assert not result.success
        assert "HTTP 500" in result.message
        assert fake_executor.written == {}


class TestTestCli:
    """Tests for the CLI self-test."""

    def test_reports_node_and_version(self, fake_executor) -> None:
        fake_executor.responses["--version"] = (0, "codex 0.9.1\n", "")

        message = CliInstaller(fake_executor).test_cli(resolve(GlobalConfiguration()))

        assert message == "Codex CLI is working on fake-node! Version: codex 0.9.1"

    def test_non_zero_exit(self, fake_executor) -> None:
        fake_executor.responses["--version"] = (2, "", "bad flag")

        with pytest.raises(ExecutionError) as exc_info:
            CliInstaller(fake_executor).test_cli(resolve(GlobalConfiguration()))

        assert exc_info.value.message == (
            "Codex CLI --version failed with exit code 2: bad flag"
        )

    def test_missing_binary(self, fake_executor) -> None:
        fake_executor.responses["--version"] = ExecState.FAILED_TO_LAUNCH

        with pytest.raises(ExecutionError):
            CliInstaller(fake_executor).test_cli(resolve(GlobalConfiguration()))

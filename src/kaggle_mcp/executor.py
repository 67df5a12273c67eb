"""
Kaggle MCP Executor Module

Runs exactly one external Kaggle operation and reports the outcome as an
ExecutionResult. Two interchangeable strategies:

- CliExecutor: runs the `kaggle` command line tool as a subprocess, passing
  credentials through KAGGLE_USERNAME / KAGGLE_KEY
- ApiExecutor: calls the Kaggle REST API with HTTP Basic authentication

Both enforce the operation's timeout and never raise: every failure comes
back as ExecutionResult(success=False, failure=...).
"""

import subprocess
import time
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import requests

from kaggle_mcp.config import SEARCH_TIMEOUT, Settings, logger
from kaggle_mcp.credentials import Credentials
from kaggle_mcp.errors import ErrorCategory, ErrorCode, Failure, classify, redact

MISSING_CREDENTIALS_DETAIL = "Kaggle credentials missing: KAGGLE_USERNAME and KAGGLE_KEY are required"


@dataclass(frozen=True)
class Operation:
    """
    One Kaggle call, described for both transports.

    Attributes:
        label: Short name used in logs (e.g. "datasets list")
        cli_args: Arguments after the `kaggle` executable
        endpoint: REST path relative to the API base
        method: HTTP method for the REST call
        params: Query string parameters
        data: Form fields for the REST call
        timeout: Seconds before the call is abandoned
        download_to: Directory receiving the response body (REST downloads)
        archive_name: File name for the downloaded archive
        unzip: Extract the archive after download
        upload: Local file sent as multipart `file` field
    """

    label: str
    cli_args: tuple[str, ...]
    endpoint: str
    method: str = "GET"
    params: Mapping[str, Any] = field(default_factory=dict)
    data: Mapping[str, Any] = field(default_factory=dict)
    timeout: int = SEARCH_TIMEOUT
    download_to: Path | None = None
    archive_name: str = "download.zip"
    unzip: bool = False
    upload: Path | None = None


@dataclass(frozen=True)
class ExecutionResult:
    success: bool
    output: str = ""
    diagnostic: str = ""
    failure: Failure | None = None

    @classmethod
    def ok(cls, output: str, diagnostic: str = "") -> "ExecutionResult":
        return cls(True, output=output, diagnostic=diagnostic)

    @classmethod
    def failed(cls, diagnostic: str, output: str = "", failure: Failure | None = None) -> "ExecutionResult":
        return cls(
            False,
            output=output,
            diagnostic=diagnostic,
            failure=failure if failure is not None else classify(diagnostic),
        )


def _timeout_result(operation: Operation, partial: str = "") -> ExecutionResult:
    detail = f"Kaggle {operation.label} timed out after {operation.timeout}s"
    return ExecutionResult.failed(
        detail,
        output=partial,
        failure=Failure.of(ErrorCategory.EXTERNAL_EXECUTION, ErrorCode.TIMEOUT, detail),
    )


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


class Executor:
    """Base executor: credential gate, timing and the never-raise boundary."""

    name = "base"

    def __init__(self, credentials: Credentials):
        self.credentials = credentials

    def execute(self, operation: Operation) -> ExecutionResult:
        if not self.credentials.is_configured():
            logger.warning(f"Refusing {operation.label}: Kaggle credentials not configured")
            return ExecutionResult.failed(
                MISSING_CREDENTIALS_DETAIL,
                failure=Failure.of(
                    ErrorCategory.AUTHENTICATION,
                    ErrorCode.MISSING_CREDENTIALS,
                    MISSING_CREDENTIALS_DETAIL,
                ),
            )

        start_time = time.time()
        logger.info(f"Executing Kaggle {operation.label} via {self.name}")
        try:
            result = self._run(operation)
        except Exception as e:
            logger.exception(f"Unexpected executor error during {operation.label}")
            result = ExecutionResult.failed(redact(e, (self.credentials.key,)))

        execution_time = (time.time() - start_time) * 1000
        if result.success:
            logger.debug(f"Kaggle {operation.label} finished in {execution_time:.0f} ms")
        else:
            logger.warning(
                f"Kaggle {operation.label} failed after {execution_time:.0f} ms: "
                f"{redact(result.diagnostic, (self.credentials.key,))}"
            )
        return result

    def _run(self, operation: Operation) -> ExecutionResult:
        raise NotImplementedError


class CliExecutor(Executor):
    """Runs the Kaggle CLI as a subprocess."""

    name = "cli"

    def __init__(self, credentials: Credentials, executable: str = "kaggle"):
        super().__init__(credentials)
        self.executable = executable

    def _run(self, operation: Operation) -> ExecutionResult:
        argv = [self.executable, *operation.cli_args]
        logger.debug(f"Running: {' '.join(argv)}")

        try:
            completed = subprocess.run(
                argv,
                env=self.credentials.as_env(),
                capture_output=True,
                text=True,
                timeout=operation.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            return _timeout_result(operation, _as_text(e.stdout).strip())
        except FileNotFoundError:
            return ExecutionResult.failed(
                f"Kaggle CLI command not available: '{self.executable}' is not installed or not on PATH"
            )
        except OSError as e:
            return ExecutionResult.failed(f"Failed to execute Kaggle command: {e}")

        stdout = _as_text(completed.stdout).strip()
        stderr = _as_text(completed.stderr).strip()

        if completed.returncode != 0:
            diagnostic = stderr or stdout or f"Kaggle command exited with status {completed.returncode}"
            return ExecutionResult.failed(diagnostic, output=stdout)

        return ExecutionResult.ok(stdout, diagnostic=stderr)


class ApiExecutor(Executor):
    """Calls the Kaggle REST API with HTTP Basic authentication."""

    name = "api"

    def __init__(self, credentials: Credentials, api_base: str):
        super().__init__(credentials)
        self.api_base = api_base.rstrip("/")

    def _url(self, operation: Operation) -> str:
        return f"{self.api_base}/{operation.endpoint.lstrip('/')}"

    def _run(self, operation: Operation) -> ExecutionResult:
        url = self._url(operation)
        headers = {"Authorization": self.credentials.as_basic_auth()}
        logger.debug(f"{operation.method} {url}")

        try:
            if operation.upload is not None:
                with open(operation.upload, "rb") as fh:
                    response = requests.request(
                        operation.method,
                        url,
                        headers=headers,
                        params=dict(operation.params),
                        data=dict(operation.data),
                        files={"file": (operation.upload.name, fh)},
                        timeout=operation.timeout,
                    )
            else:
                response = requests.request(
                    operation.method,
                    url,
                    headers=headers,
                    params=dict(operation.params),
                    data=dict(operation.data) or None,
                    timeout=operation.timeout,
                    stream=operation.download_to is not None,
                )
        except requests.Timeout:
            return _timeout_result(operation)
        except requests.RequestException as e:
            return ExecutionResult.failed(f"Network connection error: {e}")
        except OSError as e:
            return ExecutionResult.failed(f"Could not read upload file: {e}")

        with response:
            if not response.ok:
                body = response.text[:500]
                return ExecutionResult.failed(f"{response.status_code} {response.reason}: {body}".strip())

            if operation.download_to is not None:
                return self._save_download(response, operation)

            return ExecutionResult.ok(response.text)

    def _save_download(self, response: requests.Response, operation: Operation) -> ExecutionResult:
        target_dir = Path(operation.download_to)
        archive = target_dir / operation.archive_name
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            with open(archive, "wb") as f:
                for chunk in response.iter_content(chunk_size=1 << 20):
                    f.write(chunk)
            if operation.unzip:
                with zipfile.ZipFile(archive) as zf:
                    zf.extractall(target_dir)
                archive.unlink()
        except requests.RequestException as e:
            return ExecutionResult.failed(f"Network connection error during download: {e}")
        except zipfile.BadZipFile:
            return ExecutionResult.failed(f"Downloaded file {archive.name} is not a zip archive")
        except OSError as e:
            return ExecutionResult.failed(f"Could not write download to directory {target_dir}: {e}")

        return ExecutionResult.ok(f"Downloaded to {target_dir}")


def build_executor(settings: Settings) -> Executor:
    """Create the executor selected by settings.executor."""
    if settings.executor == "api":
        return ApiExecutor(settings.credentials, settings.api_base)
    return CliExecutor(settings.credentials, settings.kaggle_cli)

"""
Shared fixtures for Kaggle MCP tests.
"""

from pathlib import Path

import pytest

from kaggle_mcp.credentials import Credentials
from kaggle_mcp.executor import ExecutionResult, Executor

ENV_VARS = (
    "KAGGLE_USERNAME",
    "KAGGLE_KEY",
    "MCP_TRANSPORT",
    "MCP_HOST",
    "MCP_PORT",
    "MCP_PATH",
    "KAGGLE_MCP_ENV",
    "KAGGLE_MCP_EXECUTOR",
    "KAGGLE_CLI",
    "KAGGLE_API_BASE",
    "KAGGLE_MCP_LOG_LEVEL",
)


class FakeExecutor(Executor):
    """Executor returning scripted results and recording every operation."""

    name = "fake"

    def __init__(self, credentials, results=None):
        super().__init__(credentials)
        self.results = list(results or [])
        self.operations = []
        self.on_run = None

    def _run(self, operation):
        self.operations.append(operation)
        if self.on_run is not None:
            self.on_run(operation)
        if self.results:
            return self.results.pop(0)
        return ExecutionResult.ok("")


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep tests away from the real environment and ~/.kaggle_mcp."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", lambda: home)
    return home


@pytest.fixture
def credentials():
    return Credentials(username="alice", key="s3cr3t-key-value")


@pytest.fixture
def fake_executor(credentials):
    return FakeExecutor(credentials)


@pytest.fixture
def service(fake_executor):
    from kaggle_mcp.kaggle import KaggleService

    return KaggleService(fake_executor)


@pytest.fixture
def registry(service):
    from kaggle_mcp.tools import build_registry

    return build_registry(service)


@pytest.fixture
def unconfigured_executor():
    return FakeExecutor(Credentials(username="", key=""))


@pytest.fixture
def executor_factory():
    return FakeExecutor

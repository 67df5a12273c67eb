"""
Tests for the kaggle-mcp command line.
"""

import json

from typer.testing import CliRunner

from kaggle_mcp.executor import ExecutionResult
from kaggle_mcp.kaggle import KaggleService

runner = CliRunner()


class TestInfoCommands:
    def test_version(self):
        from kaggle_mcp.cli import app

        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_status_without_credentials(self):
        from kaggle_mcp.cli import app

        result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "KAGGLE_USERNAME / KAGGLE_KEY not set" in result.output

    def test_status_masks_key(self, monkeypatch):
        from kaggle_mcp.cli import app

        monkeypatch.setenv("KAGGLE_USERNAME", "alice")
        monkeypatch.setenv("KAGGLE_KEY", "topsecret")

        result = runner.invoke(app, ["status"])

        assert "alice (key: ****)" in result.output
        assert "topsecret" not in result.output

    def test_tools_json(self):
        from kaggle_mcp.cli import app

        result = runner.invoke(app, ["tools", "--json"])

        assert result.exit_code == 0
        names = [tool["name"] for tool in json.loads(result.output)["tools"]]
        assert names[0] == "search_kaggle_datasets"


class TestConfigCommand:
    """Tests for `kaggle-mcp config`."""

    def test_sets_port(self, isolated_env):
        from kaggle_mcp.cli import app

        result = runner.invoke(app, ["config", "--port", "9000", "--executor", "api"])

        assert result.exit_code == 0
        saved = json.loads((isolated_env / ".kaggle_mcp" / "config.json").read_text())
        assert saved["port"] == 9000
        assert saved["executor"] == "api"

    def test_rejects_unknown_executor(self):
        from kaggle_mcp.cli import app

        result = runner.invoke(app, ["config", "--executor", "ftp"])

        assert result.exit_code == 1

    def test_show(self):
        from kaggle_mcp.cli import app

        result = runner.invoke(app, ["config", "--show"])

        assert json.loads(result.output)["transport"] == "stdio"


class TestCallAndValidate:
    """Commands that reach Kaggle, with the executor swapped out."""

    def _use_fake(self, monkeypatch, fake_executor):
        monkeypatch.setenv("KAGGLE_USERNAME", "alice")
        monkeypatch.setenv("KAGGLE_KEY", "s3cr3t-key-value")
        monkeypatch.setattr("kaggle_mcp.cli.build_service", lambda settings: KaggleService(fake_executor))

    def test_call_prints_result(self, monkeypatch, fake_executor):
        from kaggle_mcp.cli import app

        self._use_fake(monkeypatch, fake_executor)
        fake_executor.results = [ExecutionResult.ok('[{"ref": "uciml/iris"}]')]

        result = runner.invoke(app, ["call", "search_kaggle_datasets", '{"query": "iris"}'])

        assert result.exit_code == 0
        assert json.loads(result.output)["results"][0]["ref"] == "uciml/iris"

    def test_call_failure_exit_code(self, monkeypatch, fake_executor):
        from kaggle_mcp.cli import app

        self._use_fake(monkeypatch, fake_executor)

        result = runner.invoke(app, ["call", "download_kaggle_dataset", '{"dataset_ref": "bad"}'])

        assert result.exit_code == 1
        assert json.loads(result.output)["code"] == "InvalidInput"

    def test_call_bad_json(self):
        from kaggle_mcp.cli import app

        result = runner.invoke(app, ["call", "search_kaggle_datasets", "{oops"])

        assert result.exit_code == 2

    def test_call_without_credentials(self):
        from kaggle_mcp.cli import app

        result = runner.invoke(app, ["call", "search_kaggle_datasets", '{"query": "iris"}'])

        assert result.exit_code == 1

    def test_validate_passes(self, monkeypatch, fake_executor):
        from kaggle_mcp.cli import app

        self._use_fake(monkeypatch, fake_executor)

        result = runner.invoke(app, ["validate"])

        assert result.exit_code == 0
        assert "Validation PASSED" in result.output

    def test_validate_rejected(self, monkeypatch, fake_executor):
        from kaggle_mcp.cli import app

        self._use_fake(monkeypatch, fake_executor)
        fake_executor.results = [ExecutionResult.failed("401 Unauthorized")]

        result = runner.invoke(app, ["validate"])

        assert result.exit_code == 1
        assert "FAILED" in result.output


class TestMcpConfig:
    def test_writes_file(self, tmp_path):
        from kaggle_mcp.cli import app

        output = tmp_path / "mcp.json"
        result = runner.invoke(app, ["mcp-config", "-o", str(output)])

        assert result.exit_code == 0
        config = json.loads(output.read_text())
        assert config["mcpServers"]["kaggle"]["args"] == ["-m", "kaggle_mcp.mcp_server"]
        assert "KAGGLE_KEY" in config["mcpServers"]["kaggle"]["env"]

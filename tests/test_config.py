"""
Tests for Kaggle MCP configuration module.
"""

import json

import pytest


class TestLoadSettings:
    """Tests for building Settings from the environment."""

    def test_missing_credentials_raise(self):
        """Both variables missing should name both in the error."""
        from kaggle_mcp.config import ConfigError, load_settings

        with pytest.raises(ConfigError) as exc_info:
            load_settings(environ={})

        assert exc_info.value.message == "KAGGLE_USERNAME and KAGGLE_KEY required but not set"

    def test_missing_key_only(self):
        """Only the missing variable should be reported."""
        from kaggle_mcp.config import ConfigError, load_settings

        with pytest.raises(ConfigError) as exc_info:
            load_settings(environ={"KAGGLE_USERNAME": "alice"})

        assert "KAGGLE_KEY" in exc_info.value.message
        assert "KAGGLE_USERNAME" not in exc_info.value.message

    def test_credentials_optional_when_not_required(self):
        """require_credentials=False should allow an unconfigured store."""
        from kaggle_mcp.config import load_settings

        settings = load_settings(environ={}, require_credentials=False)

        assert not settings.credentials.is_configured()

    def test_defaults(self):
        """Defaults should apply when only credentials are set."""
        from kaggle_mcp.config import load_settings

        settings = load_settings(environ={"KAGGLE_USERNAME": "alice", "KAGGLE_KEY": "k"})

        assert settings.host == "localhost"
        assert settings.port == 8080
        assert settings.transport == "stdio"
        assert settings.executor == "cli"
        assert settings.environment == "development"

    def test_environment_overrides(self):
        """Environment variables should override defaults."""
        from kaggle_mcp.config import load_settings

        settings = load_settings(
            environ={
                "KAGGLE_USERNAME": "alice",
                "KAGGLE_KEY": "k",
                "MCP_TRANSPORT": "HTTP",
                "MCP_HOST": "0.0.0.0",
                "MCP_PORT": "9001",
                "KAGGLE_MCP_EXECUTOR": "api",
                "KAGGLE_MCP_ENV": "production",
                "KAGGLE_API_BASE": "http://localhost:5000/api/v1/",
            }
        )

        assert settings.transport == "http"
        assert settings.host == "0.0.0.0"
        assert settings.port == 9001
        assert settings.executor == "api"
        assert settings.environment == "production"
        assert settings.api_base == "http://localhost:5000/api/v1"

    def test_invalid_port(self):
        """Non-numeric or out of range ports should be rejected."""
        from kaggle_mcp.config import ConfigError, load_settings

        base = {"KAGGLE_USERNAME": "alice", "KAGGLE_KEY": "k"}
        for port in ("abc", "0", "70000"):
            with pytest.raises(ConfigError):
                load_settings(environ={**base, "MCP_PORT": port})

    def test_invalid_transport(self):
        """Unknown transport names should be rejected."""
        from kaggle_mcp.config import ConfigError, load_settings

        with pytest.raises(ConfigError) as exc_info:
            load_settings(environ={"KAGGLE_USERNAME": "a", "KAGGLE_KEY": "k", "MCP_TRANSPORT": "sse"})

        assert "MCP_TRANSPORT" in exc_info.value.message

    def test_log_level(self):
        """Log levels are validated and normalized to upper case."""
        from kaggle_mcp.config import ConfigError, load_settings

        base = {"KAGGLE_USERNAME": "a", "KAGGLE_KEY": "k"}

        assert load_settings(environ={**base, "KAGGLE_MCP_LOG_LEVEL": "debug"}).log_level == "DEBUG"
        with pytest.raises(ConfigError) as exc_info:
            load_settings(environ={**base, "KAGGLE_MCP_LOG_LEVEL": "LOUD"})
        assert "KAGGLE_MCP_LOG_LEVEL" in exc_info.value.message

    def test_key_not_in_repr(self):
        """The API key must not leak through repr of settings."""
        from kaggle_mcp.config import load_settings

        settings = load_settings(environ={"KAGGLE_USERNAME": "alice", "KAGGLE_KEY": "topsecret"})

        assert "topsecret" not in repr(settings)


class TestValidateSettings:
    """Tests for validate_settings."""

    def test_reports_missing_credentials(self):
        from kaggle_mcp.config import validate_settings

        is_valid, message = validate_settings({})

        assert not is_valid
        assert "required but not set" in message

    def test_reports_masked_username(self):
        from kaggle_mcp.config import validate_settings

        is_valid, message = validate_settings({"KAGGLE_USERNAME": "alice", "KAGGLE_KEY": "topsecret"})

        assert is_valid
        assert "alice" in message
        assert "topsecret" not in message


class TestRuntimeConfig:
    """Tests for the ~/.kaggle_mcp/config.json file."""

    def test_defaults_without_file(self):
        """Missing file should yield the defaults."""
        from kaggle_mcp.config import load_runtime_config

        config = load_runtime_config()

        assert config["port"] == 8080
        assert config["executor"] == "cli"

    def test_save_strips_credentials(self):
        """Credentials must never be written to disk."""
        from kaggle_mcp.config import save_runtime_config

        path = save_runtime_config({"port": 9000, "kaggle_key": "secret", "kaggle_username": "alice"})
        saved = json.loads(path.read_text())

        assert saved == {"port": 9000}

    def test_file_values_used_by_settings(self):
        """Values from the config file should feed load_settings."""
        from kaggle_mcp.config import load_settings, save_runtime_config

        save_runtime_config({"port": 9100, "executor": "api"})
        settings = load_settings(environ={"KAGGLE_USERNAME": "a", "KAGGLE_KEY": "k"})

        assert settings.port == 9100
        assert settings.executor == "api"

    def test_environment_wins_over_file(self):
        from kaggle_mcp.config import load_settings, save_runtime_config

        save_runtime_config({"port": 9100})
        settings = load_settings(environ={"KAGGLE_USERNAME": "a", "KAGGLE_KEY": "k", "MCP_PORT": "9200"})

        assert settings.port == 9200

    def test_corrupt_file_falls_back_to_defaults(self):
        from kaggle_mcp.config import get_runtime_config_path, load_runtime_config

        path = get_runtime_config_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{not json")

        config = load_runtime_config()

        assert config["port"] == 8080

    def test_non_object_file_falls_back_to_defaults(self):
        """A JSON value that is not an object is ignored."""
        from kaggle_mcp.config import get_runtime_config_path, load_runtime_config

        path = get_runtime_config_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("123")

        config = load_runtime_config()

        assert config["port"] == 8080
        assert config["transport"] == "stdio"


class TestCredentials:
    """Tests for the credential store."""

    def test_masked_never_shows_key(self):
        from kaggle_mcp.credentials import Credentials

        creds = Credentials(username="alice", key="topsecret")

        assert creds.masked() == "alice (key: ****)"
        assert "topsecret" not in repr(creds)

    def test_unconfigured(self):
        from kaggle_mcp.credentials import Credentials

        assert not Credentials(username="alice", key="").is_configured()
        assert Credentials(username="", key="").masked() == "not configured"

    def test_as_env_sets_variables(self):
        from kaggle_mcp.credentials import Credentials

        env = Credentials(username="alice", key="k").as_env(base={"PATH": "/bin"})

        assert env == {"PATH": "/bin", "KAGGLE_USERNAME": "alice", "KAGGLE_KEY": "k"}

    def test_basic_auth_header(self):
        from kaggle_mcp.credentials import Credentials

        # base64("alice:k")
        assert Credentials(username="alice", key="k").as_basic_auth() == "Basic YWxpY2U6aw=="

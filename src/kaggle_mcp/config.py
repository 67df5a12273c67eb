"""
Kaggle MCP Configuration Module

Configuration management for the Kaggle MCP server.

Settings are layered the same way everywhere:
- Environment variables always win
- Non-sensitive defaults may live in ~/.kaggle_mcp/config.json
- Credentials are read from the environment only and never written to disk

The result is frozen into a Settings value once at startup and passed to the
components that need it.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from kaggle_mcp.credentials import Credentials

APP_NAME = "kaggle_mcp"
FULL_NAME = "Kaggle MCP Server"
PLATFORM_NAME = "Kaggle"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(APP_NAME)


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


# -------------------------------------------------------------------
# Operation timeouts (seconds)
# -------------------------------------------------------------------
SEARCH_TIMEOUT = 60
DOWNLOAD_TIMEOUT = 300
SUBMIT_TIMEOUT = 120

# Search results returned to the caller, first N in upstream order
MAX_SEARCH_RESULTS = 10

KAGGLE_WEB_URL = "https://www.kaggle.com"
DEFAULT_API_BASE = "https://www.kaggle.com/api/v1"

TRANSPORTS = ("stdio", "http")
EXECUTORS = ("cli", "api")
LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


# -------------------------------------------------------------------
# Configuration Directory (for non-sensitive settings only)
# -------------------------------------------------------------------
def _get_config_dir() -> Path:
    """Get configuration directory. Uses home directory for consistency."""
    return Path.home() / ".kaggle_mcp"


def get_runtime_config_path() -> Path:
    return _get_config_dir() / "config.json"


def _get_default_runtime_config() -> dict:
    """Default runtime configuration."""
    return {
        "host": "localhost",
        "port": 8080,
        "path": "/mcp",
        "environment": "development",
        "transport": "stdio",
        "executor": "cli",
        "kaggle_cli": "kaggle",
        "api_base": DEFAULT_API_BASE,
        "log_level": "INFO",
    }


def load_runtime_config() -> dict:
    """Load runtime configuration from config file."""
    path = get_runtime_config_path()
    defaults = _get_default_runtime_config()
    if path.exists():
        try:
            with open(path) as f:
                config = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not parse runtime config: {e}. Using defaults.")
            return defaults
        if not isinstance(config, dict):
            logger.warning(f"Runtime config {path} is not a JSON object. Using defaults.")
            return defaults
        # Merge with defaults to ensure all keys exist
        defaults.update(config)
    return defaults


def save_runtime_config(config: dict) -> Path:
    """Save runtime configuration to config file."""
    # Credentials never go to disk
    safe_config = {
        k: v
        for k, v in config.items()
        if not k.startswith("_") and k not in ("kaggle_username", "kaggle_key")
    }

    path = get_runtime_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(safe_config, indent=2, fp=f)

    logger.info(f"Configuration saved to {path}")
    return path


# -------------------------------------------------------------------
# Settings
# -------------------------------------------------------------------

@dataclass(frozen=True)
class Settings:
    """Immutable process configuration, built once by load_settings()."""

    credentials: Credentials
    host: str = "localhost"
    port: int = 8080
    path: str = "/mcp"
    environment: str = "development"
    transport: str = "stdio"
    executor: str = "cli"
    kaggle_cli: str = "kaggle"
    api_base: str = DEFAULT_API_BASE
    log_level: str = "INFO"


def _parse_port(value) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid port: {value!r}")
    if not 0 < port < 65536:
        raise ConfigError(f"Port out of range: {port}")
    return port


def _choice(name: str, value: str, allowed: tuple[str, ...]) -> str:
    value = str(value).strip().lower()
    if value not in allowed:
        raise ConfigError(f"{name} must be one of: {', '.join(allowed)} (got {value!r})")
    return value


def load_settings(
    environ: Mapping[str, str] | None = None,
    require_credentials: bool = True,
) -> Settings:
    """
    Build Settings from the environment and the runtime config file.

    Args:
        environ: Environment mapping (defaults to os.environ)
        require_credentials: Raise ConfigError when KAGGLE_USERNAME or
            KAGGLE_KEY is missing

    Raises:
        ConfigError: on missing credentials or invalid values
    """
    env = os.environ if environ is None else environ
    config = load_runtime_config()

    credentials = Credentials(
        username=env.get("KAGGLE_USERNAME", "").strip(),
        key=env.get("KAGGLE_KEY", "").strip(),
    )
    if require_credentials:
        missing = [
            name
            for name, value in (("KAGGLE_USERNAME", credentials.username), ("KAGGLE_KEY", credentials.key))
            if not value
        ]
        if missing:
            raise ConfigError(f"{' and '.join(missing)} required but not set")

    return Settings(
        credentials=credentials,
        host=env.get("MCP_HOST", config["host"]),
        port=_parse_port(env.get("MCP_PORT", config["port"])),
        path=env.get("MCP_PATH", config["path"]),
        environment=env.get("KAGGLE_MCP_ENV", config["environment"]),
        transport=_choice("MCP_TRANSPORT", env.get("MCP_TRANSPORT", config["transport"]), TRANSPORTS),
        executor=_choice("KAGGLE_MCP_EXECUTOR", env.get("KAGGLE_MCP_EXECUTOR", config["executor"]), EXECUTORS),
        kaggle_cli=env.get("KAGGLE_CLI", config["kaggle_cli"]),
        api_base=env.get("KAGGLE_API_BASE", config["api_base"]).rstrip("/"),
        log_level=_choice(
            "KAGGLE_MCP_LOG_LEVEL", env.get("KAGGLE_MCP_LOG_LEVEL", config["log_level"]), LOG_LEVELS
        ).upper(),
    )


def validate_settings(environ: Mapping[str, str] | None = None) -> tuple[bool, str]:
    """
    Validate configuration is complete.

    Returns:
        Tuple of (is_valid, message)
    """
    try:
        settings = load_settings(environ)
    except ConfigError as e:
        return False, e.message
    return True, f"Kaggle configured for {settings.credentials.masked()} ({settings.executor} executor)"

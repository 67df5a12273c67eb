"""
Kaggle MCP CLI

Command-line interface for configuring and running the Kaggle MCP server.

Commands:
- kaggle-mcp serve: Start the MCP server (stdio or http)
- kaggle-mcp status: Show current configuration
- kaggle-mcp validate: Validate configuration and test Kaggle credentials
- kaggle-mcp tools: List available tools
- kaggle-mcp call: Run one tool and print its JSON result
- kaggle-mcp config: Edit non-sensitive settings
- kaggle-mcp mcp-config: Generate MCP client configuration
"""

import json
import logging
import sys
from typing import Annotated

import typer

from kaggle_mcp import __full_name__, __version__
from kaggle_mcp.config import (
    APP_NAME,
    EXECUTORS,
    FULL_NAME,
    TRANSPORTS,
    ConfigError,
    get_runtime_config_path,
    load_runtime_config,
    load_settings,
    logger,
    save_runtime_config,
)
from kaggle_mcp.kaggle import build_service
from kaggle_mcp.tools import build_registry

app = typer.Typer(
    name="kaggle-mcp",
    help=f"{FULL_NAME} - Kaggle datasets and competitions for MCP clients.",
    add_completion=False,
    rich_markup_mode="markdown",
)


def version_callback(value: bool):
    if value:
        typer.echo(f"Kaggle MCP Version: {__version__}")
        typer.echo(f"   {__full_name__}")
        raise typer.Exit()


def _load_settings_or_exit(require_credentials: bool = True):
    try:
        return load_settings(require_credentials=require_credentials)
    except ConfigError as e:
        typer.secho(f"❌ Configuration error: {e.message}", fg=typer.colors.RED, err=True)
        typer.echo("   export KAGGLE_USERNAME='your-username'", err=True)
        typer.echo("   export KAGGLE_KEY='your-api-key'", err=True)
        raise typer.Exit(code=1)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show CLI version.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-V",
            help="Enable DEBUG level logging.",
        ),
    ] = False,
):
    """
    Kaggle MCP CLI - Kaggle tools for MCP clients.
    """
    app_logger = logging.getLogger(APP_NAME)
    if verbose:
        app_logger.setLevel(logging.DEBUG)
        logger.debug("Verbose mode enabled.")


@app.command("serve")
def serve_cmd():
    """🚀 Start the MCP server (transport from MCP_TRANSPORT)."""
    from kaggle_mcp.mcp_server import main as server_main

    server_main()


@app.command("status")
def status_cmd():
    """📊 Show current configuration."""

    typer.secho(f"\n{FULL_NAME}", fg=typer.colors.BRIGHT_GREEN, bold=True)
    typer.secho(f"   Version: {__version__}", fg=typer.colors.WHITE)

    typer.echo()
    typer.secho("🔑 Kaggle Credentials:", fg=typer.colors.BRIGHT_BLUE, bold=True)
    settings = _load_settings_or_exit(require_credentials=False)
    if settings.credentials.is_configured():
        typer.secho(f"   ✅ {settings.credentials.masked()}", fg=typer.colors.GREEN)
    else:
        typer.secho("   ❌ KAGGLE_USERNAME / KAGGLE_KEY not set", fg=typer.colors.RED)
        typer.echo()
        typer.secho("   To configure, set environment variables:", fg=typer.colors.YELLOW)
        typer.echo("   export KAGGLE_USERNAME='your-username'")
        typer.echo("   export KAGGLE_KEY='your-api-key'")

    typer.echo()
    typer.secho("⚙️  Runtime Configuration:", fg=typer.colors.BRIGHT_BLUE, bold=True)
    typer.echo(f"   Executor: {settings.executor}")
    typer.echo(f"   Transport: {settings.transport}")
    typer.echo(f"   HTTP address: {settings.host}:{settings.port}{settings.path}")
    typer.echo(f"   Environment: {settings.environment}")
    if settings.executor == "api":
        typer.echo(f"   API base: {settings.api_base}")
    else:
        typer.echo(f"   Kaggle CLI: {settings.kaggle_cli}")
    typer.echo(f"   Config file: {get_runtime_config_path()}")
    typer.echo()


@app.command("config")
def config_cmd(
    executor: Annotated[
        str | None,
        typer.Option("--executor", "-e", help=f"How to reach Kaggle: {', '.join(EXECUTORS)}."),
    ] = None,
    transport: Annotated[
        str | None,
        typer.Option("--transport", "-t", help=f"MCP transport: {', '.join(TRANSPORTS)}."),
    ] = None,
    host: Annotated[
        str | None,
        typer.Option("--host", help="Host for HTTP mode."),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Port for HTTP mode."),
    ] = None,
    environment: Annotated[
        str | None,
        typer.Option("--environment", help="Environment label reported by /health."),
    ] = None,
    show: Annotated[
        bool,
        typer.Option("--show", help="Show current configuration without modifying."),
    ] = False,
):
    """⚙️  Configure non-sensitive settings.

    Credentials are never stored: set KAGGLE_USERNAME and KAGGLE_KEY in
    the environment.

    **Examples:**

    • Use the REST API instead of the CLI:
      `kaggle-mcp config --executor api`

    • Serve over HTTP on port 9000:
      `kaggle-mcp config --transport http --port 9000`
    """
    config = load_runtime_config()
    if show:
        typer.echo(json.dumps(config, indent=2))
        return

    updates = {
        "executor": executor,
        "transport": transport,
        "host": host,
        "port": port,
        "environment": environment,
    }
    allowed = {"executor": EXECUTORS, "transport": TRANSPORTS}

    modified = False
    for key, value in updates.items():
        if value is None:
            continue
        if key in allowed and value not in allowed[key]:
            typer.secho(f"❌ {key} must be one of: {', '.join(allowed[key])}", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        config[key] = value
        modified = True
        typer.secho(f"✅ {key} set to: {value}", fg=typer.colors.GREEN)

    if modified:
        path = save_runtime_config(config)
        typer.echo()
        typer.secho(f"💾 Configuration saved to {path}", fg=typer.colors.BRIGHT_GREEN)
        typer.secho("⚠️  Note: Environment variables take precedence over config file.", fg=typer.colors.YELLOW)
    else:
        typer.echo("No configuration changes specified.")
        typer.echo()
        typer.echo("Usage examples:")
        typer.echo("  kaggle-mcp config --executor api")
        typer.echo("  kaggle-mcp config --show")


@app.command("validate")
def validate_cmd():
    """✅ Validate configuration and test Kaggle credentials.

    This command:
    1. Checks that credentials are configured
    2. Runs one cheap Kaggle call with them
    """
    typer.secho("\n🔍 Validating Kaggle MCP Configuration...\n", fg=typer.colors.BRIGHT_BLUE, bold=True)

    typer.echo("1️⃣  Checking configuration...")
    settings = _load_settings_or_exit()
    typer.secho(f"   ✅ Credentials set for {settings.credentials.masked()}", fg=typer.colors.GREEN)

    typer.echo(f"\n2️⃣  Testing Kaggle access via {settings.executor}...")
    service = build_service(settings)
    outcome = service.validate_credentials()

    typer.echo("\n" + "=" * 50)
    if outcome == "valid":
        typer.secho("✅ Validation PASSED", fg=typer.colors.GREEN, bold=True)
    elif outcome == "unknown":
        typer.secho("⚠️  Validation INCONCLUSIVE - Kaggle could not be reached", fg=typer.colors.YELLOW, bold=True)
        raise typer.Exit(code=1)
    else:
        typer.secho("❌ Validation FAILED - credentials rejected", fg=typer.colors.RED, bold=True)
        raise typer.Exit(code=1)
    typer.echo()


@app.command("tools")
def tools_cmd(
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the full catalogue with input schemas."),
    ] = False,
):
    """📋 List available tools."""
    settings = _load_settings_or_exit(require_credentials=False)
    registry = build_registry(build_service(settings))

    if as_json:
        typer.echo(json.dumps({"tools": registry.list()}, indent=2))
        return

    for tool in registry.list():
        typer.secho(f"• {tool['name']}", fg=typer.colors.BRIGHT_GREEN, bold=True)
        typer.echo(f"  {tool['description']}")


@app.command("call")
def call_cmd(
    tool: Annotated[str, typer.Argument(help="Tool name, e.g. search_kaggle_datasets.")],
    arguments: Annotated[
        str,
        typer.Argument(help='Tool arguments as a JSON object, e.g. \'{"query": "iris"}\'.'),
    ] = "{}",
):
    """🛠️  Run one tool and print its JSON result."""
    try:
        parsed = json.loads(arguments)
    except ValueError as e:
        typer.secho(f"❌ Arguments are not valid JSON: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    settings = _load_settings_or_exit()
    registry = build_registry(build_service(settings))
    result = registry.invoke(tool, parsed)
    typer.echo(json.dumps(result, indent=2))
    if result.get("success") is False or "error" in result:
        raise typer.Exit(code=1)


@app.command("mcp-config")
def mcp_config_cmd(
    output: Annotated[
        str | None,
        typer.Option("--output", "-o", help="Save configuration to file."),
    ] = None,
):
    """🔧 Generate MCP configuration for LLM clients.

    **Example:**

    `kaggle-mcp mcp-config -o mcp.json`
    """
    python_path = sys.executable

    env_vars = {
        "KAGGLE_USERNAME": "<your-kaggle-username>",
        "KAGGLE_KEY": "<your-kaggle-key>",
    }

    mcp_config = {
        "mcpServers": {
            "kaggle": {
                "command": python_path,
                "args": ["-m", "kaggle_mcp.mcp_server"],
                "env": env_vars,
            }
        }
    }

    uvx_config = {
        "mcpServers": {
            "kaggle": {
                "command": "uvx",
                "args": ["--from", "kaggle-mcp", "kaggle-mcp-server"],
                "env": env_vars,
            }
        }
    }

    typer.secho("\n🔧 Kaggle MCP Configuration\n", fg=typer.colors.BRIGHT_BLUE, bold=True)

    typer.secho("Option 1 - Using Python directly:", fg=typer.colors.WHITE, bold=True)
    typer.echo(json.dumps(mcp_config, indent=2))

    typer.echo()
    typer.secho("Option 2 - Using uvx:", fg=typer.colors.WHITE, bold=True)
    typer.echo(json.dumps(uvx_config, indent=2))

    if output:
        with open(output, "w") as f:
            json.dump(mcp_config, f, indent=2)
        typer.secho(f"\n💾 Configuration saved to: {output}", fg=typer.colors.GREEN)

    typer.echo()
    typer.secho("⚠️  Important:", fg=typer.colors.YELLOW, bold=True)
    typer.echo("   • Replace the placeholder credentials with your Kaggle API token")
    typer.echo("   • Get a token from https://www.kaggle.com/settings (Create New Token)")
    typer.echo()


if __name__ == "__main__":
    app()

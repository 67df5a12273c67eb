"""
Kaggle MCP Server

Provides MCP tools for searching, downloading and submitting to Kaggle.
Every tool goes through the same dispatcher (tools.py), so the stdio MCP
transport and the plain HTTP routes behave identically.

TRANSPORTS:
- stdio (default) for local MCP clients
- streamable-http when MCP_TRANSPORT=http, which also serves:
    GET  /health         liveness + credential check
    GET  /tools          tool catalogue
    POST /tools/{name}   call a tool with a JSON body
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Annotated, Literal

from fastmcp import FastMCP
from pydantic import Field
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse

from kaggle_mcp import __version__
from kaggle_mcp.config import (
    APP_NAME,
    FULL_NAME,
    ConfigError,
    Settings,
    load_settings,
    logger,
)
from kaggle_mcp.kaggle import KaggleService, build_service
from kaggle_mcp.tools import ToolRegistry, build_registry
from kaggle_mcp.validation import COMPETITION_ID_PATTERN, DATASET_REF_PATTERN, FILENAME_PATTERN

# Create FastMCP server instance
mcp = FastMCP(APP_NAME)

# Set once by _initialize_server()
_settings: Settings | None = None
_service: KaggleService | None = None
_registry: ToolRegistry | None = None


def _initialize_server(
    settings: Settings,
    service: KaggleService | None = None,
    check_credentials: bool = True,
) -> ToolRegistry:
    """Build the executor, service and registry for this process."""
    global _settings, _service, _registry

    logging.getLogger(APP_NAME).setLevel(settings.log_level)

    _settings = settings
    _service = service or build_service(settings)
    _registry = build_registry(_service)

    logger.info(f"{FULL_NAME} {__version__} initialized")
    logger.info(f"Executor: {settings.executor} | Credentials: {settings.credentials.masked()}")
    logger.info(f"Tools: {', '.join(_registry.names)}")

    if check_credentials:
        logger.info("Validating Kaggle credentials...")
        if _service.validate_credentials() != "valid":
            logger.warning("Kaggle credentials validation failed. Some features may not work.")

    return _registry


def _get_registry() -> ToolRegistry:
    if _registry is None:
        raise RuntimeError("Server not initialized. Call _initialize_server() first.")
    return _registry


def invoke_tool(name: str, arguments: dict) -> str:
    """Dispatch one tool call and serialize the payload."""
    payload = _get_registry().invoke(name, arguments)
    return json.dumps(payload, indent=2)


def health_status() -> dict:
    """Liveness report. Invalid credentials do not make the server unhealthy."""
    credentials = _service.validate_credentials() if _service is not None else "unknown"
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "kaggle_credentials": credentials,
        "environment": _settings.environment if _settings is not None else "unknown",
    }


# ==========================================
# MCP TOOLS - PUBLIC API
# ==========================================

@mcp.tool()
def search_kaggle_datasets(query: Annotated[str, Field(min_length=1, max_length=100)]) -> str:
    """🔍 Search Kaggle datasets matching a query.

    Returns up to 10 datasets with reference, title, subtitle, download
    count, last update and usability rating.

    Args:
        query: Search text (1-100 characters)
    """
    return invoke_tool("search_kaggle_datasets", {"query": query})


@mcp.tool()
def download_kaggle_dataset(
    dataset_ref: Annotated[str, Field(min_length=3, max_length=100, pattern=DATASET_REF_PATTERN)],
    download_path: str | None = None,
) -> str:
    """📥 Download and unzip a Kaggle dataset.

    Args:
        dataset_ref: Dataset reference in format "username/dataset-name"
        download_path: Target directory (default: ./datasets/<dataset-name>)
    """
    return invoke_tool(
        "download_kaggle_dataset",
        {"dataset_ref": dataset_ref, "download_path": download_path},
    )


@mcp.tool()
def search_kaggle_competitions(
    query: Annotated[str, Field(max_length=100)] = "",
    status: Literal["all", "active", "completed"] = "all",
) -> str:
    """🏆 Search Kaggle competitions.

    Returns up to 10 competitions with title, deadline, category, reward
    and team count.

    Args:
        query: Search text (empty lists all competitions)
        status: "all", "active" or "completed"
    """
    return invoke_tool("search_kaggle_competitions", {"query": query, "status": status})


@mcp.tool()
def get_competition_details(
    competition_id: Annotated[str, Field(min_length=1, max_length=100, pattern=COMPETITION_ID_PATTERN)],
) -> str:
    """📋 Get details for one Kaggle competition.

    Args:
        competition_id: Competition identifier (e.g. "titanic")
    """
    return invoke_tool("get_competition_details", {"competition_id": competition_id})


@mcp.tool()
def download_competition_data(
    competition_id: Annotated[str, Field(min_length=1, max_length=50, pattern=COMPETITION_ID_PATTERN)],
    download_path: str | None = None,
) -> str:
    """📦 Download all files for a Kaggle competition.

    You must have accepted the competition rules on kaggle.com first.

    Args:
        competition_id: Competition identifier (e.g. "titanic")
        download_path: Target directory (default: ./competitions/<competition_id>)
    """
    return invoke_tool(
        "download_competition_data",
        {"competition_id": competition_id, "download_path": download_path},
    )


@mcp.tool()
def submit_to_competition(
    competition_id: Annotated[str, Field(min_length=1, max_length=50, pattern=COMPETITION_ID_PATTERN)],
    file_content: Annotated[str, Field(min_length=1)],
    filename: Annotated[str, Field(min_length=1, max_length=255, pattern=FILENAME_PATTERN)],
    message: Annotated[str | None, Field(max_length=500)] = None,
) -> str:
    """🚀 Submit predictions to a Kaggle competition.

    Args:
        competition_id: Competition identifier (e.g. "titanic")
        file_content: Full content of the submission file
        filename: Submission file name (e.g. "submission.csv")
        message: Optional submission description
    """
    return invoke_tool(
        "submit_to_competition",
        {
            "competition_id": competition_id,
            "file_content": file_content,
            "filename": filename,
            "message": message,
        },
    )


# ==========================================
# HTTP ROUTES (streamable-http transport only)
# ==========================================

@mcp.custom_route("/health", methods=["GET"])
async def health_route(request: Request) -> JSONResponse:
    return JSONResponse(await run_in_threadpool(health_status))


@mcp.custom_route("/tools", methods=["GET"])
async def list_tools_route(request: Request) -> JSONResponse:
    return JSONResponse({"tools": _get_registry().list()})


@mcp.custom_route("/tools/{name}", methods=["POST"])
async def call_tool_route(request: Request) -> JSONResponse:
    name = request.path_params["name"]
    try:
        arguments = await request.json()
    except ValueError:
        return JSONResponse({"error": "Request body must be a JSON object"}, status_code=400)

    result = await run_in_threadpool(_get_registry().invoke, name, arguments)
    status_code = 404 if result.get("code") == "UnknownTool" else 200
    return JSONResponse({"result": result}, status_code=status_code)


def main():
    """Main entry point for MCP server.

    Environment Variables:
        KAGGLE_USERNAME: Kaggle user name (required)
        KAGGLE_KEY: Kaggle API key (required)
        MCP_TRANSPORT: "stdio" (default) or "http"
        MCP_HOST: Host for HTTP mode (default: "localhost")
        MCP_PORT: Port for HTTP mode (default: 8080)
        KAGGLE_MCP_EXECUTOR: "cli" (default) or "api"
    """
    try:
        settings = load_settings()
    except ConfigError as e:
        logger.error(f"Configuration error: {e.message}")
        sys.exit(1)

    _initialize_server(settings)

    if settings.transport == "http":
        logger.warning("⚠️ HTTP transport enabled - ensure proper network security!")
        logger.info(f"Health check available at: http://{settings.host}:{settings.port}/health")
        mcp.run(transport="streamable-http", host=settings.host, port=settings.port, path=settings.path)
    else:
        logger.info("Starting in STDIO mode")
        mcp.run()


if __name__ == "__main__":
    main()

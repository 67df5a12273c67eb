"""
kaggle-mcp: Kaggle tools for MCP clients

An MCP (Model Context Protocol) server that lets an agent search and download
Kaggle datasets and competitions, inspect competition details and submit
predictions. Every tool proxies the Kaggle CLI or the Kaggle REST API and
answers with a single JSON object.

NOTES:
- Credentials come from KAGGLE_USERNAME / KAGGLE_KEY and are never logged
- Tool failures are returned as structured JSON, never raised to the client
- No caching and no retries: every call goes straight to Kaggle

License: MIT
"""

__version__ = "0.1.0"
__tool_name__ = "kaggle-mcp"
__full_name__ = "Kaggle MCP Server"

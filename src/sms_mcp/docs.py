"""Static documentation served by the HTTP server."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

from .mcp_server import SERVER_VERSION
from .tools.catalog import tool_reference

logger = logging.getLogger("sms-mcp-docs")

SERVER_TITLE = "SMS MCP SSE Server"
PUBLIC_URL = os.getenv("SMS_MCP_PUBLIC_URL", "https://mcp.mobilesms.io").rstrip("/")
DEFAULT_SWAGGER_PATH = Path(__file__).parent / "static" / "swagger.json"

_SETUP_STEPS = [
    "1. Get your SMS API key from your MobileSMS.io account",
    "2. Open your terminal",
    "3. Run the command above, replacing YOUR_MOBILESMS_API_KEY with your actual MobileSMS.io API key",
    "4. The SMS tools will now be available in your Claude Code sessions",
]
_SETUP_NOTE = "Make sure you have Claude Code CLI installed and configured before running this command"


def _cli_command() -> str:
    return f'claude mcp add -t sse mobilesms-server "{PUBLIC_URL}/sse?apiKey=YOUR_MOBILESMS_API_KEY"'


def api_info() -> Dict[str, Any]:
    return {
        "name": SERVER_TITLE,
        "version": SERVER_VERSION,
        "transport": "SSE + HTTP",
        "endpoints": {
            "sse": "/sse",
            "messages": "/messages",
            "http": "/mcp",
            "health": "/health",
            "docs": "/docs",
            "tools": "/tools",
            "setup": "/setup/guide",
            "config": "/setup/claude-code-config",
        },
        "usage": {
            "sse": "Connect to /sse?apiKey=your-mobilesms-api-key",
            "messages": "Client POSTs to the URL from the endpoint event (/messages?session_id=<id>, sessionId also accepted)",
            "http": "POST to /mcp with JSON-RPC messages and X-API-Key header (MobileSMS.io API key)",
            "docs": "Visit /docs for API documentation",
        },
    }


def tools_document() -> Dict[str, Any]:
    return {"tools": tool_reference()}


def setup_guide() -> Dict[str, Any]:
    body = json.dumps({
        "jsonrpc": "2.0",
        "id": 1,
        "method": "tools/call",
        "params": {"name": "get_balance", "arguments": {}},
    })
    return {
        "claude_code": {
            "description": "To use this MCP server with Claude Code CLI, run the following command in your terminal",
            "command": _cli_command(),
            "steps": _SETUP_STEPS,
            "note": _SETUP_NOTE,
        },
        "direct_api": {
            "description": "Use the HTTP endpoint for direct API integration",
            "endpoints": {
                "base_url": PUBLIC_URL,
                "mcp_endpoint": "/mcp",
                "sse_endpoint": "/sse",
            },
            "authentication": {
                "http": "Use X-API-Key header with YOUR_MOBILESMS_API_KEY",
                "sse": "Pass apiKey as query parameter: /sse?apiKey=YOUR_MOBILESMS_API_KEY",
            },
            "examples": {
                "curl_example": (
                    f'curl -X POST {PUBLIC_URL}/mcp -H "Content-Type: application/json" '
                    f"-H \"X-API-Key: YOUR_MOBILESMS_API_KEY\" -d '{body}'"
                ),
            },
        },
    }


def claude_code_config() -> Dict[str, Any]:
    return {
        "command": _cli_command(),
        "description": "Run this command in your terminal to add the MobileSMS MCP server to Claude Code CLI",
        "steps": _SETUP_STEPS,
        "note": _SETUP_NOTE,
    }


def load_openapi(path: str | os.PathLike | None = None) -> Dict[str, Any] | None:
    """Load the OpenAPI document; None when it is missing or unreadable."""
    path = Path(path or os.getenv("SMS_MCP_SWAGGER_PATH") or DEFAULT_SWAGGER_PATH)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Could not load {path} ({e}), API documentation will not be available")
        return None


def swagger_ui_html(openapi_url: str, title: str = "MobileSMS.io MCP Server API Documentation") -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
<title>{title}</title>
<meta charset="utf-8">
<link rel="stylesheet" href="https://cdn.jsdelivr.net/npm/swagger-ui-dist@5/swagger-ui.css">
<style>.swagger-ui .topbar {{ display: none }}</style>
</head>
<body>
<div id="swagger-ui"></div>
<script src="https://cdn.jsdelivr.net/npm/swagger-ui-dist@5/swagger-ui-bundle.js"></script>
<script>
window.ui = SwaggerUIBundle({{
    url: "{openapi_url}",
    dom_id: "#swagger-ui",
    docExpansion: "none",
    operationsSorter: "alpha"
}});
</script>
</body>
</html>
"""

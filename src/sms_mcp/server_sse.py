"""Multi-tenant HTTP server.

Exposes the SMS tools over HTTP from a single ASGI app:
- SSE at /sse (with /messages): one MCP server per connection, bound to the
  apiKey the client connected with
- Stateless JSON-RPC at /mcp: API key in the X-API-Key header, no session
- Health, info and documentation endpoints
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Sequence
from urllib.parse import urlencode

import uvicorn
from mcp import types
from mcp.server.transport_security import TransportSecuritySettings
from mcp.shared.exceptions import McpError
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from . import docs
from .mcp_server import build_server, call_tool
from .session_store import SessionStore, SessionTransport
from .sms_client import SmsClient, SmsConfig, default_base_url, redact_key
from .tools.catalog import TOOLS

# Configure Logging
logging.basicConfig(
    level=os.getenv("SMS_MCP_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger("sms-mcp-server")

DEFAULT_PORT = 6900
API_KEY_HEADER = "X-API-Key"
MESSAGES_PATH = "/messages"

_security_settings = TransportSecuritySettings(enable_dns_rebinding_protection=False)

_NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
    "Surrogate-Control": "no-store",
}


# --- SSE Sessions ---

class SseEndpoint:
    """ASGI endpoint for GET /sse. Owns the connection for its whole lifetime."""

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        api_key = request.query_params.get("apiKey")
        if not api_key:
            response = JSONResponse(
                {"error": "API key required. Use: /sse?apiKey=your-api-key"}, status_code=400
            )
            await response(scope, receive, send)
            return

        state = request.app.state
        logger.info(f"New MCP SSE connection with API key: {redact_key(api_key)}")

        try:
            server = build_server(SmsConfig(base_url=state.base_url, api_key=api_key))
        except Exception as e:
            logger.error(f"Error establishing SSE stream: {e}")
            await Response("Error establishing SSE stream", status_code=500)(scope, receive, send)
            return

        session_id = None
        try:
            async with state.transport.connect_session(scope, receive, send, server) as (
                session_id,
                read_stream,
                write_stream,
            ):
                logger.info(f"Established SSE stream with session ID: {session_id}")
                await server.run(read_stream, write_stream, server.create_initialization_options())
        except Exception:
            logger.exception(f"SSE session {session_id} terminated with an error")
        logger.info(f"SSE transport closed for session {session_id}")


class MessagesEndpoint:
    """
    ASGI endpoint for POST /messages.

    The endpoint event advertises `session_id`; `sessionId` is accepted too.
    Unknown or closed sessions are answered here, everything else is handed
    to the SDK transport, which replies 202 and feeds the message to the
    session's server (or 400 when the body is not a JSON-RPC message).
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        session_id = request.query_params.get("session_id") or request.query_params.get("sessionId")
        if not session_id:
            logger.error("No session ID provided in request URL")
            response = JSONResponse({"error": "Missing session_id parameter"}, status_code=400)
            await response(scope, receive, send)
            return

        transport = request.app.state.transport
        if session_id not in transport.sessions:
            logger.error(f"No active transport found for session ID: {session_id}")
            response = JSONResponse({"error": "Session not found"}, status_code=404)
            await response(scope, receive, send)
            return

        scope = dict(scope, query_string=urlencode({"session_id": session_id}).encode())
        await transport.handle_post_message(scope, receive, send)


# --- Stateless JSON-RPC ---

def _rpc_result(request_id: Any, result: Dict[str, Any]) -> JSONResponse:
    return JSONResponse({"jsonrpc": "2.0", "id": request_id, "result": result})


def _rpc_error(request_id: Any, code: int, message: str, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}},
        status_code=status_code,
    )


async def handle_mcp(request: Request) -> Response:
    api_key = request.headers.get(API_KEY_HEADER)
    if not api_key:
        return JSONResponse(
            {"error": "MobileSMS.io API key required. Use X-API-Key header"}, status_code=400
        )

    try:
        message = await request.json()
    except ValueError:
        message = None
    if not isinstance(message, dict) or not message.get("jsonrpc") or not message.get("method"):
        return JSONResponse(
            {"error": "Invalid JSON-RPC message. Required: jsonrpc, method, id"}, status_code=400
        )

    method = message["method"]
    request_id = message.get("id")
    logger.info(f"HTTP MCP call: {method} with API key: {redact_key(api_key)}")

    if method == "tools/list":
        tools = [tool.model_dump(by_alias=True, exclude_none=True, mode="json") for tool in TOOLS]
        return _rpc_result(request_id, {"tools": tools})

    if method == "tools/call":
        params = message.get("params")
        name = params.get("name") if isinstance(params, dict) else None
        if not isinstance(name, str) or not name:
            return _rpc_error(request_id, types.INVALID_PARAMS, "Invalid params: tool name required", 400)

        client = SmsClient(SmsConfig(base_url=request.app.state.base_url, api_key=api_key))
        try:
            result = await call_tool(client, name, params.get("arguments"))
        except McpError as e:
            logger.error(f"Error handling MCP call {name}: {e.error.message}")
            text = e.error.message
            if e.error.code == types.INTERNAL_ERROR:
                text = f"Internal error: {text}"
            return _rpc_error(request_id, e.error.code, text, status_code=500)
        return _rpc_result(request_id, result.model_dump(by_alias=True, exclude_none=True, mode="json"))

    return _rpc_error(request_id, types.METHOD_NOT_FOUND, f"Method not found: {method}")


# --- Info & Docs ---

async def root(request: Request) -> Response:
    return RedirectResponse(url="/docs")


async def health(request: Request) -> Response:
    return JSONResponse({
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "server": docs.SERVER_TITLE,
    })


async def api_info(request: Request) -> Response:
    return JSONResponse(docs.api_info())


async def list_tools(request: Request) -> Response:
    return JSONResponse(docs.tools_document())


async def setup_guide(request: Request) -> Response:
    return JSONResponse(docs.setup_guide())


async def claude_code_config(request: Request) -> Response:
    return JSONResponse(docs.claude_code_config())


async def docs_page(request: Request) -> Response:
    if request.app.state.openapi is None:
        return JSONResponse({"error": "API documentation not available"}, status_code=404)
    return HTMLResponse(docs.swagger_ui_html("/docs/swagger.json"), headers=_NO_CACHE_HEADERS)


async def openapi_document(request: Request) -> Response:
    if request.app.state.openapi is None:
        return JSONResponse({"error": "API documentation not available"}, status_code=404)
    return JSONResponse(request.app.state.openapi, headers=_NO_CACHE_HEADERS)


# --- App ---

@asynccontextmanager
async def lifespan(app: Starlette):
    """Close every open SSE session on shutdown."""
    try:
        yield
    finally:
        logger.info("Shutting down server...")
        await app.state.sessions.close_all()
        logger.info("Server shutdown complete")


def create_app(
    base_url: str | None = None,
    swagger_path: str | os.PathLike | None = None,
    sessions: SessionStore | None = None,
) -> Starlette:
    app = Starlette(
        routes=[
            Route("/", root, methods=["GET"]),
            Route("/sse", SseEndpoint(), methods=["GET"]),
            Route(MESSAGES_PATH, MessagesEndpoint(), methods=["POST"]),
            Route("/mcp", handle_mcp, methods=["POST"]),
            Route("/health", health, methods=["GET"]),
            Route("/api/info", api_info, methods=["GET"]),
            Route("/tools", list_tools, methods=["GET"]),
            Route("/setup/guide", setup_guide, methods=["GET"]),
            Route("/setup/claude-code-config", claude_code_config, methods=["GET"]),
            Route("/docs", docs_page, methods=["GET"]),
            Route("/docs/swagger.json", openapi_document, methods=["GET"]),
        ],
        middleware=[
            Middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"]),
        ],
        lifespan=lifespan,
    )
    app.state.sessions = sessions if sessions is not None else SessionStore()
    app.state.transport = SessionTransport(MESSAGES_PATH, app.state.sessions, _security_settings)
    app.state.base_url = base_url or default_base_url()
    app.state.openapi = docs.load_openapi(swagger_path)
    return app


app = create_app()


def main(argv: Sequence[str] | None = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    port = int(argv[0]) if argv else int(os.getenv("PORT", DEFAULT_PORT))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"SMS MCP SSE Server running on port {port}")
    logger.info(f"MCP SSE endpoint: http://localhost:{port}/sse?apiKey=YOUR_API_KEY")
    logger.info(f"Health check: http://localhost:{port}/health")
    logger.info(f"API docs: http://localhost:{port}/docs")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()

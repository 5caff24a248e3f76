import logging
from typing import Any, Dict
from urllib.parse import quote, quote_plus

import httpx
import jsonschema
from mcp import types
from mcp.server.lowlevel import Server
from mcp.shared.exceptions import McpError

from .sms_client import SmsClient, SmsConfig, redact_key
from .tools import sms
from .tools.catalog import (
    GENERATE_NUMBER,
    GET_ACTIVE_NUMBERS,
    GET_BALANCE,
    GET_SMS,
    TOOLS,
    get_tool,
)

logger = logging.getLogger("sms-mcp-server")

SERVER_NAME = "mobilesms_mcp"
SERVER_VERSION = "1.0.0"


def _error(code: int, message: str) -> McpError:
    return McpError(types.ErrorData(code=code, message=message))


def _describe(exc: Exception, api_key: str) -> str:
    """
    Error text for the caller, with the API key masked.

    httpx puts the request URL in its messages, where the key is
    percent-encoded, so the URL is replaced by one without the key before
    any remaining raw or encoded copies are masked.
    """
    message = str(exc) or type(exc).__name__
    if isinstance(exc, (httpx.HTTPStatusError, httpx.RequestError)):
        try:
            url = exc.request.url
        except RuntimeError:
            url = None
        if url is not None:
            message = message.replace(str(url), str(url.copy_remove_param("key")))
    if api_key:
        redacted = redact_key(api_key)
        for form in {api_key, quote_plus(api_key), quote(api_key, safe="")}:
            message = message.replace(form, redacted)
    return message


async def _run_tool(client: SmsClient, name: str, arguments: Dict[str, Any]) -> str:
    if name == GENERATE_NUMBER:
        return await sms.generate_number(
            client, arguments["service"], arguments["country"], arguments.get("zipcode")
        )
    if name == GET_SMS:
        return await sms.get_sms(client, arguments["number"], arguments["service"])
    if name == GET_BALANCE:
        return await sms.get_balance(client)
    if name == GET_ACTIVE_NUMBERS:
        return await sms.get_active_numbers(client)
    raise _error(types.METHOD_NOT_FOUND, f"Unknown tool: {name}")


async def call_tool(client: SmsClient, name: str, arguments: Dict[str, Any] | None) -> types.CallToolResult:
    """
    Run one tool against the upstream API.

    Raises McpError with METHOD_NOT_FOUND for unknown tools, INVALID_PARAMS
    when the arguments do not match the tool's input schema and
    INTERNAL_ERROR for anything that fails while the tool runs.
    """
    tool = get_tool(name)
    if tool is None:
        raise _error(types.METHOD_NOT_FOUND, f"Unknown tool: {name}")

    arguments = arguments or {}
    try:
        jsonschema.validate(instance=arguments, schema=tool.inputSchema)
    except jsonschema.ValidationError as e:
        raise _error(types.INVALID_PARAMS, f"Invalid arguments for tool {name}: {e.message}")

    try:
        text = await _run_tool(client, name, arguments)
    except McpError:
        raise
    except Exception as e:
        message = _describe(e, client.config.api_key)
        logger.error(f"Tool {name} failed for key {redact_key(client.config.api_key)}: {message}")
        raise _error(types.INTERNAL_ERROR, f"Error executing tool {name}: {message}") from e

    return types.CallToolResult(content=[types.TextContent(type="text", text=text)])


def build_server(config: SmsConfig) -> Server:
    """Create an MCP server instance whose tools all use `config`."""
    server = Server(SERVER_NAME, version=SERVER_VERSION)
    client = SmsClient(config)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return TOOLS

    async def handle_call_tool(req: types.CallToolRequest) -> types.ServerResult:
        result = await call_tool(client, req.params.name, req.params.arguments)
        return types.ServerResult(result)

    # Raw handler: McpError propagates to the client as a JSON-RPC error.
    server.request_handlers[types.CallToolRequest] = handle_call_tool
    return server

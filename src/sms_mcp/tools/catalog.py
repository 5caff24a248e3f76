"""Static tool definitions shared by every transport."""
from typing import Any, Dict, List

from mcp import types

GENERATE_NUMBER = "generate_number"
GET_SMS = "get_sms"
GET_BALANCE = "get_balance"
GET_ACTIVE_NUMBERS = "get_active_numbers"

_SERVICE_DESCRIPTION = "The service name (e.g., discord, telegram, whatsapp)"

TOOLS: List[types.Tool] = [
    types.Tool(
        name=GENERATE_NUMBER,
        description="Generate a new SMS number for a specific service and country",
        inputSchema={
            "type": "object",
            "properties": {
                "service": {"type": "string", "description": _SERVICE_DESCRIPTION},
                "country": {"type": "string", "description": "The country code (e.g., us, uk, ca)"},
                "zipcode": {"type": "string", "description": "Optional zipcode for US numbers"},
            },
            "required": ["service", "country"],
        },
    ),
    types.Tool(
        name=GET_SMS,
        description="Retrieve SMS messages for a specific number and service",
        inputSchema={
            "type": "object",
            "properties": {
                "number": {"type": "string", "description": "The phone number to check for SMS messages"},
                "service": {"type": "string", "description": "The service name associated with the number"},
            },
            "required": ["number", "service"],
        },
    ),
    types.Tool(
        name=GET_BALANCE,
        description="Get the current account balance",
        inputSchema={"type": "object", "properties": {}},
    ),
    types.Tool(
        name=GET_ACTIVE_NUMBERS,
        description="Get all currently active numbers (short version)",
        inputSchema={"type": "object", "properties": {}},
    ),
]

_EXAMPLES: Dict[str, Dict[str, str]] = {
    GENERATE_NUMBER: {"service": "discord", "country": "us", "zipcode": "10001"},
    GET_SMS: {"number": "5551234567", "service": "discord"},
    GET_BALANCE: {},
    GET_ACTIVE_NUMBERS: {},
}


def get_tool(name: str) -> types.Tool | None:
    for tool in TOOLS:
        if tool.name == name:
            return tool
    return None


def tool_reference() -> List[Dict[str, Any]]:
    """Flattened, human-oriented view of the catalog (served on /tools)."""
    reference = []
    for tool in TOOLS:
        required = set(tool.inputSchema.get("required", []))
        parameters = {
            param: {
                "type": schema.get("type"),
                "description": schema.get("description"),
                "required": param in required,
            }
            for param, schema in tool.inputSchema.get("properties", {}).items()
        }
        reference.append({
            "name": tool.name,
            "description": tool.description,
            "parameters": parameters,
            "example": _EXAMPLES.get(tool.name, {}),
        })
    return reference

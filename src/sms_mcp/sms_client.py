import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict

import httpx

logger = logging.getLogger("sms-mcp")

DEFAULT_BASE_URL = "https://mobilesms.io/webapp/api.php"
REQUEST_TIMEOUT = 30.0


def default_base_url() -> str:
    return os.getenv("SMS_API_BASE_URL") or DEFAULT_BASE_URL


def redact_key(api_key: str | None) -> str:
    """Short prefix of an API key, safe for logs."""
    if not api_key:
        return "<none>"
    return f"{api_key[:8]}..."


@dataclass(frozen=True)
class SmsConfig:
    base_url: str
    api_key: str


class SmsClient:
    """Thin client for the SMS provider's single action-based endpoint."""

    def __init__(self, config: SmsConfig, timeout: float = REQUEST_TIMEOUT):
        self.config = config
        self.timeout = timeout

    async def request(self, params: Dict[str, str]) -> Any:
        """
        Issue one GET against the upstream endpoint.

        The API key goes first, followed by the action parameters in order.
        HTTP errors, timeouts and connection failures propagate as httpx
        exceptions.
        """
        query = {"key": self.config.api_key, **params}
        action = params.get("action")
        logger.debug(f"Upstream request action={action} key={redact_key(self.config.api_key)}")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(self.config.base_url, params=query)
            response.raise_for_status()

        return normalize_body(response.text)


def normalize_body(body: str) -> Any:
    """Parse bodies that look like a JSON object; leave everything else alone."""
    if body.strip().startswith("{"):
        try:
            return json.loads(body)
        except ValueError:
            return body
    return body


def format_result(result: Any) -> str:
    """Render a normalized upstream result as tool text."""
    if isinstance(result, str):
        return result
    if isinstance(result, (dict, list)):
        return json.dumps(result, indent=2, ensure_ascii=False)
    return json.dumps(result)

"""Remote gateway adapter: serve MCP methods by forwarding to ``POST /mcp``.

Used by the ``proxy`` transport mode, where a local stdio session talks to a
gateway deployed elsewhere over HTTP.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from .errors import ErrorCode, McpError

logger = logging.getLogger(__name__)

# HTTP status -> protocol error code, when the body does not carry one
_CODE_FOR_STATUS = {
    400: ErrorCode.INVALID_PARAMS,
    404: ErrorCode.METHOD_NOT_FOUND,
}


class RemoteGateway:
    def __init__(self, url: str, timeout: float = 90.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def handle(self, method: str, params: Optional[Dict[str, Any]] = None) -> dict:
        body = {"method": method}
        if params is not None:
            body["params"] = params
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.url, json=body)
        except httpx.HTTPError as e:
            logger.error(f"Remote gateway {self.url} unreachable: {e}")
            raise McpError(ErrorCode.INTERNAL_ERROR, f"Remote gateway unreachable: {str(e) or type(e).__name__}") from e

        try:
            data = resp.json()
        except ValueError:
            data = None

        if resp.status_code == 200 and isinstance(data, dict):
            return data

        message = data.get("error") if isinstance(data, dict) else None
        code = data.get("code") if isinstance(data, dict) else None
        if not isinstance(code, int):
            code = _CODE_FOR_STATUS.get(resp.status_code, ErrorCode.INTERNAL_ERROR)
        raise McpError(code, message or f"Remote gateway returned HTTP {resp.status_code}")

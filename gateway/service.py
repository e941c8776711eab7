"""Shared MCP method handling used by every transport.

Both the stdio transport and the HTTP app call ``ToolService.handle`` (or
its ``list_tools`` / ``call_tool`` methods) directly; neither reaches into the
other. The service is stateless apart from the frozen registry.
"""
import logging
from typing import Any, Dict, Optional

from .catalog import build_catalog
from .dispatcher import dispatch
from .errors import ErrorCode, McpError
from .health import DEFAULT_PROBE_TIMEOUT, aggregate_health
from .protocol import HealthReport
from .registry import ModuleRegistry

logger = logging.getLogger(__name__)

LIST_TOOLS = "tools/list"
CALL_TOOL = "tools/call"


class ToolService:
    def __init__(self, registry: ModuleRegistry, health_timeout: float = DEFAULT_PROBE_TIMEOUT):
        self.registry = registry
        self.health_timeout = health_timeout

    async def list_tools(self) -> dict:
        return {"tools": [d.to_dict() for d in build_catalog(self.registry)]}

    async def call_tool(self, params: Optional[Dict[str, Any]]) -> dict:
        params = params or {}
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise McpError(ErrorCode.INVALID_PARAMS, "tools/call requires a non-empty string 'name'")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise McpError(ErrorCode.INVALID_PARAMS, "tools/call 'arguments' must be an object")
        result = await dispatch(self.registry, name, arguments)
        return result.to_dict()

    async def handle(self, method: str, params: Optional[Dict[str, Any]] = None) -> dict:
        if method == LIST_TOOLS:
            return await self.list_tools()
        if method == CALL_TOOL:
            return await self.call_tool(params)
        raise McpError(ErrorCode.METHOD_NOT_FOUND, f"Method not found: {method}")

    async def health(self) -> HealthReport:
        return await aggregate_health(self.registry, timeout=self.health_timeout)

    def tool_count(self) -> int:
        return len(build_catalog(self.registry))

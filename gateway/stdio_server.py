"""Stdio transport: newline-delimited JSON-RPC 2.0 on stdin/stdout.

Requests are processed one at a time, in arrival order. stdout carries only
protocol messages; logging goes to stderr.
"""
import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable, Optional, TextIO

from .errors import ErrorCode, McpError
from .protocol import PROTOCOL_VERSION, rpc_error, rpc_result

logger = logging.getLogger(__name__)

MethodHandler = Callable[[str, Optional[dict]], Awaitable[dict]]

# Tool definitions travel in a single line; allow large ones
STREAM_LIMIT = 16 * 1024 * 1024


async def open_stdin_reader() -> asyncio.StreamReader:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=STREAM_LIMIT)
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    return reader


class StdioServer:
    """One MCP session over a byte stream.

    ``handler`` serves everything except the session-level methods
    (``initialize``, ``ping``, notifications), which the transport answers
    itself.
    """

    def __init__(
        self,
        handler: MethodHandler,
        server_name: str,
        server_version: str,
        reader: Optional[asyncio.StreamReader] = None,
        writer: Optional[TextIO] = None,
    ):
        self.handler = handler
        self.server_name = server_name
        self.server_version = server_version
        self._reader = reader
        self._writer = writer
        self.initialized = False

    async def serve(self) -> None:
        """Main loop: read until EOF."""
        reader = self._reader or await open_stdin_reader()
        logger.info(f"{self.server_name} connected via stdio")

        while True:
            try:
                line = await reader.readline()
            except ValueError as e:
                # Line longer than STREAM_LIMIT; the rest of the stream is unusable
                logger.error(f"stdio: oversized message, closing session: {e}")
                self._write(rpc_error(None, ErrorCode.PARSE_ERROR, "Message too large"))
                break
            if not line:
                break
            line = line.strip()
            if not line:
                continue
            response = await self.handle_line(line)
            if response is not None:
                self._write(response)

        logger.info("stdio: input closed, session ended")

    async def handle_line(self, line) -> Optional[dict]:
        try:
            message = json.loads(line)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"stdio: invalid JSON: {e}")
            return rpc_error(None, ErrorCode.PARSE_ERROR, f"Parse error: {e}")
        return await self.handle_message(message)

    async def handle_message(self, message: Any) -> Optional[dict]:
        if not isinstance(message, dict):
            return rpc_error(None, ErrorCode.INVALID_REQUEST, "Invalid Request: expected a JSON object")

        request_id = message.get("id")
        method = message.get("method")
        params = message.get("params")

        if not isinstance(method, str) or not method:
            if request_id is None:
                # Responses or junk without an id: nothing to answer
                return None
            return rpc_error(request_id, ErrorCode.INVALID_REQUEST, "Invalid Request: missing method")

        if request_id is None:
            self._handle_notification(method)
            return None

        if params is not None and not isinstance(params, dict):
            return rpc_error(request_id, ErrorCode.INVALID_PARAMS, f"Invalid params: {method} params must be an object")

        try:
            result = await self._dispatch(method, params)
        except McpError as e:
            logger.info(f"stdio: {method} -> protocol error {e.code}: {e.message}")
            return rpc_error(request_id, e.code, e.message)
        except Exception as e:
            logger.error(f"stdio: {method} failed: {type(e).__name__}: {e}", exc_info=True)
            return rpc_error(request_id, ErrorCode.INTERNAL_ERROR, f"Internal error: {e}")
        return rpc_result(request_id, result)

    async def _dispatch(self, method: str, params: Optional[dict]) -> dict:
        if method == "initialize":
            return self._initialize(params or {})
        if method == "ping":
            return {}
        return await self.handler(method, params)

    def _initialize(self, params: dict) -> dict:
        client = params.get("clientInfo") or {}
        logger.info(f"stdio: initialize from {client.get('name', 'unknown client')} {client.get('version', '')}".rstrip())
        return {
            "protocolVersion": params.get("protocolVersion") or PROTOCOL_VERSION,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": self.server_name, "version": self.server_version},
        }

    def _handle_notification(self, method: str) -> None:
        if method == "notifications/initialized":
            self.initialized = True
            logger.info("stdio: client initialized")
        else:
            logger.debug(f"stdio: ignoring notification {method}")

    def _write(self, message: dict) -> None:
        out = self._writer or sys.stdout
        out.write(json.dumps(message, ensure_ascii=False) + "\n")
        out.flush()

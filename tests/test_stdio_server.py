"""Tests for stdio_server.py: framing, session methods and error mapping."""
import asyncio
import io
import json

import pytest

from gateway.errors import ErrorCode
from gateway.protocol import PROTOCOL_VERSION
from gateway.stdio_server import StdioServer


async def run_session(service, *messages):
    """Feed raw lines through a StdioServer and return the decoded responses."""
    reader = asyncio.StreamReader()
    for message in messages:
        line = message if isinstance(message, str) else json.dumps(message)
        reader.feed_data(line.encode("utf-8") + b"\n")
    reader.feed_eof()
    out = io.StringIO()
    server = StdioServer(service.handle, "test-gateway", "9.9.9", reader=reader, writer=out)
    await server.serve()
    return server, [json.loads(line) for line in out.getvalue().splitlines()]


class TestSession:
    @pytest.mark.asyncio
    async def test_initialize(self, service):
        server, responses = await run_session(service, {
            "jsonrpc": "2.0", "id": 1, "method": "initialize",
            "params": {"protocolVersion": "2025-03-26", "clientInfo": {"name": "agent", "version": "1"}},
        })
        result = responses[0]["result"]
        assert responses[0]["id"] == 1
        assert result["protocolVersion"] == "2025-03-26"
        assert result["capabilities"] == {"tools": {"listChanged": False}}
        assert result["serverInfo"] == {"name": "test-gateway", "version": "9.9.9"}

    @pytest.mark.asyncio
    async def test_initialize_default_version(self, service):
        _, responses = await run_session(service, {"jsonrpc": "2.0", "id": 1, "method": "initialize"})
        assert responses[0]["result"]["protocolVersion"] == PROTOCOL_VERSION

    @pytest.mark.asyncio
    async def test_initialized_notification_has_no_response(self, service):
        server, responses = await run_session(
            service, {"jsonrpc": "2.0", "method": "notifications/initialized"},
        )
        assert responses == []
        assert server.initialized is True

    @pytest.mark.asyncio
    async def test_ping(self, service):
        _, responses = await run_session(service, {"jsonrpc": "2.0", "id": "p", "method": "ping"})
        assert responses == [{"jsonrpc": "2.0", "id": "p", "result": {}}]

    @pytest.mark.asyncio
    async def test_blank_lines_skipped(self, service):
        _, responses = await run_session(service, "", "   ", {"jsonrpc": "2.0", "id": 1, "method": "ping"})
        assert len(responses) == 1


class TestTools:
    @pytest.mark.asyncio
    async def test_list_and_call_in_order(self, service):
        _, responses = await run_session(
            service,
            {"jsonrpc": "2.0", "id": 1, "method": "tools/list"},
            {"jsonrpc": "2.0", "id": 2, "method": "tools/call", "params": {"name": "echo:ping", "arguments": {}}},
            {"jsonrpc": "2.0", "id": 3, "method": "tools/call", "params": {"name": "echo:boom", "arguments": {}}},
        )
        assert [r["id"] for r in responses] == [1, 2, 3]
        assert responses[0]["result"]["tools"][0]["name"] == "echo:ping"
        assert responses[1]["result"] == {"content": [{"type": "text", "text": "pong"}]}
        assert responses[2]["result"]["isError"] is True

    @pytest.mark.asyncio
    async def test_unknown_tool_is_protocol_error(self, service):
        _, responses = await run_session(service, {
            "jsonrpc": "2.0", "id": 7, "method": "tools/call",
            "params": {"name": "nomodule:x", "arguments": {}},
        })
        assert responses[0]["id"] == 7
        assert responses[0]["error"]["code"] == ErrorCode.METHOD_NOT_FOUND
        assert "result" not in responses[0]

    @pytest.mark.asyncio
    async def test_malformed_name_is_invalid_params(self, service):
        _, responses = await run_session(service, {
            "jsonrpc": "2.0", "id": 8, "method": "tools/call", "params": {"name": "badname"},
        })
        assert responses[0]["error"]["code"] == ErrorCode.INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_unknown_method(self, service):
        _, responses = await run_session(service, {"jsonrpc": "2.0", "id": 9, "method": "resources/list"})
        assert responses[0]["error"]["code"] == ErrorCode.METHOD_NOT_FOUND


class TestMalformedInput:
    @pytest.mark.asyncio
    async def test_parse_error_keeps_session_alive(self, service):
        _, responses = await run_session(service, "{not json", {"jsonrpc": "2.0", "id": 1, "method": "ping"})
        assert responses[0]["id"] is None
        assert responses[0]["error"]["code"] == ErrorCode.PARSE_ERROR
        assert responses[1]["result"] == {}

    @pytest.mark.asyncio
    async def test_non_object_message(self, service):
        _, responses = await run_session(service, "[1, 2]")
        assert responses[0]["error"]["code"] == ErrorCode.INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_missing_method(self, service):
        _, responses = await run_session(service, {"jsonrpc": "2.0", "id": 4})
        assert responses[0]["error"]["code"] == ErrorCode.INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_stray_response_ignored(self, service):
        _, responses = await run_session(service, {"jsonrpc": "2.0", "result": {}})
        assert responses == []

    @pytest.mark.asyncio
    async def test_params_must_be_object(self, service):
        _, responses = await run_session(service, {"jsonrpc": "2.0", "id": 5, "method": "tools/call", "params": [1]})
        assert responses[0]["error"]["code"] == ErrorCode.INVALID_PARAMS


class TestHandlerFailure:
    @pytest.mark.asyncio
    async def test_unexpected_exception_is_internal_error(self):
        async def handler(method, params):
            raise RuntimeError("registry exploded")

        server = StdioServer(handler, "t", "1", writer=io.StringIO())
        response = await server.handle_message({"jsonrpc": "2.0", "id": 1, "method": "tools/list"})
        assert response["error"]["code"] == ErrorCode.INTERNAL_ERROR
        assert "registry exploded" in response["error"]["message"]

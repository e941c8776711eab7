"""MCP payload models shared by both transports."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"


class ContentBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolDescriptor(BaseModel):
    name: str
    description: str = ""
    input_schema: Dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        alias="inputSchema",
    )

    model_config = {"populate_by_name": True, "frozen": True}

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class ToolResult(BaseModel):
    content: List[ContentBlock] = Field(default_factory=list)
    is_error: bool = False

    @classmethod
    def text(cls, text: str) -> "ToolResult":
        return cls(content=[ContentBlock(text=text)])

    @classmethod
    def error(cls, text: str) -> "ToolResult":
        return cls(content=[ContentBlock(text=text)], is_error=True)

    def to_dict(self) -> dict:
        """Wire shape: ``isError`` is only present on failures."""
        data = {"content": [block.model_dump() for block in self.content]}
        if self.is_error:
            data["isError"] = True
        return data


class HealthStatus(BaseModel):
    state: Literal["healthy", "unhealthy"]
    detail: str = ""

    @classmethod
    def healthy(cls, detail: str = "") -> "HealthStatus":
        return cls(state="healthy", detail=detail)

    @classmethod
    def unhealthy(cls, detail: str = "") -> "HealthStatus":
        return cls(state="unhealthy", detail=detail)

    @property
    def is_healthy(self) -> bool:
        return self.state == "healthy"


class HealthReport(BaseModel):
    overall: Literal["healthy", "degraded"]
    modules: Dict[str, HealthStatus] = Field(default_factory=dict)
    timestamp: str = Field(default_factory=lambda: utc_timestamp())


class McpHttpRequest(BaseModel):
    """Body of ``POST /mcp``."""
    method: str = Field(min_length=1)
    params: Optional[Dict[str, Any]] = None


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def rpc_result(request_id: Any, result: Any) -> dict:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def rpc_error(request_id: Any, code: int, message: str) -> dict:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": {"code": code, "message": message}}

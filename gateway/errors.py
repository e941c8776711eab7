"""Exception types shared by the gateway, its modules and its transports."""


class ErrorCode:
    """JSON-RPC 2.0 error codes used by MCP."""
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


class McpError(Exception):
    """Protocol-level error: the caller asked for something that does not exist
    or is malformed. Transports surface it as an error response, never as a
    tool result.
    """

    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class ConfigurationError(Exception):
    """Invalid startup configuration (settings, module registration)."""


class BackendError(Exception):
    """A call to the backend automation service failed."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code

"""HTTP transport: FastAPI app exposing the MCP methods on ``POST /mcp``."""
import logging
from typing import Tuple

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import __version__
from .errors import ErrorCode, McpError
from .protocol import McpHttpRequest, utc_timestamp
from .service import ToolService

logger = logging.getLogger(__name__)

# Protocol error code -> HTTP status
_STATUS_FOR_CODE = {
    ErrorCode.METHOD_NOT_FOUND: 404,
    ErrorCode.INVALID_PARAMS: 400,
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.PARSE_ERROR: 400,
}


def _body_error(exc: RequestValidationError) -> Tuple[int, str]:
    """Map a rejected ``POST /mcp`` body to the code the stdio transport would send."""
    body = exc.body if isinstance(exc.body, dict) else {}
    for err in exc.errors():
        loc = tuple(err.get("loc", ()))
        if err.get("type") == "json_invalid":
            return ErrorCode.PARSE_ERROR, f"Parse error: {err.get('msg', 'invalid JSON')}"
        if loc == ("body",):
            return ErrorCode.INVALID_REQUEST, "Invalid Request: expected a JSON object"
        if loc[1:2] == ("method",):
            return ErrorCode.INVALID_REQUEST, "Invalid Request: missing method"
    return ErrorCode.INVALID_PARAMS, f"Invalid params: {body.get('method')} params must be an object"


def create_app(service: ToolService, service_name: str = "workflow-mcp-gateway") -> FastAPI:
    app = FastAPI(title=service_name, version=__version__)
    app.state.service = service

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        code, message = _body_error(exc)
        logger.info(f"{request.method} {request.url.path} -> rejected body, protocol error {code}: {message}")
        return JSONResponse({"error": message, "code": code}, status_code=_STATUS_FOR_CODE[code])

    @app.get("/")
    async def index():
        """Service metadata with the live tool count."""
        try:
            tools_count = service.tool_count()
        except Exception as e:
            logger.error(f"Catalog failed: {e}", exc_info=True)
            return JSONResponse({"error": str(e)}, status_code=500)
        return {
            "service": service_name,
            "version": __version__,
            "modules": service.registry.ids(),
            "tools_count": tools_count,
            "timestamp": utc_timestamp(),
        }

    @app.get("/health")
    async def health():
        try:
            report = await service.health()
        except Exception as e:
            logger.error(f"Health aggregation failed: {e}", exc_info=True)
            return JSONResponse(
                {"status": "error", "error": str(e), "timestamp": utc_timestamp()},
                status_code=500,
            )
        status_code = 200 if report.overall == "healthy" else 503
        return JSONResponse(report.model_dump(), status_code=status_code)

    @app.post("/mcp")
    async def mcp(req: McpHttpRequest):
        try:
            return await service.handle(req.method, req.params)
        except McpError as e:
            logger.info(f"POST /mcp {req.method} -> protocol error {e.code}: {e.message}")
            return JSONResponse(
                {"error": e.message, "code": e.code},
                status_code=_STATUS_FOR_CODE.get(e.code, 500),
            )
        except Exception as e:
            logger.error(f"POST /mcp {req.method} failed: {type(e).__name__}: {e}", exc_info=True)
            return JSONResponse({"error": str(e)}, status_code=500)

    return app

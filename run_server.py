#!/usr/bin/env python3
"""
Workflow MCP Gateway - launcher
Serves the gateway over stdio (local agents), HTTP (hosted), or proxies a
local stdio session to a hosted gateway, depending on MCP_TRANSPORT.
"""
import asyncio
import logging
import sys

import uvicorn

from gateway import __version__
from gateway.config import Settings, load_dotenv, log_settings
from gateway.errors import ConfigurationError
from gateway.main import create_app
from gateway.proxy import RemoteGateway
from gateway.registry import build_registry
from gateway.service import ToolService
from gateway.stdio_server import StdioServer

logger = logging.getLogger("run_server")


def configure_logging(level: str = "INFO"):
    # stderr only: stdout belongs to the stdio transport
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


async def run_http_server(settings: Settings, service: ToolService):
    app = create_app(service, settings.service_name)
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    server = uvicorn.Server(config)
    logger.info(f"HTTP server will run on http://{settings.host}:{settings.port}")
    await server.serve()


async def run_stdio_server(settings: Settings, handler):
    server = StdioServer(handler, settings.service_name, __version__)
    await server.serve()


async def main(settings: Settings):
    logger.info(f"Starting {settings.service_name} v{__version__} ({settings.transport})")
    logger.info(f"Python {sys.version.split()[0]}")
    log_settings(settings)

    if settings.transport == "proxy":
        remote = RemoteGateway(settings.remote_url, timeout=settings.remote_timeout)
        await run_stdio_server(settings, remote.handle)
        return

    registry = build_registry(settings)
    service = ToolService(registry, health_timeout=settings.health_timeout)
    logger.info(f"Modules: {registry.ids()}, tools: {service.tool_count()}")

    if settings.transport == "http":
        await run_http_server(settings, service)
    else:
        await run_stdio_server(settings, service.handle)


def cli():
    load_dotenv()
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        configure_logging()
        logger.error(f"FATAL: {e}")
        sys.exit(1)

    configure_logging(settings.log_level)
    try:
        asyncio.run(main(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except ConfigurationError as e:
        logger.error(f"FATAL: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Server exited with error: {type(e).__name__}: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()

#!/usr/bin/env python3
"""
Lightdash MCP Server
A Model Context Protocol server that mediates access to the Lightdash analytics
API: session tracking, cached lookups, validated dispatch with retry and
normalized query results.
"""

import json
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict

from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

from fastmcp import FastMCP
from fastmcp.server.dependencies import get_context
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult
from mcp.types import TextContent
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from src.telemetry import (
    initialize_telemetry,
    initialize_metrics,
    shutdown_telemetry,
    get_telemetry_status,
    get_metrics_status
)
from src.logging import server_logger as logger
from src.gateway import Gateway, GatewayError, SessionReleaseMiddleware, get_server_settings, load_gateway_config
from src.lightdash import LightdashClient, build_catalog, validate_lightdash_config

telemetry_enabled = initialize_telemetry()
metrics_enabled = initialize_metrics() if telemetry_enabled else False

config = load_gateway_config()
settings = get_server_settings()

config_error = validate_lightdash_config()
if config_error:
    logger.warning(config_error)

upstream = LightdashClient(timeout=config.upstream_timeout)
gateway = Gateway(config=config, registry=build_catalog(), upstream=upstream)


@asynccontextmanager
async def lifespan(server):
    gateway.start_background_tasks()
    logger.info(
        f"gateway started | operations:{len(gateway.dispatcher.registry)} | "
        f"max_sessions:{config.max_sessions} | idle_timeout:{config.session_idle_timeout}s"
    )
    try:
        yield
    finally:
        await gateway.stop_background_tasks()
        logger.info("gateway stopped")


mcp = FastMCP(name=settings["name"], lifespan=lifespan)


def _transport_key() -> str:
    ctx = get_context()
    return ctx.session_id or "stdio"


class GatewayTool(Tool):
    """MCP tool that forwards its arguments to the gateway dispatcher."""

    async def run(self, arguments: Dict[str, Any]) -> ToolResult:
        response = await gateway.handle(_transport_key(), self.name, arguments)
        return ToolResult(
            content=[TextContent(type="text", text=json.dumps(response, indent=2, default=str))],
            structured_content=response
        )


def register_operations(server: FastMCP) -> None:
    for operation in gateway.dispatcher.list_operations():
        server.add_tool(GatewayTool(
            name=operation["name"],
            description=operation["description"],
            parameters=operation["inputSchema"],
        ))


register_operations(mcp)


@mcp.custom_route("/health", methods=["GET"])
async def health(request: Request) -> JSONResponse:
    """Gateway statistics plus Lightdash connectivity."""
    body: Dict[str, Any] = {"status": "healthy", **gateway.stats()}
    body["telemetry"] = {**get_telemetry_status(), "metrics": get_metrics_status()}
    try:
        projects = await upstream.request(
            method="GET", path="/api/v1/org/projects", timeout=config.upstream_timeout, operation="health"
        )
        body["lightdashConnected"] = True
        body["projectCount"] = len(projects) if isinstance(projects, list) else 0
        return JSONResponse(body)
    except GatewayError as e:
        logger.warning(f"health check failed | kind:{e.kind.value} | {e.message[:200]}")
        body.update({"status": "unhealthy", "lightdashConnected": False, "error": e.to_dict()})
        return JSONResponse(body, status_code=503)


if __name__ == "__main__":
    import atexit
    import signal

    def shutdown_handler():
        if telemetry_enabled:
            shutdown_telemetry()

    def on_sigterm(signum, frame):
        shutdown_handler()
        sys.exit(0)

    atexit.register(shutdown_handler)
    signal.signal(signal.SIGTERM, on_sigterm)

    mcp.run(
        transport="streamable-http",
        host=settings["host"],
        port=settings["port"],
        middleware=[Middleware(SessionReleaseMiddleware, gateway=gateway)]
    )

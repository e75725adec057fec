"""MCP server exposing on-chain SkillForge skills as tools over SSE."""
from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools import Tool
from pydantic import Field
from skillforge_core.logging import get_logger

from skillforge_mcp.bridge import build_bridge

if TYPE_CHECKING:
    from skillforge_core.config import BridgeConfig

    from skillforge_mcp.sync import Invoker

logger = get_logger("mcp.server")

INPUT_DESCRIPTION = "Input parameters for the skill"


def create_server(config: BridgeConfig) -> FastMCP:
    """Create the FastMCP server; re-registering a tool name replaces it."""
    return FastMCP(config.server.name, on_duplicate_tools="replace")


class FastMCPToolRegistrar:
    """Publishes skill invokers as FastMCP tools taking a single ``input``."""

    def __init__(self, server: FastMCP) -> None:
        self._server = server

    def register(self, name: str, description: str, invoker: Invoker) -> None:
        async def run_skill(
            input: Annotated[str, Field(description=INPUT_DESCRIPTION)],  # noqa: A002
        ) -> str:
            result = await invoker(input)
            if result.is_error:
                raise ToolError(result.text)
            return result.text

        self._server.add_tool(
            Tool.from_function(run_skill, name=name, description=description)
        )


async def serve(config: BridgeConfig) -> None:
    """Sync once, start periodic syncing, and serve SSE until shutdown."""
    logger.info("Starting SkillForge MCP Server (SSE Mode)...")
    server = create_server(config)
    bridge = build_bridge(config, FastMCPToolRegistrar(server))

    try:
        await bridge.start()
        host, port = config.server.host, config.server.port
        logger.info("SkillForge MCP (SSE) running on port %d", port)
        logger.info("- SSE Endpoint: http://%s:%d/sse", host, port)
        await server.run_async(transport="sse", host=host, port=port)
    finally:
        await bridge.stop()

"""FastMCP Server for YApi."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from yapi_mcp.servers.yapi.tools.interfaces import register_interface_tools
from yapi_mcp.servers.yapi.tools.projects import register_project_tools
from yapi_mcp.servers.yapi.tools.search import register_search_tools
from yapi_mcp.servers.yapi.utils.client import close_client, get_cache, get_client


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Warm the metadata cache on startup and close the HTTP client on shutdown."""
    await get_cache()
    try:
        yield
    finally:
        await close_client()


# FastMCP Server Instance
mcp = FastMCP("YApi MCP Server", lifespan=lifespan)

register_project_tools(mcp, get_client, get_cache)
register_search_tools(mcp, get_client, get_cache)
register_interface_tools(mcp, get_client)

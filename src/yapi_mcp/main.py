"""Entry point for yapi-mcp Server.

MCP Server for searching, reading and writing YApi interface documentation.
The YApi server is mounted under the ``yapi`` namespace.
"""

import logging

from fastmcp import FastMCP

from yapi_mcp.config.base import settings
from yapi_mcp.servers.yapi import server as yapi
from yapi_mcp.utils.credentials import mask_token, parse_tokens

# Setup logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

# Main aggregator server
app = FastMCP(
    name=settings.server_name,
    instructions="""
    MCP Server for the YApi API management platform.

    Available tools:
    - yapi_list_projects: Configured projects and their IDs
    - yapi_get_categories: Categories of a project with their interfaces
    - yapi_search_by_name / yapi_search_by_path / yapi_search_apis: Find interfaces
    - yapi_get_api_desc: Full definition of one interface
    - yapi_save_api: Create or update an interface
    - yapi_refresh_cache: Reload project metadata

    Typical workflow:
    1. yapi_search_by_name or yapi_search_by_path → Find candidates
    2. yapi_get_api_desc → Retrieve details
    3. yapi_get_categories → Pick a catid, then yapi_save_api to document changes
    """,
)

app.mount(server=yapi.mcp, namespace="yapi")


# For direct execution
def main() -> None:
    """Run the MCP server."""
    tokens = parse_tokens(settings.token)
    logger.info("Starting YApi MCP Server...")
    logger.info(f"Server name: {settings.server_name}")
    logger.info(f"YApi base URL: {settings.base_url}")
    logger.info(
        "Project tokens: "
        + (
            ", ".join(
                f"{pid}={mask_token(token)}" for pid, token in tokens.tokens.items()
            )
            or "none"
        )
    )
    if tokens.default:
        logger.info(f"Default token: {mask_token(tokens.default)}")
    logger.info(f"Cache: {settings.cache_file} (ttl {settings.cache_ttl} min)")

    if settings.transport == "stdio":
        app.run()
    else:
        logger.info(f"Listening on {settings.host}:{settings.port} ({settings.transport})")
        app.run(transport=settings.transport, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()

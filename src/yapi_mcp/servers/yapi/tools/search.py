"""Interface search tools for YApi."""

from collections.abc import Awaitable
import logging
from typing import Protocol

from fastmcp import Context, FastMCP
from fastmcp.exceptions import ToolError
import pydantic

from yapi_mcp.config.base import settings
from yapi_mcp.schemas.yapi.models import SearchCriteria
from yapi_mcp.schemas.yapi.responses import InterfaceSearchReport
from yapi_mcp.servers.yapi.utils.cache import MetadataCache
from yapi_mcp.servers.yapi.utils.formatting import format_search_report
from yapi_mcp.servers.yapi.utils.search import execute_interface_search
from yapi_mcp.utils.yapi import YApiClient, YApiError

logger = logging.getLogger(__name__)


class ClientGetter(Protocol):
    """Protocol for async client getter function."""

    def __call__(self) -> Awaitable[YApiClient]: ...


class CacheGetter(Protocol):
    """Protocol for async cache getter function."""

    def __call__(self) -> Awaitable[MetadataCache]: ...


def _describe_condition(criteria: SearchCriteria) -> str:
    conditions = []
    if criteria.name_keywords:
        conditions.append(f"name contains any of {criteria.name_keywords}")
    if criteria.path_keywords:
        conditions.append(f"path contains any of {criteria.path_keywords}")
    if criteria.tag_keywords:
        conditions.append(f"tag contains any of {criteria.tag_keywords}")
    return "; ".join(conditions) or "all interfaces"


def register_search_tools(
    mcp: FastMCP,
    get_client: ClientGetter,
    get_cache: CacheGetter,
) -> None:
    """Register search tools on the given MCP server.

    Args:
        mcp: The FastMCP server instance to register tools on
        get_client: Async function that returns a YApiClient
        get_cache: Async function that returns the MetadataCache
    """

    async def run_search(
        criteria: SearchCriteria, ctx: Context | None
    ) -> InterfaceSearchReport:
        if ctx:
            await ctx.info(f"Searching YApi: {_describe_condition(criteria)}")

        client = await get_client()
        cache = await get_cache()
        try:
            result = await execute_interface_search(client, cache, criteria)
        except YApiError as e:
            logger.error(f"Interface search failed: {e}")
            raise ToolError(f"Interface search failed: {e}") from e

        report = format_search_report(
            result, _describe_condition(criteria), criteria.project_keyword
        )
        return InterfaceSearchReport(report=report, total=result.total, list=result.list)

    def build_criteria(**values: object) -> SearchCriteria:
        try:
            return SearchCriteria.model_validate(values)
        except pydantic.ValidationError as e:
            raise ToolError(f"Invalid search parameters: {e}") from e

    @mcp.tool
    async def search_by_name(
        name_keyword: str,
        project_keyword: str | None = None,
        limit: int | None = None,
        page: int = 1,
        ctx: Context | None = None,
    ) -> InterfaceSearchReport:
        """Search interfaces by title across the configured YApi projects.

        PURPOSE: Find interfaces when you know (part of) their name

        WHEN TO USE:
        - "Where is the login endpoint?" → name_keyword="login"
        - Narrow to one project → project_keyword="user-center"

        WHEN NOT TO USE:
        - You know the URL path → use search_by_path()
        - Several keywords or tags at once → use search_apis()

        Args:
            name_keyword: Case-insensitive substring of the interface title
            project_keyword: Optional substring of project name, description or ID
            limit: Maximum number of results (default 20)
            page: Result page, starting at 1
            ctx: FastMCP Context

        Returns:
            InterfaceSearchReport with a Markdown report, total and the result list
        """
        criteria = build_criteria(
            name_keywords=[name_keyword],
            project_keyword=project_keyword,
            limit=limit or settings.search_limit,
            page=page,
            max_projects=settings.max_projects,
        )
        return await run_search(criteria, ctx)

    @mcp.tool
    async def search_by_path(
        path_keyword: str,
        project_keyword: str | None = None,
        limit: int | None = None,
        page: int = 1,
        ctx: Context | None = None,
    ) -> InterfaceSearchReport:
        """Search interfaces by request path across the configured YApi projects.

        PURPOSE: Find the documentation behind a URL

        WHEN TO USE:
        - "What does /api/user/login return?" → path_keyword="/user/login"

        WHEN NOT TO USE:
        - You only know the interface's name → use search_by_name()

        Args:
            path_keyword: Case-insensitive substring of the request path
            project_keyword: Optional substring of project name, description or ID
            limit: Maximum number of results (default 20)
            page: Result page, starting at 1
            ctx: FastMCP Context

        Returns:
            InterfaceSearchReport with a Markdown report, total and the result list
        """
        criteria = build_criteria(
            path_keywords=[path_keyword],
            project_keyword=project_keyword,
            limit=limit or settings.search_limit,
            page=page,
            max_projects=settings.max_projects,
        )
        return await run_search(criteria, ctx)

    @mcp.tool
    async def search_apis(  # noqa: PLR0913
        name_keywords: list[str] | None = None,
        path_keywords: list[str] | None = None,
        tag_keywords: list[str] | None = None,
        project_keyword: str | None = None,
        page: int = 1,
        limit: int | None = None,
        max_projects: int | None = None,
        ctx: Context | None = None,
    ) -> InterfaceSearchReport:
        """Search interfaces with several name, path and tag keywords.

        PURPOSE: Broad searches combining keyword classes

        Every combination of one name, one path and one tag keyword is tried;
        an interface matches a combination when all of its keywords match.
        Results from all combinations are merged and deduplicated.

        WHEN TO USE:
        - Synonyms: name_keywords=["login", "sign in"]
        - Name and path together: name_keywords=["user"], path_keywords=["/v2/"]
        - By tag: tag_keywords=["deprecated"]

        Args:
            name_keywords: Title substrings
            path_keywords: Path substrings
            tag_keywords: Tag substrings
            project_keyword: Optional substring of project name, description or ID
            page: Result page, starting at 1
            limit: Results per page (default 20)
            max_projects: Maximum number of projects to scan (default 5)
            ctx: FastMCP Context

        Returns:
            InterfaceSearchReport with a Markdown report, total and the result list
        """
        criteria = build_criteria(
            name_keywords=name_keywords or [],
            path_keywords=path_keywords or [],
            tag_keywords=tag_keywords or [],
            project_keyword=project_keyword,
            page=page,
            limit=limit or settings.search_limit,
            max_projects=max_projects or settings.max_projects,
        )
        return await run_search(criteria, ctx)

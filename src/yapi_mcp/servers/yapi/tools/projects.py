"""Project and category tools for YApi."""

import asyncio
from collections.abc import Awaitable
from datetime import datetime
import logging
from typing import Protocol

from fastmcp import Context, FastMCP
from fastmcp.exceptions import ToolError

from yapi_mcp.schemas.yapi.models import CategoryInfo
from yapi_mcp.schemas.yapi.responses import (
    CacheStatus,
    CategoryListing,
    CategorySummary,
    InterfaceBrief,
    ProjectSummary,
)
from yapi_mcp.servers.yapi.utils.cache import MetadataCache
from yapi_mcp.utils.yapi import YApiClient, YApiError

logger = logging.getLogger(__name__)


class ClientGetter(Protocol):
    """Protocol for async client getter function."""

    def __call__(self) -> Awaitable[YApiClient]: ...


class CacheGetter(Protocol):
    """Protocol for async cache getter function."""

    def __call__(self) -> Awaitable[MetadataCache]: ...


def _iso(epoch: int | None) -> str | None:
    if not epoch:
        return None
    return datetime.fromtimestamp(epoch).isoformat(timespec="seconds")


async def _summarize_category(
    client: YApiClient, project_id: str, category: CategoryInfo
) -> CategorySummary:
    summary = CategorySummary(
        id=category.id,
        name=category.name,
        desc=category.desc or "",
        created=_iso(category.add_time),
        updated=_iso(category.up_time),
    )
    try:
        apis = await client.get_category_apis(project_id, category.id)
    except YApiError as e:
        logger.warning(
            f"Failed to list interfaces of category {category.id} "
            f"in project {project_id}: {e}"
        )
        summary.error = str(e)
        return summary

    summary.interfaces = [
        InterfaceBrief(id=api.id, title=api.title, path=api.path, method=api.method)
        for api in apis
    ]
    return summary


def register_project_tools(
    mcp: FastMCP,
    get_client: ClientGetter,
    get_cache: CacheGetter,
) -> None:
    """Register project tools on the given MCP server.

    Args:
        mcp: The FastMCP server instance to register tools on
        get_client: Async function that returns a YApiClient
        get_cache: Async function that returns the MetadataCache
    """

    @mcp.tool
    async def list_projects(ctx: Context | None = None) -> list[ProjectSummary]:
        """List the YApi projects this server has tokens for.

        PURPOSE: Overview of searchable projects and their IDs

        WHEN TO USE:
        - Start of a session → which projects exist?
        - Need a project_id for get_categories() or save_api()

        Returns:
            List of ProjectSummary objects (id, name, desc, basepath)
        """
        cache = await get_cache()
        try:
            await cache.ensure_loaded()
        except YApiError as e:
            raise ToolError(f"Failed to load projects: {e}") from e

        if not cache.projects:
            raise ToolError(
                "No projects available. Check YAPI_BASE_URL and the project tokens "
                "in YAPI_TOKEN (format: projectId:token,projectId:token)."
            )

        if ctx:
            await ctx.info(f"{len(cache.projects)} project(s) configured")

        return [
            ProjectSummary(
                id=project_id,
                name=project.name,
                desc=project.desc or "",
                basepath=project.basepath or "/",
                group_id=project.group_id,
            )
            for project_id, project in cache.projects.items()
        ]

    @mcp.tool
    async def get_categories(
        project_id: str,
        ctx: Context | None = None,
    ) -> CategoryListing:
        """List the interface categories of a project with their interfaces.

        PURPOSE: Browse a project's structure; find the catid for save_api()

        WHEN TO USE:
        - "Which interfaces does the user module have?"
        - Before save_api() → pick the category to put the interface in

        WHEN NOT TO USE:
        - Looking for a specific interface → use search_by_name()

        Args:
            project_id: YApi project ID (see list_projects())
            ctx: FastMCP Context

        Returns:
            CategoryListing; categories whose interfaces failed to load
            carry an error message instead
        """
        client = await get_client()
        cache = await get_cache()
        try:
            await cache.ensure_loaded()
        except YApiError as e:
            raise ToolError(f"Failed to load projects: {e}") from e

        project = cache.projects.get(project_id)
        if project is None:
            raise ToolError(
                f"Project {project_id} not found. "
                "Use list_projects() to see the configured projects."
            )

        if ctx:
            await ctx.info(f"Loading categories of project '{project.name}'")

        try:
            categories = await cache.get_categories(project_id)
        except YApiError as e:
            raise ToolError(f"Failed to load categories of project {project_id}: {e}") from e

        summaries = await asyncio.gather(
            *(_summarize_category(client, project_id, c) for c in categories)
        )
        return CategoryListing(
            project_id=project_id,
            project_name=project.name,
            categories=list(summaries),
        )

    @mcp.tool
    async def refresh_cache(ctx: Context | None = None) -> CacheStatus:
        """Reload project and category metadata from YApi.

        PURPOSE: Pick up new projects or categories without restarting

        WHEN TO USE:
        - A project or category was just created in YApi
        - list_projects() shows stale names

        Returns:
            CacheStatus after the refresh
        """
        if ctx:
            await ctx.info("Refreshing YApi metadata cache")

        cache = await get_cache()
        try:
            await cache.refresh_all()
        except YApiError as e:
            raise ToolError(f"Cache refresh failed: {e}") from e
        return cache.status()

"""Interface detail and save tools for YApi."""

from collections.abc import Awaitable
import logging
from typing import Protocol

from fastmcp import Context, FastMCP
from fastmcp.exceptions import ToolError

from yapi_mcp.schemas.yapi.responses import ApiDescription, SaveApiResult
from yapi_mcp.servers.yapi.utils.interfaces import (
    build_save_request,
    describe_interface,
    save_interface,
)
from yapi_mcp.utils.yapi import ValidationError, YApiClient, YApiError

logger = logging.getLogger(__name__)


class ClientGetter(Protocol):
    """Protocol for async client getter function."""

    def __call__(self) -> Awaitable[YApiClient]: ...


def register_interface_tools(
    mcp: FastMCP,
    get_client: ClientGetter,
) -> None:
    """Register interface tools on the given MCP server.

    Args:
        mcp: The FastMCP server instance to register tools on
        get_client: Async function that returns a YApiClient
    """

    @mcp.tool
    async def get_api_desc(
        project_id: str,
        api_id: str,
        ctx: Context | None = None,
    ) -> ApiDescription:
        """Get the full definition of one YApi interface.

        PURPOSE: Read request parameters, response body and docs of an interface

        WHEN TO USE:
        - After a search → look at a specific interface
        - User pastes a YApi link like /project/28/interface/api/66
          (project_id = 28, api_id = 66)

        WHEN NOT TO USE:
        - To find interfaces by keyword → use search_by_name() / search_by_path()

        Args:
            project_id: YApi project ID
            api_id: YApi interface ID
            ctx: FastMCP Context

        Returns:
            ApiDescription with basic_info, request, response and docs sections
        """
        if ctx:
            await ctx.info(f"Fetching interface {api_id} of project {project_id}")

        client = await get_client()
        try:
            api = await client.get_interface(project_id, api_id)
        except YApiError as e:
            logger.error(f"Failed to fetch interface {api_id}: {e}")
            raise ToolError(f"Failed to fetch interface {api_id}: {e}") from e

        logger.info(f"Fetched interface {api.id}: {api.title}")
        return describe_interface(api)

    @mcp.tool
    async def save_api(  # noqa: PLR0913
        project_id: str,
        catid: str,
        title: str,
        path: str,
        method: str,
        id: str | None = None,  # noqa: A002
        status: str | None = None,
        tag: str | None = None,
        req_params: str | None = None,
        req_query: str | None = None,
        req_headers: str | None = None,
        req_body_type: str | None = None,
        req_body_form: str | None = None,
        req_body_other: str | None = None,
        req_body_is_json_schema: bool | None = None,
        res_body_type: str | None = None,
        res_body: str | None = None,
        res_body_is_json_schema: bool | None = None,
        switch_notice: bool | None = None,
        api_opened: bool | None = None,
        desc: str | None = None,
        markdown: str | None = None,
        ctx: Context | None = None,
    ) -> SaveApiResult:
        """Create or update a YApi interface.

        PURPOSE: Write interface documentation back to YApi

        WHEN TO USE:
        - Document a new endpoint (omit id)
        - Change an existing interface (pass its id)

        Args:
            project_id: YApi project ID
            catid: Category ID the interface belongs to
            title: Interface title
            path: Request path, e.g. "/api/user"
            method: HTTP method (GET, POST, PUT, DELETE, ...)
            id: Interface ID; omit to create, set to update
            status: "done" or "undone" (default "undone")
            tag: JSON array of tags, e.g. '["user", "v2"]'
            req_params: JSON array of path params, e.g. '[{"name": "id", "desc": "User ID"}]'
            req_query: JSON array of query params, e.g. '[{"name": "page", "required": "1"}]'
            req_headers: JSON array of headers, e.g. '[{"name": "Content-Type", "value": "application/json"}]'
            req_body_type: Request body type: form, json, file or raw
            req_body_form: JSON array of form fields
            req_body_other: Raw request body (usually JSON or JSON schema)
            req_body_is_json_schema: Whether req_body_other is a JSON schema
            res_body_type: Response body type: json or raw
            res_body: Response body (JSON schema if res_body_is_json_schema)
            res_body_is_json_schema: Whether res_body is a JSON schema
            switch_notice: Notify project members about the change
            api_opened: Publish the interface in the open API docs
            desc: Description
            markdown: Description as Markdown
            ctx: FastMCP Context

        Returns:
            SaveApiResult with the interface ID and a summary
        """
        try:
            request = build_save_request(
                project_id=project_id,
                catid=catid,
                id=id,
                title=title,
                path=path,
                method=method,
                status=status,
                tag=tag,
                req_params=req_params,
                req_query=req_query,
                req_headers=req_headers,
                req_body_type=req_body_type,
                req_body_form=req_body_form,
                req_body_other=req_body_other,
                req_body_is_json_schema=req_body_is_json_schema,
                res_body_type=res_body_type,
                res_body=res_body,
                res_body_is_json_schema=res_body_is_json_schema,
                switch_notice=switch_notice,
                api_opened=api_opened,
                desc=desc,
                markdown=markdown,
            )
        except ValidationError as e:
            raise ToolError(str(e)) from e

        if ctx:
            action = "Updating" if request.is_update else "Creating"
            await ctx.info(f"{action} interface '{title}' in project {project_id}")

        client = await get_client()
        try:
            return await save_interface(client, request)
        except YApiError as e:
            logger.error(f"Failed to save interface '{title}': {e}")
            raise ToolError(f"Failed to save interface: {e}") from e

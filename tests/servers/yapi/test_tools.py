"""Tests for the YApi MCP tools, called through an in-memory FastMCP client."""

from fastmcp import Client, FastMCP
from fastmcp.exceptions import ToolError
import pytest

from yapi_mcp.servers.yapi.tools.interfaces import register_interface_tools
from yapi_mcp.servers.yapi.tools.projects import register_project_tools
from yapi_mcp.servers.yapi.tools.search import register_search_tools
from yapi_mcp.servers.yapi.utils.cache import MetadataCache


@pytest.fixture
def cache(yapi_client, tmp_path):
    return MetadataCache(yapi_client, tmp_path / "cache.json", ttl_minutes=10)


@pytest.fixture
def server(yapi_client, cache):
    mcp = FastMCP("YApi Test Server")

    async def get_client():
        return yapi_client

    async def get_cache():
        return cache

    register_project_tools(mcp, get_client, get_cache)
    register_search_tools(mcp, get_client, get_cache)
    register_interface_tools(mcp, get_client)
    return mcp


@pytest.mark.asyncio
async def test_all_tools_are_registered(server):
    async with Client(server) as client:
        tools = {tool.name for tool in await client.list_tools()}

    assert tools == {
        "list_projects",
        "get_categories",
        "refresh_cache",
        "search_by_name",
        "search_by_path",
        "search_apis",
        "get_api_desc",
        "save_api",
    }


class TestProjectTools:
    @pytest.mark.asyncio
    async def test_list_projects(self, server):
        async with Client(server) as client:
            result = await client.call_tool("list_projects", {})

        projects = result.structured_content["result"]
        assert [p["id"] for p in projects] == ["10", "20"]
        assert projects[0]["name"] == "User Center"
        assert projects[0]["basepath"] == "/api"

    @pytest.mark.asyncio
    async def test_list_projects_without_any_project_fails(self, server, fake_yapi):
        fake_yapi.failing.update({"10", "20"})

        async with Client(server) as client:
            with pytest.raises(ToolError, match="No projects available"):
                await client.call_tool("list_projects", {})

    @pytest.mark.asyncio
    async def test_get_categories_with_interfaces(self, server):
        async with Client(server) as client:
            result = await client.call_tool("get_categories", {"project_id": "10"})

        listing = result.structured_content
        assert listing["project_name"] == "User Center"
        assert [c["name"] for c in listing["categories"]] == ["Auth", "Profile"]
        auth = listing["categories"][0]
        assert [i["id"] for i in auth["interfaces"]] == [9, 5, 7]
        assert auth["error"] is None
        assert auth["created"] is not None

    @pytest.mark.asyncio
    async def test_get_categories_reports_failed_category(self, server, fake_yapi):
        fake_yapi.failing_categories.add(102)

        async with Client(server) as client:
            result = await client.call_tool("get_categories", {"project_id": "10"})

        auth, profile = result.structured_content["categories"]
        assert len(auth["interfaces"]) == 3
        assert profile["interfaces"] == []
        assert "boom" in profile["error"]

    @pytest.mark.asyncio
    async def test_get_categories_unknown_project(self, server):
        async with Client(server) as client:
            with pytest.raises(ToolError, match="Project 99 not found"):
                await client.call_tool("get_categories", {"project_id": "99"})

    @pytest.mark.asyncio
    async def test_refresh_cache(self, server):
        async with Client(server) as client:
            result = await client.call_tool("refresh_cache", {})

        status = result.structured_content
        assert status["projects"] == 2
        assert status["category_lists"] == 2
        assert status["expired"] is False


class TestSearchTools:
    @pytest.mark.asyncio
    async def test_search_by_name(self, server):
        async with Client(server) as client:
            result = await client.call_tool("search_by_name", {"name_keyword": "login"})

        report = result.structured_content
        assert report["total"] == 2
        assert [i["id"] for i in report["list"]] == [9, 5]
        assert "## Project: User Center (2 interface(s))" in report["report"]

    @pytest.mark.asyncio
    async def test_search_by_path_with_project_keyword(self, server):
        async with Client(server) as client:
            result = await client.call_tool(
                "search_by_path",
                {"path_keyword": "/api/", "project_keyword": "order"},
            )

        assert [i["id"] for i in result.structured_content["list"]] == [21]

    @pytest.mark.asyncio
    async def test_search_apis_combines_keywords(self, server):
        async with Client(server) as client:
            result = await client.call_tool(
                "search_apis",
                {"name_keywords": ["login", "logout"], "tag_keywords": ["auth"], "limit": 1},
            )

        report = result.structured_content
        assert report["total"] == 2
        assert [i["id"] for i in report["list"]] == [9]

    @pytest.mark.asyncio
    async def test_invalid_page_is_rejected(self, server):
        async with Client(server) as client:
            with pytest.raises(ToolError, match="Invalid search parameters"):
                await client.call_tool("search_by_name", {"name_keyword": "x", "page": 0})


class TestInterfaceTools:
    @pytest.mark.asyncio
    async def test_get_api_desc(self, server, fake_yapi):
        fake_yapi.interfaces["9"] = {
            "_id": 9,
            "title": "User Login",
            "path": "/api/user/login",
            "method": "POST",
            "req_body_other": '{"type": "object"}',
            "markdown": "Log a user in",
        }

        async with Client(server) as client:
            result = await client.call_tool(
                "get_api_desc", {"project_id": "10", "api_id": "9"}
            )

        description = result.structured_content
        assert description["basic_info"]["title"] == "User Login"
        assert description["request"]["body_json"] == '{"type": "object"}'
        assert description["docs"]["markdown"] == "Log a user in"

    @pytest.mark.asyncio
    async def test_get_api_desc_not_found(self, server):
        async with Client(server) as client:
            with pytest.raises(ToolError, match="not found"):
                await client.call_tool("get_api_desc", {"project_id": "10", "api_id": "404"})

    @pytest.mark.asyncio
    async def test_save_api_creates(self, server, fake_yapi):
        async with Client(server) as client:
            result = await client.call_tool(
                "save_api",
                {
                    "project_id": "20",
                    "catid": "201",
                    "title": "Cancel Order",
                    "path": "/api/order/cancel",
                    "method": "post",
                    "tag": '["orders"]',
                },
            )

        saved = result.structured_content
        assert saved["action"] == "created"
        assert saved["id"] == 999
        kind, body = fake_yapi.saved[0]
        assert kind == "add"
        assert body["method"] == "POST"
        assert body["tag"] == ["orders"]
        assert body["token"] == "def"

    @pytest.mark.asyncio
    async def test_save_api_rejects_malformed_field(self, server, fake_yapi):
        async with Client(server) as client:
            with pytest.raises(ToolError, match="req_query"):
                await client.call_tool(
                    "save_api",
                    {
                        "project_id": "10",
                        "catid": "101",
                        "id": "9",
                        "title": "User Login",
                        "path": "/api/user/login",
                        "method": "POST",
                        "req_query": "not json",
                    },
                )

        assert fake_yapi.saved == []

    @pytest.mark.asyncio
    async def test_remote_failure_becomes_tool_error(self, server, fake_yapi):
        fake_yapi.failing.add("10")

        async with Client(server) as client:
            with pytest.raises(ToolError, match="40011"):
                await client.call_tool("get_api_desc", {"project_id": "10", "api_id": "9"})

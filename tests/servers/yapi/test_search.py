"""Tests for cross-project interface search."""

import pytest

from yapi_mcp.schemas.yapi.models import (
    ApiSearchResultItem,
    ProjectInfo,
    SearchCriteria,
)
from yapi_mcp.servers.yapi.utils.cache import MetadataCache
from yapi_mcp.servers.yapi.utils.search import (
    KeywordCombination,
    deduplicate,
    execute_interface_search,
    filter_interfaces,
    flatten_menu,
    keyword_combinations,
    select_projects,
)


@pytest.fixture
def cache(yapi_client, tmp_path):
    return MetadataCache(yapi_client, tmp_path / "cache.json", ttl_minutes=10)


def item(api_id, title="", path="", tag=None):
    return ApiSearchResultItem(id=api_id, title=title, path=path, tag=tag or [])


class TestKeywordCombinations:
    def test_no_keywords_yield_one_unfiltered_combination(self):
        assert list(keyword_combinations(SearchCriteria())) == [KeywordCombination()]

    def test_cross_product(self):
        criteria = SearchCriteria(
            name_keywords=["login", "logout"], path_keywords=["/user"]
        )

        assert list(keyword_combinations(criteria)) == [
            KeywordCombination(name="login", path="/user"),
            KeywordCombination(name="logout", path="/user"),
        ]

    def test_blank_keywords_are_dropped(self):
        criteria = SearchCriteria(name_keywords=["  ", "login "])

        assert criteria.name_keywords == ["login"]


class TestSelectProjects:
    projects = {
        "10": ProjectInfo(id=10, name="User Center", desc="accounts and login"),
        "20": ProjectInfo(id=20, name="Order Service", desc="orders"),
        "30": ProjectInfo(id=30, name="Payments", desc=None),
    }

    def test_no_keyword_selects_all_in_order(self):
        selected = select_projects(self.projects, None, max_projects=5)

        assert [pid for pid, _ in selected] == ["10", "20", "30"]

    def test_matches_name_case_insensitively(self):
        selected = select_projects(self.projects, "order", max_projects=5)

        assert [pid for pid, _ in selected] == ["20"]

    def test_matches_description(self):
        selected = select_projects(self.projects, "LOGIN", max_projects=5)

        assert [pid for pid, _ in selected] == ["10"]

    def test_matches_id(self):
        selected = select_projects(self.projects, "30", max_projects=5)

        assert [pid for pid, _ in selected] == ["30"]

    def test_truncates_to_max_projects(self):
        selected = select_projects(self.projects, "", max_projects=2)

        assert [pid for pid, _ in selected] == ["10", "20"]


class TestMenuHelpers:
    def test_flatten_tags_category_and_skips_invalid(self):
        menu = [
            {
                "_id": 101,
                "name": "Auth",
                "list": [
                    {"_id": 9, "title": "User Login", "path": "/login", "method": "POST"},
                    {"title": "no id"},
                    "garbage",
                ],
            },
            {"_id": 102, "name": "Empty", "list": None},
        ]

        items = flatten_menu(menu)

        assert [i.id for i in items] == [9]
        assert items[0].catid == 101
        assert items[0].cat_name == "Auth"

    def test_filter_requires_every_keyword_of_the_combination(self):
        items = [
            item(1, "User Login", "/api/user/login", ["auth"]),
            item(2, "Admin Login", "/api/admin/login"),
        ]

        matches = filter_interfaces(
            items, KeywordCombination(name="login", path="/user", tag="AUTH")
        )

        assert [i.id for i in matches] == [1]

    def test_deduplicate_keeps_first(self):
        first = item(1, "first")
        items = [first, item(2), item(1, "second")]

        unique = deduplicate(items)

        assert [i.id for i in unique] == [1, 2]
        assert unique[0] is first


class TestInterfaceSearch:
    @pytest.mark.asyncio
    async def test_login_search_across_projects(self, yapi_client, cache):
        criteria = SearchCriteria(name_keywords=["login"])

        result = await execute_interface_search(yapi_client, cache, criteria)

        assert result.total == 2
        assert [i.id for i in result.list] == [9, 5]
        assert all(i.project_name == "User Center" for i in result.list)
        assert all(i.cat_name == "Auth" for i in result.list)
        assert all(i.project_id == 10 for i in result.list)

    @pytest.mark.asyncio
    async def test_combinations_are_merged_and_deduplicated(self, yapi_client, cache):
        criteria = SearchCriteria(name_keywords=["login", "user"])

        result = await execute_interface_search(yapi_client, cache, criteria)

        assert [i.id for i in result.list] == [9, 5]
        assert result.total == 2

    @pytest.mark.asyncio
    async def test_path_search(self, yapi_client, cache):
        criteria = SearchCriteria(path_keywords=["/api/user/"])

        result = await execute_interface_search(yapi_client, cache, criteria)

        assert [i.id for i in result.list] == [9, 7, 3]

    @pytest.mark.asyncio
    async def test_tag_search(self, yapi_client, cache):
        criteria = SearchCriteria(tag_keywords=["auth"])

        result = await execute_interface_search(yapi_client, cache, criteria)

        assert [i.id for i in result.list] == [9, 7]

    @pytest.mark.asyncio
    async def test_menu_is_fetched_once_per_project(self, yapi_client, cache, fake_yapi):
        criteria = SearchCriteria(
            name_keywords=["login", "logout", "profile"], path_keywords=["/api", "/user"]
        )

        await execute_interface_search(yapi_client, cache, criteria)

        assert fake_yapi.calls[("/api/interface/list_menu", "10")] == 1
        assert fake_yapi.calls[("/api/interface/list_menu", "20")] == 1

    @pytest.mark.asyncio
    async def test_failing_project_is_skipped(self, yapi_client, cache, fake_yapi):
        await cache.ensure_loaded()
        fake_yapi.failing.add("10")

        result = await execute_interface_search(
            yapi_client, cache, SearchCriteria(name_keywords=["list"])
        )

        assert [i.id for i in result.list] == [21]

    @pytest.mark.asyncio
    async def test_project_keyword_limits_scope(self, yapi_client, cache, fake_yapi):
        criteria = SearchCriteria(project_keyword="order")

        result = await execute_interface_search(yapi_client, cache, criteria)

        assert [i.id for i in result.list] == [21]
        assert fake_yapi.calls[("/api/interface/list_menu", "10")] == 0

    @pytest.mark.asyncio
    async def test_no_matching_project(self, yapi_client, cache):
        criteria = SearchCriteria(project_keyword="nothing-like-this")

        result = await execute_interface_search(yapi_client, cache, criteria)

        assert result.total == 0
        assert result.list == []

    @pytest.mark.asyncio
    async def test_paging(self, yapi_client, cache):
        criteria = SearchCriteria(name_keywords=["login"], page=2, limit=1)

        result = await execute_interface_search(yapi_client, cache, criteria)

        assert result.total == 2
        assert [i.id for i in result.list] == [5]

    @pytest.mark.asyncio
    async def test_page_past_the_end_is_empty(self, yapi_client, cache):
        criteria = SearchCriteria(name_keywords=["login"], page=3, limit=1)

        result = await execute_interface_search(yapi_client, cache, criteria)

        assert result.total == 2
        assert result.list == []

    @pytest.mark.asyncio
    async def test_repeated_search_is_stable(self, yapi_client, cache):
        criteria = SearchCriteria(name_keywords=["o"])

        first = await execute_interface_search(yapi_client, cache, criteria)
        second = await execute_interface_search(yapi_client, cache, criteria)

        assert first == second
        assert [i.id for i in first.list] == [21, 9, 7, 5, 3]


class TestCategoryEnrichment:
    @pytest.fixture
    def unnamed_menus(self, fake_yapi):
        for menu in fake_yapi.menus.values():
            for category in menu:
                category.pop("name")
        return fake_yapi

    @pytest.mark.asyncio
    async def test_category_name_comes_from_category_list(
        self, yapi_client, cache, unnamed_menus
    ):
        result = await execute_interface_search(
            yapi_client, cache, SearchCriteria(name_keywords=["login"])
        )

        assert [i.id for i in result.list] == [9, 5]
        assert all(i.cat_name == "Auth" for i in result.list)

    @pytest.mark.asyncio
    async def test_failed_category_lookup_keeps_result(
        self, yapi_client, cache, unnamed_menus
    ):
        unnamed_menus.failing_paths.add("/api/interface/getCatMenu")

        result = await execute_interface_search(
            yapi_client, cache, SearchCriteria(name_keywords=["user login"])
        )

        assert result.total == 1
        assert result.list[0].id == 9
        assert result.list[0].cat_name is None
        assert result.list[0].project_name == "User Center"

    @pytest.mark.asyncio
    async def test_category_list_is_fetched_once_per_project(
        self, yapi_client, cache, unnamed_menus
    ):
        await cache.ensure_loaded()
        cache.categories.clear()
        unnamed_menus.calls.clear()

        result = await execute_interface_search(
            yapi_client, cache, SearchCriteria(name_keywords=["o", "l"])
        )

        assert [i.cat_name for i in result.list] == [
            "Orders",
            "Auth",
            "Auth",
            "Auth",
            "Profile",
        ]
        assert unnamed_menus.calls[("/api/interface/getCatMenu", "10")] == 1
        assert unnamed_menus.calls[("/api/interface/getCatMenu", "20")] == 1

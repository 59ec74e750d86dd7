"""Shared fixtures: an in-process fake of the YApi open API."""

from collections import Counter
import json
from typing import Any

import httpx
import pytest

from yapi_mcp.config.yapi import YApiConfig
from yapi_mcp.utils.yapi import YApiClient

BASE_URL = "http://yapi.test"


def envelope(data: Any, errcode: int = 0, errmsg: str = "成功！") -> httpx.Response:
    return httpx.Response(200, json={"errcode": errcode, "errmsg": errmsg, "data": data})


class FakeYApi:
    """Routes YApi endpoints to in-memory data.

    Requests are attributed to a project by their token, like YApi does.
    Projects listed in ``failing`` answer every request with errcode 40011.
    Endpoints listed in ``failing_paths`` answer with HTTP 500.
    """

    def __init__(self, tokens: dict[str, str]) -> None:
        self.tokens = tokens
        self.projects: dict[str, dict[str, Any]] = {}
        self.categories: dict[str, list[dict[str, Any]]] = {}
        self.menus: dict[str, list[dict[str, Any]]] = {}
        self.interfaces: dict[str, dict[str, Any]] = {}
        self.failing: set[str] = set()
        self.failing_categories: set[int] = set()
        self.failing_paths: set[str] = set()
        self.saved: list[tuple[str, dict[str, Any]]] = []
        self.calls: Counter[tuple[str, str | None]] = Counter()

    def add_project(self, project_id: str, name: str, desc: str = "") -> None:
        self.projects[project_id] = {
            "_id": int(project_id),
            "name": name,
            "desc": desc,
            "basepath": "/api",
            "group_id": 1,
        }

    def add_category(
        self, project_id: str, cat_id: int, name: str, apis: list[dict[str, Any]]
    ) -> None:
        self.categories.setdefault(project_id, []).append(
            {
                "_id": cat_id,
                "name": name,
                "desc": f"{name} interfaces",
                "project_id": int(project_id),
                "add_time": 1700000000,
                "up_time": 1700000500,
            }
        )
        self.menus.setdefault(project_id, []).append(
            {"_id": cat_id, "name": name, "list": apis}
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            params = json.loads(request.content)
        else:
            params = dict(request.url.params)

        path = request.url.path
        project_id = self.tokens.get(params.get("token", ""))
        self.calls[(path, project_id)] += 1

        if project_id is None or project_id in self.failing:
            return envelope(None, errcode=40011, errmsg="请登录...")
        if path in self.failing_paths:
            return httpx.Response(500, json={"errcode": 500, "errmsg": "server error"})

        if path == "/api/project/get":
            return envelope(self.projects.get(project_id))
        if path == "/api/interface/getCatMenu":
            return envelope(self.categories.get(project_id, []))
        if path == "/api/interface/list_menu":
            return envelope(self.menus.get(project_id, []))
        if path == "/api/interface/get":
            return envelope(self.interfaces.get(params["id"]))
        if path == "/api/interface/list_cat":
            cat_id = int(params["catid"])
            if cat_id in self.failing_categories:
                return httpx.Response(500, json={"errcode": 500, "errmsg": "boom"})
            for category in self.menus.get(project_id, []):
                if category["_id"] == cat_id:
                    apis = category["list"]
                    return envelope({"count": len(apis), "total": 1, "list": apis})
            return envelope({"count": 0, "total": 0, "list": []})
        if path == "/api/interface/add":
            self.saved.append(("add", params))
            return envelope({"_id": 999, **params})
        if path == "/api/interface/up":
            self.saved.append(("up", params))
            return envelope({"n": 1, "nModified": 1, "ok": 1})

        return httpx.Response(404, text="not found")


def api(api_id: int, title: str, path: str, **extra: Any) -> dict[str, Any]:
    """A menu entry as returned by /api/interface/list_menu."""
    return {
        "_id": api_id,
        "title": title,
        "path": path,
        "method": extra.pop("method", "GET"),
        "status": "done",
        "tag": extra.pop("tag", []),
        "up_time": 1700001000 + api_id,
        **extra,
    }


@pytest.fixture
def fake_yapi() -> FakeYApi:
    """Two projects: 10 (user center) and 20 (order service)."""
    fake = FakeYApi(tokens={"abc": "10", "def": "20"})
    fake.add_project("10", "User Center", "accounts and login")
    fake.add_project("20", "Order Service", "orders")
    fake.add_category(
        "10",
        101,
        "Auth",
        [
            api(9, "User Login", "/api/user/login", method="POST", tag=["auth"]),
            api(5, "Admin Login", "/api/admin/login", method="POST"),
            api(7, "Logout", "/api/user/logout", method="POST", tag=["auth"]),
        ],
    )
    fake.add_category("10", 102, "Profile", [api(3, "Get Profile", "/api/user/profile")])
    fake.add_category("20", 201, "Orders", [api(21, "List Orders", "/api/order/list")])
    return fake


@pytest.fixture
def yapi_config() -> YApiConfig:
    return YApiConfig(base_url=BASE_URL, token="10:abc,20:def", timeout=5.0)


@pytest.fixture
async def yapi_client(fake_yapi: FakeYApi, yapi_config: YApiConfig):
    client = YApiClient(yapi_config, transport=httpx.MockTransport(fake_yapi.handler))
    yield client
    await client.close()

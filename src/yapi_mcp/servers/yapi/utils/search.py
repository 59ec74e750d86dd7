"""Cross-project interface search for YApi.

YApi has no endpoint that searches several projects, or several keywords,
at once. The search therefore loads each candidate project's interface menu
(``/api/interface/list_menu``) and filters it locally, once per combination
of name, path and tag keyword. Results are merged, deduplicated by interface
id and ordered newest first.
"""

import asyncio
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
import itertools
import logging
from typing import Any

import pydantic

from yapi_mcp.schemas.yapi.models import (
    ApiSearchResult,
    ApiSearchResultItem,
    CategoryInfo,
    ProjectInfo,
    SearchCriteria,
)
from yapi_mcp.servers.yapi.utils.cache import MetadataCache
from yapi_mcp.utils.yapi import YApiClient, YApiError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeywordCombination:
    """One name/path/tag keyword triple; an empty string means unfiltered."""

    name: str = ""
    path: str = ""
    tag: str = ""


def keyword_combinations(criteria: SearchCriteria) -> Iterator[KeywordCombination]:
    """Lazily yield the cross product of the name, path and tag keywords.

    A keyword class without keywords contributes a single empty placeholder,
    so criteria without any keyword yield exactly one unfiltered combination.
    """
    for name, path, tag in itertools.product(
        criteria.name_keywords or [""],
        criteria.path_keywords or [""],
        criteria.tag_keywords or [""],
    ):
        yield KeywordCombination(name=name, path=path, tag=tag)


def select_projects(
    projects: dict[str, ProjectInfo],
    project_keyword: str | None,
    max_projects: int,
) -> list[tuple[str, ProjectInfo]]:
    """Pick the projects to scan, in cache order.

    Args:
        projects: Cached projects keyed by project id
        project_keyword: Case-insensitive substring of name, description or id
        max_projects: Maximum number of projects to return

    Returns:
        List of (project_id, ProjectInfo) pairs
    """
    keyword = (project_keyword or "").strip().lower()
    selected = []
    for project_id, project in projects.items():
        if keyword and not (
            keyword in project.name.lower()
            or keyword in (project.desc or "").lower()
            or keyword in project_id.lower()
            or keyword in str(project.id)
        ):
            continue
        selected.append((project_id, project))

    if len(selected) > max_projects:
        logger.info(
            f"{len(selected)} projects match, searching only the first {max_projects}"
        )
        selected = selected[:max_projects]
    return selected


def flatten_menu(menu: Iterable[dict[str, Any]]) -> list[ApiSearchResultItem]:
    """Flatten a category -> interface menu into a list of interfaces.

    Each interface is tagged with its category's id and name. Records that
    do not validate are skipped.
    """
    interfaces: list[ApiSearchResultItem] = []
    for category in menu:
        if not isinstance(category, dict):
            continue
        apis = category.get("list")
        if not isinstance(apis, list):
            continue

        for api in apis:
            if not isinstance(api, dict):
                continue
            record = {**api, "cat_name": category.get("name")}
            if category.get("_id") is not None:
                record["catid"] = category["_id"]
            try:
                interfaces.append(ApiSearchResultItem.model_validate(record))
            except pydantic.ValidationError as e:
                logger.debug(f"Skipping malformed menu entry {api.get('_id')}: {e}")
    return interfaces


def filter_interfaces(
    interfaces: Iterable[ApiSearchResultItem], combination: KeywordCombination
) -> list[ApiSearchResultItem]:
    """Apply one keyword combination (case-insensitive substring matches)."""
    name = combination.name.lower()
    path = combination.path.lower()
    tag = combination.tag.lower()

    matches = []
    for item in interfaces:
        if name and name not in item.title.lower():
            continue
        if path and path not in item.path.lower():
            continue
        if tag and not any(tag in t.lower() for t in item.tag):
            continue
        matches.append(item)
    return matches


def deduplicate(items: Iterable[ApiSearchResultItem]) -> list[ApiSearchResultItem]:
    """Drop repeated interface ids, keeping the first occurrence."""
    seen: set[int] = set()
    unique = []
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        unique.append(item)
    return unique


class InterfaceSearch:
    """One search run. Menus and category lists are fetched at most once per project."""

    def __init__(self, client: YApiClient, cache: MetadataCache) -> None:
        self.client = client
        self.cache = cache
        self._menus: dict[str, asyncio.Future[list[ApiSearchResultItem]]] = {}
        self._categories: dict[str, asyncio.Future[list[CategoryInfo]]] = {}

    async def _project_categories(self, project_id: str) -> list[CategoryInfo]:
        if project_id not in self._categories:
            self._categories[project_id] = asyncio.ensure_future(
                self.cache.get_categories(project_id)
            )
        return await self._categories[project_id]

    async def _project_interfaces(self, project_id: str) -> list[ApiSearchResultItem]:
        if project_id not in self._menus:
            self._menus[project_id] = asyncio.ensure_future(self._load_menu(project_id))
        return await self._menus[project_id]

    async def _load_menu(self, project_id: str) -> list[ApiSearchResultItem]:
        menu = await self.client.get_interface_menu(project_id)
        return flatten_menu(menu)

    async def _enrich(
        self, item: ApiSearchResultItem, project_id: str, project: ProjectInfo
    ) -> ApiSearchResultItem:
        update: dict[str, Any] = {"project_name": project.name}
        if item.project_id is None:
            update["project_id"] = project.id

        if item.cat_name is None and item.catid is not None:
            try:
                categories = await self._project_categories(project_id)
                category = next((c for c in categories if c.id == item.catid), None)
                if category is not None:
                    update["cat_name"] = category.name
            except YApiError as e:
                logger.debug(
                    f"No category name for {item.catid} in project {project_id}: {e}"
                )

        return item.model_copy(update=update)

    async def _search_combination(
        self,
        project_id: str,
        project: ProjectInfo,
        combination: KeywordCombination,
    ) -> list[ApiSearchResultItem]:
        interfaces = await self._project_interfaces(project_id)
        matches = filter_interfaces(interfaces, combination)
        return [await self._enrich(item, project_id, project) for item in matches]

    async def run(self, criteria: SearchCriteria) -> ApiSearchResult:
        """Execute the search.

        Returns:
            ApiSearchResult with the deduplicated total and the requested page
        """
        logger.info(
            f"Searching interfaces - project: '{criteria.project_keyword or ''}', "
            f"names: {criteria.name_keywords}, paths: {criteria.path_keywords}, "
            f"tags: {criteria.tag_keywords}"
        )

        await self.cache.ensure_loaded()
        projects = select_projects(
            self.cache.projects, criteria.project_keyword, criteria.max_projects
        )
        if not projects:
            logger.info("No matching projects")
            return ApiSearchResult(total=0, list=[])

        jobs = [
            (project_id, combination)
            for project_id, project in projects
            for combination in keyword_combinations(criteria)
        ]
        project_map = dict(projects)
        results = await asyncio.gather(
            *(
                self._search_combination(project_id, project_map[project_id], combination)
                for project_id, combination in jobs
            ),
            return_exceptions=True,
        )

        merged: list[ApiSearchResultItem] = []
        for (project_id, combination), result in zip(jobs, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning(
                    f"Search in project {project_id} with {combination} failed: {result}"
                )
                continue
            merged.extend(result)

        unique = deduplicate(merged)
        unique.sort(key=lambda item: item.id, reverse=True)

        start = (criteria.page - 1) * criteria.limit
        page = unique[start : start + criteria.limit]
        logger.info(f"Found {len(unique)} interface(s), returning {len(page)}")

        return ApiSearchResult(total=len(unique), list=page)


async def execute_interface_search(
    client: YApiClient,
    cache: MetadataCache,
    criteria: SearchCriteria,
) -> ApiSearchResult:
    """Search interfaces across the cached projects.

    Args:
        client: YApiClient for menu requests
        cache: MetadataCache providing the candidate projects
        criteria: Keywords, project filter and paging

    Returns:
        ApiSearchResult with total and list
    """
    return await InterfaceSearch(client, cache).run(criteria)

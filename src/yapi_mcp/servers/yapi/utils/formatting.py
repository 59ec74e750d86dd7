"""Markdown rendering of YApi search results."""

from datetime import datetime

from yapi_mcp.schemas.yapi.models import ApiSearchResult, ApiSearchResultItem

# Groups larger than this are rendered as a table
DETAIL_THRESHOLD = 10


def format_timestamp(epoch: int | None) -> str | None:
    """Render epoch seconds as local 'YYYY-MM-DD HH:MM:SS'."""
    if not epoch:
        return None
    return datetime.fromtimestamp(epoch).strftime("%Y-%m-%d %H:%M:%S")


def group_by_project(
    items: list[ApiSearchResultItem],
) -> dict[str, tuple[str, list[ApiSearchResultItem]]]:
    """Group results by project id, keeping result order within each group.

    Returns:
        Mapping of project id to (project name, items)
    """
    groups: dict[str, tuple[str, list[ApiSearchResultItem]]] = {}
    for item in items:
        project_id = str(item.project_id)
        if project_id not in groups:
            name = item.project_name or f"Unknown project ({project_id})"
            groups[project_id] = (name, [])
        groups[project_id][1].append(item)
    return groups


def format_search_report(
    result: ApiSearchResult,
    condition: str,
    project_keyword: str | None = None,
) -> str:
    """Format search results as a Markdown report grouped by project.

    Args:
        result: Search result page
        condition: Human-readable description of the keyword filter
        project_keyword: Project filter, if any

    Returns:
        Markdown string
    """
    parts = [
        f"Found {result.total} matching interface(s) (showing {len(result.list)})\n",
        "Search criteria:",
        f"- {condition}",
    ]
    if project_keyword:
        parts.append(f"- Project keyword: {project_keyword}")
    parts.append("")

    for project_name, items in group_by_project(result.list).values():
        parts.append(f"## Project: {project_name} ({len(items)} interface(s))\n")

        if len(items) <= DETAIL_THRESHOLD:
            for item in items:
                parts.append(f"### {item.title} ({item.method} {item.path})\n")
                parts.append(f"- Interface ID: {item.id}")
                parts.append(f"- Category: {item.cat_name or 'Unknown category'}")
                updated = format_timestamp(item.up_time)
                if updated:
                    parts.append(f"- Updated: {updated}")
                parts.append("")
        else:
            parts.append("| ID | Title | Method | Path | Category |")
            parts.append("| -- | ----- | ------ | ---- | -------- |")
            for item in items:
                parts.append(
                    f"| {item.id} | {item.title} | {item.method} | {item.path} "
                    f"| {item.cat_name or 'Unknown category'} |"
                )
            parts.append("")

    parts.append(
        "Hint: use `yapi_get_api_desc` with the project ID and interface ID "
        "for the full definition."
    )
    return "\n".join(parts)

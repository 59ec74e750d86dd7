"""Response schemas for the YApi tools."""

from typing import Any

from pydantic import BaseModel, Field

from yapi_mcp.schemas.yapi.models import ApiItemList


class ApiBasicInfo(BaseModel):
    """Identity of an interface."""

    id: int = Field(description="Interface ID")
    title: str = Field(description="Interface title")
    path: str = Field(description="Request path")
    method: str = Field(description="HTTP method")
    desc: str | None = Field(default=None, description="Description (HTML)")


class ApiRequestParams(BaseModel):
    """Request side of an interface."""

    path_params: list[dict[str, Any]] = Field(default_factory=list)
    query_params: list[dict[str, Any]] = Field(default_factory=list)
    headers: list[dict[str, Any]] = Field(default_factory=list)
    body_type: str | None = None
    body_form: list[dict[str, Any]] = Field(default_factory=list)
    body_json: str | None = Field(
        default=None, description="Raw JSON body or JSON schema"
    )


class ApiResponseInfo(BaseModel):
    """Response side of an interface."""

    body_type: str | None = None
    body: str | None = Field(default=None, description="Response body or JSON schema")


class ApiDocs(BaseModel):
    """Free-form documentation."""

    markdown: str | None = None


class ApiDescription(BaseModel):
    """Interface detail grouped into sections."""

    basic_info: ApiBasicInfo
    request: ApiRequestParams
    response: ApiResponseInfo
    docs: ApiDocs


class SaveApiResult(BaseModel):
    """Outcome of creating or updating an interface."""

    id: int | str = Field(description="ID of the created or updated interface")
    action: str = Field(description="'created' or 'updated'")
    title: str
    method: str
    path: str
    message: str = Field(description="Human-readable summary")


class InterfaceSearchReport(BaseModel):
    """Search results plus a Markdown report grouped by project."""

    report: str = Field(description="Markdown report grouped by project")
    total: int = Field(description="Number of distinct matches")
    list: ApiItemList = Field(
        default_factory=lambda: [], description="Matches on the requested page"
    )


class ProjectSummary(BaseModel):
    """A cached project as listed by list_projects."""

    id: str = Field(description="Project ID (use for other tools)")
    name: str
    desc: str = Field(default="", description="Project description")
    basepath: str = Field(default="/", description="Base path")
    group_id: int | None = None


class InterfaceBrief(BaseModel):
    """Minimal interface reference inside a category."""

    id: int
    title: str
    path: str
    method: str


class CategorySummary(BaseModel):
    """A category with its interfaces."""

    id: int
    name: str
    desc: str = ""
    created: str | None = Field(default=None, description="Creation time (ISO 8601)")
    updated: str | None = Field(default=None, description="Last update (ISO 8601)")
    interfaces: list[InterfaceBrief] = Field(default_factory=list)
    error: str | None = Field(
        default=None, description="Set when the interface list could not be loaded"
    )


class CategoryListing(BaseModel):
    """All categories of one project."""

    project_id: str
    project_name: str
    categories: list[CategorySummary] = Field(default_factory=list)


class CacheStatus(BaseModel):
    """State of the project metadata cache."""

    projects: int = Field(description="Number of cached projects")
    category_lists: int = Field(description="Number of cached category lists")
    last_refreshed: str | None = Field(
        default=None, description="Time of the last successful refresh (ISO 8601)"
    )
    expired: bool = Field(description="Whether the cache is past its TTL")

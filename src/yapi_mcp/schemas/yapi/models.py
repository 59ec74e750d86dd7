"""Schemas for YApi records.

YApi names its primary keys ``_id``. The models expose them as ``id`` and
accept either spelling on input, so records round-trip through the snapshot
file unchanged.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

_ID = AliasChoices("_id", "id")


class ProjectInfo(BaseModel):
    """A YApi project."""

    model_config = ConfigDict(extra="ignore")

    id: int = Field(validation_alias=_ID, description="Project ID")
    name: str = Field(default="", description="Project name")
    desc: str | None = Field(default=None, description="Project description")
    basepath: str | None = Field(default=None, description="Base path of all interfaces")
    group_id: int | None = Field(default=None, description="Owning group ID")


class CategoryInfo(BaseModel):
    """An interface category within a project."""

    model_config = ConfigDict(extra="ignore")

    id: int = Field(validation_alias=_ID, description="Category ID")
    name: str = Field(default="", description="Category name")
    desc: str | None = Field(default=None, description="Category description")
    project_id: int | None = Field(default=None, description="Owning project ID")
    add_time: int | None = Field(default=None, description="Creation time (epoch seconds)")
    up_time: int | None = Field(default=None, description="Last update (epoch seconds)")


class ApiSearchResultItem(BaseModel):
    """Interface summary as listed in a project menu.

    ``project_name`` and ``cat_name`` are not part of the YApi record; the
    search joins them in.
    """

    model_config = ConfigDict(extra="ignore")

    id: int = Field(validation_alias=_ID, description="Interface ID")
    title: str = Field(default="", description="Interface title")
    path: str = Field(default="", description="Request path")
    method: str = Field(default="", description="HTTP method")
    catid: int | None = Field(default=None, description="Category ID")
    project_id: int | None = Field(default=None, description="Project ID")
    status: str | None = Field(default=None, description="done / undone")
    tag: list[str] = Field(default_factory=list, description="Interface tags")
    add_time: int | None = Field(default=None, description="Creation time (epoch seconds)")
    up_time: int | None = Field(default=None, description="Last update (epoch seconds)")
    project_name: str | None = Field(default=None, description="Owning project name")
    cat_name: str | None = Field(default=None, description="Owning category name")

    @field_validator("tag", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(t) for t in value if t is not None]


ApiItemList = list[ApiSearchResultItem]


class ApiSearchResult(BaseModel):
    """One page of search results."""

    total: int = Field(default=0, description="Number of distinct matches")
    list: ApiItemList = Field(
        default_factory=lambda: [], description="Matches on the requested page"
    )


class ApiInterface(BaseModel):
    """Full interface definition as returned by /api/interface/get."""

    model_config = ConfigDict(extra="allow")

    id: int = Field(validation_alias=_ID, description="Interface ID")
    project_id: int | None = None
    catid: int | None = None
    title: str = ""
    path: str = ""
    method: str = ""
    status: str | None = None
    desc: str | None = None
    markdown: str | None = None
    tag: list[str] = Field(default_factory=list)
    req_params: list[dict[str, Any]] = Field(default_factory=list)
    req_query: list[dict[str, Any]] = Field(default_factory=list)
    req_headers: list[dict[str, Any]] = Field(default_factory=list)
    req_body_type: str | None = None
    req_body_form: list[dict[str, Any]] = Field(default_factory=list)
    req_body_other: str | None = None
    req_body_is_json_schema: bool | None = None
    res_body_type: str | None = None
    res_body: str | None = None
    res_body_is_json_schema: bool | None = None
    add_time: int | None = None
    up_time: int | None = None

    @field_validator(
        "req_params", "req_query", "req_headers", "req_body_form", mode="before"
    )
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("tag", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> Any:
        return [] if value is None else value


class SearchCriteria(BaseModel):
    """Keyword criteria for a cross-project interface search."""

    project_keyword: str | None = Field(
        default=None, description="Substring of project name, description or ID"
    )
    name_keywords: list[str] = Field(default_factory=list)
    path_keywords: list[str] = Field(default_factory=list)
    tag_keywords: list[str] = Field(default_factory=list)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1)
    max_projects: int = Field(default=5, ge=1)

    @field_validator("name_keywords", "path_keywords", "tag_keywords", mode="before")
    @classmethod
    def _as_keyword_list(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        return [str(k).strip() for k in value if k is not None and str(k).strip()]


class SaveApiRequest(BaseModel):
    """Payload for /api/interface/add and /api/interface/up.

    Structured fields hold decoded JSON. ``None`` fields are left out of the
    submitted body.
    """

    project_id: str
    catid: str
    id: str | None = None
    title: str
    path: str
    method: str
    status: str = "undone"
    tag: list[str] = Field(default_factory=list)
    desc: str = ""
    markdown: str = ""
    req_params: list[dict[str, Any]] | None = None
    req_query: list[dict[str, Any]] | None = None
    req_headers: list[dict[str, Any]] | None = None
    req_body_type: str | None = None
    req_body_form: list[dict[str, Any]] | None = None
    req_body_other: str | None = None
    req_body_is_json_schema: bool | None = None
    res_body_type: str | None = None
    res_body: str | None = None
    res_body_is_json_schema: bool | None = None
    switch_notice: bool | None = None
    api_opened: bool | None = None

    @property
    def is_update(self) -> bool:
        return bool(self.id)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

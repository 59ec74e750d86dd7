"""HTTP client for the YApi open API.

Every YApi response is a JSON envelope::

    {"errcode": 0, "errmsg": "成功！", "data": ...}

``errcode`` 0 means success. Each request carries the token of the project
it targets; GET requests send it in the query string, POST requests in the
JSON body.

Example:
    ```python
    config = YApiConfig(base_url="http://yapi.example.com", token="28:abc")
    async with YApiClient(config) as client:
        project = await client.get_project("28")
        menu = await client.get_interface_menu("28")
    ```
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal, NoReturn, TypeVar

import httpx
import pydantic

from yapi_mcp.schemas.yapi.models import (
    ApiInterface,
    ApiSearchResultItem,
    CategoryInfo,
    ProjectInfo,
    SaveApiRequest,
)
from yapi_mcp.utils.credentials import TokenTable, parse_tokens

if TYPE_CHECKING:
    from types import TracebackType

    from yapi_mcp.config.yapi import YApiConfig

logger = logging.getLogger(__name__)

HttpMethod = Literal["GET", "POST"]
ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


class YApiError(Exception):
    """Base exception for YApi errors."""

    pass


class AuthError(YApiError):
    """No token is configured for the requested project."""

    pass


class TransportError(YApiError):
    """The request never got a response (DNS, timeout, connection reset)."""

    pass


class RemoteError(YApiError):
    """YApi answered but reported a failure."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"YApi error {status}: {message}")
        self.status = status
        self.message = message


class ValidationError(YApiError):
    """A caller-supplied field could not be decoded."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"Invalid value for '{field}': {message}")
        self.field = field
        self.message = message


class CacheError(YApiError):
    """The persisted project snapshot could not be read or written."""

    pass


class YApiClient:
    """Async HTTP client for the YApi open API.

    Can be used as a context manager or directly (then call ``close()``).
    """

    def __init__(
        self,
        config: YApiConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the YApi client.

        Args:
            config: YApiConfig with base URL, token string and timeout
            transport: Optional httpx transport (used by tests)
        """
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.tokens: TokenTable = parse_tokens(config.token)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        logger.info(
            "YApi client initialized: base_url=%s, %d project token(s), default token %s",
            self.base_url,
            len(self.tokens.tokens),
            "set" if self.tokens.default else "unset",
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-initialized HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                headers={"User-Agent": "yapi-mcp/1.0"},
                transport=self._transport,
            )
        return self._client

    @property
    def project_ids(self) -> list[str]:
        """Project ids that have their own token."""
        return self.tokens.project_ids

    async def __aenter__(self) -> YApiClient:
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _handle_http_error(
        self, error: httpx.HTTPStatusError, endpoint: str
    ) -> NoReturn:
        """Convert non-2xx responses to RemoteError."""
        status = error.response.status_code
        message = f"{endpoint}: HTTP {status}"
        try:
            body = error.response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("errmsg"):
            message = str(body["errmsg"])
        raise RemoteError(status, message) from error

    async def call(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        project_id: str | None = None,
        method: HttpMethod = "GET",
    ) -> dict[str, Any]:
        """Call a YApi endpoint and return the response envelope.

        Args:
            endpoint: Path below the base URL, e.g. "/api/project/get"
            params: Request parameters (query string for GET, JSON body for POST)
            project_id: Project whose token is used; None uses the default token
            method: "GET" or "POST"

        Returns:
            The decoded envelope with errcode, errmsg and data

        Raises:
            AuthError: When no token resolves for the project
            TransportError: When the server cannot be reached
            RemoteError: On HTTP errors or a nonzero errcode
        """
        token = self.tokens.token_for(project_id)
        if not token:
            raise AuthError(f"No token configured for project {project_id}")

        payload = {**(params or {}), "token": token}
        url = f"{self.base_url}{endpoint}"
        logger.debug("%s %s (project %s)", method, url, project_id)

        try:
            if method == "GET":
                response = await self.client.get(url, params=payload)
            else:
                response = await self.client.post(url, json=payload)
            response.raise_for_status()

        except httpx.HTTPStatusError as e:
            self._handle_http_error(e, endpoint)

        except httpx.RequestError as e:
            raise TransportError(
                f"Cannot reach YApi at {self.base_url}: {e!r}"
            ) from e

        try:
            envelope = response.json()
        except ValueError as e:
            raise RemoteError(
                response.status_code, f"{endpoint}: response is not JSON"
            ) from e

        if not isinstance(envelope, dict):
            raise RemoteError(response.status_code, f"{endpoint}: unexpected response")

        errcode = envelope.get("errcode", 0)
        if errcode != 0:
            # Non-numeric codes are still failures
            status = errcode if isinstance(errcode, int) else -1
            raise RemoteError(status, envelope.get("errmsg") or "unknown error")

        return envelope

    async def get_project(self, project_id: str) -> ProjectInfo:
        """Fetch project metadata."""
        envelope = await self.call("/api/project/get", {"id": project_id}, project_id)
        return _parse(ProjectInfo, envelope.get("data"), "/api/project/get")

    async def get_category_list(self, project_id: str) -> list[CategoryInfo]:
        """Fetch the category list of a project."""
        envelope = await self.call(
            "/api/interface/getCatMenu", {"project_id": project_id}, project_id
        )
        return [
            _parse(CategoryInfo, item, "/api/interface/getCatMenu")
            for item in envelope.get("data") or []
        ]

    async def get_interface_menu(self, project_id: str) -> list[dict[str, Any]]:
        """Fetch the full category -> interface tree of a project.

        Returns:
            Raw category dicts, each with a "list" of interface dicts
        """
        envelope = await self.call(
            "/api/interface/list_menu", {"project_id": project_id}, project_id
        )
        data = envelope.get("data") or []
        return data if isinstance(data, list) else []

    async def get_interface(self, project_id: str, api_id: str) -> ApiInterface:
        """Fetch one interface definition.

        Raises:
            RemoteError: When the interface does not exist
        """
        envelope = await self.call("/api/interface/get", {"id": api_id}, project_id)
        data = envelope.get("data")
        if not data:
            raise RemoteError(404, f"Interface {api_id} not found")
        return _parse(ApiInterface, data, "/api/interface/get")

    async def save_interface(self, request: SaveApiRequest) -> int | str:
        """Create (no id) or update (with id) an interface.

        Returns:
            ID of the created or updated interface
        """
        endpoint = "/api/interface/up" if request.is_update else "/api/interface/add"
        logger.debug(
            "%s interface '%s' in project %s",
            "Updating" if request.is_update else "Creating",
            request.title,
            request.project_id,
        )
        envelope = await self.call(
            endpoint, request.to_payload(), request.project_id, method="POST"
        )

        # /add returns the new record, /up only a write summary
        data = envelope.get("data")
        if isinstance(data, dict) and data.get("_id") is not None:
            return data["_id"]
        if request.id:
            return request.id
        raise RemoteError(0, f"{endpoint}: response carries no interface id")

    async def get_category_apis(
        self, project_id: str, cat_id: int | str, limit: int = 100
    ) -> list[ApiSearchResultItem]:
        """List the interfaces of one category (first page only)."""
        envelope = await self.call(
            "/api/interface/list_cat",
            {"project_id": project_id, "catid": cat_id, "page": 1, "limit": limit},
            project_id,
        )
        data = envelope.get("data") or {}
        return [
            _parse(ApiSearchResultItem, item, "/api/interface/list_cat")
            for item in data.get("list") or []
        ]


def _parse(model: type[ModelT], data: Any, endpoint: str) -> ModelT:
    """Validate a YApi record, reporting malformed data as RemoteError."""
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise RemoteError(0, f"{endpoint}: malformed record ({e.error_count()} errors)") from e

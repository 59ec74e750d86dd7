"""Building and reading single YApi interfaces."""

import json
import logging
from typing import Any

from yapi_mcp.schemas.yapi.models import ApiInterface, SaveApiRequest
from yapi_mcp.schemas.yapi.responses import (
    ApiBasicInfo,
    ApiDescription,
    ApiDocs,
    ApiRequestParams,
    ApiResponseInfo,
    SaveApiResult,
)
from yapi_mcp.utils.yapi import ValidationError, YApiClient

logger = logging.getLogger(__name__)

# Fields passed as JSON-encoded arrays of objects
STRUCTURED_FIELDS = ("req_params", "req_query", "req_headers", "req_body_form")


def decode_object_list(field: str, raw: str | None) -> list[dict[str, Any]] | None:
    """Decode a JSON array of objects.

    Returns:
        The decoded list, or None when ``raw`` is empty

    Raises:
        ValidationError: When ``raw`` is not a JSON array of objects
    """
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(field, f"not valid JSON ({e.msg} at position {e.pos})") from e
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        raise ValidationError(field, "expected a JSON array of objects")
    return value


def decode_tags(raw: str | None) -> list[str]:
    """Decode a JSON array of tag names.

    Raises:
        ValidationError: When ``raw`` is not a JSON array of strings
    """
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError("tag", f"not valid JSON ({e.msg} at position {e.pos})") from e
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError("tag", 'expected a JSON array of strings, e.g. ["user"]')
    return value


def build_save_request(
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
) -> SaveApiRequest:
    """Turn flat tool arguments into a validated save request.

    Structured fields are decoded one by one; the first malformed field
    aborts the build, so no partial request is ever submitted.

    Raises:
        ValidationError: Naming the first field that failed to decode
    """
    encoded = {
        "req_params": req_params,
        "req_query": req_query,
        "req_headers": req_headers,
        "req_body_form": req_body_form,
    }
    decoded = {field: decode_object_list(field, encoded[field]) for field in STRUCTURED_FIELDS}

    return SaveApiRequest(
        project_id=project_id,
        catid=catid,
        id=id or None,
        title=title,
        path=path,
        method=method.upper(),
        status=status or "undone",
        tag=decode_tags(tag),
        desc=desc or "",
        markdown=markdown or "",
        req_body_type=req_body_type or None,
        req_body_other=req_body_other or None,
        req_body_is_json_schema=req_body_is_json_schema,
        res_body_type=res_body_type or None,
        res_body=res_body or None,
        res_body_is_json_schema=res_body_is_json_schema,
        switch_notice=switch_notice,
        api_opened=api_opened,
        **decoded,
    )


async def save_interface(client: YApiClient, request: SaveApiRequest) -> SaveApiResult:
    """Create or update an interface and summarize the outcome."""
    action = "updated" if request.is_update else "created"
    interface_id = await client.save_interface(request)
    logger.info(f"Interface {interface_id} {action} in project {request.project_id}")

    return SaveApiResult(
        id=interface_id,
        action=action,
        title=request.title,
        method=request.method,
        path=request.path,
        message=(
            f"Interface {action}.\n"
            f"ID: {interface_id}\n"
            f"Title: {request.title}\n"
            f"Method: {request.method}\n"
            f"Path: {request.path}"
        ),
    )


def describe_interface(api: ApiInterface) -> ApiDescription:
    """Group an interface definition into readable sections."""
    return ApiDescription(
        basic_info=ApiBasicInfo(
            id=api.id,
            title=api.title,
            path=api.path,
            method=api.method,
            desc=api.desc,
        ),
        request=ApiRequestParams(
            path_params=api.req_params,
            query_params=api.req_query,
            headers=api.req_headers,
            body_type=api.req_body_type,
            body_form=api.req_body_form,
            body_json=api.req_body_other,
        ),
        response=ApiResponseInfo(
            body_type=api.res_body_type,
            body=api.res_body,
        ),
        docs=ApiDocs(markdown=api.markdown),
    )

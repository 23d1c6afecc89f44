"""Tree API endpoints.

Exposes the tree query, folder lookup and the three folder mutations.
Query errors fail the request with a status code; mutations always answer
with an operation envelope.
"""

import json
from typing import Any

from aiohttp import web

from doctree.app_keys import default_site_key, mutations_key, queries_key
from doctree.core.errors import (
    ERR_INVALID_DEPTH,
    ERR_INVALID_LIMIT,
    ERR_INVALID_OFFSET,
    NotFoundError,
    TreeError,
    ValidationError,
)
from doctree.core.items import OperationResult
from doctree.core.query import DEFAULT_LIMIT, TreeQuery


def create_tree_routes() -> list[web.RouteDef]:
    return [
        web.get("/api/tree", get_tree),
        web.get("/api/folders/{id}", get_folder),
        web.post("/api/folders", create_folder),
        web.patch("/api/folders/{id}", rename_folder),
        web.delete("/api/folders/{id}", delete_folder),
    ]


async def get_tree(request: web.Request) -> web.Response:
    params = request.query
    try:
        query = TreeQuery(
            site_id=params.get("siteId") or request.app[default_site_key],
            offset=_int_param(params, "offset", 0, ERR_INVALID_OFFSET),
            limit=_int_param(params, "limit", DEFAULT_LIMIT, ERR_INVALID_LIMIT),
            depth=_int_param(params, "depth", 0, ERR_INVALID_DEPTH),
            order_by=params.get("orderBy", "title"),
            order_by_direction=params.get("orderByDirection", "asc").lower(),
            parent_id=params.get("parentId") or None,
            parent_path=params.get("parentPath") or None,
            types=tuple(t for t in params.get("types", "").split(",") if t),
            include_ancestors=params.get("includeAncestors", "").lower() in ("1", "true", "yes"),
        )
        items = await request.app[queries_key].tree(query)
    except TreeError as e:
        return _error_response(e)
    return web.json_response({"items": [item.to_dict() for item in items]})


async def get_folder(request: web.Request) -> web.Response:
    folder_id = request.match_info["id"]
    try:
        item = await request.app[queries_key].folder_by_id(folder_id)
    except TreeError as e:
        return _error_response(e)
    return web.json_response(item.to_dict())


async def create_folder(request: web.Request) -> web.Response:
    body = await _json_body(request)
    parent_id = body.get("parentId")
    if parent_id is not None and not isinstance(parent_id, str):
        raise _bad_request("parentId must be a string")

    result = await request.app[mutations_key].create_folder(
        site_id=_string_field(body, "siteId") or request.app[default_site_key],
        parent_id=parent_id or None,
        path_name=_string_field(body, "pathName"),
        title=_string_field(body, "title"),
    )
    return _operation_response(result)


async def rename_folder(request: web.Request) -> web.Response:
    body = await _json_body(request)
    result = await request.app[mutations_key].rename_folder(
        folder_id=request.match_info["id"],
        path_name=_string_field(body, "pathName"),
        title=_string_field(body, "title"),
    )
    return _operation_response(result)


async def delete_folder(request: web.Request) -> web.Response:
    result = await request.app[mutations_key].delete_folder(request.match_info["id"])
    return _operation_response(result)


def _int_param(params: Any, name: str, default: int, code: str) -> int:
    raw = params.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValidationError(code, f"{name} must be an integer") from e


async def _json_body(request: web.Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except json.JSONDecodeError as e:
        raise _bad_request("Invalid JSON body") from e
    if not isinstance(body, dict):
        raise _bad_request("JSON body must be an object")
    return body


def _string_field(body: dict[str, Any], name: str) -> str:
    value = body.get(name, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise _bad_request(f"{name} must be a string")
    return value


def _bad_request(message: str) -> web.HTTPBadRequest:
    return web.HTTPBadRequest(
        text=json.dumps({"error": message}),
        content_type="application/json",
    )


def _error_response(error: TreeError) -> web.Response:
    if isinstance(error, ValidationError):
        status = 400
    elif isinstance(error, NotFoundError):
        status = 404
    else:
        status = 500
    return web.json_response({"error": error.message, "code": error.code}, status=status)


def _operation_response(result: OperationResult) -> web.Response:
    return web.json_response({"operation": result.to_dict()})

"""
Shared query/mutation plumbing for resource operations.

Queries go through the QueryCache. Mutations invalidate their tags on
success. Failures never raise: they produce a toast (server message or a
localized fallback) and an error result, and cached data stays untouched.
"""

import logging
from typing import Any, Awaitable, Callable, Hashable, Iterable, Optional

from bloghouse.api import ApiError, ApiResponse
from bloghouse.cache import CacheTag
from bloghouse.context import AppContext

logger = logging.getLogger(__name__)


def error_result(ctx: AppContext, error: ApiError, fallback_key: str) -> dict[str, Any]:
    """Toast and describe a failed call."""
    if error.is_network_error:
        message = ctx.t("network.error")
        code = "API_REQUEST_ERROR"
    else:
        message = error.message or ctx.t(fallback_key)
        code = "API_HTTP_ERROR"

    ctx.notifier.error(message)
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "status_code": error.status_code,
        },
    }


async def run_query(
    ctx: AppContext,
    tag: CacheTag,
    loader: Callable[[], Awaitable[Any]],
    *params: Hashable,
    error_key: str = "resource.error",
) -> dict[str, Any]:
    """Cached read. `data` holds the loader's result."""
    try:
        data = await ctx.cache.fetch(tag, loader, *params)
    except ApiError as e:
        logger.warning(f"Query {tag.value} failed: {e}")
        result = error_result(ctx, e, error_key)
        # Previous data remains visible
        result["data"] = ctx.cache.peek(tag, *params)
        return result
    return {"success": True, "data": data}


async def run_mutation(
    ctx: AppContext,
    call: Callable[[], Awaitable[ApiResponse]],
    invalidate: Iterable[CacheTag] = (),
    success_key: Optional[str] = None,
    error_key: str = "resource.error",
) -> dict[str, Any]:
    """Write. On success invalidate tags and optionally toast."""
    try:
        response = await call()
    except ApiError as e:
        logger.warning(f"Mutation failed: {e}")
        return error_result(ctx, e, error_key)

    tags = tuple(invalidate)
    if tags:
        ctx.cache.invalidate(*tags)
    if success_key:
        ctx.notifier.success(ctx.t(success_key))

    return {
        "success": True,
        "data": response.data,
        "message": response.message,
        "response": response,
    }

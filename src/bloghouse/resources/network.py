"""
Community networking: user discovery and connections.
"""

from typing import Any, Optional
from urllib.parse import quote

from bloghouse.cache import CacheTag
from bloghouse.context import AppContext
from bloghouse.resources._common import run_mutation, run_query

DISCOVER_PAGE_SIZE = 20


def discover_params(
    page: int = 1,
    search: Optional[str] = None,
    abilities: Optional[list[str]] = None,
    interests: Optional[list[str]] = None,
    availability: Optional[str] = None,
) -> dict[str, str]:
    """Query string for /api/users/discover; list filters are comma-joined."""
    params = {"page": str(page), "limit": str(DISCOVER_PAGE_SIZE)}
    if search:
        params["search"] = search
    if abilities:
        params["abilities"] = ",".join(abilities)
    if interests:
        params["interests"] = ",".join(interests)
    if availability:
        params["availability"] = availability
    return params


async def discover_users(
    ctx: AppContext,
    page: int = 1,
    search: Optional[str] = None,
    abilities: Optional[list[str]] = None,
    interests: Optional[list[str]] = None,
    availability: Optional[str] = None,
) -> dict[str, Any]:
    """Paginated user directory. `data` is the raw envelope (users + pagination)."""
    params = discover_params(page, search, abilities, interests, availability)

    async def load():
        response = await ctx.api.get("/api/users/discover", params=params)
        return response.model_dump()

    cache_params = tuple(sorted(params.items()))
    return await run_query(
        ctx, CacheTag.DISCOVERY_USERS, load, cache_params, error_key="network.load_failed"
    )


async def recommended_users(ctx: AppContext) -> dict[str, Any]:
    async def load():
        response = await ctx.api.get("/api/users/discover/recommended")
        return response.data or []

    return await run_query(ctx, CacheTag.RECOMMENDED_USERS, load, error_key="network.load_failed")


async def get_user_profile(ctx: AppContext, user_id: str) -> dict[str, Any]:
    async def load():
        response = await ctx.api.get(f"/api/users/profile/{quote(user_id, safe='')}")
        return response.data

    return await run_query(ctx, CacheTag.USER_PROFILE, load, user_id, error_key="network.load_failed")


async def send_connection_request(
    ctx: AppContext,
    to_user_id: str,
    message: Optional[str] = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"toUserId": to_user_id}
    if message:
        payload["message"] = message
    return await run_mutation(
        ctx,
        lambda: ctx.api.post("/api/connections/request", json=payload),
        invalidate=[CacheTag.DISCOVERY_USERS, CacheTag.RECOMMENDED_USERS, CacheTag.USER_PROFILE],
        success_key="connection.request_sent",
        error_key="connection.request_failed",
    )


async def accept_connection(ctx: AppContext, connection_id: str) -> dict[str, Any]:
    return await run_mutation(
        ctx,
        lambda: ctx.api.put(f"/api/connections/{quote(connection_id, safe='')}/accept"),
        invalidate=[CacheTag.USER_PROFILE],
        success_key="connection.accepted",
        error_key="connection.update_failed",
    )


async def remove_connection(ctx: AppContext, connection_id: str) -> dict[str, Any]:
    return await run_mutation(
        ctx,
        lambda: ctx.api.delete(f"/api/connections/{quote(connection_id, safe='')}"),
        invalidate=[CacheTag.USER_PROFILE],
        success_key="connection.removed",
        error_key="connection.update_failed",
    )


async def block_user(ctx: AppContext, user_id: str) -> dict[str, Any]:
    return await run_mutation(
        ctx,
        lambda: ctx.api.put(f"/api/connections/{quote(user_id, safe='')}/block"),
        invalidate=[CacheTag.USER_PROFILE],
        success_key="connection.blocked",
        error_key="connection.update_failed",
    )

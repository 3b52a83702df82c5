"""
In-app notifications.

Any change to a notification invalidates both the list and the unread
counter.
"""

from typing import Any, Optional
from urllib.parse import quote

from bloghouse.cache import CacheTag
from bloghouse.context import AppContext
from bloghouse.resources._common import run_mutation, run_query

NOTIFICATIONS_PATH = "/api/notifications"
_CHANGED = (CacheTag.NOTIFICATIONS, CacheTag.UNREAD_COUNT)


async def list_notifications(
    ctx: AppContext,
    page: int = 1,
    limit: int = 20,
    unread_only: bool = False,
) -> dict[str, Any]:
    params: dict[str, Any] = {"page": page, "limit": limit}
    if unread_only:
        params["unreadOnly"] = "true"

    async def load():
        response = await ctx.api.get(NOTIFICATIONS_PATH, params=params)
        return response.data or []

    return await run_query(
        ctx, CacheTag.NOTIFICATIONS, load, page, limit, unread_only,
        error_key="notifications.load_failed",
    )


async def unread_count(ctx: AppContext) -> dict[str, Any]:
    """`data` is the number of unread notifications."""
    async def load():
        response = await ctx.api.get(f"{NOTIFICATIONS_PATH}/unread-count")
        data = response.data
        if isinstance(data, dict):
            return int(data.get("count", 0))
        return int(data or response.get("count", 0))

    return await run_query(ctx, CacheTag.UNREAD_COUNT, load, error_key="notifications.load_failed")


async def mark_read(ctx: AppContext, notification_id: str) -> dict[str, Any]:
    return await run_mutation(
        ctx,
        lambda: ctx.api.put(f"{NOTIFICATIONS_PATH}/{quote(notification_id, safe='')}/read"),
        invalidate=_CHANGED,
        error_key="notifications.update_failed",
    )


async def mark_all_read(ctx: AppContext) -> dict[str, Any]:
    return await run_mutation(
        ctx,
        lambda: ctx.api.put(f"{NOTIFICATIONS_PATH}/mark-all-read"),
        invalidate=_CHANGED,
        success_key="notifications.all_read",
        error_key="notifications.update_failed",
    )


async def delete_notification(ctx: AppContext, notification_id: str) -> dict[str, Any]:
    return await run_mutation(
        ctx,
        lambda: ctx.api.delete(f"{NOTIFICATIONS_PATH}/{quote(notification_id, safe='')}"),
        invalidate=_CHANGED,
        success_key="notifications.deleted",
        error_key="notifications.update_failed",
    )


def unread_badge(count: Optional[int]) -> str:
    """Badge text: "" for none, "99+" above 99."""
    if not count:
        return ""
    return "99+" if count > 99 else str(count)

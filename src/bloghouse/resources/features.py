"""Feature flags visible to the current user's role."""

from typing import Any, Optional
from urllib.parse import quote

from bloghouse.cache import CacheTag
from bloghouse.context import AppContext
from bloghouse.resources._common import run_query


async def list_features(ctx: AppContext) -> dict[str, Any]:
    """Active and maintenance features for the user's role."""
    async def load():
        response = await ctx.api.get("/api/features")
        return response.data or []

    return await run_query(ctx, CacheTag.FEATURES, load, error_key="features.load_failed")


async def get_feature(ctx: AppContext, code: str) -> dict[str, Any]:
    """One feature by its code (e.g. "review-generator")."""
    async def load():
        response = await ctx.api.get(f"/api/features/{quote(code, safe='')}")
        return response.data

    return await run_query(ctx, CacheTag.FEATURES, load, code, error_key="features.load_failed")


def is_feature_available(feature: Optional[dict[str, Any]]) -> bool:
    """True for an active feature; maintenance features are listed but unusable."""
    return bool(feature) and feature.get("status") == "active"

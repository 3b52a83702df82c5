"""
WordPress site registry.

Sites are cached under CacheTag.WORDPRESS_SITES; every mutation except the
connection test invalidates it.
"""

from typing import Any, Optional
from urllib.parse import quote

from bloghouse.cache import CacheTag
from bloghouse.context import AppContext
from bloghouse.resources._common import run_mutation, run_query

SITES_PATH = "/api/wordpress/sites"


def _site_path(site_id: str, action: Optional[str] = None) -> str:
    path = f"{SITES_PATH}/{quote(site_id, safe='')}"
    return f"{path}/{action}" if action else path


def site_payload(
    name: Optional[str] = None,
    url: Optional[str] = None,
    username: Optional[str] = None,
    application_password: Optional[str] = None,
    is_default: Optional[bool] = None,
) -> dict[str, Any]:
    """Request body for add/update, omitting unset fields."""
    fields = {
        "name": name,
        "url": url.rstrip("/") if url else url,
        "username": username,
        "applicationPassword": application_password,
        "isDefault": is_default,
    }
    return {k: v for k, v in fields.items() if v is not None}


async def list_sites(ctx: AppContext) -> dict[str, Any]:
    """List the user's WordPress sites."""
    async def load():
        response = await ctx.api.get(SITES_PATH)
        return response.data or []

    return await run_query(ctx, CacheTag.WORDPRESS_SITES, load, error_key="sites.load_failed")


async def add_site(
    ctx: AppContext,
    name: str,
    url: str,
    username: str,
    application_password: str,
    is_default: bool = False,
) -> dict[str, Any]:
    """Register a WordPress site (REST API application password auth)."""
    payload = site_payload(name, url, username, application_password, is_default)
    return await run_mutation(
        ctx,
        lambda: ctx.api.post(SITES_PATH, json=payload),
        invalidate=[CacheTag.WORDPRESS_SITES],
        success_key="sites.added",
        error_key="sites.save_failed",
    )


async def update_site(ctx: AppContext, site_id: str, **fields: Any) -> dict[str, Any]:
    """Update a site. Accepts the keyword arguments of site_payload."""
    payload = site_payload(**fields)
    return await run_mutation(
        ctx,
        lambda: ctx.api.put(_site_path(site_id), json=payload),
        invalidate=[CacheTag.WORDPRESS_SITES],
        success_key="sites.updated",
        error_key="sites.save_failed",
    )


async def delete_site(ctx: AppContext, site_id: str) -> dict[str, Any]:
    return await run_mutation(
        ctx,
        lambda: ctx.api.delete(_site_path(site_id)),
        invalidate=[CacheTag.WORDPRESS_SITES],
        success_key="sites.deleted",
        error_key="sites.delete_failed",
    )


async def test_site_connection(ctx: AppContext, site_id: str) -> dict[str, Any]:
    """Check the stored credentials against the site's REST API."""
    return await run_mutation(
        ctx,
        lambda: ctx.api.post(_site_path(site_id, "test")),
        success_key="sites.test_ok",
        error_key="sites.test_failed",
    )


async def set_default_site(ctx: AppContext, site_id: str) -> dict[str, Any]:
    return await run_mutation(
        ctx,
        lambda: ctx.api.post(_site_path(site_id, "set-default")),
        invalidate=[CacheTag.WORDPRESS_SITES],
        success_key="sites.default_set",
        error_key="sites.save_failed",
    )

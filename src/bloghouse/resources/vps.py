"""
VPS configuration operations.

Saved VPS configurations are cached under CacheTag.VPS_CONFIGURATIONS;
saving or deleting one invalidates that tag.
"""

from typing import Any, Optional
from urllib.parse import quote

from bloghouse.cache import CacheTag
from bloghouse.context import AppContext
from bloghouse.forms import VpsCredentials
from bloghouse.resources._common import run_mutation, run_query


async def list_vps_configurations(ctx: AppContext) -> dict[str, Any]:
    """
    List the user's VPS configurations.

    Returns:
        {"success": True, "data": [...configurations...]}
    """
    async def load():
        response = await ctx.api.get("/api/vps/configurations")
        return response.get("vpsList") or response.data or []

    return await run_query(
        ctx, CacheTag.VPS_CONFIGURATIONS, load, error_key="vps_config.load_failed"
    )


async def test_vps_connection(ctx: AppContext, credentials: VpsCredentials) -> dict[str, Any]:
    """Test SSH connectivity and compatibility of a VPS."""
    result = await run_mutation(
        ctx,
        lambda: ctx.api.post("/api/vps/test-connection", json=credentials.to_payload()),
        success_key="vps.test_ok",
        error_key="vps.test_failed",
    )
    if result["success"]:
        result["details"] = result["response"].get("details")
    return result


async def check_vps_status(ctx: AppContext, credentials: VpsCredentials) -> dict[str, Any]:
    """Connect to the VPS and report which components are installed."""
    result = await run_mutation(
        ctx,
        lambda: ctx.api.post("/api/vps/check-status", json=credentials.to_payload()),
        error_key="vps.test_error",
    )
    if result["success"]:
        result["status"] = result["response"].get("status")
    return result


async def get_vps_status_by_host(ctx: AppContext, host: str) -> dict[str, Any]:
    """Stored status of the VPS registered for host."""
    result = await run_mutation(
        ctx,
        lambda: ctx.api.get(f"/api/vps/status/{quote(host, safe='')}"),
        error_key="vps_config.load_failed",
    )
    if result["success"]:
        result["vps"] = result["response"].get("vps")
    return result


async def save_vps_configuration(
    ctx: AppContext,
    host: str,
    port: int = 22,
    username: str = "root",
    auth_method: str = "password",
) -> dict[str, Any]:
    """Save a VPS configuration (no secrets are sent)."""
    payload = {"host": host, "port": port, "username": username, "authMethod": auth_method}
    result = await run_mutation(
        ctx,
        lambda: ctx.api.post("/api/vps/configurations", json=payload),
        invalidate=[CacheTag.VPS_CONFIGURATIONS],
        success_key="vps_config.saved",
        error_key="vps_config.save_failed",
    )
    if result["success"]:
        result["vps"] = result["response"].get("vps")
    return result


async def delete_vps_configuration(ctx: AppContext, vps_id: str) -> dict[str, Any]:
    """Delete a VPS configuration. The server refuses while sites are active."""
    result = await run_mutation(
        ctx,
        lambda: ctx.api.delete(f"/api/vps/configurations/{quote(vps_id, safe='')}"),
        invalidate=[CacheTag.VPS_CONFIGURATIONS],
        success_key="vps_config.deleted",
        error_key="vps_config.delete_failed",
    )
    if result["success"]:
        result["active_sites"] = result["response"].get("activeSites") or []
    return result


async def check_domain_exists(ctx: AppContext, domain: str) -> dict[str, Any]:
    """Check whether a domain is already hosted on one of the user's VPS."""
    result = await run_mutation(
        ctx,
        lambda: ctx.api.get(f"/api/vps/check-domain/{quote(domain, safe='')}"),
        error_key="domain.check_failed",
    )
    if result["success"]:
        result["exists"] = bool(result["response"].get("exists"))
        result["vps"] = result["response"].get("vps")
    return result


async def has_configured_vps(ctx: AppContext) -> bool:
    """True when at least one saved VPS finished setup. False on errors."""
    return await get_configured_vps(ctx) is not None


async def get_configured_vps(ctx: AppContext) -> Optional[dict[str, Any]]:
    """First configured VPS (single-VPS users), or None."""
    result = await list_vps_configurations(ctx)
    for vps in result.get("data") or []:
        if vps.get("isConfigured"):
            return vps
    return None

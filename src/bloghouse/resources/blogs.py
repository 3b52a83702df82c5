"""
Blog operations outside the creation flow.

Blog creation itself streams progress and lives in bloghouse.flows.
"""

from typing import Any
from urllib.parse import quote

from bloghouse.context import AppContext
from bloghouse.resources._common import run_mutation


async def check_domain_available(ctx: AppContext, domain: str) -> dict[str, Any]:
    """
    Ask the server whether a domain can be used for a new blog.

    The backend does not serve /api/blog/check-domain yet; until it does,
    this call returns an ordinary error result and the creation flow
    itself never depends on it.

    Returns:
        {"success": True, "available": bool, "domain": ..., "message": ...}
    """
    domain = domain.strip().lower()
    result = await run_mutation(
        ctx,
        lambda: ctx.api.get(f"/api/blog/check-domain/{quote(domain, safe='')}"),
        error_key="domain.check_failed",
    )
    if result["success"]:
        response = result["response"]
        result["available"] = bool(response.get("available"))
        result["domain"] = response.get("domain", domain)
    return result

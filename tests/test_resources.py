"""Tests for REST resource operations and cache invalidation."""

import json

import httpx
import pytest

from bloghouse.cache import CacheTag
from bloghouse.forms import VpsCredentials
from bloghouse.notifier import ToastLevel
from bloghouse.resources import blogs, features, network, notifications, vps, wordpress


class TestVpsResources:
    """Tests for VPS configuration operations."""

    @pytest.mark.asyncio
    async def test_list_uses_vps_list(self, ctx, backend):
        backend.add("GET", "/api/vps/configurations", json={"success": True, "vpsList": [{"id": "v1", "isConfigured": True}]})
        result = await vps.list_vps_configurations(ctx)
        assert result == {"success": True, "data": [{"id": "v1", "isConfigured": True}]}

    @pytest.mark.asyncio
    async def test_list_is_cached(self, ctx, backend):
        backend.add("GET", "/api/vps/configurations", json={"success": True, "vpsList": []})
        await vps.list_vps_configurations(ctx)
        await vps.list_vps_configurations(ctx)
        assert len(backend.requests) == 1

    @pytest.mark.asyncio
    async def test_save_invalidates_configurations(self, ctx, backend):
        backend.add("GET", "/api/vps/configurations", json={"success": True, "vpsList": []})
        backend.add("POST", "/api/vps/configurations", json={"success": True, "vps": {"id": "v2"}})
        await vps.list_vps_configurations(ctx)
        result = await vps.save_vps_configuration(ctx, "203.0.113.5")
        assert result["vps"] == {"id": "v2"}
        assert ctx.cache.is_stale(CacheTag.VPS_CONFIGURATIONS)
        assert json.loads(backend.requests[-1].content) == {
            "host": "203.0.113.5", "port": 22, "username": "root", "authMethod": "password",
        }
        assert ctx.notifier.last.message == "VPS configuration saved"

    @pytest.mark.asyncio
    async def test_delete_failure_keeps_cache_and_toasts_server_message(self, ctx, backend):
        backend.add("GET", "/api/vps/configurations", json={"success": True, "vpsList": [{"id": "v1"}]})
        backend.add(
            "DELETE", "/api/vps/configurations/v1", status=400,
            json={"success": False, "message": "VPS possui sites ativos", "activeSites": ["a.com"]},
        )
        await vps.list_vps_configurations(ctx)
        result = await vps.delete_vps_configuration(ctx, "v1")
        assert not result["success"]
        assert result["error"]["code"] == "API_HTTP_ERROR"
        assert result["error"]["message"] == "VPS possui sites ativos"
        assert not ctx.cache.is_stale(CacheTag.VPS_CONFIGURATIONS)
        assert ctx.notifier.last.level == ToastLevel.ERROR

    @pytest.mark.asyncio
    async def test_test_connection(self, ctx, backend):
        backend.add("POST", "/api/vps/test-connection", json={"success": True, "details": {"os": "Ubuntu"}})
        result = await vps.test_vps_connection(ctx, VpsCredentials(host="h", password="p"))
        assert result["details"] == {"os": "Ubuntu"}
        assert ctx.notifier.last.message == "Connection established!"

    @pytest.mark.asyncio
    async def test_check_domain_exists(self, ctx, backend):
        backend.add("GET", "/api/vps/check-domain/example.com", json={"success": True, "exists": True, "vps": {"id": "v1"}})
        result = await vps.check_domain_exists(ctx, "example.com")
        assert result["exists"] is True

    @pytest.mark.asyncio
    async def test_get_configured_vps(self, ctx, backend):
        backend.add("GET", "/api/vps/configurations", json={
            "success": True,
            "vpsList": [{"id": "v1", "isConfigured": False}, {"id": "v2", "isConfigured": True}],
        })
        assert (await vps.get_configured_vps(ctx))["id"] == "v2"
        assert await vps.has_configured_vps(ctx)

    @pytest.mark.asyncio
    async def test_network_error_uses_generic_message(self, ctx, backend):
        backend.add("GET", "/api/vps/configurations", error=httpx.ConnectError)
        result = await vps.list_vps_configurations(ctx)
        assert result["error"]["code"] == "API_REQUEST_ERROR"
        assert result["error"]["message"] == "Could not reach the server"
        assert result["data"] is None
        assert not await vps.has_configured_vps(ctx)


class TestBlogResources:
    """Tests for blog operations."""

    @pytest.mark.asyncio
    async def test_check_domain_available(self, ctx, backend):
        backend.add("GET", "/api/blog/check-domain/example.com", json={"success": True, "available": False})
        result = await blogs.check_domain_available(ctx, " Example.com ")
        assert result["success"]
        assert result["available"] is False
        assert result["domain"] == "example.com"

    @pytest.mark.asyncio
    async def test_check_domain_without_route(self, ctx, backend):
        """A server without the route gives an error result, not an exception."""
        result = await blogs.check_domain_available(ctx, "example.com")
        assert result["success"] is False
        assert result["error"]["code"] == "API_HTTP_ERROR"
        assert "available" not in result
        assert ctx.notifier.last.level == ToastLevel.ERROR


class TestWordpressResources:
    """Tests for the WordPress site registry."""

    @pytest.mark.asyncio
    async def test_add_site_payload_and_invalidation(self, ctx, backend):
        backend.add("GET", "/api/wordpress/sites", json={"success": True, "data": []})
        backend.add("POST", "/api/wordpress/sites", json={"success": True, "data": {"id": "s1"}})
        await wordpress.list_sites(ctx)
        result = await wordpress.add_site(ctx, "Blog", "https://blog.example.com/", "admin", "xxxx")
        assert result["data"] == {"id": "s1"}
        assert json.loads(backend.requests[-1].content) == {
            "name": "Blog",
            "url": "https://blog.example.com",
            "username": "admin",
            "applicationPassword": "xxxx",
            "isDefault": False,
        }
        assert ctx.cache.is_stale(CacheTag.WORDPRESS_SITES)

    @pytest.mark.asyncio
    async def test_update_sends_only_given_fields(self, ctx, backend):
        backend.add("PUT", "/api/wordpress/sites/s1", json={"success": True})
        await wordpress.update_site(ctx, "s1", name="Renamed")
        assert json.loads(backend.requests[-1].content) == {"name": "Renamed"}

    @pytest.mark.asyncio
    async def test_site_actions(self, ctx, backend):
        backend.add("POST", "/api/wordpress/sites/s1/test", json={"success": True})
        backend.add("POST", "/api/wordpress/sites/s1/set-default", json={"success": True})
        backend.add("DELETE", "/api/wordpress/sites/s1", json={"success": True})
        assert (await wordpress.test_site_connection(ctx, "s1"))["success"]
        assert (await wordpress.set_default_site(ctx, "s1"))["success"]
        assert (await wordpress.delete_site(ctx, "s1"))["success"]
        assert backend.paths() == [
            ("POST", "/api/wordpress/sites/s1/test"),
            ("POST", "/api/wordpress/sites/s1/set-default"),
            ("DELETE", "/api/wordpress/sites/s1"),
        ]

    @pytest.mark.asyncio
    async def test_connection_test_does_not_invalidate(self, ctx, backend):
        backend.add("POST", "/api/wordpress/sites/s1/test", json={"success": True})
        ctx.cache.set(CacheTag.WORDPRESS_SITES, [])
        await wordpress.test_site_connection(ctx, "s1")
        assert not ctx.cache.is_stale(CacheTag.WORDPRESS_SITES)


class TestFeatureResources:
    """Tests for feature flags."""

    @pytest.mark.asyncio
    async def test_list_and_get(self, ctx, backend):
        backend.add("GET", "/api/features", json={"success": True, "data": [{"code": "blog", "status": "active"}]})
        backend.add("GET", "/api/features/blog", json={"success": True, "data": {"code": "blog", "status": "maintenance"}})
        assert (await features.list_features(ctx))["data"][0]["code"] == "blog"
        feature = (await features.get_feature(ctx, "blog"))["data"]
        assert not features.is_feature_available(feature)
        assert features.is_feature_available({"status": "active"})
        assert not features.is_feature_available(None)


class TestNotificationResources:
    """Tests for notifications."""

    @pytest.mark.asyncio
    async def test_unread_count(self, ctx, backend):
        backend.add("GET", "/api/notifications/unread-count", json={"success": True, "data": {"count": 3}})
        assert (await notifications.unread_count(ctx))["data"] == 3

    @pytest.mark.asyncio
    async def test_mark_read_invalidates_list_and_count(self, ctx, backend):
        backend.add("PUT", "/api/notifications/n1/read", json={"success": True})
        ctx.cache.set(CacheTag.NOTIFICATIONS, [], 1, 20, False)
        ctx.cache.set(CacheTag.UNREAD_COUNT, 3)
        await notifications.mark_read(ctx, "n1")
        assert ctx.cache.is_stale(CacheTag.NOTIFICATIONS, 1, 20, False)
        assert ctx.cache.is_stale(CacheTag.UNREAD_COUNT)

    @pytest.mark.asyncio
    async def test_list_unread_only(self, ctx, backend):
        backend.add("GET", "/api/notifications", json={"success": True, "data": [{"id": "n1"}]})
        await notifications.list_notifications(ctx, unread_only=True)
        assert backend.requests[-1].url.params["unreadOnly"] == "true"

    @pytest.mark.asyncio
    async def test_mark_all_and_delete(self, ctx, backend):
        backend.add("PUT", "/api/notifications/mark-all-read", json={"success": True})
        backend.add("DELETE", "/api/notifications/n1", json={"success": True})
        assert (await notifications.mark_all_read(ctx))["success"]
        assert (await notifications.delete_notification(ctx, "n1"))["success"]

    def test_unread_badge(self):
        assert notifications.unread_badge(0) == ""
        assert notifications.unread_badge(5) == "5"
        assert notifications.unread_badge(120) == "99+"


class TestNetworkResources:
    """Tests for discovery and connections."""

    def test_discover_params(self):
        params = network.discover_params(2, search="ana", abilities=["seo", "copy"])
        assert params == {"page": "2", "limit": "20", "search": "ana", "abilities": "seo,copy"}

    @pytest.mark.asyncio
    async def test_discover_users(self, ctx, backend):
        backend.add("GET", "/api/users/discover", json={"success": True, "users": [{"id": "u2"}], "pagination": {"page": 1}})
        result = await network.discover_users(ctx, interests=["tech"])
        assert result["data"]["users"] == [{"id": "u2"}]
        assert backend.requests[-1].url.params["interests"] == "tech"

    @pytest.mark.asyncio
    async def test_connection_request_invalidates(self, ctx, backend):
        backend.add("POST", "/api/connections/request", json={"success": True})
        for tag in (CacheTag.DISCOVERY_USERS, CacheTag.RECOMMENDED_USERS, CacheTag.USER_PROFILE):
            ctx.cache.set(tag, [])
        await network.send_connection_request(ctx, "u2", message="Olá")
        assert json.loads(backend.requests[-1].content) == {"toUserId": "u2", "message": "Olá"}
        for tag in (CacheTag.DISCOVERY_USERS, CacheTag.RECOMMENDED_USERS, CacheTag.USER_PROFILE):
            assert ctx.cache.is_stale(tag)

    @pytest.mark.asyncio
    async def test_accept_remove_block_invalidate_profile_only(self, ctx, backend):
        backend.add("PUT", "/api/connections/c1/accept", json={"success": True})
        backend.add("DELETE", "/api/connections/c1", json={"success": True})
        backend.add("PUT", "/api/connections/u2/block", json={"success": True})
        ctx.cache.set(CacheTag.DISCOVERY_USERS, [])
        for call in (
            network.accept_connection(ctx, "c1"),
            network.remove_connection(ctx, "c1"),
            network.block_user(ctx, "u2"),
        ):
            ctx.cache.set(CacheTag.USER_PROFILE, {}, "u2")
            assert (await call)["success"]
            assert ctx.cache.is_stale(CacheTag.USER_PROFILE, "u2")
        assert not ctx.cache.is_stale(CacheTag.DISCOVERY_USERS)

    @pytest.mark.asyncio
    async def test_profile_and_recommended(self, ctx, backend):
        backend.add("GET", "/api/users/profile/u2", json={"success": True, "data": {"id": "u2"}})
        backend.add("GET", "/api/users/discover/recommended", json={"success": True, "data": [{"id": "u3"}]})
        assert (await network.get_user_profile(ctx, "u2"))["data"] == {"id": "u2"}
        assert (await network.recommended_users(ctx))["data"] == [{"id": "u3"}]

"""
Provisioning flows.

A flow drives one provisioning "modal" end to end:

1. open(): connect the socket transport and subscribe to the flow namespace
2. submit(form): validate, start the session, POST the start endpoint
3. server events are reduced into the session by its SessionTracker
4. on completion: success toast, cache invalidation, auto-close
5. close(confirm): asks before abandoning a running session, then
   disconnects unconditionally

Closing never cancels anything on the server: the remote operation keeps
running after the client goes away.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, ClassVar, Optional, Union

from bloghouse.api import ApiError, ApiResponse
from bloghouse.auth import AuthError
from bloghouse.cache import CacheTag
from bloghouse.context import AppContext
from bloghouse.events import BlogCredentials, EventNamespace, ProvisioningEvent
from bloghouse.forms import ValidationFailure, VpsCredentials, ProvisioningForm
from bloghouse.progress.session import ProvisioningSession, SessionStatus, SessionTracker
from bloghouse.resources.vps import test_vps_connection
from bloghouse.transport import ProvisioningTransport

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], Union[bool, Awaitable[bool]]]
UpdateCallback = Callable[[ProvisioningSession], Any]


class ProvisioningFlow:
    """Base controller. Subclasses set the endpoint, namespace and messages."""

    namespace: ClassVar[EventNamespace]
    start_path: ClassVar[str]
    invalidates: ClassVar[tuple[CacheTag, ...]] = ()
    default_auto_close_delay: ClassVar[float] = 2.0

    # Message keys
    started_key: ClassVar[Optional[str]] = None
    started_toast_key: ClassVar[str]
    start_failed_key: ClassVar[str]
    success_key: ClassVar[str]
    error_toast_key: ClassVar[str]

    def __init__(
        self,
        ctx: AppContext,
        transport: ProvisioningTransport,
        auto_close_delay: Optional[float] = None,
    ):
        self.ctx = ctx
        self.transport = transport
        self.auto_close_delay = (
            self.default_auto_close_delay if auto_close_delay is None else auto_close_delay
        )
        self.is_open = False
        self._update_callbacks: list[UpdateCallback] = []
        self._auto_close_task: Optional[asyncio.Task] = None
        self._closed = asyncio.Event()
        # Last session that reached a terminal state; outlives close()
        self.last_result: Optional[ProvisioningSession] = None
        self.tracker = self._new_tracker()

        self.transport.on_status(self._on_status)

    @property
    def session(self) -> ProvisioningSession:
        return self.tracker.state

    def on_update(self, callback: UpdateCallback):
        """Follow session updates; survives reset()."""
        self._update_callbacks.append(callback)
        self.tracker.on_update(callback)

    def _new_tracker(self) -> SessionTracker:
        tracker = SessionTracker(self.namespace, locale=self.ctx.locale)
        for callback in self._update_callbacks:
            tracker.on_update(callback)
        return tracker

    # Lifecycle

    async def open(self):
        """Connect the transport for this flow. Raises AuthError without a token."""
        if self.is_open:
            return
        token = self.ctx.session.require_token()
        self.transport.subscribe(self.namespace, self._on_event)
        try:
            await self.transport.connect(token)
        except Exception:
            self.transport.unsubscribe(self.namespace, self._on_event)
            raise
        self.is_open = True
        self._closed.clear()
        logger.info(f"{type(self).__name__} opened")

    async def submit(self, form: ProvisioningForm) -> bool:
        """
        Validate form and start provisioning.

        Returns False when nothing was started: the session is not idle, the
        form is incomplete or the start request failed (the session then
        ends in error).
        """
        if not self.is_open:
            raise RuntimeError("Flow must be opened before submitting")
        if self.session.status != SessionStatus.IDLE:
            logger.warning(f"Submit ignored: session is {self.session.status.value}")
            return False

        try:
            form.validate_required()
        except ValidationFailure as e:
            self.ctx.notifier.error(self.ctx.t(e.message_key))
            return False

        try:
            payload = self.build_payload(form)
        except AuthError:
            self.ctx.notifier.error(self.ctx.t("auth.missing_email"))
            return False

        tracker = self.tracker
        tracker.begin()
        try:
            response = await self.ctx.api.post(self.start_path, json=payload)
        except ApiError as e:
            if e.is_network_error:
                message = self.ctx.t("network.error")
            else:
                message = e.message or self.ctx.t(self.start_failed_key)
            if tracker.fail(message) and self.tracker is tracker:
                self.last_result = tracker.state
                self.ctx.notifier.error(message)
            return False

        # Events can finish the session (and auto-close can swap the
        # tracker) before the start request returns
        if self.tracker is tracker and tracker.state.is_active:
            self.ctx.notifier.success(self.ctx.t(self.started_toast_key))
            self.on_started(response)
        return True

    def build_payload(self, form: ProvisioningForm) -> dict[str, Any]:
        return form.to_payload()

    def on_started(self, response: ApiResponse):
        if self.started_key:
            self.tracker.set_local_progress("starting", self.ctx.t(self.started_key), 0)

    async def close(self, confirm: Optional[ConfirmCallback] = None) -> bool:
        """
        Close the flow and discard its session.

        While the session is connecting or running, confirm(message) must
        return True; without a confirm callback the close is refused.
        """
        if self.session.is_active:
            if confirm is None:
                return False
            answer = confirm(self.ctx.t("close.confirm"))
            if asyncio.iscoroutine(answer):
                answer = await answer
            if not answer:
                logger.info("Close cancelled by user")
                return False

        self._cancel_auto_close()
        self.transport.unsubscribe(self.namespace, self._on_event)
        await self.transport.disconnect()
        self.is_open = False
        self.tracker = self._new_tracker()
        self._closed.set()
        logger.info(f"{type(self).__name__} closed")
        return True

    def reset(self):
        """Start over with a fresh idle session on the same transport."""
        self._cancel_auto_close()
        self.tracker = self._new_tracker()

    async def wait(self, timeout: Optional[float] = None) -> ProvisioningSession:
        """Wait for the current session to complete or fail."""
        return await self.tracker.wait_terminal(timeout)

    async def wait_closed(self):
        await self._closed.wait()

    # Inbound

    def _on_event(self, event: ProvisioningEvent):
        changed = self.tracker.apply(event)
        if changed and self.session.is_terminal:
            self._on_terminal()

    def _on_status(self, connected: bool):
        key = "transport.connected" if connected else "transport.disconnected"
        self.tracker.append_output(self.ctx.t(key))

    def _on_terminal(self):
        self.last_result = self.session
        if self.session.status == SessionStatus.COMPLETE:
            self.ctx.notifier.success(self.ctx.t(self.success_key))
            if self.invalidates:
                self.ctx.cache.invalidate(*self.invalidates)
            self._schedule_auto_close()
        else:
            self.ctx.notifier.error(
                self.ctx.t(self.error_toast_key, error=self.session.error_message or "")
            )

    def _schedule_auto_close(self):
        self._cancel_auto_close()
        self._auto_close_task = asyncio.ensure_future(self._auto_close())

    async def _auto_close(self):
        await asyncio.sleep(self.auto_close_delay)
        # Detach first so close() does not cancel the running task
        self._auto_close_task = None
        await self.close()

    def _cancel_auto_close(self):
        task, self._auto_close_task = self._auto_close_task, None
        if task is not None and not task.done():
            task.cancel()


class SimpleVpsSetupFlow(ProvisioningFlow):
    """One-click server setup from host and root password."""

    namespace = EventNamespace.SIMPLE_VPS
    start_path = "/api/vps/simple-setup"
    invalidates = (CacheTag.VPS_CONFIGURATIONS,)
    default_auto_close_delay = 2.0

    started_key = "simple_vps.started"
    started_toast_key = "simple_vps.started_toast"
    start_failed_key = "simple_vps.start_failed"
    success_key = "simple_vps.complete"
    error_toast_key = "simple_vps.error_toast"


class VpsSetupFlow(ProvisioningFlow):
    """Full step-by-step VPS setup with raw command output."""

    namespace = EventNamespace.VPS
    start_path = "/api/vps/setup"
    invalidates = (CacheTag.VPS_CONFIGURATIONS,)
    default_auto_close_delay = 2.0

    started_toast_key = "vps.started"
    start_failed_key = "vps.start_failed"
    success_key = "vps.success"
    error_toast_key = "vps.error_toast"

    def build_payload(self, form: ProvisioningForm) -> dict[str, Any]:
        user_email = self.ctx.session.user_email
        if not user_email:
            raise AuthError("User email is required for VPS setup")
        payload = form.to_payload()
        payload["userEmail"] = user_email
        return payload

    async def test_connection(self, credentials: VpsCredentials) -> dict[str, Any]:
        """Check credentials before starting the setup."""
        try:
            credentials.validate_required()
        except ValidationFailure as e:
            self.ctx.notifier.error(self.ctx.t(e.message_key))
            return {
                "success": False,
                "error": {"code": "VALIDATION_ERROR", "message": self.ctx.t(e.message_key)},
            }
        return await test_vps_connection(self.ctx, credentials)


class BlogCreateFlow(ProvisioningFlow):
    """WordPress blog creation on an already configured server."""

    namespace = EventNamespace.SIMPLE_BLOG
    start_path = "/api/blog/simple-create"
    invalidates = (CacheTag.BLOGS, CacheTag.WORDPRESS_SITES)
    default_auto_close_delay = 3.0

    started_key = "blog.started"
    started_toast_key = "blog.started_toast"
    start_failed_key = "blog.start_failed"
    success_key = "blog.complete"
    error_toast_key = "blog.error_toast"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.domain: Optional[str] = None

    def on_started(self, response: ApiResponse):
        self.domain = response.get("domain")
        super().on_started(response)

    @property
    def credentials(self) -> Optional[BlogCredentials]:
        """Admin credentials of the created blog, once complete."""
        if self.last_result is None:
            return None
        return self.last_result.blog_credentials

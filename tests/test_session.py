"""Tests for the provisioning session reducer."""

import asyncio
from datetime import datetime

import pytest

from bloghouse.events import EventNamespace, parse_event
from bloghouse.progress.session import (
    CONNECTED_PROGRESS,
    SessionStatus,
    SessionTracker,
)

FIXED_TIME = datetime(2024, 5, 1, 14, 30, 5)


def make_tracker(namespace=EventNamespace.SIMPLE_VPS):
    return SessionTracker(namespace, locale="en", clock=lambda: FIXED_TIME)


def feed(tracker, name, payload=None):
    return tracker.apply(parse_event(name, payload))


class TestLifecycle:
    """Tests for local transitions."""

    def test_begin(self):
        tracker = make_tracker()
        tracker.begin()
        assert tracker.state.status == SessionStatus.CONNECTING
        assert tracker.state.progress_percent == 0
        assert tracker.state.started_at == FIXED_TIME

    def test_begin_twice(self):
        tracker = make_tracker()
        tracker.begin()
        with pytest.raises(RuntimeError):
            tracker.begin()

    def test_fail(self):
        tracker = make_tracker()
        tracker.begin()
        assert tracker.fail("boom")
        assert tracker.state.status == SessionStatus.ERROR
        assert tracker.state.error_message == "boom"
        assert not tracker.fail("again")
        assert tracker.state.error_message == "boom"

    def test_log_line_render(self):
        tracker = make_tracker()
        tracker.append_output("hello")
        assert tracker.state.lines == ["[14:30:05] hello"]


class TestProgress:
    """Progress follows server events and never goes backwards."""

    def test_progress_follows_events(self):
        tracker = make_tracker()
        tracker.begin()
        for percent in (5, 15, 25, 45, 70):
            feed(tracker, "simpleVps:progress", {"step": "s", "message": f"{percent}", "progress": percent})
            assert tracker.state.progress_percent == percent
        assert tracker.state.status == SessionStatus.RUNNING

    def test_lower_progress_is_ignored(self):
        tracker = make_tracker()
        tracker.begin()
        feed(tracker, "simpleVps:progress", {"step": "a", "message": "a", "progress": 45})
        feed(tracker, "simpleVps:progress", {"step": "b", "message": "b", "progress": 25})
        assert tracker.state.progress_percent == 45
        assert tracker.state.current_step == "b"

    def test_connected_sets_initial_progress_for_reduced_flows(self):
        tracker = make_tracker()
        tracker.begin()
        feed(tracker, "simpleVps:connected", {"host": "203.0.113.5"})
        assert tracker.state.progress_percent == CONNECTED_PROGRESS
        assert tracker.state.host == "203.0.113.5"

    def test_connected_leaves_full_flow_progress(self):
        tracker = make_tracker(EventNamespace.VPS)
        tracker.begin()
        feed(tracker, "vps:connected", {"host": "203.0.113.5"})
        assert tracker.state.progress_percent == 0
        assert "203.0.113.5" in tracker.state.lines[-1]

    def test_complete_sets_100(self):
        tracker = make_tracker()
        tracker.begin()
        feed(tracker, "simpleVps:progress", {"step": "a", "message": "a", "progress": 80})
        feed(tracker, "simpleVps:setupComplete", {"vpsId": "v1", "host": "h"})
        assert tracker.state.status == SessionStatus.COMPLETE
        assert tracker.state.progress_percent == 100
        assert tracker.state.vps_id == "v1"


class TestTerminalStates:
    """Terminal states are sticky."""

    def test_events_after_complete_are_ignored(self):
        tracker = make_tracker()
        tracker.begin()
        feed(tracker, "simpleVps:setupComplete", {})
        assert not feed(tracker, "simpleVps:setupError", {"error": "late"})
        assert tracker.state.status == SessionStatus.COMPLETE
        assert tracker.state.error_message is None

    def test_first_error_wins(self):
        tracker = make_tracker(EventNamespace.VPS)
        tracker.begin()
        feed(tracker, "vps:stepError", {"step": "docker", "name": "Docker", "error": "first"})
        feed(tracker, "vps:setupError", {"error": "second"})
        feed(tracker, "vps:setupComplete", {})
        assert tracker.state.status == SessionStatus.ERROR
        assert tracker.state.error_message == "first"

    def test_failed_blog_completion_is_an_error(self):
        tracker = make_tracker(EventNamespace.SIMPLE_BLOG)
        tracker.begin()
        feed(tracker, "simpleBlog:completed", {"success": False, "domain": "example.com"})
        assert tracker.state.status == SessionStatus.ERROR

    def test_blog_completion_keeps_credentials(self):
        tracker = make_tracker(EventNamespace.SIMPLE_BLOG)
        tracker.begin()
        feed(tracker, "simpleBlog:created", {"domain": "example.com", "url": "https://example.com"})
        feed(tracker, "simpleBlog:completed", {
            "success": True,
            "credentials": {"adminUsername": "admin", "adminPassword": "pw"},
        })
        assert tracker.state.status == SessionStatus.COMPLETE
        assert tracker.state.blog_credentials.admin_password == "pw"
        assert any("https://example.com" in line for line in tracker.state.lines)

    def test_local_progress_ignored_when_terminal(self):
        tracker = make_tracker()
        tracker.begin()
        tracker.fail("x")
        tracker.set_local_progress("starting", "late", 50)
        assert tracker.state.progress_percent == 0


class TestIdleSession:
    """An idle session has nothing running and ignores server events."""

    def test_event_before_begin_is_ignored(self):
        tracker = make_tracker()
        assert not feed(tracker, "simpleVps:progress", {"step": "s", "message": "s", "progress": 50})
        assert tracker.state.status == SessionStatus.IDLE
        assert tracker.state.progress_percent == 0
        assert tracker.state.current_step is None

    def test_terminal_event_before_begin_is_ignored(self):
        tracker = make_tracker()
        assert not feed(tracker, "simpleVps:setupError", {"error": "stale"})
        assert tracker.state.status == SessionStatus.IDLE
        assert tracker.state.error_message is None
        tracker.begin()
        assert tracker.state.status == SessionStatus.CONNECTING

    def test_local_progress_ignored_when_idle(self):
        tracker = make_tracker()
        tracker.set_local_progress("starting", "early", 30)
        assert tracker.state.progress_percent == 0
        assert tracker.state.current_step is None
        assert tracker.state.output_log == []


class TestNamespaces:
    """A session only follows its own namespace."""

    def test_foreign_namespace_ignored(self):
        tracker = make_tracker(EventNamespace.SIMPLE_VPS)
        tracker.begin()
        assert not feed(tracker, "vps:setupComplete", {})
        assert tracker.state.status == SessionStatus.CONNECTING


class TestCallbacks:
    """Update callbacks."""

    def test_sync_callback(self):
        tracker = make_tracker()
        seen = []
        tracker.on_update(lambda state: seen.append(state.status))
        tracker.begin()
        feed(tracker, "simpleVps:progress", {"step": "a", "message": "a", "progress": 10})
        assert seen == [SessionStatus.CONNECTING, SessionStatus.RUNNING]

    def test_failing_callback_does_not_break_reducer(self):
        tracker = make_tracker()

        def broken(state):
            raise RuntimeError("nope")

        tracker.on_update(broken)
        tracker.begin()
        assert tracker.state.status == SessionStatus.CONNECTING

    @pytest.mark.asyncio
    async def test_wait_terminal(self):
        tracker = make_tracker()
        tracker.begin()

        async def finish():
            await asyncio.sleep(0.01)
            feed(tracker, "simpleVps:setupComplete", {})

        asyncio.ensure_future(finish())
        state = await tracker.wait_terminal(timeout=1)
        assert state.status == SessionStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_wait_terminal_timeout(self):
        tracker = make_tracker()
        with pytest.raises(asyncio.TimeoutError):
            await tracker.wait_terminal(timeout=0.01)

"""
Provisioning session state and the event reducer.

One ProvisioningSession lives for one provisioning attempt. It is mutated
only by SessionTracker: local transitions (begin/fail) and inbound server
events (apply). Registered callbacks are notified after every change so the
terminal renderer and the dashboard can follow along.
"""

import asyncio
import logging
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from bloghouse.events import (
    BlogCompleted,
    BlogCreated,
    BlogCredentials,
    Connected,
    EventNamespace,
    Output,
    Progress,
    ProvisioningEvent,
    SetupComplete,
    SetupError,
    StepComplete,
    StepError,
    StepStart,
)
from bloghouse.messages import DEFAULT_LOCALE, translate

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    RUNNING = "running"
    COMPLETE = "complete"
    ERROR = "error"


TERMINAL_STATUSES = frozenset({SessionStatus.COMPLETE, SessionStatus.ERROR})
ACTIVE_STATUSES = frozenset({SessionStatus.CONNECTING, SessionStatus.RUNNING})

# Percent shown once the server reports it reached the host (reduced flows)
CONNECTED_PROGRESS = 10


class LogLine(BaseModel):
    """One timestamped line of the terminal output."""
    timestamp: datetime
    text: str

    def render(self) -> str:
        return f"[{self.timestamp.strftime('%H:%M:%S')}] {self.text}"


class ProvisioningSession(BaseModel):
    """Complete client-side state of one provisioning attempt."""
    session_id: str
    namespace: EventNamespace
    status: SessionStatus = SessionStatus.IDLE
    current_step: Optional[str] = None
    current_step_name: Optional[str] = None
    progress_percent: int = 0
    output_log: list[LogLine] = Field(default_factory=list)
    error_message: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    # Terminal results
    vps_id: Optional[str] = None
    host: Optional[str] = None
    blog_credentials: Optional[BlogCredentials] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def lines(self) -> list[str]:
        return [line.render() for line in self.output_log]


class SessionTracker:
    """
    Reducer for a ProvisioningSession with update broadcasting.

    Usage:
        tracker = SessionTracker(EventNamespace.SIMPLE_VPS)
        tracker.on_update(callback)   # terminal renderer, dashboard, ...
        tracker.begin()
        tracker.apply(parse_event("simpleVps:progress", {...}))

    Terminal states are sticky: once complete or error, apply() ignores
    further events and returns False.
    """

    def __init__(
        self,
        namespace: EventNamespace,
        session_id: Optional[str] = None,
        locale: str = DEFAULT_LOCALE,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.locale = locale
        self._clock = clock
        self._callbacks: list[Callable[[ProvisioningSession], Any]] = []
        self._terminal_event = asyncio.Event()
        self.state = ProvisioningSession(
            session_id=session_id or str(uuid.uuid4()),
            namespace=namespace,
        )

    def on_update(self, callback: Callable[[ProvisioningSession], Any]):
        """Register a callback for state updates (sync or async)."""
        self._callbacks.append(callback)

    def _notify(self):
        """Notify all registered callbacks of a state change."""
        for callback in self._callbacks:
            try:
                result = callback(self.state)
                if asyncio.iscoroutine(result):
                    asyncio.ensure_future(result)
            except Exception:
                logger.exception("Session update callback failed")

    def _t(self, key: str, **params: Any) -> str:
        return translate(key, self.locale, **params)

    # Local transitions

    def begin(self):
        """idle -> connecting. Resets progress for the new attempt."""
        if self.state.status != SessionStatus.IDLE:
            raise RuntimeError(f"Cannot begin a session in status '{self.state.status.value}'")
        self.state.status = SessionStatus.CONNECTING
        self.state.progress_percent = 0
        self.state.started_at = self._clock()
        logger.info(f"Session {self.state.session_id} connecting ({self.state.namespace.value})")
        self._notify()

    def fail(self, message: str) -> bool:
        """Move to error from a local failure (e.g. the start request failed)."""
        if self.state.is_terminal:
            return False
        self._set_error(message)
        self._notify()
        return True

    def append_output(self, text: str):
        """Append a timestamped line to the output log."""
        self.state.output_log.append(LogLine(timestamp=self._clock(), text=text))
        self._notify()

    def set_local_progress(self, step: str, message: str, progress: int):
        """Progress known locally (e.g. the start request was accepted)."""
        if not self.state.is_active:
            return
        self._advance(progress)
        self.state.current_step = step
        self.state.current_step_name = message
        self.state.output_log.append(LogLine(timestamp=self._clock(), text=message))
        self._notify()

    # Inbound events

    def apply(self, event: ProvisioningEvent) -> bool:
        """
        Reduce one server event into the session.

        Returns True when the event changed the session, False when it was
        ignored (idle or terminal state, or another namespace).
        """
        if self.state.is_terminal:
            logger.debug(f"Ignoring {event.kind} for terminal session {self.state.session_id}")
            return False
        if self.state.status == SessionStatus.IDLE:
            # Nothing was submitted; leftovers of an earlier attempt land here
            logger.debug(f"Ignoring {event.kind} for idle session {self.state.session_id}")
            return False
        if event.namespace != self.state.namespace:
            logger.debug(f"Ignoring {event.namespace.value}:{event.kind} in {self.state.namespace.value} session")
            return False

        if isinstance(event, Connected):
            self._mark_running()
            self.state.host = event.host or self.state.host
            if self.state.namespace != EventNamespace.VPS:
                self._advance(CONNECTED_PROGRESS)
            self._log(self._connected_line(event))
        elif isinstance(event, StepStart):
            self._mark_running()
            self._set_step(event.step, event.name, event.progress)
            self._log(self._t("vps.step_start", name=event.name))
        elif isinstance(event, StepComplete):
            self._mark_running()
            self._set_step(event.step, event.name, event.progress)
            self._log(self._t("vps.step_complete", name=event.name))
        elif isinstance(event, Progress):
            self._mark_running()
            self._set_step(event.step, event.message, event.progress)
            self._log(event.message)
        elif isinstance(event, Output):
            self._log(event.output)
        elif isinstance(event, BlogCreated):
            self._log(self._t("blog.created", url=event.url or event.domain or ""))
        elif isinstance(event, SetupComplete):
            self._complete()
            self.state.vps_id = event.vps_id
            self.state.host = event.host or self.state.host
            if self.state.namespace == EventNamespace.VPS:
                self._log(self._t("vps.setup_complete"))
                self._log(self._t("vps.setup_complete_id", vps_id=event.vps_id or "-"))
                self._log(self._t("vps.setup_complete_host", host=self.state.host or "-"))
            else:
                self._log(self._t("simple_vps.complete"))
        elif isinstance(event, BlogCompleted):
            if not event.success:
                self._set_error(self._t("blog.failed"))
                self._log(self._t("blog.failed"))
            else:
                self._complete()
                self.state.blog_credentials = event.credentials
                self._log(self._t("blog.complete"))
        elif isinstance(event, StepError):
            self._set_error(event.error)
            self._log(self._t("vps.step_error", name=event.name or event.step or "", error=event.error))
        elif isinstance(event, SetupError):
            self._set_error(event.error)
            self._log(self._setup_error_line(event))
        else:
            raise TypeError(f"Unhandled event type: {type(event).__name__}")

        self._notify()
        return True

    async def wait_terminal(self, timeout: Optional[float] = None) -> ProvisioningSession:
        """Wait until the session reaches complete or error."""
        if timeout is None:
            await self._terminal_event.wait()
        else:
            await asyncio.wait_for(self._terminal_event.wait(), timeout=timeout)
        return self.state

    # Internals

    def _log(self, text: str):
        self.state.output_log.append(LogLine(timestamp=self._clock(), text=text))

    def _mark_running(self):
        if self.state.status == SessionStatus.CONNECTING:
            self.state.status = SessionStatus.RUNNING
            if self.state.started_at is None:
                self.state.started_at = self._clock()

    def _advance(self, progress: Optional[int]):
        # Percent never goes backwards within a session
        if progress is not None and progress > self.state.progress_percent:
            self.state.progress_percent = progress

    def _set_step(self, step: str, name: str, progress: Optional[int]):
        self.state.current_step = step
        self.state.current_step_name = name
        self._advance(progress)

    def _complete(self):
        self.state.status = SessionStatus.COMPLETE
        self.state.progress_percent = 100
        self.state.finished_at = self._clock()
        self._terminal_event.set()
        logger.info(f"Session {self.state.session_id} complete")

    def _set_error(self, message: str):
        self.state.status = SessionStatus.ERROR
        self.state.error_message = message
        self.state.finished_at = self._clock()
        self._terminal_event.set()
        logger.warning(f"Session {self.state.session_id} failed: {message}")

    def _connected_line(self, event: Connected) -> str:
        if self.state.namespace == EventNamespace.VPS:
            return self._t("vps.connected", host=event.host or "")
        if self.state.namespace == EventNamespace.SIMPLE_BLOG:
            return self._t("blog.connected")
        return self._t("simple_vps.connected")

    def _setup_error_line(self, event: SetupError) -> str:
        if self.state.namespace == EventNamespace.VPS:
            return self._t("vps.setup_error", error=event.error)
        if self.state.namespace == EventNamespace.SIMPLE_BLOG:
            return self._t("blog.failed")
        return self._t("simple_vps.failed")

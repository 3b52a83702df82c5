"""
Provisioning session tracking and presentation.

Provides the session reducer, terminal rendering, and a browser-based
real-time dashboard using WebSockets.
"""

from .session import (
    LogLine,
    ProvisioningSession,
    SessionStatus,
    SessionTracker,
)
from .terminal import render_progress_bar, render_session
from .server import progress_server, ProgressServer

__all__ = [
    "LogLine",
    "ProvisioningSession",
    "SessionStatus",
    "SessionTracker",
    "render_progress_bar",
    "render_session",
    "progress_server",
    "ProgressServer",
]

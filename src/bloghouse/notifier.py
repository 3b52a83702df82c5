"""
Toast notifications.

Records user-facing success/error/info messages, logs them, and forwards
them to any registered listeners (the CLI prints them).
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ToastLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class Toast(BaseModel):
    level: ToastLevel
    message: str
    created_at: datetime = Field(default_factory=datetime.now)


class Notifier:
    """Collects toasts in order and notifies listeners."""

    def __init__(self):
        self.toasts: list[Toast] = []
        self._listeners: list[Callable[[Toast], Any]] = []

    def on_toast(self, callback: Callable[[Toast], Any]):
        """Register a callback invoked for every toast."""
        self._listeners.append(callback)

    def _push(self, level: ToastLevel, message: str) -> Toast:
        toast = Toast(level=level, message=message)
        self.toasts.append(toast)
        if level == ToastLevel.ERROR:
            logger.warning(f"toast[{level.value}] {message}")
        else:
            logger.info(f"toast[{level.value}] {message}")
        for callback in self._listeners:
            callback(toast)
        return toast

    def success(self, message: str) -> Toast:
        return self._push(ToastLevel.SUCCESS, message)

    def error(self, message: str) -> Toast:
        return self._push(ToastLevel.ERROR, message)

    def info(self, message: str) -> Toast:
        return self._push(ToastLevel.INFO, message)

    @property
    def last(self) -> Optional[Toast]:
        return self.toasts[-1] if self.toasts else None

    def messages(self, level: Optional[ToastLevel] = None) -> list[str]:
        """Messages so far, optionally filtered by level."""
        return [t.message for t in self.toasts if level is None or t.level == level]

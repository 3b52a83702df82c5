"""
Typed provisioning events.

Socket events arrive as `"<namespace>:<name>"` strings with untyped JSON
payloads. They are parsed here into a tagged union of pydantic models
(discriminated on `kind`) so the session reducer can handle every variant
exhaustively.

Namespaces:
- vps:        full VPS setup (stepStart/stepComplete/stepError/output/...)
- simpleVps:  reduced VPS setup (connected/progress/setupComplete/setupError)
- simpleBlog: WordPress blog creation (connected/progress/created/completed/error)
"""

import math
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter, ValidationError


class UnknownEventError(Exception):
    """Raised for an event name that is not part of a known namespace's surface."""
    pass


class EventPayloadError(Exception):
    """Raised when an event payload does not match its declared shape."""
    pass


class EventNamespace(str, Enum):
    VPS = "vps"
    SIMPLE_VPS = "simpleVps"
    SIMPLE_BLOG = "simpleBlog"


class _Event(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    namespace: EventNamespace


def _clamp_progress(value: Any) -> Optional[int]:
    if value is None:
        return None
    value = float(value)
    if not math.isfinite(value):
        raise ValueError("progress must be a finite number")
    return max(0, min(100, int(round(value))))


ProgressValue = Annotated[Optional[int], BeforeValidator(_clamp_progress)]


class Connected(_Event):
    kind: Literal["connected"] = "connected"
    host: Optional[str] = None


class StepStart(_Event):
    kind: Literal["step_start"] = "step_start"
    step: str
    name: str
    progress: ProgressValue = None


class StepComplete(_Event):
    kind: Literal["step_complete"] = "step_complete"
    step: str
    name: str
    progress: ProgressValue = None


class StepError(_Event):
    kind: Literal["step_error"] = "step_error"
    step: Optional[str] = None
    name: Optional[str] = None
    error: str = ""


class Output(_Event):
    kind: Literal["output"] = "output"
    output: str = ""


class Progress(_Event):
    kind: Literal["progress"] = "progress"
    step: str
    message: str = ""
    progress: ProgressValue = None


class SetupComplete(_Event):
    kind: Literal["setup_complete"] = "setup_complete"
    vps_id: Optional[str] = Field(default=None, alias="vpsId")
    host: Optional[str] = None
    message: Optional[str] = None


class SetupError(_Event):
    kind: Literal["setup_error"] = "setup_error"
    error: str = ""
    host: Optional[str] = None
    domain: Optional[str] = None


class BlogCreated(_Event):
    kind: Literal["blog_created"] = "blog_created"
    domain: Optional[str] = None
    url: Optional[str] = None
    message: Optional[str] = None


class BlogCredentials(BaseModel):
    """WordPress credentials returned when a blog is created."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    domain: Optional[str] = None
    url: Optional[str] = None
    admin_url: Optional[str] = Field(default=None, alias="adminUrl")
    admin_username: Optional[str] = Field(default=None, alias="adminUsername")
    admin_password: Optional[str] = Field(default=None, alias="adminPassword")


class BlogCompleted(_Event):
    kind: Literal["blog_completed"] = "blog_completed"
    success: bool = True
    domain: Optional[str] = None
    credentials: Optional[BlogCredentials] = None


ProvisioningEvent = Annotated[
    Union[
        Connected,
        StepStart,
        StepComplete,
        StepError,
        Output,
        Progress,
        SetupComplete,
        SetupError,
        BlogCreated,
        BlogCompleted,
    ],
    Field(discriminator="kind"),
]

_event_adapter = TypeAdapter(ProvisioningEvent)

# Wire name -> kind, per namespace
EVENT_SURFACE: dict[EventNamespace, dict[str, str]] = {
    EventNamespace.VPS: {
        "connected": "connected",
        "stepStart": "step_start",
        "stepComplete": "step_complete",
        "stepError": "step_error",
        "output": "output",
        "setupComplete": "setup_complete",
        "setupError": "setup_error",
    },
    EventNamespace.SIMPLE_VPS: {
        "connected": "connected",
        "progress": "progress",
        "setupComplete": "setup_complete",
        "setupError": "setup_error",
    },
    EventNamespace.SIMPLE_BLOG: {
        "connected": "connected",
        "progress": "progress",
        "created": "blog_created",
        "completed": "blog_completed",
        "error": "setup_error",
    },
}

def split_event_name(event_name: str) -> tuple[Optional[EventNamespace], str]:
    """
    Split "simpleVps:progress" into (EventNamespace.SIMPLE_VPS, "progress").

    The namespace is None when the prefix is missing or not a provisioning
    namespace (e.g. chat events like "new:message").
    """
    prefix, sep, name = event_name.partition(":")
    if not sep:
        return None, event_name
    try:
        return EventNamespace(prefix), name
    except ValueError:
        return None, name


def event_names(namespace: EventNamespace) -> list[str]:
    """Fully qualified wire names for a namespace."""
    return [f"{namespace.value}:{name}" for name in EVENT_SURFACE[namespace]]


def parse_event(event_name: str, payload: Any = None) -> ProvisioningEvent:
    """
    Parse a wire event into its typed model.

    Raises:
        UnknownEventError: name is not part of any provisioning namespace's surface
        EventPayloadError: payload does not match the event's shape
    """
    namespace, name = split_event_name(event_name)
    if namespace is None:
        raise UnknownEventError(f"Not a provisioning event: {event_name}")

    kind = EVENT_SURFACE[namespace].get(name)
    if kind is None:
        raise UnknownEventError(f"Unknown event '{name}' in namespace '{namespace.value}'")

    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise EventPayloadError(
            f"Payload for {event_name} must be an object, got {type(payload).__name__}"
        )

    data = {**payload, "kind": kind, "namespace": namespace}
    try:
        return _event_adapter.validate_python(data)
    except ValidationError as e:
        raise EventPayloadError(f"Invalid payload for {event_name}: {e}") from e

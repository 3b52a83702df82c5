"""
Terminal-style rendering of a provisioning session.
"""

from bloghouse.messages import DEFAULT_LOCALE, translate
from bloghouse.progress.session import ProvisioningSession, SessionStatus

BAR_WIDTH = 30


def render_progress_bar(percent: int, width: int = BAR_WIDTH) -> str:
    """Render e.g. `[#########.....................]  30%`."""
    percent = max(0, min(100, int(percent)))
    filled = round(width * percent / 100)
    return f"[{'#' * filled}{'.' * (width - filled)}] {percent:3d}%"


def render_status_banner(session: ProvisioningSession, locale: str = DEFAULT_LOCALE) -> list[str]:
    """Header lines: the running step with its bar, or the terminal status."""
    if session.status == SessionStatus.COMPLETE:
        return [f"✔ {translate('terminal.complete', locale)}"]
    if session.status == SessionStatus.ERROR:
        lines = [f"✖ {translate('terminal.error', locale)}"]
        if session.error_message:
            lines.append(f"  {session.error_message}")
        return lines
    if session.current_step_name:
        return [session.current_step_name, render_progress_bar(session.progress_percent)]
    if session.status == SessionStatus.CONNECTING:
        return [render_progress_bar(session.progress_percent)]
    return []


def render_session(session: ProvisioningSession, locale: str = DEFAULT_LOCALE) -> str:
    """Render the whole session as terminal text."""
    lines = [f"== {session.namespace.value} [{session.status.value}] =="]
    lines.extend(render_status_banner(session, locale))
    lines.append("")

    if not session.output_log:
        lines.append(f"… {translate('terminal.waiting', locale)}")
    else:
        lines.extend(session.lines)

    # Cursor while the session can still change
    if not session.is_terminal:
        lines.append("█")

    return "\n".join(lines)

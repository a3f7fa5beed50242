"""Render statuses for the terminal."""

from typing import Dict, List, Optional

from github_ci_status.status import FAILURE_STATES

# Same markers as `hub ci-status`: (marker, ANSI foreground color)
STATE_MARKERS = {
    "success": ("✔︎", 32),
    "neutral": ("◦", 30),
    "pending": ("●", 33),
    **{state: ("✖︎", 31) for state in FAILURE_STATES},
}


def colorize(text: str, code: int, use_color: bool) -> str:
    return f"\x1b[{code}m{text}\x1b[39m" if use_color else text


def get_state_marker(state: Optional[str], use_color: bool) -> str:
    if state not in STATE_MARKERS:
        return ""
    marker, code = STATE_MARKERS[state]
    return colorize(marker, code, use_color)


def format_status(status: Dict, context_width: int, use_color: bool) -> str:
    state_marker = get_state_marker(status.get("state"), use_color)
    context = (status.get("context") or "").ljust(context_width)
    target_url = status.get("target_url")
    suffix = f"\t{target_url}" if target_url else ""
    return f"{state_marker}\t{context}{suffix}"


def format_statuses(statuses: List[Dict], use_color: bool) -> str:
    # If no status has a target_url, there's no need to size context
    if not any(status.get("target_url") for status in statuses):
        context_width = 0
    else:
        context_width = max(len(status.get("context") or "") for status in statuses)
    return "\n".join(
        format_status(status, context_width, use_color) for status in statuses
    )


def render(state: str, statuses: List[Dict], verbosity: int, use_color: bool) -> Optional[str]:
    """
    Text to print for a verbosity level: None when quiet, the overall state at
    0, the per-status breakdown above 0. Empty output reads "no status".
    """
    if verbosity < 0:
        return None
    formatted = state if verbosity == 0 else format_statuses(statuses, use_color)
    return formatted or "no status"

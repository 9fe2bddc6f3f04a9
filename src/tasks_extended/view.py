"""Plain-text rendering of the published session and task state."""

from datetime import datetime
from typing import List, Optional

from .auth.session import SessionSnapshot, SessionState
from .sync.refresh import RefreshState
from .tasks.tree import iter_tree
from .utils.datetime import format_due, time_ago

INDENT = "  "


def render_session(snapshot: SessionSnapshot) -> List[str]:
    if snapshot.state is SessionState.BOOTING:
        return []
    if snapshot.state is SessionState.AUTHENTICATING:
        return ["Waiting for authorization…"]
    if snapshot.state is SessionState.AUTHENTICATED:
        return ["Signed in."]

    lines = ["Sign in with Google to sync your tasks."]
    if snapshot.error:
        lines.append(f"! {snapshot.error}")
    return lines


def render_tasks(state: RefreshState, now: Optional[datetime] = None) -> List[str]:
    """
    Render the task screen.

    The first load shows "Loading…"; after that the last tree stays on screen
    during refreshes and next to any error.
    """
    header = "TASKS"
    if state.last_updated:
        header += f"  Updated {time_ago(state.last_updated, now)}"
    if state.refreshing and state.has_data:
        header += "  (refreshing…)"
    lines = [header]

    if state.is_initial_load:
        lines.append("Loading…")
    if state.error:
        lines.append(f"! {state.error}")

    if state.tree:
        for node, depth in iter_tree(state.tree):
            mark = "[x]" if node.is_completed else "[ ]"
            line = f"{INDENT * depth}{mark} {node.title}"
            if node.due:
                line += f"  ({format_due(node.due)})"
            lines.append(line)
            for note_line in (node.notes or "").splitlines():
                lines.append(f"{INDENT * (depth + 2)}{note_line}")
    elif state.is_empty and not state.error:
        lines.append("No tasks found.")

    return lines

"""
Unit tests for plain-text rendering.
"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from tasks_extended.auth.session import SessionSnapshot, SessionState
from tasks_extended.sync.refresh import RefreshState
from tasks_extended.tasks.tree import build_tree
from tasks_extended.tasks.types import TaskRecord
from tasks_extended.view import render_session, render_tasks

NOW = datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def tree():
    return tuple(build_tree([
        TaskRecord(id="1", title="Groceries", position="1", notes="Corner shop\nBefore 6pm"),
        TaskRecord(id="2", title="Milk", parent="1", position="1", status="completed"),
        TaskRecord(id="3", title="Taxes", position="2",
                   due=datetime(2025, 1, 20, 9, 0, tzinfo=timezone.utc)),
    ]))


@pytest.mark.unit
class TestRenderSession:
    """Test cases for the session surface."""

    def test_booting_renders_nothing(self):
        assert render_session(SessionSnapshot(SessionState.BOOTING)) == []

    def test_signed_out_with_error(self):
        lines = render_session(SessionSnapshot(SessionState.UNAUTHENTICATED, error="Sign-in failed"))
        assert lines == ["Sign in with Google to sync your tasks.", "! Sign-in failed"]

    def test_authenticating(self):
        assert render_session(SessionSnapshot(SessionState.AUTHENTICATING)) == ["Waiting for authorization…"]


@pytest.mark.unit
class TestRenderTasks:
    """Test cases for the task screen."""

    def test_initial_load(self):
        assert render_tasks(RefreshState(refreshing=True), NOW) == ["TASKS", "Loading…"]

    def test_empty(self):
        lines = render_tasks(RefreshState(tree=(), last_updated=NOW - timedelta(minutes=3)), NOW)
        assert lines == ["TASKS  Updated 3m ago", "No tasks found."]

    @patch('tasks_extended.utils.datetime.tzlocal.get_localzone', return_value=timezone.utc)
    def test_tree(self, mock_zone, tree):
        lines = render_tasks(RefreshState(tree=tree, last_updated=NOW), NOW)

        assert lines == [
            "TASKS  Updated just now",
            "[ ] Groceries",
            "    Corner shop",
            "    Before 6pm",
            "  [x] Milk",
            "[ ] Taxes  (Mon, Jan 20, 9:00 AM)",
        ]

    def test_refreshing_keeps_tree(self, tree):
        lines = render_tasks(RefreshState(tree=tree, last_updated=NOW, refreshing=True), NOW)

        assert lines[0] == "TASKS  Updated just now  (refreshing…)"
        assert "[ ] Groceries" in lines

    def test_error_next_to_stale_tree(self, tree):
        lines = render_tasks(RefreshState(tree=tree, last_updated=NOW, error="Service unavailable"), NOW)

        assert lines[1] == "! Service unavailable"
        assert "[ ] Groceries" in lines

    def test_error_without_data(self):
        lines = render_tasks(RefreshState(error="Unauthorized"), NOW)
        assert lines == ["TASKS", "! Unauthorized"]

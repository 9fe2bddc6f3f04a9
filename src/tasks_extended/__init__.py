"""
Client synchronization engine for Google Tasks.

Restores or interactively creates an OAuth2 session, lists the user's tasks,
and publishes them as an ordered tree that stays on screen while refreshes run
or fail.
"""

from .app import TasksApp
from .config import AppConfig
from .auth import Credential, SessionManager, SessionState
from .sync import RefreshController, RefreshState, Trigger
from .tasks import TaskRecord, TaskNode, build_tree

__version__ = "0.1.0"

__all__ = [
    "TasksApp",
    "AppConfig",
    "Credential",
    "SessionManager",
    "SessionState",
    "RefreshController",
    "RefreshState",
    "Trigger",
    "TaskRecord",
    "TaskNode",
    "build_tree",
]

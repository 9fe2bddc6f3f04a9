"""Task records, the task tree builder and the Google Tasks source."""

from .types import TaskRecord, TaskNode
from .tree import build_tree, iter_tree, count_nodes
from .source import RemoteTaskSource, GoogleTasksSource

__all__ = [
    # Data types
    "TaskRecord",
    "TaskNode",

    # Tree builder
    "build_tree",
    "iter_tree",
    "count_nodes",

    # Remote source
    "RemoteTaskSource",
    "GoogleTasksSource",
]

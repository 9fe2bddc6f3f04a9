from dataclasses import dataclass, fields
from datetime import datetime
from typing import Optional, Tuple

from .constants import TASK_STATUS_COMPLETED


@dataclass(frozen=True)
class TaskRecord:
    """
    A task as received from the provider.
    Args:
        id: Unique identifier, stable across syncs.
        title: The title of the task.
        notes: Notes describing the task.
        due: Due date of the task.
        status: 'needsAction' or 'completed'.
        position: Opaque string whose lexicographic order is the display order among siblings.
        parent: Identifier of the parent task, if any.
        completed: Completion time of the task.
        updated: Last modification time.
    """
    id: str
    title: Optional[str] = None
    notes: Optional[str] = None
    due: Optional[datetime] = None
    status: Optional[str] = None
    position: Optional[str] = None
    parent: Optional[str] = None
    completed: Optional[datetime] = None
    updated: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.status == TASK_STATUS_COMPLETED


@dataclass(frozen=True)
class TaskNode(TaskRecord):
    """
    A normalized task plus its ordered children.
    Built fresh by ``build_tree``; a node is never shared between two trees.
    """
    children: Tuple["TaskNode", ...] = ()

    @classmethod
    def from_record(cls, record: TaskRecord, children: Tuple["TaskNode", ...] = ()) -> "TaskNode":
        values = {f.name: getattr(record, f.name) for f in fields(TaskRecord)}
        return cls(children=tuple(children), **values)

    def __repr__(self):
        return f"TaskNode(id={self.id!r}, title={self.title!r}, children={len(self.children)})"

from dataclasses import replace
from typing import Any, Dict, Mapping, Optional, Union
import logging

from ..utils.datetime import parse_rfc3339
from ..utils.log_sanitizer import sanitize_title
from .constants import TASK_STATUS_NEEDS_ACTION, VALID_TASK_STATUSES, UNTITLED_PLACEHOLDER
from .types import TaskRecord

logger = logging.getLogger(__name__)


def _as_id(value: Any) -> Optional[str]:
    # Ids and parent links are compared as strings, whatever type they arrived as
    if value is None or value == "":
        return None
    return str(value)


def from_google_task(google_task: Mapping[str, Any]) -> TaskRecord:
    """
    Create a TaskRecord from a Google Tasks API response item, as received.

    Missing optional fields stay None; see ``normalize_record`` for defaults.

    Args:
        google_task: Dictionary containing task data from Google Tasks API

    Returns:
        TaskRecord populated with the data from the dictionary

    Raises:
        ValueError: If the item has no id
    """
    task_id = _as_id(google_task.get('id'))
    if task_id is None:
        raise ValueError("Task data has no id")

    return TaskRecord(
        id=task_id,
        title=google_task.get('title'),
        notes=google_task.get('notes'),
        due=parse_rfc3339(google_task.get('due')),
        status=google_task.get('status'),
        position=google_task.get('position'),
        parent=_as_id(google_task.get('parent')),
        completed=parse_rfc3339(google_task.get('completed')),
        updated=parse_rfc3339(google_task.get('updated')),
    )


def normalize_record(record: Union[TaskRecord, Dict[str, Any]]) -> TaskRecord:
    """
    Fill in defaults for missing fields.

    Title falls back to a placeholder, notes and position to "", status to
    needsAction; an empty parent means no parent. Raw API dictionaries are
    accepted as well.
    """
    if not isinstance(record, TaskRecord):
        record = from_google_task(record)

    status = record.status or TASK_STATUS_NEEDS_ACTION
    if status not in VALID_TASK_STATUSES:
        logger.warning("Invalid task status: %s, defaulting to %s", status, TASK_STATUS_NEEDS_ACTION)
        status = TASK_STATUS_NEEDS_ACTION

    title = record.title or UNTITLED_PLACEHOLDER
    if record.title is None:
        logger.debug("Task %s has no title", record.id)

    return replace(
        record,
        title=title,
        notes=record.notes or "",
        status=status,
        position=record.position or "",
        id=_as_id(record.id),
        parent=_as_id(record.parent),
    )


def describe_record(record: TaskRecord) -> str:
    """Short, log-safe description of a record."""
    return f"{record.id} {sanitize_title(record.title)}"

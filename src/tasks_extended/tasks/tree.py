"""
Flat task records to an ordered, parent-linked tree.

``build_tree`` is pure: no I/O, no state kept between calls. Siblings are
ordered by ``position`` using plain string comparison (codepoint order),
with a stable sort so equal positions keep their input order.

A record whose parent is not in the snapshot is promoted to a root. Parent
links are classified in a single pass without cycle detection, so records
whose parent chain loops without ever reaching a root are not reachable from
any root and do not appear in the result.
"""

from typing import Dict, Iterable, Iterator, List, Mapping, Sequence, Tuple, Union, Any
import logging

from .types import TaskNode, TaskRecord
from .utils import describe_record, normalize_record

logger = logging.getLogger(__name__)

RecordLike = Union[TaskRecord, Mapping[str, Any]]


def _position_key(record: TaskRecord) -> str:
    return record.position or ""


def _ordered(records: Iterable[TaskRecord]) -> List[TaskRecord]:
    return sorted(records, key=_position_key)


def build_tree(records: Sequence[RecordLike]) -> List[TaskNode]:
    """
    Build the task tree for one snapshot.

    Args:
        records: Task records as received (TaskRecord instances or raw API dicts)

    Returns:
        Root nodes ordered by position, each with recursively ordered children.
    """
    # Last write wins on a duplicate id; the first occurrence keeps its slot in input order
    index: Dict[str, TaskRecord] = {}
    for raw in records:
        record = normalize_record(raw)
        if record.id in index:
            logger.warning("Duplicate task id %s, keeping the last copy", describe_record(record))
        index[record.id] = record

    roots: List[TaskRecord] = []
    children_of: Dict[str, List[TaskRecord]] = {task_id: [] for task_id in index}
    for record in index.values():
        if record.parent is not None and record.parent in index:
            children_of[record.parent].append(record)
        else:
            if record.parent is not None:
                logger.debug("Promoting task %s to root, parent %s is not in the snapshot",
                             record.id, record.parent)
            roots.append(record)

    tree = _assemble(_ordered(roots), children_of)

    unreachable = len(index) - count_nodes(tree)
    if unreachable:
        logger.warning("%d task(s) are unreachable from any root (cyclic parent links)", unreachable)

    return tree


def _assemble(roots: List[TaskRecord], children_of: Dict[str, List[TaskRecord]]) -> List[TaskNode]:
    # Post-order construction with an explicit stack, depth is unbounded
    built: Dict[str, TaskNode] = {}
    stack: List[Tuple[TaskRecord, bool]] = [(record, False) for record in reversed(roots)]

    while stack:
        record, expanded = stack.pop()
        kids = _ordered(children_of[record.id])
        if expanded:
            built[record.id] = TaskNode.from_record(record, tuple(built.pop(child.id) for child in kids))
        else:
            stack.append((record, True))
            stack.extend((child, False) for child in kids)

    return [built.pop(record.id) for record in roots]


def iter_tree(nodes: Iterable[TaskNode], depth: int = 0) -> Iterator[Tuple[TaskNode, int]]:
    """Yield ``(node, depth)`` pairs in display order (pre-order)."""
    stack = [(node, depth) for node in reversed(list(nodes))]
    while stack:
        node, level = stack.pop()
        yield node, level
        stack.extend((child, level + 1) for child in reversed(node.children))


def count_nodes(nodes: Iterable[TaskNode]) -> int:
    """Total number of nodes in the given trees."""
    return sum(1 for _ in iter_tree(nodes))

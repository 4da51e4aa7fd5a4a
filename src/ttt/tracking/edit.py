"""Direct edits of a task's name and timestamps.

The flag-driven and interactive front-ends both build a ``TaskEdit`` and
hand it to ``apply_edit``, which works on a copy and only returns it once
the edited store still satisfies every invariant.
"""
import copy

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Union

from ttt.utils.dataModels import Store, find_violations
from ttt.utils.errors import NotFoundError, ValidationError
from ttt.utils.helper import parse_instant_input, parse_optional_instant_input


class _Unchanged:
    def __repr__(self) -> str:
        return "UNCHANGED"


UNCHANGED = _Unchanged()


@dataclass
class SegmentEdit:
    index: int  # 1-based
    start_at: datetime
    end_at: Optional[datetime]


@dataclass
class TaskEdit:
    name: Optional[str] = None
    created_at: Optional[datetime] = None
    closed_at: Union[datetime, None, _Unchanged] = UNCHANGED
    segments: List[SegmentEdit] = field(default_factory=list)

    def is_empty(self) -> bool:
        return (
            self.name is None
            and self.created_at is None
            and self.closed_at is UNCHANGED
            and not self.segments
        )


def resolve_task_index(store: Store, task_id: Optional[str] = None, index: Optional[int] = None) -> int:
    """Return the 0-based position of the referenced task."""
    if task_id is not None and index is not None:
        raise ValidationError("Use either --id or --index, not both.")
    if not store.tasks:
        raise NotFoundError("No tasks to edit.")
    if task_id is not None:
        for pos, task in enumerate(store.tasks):
            if task.id == task_id:
                return pos
        raise NotFoundError(f'No task found with id "{task_id}".')
    if index is not None:
        if not 1 <= index <= len(store.tasks):
            raise NotFoundError(f"Task index must be between 1 and {len(store.tasks)}.")
        return index - 1
    raise ValidationError("No task selected.")


def parse_segment_edit(text: str, now: datetime) -> SegmentEdit:
    parts = text.split(",", 2)
    if len(parts) != 3:
        raise ValidationError("Segment edit must be in the form INDEX,START,END.")
    try:
        index = int(parts[0])
    except ValueError:
        raise ValidationError(f"Segment index must be a number, got {parts[0]!r}.") from None
    return SegmentEdit(
        index=index,
        start_at=parse_instant_input(parts[1], now, "segment start"),
        end_at=parse_optional_instant_input(parts[2], now, "segment end"),
    )


def apply_edit(store: Store, index: int, edit: TaskEdit) -> Store:
    edited = copy.deepcopy(store)
    task = edited.tasks[index]

    if edit.name is not None:
        if not edit.name.strip():
            raise ValidationError("Task name cannot be empty.")
        task.name = edit.name
    if edit.created_at is not None:
        task.created_at = edit.created_at
    if edit.closed_at is not UNCHANGED:
        task.closed_at = edit.closed_at
    for seg_edit in edit.segments:
        if not 1 <= seg_edit.index <= len(task.segments):
            raise ValidationError(f"Segment index must be between 1 and {len(task.segments)}.")
        seg = task.segments[seg_edit.index - 1]
        seg.start_at = seg_edit.start_at
        seg.end_at = seg_edit.end_at

    problems = find_violations(edited)
    if problems:
        raise ValidationError(f'Edit of "{task.name}" rejected: ' + "; ".join(problems) + ".")
    return edited

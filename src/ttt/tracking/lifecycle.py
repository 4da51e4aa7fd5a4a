"""Start/pause/resume/stop transitions over the whole store.

Only one task may be not-stopped at a time, so the state machine is global:

    Idle --start--> Active --pause--> Paused --resume--> Active
    Active|Paused --stop--> Idle (the task itself is Stopped for good)

The current task is never stored; it is derived by scanning the tasks.
Every operation checks its precondition before touching the model, so a
failed call leaves the store exactly as it was.
"""
import uuid

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Callable, Optional, Tuple

from ttt.utils.dataModels import Segment, Store, Task
from ttt.utils.errors import (
    ConflictError,
    InvariantViolation,
    NoActiveTaskError,
    NoCurrentTaskError,
    NoPausedTaskError,
    ValidationError,
)


class TaskState(StrEnum):
    ACTIVE = "active"
    PAUSED = "paused"
    STOPPED = "stopped"


@dataclass
class TaskStatus:
    index: int
    task: Task
    state: TaskState
    elapsed_seconds: int
    since: datetime


def segment_seconds(segment: Segment, now: datetime) -> int:
    end = segment.end_at or now
    return max(int((end - segment.start_at).total_seconds()), 0)


def total_elapsed(task: Task, now: datetime) -> int:
    return sum(segment_seconds(s, now) for s in task.segments)


def task_state(task: Task) -> TaskState:
    if task.open_segments():
        return TaskState.ACTIVE
    if not task.is_stopped:
        return TaskState.PAUSED
    return TaskState.STOPPED


def current_task(store: Store) -> Optional[Tuple[int, TaskState]]:
    found = [(i, task_state(t)) for i, t in enumerate(store.tasks) if not t.is_stopped]
    if len(found) > 1:
        names = ", ".join(f'"{store.tasks[i].name}"' for i, _ in found)
        raise InvariantViolation(f"Corrupt store: more than one task is not stopped ({names}).")
    return found[0] if found else None


def start(store: Store, name: str, now: datetime,
          new_id: Callable[[], str] = lambda: str(uuid.uuid4())) -> Task:
    if not name or not name.strip():
        raise ValidationError("Task name cannot be empty.")
    current = current_task(store)
    if current is not None:
        idx, state = current
        raise ConflictError(f'Task "{store.tasks[idx].name}" is {state}. Stop it before starting another.')
    task = Task(id=new_id(), name=name, created_at=now, segments=[Segment(start_at=now)])
    store.tasks.append(task)
    return task


def pause(store: Store, now: datetime) -> Task:
    current = current_task(store)
    if current is None:
        raise NoActiveTaskError('No active task. Start one with "ttt start <task>".')
    idx, state = current
    if state is not TaskState.ACTIVE:
        raise NoActiveTaskError('Task is already paused. Resume it with "ttt resume".')
    task = store.tasks[idx]
    task.open_segments()[0].end_at = now
    return task


def resume(store: Store, now: datetime) -> Task:
    current = current_task(store)
    if current is None:
        raise NoPausedTaskError('No paused task. Start one with "ttt start <task>".')
    idx, state = current
    task = store.tasks[idx]
    if state is not TaskState.PAUSED:
        raise NoPausedTaskError(f'Task "{task.name}" is already running. Pause it with "ttt pause".')
    task.segments.append(Segment(start_at=now))
    return task


def stop(store: Store, now: datetime) -> Task:
    current = current_task(store)
    if current is None:
        raise NoCurrentTaskError('No active or paused task. Start one with "ttt start <task>".')
    task = store.tasks[current[0]]
    for seg in task.open_segments():
        seg.end_at = now
    task.closed_at = now
    return task


def status(store: Store, now: datetime) -> Optional[TaskStatus]:
    current = current_task(store)
    if current is None:
        return None
    idx, state = current
    task = store.tasks[idx]
    if state is TaskState.ACTIVE:
        since = task.open_segments()[0].start_at
    else:
        ends = [s.end_at for s in task.segments if s.end_at is not None]
        since = max(ends) if ends else task.created_at
    return TaskStatus(index=idx, task=task, state=state, elapsed_seconds=total_elapsed(task, now), since=since)

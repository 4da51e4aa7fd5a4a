"""Per-task totals for a time window, in task creation order."""
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from enum import StrEnum
from typing import List, Optional, Tuple

from ttt.tracking.lifecycle import task_state
from ttt.utils.dataModels import Segment, Store

Window = Tuple[datetime, datetime]


class ListWindow(StrEnum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"


@dataclass
class TaskListEntry:
    index: int  # 1-based position in the store, as accepted by ``edit --index``
    id: str
    name: str
    status: str
    seconds: int


@dataclass
class TaskList:
    window: ListWindow
    header: Optional[str]
    entries: List[TaskListEntry] = field(default_factory=list)

    @property
    def total_seconds(self) -> int:
        return sum(e.seconds for e in self.entries)


def _local_midnight(day: date, tz: Optional[tzinfo]) -> datetime:
    midnight = datetime.combine(day, time.min)
    if tz is None:
        # Offset of the system zone on that day, not today.
        return midnight.astimezone()
    return midnight.replace(tzinfo=tz)


def today_bounds(now: datetime, tz: Optional[tzinfo]) -> Window:
    day = now.astimezone(tz).date()
    return _local_midnight(day, tz), _local_midnight(day + timedelta(days=1), tz)


def week_bounds(now: datetime, tz: Optional[tzinfo]) -> Window:
    day = now.astimezone(tz).date()
    monday = day - timedelta(days=day.weekday())
    return _local_midnight(monday, tz), _local_midnight(monday + timedelta(days=7), tz)


def window_bounds(window: ListWindow, now: datetime, tz: Optional[tzinfo]) -> Optional[Window]:
    if window is ListWindow.TODAY:
        return today_bounds(now, tz)
    if window is ListWindow.WEEK:
        return week_bounds(now, tz)
    return None


def list_header(window: ListWindow, now: datetime, tz: Optional[tzinfo]) -> Optional[str]:
    if window is ListWindow.TODAY:
        return now.astimezone(tz).date().isoformat()
    if window is ListWindow.WEEK:
        start, end = week_bounds(now, tz)
        last = (end - timedelta(days=1)).date()
        return f"Week {start.date().isoformat()} to {last.isoformat()}"
    return None


def overlap_seconds(segment: Segment, bounds: Optional[Window], now: datetime) -> int:
    start = segment.start_at
    end = segment.end_at or now
    if bounds is not None:
        start = max(start, bounds[0])
        end = min(end, bounds[1])
    return max(int((end - start).total_seconds()), 0)


def list_tasks(store: Store, window: ListWindow, now: datetime, tz: Optional[tzinfo]) -> TaskList:
    bounds = window_bounds(window, now, tz)
    result = TaskList(window=window, header=list_header(window, now, tz))
    for idx, task in enumerate(store.tasks, start=1):
        seconds = sum(overlap_seconds(s, bounds, now) for s in task.segments)
        if bounds is not None and seconds == 0:
            continue
        result.entries.append(TaskListEntry(
            index=idx,
            id=task.id,
            name=task.name,
            status=str(task_state(task)),
            seconds=seconds,
        ))
    return result

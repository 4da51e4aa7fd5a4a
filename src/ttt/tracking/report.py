"""Daily report: one line per segment, most recent first.

A closed segment is attributed to the local calendar day that contains its
``end_at``; a segment that spans midnight therefore shows up whole on the
day it finished. An open segment ends "now" and belongs to the day that
contains ``now``. Durations are never clipped to the day.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from typing import List, Optional

from ttt.tracking.lifecycle import segment_seconds
from ttt.utils.dataModels import Store


@dataclass
class ReportEntry:
    task_index: int
    task_id: str
    task_name: str
    start_at: datetime
    end_at: Optional[datetime]
    seconds: int

    @property
    def is_open(self) -> bool:
        return self.end_at is None


@dataclass
class Report:
    day: date
    entries: List[ReportEntry] = field(default_factory=list)

    @property
    def total_seconds(self) -> int:
        return sum(e.seconds for e in self.entries)


def build_report(store: Store, day: date, now: datetime, tz: Optional[tzinfo]) -> Report:
    rows = []
    for t_idx, task in enumerate(store.tasks):
        for s_idx, seg in enumerate(task.segments):
            effective_end = seg.end_at or now
            if effective_end.astimezone(tz).date() != day:
                continue
            entry = ReportEntry(
                task_index=t_idx,
                task_id=task.id,
                task_name=task.name,
                start_at=seg.start_at,
                end_at=seg.end_at,
                seconds=segment_seconds(seg, now),
            )
            # Open first, then latest end; ties keep store order.
            key = (0 if seg.is_open else 1, -effective_end.timestamp(), t_idx, s_idx)
            rows.append((key, entry))
    rows.sort(key=lambda r: r[0])
    return Report(day=day, entries=[entry for _, entry in rows])

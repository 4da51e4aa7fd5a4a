# tests/builders.py

from __future__ import annotations

from datetime import datetime, timezone

from ttt.utils.dataModels import KdfParams, Segment, Task

# Smallest legal Argon2id costs; real defaults would make the suite slow.
FAST_KDF = KdfParams(t_cost=1, m_cost_kib=8, parallelism=1)
PASSPHRASE = "correct horse battery staple"


def utc(hour: int, minute: int = 0, second: int = 0, day: int = 1, month: int = 1) -> datetime:
    return datetime(2025, month, day, hour, minute, second, tzinfo=timezone.utc)


def make_task(task_id: str, name: str, *segments: tuple, closed_at: datetime | None = None) -> Task:
    segs = [Segment(start_at=s, end_at=e) for s, e in segments]
    created = segs[0].start_at if segs else utc(0)
    return Task(id=task_id, name=name, created_at=created, closed_at=closed_at, segments=segs)

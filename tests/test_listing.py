# tests/test_listing.py

from __future__ import annotations

from datetime import timezone

from ttt.tracking.listing import ListWindow, list_tasks, today_bounds, week_bounds
from ttt.utils.helper import local_tz
from ttt.utils.dataModels import Store

from builders import make_task, utc

UTC = timezone.utc


def _store() -> Store:
    # 2025-01-08 is a Wednesday.
    return Store(tasks=[
        make_task("old", "last week", (utc(9, day=5), utc(10, day=5)), closed_at=utc(10, day=5)),
        make_task("mon", "monday", (utc(9, day=6), utc(11, day=6)), closed_at=utc(11, day=6)),
        make_task("night", "overnight", (utc(23, day=7), utc(1, day=8)), closed_at=utc(1, day=8)),
        make_task("now", "current", (utc(9, day=8), utc(9, 30, day=8)), (utc(10, day=8), None)),
    ])


def test_all_lists_every_task_in_creation_order() -> None:
    listing = list_tasks(_store(), ListWindow.ALL, utc(10, 15, day=8), UTC)
    assert listing.header is None
    assert [e.id for e in listing.entries] == ["old", "mon", "night", "now"]
    assert [e.index for e in listing.entries] == [1, 2, 3, 4]
    assert [e.seconds for e in listing.entries] == [3600, 7200, 7200, 1800 + 900]
    assert [e.status for e in listing.entries] == ["stopped", "stopped", "stopped", "active"]
    assert listing.total_seconds == 3600 + 7200 + 7200 + 2700


def test_today_clips_segments_to_the_local_day() -> None:
    listing = list_tasks(_store(), ListWindow.TODAY, utc(10, 15, day=8), UTC)
    assert listing.header == "2025-01-08"
    assert [(e.id, e.seconds) for e in listing.entries] == [("night", 3600), ("now", 2700)]
    assert listing.total_seconds == 3600 + 2700


def test_week_starts_on_monday() -> None:
    now = utc(10, 15, day=8)
    start, end = week_bounds(now, UTC)
    assert (start, end) == (utc(0, day=6), utc(0, day=13))

    listing = list_tasks(_store(), ListWindow.WEEK, now, UTC)
    assert listing.header == "Week 2025-01-06 to 2025-01-12"
    assert [e.id for e in listing.entries] == ["mon", "night", "now"]
    assert listing.total_seconds == 7200 + 7200 + 2700


def test_empty_window_has_no_entries() -> None:
    listing = list_tasks(Store(), ListWindow.TODAY, utc(12), UTC)
    assert listing.entries == []
    assert listing.total_seconds == 0


def test_system_zone_bounds_follow_dst_per_day(central_european_time: None) -> None:
    tz = local_tz()
    # 2025-03-30 has only 23 hours in CET/CEST.
    assert today_bounds(utc(12, day=30, month=3), tz) == (utc(23, day=29, month=3), utc(22, day=30, month=3))
    # The week of 2025-03-24 starts in winter time and ends in summer time.
    assert week_bounds(utc(12, day=26, month=3), tz) == (utc(23, day=23, month=3), utc(22, day=30, month=3))

# tests/conftest.py

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Iterator

import pytest

from ttt.utils.dataModels import KdfParams, Store

from builders import FAST_KDF, make_task, utc


@pytest.fixture(autouse=True)
def fast_kdf(monkeypatch: pytest.MonkeyPatch) -> KdfParams:
    """New data files get the cheap KDF costs instead of the production defaults."""
    monkeypatch.setattr("ttt.storage.vault.KdfParams", lambda: FAST_KDF)
    return FAST_KDF


@pytest.fixture()
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "data" / "ttt.enc"


@pytest.fixture()
def sample_store() -> Store:
    """One stopped task and one paused task."""
    return Store(tasks=[
        make_task("t-1", "writing", (utc(9), utc(9, 30)), (utc(10), utc(10, 15)), closed_at=utc(10, 15)),
        make_task("t-2", "review", (utc(11), utc(11, 20))),
    ])


@pytest.fixture()
def central_european_time() -> Iterator[None]:
    """Run with the process zone set to CET/CEST (DST switch on the last Sunday of March)."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is POSIX only")
    old = os.environ.get("TZ")
    os.environ["TZ"] = "CET-1CEST,M3.5.0,M10.5.0/3"
    time.tzset()
    yield
    if old is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = old
    time.tzset()

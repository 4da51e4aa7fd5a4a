# tests/test_cli.py

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from ttt.main import main
from ttt.storage.vault import backup_paths, load_store

from builders import PASSPHRASE, utc


@pytest.fixture()
def clock(monkeypatch: pytest.MonkeyPatch) -> dict:
    state = {"now": utc(9)}
    monkeypatch.setattr("ttt.main.utc_now", lambda: state["now"])
    monkeypatch.setattr("ttt.main.local_tz", lambda: timezone.utc)
    return state


@pytest.fixture(autouse=True)
def env(monkeypatch: pytest.MonkeyPatch, data_file: Path) -> None:
    monkeypatch.setenv("TTT_DATA_FILE", str(data_file))
    monkeypatch.setenv("TTT_PASSPHRASE", PASSPHRASE)
    monkeypatch.delenv("TTT_NEW_PASSPHRASE", raising=False)


def run(clock: dict, when: datetime, *argv: str) -> None:
    clock["now"] = when
    main(list(argv))


def fails(clock: dict, when: datetime, *argv: str) -> None:
    with pytest.raises(SystemExit) as exc:
        run(clock, when, *argv)
    assert exc.value.code == 2


def test_full_day_through_the_cli(clock: dict, data_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    run(clock, utc(9), "start", "writing")
    run(clock, utc(9, 30), "pause")
    run(clock, utc(10), "resume")
    run(clock, utc(10, 15), "stop")
    out = capsys.readouterr().out
    assert "Started: writing at 09:00:00" in out
    assert f"Created encrypted data file at {data_file}" in out
    assert "Paused: writing at 09:30:00 (total 00:30:00)" in out
    assert "Resumed: writing at 10:00:00" in out
    assert "Stopped: writing at 10:15:00 (total 00:45:00)" in out

    store = load_store(data_file, PASSPHRASE)
    assert len(store.tasks) == 1
    assert store.tasks[0].closed_at == utc(10, 15)

    run(clock, utc(12), "list")
    out = capsys.readouterr().out
    assert "[stopped] writing" in out
    assert "Total: 00:45:00" in out

    run(clock, utc(12), "report")
    out = capsys.readouterr().out.splitlines()
    assert out == [
        "2025-01-01",
        "10:00:00 - 10:15:00 - writing (00:15:00)",
        "09:00:00 - 09:30:00 - writing (00:30:00)",
        "Total: 00:45:00",
    ]


def test_status_shows_active_and_paused(clock: dict, capsys: pytest.CaptureFixture[str]) -> None:
    run(clock, utc(9), "status")
    assert 'No active task. Start one with "ttt start".' in capsys.readouterr().out

    run(clock, utc(9), "start", "coding")
    run(clock, utc(9, 5, 30), "status")
    assert "Active: coding - 00:05:30 (since 09:00:00)" in capsys.readouterr().out

    run(clock, utc(9, 10), "pause")
    run(clock, utc(11), "status")
    assert "Paused: coding - 00:10:00 (paused at 09:10:00)" in capsys.readouterr().out


def test_invalid_transition_exits_2_with_message_on_stderr(
    clock: dict, data_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    fails(clock, utc(9), "pause")
    err = capsys.readouterr().err
    assert "No active task" in err
    assert not data_file.exists()


def test_wrong_passphrase_exits_2(clock: dict, monkeypatch: pytest.MonkeyPatch,
                                  capsys: pytest.CaptureFixture[str]) -> None:
    run(clock, utc(9), "start", "a")
    monkeypatch.setenv("TTT_PASSPHRASE", "nope")
    fails(clock, utc(9, 1), "status")
    assert "Invalid passphrase or corrupted data file." in capsys.readouterr().err


def test_start_while_running_needs_confirmation(clock: dict, data_file: Path,
                                                 monkeypatch: pytest.MonkeyPatch) -> None:
    run(clock, utc(9), "start", "first")
    monkeypatch.setattr("builtins.input", lambda _prompt: "n")
    fails(clock, utc(9, 30), "start", "second")
    assert [t.name for t in load_store(data_file, PASSPHRASE).tasks] == ["first"]

    run(clock, utc(9, 45), "start", "second", "--yes")
    tasks = load_store(data_file, PASSPHRASE).tasks
    assert [t.name for t in tasks] == ["first", "second"]
    assert tasks[0].closed_at == utc(9, 45)


def test_edit_with_flags(clock: dict, data_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    run(clock, utc(9), "start", "typo")
    run(clock, utc(10), "stop")
    run(clock, utc(11), "edit", "--index", "1", "--name", "fixed",
        "--segment-edit", "1,2025-01-01T08:30:00Z,2025-01-01T10:00:00Z")
    assert "Updated: fixed" in capsys.readouterr().out
    task = load_store(data_file, PASSPHRASE).tasks[0]
    assert task.name == "fixed"
    assert task.segments[0].start_at == utc(8, 30)

    fails(clock, utc(11), "edit", "--index", "1", "--created-at", "yesterday")
    assert "Invalid created at timestamp" in capsys.readouterr().err
    fails(clock, utc(11), "edit", "--index", "9", "--name", "x")


def test_list_today_and_week_are_exclusive(clock: dict, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        run(clock, utc(9), "list", "--today", "--week")
    assert exc.value.code == 2


def test_rekey_and_restore(clock: dict, data_file: Path, monkeypatch: pytest.MonkeyPatch,
                           capsys: pytest.CaptureFixture[str]) -> None:
    run(clock, utc(9), "start", "a")
    run(clock, utc(10), "stop")

    monkeypatch.setenv("TTT_NEW_PASSPHRASE", "second secret")
    run(clock, utc(11), "rekey")
    assert load_store(data_file, "second secret").tasks[0].name == "a"

    # The backup from before the rekey still uses the first passphrase.
    data_file.write_bytes(b"broken")
    run(clock, utc(12), "restore", "--slot", "1")
    assert "Restored" in capsys.readouterr().out
    assert data_file.read_bytes() == backup_paths(data_file)[0].read_bytes()
    assert load_store(data_file, PASSPHRASE).tasks[0].closed_at == utc(10)


def test_location_and_version(clock: dict, data_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    run(clock, utc(9), "location")
    run(clock, utc(9), "version")
    out = capsys.readouterr().out.splitlines()
    assert out == [str(data_file), "ttt 0.1.0"]


def test_rekey_with_out_of_range_memory_cost_exits_2(clock: dict, data_file: Path,
                                                      capsys: pytest.CaptureFixture[str]) -> None:
    run(clock, utc(9), "start", "a")
    before = data_file.read_bytes()
    fails(clock, utc(10), "rekey", "-m", "4000000000")
    assert "Argon2 costs must satisfy" in capsys.readouterr().err
    assert data_file.read_bytes() == before


def test_rekey_checks_current_passphrase_before_asking_for_a_new_one(
    clock: dict, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    run(clock, utc(9), "start", "a")
    asked = []
    monkeypatch.setattr("ttt.ui.prompt.getpass.getpass", lambda prompt: asked.append(prompt) or "x")
    monkeypatch.setenv("TTT_PASSPHRASE", "wrong")
    fails(clock, utc(10), "rekey")
    assert "Invalid passphrase or corrupted data file." in capsys.readouterr().err
    assert asked == []


def test_restore_yes_without_slot_takes_the_most_recent_backup(
    clock: dict, data_file: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    run(clock, utc(9), "start", "a")
    run(clock, utc(10), "stop")
    data_file.write_bytes(b"broken")

    def no_prompt(_prompt):
        raise AssertionError("restore --yes must not prompt")

    monkeypatch.setattr("builtins.input", no_prompt)
    run(clock, utc(11), "restore", "--yes")
    assert "from backup slot 1" in capsys.readouterr().out
    assert data_file.read_bytes() == backup_paths(data_file)[0].read_bytes()
    assert load_store(data_file, PASSPHRASE).tasks[0].closed_at is None

import argparse
import logging

from datetime import date
from pathlib import Path
from typing import Tuple

from ttt.storage.vault import load_store, save_store
from ttt.tracking import lifecycle
from ttt.tracking.lifecycle import TaskState
from ttt.tracking.listing import ListWindow, list_tasks
from ttt.tracking.report import build_report
from ttt.ui.prompt import prompt_required, prompt_yes_no, read_passphrase
from ttt.utils.dataModels import APP_NAME, APP_VERSION, Store
from ttt.utils.errors import ValidationError
from ttt.utils.helper import data_file_path, format_duration, format_local_time

logger = logging.getLogger(__name__)


def unlock(args: argparse.Namespace, will_write: bool = False) -> Tuple[Path, str, Store, bool]:
    """Resolve the data file, ask for the passphrase once and load the store.

    The passphrase is confirmed only when this command is about to create
    the file, so a typo cannot lock the user out of a brand new store.
    """
    path = data_file_path(args.data_file)
    is_new = not path.exists()
    passphrase = read_passphrase(confirm=will_write and is_new)
    store = load_store(path, passphrase)
    return path, passphrase, store, is_new


def commit(path: Path, store: Store, passphrase: str, is_new: bool) -> None:
    save_store(path, store, passphrase)
    if is_new:
        print(f"Created encrypted data file at {path}")


def cmd_start(args: argparse.Namespace) -> None:
    if args.task is not None:
        name = args.task
        if not name.strip():
            raise ValidationError("Task name cannot be empty.")
    else:
        name = prompt_required("Task name: ", "Task name")

    path, passphrase, store, is_new = unlock(args, will_write=True)
    current = lifecycle.current_task(store)
    if current is not None:
        idx, state = current
        existing = store.tasks[idx].name
        if state is TaskState.ACTIVE:
            question = f'Active task "{existing}" is running. Stop it and start "{name}"? [y/N] '
        else:
            question = f'Task "{existing}" is paused. Stop it and start "{name}"? [y/N] '
        if not (args.yes or prompt_yes_no(question)):
            raise ValidationError("Canceled.")
        stopped = lifecycle.stop(store, args.now)
        logger.info("Stopped %s before starting a new task", stopped.id)

    task = lifecycle.start(store, name, args.now)
    commit(path, store, passphrase, is_new)
    logger.info("Started task %s", task.id)
    print(f"Started: {task.name} at {format_local_time(args.now, args.tz)}")


def cmd_stop(args: argparse.Namespace) -> None:
    path, passphrase, store, is_new = unlock(args, will_write=True)
    task = lifecycle.stop(store, args.now)
    commit(path, store, passphrase, is_new)
    elapsed = format_duration(lifecycle.total_elapsed(task, args.now))
    print(f"Stopped: {task.name} at {format_local_time(args.now, args.tz)} (total {elapsed})")


def cmd_pause(args: argparse.Namespace) -> None:
    path, passphrase, store, is_new = unlock(args, will_write=True)
    task = lifecycle.pause(store, args.now)
    commit(path, store, passphrase, is_new)
    elapsed = format_duration(lifecycle.total_elapsed(task, args.now))
    print(f"Paused: {task.name} at {format_local_time(args.now, args.tz)} (total {elapsed})")


def cmd_resume(args: argparse.Namespace) -> None:
    path, passphrase, store, is_new = unlock(args, will_write=True)
    task = lifecycle.resume(store, args.now)
    commit(path, store, passphrase, is_new)
    print(f"Resumed: {task.name} at {format_local_time(args.now, args.tz)}")


def cmd_status(args: argparse.Namespace) -> None:
    _, _, store, _ = unlock(args)
    st = lifecycle.status(store, args.now)
    if st is None:
        print('No active task. Start one with "ttt start".')
        return
    elapsed = format_duration(st.elapsed_seconds)
    since = format_local_time(st.since, args.tz)
    if st.state is TaskState.ACTIVE:
        print(f"Active: {st.task.name} - {elapsed} (since {since})")
    else:
        print(f"Paused: {st.task.name} - {elapsed} (paused at {since})")


def cmd_list(args: argparse.Namespace) -> None:
    window = ListWindow.TODAY if args.today else ListWindow.WEEK if args.week else ListWindow.ALL
    _, _, store, _ = unlock(args)
    listing = list_tasks(store, window, args.now, args.tz)
    if not listing.entries:
        print("No matching tasks.")
        return
    if listing.header:
        print(listing.header)
    for e in listing.entries:
        print(f"{e.index:>3}) [{e.status}] {e.name} ({e.id}) total {format_duration(e.seconds)}")
    print(f"Total: {format_duration(listing.total_seconds)}")


def cmd_report(args: argparse.Namespace) -> None:
    if args.date:
        try:
            day = date.fromisoformat(args.date)
        except ValueError:
            raise ValidationError(f"Invalid report date {args.date!r}; use YYYY-MM-DD.") from None
    else:
        day = args.now.astimezone(args.tz).date()

    _, _, store, _ = unlock(args)
    report = build_report(store, day, args.now, args.tz)
    if not report.entries:
        print(f"No entries for {day.isoformat()}.")
        return
    print(day.isoformat())
    for e in report.entries:
        end = "now" if e.end_at is None else format_local_time(e.end_at, args.tz)
        print(f"{format_local_time(e.start_at, args.tz)} - {end} - {e.task_name} ({format_duration(e.seconds)})")
    print(f"Total: {format_duration(report.total_seconds)}")


def cmd_location(args: argparse.Namespace) -> None:
    print(data_file_path(args.data_file))


def cmd_version(args: argparse.Namespace) -> None:
    print(f"{APP_NAME} {APP_VERSION}")

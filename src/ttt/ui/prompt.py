"""Terminal prompts: passphrase entry, confirmations and the interactive editor."""
import getpass
import os

from datetime import datetime
from typing import List, Optional

from ttt.tracking.edit import UNCHANGED, SegmentEdit, TaskEdit
from ttt.tracking.lifecycle import task_state, total_elapsed
from ttt.utils.dataModels import Store, Task
from ttt.utils.errors import ValidationError
from ttt.utils.helper import (
    format_duration,
    format_local_datetime,
    parse_instant_input,
    parse_optional_instant_input,
)

PASSPHRASE_ENV = "TTT_PASSPHRASE"
NEW_PASSPHRASE_ENV = "TTT_NEW_PASSPHRASE"


def read_passphrase(confirm: bool = False, label: str = "Passphrase", env_var: str = PASSPHRASE_ENV) -> str:
    """Read the passphrase from ``env_var`` when set, otherwise from the terminal."""
    env = os.environ.get(env_var)
    if env is not None:
        if not env.strip():
            raise ValidationError("Passphrase cannot be empty.")
        return env

    passphrase = getpass.getpass(f"{label}: ")
    if not passphrase.strip():
        raise ValidationError("Passphrase cannot be empty.")
    if confirm and getpass.getpass(f"Confirm {label.lower()}: ") != passphrase:
        raise ValidationError("Passphrases do not match.")
    return passphrase


def prompt_line(message: str) -> str:
    try:
        return input(message).strip()
    except EOFError:
        return ""


def prompt_optional(message: str) -> Optional[str]:
    value = prompt_line(message)
    return value or None


def prompt_required(message: str, label: str) -> str:
    value = prompt_line(message)
    if not value:
        raise ValidationError(f"{label} cannot be empty.")
    return value


def prompt_yes_no(message: str) -> bool:
    return prompt_line(message).lower() in ("y", "yes")


def prompt_selection(message: str, count: int, label: str) -> int:
    """Ask for a 1-based number in ``1..count``; 'q' or empty cancels."""
    value = prompt_line(message)
    if not value or value.lower() in ("q", "quit"):
        raise ValidationError("Canceled.")
    try:
        selection = int(value)
    except ValueError:
        raise ValidationError("Invalid selection. Enter a number from the list.") from None
    if not 1 <= selection <= count:
        raise ValidationError(f"{label} must be between 1 and {count}.")
    return selection


def prompt_task_selection(store: Store, now: datetime) -> int:
    """Print the tasks and return the chosen 0-based index."""
    print("Select a task to edit:")
    for idx, task in enumerate(store.tasks, start=1):
        elapsed = format_duration(total_elapsed(task, now))
        print(f"{idx:>3}) [{task_state(task)}] {task.name} ({task.id[:8]}) total {elapsed}")
    return prompt_selection("Enter task number (or 'q' to cancel): ", len(store.tasks), "Task index") - 1


def prompt_task_edit(task: Task, now: datetime) -> TaskEdit:
    """Walk through every field; an empty answer keeps the current value."""
    print(f"Editing task: {task.name}")
    edit = TaskEdit()

    answer = prompt_optional(f"Name [{task.name}]: ")
    if answer is not None:
        edit.name = answer

    answer = prompt_optional(f"Created at [{format_local_datetime(task.created_at)}] (RFC3339/now): ")
    if answer is not None:
        edit.created_at = parse_instant_input(answer, now, "created at")

    closed = format_local_datetime(task.closed_at) if task.closed_at else "open"
    answer = prompt_optional(f"Closed at [{closed}] (RFC3339/now/open): ")
    edit.closed_at = UNCHANGED if answer is None else parse_optional_instant_input(answer, now, "closed at")

    if not task.segments:
        print("No segments to edit.")
        return edit

    print("Segments:")
    seg_edits: List[SegmentEdit] = []
    for pos, seg in enumerate(task.segments, start=1):
        start_at, end_at = seg.start_at, seg.end_at
        answer = prompt_optional(f"Segment {pos} start [{format_local_datetime(start_at)}] (RFC3339/now): ")
        changed = answer is not None
        if changed:
            start_at = parse_instant_input(answer, now, "segment start")
        end_label = format_local_datetime(end_at) if end_at else "open"
        answer = prompt_optional(f"Segment {pos} end [{end_label}] (RFC3339/now/open): ")
        if answer is not None:
            changed = True
            end_at = parse_optional_instant_input(answer, now, "segment end")
        if changed:
            seg_edits.append(SegmentEdit(index=pos, start_at=start_at, end_at=end_at))
    edit.segments = seg_edits
    return edit

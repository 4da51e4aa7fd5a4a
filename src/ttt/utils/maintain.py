import argparse
import logging

from ttt.storage.vault import (
    check_kdf_limits,
    current_kdf,
    list_backups,
    load_store,
    rekey_store,
    restore_backup,
    save_store,
)
from ttt.tracking.edit import UNCHANGED, TaskEdit, apply_edit, parse_segment_edit, resolve_task_index
from ttt.ui.prompt import (
    NEW_PASSPHRASE_ENV,
    prompt_selection,
    prompt_task_edit,
    prompt_task_selection,
    prompt_yes_no,
    read_passphrase,
)
from ttt.utils.core import unlock
from ttt.utils.dataModels import KdfParams
from ttt.utils.errors import NotFoundError, ValidationError
from ttt.utils.helper import data_file_path, parse_instant_input, parse_optional_instant_input

logger = logging.getLogger(__name__)


def edit_from_flags(args: argparse.Namespace) -> TaskEdit:
    edit = TaskEdit(name=args.name)
    if args.created_at is not None:
        edit.created_at = parse_instant_input(args.created_at, args.now, "created at")
    edit.closed_at = (
        UNCHANGED if args.closed_at is None
        else parse_optional_instant_input(args.closed_at, args.now, "closed at")
    )
    edit.segments = [parse_segment_edit(raw, args.now) for raw in args.segment_edit or []]
    return edit


def cmd_edit(args: argparse.Namespace) -> None:
    """Edit one task, from flags when any are given, otherwise interactively."""
    edit = edit_from_flags(args)
    path, passphrase, store, is_new = unlock(args, will_write=True)

    if args.id is None and args.index is None:
        if not store.tasks:
            raise NotFoundError("No tasks to edit.")
        idx = prompt_task_selection(store, args.now)
    else:
        idx = resolve_task_index(store, task_id=args.id, index=args.index)

    if edit.is_empty():
        edit = prompt_task_edit(store.tasks[idx], args.now)
    if edit.is_empty():
        print("Nothing changed.")
        return

    store = apply_edit(store, idx, edit)
    save_store(path, store, passphrase)
    if is_new:
        print(f"Created encrypted data file at {path}")
    task = store.tasks[idx]
    logger.info("Edited task %s", task.id)
    print(f"Updated: {task.name} ({task.id})")


def cmd_rekey(args: argparse.Namespace) -> None:
    """Re-encrypt the data file under a new passphrase and/or new Argon2 costs.

    Cost flags that are not given keep the costs the file already uses.
    """
    path = data_file_path(args.data_file)
    if not path.exists():
        raise NotFoundError(f'No data file found at {path}. Start tracking with "ttt start" first.')
    defaults = current_kdf(path)
    kdf = KdfParams(
        t_cost=args.t if args.t is not None else defaults.t_cost,
        m_cost_kib=args.m if args.m is not None else defaults.m_cost_kib,
        parallelism=args.p if args.p is not None else defaults.parallelism,
    )
    check_kdf_limits(kdf)

    current = read_passphrase(label="Current passphrase")
    # Fail on a wrong current passphrase before asking for the new one.
    load_store(path, current)
    new = read_passphrase(confirm=True, label="New passphrase", env_var=NEW_PASSPHRASE_ENV)
    rekey_store(path, current, new, kdf)
    print(f"Passphrase updated for {path}")


def cmd_restore(args: argparse.Namespace) -> None:
    path = data_file_path(args.data_file)
    backups = list_backups(path)
    if not backups:
        raise NotFoundError("No backups found.")

    if args.slot is not None:
        slot = args.slot - 1
    elif args.yes:
        slot = backups[0].slot
    else:
        print("Available backups:")
        for pos, entry in enumerate(backups, start=1):
            modified = entry.modified.astimezone(args.tz).strftime("%Y-%m-%d %H:%M:%S")
            print(f"{pos:>3}) {entry.path.name} (modified {modified}, {entry.size} bytes)")
        choice = prompt_selection("Select backup number (or 'q' to cancel): ", len(backups), "Backup selection")
        slot = backups[choice - 1].slot
        if not prompt_yes_no(f"Restore {backups[choice - 1].path.name}? [y/N] "):
            raise ValidationError("Canceled.")

    passphrase = read_passphrase()
    store = restore_backup(path, passphrase, slot)
    print(f"Restored {path} from backup slot {slot + 1} ({len(store.tasks)} task(s))")

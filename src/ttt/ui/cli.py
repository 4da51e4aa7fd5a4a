import argparse

from ttt.utils.core import (
    cmd_list,
    cmd_location,
    cmd_pause,
    cmd_report,
    cmd_resume,
    cmd_start,
    cmd_status,
    cmd_stop,
    cmd_version,
)
from ttt.utils.maintain import cmd_edit, cmd_rekey, cmd_restore

EPILOG = """Examples:
  ttt start "Write docs"
  ttt pause
  ttt resume
  ttt status
  ttt report
  ttt stop
  ttt location
  ttt edit"""


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ttt",
        description="Track task time from the command line (encrypted local store)",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("--data-file", metavar="PATH", help="Override the default data file location")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Log more (-vv for debug)")
    p.add_argument("--log-file", metavar="PATH", help="Also write a debug log to PATH")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_start = sub.add_parser("start", help="Start tracking a task")
    p_start.add_argument("task", nargs="?", help="Task name to track (prompted if omitted)")
    p_start.add_argument("-y", "--yes", action="store_true", help="Stop the current task without asking")
    p_start.set_defaults(func=cmd_start)

    p_stop = sub.add_parser("stop", help="Stop the active or paused task")
    p_stop.set_defaults(func=cmd_stop)

    p_pause = sub.add_parser("pause", help="Pause the active task")
    p_pause.set_defaults(func=cmd_pause)

    p_resume = sub.add_parser("resume", help="Resume the paused task")
    p_resume.set_defaults(func=cmd_resume)

    p_status = sub.add_parser("status", help="Show the current task and elapsed time")
    p_status.set_defaults(func=cmd_status)

    p_loc = sub.add_parser("location", help="Show the data file location")
    p_loc.set_defaults(func=cmd_location)

    p_list = sub.add_parser("list", help="List tasks with their totals")
    window = p_list.add_mutually_exclusive_group()
    window.add_argument("--today", action="store_true", help="Only time tracked today")
    window.add_argument("--week", action="store_true", help="Only time tracked this week (Monday first)")
    p_list.set_defaults(func=cmd_list)

    p_rep = sub.add_parser("report", help="Show the day's entries, most recent first")
    day = p_rep.add_mutually_exclusive_group()
    day.add_argument("--today", action="store_true", help="Report today (default)")
    day.add_argument("--date", metavar="YYYY-MM-DD", help="Report another local calendar day")
    p_rep.set_defaults(func=cmd_report)

    p_edit = sub.add_parser("edit", help="Edit a task name or time segments")
    ref = p_edit.add_mutually_exclusive_group()
    ref.add_argument("--id", help="Task id to edit")
    ref.add_argument("--index", type=int, help="Task index from the list (1-based)")
    p_edit.add_argument("--name", help="Rename the task")
    p_edit.add_argument("--created-at", metavar="RFC3339|now", help="Override created time")
    p_edit.add_argument("--closed-at", metavar="RFC3339|now|open", help="Override closed time")
    p_edit.add_argument("--segment-edit", metavar="INDEX,START,END", action="append",
                        help="Edit a segment (1-based); END can be 'open'. Repeatable.")
    p_edit.set_defaults(func=cmd_edit)

    p_rekey = sub.add_parser("rekey", help="Change the passphrase and/or Argon2 params")
    p_rekey.add_argument("-t", type=int, help="New Argon2 time cost (iterations)")
    p_rekey.add_argument("-m", type=int, help="New Argon2 memory (KiB)")
    p_rekey.add_argument("-p", type=int, help="New Argon2 parallelism")
    p_rekey.set_defaults(func=cmd_rekey)

    p_restore = sub.add_parser("restore", help="Replace the data file with a backup")
    p_restore.add_argument("--slot", type=int, help="Backup slot to restore (1 = most recent)")
    p_restore.add_argument("-y", "--yes", action="store_true", help="Do not ask; without --slot restore the most recent backup")
    p_restore.set_defaults(func=cmd_restore)

    p_ver = sub.add_parser("version", help="Show the version")
    p_ver.set_defaults(func=cmd_version)

    return p

#!/usr/bin/env python3
"""
ttt - task time tracker with an encrypted local store

One task at a time is active or paused; the user starts, pauses, resumes
and stops tasks and reviews totals (`list`) and daily entries (`report`).
Every command loads the whole store, works on it in memory and, when it
changed, writes it back as a single encrypted file.

Data file (binary, see storage/envelope.py):
    magic "TTT1" | version | kdf id | cipher id | t | m | p | salt | nonce | ciphertext
The header is authenticated as AES-GCM associated data. The plaintext is
JSON: {"version": 1, "tasks": [{id, name, created_at, closed_at, segments}]}.

Commands:
  start [NAME]          Start a task (offers to stop the current one)
  stop | pause | resume Lifecycle transitions of the current task
  status                Current task and elapsed time
  list [--today|--week] Per-task totals
  report [--date D]     Entries of one local day, most recent first
  edit                  Fix a task's name or timestamps (flags or prompts)
  rekey                 Change passphrase and/or Argon2 params
  restore               Put a backup (.bak1..3) back in place
  location | version

Security choices:
  - AEAD: AES-256-GCM via cryptography.hazmat
  - Argon2id via argon2-cffi low-level API
  - Key = Argon2id(SHA3-512(passphrase)) -> 32 bytes or 256 bits

Known hazard: two invocations running at the same moment are not
coordinated and the last save wins; the backup ring is the recovery path.
"""
from __future__ import annotations

import logging
import sys

from ttt.logging_setup import setup_logging, verbosity_to_level
from ttt.ui.cli import build_parser
from ttt.utils.errors import TttError
from ttt.utils.helper import local_tz, utc_now

logger = logging.getLogger("ttt")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(console_level=verbosity_to_level(args.verbose), log_file=args.log_file)

    # One clock reading for the whole invocation.
    args.now = utc_now()
    args.tz = local_tz()

    try:
        args.func(args)
    except TttError as exc:
        logger.debug("%s failed", args.cmd, exc_info=True)
        print(exc, file=sys.stderr)
        sys.exit(exc.exit_code)
    except KeyboardInterrupt:
        print("Canceled.", file=sys.stderr)
        sys.exit(TttError.exit_code)


if __name__ == "__main__":
    main()

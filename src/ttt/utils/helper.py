import os

from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Optional

from ttt.utils.errors import ValidationError

DATA_FILE_ENV = "TTT_DATA_FILE"
DATA_FILE_NAME = "ttt.enc"


def data_file_path(custom: str | Path | None = None) -> Path:
    """Resolve the data file: explicit flag, then env var, then the XDG data dir."""
    if custom:
        return Path(custom).expanduser()
    env = os.environ.get(DATA_FILE_ENV)
    if env:
        return Path(env).expanduser()
    base = os.environ.get("XDG_DATA_HOME") or Path.home() / ".local" / "share"
    return Path(base) / "ttt" / DATA_FILE_NAME


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def local_tz() -> Optional[tzinfo]:
    """Zone argument meaning "the system zone".

    ``None`` makes ``astimezone`` look up the offset for each instant, so days
    on the other side of a DST change keep their own midnight. A fixed
    ``tzinfo`` taken from the current offset would not.
    """
    return None


def format_rfc3339(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC 3339 instant into an aware UTC datetime.

    Naive values are rejected: an instant without an offset is ambiguous.
    """
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        raise ValueError(f"timestamp {value!r} has no UTC offset")
    return dt.astimezone(timezone.utc)


def format_duration(seconds: int) -> str:
    """Format seconds as ``HH:MM:SS``; hours may exceed two digits."""
    total = max(int(seconds), 0)
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_local_time(dt: datetime, tz: Optional[tzinfo] = None) -> str:
    return dt.astimezone(tz).strftime("%H:%M:%S")


def format_local_datetime(dt: datetime, tz: Optional[tzinfo] = None) -> str:
    return dt.astimezone(tz).isoformat()


def parse_instant_input(text: str, now: datetime, label: str) -> datetime:
    value = text.strip()
    if value.lower() == "now":
        return now
    try:
        return parse_rfc3339(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid {label} timestamp {value!r}: {exc}") from exc


def parse_optional_instant_input(text: str, now: datetime, label: str) -> Optional[datetime]:
    if text.strip().lower() in ("open", "none"):
        return None
    return parse_instant_input(text, now, label)

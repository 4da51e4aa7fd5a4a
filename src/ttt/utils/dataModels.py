import json
import struct

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ttt.utils.errors import InvariantViolation
from ttt.utils.helper import format_rfc3339, parse_rfc3339

APP_NAME = "ttt"
APP_VERSION = "0.1.0"

DEFAULT_T_COST = 2
DEFAULT_M_COST_KiB = 19456  # 19 MiB, cheap enough to run on every command
DEFAULT_PARALLELISM = 1

# Largest costs accepted from a file header or from rekey flags.
MAX_T_COST = 64
MAX_M_COST_KiB = 4 * 1024 * 1024  # 4 GiB
MAX_PARALLELISM = 255

STORE_VERSION = 1

ENVELOPE_MAGIC = b"TTT1"
ENVELOPE_VERSION = 1
KDF_ARGON2ID_SHA3 = 1
CIPHER_AES_256_GCM = 1
SALT_LEN = 16
NONCE_LEN = 12
ENVELOPE_HDR_FMT = ">4sBBBIII16s12s"  # magic, ver, kdf, cipher, t, m, p, salt(16), nonce(12)
ENVELOPE_HDR_SIZE = struct.calcsize(ENVELOPE_HDR_FMT)

BACKUP_SLOTS = 3


@dataclass(frozen=True)
class KdfParams:
    t_cost: int = DEFAULT_T_COST
    m_cost_kib: int = DEFAULT_M_COST_KiB
    parallelism: int = DEFAULT_PARALLELISM

    def within_limits(self) -> bool:
        return (
            1 <= self.t_cost <= MAX_T_COST
            and 1 <= self.parallelism <= MAX_PARALLELISM
            and 8 * self.parallelism <= self.m_cost_kib <= MAX_M_COST_KiB
        )


@dataclass
class Segment:
    start_at: datetime
    end_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.end_at is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_at": format_rfc3339(self.start_at),
            "end_at": format_rfc3339(self.end_at) if self.end_at else None,
        }

    @staticmethod
    def from_dict(obj: Dict[str, Any]) -> "Segment":
        end_raw = obj.get("end_at")
        return Segment(
            start_at=parse_rfc3339(obj["start_at"]),
            end_at=parse_rfc3339(end_raw) if end_raw else None,
        )


@dataclass
class Task:
    id: str
    name: str
    created_at: datetime
    closed_at: Optional[datetime] = None
    segments: List[Segment] = field(default_factory=list)

    @property
    def is_stopped(self) -> bool:
        return self.closed_at is not None

    def open_segments(self) -> List[Segment]:
        return [s for s in self.segments if s.is_open]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": format_rfc3339(self.created_at),
            "closed_at": format_rfc3339(self.closed_at) if self.closed_at else None,
            "segments": [s.to_dict() for s in self.segments],
        }

    @staticmethod
    def from_dict(obj: Dict[str, Any]) -> "Task":
        closed_raw = obj.get("closed_at")
        return Task(
            id=obj["id"],
            name=obj["name"],
            created_at=parse_rfc3339(obj["created_at"]),
            closed_at=parse_rfc3339(closed_raw) if closed_raw else None,
            segments=[Segment.from_dict(s) for s in obj.get("segments", [])],
        )


@dataclass
class Store:
    version: int = STORE_VERSION
    tasks: List[Task] = field(default_factory=list)

    def to_bytes(self) -> bytes:
        obj = {"version": self.version, "tasks": [t.to_dict() for t in self.tasks]}
        return json.dumps(obj, ensure_ascii=False, separators=(",", ":")).encode("utf-8")

    @staticmethod
    def from_bytes(b: bytes) -> "Store":
        """Parse decrypted plaintext, migrating the schema version first.

        Anything that authenticated but does not parse is reported as a
        corrupt store rather than an authentication problem.
        """
        try:
            obj = json.loads(b.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise InvariantViolation(f"Corrupt store: plaintext is not valid JSON ({exc}).") from exc
        if not isinstance(obj, dict):
            raise InvariantViolation("Corrupt store: expected a JSON object at the top level.")
        obj = migrate(obj)
        try:
            tasks = [Task.from_dict(t) for t in obj.get("tasks", [])]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise InvariantViolation(f"Corrupt store: malformed task record ({exc!r}).") from exc
        return Store(version=obj["version"], tasks=tasks)


def migrate(obj: Dict[str, Any]) -> Dict[str, Any]:
    """Bring a decoded store object up to ``STORE_VERSION`` or reject it."""
    version = obj.get("version", 1)
    if not isinstance(version, int) or isinstance(version, bool):
        raise InvariantViolation(f"Corrupt store: version must be an integer, got {version!r}.")
    if version < 1 or version > STORE_VERSION:
        raise InvariantViolation(
            f"Unsupported store version {version} (this build reads up to {STORE_VERSION})."
        )
    # Version 1 is the only schema so far; future upgrades chain from here.
    obj["version"] = version
    return obj


def find_violations(store: Store) -> List[str]:
    """Return a human-readable line for every broken data-model invariant."""
    problems: List[str] = []
    seen_ids = set()
    open_tasks = []
    not_stopped = []

    for idx, task in enumerate(store.tasks, start=1):
        label = f"task {idx} ({task.id or '<no id>'})"
        if not task.id:
            problems.append(f"{label} has an empty id")
        elif task.id in seen_ids:
            problems.append(f"{label} reuses an id")
        seen_ids.add(task.id)

        open_count = len(task.open_segments())
        if open_count > 1:
            problems.append(f"{label} has {open_count} open segments")
        if open_count and task.is_stopped:
            problems.append(f"{label} is stopped but still has an open segment")
        if open_count:
            open_tasks.append(label)
        if not task.is_stopped:
            not_stopped.append(label)

        for pos, seg in enumerate(task.segments, start=1):
            if seg.end_at is not None and seg.end_at < seg.start_at:
                problems.append(f"{label} segment {pos} ends before it starts")

    if len(open_tasks) > 1:
        problems.append("more than one task is active: " + ", ".join(open_tasks))
    if len(not_stopped) > 1:
        problems.append("more than one task is not stopped: " + ", ".join(not_stopped))
    return problems


def validate_store(store: Store) -> None:
    problems = find_violations(store)
    if problems:
        raise InvariantViolation("Corrupt store: " + "; ".join(problems) + ".")

"""Load and save the encrypted store.

Writes go through a temporary file in the target directory followed by
``os.replace``, so the data file on disk is always either the previous
version or the new one. Before each replace the previous file is copied
into a three-slot backup ring (``.bak1`` newest, ``.bak3`` oldest).

Two invocations racing on the same file are not coordinated: both load,
and the last one to save wins. The backups are how a lost update is
recovered, there is no lock.
"""
import logging
import os
import shutil
import tempfile

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Iterator, List, Optional

from ttt.storage.envelope import open_sealed, read_header, seal
from ttt.utils.dataModels import (
    BACKUP_SLOTS,
    MAX_M_COST_KiB,
    MAX_PARALLELISM,
    MAX_T_COST,
    KdfParams,
    Store,
    validate_store,
)
from ttt.utils.errors import AuthenticationError, NotFoundError, StoreIOError, ValidationError

logger = logging.getLogger(__name__)

FILE_MODE = 0o600


@dataclass
class BackupEntry:
    slot: int
    path: Path
    size: int
    modified: datetime


def backup_paths(path: Path) -> List[Path]:
    """Fixed ring of backup slots; index 0 is the most recent generation."""
    return [path.with_name(f"{path.name}.bak{i}") for i in range(1, BACKUP_SLOTS + 1)]


def list_backups(path: Path) -> List[BackupEntry]:
    entries = []
    for slot, bak in enumerate(backup_paths(path)):
        if not bak.exists():
            continue
        st = bak.stat()
        entries.append(BackupEntry(
            slot=slot,
            path=bak,
            size=st.st_size,
            modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        ))
    return entries


def _restrict(path: Path) -> None:
    try:
        os.chmod(path, FILE_MODE)
    except NotImplementedError:  # pragma: no cover - platforms without POSIX modes
        pass


@contextmanager
def _atomic_target(path: Path, rotate: bool = True) -> Iterator[IO[bytes]]:
    """Yield a temp file next to ``path``; on clean exit it replaces ``path``.

    Backups are rotated after the new bytes are safely on disk and just
    before the rename. If anything raises, the temp file is removed and
    ``path`` is untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        _restrict(tmp)
        if rotate and path.exists():
            rotate_backups(path)
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def rotate_backups(path: Path) -> None:
    slots = backup_paths(path)
    slots[-1].unlink(missing_ok=True)
    for i in range(len(slots) - 1, 0, -1):
        if slots[i - 1].exists():
            os.replace(slots[i - 1], slots[i])
    shutil.copyfile(path, slots[0])
    _restrict(slots[0])
    logger.debug("Rotated backups for %s", path)


def _write_bytes(path: Path, payload: bytes) -> None:
    try:
        with _atomic_target(path) as f:
            f.write(payload)
    except OSError as exc:
        raise StoreIOError(f"Could not write {path}: {exc}") from exc


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise StoreIOError(f"Could not read {path}: {exc}") from exc


def decode_store(payload: bytes, passphrase: str) -> Store:
    store = Store.from_bytes(open_sealed(payload, passphrase))
    validate_store(store)
    return store


def load_store(path: Path, passphrase: str) -> Store:
    if not path.exists():
        logger.info("No data file at %s, starting with an empty store", path)
        return Store()
    store = decode_store(_read_bytes(path), passphrase)
    logger.debug("Loaded %d task(s) from %s", len(store.tasks), path)
    return store


def current_kdf(path: Path) -> KdfParams:
    """KDF costs recorded in the existing file, or this build's defaults."""
    if not path.exists():
        return KdfParams()
    try:
        return read_header(_read_bytes(path)).kdf
    except (AuthenticationError, StoreIOError):
        return KdfParams()


def check_kdf_limits(kdf: KdfParams) -> None:
    if not kdf.within_limits():
        raise ValidationError(
            f"Argon2 costs must satisfy 1 <= t <= {MAX_T_COST}, 1 <= p <= {MAX_PARALLELISM} "
            f"and 8 * p <= m <= {MAX_M_COST_KiB} KiB (got t={kdf.t_cost}, m={kdf.m_cost_kib}, p={kdf.parallelism})."
        )


def save_store(path: Path, store: Store, passphrase: str, kdf: Optional[KdfParams] = None) -> None:
    """Encrypt and atomically write ``store``.

    Without explicit ``kdf`` the costs already used by the file are kept, so
    a rekey with custom costs is not undone by the next ordinary save.
    """
    validate_store(store)
    payload = seal(store.to_bytes(), passphrase, kdf or current_kdf(path))
    _write_bytes(path, payload)
    logger.info("Saved %d task(s) to %s (%d bytes)", len(store.tasks), path, len(payload))


def rekey_store(path: Path, old_passphrase: str, new_passphrase: str,
                kdf: Optional[KdfParams] = None) -> Store:
    """Re-encrypt the store under a new passphrase and, optionally, new KDF costs.

    Backups written before the rekey stay encrypted under the old passphrase.
    """
    if not path.exists():
        raise NotFoundError(f'No data file found at {path}. Start tracking with "ttt start" first.')
    if kdf is not None:
        check_kdf_limits(kdf)
    store = load_store(path, old_passphrase)
    save_store(path, store, new_passphrase, kdf)
    logger.info("Rekeyed %s", path)
    return store


def restore_backup(path: Path, passphrase: str, slot: int = 0) -> Store:
    """Copy a validated backup over the data file without rotating the ring.

    Because the ring is left alone, restoring the same slot twice produces
    the same file.
    """
    slots = backup_paths(path)
    if not 0 <= slot < len(slots):
        raise NotFoundError(f"Backup slot must be between 1 and {len(slots)}.")
    bak = slots[slot]
    if not bak.exists():
        raise NotFoundError(f"No backup found at {bak}.")
    payload = _read_bytes(bak)
    store = decode_store(payload, passphrase)
    try:
        with _atomic_target(path, rotate=False) as f:
            f.write(payload)
    except OSError as exc:
        raise StoreIOError(f"Could not restore {path}: {exc}") from exc
    logger.info("Restored %s from %s", path, bak)
    return store


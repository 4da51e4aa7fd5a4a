from contextlib import contextmanager
from typing import Iterator

from argon2.exceptions import HashingError
from argon2.low_level import hash_secret_raw, Type as Argon2Type
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes

from ttt.utils.dataModels import KdfParams
from ttt.utils.errors import AUTH_FAILED, AuthenticationError, ValidationError

KEY_LEN = 32


def sha3_512_bytes(data: bytes) -> bytes:
    digest = hashes.Hash(hashes.SHA3_512(), backend=default_backend())
    digest.update(data)
    return digest.finalize()


def check_passphrase(passphrase: str) -> None:
    if not passphrase or not passphrase.strip():
        raise ValidationError("Passphrase cannot be empty.")


def derive_key(passphrase: str, salt: bytes, kdf: KdfParams) -> bytes:
    """Key = Argon2id(SHA3-512(passphrase)) -> 32 bytes"""
    check_passphrase(passphrase)
    prehash = sha3_512_bytes(passphrase.encode("utf-8"))
    try:
        return hash_secret_raw(
            secret=prehash,
            salt=salt,
            time_cost=kdf.t_cost,
            memory_cost=kdf.m_cost_kib,
            parallelism=kdf.parallelism,
            hash_len=KEY_LEN,
            type=Argon2Type.ID,
        )
    except HashingError as exc:
        raise AuthenticationError(AUTH_FAILED) from exc


def zero(buf: bytearray) -> None:
    for i in range(len(buf)):
        buf[i] = 0


@contextmanager
def scoped_key(passphrase: str, salt: bytes, kdf: KdfParams) -> Iterator[bytearray]:
    """Derive a key that only lives for the ``with`` block.

    Python cannot guarantee the immutable intermediate copies are wiped, so
    clearing the mutable buffer is best effort.
    """
    key = bytearray(derive_key(passphrase, salt, kdf))
    try:
        yield key
    finally:
        zero(key)


def verify(key: bytes | bytearray, envelope: bytes) -> bool:
    """True iff ``key`` authenticates ``envelope``."""
    from ttt.storage.envelope import decode  # envelope imports this module

    try:
        decode(envelope, key)
    except AuthenticationError:
        return False
    return True

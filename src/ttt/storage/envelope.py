"""Binary envelope around the encrypted store.

Header (big-endian):
    magic     : 4 bytes   -> b"TTT1"
    version   : u8        -> 0x01
    kdf       : u8        -> 1 = Argon2id over SHA3-512(passphrase)
    cipher    : u8        -> 1 = AES-256-GCM
    t_cost    : u32
    m_cost    : u32  (KiB)
    parallel  : u32
    salt      : 16 bytes
    nonce     : 12 bytes
    ciphertext: remaining bytes (ciphertext || 16-byte GCM tag)

The whole header is passed as associated data, so editing the KDF
parameters, salt or ids is caught by the tag check like any other tamper.
"""
import os
import struct

from dataclasses import dataclass

from cryptography.exceptions import InvalidTag

from ttt.crypto.aead import aead_decrypt, aead_encrypt
from ttt.crypto.hash import scoped_key
from ttt.utils.dataModels import (
    CIPHER_AES_256_GCM,
    ENVELOPE_HDR_FMT,
    ENVELOPE_HDR_SIZE,
    ENVELOPE_MAGIC,
    ENVELOPE_VERSION,
    KDF_ARGON2ID_SHA3,
    NONCE_LEN,
    SALT_LEN,
    KdfParams,
)
from ttt.utils.errors import AUTH_FAILED, AuthenticationError

GCM_TAG_LEN = 16


@dataclass(frozen=True)
class EnvelopeHeader:
    kdf: KdfParams
    salt: bytes
    nonce: bytes
    version: int = ENVELOPE_VERSION
    kdf_id: int = KDF_ARGON2ID_SHA3
    cipher_id: int = CIPHER_AES_256_GCM

    def pack(self) -> bytes:
        return struct.pack(
            ENVELOPE_HDR_FMT,
            ENVELOPE_MAGIC,
            self.version,
            self.kdf_id,
            self.cipher_id,
            self.kdf.t_cost,
            self.kdf.m_cost_kib,
            self.kdf.parallelism,
            self.salt,
            self.nonce,
        )


def read_header(envelope: bytes) -> EnvelopeHeader:
    if len(envelope) < ENVELOPE_HDR_SIZE + GCM_TAG_LEN:
        raise AuthenticationError("Data file is too small or truncated.")
    magic, ver, kdf_id, cipher_id, t, m, p, salt, nonce = struct.unpack(
        ENVELOPE_HDR_FMT, envelope[:ENVELOPE_HDR_SIZE]
    )
    if magic != ENVELOPE_MAGIC:
        raise AuthenticationError("Not a ttt data file (bad magic).")
    if ver != ENVELOPE_VERSION:
        raise AuthenticationError(f"Unsupported data file version {ver}.")
    if kdf_id != KDF_ARGON2ID_SHA3:
        raise AuthenticationError(f"Unsupported KDF id {kdf_id}.")
    if cipher_id != CIPHER_AES_256_GCM:
        raise AuthenticationError(f"Unsupported cipher id {cipher_id}.")
    kdf = KdfParams(t, m, p)
    if not kdf.within_limits():
        raise AuthenticationError(AUTH_FAILED)
    return EnvelopeHeader(kdf=kdf, salt=salt, nonce=nonce)


def encode(plaintext: bytes, key: bytes | bytearray, kdf: KdfParams, salt: bytes,
           nonce: bytes | None = None) -> bytes:
    """Encrypt ``plaintext``; identical inputs with a fixed nonce give identical bytes."""
    if len(salt) != SALT_LEN:
        raise ValueError(f"salt must be {SALT_LEN} bytes")
    if nonce is None:
        nonce = os.urandom(NONCE_LEN)
    header = EnvelopeHeader(kdf=kdf, salt=salt, nonce=nonce).pack()
    _, ct = aead_encrypt(key, plaintext, aad=header, nonce=nonce)
    return header + ct


def decode(envelope: bytes, key: bytes | bytearray) -> bytes:
    header = read_header(envelope)
    try:
        return aead_decrypt(key, header.nonce, envelope[ENVELOPE_HDR_SIZE:], aad=envelope[:ENVELOPE_HDR_SIZE])
    except InvalidTag as exc:
        raise AuthenticationError(AUTH_FAILED) from exc


def seal(plaintext: bytes, passphrase: str, kdf: KdfParams, salt: bytes | None = None,
         nonce: bytes | None = None) -> bytes:
    if salt is None:
        salt = os.urandom(SALT_LEN)
    with scoped_key(passphrase, salt, kdf) as key:
        return encode(plaintext, key, kdf, salt, nonce)


def open_sealed(envelope: bytes, passphrase: str) -> bytes:
    header = read_header(envelope)
    with scoped_key(passphrase, header.salt, header.kdf) as key:
        return decode(envelope, key)

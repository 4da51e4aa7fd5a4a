import os

from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from typing import Tuple

NONCE_LEN = 12


def aead_encrypt(key: bytes | bytearray, plaintext: bytes, aad: bytes | None = None,
                 nonce: bytes | None = None) -> Tuple[bytes, bytes]:
    if nonce is None:
        nonce = os.urandom(NONCE_LEN)
    aesgcm = AESGCM(key)
    ct = aesgcm.encrypt(nonce, plaintext, aad)
    return nonce, ct


def aead_decrypt(key: bytes | bytearray, nonce: bytes, ct: bytes, aad: bytes | None = None) -> bytes:
    aesgcm = AESGCM(key)
    return aesgcm.decrypt(nonce, ct, aad)

from __future__ import annotations

import hashlib
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from providers.errors import CipherInitError, DecryptionError, RandomSourceError

KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16


def derive_key(passphrase: str) -> bytes:
    """
    SHA-256 over the UTF-8 passphrase.

    No salt: the same passphrase always yields the same key, so anything
    encrypted here can be opened again by re-deriving it.
    """
    return hashlib.sha256((passphrase or "").encode("utf-8")).digest()


def _cipher(key: bytes) -> AESGCM:
    try:
        return AESGCM(key)
    except (TypeError, ValueError) as exc:
        raise CipherInitError(f"failed to create AES-GCM cipher: {exc}", op="encrypt") from exc


def _nonce() -> bytes:
    try:
        return os.urandom(NONCE_SIZE)
    except (NotImplementedError, OSError) as exc:
        raise RandomSourceError(f"failed to generate nonce: {exc}", op="encrypt") from exc


def encrypt(plaintext: bytes, passphrase: str) -> bytes:
    """
    AES-256-GCM seal. Returns nonce || ciphertext || tag.
    """
    aead = _cipher(derive_key(passphrase))
    nonce = _nonce()
    return nonce + aead.encrypt(nonce, plaintext, None)


def decrypt(payload: bytes, passphrase: str) -> bytes:
    """
    Inverse of `encrypt`: split the leading nonce and open the rest.
    """
    if payload is None or len(payload) < NONCE_SIZE + TAG_SIZE:
        raise DecryptionError("payload too short to hold nonce and tag", op="decrypt")

    aead = _cipher(derive_key(passphrase))
    nonce, sealed = payload[:NONCE_SIZE], payload[NONCE_SIZE:]
    try:
        return aead.decrypt(nonce, sealed, None)
    except InvalidTag as exc:
        raise DecryptionError("authentication failed (wrong key or tampered payload)", op="decrypt") from exc

import hashlib

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from providers import crypto
from providers.errors import CipherInitError, DecryptionError, EncryptionError, RandomSourceError


def test_derive_key_is_deterministic_sha256():
    k1 = crypto.derive_key("correct horse")
    k2 = crypto.derive_key("correct horse")
    assert k1 == k2
    assert len(k1) == crypto.KEY_SIZE
    assert k1 == hashlib.sha256(b"correct horse").digest()
    assert crypto.derive_key("other") != k1


def test_derive_key_handles_non_ascii_passphrase():
    assert crypto.derive_key("clé") == hashlib.sha256("clé".encode("utf-8")).digest()


@pytest.mark.parametrize("plaintext", [b"", b"x", b"0123456789abcdef", b"\x00" * 1000])
def test_encrypt_output_length(plaintext):
    out = crypto.encrypt(plaintext, "secret")
    assert len(out) == crypto.NONCE_SIZE + len(plaintext) + crypto.TAG_SIZE


def test_encrypt_uses_fresh_nonce_each_call():
    a = crypto.encrypt(b"same input", "secret")
    b = crypto.encrypt(b"same input", "secret")
    assert a != b
    assert a[: crypto.NONCE_SIZE] != b[: crypto.NONCE_SIZE]
    assert crypto.decrypt(a, "secret") == b"same input"
    assert crypto.decrypt(b, "secret") == b"same input"


def test_ciphertext_opens_with_plain_aesgcm():
    out = crypto.encrypt(b"hello world", "secret")
    key = hashlib.sha256(b"secret").digest()
    assert AESGCM(key).decrypt(out[:12], out[12:], None) == b"hello world"


def test_decrypt_with_wrong_passphrase_fails():
    out = crypto.encrypt(b"payload", "secret")
    with pytest.raises(DecryptionError):
        crypto.decrypt(out, "not-the-secret")


def test_decrypt_detects_tampering():
    out = bytearray(crypto.encrypt(b"payload", "secret"))
    out[-1] ^= 0x01
    with pytest.raises(DecryptionError):
        crypto.decrypt(bytes(out), "secret")


def test_decrypt_rejects_short_payload():
    with pytest.raises(DecryptionError):
        crypto.decrypt(b"\x00" * 10, "secret")


def test_bad_key_size_is_cipher_init_error():
    with pytest.raises(CipherInitError):
        crypto._cipher(b"too-short")


def test_missing_randomness_is_random_source_error(monkeypatch):
    def _no_entropy(n):
        raise NotImplementedError("no randomness source")

    monkeypatch.setattr(crypto.os, "urandom", _no_entropy)
    with pytest.raises(RandomSourceError) as ei:
        crypto.encrypt(b"data", "secret")
    assert isinstance(ei.value, EncryptionError)
    assert isinstance(ei.value.__cause__, NotImplementedError)

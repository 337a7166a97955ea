from __future__ import annotations

import contextlib
import logging
import os
import tempfile
import time
from typing import Iterator, Optional

from providers import crypto
from providers.errors import EncryptionError, FileReadError, FileWriteError

logger = logging.getLogger(__name__)


def stage_encrypted(local_path: str, passphrase: str, staging_dir: Optional[str] = None) -> str:
    """
    Encrypt `local_path` into a fresh temp file and return its path.

    The caller owns the returned file and must remove it; prefer
    `staged_ciphertext`, which does that on every exit path.
    """
    try:
        with open(local_path, "rb") as f:
            plaintext = f.read()
    except OSError as exc:
        raise FileReadError(f"failed to read file: {exc}", op="stage_encrypted", target=local_path) from exc

    try:
        payload = crypto.encrypt(plaintext, passphrase)
    except EncryptionError as exc:
        raise EncryptionError(f"failed to encrypt file: {exc}", op="stage_encrypted", target=local_path) from exc

    directory = staging_dir or tempfile.gettempdir()
    try:
        # time_ns keeps names ordered; mkstemp guarantees uniqueness across threads
        fd, tmp_path = tempfile.mkstemp(prefix=f"enc-{time.time_ns()}-", dir=directory)
    except OSError as exc:
        raise FileWriteError(f"failed to create encrypted file: {exc}", op="stage_encrypted", target=directory) from exc

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
    except OSError as exc:
        _remove_quietly(tmp_path)
        raise FileWriteError(f"failed to write encrypted file: {exc}", op="stage_encrypted", target=tmp_path) from exc

    return tmp_path


@contextlib.contextmanager
def staged_ciphertext(local_path: str, passphrase: str, staging_dir: Optional[str] = None) -> Iterator[str]:
    tmp_path = stage_encrypted(local_path, passphrase, staging_dir=staging_dir)
    try:
        yield tmp_path
    finally:
        _remove_quietly(tmp_path)


def _remove_quietly(path: str) -> None:
    # Cleanup failure must not mask the upload outcome.
    try:
        os.remove(path)
    except FileNotFoundError:
        return
    except OSError:
        logger.exception("[Staging] failed to remove staged file path=%s", path)

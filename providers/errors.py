from __future__ import annotations

from typing import Optional


class StorageError(RuntimeError):
    """
    Base error for the storage layer.

    Carries the operation name and the object id / local path involved so the
    caller can log a precise cause. The underlying transport or IO error is
    chained via `raise ... from exc`.
    """

    def __init__(self, message: str, op: str = "", target: Optional[str] = None):
        self.op = op
        self.target = target
        detail = message
        if op or target:
            detail = f"{message} (op={op or '?'} target={target or '?'})"
        super().__init__(detail)


class FileReadError(StorageError):
    pass


class FileWriteError(StorageError):
    pass


class EncryptionError(StorageError):
    pass


class CipherInitError(EncryptionError):
    pass


class RandomSourceError(EncryptionError):
    pass


class DecryptionError(EncryptionError):
    pass


class UploadError(StorageError):
    pass


class EmptyObjectIDError(UploadError):
    pass


class DeleteError(StorageError):
    pass


class AssetResolutionError(StorageError):
    pass


class URLConstructionError(StorageError):
    pass


class SigningError(StorageError):
    pass

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class StorageProvider(Protocol):
    """
    Object storage abstraction.

    Implemented by FirebaseStorageProvider (bucket store) and
    CloudinaryStorageProvider (CDN media platform). Callers only ever see
    object ids and URLs; the URL shape and signing scheme stay inside each
    implementation.

    `resource_type` ("image" | "video" | anything else = generic) only matters
    for Cloudinary; the bucket store ignores it.
    """

    name: str

    def upload(self, local_path: str, dest_folder: str) -> str: ...

    def upload_encrypted(self, local_path: str, dest_folder: str, passphrase: str) -> str: ...

    def delete(self, object_id: str, resource_type: Optional[str] = None) -> None: ...

    def get_download_url(self, object_id: str, resource_type: Optional[str] = None) -> str: ...

    def get_secure_download_url(
        self,
        object_id: str,
        resource_type: Optional[str] = None,
        ttl_seconds: int = 900,
    ) -> str: ...

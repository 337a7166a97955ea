from __future__ import annotations

from typing import Optional

from providers.storage import StorageProvider

PUBLIC_ROOT = "public"
PRIVATE_ROOT = "private"
# identity-verification (KYP) evidence
RESTRICTED_SEGMENT = "kyp"


def route_folder(is_private: bool, is_restricted: bool, is_image: bool) -> str:
    """
    Map (visibility, category, media type) onto a storage prefix.

      public                -> public/{images|files}
      private               -> private/{images|files}
      private + restricted  -> private/kyp/{images|files}

    Public content has no restricted variant.
    """
    leaf = "images" if is_image else "files"
    if not is_private:
        return f"{PUBLIC_ROOT}/{leaf}"
    if is_restricted:
        return f"{PRIVATE_ROOT}/{RESTRICTED_SEGMENT}/{leaf}"
    return f"{PRIVATE_ROOT}/{leaf}"


def upload_routed(
    storage: StorageProvider,
    local_path: str,
    *,
    is_private: bool,
    is_restricted: bool = False,
    is_image: bool = False,
    passphrase: Optional[str] = None,
) -> str:
    """
    Upload into the routed folder. Private content is always encrypted first.
    """
    folder = route_folder(is_private, is_restricted, is_image)
    if is_private:
        if not passphrase:
            raise ValueError("passphrase is required for private uploads")
        return storage.upload_encrypted(local_path, folder, passphrase)
    return storage.upload(local_path, folder)

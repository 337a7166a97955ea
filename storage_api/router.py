# backend/storage_api/router.py
from __future__ import annotations

import hmac
import logging
import os
import shutil
import tempfile
from typing import Optional

from fastapi import APIRouter, File, Form, Header, HTTPException, Query, UploadFile

from core.deps import StorageDep, StorageSettingsDep
from core.settings import MAX_SIGNED_URL_TTL_SECONDS
from providers.errors import StorageError
from providers.routing import PUBLIC_ROOT, route_folder, upload_routed
from storage_api.models import DownloadURLRequest, DownloadURLResponse, UploadResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/storage", tags=["storage"])

ALLOWED_FILE_TYPES = {"image", "video"}
ALLOWED_BUCKETS = {"images", "videos", "profile"}
BUCKET_RESOURCE_TYPES = {"images": "image", "videos": "video", "profile": "image"}
ALLOWED_KYP_BUCKETS = {"documents", "selfies"}


# ---------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------

def _safe_filename(filename: Optional[str]) -> str:
    name = os.path.basename((filename or "").replace("\\", "/")).strip()
    if not name or name in (".", ".."):
        raise HTTPException(status_code=400, detail="file name is missing or invalid")
    return name


def _ttl(expires: Optional[int], default: int) -> int:
    if expires is None:
        return default
    return int(expires)


def _storage_failure(action: str, exc: StorageError) -> HTTPException:
    return HTTPException(status_code=500, detail=f"failed to {action}: {exc}")


def _save_upload(file: UploadFile, directory: str) -> str:
    """
    Copy the upload to <directory>/<client filename>; the file name becomes
    part of the object id on bucket-style backends.
    """
    path = os.path.join(directory, _safe_filename(file.filename))
    try:
        with open(path, "wb") as out:
            shutil.copyfileobj(file.file, out)
    except OSError as exc:
        raise HTTPException(status_code=500, detail=f"failed to save file: {exc}") from exc
    return path


# ---------------------------------------------------------------------
# Public media
# ---------------------------------------------------------------------

@router.post("/upload", response_model=UploadResponse)
def upload_file_route(
    storage: StorageDep,
    fileType: str = Form(...),
    bucket: str = Form(...),
    file: UploadFile = File(...),
):
    logger.info("[Storage] upload request fileType=%s bucket=%s", fileType, bucket)

    if fileType not in ALLOWED_FILE_TYPES:
        raise HTTPException(status_code=400, detail="invalid file type; must be 'image' or 'video'")
    if bucket not in ALLOWED_BUCKETS:
        raise HTTPException(status_code=400, detail="invalid bucket; allowed values are 'images', 'videos', 'profile'")

    dest_folder = f"{PUBLIC_ROOT}/{bucket}"
    with tempfile.TemporaryDirectory(prefix="upload-") as tmp_dir:
        local_path = _save_upload(file, tmp_dir)
        try:
            public_id = storage.upload(local_path, dest_folder)
        except StorageError as exc:
            raise _storage_failure("upload file", exc) from exc

    try:
        download_url = storage.get_download_url(public_id, fileType)
    except StorageError as exc:
        raise _storage_failure("construct download URL", exc) from exc

    return UploadResponse(
        message="file uploaded successfully",
        publicID=public_id,
        downloadURL=download_url,
    )


@router.post("/download-url", response_model=DownloadURLResponse)
def get_download_url_route(
    body: DownloadURLRequest,
    storage: StorageDep,
    # accepted for client compatibility; public URLs do not expire
    expires: Optional[int] = Query(default=None, description="ignored for public media"),
):
    if body.bucket not in ALLOWED_BUCKETS or not body.filename:
        raise HTTPException(status_code=400, detail="invalid bucket or filename")

    object_id = f"{PUBLIC_ROOT}/{body.bucket}/{body.filename}"
    try:
        url = storage.get_download_url(object_id, BUCKET_RESOURCE_TYPES[body.bucket])
    except StorageError as exc:
        raise _storage_failure("generate download URL", exc) from exc
    return DownloadURLResponse(downloadURL=url)


# ---------------------------------------------------------------------
# KYP (identity-verification) evidence: always encrypted, signed reads
# ---------------------------------------------------------------------

@router.post("/kyp/upload", response_model=UploadResponse)
def upload_kyp_file_route(
    storage: StorageDep,
    settings: StorageSettingsDep,
    bucket: str = Form(...),
    file: UploadFile = File(...),
):
    if bucket not in ALLOWED_KYP_BUCKETS:
        raise HTTPException(status_code=400, detail="invalid bucket; allowed values are 'documents' and 'selfies'")
    if not settings.admin_key:
        raise HTTPException(status_code=500, detail="encryption key is not configured")

    with tempfile.TemporaryDirectory(prefix="kyp-") as tmp_dir:
        local_path = _save_upload(file, tmp_dir)
        try:
            public_id = upload_routed(
                storage,
                local_path,
                is_private=True,
                is_restricted=True,
                is_image=bucket == "selfies",
                passphrase=settings.admin_key,
            )
        except StorageError as exc:
            raise _storage_failure("upload KYP file", exc) from exc

    return UploadResponse(message="KYP file uploaded successfully", publicID=public_id)


@router.post("/kyp/download-url", response_model=DownloadURLResponse)
def get_kyp_download_url_route(
    body: DownloadURLRequest,
    storage: StorageDep,
    settings: StorageSettingsDep,
    x_admin_key: Optional[str] = Header(default=None),
    expires: Optional[int] = Query(
        default=None,
        ge=1,
        le=MAX_SIGNED_URL_TTL_SECONDS,
        description="URL lifetime in seconds",
    ),
):
    if not x_admin_key:
        raise HTTPException(status_code=401, detail="admin token not found")
    if not settings.admin_key or not hmac.compare_digest(x_admin_key.encode("utf-8"), settings.admin_key.encode("utf-8")):
        raise HTTPException(status_code=401, detail="invalid admin key")

    if body.bucket not in ALLOWED_KYP_BUCKETS or not body.filename:
        raise HTTPException(status_code=400, detail="invalid bucket or filename")

    folder = route_folder(True, True, body.bucket == "selfies")
    object_id = f"{folder}/{body.filename}"

    try:
        url = storage.get_secure_download_url(
            object_id,
            # encrypted uploads are stored as raw blobs
            resource_type="raw",
            ttl_seconds=_ttl(expires, settings.signed_url_ttl_seconds),
        )
    except StorageError as exc:
        raise _storage_failure("generate secure download URL", exc) from exc
    return DownloadURLResponse(downloadURL=url)

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import cloudinary.uploader
from cloudinary import CloudinaryImage, CloudinaryResource, CloudinaryVideo

from core.settings import StorageSettings, clamp_ttl
from providers.errors import (
    AssetResolutionError,
    DeleteError,
    EmptyObjectIDError,
    SigningError,
    UploadError,
    URLConstructionError,
)
from providers.signing import cloudinary_signed_url
from providers.staging import staged_ciphertext
from providers.storage import StorageProvider

logger = logging.getLogger(__name__)

DEFAULT_RESOURCE_TYPE = "image"
# Cloudinary's name for "any other file"
GENERIC_RESOURCE_TYPE = "raw"
# encrypted assets are only reachable through signed delivery URLs
AUTHENTICATED_DELIVERY_TYPE = "authenticated"


def resolve_resource_type(resource_type: Optional[str]) -> str:
    """image and video keep their type; anything else (or nothing) is raw."""
    if resource_type in ("image", "video"):
        return resource_type
    return GENERIC_RESOURCE_TYPE


class CloudinaryStorageProvider(StorageProvider):
    """
    Cloudinary-backed StorageProvider.

    Object ids are Cloudinary public ids (assigned by Cloudinary inside the
    requested folder). Credentials are passed on every SDK call instead of
    through cloudinary.config(), so two providers with different accounts can
    live in one process.

    `uploader` defaults to the `cloudinary.uploader` module; anything exposing
    upload(file, **options) / destroy(public_id, **options) works.
    """

    name = "cloudinary"

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        uploader: Optional[Any] = None,
        staging_dir: Optional[str] = None,
    ):
        cloud_name = (cloud_name or "").strip()
        if not cloud_name or not api_key or not api_secret:
            raise RuntimeError("CLOUDINARY_CLOUD_NAME / CLOUDINARY_API_KEY / CLOUDINARY_API_SECRET not set")

        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.staging_dir = staging_dir
        self._uploader = uploader or cloudinary.uploader
        logger.debug("[Cloudinary] provider ready cloud=%s", cloud_name)

    @classmethod
    def from_settings(cls, settings: StorageSettings) -> "CloudinaryStorageProvider":
        return cls(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            staging_dir=settings.staging_dir,
        )

    def _auth(self) -> Dict[str, str]:
        return {
            "cloud_name": self.cloud_name,
            "api_key": self.api_key,
            "api_secret": self.api_secret,
        }

    def _upload(self, source_path: str, dest_folder: str, resource_type: str, **options: Any) -> str:
        try:
            result = self._uploader.upload(
                source_path,
                folder=dest_folder,
                resource_type=resource_type,
                **options,
                **self._auth(),
            )
        except Exception as exc:
            logger.exception("[Cloudinary] upload failed folder=%s path=%s", dest_folder, source_path)
            raise UploadError(f"failed to upload file: {exc}", op="upload", target=source_path) from exc

        public_id = (result or {}).get("public_id") or ""
        if not public_id:
            raise EmptyObjectIDError("no public ID returned", op="upload", target=source_path)

        logger.info("[Cloudinary] upload ok folder=%s public_id=%s", dest_folder, public_id)
        return public_id

    def upload(self, local_path: str, dest_folder: str) -> str:
        return self._upload(local_path, dest_folder, "auto")

    def upload_encrypted(self, local_path: str, dest_folder: str, passphrase: str) -> str:
        with staged_ciphertext(local_path, passphrase, staging_dir=self.staging_dir) as enc_path:
            return self._upload(
                enc_path,
                dest_folder,
                GENERIC_RESOURCE_TYPE,
                type=AUTHENTICATED_DELIVERY_TYPE,
            )

    def delete(self, object_id: str, resource_type: Optional[str] = None) -> None:
        if not object_id:
            raise DeleteError("public id is required", op="delete")
        try:
            result = self._uploader.destroy(
                object_id,
                resource_type=resource_type or DEFAULT_RESOURCE_TYPE,
                **self._auth(),
            )
        except Exception as exc:
            logger.warning("[Cloudinary] delete failed public_id=%s err=%s", object_id, exc)
            raise DeleteError(f"failed to delete file: {exc}", op="delete", target=object_id) from exc

        outcome = (result or {}).get("result")
        if outcome != "ok":
            # "not found" is a failure too
            raise DeleteError(f"delete rejected: {outcome or 'no result'}", op="delete", target=object_id)
        logger.info("[Cloudinary] delete ok public_id=%s", object_id)

    def _asset(self, resource_type: Optional[str], public_id: str) -> CloudinaryResource:
        if not public_id:
            raise AssetResolutionError("public id is required", op="get_download_url")
        rtype = resolve_resource_type(resource_type)
        try:
            if rtype == "image":
                return CloudinaryImage(public_id)
            if rtype == "video":
                return CloudinaryVideo(public_id)
            return CloudinaryResource(public_id, resource_type=GENERIC_RESOURCE_TYPE)
        except Exception as exc:
            raise AssetResolutionError(f"failed to get asset: {exc}", op="get_download_url", target=public_id) from exc

    def get_download_url(self, object_id: str, resource_type: Optional[str] = None) -> str:
        asset = self._asset(resource_type, object_id)
        try:
            url = asset.build_url(cloud_name=self.cloud_name, secure=True)
        except Exception as exc:
            raise URLConstructionError(f"failed to get URL string: {exc}", op="get_download_url", target=object_id) from exc
        if not url:
            raise URLConstructionError("empty URL", op="get_download_url", target=object_id)
        return url

    def get_secure_download_url(
        self,
        object_id: str,
        resource_type: Optional[str] = None,
        ttl_seconds: int = 900,
    ) -> str:
        try:
            return cloudinary_signed_url(
                self.cloud_name,
                self.api_secret,
                object_id,
                resource_type=resolve_resource_type(resource_type),
                ttl_seconds=clamp_ttl(ttl_seconds),
            )
        except SigningError:
            raise
        except Exception as exc:
            raise SigningError(f"failed to sign URL: {exc}", op="get_secure_download_url", target=object_id) from exc

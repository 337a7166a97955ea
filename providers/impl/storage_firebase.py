from __future__ import annotations

import logging
import mimetypes
import os
import posixpath
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import quote

from google.cloud import storage as gcs

from core.settings import ServiceAccount, StorageSettings, clamp_ttl, load_service_account
from providers.errors import (
    DeleteError,
    FileReadError,
    SigningError,
    StorageError,
    UploadError,
    URLConstructionError,
)
from providers.signing import build_signing_credentials
from providers.staging import staged_ciphertext
from providers.storage import StorageProvider

logger = logging.getLogger(__name__)

PUBLIC_MEDIA_HOST = "https://firebasestorage.googleapis.com"
ENCRYPTED_CONTENT_TYPE = "application/octet-stream"


class FirebaseStorageProvider(StorageProvider):
    """
    Firebase Storage (GCS bucket) StorageProvider.

    Object ids are bucket paths: "<dest_folder>/<basename>".
    Public uploads get the publicRead ACL so the unsigned media URL resolves;
    encrypted uploads stay private and are read through signed URLs.

    Credentials come in as a ServiceAccount (client_email + private_key),
    the same key is used for the API client and for V4 URL signing.
    """

    name = "firebase"

    def __init__(
        self,
        bucket: str,
        service_account: ServiceAccount,
        client: Optional[Any] = None,
        staging_dir: Optional[str] = None,
    ):
        bucket = (bucket or "").strip()
        if not bucket:
            raise RuntimeError("FIREBASE_BUCKET is required for firebase storage provider")

        self.bucket_name = bucket
        self.service_account = service_account
        self.staging_dir = staging_dir
        # Built once; shared by the API client and V4 signing.
        self._signing_credentials = build_signing_credentials(service_account)

        if client is None:
            client = gcs.Client(project=service_account.project_id or None, credentials=self._signing_credentials)
        self._client = client
        self._bucket = client.bucket(bucket)

    @classmethod
    def from_settings(cls, settings: StorageSettings) -> "FirebaseStorageProvider":
        sa = load_service_account(settings.firebase_credentials_path)
        return cls(
            bucket=settings.firebase_bucket,
            service_account=sa,
            staging_dir=settings.staging_dir,
        )

    @staticmethod
    def _object_path(dest_folder: str, local_path: str) -> str:
        folder = (dest_folder or "").strip("/")
        base = os.path.basename(local_path)
        if folder:
            return posixpath.join(folder, base)
        return base

    def _put(self, source_path: str, object_path: str, content_type: Optional[str], public: bool) -> str:
        blob = self._bucket.blob(object_path)
        try:
            blob.upload_from_filename(
                source_path,
                content_type=content_type,
                predefined_acl="publicRead" if public else None,
            )
        except Exception as exc:
            logger.exception("[Firebase] upload failed bucket=%s object=%s", self.bucket_name, object_path)
            raise UploadError(f"failed to upload file: {exc}", op="upload", target=object_path) from exc

        logger.info("[Firebase] upload ok bucket=%s object=%s public=%s", self.bucket_name, object_path, public)
        return object_path

    def upload(self, local_path: str, dest_folder: str) -> str:
        if not os.path.isfile(local_path):
            raise FileReadError("local file not found", op="upload", target=local_path)

        object_path = self._object_path(dest_folder, local_path)
        content_type, _ = mimetypes.guess_type(local_path)
        return self._put(local_path, object_path, content_type, public=True)

    def upload_encrypted(self, local_path: str, dest_folder: str, passphrase: str) -> str:
        # Object keeps the original file name; only the bytes are ciphertext.
        object_path = self._object_path(dest_folder, local_path)
        with staged_ciphertext(local_path, passphrase, staging_dir=self.staging_dir) as enc_path:
            return self._put(enc_path, object_path, ENCRYPTED_CONTENT_TYPE, public=False)

    def delete(self, object_id: str, resource_type: Optional[str] = None) -> None:
        if not object_id:
            raise DeleteError("object id is required", op="delete")
        try:
            self._bucket.blob(object_id).delete()
        except Exception as exc:
            logger.warning("[Firebase] delete failed bucket=%s object=%s err=%s", self.bucket_name, object_id, exc)
            raise DeleteError(f"failed to delete file: {exc}", op="delete", target=object_id) from exc
        logger.info("[Firebase] delete ok bucket=%s object=%s", self.bucket_name, object_id)

    def get_download_url(self, object_id: str, resource_type: Optional[str] = None) -> str:
        if not object_id:
            raise URLConstructionError("object id is required", op="get_download_url")
        return f"{PUBLIC_MEDIA_HOST}/v0/b/{self.bucket_name}/o/{quote(object_id, safe='')}?alt=media"

    def get_secure_download_url(
        self,
        object_id: str,
        resource_type: Optional[str] = None,
        ttl_seconds: int = 900,
    ) -> str:
        if not object_id:
            raise SigningError("object id is required", op="get_secure_download_url")

        expires = datetime.now(timezone.utc) + timedelta(seconds=clamp_ttl(ttl_seconds))
        try:
            return self._bucket.blob(object_id).generate_signed_url(
                version="v4",
                expiration=expires,
                method="GET",
                credentials=self._signing_credentials,
            )
        except StorageError:
            raise
        except Exception as exc:
            logger.exception("[Firebase] signing failed bucket=%s object=%s", self.bucket_name, object_id)
            raise SigningError(f"failed to generate signed URL: {exc}", op="get_secure_download_url", target=object_id) from exc

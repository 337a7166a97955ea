from __future__ import annotations

import json
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else str(v)


def _env_int(name: str, default: int) -> int:
    raw = _env(name, "")
    if not raw.strip():
        return default
    try:
        return int(raw)
    except Exception:
        return default


# ---------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------

# GCS V4 signed URLs cannot outlive 7 days
MAX_SIGNED_URL_TTL_SECONDS = 7 * 24 * 3600


def clamp_ttl(ttl_seconds: int) -> int:
    return max(1, min(int(ttl_seconds), MAX_SIGNED_URL_TTL_SECONDS))


@dataclass(frozen=True)
class ServiceAccount:
    """
    The fields of a service-account JSON key that URL signing needs.
    """
    client_email: str
    private_key: str
    project_id: str = ""
    token_uri: str = ""


@dataclass(frozen=True)
class StorageSettings:
    """
    Storage provider configuration.

    provider:
      - "firebase"   -> FirebaseStorageProvider (GCS bucket)
      - "cloudinary" -> CloudinaryStorageProvider
    """
    provider: str

    # Firebase / GCS
    firebase_credentials_path: str = ""
    firebase_bucket: str = ""

    # Cloudinary
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""

    # Shared
    admin_key: str = ""
    staging_dir: Optional[str] = None
    signed_url_ttl_seconds: int = 900


@dataclass(frozen=True)
class Settings:
    storage: StorageSettings
    log_level: str = "INFO"


# ---------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------

def _normalize_storage_provider(raw: str) -> str:
    v = (raw or "").strip().lower()
    if v in ("cloudinary", "cdn", "media"):
        return "cloudinary"
    if v in ("firebase", "gcs", "google", "bucket"):
        return "firebase"
    return "firebase"


def _load_storage_settings() -> StorageSettings:
    """
    Storage precedence (DO NOT break this):
      1) STORAGE_MODE (deployment/runtime truth)  <-- must win
      2) STORAGE_PROVIDER (legacy override)
      3) default firebase
    """
    raw_mode = (_env("STORAGE_MODE", "") or "").strip()
    raw_provider = (_env("STORAGE_PROVIDER", "") or "").strip()
    provider = _normalize_storage_provider(raw_mode or raw_provider or "firebase")

    ttl = _env_int("STORAGE_SIGNED_URL_TTL_SECONDS", 900)
    ttl = clamp_ttl(ttl)

    staging_dir = (_env("STORAGE_STAGING_DIR", "") or "").strip() or None

    return StorageSettings(
        provider=provider,
        firebase_credentials_path=(
            _env("FIREBASE_CREDENTIALS_PATH", "") or _env("GOOGLE_APPLICATION_CREDENTIALS", "")
        ).strip(),
        firebase_bucket=(_env("FIREBASE_BUCKET", "") or "").strip(),
        cloudinary_cloud_name=(_env("CLOUDINARY_CLOUD_NAME", "") or "").strip(),
        cloudinary_api_key=(_env("CLOUDINARY_API_KEY", "") or "").strip(),
        cloudinary_api_secret=(_env("CLOUDINARY_API_SECRET", "") or "").strip(),
        admin_key=_env("STORAGE_ADMIN_KEY", ""),
        staging_dir=staging_dir,
        signed_url_ttl_seconds=ttl,
    )


def load_service_account(path: str) -> ServiceAccount:
    """
    Read a service-account JSON key file.
    """
    path = (path or "").strip()
    if not path:
        raise RuntimeError("FIREBASE_CREDENTIALS_PATH is required for firebase storage provider")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise RuntimeError(f"failed to load service account (path={path}): {exc}") from exc

    client_email = str(data.get("client_email") or "").strip()
    private_key = str(data.get("private_key") or "")
    if not client_email or not private_key:
        raise RuntimeError(f"service account is missing client_email/private_key (path={path})")

    return ServiceAccount(
        client_email=client_email,
        private_key=private_key,
        project_id=str(data.get("project_id") or ""),
        token_uri=str(data.get("token_uri") or ""),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        storage=_load_storage_settings(),
        log_level=(_env("LOG_LEVEL", "") or "INFO").strip().upper(),
    )

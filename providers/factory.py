from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from core.settings import Settings, StorageSettings, get_settings
from providers.impl.storage_cloudinary import CloudinaryStorageProvider
from providers.impl.storage_firebase import FirebaseStorageProvider
from providers.storage import StorageProvider


@dataclass(frozen=True)
class Providers:
    """
    Central container for providers.

    Built once at startup and treated as immutable afterwards.
    """
    settings: Settings
    storage: StorageProvider


# Closed set: adding a backend means adding it here.
_STORAGE_BUILDERS: Dict[str, Callable[[StorageSettings], StorageProvider]] = {
    "firebase": FirebaseStorageProvider.from_settings,
    "cloudinary": CloudinaryStorageProvider.from_settings,
}


def build_storage_provider(settings: StorageSettings) -> StorageProvider:
    builder = _STORAGE_BUILDERS.get(settings.provider)
    if builder is None:
        raise RuntimeError(f"Unknown storage provider: {settings.provider!r}")
    return builder(settings)


_cached: Optional[Providers] = None


def get_providers() -> Providers:
    global _cached
    if _cached is None:
        settings = get_settings()
        _cached = Providers(
            settings=settings,
            storage=build_storage_provider(settings.storage),
        )
    return _cached

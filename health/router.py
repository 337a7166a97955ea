# backend/health/router.py
from fastapi import APIRouter

from core.deps import ProvidersDep

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    # Keep this super simple and always unauthenticated
    return {"ok": True}


@router.get("/health/storage")
def health_storage(providers: ProvidersDep):
    """
    Reports which storage backend this process was wired with.
    No remote call is made.
    """
    storage = providers.storage
    return {
        "ok": True,
        "provider": getattr(storage, "name", type(storage).__name__),
        "signedUrlTtlSeconds": providers.settings.storage.signed_url_ttl_seconds,
    }

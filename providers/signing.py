from __future__ import annotations

import hashlib
import time
from typing import TYPE_CHECKING, Optional

from google.oauth2 import service_account as google_service_account

from providers.errors import SigningError

if TYPE_CHECKING:
    from core.settings import ServiceAccount


CLOUDINARY_DELIVERY_HOST = "https://res.cloudinary.com"
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"


# ---------------------------------------------------------------------
# Firebase / GCS: provider-native signing
# ---------------------------------------------------------------------

def normalize_private_key(private_key: str) -> str:
    """
    Keys pasted into env vars / JSON often carry literal "\\n" sequences;
    the PEM parser needs real line breaks.
    """
    return (private_key or "").replace("\\n", "\n")


def build_signing_credentials(sa: "ServiceAccount") -> google_service_account.Credentials:
    info = {
        "type": "service_account",
        "client_email": sa.client_email,
        "private_key": normalize_private_key(sa.private_key),
        "token_uri": sa.token_uri or DEFAULT_TOKEN_URI,
    }
    if sa.project_id:
        info["project_id"] = sa.project_id
    try:
        return google_service_account.Credentials.from_service_account_info(info)
    except Exception as exc:
        raise SigningError(
            f"failed to load signing credentials: {exc}",
            op="build_signing_credentials",
            target=sa.client_email,
        ) from exc


# ---------------------------------------------------------------------
# Cloudinary: authenticated delivery token, computed locally
# ---------------------------------------------------------------------

def cloudinary_signature(public_id: str, expires_at: int, api_secret: str) -> str:
    to_sign = f"expires_at={int(expires_at)}&public_id={public_id}{api_secret}"
    return hashlib.sha1(to_sign.encode("utf-8")).hexdigest()


def cloudinary_signed_url(
    cloud_name: str,
    api_secret: str,
    public_id: str,
    resource_type: str = "image",
    ttl_seconds: int = 900,
    now: Optional[float] = None,
) -> str:
    """
    https://res.cloudinary.com/<cloud>/<type>/authenticated/s--<sig>--/expires_<ts>/<public_id>

    `ttl_seconds` is relative to the moment the URL is built.
    """
    if not public_id:
        raise SigningError("public_id is required", op="get_secure_download_url")
    if not cloud_name or not api_secret:
        raise SigningError("cloud name and api secret are required", op="get_secure_download_url", target=public_id)

    issued_at = time.time() if now is None else now
    expires_at = int(issued_at) + int(ttl_seconds)
    sig = cloudinary_signature(public_id, expires_at, api_secret)
    rtype = resource_type or "image"
    return f"{CLOUDINARY_DELIVERY_HOST}/{cloud_name}/{rtype}/authenticated/s--{sig}--/expires_{expires_at}/{public_id}"

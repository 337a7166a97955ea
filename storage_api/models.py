from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class DownloadURLRequest(BaseModel):
    bucket: str
    filename: str


class UploadResponse(BaseModel):
    message: str
    publicID: str
    downloadURL: Optional[str] = None


class DownloadURLResponse(BaseModel):
    downloadURL: str

from __future__ import annotations

import secrets

from fastapi import Header, HTTPException, Request, status

from ordermind.core.config import settings
from ordermind.core.storage import ObjectStorage


def get_storage(request: Request) -> ObjectStorage:
    return request.app.state.storage


def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
    if not settings.api_key:
        return
    if not x_api_key or not secrets.compare_digest(x_api_key, settings.api_key):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")

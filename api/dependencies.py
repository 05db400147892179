"""FastAPI dependency injection: the service instance and caller identity."""

from __future__ import annotations

import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException

from config.settings import settings
from lifecycle.service import PodcastService

_service = PodcastService()


def get_service() -> PodcastService:
    """Return the process-wide podcast service."""
    return _service


def get_current_user(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """The authenticated user id, as forwarded by the auth layer."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(401, "Not authenticated")
    return x_user_id.strip()


def require_worker(
    x_worker_token: Annotated[str | None, Header()] = None,
) -> None:
    """Reject worker-channel calls without the shared worker token."""
    if not x_worker_token or not secrets.compare_digest(x_worker_token, settings.worker_token):
        raise HTTPException(401, "Invalid worker token")


ServiceDep = Annotated[PodcastService, Depends(get_service)]
UserDep = Annotated[str, Depends(get_current_user)]

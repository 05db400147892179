"""HTTP client for the podcast API."""
from __future__ import annotations

import requests

from config.settings import settings

API_BASE = settings.api_base_url


class ApiError(Exception):
    """A non-2xx response from the API."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


def _headers(user_id: str) -> dict:
    return {"X-User-Id": user_id}


def _check(resp: requests.Response) -> requests.Response:
    if resp.ok:
        return resp
    try:
        detail = resp.json().get("detail", resp.text)
    except ValueError:
        detail = resp.text
    if not isinstance(detail, str):
        detail = str(detail)
    raise ApiError(resp.status_code, detail or "Request failed")


def _request(method: str, path: str, user_id: str, **kwargs) -> requests.Response:
    kwargs.setdefault("timeout", 30)
    resp = requests.request(method, f"{API_BASE}{path}", headers=_headers(user_id), **kwargs)
    return _check(resp)


# ---------------------------------------------------------------------------
# Podcast endpoints
# ---------------------------------------------------------------------------

def create_podcast(user_id: str, payload: dict) -> dict:
    """POST /podcasts: returns the QUEUED podcast."""
    return _request("POST", "/podcasts", user_id, json=payload).json()


def list_podcasts(
    user_id: str,
    search: str | None = None,
    status: str = "ALL",
    sort: str = "createdAt_desc",
    page: int = 1,
    limit: int | None = None,
) -> dict:
    """GET /podcasts: returns {items, total, page, limit, totalPages}."""
    params = {
        "status": status,
        "sort": sort,
        "page": page,
        "limit": limit or settings.default_page_size,
    }
    if search:
        params["search"] = search
    return _request("GET", "/podcasts", user_id, params=params).json()


def get_podcast(user_id: str, podcast_id: str) -> dict:
    return _request("GET", f"/podcasts/{podcast_id}", user_id).json()


def update_title(user_id: str, podcast_id: str, title: str | None) -> dict:
    return _request("PATCH", f"/podcasts/{podcast_id}", user_id, json={"title": title}).json()


def delete_podcast(user_id: str, podcast_id: str) -> None:
    _request("DELETE", f"/podcasts/{podcast_id}", user_id)


def retry_podcast(user_id: str, podcast_id: str) -> dict:
    return _request("POST", f"/podcasts/{podcast_id}/retry", user_id).json()


def get_stats(user_id: str) -> dict:
    """GET /podcasts/stats: returns counts and totalMinutes."""
    return _request("GET", "/podcasts/stats", user_id).json()

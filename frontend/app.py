"""notecast: Streamlit dashboard.

Run with:
    streamlit run frontend/app.py

The FastAPI backend is auto-started on http://localhost:8000 if not
already running.
"""
from __future__ import annotations

import os
import subprocess
import sys
import time
from pathlib import Path

import requests
import streamlit as st

# Make the project root importable so `frontend/api.py` and `models` can be found
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(Path(__file__).parent))
sys.path.insert(0, str(_PROJECT_ROOT))


# ---------------------------------------------------------------------------
# Auto-start FastAPI backend
# ---------------------------------------------------------------------------
_BACKEND_URL = os.environ.get("API_BASE_URL", "http://localhost:8000/api/v1")
_HEALTH_URL = _BACKEND_URL.rsplit("/api/v1", 1)[0] + "/health"


def _backend_is_running() -> bool:
    """Check if the FastAPI backend responds at /health."""
    try:
        resp = requests.get(_HEALTH_URL, timeout=2)
        return resp.status_code == 200
    except requests.RequestException:
        return False


def _ensure_backend() -> None:
    """Launch uvicorn as a subprocess if the backend isn't already running."""
    if _backend_is_running():
        return

    subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "api.main:app",
         "--host", "0.0.0.0", "--port", "8000"],
        cwd=str(_PROJECT_ROOT),
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )

    for _ in range(30):
        if _backend_is_running():
            return
        time.sleep(1)


_ensure_backend()

import api as backend  # noqa: E402  (local api.py)
from config.settings import settings  # noqa: E402
from rendering import (  # noqa: E402
    clamp_page,
    display_title,
    format_duration,
    format_relative_time,
    status_view,
    transcript_to_srt,
    transcript_to_text,
    transcript_to_vtt,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

STATUS_OPTIONS = ["ALL", "QUEUED", "PROCESSING", "COMPLETED", "FAILED"]
SORT_OPTIONS = {
    "Newest first": "createdAt_desc",
    "Oldest first": "createdAt_asc",
    "Longest first": "duration_desc",
    "Shortest first": "duration_asc",
}
DURATION_OPTIONS = {
    "Short · 3-5 min": "SHORT",
    "Medium · 5-8 min": "MEDIUM",
    "Long · 8-10 min": "LONG",
}
PAGE_SIZE = settings.default_page_size
POLL_INTERVAL = 3  # seconds between status polls
MIN_CHARS = settings.note_min_chars
MAX_CHARS = settings.note_max_chars


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

def init_state() -> None:
    defaults = {
        "view": "list",
        "podcast_id": "",
        "page": 1,
        "error": None,
        "user_id": os.environ.get("DASHBOARD_USER_ID", "demo-user"),
    }
    for k, v in defaults.items():
        if k not in st.session_state:
            st.session_state[k] = v


def reset_page() -> None:
    st.session_state["page"] = 1


def go(view: str, podcast_id: str = "") -> None:
    st.session_state["view"] = view
    st.session_state["podcast_id"] = podcast_id
    st.session_state["error"] = None


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

def handle_retry(podcast_id: str) -> None:
    try:
        backend.retry_podcast(st.session_state["user_id"], podcast_id)
    except backend.ApiError as exc:
        st.session_state["error"] = f"Retry failed: {exc.detail}"


def handle_delete(podcast_id: str) -> None:
    try:
        backend.delete_podcast(st.session_state["user_id"], podcast_id)
        go("list")
    except backend.ApiError as exc:
        st.session_state["error"] = f"Delete failed: {exc.detail}"


# ---------------------------------------------------------------------------
# UI sections
# ---------------------------------------------------------------------------

def render_stats() -> None:
    try:
        stats = backend.get_stats(st.session_state["user_id"])
    except (backend.ApiError, requests.RequestException):
        return
    cols = st.columns(4)
    cols[0].metric("Podcasts", stats["total"])
    cols[1].metric("Completed", stats["completed"])
    cols[2].metric("Processing", stats["processing"])
    cols[3].metric("Minutes", stats["totalMinutes"])


def render_card(podcast: dict) -> None:
    view = status_view(podcast)
    with st.container(border=True):
        st.markdown(f"**{display_title(podcast)}**")
        st.caption(
            f"{view.icon} {view.label} · {podcast['duration'].title()} · "
            f"{format_relative_time(podcast['createdAt'])}"
        )
        if view.show_progress:
            st.progress(view.progress / 100, text=f"{view.step} {view.progress}%")
        elif view.show_player:
            st.caption(format_duration(podcast.get("audioDuration")))
        elif view.message:
            st.caption(view.message)
        if st.button("Open", key=f"open-{podcast['id']}"):
            go("detail", podcast["id"])
            st.rerun()


def render_list_view() -> None:
    render_stats()

    col_search, col_status, col_sort = st.columns([3, 1, 1])
    search = col_search.text_input(
        "Search", placeholder="Search titles and notes…", on_change=reset_page
    )
    status = col_status.selectbox("Status", STATUS_OPTIONS, on_change=reset_page)
    sort_label = col_sort.selectbox("Sort", list(SORT_OPTIONS), on_change=reset_page)

    if st.button("➕ Create Podcast", type="primary"):
        go("create")
        st.rerun()

    try:
        data = backend.list_podcasts(
            st.session_state["user_id"],
            search=search or None,
            status=status,
            sort=SORT_OPTIONS[sort_label],
            page=st.session_state["page"],
            limit=PAGE_SIZE,
        )
    except (backend.ApiError, requests.RequestException) as exc:
        st.error(f"Could not load podcasts: {exc}")
        if st.button("Try again"):
            st.rerun()
        return

    # Deletes or tighter filters can leave the current page past the end.
    page = clamp_page(st.session_state["page"], data["totalPages"])
    if page != st.session_state["page"]:
        st.session_state["page"] = page
        st.rerun()

    if not data["items"]:
        st.info("No podcasts match. Create one from your notes to get started.")
        return

    cols = st.columns(3)
    for i, podcast in enumerate(data["items"]):
        with cols[i % 3]:
            render_card(podcast)

    if data["totalPages"] > 1:
        page = st.number_input(
            f"Page (of {data['totalPages']})",
            min_value=1,
            max_value=data["totalPages"],
            value=st.session_state["page"],
        )
        if page != st.session_state["page"]:
            st.session_state["page"] = int(page)
            st.rerun()

    if any(p["status"] in ("QUEUED", "PROCESSING") for p in data["items"]):
        time.sleep(POLL_INTERVAL)
        st.rerun()


def render_create_view() -> None:
    st.subheader("Turn your notes into a podcast")
    if st.button("← Back"):
        go("list")
        st.rerun()

    notes = st.text_area("Notes", height=250, placeholder="Paste your notes here…")
    char_count = len(notes.strip())
    st.caption(f"{char_count:,} / {MAX_CHARS:,} characters (minimum {MIN_CHARS})")

    duration_label = st.radio("Duration", list(DURATION_OPTIONS), horizontal=True)
    title = st.text_input("Title (optional)", max_chars=settings.title_max_chars)
    host_voice = st.text_input("Host voice", value="default")
    guest_voice = st.text_input("Guest voice", value="default")
    webhook_url = st.text_input("Webhook URL (optional)", placeholder="https://…")

    is_valid = MIN_CHARS <= char_count <= MAX_CHARS
    if st.button("🎙️ Generate Podcast", disabled=not is_valid, type="primary"):
        payload = {
            "noteContent": notes,
            "duration": DURATION_OPTIONS[duration_label],
            "title": title or None,
            "hostVoice": host_voice or None,
            "guestVoice": guest_voice or None,
            "webhookUrl": webhook_url or None,
        }
        try:
            podcast = backend.create_podcast(st.session_state["user_id"], payload)
            go("detail", podcast["id"])
        except backend.ApiError as exc:
            st.session_state["error"] = f"Could not create podcast: {exc.detail}"
        st.rerun()


def render_detail_view() -> None:
    podcast_id = st.session_state["podcast_id"]
    if st.button("← All podcasts"):
        go("list")
        st.rerun()

    try:
        podcast = backend.get_podcast(st.session_state["user_id"], podcast_id)
    except backend.ApiError as exc:
        if exc.status_code == 404:
            st.warning("This podcast no longer exists.")
        else:
            st.error(f"Could not load podcast: {exc.detail}")
        return

    view = status_view(podcast)
    st.subheader(display_title(podcast))
    st.caption(f"{view.icon} {view.label} · created {format_relative_time(podcast['createdAt'])}")

    if view.show_progress:
        st.progress(view.progress / 100, text=f"{view.step} {view.progress}%")
    if view.show_player:
        st.audio(podcast["audioUrl"])
        st.caption(format_duration(podcast.get("audioDuration")))
    if view.message:
        (st.error if view.show_retry else st.info)(view.message)
    if view.show_retry and st.button("🔁 Retry"):
        handle_retry(podcast_id)
        st.rerun()

    transcript = podcast.get("transcript") if podcast["status"] == "COMPLETED" else None
    if transcript:
        with st.expander("Transcript"):
            st.text(transcript_to_text(transcript))
            if isinstance(transcript, list):
                st.download_button("Download SRT", transcript_to_srt(transcript), "transcript.srt")
                st.download_button("Download VTT", transcript_to_vtt(transcript), "transcript.vtt")

    new_title = st.text_input("Title", value=podcast.get("title") or "")
    if new_title != (podcast.get("title") or "") and st.button("Save title"):
        try:
            backend.update_title(st.session_state["user_id"], podcast_id, new_title)
        except backend.ApiError as exc:
            st.session_state["error"] = f"Could not rename: {exc.detail}"
        st.rerun()

    if st.button("🗑️ Delete", type="secondary"):
        handle_delete(podcast_id)
        st.rerun()

    if podcast["status"] in ("QUEUED", "PROCESSING"):
        time.sleep(POLL_INTERVAL)
        st.rerun()


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    st.set_page_config(page_title="notecast", page_icon="🎙️", layout="wide")
    init_state()
    st.title("🎙️ notecast")

    if st.session_state["error"]:
        st.error(st.session_state["error"])

    view = st.session_state["view"]
    if view == "create":
        render_create_view()
    elif view == "detail":
        render_detail_view()
    else:
        render_list_view()


main()

"""Display rules for podcasts, shared by the dashboard views.

Works on the camelCase dicts returned by the API. Status handling is
exhaustive: every :class:`PodcastStatus` has a branch in :func:`status_view`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from models.data import PodcastStatus
from utils.helpers import truncate

UNTITLED = "Untitled Podcast"
TITLE_PREVIEW_CHARS = 50
LAST_SEGMENT_SECONDS = 5


@dataclass
class StatusView:
    """What the dashboard should show for a podcast in its current state."""

    label: str
    icon: str
    show_progress: bool = False
    progress: int = 0
    step: str = ""
    show_player: bool = False
    show_retry: bool = False
    message: str = ""


def display_title(podcast: dict) -> str:
    """The title, else a preview of the notes, else a placeholder."""
    title = (podcast.get("title") or "").strip()
    if title:
        return title
    content = (podcast.get("noteContent") or "").strip()
    if not content:
        return UNTITLED
    return truncate(content, TITLE_PREVIEW_CHARS)


def status_view(podcast: dict) -> StatusView:
    status = PodcastStatus(podcast["status"])

    if status is PodcastStatus.QUEUED:
        return StatusView(
            label="Queued",
            icon="⏳",
            message="Waiting for a generation slot.",
        )
    if status is PodcastStatus.PROCESSING:
        return StatusView(
            label="Processing",
            icon="⚙️",
            show_progress=True,
            progress=max(0, min(int(podcast.get("progress") or 0), 100)),
            step=podcast.get("currentStep") or "Processing...",
        )
    if status is PodcastStatus.COMPLETED:
        if not podcast.get("audioUrl"):
            return StatusView(label="Completed", icon="✅", message="Audio unavailable")
        return StatusView(label="Completed", icon="✅", show_player=True)
    if status is PodcastStatus.FAILED:
        return StatusView(
            label="Failed",
            icon="❌",
            show_retry=True,
            message=podcast.get("errorMessage") or "Generation failed",
        )
    raise ValueError(f"Unhandled status: {status!r}")


def clamp_page(page: int, total_pages: int) -> int:
    """Pull ``page`` back onto the last page when the list has shrunk.

    An empty list (``total_pages == 0``) leaves the page alone.
    """
    if 0 < total_pages < page:
        return total_pages
    return max(page, 1)


# ── Time formatting ──────────────────────────────────────────────────────────


def format_duration(seconds: float | None) -> str:
    """``m:ss`` or ``h:mm:ss``."""
    total = int(seconds or 0)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}" if n == 1 else f"{n} {unit}s"


def format_relative_time(when: datetime | str, now: datetime | None = None) -> str:
    """Rough age such as "3 hours ago"."""
    if isinstance(when, str):
        when = datetime.fromisoformat(when.replace("Z", "+00:00"))
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)

    seconds = int((now - when).total_seconds())
    if seconds < 60:
        return "just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{_plural(minutes, 'minute')} ago"
    hours = minutes // 60
    if hours < 24:
        return f"{_plural(hours, 'hour')} ago"
    days = hours // 24
    if days < 30:
        return f"{_plural(days, 'day')} ago"
    months = days // 30
    if months < 12:
        return f"{_plural(months, 'month')} ago"
    return f"{_plural(months // 12, 'year')} ago"


# ── Transcript export ────────────────────────────────────────────────────────


def _clock(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"


def _cue_time(seconds: float, separator: str) -> str:
    millis = int(round(seconds * 1000))
    hours, millis = divmod(millis, 3_600_000)
    minutes, millis = divmod(millis, 60_000)
    secs, millis = divmod(millis, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}{separator}{millis:03d}"


def _cues(segments: list[dict]) -> list[tuple[float, float, dict]]:
    cues = []
    for i, seg in enumerate(segments):
        start = float(seg["timestamp"])
        if i + 1 < len(segments):
            end = float(segments[i + 1]["timestamp"])
        else:
            end = start + LAST_SEGMENT_SECONDS
        cues.append((start, end, seg))
    return cues


def transcript_to_text(transcript: str | list[dict] | None) -> str:
    if not transcript:
        return ""
    if isinstance(transcript, str):
        return transcript
    return "\n\n".join(
        f"[{_clock(s['timestamp'])}] {s['speaker']}: {s['text']}" for s in transcript
    )


def transcript_to_srt(segments: list[dict]) -> str:
    blocks = []
    for n, (start, end, seg) in enumerate(_cues(segments), start=1):
        blocks.append(
            f"{n}\n{_cue_time(start, ',')} --> {_cue_time(end, ',')}\n"
            f"{seg['speaker']}: {seg['text']}\n"
        )
    return "\n".join(blocks)


def transcript_to_vtt(segments: list[dict]) -> str:
    blocks = ["WEBVTT\n"]
    for start, end, seg in _cues(segments):
        blocks.append(
            f"{_cue_time(start, '.')} --> {_cue_time(end, '.')}\n"
            f"<v {seg['speaker']}>{seg['text']}\n"
        )
    return "\n".join(blocks)

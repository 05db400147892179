"""Outbound webhook notifications for finished podcasts."""

from __future__ import annotations

import requests

from config.settings import settings
from models.data import Podcast, PodcastStatus
from utils.helpers import get_logger

log = get_logger(__name__)

_EVENT_NAMES = {
    PodcastStatus.COMPLETED: "podcast.completed",
    PodcastStatus.FAILED: "podcast.failed",
}


def build_event(podcast: Podcast) -> dict | None:
    """Return the webhook payload for a podcast, or None if it is not finished."""
    event = _EVENT_NAMES.get(podcast.status)
    if event is None:
        return None

    data: dict = {
        "id": podcast.id,
        "title": podcast.title,
        "status": podcast.status.value,
        "noteId": podcast.note_id,
        "jobId": podcast.job_id,
    }
    if podcast.status is PodcastStatus.COMPLETED:
        data.update({
            "audioUrl": podcast.audio_url,
            "audioDuration": podcast.audio_duration,
            "completedAt": podcast.completed_at.isoformat() if podcast.completed_at else None,
        })
    else:
        data.update({
            "errorMessage": podcast.error_message,
            "failedAt": podcast.failed_at.isoformat() if podcast.failed_at else None,
        })
    return {"event": event, "data": data}


class WebhookNotifier:
    """POSTs lifecycle events to the podcast's configured webhook URL."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout if timeout is not None else settings.webhook_timeout_seconds

    def notify(self, podcast: Podcast) -> bool:
        """Deliver the event for ``podcast``. Returns True on a 2xx response.

        Delivery problems are logged and never raised: the podcast's state is
        already recorded and must not depend on the receiver.
        """
        if not podcast.webhook_url:
            return False
        payload = build_event(podcast)
        if payload is None:
            return False

        try:
            resp = requests.post(podcast.webhook_url, json=payload, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            log.warning(
                "Webhook %s for podcast %s failed: %s", payload["event"], podcast.id, exc
            )
            return False

        log.info("Delivered %s for podcast %s", payload["event"], podcast.id)
        return True

"""Tests for the job queue, webhook notifications and the dashboard API client."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests

from dispatch.queue import JobQueue
from dispatch.webhooks import WebhookNotifier, build_event
from models.data import Podcast, PodcastDuration, PodcastStatus

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _podcast(n: int = 1, **fields) -> Podcast:
    defaults = {
        "id": f"pod-{n}",
        "user_id": "user-1",
        "note_content": "notes " * 30,
        "duration": PodcastDuration.SHORT,
        "created_at": T0,
        "updated_at": T0,
    }
    defaults.update(fields)
    return Podcast(**defaults)


class TestJobQueue:
    def test_fifo(self):
        queue = JobQueue()
        first = queue.enqueue(_podcast(1))
        second = queue.enqueue(_podcast(2))
        assert queue.claim().job_id == first
        assert queue.claim().job_id == second
        assert queue.claim() is None

    def test_cancelled_jobs_skipped(self):
        queue = JobQueue()
        first = queue.enqueue(_podcast(1))
        second = queue.enqueue(_podcast(2))
        assert queue.cancel(first)
        assert queue.pending_count() == 1
        assert queue.claim().job_id == second

    def test_cancel_unknown(self):
        queue = JobQueue()
        assert not queue.cancel("missing")
        assert not queue.cancel(None)
        assert queue.is_cancelled("missing")

    def test_job_carries_epoch_and_config(self):
        queue = JobQueue()
        queue.enqueue(_podcast(1, epoch=3, host_voice="alloy"))
        job = queue.claim()
        assert job.epoch == 3
        assert job.host_voice == "alloy"
        assert job.claimed


class TestWebhooks:
    def test_no_event_for_unfinished(self):
        assert build_event(_podcast(status=PodcastStatus.PROCESSING)) is None

    def test_completed_event(self):
        podcast = _podcast(
            status=PodcastStatus.COMPLETED,
            audio_url="https://cdn.example.com/a.mp3",
            audio_duration=420.0,
            completed_at=T0,
        )
        event = build_event(podcast)
        assert event["event"] == "podcast.completed"
        assert event["data"]["audioUrl"] == "https://cdn.example.com/a.mp3"
        assert event["data"]["completedAt"] == T0.isoformat()

    def test_skips_without_url(self):
        assert not WebhookNotifier().notify(_podcast(status=PodcastStatus.FAILED))

    @patch("dispatch.webhooks.requests.post")
    def test_delivery_error_is_logged_not_raised(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("refused")
        podcast = _podcast(
            status=PodcastStatus.FAILED,
            error_message="boom",
            failed_at=T0,
            webhook_url="https://hooks.example.com/x",
        )
        assert WebhookNotifier(timeout=1).notify(podcast) is False
        assert mock_post.call_args.kwargs["timeout"] == 1


class TestDashboardClient:
    @patch("frontend.api.requests.request")
    def test_sends_user_header_and_params(self, mock_request):
        from frontend import api as client

        mock_request.return_value = MagicMock(ok=True, json=lambda: {"items": [], "total": 0})
        client.list_podcasts("user-7", search="ml", status="FAILED", page=2)

        args, kwargs = mock_request.call_args
        assert args[0] == "GET"
        assert args[1].endswith("/podcasts")
        assert kwargs["headers"] == {"X-User-Id": "user-7"}
        assert kwargs["params"]["search"] == "ml"
        assert kwargs["params"]["page"] == 2

    @patch("frontend.api.requests.request")
    def test_base_url_and_page_size_from_settings(self, mock_request):
        from config.settings import settings
        from frontend import api as client

        mock_request.return_value = MagicMock(ok=True, json=lambda: {"items": [], "total": 0})
        client.list_podcasts("user-7")

        args, kwargs = mock_request.call_args
        assert client.API_BASE == settings.api_base_url
        assert args[1] == f"{settings.api_base_url}/podcasts"
        assert kwargs["params"]["limit"] == settings.default_page_size
        assert "search" not in kwargs["params"]

    @patch("frontend.api.requests.request")
    def test_error_detail_raised(self, mock_request):
        from frontend import api as client

        mock_request.return_value = MagicMock(
            ok=False, status_code=409, json=lambda: {"detail": "Cannot move podcast"}
        )
        with pytest.raises(client.ApiError) as excinfo:
            client.retry_podcast("user-1", "pod-1")
        assert excinfo.value.status_code == 409
        assert excinfo.value.detail == "Cannot move podcast"

"""Tests for the podcast service: commands, queries and the worker channel."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from models.data import (
    InvalidPodcastError,
    InvalidTransitionError,
    PodcastDuration,
    PodcastNotFoundError,
    PodcastStatus,
    UpdateOutcome,
    WorkerUpdate,
)
from storage.query import PodcastQuery


def _worker(service, podcast, status, **fields):
    return service.apply_worker_update(
        WorkerUpdate(podcast_id=podcast.id, epoch=podcast.epoch, status=status, **fields)
    )


def _complete(service, podcast, audio_duration=300.0):
    _worker(service, podcast, PodcastStatus.PROCESSING, progress=10)
    return _worker(
        service,
        podcast,
        PodcastStatus.COMPLETED,
        audio_url=f"https://cdn.example.com/{podcast.id}.mp3",
        audio_duration=audio_duration,
    ).podcast


def _failed(service, podcast, message="boom"):
    _worker(service, podcast, PodcastStatus.PROCESSING)
    return _worker(service, podcast, PodcastStatus.FAILED, error_message=message).podcast


class TestCreate:
    def test_returns_queued_record(self, service, make_request):
        podcast = service.create("user-1", make_request(title="  My notes  "))
        assert podcast.status is PodcastStatus.QUEUED
        assert podcast.title == "My notes"
        assert podcast.audio_url is None
        assert podcast.transcript is None
        assert podcast.error_message is None
        assert podcast.failed_at is None
        assert podcast.job_id is not None

    def test_enqueues_job(self, service, make_request):
        podcast = service.create("user-1", make_request())
        job = service.claim_job()
        assert job.podcast_id == podcast.id
        assert job.job_id == podcast.job_id
        assert job.epoch == 1

    @pytest.mark.parametrize("content", ["too short", "x" * 10_001, " " * 200])
    def test_content_bounds(self, service, make_request, content):
        with pytest.raises(InvalidPodcastError):
            service.create("user-1", make_request(note_content=content))
        assert service.list_podcasts("user-1").total == 0

    def test_boundaries_accepted(self, service, make_request):
        service.create("user-1", make_request(note_content="a" * 100))
        service.create("user-1", make_request(note_content="b" * 10_000))
        assert service.list_podcasts("user-1").total == 2

    def test_bad_webhook_url(self, service, make_request):
        with pytest.raises(InvalidPodcastError):
            service.create("user-1", make_request(webhook_url="not a url"))

    def test_blank_webhook_url_is_absent(self, service, make_request):
        podcast = service.create("user-1", make_request(webhook_url=""))
        assert podcast.webhook_url is None

    def test_title_too_long(self, service, make_request):
        with pytest.raises(InvalidPodcastError):
            service.create("user-1", make_request(title="t" * 101))

    def test_duration_accepts_lowercase(self):
        assert PodcastDuration("medium") is PodcastDuration.MEDIUM
        assert PodcastDuration.LONG.target_minutes == (8, 10)


class TestReads:
    def test_other_users_podcast_is_not_found(self, service, make_request):
        podcast = service.create("user-1", make_request())
        with pytest.raises(PodcastNotFoundError):
            service.get("user-2", podcast.id)
        assert service.list_podcasts("user-2").total == 0

    def test_status_round_trip(self, service, make_request):
        podcast = service.create("user-1", make_request())
        queued = service.list_podcasts("user-1", PodcastQuery(status="QUEUED"))
        assert [p.id for p in queued.items] == [podcast.id]

        _complete(service, podcast)

        completed = service.list_podcasts("user-1", PodcastQuery(status="COMPLETED"))
        assert [p.id for p in completed.items] == [podcast.id]
        assert service.list_podcasts("user-1", PodcastQuery(status="QUEUED")).items == []

    def test_stats(self, service, make_request):
        a = service.create("user-1", make_request())
        b = service.create("user-1", make_request())
        c = service.create("user-1", make_request())
        service.create("user-2", make_request())
        _complete(service, a, audio_duration=300)
        _complete(service, b, audio_duration=150)
        _worker(service, c, PodcastStatus.PROCESSING, progress=20)

        stats = service.stats("user-1")
        assert stats.total == 3
        assert stats.completed == 2
        assert stats.processing == 1
        assert stats.total_minutes == 7.5


class TestUpdateTitle:
    def test_rename_any_status(self, service, make_request):
        podcast = service.create("user-1", make_request())
        failed = _failed(service, podcast)
        renamed = service.update_title("user-1", podcast.id, "Second take")
        assert renamed.title == "Second take"
        assert renamed.status is PodcastStatus.FAILED
        assert renamed.updated_at > failed.updated_at

    def test_blank_clears_title(self, service, make_request):
        podcast = service.create("user-1", make_request(title="Old"))
        assert service.update_title("user-1", podcast.id, "   ").title is None

    def test_missing_podcast(self, service):
        with pytest.raises(PodcastNotFoundError):
            service.update_title("user-1", "nope", "Title")


class TestRetry:
    def test_retry_failed(self, service, make_request):
        podcast = service.create("user-1", make_request())
        failed = _failed(service, podcast)
        retried = service.retry("user-1", podcast.id)
        assert retried.status is PodcastStatus.QUEUED
        assert retried.error_message is None
        assert retried.failed_at is None
        assert retried.epoch == 2
        assert retried.job_id != failed.job_id

    @pytest.mark.parametrize("finish", [None, "complete"])
    def test_retry_rejected_unless_failed(self, service, make_request, finish):
        podcast = service.create("user-1", make_request())
        if finish == "complete":
            _complete(service, podcast)
        before = service.get("user-1", podcast.id)
        with pytest.raises(InvalidTransitionError):
            service.retry("user-1", podcast.id)
        assert service.get("user-1", podcast.id) == before

    def test_second_retry_rejected(self, service, make_request):
        podcast = service.create("user-1", make_request())
        _failed(service, podcast)
        service.retry("user-1", podcast.id)
        with pytest.raises(InvalidTransitionError):
            service.retry("user-1", podcast.id)

    def test_old_epoch_messages_ignored_after_retry(self, service, make_request):
        podcast = service.create("user-1", make_request())
        _failed(service, podcast)
        service.retry("user-1", podcast.id)

        result = _worker(
            service, podcast, PodcastStatus.COMPLETED, audio_url="https://cdn.example.com/x.mp3"
        )
        assert result.outcome is UpdateOutcome.STALE_EPOCH
        assert service.get("user-1", podcast.id).status is PodcastStatus.QUEUED

    def test_old_job_not_claimed_after_retry(self, service, make_request):
        podcast = service.create("user-1", make_request())
        service.claim_job()
        _failed(service, podcast)
        retried = service.retry("user-1", podcast.id)
        job = service.claim_job()
        assert job.epoch == 2
        assert job.job_id == retried.job_id


class TestDelete:
    def test_delete_removes_everywhere(self, service, make_request):
        podcast = service.create("user-1", make_request())
        service.delete("user-1", podcast.id)
        assert service.list_podcasts("user-1").total == 0
        with pytest.raises(PodcastNotFoundError):
            service.get("user-1", podcast.id)

    def test_delete_twice_is_not_found(self, service, make_request):
        podcast = service.create("user-1", make_request())
        service.delete("user-1", podcast.id)
        with pytest.raises(PodcastNotFoundError):
            service.delete("user-1", podcast.id)

    def test_delete_processing_cancels_job(self, service, make_request):
        podcast = service.create("user-1", make_request())
        job = service.claim_job()
        _worker(service, podcast, PodcastStatus.PROCESSING, progress=40)

        service.delete("user-1", podcast.id)

        assert service.job_cancelled(job.job_id)
        result = _worker(
            service, podcast, PodcastStatus.COMPLETED, audio_url="https://cdn.example.com/x.mp3"
        )
        assert result.outcome is UpdateOutcome.RECORD_GONE
        assert result.podcast is None

    def test_delete_while_enqueueing_cancels_job(self, service, make_request):
        enqueue = service.queue.enqueue
        job_ids = []

        def delete_then_enqueue(podcast):
            service.repository.delete(podcast.id)
            job_ids.append(enqueue(podcast))
            return job_ids[-1]

        with patch.object(service.queue, "enqueue", side_effect=delete_then_enqueue):
            podcast = service.create("user-1", make_request())

        assert podcast.status is PodcastStatus.QUEUED
        assert podcast.job_id is None
        assert service.queue.is_cancelled(job_ids[0])
        assert service.claim_job() is None

    def test_delete_queued_job_never_claimed(self, service, make_request):
        podcast = service.create("user-1", make_request())
        service.delete("user-1", podcast.id)
        assert service.claim_job() is None

    def test_cannot_delete_other_users_podcast(self, service, make_request):
        podcast = service.create("user-1", make_request())
        with pytest.raises(PodcastNotFoundError):
            service.delete("user-2", podcast.id)
        assert service.get("user-1", podcast.id).id == podcast.id


class TestWorkerChannel:
    def test_finished_flag_only_on_terminal_entry(self, service, make_request):
        podcast = service.create("user-1", make_request())
        started = _worker(service, podcast, PodcastStatus.PROCESSING, progress=5)
        assert not started.finished
        done = _worker(
            service, podcast, PodcastStatus.COMPLETED, audio_url="https://cdn.example.com/x.mp3"
        )
        assert done.finished

    def test_invalid_transition_leaves_record(self, service, make_request):
        podcast = service.create("user-1", make_request())
        with pytest.raises(InvalidTransitionError):
            _worker(service, podcast, PodcastStatus.COMPLETED, audio_url="https://x/a.mp3")
        assert service.get("user-1", podcast.id).status is PodcastStatus.QUEUED

    @patch("dispatch.webhooks.requests")
    def test_notify_posts_event(self, mock_requests, service, make_request):
        podcast = service.create("user-1", make_request(webhook_url="https://hooks.example.com/p"))
        failed = _failed(service, podcast, "no voices")

        assert service.notify(failed)
        args, kwargs = mock_requests.post.call_args
        assert args[0] == "https://hooks.example.com/p"
        assert kwargs["json"]["event"] == "podcast.failed"
        assert kwargs["json"]["data"]["errorMessage"] == "no voices"

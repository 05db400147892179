"""Podcast commands and queries, each scoped to the calling user."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable

from pydantic import AnyHttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from config.settings import settings
from dispatch.queue import JobQueue
from dispatch.webhooks import WebhookNotifier
from lifecycle.state_machine import apply_worker_update, new_podcast, requeue
from models.data import (
    CreatePodcast,
    GenerationJob,
    InvalidPodcastError,
    Podcast,
    PodcastNotFoundError,
    PodcastPage,
    PodcastStats,
    PodcastStatus,
    UpdateOutcome,
    WorkerUpdate,
)
from storage.query import PodcastQuery, run_query
from storage.repository import PodcastRepository
from utils.helpers import get_logger, utc_now

log = get_logger(__name__)

_http_url = TypeAdapter(AnyHttpUrl)


@dataclass
class WorkerUpdateResult:
    """Outcome of a worker message. ``podcast`` is None if the record is gone."""

    podcast: Podcast | None
    outcome: UpdateOutcome
    finished: bool = False


# ── Validation ───────────────────────────────────────────────────────────────


def clean_title(title: str | None) -> str | None:
    """Strip a title; blank becomes None. Raises if it is too long."""
    if title is None:
        return None
    title = title.strip()
    if not title:
        return None
    if len(title) > settings.title_max_chars:
        raise InvalidPodcastError(
            f"Title too long (max {settings.title_max_chars} characters)"
        )
    return title


def clean_webhook_url(url: str | None) -> str | None:
    if url is None or not url.strip():
        return None
    url = url.strip()
    try:
        _http_url.validate_python(url)
    except PydanticValidationError:
        raise InvalidPodcastError(f"Invalid webhook URL: {url}") from None
    return url


def validate_create(request: CreatePodcast) -> CreatePodcast:
    """Return a normalised copy of ``request`` or raise InvalidPodcastError."""
    content = (request.note_content or "").strip()
    if len(content) < settings.note_min_chars:
        raise InvalidPodcastError(
            f"Content must be at least {settings.note_min_chars} characters"
        )
    if len(content) > settings.note_max_chars:
        raise InvalidPodcastError(
            f"Content too long (max {settings.note_max_chars:,} characters)"
        )

    return replace(
        request,
        note_content=content,
        title=clean_title(request.title),
        webhook_url=clean_webhook_url(request.webhook_url),
        host_voice=request.host_voice or None,
        guest_voice=request.guest_voice or None,
        note_id=request.note_id or None,
    )


# ── Service ──────────────────────────────────────────────────────────────────


class PodcastService:
    """Create, read, edit, delete and retry podcasts; fold in worker updates."""

    def __init__(
        self,
        repository: PodcastRepository | None = None,
        queue: JobQueue | None = None,
        notifier: WebhookNotifier | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository or PodcastRepository()
        self.queue = queue or JobQueue()
        self.notifier = notifier or WebhookNotifier()
        self.clock = clock

    # ── user commands ────────────────────────────────────────────────────

    def create(self, user_id: str, request: CreatePodcast) -> Podcast:
        cleaned = validate_create(request)
        podcast = new_podcast(str(uuid.uuid4()), user_id, cleaned, self.clock())
        self.repository.add(podcast)
        return self._attach_job(podcast)

    def update_title(self, user_id: str, podcast_id: str, title: str | None) -> Podcast:
        title = clean_title(title)
        now = self.clock()
        _, podcast = self.repository.update(
            podcast_id,
            lambda p: replace(p, title=title, updated_at=now),
            user_id=user_id,
        )
        return podcast

    def delete(self, user_id: str, podcast_id: str) -> Podcast:
        """Remove a podcast in any status, cancelling its job if in flight."""
        podcast = self.repository.delete(podcast_id, user_id=user_id)
        if podcast.status.is_in_flight:
            self.queue.cancel(podcast.job_id)
        return podcast

    def retry(self, user_id: str, podcast_id: str) -> Podcast:
        """Requeue a FAILED podcast under a new epoch.

        Raises:
            InvalidTransitionError: If the podcast is not FAILED.
        """
        now = self.clock()
        _, podcast = self.repository.update(
            podcast_id, lambda p: requeue(p, now), user_id=user_id
        )
        log.info("Retrying podcast %s (epoch %d)", podcast.id, podcast.epoch)
        return self._attach_job(podcast)

    # ── user queries ─────────────────────────────────────────────────────

    def get(self, user_id: str, podcast_id: str) -> Podcast:
        return self.repository.get(podcast_id, user_id=user_id)

    def list_podcasts(self, user_id: str, query: PodcastQuery | None = None) -> PodcastPage:
        return run_query(self.repository.list_for_user(user_id), query or PodcastQuery())

    def stats(self, user_id: str) -> PodcastStats:
        stats = PodcastStats()
        seconds = 0.0
        for podcast in self.repository.list_for_user(user_id):
            stats.total += 1
            if podcast.status is PodcastStatus.QUEUED:
                stats.queued += 1
            elif podcast.status is PodcastStatus.PROCESSING:
                stats.processing += 1
            elif podcast.status is PodcastStatus.COMPLETED:
                stats.completed += 1
                seconds += podcast.audio_duration or 0
            elif podcast.status is PodcastStatus.FAILED:
                stats.failed += 1
        stats.total_minutes = round(seconds / 60, 1)
        return stats

    # ── worker channel ───────────────────────────────────────────────────

    def claim_job(self) -> GenerationJob | None:
        """Hand the next live job to a worker, skipping superseded ones."""
        while True:
            job = self.queue.claim()
            if job is None:
                return None
            if self._job_is_current(job):
                log.info("Job %s claimed for podcast %s", job.job_id, job.podcast_id)
                return job
            self.queue.cancel(job.job_id)

    def job_cancelled(self, job_id: str) -> bool:
        """Whether the worker should abandon ``job_id``."""
        if self.queue.is_cancelled(job_id):
            return True
        return not self._job_is_current(self.queue.get(job_id))

    def apply_worker_update(self, update: WorkerUpdate) -> WorkerUpdateResult:
        """Fold a worker message into the record atomically.

        Updates for deleted podcasts or superseded epochs are ignored rather
        than reported as errors.
        """
        now = self.clock()
        outcome = UpdateOutcome.APPLIED

        def fold(podcast: Podcast) -> Podcast:
            nonlocal outcome
            updated, outcome = apply_worker_update(podcast, update, now)
            return updated

        try:
            before, after = self.repository.update(update.podcast_id, fold)
        except PodcastNotFoundError:
            log.info("Ignoring update for missing podcast %s", update.podcast_id)
            return WorkerUpdateResult(podcast=None, outcome=UpdateOutcome.RECORD_GONE)

        finished = (
            outcome is UpdateOutcome.APPLIED
            and before.status is not after.status
            and after.status in (PodcastStatus.COMPLETED, PodcastStatus.FAILED)
        )
        return WorkerUpdateResult(podcast=after, outcome=outcome, finished=finished)

    def notify(self, podcast: Podcast) -> bool:
        return self.notifier.notify(podcast)

    # ── internals ────────────────────────────────────────────────────────

    def _attach_job(self, podcast: Podcast) -> Podcast:
        job_id = self.queue.enqueue(podcast)
        epoch = podcast.epoch
        try:
            _, attached = self.repository.update(
                podcast.id,
                lambda p: replace(p, job_id=job_id) if p.epoch == epoch else p,
            )
        except PodcastNotFoundError:
            # Deleted before the job id was recorded; the job must not run.
            self.queue.cancel(job_id)
            log.info("Podcast %s deleted before job %s attached", podcast.id, job_id)
            return podcast
        return attached

    def _job_is_current(self, job: GenerationJob) -> bool:
        try:
            podcast = self.repository.get(job.podcast_id)
        except PodcastNotFoundError:
            return False
        return podcast.epoch == job.epoch and podcast.status.is_in_flight

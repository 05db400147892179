"""Podcast lifecycle: legal status transitions and the fields each one sets.

Every function here is pure. It takes a :class:`Podcast`, checks the move
against :data:`ALLOWED_TRANSITIONS` and returns a new record; the input is
never modified, so a rejected transition always leaves the record unchanged.

    (create) ─▶ QUEUED ─▶ PROCESSING ─▶ COMPLETED
                  ▲           │  ▲
                  │           │  └─ progress heartbeat
                  │           ▼
                  └─ retry ─ FAILED
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from models.data import (
    CreatePodcast,
    InvalidPodcastError,
    InvalidTransitionError,
    Podcast,
    PodcastStatus,
    PreconditionFailedError,
    Transcript,
    UpdateOutcome,
    WorkerUpdate,
)
from utils.helpers import get_logger

log = get_logger(__name__)

ALLOWED_TRANSITIONS: dict[PodcastStatus, frozenset[PodcastStatus]] = {
    PodcastStatus.QUEUED: frozenset({PodcastStatus.PROCESSING}),
    PodcastStatus.PROCESSING: frozenset(
        {PodcastStatus.PROCESSING, PodcastStatus.COMPLETED, PodcastStatus.FAILED}
    ),
    PodcastStatus.COMPLETED: frozenset(),
    PodcastStatus.FAILED: frozenset({PodcastStatus.QUEUED}),
}

DEFAULT_ERROR_MESSAGE = "Podcast generation failed"


def can_transition(source: PodcastStatus, target: PodcastStatus) -> bool:
    """Return whether ``source -> target`` is in the lifecycle table."""
    return target in ALLOWED_TRANSITIONS[source]


def _require(podcast: Podcast, target: PodcastStatus) -> None:
    if not can_transition(podcast.status, target):
        raise InvalidTransitionError(podcast.status, target)


def _check_progress(progress: int) -> int:
    if not 0 <= progress <= 100:
        raise InvalidPodcastError(f"Progress must be between 0 and 100, got {progress}")
    return progress


# ── Transitions ──────────────────────────────────────────────────────────────


def new_podcast(
    podcast_id: str,
    user_id: str,
    request: CreatePodcast,
    now: datetime,
) -> Podcast:
    """Build the initial QUEUED record for a validated create request."""
    return Podcast(
        id=podcast_id,
        user_id=user_id,
        note_content=request.note_content,
        duration=request.duration,
        title=request.title,
        status=PodcastStatus.QUEUED,
        created_at=now,
        updated_at=now,
        host_voice=request.host_voice,
        guest_voice=request.guest_voice,
        tts_provider=request.tts_provider,
        webhook_url=request.webhook_url,
        note_id=request.note_id,
    )


def start_processing(
    podcast: Podcast,
    now: datetime,
    progress: int = 0,
    current_step: str | None = None,
) -> Podcast:
    """QUEUED -> PROCESSING: the worker picked the job up."""
    if podcast.status is not PodcastStatus.QUEUED:
        raise InvalidTransitionError(podcast.status, PodcastStatus.PROCESSING)
    return replace(
        podcast,
        status=PodcastStatus.PROCESSING,
        progress=_check_progress(progress),
        current_step=current_step,
        updated_at=now,
    )


def record_progress(
    podcast: Podcast,
    now: datetime,
    progress: int | None = None,
    current_step: str | None = None,
) -> Podcast:
    """PROCESSING -> PROCESSING heartbeat. Progress never goes backwards."""
    if podcast.status is not PodcastStatus.PROCESSING:
        raise InvalidTransitionError(podcast.status, PodcastStatus.PROCESSING)

    recorded = podcast.progress or 0
    if progress is None:
        progress = recorded
    elif _check_progress(progress) < recorded:
        raise PreconditionFailedError(
            f"Progress cannot decrease from {recorded} to {progress}"
        )

    return replace(
        podcast,
        progress=progress,
        current_step=current_step if current_step is not None else podcast.current_step,
        updated_at=now,
    )


def complete(
    podcast: Podcast,
    now: datetime,
    audio_url: str | None,
    audio_duration: float | None = None,
    audio_size: int | None = None,
    transcript: Transcript | None = None,
) -> Podcast:
    """PROCESSING -> COMPLETED. Status and audio payload land together."""
    _require(podcast, PodcastStatus.COMPLETED)
    if not audio_url:
        raise InvalidPodcastError("A completed podcast needs an audio URL")
    return replace(
        podcast,
        status=PodcastStatus.COMPLETED,
        audio_url=audio_url,
        audio_duration=audio_duration,
        audio_size=audio_size,
        transcript=transcript,
        completed_at=podcast.completed_at or now,
        progress=None,
        current_step=None,
        updated_at=now,
    )


def fail(podcast: Podcast, now: datetime, error_message: str | None = None) -> Podcast:
    """PROCESSING -> FAILED."""
    _require(podcast, PodcastStatus.FAILED)
    return replace(
        podcast,
        status=PodcastStatus.FAILED,
        error_message=error_message or DEFAULT_ERROR_MESSAGE,
        failed_at=now,
        progress=None,
        current_step=None,
        updated_at=now,
    )


def requeue(podcast: Podcast, now: datetime) -> Podcast:
    """FAILED -> QUEUED on user retry. Opens a new epoch."""
    _require(podcast, PodcastStatus.QUEUED)
    return replace(
        podcast,
        status=PodcastStatus.QUEUED,
        epoch=podcast.epoch + 1,
        error_message=None,
        failed_at=None,
        progress=None,
        current_step=None,
        job_id=None,
        updated_at=now,
    )


# ── Worker messages ──────────────────────────────────────────────────────────


def apply_worker_update(
    podcast: Podcast,
    update: WorkerUpdate,
    now: datetime,
) -> tuple[Podcast, UpdateOutcome]:
    """Fold a worker message into the record.

    Messages from another epoch and backwards progress are discarded and the
    record is returned as-is. Anything outside the lifecycle table raises
    :class:`InvalidTransitionError`.
    """
    if update.epoch != podcast.epoch:
        log.info(
            "Ignoring update for podcast %s: epoch %d, current %d",
            podcast.id, update.epoch, podcast.epoch,
        )
        return podcast, UpdateOutcome.STALE_EPOCH

    target = update.status

    if target is PodcastStatus.PROCESSING:
        if podcast.status is PodcastStatus.QUEUED:
            updated = start_processing(
                podcast, now, progress=update.progress or 0, current_step=update.current_step
            )
        else:
            if (
                podcast.status is PodcastStatus.PROCESSING
                and update.progress is not None
                and update.progress < (podcast.progress or 0)
            ):
                log.info(
                    "Discarding out-of-order progress for podcast %s: %d < %d",
                    podcast.id, update.progress, podcast.progress or 0,
                )
                return podcast, UpdateOutcome.PROGRESS_REGRESSION
            updated = record_progress(
                podcast, now, progress=update.progress, current_step=update.current_step
            )
    elif target is PodcastStatus.COMPLETED:
        updated = complete(
            podcast,
            now,
            audio_url=update.audio_url,
            audio_duration=update.audio_duration,
            audio_size=update.audio_size,
            transcript=update.transcript,
        )
    elif target is PodcastStatus.FAILED:
        updated = fail(podcast, now, update.error_message)
    elif target is PodcastStatus.QUEUED:
        # Only a user retry may requeue.
        raise InvalidTransitionError(podcast.status, target)
    else:
        raise ValueError(f"Unhandled status: {target!r}")

    log.info("Podcast %s: %s -> %s", podcast.id, podcast.status.value, updated.status.value)
    return updated, UpdateOutcome.APPLIED

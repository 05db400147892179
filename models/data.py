"""Shared data models used across the service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union


# ── Enumerations ─────────────────────────────────────────────────────────────


class PodcastStatus(str, Enum):
    QUEUED = "QUEUED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_in_flight(self) -> bool:
        return self in (PodcastStatus.QUEUED, PodcastStatus.PROCESSING)


class PodcastDuration(str, Enum):
    """Requested length class, with its target range in minutes."""

    SHORT = "SHORT"
    MEDIUM = "MEDIUM"
    LONG = "LONG"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return cls.__members__.get(value.upper())
        return None

    @property
    def target_minutes(self) -> tuple[int, int]:
        return _DURATION_TARGETS[self]


_DURATION_TARGETS = {
    PodcastDuration.SHORT: (3, 5),
    PodcastDuration.MEDIUM: (5, 8),
    PodcastDuration.LONG: (8, 10),
}


class Speaker(str, Enum):
    HOST = "HOST"
    GUEST = "GUEST"


class UpdateOutcome(str, Enum):
    """What happened to a worker update."""

    APPLIED = "applied"
    STALE_EPOCH = "stale_epoch"
    PROGRESS_REGRESSION = "progress_regression"
    RECORD_GONE = "record_gone"


# ── Podcast ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TranscriptSegment:
    """A single timestamped line of dialogue."""

    timestamp: float  # seconds from start
    speaker: Speaker
    text: str


Transcript = Union[str, list[TranscriptSegment]]


@dataclass(frozen=True)
class Podcast:
    """The podcast resource and its generation state.

    Instances are immutable; the lifecycle module produces new versions via
    ``dataclasses.replace``.
    """

    id: str
    user_id: str
    note_content: str
    duration: PodcastDuration
    created_at: datetime
    updated_at: datetime
    status: PodcastStatus = PodcastStatus.QUEUED
    title: str | None = None
    epoch: int = 1

    # COMPLETED payload
    audio_url: str | None = None
    audio_duration: float | None = None  # seconds
    audio_size: int | None = None  # bytes
    transcript: Transcript | None = None
    completed_at: datetime | None = None

    # PROCESSING payload
    progress: int | None = None  # 0-100
    current_step: str | None = None

    # FAILED payload
    error_message: str | None = None
    failed_at: datetime | None = None

    # Configuration / provenance, written once at creation
    host_voice: str | None = None
    guest_voice: str | None = None
    tts_provider: str | None = None
    webhook_url: str | None = None
    note_id: str | None = None
    job_id: str | None = None


@dataclass
class CreatePodcast:
    """Validated-on-use input for creating a podcast."""

    note_content: str
    duration: PodcastDuration
    title: str | None = None
    host_voice: str | None = None
    guest_voice: str | None = None
    tts_provider: str | None = None
    webhook_url: str | None = None
    note_id: str | None = None


@dataclass
class WorkerUpdate:
    """A status/progress/result message from the generation worker."""

    podcast_id: str
    epoch: int
    status: PodcastStatus
    progress: int | None = None
    current_step: str | None = None
    audio_url: str | None = None
    audio_duration: float | None = None
    audio_size: int | None = None
    transcript: Transcript | None = None
    error_message: str | None = None


@dataclass
class PodcastPage:
    """One page of a filtered, sorted podcast listing."""

    items: list[Podcast]
    total: int
    page: int
    limit: int
    total_pages: int


@dataclass
class PodcastStats:
    """Aggregate counts for a single user's podcasts."""

    total: int = 0
    queued: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0
    total_minutes: float = 0.0


@dataclass
class GenerationJob:
    """A unit of work handed to the external generation worker."""

    job_id: str
    podcast_id: str
    user_id: str
    epoch: int
    note_content: str
    duration: PodcastDuration
    title: str | None = None
    host_voice: str | None = None
    guest_voice: str | None = None
    tts_provider: str | None = None
    cancelled: bool = False
    claimed: bool = False


# ── Errors ───────────────────────────────────────────────────────────────────


class PodcastError(Exception):
    """Base class for podcast domain errors."""


class InvalidPodcastError(PodcastError):
    """Raised when input fails validation (content length, URL, paging)."""


class PodcastNotFoundError(PodcastError):
    """Raised when a podcast does not exist or belongs to another user."""

    def __init__(self, podcast_id: str):
        self.podcast_id = podcast_id
        super().__init__(f"Podcast {podcast_id} not found")


class PreconditionFailedError(PodcastError):
    """Raised when an operation is not allowed in the record's current state."""


class InvalidTransitionError(PreconditionFailedError):
    """Raised for a status change outside the lifecycle table."""

    def __init__(self, source: PodcastStatus, target: PodcastStatus):
        self.source = source
        self.target = target
        super().__init__(f"Cannot move podcast from {source.value} to {target.value}")

"""Pydantic request/response schemas for the API.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from models.data import (
    CreatePodcast,
    PodcastDuration,
    PodcastStatus,
    Speaker,
    TranscriptSegment,
    UpdateOutcome,
    WorkerUpdate,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class TranscriptSegmentSchema(CamelModel):
    timestamp: float = Field(..., ge=0, description="Seconds from the start")
    speaker: Speaker
    text: str


# ── Requests ─────────────────────────────────────────────────────────────────


class CreatePodcastRequest(CamelModel):
    """Input for a new podcast. Content length is checked by the service."""

    note_content: str = Field(..., description="Source notes to turn into a podcast")
    duration: PodcastDuration = Field(..., description="SHORT, MEDIUM or LONG")
    title: str | None = Field(None, description="Optional title")
    host_voice: str | None = None
    guest_voice: str | None = None
    tts_provider: str | None = None
    webhook_url: str | None = Field(None, description="Called when generation finishes")
    note_id: str | None = Field(None, description="Reference to the source note")

    def to_command(self) -> CreatePodcast:
        return CreatePodcast(**self.model_dump())


class UpdatePodcastRequest(CamelModel):
    title: str | None = Field(None, description="New title; blank clears it")


class WorkerEventRequest(CamelModel):
    """A worker status/progress/result message for one podcast epoch."""

    epoch: int = Field(..., ge=1)
    status: PodcastStatus
    progress: int | None = Field(None, ge=0, le=100)
    current_step: str | None = None
    audio_url: str | None = None
    audio_duration: float | None = Field(None, ge=0)
    audio_size: int | None = Field(None, ge=0)
    transcript: str | list[TranscriptSegmentSchema] | None = None
    error_message: str | None = None

    def to_update(self, podcast_id: str) -> WorkerUpdate:
        transcript = self.transcript
        if isinstance(transcript, list):
            transcript = [
                TranscriptSegment(timestamp=s.timestamp, speaker=s.speaker, text=s.text)
                for s in transcript
            ]
        return WorkerUpdate(
            podcast_id=podcast_id,
            epoch=self.epoch,
            status=self.status,
            progress=self.progress,
            current_step=self.current_step,
            audio_url=self.audio_url,
            audio_duration=self.audio_duration,
            audio_size=self.audio_size,
            transcript=transcript,
            error_message=self.error_message,
        )


# ── Responses ────────────────────────────────────────────────────────────────


class PodcastResponse(CamelModel):
    id: str
    user_id: str
    title: str | None = None
    note_content: str
    status: PodcastStatus
    duration: PodcastDuration
    epoch: int
    audio_url: str | None = None
    audio_duration: float | None = None
    audio_size: int | None = None
    transcript: str | list[TranscriptSegmentSchema] | None = None
    error_message: str | None = None
    progress: int | None = None
    current_step: str | None = None
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None
    failed_at: datetime | None = None
    tts_provider: str | None = None
    host_voice: str | None = None
    guest_voice: str | None = None
    job_id: str | None = None
    webhook_url: str | None = None
    note_id: str | None = None


class PodcastListResponse(CamelModel):
    items: list[PodcastResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class PodcastStatsResponse(CamelModel):
    total: int
    queued: int
    processing: int
    completed: int
    failed: int
    total_minutes: float


class JobResponse(CamelModel):
    """A generation job handed to a worker."""

    job_id: str
    podcast_id: str
    epoch: int
    note_content: str
    duration: PodcastDuration
    title: str | None = None
    host_voice: str | None = None
    guest_voice: str | None = None
    tts_provider: str | None = None


class JobStatusResponse(CamelModel):
    job_id: str
    cancelled: bool


class WorkerUpdateResponse(CamelModel):
    outcome: UpdateOutcome
    podcast: PodcastResponse | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str

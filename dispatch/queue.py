"""Hand-off point between podcast records and the external generation worker.

The worker itself lives elsewhere. It pulls jobs with :meth:`JobQueue.claim`
and checks :meth:`JobQueue.is_cancelled` between steps; a deleted podcast
cancels its job so the worker can stop early.
In production, replace with Redis or a message broker.
"""

from __future__ import annotations

import threading
import uuid
from collections import deque

from models.data import GenerationJob, Podcast
from utils.helpers import get_logger

log = get_logger(__name__)


class JobQueue:
    """In-memory FIFO of generation jobs with cancellation flags."""

    def __init__(self) -> None:
        self._pending: deque[str] = deque()
        self._jobs: dict[str, GenerationJob] = {}
        self._lock = threading.Lock()

    def enqueue(self, podcast: Podcast) -> str:
        """Queue a job for the podcast's current epoch and return its id."""
        job = GenerationJob(
            job_id=str(uuid.uuid4()),
            podcast_id=podcast.id,
            user_id=podcast.user_id,
            epoch=podcast.epoch,
            note_content=podcast.note_content,
            duration=podcast.duration,
            title=podcast.title,
            host_voice=podcast.host_voice,
            guest_voice=podcast.guest_voice,
            tts_provider=podcast.tts_provider,
        )
        with self._lock:
            self._jobs[job.job_id] = job
            self._pending.append(job.job_id)
        log.info("Queued job %s for podcast %s (epoch %d)", job.job_id, podcast.id, podcast.epoch)
        return job.job_id

    def claim(self) -> GenerationJob | None:
        """Pop the next job that has not been cancelled."""
        with self._lock:
            while self._pending:
                job = self._jobs[self._pending.popleft()]
                if not job.cancelled:
                    job.claimed = True
                    return job
        return None

    def cancel(self, job_id: str | None) -> bool:
        """Flag a job as cancelled. Returns False for unknown ids."""
        if job_id is None:
            return False
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return False
            job.cancelled = True
        log.info("Cancelled job %s for podcast %s", job_id, job.podcast_id)
        return True

    def get(self, job_id: str) -> GenerationJob | None:
        return self._jobs.get(job_id)

    def is_cancelled(self, job_id: str) -> bool:
        job = self._jobs.get(job_id)
        return job is None or job.cancelled

    def pending_count(self) -> int:
        with self._lock:
            return sum(1 for jid in self._pending if not self._jobs[jid].cancelled)

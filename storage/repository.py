"""In-memory podcast store.

Records are immutable dataclasses, so a read hands out the current version
without copying, and a write swaps in a whole new version under the lock.
A reader therefore sees either the old record or the new one, never a mix.
In production, replace with a database-backed implementation.
"""

from __future__ import annotations

import threading
from typing import Callable

from models.data import Podcast, PodcastNotFoundError
from utils.helpers import get_logger

log = get_logger(__name__)


class PodcastRepository:
    """Thread-safe podcast store keyed by id and scoped by owner."""

    def __init__(self) -> None:
        self._podcasts: dict[str, Podcast] = {}
        self._lock = threading.Lock()

    def add(self, podcast: Podcast) -> Podcast:
        with self._lock:
            if podcast.id in self._podcasts:
                raise ValueError(f"Podcast {podcast.id} already exists")
            self._podcasts[podcast.id] = podcast
        return podcast

    def get(self, podcast_id: str, user_id: str | None = None) -> Podcast:
        """Return a podcast, optionally checking it belongs to ``user_id``.

        Raises:
            PodcastNotFoundError: If it does not exist or has another owner.
        """
        podcast = self._podcasts.get(podcast_id)
        if podcast is None or (user_id is not None and podcast.user_id != user_id):
            raise PodcastNotFoundError(podcast_id)
        return podcast

    def list_for_user(self, user_id: str) -> list[Podcast]:
        """All of a user's podcasts, oldest insert first."""
        with self._lock:
            snapshot = list(self._podcasts.values())
        return [p for p in snapshot if p.user_id == user_id]

    def update(
        self,
        podcast_id: str,
        fn: Callable[[Podcast], Podcast],
        user_id: str | None = None,
    ) -> tuple[Podcast, Podcast]:
        """Atomically replace a podcast with ``fn(podcast)``.

        Returns ``(before, after)``. If ``fn`` raises, nothing is written.
        """
        with self._lock:
            before = self.get(podcast_id, user_id)
            after = fn(before)
            if after.id != before.id or after.user_id != before.user_id:
                raise ValueError("Podcast id and owner are immutable")
            self._podcasts[podcast_id] = after
        return before, after

    def delete(self, podcast_id: str, user_id: str | None = None) -> Podcast:
        """Remove and return a podcast."""
        with self._lock:
            podcast = self.get(podcast_id, user_id)
            del self._podcasts[podcast_id]
        log.info("Deleted podcast %s", podcast_id)
        return podcast

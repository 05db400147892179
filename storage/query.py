"""List query: filter, then sort, then paginate.

``run_query`` is pure: the same podcasts and the same query always give the
same page. Sorting is stable, so ties keep the order the podcasts came in.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Union

from config.settings import settings
from models.data import InvalidPodcastError, Podcast, PodcastPage, PodcastStatus

ALL_STATUSES = "ALL"


class SortOrder(str, Enum):
    CREATED_DESC = "createdAt_desc"
    CREATED_ASC = "createdAt_asc"
    DURATION_DESC = "duration_desc"
    DURATION_ASC = "duration_asc"


StatusFilter = Union[PodcastStatus, str, None]


@dataclass
class PodcastQuery:
    search: str | None = None
    status: StatusFilter = ALL_STATUSES
    sort: SortOrder = SortOrder.CREATED_DESC
    page: int = 1
    limit: int = field(default_factory=lambda: settings.default_page_size)

    def validate(self) -> None:
        if self.page < 1:
            raise InvalidPodcastError(f"Page must be 1 or greater, got {self.page}")
        if not 1 <= self.limit <= settings.max_page_size:
            raise InvalidPodcastError(
                f"Limit must be between 1 and {settings.max_page_size}, got {self.limit}"
            )

    @property
    def status_filter(self) -> PodcastStatus | None:
        """The status to match, or ``None`` for every status."""
        if self.status is None or self.status == ALL_STATUSES:
            return None
        try:
            return PodcastStatus(self.status)
        except ValueError:
            raise InvalidPodcastError(f"Unknown status filter: {self.status}") from None


def matches_search(podcast: Podcast, search: str) -> bool:
    """Case-insensitive substring match on title or note content."""
    needle = search.lower()
    if podcast.title and needle in podcast.title.lower():
        return True
    return needle in podcast.note_content.lower()


def _duration_key(podcast: Podcast) -> float:
    return podcast.audio_duration or 0


def sort_podcasts(podcasts: list[Podcast], order: SortOrder) -> list[Podcast]:
    if order is SortOrder.CREATED_DESC:
        return sorted(podcasts, key=lambda p: p.created_at, reverse=True)
    if order is SortOrder.CREATED_ASC:
        return sorted(podcasts, key=lambda p: p.created_at)
    if order is SortOrder.DURATION_DESC:
        return sorted(podcasts, key=_duration_key, reverse=True)
    if order is SortOrder.DURATION_ASC:
        return sorted(podcasts, key=_duration_key)
    raise ValueError(f"Unhandled sort order: {order!r}")


def run_query(podcasts: Iterable[Podcast], query: PodcastQuery) -> PodcastPage:
    """Apply ``query`` to ``podcasts`` and return the requested page.

    A page past the end is empty, not an error.
    """
    query.validate()
    status = query.status_filter
    search = query.search

    filtered = [
        p
        for p in podcasts
        if (status is None or p.status is status)
        and (not search or matches_search(p, search))
    ]
    ordered = sort_podcasts(filtered, SortOrder(query.sort))

    total = len(ordered)
    start = (query.page - 1) * query.limit
    return PodcastPage(
        items=ordered[start:start + query.limit],
        total=total,
        page=query.page,
        limit=query.limit,
        total_pages=math.ceil(total / query.limit),
    )

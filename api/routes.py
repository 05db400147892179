"""API routes for podcasts and the generation worker channel."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response

from api.dependencies import ServiceDep, UserDep, require_worker
from api.schemas import (
    CreatePodcastRequest,
    ErrorResponse,
    JobResponse,
    JobStatusResponse,
    PodcastListResponse,
    PodcastResponse,
    PodcastStatsResponse,
    UpdatePodcastRequest,
    WorkerEventRequest,
    WorkerUpdateResponse,
)
from config.settings import settings
from storage.query import ALL_STATUSES, PodcastQuery, SortOrder
from utils.helpers import get_logger

log = get_logger(__name__)

_ERRORS = {
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}

router = APIRouter(prefix="/podcasts", tags=["podcasts"], responses=_ERRORS)
worker_router = APIRouter(
    prefix="/worker",
    tags=["worker"],
    dependencies=[Depends(require_worker)],
    responses=_ERRORS,
)


# ── Podcasts ─────────────────────────────────────────────────────────────────


@router.post("", response_model=PodcastResponse, status_code=201)
async def create_podcast(request: CreatePodcastRequest, user_id: UserDep, service: ServiceDep):
    """Queue a new podcast for generation."""
    podcast = service.create(user_id, request.to_command())
    log.info("User %s created podcast %s", user_id, podcast.id)
    return podcast


@router.get("", response_model=PodcastListResponse)
async def list_podcasts(
    user_id: UserDep,
    service: ServiceDep,
    search: str | None = None,
    status: str = ALL_STATUSES,
    sort: SortOrder = SortOrder.CREATED_DESC,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
):
    """Filter, sort and paginate the caller's podcasts."""
    query = PodcastQuery(search=search, status=status, sort=sort, page=page, limit=limit)
    return service.list_podcasts(user_id, query)


@router.get("/stats", response_model=PodcastStatsResponse)
async def podcast_stats(user_id: UserDep, service: ServiceDep):
    """Counts by status and total listening minutes."""
    return service.stats(user_id)


@router.get("/{podcast_id}", response_model=PodcastResponse)
async def get_podcast(podcast_id: str, user_id: UserDep, service: ServiceDep):
    return service.get(user_id, podcast_id)


@router.patch("/{podcast_id}", response_model=PodcastResponse)
async def update_podcast(
    podcast_id: str,
    request: UpdatePodcastRequest,
    user_id: UserDep,
    service: ServiceDep,
):
    """Rename a podcast. Allowed in any status."""
    return service.update_title(user_id, podcast_id, request.title)


@router.delete("/{podcast_id}", status_code=204)
async def delete_podcast(podcast_id: str, user_id: UserDep, service: ServiceDep):
    """Delete a podcast, cancelling its generation job if one is running."""
    service.delete(user_id, podcast_id)
    return Response(status_code=204)


@router.post("/{podcast_id}/retry", response_model=PodcastResponse)
async def retry_podcast(podcast_id: str, user_id: UserDep, service: ServiceDep):
    """Requeue a FAILED podcast. Any other status is rejected with 409."""
    return service.retry(user_id, podcast_id)


# ── Worker channel ───────────────────────────────────────────────────────────


@worker_router.post(
    "/jobs/claim",
    response_model=JobResponse,
    responses={204: {"description": "No job waiting"}},
)
async def claim_job(service: ServiceDep):
    """Give the calling worker the next queued job."""
    job = service.claim_job()
    if job is None:
        return Response(status_code=204)
    return job


@worker_router.get("/jobs/{job_id}", response_model=JobStatusResponse)
async def job_status(job_id: str, service: ServiceDep):
    """Workers poll this to learn whether to abandon a job."""
    return JobStatusResponse(job_id=job_id, cancelled=service.job_cancelled(job_id))


@worker_router.post("/podcasts/{podcast_id}/events", response_model=WorkerUpdateResponse)
async def worker_event(
    podcast_id: str,
    event: WorkerEventRequest,
    background_tasks: BackgroundTasks,
    service: ServiceDep,
):
    """Apply a status/progress/result update from the worker.

    Stale, out-of-order and orphaned updates are acknowledged with 200 and
    an ``outcome`` saying why nothing changed.
    """
    result = service.apply_worker_update(event.to_update(podcast_id))
    if result.finished:
        background_tasks.add_task(service.notify, result.podcast)
    podcast = (
        PodcastResponse.model_validate(result.podcast, from_attributes=True)
        if result.podcast is not None
        else None
    )
    return WorkerUpdateResponse(outcome=result.outcome, podcast=podcast)

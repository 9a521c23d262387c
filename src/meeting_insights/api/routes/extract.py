"""Extraction endpoints: single meetings and bulk runs."""

import asyncio

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from meeting_insights.errors import (
    InvariantViolationError,
    MeetingNotFoundError,
    PersistenceError,
)

from ..auth import verify_worker_token

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/extract", dependencies=[Depends(verify_worker_token)])


def _already_running(request: Request) -> bool:
    task = getattr(request.app.state, "bulk_task", None)
    return request.app.state.orchestrator.is_running or (task is not None and not task.done())


def _conflict() -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"status": "running", "detail": "A bulk extraction is already running"},
    )


async def _run_bulk(request: Request, operation: str, wait: bool):
    """Run a batch operation, in the background unless ``wait`` is set."""
    if _already_running(request):
        return _conflict()
    orchestrator = request.app.state.orchestrator
    if wait:
        progress = await getattr(orchestrator, operation)()
        return progress.to_dict()

    async def _run():
        try:
            progress = await getattr(orchestrator, operation)()
            logger.info("extract.bulk_finished", operation=operation, **progress.to_dict())
        except Exception as e:
            logger.exception("extract.bulk_failed", operation=operation, error=str(e))

    request.app.state.bulk_task = asyncio.create_task(_run())
    logger.info("extract.bulk_started", operation=operation)
    return JSONResponse(status_code=202, content={"status": "started", "operation": operation})


@router.post("/bulk/all")
async def extract_all(request: Request, wait: bool = False):
    """Extract every meeting lacking a successful extraction."""
    return await _run_bulk(request, "extract_all", wait)


@router.post("/bulk/retry-failed")
async def retry_failed(request: Request, wait: bool = False):
    """Re-run every meeting whose extraction is FAILED."""
    return await _run_bulk(request, "retry_failed", wait)


@router.get("/bulk/progress")
async def bulk_progress(request: Request):
    """Counters of the running or last finished bulk run."""
    orchestrator = request.app.state.orchestrator
    progress = orchestrator.progress
    if progress is None:
        return {"status": "idle"}
    status = "running" if orchestrator.is_running else "finished"
    return {"status": status, **progress.to_dict()}


@router.post("/bulk/cancel")
async def bulk_cancel(request: Request):
    """Stop the running bulk run from starting new meetings."""
    orchestrator = request.app.state.orchestrator
    if not orchestrator.is_running:
        return {"status": "idle"}
    orchestrator.cancel()
    return {"status": "cancelling"}


@router.post("/{meeting_id}")
async def extract_meeting(meeting_id: str, request: Request):
    """Extract one meeting and return its result."""
    log = logger.bind(meeting_id=meeting_id)
    try:
        result = await request.app.state.orchestrator.extract_one(meeting_id)
    except MeetingNotFoundError:
        raise HTTPException(status_code=404, detail=f"Meeting not found: {meeting_id}")
    except PersistenceError as e:
        log.error("extract.persistence_failed", error=str(e))
        raise HTTPException(status_code=503, detail="Extraction store unavailable")
    except InvariantViolationError as e:
        log.error("extract.invariant_violation", error=str(e))
        raise HTTPException(status_code=500, detail=e.message)

    log.info("extract.complete", status=result.status.value, attempts=result.attempts)
    return result.model_dump(mode="json", by_alias=True)


@router.get("/{meeting_id}")
async def get_extraction(meeting_id: str, request: Request):
    """Return the stored extraction for a meeting."""
    try:
        result = await request.app.state.repository.get_extraction(meeting_id)
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Extraction store unavailable")
    if result is None:
        raise HTTPException(status_code=404, detail=f"No extraction for meeting: {meeting_id}")
    return result.model_dump(mode="json", by_alias=True)

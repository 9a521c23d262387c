"""Tests for the /extract endpoints."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from meeting_insights.api.auth import verify_worker_token
from meeting_insights.api.routes.extract import router
from meeting_insights.errors import (
    InvariantViolationError,
    MeetingNotFoundError,
    PersistenceError,
)
from meeting_insights.models.enums import Industry
from meeting_insights.models.extraction import Extraction, ExtractionResult, ExtractionStatus
from meeting_insights.pipeline.progress import ExtractionProgress
from meeting_insights.repository import extraction_id_for


def _make_app(orchestrator=None, repository=None) -> FastAPI:
    """Build a test app with mocked dependencies."""
    app = FastAPI()
    app.include_router(router)

    # Override auth dependency so it never hits real Settings
    async def _noop_auth():
        return None

    app.dependency_overrides[verify_worker_token] = _noop_auth

    if orchestrator is None:
        orchestrator = MagicMock()
        orchestrator.is_running = False
        orchestrator.progress = None
    app.state.orchestrator = orchestrator
    app.state.repository = repository or AsyncMock()
    app.state.bulk_task = None

    return app


def _result(status: ExtractionStatus = ExtractionStatus.SUCCESS) -> ExtractionResult:
    return ExtractionResult(
        id=extraction_id_for("m1"),
        meeting_id="m1",
        extraction=Extraction(industry=Industry.SALUD) if status == ExtractionStatus.SUCCESS else None,
        status=status,
        error=None if status == ExtractionStatus.SUCCESS else "no usable content",
        attempts=1,
        model="gpt-test",
        created_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
    )


def _progress(**counters) -> ExtractionProgress:
    progress = ExtractionProgress(total=3, completed=3, success=2, failed=1, pending=0)
    for key, value in counters.items():
        setattr(progress, key, value)
    return progress


HEADERS = {"Authorization": "Bearer test-key"}


class TestExtractMeeting:
    def test_success(self):
        app = _make_app()
        app.state.orchestrator.extract_one = AsyncMock(return_value=_result())
        client = TestClient(app)

        response = client.post("/extract/m1", headers=HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["meetingId"] == "m1"
        assert body["status"] == "SUCCESS"
        assert body["id"] == str(extraction_id_for("m1"))
        assert body["extraction"]["industry"] == "SALUD"
        assert body["extraction"]["painPoints"] == []
        app.state.orchestrator.extract_one.assert_awaited_once_with("m1")

    def test_failed_extraction_is_still_200(self):
        app = _make_app()
        app.state.orchestrator.extract_one = AsyncMock(return_value=_result(ExtractionStatus.FAILED))
        client = TestClient(app)

        response = client.post("/extract/m1", headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["status"] == "FAILED"
        assert response.json()["extraction"] is None

    def test_meeting_not_found(self):
        app = _make_app()
        app.state.orchestrator.extract_one = AsyncMock(
            side_effect=MeetingNotFoundError("Meeting not found: m9")
        )
        client = TestClient(app)

        response = client.post("/extract/m9", headers=HEADERS)
        assert response.status_code == 404

    def test_store_unavailable(self):
        app = _make_app()
        app.state.orchestrator.extract_one = AsyncMock(
            side_effect=PersistenceError("Persistence error: connection refused")
        )
        client = TestClient(app)

        response = client.post("/extract/m1", headers=HEADERS)
        assert response.status_code == 503

    def test_invariant_violation(self):
        app = _make_app()
        app.state.orchestrator.extract_one = AsyncMock(
            side_effect=InvariantViolationError("Deterministic detector output violates invariants")
        )
        client = TestClient(app)

        response = client.post("/extract/m1", headers=HEADERS)
        assert response.status_code == 500


class TestGetExtraction:
    def test_found(self):
        repository = AsyncMock()
        repository.get_extraction.return_value = _result()
        client = TestClient(_make_app(repository=repository))

        response = client.get("/extract/m1", headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["extraction"]["industry"] == "SALUD"

    def test_missing(self):
        repository = AsyncMock()
        repository.get_extraction.return_value = None
        client = TestClient(_make_app(repository=repository))

        response = client.get("/extract/m1", headers=HEADERS)
        assert response.status_code == 404

    def test_store_unavailable(self):
        repository = AsyncMock()
        repository.get_extraction.side_effect = PersistenceError("Persistence error: timeout")
        client = TestClient(_make_app(repository=repository))

        response = client.get("/extract/m1", headers=HEADERS)
        assert response.status_code == 503


class TestBulk:
    def test_extract_all_wait(self):
        app = _make_app()
        app.state.orchestrator.extract_all = AsyncMock(return_value=_progress())
        client = TestClient(app)

        response = client.post("/extract/bulk/all?wait=true", headers=HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 3
        assert body["success"] == 2
        assert body["failed"] == 1

    def test_retry_failed_wait(self):
        app = _make_app()
        app.state.orchestrator.retry_failed = AsyncMock(return_value=_progress(total=1))
        client = TestClient(app)

        response = client.post("/extract/bulk/retry-failed?wait=true", headers=HEADERS)

        assert response.status_code == 200
        app.state.orchestrator.retry_failed.assert_awaited_once()

    def test_extract_all_background(self):
        app = _make_app()
        app.state.orchestrator.extract_all = AsyncMock(return_value=_progress())

        with TestClient(app) as client:
            response = client.post("/extract/bulk/all", headers=HEADERS)

        assert response.status_code == 202
        assert response.json() == {"status": "started", "operation": "extract_all"}
        assert app.state.bulk_task is not None

    def test_conflict_while_running(self):
        app = _make_app()
        app.state.orchestrator.is_running = True
        app.state.orchestrator.extract_all = AsyncMock()
        client = TestClient(app)

        response = client.post("/extract/bulk/all", headers=HEADERS)

        assert response.status_code == 409
        app.state.orchestrator.extract_all.assert_not_called()

    def test_progress_idle(self):
        client = TestClient(_make_app())

        response = client.get("/extract/bulk/progress", headers=HEADERS)
        assert response.json() == {"status": "idle"}

    def test_progress_running(self):
        app = _make_app()
        app.state.orchestrator.is_running = True
        app.state.orchestrator.progress = _progress(completed=1, pending=2, success=1, failed=0)
        client = TestClient(app)

        body = client.get("/extract/bulk/progress", headers=HEADERS).json()

        assert body["status"] == "running"
        assert body["completed"] == 1
        assert body["pending"] == 2

    def test_progress_finished(self):
        app = _make_app()
        app.state.orchestrator.progress = _progress()
        client = TestClient(app)

        body = client.get("/extract/bulk/progress", headers=HEADERS).json()
        assert body["status"] == "finished"

    def test_cancel_running(self):
        app = _make_app()
        app.state.orchestrator.is_running = True
        client = TestClient(app)

        response = client.post("/extract/bulk/cancel", headers=HEADERS)

        assert response.json() == {"status": "cancelling"}
        app.state.orchestrator.cancel.assert_called_once()

    def test_cancel_idle(self):
        app = _make_app()
        client = TestClient(app)

        response = client.post("/extract/bulk/cancel", headers=HEADERS)

        assert response.json() == {"status": "idle"}
        app.state.orchestrator.cancel.assert_not_called()


class TestExtractAuth:
    @pytest.mark.parametrize("path", ["/extract/m1", "/extract/bulk/all"])
    def test_requires_bearer_header(self, path):
        app = _make_app()
        app.dependency_overrides.clear()
        client = TestClient(app)

        response = client.post(path)
        assert response.status_code in (401, 422)

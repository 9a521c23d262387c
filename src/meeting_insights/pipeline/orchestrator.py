"""
Extraction orchestrator: per-meeting extraction and batch runs.

Per meeting:
1. Run the deterministic detectors (and strictly validate their output)
2. Call the model collaborator with the transcript and detector hints
3. Parse and leniently map the response into an Extraction
4. Reconcile with the detector signals
5. Upsert the result keyed by the stable per-meeting extraction id

A meeting whose model call fails, times out or yields no usable content
is retried up to ``max_retries`` times before it ends FAILED. FAILED
results are persisted too, so a later batch picks them up again. Before
a meeting is attempted again (within a run, or by retry_failed()) its
record is marked RETRIED, so the store shows FAILED -> RETRIED -> SUCCESS
or FAILED.

Batch runs use a fixed pool of worker tasks draining one queue. Progress
is owned by a ProgressTracker; workers never touch the counters directly.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import uuid4

from ..clients.openai_client import OpenAIClient
from ..clients.postgres_client import PostgresClient
from ..config import config
from ..deterministic.runner import run_deterministic
from ..errors import (
    LLMError,
    MeetingNotFoundError,
    PersistenceError,
    PipelineError,
)
from ..logging import PipelineTimer, get_logger, logging_context
from ..mapper import LlmExtractionMapper
from ..models.extraction import (
    DeterministicResult,
    Extraction,
    ExtractionResult,
    ExtractionStatus,
    Meeting,
)
from ..repository import ExtractionRepository, extraction_id_for
from ..validation import validate_deterministic_strict
from .extractor import InsightExtractor
from .parsing import parse_model_content
from .progress import ExtractionProgress, ProgressCallback, ProgressTracker
from .reconcile import ReconcilePolicy, fallback_extraction, reconcile

logger = get_logger(__name__)

NO_USABLE_CONTENT = 'no usable content'


@dataclass
class _Attempt:
    """Outcome of one model call for one meeting."""

    extraction: Extraction | None = None
    raw_output: str | None = None
    model: str | None = None
    error: str | None = None


class ExtractionOrchestrator:
    """
    Drives extraction for single meetings and for batches.

    Usage:
        orchestrator = await ExtractionOrchestrator.from_env()
        progress = await orchestrator.extract_all()
    """

    def __init__(
        self,
        extractor: InsightExtractor,
        repository: ExtractionRepository,
        policy: ReconcilePolicy | None = None,
        max_concurrency: int | None = None,
        max_retries: int | None = None,
        timeout_seconds: float | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            extractor: Model collaborator exposing ``generate(transcript, hints)``
            repository: Persistence collaborator
            policy: Deterministic/model merge policy (defaults from config)
            max_concurrency: Worker count for batch runs (EXTRACTION_MAX_CONCURRENCY)
            max_retries: Extra attempts per meeting (EXTRACTION_MAX_RETRIES)
            timeout_seconds: Bound on one model call (LLM_TIMEOUT_SECONDS)
            on_progress: Called with a snapshot after every progress update
        """
        self.extractor = extractor
        self.repository = repository
        self.policy = policy or ReconcilePolicy.from_config()
        self.max_concurrency = max(1, max_concurrency or config.EXTRACTION_MAX_CONCURRENCY)
        self.max_retries = config.EXTRACTION_MAX_RETRIES if max_retries is None else max_retries
        self.timeout_seconds = timeout_seconds or config.LLM_TIMEOUT_SECONDS
        self.on_progress = on_progress
        self.mapper = LlmExtractionMapper()

        self._tracker: ProgressTracker | None = None
        self._cancel_event = asyncio.Event()
        self._running = False
        self._owned_clients: list[OpenAIClient | PostgresClient] = []

    @classmethod
    async def from_env(cls) -> ExtractionOrchestrator:
        """
        Create an orchestrator from environment variables.

        Expects:
            OPENAI_API_KEY: OpenAI API key
            DATABASE_URL: Postgres connection URL

        Returns:
            Configured orchestrator with connected clients
        """
        openai = OpenAIClient()
        postgres = PostgresClient(config.DATABASE_URL)
        await postgres.connect()

        orchestrator = cls(
            extractor=InsightExtractor(openai),
            repository=ExtractionRepository(postgres),
        )
        orchestrator._owned_clients = [openai, postgres]
        return orchestrator

    async def close(self) -> None:
        """Close clients created by from_env()."""
        for client in self._owned_clients:
            await client.close()
        self._owned_clients = []

    # =========================================================================
    # State
    # =========================================================================

    @property
    def progress(self) -> ExtractionProgress | None:
        """Snapshot of the running (or last finished) batch, if any."""
        return self._tracker.snapshot() if self._tracker else None

    @property
    def is_running(self) -> bool:
        return self._running

    def cancel(self) -> None:
        """
        Stop the running batch from starting new meetings.

        Model calls already in flight finish and are counted.
        """
        if self._running:
            logger.info('orchestrator.cancel_requested')
            self._cancel_event.set()

    # =========================================================================
    # Single meeting
    # =========================================================================

    async def extract_one(self, meeting_id: str) -> ExtractionResult:
        """
        Extract and persist one meeting.

        Args:
            meeting_id: Meeting to extract

        Returns:
            ExtractionResult with status SUCCESS or FAILED

        Raises:
            MeetingNotFoundError: If the meeting does not exist
            PersistenceError: If the store could not be read or written
            InvariantViolationError: If detector output is malformed
        """
        with logging_context(trace_id=str(uuid4()), meeting_id=meeting_id):
            meeting = await self.repository.get_meeting(meeting_id)
            if meeting is None:
                raise MeetingNotFoundError(
                    f'Meeting not found: {meeting_id}',
                    context={'meeting_id': meeting_id},
                )

            result, raw_output = await self._process(meeting)
            await self.repository.save_result(result, raw_output)
            return result

    async def _mark_retried(
        self,
        meeting: Meeting,
        attempts: int,
        attempt: _Attempt | None = None,
    ) -> None:
        """Persist the RETRIED state ahead of another attempt."""
        marker = ExtractionResult(
            id=extraction_id_for(meeting.id),
            meeting_id=meeting.id,
            status=ExtractionStatus.RETRIED,
            error=attempt.error if attempt else None,
            attempts=attempts,
            model=attempt.model if attempt else None,
            created_at=datetime.now(timezone.utc),
        )
        try:
            await self.repository.save_result(marker, attempt.raw_output if attempt else None)
        except PersistenceError as e:
            # The final write for this meeting reports the store failure
            logger.warning('orchestrator.retry_mark_failed', error=str(e))

    async def _process(
        self,
        meeting: Meeting,
        tracker: ProgressTracker | None = None,
        previously_failed: bool = False,
    ) -> tuple[ExtractionResult, str | None]:
        """Run one meeting through detection, model calls and reconciliation."""
        timer = PipelineTimer()

        with timer.stage('deterministic'):
            deterministic = validate_deterministic_strict(
                run_deterministic(meeting.transcript, self.policy.min_confidence)
            )

        if previously_failed:
            await self._mark_retried(meeting, attempts=0)

        max_attempts = 1 + max(0, self.max_retries)
        attempts = 0
        attempt = _Attempt()
        while attempts < max_attempts:
            attempts += 1
            with timer.stage('model_call'):
                attempt = await self._attempt(meeting, deterministic)
            if attempt.extraction is not None:
                break
            if attempts < max_attempts:
                logger.warning(
                    'orchestrator.meeting_retry',
                    attempt=attempts,
                    reason=attempt.error,
                )
                await self._mark_retried(meeting, attempts, attempt)
                if tracker is not None:
                    await tracker.record_retry(meeting.id)

        if attempt.extraction is not None:
            status = ExtractionStatus.SUCCESS
            extraction: Extraction | None = attempt.extraction
        else:
            status = ExtractionStatus.FAILED
            extraction = None
            if self.policy.fallback_on_model_failure:
                extraction = fallback_extraction(deterministic, self.policy)

        result = ExtractionResult(
            id=extraction_id_for(meeting.id),
            meeting_id=meeting.id,
            extraction=extraction,
            status=status,
            error=attempt.error if status == ExtractionStatus.FAILED else None,
            attempts=attempts,
            model=attempt.model,
            created_at=datetime.now(timezone.utc),
        )

        log = logger.info if status == ExtractionStatus.SUCCESS else logger.warning
        log(
            'orchestrator.meeting_complete',
            status=status.value,
            attempts=attempts,
            error=result.error,
            **timer.summary(),
        )
        return result, attempt.raw_output

    async def _attempt(self, meeting: Meeting, deterministic: DeterministicResult) -> _Attempt:
        """One bounded model call, parsed and mapped. Never raises for model trouble."""
        hints = deterministic if deterministic.has_signals else None
        try:
            response = await asyncio.wait_for(
                self.extractor.generate(meeting.transcript, hints),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            return _Attempt(
                error=f'model call failed: timed out after {self.timeout_seconds}s'
            )
        except LLMError as e:
            return _Attempt(error=f'model call failed: {e.message}')

        payload = parse_model_content(response.content)
        extraction = self.mapper.map_payload(payload)
        if extraction is None:
            return _Attempt(
                raw_output=response.content or None,
                model=response.model,
                error=NO_USABLE_CONTENT,
            )

        return _Attempt(
            extraction=reconcile(extraction, deterministic, self.policy),
            raw_output=response.content,
            model=response.model,
        )

    # =========================================================================
    # Batches
    # =========================================================================

    async def extract_all(
        self,
        limit: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ExtractionProgress:
        """
        Extract every meeting that lacks a successful extraction.

        Individual failures never abort the run.

        Args:
            limit: Optional cap on meetings taken in this run
            on_progress: Overrides the constructor callback for this run

        Returns:
            Final ExtractionProgress for the run
        """
        self._start_batch()
        try:
            meetings = await self.repository.find_pending(limit=limit)
            return await self._run_batch(meetings, 'extract_all', on_progress)
        finally:
            self._running = False

    async def retry_failed(
        self,
        on_progress: ProgressCallback | None = None,
    ) -> ExtractionProgress:
        """Re-run every meeting whose stored extraction is FAILED."""
        self._start_batch()
        try:
            meetings = await self.repository.find_failed()
            return await self._run_batch(
                meetings, 'retry_failed', on_progress, previously_failed=True
            )
        finally:
            self._running = False

    def _start_batch(self) -> None:
        """Claim the orchestrator; cancel() applies from here on."""
        if self._running:
            raise PipelineError('An extraction batch is already running')
        self._cancel_event = asyncio.Event()
        self._running = True

    async def _run_batch(
        self,
        meetings: list[Meeting],
        operation: str,
        on_progress: ProgressCallback | None,
        previously_failed: bool = False,
    ) -> ExtractionProgress:
        batch_id = str(uuid4())
        tracker = ProgressTracker(len(meetings), on_progress or self.on_progress)
        self._tracker = tracker

        queue: asyncio.Queue[Meeting] = asyncio.Queue()
        for meeting in meetings:
            queue.put_nowait(meeting)

        timer = PipelineTimer()
        with logging_context(batch_id=batch_id):
            logger.info(
                'orchestrator.batch_started',
                operation=operation,
                total=len(meetings),
                workers=min(self.max_concurrency, len(meetings)),
            )
            workers = [
                asyncio.create_task(
                    self._worker(queue, tracker, batch_id, previously_failed)
                )
                for _ in range(min(self.max_concurrency, len(meetings)))
            ]
            await asyncio.gather(*workers)

            if self._cancel_event.is_set():
                await tracker.mark_cancelled()

            progress = tracker.snapshot()
            logger.info(
                'orchestrator.batch_complete',
                operation=operation,
                total=progress.total,
                success=progress.success,
                failed=progress.failed,
                retried=progress.retried,
                pending=progress.pending,
                persistence_errors=progress.persistence_errors,
                cancelled=progress.cancelled,
                **timer.summary(),
            )
        return progress

    async def _worker(
        self,
        queue: asyncio.Queue[Meeting],
        tracker: ProgressTracker,
        batch_id: str,
        previously_failed: bool,
    ) -> None:
        while not self._cancel_event.is_set():
            try:
                meeting = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            with logging_context(batch_id=batch_id, meeting_id=meeting.id):
                await self._process_in_batch(meeting, tracker, previously_failed)

    async def _process_in_batch(
        self,
        meeting: Meeting,
        tracker: ProgressTracker,
        previously_failed: bool = False,
    ) -> None:
        """Process, persist and count one meeting. Records exactly one outcome."""
        try:
            result, raw_output = await self._process(meeting, tracker, previously_failed)
        except Exception as e:
            logger.exception('orchestrator.meeting_error', error_type=type(e).__name__)
            await tracker.record_failure(meeting.id, f'unexpected error: {e}')
            return

        try:
            await self.repository.save_result(result, raw_output)
        except PersistenceError as e:
            logger.error('orchestrator.persist_failed', error=str(e))
            await tracker.record_failure(
                meeting.id,
                f'persistence failed: {e.message}',
                persistence=True,
            )
            return

        if result.status == ExtractionStatus.SUCCESS:
            await tracker.record_success(meeting.id)
        else:
            await tracker.record_failure(meeting.id, result.error or 'unknown error')

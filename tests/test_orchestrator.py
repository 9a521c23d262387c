"""
Tests for the extraction orchestrator.

Tests cover:
- Single-meeting extraction and not-found handling
- Stable extraction ids (re-running a meeting overwrites, never duplicates)
- Batch counters with permanent failures
- Retry after a failed model call, and retry exhaustion
- The RETRIED state written before each new attempt
- Per-call timeouts
- Persistence failures counted as failed
- Cancellation and the one-batch-at-a-time rule
- Detector hints, reconciliation and the model-failure fallback
"""

import asyncio
import json
from typing import Any
from unittest.mock import patch

import pytest

from meeting_insights.errors import (
    InvariantViolationError,
    LLMError,
    MeetingNotFoundError,
    PersistenceError,
    PipelineError,
)
from meeting_insights.models.enums import Industry, LeadSource
from meeting_insights.models.extraction import (
    DetectorConfidence,
    DeterministicResult,
    ExtractionResult,
    ExtractionStatus,
    Meeting,
    ModelResponse,
)
from meeting_insights.pipeline.orchestrator import NO_USABLE_CONTENT, ExtractionOrchestrator
from meeting_insights.pipeline.reconcile import ReconcilePolicy
from meeting_insights.repository import extraction_id_for

GOOD_CONTENT = json.dumps({'industry': 'SALUD', 'sentiment': 'POSITIVO'})


# =============================================================================
# Fakes
# =============================================================================


class FakeExtractor:
    """
    Scripted model collaborator.

    ``script`` maps a transcript to the outcomes of successive calls: a
    string is returned as content, an exception is raised. Once a script
    runs out (or for unscripted transcripts) ``default`` is used.
    """

    def __init__(self, script: dict[str, list[Any]] | None = None, default: Any = GOOD_CONTENT):
        self.script = script or {}
        self.default = default
        self.calls: list[tuple[str, DeterministicResult | None]] = []

    async def generate(self, transcript: str, hints: DeterministicResult | None = None) -> ModelResponse:
        self.calls.append((transcript, hints))
        outcomes = self.script.get(transcript)
        outcome = outcomes.pop(0) if outcomes else self.default
        if isinstance(outcome, Exception):
            raise outcome
        return ModelResponse(content=outcome, model='gpt-test')


class SlowExtractor(FakeExtractor):
    """Waits on ``release`` (or sleeps ``delay`` seconds) before answering."""

    def __init__(self, delay: float | None = None, release: asyncio.Event | None = None):
        super().__init__()
        self.delay = delay
        self.release = release

    async def generate(self, transcript: str, hints: DeterministicResult | None = None) -> ModelResponse:
        if self.release is not None:
            await self.release.wait()
        if self.delay is not None:
            await asyncio.sleep(self.delay)
        return await super().generate(transcript, hints)


class FakeRepository:
    """In-memory stand-in for ExtractionRepository keyed by extraction id."""

    def __init__(self, meetings: list[Meeting]):
        self.meetings = {m.id: m for m in meetings}
        self.saved: dict[Any, tuple[ExtractionResult, str | None]] = {}
        self.history: list[tuple[str, ExtractionStatus]] = []
        self.fail_writes_for: set[str] = set()

    async def get_meeting(self, meeting_id: str) -> Meeting | None:
        return self.meetings.get(meeting_id)

    def _status(self, meeting_id: str) -> ExtractionStatus | None:
        stored = self.saved.get(extraction_id_for(meeting_id))
        return stored[0].status if stored else None

    async def find_pending(self, limit: int | None = None) -> list[Meeting]:
        pending = [
            m for m in self.meetings.values()
            if self._status(m.id) != ExtractionStatus.SUCCESS
        ]
        return pending[:limit] if limit is not None else pending

    async def find_failed(self) -> list[Meeting]:
        return [
            m for m in self.meetings.values()
            if self._status(m.id) in (ExtractionStatus.FAILED, ExtractionStatus.RETRIED)
        ]

    async def save_result(self, result: ExtractionResult, raw_model_output: str | None = None) -> None:
        if result.meeting_id in self.fail_writes_for:
            raise PersistenceError('Persistence error: connection reset')
        self.saved[result.id] = (result, raw_model_output)
        self.history.append((result.meeting_id, result.status))

    def statuses(self, meeting_id: str) -> list[ExtractionStatus]:
        return [status for mid, status in self.history if mid == meeting_id]


def _meetings(count: int) -> list[Meeting]:
    return [Meeting(id=f'm{i}', transcript=f'transcript {i}') for i in range(count)]


def _out_of_bounds_detector_result() -> DeterministicResult:
    """Detector output no detector could produce: a confidence above 1."""
    return DeterministicResult.model_construct(
        lead_source=None,
        volume=None,
        integrations=[],
        confidence=DetectorConfidence.model_construct(
            lead_source=1.7, volume=0.0, integrations=0.0
        ),
    )


def _orchestrator(extractor, repository, **kwargs) -> ExtractionOrchestrator:
    options = {
        'policy': ReconcilePolicy(),
        'max_concurrency': 4,
        'max_retries': 1,
        'timeout_seconds': 5.0,
    }
    options.update(kwargs)
    return ExtractionOrchestrator(extractor=extractor, repository=repository, **options)


# =============================================================================
# Single meeting
# =============================================================================


class TestExtractOne:
    @pytest.mark.asyncio
    async def test_success(self):
        repository = FakeRepository(_meetings(1))
        orchestrator = _orchestrator(FakeExtractor(), repository)

        result = await orchestrator.extract_one('m0')

        assert result.status == ExtractionStatus.SUCCESS
        assert result.id == extraction_id_for('m0')
        assert result.extraction.industry == Industry.SALUD
        assert result.attempts == 1
        assert result.model == 'gpt-test'
        assert result.error is None
        assert repository.saved[result.id] == (result, GOOD_CONTENT)

    @pytest.mark.asyncio
    async def test_meeting_not_found(self):
        orchestrator = _orchestrator(FakeExtractor(), FakeRepository([]))

        with pytest.raises(MeetingNotFoundError):
            await orchestrator.extract_one('missing')

    @pytest.mark.asyncio
    async def test_rerun_overwrites_same_record(self):
        repository = FakeRepository(_meetings(1))
        extractor = FakeExtractor(
            {'transcript 0': [json.dumps({'industry': 'LEGAL'})]},
        )
        orchestrator = _orchestrator(extractor, repository)

        first = await orchestrator.extract_one('m0')
        second = await orchestrator.extract_one('m0')

        assert first.id == second.id
        assert len(repository.saved) == 1
        assert repository.saved[second.id][0].extraction.industry == Industry.SALUD

    @pytest.mark.asyncio
    async def test_no_usable_content_fails_after_retries(self):
        repository = FakeRepository(_meetings(1))
        orchestrator = _orchestrator(FakeExtractor(default=''), repository, max_retries=2)

        result = await orchestrator.extract_one('m0')

        assert result.status == ExtractionStatus.FAILED
        assert result.error == NO_USABLE_CONTENT
        assert result.attempts == 3
        assert result.extraction is None
        # FAILED results are persisted too
        assert result.id in repository.saved

    @pytest.mark.asyncio
    async def test_each_retry_is_marked_retried(self):
        repository = FakeRepository(_meetings(1))
        orchestrator = _orchestrator(FakeExtractor(default=''), repository, max_retries=2)

        await orchestrator.extract_one('m0')

        assert repository.statuses('m0') == [
            ExtractionStatus.RETRIED,
            ExtractionStatus.RETRIED,
            ExtractionStatus.FAILED,
        ]
        stored, _ = repository.saved[extraction_id_for('m0')]
        assert stored.status == ExtractionStatus.FAILED

    @pytest.mark.asyncio
    async def test_too_deeply_nested_output_is_no_usable_content(self):
        content = '{"painPoints": ' + '[' * 100000 + ']' * 100000 + '}'
        repository = FakeRepository(_meetings(1))
        orchestrator = _orchestrator(FakeExtractor(default=content), repository)

        result = await orchestrator.extract_one('m0')

        assert result.status == ExtractionStatus.FAILED
        assert result.error == NO_USABLE_CONTENT
        assert result.attempts == 2
        assert repository.saved[result.id][0].status == ExtractionStatus.FAILED


    @pytest.mark.asyncio
    async def test_model_error_message(self):
        extractor = FakeExtractor(default=LLMError('LLM API error: bad gateway'))
        orchestrator = _orchestrator(extractor, FakeRepository(_meetings(1)), max_retries=0)

        result = await orchestrator.extract_one('m0')

        assert result.status == ExtractionStatus.FAILED
        assert result.error == 'model call failed: LLM API error: bad gateway'
        assert result.attempts == 1

    @pytest.mark.asyncio
    async def test_prose_wrapped_content_is_salvaged(self):
        content = 'Claro, aquí tienes:\n```json\n{"industry": "SALUD", "urgency": "PRONTO"}\n```'
        orchestrator = _orchestrator(FakeExtractor(default=content), FakeRepository(_meetings(1)))

        result = await orchestrator.extract_one('m0')

        assert result.status == ExtractionStatus.SUCCESS
        assert result.extraction.industry == Industry.SALUD
        assert result.extraction.urgency is None

    @pytest.mark.asyncio
    async def test_invariant_violation_propagates(self):
        orchestrator = _orchestrator(FakeExtractor(), FakeRepository(_meetings(1)))
        bad = _out_of_bounds_detector_result()

        with patch('meeting_insights.pipeline.orchestrator.run_deterministic', return_value=bad):
            with pytest.raises(InvariantViolationError):
                await orchestrator.extract_one('m0')


class TestDetectorSignals:
    @pytest.mark.asyncio
    async def test_hints_passed_when_detected(self, sample_transcript: str):
        meeting = Meeting(id='m1', transcript=sample_transcript)
        extractor = FakeExtractor()
        orchestrator = _orchestrator(extractor, FakeRepository([meeting]))

        result = await orchestrator.extract_one('m1')

        hints = extractor.calls[0][1]
        assert hints is not None
        assert hints.lead_source == LeadSource.LINKEDIN
        # Model left leadSource empty; fill_nulls takes the detector value
        assert result.extraction.lead_source == LeadSource.LINKEDIN
        assert result.extraction.volume.quantity == 200

    @pytest.mark.asyncio
    async def test_no_hints_without_signals(self, bare_transcript: str):
        meeting = Meeting(id='m1', transcript=bare_transcript)
        extractor = FakeExtractor()
        orchestrator = _orchestrator(extractor, FakeRepository([meeting]))

        result = await orchestrator.extract_one('m1')

        assert extractor.calls[0][1] is None
        assert result.extraction.lead_source is None

    @pytest.mark.asyncio
    async def test_fallback_on_model_failure(self, sample_transcript: str):
        meeting = Meeting(id='m1', transcript=sample_transcript)
        policy = ReconcilePolicy(fallback_on_model_failure=True)
        orchestrator = _orchestrator(
            FakeExtractor(default=''),
            FakeRepository([meeting]),
            policy=policy,
            max_retries=0,
        )

        result = await orchestrator.extract_one('m1')

        assert result.status == ExtractionStatus.FAILED
        assert result.extraction.lead_source == LeadSource.LINKEDIN
        assert result.extraction.industry is None


# =============================================================================
# Batches
# =============================================================================


class TestExtractAll:
    @pytest.mark.asyncio
    async def test_permanent_failures_are_counted(self):
        meetings = _meetings(10)
        failing = {'transcript 2', 'transcript 5', 'transcript 7'}
        script = {t: ['', ''] for t in failing}
        repository = FakeRepository(meetings)
        orchestrator = _orchestrator(FakeExtractor(script), repository)

        progress = await orchestrator.extract_all()

        assert progress.total == 10
        assert progress.success == 7
        assert progress.failed == 3
        assert progress.completed == 10
        assert progress.pending == 0
        assert progress.retried == 3
        assert progress.cancelled is False
        assert sorted(e['meeting_id'] for e in progress.errors) == ['m2', 'm5', 'm7']
        assert all(e['error'] == NO_USABLE_CONTENT for e in progress.errors)
        assert len(repository.saved) == 10

    @pytest.mark.asyncio
    async def test_retry_then_success(self):
        script = {'transcript 0': [LLMError('LLM rate limit or quota exceeded')]}
        repository = FakeRepository(_meetings(3))
        orchestrator = _orchestrator(FakeExtractor(script), repository)

        progress = await orchestrator.extract_all()

        assert progress.success == 3
        assert progress.failed == 0
        assert progress.retried == 1
        result, _ = repository.saved[extraction_id_for('m0')]
        assert result.attempts == 2
        assert repository.statuses('m0') == [ExtractionStatus.RETRIED, ExtractionStatus.SUCCESS]
        assert repository.statuses('m1') == [ExtractionStatus.SUCCESS]

    @pytest.mark.asyncio
    async def test_retry_marker_write_failure_is_not_fatal(self):
        repository = FakeRepository(_meetings(1))
        save_result = repository.save_result

        async def reject_markers(result: ExtractionResult, raw_model_output: str | None = None) -> None:
            if result.status == ExtractionStatus.RETRIED:
                raise PersistenceError('Persistence error: timeout')
            await save_result(result, raw_model_output)

        repository.save_result = reject_markers
        orchestrator = _orchestrator(FakeExtractor({'transcript 0': ['']}), repository)

        progress = await orchestrator.extract_all()

        assert progress.success == 1
        assert progress.persistence_errors == 0
        assert repository.statuses('m0') == [ExtractionStatus.SUCCESS]

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self):

        orchestrator = _orchestrator(
            SlowExtractor(delay=1.0),
            FakeRepository(_meetings(2)),
            timeout_seconds=0.01,
            max_retries=0,
        )

        progress = await orchestrator.extract_all()

        assert progress.failed == 2
        assert progress.success == 0
        assert progress.errors[0]['error'].startswith('model call failed: timed out')

    @pytest.mark.asyncio
    async def test_persistence_failures(self):
        repository = FakeRepository(_meetings(4))
        repository.fail_writes_for = {'m1'}
        orchestrator = _orchestrator(FakeExtractor(), repository)

        progress = await orchestrator.extract_all()

        assert progress.success == 3
        assert progress.failed == 1
        assert progress.persistence_errors == 1
        assert progress.errors[0]['error'].startswith('persistence failed:')

    @pytest.mark.asyncio
    async def test_unexpected_error_does_not_stop_batch(self):
        bad = _out_of_bounds_detector_result()
        orchestrator = _orchestrator(FakeExtractor(), FakeRepository(_meetings(2)))

        with patch('meeting_insights.pipeline.orchestrator.run_deterministic', return_value=bad):
            progress = await orchestrator.extract_all()

        assert progress.failed == 2
        assert progress.errors[0]['error'].startswith('unexpected error:')

    @pytest.mark.asyncio
    async def test_limit(self):
        orchestrator = _orchestrator(FakeExtractor(), FakeRepository(_meetings(5)))

        progress = await orchestrator.extract_all(limit=2)

        assert progress.total == 2
        assert progress.success == 2

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        orchestrator = _orchestrator(FakeExtractor(), FakeRepository([]))

        progress = await orchestrator.extract_all()

        assert progress.total == 0
        assert progress.completed == 0
        assert orchestrator.is_running is False

    @pytest.mark.asyncio
    async def test_successful_meetings_are_not_picked_up_again(self):
        repository = FakeRepository(_meetings(3))
        extractor = FakeExtractor()
        orchestrator = _orchestrator(extractor, repository)

        await orchestrator.extract_all()
        progress = await orchestrator.extract_all()

        assert progress.total == 0
        assert len(extractor.calls) == 3

    @pytest.mark.asyncio
    async def test_progress_callback(self):
        snapshots = []
        orchestrator = _orchestrator(
            FakeExtractor(),
            FakeRepository(_meetings(3)),
            on_progress=snapshots.append,
        )

        await orchestrator.extract_all()

        assert [s.completed for s in snapshots] == [1, 2, 3]
        assert orchestrator.progress.success == 3


class TestRetryFailed:
    @pytest.mark.asyncio
    async def test_reruns_only_failed_meetings(self):
        script = {'transcript 1': ['', '']}
        repository = FakeRepository(_meetings(3))
        extractor = FakeExtractor(script)
        orchestrator = _orchestrator(extractor, repository)

        first = await orchestrator.extract_all()
        assert first.failed == 1

        second = await orchestrator.retry_failed()

        assert second.total == 1
        assert second.success == 1
        result, _ = repository.saved[extraction_id_for('m1')]
        assert result.status == ExtractionStatus.SUCCESS
        assert len(repository.saved) == 3

    @pytest.mark.asyncio
    async def test_failed_meeting_passes_through_retried(self):
        script = {'transcript 1': ['', '']}
        repository = FakeRepository(_meetings(2))
        orchestrator = _orchestrator(FakeExtractor(script), repository)

        await orchestrator.extract_all()
        assert repository.statuses('m1') == [ExtractionStatus.RETRIED, ExtractionStatus.FAILED]

        await orchestrator.retry_failed()

        assert repository.statuses('m1') == [
            ExtractionStatus.RETRIED,
            ExtractionStatus.FAILED,
            ExtractionStatus.RETRIED,
            ExtractionStatus.SUCCESS,
        ]
        assert repository.statuses('m0') == [ExtractionStatus.SUCCESS]

    @pytest.mark.asyncio
    async def test_interrupted_retry_is_picked_up(self):
        repository = FakeRepository(_meetings(2))
        stuck = ExtractionResult(
            id=extraction_id_for('m0'),
            meeting_id='m0',
            status=ExtractionStatus.RETRIED,
        )
        await repository.save_result(stuck)
        orchestrator = _orchestrator(FakeExtractor(), repository)

        progress = await orchestrator.retry_failed()

        assert progress.total == 1
        assert progress.success == 1
        assert repository.saved[extraction_id_for('m0')][0].status == ExtractionStatus.SUCCESS



class TestBatchControl:
    @pytest.mark.asyncio
    async def test_cancel_stops_new_meetings(self):
        repository = FakeRepository(_meetings(5))
        orchestrator = _orchestrator(FakeExtractor(), repository, max_concurrency=1)
        orchestrator.on_progress = lambda progress: orchestrator.cancel()

        progress = await orchestrator.extract_all()

        assert progress.cancelled is True
        assert progress.completed == 1
        assert progress.pending == 4
        assert len(repository.saved) == 1

    @pytest.mark.asyncio
    async def test_cancel_while_loading_pending_meetings(self):
        repository = FakeRepository(_meetings(3))
        loading = asyncio.Event()
        release = asyncio.Event()
        find_pending = repository.find_pending

        async def slow_find_pending(limit: int | None = None) -> list[Meeting]:
            loading.set()
            await release.wait()
            return await find_pending(limit)

        repository.find_pending = slow_find_pending
        orchestrator = _orchestrator(FakeExtractor(), repository)

        running = asyncio.create_task(orchestrator.extract_all())
        await loading.wait()
        assert orchestrator.is_running
        orchestrator.cancel()
        release.set()
        progress = await running

        assert progress.cancelled is True
        assert progress.total == 3
        assert progress.completed == 0
        assert progress.pending == 3
        assert repository.saved == {}
        assert orchestrator.is_running is False

    @pytest.mark.asyncio
    async def test_cancel_when_idle_is_a_no_op(self):

        orchestrator = _orchestrator(FakeExtractor(), FakeRepository(_meetings(1)))
        orchestrator.cancel()

        progress = await orchestrator.extract_all()

        assert progress.cancelled is False
        assert progress.success == 1

    @pytest.mark.asyncio
    async def test_second_batch_rejected_while_running(self):
        release = asyncio.Event()
        orchestrator = _orchestrator(
            SlowExtractor(release=release),
            FakeRepository(_meetings(2)),
        )

        running = asyncio.create_task(orchestrator.extract_all())
        await asyncio.sleep(0.01)
        assert orchestrator.is_running

        with pytest.raises(PipelineError):
            await orchestrator.retry_failed()

        release.set()
        progress = await running

        assert progress.success == 2
        assert orchestrator.is_running is False

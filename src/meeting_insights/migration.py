"""
Backfill structured extraction rows from stored raw model output.

Older extractions kept only the model's raw text. This re-parses that text
strictly: unlike the live path, a record that does not validate is
reported as failed instead of being partially salvaged, because the
stored text is expected to already be well-formed.
"""

import json
from typing import Any
from uuid import UUID

from .errors import (
    ExtractionError,
    MeetingInsightsError,
    NoUsableContentError,
    PartialSuccessResult,
)
from .logging import get_logger
from .models.extraction import Extraction
from .pipeline.parsing import extract_json_object
from .repository import ExtractionRepository
from .validation import validate_extraction_strict

logger = get_logger(__name__)

# Keys the model used to emit that are not part of Extraction
LEGACY_KEYS = ('confidence',)


def _unwrap(raw: str) -> str:
    """Return the model text from a raw value that may be a logged API response."""
    try:
        logged = json.loads(raw)
    except (ValueError, RecursionError):
        return raw
    if isinstance(logged, dict):
        inner = logged.get('content') or logged.get('text')
        if isinstance(inner, str):
            return inner
    return raw


def parse_stored_output(raw: str | None) -> Extraction:
    """
    Strictly parse one stored model output into an Extraction.

    Raises:
        NoUsableContentError: If there is no text or no JSON object in it
        ExtractionError: If the object is not valid JSON
        InvariantViolationError: If a value is outside its vocabulary
    """
    if not raw or not raw.strip():
        raise NoUsableContentError('Stored model output is empty')

    candidate = extract_json_object(_unwrap(raw))
    if candidate is None:
        raise NoUsableContentError('No JSON object found in stored model output')

    try:
        payload: Any = json.loads(candidate)
    except (ValueError, RecursionError) as e:
        raise ExtractionError(f'Stored model output is not valid JSON: {e}') from e

    for key in LEGACY_KEYS:
        payload.pop(key, None)
    volume = payload.get('volume')
    if isinstance(volume, dict) and volume.get('unit') == 'SEMANA':
        volume['unit'] = 'SEMANAL'

    return validate_extraction_strict(payload)


async def migrate_raw_responses(
    repository: ExtractionRepository,
    log_every: int = 10,
) -> PartialSuccessResult:
    """
    Write a structured row for every SUCCESS extraction that lacks one.

    One bad record never stops the run.

    Args:
        repository: Extraction repository
        log_every: Emit a progress log line every N migrated records

    Returns:
        PartialSuccessResult keyed by extraction id
    """
    rows = await repository.find_unmigrated()
    logger.info('migration.started', pending=len(rows))

    result = PartialSuccessResult()
    for row in rows:
        extraction_id = str(row['id'])
        try:
            extraction = parse_stored_output(row.get('raw_model_output'))
            await repository.save_structured(UUID(extraction_id), extraction)
        except MeetingInsightsError as e:
            result.add_failure(e, item_id=extraction_id, data={'meeting_id': row.get('meeting_id')})
            logger.warning('migration.record_failed', extraction_id=extraction_id, error=str(e))
            continue

        result.add_success(extraction_id)
        if result.success_count % log_every == 0:
            logger.info('migration.progress', migrated=result.success_count, total=len(rows))

    logger.info(
        'migration.complete',
        migrated=result.success_count,
        failed=result.failure_count,
    )
    return result

"""
Extraction repository: the persistence collaborator of the pipeline.

Provides:
- Meeting lookup and pending / failed meeting selection
- Idempotent upsert of per-meeting extraction results
- Read-back of stored extractions as ExtractionResult
- Rows needed by the raw-output migration

Every database exception is re-raised as PersistenceError so callers deal
with one failure type for the store.
"""

import json
from contextlib import contextmanager
from typing import Any, Iterator
from uuid import UUID, uuid5

from .clients.postgres_client import PostgresClient
from .config import config
from .errors import MeetingInsightsError, wrap_postgres_error
from .mapper import extraction_to_fields, map_payload, map_row
from .models.extraction import (
    Extraction,
    ExtractionResult,
    ExtractionStatus,
    Meeting,
)

# Namespace for deriving the stable per-meeting extraction id
EXTRACTION_NAMESPACE = UUID('6f1c1e0a-4b8e-5d5e-9a57-3c2f8d7b9e41')


def extraction_id_for(meeting_id: str) -> UUID:
    """Stable extraction identifier for a meeting (same input, same id)."""
    return uuid5(EXTRACTION_NAMESPACE, meeting_id)


@contextmanager
def _persistence_errors(operation: str, **context: Any) -> Iterator[None]:
    try:
        yield
    except MeetingInsightsError:
        raise
    except Exception as e:
        raise wrap_postgres_error(e, {'operation': operation, **context}) from e


def _to_meeting(row: dict[str, Any]) -> Meeting:
    return Meeting(
        id=row['id'],
        transcript=row.get('transcript') or '',
        customer_id=row.get('customer_id'),
        created_at=row.get('created_at'),
    )


class ExtractionRepository:
    """
    Meeting and extraction persistence over PostgresClient.

    Rows are never cached: every read goes to the store.
    """

    def __init__(
        self,
        postgres_client: PostgresClient,
        prompt_version: str | None = None,
        schema_version: str | None = None,
    ):
        """
        Initialize the repository.

        Args:
            postgres_client: Connected Postgres client
            prompt_version: Stamped on every written extraction
            schema_version: Stamped on every written extraction
        """
        self.postgres = postgres_client
        self.prompt_version = prompt_version or config.PROMPT_VERSION
        self.schema_version = schema_version or config.SCHEMA_VERSION

    # =========================================================================
    # Meetings
    # =========================================================================

    async def get_meeting(self, meeting_id: str) -> Meeting | None:
        with _persistence_errors('get_meeting', meeting_id=meeting_id):
            row = await self.postgres.get_meeting(meeting_id)
        return _to_meeting(row) if row else None

    async def find_pending(self, limit: int | None = None) -> list[Meeting]:
        """Meetings lacking a successful extraction."""
        with _persistence_errors('find_pending'):
            rows = await self.postgres.find_pending_meetings(limit=limit)
        return [_to_meeting(r) for r in rows]

    async def find_failed(self) -> list[Meeting]:
        """Meetings whose latest extraction is FAILED (or stuck in RETRIED)."""
        with _persistence_errors('find_failed'):
            rows = await self.postgres.find_failed_meetings()
        return [_to_meeting(r) for r in rows]

    # =========================================================================
    # Extractions
    # =========================================================================

    async def upsert(self, extraction_id: UUID, fields: dict[str, Any]) -> None:
        """
        Create or overwrite the extraction keyed by ``extraction_id``.

        Args:
            extraction_id: Stable per-meeting identifier
            fields: meeting_id and status (required), plus optional
                extraction (Extraction), model, error, attempts and
                raw_model_output

        Raises:
            PersistenceError: If the write failed; nothing was written
        """
        extraction: Extraction | None = fields.get('extraction')
        status = ExtractionStatus(fields['status'])

        extraction_row = {
            'id': extraction_id,
            'meeting_id': fields['meeting_id'],
            'status': status.value,
            'model': fields.get('model'),
            'prompt_version': self.prompt_version,
            'schema_version': self.schema_version,
            'result_json': extraction.to_payload() if extraction else None,
            'raw_model_output': fields.get('raw_model_output'),
            'error': fields.get('error'),
            'attempts': fields.get('attempts', 0),
        }
        data_row = extraction_to_fields(extraction) if extraction else None

        with _persistence_errors(
            'upsert',
            extraction_id=str(extraction_id),
            meeting_id=fields['meeting_id'],
        ):
            await self.postgres.upsert_extraction(extraction_row, data_row)

    async def save_result(
        self,
        result: ExtractionResult,
        raw_model_output: str | None = None,
    ) -> None:
        """Persist an ExtractionResult through upsert()."""
        await self.upsert(
            result.id,
            {
                'meeting_id': result.meeting_id,
                'status': result.status,
                'extraction': result.extraction,
                'model': result.model,
                'error': result.error,
                'attempts': result.attempts,
                'raw_model_output': raw_model_output,
            },
        )

    async def get_extraction(self, meeting_id: str) -> ExtractionResult | None:
        """
        Read back a meeting's stored extraction.

        The structured row is preferred; the JSON copy is the fallback for
        rows written before extraction_data existed.
        """
        with _persistence_errors('get_extraction', meeting_id=meeting_id):
            row = await self.postgres.get_extraction_by_meeting(meeting_id)
        if row is None:
            return None

        if row.get('data_extraction_id') is not None:
            extraction = map_row(row)
        else:
            payload = row.get('result_json')
            # raw text() queries hand jsonb back as a string
            if isinstance(payload, str):
                payload = json.loads(payload)
            extraction = map_payload(payload)

        return ExtractionResult(
            id=row['id'],
            meeting_id=row['meeting_id'],
            extraction=extraction,
            status=ExtractionStatus(row['status']),
            error=row.get('error'),
            attempts=row.get('attempts') or 0,
            model=row.get('model'),
            created_at=row.get('created_at'),
        )

    # =========================================================================
    # Migration support
    # =========================================================================

    async def find_unmigrated(self) -> list[dict[str, Any]]:
        """SUCCESS extractions whose raw output has no structured row yet."""
        with _persistence_errors('find_unmigrated'):
            return await self.postgres.find_unmigrated_extractions()

    async def save_structured(self, extraction_id: UUID, extraction: Extraction) -> None:
        """Write only the structured row for an existing extraction."""
        with _persistence_errors('save_structured', extraction_id=str(extraction_id)):
            await self.postgres.upsert_extraction_data(
                extraction_id, extraction_to_fields(extraction)
            )

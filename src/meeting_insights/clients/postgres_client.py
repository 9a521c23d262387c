"""
Postgres client for the meeting insights store.

Uses SQLAlchemy 2.0 async engine + asyncpg with raw SQL.

Tables:
- meetings (read; written only by the ingest side and tests)
- extractions (UPSERT on meeting_id, one row per meeting)
- extraction_data (UPSERT on extraction_id, one structured row per extraction)
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

logger = structlog.get_logger(__name__)


SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS meetings (
        id TEXT PRIMARY KEY,
        customer_id TEXT,
        transcript TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS extractions (
        id UUID PRIMARY KEY,
        meeting_id TEXT NOT NULL UNIQUE REFERENCES meetings(id) ON DELETE CASCADE,
        status TEXT NOT NULL,
        model TEXT,
        prompt_version TEXT,
        schema_version TEXT,
        result_json JSONB,
        raw_model_output TEXT,
        error TEXT,
        attempts INTEGER NOT NULL DEFAULT 0,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS extraction_data (
        extraction_id UUID PRIMARY KEY REFERENCES extractions(id) ON DELETE CASCADE,
        industry TEXT,
        business_model TEXT,
        jtbd_primary TEXT[] NOT NULL DEFAULT '{}',
        pain_points TEXT[] NOT NULL DEFAULT '{}',
        lead_source TEXT,
        process_maturity TEXT,
        tooling_maturity TEXT,
        knowledge_complexity TEXT,
        risk_level TEXT,
        integrations TEXT[] NOT NULL DEFAULT '{}',
        urgency TEXT,
        success_metrics TEXT[] NOT NULL DEFAULT '{}',
        objections TEXT[] NOT NULL DEFAULT '{}',
        sentiment TEXT,
        volume_quantity DOUBLE PRECISION,
        volume_unit TEXT,
        volume_is_peak BOOLEAN NOT NULL DEFAULT false,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    'CREATE INDEX IF NOT EXISTS extractions_status_idx ON extractions (status)',
)

EXTRACTION_DATA_COLUMNS: tuple[str, ...] = (
    'industry',
    'business_model',
    'jtbd_primary',
    'pain_points',
    'lead_source',
    'process_maturity',
    'tooling_maturity',
    'knowledge_complexity',
    'risk_level',
    'integrations',
    'urgency',
    'success_metrics',
    'objections',
    'sentiment',
    'volume_quantity',
    'volume_unit',
    'volume_is_peak',
)

_MEETING_COLUMNS = 'm.id, m.customer_id, m.transcript, m.created_at'


def _sanitize_url(url: str) -> str:
    """Remove URL query params that asyncpg does not understand.

    Hosted Postgres URLs often include ``channel_binding=require`` and
    ``sslmode=require``, which are libpq parameters that asyncpg rejects.
    SSL is passed through ``connect_args`` instead.
    """
    _STRIP_PARAMS = {'channel_binding', 'sslmode'}
    parsed = urlparse(url)
    if not parsed.query:
        return url
    params = parse_qs(parsed.query)
    filtered = {k: v for k, v in params.items() if k not in _STRIP_PARAMS}
    new_query = urlencode(filtered, doseq=True)
    return urlunparse(parsed._replace(query=new_query))


def _wants_ssl(url: str) -> bool:
    params = parse_qs(urlparse(url).query)
    return params.get('sslmode', [''])[0] in ('require', 'verify-ca', 'verify-full')


def _to_jsonb(value: dict[str, Any] | None) -> str | None:
    if value is None:
        return None
    return json.dumps(value)


class PostgresClient:
    """
    Async Postgres client for meetings and their extractions.

    Every write runs in its own transaction, so a failed write never
    leaves half a record behind.
    """

    def __init__(self, database_url: str | None = None):
        """
        Initialize with a Postgres connection URL.

        Args:
            database_url: Postgres connection URL. If the URL starts with
                          'postgres://' or 'postgresql://', it will be
                          converted to use asyncpg.
        """
        self._engine: AsyncEngine | None = None
        self._database_url = database_url

    async def connect(self, database_url: str | None = None) -> None:
        """
        Create the async engine. Idempotent: no-op if already connected.

        Args:
            database_url: Override the URL from __init__.
        """
        if self._engine is not None:
            return

        url = database_url or self._database_url
        if not url:
            raise ValueError('database_url is required')

        connect_args: dict[str, Any] = {'prepared_statement_cache_size': 0}
        if _wants_ssl(url):
            connect_args['ssl'] = 'require'

        url = _sanitize_url(url)

        # Normalise driver prefix for asyncpg
        if url.startswith('postgres://'):
            url = url.replace('postgres://', 'postgresql+asyncpg://', 1)
        elif url.startswith('postgresql://') and '+asyncpg' not in url:
            url = url.replace('postgresql://', 'postgresql+asyncpg://', 1)

        self._engine = create_async_engine(
            url,
            pool_size=5,
            max_overflow=5,
            pool_pre_ping=True,
            pool_timeout=30,
            connect_args=connect_args,
        )
        logger.info('postgres_client.connected')

    async def close(self) -> None:
        """Dispose of the engine and connection pool."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            logger.info('postgres_client.closed')

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError('PostgresClient not connected: call connect() first')
        return self._engine

    async def verify_connectivity(self) -> bool:
        """Return True if we can execute a simple query."""
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text('SELECT 1'))
            return True
        except Exception:
            logger.exception('postgres_client.connectivity_check_failed')
            return False

    async def setup_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        async with self.engine.begin() as conn:
            for statement in SCHEMA_STATEMENTS:
                await conn.execute(text(statement))
        logger.info('postgres_client.schema_ready')

    # =========================================================================
    # Reads
    # =========================================================================

    async def _fetch_all(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        async with self.engine.connect() as conn:
            result = await conn.execute(text(sql), params or {})
            return [dict(row) for row in result.mappings().all()]

    async def _fetch_one(self, sql: str, params: dict[str, Any] | None = None) -> dict[str, Any] | None:
        rows = await self._fetch_all(sql, params)
        return rows[0] if rows else None

    async def get_meeting(self, meeting_id: str) -> dict[str, Any] | None:
        """Fetch one meeting row by id."""
        return await self._fetch_one(
            f'SELECT {_MEETING_COLUMNS} FROM meetings m WHERE m.id = :meeting_id',
            {'meeting_id': meeting_id},
        )

    async def find_pending_meetings(self, limit: int | None = None) -> list[dict[str, Any]]:
        """
        Meetings with no extraction, or whose extraction is not SUCCESS.

        Args:
            limit: Optional cap on rows returned (oldest meetings first)
        """
        sql = f"""
            SELECT {_MEETING_COLUMNS}
            FROM meetings m
            LEFT JOIN extractions e ON e.meeting_id = m.id
            WHERE e.id IS NULL OR e.status <> 'SUCCESS'
            ORDER BY m.created_at, m.id
        """
        params: dict[str, Any] = {}
        if limit is not None:
            sql += ' LIMIT :limit'
            params['limit'] = limit
        return await self._fetch_all(sql, params)

    async def find_failed_meetings(self) -> list[dict[str, Any]]:
        """Meetings whose extraction is FAILED, or RETRIED by a run that never finished."""
        return await self._fetch_all(
            f"""
            SELECT {_MEETING_COLUMNS}
            FROM meetings m
            JOIN extractions e ON e.meeting_id = m.id
            WHERE e.status IN ('FAILED', 'RETRIED')
            ORDER BY m.created_at, m.id
            """
        )

    async def get_extraction_by_meeting(self, meeting_id: str) -> dict[str, Any] | None:
        """
        Fetch the extraction for a meeting joined with its structured row.

        extraction_data columns are NULL when no structured row exists.
        """
        data_columns = ', '.join(f'd.{c}' for c in EXTRACTION_DATA_COLUMNS)
        return await self._fetch_one(
            f"""
            SELECT e.id, e.meeting_id, e.status, e.model, e.prompt_version,
                   e.schema_version, e.result_json, e.error, e.attempts,
                   e.created_at, e.updated_at,
                   d.extraction_id AS data_extraction_id, {data_columns}
            FROM extractions e
            LEFT JOIN extraction_data d ON d.extraction_id = e.id
            WHERE e.meeting_id = :meeting_id
            """,
            {'meeting_id': meeting_id},
        )

    async def find_unmigrated_extractions(self) -> list[dict[str, Any]]:
        """SUCCESS extractions with raw model output but no structured row."""
        return await self._fetch_all(
            """
            SELECT e.id, e.meeting_id, e.raw_model_output
            FROM extractions e
            LEFT JOIN extraction_data d ON d.extraction_id = e.id
            WHERE e.status = 'SUCCESS'
              AND e.raw_model_output IS NOT NULL
              AND d.extraction_id IS NULL
            ORDER BY e.created_at
            """
        )

    # =========================================================================
    # Writes
    # =========================================================================

    async def insert_meeting(
        self,
        meeting_id: str,
        transcript: str,
        customer_id: str | None = None,
    ) -> None:
        """Insert a meeting, ignoring an existing id."""
        async with self.engine.begin() as conn:
            await conn.execute(
                text("""
                    INSERT INTO meetings (id, customer_id, transcript)
                    VALUES (:id, :customer_id, :transcript)
                    ON CONFLICT (id) DO NOTHING
                """),
                {'id': meeting_id, 'customer_id': customer_id, 'transcript': transcript},
            )

    async def upsert_extraction(
        self,
        extraction_row: dict[str, Any],
        data_row: dict[str, Any] | None,
    ) -> None:
        """
        UPSERT an extraction and its structured row in one transaction.

        Conflict target is the unique ``meeting_id``, so re-running a
        meeting overwrites its row. When ``data_row`` is None any previous
        structured row is removed so the two tables never disagree.

        Args:
            extraction_row: Columns of the extractions table; ``result_json``
                is a dict or None
            data_row: extraction_data columns (see EXTRACTION_DATA_COLUMNS)
        """
        params = dict(extraction_row)
        params['result_json'] = _to_jsonb(params.get('result_json'))

        async with self.engine.begin() as conn:
            await conn.execute(
                text("""
                    INSERT INTO extractions (
                        id, meeting_id, status, model, prompt_version,
                        schema_version, result_json, raw_model_output,
                        error, attempts
                    ) VALUES (
                        :id, :meeting_id, :status, :model, :prompt_version,
                        :schema_version, CAST(:result_json AS jsonb),
                        :raw_model_output, :error, :attempts
                    )
                    ON CONFLICT (meeting_id) DO UPDATE SET
                        status = EXCLUDED.status,
                        model = EXCLUDED.model,
                        prompt_version = EXCLUDED.prompt_version,
                        schema_version = EXCLUDED.schema_version,
                        result_json = EXCLUDED.result_json,
                        raw_model_output = EXCLUDED.raw_model_output,
                        error = EXCLUDED.error,
                        attempts = EXCLUDED.attempts,
                        updated_at = now()
                """),
                params,
            )
            if data_row is None:
                await conn.execute(
                    text('DELETE FROM extraction_data WHERE extraction_id = :id'),
                    {'id': params['id']},
                )
            else:
                await self._upsert_data(conn, params['id'], data_row)

        logger.debug(
            'postgres_client.upsert_extraction',
            extraction_id=str(params['id']),
            meeting_id=params['meeting_id'],
            status=params['status'],
        )

    async def upsert_extraction_data(self, extraction_id: Any, data_row: dict[str, Any]) -> None:
        """UPSERT only the structured row of an existing extraction."""
        async with self.engine.begin() as conn:
            await self._upsert_data(conn, extraction_id, data_row)

        logger.debug('postgres_client.upsert_extraction_data', extraction_id=str(extraction_id))

    @staticmethod
    async def _upsert_data(conn: Any, extraction_id: Any, data_row: dict[str, Any]) -> None:
        columns = ', '.join(EXTRACTION_DATA_COLUMNS)
        values = ', '.join(f':{c}' for c in EXTRACTION_DATA_COLUMNS)
        updates = ',\n'.join(f'{c} = EXCLUDED.{c}' for c in EXTRACTION_DATA_COLUMNS)
        params = {c: data_row.get(c) for c in EXTRACTION_DATA_COLUMNS}
        params['volume_is_peak'] = bool(params['volume_is_peak'])
        params['extraction_id'] = extraction_id
        await conn.execute(
            text(f"""
                INSERT INTO extraction_data (extraction_id, {columns})
                VALUES (:extraction_id, {values})
                ON CONFLICT (extraction_id) DO UPDATE SET
                {updates}
            """),
            params,
        )

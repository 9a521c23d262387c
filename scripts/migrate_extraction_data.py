#!/usr/bin/env python3
"""
Backfill extraction_data rows from stored raw model output.

Usage:
    python scripts/migrate_extraction_data.py
"""

import asyncio
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from dotenv import load_dotenv
load_dotenv(Path(__file__).parent.parent / '.env')

from meeting_insights.clients.postgres_client import PostgresClient
from meeting_insights.config import config
from meeting_insights.migration import migrate_raw_responses
from meeting_insights.repository import ExtractionRepository

MAX_ERRORS_SHOWN = 10


async def main() -> int:
    if not config.DATABASE_URL:
        print('DATABASE_URL is not set')
        return 1

    postgres = PostgresClient(config.DATABASE_URL)
    await postgres.connect()
    try:
        result = await migrate_raw_responses(ExtractionRepository(postgres))
    finally:
        await postgres.close()

    print('\nMigration complete:')
    print(f'  Migrated: {result.success_count}')
    print(f'  Failed:   {result.failure_count}')

    errors = result.to_dict()['errors']
    if errors:
        print(f'\nErrors ({len(errors)} total, showing up to {MAX_ERRORS_SHOWN}):')
        for err in errors[:MAX_ERRORS_SHOWN]:
            print(f"  - {err['item_id']}: {err['error']}")

    return 0


if __name__ == '__main__':
    sys.exit(asyncio.run(main()))

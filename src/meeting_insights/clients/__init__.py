"""
External service clients for the meeting insights pipeline.
"""

from .openai_client import OpenAIClient
from .postgres_client import PostgresClient

__all__ = [
    'OpenAIClient',
    'PostgresClient',
]

"""
LLM prompts for the meeting insights pipeline.
"""

from .extract_insights import (
    EXTRACTION_SYSTEM_PROMPT,
    build_extraction_prompt,
    build_hints_section,
    build_schema_section,
)

__all__ = [
    'EXTRACTION_SYSTEM_PROMPT',
    'build_extraction_prompt',
    'build_hints_section',
    'build_schema_section',
]

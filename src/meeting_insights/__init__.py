"""
Meeting Insights Extraction

Turns free-text sales meeting transcripts into structured, enum-typed
extraction records by combining keyword detectors with an OpenAI model
call, and persists them idempotently per meeting in Postgres.
"""

__version__ = '0.1.0'

# Re-export key classes for convenience
from .deterministic import (
    detect_integrations,
    detect_lead_source,
    detect_volume,
    run_deterministic,
)
from .normalize import normalize
from .validation import (
    cast_scalar,
    cast_set,
    is_member,
    validate_deterministic_strict,
    validate_extraction_strict,
)
from .mapper import LlmExtractionMapper, map_payload
from .pipeline import (
    ExtractionOrchestrator,
    ExtractionProgress,
    InsightExtractor,
    ReconcileMode,
    ReconcilePolicy,
)
from .repository import ExtractionRepository
from .logging import (
    configure_logging,
    get_logger,
    logging_context,
    PipelineTimer,
)
from .errors import (
    MeetingInsightsError,
    PipelineError,
    ExtractionError,
    NoUsableContentError,
    MeetingNotFoundError,
    InvariantViolationError,
    LLMError,
    PersistenceError,
    PartialSuccessResult,
)

__all__ = [
    # Version
    '__version__',
    # Deterministic detection
    'detect_integrations',
    'detect_lead_source',
    'detect_volume',
    'run_deterministic',
    'normalize',
    # Validation and mapping
    'cast_scalar',
    'cast_set',
    'is_member',
    'validate_deterministic_strict',
    'validate_extraction_strict',
    'LlmExtractionMapper',
    'map_payload',
    # Pipeline
    'ExtractionOrchestrator',
    'ExtractionProgress',
    'InsightExtractor',
    'ReconcileMode',
    'ReconcilePolicy',
    # Repository
    'ExtractionRepository',
    # Logging
    'configure_logging',
    'get_logger',
    'logging_context',
    'PipelineTimer',
    # Errors
    'MeetingInsightsError',
    'PipelineError',
    'ExtractionError',
    'NoUsableContentError',
    'MeetingNotFoundError',
    'InvariantViolationError',
    'LLMError',
    'PersistenceError',
    'PartialSuccessResult',
]

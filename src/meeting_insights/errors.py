"""
Custom exceptions and error handling for the meeting insights service.

Provides:
- Typed exception hierarchy for different failure modes
- Error context preservation for debugging
- Partial success handling for batch maintenance jobs
"""

from dataclasses import dataclass, field
from typing import Any


class MeetingInsightsError(Exception):
    """Base exception for all meeting insights errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


# =============================================================================
# Client Errors
# =============================================================================


class ClientError(MeetingInsightsError):
    """Base class for client-related errors."""

    pass


class LLMError(ClientError):
    """Error from the language-model API."""

    pass


class LLMRateLimitError(LLMError):
    """Rate limit or quota exceeded on the language-model API."""

    pass


class LLMTimeoutError(LLMError):
    """Model call did not return within the configured timeout."""

    pass


class LLMModelError(LLMError):
    """Model refused the request or returned an invalid response."""

    pass


class PersistenceError(ClientError):
    """Error reading from or writing to the extraction store."""

    pass


# =============================================================================
# Pipeline Errors
# =============================================================================


class PipelineError(MeetingInsightsError):
    """Base class for extraction pipeline errors."""

    pass


class MeetingNotFoundError(PipelineError):
    """Requested meeting does not exist in the store."""

    pass


class ExtractionError(PipelineError):
    """Error while turning a transcript into an extraction."""

    pass


class NoUsableContentError(ExtractionError):
    """Model returned empty text or no parseable JSON object."""

    pass


class InvariantViolationError(PipelineError):
    """
    Internally produced data broke a structural invariant.

    Raised only by the strict validators. Indicates a bug (detector output
    out of bounds, corrupt stored row), never untrusted model output.
    """

    pass


# =============================================================================
# Partial Success Handling
# =============================================================================


@dataclass
class ItemResult:
    """Result for a single item in a batch operation."""

    item_id: str | None
    success: bool
    error: MeetingInsightsError | None = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class PartialSuccessResult:
    """
    Result of a batch operation that may partially succeed.

    Allows processing to continue even when some items fail,
    while preserving error context for debugging.
    """

    succeeded: list[ItemResult] = field(default_factory=list)
    failed: list[ItemResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def total_count(self) -> int:
        return self.success_count + self.failure_count

    @property
    def all_succeeded(self) -> bool:
        return self.failure_count == 0

    def add_success(
        self,
        item_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Record a successful item."""
        self.succeeded.append(
            ItemResult(item_id=item_id, success=True, data=data or {})
        )

    def add_failure(
        self,
        error: MeetingInsightsError,
        item_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Record a failed item."""
        self.failed.append(
            ItemResult(item_id=item_id, success=False, error=error, data=data or {})
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'success_count': self.success_count,
            'failure_count': self.failure_count,
            'total_count': self.total_count,
            'all_succeeded': self.all_succeeded,
            'succeeded_ids': [r.item_id for r in self.succeeded if r.item_id],
            'failed_ids': [r.item_id for r in self.failed if r.item_id],
            'errors': [
                {'item_id': r.item_id, 'error': str(r.error)}
                for r in self.failed
                if r.error
            ],
        }


# =============================================================================
# Error Handling Utilities
# =============================================================================


def wrap_openai_error(exc: Exception, context: dict[str, Any] | None = None) -> LLMError:
    """
    Wrap an OpenAI exception in our typed error hierarchy.

    Args:
        exc: The original exception
        context: Additional context for debugging

    Returns:
        Typed LLMError subclass
    """
    error_str = str(exc).lower()
    ctx = context or {}
    ctx['original_error'] = str(exc)
    ctx['error_type'] = type(exc).__name__

    if (
        'rate limit' in error_str
        or 'rate_limit' in error_str
        or 'insufficient_quota' in error_str
        or 'quota' in error_str
    ):
        return LLMRateLimitError(
            f"LLM rate limit or quota exceeded: {exc}",
            context=ctx,
        )
    elif 'timed out' in error_str or 'timeout' in error_str:
        return LLMTimeoutError(
            f"LLM request timed out: {exc}",
            context=ctx,
        )
    elif 'content policy' in error_str or 'refused' in error_str:
        return LLMModelError(
            f"LLM refused request: {exc}",
            context=ctx,
        )
    else:
        return LLMError(
            f"LLM API error: {exc}",
            context=ctx,
        )


def wrap_postgres_error(exc: Exception, context: dict[str, Any] | None = None) -> PersistenceError:
    """
    Wrap a database exception in our typed error hierarchy.

    Args:
        exc: The original exception
        context: Additional context for debugging

    Returns:
        PersistenceError carrying the original error text
    """
    ctx = context or {}
    ctx['original_error'] = str(exc)
    ctx['error_type'] = type(exc).__name__
    return PersistenceError(f"Persistence error: {exc}", context=ctx)

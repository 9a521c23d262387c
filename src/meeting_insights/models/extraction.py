"""
Extraction record models.

Extraction is the canonical structured result for one meeting transcript.
Attribute names are snake_case in Python and camelCase on the wire (the
shape the language model is prompted to emit and the API returns).

Constructing these models validates every enum-typed field against its
vocabulary, so a model instance is always well-formed. Untrusted payloads
must go through the lenient mapper instead of being validated directly.
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .enums import (
    BusinessModel,
    Industry,
    Integrations,
    JtbdPrimary,
    KnowledgeComplexity,
    LeadSource,
    Objections,
    PainPoints,
    ProcessMaturity,
    RiskLevel,
    Sentiment,
    SuccessMetric,
    ToolingMaturity,
    Urgency,
    VolumeUnit,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _unique(values: list[Any]) -> list[Any]:
    seen: list[Any] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


class Volume(_CamelModel):
    """Interaction volume quoted by the prospect."""

    quantity: int | float | None = None
    unit: VolumeUnit | None = None
    is_peak: bool = False


class Extraction(_CamelModel):
    """
    Structured business context extracted from one sales meeting.

    Scalar fields hold a single vocabulary member or None. Collection
    fields behave as sets: order is kept as first seen and duplicates are
    collapsed on construction.
    """

    industry: Industry | None = None
    business_model: BusinessModel | None = None
    jtbd_primary: list[JtbdPrimary] = Field(default_factory=list)
    pain_points: list[PainPoints] = Field(default_factory=list)
    lead_source: LeadSource | None = None
    process_maturity: ProcessMaturity | None = None
    tooling_maturity: ToolingMaturity | None = None
    knowledge_complexity: KnowledgeComplexity | None = None
    risk_level: RiskLevel | None = None
    integrations: list[Integrations] = Field(default_factory=list)
    urgency: Urgency | None = None
    success_metrics: list[SuccessMetric] = Field(default_factory=list)
    objections: list[Objections] = Field(default_factory=list)
    sentiment: Sentiment | None = None
    volume: Volume | None = None

    @field_validator(
        'jtbd_primary',
        'pain_points',
        'integrations',
        'success_metrics',
        'objections',
    )
    @classmethod
    def _collapse_duplicates(cls, values: list[Enum]) -> list[Enum]:
        return _unique(values)

    def to_payload(self) -> dict[str, Any]:
        """camelCase JSON-compatible dict (the shape stored in result_json)."""
        return self.model_dump(mode='json', by_alias=True)


class DetectorConfidence(_CamelModel):
    """Per-signal confidence of the deterministic detectors."""

    lead_source: float = Field(default=0.0, ge=0.0, le=1.0)
    volume: float = Field(default=0.0, ge=0.0, le=1.0)
    integrations: float = Field(default=0.0, ge=0.0, le=1.0)


class DeterministicResult(_CamelModel):
    """
    Keyword-detector signals for one transcript.

    Signals whose confidence fell below the gating threshold are already
    nulled out; the raw confidences are always reported.
    """

    lead_source: LeadSource | None = None
    volume: Volume | None = None
    integrations: list[Integrations] = Field(default_factory=list)
    confidence: DetectorConfidence = Field(default_factory=DetectorConfidence)

    @property
    def has_signals(self) -> bool:
        return (
            self.lead_source is not None
            or self.volume is not None
            or len(self.integrations) > 0
        )


class ExtractionStatus(str, Enum):
    """Lifecycle of a per-meeting extraction."""

    PENDING = 'PENDING'
    SUCCESS = 'SUCCESS'
    FAILED = 'FAILED'
    RETRIED = 'RETRIED'

    @property
    def is_terminal(self) -> bool:
        return self in (ExtractionStatus.SUCCESS, ExtractionStatus.FAILED)


class ExtractionResult(_CamelModel):
    """Outcome of extracting one meeting."""

    id: UUID = Field(..., description='Stable per-meeting extraction identifier')
    meeting_id: str
    extraction: Extraction | None = None
    status: ExtractionStatus = ExtractionStatus.PENDING
    error: str | None = None
    attempts: int = 0
    model: str | None = None
    created_at: datetime | None = None


class Meeting(_CamelModel):
    """A recorded sales meeting as read from the store."""

    id: str
    transcript: str
    customer_id: str | None = None
    created_at: datetime | None = None


class ModelResponse(_CamelModel):
    """Raw response from the language-model collaborator."""

    content: str = ''
    model: str | None = None
    usage: dict[str, int] | None = None
    duration_ms: float | None = None

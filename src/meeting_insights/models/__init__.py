"""
Data models for the meeting insights service.
"""

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
    DOMAINS,
    get_domain,
    label_for,
)
from .extraction import (
    DetectorConfidence,
    DeterministicResult,
    Extraction,
    ExtractionResult,
    ExtractionStatus,
    Meeting,
    ModelResponse,
    Volume,
)

__all__ = [
    # Vocabularies
    'BusinessModel',
    'Industry',
    'Integrations',
    'JtbdPrimary',
    'KnowledgeComplexity',
    'LeadSource',
    'Objections',
    'PainPoints',
    'ProcessMaturity',
    'RiskLevel',
    'Sentiment',
    'SuccessMetric',
    'ToolingMaturity',
    'Urgency',
    'VolumeUnit',
    'DOMAINS',
    'get_domain',
    'label_for',
    # Records
    'DetectorConfidence',
    'DeterministicResult',
    'Extraction',
    'ExtractionResult',
    'ExtractionStatus',
    'Meeting',
    'ModelResponse',
    'Volume',
]

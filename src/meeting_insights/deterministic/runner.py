"""
Run every deterministic detector over a transcript and gate the signals.
"""

from ..models.extraction import DetectorConfidence, DeterministicResult
from .integrations import detect_integrations
from .lead_source import detect_lead_source
from .volume import detect_volume

MIN_CONFIDENCE_THRESHOLD = 0.7


def run_deterministic(
    transcript: str,
    min_confidence: float = MIN_CONFIDENCE_THRESHOLD,
) -> DeterministicResult:
    """
    Detect lead source, volume and integrations in one pass.

    A signal whose confidence is below ``min_confidence`` is reported as
    null (or an empty list for integrations). Raw confidences are always
    kept so callers can see what was gated out.

    Args:
        transcript: Raw transcript text
        min_confidence: Gating threshold in [0, 1]

    Returns:
        DeterministicResult
    """
    lead = detect_lead_source(transcript)
    volume = detect_volume(transcript)
    integrations = detect_integrations(transcript)

    return DeterministicResult(
        lead_source=lead.source if lead.confidence >= min_confidence else None,
        volume=volume.volume if volume.confidence >= min_confidence else None,
        integrations=(
            integrations.integrations
            if integrations.confidence >= min_confidence
            else []
        ),
        confidence=DetectorConfidence(
            lead_source=lead.confidence,
            volume=volume.confidence,
            integrations=integrations.confidence,
        ),
    )

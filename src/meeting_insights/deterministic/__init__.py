"""Keyword-based detectors that run without a model call."""

from .integrations import IntegrationsDetection, detect_integrations
from .lead_source import LeadSourceDetection, detect_lead_source
from .runner import MIN_CONFIDENCE_THRESHOLD, run_deterministic
from .volume import VolumeDetection, detect_volume

__all__ = [
    'IntegrationsDetection',
    'LeadSourceDetection',
    'VolumeDetection',
    'MIN_CONFIDENCE_THRESHOLD',
    'detect_integrations',
    'detect_lead_source',
    'detect_volume',
    'run_deterministic',
]

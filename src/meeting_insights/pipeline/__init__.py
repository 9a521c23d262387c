"""
Extraction pipeline: model collaborator, reconciliation, progress and orchestration.
"""

from .extractor import InsightExtractor
from .orchestrator import NO_USABLE_CONTENT, ExtractionOrchestrator
from .parsing import extract_json_object, parse_model_content, repair_json
from .progress import ExtractionProgress, ProgressTracker
from .reconcile import ReconcileMode, ReconcilePolicy, fallback_extraction, reconcile

__all__ = [
    'InsightExtractor',
    'ExtractionOrchestrator',
    'NO_USABLE_CONTENT',
    'ExtractionProgress',
    'ProgressTracker',
    'ReconcileMode',
    'ReconcilePolicy',
    'extract_json_object',
    'fallback_extraction',
    'parse_model_content',
    'reconcile',
    'repair_json',
]

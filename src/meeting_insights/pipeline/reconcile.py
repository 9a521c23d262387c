"""
Merging deterministic detector signals with the model's extraction.

Only the fields the detectors cover (lead source, volume, integrations)
are ever touched. A deterministic signal is used only if its confidence
reaches the policy threshold.

Modes:
- fill_nulls: model values win; detectors fill what the model left empty
- prefer_deterministic: detectors override lead source and volume;
  integrations are the union, detector findings first
- model_only: detector output is ignored for the record
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..config import config
from ..models.enums import Integrations, LeadSource
from ..models.extraction import DeterministicResult, Extraction, Volume


class ReconcileMode(str, Enum):
    FILL_NULLS = 'fill_nulls'
    PREFER_DETERMINISTIC = 'prefer_deterministic'
    MODEL_ONLY = 'model_only'


@dataclass(frozen=True)
class ReconcilePolicy:
    """How deterministic and model-derived values are combined."""

    mode: ReconcileMode = ReconcileMode.FILL_NULLS
    min_confidence: float = 0.7
    # Persist a detector-only extraction when the model call fails for good
    fallback_on_model_failure: bool = False

    @classmethod
    def from_config(cls) -> 'ReconcilePolicy':
        return cls(
            mode=ReconcileMode(config.RECONCILE_POLICY),
            min_confidence=config.DETERMINISTIC_MIN_CONFIDENCE,
        )


@dataclass
class _Signals:
    lead_source: LeadSource | None
    volume: Volume | None
    integrations: list[Integrations]


def _gate(deterministic: DeterministicResult, min_confidence: float) -> _Signals:
    conf = deterministic.confidence
    return _Signals(
        lead_source=deterministic.lead_source if conf.lead_source >= min_confidence else None,
        volume=deterministic.volume if conf.volume >= min_confidence else None,
        integrations=(
            list(deterministic.integrations) if conf.integrations >= min_confidence else []
        ),
    )


def reconcile(
    model: Extraction,
    deterministic: DeterministicResult | None,
    policy: ReconcilePolicy | None = None,
) -> Extraction:
    """
    Combine a mapped model extraction with detector signals.

    Args:
        model: Extraction mapped from the model's output
        deterministic: Detector output for the same transcript
        policy: Merge policy (defaults to fill_nulls at 0.7)

    Returns:
        A new Extraction; ``model`` is not modified
    """
    policy = policy or ReconcilePolicy()
    if deterministic is None or policy.mode == ReconcileMode.MODEL_ONLY:
        return model

    signals = _gate(deterministic, policy.min_confidence)
    update: dict[str, Any] = {}

    if policy.mode == ReconcileMode.PREFER_DETERMINISTIC:
        if signals.lead_source is not None:
            update['lead_source'] = signals.lead_source
        if signals.volume is not None:
            update['volume'] = signals.volume
        if signals.integrations:
            merged = list(signals.integrations)
            merged.extend(i for i in model.integrations if i not in merged)
            update['integrations'] = merged
    else:
        if model.lead_source is None and signals.lead_source is not None:
            update['lead_source'] = signals.lead_source
        if model.volume is None and signals.volume is not None:
            update['volume'] = signals.volume
        if not model.integrations and signals.integrations:
            update['integrations'] = signals.integrations

    if not update:
        return model
    return model.model_copy(update=update)


def fallback_extraction(
    deterministic: DeterministicResult,
    policy: ReconcilePolicy | None = None,
) -> Extraction | None:
    """
    Detector-only extraction for a meeting whose model call failed.

    Returns None when no signal clears the threshold.
    """
    policy = policy or ReconcilePolicy()
    signals = _gate(deterministic, policy.min_confidence)
    if signals.lead_source is None and signals.volume is None and not signals.integrations:
        return None
    return Extraction(
        lead_source=signals.lead_source,
        volume=signals.volume,
        integrations=signals.integrations,
    )

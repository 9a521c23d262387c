"""
Pattern detector for quoted interaction volume.

Patterns run against the normalized transcript and are tried in order;
the first hit supplies quantity and unit. Every pattern names the
quantity group ``qty``.
"""

import re
from dataclasses import dataclass

from ..models.enums import VolumeUnit
from ..models.extraction import Volume
from ..normalize import normalize

PATTERN_CONFIDENCE = 0.85
FALLBACK_CONFIDENCE = 0.6

_NOUN = r'(?:interacciones?|mensajes?|consultas?)'

# (pattern, unit, is_peak)
VOLUME_PATTERNS: tuple[tuple[re.Pattern[str], VolumeUnit, bool], ...] = (
    (
        re.compile(rf'(?P<qty>\d+)\s*{_NOUN}\s*(?:diari[oa]s?|al\s*dia)'),
        VolumeUnit.DIARIO,
        False,
    ),
    (
        re.compile(rf'(?P<qty>\d+)\s*{_NOUN}\s*(?:semanales?|a\s*la\s*semana)'),
        VolumeUnit.SEMANAL,
        False,
    ),
    (
        re.compile(rf'(?P<qty>\d+)\s*{_NOUN}\s*(?:mensuales?|al\s*mes)'),
        VolumeUnit.MENSUAL,
        False,
    ),
    (
        re.compile(rf'mas\s*de\s*(?P<qty>\d+)\s*{_NOUN}\s*(?:diari[oa]s?|al\s*dia)'),
        VolumeUnit.DIARIO,
        False,
    ),
    (
        re.compile(rf'mas\s*de\s*(?P<qty>\d+)\s*{_NOUN}\s*semanales?'),
        VolumeUnit.SEMANAL,
        False,
    ),
    (
        re.compile(rf'cerca\s*de\s*(?P<qty>\d+)\s*{_NOUN}'),
        VolumeUnit.SEMANAL,
        False,
    ),
    (
        re.compile(rf'alrededor\s*de\s*(?P<qty>\d+)\s*{_NOUN}'),
        VolumeUnit.DIARIO,
        False,
    ),
    (
        re.compile(r'superar?\s*(?:los\s*)?(?P<qty>\d+)\s*(?:mensajes?|interacciones?)'),
        VolumeUnit.DIARIO,
        True,
    ),
    (
        re.compile(rf'llegar?\s*a\s*(?P<qty>\d+)\s*{_NOUN}'),
        VolumeUnit.DIARIO,
        True,
    ),
    (
        re.compile(rf'pico.*?(?P<qty>\d+)\s*{_NOUN}'),
        VolumeUnit.DIARIO,
        True,
    ),
    (
        re.compile(r'durante\s*(?:las\s*)?(?:promociones?|temporadas?\s*altas?).*?(?P<qty>\d+)'),
        VolumeUnit.DIARIO,
        True,
    ),
)

_BARE_QUANTITY = re.compile(rf'(?P<qty>\d+)\s*{_NOUN}')

DAILY_INDICATORS = (
    re.compile(r'diari[oa]s?'),
    re.compile(r'al\s*dia'),
    re.compile(r'por\s*dia'),
    re.compile(r'cada\s*dia'),
)

PEAK_INDICATORS = (
    re.compile(r'pico'),
    re.compile(r'temporada\s*alta'),
    re.compile(r'promocion'),
    re.compile(r'epocas?\s*pico'),
    re.compile(r'puede\s*(?:llegar|superar)'),
)


@dataclass
class VolumeDetection:
    """Volume guess and how much to trust it."""

    volume: Volume | None
    confidence: float


def _has_any(patterns: tuple[re.Pattern[str], ...], text: str) -> bool:
    return any(p.search(text) for p in patterns)


def detect_volume(transcript: str) -> VolumeDetection:
    """
    Find the interaction volume a prospect quotes.

    Returns:
        Volume at 0.85 when an explicit pattern matched, a volume with an
        inferred unit at 0.6 for a bare "<n> mensajes" mention, otherwise
        no volume at confidence 0
    """
    normalized = normalize(transcript)
    peak = _has_any(PEAK_INDICATORS, normalized)

    for pattern, unit, is_peak in VOLUME_PATTERNS:
        match = pattern.search(normalized)
        if match:
            return VolumeDetection(
                volume=Volume(
                    quantity=int(match.group('qty')),
                    unit=unit,
                    is_peak=is_peak or peak,
                ),
                confidence=PATTERN_CONFIDENCE,
            )

    match = _BARE_QUANTITY.search(normalized)
    if match:
        unit = VolumeUnit.SEMANAL
        if _has_any(DAILY_INDICATORS, normalized):
            unit = VolumeUnit.DIARIO
        return VolumeDetection(
            volume=Volume(quantity=int(match.group('qty')), unit=unit, is_peak=peak),
            confidence=FALLBACK_CONFIDENCE,
        )

    return VolumeDetection(volume=None, confidence=0.0)

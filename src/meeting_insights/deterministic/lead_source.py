"""
Pattern detector for how the prospect found the product.

Patterns run against the normalized transcript, so they are written
lower-case and accent-free. Sources are tried in declaration order and
the first hit wins.
"""

import re
from dataclasses import dataclass

from ..models.enums import LeadSource
from ..normalize import normalize

PATTERN_CONFIDENCE = 0.9
FUZZY_CONFIDENCE = 0.7
UNKNOWN_CONFIDENCE = 0.5

LEAD_SOURCE_PATTERNS: dict[LeadSource, tuple[re.Pattern[str], ...]] = {
    LeadSource.LINKEDIN: (
        re.compile(r'linked\s*in'),
    ),
    LeadSource.GOOGLE: (
        re.compile(r'google'),
        re.compile(r'busqueda\s+online'),
        re.compile(r'buscando\s+soluciones\s+online'),
    ),
    LeadSource.CONFERENCIA: (
        re.compile(r'conferencia'),
        re.compile(r'congreso'),
        re.compile(r'seminario'),
        re.compile(r'evento\s+de'),
        re.compile(r'charla\s+sobre'),
        re.compile(r'taller\s+sobre'),
    ),
    LeadSource.RECOMENDACION: (
        re.compile(r'recomend'),
        re.compile(r'colega'),
        re.compile(r'amig[oa]'),
        re.compile(r'companer[oa]'),
        re.compile(r'mencion'),
        re.compile(r'nos\s+hablo'),
    ),
    LeadSource.WEBINAR: (
        re.compile(r'web\s*inar'),
    ),
    LeadSource.PODCAST: (
        re.compile(r'pod\s*cast'),
    ),
    LeadSource.FERIA: (
        re.compile(r'feria'),
        re.compile(r'\bexpo'),
        re.compile(r'exhibicion'),
    ),
    LeadSource.ARTICULO: (
        re.compile(r'articulo'),
        re.compile(r'publicacion'),
        re.compile(r'blog'),
        re.compile(r'lei\s+sobre'),
        re.compile(r'leimos\s+sobre'),
    ),
    LeadSource.NETWORKING: (
        re.compile(r'networking'),
    ),
    LeadSource.REDES_SOCIALES: (
        re.compile(r'redes\s+sociales'),
        re.compile(r'instagram'),
        re.compile(r'facebook'),
        re.compile(r'twitter'),
    ),
}

FUZZY_MAPPINGS: dict[str, LeadSource] = {
    'foro de': LeadSource.CONFERENCIA,
    'charla de': LeadSource.CONFERENCIA,
    'taller de': LeadSource.CONFERENCIA,
    'grupo de emprendedores': LeadSource.RECOMENDACION,
    'grupo de editores': LeadSource.RECOMENDACION,
    'boca en boca': LeadSource.RECOMENDACION,
}


@dataclass
class LeadSourceDetection:
    """Lead source guess and how much to trust it."""

    source: LeadSource | None
    confidence: float


def detect_lead_source(transcript: str) -> LeadSourceDetection:
    """
    Classify the lead source of a transcript.

    Returns:
        First pattern hit at 0.9, else first fuzzy phrase at 0.7,
        else DESCONOCIDO at 0.5
    """
    normalized = normalize(transcript)

    for source, patterns in LEAD_SOURCE_PATTERNS.items():
        if any(pattern.search(normalized) for pattern in patterns):
            return LeadSourceDetection(source=source, confidence=PATTERN_CONFIDENCE)

    for phrase, source in FUZZY_MAPPINGS.items():
        if phrase in normalized:
            return LeadSourceDetection(source=source, confidence=FUZZY_CONFIDENCE)

    return LeadSourceDetection(
        source=LeadSource.DESCONOCIDO,
        confidence=UNKNOWN_CONFIDENCE,
    )

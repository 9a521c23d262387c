"""
Lenient mapping of untrusted payloads into Extraction records.

LlmExtractionMapper is the single path from language-model output (or a
previously stored row) to a well-formed Extraction. It never raises on bad
input: out-of-domain tokens are dropped, wrong-typed values become null,
unknown keys are ignored.

Before the exact membership cast, tokens are canonicalized (trimmed and
upper-cased) and passed through a per-domain alias table so that legacy
tokens from previously stored model responses still map.
"""

import math
from enum import Enum
from typing import Any, Mapping

from pydantic.alias_generators import to_snake

from .logging import get_logger
from .models.enums import (
    COLLECTION_FIELDS,
    SCALAR_FIELDS,
    JtbdPrimary,
    PainPoints,
)
from .models.extraction import Extraction, Volume
from .validation import cast_scalar, is_member

logger = get_logger(__name__)

# Domain key -> {legacy token: current token}
LEGACY_ALIASES: dict[str, dict[str, str]] = {
    'volumeUnit': {
        'SEMANA': 'SEMANAL',
        'DIA': 'DIARIO',
        'MES': 'MENSUAL',
    },
    'industry': {
        'RESTAURANT': 'HOSPITALIDAD',
        'RESTAURANTE': 'HOSPITALIDAD',
        'TECNLOGIA': 'TECNOLOGIA',
    },
}


def canonical_token(domain_key: str, value: Any) -> Any:
    """
    Trim, upper-case and de-alias a raw token.

    Non-string values are returned unchanged so the cast can reject them.
    """
    if isinstance(value, Enum):
        value = value.value
    if not isinstance(value, str):
        return value
    token = value.strip().upper()
    return LEGACY_ALIASES.get(domain_key, {}).get(token, token)


def _lookup(payload: Mapping[str, Any], key: str) -> Any:
    """Read a camelCase key, falling back to its snake_case spelling."""
    if key in payload:
        return payload[key]
    return payload.get(to_snake(key))


def _quantity(value: Any) -> int | float | None:
    # bool is an int subclass; "true" is not a quantity
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if value < 0:
        return None
    return value


class LlmExtractionMapper:
    """
    Convert raw key/value payloads into Extraction records.

    Accepts camelCase (model output) or snake_case keys.
    """

    def cast_field(self, domain_key: str, value: Any) -> Enum | None:
        """Canonicalize then exactly cast a single token."""
        return cast_scalar(domain_key, canonical_token(domain_key, value))

    def cast_collection(self, domain_key: str, values: Any) -> list[Enum]:
        """Canonicalize then keep the in-domain elements of a list."""
        if not isinstance(values, (list, tuple)):
            return []
        kept = []
        for value in values:
            member = self.cast_field(domain_key, value)
            if member is not None:
                kept.append(member)
        return kept

    def map_volume(self, raw: Any) -> Volume | None:
        """
        Build the volume sub-record.

        Returns None unless the input carries a quantity or a unit.
        """
        if not isinstance(raw, Mapping):
            return None
        raw_quantity = raw.get('quantity')
        raw_unit = raw.get('unit')
        if raw_quantity is None and raw_unit is None:
            return None

        is_peak = _lookup(raw, 'isPeak')
        return Volume(
            quantity=_quantity(raw_quantity),
            unit=self.cast_field('volumeUnit', raw_unit),
            is_peak=is_peak if isinstance(is_peak, bool) else False,
        )

    def map_payload(self, payload: Any) -> Extraction | None:
        """
        Map a decoded model payload to an Extraction.

        Args:
            payload: JSON-decoded object; anything that is not a mapping
                is treated as absent

        Returns:
            A well-formed Extraction, or None when ``payload`` is absent
        """
        if payload is None:
            return None
        if not isinstance(payload, Mapping):
            logger.debug(
                'mapper.payload_not_a_mapping',
                payload_type=type(payload).__name__,
            )
            return None

        fields: dict[str, Any] = {}
        for key in SCALAR_FIELDS:
            fields[to_snake(key)] = self.cast_field(key, _lookup(payload, key))
        for key in COLLECTION_FIELDS:
            fields[to_snake(key)] = self.cast_collection(key, _lookup(payload, key))

        # Models sometimes put pain points under jtbdPrimary
        raw_jtbd = _lookup(payload, 'jtbdPrimary')
        if isinstance(raw_jtbd, (list, tuple)):
            for value in raw_jtbd:
                token = canonical_token('jtbdPrimary', value)
                if not is_member(JtbdPrimary, token) and is_member(PainPoints, token):
                    fields['pain_points'].append(PainPoints(token))

        fields['volume'] = self.map_volume(_lookup(payload, 'volume'))
        return Extraction(**fields)

    def map_row(self, row: Mapping[str, Any] | None) -> Extraction | None:
        """
        Map a stored extraction_data row (flat volume columns) to an Extraction.
        """
        if row is None:
            return None
        payload = {to_snake(key): row.get(to_snake(key)) for key in SCALAR_FIELDS}
        payload.update(
            {to_snake(key): row.get(to_snake(key)) or [] for key in COLLECTION_FIELDS}
        )
        payload['volume'] = {
            'quantity': row.get('volume_quantity'),
            'unit': row.get('volume_unit'),
            'is_peak': bool(row.get('volume_is_peak') or False),
        }
        return self.map_payload(payload)


def extraction_to_fields(extraction: Extraction | None) -> dict[str, Any]:
    """
    Flatten an Extraction into extraction_data column values.

    Enum members become their tokens and the volume sub-record is spread
    over volume_quantity / volume_unit / volume_is_peak.
    """
    if extraction is None:
        extraction = Extraction()
    fields = extraction.model_dump(mode='json', exclude={'volume'})
    volume = extraction.volume
    fields['volume_quantity'] = volume.quantity if volume else None
    fields['volume_unit'] = volume.unit.value if volume and volume.unit else None
    fields['volume_is_peak'] = volume.is_peak if volume else False
    return fields


_default_mapper = LlmExtractionMapper()


def map_payload(payload: Any) -> Extraction | None:
    """Module-level shortcut for LlmExtractionMapper().map_payload."""
    return _default_mapper.map_payload(payload)


def map_row(row: Mapping[str, Any] | None) -> Extraction | None:
    """Module-level shortcut for LlmExtractionMapper().map_row."""
    return _default_mapper.map_row(row)

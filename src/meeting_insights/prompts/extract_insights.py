"""
Meeting insight extraction prompts.

The model is asked for a single JSON object whose keys are the camelCase
Extraction fields. Output is untrusted and goes through the lenient
mapper, so the prompt lists every valid token but the code never relies
on the model honouring it.
"""

from enum import Enum

from ..models.enums import DOMAINS, SCALAR_FIELDS, label_for
from ..models.extraction import DeterministicResult

# =============================================================================
# Schema Section
# =============================================================================


def _valid_values(domain: type[Enum]) -> str:
    return ', '.join(f'{member.value} ({label_for(member)})' for member in domain)


def build_schema_section() -> str:
    """Describe the expected JSON object, listing every valid token per field."""
    lines = ['{']
    for key, domain in DOMAINS.items():
        if key == 'volumeUnit':
            continue
        if key in SCALAR_FIELDS:
            lines.append(
                f'  "{key}": "{domain.__name__} value or null. '
                f'Valid values: {_valid_values(domain)}",'
            )
        else:
            lines.append(
                f'  "{key}": ["array of {domain.__name__} values. '
                f'Valid values: {_valid_values(domain)}"],'
            )
    lines.append('  "volume": {')
    lines.append('    "quantity": number or null,')
    lines.append(
        f'    "unit": "VolumeUnit value or null. '
        f'Valid values: {_valid_values(DOMAINS["volumeUnit"])}",'
    )
    lines.append('    "isPeak": boolean')
    lines.append('  } or null')
    lines.append('}')
    return '\n'.join(lines)


def build_hints_section(hints: DeterministicResult | None) -> str:
    """
    Render gated deterministic signals as pre-extracted values.

    Returns an empty string when there is nothing worth passing on.
    """
    if hints is None:
        return ''

    parts = []
    if hints.lead_source is not None:
        parts.append(f'leadSource: "{hints.lead_source.value}"')
    if hints.volume is not None:
        vol = hints.volume
        unit = f'"{vol.unit.value}"' if vol.unit else 'null'
        quantity = vol.quantity if vol.quantity is not None else 'null'
        is_peak = 'true' if vol.is_peak else 'false'
        parts.append(f'volume: {{ quantity: {quantity}, unit: {unit}, isPeak: {is_peak} }}')
    if hints.integrations:
        joined = ', '.join(f'"{i.value}"' for i in hints.integrations)
        parts.append(f'integrations: [{joined}]')

    if not parts:
        return ''

    return (
        '=== PRE-EXTRACTED VALUES ===\n'
        'These values were extracted with keyword rules. Use them as-is if they '
        'match the transcript context, otherwise extract from the transcript:\n'
        + '\n'.join(parts)
    )


# =============================================================================
# Prompt Templates
# =============================================================================

EXTRACTION_SYSTEM_PROMPT = """You are an expert sales analyst specializing in B2B SaaS customer conversations held in Spanish.

Extract structured information about the prospect's business from a sales meeting transcript.

Guidelines:
- Extract information explicitly mentioned or clearly implied in the transcript
- Look for indirect references, synonyms and contextual clues
- For arrays (jtbdPrimary, painPoints, integrations, successMetrics, objections), include ALL relevant items
- Return empty arrays [] when no items are found (never null)
- Use null for single-valued fields with no evidence

Field guidance:
- jtbdPrimary: the jobs the prospect wants done (e.g. MULTIIDIOMA if they mention several languages or time zones)
- painPoints: every pain mentioned (e.g. VOLUMEN_ALTO, CONSULTAS_REPETITIVAS, SOBRECARGA_EQUIPO). Do not put pain points in jtbdPrimary
- objections: concerns raised (CONFIDENCIALIDAD for privacy or security, COSTO for pricing)
- sentiment: overall tone of the prospect
- urgency: how time-sensitive the need is
- riskLevel: project risk given complexity and commitment
- volume: interactions the prospect handles, with the time window it is quoted over; isPeak is true when the figure describes a peak or promotion

Output format:
- Return ONLY one valid JSON object matching the schema
- No explanatory text, comments or markdown
- Enum values must match exactly (upper-case tokens as listed)"""

EXTRACTION_USER_PROMPT_TEMPLATE = """=== OUTPUT SCHEMA ===
{schema_section}

{hints_section}

=== TRANSCRIPT ===
<transcript>
{transcript_text}
</transcript>

Return only the JSON object matching the schema above."""


def build_extraction_prompt(
    transcript_text: str,
    hints: DeterministicResult | None = None,
) -> list[dict[str, str]]:
    """
    Build the extraction prompt messages for OpenAI.

    Args:
        transcript_text: The transcript to extract from
        hints: Gated deterministic signals to offer as pre-extracted values

    Returns:
        List of message dicts for OpenAI chat completion
    """
    user_prompt = EXTRACTION_USER_PROMPT_TEMPLATE.format(
        schema_section=build_schema_section(),
        hints_section=build_hints_section(hints),
        transcript_text=transcript_text,
    )

    return [
        {'role': 'system', 'content': EXTRACTION_SYSTEM_PROMPT},
        {'role': 'user', 'content': user_prompt},
    ]

"""
Vocabulary membership, lenient casting and strict validation.

Two deliberately separate contracts live here:

- Lenient casting (is_member, cast_scalar, cast_set) never raises. It is
  used on untrusted language-model output, where partial credit beats
  rejecting the whole record.
- Strict validation (validate_extraction_strict, validate_deterministic_strict)
  raises InvariantViolationError on any out-of-domain token or out-of-bound
  number. It is used on data produced internally, where a violation means
  a bug rather than bad input.
"""

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .errors import InvariantViolationError
from .models.enums import get_domain
from .models.extraction import DeterministicResult, Extraction

Domain = type[Enum] | str


def _resolve(domain: Domain) -> type[Enum]:
    if isinstance(domain, str):
        return get_domain(domain)
    return domain


def _token(value: Any) -> str | None:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, str):
        return value
    return None


def is_member(domain: Domain, value: Any) -> bool:
    """True if ``value`` is exactly one of the domain's tokens."""
    token = _token(value)
    if not token:
        return False
    return any(member.value == token for member in _resolve(domain))


def cast_scalar(domain: Domain, value: Any) -> Enum | None:
    """
    Cast a single value to a vocabulary member.

    Returns:
        The member equal to ``value``, or None when ``value`` is None,
        empty, not a string, or not in the domain
    """
    if not is_member(domain, value):
        return None
    return _resolve(domain)(_token(value))


def cast_set(domain: Domain, values: Any) -> list[Enum]:
    """
    Keep only the elements of ``values`` that belong to the domain.

    Relative order is preserved and nothing else is removed, so existing
    duplicates survive. A non-list input yields an empty list.
    """
    if not isinstance(values, (list, tuple)):
        return []
    kept = []
    for value in values:
        member = cast_scalar(domain, value)
        if member is not None:
            kept.append(member)
    return kept


def _describe(exc: PydanticValidationError) -> list[dict[str, Any]]:
    return [
        {'loc': '.'.join(str(p) for p in err['loc']), 'msg': err['msg']}
        for err in exc.errors()
    ]


def validate_extraction_strict(payload: Extraction | Mapping[str, Any]) -> Extraction:
    """
    Validate a trusted payload as an Extraction, failing on any violation.

    Args:
        payload: Extraction instance or camelCase / snake_case mapping

    Returns:
        Validated Extraction

    Raises:
        InvariantViolationError: If any field is out of its domain or bound
    """
    data = payload.model_dump() if isinstance(payload, BaseModel) else payload
    try:
        return Extraction.model_validate(data)
    except PydanticValidationError as e:
        raise InvariantViolationError(
            'Extraction failed strict validation',
            context={'errors': _describe(e)},
        ) from e


def validate_deterministic_strict(
    result: DeterministicResult | Mapping[str, Any],
) -> DeterministicResult:
    """
    Re-validate detector output: enum members only, confidences in [0, 1].

    Raises:
        InvariantViolationError: If a detector produced an impossible value
    """
    data = result.model_dump() if isinstance(result, BaseModel) else result
    try:
        return DeterministicResult.model_validate(data)
    except PydanticValidationError as e:
        raise InvariantViolationError(
            'Deterministic detector output violates invariants',
            context={'errors': _describe(e)},
        ) from e

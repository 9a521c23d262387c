"""
Tests for vocabularies, lenient casting and strict validation.
"""

import pytest

from meeting_insights.errors import InvariantViolationError
from meeting_insights.models.enums import (
    COLLECTION_FIELDS,
    DOMAINS,
    SCALAR_FIELDS,
    Industry,
    Integrations,
    LeadSource,
    PainPoints,
    Sentiment,
    VolumeUnit,
    domain_values,
    get_domain,
    label_for,
)
from meeting_insights.models.extraction import (
    DeterministicResult,
    Extraction,
    ExtractionStatus,
    Volume,
)
from meeting_insights.validation import (
    cast_scalar,
    cast_set,
    is_member,
    validate_deterministic_strict,
    validate_extraction_strict,
)


class TestVocabularies:
    def test_fifteen_domains(self):
        assert len(DOMAINS) == 15
        assert set(SCALAR_FIELDS) | set(COLLECTION_FIELDS) | {'volumeUnit'} == set(DOMAINS)

    def test_get_domain(self):
        assert get_domain('industry') is Industry
        with pytest.raises(KeyError):
            get_domain('favouriteColour')

    def test_domain_values_in_declaration_order(self):
        assert domain_values(VolumeUnit) == ['DIARIO', 'SEMANAL', 'MENSUAL']

    def test_every_member_has_a_label(self):
        for domain in DOMAINS.values():
            for member in domain:
                assert label_for(member)

    def test_labels_are_spanish(self):
        assert label_for(Sentiment.ESCEPTICO) == 'Escéptico'
        assert label_for(Integrations.SISTEMA_CITAS) == 'Sistema de Citas'

    def test_status_terminality(self):
        assert ExtractionStatus.SUCCESS.is_terminal
        assert ExtractionStatus.FAILED.is_terminal
        assert not ExtractionStatus.PENDING.is_terminal
        assert not ExtractionStatus.RETRIED.is_terminal


class TestMembership:
    def test_exact_token(self):
        assert is_member(Industry, 'RETAIL')
        assert is_member('industry', 'RETAIL')

    def test_enum_member(self):
        assert is_member(Industry, Industry.SALUD)

    def test_membership_is_exact(self):
        assert not is_member(Industry, 'retail')
        assert not is_member(Industry, ' RETAIL')
        assert not is_member(Industry, 'NOT_A_REAL_INDUSTRY')

    @pytest.mark.parametrize('value', [None, '', 3, True, ['RETAIL'], {'x': 1}])
    def test_non_tokens(self, value):
        assert not is_member(Industry, value)

    def test_member_of_other_domain(self):
        assert not is_member(Industry, LeadSource.GOOGLE)


class TestCastScalar:
    def test_valid(self):
        assert cast_scalar('sentiment', 'NEUTRAL') == Sentiment.NEUTRAL

    def test_invalid_becomes_none(self):
        assert cast_scalar('sentiment', 'ENOJADO') is None
        assert cast_scalar('sentiment', None) is None
        assert cast_scalar('sentiment', '') is None
        assert cast_scalar('sentiment', 1) is None


class TestCastSet:
    def test_keeps_members_in_order(self):
        values = ['PICOS_DEMANDA', 'NO_EXISTE', 'VOLUMEN_ALTO', None, 7]
        assert cast_set(PainPoints, values) == [
            PainPoints.PICOS_DEMANDA,
            PainPoints.VOLUMEN_ALTO,
        ]

    def test_preserves_existing_duplicates(self):
        values = ['CRM', 'CRM']
        assert cast_set(Integrations, values) == [Integrations.CRM, Integrations.CRM]

    @pytest.mark.parametrize('value', [None, 'CRM', {'CRM': True}, 3])
    def test_non_list_is_empty(self, value):
        assert cast_set(Integrations, value) == []


class TestExtractionModel:
    def test_defaults(self):
        extraction = Extraction()

        assert extraction.industry is None
        assert extraction.pain_points == []
        assert extraction.volume is None

    def test_collections_collapse_duplicates(self):
        extraction = Extraction(integrations=['CRM', 'WHATSAPP', 'CRM'])
        assert extraction.integrations == [Integrations.CRM, Integrations.WHATSAPP]

    def test_camel_payload(self):
        extraction = Extraction(industry='SALUD', volume={'quantity': 5, 'unit': 'DIARIO'})
        payload = extraction.to_payload()

        assert payload['industry'] == 'SALUD'
        assert payload['businessModel'] is None
        assert payload['painPoints'] == []
        assert payload['volume'] == {'quantity': 5, 'unit': 'DIARIO', 'isPeak': False}


class TestValidateExtractionStrict:
    def test_accepts_camel_case(self, model_payload: dict):
        extraction = validate_extraction_strict(model_payload)

        assert extraction.industry == Industry.RETAIL
        assert extraction.volume.unit == VolumeUnit.DIARIO

    def test_accepts_instance(self):
        original = Extraction(industry='SALUD')
        assert validate_extraction_strict(original) == original

    def test_rejects_unknown_token(self, model_payload: dict):
        model_payload['industry'] = 'NOT_A_REAL_INDUSTRY'

        with pytest.raises(InvariantViolationError) as exc_info:
            validate_extraction_strict(model_payload)
        assert exc_info.value.context['errors'][0]['loc'] == 'industry'

    def test_rejects_bad_collection_element(self, model_payload: dict):
        model_payload['painPoints'] = ['VOLUMEN_ALTO', 'NOPE']

        with pytest.raises(InvariantViolationError):
            validate_extraction_strict(model_payload)

    def test_rejects_legacy_volume_unit(self, model_payload: dict):
        model_payload['volume']['unit'] = 'SEMANA'

        with pytest.raises(InvariantViolationError):
            validate_extraction_strict(model_payload)


class TestValidateDeterministicStrict:
    def test_valid(self):
        result = DeterministicResult(
            lead_source=LeadSource.GOOGLE,
            volume=Volume(quantity=10, unit=VolumeUnit.SEMANAL),
            confidence={'leadSource': 0.9, 'volume': 0.85},
        )
        assert validate_deterministic_strict(result) == result

    def test_confidence_out_of_bounds(self):
        payload = {'leadSource': 'GOOGLE', 'confidence': {'leadSource': 1.5}}

        with pytest.raises(InvariantViolationError):
            validate_deterministic_strict(payload)

    def test_unknown_token(self):
        payload = {'integrations': ['CRM', 'FAX']}

        with pytest.raises(InvariantViolationError):
            validate_deterministic_strict(payload)

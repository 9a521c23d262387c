"""
Tests for transcript normalization.
"""

from meeting_insights.normalize import contains_phrase, normalize, strip_diacritics


class TestNormalize:
    def test_folds_case_accents_and_punctuation(self):
        assert normalize('¡Agenda, GESTIÓN de Citas!') == 'agenda gestion de citas'

    def test_enye_and_dieresis(self):
        assert normalize('Compañero pingüino') == 'companero pinguino'

    def test_none_and_empty(self):
        assert normalize(None) == ''
        assert normalize('') == ''
        assert normalize('   ') == ''

    def test_idempotent(self):
        text = 'Más de 1.500 mensajes al día, ¿verdad?'
        once = normalize(text)
        assert normalize(once) == once

    def test_digit_groups_are_joined(self):
        assert normalize('1.000 mensajes') == '1000 mensajes'
        assert normalize('2,500 consultas') == '2500 consultas'

    def test_decimal_like_numbers_are_not_joined(self):
        assert normalize('1,5 horas') == '1 5 horas'

    def test_collapses_whitespace(self):
        assert normalize('  hola \n\t mundo  ') == 'hola mundo'


class TestStripDiacritics:
    def test_removes_combining_marks(self):
        assert strip_diacritics('áéíóú ñ ü') == 'aeiou n u'

    def test_keeps_plain_ascii(self):
        assert strip_diacritics('plain text') == 'plain text'


class TestContainsPhrase:
    def test_matches_whole_word(self):
        text = normalize('Usamos SAP para la facturación')
        assert contains_phrase(text, 'sap')

    def test_matches_inside_longer_words(self):
        text = normalize('Queremos agendar citas')
        assert contains_phrase(text, 'agenda')

    def test_no_match(self):
        text = normalize('Es una empresa de logística')
        assert not contains_phrase(text, 'erp')

    def test_phrase_is_normalized(self):
        text = normalize('tienda en linea')
        assert contains_phrase(text, 'tienda en línea')

    def test_empty_phrase_never_matches(self):
        assert not contains_phrase('algo', '')
        assert not contains_phrase('algo', '¿?')

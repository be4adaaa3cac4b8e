"""
Unit tests for the Reference Matcher
Tests exact and partial matching of extracted text against reference lists
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from src.models.schemas import Doctor, ObraSocial, Study
from src.services.reference_matcher import (
    PrefixRule,
    match_best,
    match_doctor,
    match_obra_social,
    match_study
)


def os_list(*pairs):
    return [ObraSocial(obraSocialId=i, nombre=n) for i, n in pairs]


class TestMatchBest:
    """Test suite for the generic matcher"""

    def match(self, text, candidates, **kwargs):
        return match_best(
            text, candidates,
            name_of=lambda c: c.nombre,
            id_of=lambda c: c.obra_social_id,
            **kwargs
        )

    def test_partial_match_by_containment(self):
        assert self.match("OSDE BINARIO", os_list(("os1", "OSDE"))) == "os1"

    def test_exact_match_wins_over_earlier_partial(self):
        candidates = os_list(("os1", "OSDE"), ("os2", "OSDE BINARIO"))
        assert self.match("osde binario", candidates) == "os2"

    def test_case_and_whitespace_ignored(self):
        assert self.match("  Swiss Medical ", os_list(("os1", "SWISS MEDICAL"))) == "os1"

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_text_returns_empty(self, text):
        assert self.match(text, os_list(("os1", "OSDE"))) == ""

    def test_empty_candidates_returns_empty(self):
        assert self.match("OSDE", []) == ""

    def test_blank_candidate_names_are_skipped(self):
        candidates = os_list(("os0", "  "), ("os1", "OSDE"))
        assert self.match("IOMA", candidates) == ""

    def test_first_partial_in_list_order_wins(self):
        candidates = os_list(("os1", "OSDE 210"), ("os2", "OSDE 310"))
        assert self.match("OSDE", candidates) == "os1"

    def test_first_token_found_in_candidate_name(self):
        candidates = os_list(("os1", "IOMA"), ("os2", "GALENO ORO"))
        assert self.match("GALENO PLATA", candidates, prefix_rule=PrefixRule.FIRST_TOKEN) == "os2"

    def test_first_chars_found_in_candidate_name(self):
        candidates = os_list(("s1", "FACOEMULSIFICACION CON LIO PLEGABLE"))
        result = self.match(
            "FACOEMULSIFICACION CON LIO OD", candidates,
            prefix_rule=PrefixRule.FIRST_CHARS, prefix_length=20
        )
        assert result == "s1"

    def test_no_match(self):
        assert self.match("PAMI", os_list(("os1", "OSDE"), ("os2", "IOMA"))) == ""


class TestDomainMatchers:
    """Test suite for doctor/study/insurer wrappers"""

    def setup_method(self):
        self.doctors = [
            Doctor(doctorId="d1", name="PEREZ LUIS MARIA"),
            Doctor(doctorId="d2", name="ALVAREZ JUAN"),
        ]
        self.studies = [
            Study(studyId="s1", name="VITRECTOMIA POSTERIOR"),
            Study(studyId="s2", name="FACOEMULSIFICACION"),
        ]
        self.obras_sociales = os_list(("os1", "OSDE"), ("os2", "IOMA"))

    def test_doctor_exact(self):
        assert match_doctor("Alvarez Juan", self.doctors) == "d2"

    def test_doctor_by_surname(self):
        assert match_doctor("PEREZ L.", self.doctors) == "d1"

    def test_study_contained_in_practice(self):
        assert match_study("FACOEMULSIFICACION CON LIO", self.studies) == "s2"

    def test_obra_social(self):
        assert match_obra_social("IOMA - PLAN MATERNO", self.obras_sociales) == "os2"

    def test_unresolved_is_empty(self):
        assert match_obra_social("", self.obras_sociales) == ""
        assert match_study("CONSULTA", self.studies) == ""

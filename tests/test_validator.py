"""Tests for projectify.codes.validator -- multi-pass code validation.

Covers record structure, suffix pairing, known code types, TAB label
rules, row format, and driver references, plus the end-to-end scenarios.
"""

import pytest

from projectify.codes.parser import extract_record_strings
from projectify.codes.validator import (
    CodeValidator,
    clean_input_lines,
    extract_base_type,
    validate,
    validate_text,
)
from projectify.config.models import DiagnosticKind


# ===================================================================
# Helpers
# ===================================================================

def _run(text, reference_types):
    return CodeValidator(reference_types).run(extract_record_strings(text))


def _kinds(report):
    return [d.kind for d in report.diagnostics]


# ===================================================================
# End-to-end scenarios
# ===================================================================

class TestScenarios:
    def test_scenario_a_is_valid(self, scenario_a_text, reference_types):
        assert validate(extract_record_strings(scenario_a_text), reference_types) == []

    def test_scenario_b_two_diagnostics(self, scenario_b_text, reference_types):
        report = _run(scenario_b_text, reference_types)
        assert sorted(k.value for k in _kinds(report)) == [
            "DanglingDriverReference",
            "MissingPairedSuffix",
        ]

    def test_sample_model_is_valid(self, model_text, reference_types):
        assert validate_text(model_text, reference_types) == []

    def test_returns_strings(self, scenario_b_text, reference_types):
        messages = validate(extract_record_strings(scenario_b_text), reference_types)
        assert len(messages) == 2
        assert all(isinstance(m, str) for m in messages)
        assert any("UNITREV-VR" in m for m in messages)
        assert any('"AS1"' in m for m in messages)


# ===================================================================
# Pass 1 - structure
# ===================================================================

class TestStructure:
    def test_malformed_record(self, reference_types):
        report = CodeValidator(reference_types).run(['TAB; label1="X">'])
        assert _kinds(report) == [DiagnosticKind.MALFORMED_RECORD]

    def test_missing_closing_bracket(self, reference_types):
        report = CodeValidator(reference_types).run(['<TAB; label1="X"'])
        assert _kinds(report) == [DiagnosticKind.MALFORMED_RECORD]

    def test_break_record_exempt(self):
        # BR is not even in the (empty) reference set
        assert validate(["<BR>"], set()) == []

    def test_base_type_extraction(self):
        assert extract_base_type('<UNITREV-VR; driver1="AS1">') == "UNITREV-VR"
        assert extract_base_type("<MODEL>") == "MODEL"
        assert extract_base_type("< SUB-EV ;>") == "SUB-EV"


# ===================================================================
# Suffix pairing
# ===================================================================

class TestSuffixPairing:
    def test_vv_and_vr_need_ev_or_rv(self, reference_types):
        text = '<REV-VV; row1="A|x"><UNITREV-VR; driver1="A"; row1="B|y">'
        report = _run(text, reference_types)
        missing = report.of_kind(DiagnosticKind.MISSING_PAIRED_SUFFIX)
        assert [d.record for d in missing] == ["REV-VV", "UNITREV-VR"]
        assert len(report.diagnostics) == 2

    def test_one_diagnostic_per_code_type(self, reference_types):
        text = '<UNITREV-VR; row1="B|y"><UNITREV-VR; row1="C|y">'
        report = _run(text, reference_types)
        assert len(report.of_kind(DiagnosticKind.MISSING_PAIRED_SUFFIX)) == 1

    def test_rv_companion_satisfies_rule(self, reference_types):
        text = (
            '<REV-VV; row1="A|x">'
            '<UNITREV-VR; driver1="A"; row1="B|y">'
            '<HEAD-RV; row1="C|z">'
        )
        assert _run(text, reference_types).passed

    def test_ev_companion_anywhere_in_run(self, reference_types):
        text = '<UNITREV-VR; row1="B|y"><TAB; label1="T"><SUB-EV; row1="A|u">'
        assert _run(text, reference_types).passed

    def test_rr_needs_er_or_vr(self, reference_types):
        report = _run('<COST-RR; row1="C|z">', reference_types)
        assert _kinds(report) == [DiagnosticKind.MISSING_PAIRED_SUFFIX]
        assert "-ER or -VR" in report.diagnostics[0].message

    def test_rr_with_er(self, reference_types):
        assert _run('<COST-RR; row1="C|z"><COST-ER; row1="D|w">', reference_types).passed

    def test_rv_alone_needs_er_or_vr(self, reference_types):
        report = _run('<HEAD-RV; row1="C|z">', reference_types)
        assert _kinds(report) == [DiagnosticKind.MISSING_PAIRED_SUFFIX]

    def test_no_suffixed_codes(self, reference_types):
        assert _run('<TAB; label1="T">', reference_types).passed


# ===================================================================
# Pass 2 - per record
# ===================================================================

class TestPerRecord:
    def test_unknown_code_type(self, reference_types):
        report = _run('<FOO; row1="A|b">', reference_types)
        assert _kinds(report) == [DiagnosticKind.UNKNOWN_CODE_TYPE]
        assert '"FOO"' in report.diagnostics[0].message

    def test_row_needs_two_fields(self, reference_types):
        report = _run('<SUB-EV; row1="AS1">', reference_types)
        assert _kinds(report) == [DiagnosticKind.FORMAT_ERROR]

    def test_row_with_empty_identifier_is_well_formed(self, reference_types):
        assert _run('<SUB-EV; row1="|Revenue|">', reference_types).passed

    def test_collects_every_problem(self, reference_types):
        report = _run('<FOO-VV; row1="x"; driver1="nowhere">', reference_types)
        assert set(_kinds(report)) == {
            DiagnosticKind.UNKNOWN_CODE_TYPE,
            DiagnosticKind.MISSING_PAIRED_SUFFIX,
            DiagnosticKind.FORMAT_ERROR,
            DiagnosticKind.DANGLING_DRIVER_REFERENCE,
        }


class TestTabLabels:
    def test_missing_label(self, reference_types):
        report = _run('<TAB; timeseries="Monthly">', reference_types)
        assert _kinds(report) == [DiagnosticKind.MISSING_TAB_LABEL]

    def test_capitalised_spelling_accepted(self, reference_types):
        assert _run('<TAB; Label1="Revenue">', reference_types).passed

    def test_thirty_chars_allowed(self, reference_types):
        assert _run(f'<TAB; label1="{"x" * 30}">', reference_types).passed

    def test_too_long(self, reference_types):
        report = _run(f'<TAB; label1="{"x" * 31}">', reference_types)
        assert _kinds(report) == [DiagnosticKind.LABEL_TOO_LONG]

    @pytest.mark.parametrize("label", ["P&L", "A,B", "A:B", "A;B"])
    def test_illegal_characters(self, reference_types, label):
        report = _run(f'<TAB; label1="{label}">', reference_types)
        assert _kinds(report) == [DiagnosticKind.ILLEGAL_LABEL_CHARS]

    def test_duplicate_flagged_on_second_only(self, reference_types):
        text = '<TAB; label1="Revenue"><TAB; label1="Revenue"><TAB; label1="Costs">'
        records = extract_record_strings(text)
        report = CodeValidator(reference_types).run(records)
        dupes = report.of_kind(DiagnosticKind.DUPLICATE_LABEL)
        assert len(dupes) == 1
        assert dupes[0].record == records[1]

    def test_labels_on_other_codes_not_checked(self, reference_types):
        assert _run(f'<SUB-EV; label1="{"x" * 40}"; row1="A|b">', reference_types).passed


# ===================================================================
# Pass 3 - driver references
# ===================================================================

class TestDriverReferences:
    BASE = '<UNITREV-VR; driver1="AS9"; row1="X|y"><SUB-EV; row1="Q|r">'

    def test_dangling_reference(self, reference_types):
        report = _run(self.BASE, reference_types)
        assert _kinds(report) == [DiagnosticKind.DANGLING_DRIVER_REFERENCE]
        assert '"AS9"' in report.diagnostics[0].message

    def test_adding_row_resolves_reference(self, reference_types):
        text = self.BASE + '<SUB-EV; row1="AS9|units">'
        assert _run(text, reference_types).passed

    def test_reference_defined_later_in_run(self, reference_types):
        text = '<SUB-EV; driver1="LX1"><UNITEXP-VR; row1="LX1|COGS|10">'
        assert _run(text, reference_types).passed

    def test_driver_value_trimmed(self, reference_types):
        text = '<SUB-EV; driver1=" AS1 "; row1=" AS1 |Units">'
        assert _run(text, reference_types).passed


# ===================================================================
# Text entry point
# ===================================================================

class TestValidateText:
    def test_no_records(self, reference_types):
        assert validate_text("nothing here", reference_types) == [
            "No code strings found to validate"
        ]

    def test_pasted_list_lines(self, reference_types):
        lines = ["'<TAB; label1=\"Revenue\">',", "'<BR>'", ""]
        assert clean_input_lines(lines) == ['<TAB; label1="Revenue">', "<BR>"]
        assert validate_text(lines, reference_types) == []

    def test_reference_types_required(self):
        with pytest.raises(TypeError):
            validate_text('<TAB; label1="X">')

"""Tests for projectify.codes.collection -- keyed collection building."""

import pytest

from projectify.codes.collection import (
    build_collection,
    export_collection_text,
    populate_code_collection,
)
from projectify.codes.parser import parse_records
from projectify.config.models import Code


class TestBuildCollection:
    def test_unique_types_keep_bare_key(self):
        coll = populate_code_collection('<TAB; label1="X"><SUB-EV; row1="A|b">')
        assert coll.keys() == ["TAB", "SUB-EV"]

    def test_repeated_types_get_suffix(self):
        coll = populate_code_collection("<TAB><TAB><TAB>")
        assert coll.keys() == ["TAB", "TAB1", "TAB2"]

    def test_smallest_unused_suffix(self):
        # the literal A1 takes the next free slot after A1 itself
        coll = populate_code_collection("<A><A><A1><A>")
        assert coll.keys() == ["A", "A1", "A11", "A2"]

    def test_keys_unique(self, model_text):
        coll = populate_code_collection(model_text)
        keys = coll.keys()
        assert len(keys) == len(set(keys)) == 11

    def test_sample_model_keys(self, model_text):
        coll = populate_code_collection(model_text)
        assert coll.keys() == [
            "MODEL", "TAB", "BR", "SUB-EV", "UNITREV-VR", "UNITEXP-VR",
            "TAB1", "BR1", "SUB-EV1", "UNITREV-VR1", "UNITEXP-VR1",
        ]

    def test_base_type_preserved(self, model_text):
        coll = populate_code_collection(model_text)
        assert coll["TAB1"].base_type == "TAB"
        assert coll["TAB1"].label(1) == "Tab 2"

    def test_insertion_order(self):
        coll = populate_code_collection("<Z><A><M>")
        assert [c.base_type for c in coll.values()] == ["Z", "A", "M"]

    def test_entries_are_codes(self, scenario_a_text):
        coll = build_collection(parse_records(scenario_a_text))
        assert all(isinstance(c, Code) for c in coll.values())
        assert "SUB-EV" in coll
        assert len(coll) == 3

    def test_empty_input(self):
        coll = populate_code_collection("nothing to see")
        assert len(coll) == 0

    @pytest.mark.parametrize("text", ["<>", '< ; label1="x">', '<TAB; label1="X"><><BR>'])
    def test_blank_base_type_does_not_break_build(self, text):
        coll = populate_code_collection(text)
        assert "" not in coll
        assert all(key for key in coll.keys())


class TestExportCollectionText:
    def test_lists_non_empty_attributes(self, scenario_a_text):
        text = export_collection_text(populate_code_collection(scenario_a_text))
        assert "Code: TAB" in text
        assert "label1: Revenue" in text
        assert "driver1: AS1" in text
        assert "row2: LRA1|Grapefruits|F|" in text
        # empty slots are not listed
        assert "row3" not in text

    def test_delete_flag_listed(self):
        text = export_collection_text(populate_code_collection("<SUB-EV; Delete>"))
        assert "Delete: True" in text

    @pytest.mark.parametrize("text", ["", "no records"])
    def test_empty_collection(self, text):
        out = export_collection_text(populate_code_collection(text))
        assert "Code:" not in out

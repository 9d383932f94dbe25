"""Tests for value coercion and row formatting."""

import pytest

from rowbridge.engine.coercion import (
    clean_cell,
    coerce_export,
    coerce_import,
    export_boolean,
    import_boolean,
    join_list,
    split_list,
)
from rowbridge.engine.formatting import escape_cell, format_line, format_row, split_row
from rowbridge.store import FieldKind, FieldType

BOOLEAN_MAP = {"Yes": True, "No": False}


class TestCleanCell:
    """Test cell cleanup on import."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ('"Bob"', "Bob"),
            ('  "Bob"  ', "Bob"),
            ('" Bob "', "Bob"),
            ("Bob", "Bob"),
            ('""x""', '"x"'),
            ('"open', '"open'),
        ],
    )
    def test_strips_one_quote_pair_and_trims(self, raw, expected):
        assert clean_cell(raw) == expected

    @pytest.mark.parametrize("raw", ['""', "   ", '"  "', "", None])
    def test_empty_cells_are_absent(self, raw):
        assert clean_cell(raw) is None


class TestBooleans:
    """Test boolean word mapping."""

    def test_import_is_case_insensitive(self):
        assert import_boolean("yes", BOOLEAN_MAP) is True
        assert import_boolean("NO", BOOLEAN_MAP) is False

    def test_unknown_word_is_none(self):
        assert import_boolean("Maybe", BOOLEAN_MAP) is None
        assert import_boolean(None, BOOLEAN_MAP) is None

    def test_export_finds_first_matching_word(self):
        assert export_boolean(True, {"Ja": True, "Yes": True, "No": False}) == "Ja"
        assert export_boolean(False, BOOLEAN_MAP) == "No"

    def test_export_without_match_is_empty(self):
        assert export_boolean(None, BOOLEAN_MAP) == ""
        assert export_boolean("Yes", BOOLEAN_MAP) == ""

    def test_export_does_not_confuse_integers_with_booleans(self):
        assert export_boolean(1, BOOLEAN_MAP) == ""
        assert export_boolean(0, BOOLEAN_MAP) == ""

    def test_mapping_is_symmetric(self):
        for word, flag in BOOLEAN_MAP.items():
            assert import_boolean(word, BOOLEAN_MAP) is flag
            assert BOOLEAN_MAP[export_boolean(flag, BOOLEAN_MAP)] is flag


class TestLists:
    """Test list splitting and joining."""

    def test_split_drops_empty_elements(self):
        assert split_list("a,,b,", None) == ["a", "b"]

    def test_split_uses_separator(self):
        assert split_list("a|b|c", "|") == ["a", "b", "c"]

    def test_split_of_absent_is_none(self):
        assert split_list(None) is None

    def test_join_skips_empty_values(self):
        assert join_list(["a", "", None, "b"], "|") == "a|b"


class TestCoerce:
    """Test dispatch on field kinds."""

    def test_import_without_descriptor_passes_through(self):
        assert coerce_import("Yes", None, BOOLEAN_MAP) == "Yes"

    def test_import_by_kind(self):
        assert coerce_import("Yes", FieldType(FieldKind.BOOLEAN), BOOLEAN_MAP) is True
        assert coerce_import("a;b", FieldType(FieldKind.LIST), BOOLEAN_MAP, ";") == ["a", "b"]
        assert coerce_import("admin", FieldType(FieldKind.ENUM_SCALAR, enum=("admin",)), BOOLEAN_MAP) == "admin"

    def test_import_of_absent_stays_absent(self):
        assert coerce_import(None, FieldType(FieldKind.LIST), BOOLEAN_MAP) is None

    def test_export_by_kind(self):
        assert coerce_export(False, FieldType(FieldKind.BOOLEAN), BOOLEAN_MAP) == "No"
        assert coerce_export(["a", "b"], FieldType(FieldKind.LIST), BOOLEAN_MAP, "|") == "a|b"
        assert coerce_export(7, FieldType(), BOOLEAN_MAP) == 7
        assert coerce_export(True, None, BOOLEAN_MAP) is True


class TestFormatting:
    """Test cell escaping and row formatting."""

    def test_escape_cell(self):
        assert escape_cell("Bob") == '"Bob"'
        assert escape_cell("") == '""'
        assert escape_cell(42) == "42"
        assert escape_cell(1.5) == "1.5"
        assert escape_cell(None) == ""
        assert escape_cell(True) == "true"

    def test_format_row(self):
        assert format_row(["Name", 1, None], ";") == '"Name";1;'

    def test_format_line_appends_terminator(self):
        assert format_line(["a", "b"], ",", "\r\n") == '"a","b"\r\n'

    def test_split_row(self):
        assert split_row('"a";"b"\r\n', ";") == ['"a"', '"b"']
        assert split_row("a;;c", ";") == ["a", "", "c"]

    def test_header_and_row_align(self):
        labels = ["Name", "Active", "Tags"]
        assert len(split_row(format_row(labels))) == len(labels)

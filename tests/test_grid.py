"""
Unit tests for the sheet document model and A1 helpers
"""

import json

import pytest

from sheetdash.errors import InvalidInputError
from sheetdash.sheets import (
    Sheet,
    Workbook,
    a1_to_row_col,
    col_to_letters,
    default_document,
    extract_range_2d,
    find_next_available_row,
    letters_to_col,
    parse_a1_range,
    parse_number
)
from sheetdash.sheets.a1 import build_a1_range


class TestA1Notation:
    """Test cases for column letters and A1 references"""

    def test_col_to_letters(self):
        """Test zero-based index to letters"""
        assert col_to_letters(0) == "A"
        assert col_to_letters(25) == "Z"
        assert col_to_letters(26) == "AA"
        assert col_to_letters(701) == "ZZ"
        assert col_to_letters(702) == "AAA"

    def test_letters_to_col_inverts_col_to_letters(self):
        """Test letters back to index"""
        for index in (0, 1, 25, 26, 51, 700, 702):
            assert letters_to_col(col_to_letters(index)) == index
        assert letters_to_col("ab") == 27

    def test_a1_to_row_col(self):
        """Test A1 references to zero-based coordinates"""
        assert a1_to_row_col("B2") == (1, 1)
        assert a1_to_row_col("A1") == (0, 0)
        assert a1_to_row_col("AA10") == (9, 26)

    def test_unparsable_reference_resolves_to_origin(self):
        """Test garbage input"""
        assert a1_to_row_col("???") == (0, 0)

    def test_parse_a1_range_normalizes_corners(self):
        """Test reversed ranges are normalized"""
        assert parse_a1_range("C3:A1") == (0, 0, 2, 2)
        assert parse_a1_range("B2") == (1, 1, 1, 1)

    def test_build_a1_range(self):
        """Test range text from bounds"""
        assert build_a1_range(0, 0, 5, 2) == "A1:C6"
        assert build_a1_range(3, 1, 3, 1) == "B4"


class TestParseNumber:
    """Test cases for numeric cell interpretation"""

    def test_numbers(self):
        assert parse_number("42") == 42
        assert parse_number(" 3.5 ") == 3.5
        assert parse_number(7) == 7

    def test_non_numbers(self):
        assert parse_number("") is None
        assert parse_number("abc") is None
        assert parse_number(None) is None
        assert parse_number(True) is None
        assert parse_number("inf") is None


class TestWorkbook:
    """Test cases for parsing and serializing the stored document"""

    def test_default_document_has_one_empty_sheet(self):
        """Test the document given to new spreadsheets"""
        data = json.loads(default_document())
        assert len(data) == 1
        assert data[0]["name"] == "Sheet1"
        assert data[0]["cols"]["len"] == 26
        assert data[0]["rows"]["len"] == 100
        assert data[0]["cells"] == {}

    def test_blank_text_is_empty_workbook(self):
        assert Workbook.loads(None).sheets == []
        assert Workbook.loads("  ").sheets == []

    def test_invalid_json_raises(self):
        with pytest.raises(InvalidInputError):
            Workbook.loads("{not json")

    def test_non_list_raises(self):
        with pytest.raises(InvalidInputError):
            Workbook.loads("42")

    def test_flat_cells_survive_dump_and_load(self):
        """Test flat "<row>_<col>" cell keys and unknown keys are kept"""
        raw = [{
            "name": "Data",
            "cells": {"0_0": {"text": "Name"}, "1_0": {"text": "Alice", "style": 2}},
            "cols": {"len": 26, "0": {"width": 120}},
            "rows": {"len": 100},
            "validations": ["keep me"],
        }]
        workbook = Workbook.loads(json.dumps(raw))
        sheet = workbook.sheets[0]
        assert sheet.text(0, 0) == "Name"
        assert sheet.get(1, 0).style == 2

        dumped = json.loads(workbook.dumps())[0]
        assert dumped["cells"]["1_0"] == {"text": "Alice", "style": 2}
        assert dumped["cols"]["0"] == {"width": 120}
        assert dumped["validations"] == ["keep me"]

    def test_nested_row_layout_is_read(self):
        """Test rows[r].cells[c] as written by the widget"""
        raw = [{"name": "S", "rows": {"len": 10, "2": {"cells": {"1": {"text": "x"}}}}}]
        sheet = Workbook.loads(json.dumps(raw)).sheets[0]
        assert sheet.text(2, 1) == "x"

    def test_malformed_cell_keys_are_skipped(self):
        raw = [{"name": "S", "cells": {"bad": {"text": "x"}, "0_1": {"text": "ok"}}}]
        sheet = Workbook.loads(json.dumps(raw)).sheets[0]
        assert list(sheet.cells) == [(0, 1)]

    def test_sheet_lookup_ignores_case(self):
        workbook = Workbook(sheets=[Sheet(name="Sales"), Sheet(name="Costs")])
        assert workbook.sheet(" sales ").name == "Sales"
        assert workbook.sheet("missing") is None
        assert workbook.sheet_or_first("missing").name == "Sales"

    def test_set_grows_dimensions(self):
        sheet = Sheet()
        sheet.set(150, 30, "far")
        assert sheet.row_len == 151
        assert sheet.col_len == 31


class TestFindNextAvailableRow:
    """Test cases for locating the first free row"""

    def test_empty_sheet(self):
        assert find_next_available_row(Sheet()) == 0
        assert find_next_available_row(Sheet(), start_row=4) == 4

    def test_content_only_in_row_five(self):
        sheet = Sheet()
        sheet.set(5, 0, "x")
        assert find_next_available_row(sheet, 0) == 6

    def test_intervening_blank_rows_are_ignored(self):
        """Test blank and whitespace rows do not change the answer"""
        sheet = Sheet()
        sheet.set(0, 0, "a")
        sheet.set(1, 0, "   ")
        sheet.set(3, 2, "b")
        sheet.set(4, 0, "")
        assert find_next_available_row(sheet) == 4


class TestExtractRange:
    """Test cases for reading a rectangular range"""

    @pytest.fixture
    def sheet(self):
        sheet = Sheet()
        sheet.set(0, 0, "Month")
        sheet.set(0, 1, "Sales")
        sheet.set(1, 0, "Jan")
        sheet.set(1, 1, "10")
        sheet.set(2, 0, "Feb")
        sheet.set(2, 1, "20.5")
        sheet.set(3, 0, "Total")
        sheet.set(3, 1, "=SUM(B2:B3)")
        return sheet

    def test_numbers_are_converted(self, sheet):
        assert extract_range_2d(sheet, "A1:B3") == [["Month", "Sales"], ["Jan", 10], ["Feb", 20.5]]

    def test_sum_formula_is_evaluated(self, sheet):
        assert extract_range_2d(sheet, "B4") == [[30.5]]

    def test_nested_sum_is_evaluated(self, sheet):
        sheet.set(4, 1, "=SUM(B4:B4)")
        assert extract_range_2d(sheet, "B5") == [[30.5]]

    def test_self_referencing_sum_terminates(self):
        sheet = Sheet()
        sheet.set(0, 0, "5")
        sheet.set(1, 0, "=SUM(A1:A2)")
        assert extract_range_2d(sheet, "A2") == [[5]]

    def test_missing_cells_are_empty_strings(self, sheet):
        assert extract_range_2d(sheet, "C1:C2") == [[""], [""]]

    def test_oversized_range_is_limited_to_grid(self):
        sheet = Sheet()
        sheet.set(0, 0, "x")
        rows = extract_range_2d(sheet, "A1:Z200000")
        assert len(rows) == 100
        assert rows[0][0] == "x"

    def test_grid_grows_with_stored_cells(self):
        sheet = Sheet()
        sheet.set(149, 0, "7")
        assert len(extract_range_2d(sheet, "A1:A100000")) == 150

    def test_range_past_grid_is_empty(self):
        assert extract_range_2d(Sheet(), "A5000:B6000") == []

    def test_sum_over_oversized_range(self):
        sheet = Sheet()
        sheet.set(0, 0, "2")
        sheet.set(1, 0, "3")
        sheet.set(2, 1, "=SUM(A1:A9999999)")
        assert extract_range_2d(sheet, "B3") == [[5]]

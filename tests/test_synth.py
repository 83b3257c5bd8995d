"""
Unit tests for sample table synthesis and text rendering
"""

import pytest

from sheetdash.errors import InvalidInputError
from sheetdash.sheets import Sheet, Workbook, create_table, insert_marker, records_to_sheet, sheet_to_text
from sheetdash.sheets.render import EMPTY_SHEET_TEXT, field_to_text
from sheetdash.sheets.synth import clamp_rows, sample_value


class TestSampleValue:
    """Test cases for header-driven sample values"""

    def test_values_are_deterministic(self):
        assert sample_value("Salary", 3) == sample_value("Salary", 3)

    @pytest.mark.parametrize("header,expected", [
        ("Email", "alice.johnson@example.com"),
        ("Phone", "(555) 010-1000"),
        ("Employee ID", "ID1001"),
        ("Order Date", "2024-01-01"),
        ("Salary", "55000"),
        ("Department", "Engineering"),
        ("First Name", "Alice"),
        ("Name", "Alice Johnson"),
        ("Widget", "Widget 1"),
    ])
    def test_first_row_values(self, header, expected):
        assert sample_value(header, 0) == expected

    def test_short_keywords_need_whole_words(self):
        """Test "age" does not match inside "manager" """
        assert sample_value("Age", 0) == "28"
        assert sample_value("Manager", 0) == "Manager 1"

    def test_pools_cycle(self):
        assert sample_value("Gender", 0) == "Female"
        assert sample_value("Gender", 2) == "Female"

    def test_clamp_rows(self):
        assert clamp_rows(0) == 1
        assert clamp_rows(5000) == 1000
        assert clamp_rows(7) == 7


class TestCreateTable:
    """Test cases for create_table"""

    def test_writes_headers_and_rows_on_first_sheet(self):
        workbook = Workbook(sheets=[Sheet()])
        result = create_table(workbook, ["Name", "Age"], 3)
        sheet = workbook.sheets[0]

        assert result.sheet_name == "Sheet1"
        assert not result.created_sheet
        assert result.range == "A1:B4"
        assert sheet.text(0, 0) == "Name"
        assert sheet.text(3, 1) == sample_value("Age", 2)
        assert result.message == (
            "Created a table with 3 rows and columns Name, Age in sheet 'Sheet1' at A1:B4."
        )

    def test_appends_below_existing_content(self):
        sheet = Sheet()
        sheet.set(4, 0, "existing")
        workbook = Workbook(sheets=[sheet])
        result = create_table(workbook, ["x"], 2)
        assert result.start_row == 5
        assert result.range == "A6:A8"

    def test_creates_missing_named_sheet(self):
        workbook = Workbook(sheets=[Sheet()])
        result = create_table(workbook, ["Product", "Price"], 2, sheet_name="Inventory")
        assert result.created_sheet
        assert [s.name for s in workbook.sheets] == ["Sheet1", "Inventory"]
        assert "new sheet 'Inventory'" in result.message

    def test_named_sheet_matches_case_insensitively(self):
        workbook = Workbook(sheets=[Sheet(name="Sales")])
        result = create_table(workbook, ["a"], 1, sheet_name="sales")
        assert not result.created_sheet
        assert len(workbook.sheets) == 1

    def test_empty_workbook_gets_sheet1(self):
        workbook = Workbook()
        create_table(workbook, ["a"], 1)
        assert workbook.sheets[0].name == "Sheet1"

    def test_row_count_is_clamped(self):
        workbook = Workbook(sheets=[Sheet()])
        result = create_table(workbook, ["a"], 5000)
        assert result.num_rows == 1000
        assert workbook.sheets[0].row_len >= 1001

    def test_headers_are_required(self):
        with pytest.raises(InvalidInputError):
            create_table(Workbook(), ["", "  "], 3)


class TestInsertMarker:
    """Test cases for insert_marker"""

    def test_marker_goes_to_next_free_row(self):
        sheet = Sheet()
        sheet.set(0, 0, "a")
        sheet.set(2, 3, "b")
        workbook = Workbook(sheets=[sheet])
        assert insert_marker(workbook) == ("Sheet1", 3)
        assert sheet.text(3, 0) == "test"

    def test_empty_workbook_gets_a_sheet(self):
        workbook = Workbook()
        assert insert_marker(workbook, "hello") == ("Sheet1", 0)


class TestRender:
    """Test cases for sheet text rendering and Airtable records"""

    def test_empty_sheet(self):
        assert sheet_to_text(Sheet()) == EMPTY_SHEET_TEXT

    def test_rows_are_numbered_from_one(self):
        sheet = Sheet()
        sheet.set(0, 0, "Name")
        sheet.set(0, 1, "Age")
        sheet.set(2, 0, "Bob")
        assert sheet_to_text(sheet) == "Row 1: Name | Age\nRow 3: Bob | "

    @pytest.mark.parametrize("value,expected", [
        (None, ""),
        (True, "true"),
        (["a", "b"], "a, b"),
        ({"k": 1}, '{"k": 1}'),
        (3.5, "3.5"),
    ])
    def test_field_to_text(self, value, expected):
        assert field_to_text(value) == expected

    def test_records_to_sheet_uses_union_of_fields(self):
        records = [
            {"id": "rec1", "fields": {"Name": "Alice", "Tags": ["x", "y"]}},
            {"id": "rec2", "fields": {"Name": "Bob", "Active": False}},
        ]
        sheet = records_to_sheet("People", records)
        assert sheet.name == "People"
        assert [sheet.text(0, c) for c in range(3)] == ["Name", "Tags", "Active"]
        assert sheet.text(1, 1) == "x, y"
        assert sheet.text(1, 2) == ""
        assert sheet.text(2, 2) == "false"

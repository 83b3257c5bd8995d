"""Spreadsheet document utilities"""
from .grid import Cell, Sheet, Workbook, default_document, find_next_available_row, parse_number
from .a1 import a1_to_row_col, col_to_letters, extract_range_2d, letters_to_col, parse_a1_range
from .csv_io import export_csv, import_csv
from .stats import calculate_column_stats
from .synth import create_table, insert_marker
from .render import records_to_sheet, sheet_to_text

__all__ = [
    "Cell",
    "Sheet",
    "Workbook",
    "default_document",
    "find_next_available_row",
    "parse_number",
    "a1_to_row_col",
    "col_to_letters",
    "extract_range_2d",
    "letters_to_col",
    "parse_a1_range",
    "export_csv",
    "import_csv",
    "calculate_column_stats",
    "create_table",
    "insert_marker",
    "records_to_sheet",
    "sheet_to_text",
]

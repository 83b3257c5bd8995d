"""CSV conversion for the spreadsheet document"""
import csv
import io
import logging
from typing import List

from ..errors import InvalidInputError
from .grid import DEFAULT_COLS, DEFAULT_ROWS, DEFAULT_SHEET_NAME, Sheet, Workbook

logger = logging.getLogger(__name__)

IMPORT_STYLE = 0


def export_csv(workbook: Workbook) -> str:
    """
    Export the first sheet as CSV.

    The output covers the bounding rectangle of every cell key. Fields that
    contain a comma, quote or newline are quoted with quotes doubled.

    Args:
        workbook: Parsed document

    Returns:
        CSV text without a trailing newline; "" when there is nothing to export
    """
    sheet = workbook.first_sheet()
    if sheet is None:
        return ""
    bounds = sheet.bounds()
    if bounds is None:
        return ""

    max_row, max_col = bounds
    lines = [
        ",".join(quote_field(sheet.text(r, c)) for c in range(max_col + 1))
        for r in range(max_row + 1)
    ]
    logger.debug(f"Exported {max_row + 1}x{max_col + 1} cells from sheet '{sheet.name}'")
    return "\n".join(lines)


def quote_field(value: str) -> str:
    """Quote a field containing a comma, quote or newline; empty stays empty"""
    if any(ch in value for ch in (",", '"', "\n", "\r")):
        return '"' + value.replace('"', '""') + '"'
    return value


def parse_csv_line(line: str) -> List[str]:
    """Split one CSV line, honouring quoted fields and doubled quotes"""
    return next(csv.reader([line]), [""])


def parse_csv(text: str) -> List[List[str]]:
    """
    Tokenize CSV text into rows.

    Quoted fields may span lines. Lines that are empty or whitespace-only
    are dropped.

    Raises:
        InvalidInputError: if the text cannot be tokenized
    """
    try:
        rows = list(csv.reader(io.StringIO(text, newline="")))
    except csv.Error as e:
        raise InvalidInputError(f"Failed to import CSV data: {e}") from e
    return [row for row in rows if len(row) > 1 or (row and row[0].strip())]


def import_csv(text: str) -> Workbook:
    """
    Build a single-sheet workbook from CSV text.

    Values are trimmed and blank values are not stored.

    Args:
        text: CSV content

    Returns:
        Workbook holding one sheet named Sheet1
    """
    rows = parse_csv(text)
    width = len(rows[0]) if rows else 0

    sheet = Sheet(
        name=DEFAULT_SHEET_NAME,
        col_len=max(DEFAULT_COLS, width),
        row_len=max(DEFAULT_ROWS, len(rows))
    )
    for r, row in enumerate(rows):
        for c, value in enumerate(row):
            value = value.strip()
            if value:
                sheet.set(r, c, value, style=IMPORT_STYLE)

    logger.info(f"Imported CSV with {len(rows)} rows and {len(sheet.cells)} non-empty cells")
    return Workbook(sheets=[sheet])

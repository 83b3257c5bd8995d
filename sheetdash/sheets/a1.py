"""A1 notation helpers and range extraction"""
import re
from typing import Any, List, NamedTuple, Optional, Set

from .grid import DEFAULT_COLS, DEFAULT_ROWS, Cell, CellKey, Sheet, parse_number

_A1_PATTERN = re.compile(r"([A-Za-z]+)(\d+)")
_SUM_PATTERN = re.compile(r"SUM\(([^)]+)\)", re.IGNORECASE)


class CellRef(NamedTuple):
    """Zero-based cell coordinates"""
    row: int
    col: int


class RangeBounds(NamedTuple):
    """Normalized zero-based inclusive range"""
    r1: int
    c1: int
    r2: int
    c2: int


def col_to_letters(col_index: int) -> str:
    """Convert a zero-based column index to letters (0 -> A, 26 -> AA)"""
    n = col_index + 1
    letters = ""
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters = chr(65 + rem) + letters
    return letters


def letters_to_col(letters: str) -> int:
    """Convert column letters to a zero-based index (A -> 0, AA -> 26)"""
    col = 0
    for ch in letters.upper():
        col = col * 26 + (ord(ch) - 64)
    return col - 1


def a1_to_row_col(a1: str) -> CellRef:
    """
    Convert an A1 reference to zero-based coordinates.

    Unparsable references resolve to (0, 0).
    """
    match = _A1_PATTERN.search(a1 or "")
    if not match:
        return CellRef(0, 0)
    letters, row_str = match.groups()
    return CellRef(int(row_str) - 1, letters_to_col(letters))


def row_col_to_a1(row: int, col: int) -> str:
    return f"{col_to_letters(col)}{row + 1}"


def parse_a1_range(range_str: str) -> RangeBounds:
    """Parse "A1:C10" (or a single reference) into normalized bounds"""
    start, _, end = (range_str or "").partition(":")
    s = a1_to_row_col(start)
    e = a1_to_row_col(end) if end else s
    return RangeBounds(
        min(s.row, e.row),
        min(s.col, e.col),
        max(s.row, e.row),
        max(s.col, e.col)
    )


def build_a1_range(r1: int, c1: int, r2: int, c2: int) -> str:
    start = row_col_to_a1(r1, c1)
    end = row_col_to_a1(r2, c2)
    if start == end:
        return start
    return f"{start}:{end}"


def clamp_to_sheet(sheet: Sheet, bounds: RangeBounds) -> RangeBounds:
    """
    Limit bounds to the sheet's grid.

    The grid is at least the default size and always covers every stored
    cell. A range starting past the grid comes back empty (r1 > r2).
    """
    last = sheet.bounds() or (0, 0)
    max_row = max(last[0], DEFAULT_ROWS - 1)
    max_col = max(last[1], DEFAULT_COLS - 1)
    return RangeBounds(
        bounds.r1,
        bounds.c1,
        min(bounds.r2, max_row),
        min(bounds.c2, max_col)
    )


def _raw_value(cell: Optional[Cell]) -> Any:
    if cell is None:
        return ""
    if cell.value is not None and cell.value != "":
        return cell.value
    return cell.text


def _sum_range(sheet: Sheet, range_str: str, visiting: Set[CellKey]) -> float:
    bounds = clamp_to_sheet(sheet, parse_a1_range(range_str))
    total = 0
    for r in range(bounds.r1, bounds.r2 + 1):
        for c in range(bounds.c1, bounds.c2 + 1):
            number = parse_number(_resolve(sheet, r, c, visiting))
            if number is not None:
                total += number
    return total


def _resolve(sheet: Sheet, row: int, col: int, visiting: Set[CellKey]) -> Any:
    if (row, col) in visiting:
        return 0
    cell = sheet.get(row, col)
    value = _raw_value(cell)
    text = cell.text if cell else ""

    if text.startswith("="):
        match = _SUM_PATTERN.search(text)
        if match:
            visiting.add((row, col))
            try:
                return _sum_range(sheet, match.group(1), visiting)
            finally:
                visiting.discard((row, col))
    return value


def extract_range_2d(sheet: Sheet, range_str: str) -> List[List[Any]]:
    """
    Read a rectangular range as a 2-D list.

    Numeric-looking values become numbers. Cells holding a SUM(...) formula
    are replaced by the sum of the referenced range; other formulas are
    returned as stored.

    Args:
        sheet: Source sheet
        range_str: A1 range such as "A1:C10"

    Returns:
        Row-major list of values
    """
    bounds = clamp_to_sheet(sheet, parse_a1_range(range_str))
    rows = []
    for r in range(bounds.r1, bounds.r2 + 1):
        row = []
        for c in range(bounds.c1, bounds.c2 + 1):
            value = _resolve(sheet, r, c, set())
            number = parse_number(value)
            row.append(number if number is not None else value)
        rows.append(row)
    return rows

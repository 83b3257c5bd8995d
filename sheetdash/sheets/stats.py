"""Column statistics over a header located by fuzzy name match"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..errors import InvalidInputError
from .grid import Number, Sheet, Workbook, find_next_available_row, parse_number

logger = logging.getLogger(__name__)

OPERATIONS = ("sum", "average", "count", "min", "max")
OPERATION_ALIASES = {"avg": "average", "mean": "average", "calculate": "sum", "total": "sum"}


@dataclass
class ColumnMatch:
    """Header cell matched for a requested column name"""
    sheet: Sheet
    row: int
    col: int
    header: str


@dataclass
class ColumnStats:
    """Statistics for one column plus where the result row was written"""
    column_name: str
    sheet_name: str
    operation: str
    result: Number
    count: int
    sum: Number
    average: float
    min: Number
    max: Number
    result_row: int


def normalize_operation(operation: str) -> str:
    op = (operation or "").strip().lower()
    op = OPERATION_ALIASES.get(op, op)
    if op not in OPERATIONS:
        raise InvalidInputError(f"Unsupported operation '{operation}'")
    return op


def _header_candidates(workbook: Workbook) -> List[ColumnMatch]:
    candidates = []
    for sheet in workbook.sheets:
        for (row, col), cell in sheet.iter_cells():
            text = cell.text.strip()
            if text and parse_number(text) is None:
                candidates.append(ColumnMatch(sheet=sheet, row=row, col=col, header=text))
    return candidates


def find_column(workbook: Workbook, column_name: str) -> Optional[ColumnMatch]:
    """
    Locate the header cell for a column name across all sheets.

    An exact case-insensitive match wins; otherwise the first header that
    contains the name, or is contained in it, is used.
    """
    wanted = (column_name or "").strip().lower()
    if not wanted:
        return None

    candidates = _header_candidates(workbook)
    for candidate in candidates:
        if candidate.header.lower() == wanted:
            return candidate
    for candidate in candidates:
        header = candidate.header.lower()
        if wanted in header or header in wanted:
            return candidate
    return None


def collect_numeric_values(sheet: Sheet, header_row: int, col: int) -> List[Number]:
    """Numeric values below the header row in one column; blanks and text are skipped"""
    values = []
    for (row, c), cell in sheet.iter_cells():
        if c != col or row <= header_row:
            continue
        number = parse_number(cell.value if cell.value not in (None, "") else cell.text)
        if number is not None:
            values.append(number)
    return values


def summarize(values: List[Number]) -> Tuple[Number, float, Number, Number]:
    total = sum(values)
    return total, total / len(values), min(values), max(values)


def _format_result(value: Number) -> str:
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return f"{value:.2f}".rstrip("0").rstrip(".")
    return str(value)


def calculate_column_stats(workbook: Workbook, column_name: str, operation: str = "sum") -> ColumnStats:
    """
    Compute a statistic for a column and append a labeled result row.

    Args:
        workbook: Parsed document; the matched sheet is modified in place
        column_name: Requested column, matched fuzzily against header cells
        operation: sum, average/avg, count, min or max

    Returns:
        Column statistics including the row the result was written to

    Raises:
        InvalidInputError: unknown operation, column not found, or no numeric values
    """
    op = normalize_operation(operation)

    match = find_column(workbook, column_name)
    if match is None:
        raise InvalidInputError(f"Column '{column_name}' not found")

    values = collect_numeric_values(match.sheet, match.row, match.col)
    if not values:
        raise InvalidInputError(f"No numeric values found in column '{match.header}'")

    total, average, minimum, maximum = summarize(values)
    result = {
        "sum": total,
        "average": average,
        "count": len(values),
        "min": minimum,
        "max": maximum,
    }[op]

    result_row = find_next_available_row(match.sheet, match.row)
    match.sheet.set(result_row, match.col, f"{op.upper()} of {match.header}")
    match.sheet.set(result_row, match.col + 1, _format_result(result))

    logger.info(
        f"Calculated {op} of '{match.header}' in sheet '{match.sheet.name}': "
        f"{result} from {len(values)} values (written to row {result_row + 1})"
    )

    return ColumnStats(
        column_name=match.header,
        sheet_name=match.sheet.name,
        operation=op,
        result=result,
        count=len(values),
        sum=total,
        average=average,
        min=minimum,
        max=maximum,
        result_row=result_row
    )

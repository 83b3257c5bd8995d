"""Sample table synthesis for AI-created tables"""
import logging
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Sequence, Tuple

from ..errors import InvalidInputError
from .a1 import build_a1_range
from .grid import Sheet, Workbook, DEFAULT_SHEET_NAME, find_next_available_row

logger = logging.getLogger(__name__)

MIN_ROWS = 1
MAX_ROWS = 1000

_BASE_DATE = date(2024, 1, 1)

FIRST_NAMES = ["Alice", "Bob", "Carol", "David", "Eva", "Frank", "Grace", "Henry"]
LAST_NAMES = ["Johnson", "Smith", "Williams", "Brown", "Davis", "Miller", "Wilson", "Moore"]

# (keywords, pool); keywords of three letters or fewer must match a whole word
_POOLS: List[Tuple[Sequence[str], Sequence[str]]] = [
    (("salary", "wage", "income"), ["55000", "62000", "71000", "84000", "93000", "48000", "105000"]),
    (("price", "cost", "amount", "total", "revenue", "fee"),
     ["19.99", "49.50", "99.00", "149.99", "249.00", "12.50", "75.25", "199.99"]),
    (("quantity", "qty", "stock", "units"), ["5", "12", "8", "20", "3", "15", "7", "10"]),
    (("age",), ["28", "35", "42", "23", "31", "47", "39", "26"]),
    (("gender", "sex"), ["Female", "Male"]),
    (("year",), ["2021", "2022", "2023", "2024"]),
    (("score", "rating"), ["4.5", "3.8", "4.9", "4.2", "3.5", "4.7"]),
    (("grade",), ["A", "B+", "A-", "B", "C+", "A"]),
    (("course", "subject"), ["Mathematics", "Physics", "Chemistry", "Biology", "History", "Computer Science"]),
    (("department", "dept", "team"), ["Engineering", "Sales", "Marketing", "Finance", "Human Resources", "Operations"]),
    (("position", "title", "role", "job"),
     ["Software Engineer", "Product Manager", "Data Analyst", "Designer", "Sales Manager", "Accountant"]),
    (("company", "organization", "employer"),
     ["Acme Corp", "Globex", "Initech", "Umbrella", "Stark Industries", "Wayne Enterprises"]),
    (("product", "item"),
     ["Laptop", "Wireless Mouse", "Keyboard", "Monitor", "Headphones", "Webcam", "USB-C Hub", "Desk Lamp"]),
    (("category", "type"), ["Electronics", "Office Supplies", "Furniture", "Accessories", "Software"]),
    (("country",), ["United States", "United Kingdom", "Germany", "Japan", "Australia", "Canada"]),
    (("city", "location", "region"), ["New York", "London", "Berlin", "Tokyo", "Sydney", "Toronto"]),
    (("status",), ["Active", "Pending", "Completed", "Cancelled"]),
    (("description", "notes", "comment"),
     ["Sample entry", "Follow up next week", "Priority item", "Reviewed", "Awaiting approval"]),
]


@dataclass
class TableResult:
    """Outcome of writing a synthesized table into the workbook"""
    sheet_name: str
    created_sheet: bool
    start_row: int
    num_rows: int
    headers: List[str]
    range: str
    message: str


def _words(header: str) -> List[str]:
    return [w for w in re.split(r"[^a-z0-9]+", header) if w]


def _matches(header: str, keyword: str) -> bool:
    if len(keyword) <= 3:
        return keyword in _words(header)
    return keyword in header


def _full_name(index: int) -> str:
    return f"{FIRST_NAMES[index % len(FIRST_NAMES)]} {LAST_NAMES[(index // len(FIRST_NAMES) + index) % len(LAST_NAMES)]}"


def sample_value(header: str, index: int) -> str:
    """
    Deterministic sample value for a column, guessed from its header.

    Args:
        header: Column header text
        index: Zero-based data row index

    Returns:
        Sample cell text
    """
    h = header.strip().lower()

    if "email" in h:
        first = FIRST_NAMES[index % len(FIRST_NAMES)].lower()
        last = LAST_NAMES[index % len(LAST_NAMES)].lower()
        return f"{first}.{last}@example.com"
    if "phone" in h or "mobile" in h:
        return f"(555) 010-{1000 + index:04d}"
    if _matches(h, "id"):
        return f"ID{1001 + index}"
    if "date" in h or "day" in _words(h):
        return (_BASE_DATE + timedelta(days=index)).isoformat()

    for keywords, pool in _POOLS:
        if any(_matches(h, keyword) for keyword in keywords):
            return pool[index % len(pool)]

    if "first" in h and "name" in h:
        return FIRST_NAMES[index % len(FIRST_NAMES)]
    if "last" in h and "name" in h:
        return LAST_NAMES[index % len(LAST_NAMES)]
    if "name" in h or "customer" in h or "client" in h or "employee" in h:
        return _full_name(index)

    return f"{header.strip()} {index + 1}"


def clamp_rows(num_rows: int) -> int:
    return min(MAX_ROWS, max(MIN_ROWS, int(num_rows)))


def create_table(
    workbook: Workbook,
    headers: Sequence[str],
    num_rows: int,
    sheet_name: Optional[str] = None
) -> TableResult:
    """
    Write a header row and synthesized data rows below existing content.

    Args:
        workbook: Parsed document, modified in place
        headers: Column headers
        num_rows: Requested data rows, clamped to 1..1000
        sheet_name: Target sheet; created when missing. Defaults to the first sheet

    Returns:
        Where the table was written and a summary message

    Raises:
        InvalidInputError: if no usable header is given
    """
    headers = [h.strip() for h in headers if h and h.strip()]
    if not headers:
        raise InvalidInputError("At least one header is required to create a table")
    num_rows = clamp_rows(num_rows)

    created = False
    sheet = workbook.sheet(sheet_name) if sheet_name else workbook.first_sheet()
    if sheet is None:
        sheet = workbook.add_sheet(sheet_name.strip() if sheet_name else DEFAULT_SHEET_NAME)
        created = True

    start_row = find_next_available_row(sheet)
    for col, header in enumerate(headers):
        sheet.set(start_row, col, header)
    for i in range(num_rows):
        for col, header in enumerate(headers):
            sheet.set(start_row + 1 + i, col, sample_value(header, i))

    table_range = build_a1_range(start_row, 0, start_row + num_rows, len(headers) - 1)
    where = f"new sheet '{sheet.name}'" if created else f"sheet '{sheet.name}'"
    message = (
        f"Created a table with {num_rows} rows and columns {', '.join(headers)} "
        f"in {where} at {table_range}."
    )
    logger.info(message)

    return TableResult(
        sheet_name=sheet.name,
        created_sheet=created,
        start_row=start_row,
        num_rows=num_rows,
        headers=headers,
        range=table_range,
        message=message
    )


def insert_marker(workbook: Workbook, text: str = "test") -> Tuple[str, int]:
    """
    Put a marker value in column A of the next free row of the first sheet.

    Returns:
        Sheet name and zero-based row written
    """
    sheet: Optional[Sheet] = workbook.first_sheet()
    if sheet is None:
        sheet = workbook.add_sheet()
    row = find_next_available_row(sheet)
    sheet.set(row, 0, text)
    logger.info(f"Inserted '{text}' into sheet '{sheet.name}' row {row + 1}")
    return sheet.name, row

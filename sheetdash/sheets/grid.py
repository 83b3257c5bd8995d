"""
Typed sparse-grid model of the spreadsheet document.

The widget persists a JSON array of sheets, each holding a sparse map of
``"<row>_<col>"`` keys to cell objects. These classes parse that blob into
``(row, col) -> Cell`` mappings and write it back in the same flat layout,
keeping any keys they do not understand.
"""
import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from ..errors import InvalidInputError

logger = logging.getLogger(__name__)

DEFAULT_SHEET_NAME = "Sheet1"
DEFAULT_FREEZE = "A1"
DEFAULT_COLS = 26
DEFAULT_ROWS = 100

CellKey = Tuple[int, int]
Number = Union[int, float]

_INT_PATTERN = re.compile(r"[+-]?\d+")


def parse_number(value: Any) -> Optional[Number]:
    """
    Interpret a cell value as a number.

    Args:
        value: Raw cell value or text

    Returns:
        int or float when the value is numeric and finite, otherwise None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None

    text = str(value).strip()
    if not text or "_" in text:
        return None
    if _INT_PATTERN.fullmatch(text):
        return int(text)
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _parse_index(key: Any) -> Optional[int]:
    try:
        index = int(key)
    except (TypeError, ValueError):
        return None
    return index if index >= 0 else None


def _parse_len(container: Any, default: int) -> int:
    if isinstance(container, dict):
        length = _parse_index(container.get("len"))
        if length is not None:
            return length
    return default


def parse_cell_key(key: str) -> Optional[CellKey]:
    """Parse a ``"<row>_<col>"`` key into a (row, col) tuple"""
    parts = str(key).split("_")
    if len(parts) != 2:
        return None
    row, col = _parse_index(parts[0]), _parse_index(parts[1])
    if row is None or col is None:
        return None
    return row, col


def cell_key(row: int, col: int) -> str:
    """Build the ``"<row>_<col>"`` key used by the persisted document"""
    return f"{row}_{col}"


@dataclass
class Cell:
    """Single cell: displayed text plus optional style index and stored value"""
    text: str = ""
    style: Optional[int] = None
    value: Any = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()

    @classmethod
    def from_dict(cls, data: Any) -> "Cell":
        if not isinstance(data, dict):
            return cls(text=_to_text(data))
        extra = {k: v for k, v in data.items() if k not in ("text", "style", "value")}
        return cls(
            text=_to_text(data.get("text")),
            style=data.get("style"),
            value=data.get("value"),
            extra=extra
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data["text"] = self.text
        if self.style is not None:
            data["style"] = self.style
        if self.value is not None:
            data["value"] = self.value
        return data


@dataclass
class Sheet:
    """One sheet of the workbook with a sparse (row, col) -> Cell map"""
    name: str = DEFAULT_SHEET_NAME
    freeze: str = DEFAULT_FREEZE
    styles: List[Any] = field(default_factory=list)
    merges: List[Any] = field(default_factory=list)
    col_len: int = DEFAULT_COLS
    row_len: int = DEFAULT_ROWS
    cells: Dict[CellKey, Cell] = field(default_factory=dict)
    col_meta: Dict[str, Any] = field(default_factory=dict)
    row_meta: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    def get(self, row: int, col: int) -> Optional[Cell]:
        return self.cells.get((row, col))

    def text(self, row: int, col: int) -> str:
        cell = self.cells.get((row, col))
        return cell.text if cell else ""

    def set(self, row: int, col: int, text: Any, style: Optional[int] = None) -> Cell:
        """Write a cell, growing the sheet dimensions when needed"""
        cell = Cell(text=_to_text(text), style=style)
        self.cells[(row, col)] = cell
        self.ensure_size(row + 1, col + 1)
        return cell

    def ensure_size(self, rows: int, cols: int) -> None:
        self.row_len = max(self.row_len, rows)
        self.col_len = max(self.col_len, cols)

    def is_row_blank(self, row: int) -> bool:
        return all(cell.is_blank for (r, _), cell in self.cells.items() if r == row)

    def used_rows(self) -> List[int]:
        """Rows holding at least one non-blank cell, ascending"""
        return sorted({r for (r, _), cell in self.cells.items() if not cell.is_blank})

    def bounds(self) -> Optional[CellKey]:
        """Largest row and column index over all cell keys, or None when empty"""
        if not self.cells:
            return None
        return (
            max(r for r, _ in self.cells),
            max(c for _, c in self.cells)
        )

    def iter_cells(self) -> Iterator[Tuple[CellKey, Cell]]:
        return iter(sorted(self.cells.items()))

    @classmethod
    def from_dict(cls, data: Any) -> "Sheet":
        if not isinstance(data, dict):
            raise InvalidInputError("Each sheet must be a JSON object")

        cols = data.get("cols") if isinstance(data.get("cols"), dict) else {}
        rows = data.get("rows") if isinstance(data.get("rows"), dict) else {}
        known = {"name", "freeze", "styles", "merges", "cols", "rows", "cells"}

        sheet = cls(
            name=_to_text(data.get("name")) or DEFAULT_SHEET_NAME,
            freeze=data.get("freeze") or DEFAULT_FREEZE,
            styles=list(data.get("styles") or []),
            merges=list(data.get("merges") or []),
            col_len=_parse_len(cols, DEFAULT_COLS),
            row_len=_parse_len(rows, DEFAULT_ROWS),
            col_meta={k: v for k, v in cols.items() if k != "len"},
            extra={k: v for k, v in data.items() if k not in known}
        )

        # Nested layout written by the widget itself: rows[r].cells[c]
        for row_key, row_data in rows.items():
            if row_key == "len" or not isinstance(row_data, dict):
                continue
            row = _parse_index(row_key)
            if row is None:
                continue
            row_cells = row_data.get("cells")
            if isinstance(row_cells, dict):
                for col_key, cell_data in row_cells.items():
                    col = _parse_index(col_key)
                    if col is not None:
                        sheet.cells[(row, col)] = Cell.from_dict(cell_data)
            meta = {k: v for k, v in row_data.items() if k != "cells"}
            if meta:
                sheet.row_meta[str(row)] = meta

        flat_cells = data.get("cells")
        if isinstance(flat_cells, dict):
            for key, cell_data in flat_cells.items():
                parsed = parse_cell_key(key)
                if parsed is None:
                    logger.warning(f"Skipping malformed cell key '{key}' in sheet '{sheet.name}'")
                    continue
                sheet.cells[parsed] = Cell.from_dict(cell_data)

        return sheet

    def to_dict(self) -> Dict[str, Any]:
        cols = dict(self.col_meta)
        cols["len"] = self.col_len
        rows = dict(self.row_meta)
        rows["len"] = self.row_len
        data = {
            "name": self.name,
            "freeze": self.freeze,
            "styles": self.styles,
            "merges": self.merges,
            "cols": cols,
            "rows": rows,
            "cells": {cell_key(r, c): cell.to_dict() for (r, c), cell in self.iter_cells()},
        }
        data.update(self.extra)
        return data


@dataclass
class Workbook:
    """Ordered list of sheets parsed from the stored JSON document"""
    sheets: List[Sheet] = field(default_factory=list)

    @classmethod
    def loads(cls, text: Optional[str]) -> "Workbook":
        """
        Parse a stored document.

        Args:
            text: JSON string as persisted; None or blank means an empty workbook

        Returns:
            Parsed workbook

        Raises:
            InvalidInputError: if the text is not a JSON array of sheet objects
        """
        if text is None or not text.strip():
            return cls()
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidInputError(f"Spreadsheet data is not valid JSON: {e.msg}") from e

        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            raise InvalidInputError("Spreadsheet data must be a list of sheets")

        return cls(sheets=[Sheet.from_dict(item) for item in data])

    def dumps(self) -> str:
        return json.dumps([sheet.to_dict() for sheet in self.sheets])

    def sheet(self, name: Optional[str]) -> Optional[Sheet]:
        """Find a sheet by name, ignoring case and surrounding whitespace"""
        if not name:
            return None
        wanted = name.strip().lower()
        for sheet in self.sheets:
            if sheet.name.strip().lower() == wanted:
                return sheet
        return None

    def first_sheet(self) -> Optional[Sheet]:
        return self.sheets[0] if self.sheets else None

    def sheet_or_first(self, name: Optional[str]) -> Optional[Sheet]:
        return self.sheet(name) or self.first_sheet()

    def add_sheet(self, name: str = DEFAULT_SHEET_NAME) -> Sheet:
        sheet = Sheet(name=name)
        self.sheets.append(sheet)
        return sheet


def default_document() -> str:
    """JSON for a new spreadsheet: one empty 26x100 sheet"""
    return Workbook(sheets=[Sheet()]).dumps()


def find_next_available_row(sheet: Sheet, start_row: int = 0) -> int:
    """
    Find the row just below the last row holding content.

    Rows whose cells are all empty or whitespace are ignored, so intervening
    blank rows never change the answer.

    Args:
        sheet: Sheet to scan
        start_row: Rows above this index are not considered

    Returns:
        max(used row) + 1, or start_row when no row at or below it is used
    """
    used = [row for row in sheet.used_rows() if row >= start_row]
    if not used:
        return start_row
    return used[-1] + 1

"""Plain-text and record conversions for sheets"""
import json
from typing import Any, Dict, List, Sequence

from .grid import Sheet

EMPTY_SHEET_TEXT = "This sheet is empty."


def sheet_to_text(sheet: Sheet) -> str:
    """
    Render a sheet as one line per non-empty row.

    Lines look like ``Row 3: Alice | 42 | Sales`` with 1-based row numbers.
    Every line spans the sheet's widest used column, so gaps show as empty
    fields.
    """
    bounds = sheet.bounds()
    if bounds is None:
        return EMPTY_SHEET_TEXT

    max_col = bounds[1]
    lines = []
    for row in sheet.used_rows():
        values = [sheet.text(row, col) for col in range(max_col + 1)]
        lines.append(f"Row {row + 1}: " + " | ".join(values))
    return "\n".join(lines) if lines else EMPTY_SHEET_TEXT


def field_to_text(value: Any) -> str:
    """Flatten an Airtable field value into cell text"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ", ".join(field_to_text(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value)
    return str(value)


def record_fields(records: Sequence[Dict[str, Any]]) -> List[str]:
    """Union of field names over all records, in first-seen order"""
    names: Dict[str, None] = {}
    for record in records:
        for name in (record.get("fields") or {}):
            names.setdefault(name, None)
    return list(names)


def records_to_sheet(name: str, records: Sequence[Dict[str, Any]]) -> Sheet:
    """
    Convert Airtable records into a sheet.

    Args:
        name: Sheet name
        records: Records as returned by the Airtable API (``{"id", "fields"}``)

    Returns:
        Sheet with a header row of field names and one row per record
    """
    sheet = Sheet(name=name or "Sheet1")
    headers = record_fields(records)
    for col, header in enumerate(headers):
        sheet.set(0, col, header)

    for i, record in enumerate(records, start=1):
        fields = record.get("fields") or {}
        for col, header in enumerate(headers):
            text = field_to_text(fields.get(header))
            if text:
                sheet.set(i, col, text)
        sheet.ensure_size(i + 1, len(headers))
    return sheet

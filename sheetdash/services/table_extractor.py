"""Table extraction from document text with an LLM and a heuristic fallback"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

from ..config import settings
from .llm_client import get_llm_client

logger = logging.getLogger(__name__)

MIN_FALLBACK_DATA_ROWS = 3
HEADER_SCAN_LINES = 5

_PAGE_MARKER = re.compile(r"=== PAGE \d+ ===")
_COLUMN_GAP = re.compile(r"\s{2,}")
_HEADER_KEYWORD = re.compile(
    r"ID|Name|Date|Type|Status|Amount|Price|Location|Device|Feature|Duration|User",
    re.IGNORECASE
)
_JSON_ARRAY = re.compile(r"\[\s*\{.*\}\s*\]", re.DOTALL)
_FEATURE_CONTINUATIONS = ("Access", "Management")

EXTRACTION_SYSTEM_PROMPT = """You are an expert at extracting tables from documents. Your task is to identify and extract ALL tabular data.

CRITICAL: You MUST extract tables even if they are:
- Space-separated columns (most common in PDFs)
- Tab-separated values
- Column-aligned text with consistent spacing
- Lists with repeating structure

HOW TO IDENTIFY TABLES:
1. Look for a header row (column names at the top)
2. Look for multiple rows of data below with the same structure
3. Columns are often separated by multiple spaces
4. Data aligns vertically under headers

EXAMPLE INPUT:
UserID   Date   FeatureUsed   Duration(mins)
U1084   2025-10-07 Reports   59.1
U1025   2025-10-07 API Access   4.2

REQUIRED OUTPUT FORMAT:
[{"page": 1, "rows": [["UserID", "Date", "FeatureUsed", "Duration(mins)"], ["U1084", "2025-10-07", "Reports", "59.1"], ["U1025", "2025-10-07", "API Access", "4.2"]]}]

STRICT RULES:
- Return ONLY valid JSON - no markdown, no explanations, no extra text
- First row MUST be headers
- Parse space-separated columns carefully
- Include ALL data rows
- If a cell is empty, use ""
- If multiple tables exist, include all of them in the array
- If absolutely no tables exist, return: []

WARNING: Do NOT return empty array if there IS tabular data. Most PDF tables are space-separated!"""


def build_user_prompt(text: str) -> str:
    return (
        "Extract ALL tables from this text. Look carefully for space-separated columns "
        f"with headers at the top.\n\n{text}\n\n"
        "Return ONLY the JSON array. No explanations. No markdown formatting."
    )


def strip_code_fences(content: str) -> str:
    """Remove a surrounding Markdown code fence, if any"""
    text = content.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_llm_tables(content: str) -> Optional[List[Any]]:
    """
    Parse the model reply into a list of raw tables.

    The first ``[{...}]`` span is used when the reply carries extra text.

    Returns:
        Parsed list, or None when the reply is not a JSON array
    """
    text = strip_code_fences(content or "[]")
    match = _JSON_ARRAY.search(text)
    if match:
        text = match.group(0)
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse model reply as JSON: {e.msg}; reply starts {text[:200]!r}")
        return None
    if not isinstance(parsed, list):
        logger.warning(f"Model reply was not an array: {type(parsed).__name__}")
        return None
    return parsed


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def normalize_tables(tables: List[Any]) -> List[Dict[str, Any]]:
    """
    Keep tables with a header and at least one data row, fitting every row to the header width.

    Args:
        tables: Raw tables as returned by the model

    Returns:
        Tables shaped ``{"page": int, "rows": [[str, ...], ...]}``
    """
    cleaned = []
    for table in tables:
        if not isinstance(table, dict):
            continue
        rows = table.get("rows")
        if not isinstance(rows, list) or len(rows) < 2:
            continue
        if not isinstance(rows[0], list) or not rows[0]:
            continue

        width = len(rows[0])
        fitted = []
        for row in rows:
            cells = [_cell_text(v) for v in row] if isinstance(row, list) else [_cell_text(row)]
            cells = cells[:width] + [""] * (width - len(cells))
            fitted.append(cells)

        page = table.get("page", 1)
        cleaned.append({"page": page if isinstance(page, int) else 1, "rows": fitted})
    return cleaned


def _looks_like_header(line: str) -> bool:
    words = line.split()
    if not 3 <= len(words) <= 20:
        return False
    return any(
        w[:1].isupper() or "(" in w or _HEADER_KEYWORD.search(w)
        for w in words
    )


def _split_columns(line: str) -> List[str]:
    return [part.strip() for part in _COLUMN_GAP.split(line.strip()) if part.strip()]


def _split_by_header(tokens: List[str], headers: List[str]) -> List[str]:
    """Assign whitespace tokens to columns using the header names as hints"""
    row: List[str] = []
    i = 0
    last = len(headers) - 1
    for col, header in enumerate(headers):
        if i >= len(tokens):
            row.append("")
            continue
        name = header.lower()
        single = (
            "id" in name or "user" in name or "date" in name
            or "duration" in name or "mins" in name or "device" in name
        )
        if single:
            row.append(tokens[i])
            i += 1
        elif "location" in name and col == last:
            row.append(" ".join(tokens[i:]))
            i = len(tokens)
        elif "feature" in name or "used" in name:
            value = tokens[i]
            i += 1
            if i < len(tokens) and (tokens[i][:1].islower() or tokens[i] in _FEATURE_CONTINUATIONS):
                value += " " + tokens[i]
                i += 1
            row.append(value)
        else:
            row.append(tokens[i])
            i += 1
    return row


def _split_evenly(tokens: List[str], width: int) -> List[str]:
    per_col = len(tokens) // width
    row = []
    for col in range(width):
        start = col * per_col
        if col == width - 1:
            row.append(" ".join(tokens[start:]))
        else:
            row.append(" ".join(tokens[start:start + per_col]))
    return row


def parse_data_line(line: str, headers: List[str]) -> List[str]:
    """
    Split one data line into ``len(headers)`` cells.

    A split on runs of two or more spaces is used when it yields exactly the
    header width. Otherwise, with at least one token per column, tokens are
    assigned by header-name hints; with fewer tokens they are spread evenly
    and the last column takes the remainder.
    """
    parts = _split_columns(line)
    if len(parts) == len(headers):
        return parts

    tokens = line.split()
    if len(tokens) >= len(headers):
        return _split_by_header(tokens, headers)
    return _split_evenly(tokens, len(headers))


def detect_tables_from_text(text: str) -> List[Dict[str, Any]]:
    """
    Heuristic table detection for space-aligned text.

    Pages are separated by ``=== PAGE n ===`` markers. The header is taken
    from the first page with content; every later line on every page is a
    data row, so a table spanning pages comes back as a single table.

    Args:
        text: Extracted document text

    Returns:
        ``[{"page": 1, "rows": [...]}]`` when at least three data rows were
        found, otherwise ``[]``
    """
    headers: List[str] = []
    data_lines: List[str] = []

    for page in _PAGE_MARKER.split(text or ""):
        lines = [line.strip() for line in page.strip().split("\n") if line.strip()]
        if not lines:
            continue

        if headers:
            data_lines.extend(lines)
            continue

        for i, line in enumerate(lines[:HEADER_SCAN_LINES]):
            if _looks_like_header(line):
                candidate = _split_columns(line)
                if len(candidate) >= 2:
                    headers = candidate
                    data_lines.extend(lines[i + 1:])
                    break

        if not headers:
            candidate = _split_columns(lines[0])
            if len(candidate) >= 2:
                headers = candidate
                data_lines.extend(lines[1:])

    if len(headers) < 2:
        logger.info("Fallback parser found no header line")
        return []

    rows = [headers] + [parse_data_line(line, headers) for line in data_lines]
    data_rows = len(rows) - 1
    if data_rows < MIN_FALLBACK_DATA_ROWS:
        logger.info(f"Fallback parser found {data_rows} data rows, need {MIN_FALLBACK_DATA_ROWS}")
        return []

    logger.info(f"Fallback parser found one table: {len(headers)} columns x {data_rows} rows")
    return [{"page": 1, "rows": rows}]


async def extract_tables(text: str) -> Dict[str, Any]:
    """
    Extract tables from text, preferring the LLM and falling back to heuristics.

    Args:
        text: Non-empty document text

    Returns:
        Response body: ``{"tables": [...]}`` plus ``error`` when nothing could
        be extracted because of a configuration or model failure
    """
    if not settings.OPENAI_API_KEY:
        logger.error("OpenAI API key not configured")
        return {"error": "OpenAI API key not configured", "tables": []}

    llm_failed = False
    tables: List[Dict[str, Any]] = []
    try:
        content = await get_llm_client().complete(
            provider=settings.EXTRACTION_PROVIDER,
            model=settings.EXTRACTION_MODEL,
            system_prompt=EXTRACTION_SYSTEM_PROMPT,
            user_message=build_user_prompt(text),
            temperature=settings.EXTRACTION_TEMPERATURE,
            max_tokens=settings.EXTRACTION_MAX_TOKENS
        )
    except Exception as e:
        logger.error(f"Table extraction model call failed: {e}")
        llm_failed = True
    else:
        parsed = parse_llm_tables(content)
        if parsed is not None:
            tables = normalize_tables(parsed)

    if tables:
        logger.info(f"Model extracted {len(tables)} table(s)")
        return {"tables": tables}

    logger.warning("No tables from the model; using fallback parser")
    fallback = detect_tables_from_text(text)
    if fallback:
        return {"tables": fallback}
    if llm_failed:
        return {"error": "Table extraction failed", "tables": []}
    return {"tables": []}

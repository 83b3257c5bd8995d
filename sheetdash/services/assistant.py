"""Spreadsheet assistant: intent routing, document actions and chat replies"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import settings
from ..errors import InvalidInputError
from ..sheets import Workbook, sheet_to_text
from ..sheets.stats import calculate_column_stats
from ..sheets.synth import clamp_rows, create_table, insert_marker
from .llm_client import LLMClient, get_llm_client

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 6
DEFAULT_TABLE_ROWS = 5
DEFAULT_HEADERS = ["column1", "column2", "column3"]
DEFAULT_STATS_COLUMN = "salary"
NEW_SHEET_NAME = "NewSheet"
CHART_TYPES = ("line", "bar", "area", "pie")
DOCUMENT_TEXT_LIMIT = 4000

INTENT_MARKER = "insert_marker"
INTENT_TABLE = "create_table"
INTENT_STATS = "column_stats"
INTENT_CHAT = "chat"

MARKER_REPLY = (
    "I've added 'test' to the next available row in your spreadsheet. "
    "The action has been completed successfully!"
)
CLARIFY_SHEET_REPLY = (
    "Please provide full information. Write the prompt with specifying the sheet name "
    "or specify to create a new sheet."
)

CONTEXT_PREAMBLE = (
    "You are an AI assistant with complete access to the user's spreadsheet data. "
    "You can see and analyze ALL data in ALL sheets. When asked about any sheet or data, "
    "provide specific analysis based on the actual content shown below. "
)
CONTEXT_INSTRUCTIONS = (
    "\nINSTRUCTIONS: You have complete access to all the spreadsheet data shown above. "
    "When the user asks about any sheet, data, or analysis, provide specific insights based on "
    "the actual content. Be detailed and specific. If they ask 'what's in Sheet1', tell them "
    "exactly what data is in that sheet. If they ask for analysis, provide real analysis of the "
    "actual data shown."
)

BUSINESS_PRESETS: List[Tuple[Tuple[str, ...], List[str]]] = [
    (("employee", "staff"), ["name", "position", "salary", "department"]),
    (("product",), ["product", "price", "quantity", "category"]),
    (("student", "course"), ["name", "course", "grade", "year"]),
    (("customer", "client"), ["name", "email", "phone", "company"]),
    (("invoice", "order"), ["order_id", "customer", "amount", "date"]),
]

_TABLE_VERBS = ("create", "add", "make", "build")
_STATS_WORD = re.compile(r"\b(sum|average|avg|count|min|max|calculate)\b", re.IGNORECASE)

_EXPLICIT_HEADERS = re.compile(
    r"\b(?:headers?|columns?)\b(\s*:\s*|\s+)([^,;\n.?!]+(?:\s*,\s*[^,;\n.?!]+)*)",
    re.IGNORECASE
)
_WITH_HEADERS = re.compile(
    r"\b(?:with|having|including)\s+([^,;\n.?!]+(?:\s+(?:and|&|\+)\s+[^,;\n.?!]+)+)",
    re.IGNORECASE
)
_COMMA_HEADERS = re.compile(r"\btable\s+([a-zA-Z]+(?:\s*,\s*[a-zA-Z]+)+)", re.IGNORECASE)
_AND_SPLIT = re.compile(r"\s+(?:and|&|\+)\s+", re.IGNORECASE)
_HEADER_TAIL = re.compile(
    r"\s+(?:(?:in|on|into|to)\s+\S.*|\d+\s*(?:rows?|lines?|entries?|records?|items?)\b.*)$",
    re.IGNORECASE
)
_NOT_HEADERS = {"table", "sheet", "rows", "row", "columns", "column"}

_ROW_COUNT = re.compile(r"\b(\d{1,3})\s*(?:rows?|lines?|entries?|records?|items?)", re.IGNORECASE)
_BARE_NUMBER = re.compile(r"\b(\d{1,3})\b")

_SHEET_NAME = r"(?:\"([^\"]+)\"|'([^']+)'|([A-Za-z][\w\-]*))"
_SHEET_PATTERNS = [
    re.compile(r"\b(?:in|to|on|into)\s+(?:the\s+)?(?:sheet|tab)\s+(?:named\s+|called\s+)?" + _SHEET_NAME, re.IGNORECASE),
    re.compile(r"\b(?:in|to|on|into)\s+" + _SHEET_NAME, re.IGNORECASE),
    re.compile(r"\b(?:create|make|add)\s+(?:a\s+)?(?:new\s+)?sheet\s+(?:named\s+|called\s+)?" + _SHEET_NAME, re.IGNORECASE),
    re.compile(r"\b(?:sheet|tab)(?:\s+named|\s+called)?\s+" + _SHEET_NAME, re.IGNORECASE),
]
_NOT_SHEET_NAMES = {
    "and", "or", "the", "a", "an", "in", "on", "to", "with", "table",
    "new", "another", "sheet", "tab", "named", "called",
}

_STATS_COLUMN_PATTERNS = [
    re.compile(r"\b(?:column|of|for)\s+[\"']([^\"']+)[\"']", re.IGNORECASE),
    re.compile(
        r"\b(?:column|of|for)\s+([a-zA-Z][a-zA-Z0-9\s_-]+?)"
        r"(?:\s+(?:in|on|to|at|from)\s|\s+column|\s*$|[.!?])",
        re.IGNORECASE
    ),
    re.compile(r"\b(?:column|of|for)\s+(\w+)", re.IGNORECASE),
]

_CHART_MENTION = re.compile(r"chart.*?(\w+).*?range.*?([A-Z]+\d+:[A-Z]+\d+)", re.IGNORECASE | re.DOTALL)
_CHART_TYPE = re.compile(r"\b(line|bar|area|pie)\s+(?:chart|graph)\b", re.IGNORECASE)
_A1_RANGE = re.compile(r"\b([A-Z]+\d+:[A-Z]+\d+)\b")


@dataclass
class TableRequest:
    """Table creation parameters parsed from a message"""
    headers: List[str]
    num_rows: int
    sheet_name: Optional[str] = None


@dataclass
class StatsRequest:
    """Column statistics parameters parsed from a message"""
    operation: str
    column_name: str


@dataclass
class AssistantReply:
    """Reply text plus the updated document when an action changed it"""
    content: str
    chart_data: Optional[Dict[str, Any]] = None
    data: Optional[str] = None
    intent: str = INTENT_CHAT
    actions: List[str] = field(default_factory=list)


def build_context(
    spreadsheet_name: Optional[str],
    data: Optional[str],
    selected_range: Optional[str] = None,
    active_sheet_name: Optional[str] = None,
    history: Sequence[Tuple[str, str]] = (),
    documents: Sequence[Tuple[str, str]] = ()
) -> str:
    """
    Build the model context: every sheet as text, recent messages and instructions.

    Args:
        spreadsheet_name: Spreadsheet display name; None when there is no spreadsheet
        data: Stored document JSON
        selected_range: Range selected in the editor
        active_sheet_name: Sheet shown in the editor
        history: (role, content) pairs, oldest first; only the last six are used
        documents: (file name, extracted text) pairs; long text is truncated

    Returns:
        Context text
    """
    context = CONTEXT_PREAMBLE

    if spreadsheet_name is not None:
        context += f'\n\nSPREADSHEET: "{spreadsheet_name}"\n'
        try:
            workbook = Workbook.loads(data)
        except InvalidInputError as e:
            context += f"\nError parsing spreadsheet data: {e.message}\n"
        else:
            if workbook.sheets:
                names = ", ".join(sheet.name for sheet in workbook.sheets)
                context += f"\nThis spreadsheet contains {len(workbook.sheets)} sheet(s): {names}\n"
                if active_sheet_name:
                    context += f'Currently active sheet: "{active_sheet_name}"\n'
                if selected_range:
                    context += f'User selected range: "{selected_range}"\n'

                context += "\n=== COMPLETE SPREADSHEET DATA ===\n"
                for sheet in workbook.sheets:
                    context += f'\n--- SHEET: "{sheet.name}" ---\n'
                    context += sheet_to_text(sheet) + "\n"
                context += "\n=== END OF SPREADSHEET DATA ===\n"
    else:
        context += "\nNo spreadsheet data available.\n"

    if documents:
        context += "\n=== UPLOADED DOCUMENTS ===\n"
        for file_name, text in documents:
            context += f'\n--- DOCUMENT: "{file_name}" ---\n'
            context += text[:DOCUMENT_TEXT_LIMIT]
            if len(text) > DOCUMENT_TEXT_LIMIT:
                context += "\n[truncated]"
            context += "\n"
        context += "\n=== END OF DOCUMENTS ===\n"

    recent = list(history)[-HISTORY_WINDOW:]
    if recent:
        context += "\n=== RECENT CONVERSATION ===\n"
        for role, content in recent:
            context += f"{role}: {content}\n"
        context += "=== END CONVERSATION ===\n"

    return context + CONTEXT_INSTRUCTIONS


def detect_intent(message: str) -> str:
    """Classify a message as a document action or plain chat"""
    text = message.lower()
    if "add test" in text or "insert test" in text:
        return INTENT_MARKER
    if "table" in text and any(verb in text for verb in _TABLE_VERBS):
        return INTENT_TABLE
    if _STATS_WORD.search(text):
        return INTENT_STATS
    return INTENT_CHAT


def _clean_header(header: str) -> str:
    return _HEADER_TAIL.sub("", header.strip()).strip()


def _parse_headers(message: str) -> List[str]:
    headers: List[str] = []

    match = _EXPLICIT_HEADERS.search(message)
    if match and (":" in match.group(1) or "," in match.group(2)):
        headers = [_clean_header(h) for h in match.group(2).split(",")]

    if not headers:
        match = _WITH_HEADERS.search(message)
        if match:
            headers = [
                _clean_header(h) for h in _AND_SPLIT.split(match.group(1))
                if h.strip().lower() not in _NOT_HEADERS
            ]

    if not headers:
        match = _COMMA_HEADERS.search(message)
        if match:
            headers = [h.strip() for h in match.group(1).split(",")]

    headers = [h for h in headers if h and h.lower() not in _NOT_HEADERS]
    if headers:
        return headers

    text = message.lower()
    for keywords, preset in BUSINESS_PRESETS:
        if any(keyword in text for keyword in keywords):
            return list(preset)
    return list(DEFAULT_HEADERS)


def _parse_row_count(message: str) -> int:
    match = _ROW_COUNT.search(message)
    if match:
        return clamp_rows(int(match.group(1)))
    match = _BARE_NUMBER.search(message)
    if match and 0 < int(match.group(1)) <= 100:
        return int(match.group(1))
    return DEFAULT_TABLE_ROWS


def _parse_sheet_name(message: str) -> Optional[str]:
    for pattern in _SHEET_PATTERNS:
        for match in pattern.finditer(message):
            name = next((g for g in match.groups() if g), "").strip()
            if name and name.lower() not in _NOT_SHEET_NAMES:
                return name
    text = message.lower()
    if "new sheet" in text or "another sheet" in text:
        return NEW_SHEET_NAME
    return None


def parse_table_request(message: str) -> TableRequest:
    """
    Read headers, row count and target sheet from a table request.

    Headers come from an explicit ``columns: a, b`` list, a ``with a and b``
    phrase, a ``table a, b, c`` list, a business preset (employee, product,
    student, customer, invoice/order) or ``column1..column3``. The row count is
    ``N rows`` clamped to 1..1000, else a bare number from 1 to 100, else 5.
    """
    return TableRequest(
        headers=_parse_headers(message),
        num_rows=_parse_row_count(message),
        sheet_name=_parse_sheet_name(message)
    )


def parse_stats_request(message: str) -> StatsRequest:
    """Read the operation (default sum) and column name (default salary) from a message"""
    match = _STATS_WORD.search(message)
    operation = match.group(1).lower() if match else "sum"

    column_name = DEFAULT_STATS_COLUMN
    for pattern in _STATS_COLUMN_PATTERNS:
        match = pattern.search(message)
        if match and match.group(1).strip():
            column_name = match.group(1).strip()
            break
    if column_name.lower().startswith("the "):
        column_name = column_name[4:].strip()

    return StatsRequest(operation=operation, column_name=column_name)


def extract_chart_data(reply: str) -> Optional[Dict[str, Any]]:
    """
    Find a chart suggestion in a model reply.

    Returns:
        ``{"type", "range", "title"}`` for a line, bar, area or pie chart over
        an A1 range, otherwise None
    """
    lowered = reply.lower()
    if "chart" not in lowered and "graph" not in lowered:
        return None

    chart_type = None
    chart_range = None
    match = _CHART_MENTION.search(reply)
    if match and match.group(1).lower() in CHART_TYPES:
        chart_type, chart_range = match.group(1).lower(), match.group(2).upper()
    else:
        type_match = _CHART_TYPE.search(reply)
        range_match = _A1_RANGE.search(reply)
        if type_match and range_match:
            chart_type, chart_range = type_match.group(1).lower(), range_match.group(1)

    if chart_type is None:
        return None
    return {
        "type": chart_type,
        "range": chart_range,
        "title": f"AI Generated {chart_type.capitalize()} Chart",
    }


def _apology(error: Exception) -> str:
    message = error.message if isinstance(error, InvalidInputError) else str(error)
    return (
        "I apologize, but I encountered an error while processing your request: "
        f"{message}. Please try again."
    )


async def respond(
    spreadsheet_name: str,
    data: Optional[str],
    message: str,
    agent: Any,
    history: Sequence[Tuple[str, str]] = (),
    selected_range: Optional[str] = None,
    active_sheet_name: Optional[str] = None,
    llm_client: Optional[LLMClient] = None,
    documents: Sequence[Tuple[str, str]] = ()
) -> AssistantReply:
    """
    Answer one user message.

    Action intents are applied to a parsed copy of ``data`` without calling
    the model; ``chat`` goes to the agent's provider. Errors are turned into
    an apology reply.

    Args:
        spreadsheet_name: Spreadsheet display name
        data: Stored document JSON
        message: User message
        agent: Agent with ``provider``, ``model_name`` and ``system_prompt``
        history: Earlier (role, content) pairs, oldest first
        selected_range: Range selected in the editor
        active_sheet_name: Sheet shown in the editor
        llm_client: Client override, defaults to the global client
        documents: (file name, text) pairs of processed uploads for the chat context

    Returns:
        Reply; ``data`` is set when the document changed
    """
    intent = detect_intent(message)
    logger.info(f"Assistant intent '{intent}' for message of {len(message)} chars")

    try:
        if intent == INTENT_MARKER:
            workbook = Workbook.loads(data)
            sheet_name, row = insert_marker(workbook)
            return AssistantReply(
                content=MARKER_REPLY,
                data=workbook.dumps(),
                intent=intent,
                actions=[f"insert_marker:{sheet_name}:{row + 1}"]
            )

        if intent == INTENT_TABLE:
            request = parse_table_request(message)
            if not request.sheet_name:
                return AssistantReply(content=CLARIFY_SHEET_REPLY, intent=intent)
            workbook = Workbook.loads(data)
            result = create_table(workbook, request.headers, request.num_rows, request.sheet_name)
            return AssistantReply(
                content=result.message,
                data=workbook.dumps(),
                intent=intent,
                actions=[f"create_table:{result.sheet_name}:{result.range}"]
            )

        if intent == INTENT_STATS:
            request = parse_stats_request(message)
            workbook = Workbook.loads(data)
            stats = calculate_column_stats(workbook, request.column_name, request.operation)
            content = (
                f"I calculated the {stats.operation} of column '{stats.column_name}' in sheet "
                f"\"{stats.sheet_name}\": **{stats.result}** (from {stats.count} values). "
                "The result has been added to your spreadsheet."
            )
            return AssistantReply(
                content=content,
                data=workbook.dumps(),
                intent=intent,
                actions=[f"column_stats:{stats.sheet_name}:{stats.result_row + 1}"]
            )

        context = build_context(
            spreadsheet_name, data, selected_range, active_sheet_name, history, documents
        )
        system_prompt = f"{agent.system_prompt or ''}\n\n{context}".strip()
        client = llm_client or get_llm_client()
        reply = await client.complete(
            provider=agent.provider,
            model=agent.model_name,
            system_prompt=system_prompt,
            user_message=message,
            temperature=settings.ASSISTANT_TEMPERATURE
        )
        return AssistantReply(content=reply, chart_data=extract_chart_data(reply), intent=intent)

    except Exception as e:
        logger.error(f"Assistant failed to handle '{intent}' message: {e}")
        return AssistantReply(content=_apology(e), intent=intent)

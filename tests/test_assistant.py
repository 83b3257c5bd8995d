"""
Unit tests for the spreadsheet assistant
"""

import json

import pytest
from unittest.mock import AsyncMock, Mock

from sheetdash.services import assistant
from sheetdash.services.assistant import (
    CLARIFY_SHEET_REPLY,
    MARKER_REPLY,
    build_context,
    detect_intent,
    extract_chart_data,
    parse_stats_request,
    parse_table_request,
    respond
)
from sheetdash.sheets import Sheet, Workbook


def staff_document():
    sheet = Sheet(name="Staff")
    sheet.set(0, 0, "Name")
    sheet.set(0, 1, "Salary")
    sheet.set(1, 0, "Alice")
    sheet.set(1, 1, "1000")
    sheet.set(2, 0, "Bob")
    sheet.set(2, 1, "3000")
    return Workbook(sheets=[sheet]).dumps()


@pytest.fixture
def agent():
    return Mock(provider="openai", model_name="gpt-4o", system_prompt="You are helpful.")


@pytest.fixture
def llm():
    client = AsyncMock()
    client.complete.return_value = "Sure."
    return client


class TestDetectIntent:
    """Test cases for message classification"""

    @pytest.mark.parametrize("message,intent", [
        ("please add test", assistant.INTENT_MARKER),
        ("Insert test row", assistant.INTENT_MARKER),
        ("create a table of products in Sheet1", assistant.INTENT_TABLE),
        ("Build me a TABLE", assistant.INTENT_TABLE),
        ("what is the sum of salary", assistant.INTENT_STATS),
        ("calculate the average for price", assistant.INTENT_STATS),
        ("summarize this sheet", assistant.INTENT_CHAT),
        ("How many accounts are there?", assistant.INTENT_CHAT),
    ])
    def test_intents(self, message, intent):
        assert detect_intent(message) == intent


class TestParseTableRequest:
    """Test cases for table request parsing"""

    def test_explicit_columns(self):
        request = parse_table_request("create a table with columns: Name, Email, Phone in sheet Contacts")
        assert request.headers == ["Name", "Email", "Phone"]
        assert request.sheet_name == "Contacts"

    def test_with_and_list(self):
        request = parse_table_request("make a table with name and age in Sheet2")
        assert request.headers == ["name", "age"]
        assert request.sheet_name == "Sheet2"

    def test_comma_list_after_table(self):
        request = parse_table_request("create table city, country, population")
        assert request.headers == ["city", "country", "population"]

    def test_business_preset(self):
        request = parse_table_request("create an employee table with 10 rows in a new sheet")
        assert request.headers == ["name", "position", "salary", "department"]
        assert request.num_rows == 10
        assert request.sheet_name == "NewSheet"

    def test_default_headers_and_rows(self):
        request = parse_table_request("create a table")
        assert request.headers == ["column1", "column2", "column3"]
        assert request.num_rows == 5
        assert request.sheet_name is None

    def test_row_count_is_clamped(self):
        assert parse_table_request("create a table with 999 rows").num_rows == 999
        assert parse_table_request("create a table of 0 rows").num_rows == 1

    def test_bare_number(self):
        assert parse_table_request("create product table 12 in Sheet1").num_rows == 12

    def test_quoted_sheet_name(self):
        request = parse_table_request('create a product table in sheet "Q1 Sales"')
        assert request.sheet_name == "Q1 Sales"


class TestParseStatsRequest:
    """Test cases for statistics request parsing"""

    def test_operation_and_column(self):
        request = parse_stats_request("what is the average of price?")
        assert request.operation == "average"
        assert request.column_name == "price"

    def test_quoted_column(self):
        request = parse_stats_request("max for 'Unit Cost' please")
        assert request.operation == "max"
        assert request.column_name == "Unit Cost"

    def test_column_before_keyword(self):
        request = parse_stats_request("sum of the amount column in Sheet1")
        assert request.column_name == "amount"

    def test_defaults(self):
        request = parse_stats_request("calculate")
        assert request.operation == "calculate"
        assert request.column_name == "salary"


class TestExtractChartData:
    """Test cases for chart suggestions in replies"""

    def test_chart_with_range(self):
        reply = "I suggest a bar chart for the range B2:B10 to compare values."
        assert extract_chart_data(reply) == {
            "type": "bar",
            "range": "B2:B10",
            "title": "AI Generated Bar Chart",
        }

    def test_graph_wording(self):
        reply = "A line graph over A1:A12 would show the trend."
        assert extract_chart_data(reply)["type"] == "line"

    def test_no_chart_mentioned(self):
        assert extract_chart_data("The total is A1:A3") is None

    def test_unsupported_chart_type(self):
        assert extract_chart_data("A scatter chart would be nice") is None


class TestBuildContext:
    """Test cases for the model context"""

    def test_all_sheets_are_rendered(self):
        context = build_context("Payroll", staff_document(), "A1:B3", "Staff", [])
        assert 'SPREADSHEET: "Payroll"' in context
        assert "This spreadsheet contains 1 sheet(s): Staff" in context
        assert 'Currently active sheet: "Staff"' in context
        assert 'User selected range: "A1:B3"' in context
        assert "Row 2: Alice | 1000" in context

    def test_history_is_limited_to_six_messages(self):
        history = [("user", f"message {i}") for i in range(10)]
        context = build_context("Payroll", staff_document(), history=history)
        assert "message 3" not in context
        assert "message 4" in context
        assert "message 9" in context

    def test_no_spreadsheet(self):
        assert "No spreadsheet data available." in build_context(None, None)

    def test_unreadable_document(self):
        assert "Error parsing spreadsheet data" in build_context("Broken", "{oops")


class TestRespond:
    """Test cases for respond"""

    @pytest.mark.asyncio
    async def test_marker_is_inserted_without_model_call(self, agent, llm):
        reply = await respond("Payroll", staff_document(), "add test", agent, llm_client=llm)
        assert reply.content == MARKER_REPLY
        assert Workbook.loads(reply.data).sheets[0].text(3, 0) == "test"
        llm.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_table_is_created(self, agent, llm):
        reply = await respond(
            "Payroll", staff_document(), "create a product table with 3 rows in sheet Inventory",
            agent, llm_client=llm
        )
        sheet = Workbook.loads(reply.data).sheet("Inventory")
        assert sheet is not None
        assert sheet.text(0, 0) == "product"
        assert "Inventory" in reply.content
        llm.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_table_without_sheet_asks_for_clarification(self, agent, llm):
        reply = await respond("Payroll", staff_document(), "create a table", agent, llm_client=llm)
        assert reply.content == CLARIFY_SHEET_REPLY
        assert reply.data is None

    @pytest.mark.asyncio
    async def test_column_stats(self, agent, llm):
        reply = await respond("Payroll", staff_document(), "sum of salary", agent, llm_client=llm)
        assert "**4000**" in reply.content
        sheet = Workbook.loads(reply.data).sheets[0]
        assert sheet.text(3, 1) == "SUM of Salary"
        assert sheet.text(3, 2) == "4000"

    @pytest.mark.asyncio
    async def test_chat_uses_agent_model(self, agent, llm):
        llm.complete.return_value = "Try a pie chart with range A1:B3."
        reply = await respond(
            "Payroll", staff_document(), "How should I visualize this?", agent,
            history=[("user", "hi"), ("assistant", "hello")], llm_client=llm
        )
        assert reply.content == "Try a pie chart with range A1:B3."
        assert reply.chart_data == {"type": "pie", "range": "A1:B3", "title": "AI Generated Pie Chart"}
        assert reply.data is None

        kwargs = llm.complete.call_args.kwargs
        assert kwargs["provider"] == "openai"
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["system_prompt"].startswith("You are helpful.")
        assert "Row 3: Bob | 3000" in kwargs["system_prompt"]
        assert "assistant: hello" in kwargs["system_prompt"]

    @pytest.mark.asyncio
    async def test_failures_become_apology(self, agent, llm):
        llm.complete.side_effect = RuntimeError("provider down")
        reply = await respond("Payroll", staff_document(), "hello", agent, llm_client=llm)
        assert reply.content.startswith("I apologize, but I encountered an error")
        assert "provider down" in reply.content
        assert reply.data is None

    @pytest.mark.asyncio
    async def test_stats_on_missing_column_apologizes(self, agent, llm):
        reply = await respond("Payroll", staff_document(), "average of bonus", agent, llm_client=llm)
        assert "Column 'bonus' not found" in reply.content
        assert reply.data is None

"""
Tests for uploaded documents and their use in assistant replies
"""

import json
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from sheetdash.auth import Identity
from sheetdash.db.models import AIConversation, Document
from sheetdash.errors import InvalidInputError, NotAuthorizedError, NotFoundError
from sheetdash.models import DocumentCreate, MessageSend
from sheetdash.services import conversation_service, document_service
from sheetdash.services.assistant import DOCUMENT_TEXT_LIMIT, build_context

REPORT_TEXT = "Quarterly report\nRevenue grew 12% in Q3."


@pytest.fixture
def spreadsheet(make_spreadsheet, alice):
    return make_spreadsheet(alice, name="Finance")


@pytest.fixture
def identity(alice):
    return Identity(subject=alice.clerk_id)


@pytest.fixture
def make_document(db, alice, spreadsheet):
    """Factory storing a document with an explicit creation time"""
    def _make(file_name, status="completed", text=REPORT_TEXT, minutes_ago=0):
        created = datetime.utcnow() - timedelta(minutes=minutes_ago)
        document = Document(
            spreadsheet_id=spreadsheet.id,
            owner_id=alice.id,
            file_name=file_name,
            file_type="pdf",
            extracted_text=text,
            processing_status=status,
            created_at=created,
            updated_at=created
        )
        db.add(document)
        db.commit()
        db.refresh(document)
        return document
    return _make


def upload(spreadsheet, **overrides):
    values = {"spreadsheet_id": spreadsheet.id, "file_name": "report.pdf", "file_type": "pdf"}
    values.update(overrides)
    return DocumentCreate(**values)


class TestCreateDocument:
    """Test cases for recording uploads"""

    @pytest.mark.asyncio
    async def test_text_marks_completed(self, db, identity, spreadsheet):
        document = await document_service.create_document(
            db, identity, upload(spreadsheet, extracted_text=REPORT_TEXT)
        )
        assert document.processing_status == "completed"
        assert document.extracted_text == REPORT_TEXT

    @pytest.mark.asyncio
    async def test_without_text_is_pending(self, db, identity, spreadsheet):
        document = await document_service.create_document(db, identity, upload(spreadsheet))
        assert document.processing_status == "pending"

    @pytest.mark.asyncio
    async def test_foreign_spreadsheet(self, db, bob, spreadsheet):
        with pytest.raises(NotAuthorizedError) as exc:
            await document_service.create_document(db, Identity(subject=bob.clerk_id), upload(spreadsheet))
        assert exc.value.message == "Not authorized to upload to this spreadsheet"
        assert db.query(Document).count() == 0

    @pytest.mark.asyncio
    async def test_conversation_of_other_spreadsheet(self, db, alice, identity, spreadsheet, make_spreadsheet):
        other = make_spreadsheet(alice, name="Other")
        conversation = AIConversation(spreadsheet_id=other.id, owner_id=alice.id, title="Elsewhere")
        db.add(conversation)
        db.commit()

        with pytest.raises(InvalidInputError):
            await document_service.create_document(
                db, identity, upload(spreadsheet, conversation_id=conversation.id)
            )

    @pytest.mark.asyncio
    async def test_missing_conversation(self, db, identity, spreadsheet):
        with pytest.raises(NotFoundError) as exc:
            await document_service.create_document(db, identity, upload(spreadsheet, conversation_id=uuid4()))
        assert exc.value.message == "Conversation not found"


class TestDocumentRoutes:
    """Test cases for the document CRUD routes"""

    def test_create_and_list_newest_first(self, client, login, alice, spreadsheet, make_document):
        make_document("old.pdf", minutes_ago=10)
        login(alice)
        created = client.post("/api/v1/documents", json={
            "spreadsheet_id": str(spreadsheet.id),
            "file_name": "new.docx",
            "file_type": "docx",
            "extracted_text": "Notes"
        })
        assert created.status_code == 201
        assert created.json()["processing_status"] == "completed"

        listed = client.get("/api/v1/documents", params={"spreadsheet_id": str(spreadsheet.id)})
        assert [d["file_name"] for d in listed.json()] == ["new.docx", "old.pdf"]

    def test_unsupported_file_type(self, client, login, alice, spreadsheet):
        login(alice)
        response = client.post("/api/v1/documents", json={
            "spreadsheet_id": str(spreadsheet.id), "file_name": "sheet.xlsx", "file_type": "xlsx"
        })
        assert response.status_code == 422

    def test_list_foreign_spreadsheet(self, client, login, bob, spreadsheet):
        login(bob)
        response = client.get("/api/v1/documents", params={"spreadsheet_id": str(spreadsheet.id)})
        assert response.status_code == 403
        assert response.json()["detail"] == "Not authorized to view documents"

    def test_get_missing_is_404(self, client, login, alice):
        login(alice)
        response = client.get(f"/api/v1/documents/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["detail"] == "Document not found"

    def test_get_foreign_is_403(self, client, login, bob, make_document):
        document = make_document("report.pdf")
        login(bob)
        response = client.get(f"/api/v1/documents/{document.id}")
        assert response.status_code == 403
        assert response.json()["detail"] == "Not authorized to view this document"

    def test_delete(self, client, login, alice, db, make_document):
        document = make_document("report.pdf")
        login(alice)
        assert client.delete(f"/api/v1/documents/{document.id}").status_code == 204
        db.expire_all()
        assert db.query(Document).count() == 0

    def test_delete_missing(self, client, login, alice):
        login(alice)
        response = client.delete(f"/api/v1/documents/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["detail"] == "Document not found"

    def test_foreign_delete_keeps_document(self, client, login, bob, db, make_document):
        document = make_document("report.pdf")
        login(bob)
        response = client.delete(f"/api/v1/documents/{document.id}")
        assert response.status_code == 403
        assert response.json()["detail"] == "Not authorized to delete this document"
        assert db.query(Document).count() == 1

    def test_spreadsheet_delete_removes_documents(self, client, login, alice, db, spreadsheet, make_document):
        make_document("report.pdf")
        login(alice)
        assert client.delete(f"/api/v1/spreadsheets/{spreadsheet.id}").status_code == 204
        db.expire_all()
        assert db.query(Document).count() == 0


class TestExtractDocumentTables:
    """Test cases for running table extraction on a stored document"""

    @pytest.mark.asyncio
    async def test_tables_are_stored(self, db, identity, make_document):
        document = make_document("report.pdf", status="pending")
        result = {"tables": [{"page": 1, "rows": [["Quarter", "Revenue"], ["Q3", "12%"]]}]}
        with patch(
            "sheetdash.services.table_extractor.extract_tables", AsyncMock(return_value=result)
        ) as extract:
            document = await document_service.extract_document_tables(db, identity, document.id)

        extract.assert_awaited_once_with(REPORT_TEXT)
        assert document.processing_status == "completed"
        assert json.loads(document.extracted_tables) == result["tables"]
        assert document.error_message is None

    @pytest.mark.asyncio
    async def test_extraction_error_marks_failed(self, db, identity, make_document):
        document = make_document("report.pdf", status="pending")
        result = {"error": "OpenAI API key not configured", "tables": []}
        with patch("sheetdash.services.table_extractor.extract_tables", AsyncMock(return_value=result)):
            document = await document_service.extract_document_tables(db, identity, document.id)
        assert document.processing_status == "failed"
        assert document.error_message == "OpenAI API key not configured"

    @pytest.mark.asyncio
    async def test_document_without_text_fails(self, db, identity, make_document):
        document = make_document("scan.pdf", status="pending", text=None)
        with patch("sheetdash.services.table_extractor.extract_tables", AsyncMock()) as extract:
            document = await document_service.extract_document_tables(db, identity, document.id)
        extract.assert_not_awaited()
        assert document.processing_status == "failed"
        assert document.error_message == document_service.NO_TEXT_MESSAGE

    @pytest.mark.asyncio
    async def test_foreign_document(self, db, bob, make_document):
        document = make_document("report.pdf")
        with pytest.raises(NotAuthorizedError):
            await document_service.extract_document_tables(db, Identity(subject=bob.clerk_id), document.id)


class TestDocumentsInAssistant:
    """Test cases for processed documents reaching the chat context"""

    def test_only_completed_documents_newest_first(self, db, spreadsheet, make_document):
        make_document("old.pdf", text="old text", minutes_ago=10)
        make_document("new.pdf", text="new text")
        make_document("pending.pdf", status="pending", text=None)
        assert document_service.completed_documents(db, spreadsheet.id) == [
            ("new.pdf", "new text"),
            ("old.pdf", "old text"),
        ]

    def test_context_lists_documents(self):
        context = build_context("Finance", None, documents=[("report.pdf", REPORT_TEXT)])
        assert "=== UPLOADED DOCUMENTS ===" in context
        assert '--- DOCUMENT: "report.pdf" ---' in context
        assert "Revenue grew 12% in Q3." in context

    def test_long_text_is_truncated(self):
        text = "x" * (DOCUMENT_TEXT_LIMIT + 50)
        context = build_context("Finance", None, documents=[("long.pdf", text)])
        assert "x" * DOCUMENT_TEXT_LIMIT in context
        assert "x" * (DOCUMENT_TEXT_LIMIT + 1) not in context
        assert "[truncated]" in context

    def test_no_documents_section_without_documents(self):
        assert "UPLOADED DOCUMENTS" not in build_context("Finance", None)

    @pytest.mark.asyncio
    async def test_chat_prompt_includes_document_text(self, db, alice, identity, spreadsheet, make_document):
        make_document("report.pdf")
        make_document("draft.pdf", status="pending", text="unreviewed draft")
        conversation = AIConversation(spreadsheet_id=spreadsheet.id, owner_id=alice.id, title="Report")
        db.add(conversation)
        db.commit()

        llm = AsyncMock()
        llm.complete.return_value = "Revenue grew 12%."
        await conversation_service.send_message(
            db, identity, conversation.id, MessageSend(content="What does the report say?"), llm_client=llm
        )

        system_prompt = llm.complete.call_args.kwargs["system_prompt"]
        assert "Revenue grew 12% in Q3." in system_prompt
        assert "unreviewed draft" not in system_prompt

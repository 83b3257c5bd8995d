"""Uploaded documents and their extracted content"""
import json
import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from ..auth import Identity
from ..db.models import AIConversation, Document, Spreadsheet
from ..errors import InvalidInputError
from ..models import DocumentCreate
from . import table_extractor
from .ownership import require_found, require_owner, require_user, touch

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

NO_TEXT_MESSAGE = "Document has no extracted text to process"


async def create_document(db: Session, identity: Identity, document_data: DocumentCreate) -> Document:
    """
    Store a document record for an owned spreadsheet.

    The status is ``completed`` when the client sent extracted text and
    ``pending`` otherwise.

    Raises:
        NotFoundError: if the spreadsheet or conversation does not exist
        NotAuthorizedError: "Not authorized to upload to this spreadsheet"
        InvalidInputError: if the conversation belongs to another spreadsheet
    """
    user = require_user(db, identity)
    spreadsheet = require_found(db.get(Spreadsheet, document_data.spreadsheet_id), "Spreadsheet")
    require_owner(spreadsheet, user, "upload to this spreadsheet")

    if document_data.conversation_id is not None:
        conversation = require_found(db.get(AIConversation, document_data.conversation_id), "Conversation")
        require_owner(conversation, user, "upload to this conversation")
        if conversation.spreadsheet_id != spreadsheet.id:
            raise InvalidInputError("Conversation does not belong to this spreadsheet")

    document = Document(
        spreadsheet_id=spreadsheet.id,
        conversation_id=document_data.conversation_id,
        owner_id=user.id,
        file_name=document_data.file_name,
        file_type=document_data.file_type,
        extracted_text=document_data.extracted_text,
        extracted_tables=document_data.extracted_tables,
        page_count=document_data.page_count,
        processing_status=STATUS_COMPLETED if document_data.extracted_text else STATUS_PENDING
    )
    db.add(document)
    db.commit()
    db.refresh(document)
    logger.info(
        f"Created document {document.id} ({document.file_type}) on spreadsheet {spreadsheet.id}, "
        f"status {document.processing_status}"
    )
    return document


def list_documents(db: Session, identity: Identity, spreadsheet_id: UUID) -> List[Document]:
    """Documents of an owned spreadsheet, newest first"""
    user = require_user(db, identity)
    spreadsheet = require_found(db.get(Spreadsheet, spreadsheet_id), "Spreadsheet")
    require_owner(spreadsheet, user, "view documents")
    return (
        db.query(Document)
        .filter(Document.spreadsheet_id == spreadsheet_id)
        .order_by(Document.created_at.desc())
        .all()
    )


async def get_document(db: Session, identity: Identity, document_id: UUID) -> Optional[Document]:
    """Get a document, None when it does not exist"""
    user = require_user(db, identity)
    document = db.get(Document, document_id)
    if not document:
        return None
    require_owner(document, user, "view this document")
    return document


def delete_document(db: Session, identity: Identity, document_id: UUID) -> None:
    """
    Delete a document record.

    Raises:
        NotFoundError: "Document not found"
        NotAuthorizedError: "Not authorized to delete this document"
    """
    user = require_user(db, identity)
    document = require_found(db.get(Document, document_id), "Document")
    require_owner(document, user, "delete this document")
    db.delete(document)
    db.commit()
    logger.info(f"Deleted document {document_id}")


def _set_status(db: Session, document: Document, status: str, error_message: Optional[str] = None) -> None:
    document.processing_status = status
    document.error_message = error_message
    touch(document)
    db.commit()


async def extract_document_tables(db: Session, identity: Identity, document_id: UUID) -> Document:
    """
    Run table extraction over a document's text and store the tables as JSON.

    The document ends ``completed`` with its tables, or ``failed`` with an
    error message when there is no text or extraction reports an error.

    Raises:
        NotFoundError: "Document not found"
        NotAuthorizedError: "Not authorized to process this document"
    """
    user = require_user(db, identity)
    document = require_found(db.get(Document, document_id), "Document")
    require_owner(document, user, "process this document")

    if not document.extracted_text or not document.extracted_text.strip():
        _set_status(db, document, STATUS_FAILED, NO_TEXT_MESSAGE)
        logger.warning(f"Document {document.id} has no text; marked failed")
        db.refresh(document)
        return document

    _set_status(db, document, STATUS_PROCESSING)
    try:
        result = await table_extractor.extract_tables(document.extracted_text)
    except Exception as e:
        logger.error(f"Table extraction crashed for document {document.id}: {e}")
        _set_status(db, document, STATUS_FAILED, str(e))
        db.refresh(document)
        return document

    if result.get("error"):
        _set_status(db, document, STATUS_FAILED, result["error"])
    else:
        document.extracted_tables = json.dumps(result["tables"])
        _set_status(db, document, STATUS_COMPLETED)
        logger.info(f"Stored {len(result['tables'])} table(s) for document {document.id}")

    db.refresh(document)
    return document


def completed_documents(db: Session, spreadsheet_id: UUID) -> List[Tuple[str, str]]:
    """(file name, text) of a spreadsheet's processed documents, newest first"""
    documents = (
        db.query(Document)
        .filter(
            Document.spreadsheet_id == spreadsheet_id,
            Document.processing_status == STATUS_COMPLETED
        )
        .order_by(Document.created_at.desc())
        .all()
    )
    return [(d.file_name, d.extracted_text or "") for d in documents]

"""Uploaded document API routes"""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import Identity, get_identity
from ..db.session import get_db
from ..errors import SheetdashError
from ..models import DocumentCreate, DocumentResponse
from ..services import document_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/documents", tags=["Documents"])


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    document_data: DocumentCreate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Record an uploaded document"""
    try:
        return await document_service.create_document(db, identity, document_data)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to create document")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create document: {str(e)}"
        )


@router.get("", response_model=List[DocumentResponse])
async def list_documents(
    spreadsheet_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """List documents of a spreadsheet, newest first"""
    try:
        return document_service.list_documents(db, identity, spreadsheet_id)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to list documents")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list documents: {str(e)}"
        )


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Get document by ID"""
    try:
        document = await document_service.get_document(db, identity, document_id)
        if not document:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Document not found"
            )
        return document
    except (HTTPException, SheetdashError):
        raise
    except Exception as e:
        logger.exception("Failed to get document")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get document: {str(e)}"
        )


@router.post("/{document_id}/extract-tables", response_model=DocumentResponse)
async def extract_document_tables(
    document_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Extract tables from the document's text"""
    try:
        return await document_service.extract_document_tables(db, identity, document_id)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to extract document tables")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to extract document tables: {str(e)}"
        )


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Delete document"""
    try:
        document_service.delete_document(db, identity, document_id)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to delete document")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete document: {str(e)}"
        )

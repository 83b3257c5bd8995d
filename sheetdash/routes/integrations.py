"""Integration API routes"""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import Identity, get_identity
from ..db.session import get_db
from ..errors import SheetdashError
from ..models import (
    AirtableConnect,
    AirtableImportRequest,
    AirtableImportResponse,
    IntegrationResponse,
    OperationResult
)
from ..services import integration_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/integrations", tags=["Integrations"])


@router.get("", response_model=List[IntegrationResponse])
async def list_integrations(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """List the caller's integrations without tokens"""
    try:
        return integration_service.list_integrations(db, identity)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to list integrations")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list integrations: {str(e)}"
        )


@router.post("/airtable", response_model=OperationResult)
async def connect_airtable(
    request: AirtableConnect,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Connect Airtable with a personal access token"""
    try:
        return integration_service.connect_airtable(db, identity, request.access_token)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to connect Airtable")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to connect Airtable: {str(e)}"
        )


@router.delete("/airtable", response_model=OperationResult)
async def disconnect_airtable(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Disconnect Airtable"""
    try:
        return integration_service.disconnect_airtable(db, identity)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to disconnect Airtable")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to disconnect Airtable: {str(e)}"
        )


@router.post("/airtable/test", response_model=OperationResult)
async def test_airtable_token(request: AirtableConnect):
    """Check a token against the Airtable API without storing it"""
    try:
        return await integration_service.test_airtable_token(request.access_token)
    except Exception as e:
        logger.exception("Failed to test Airtable token")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to test Airtable token: {str(e)}"
        )


@router.get("/airtable/bases", response_model=OperationResult)
async def list_bases(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """List Airtable bases"""
    try:
        return await integration_service.list_bases(db, identity)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to list Airtable bases")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list bases: {str(e)}"
        )


@router.get("/airtable/bases/{base_id}/tables", response_model=OperationResult)
async def list_tables(
    base_id: str,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """List tables of an Airtable base"""
    try:
        return await integration_service.list_tables(db, identity, base_id)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to list Airtable tables")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list tables: {str(e)}"
        )


@router.post("/airtable/imports", response_model=OperationResult)
async def import_table(
    request: AirtableImportRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Import an Airtable table into a new spreadsheet"""
    try:
        return await integration_service.import_table(db, identity, request)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to import Airtable table")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to import table: {str(e)}"
        )


@router.get("/airtable/imports", response_model=List[AirtableImportResponse])
async def list_imports(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """List Airtable imports"""
    try:
        return integration_service.list_imports(db, identity)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to list Airtable imports")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list imports: {str(e)}"
        )


@router.post("/airtable/imports/{import_id}/sync", response_model=OperationResult)
async def sync_import(
    import_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Refresh an imported spreadsheet from Airtable"""
    try:
        return await integration_service.sync_import(db, identity, import_id)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to sync Airtable import")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to sync import: {str(e)}"
        )

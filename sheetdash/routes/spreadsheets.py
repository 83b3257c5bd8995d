"""Spreadsheet API routes"""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import Identity, get_identity
from ..db.session import get_db
from ..errors import SheetdashError
from ..models import (
    ColumnStatsRequest,
    ColumnStatsResponse,
    CreateTableRequest,
    CsvExportResponse,
    CsvImportRequest,
    MarkerRequest,
    MarkerResponse,
    SpreadsheetCreate,
    SpreadsheetDataUpdate,
    SpreadsheetRename,
    SpreadsheetResponse,
    TableResultResponse
)
from ..services import spreadsheet_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/spreadsheets", tags=["Spreadsheets"])


@router.get("", response_model=List[SpreadsheetResponse])
async def list_spreadsheets(
    project_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """List spreadsheets of a project"""
    try:
        return spreadsheet_service.list_spreadsheets(db, identity, project_id)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to list spreadsheets")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list spreadsheets: {str(e)}"
        )


@router.post("", response_model=SpreadsheetResponse, status_code=status.HTTP_201_CREATED)
async def create_spreadsheet(
    spreadsheet_data: SpreadsheetCreate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Create new spreadsheet with one empty sheet"""
    try:
        return await spreadsheet_service.create_spreadsheet(db, identity, spreadsheet_data)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to create spreadsheet")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create spreadsheet: {str(e)}"
        )


@router.get("/{spreadsheet_id}", response_model=SpreadsheetResponse)
async def get_spreadsheet(
    spreadsheet_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Get spreadsheet by ID"""
    try:
        spreadsheet = await spreadsheet_service.get_spreadsheet(db, identity, spreadsheet_id)
        if not spreadsheet:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Spreadsheet not found"
            )
        return spreadsheet
    except (HTTPException, SheetdashError):
        raise
    except Exception as e:
        logger.exception("Failed to get spreadsheet")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get spreadsheet: {str(e)}"
        )


@router.put("/{spreadsheet_id}/data", response_model=SpreadsheetResponse)
async def update_data(
    spreadsheet_id: UUID,
    update: SpreadsheetDataUpdate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Replace the stored document"""
    try:
        return await spreadsheet_service.update_data(db, identity, spreadsheet_id, update.data)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to update spreadsheet data")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update spreadsheet: {str(e)}"
        )


@router.put("/{spreadsheet_id}/name", response_model=SpreadsheetResponse)
async def rename_spreadsheet(
    spreadsheet_id: UUID,
    rename: SpreadsheetRename,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Rename spreadsheet"""
    try:
        return await spreadsheet_service.rename_spreadsheet(db, identity, spreadsheet_id, rename.name)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to rename spreadsheet")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to rename spreadsheet: {str(e)}"
        )


@router.delete("/{spreadsheet_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_spreadsheet(
    spreadsheet_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Delete spreadsheet"""
    try:
        spreadsheet_service.delete_spreadsheet(db, identity, spreadsheet_id)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to delete spreadsheet")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete spreadsheet: {str(e)}"
        )


@router.get("/{spreadsheet_id}/csv", response_model=CsvExportResponse)
async def export_csv(
    spreadsheet_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Export the first sheet as CSV"""
    try:
        csv_text = spreadsheet_service.export_spreadsheet_csv(db, identity, spreadsheet_id)
        return CsvExportResponse(csv=csv_text)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to export CSV")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to export CSV: {str(e)}"
        )


@router.post("/{spreadsheet_id}/csv", response_model=SpreadsheetResponse)
async def import_csv(
    spreadsheet_id: UUID,
    request: CsvImportRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Replace the document with CSV data"""
    try:
        return spreadsheet_service.import_spreadsheet_csv(db, identity, spreadsheet_id, request.csv)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to import CSV")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to import CSV: {str(e)}"
        )


@router.post("/{spreadsheet_id}/marker", response_model=MarkerResponse)
async def insert_marker(
    spreadsheet_id: UUID,
    request: MarkerRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Write a marker in the next available row"""
    try:
        sheet_name, row = spreadsheet_service.add_marker(db, identity, spreadsheet_id, request.text)
        return MarkerResponse(sheet_name=sheet_name, row=row)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to insert marker")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to insert marker: {str(e)}"
        )


@router.post("/{spreadsheet_id}/tables", response_model=TableResultResponse)
async def create_table(
    spreadsheet_id: UUID,
    request: CreateTableRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Write a synthesized sample table"""
    try:
        return spreadsheet_service.add_table(
            db, identity, spreadsheet_id, request.headers, request.num_rows, request.sheet_name
        )
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to create table")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create table: {str(e)}"
        )


@router.post("/{spreadsheet_id}/stats", response_model=ColumnStatsResponse)
async def column_stats(
    spreadsheet_id: UUID,
    request: ColumnStatsRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Compute a column statistic and append it to the sheet"""
    try:
        return spreadsheet_service.column_stats(
            db, identity, spreadsheet_id, request.column_name, request.operation
        )
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to calculate column statistics")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to calculate column statistics: {str(e)}"
        )

"""Chart API routes"""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import Identity, get_identity
from ..db.session import get_db
from ..errors import SheetdashError
from ..models import ChartCreate, ChartDataResponse, ChartResponse, ChartUpdate
from ..services import chart_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/charts", tags=["Charts"])


@router.get("", response_model=List[ChartResponse])
async def list_charts(
    spreadsheet_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """List charts of a spreadsheet"""
    try:
        return chart_service.list_charts(db, identity, spreadsheet_id)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to list charts")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list charts: {str(e)}"
        )


@router.post("", response_model=ChartResponse, status_code=status.HTTP_201_CREATED)
async def create_chart(
    chart_data: ChartCreate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Create new chart"""
    try:
        return await chart_service.create_chart(db, identity, chart_data)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to create chart")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create chart: {str(e)}"
        )


@router.get("/{chart_id}", response_model=ChartResponse)
async def get_chart(
    chart_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Get chart by ID"""
    try:
        chart = await chart_service.get_chart(db, identity, chart_id)
        if not chart:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Chart not found"
            )
        return chart
    except (HTTPException, SheetdashError):
        raise
    except Exception as e:
        logger.exception("Failed to get chart")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get chart: {str(e)}"
        )


@router.get("/{chart_id}/data", response_model=ChartDataResponse)
async def get_chart_data(
    chart_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Values of the chart's range"""
    try:
        data = await chart_service.chart_data(db, identity, chart_id)
        if data is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Chart not found"
            )
        chart = await chart_service.get_chart(db, identity, chart_id)
        return ChartDataResponse(
            chart_id=chart.id,
            sheet_name=chart.sheet_name,
            range=chart.range,
            data=data
        )
    except (HTTPException, SheetdashError):
        raise
    except Exception as e:
        logger.exception("Failed to get chart data")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get chart data: {str(e)}"
        )


@router.put("/{chart_id}", response_model=ChartResponse)
async def update_chart(
    chart_id: UUID,
    update_data: ChartUpdate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Update chart"""
    try:
        return await chart_service.update_chart(db, identity, chart_id, update_data)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to update chart")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update chart: {str(e)}"
        )


@router.delete("/{chart_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_chart(
    chart_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Delete chart"""
    try:
        chart_service.delete_chart(db, identity, chart_id)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to delete chart")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete chart: {str(e)}"
        )

"""Dashboard API routes"""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import Identity, get_identity
from ..db.session import get_db
from ..errors import SheetdashError
from ..models import (
    DashboardCreate,
    DashboardListItem,
    DashboardResponse,
    DashboardUpdate,
    WidgetCreate,
    WidgetResponse
)
from ..services import dashboard_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/dashboards", tags=["Dashboards"])


@router.post("", response_model=DashboardResponse, status_code=status.HTTP_201_CREATED)
async def create_dashboard(
    dashboard_data: DashboardCreate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Create new dashboard"""
    try:
        dashboard = await dashboard_service.create_dashboard(db, identity, dashboard_data)
        return DashboardResponse.from_dashboard(dashboard)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to create dashboard")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create dashboard: {str(e)}"
        )


@router.get("", response_model=List[DashboardListItem])
async def list_dashboards(
    spreadsheet_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """List dashboards of a spreadsheet"""
    try:
        return dashboard_service.list_dashboards(db, identity, spreadsheet_id)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to list dashboards")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list dashboards: {str(e)}"
        )


@router.get("/{dashboard_id}", response_model=DashboardResponse)
async def get_dashboard(
    dashboard_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Get dashboard by ID with its widgets"""
    try:
        dashboard = await dashboard_service.get_dashboard(db, identity, dashboard_id)
        if not dashboard:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Dashboard not found"
            )
        return DashboardResponse.from_dashboard(dashboard)
    except (HTTPException, SheetdashError):
        raise
    except Exception as e:
        logger.exception("Failed to get dashboard")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get dashboard: {str(e)}"
        )


@router.put("/{dashboard_id}", response_model=DashboardResponse)
async def update_dashboard(
    dashboard_id: UUID,
    update_data: DashboardUpdate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Update dashboard"""
    try:
        dashboard = await dashboard_service.update_dashboard(db, identity, dashboard_id, update_data)
        return DashboardResponse.from_dashboard(dashboard)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to update dashboard")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update dashboard: {str(e)}"
        )


@router.delete("/{dashboard_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_dashboard(
    dashboard_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Delete dashboard"""
    try:
        dashboard_service.delete_dashboard(db, identity, dashboard_id)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to delete dashboard")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete dashboard: {str(e)}"
        )


@router.post("/{dashboard_id}/widgets", response_model=WidgetResponse, status_code=status.HTTP_201_CREATED)
async def add_widget(
    dashboard_id: UUID,
    widget_data: WidgetCreate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Add a widget to a dashboard"""
    try:
        widget = await dashboard_service.add_widget(db, identity, dashboard_id, widget_data)
        return WidgetResponse.from_widget(widget)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to add widget")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to add widget: {str(e)}"
        )


@router.delete("/widgets/{widget_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_widget(
    widget_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Delete a widget"""
    try:
        dashboard_service.delete_widget(db, identity, widget_id)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to delete widget")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete widget: {str(e)}"
        )

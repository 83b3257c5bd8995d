"""Dashboard business logic"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ..auth import Identity
from ..db.models import Dashboard, DashboardWidget, Spreadsheet
from ..models import DashboardCreate, DashboardUpdate, DashboardListItem, WidgetCreate
from .ownership import require_found, require_owner, require_user, touch

logger = logging.getLogger(__name__)


def list_dashboards(db: Session, identity: Identity, spreadsheet_id: UUID) -> List[DashboardListItem]:
    """
    List dashboards of a spreadsheet with widget counts.

    Args:
        db: Database session
        identity: Caller
        spreadsheet_id: Spreadsheet the dashboards belong to

    Returns:
        Dashboards, newest first, each with its chart and metric widget counts
    """
    user = require_user(db, identity)
    spreadsheet = require_found(db.get(Spreadsheet, spreadsheet_id), "Spreadsheet")
    require_owner(spreadsheet, user, "view dashboards")

    dashboards = db.query(
        Dashboard.id,
        Dashboard.spreadsheet_id,
        Dashboard.name,
        Dashboard.description,
        Dashboard.created_at,
        Dashboard.updated_at,
        func.count(case((DashboardWidget.type == "chart", 1))).label("chart_count"),
        func.count(case((DashboardWidget.type == "metric", 1))).label("metric_count")
    ).outerjoin(DashboardWidget).filter(
        Dashboard.spreadsheet_id == spreadsheet_id
    ).group_by(Dashboard.id).order_by(Dashboard.created_at.desc()).all()

    return [
        DashboardListItem(
            id=d.id,
            spreadsheet_id=d.spreadsheet_id,
            name=d.name,
            description=d.description,
            chart_count=d.chart_count,
            metric_count=d.metric_count,
            created_at=d.created_at,
            updated_at=d.updated_at
        )
        for d in dashboards
    ]


async def get_dashboard(db: Session, identity: Identity, dashboard_id: UUID) -> Optional[Dashboard]:
    """Dashboard with its widgets in creation order, None when missing"""
    user = require_user(db, identity)
    dashboard = db.get(Dashboard, dashboard_id)
    if not dashboard:
        return None
    require_owner(dashboard, user, "view this dashboard")
    return dashboard


async def create_dashboard(db: Session, identity: Identity, dashboard_data: DashboardCreate) -> Dashboard:
    """
    Create new dashboard.

    Args:
        db: Database session
        identity: Caller
        dashboard_data: Dashboard creation data

    Returns:
        Created dashboard
    """
    user = require_user(db, identity)
    spreadsheet = require_found(db.get(Spreadsheet, dashboard_data.spreadsheet_id), "Spreadsheet")
    require_owner(spreadsheet, user, "create dashboard")

    dashboard = Dashboard(
        spreadsheet_id=spreadsheet.id,
        owner_id=user.id,
        name=dashboard_data.name,
        description=dashboard_data.description,
        widgets_data=dashboard_data.widgets_data or "[]",
        layout=dashboard_data.layout
    )
    db.add(dashboard)
    db.commit()
    db.refresh(dashboard)

    logger.info(f"Created dashboard {dashboard.id} for spreadsheet {spreadsheet.id}")

    return dashboard


async def update_dashboard(
    db: Session,
    identity: Identity,
    dashboard_id: UUID,
    update_data: DashboardUpdate
) -> Dashboard:
    """
    Update dashboard fields that are present in the request.

    Raises:
        NotFoundError: if the dashboard does not exist
        NotAuthorizedError: if the caller does not own it
    """
    user = require_user(db, identity)
    dashboard = require_found(db.get(Dashboard, dashboard_id), "Dashboard")
    require_owner(dashboard, user, "update this dashboard")

    if update_data.name is not None:
        dashboard.name = update_data.name
    if update_data.description is not None:
        dashboard.description = update_data.description
    if update_data.widgets_data is not None:
        dashboard.widgets_data = update_data.widgets_data
    if update_data.layout is not None:
        dashboard.layout = update_data.layout

    touch(dashboard)
    db.commit()
    db.refresh(dashboard)

    logger.info(f"Updated dashboard {dashboard_id}")

    return dashboard


def delete_dashboard(db: Session, identity: Identity, dashboard_id: UUID) -> None:
    """Delete dashboard and its widgets; a missing dashboard is a no-op"""
    user = require_user(db, identity)
    dashboard = db.get(Dashboard, dashboard_id)
    if not dashboard:
        return
    require_owner(dashboard, user, "delete this dashboard")

    db.delete(dashboard)
    db.commit()

    logger.info(f"Deleted dashboard {dashboard_id}")


async def add_widget(db: Session, identity: Identity, dashboard_id: UUID, widget_data: WidgetCreate) -> DashboardWidget:
    """
    Add a widget and touch the dashboard's updated_at.

    Raises:
        NotFoundError: if the dashboard does not exist
        NotAuthorizedError: if the caller does not own it
    """
    user = require_user(db, identity)
    dashboard = require_found(db.get(Dashboard, dashboard_id), "Dashboard")
    require_owner(dashboard, user, "add widgets to this dashboard")

    widget = DashboardWidget(
        dashboard_id=dashboard.id,
        owner_id=user.id,
        type=widget_data.type,
        title=widget_data.title,
        chart_type=widget_data.chart_type,
        range=widget_data.range,
        sheet_name=widget_data.sheet_name,
        metric_value=widget_data.metric_value,
        metric_formula=widget_data.metric_formula,
        metric_column=widget_data.metric_column,
        table_range=widget_data.table_range,
        table_sheet_name=widget_data.table_sheet_name,
        position_x=widget_data.position.x,
        position_y=widget_data.position.y,
        position_width=widget_data.position.width,
        position_height=widget_data.position.height
    )
    db.add(widget)
    touch(dashboard)
    db.commit()
    db.refresh(widget)

    logger.info(f"Added {widget.type} widget {widget.id} to dashboard {dashboard_id}")

    return widget


def delete_widget(db: Session, identity: Identity, widget_id: UUID) -> None:
    """Delete a widget and touch its dashboard; a missing widget is a no-op"""
    user = require_user(db, identity)
    widget = db.get(DashboardWidget, widget_id)
    if not widget:
        return
    require_owner(widget, user, "delete this widget")

    touch(widget.dashboard)
    db.delete(widget)
    db.commit()

    logger.info(f"Deleted widget {widget_id} from dashboard {widget.dashboard_id}")

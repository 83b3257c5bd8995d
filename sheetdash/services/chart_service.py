"""Chart business logic"""
import logging
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..auth import Identity
from ..db.models import Chart, Spreadsheet
from ..models import ChartCreate, ChartUpdate
from ..sheets import Workbook, extract_range_2d
from ..sheets.grid import Sheet
from .ownership import require_found, require_owner, require_user, touch

logger = logging.getLogger(__name__)


def list_charts(db: Session, identity: Identity, spreadsheet_id: UUID) -> List[Chart]:
    user = require_user(db, identity)
    spreadsheet = require_found(db.get(Spreadsheet, spreadsheet_id), "Spreadsheet")
    require_owner(spreadsheet, user, "view charts")
    return (
        db.query(Chart)
        .filter(Chart.spreadsheet_id == spreadsheet_id)
        .order_by(Chart.created_at.desc())
        .all()
    )


async def create_chart(db: Session, identity: Identity, chart_data: ChartCreate) -> Chart:
    user = require_user(db, identity)
    spreadsheet = require_found(db.get(Spreadsheet, chart_data.spreadsheet_id), "Spreadsheet")
    require_owner(spreadsheet, user, "create charts in this spreadsheet")

    chart = Chart(
        spreadsheet_id=spreadsheet.id,
        owner_id=user.id,
        type=chart_data.type,
        range=chart_data.range.upper(),
        sheet_name=chart_data.sheet_name,
        title=chart_data.title
    )
    db.add(chart)
    touch(spreadsheet)
    db.commit()
    db.refresh(chart)
    logger.info(f"Created {chart.type} chart {chart.id} over {chart.range} in spreadsheet {spreadsheet.id}")
    return chart


async def get_chart(db: Session, identity: Identity, chart_id: UUID) -> Optional[Chart]:
    user = require_user(db, identity)
    chart = db.get(Chart, chart_id)
    if not chart:
        return None
    require_owner(chart, user, "view this chart")
    return chart


async def update_chart(db: Session, identity: Identity, chart_id: UUID, update_data: ChartUpdate) -> Chart:
    user = require_user(db, identity)
    chart = require_found(db.get(Chart, chart_id), "Chart")
    require_owner(chart, user, "update this chart")

    if update_data.type is not None:
        chart.type = update_data.type
    if update_data.range is not None:
        chart.range = update_data.range.upper()
    if update_data.sheet_name is not None:
        chart.sheet_name = update_data.sheet_name
    if update_data.title is not None:
        chart.title = update_data.title

    touch(chart)
    db.commit()
    db.refresh(chart)
    logger.info(f"Updated chart {chart_id}")
    return chart


def delete_chart(db: Session, identity: Identity, chart_id: UUID) -> None:
    """Delete a chart; a missing chart is a no-op"""
    user = require_user(db, identity)
    chart = db.get(Chart, chart_id)
    if not chart:
        return
    require_owner(chart, user, "delete this chart")
    db.delete(chart)
    db.commit()
    logger.info(f"Deleted chart {chart_id}")


async def chart_data(db: Session, identity: Identity, chart_id: UUID) -> Optional[List[List[Any]]]:
    """
    Values of the chart's range.

    The chart's sheet is used when it exists, otherwise the first sheet.

    Returns:
        2-D list of values, or None when the chart does not exist
    """
    chart = await get_chart(db, identity, chart_id)
    if chart is None:
        return None
    workbook = Workbook.loads(chart.spreadsheet.data)
    sheet = workbook.sheet_or_first(chart.sheet_name) or Sheet()
    return extract_range_2d(sheet, chart.range)

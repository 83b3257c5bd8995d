"""Spreadsheet business logic"""
import logging
from typing import Callable, List, Optional, Tuple, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from ..auth import Identity
from ..db.models import Project, Spreadsheet
from ..models import SpreadsheetCreate
from ..sheets import Workbook, default_document, export_csv, import_csv
from ..sheets.stats import ColumnStats, calculate_column_stats
from ..sheets.synth import TableResult, create_table, insert_marker
from .ownership import require_found, require_owner, require_user, touch

logger = logging.getLogger(__name__)

T = TypeVar("T")


def list_spreadsheets(db: Session, identity: Identity, project_id: UUID) -> List[Spreadsheet]:
    """
    Spreadsheets of an owned project, newest first.

    Raises:
        NotFoundError: if the project does not exist
        NotAuthorizedError: if the caller does not own the project
    """
    user = require_user(db, identity)
    project = require_found(db.get(Project, project_id), "Project")
    require_owner(project, user, "view spreadsheets in this project")
    return (
        db.query(Spreadsheet)
        .filter(Spreadsheet.project_id == project_id)
        .order_by(Spreadsheet.created_at.desc())
        .all()
    )


async def create_spreadsheet(db: Session, identity: Identity, spreadsheet_data: SpreadsheetCreate) -> Spreadsheet:
    """Create a spreadsheet holding the default one-sheet document"""
    user = require_user(db, identity)
    project = require_found(db.get(Project, spreadsheet_data.project_id), "Project")
    require_owner(project, user, "create spreadsheet in this project")

    spreadsheet = Spreadsheet(
        project_id=project.id,
        owner_id=user.id,
        name=spreadsheet_data.name,
        data=default_document()
    )
    db.add(spreadsheet)
    db.commit()
    db.refresh(spreadsheet)
    logger.info(f"Created spreadsheet {spreadsheet.id} in project {project.id}")
    return spreadsheet


async def get_spreadsheet(db: Session, identity: Identity, spreadsheet_id: UUID) -> Optional[Spreadsheet]:
    """Spreadsheet by ID, None when missing"""
    user = require_user(db, identity)
    spreadsheet = db.get(Spreadsheet, spreadsheet_id)
    if not spreadsheet:
        return None
    require_owner(spreadsheet, user, "view this spreadsheet")
    return spreadsheet


def get_owned_spreadsheet(db: Session, identity: Identity, spreadsheet_id: UUID, action: str) -> Spreadsheet:
    """Spreadsheet the caller may act on; raises when missing or foreign"""
    user = require_user(db, identity)
    spreadsheet = require_found(db.get(Spreadsheet, spreadsheet_id), "Spreadsheet")
    require_owner(spreadsheet, user, action)
    return spreadsheet


async def update_data(db: Session, identity: Identity, spreadsheet_id: UUID, data: str) -> Spreadsheet:
    """Replace the stored document; the last write wins"""
    spreadsheet = get_owned_spreadsheet(db, identity, spreadsheet_id, "edit this spreadsheet")
    spreadsheet.data = data
    touch(spreadsheet)
    db.commit()
    db.refresh(spreadsheet)
    logger.info(f"Updated data of spreadsheet {spreadsheet_id} ({len(data)} bytes)")
    return spreadsheet


async def rename_spreadsheet(db: Session, identity: Identity, spreadsheet_id: UUID, name: str) -> Spreadsheet:
    spreadsheet = get_owned_spreadsheet(db, identity, spreadsheet_id, "edit this spreadsheet")
    spreadsheet.name = name
    touch(spreadsheet)
    db.commit()
    db.refresh(spreadsheet)
    logger.info(f"Renamed spreadsheet {spreadsheet_id} to '{name}'")
    return spreadsheet


def delete_spreadsheet(db: Session, identity: Identity, spreadsheet_id: UUID) -> None:
    """Delete a spreadsheet with its charts, dashboards, conversations and documents; missing is a no-op"""
    user = require_user(db, identity)
    spreadsheet = db.get(Spreadsheet, spreadsheet_id)
    if not spreadsheet:
        return
    require_owner(spreadsheet, user, "delete this spreadsheet")
    db.delete(spreadsheet)
    db.commit()
    logger.info(f"Deleted spreadsheet {spreadsheet_id}")


def export_spreadsheet_csv(db: Session, identity: Identity, spreadsheet_id: UUID) -> str:
    """CSV of the first sheet; "" when the document is empty"""
    spreadsheet = get_owned_spreadsheet(db, identity, spreadsheet_id, "export this spreadsheet")
    return export_csv(Workbook.loads(spreadsheet.data))


def import_spreadsheet_csv(db: Session, identity: Identity, spreadsheet_id: UUID, csv_text: str) -> Spreadsheet:
    """Replace the document with a single sheet built from CSV"""
    spreadsheet = get_owned_spreadsheet(db, identity, spreadsheet_id, "import data into this spreadsheet")
    spreadsheet.data = import_csv(csv_text).dumps()
    touch(spreadsheet)
    db.commit()
    db.refresh(spreadsheet)
    logger.info(f"Imported CSV into spreadsheet {spreadsheet_id}")
    return spreadsheet


def apply_to_document(db: Session, spreadsheet: Spreadsheet, change: Callable[[Workbook], T]) -> T:
    """
    Parse the stored document, apply ``change`` and write the result back.

    Nothing is written if ``change`` raises.
    """
    workbook = Workbook.loads(spreadsheet.data)
    result = change(workbook)
    spreadsheet.data = workbook.dumps()
    touch(spreadsheet)
    db.commit()
    return result


def add_marker(db: Session, identity: Identity, spreadsheet_id: UUID, text: str = "test") -> Tuple[str, int]:
    spreadsheet = get_owned_spreadsheet(db, identity, spreadsheet_id, "edit this spreadsheet")
    return apply_to_document(db, spreadsheet, lambda wb: insert_marker(wb, text))


def add_table(
    db: Session,
    identity: Identity,
    spreadsheet_id: UUID,
    headers: List[str],
    num_rows: int,
    sheet_name: Optional[str] = None
) -> TableResult:
    spreadsheet = get_owned_spreadsheet(db, identity, spreadsheet_id, "edit this spreadsheet")
    return apply_to_document(
        db, spreadsheet, lambda wb: create_table(wb, headers, num_rows, sheet_name)
    )


def column_stats(
    db: Session,
    identity: Identity,
    spreadsheet_id: UUID,
    column_name: str,
    operation: str = "sum"
) -> ColumnStats:
    spreadsheet = get_owned_spreadsheet(db, identity, spreadsheet_id, "edit this spreadsheet")
    return apply_to_document(
        db, spreadsheet, lambda wb: calculate_column_stats(wb, column_name, operation)
    )

"""Third-party integrations: Airtable connection, import and sync"""
import logging
from datetime import datetime
from typing import Callable, List, Optional
from uuid import UUID

import httpx
from sqlalchemy.orm import Session

from ..auth import Identity
from ..db.models import AirtableImport, Integration, Project, Spreadsheet, User
from ..errors import SheetdashError
from ..models import AirtableImportRequest, AirtableImportResponse, OperationResult
from ..sheets import Workbook, records_to_sheet
from ..utils.crypto import decrypt_token, encrypt_token
from .airtable_client import AirtableClient
from .ownership import require_user

logger = logging.getLogger(__name__)

AIRTABLE = "airtable"
STATUS_ACTIVE = "active"
STATUS_DISCONNECTED = "disconnected"
NO_ACTIVE_INTEGRATION = "No active Airtable integration found"
SCOPES_HINT = "Make sure your token has the required scopes (data.records:read, schema.bases:read)."

ClientFactory = Callable[[str], AirtableClient]


def _integration_for(db: Session, user: User) -> Optional[Integration]:
    return (
        db.query(Integration)
        .filter(Integration.user_id == user.id, Integration.provider == AIRTABLE)
        .first()
    )


def _active_client(db: Session, user: User, client_factory: ClientFactory):
    integration = _integration_for(db, user)
    if not integration or integration.status != STATUS_ACTIVE:
        return None, None
    return integration, client_factory(decrypt_token(integration.access_token))


def connect_airtable(db: Session, identity: Identity, access_token: str) -> OperationResult:
    """Store an encrypted token, updating an existing Airtable integration"""
    user = require_user(db, identity)
    integration = _integration_for(db, user)
    encrypted = encrypt_token(access_token)

    if integration:
        integration.access_token = encrypted
        integration.status = STATUS_ACTIVE
        integration.updated_at = datetime.utcnow()
        message = "Airtable connection updated successfully"
    else:
        integration = Integration(
            user_id=user.id,
            provider=AIRTABLE,
            access_token=encrypted,
            status=STATUS_ACTIVE
        )
        db.add(integration)
        message = "Airtable connected successfully"

    db.commit()
    db.refresh(integration)
    logger.info(f"Airtable integration {integration.id} active for user {user.id}")
    return OperationResult(success=True, message=message, data={"integration_id": str(integration.id)})


def disconnect_airtable(db: Session, identity: Identity) -> OperationResult:
    user = require_user(db, identity)
    integration = _integration_for(db, user)
    if not integration:
        return OperationResult(success=False, message="No Airtable integration found")

    integration.status = STATUS_DISCONNECTED
    integration.updated_at = datetime.utcnow()
    db.commit()
    logger.info(f"Airtable integration {integration.id} disconnected")
    return OperationResult(success=True, message="Airtable disconnected successfully")


def list_integrations(db: Session, identity: Identity) -> List[Integration]:
    user = require_user(db, identity)
    return db.query(Integration).filter(Integration.user_id == user.id).all()


async def test_airtable_token(access_token: str, client_factory: ClientFactory = AirtableClient) -> OperationResult:
    """
    Check a personal access token by listing bases.

    Args:
        access_token: Token to check; it is not stored
        client_factory: Builds the Airtable client for a token

    Returns:
        Result with the number of visible bases on success
    """
    try:
        bases = await client_factory(access_token).list_bases()
    except SheetdashError as e:
        return OperationResult(success=False, message=e.message)
    except httpx.HTTPError as e:
        logger.error(f"Airtable token check failed: {e}")
        return OperationResult(success=False, message=f"Connection failed: {e}")

    return OperationResult(
        success=True,
        message=f"Successfully connected to Airtable. Found {len(bases)} bases.",
        data={"base_count": len(bases)}
    )


async def list_bases(db: Session, identity: Identity, client_factory: ClientFactory = AirtableClient) -> OperationResult:
    user = require_user(db, identity)
    try:
        integration, client = _active_client(db, user, client_factory)
        if client is None:
            return OperationResult(success=False, message=NO_ACTIVE_INTEGRATION)
        bases = await client.list_bases()
    except SheetdashError as e:
        return OperationResult(success=False, message=f"{e.message.rstrip('.')}. {SCOPES_HINT}")
    except httpx.HTTPError as e:
        logger.error(f"Failed to fetch Airtable bases: {e}")
        return OperationResult(success=False, message=f"Failed to fetch bases: {e}")

    if bases:
        message = f"Found {len(bases)} bases"
    else:
        message = "No bases found. Make sure your Personal Access Token has access to at least one base."
    return OperationResult(success=True, message=message, data=bases)


async def list_tables(
    db: Session,
    identity: Identity,
    base_id: str,
    client_factory: ClientFactory = AirtableClient
) -> OperationResult:
    user = require_user(db, identity)
    try:
        integration, client = _active_client(db, user, client_factory)
        if client is None:
            return OperationResult(success=False, message=NO_ACTIVE_INTEGRATION)
        tables = await client.list_tables(base_id)
    except SheetdashError as e:
        return OperationResult(success=False, message=f"Failed to fetch tables: {e.message}")
    except httpx.HTTPError as e:
        logger.error(f"Failed to fetch tables of base {base_id}: {e}")
        return OperationResult(success=False, message=f"Failed to fetch tables: {e}")

    return OperationResult(success=True, message=f"Found {len(tables)} tables", data=tables)


async def import_table(
    db: Session,
    identity: Identity,
    request: AirtableImportRequest,
    client_factory: ClientFactory = AirtableClient
) -> OperationResult:
    """
    Import an Airtable table into a new project and spreadsheet.

    The project is named ``Airtable: <table>``; its spreadsheet holds a single
    sheet built from the records and an AirtableImport row remembers the
    source for later syncs.

    Returns:
        Result with ``spreadsheet_id``, ``import_id`` and ``project_id`` on success
    """
    user = require_user(db, identity)
    try:
        integration, client = _active_client(db, user, client_factory)
        if client is None:
            return OperationResult(success=False, message=NO_ACTIVE_INTEGRATION)
        records = await client.fetch_records(request.base_id, request.table_id)
    except SheetdashError as e:
        return OperationResult(success=False, message=f"Import failed: {e.message}")
    except httpx.HTTPError as e:
        logger.error(f"Airtable import of {request.base_id}/{request.table_id} failed: {e}")
        return OperationResult(success=False, message=f"Import failed: {e}")

    if not records:
        return OperationResult(success=False, message="No records found in the selected table")

    now = datetime.utcnow()
    project = Project(owner_id=user.id, name=f"Airtable: {request.table_name}")
    db.add(project)
    db.flush()

    workbook = Workbook(sheets=[records_to_sheet(request.table_name, records)])
    spreadsheet = Spreadsheet(
        project_id=project.id,
        owner_id=user.id,
        name=request.spreadsheet_name or request.table_name,
        data=workbook.dumps()
    )
    db.add(spreadsheet)
    db.flush()

    airtable_import = AirtableImport(
        user_id=user.id,
        spreadsheet_id=spreadsheet.id,
        integration_id=integration.id,
        base_id=request.base_id,
        table_id=request.table_id,
        table_name=request.table_name,
        record_count=len(records),
        last_synced_at=now
    )
    db.add(airtable_import)
    integration.last_synced_at = now
    db.commit()

    logger.info(f"Imported {len(records)} Airtable records into spreadsheet {spreadsheet.id}")
    return OperationResult(
        success=True,
        message=f"Successfully imported {len(records)} records from {request.table_name}",
        data={
            "spreadsheet_id": str(spreadsheet.id),
            "import_id": str(airtable_import.id),
            "project_id": str(project.id),
        }
    )


def list_imports(db: Session, identity: Identity) -> List[AirtableImportResponse]:
    """Caller's imports, newest first, skipping those whose spreadsheet is gone"""
    user = require_user(db, identity)
    imports = (
        db.query(AirtableImport)
        .filter(AirtableImport.user_id == user.id)
        .order_by(AirtableImport.created_at.desc())
        .all()
    )

    results = []
    for item in imports:
        spreadsheet = db.get(Spreadsheet, item.spreadsheet_id) if item.spreadsheet_id else None
        if spreadsheet is None:
            continue
        results.append(AirtableImportResponse(
            id=item.id,
            spreadsheet_id=spreadsheet.id,
            spreadsheet_name=spreadsheet.name,
            project_id=spreadsheet.project_id,
            base_id=item.base_id,
            table_id=item.table_id,
            table_name=item.table_name,
            record_count=item.record_count,
            last_synced_at=item.last_synced_at,
            created_at=item.created_at
        ))
    return results


async def sync_import(
    db: Session,
    identity: Identity,
    import_id: UUID,
    client_factory: ClientFactory = AirtableClient
) -> OperationResult:
    """Refetch an imported table and replace its spreadsheet document"""
    user = require_user(db, identity)
    airtable_import = db.get(AirtableImport, import_id)
    if not airtable_import or airtable_import.user_id != user.id:
        return OperationResult(success=False, message="Import record not found or access denied")

    try:
        integration, client = _active_client(db, user, client_factory)
        if client is None:
            return OperationResult(success=False, message=NO_ACTIVE_INTEGRATION)
        records = await client.fetch_records(airtable_import.base_id, airtable_import.table_id)
    except SheetdashError as e:
        return OperationResult(success=False, message=f"Sync failed: {e.message}")
    except httpx.HTTPError as e:
        logger.error(f"Airtable sync of import {import_id} failed: {e}")
        return OperationResult(success=False, message=f"Sync failed: {e}")

    spreadsheet = db.get(Spreadsheet, airtable_import.spreadsheet_id) if airtable_import.spreadsheet_id else None
    if spreadsheet is None:
        return OperationResult(success=False, message="Spreadsheet not found")

    now = datetime.utcnow()
    spreadsheet.data = Workbook(sheets=[records_to_sheet(airtable_import.table_name, records)]).dumps()
    spreadsheet.updated_at = now
    airtable_import.record_count = len(records)
    airtable_import.last_synced_at = now
    airtable_import.updated_at = now
    integration.last_synced_at = now
    db.commit()

    logger.info(f"Synced {len(records)} records into spreadsheet {spreadsheet.id}")
    return OperationResult(
        success=True,
        message=f"Successfully synced {len(records)} records",
        data={"record_count": len(records)}
    )

"""Project business logic"""
import logging
from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from ..auth import Identity
from ..db.models import Project
from ..models import ProjectCreate, ProjectUpdate
from .ownership import require_found, require_owner, require_user

logger = logging.getLogger(__name__)


def list_projects(db: Session, identity: Identity) -> List[Project]:
    """Caller's projects, newest first"""
    user = require_user(db, identity)
    return (
        db.query(Project)
        .filter(Project.owner_id == user.id)
        .order_by(Project.created_at.desc())
        .all()
    )


async def create_project(db: Session, identity: Identity, project_data: ProjectCreate) -> Project:
    user = require_user(db, identity)
    project = Project(
        owner_id=user.id,
        name=project_data.name,
        description=project_data.description
    )
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info(f"Created project {project.id} for user {user.id}")
    return project


async def update_project(db: Session, identity: Identity, project_id: UUID, update_data: ProjectUpdate) -> Project:
    """
    Update project name and/or description.

    Raises:
        NotFoundError: if the project does not exist
        NotAuthorizedError: if the caller does not own it
    """
    user = require_user(db, identity)
    project = require_found(db.get(Project, project_id), "Project")
    require_owner(project, user, "update this project")

    if update_data.name is not None:
        project.name = update_data.name
    if update_data.description is not None:
        project.description = update_data.description

    db.commit()
    db.refresh(project)
    logger.info(f"Updated project {project_id}")
    return project


def delete_project(db: Session, identity: Identity, project_id: UUID) -> None:
    """
    Delete a project together with its spreadsheets.

    Raises:
        NotFoundError: if the project does not exist
        NotAuthorizedError: if the caller does not own it
    """
    user = require_user(db, identity)
    project = require_found(db.get(Project, project_id), "Project")
    require_owner(project, user, "delete this project")

    spreadsheet_count = len(project.spreadsheets)
    db.delete(project)
    db.commit()
    logger.info(f"Deleted project {project_id} and {spreadsheet_count} spreadsheets")

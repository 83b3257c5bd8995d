"""Project API routes"""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import Identity, get_identity
from ..db.session import get_db
from ..errors import SheetdashError
from ..models import ProjectCreate, ProjectResponse, ProjectUpdate
from ..services import project_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/projects", tags=["Projects"])


@router.get("", response_model=List[ProjectResponse])
async def list_projects(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """List the caller's projects"""
    try:
        return project_service.list_projects(db, identity)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to list projects")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list projects: {str(e)}"
        )


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Create new project"""
    try:
        return await project_service.create_project(db, identity, project_data)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to create project")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create project: {str(e)}"
        )


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: UUID,
    update_data: ProjectUpdate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Update project"""
    try:
        return await project_service.update_project(db, identity, project_id, update_data)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to update project")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update project: {str(e)}"
        )


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Delete project with its spreadsheets"""
    try:
        project_service.delete_project(db, identity, project_id)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to delete project")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete project: {str(e)}"
        )

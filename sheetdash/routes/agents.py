"""AI agent API routes"""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import Identity, get_identity
from ..db.session import get_db
from ..errors import SheetdashError
from ..models import AgentCreate, AgentResponse, AgentUpdate
from ..services import agent_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/agents", tags=["Agents"])


@router.get("", response_model=List[AgentResponse])
async def list_agents(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """List the caller's agents"""
    try:
        return agent_service.list_agents(db, identity)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to list agents")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list agents: {str(e)}"
        )


@router.post("", response_model=AgentResponse, status_code=status.HTTP_201_CREATED)
async def create_agent(
    agent_data: AgentCreate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Create new agent"""
    try:
        return await agent_service.create_agent(db, identity, agent_data)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to create agent")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create agent: {str(e)}"
        )


@router.post("/defaults", response_model=List[AgentResponse])
async def ensure_default_agents(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Create the default agents when the caller has none"""
    try:
        return agent_service.ensure_default_agents(db, identity)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to create default agents")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create default agents: {str(e)}"
        )


@router.put("/{agent_id}", response_model=AgentResponse)
async def update_agent(
    agent_id: UUID,
    update_data: AgentUpdate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Update agent"""
    try:
        return await agent_service.update_agent(db, identity, agent_id, update_data)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to update agent")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update agent: {str(e)}"
        )


@router.delete("/{agent_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_agent(
    agent_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Delete agent"""
    try:
        agent_service.delete_agent(db, identity, agent_id)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to delete agent")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete agent: {str(e)}"
        )

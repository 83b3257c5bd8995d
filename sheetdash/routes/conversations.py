"""AI conversation API routes"""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import Identity, get_identity
from ..db.session import get_db
from ..errors import SheetdashError
from ..models import ConversationCreate, ConversationResponse, MessageResponse, MessageSend
from ..services import conversation_service
from ..services.conversation_service import message_to_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/conversations", tags=["Conversations"])


@router.get("", response_model=List[ConversationResponse])
async def list_conversations(
    spreadsheet_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """List conversations of a spreadsheet"""
    try:
        return conversation_service.list_conversations(db, identity, spreadsheet_id)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to list conversations")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list conversations: {str(e)}"
        )


@router.post("", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    conversation_data: ConversationCreate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Create new conversation"""
    try:
        return await conversation_service.create_conversation(db, identity, conversation_data)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to create conversation")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create conversation: {str(e)}"
        )


@router.get("/{conversation_id}/messages", response_model=List[MessageResponse])
async def get_messages(
    conversation_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Messages of a conversation, oldest first"""
    try:
        messages = conversation_service.get_messages(db, identity, conversation_id)
        return [message_to_response(m) for m in messages]
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to get messages")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get messages: {str(e)}"
        )


@router.post("/{conversation_id}/messages", response_model=List[MessageResponse])
async def send_message(
    conversation_id: UUID,
    message: MessageSend,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Send a message and return it with the assistant's reply"""
    try:
        user_message, reply = await conversation_service.send_message(
            db, identity, conversation_id, message
        )
        return [message_to_response(user_message), message_to_response(reply)]
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to send message")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to send message: {str(e)}"
        )


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation(
    conversation_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Delete conversation with its messages"""
    try:
        conversation_service.delete_conversation(db, identity, conversation_id)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to delete conversation")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete conversation: {str(e)}"
        )

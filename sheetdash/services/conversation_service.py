"""AI conversations and messages"""
import json
import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from ..auth import Identity
from ..db.models import AIConversation, AIMessage, Spreadsheet
from ..models import ChartSuggestion, ConversationCreate, MessageResponse, MessageSend
from .agent_service import resolve_agent
from .assistant import respond
from .document_service import completed_documents
from .llm_client import LLMClient
from .ownership import require_found, require_owner, require_user, touch

logger = logging.getLogger(__name__)


def message_to_response(message: AIMessage) -> MessageResponse:
    """Convert a stored message, parsing its chart suggestion"""
    chart = None
    if message.chart_data:
        try:
            chart = ChartSuggestion(**json.loads(message.chart_data))
        except (ValueError, TypeError) as e:
            logger.warning(f"Ignoring unreadable chart data on message {message.id}: {e}")

    return MessageResponse(
        id=message.id,
        conversation_id=message.conversation_id,
        role=message.role,
        content=message.content,
        chart_data=chart,
        agent_id=message.agent_id,
        model_name=message.model_name,
        provider=message.provider,
        created_at=message.created_at
    )


def list_conversations(db: Session, identity: Identity, spreadsheet_id: UUID) -> List[AIConversation]:
    """Conversations of an owned spreadsheet, most recently active first"""
    user = require_user(db, identity)
    spreadsheet = require_found(db.get(Spreadsheet, spreadsheet_id), "Spreadsheet")
    require_owner(spreadsheet, user, "view conversations")
    return (
        db.query(AIConversation)
        .filter(AIConversation.spreadsheet_id == spreadsheet_id)
        .order_by(AIConversation.updated_at.desc())
        .all()
    )


async def create_conversation(db: Session, identity: Identity, conversation_data: ConversationCreate) -> AIConversation:
    user = require_user(db, identity)
    spreadsheet = require_found(db.get(Spreadsheet, conversation_data.spreadsheet_id), "Spreadsheet")
    require_owner(spreadsheet, user, "create conversations")

    conversation = AIConversation(
        spreadsheet_id=spreadsheet.id,
        owner_id=user.id,
        title=conversation_data.title
    )
    db.add(conversation)
    db.commit()
    db.refresh(conversation)
    logger.info(f"Created conversation {conversation.id} on spreadsheet {spreadsheet.id}")
    return conversation


def get_messages(db: Session, identity: Identity, conversation_id: UUID) -> List[AIMessage]:
    """
    Messages of a conversation in creation order.

    Raises:
        NotFoundError: "Conversation not found"
        NotAuthorizedError: if the caller does not own the conversation
    """
    user = require_user(db, identity)
    conversation = require_found(db.get(AIConversation, conversation_id), "Conversation")
    require_owner(conversation, user, "view messages")
    return list(conversation.messages)


def delete_conversation(db: Session, identity: Identity, conversation_id: UUID) -> None:
    """Delete a conversation with its messages; a missing conversation is a no-op"""
    user = require_user(db, identity)
    conversation = db.get(AIConversation, conversation_id)
    if not conversation:
        return
    require_owner(conversation, user, "delete conversation")
    db.delete(conversation)
    db.commit()
    logger.info(f"Deleted conversation {conversation_id}")


def _history(conversation: AIConversation) -> List[Tuple[str, str]]:
    return [(m.role, m.content) for m in conversation.messages]


async def send_message(
    db: Session,
    identity: Identity,
    conversation_id: UUID,
    message: MessageSend,
    llm_client: Optional[LLMClient] = None
) -> Tuple[AIMessage, AIMessage]:
    """
    Store a user message, let the assistant answer and store the reply.

    Document actions taken by the assistant are saved to the spreadsheet
    before the reply is stored.

    Args:
        db: Database session
        identity: Caller
        conversation_id: Target conversation
        message: User message with editor context and optional agent
        llm_client: Client override for the chat model

    Returns:
        (user message, assistant message)

    Raises:
        NotFoundError: if the conversation or the agent does not exist
        NotAuthorizedError: if the caller owns neither
    """
    user = require_user(db, identity)
    conversation = require_found(db.get(AIConversation, conversation_id), "Conversation")
    require_owner(conversation, user, "send messages")
    agent = resolve_agent(db, user, message.agent_id)

    history = _history(conversation)

    user_message = AIMessage(
        conversation_id=conversation.id,
        owner_id=user.id,
        role="user",
        content=message.content
    )
    db.add(user_message)
    db.commit()
    db.refresh(user_message)

    spreadsheet = conversation.spreadsheet
    reply = await respond(
        spreadsheet_name=spreadsheet.name,
        data=spreadsheet.data,
        message=message.content,
        agent=agent,
        history=history,
        selected_range=message.selected_range,
        active_sheet_name=message.active_sheet_name,
        llm_client=llm_client,
        documents=completed_documents(db, spreadsheet.id)
    )

    if reply.data is not None and reply.data != spreadsheet.data:
        spreadsheet.data = reply.data
        touch(spreadsheet)
        logger.info(f"Assistant updated spreadsheet {spreadsheet.id}: {', '.join(reply.actions)}")

    assistant_message = AIMessage(
        conversation_id=conversation.id,
        owner_id=user.id,
        role="assistant",
        content=reply.content,
        chart_data=json.dumps(reply.chart_data) if reply.chart_data else None,
        agent_id=agent.id,
        model_name=agent.model_name,
        provider=agent.provider
    )
    db.add(assistant_message)
    touch(conversation)
    db.commit()
    db.refresh(assistant_message)

    logger.info(f"Agent {agent.id} answered in conversation {conversation.id} ({reply.intent})")
    return user_message, assistant_message

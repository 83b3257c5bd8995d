"""AI agent configuration"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..auth import Identity
from ..db.models import AIAgent, User
from ..models import AgentCreate, AgentUpdate
from .ownership import require_found, require_owner, require_user

logger = logging.getLogger(__name__)

DEFAULT_AGENTS = [
    {
        "name": "GPT-4o",
        "description": "OpenAI's most capable model for complex analysis",
        "provider": "openai",
        "model_name": "gpt-4o",
        "system_prompt": (
            "You are an AI assistant specialized in spreadsheet analysis. You can help users "
            "understand their data, create charts, and provide insights. Always be helpful and accurate."
        ),
    },
    {
        "name": "Claude 3.5 Sonnet",
        "description": "Anthropic's advanced model for detailed analysis",
        "provider": "anthropic",
        "model_name": "claude-3-5-sonnet-20241022",
        "system_prompt": (
            "You are an AI assistant specialized in spreadsheet analysis. You excel at understanding "
            "complex data patterns and providing detailed insights. Always be thorough and precise."
        ),
    },
    {
        "name": "Gemini Pro",
        "description": "Google's powerful model for data analysis",
        "provider": "google",
        "model_name": "gemini-2.5-flash",
        "system_prompt": (
            "You are an AI assistant specialized in spreadsheet analysis. You can help users analyze "
            "data, create visualizations, and understand trends. Be clear and informative."
        ),
    },
]


def _agents_for(db: Session, user: User) -> List[AIAgent]:
    return (
        db.query(AIAgent)
        .filter(AIAgent.owner_id == user.id)
        .order_by(AIAgent.created_at)
        .all()
    )


def list_agents(db: Session, identity: Identity) -> List[AIAgent]:
    user = require_user(db, identity)
    return _agents_for(db, user)


async def create_agent(db: Session, identity: Identity, agent_data: AgentCreate) -> AIAgent:
    user = require_user(db, identity)
    agent = AIAgent(
        owner_id=user.id,
        name=agent_data.name,
        description=agent_data.description,
        provider=agent_data.provider,
        model_name=agent_data.model_name,
        system_prompt=agent_data.system_prompt,
        is_active=True
    )
    db.add(agent)
    db.commit()
    db.refresh(agent)
    logger.info(f"Created {agent.provider} agent {agent.id} ({agent.model_name}) for user {user.id}")
    return agent


async def update_agent(db: Session, identity: Identity, agent_id: UUID, update_data: AgentUpdate) -> AIAgent:
    user = require_user(db, identity)
    agent = require_found(db.get(AIAgent, agent_id), "Agent")
    require_owner(agent, user, "update this agent")

    for field, value in update_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(agent, field, value)

    db.commit()
    db.refresh(agent)
    logger.info(f"Updated agent {agent_id}")
    return agent


def delete_agent(db: Session, identity: Identity, agent_id: UUID) -> None:
    """Delete an agent; a missing agent is a no-op"""
    user = require_user(db, identity)
    agent = db.get(AIAgent, agent_id)
    if not agent:
        return
    require_owner(agent, user, "delete this agent")
    db.delete(agent)
    db.commit()
    logger.info(f"Deleted agent {agent_id}")


def ensure_default_agents_for(db: Session, user: User) -> List[AIAgent]:
    """Existing agents of ``user``, or the three defaults created on first use"""
    existing = _agents_for(db, user)
    if existing:
        return existing

    agents = [AIAgent(owner_id=user.id, is_active=True, **preset) for preset in DEFAULT_AGENTS]
    db.add_all(agents)
    db.commit()
    for agent in agents:
        db.refresh(agent)
    logger.info(f"Created {len(agents)} default agents for user {user.id}")
    return agents


def ensure_default_agents(db: Session, identity: Identity) -> List[AIAgent]:
    user = require_user(db, identity)
    return ensure_default_agents_for(db, user)


def resolve_agent(db: Session, user: User, agent_id: Optional[UUID] = None) -> AIAgent:
    """
    Pick the agent that answers a message.

    An explicit agent must belong to the user. Without one the first active
    agent is used, creating the defaults when the user has none.

    Raises:
        NotFoundError: if the agent does not exist or none is active
        NotAuthorizedError: if the agent belongs to someone else
    """
    if agent_id is not None:
        agent = require_found(db.get(AIAgent, agent_id), "Agent")
        require_owner(agent, user, "use this agent")
        return agent

    for agent in ensure_default_agents_for(db, user):
        if agent.is_active:
            return agent
    return require_found(None, "Active agent")

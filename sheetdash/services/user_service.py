"""User records mirrored from Clerk"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..auth import Identity
from ..db.models import User
from ..models import UserUpsert
from .ownership import find_user

logger = logging.getLogger(__name__)


async def get_current_user(db: Session, identity: Optional[Identity]) -> Optional[User]:
    """Caller's user record, None when unauthenticated or unknown"""
    return find_user(db, identity)


def get_user_by_clerk_id(db: Session, clerk_id: str) -> Optional[User]:
    return db.query(User).filter(User.clerk_id == clerk_id).first()


async def create_or_update_user(db: Session, user_data: UserUpsert) -> User:
    """
    Insert a user or refresh the profile of an existing one.

    Args:
        db: Database session
        user_data: Profile keyed by Clerk id

    Returns:
        Stored user
    """
    user = get_user_by_clerk_id(db, user_data.clerk_id)
    if user:
        user.name = user_data.name
        user.email = user_data.email
        user.image_url = user_data.image_url
        user.first_name = user_data.first_name
        user.last_name = user_data.last_name
        action = "Updated"
    else:
        user = User(
            clerk_id=user_data.clerk_id,
            name=user_data.name,
            email=user_data.email,
            image_url=user_data.image_url,
            first_name=user_data.first_name,
            last_name=user_data.last_name
        )
        db.add(user)
        action = "Created"

    db.commit()
    db.refresh(user)
    logger.info(f"{action} user {user.id} for Clerk id {user.clerk_id}")
    return user


def delete_user_by_clerk_id(db: Session, clerk_id: str) -> bool:
    """Delete a user; returns False when no such user exists"""
    user = get_user_by_clerk_id(db, clerk_id)
    if not user:
        logger.info(f"No user to delete for Clerk id {clerk_id}")
        return False
    db.delete(user)
    db.commit()
    logger.info(f"Deleted user {user.id} for Clerk id {clerk_id}")
    return True

"""Identity resolution and ownership checks shared by every handler"""
import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..auth import Identity
from ..db.models import User
from ..errors import NotAuthenticatedError, NotAuthorizedError, NotFoundError

logger = logging.getLogger(__name__)


def find_user(db: Session, identity: Optional[Identity]) -> Optional[User]:
    """Look up the internal user for an identity, None when absent"""
    if identity is None:
        return None
    return db.query(User).filter(User.clerk_id == identity.subject).first()


def require_user(db: Session, identity: Optional[Identity]) -> User:
    """
    Resolve the caller's user record.

    The lookup runs on every call; nothing is cached between requests.

    Raises:
        NotAuthenticatedError: if there is no identity
        NotFoundError: if no user is registered for the identity
    """
    if identity is None:
        raise NotAuthenticatedError()
    user = find_user(db, identity)
    if user is None:
        raise NotFoundError.for_entity("User")
    return user


def require_owner(record: Any, user: User, action: str, owner_field: str = "owner_id") -> None:
    """
    Ensure ``record`` belongs to ``user``.

    Raises:
        NotAuthorizedError: with "Not authorized to <action>" on mismatch
    """
    if getattr(record, owner_field) != user.id:
        logger.warning(
            f"User {user.id} denied: not authorized to {action} "
            f"({type(record).__name__} {getattr(record, 'id', None)})"
        )
        raise NotAuthorizedError(f"Not authorized to {action}")


def require_found(record: Any, entity: str) -> Any:
    """Return ``record`` or raise NotFoundError for ``entity``"""
    if record is None:
        raise NotFoundError.for_entity(entity)
    return record


def touch(record: Any) -> None:
    """Bump ``updated_at`` on a parent whose child changed"""
    record.updated_at = datetime.utcnow()

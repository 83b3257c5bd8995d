"""User API routes"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import Identity, get_identity
from ..db.session import get_db
from ..errors import NotAuthenticatedError, NotAuthorizedError, SheetdashError
from ..models import UserResponse, UserUpsert
from ..services import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_current_user(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Get the caller's user record"""
    try:
        user = await user_service.get_current_user(db, identity)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )
        return user
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to get current user")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get user: {str(e)}"
        )


@router.put("/me", response_model=UserResponse)
async def upsert_current_user(
    user_data: UserUpsert,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Create or update the caller's profile"""
    try:
        if identity is None:
            raise NotAuthenticatedError()
        if user_data.clerk_id != identity.subject:
            raise NotAuthorizedError("Not authorized to update this user")
        return await user_service.create_or_update_user(db, user_data)
    except SheetdashError:
        raise
    except Exception as e:
        logger.exception("Failed to store user")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to store user: {str(e)}"
        )

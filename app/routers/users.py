"""
Studio Split - Users Router
API endpoints for the current user's profile
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.deps.auth import get_current_user
from app.models.models import AppUser
from app.schemas.user import UserResponse, UserUpdate

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    current_user: AppUser = Depends(get_current_user)
):
    """
    Get the current user's profile.
    """
    return current_user


@router.patch("/me", response_model=UserResponse)
async def update_profile(
    body: UserUpdate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    """
    Update the current user's profile (name, bio, media).
    """
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)

    db.commit()
    db.refresh(current_user)
    return current_user

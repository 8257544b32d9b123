"""
Studio Split - Authentication Dependencies
Bearer token validation and user extraction
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.models.models import AppUser
from app.services.auth import auth_service

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> AppUser:
    """
    FastAPI dependency to get the current authenticated user.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = auth_service.decode_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise credentials_exception

    user = db.get(AppUser, payload["sub"])
    if user is None:
        raise credentials_exception

    return user


async def get_active_user(user: AppUser = Depends(get_current_user)) -> AppUser:
    """
    Authenticated user whose account is not frozen.
    Frozen accounts can still sign in and read, but not transact.
    """
    if user.tier_frozen:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Account frozen: {user.freeze_reason or 'under review'}"
        )
    return user


async def require_admin(user: AppUser = Depends(get_current_user)) -> AppUser:
    """Admin-only routes."""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user

"""
Studio Split - User Schemas
Pydantic schemas for user-related request/response validation
"""
from pydantic import BaseModel, EmailStr
from typing import Optional, List
from datetime import datetime


class UserResponse(BaseModel):
    """Schema for user response."""
    id: str
    email: EmailStr
    name: Optional[str] = None
    role: str
    bio: Optional[str] = None
    media: Optional[List[str]] = None
    completed_bookings: int = 0
    is_admin: bool = False
    tier_frozen: bool = False
    freeze_reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    """Schema for profile updates."""
    name: Optional[str] = None
    bio: Optional[str] = None
    media: Optional[List[str]] = None

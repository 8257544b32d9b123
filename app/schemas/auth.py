"""
Studio Split - Auth Schemas
Pydantic schemas for authentication (register/login)
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal

from app.schemas.user import UserResponse


class UserRegister(BaseModel):
    """Schema for user registration."""
    email: EmailStr
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    name: Optional[str] = None
    role: Literal["client", "artist", "producer", "engineer", "studio"] = "client"


class UserLogin(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str


class Token(BaseModel):
    """Schema for JWT token response."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class AuthResponse(BaseModel):
    """Schema for authentication response (user + token)."""
    user: UserResponse
    token: Token

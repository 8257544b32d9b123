"""
Studio Split - Auth Router
Email/password sign-up and sign-in
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.models import AppUser
from app.schemas.auth import AuthResponse, Token, UserLogin, UserRegister
from app.schemas.user import UserResponse
from app.services.auth import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


def issue_session(user: AppUser) -> AuthResponse:
    token, expires_in = auth_service.create_access_token(user_id=user.id, email=user.email)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        token=Token(access_token=token, expires_in=expires_in),
    )


def find_by_email(db: Session, email: str):
    return db.query(AppUser).filter(AppUser.email == email.lower()).first()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(body: UserRegister, db: Session = Depends(get_db)):
    """
    Create an account and sign it in.

    - **role**: client, artist, producer, engineer or studio
    """
    if find_by_email(db, body.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user = AppUser(
        email=body.email.lower(),
        password_hash=auth_service.hash_password(body.password),
        name=body.name,
        role=body.role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return issue_session(user)


@router.post("/login", response_model=AuthResponse)
async def login(body: UserLogin, db: Session = Depends(get_db)):
    """
    Exchange email and password for a bearer token.

    Frozen accounts can still sign in; write endpoints refuse them.
    """
    user = find_by_email(db, body.email)
    if user is None or not user.password_hash or not auth_service.verify_password(body.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )
    return issue_session(user)

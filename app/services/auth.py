"""
Studio Split - Auth Service
Password hashing and the bearer tokens the API accepts
"""
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from app.config import Settings, get_settings


class AuthService:
    """bcrypt password hashes and HS256 access tokens."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.secret = settings.jwt_secret_key
        self.algorithm = settings.jwt_algorithm
        self.lifetime = timedelta(minutes=settings.jwt_expire_minutes)

    def hash_password(self, password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # Malformed hash in the database
            return False

    def create_access_token(
        self,
        user_id: str,
        email: str,
        expires_delta: Optional[timedelta] = None
    ) -> tuple[str, int]:
        """
        Issue a signed token for a user.

        Returns:
            (token, lifetime in seconds)
        """
        lifetime = expires_delta or self.lifetime
        issued_at = datetime.utcnow()
        claims = {
            "sub": user_id,
            "email": email,
            "iat": issued_at,
            "exp": issued_at + lifetime,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm), int(lifetime.total_seconds())

    def decode_token(self, token: str) -> Optional[dict]:
        """Claims of a valid, unexpired token, else None."""
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError:
            return None


auth_service = AuthService()

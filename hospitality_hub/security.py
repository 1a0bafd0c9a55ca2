"""Password/PIN hashing and JWT helpers used by the auth routes and deps."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt
from passlib.hash import bcrypt

from hospitality_hub.config import settings

SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM


def get_password_hash(password: str) -> str:
    """Hash a plaintext password (or PIN) using bcrypt."""
    return bcrypt.hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Verify a plaintext password against a bcrypt hash."""
    if not password_hash:
        return False
    return bcrypt.verify(password, password_hash)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

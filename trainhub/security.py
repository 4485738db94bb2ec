from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from trainhub.config import Settings

pwd_context = CryptContext(schemes=["argon2", "bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hashes a plain-text password."""
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """Verifies a plain-text password against a hash."""
    return pwd_context.verify(password, hashed_password)


class TokenService:
    """Issues and validates bearer tokens with the secret from one Settings object."""

    def __init__(self, settings: Settings):
        self._secret = settings.SECRET_KEY
        self._algorithm = settings.JWT_ALGORITHM
        self._expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    def create_access_token(self, data: dict, expires_delta: timedelta | None = None) -> str:
        """Creates a JWT access token."""
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (expires_delta or self._expires)
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, self._secret, algorithm=self._algorithm)

    def issue(self, subject_id: int, role: str, **claims: Any) -> str:
        return self.create_access_token({"sub": str(subject_id), "role": role, **claims})

    def decode_access_token(self, token: str) -> dict[str, Any] | None:
        """Decodes a JWT access token; None when invalid or expired."""
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError:
            return None

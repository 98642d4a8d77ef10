from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import uuid

import bcrypt
from jose import JWTError, jwt

from .config import settings

MIN_PASSWORD_LENGTH = 8


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(
            _truncate(plain_password.encode("utf-8")),
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        # Stored hash is not a valid bcrypt hash
        return False


def get_password_hash(password: str) -> str:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
        )

    hashed = bcrypt.hashpw(_truncate(password.encode("utf-8")), bcrypt.gensalt())
    return hashed.decode("utf-8")


def _truncate(password_bytes: bytes) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return password_bytes[:72]


def create_token(
    subject: str | Any,
    expires_delta: Optional[timedelta],
    token_type: str,
    claims: Optional[dict[str, Any]] = None,
) -> str:
    sub = subject if isinstance(subject, str) else str(subject)

    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=15))
    payload: dict[str, Any] = {
        **(claims or {}),
        "sub": sub,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
        "type": token_type,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(subject: str | Any, claims: Optional[dict[str, Any]] = None) -> str:
    expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return create_token(subject, expires, token_type="access", claims=claims)


def decode_token(token: str, expected_type: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
        if payload.get("type") != expected_type:
            raise JWTError("Invalid token type")
        return payload
    except JWTError as exc:
        raise JWTError("Invalid or expired token") from exc

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from .config import settings


# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))


def require_secret_key() -> str:
    if not settings.SECRET_KEY:
        raise RuntimeError("SECRET_KEY not configured")
    return settings.SECRET_KEY


def create_token(user_id: int, issued_at: Optional[datetime] = None) -> str:
    """Sign a session token for ``user_id`` that expires TOKEN_TTL_SECONDS after ``issued_at``."""
    secret = require_secret_key()
    # JWT times are whole seconds; truncate so exp - iat is exactly the TTL
    issued_at = (issued_at or datetime.now(timezone.utc)).replace(microsecond=0)
    payload = {
        "id": user_id,
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=settings.TOKEN_TTL_SECONDS),
    }
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> int:
    """
    Returns the user id encoded in ``token``.

    Raises jwt.InvalidTokenError for bad signatures, expired or malformed
    tokens, and tokens without a usable ``id`` claim.
    """
    if not settings.SECRET_KEY:
        raise jwt.InvalidTokenError("SECRET_KEY not configured")
    data = jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["exp", "id"]},
    )
    user_id = data["id"]
    if not isinstance(user_id, int):
        raise jwt.InvalidTokenError("id claim must be an integer")
    return user_id

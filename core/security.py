"""Password hashing and bearer token signing.

Tokens are stateless HS256 JWTs carrying the user id and email. Nothing is
stored server side, so a token stays valid until it expires.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import bcrypt
import jwt

from core.config import settings
from core.exceptions import ConfigError, InvalidTokenError

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def get_password_hash(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def require_secret_key() -> str:
    """Return the signing secret or raise ConfigError when none is configured."""
    if not settings.SECRET_KEY:
        raise ConfigError("JWT_SECRET is not configured")
    return settings.SECRET_KEY


def create_access_token(user_id: str, email: str, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a signed token for ``user_id`` valid for the configured window."""
    secret = require_secret_key()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS))
    payload = {
        "sub": user_id,
        "id": user_id,
        "email": email,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, secret, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Dict[str, str]:
    """Verify ``token`` and return ``{"id", "email"}``.

    Any failure (bad signature, garbage input, expiry, missing claims)
    raises InvalidTokenError. There is no partially trusted result.
    """
    secret = require_secret_key()
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.ALGORITHM],
            options={"require": ["exp", "id", "email"]},
        )
    except jwt.PyJWTError as e:
        raise InvalidTokenError(str(e)) from e

    user_id = payload.get("id")
    email = payload.get("email")
    if not isinstance(user_id, str) or not isinstance(email, str):
        raise InvalidTokenError("Token claims are malformed")
    return {"id": user_id, "email": email}

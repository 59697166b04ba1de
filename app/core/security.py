"""Access-token verification. Tokens are issued by the auth service, not here."""

import jwt

from app.core.config import settings


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])

"""Bearer-token authentication.

Tokens are HS256 JWTs issued by the identity provider (Supabase-style: the
principal id is the ``sub`` claim, audience ``authenticated``). The gateway
only verifies them; issuing and refreshing sessions happens elsewhere.
"""
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from teledrive.config import settings
from teledrive.errors import Unauthorized


@dataclass(frozen=True)
class Principal:
    id: str
    email: Optional[str] = None


security = HTTPBearer(auto_error=False)


def decode_principal(token: str) -> Principal:
    """Verify ``token`` and return the principal it names."""
    if not settings.AUTH_JWT_SECRET:
        raise Unauthorized("Authentication is not configured")
    try:
        claims = jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=[settings.AUTH_JWT_ALGORITHM],
            audience=settings.AUTH_JWT_AUDIENCE,
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        raise Unauthorized(f"Invalid token: {e}")

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
        raise Unauthorized("Invalid token claims")
    return Principal(id=subject, email=claims.get("email"))


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    """FastAPI dependency resolving the Authorization header to a Principal."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized()
    return decode_principal(credentials.credentials)

"""
Bearer-token authentication against identity-provider access tokens.

Tokens are HS256 JWTs signed with the provider's project secret; the subject
claim is the user id and user_metadata carries the display name and avatar.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError

from jobscout.core import config
from jobscout.core.errors import Unauthorized

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthIdentity:
    """Caller identity resolved from an access token."""
    id: str
    email: str = ""
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


def decode_access_token(token: str) -> AuthIdentity:
    """
    Verify an access token and extract the caller identity.
    
    Raises:
        Unauthorized: secret not configured, bad signature, expired, or no subject
    """
    if not config.SUPABASE_JWT_SECRET:
        logger.error("SUPABASE_JWT_SECRET not configured - rejecting authenticated request")
        raise Unauthorized()

    options = {} if config.JWT_AUDIENCE else {"verify_aud": False}
    try:
        payload = jwt.decode(
            token,
            config.SUPABASE_JWT_SECRET,
            algorithms=[config.JWT_ALGORITHM],
            audience=config.JWT_AUDIENCE or None,
            options=options,
        )
    except JWTError as e:
        logger.warning(f"Access token rejected: {e}")
        raise Unauthorized()

    user_id = payload.get("sub")
    if not user_id:
        raise Unauthorized()

    metadata = payload.get("user_metadata") or {}
    return AuthIdentity(
        id=user_id,
        email=payload.get("email") or "",
        full_name=metadata.get("full_name"),
        avatar_url=metadata.get("avatar_url"),
    )


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthIdentity:
    """Resolve the caller from the Authorization header; 401 when absent or invalid."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized()
    return decode_access_token(credentials.credentials)

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from applymate.core.config import settings
from applymate.models.schemas import Identity

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def verify_token(token: str) -> Identity | None:
    """Decode a bearer token into the caller's identity, or None if invalid."""
    if not token:
        return None
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
        subject = payload["sub"]
    except (JWTError, KeyError) as exc:
        logger.warning("Error verifying token: %s", exc)
        return None

    if not isinstance(subject, str) or not subject.strip():
        return None
    return Identity(subject=subject, email=payload.get("email"))


def get_optional_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Identity | None:
    """Identity when a bearer token is sent, None for anonymous callers.

    A token that is present but invalid is still rejected.
    """
    if credentials is None:
        return None

    identity = verify_token(credentials.credentials)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session. Please log in again.",
        )
    return identity


def get_identity(
    identity: Identity | None = Depends(get_optional_identity),
) -> Identity:
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return identity

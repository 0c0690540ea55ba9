# manuorder/auth/service.py

from datetime import timedelta, datetime, timezone
from typing import Annotated, Optional
from uuid import uuid4
import logging

import jwt
from jwt import PyJWTError
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError as PydanticValidationError

from . import models
from ..core.config import settings
from ..core.exceptions import UnauthorizedError
from ..users.models import UserRole

logger = logging.getLogger(__name__)

# auto_error=False so a missing header becomes our own 401 body
bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(
    user_id: str,
    role: UserRole,
    name: Optional[str] = None,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Mint a session token the way the identity provider does.
    Used by local tooling and the test suite; production tokens come from the provider.
    """
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    encode = {
        'sub': email or user_id,
        'id': str(user_id),
        'role': UserRole(role).value,
        'name': name,
        'email': email,
        'exp': expire,
        'scope': 'access_token',
        'jti': str(uuid4()),
    }
    return jwt.encode(encode, settings.SESSION_SECRET_KEY, algorithm=settings.SESSION_ALGORITHM)


def verify_token(token: str) -> models.SessionUser:
    """Decodes and verifies a session token."""
    try:
        payload = jwt.decode(token, settings.SESSION_SECRET_KEY, algorithms=[settings.SESSION_ALGORITHM])
    except PyJWTError as e:
        logger.warning(f"JWT decode error: {e}")
        raise UnauthorizedError("Invalid or expired session", technical_details=str(e))

    if payload.get('scope') != 'access_token':
        raise UnauthorizedError("Invalid session scope")

    user_id = payload.get('id')
    if not user_id:
        raise UnauthorizedError("User ID not found in session")

    try:
        return models.SessionUser(
            user_id=str(user_id),
            role=payload.get('role'),
            name=payload.get('name'),
            email=payload.get('email'),
        )
    except PydanticValidationError as e:
        raise UnauthorizedError("Session carries an unknown role", technical_details=str(e))


def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> models.SessionUser:
    """FastAPI dependency resolving the caller before any role check runs."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Not authenticated")
    return verify_token(credentials.credentials)


CurrentUser = Annotated[models.SessionUser, Depends(get_current_user)]

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..config import settings
from ..models.models import User
from ..services import users as user_service

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_minutes: int = 60) -> str:
    """Sign a session token with the configured key. Used for local development and tests."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode = data.copy()
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    # Identity-provider session tokens carry no audience.
    return jwt.decode(
        token,
        settings.jwt_key,
        algorithms=[settings.jwt_algorithm],
        options={"verify_aud": False},
    )


def _user_from_token(db: Session, token: str) -> Optional[User]:
    try:
        payload = decode_token(token)
    except JWTError:
        return None
    user_id: Optional[str] = payload.get("sub")
    if not user_id:
        return None

    user = user_service.get_user_by_id(db, user_id)
    if user is None and payload.get("email"):
        # The webhook has not delivered user.created yet.
        logger.info("Provisioning user %s from session token", user_id)
        user = user_service.create_user(db, user_id=user_id, email=payload["email"], name=payload.get("name"))
        if user.id != user_id:
            logger.warning("Session token for %s matches the email of user %s; rejecting", user_id, user.id)
            return None
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not credentials:
        raise credentials_exception
    user = _user_from_token(db, credentials.credentials)
    if user is None:
        raise credentials_exception
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    if not credentials:
        return None
    return _user_from_token(db, credentials.credentials)

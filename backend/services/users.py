from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.models import User

logger = logging.getLogger(__name__)


def get_user_by_id(session: Session, user_id: str) -> Optional[User]:
    return session.get(User, user_id)


def get_user_by_email(session: Session, email: str) -> Optional[User]:
    return session.query(User).filter(User.email == email).first()


def create_user(session: Session, *, user_id: str, email: str, name: Optional[str] = None) -> User:
    """Insert a user row, returning the existing row when one already matches by id or email."""
    existing = get_user_by_id(session, user_id)
    if existing:
        return existing

    existing = get_user_by_email(session, email)
    if existing:
        if existing.id != user_id:
            logger.warning(
                "User with email %s already exists under id %s (incoming id %s); keeping existing row.",
                email,
                existing.id,
                user_id,
            )
        return existing

    user = User(id=user_id, email=email, name=name or None)
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        # Lost a race with a concurrent insert for the same user.
        session.rollback()
        existing = get_user_by_email(session, email) or get_user_by_id(session, user_id)
        if existing:
            return existing
        raise
    session.refresh(user)
    logger.info("Created user %s", user.id)
    return user


def update_user(
    session: Session,
    user_id: str,
    *,
    email: Optional[str] = None,
    name: Optional[str] = None,
) -> Optional[User]:
    user = get_user_by_id(session, user_id)
    if not user:
        return None
    if email is not None:
        user.email = email
    user.name = name or None
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("Updated user %s", user.id)
    return user


def delete_user(session: Session, user_id: str) -> bool:
    user = get_user_by_id(session, user_id)
    if not user:
        return False
    session.delete(user)
    session.commit()
    logger.info("Deleted user %s", user_id)
    return True

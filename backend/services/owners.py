"""Owner entities, their users, and their stakes in properties.

Access is role based per owner: admins manage the owner, its users and its
property links; editors may add or re-weight property links; any linked user may
read. Functions raise :class:`OwnershipError` subclasses which the router maps
to HTTP responses.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..constants import (
    FULL_OWNERSHIP_PERCENTAGE,
    INVITATION_ACCEPTED,
    INVITATION_EXPIRED,
    INVITATION_PENDING,
    INVITATION_TTL_DAYS,
    OWNER_ROLE_ADMIN,
    PROPERTY_LINK_ROLES,
)
from ..models.models import Owner, OwnerInvitation, Property, PropertyOwner, User, UserOwner
from ..schemas.schemas import InvitationCreate, OwnerCreate, OwnerUpdate

logger = logging.getLogger(__name__)

ADMIN_ONLY = {OWNER_ROLE_ADMIN}
PERCENTAGE_TOLERANCE = 1e-6


class OwnershipError(Exception):
    pass


class NotFoundError(OwnershipError):
    pass


class PermissionDeniedError(OwnershipError):
    pass


class ValidationError(OwnershipError):
    pass


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _get_link(session: Session, user_id: str, owner_id: int) -> Optional[UserOwner]:
    return (
        session.query(UserOwner)
        .filter(UserOwner.user_id == user_id, UserOwner.owner_id == owner_id)
        .first()
    )


def _require_role(
    session: Session,
    user: User,
    owner_id: int,
    roles: Optional[Iterable[str]] = None,
    message: str = "Unauthorized",
) -> UserOwner:
    link = _get_link(session, user.id, owner_id)
    if not link or (roles is not None and link.role not in set(roles)):
        raise PermissionDeniedError(message)
    return link


def _get_owner(session: Session, owner_id: int) -> Owner:
    owner = session.get(Owner, owner_id)
    if not owner:
        raise NotFoundError("Owner not found")
    return owner


def _get_property_owner(session: Session, property_owner_id: int) -> PropertyOwner:
    link = session.get(PropertyOwner, property_owner_id)
    if not link:
        raise NotFoundError("Property owner relationship not found")
    return link


def _check_percentage_total(
    session: Session,
    property_id: int,
    percentage: float,
    exclude_id: Optional[int] = None,
) -> None:
    if percentage <= 0 or percentage > FULL_OWNERSHIP_PERCENTAGE:
        raise ValidationError("Ownership percentage must be greater than 0 and at most 100")
    query = session.query(func.coalesce(func.sum(PropertyOwner.ownership_percentage), 0.0)).filter(
        PropertyOwner.property_id == property_id
    )
    if exclude_id is not None:
        query = query.filter(PropertyOwner.id != exclude_id)
    allocated = float(query.scalar() or 0.0)
    if allocated + percentage > FULL_OWNERSHIP_PERCENTAGE + PERCENTAGE_TOLERANCE:
        raise ValidationError(
            f"Total ownership for a property cannot exceed 100% ({allocated:g}% already allocated)"
        )


def _count_admins(session: Session, owner_id: int) -> int:
    return (
        session.query(UserOwner)
        .filter(UserOwner.owner_id == owner_id, UserOwner.role == OWNER_ROLE_ADMIN)
        .count()
    )


# --- Owners ---


def create_owner(session: Session, user: User, payload: OwnerCreate) -> Owner:
    """Create an owner and link the caller to it as admin."""
    owner = Owner(**payload.model_dump())
    session.add(owner)
    session.flush()
    has_primary = (
        session.query(UserOwner)
        .filter(UserOwner.user_id == user.id, UserOwner.is_primary.is_(True))
        .count()
        > 0
    )
    session.add(
        UserOwner(user_id=user.id, owner_id=owner.id, role=OWNER_ROLE_ADMIN, is_primary=not has_primary)
    )
    session.commit()
    session.refresh(owner)
    logger.info("User %s created owner %s", user.id, owner.id)
    return owner


def update_owner(session: Session, user: User, owner_id: int, payload: OwnerUpdate) -> Owner:
    owner = _get_owner(session, owner_id)
    _require_role(session, user, owner_id, ADMIN_ONLY)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(owner, field, value)
    session.add(owner)
    session.commit()
    session.refresh(owner)
    logger.info("User %s updated owner %s", user.id, owner.id)
    return owner


# --- Property links ---


def add_property_owner(
    session: Session,
    user: User,
    *,
    property_id: int,
    owner_id: int,
    ownership_percentage: float,
) -> PropertyOwner:
    _get_owner(session, owner_id)
    _require_role(session, user, owner_id, PROPERTY_LINK_ROLES)
    if not session.get(Property, property_id):
        raise NotFoundError("Property not found")
    exists = (
        session.query(PropertyOwner)
        .filter(PropertyOwner.property_id == property_id, PropertyOwner.owner_id == owner_id)
        .first()
    )
    if exists:
        raise ValidationError("Owner is already linked to this property")
    _check_percentage_total(session, property_id, ownership_percentage)

    link = PropertyOwner(property_id=property_id, owner_id=owner_id, ownership_percentage=ownership_percentage)
    session.add(link)
    session.commit()
    session.refresh(link)
    logger.info(
        "User %s linked owner %s to property %s at %.2f%%",
        user.id,
        owner_id,
        property_id,
        ownership_percentage,
    )
    return link


def update_property_owner(
    session: Session,
    user: User,
    property_owner_id: int,
    ownership_percentage: float,
) -> PropertyOwner:
    link = _get_property_owner(session, property_owner_id)
    _require_role(session, user, link.owner_id, PROPERTY_LINK_ROLES)
    _check_percentage_total(session, link.property_id, ownership_percentage, exclude_id=link.id)
    link.ownership_percentage = ownership_percentage
    session.add(link)
    session.commit()
    session.refresh(link)
    return link


def remove_property_owner(session: Session, user: User, property_owner_id: int) -> None:
    link = _get_property_owner(session, property_owner_id)
    _require_role(session, user, link.owner_id, ADMIN_ONLY)
    session.delete(link)
    session.commit()
    logger.info("User %s removed property owner link %s", user.id, property_owner_id)


def get_property_owners(session: Session, user: User, property_id: int) -> List[Tuple[Owner, PropertyOwner]]:
    """Owners of a property with their stakes, visible to its legacy owner or any linked user."""
    prop = session.get(Property, property_id)
    if not prop:
        raise NotFoundError("Property not found")
    rows = (
        session.query(Owner, PropertyOwner)
        .join(PropertyOwner, PropertyOwner.owner_id == Owner.id)
        .filter(PropertyOwner.property_id == property_id)
        .order_by(PropertyOwner.created_at.asc(), PropertyOwner.id.asc())
        .all()
    )
    if prop.user_id != user.id:
        owner_ids = [owner.id for owner, _ in rows]
        linked = (
            owner_ids
            and session.query(UserOwner)
            .filter(UserOwner.user_id == user.id, UserOwner.owner_id.in_(owner_ids))
            .count()
        )
        if not linked:
            raise PermissionDeniedError("Unauthorized")
    return [(owner, link) for owner, link in rows]


# --- Users and invitations ---


def invite_user_to_owner(session: Session, user: User, owner_id: int, payload: InvitationCreate) -> OwnerInvitation:
    _get_owner(session, owner_id)
    _require_role(session, user, owner_id, ADMIN_ONLY)
    invitation = OwnerInvitation(
        owner_id=owner_id,
        email=str(payload.email),
        role=payload.role,
        invited_by=user.id,
        token=str(uuid.uuid4()),
        status=INVITATION_PENDING,
        expires_at=datetime.now(timezone.utc) + timedelta(days=INVITATION_TTL_DAYS),
    )
    session.add(invitation)
    session.commit()
    session.refresh(invitation)
    logger.info("User %s invited a user to owner %s as %s", user.id, owner_id, payload.role)
    return invitation


def accept_invitation(session: Session, user: User, token: str, *, now: Optional[datetime] = None) -> UserOwner:
    invitation = session.query(OwnerInvitation).filter(OwnerInvitation.token == token).first()
    if not invitation:
        raise NotFoundError("Invitation not found")
    if invitation.status != INVITATION_PENDING:
        raise ValidationError("Invitation is no longer valid")

    current = now or datetime.now(timezone.utc)
    if current > _as_utc(invitation.expires_at):
        invitation.status = INVITATION_EXPIRED
        session.add(invitation)
        session.commit()
        raise ValidationError("Invitation has expired")

    if _get_link(session, user.id, invitation.owner_id):
        raise ValidationError("You already have access to this owner")

    link = UserOwner(user_id=user.id, owner_id=invitation.owner_id, role=invitation.role)
    session.add(link)
    invitation.status = INVITATION_ACCEPTED
    invitation.accepted_at = current
    session.add(invitation)
    session.commit()
    session.refresh(link)
    logger.info("User %s accepted invitation %s for owner %s", user.id, invitation.id, invitation.owner_id)
    return link


def get_owner_users(session: Session, user: User, owner_id: int) -> List[Tuple[User, UserOwner]]:
    _get_owner(session, owner_id)
    _require_role(session, user, owner_id)
    rows = (
        session.query(User, UserOwner)
        .join(UserOwner, UserOwner.user_id == User.id)
        .filter(UserOwner.owner_id == owner_id)
        .order_by(UserOwner.created_at.asc(), UserOwner.id.asc())
        .all()
    )
    return [(member, link) for member, link in rows]


def update_user_role(session: Session, user: User, owner_id: int, target_user_id: str, role: str) -> UserOwner:
    _require_role(session, user, owner_id, ADMIN_ONLY, "Unauthorized - Admin access required")
    link = _get_link(session, target_user_id, owner_id)
    if not link:
        raise NotFoundError("User is not linked to this owner")
    if link.role == OWNER_ROLE_ADMIN and role != OWNER_ROLE_ADMIN and _count_admins(session, owner_id) <= 1:
        raise ValidationError("Cannot remove the last admin")
    link.role = role
    session.add(link)
    session.commit()
    session.refresh(link)
    logger.info("User %s set role of %s on owner %s to %s", user.id, target_user_id, owner_id, role)
    return link


def remove_user_from_owner(session: Session, user: User, owner_id: int, target_user_id: str) -> None:
    _require_role(session, user, owner_id, ADMIN_ONLY, "Unauthorized - Admin access required")
    link = _get_link(session, target_user_id, owner_id)
    if not link:
        raise NotFoundError("User is not linked to this owner")
    if link.role == OWNER_ROLE_ADMIN and _count_admins(session, owner_id) <= 1:
        raise ValidationError("Cannot remove the last admin")
    session.delete(link)
    session.commit()
    logger.info("User %s removed %s from owner %s", user.id, target_user_id, owner_id)

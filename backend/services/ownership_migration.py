"""Backfill explicit owner records for properties that predate the ownership model.

Before owners existed, a property belonged to whoever was in ``Property.user_id``.
The backfill gives every user an owner (created on first run, reused afterwards)
and links each of the user's properties to it at 100%. Properties that already
have any ownership link are left alone, so the run is safe to repeat.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Tuple

from sqlalchemy import exists, func
from sqlalchemy.orm import Session

from ..constants import FULL_OWNERSHIP_PERCENTAGE, OWNER_ROLE_ADMIN, OWNER_TYPE_INDIVIDUAL
from ..models.models import Owner, Property, PropertyOwner, User, UserOwner
from ..schemas.schemas import MigrationResult, MigrationStatus

logger = logging.getLogger(__name__)


def _has_ownership_records(session: Session, property_id: int) -> bool:
    return session.query(exists().where(PropertyOwner.property_id == property_id)).scalar()


def _resolve_owner_id(session: Session, user: User) -> Tuple[int, bool]:
    """Return ``(owner_id, created)`` for the owner the user's properties should move to."""
    link = (
        session.query(UserOwner)
        .filter(UserOwner.user_id == user.id)
        .order_by(
            UserOwner.is_primary.desc(),
            (UserOwner.role == OWNER_ROLE_ADMIN).desc(),
            UserOwner.created_at.asc(),
            UserOwner.id.asc(),
        )
        .first()
    )
    if link:
        return link.owner_id, False

    owner = Owner(name=user.display_name, type=OWNER_TYPE_INDIVIDUAL, email=user.email)
    session.add(owner)
    session.flush()
    session.add(UserOwner(user_id=user.id, owner_id=owner.id, role=OWNER_ROLE_ADMIN, is_primary=True))
    session.flush()
    return owner.id, True


def migrate_properties_to_ownership_model(session: Session) -> MigrationResult:
    """Run the backfill; each user's writes are committed together."""
    try:
        logger.info("Starting property ownership migration")
        properties = session.query(Property).order_by(Property.created_at.asc(), Property.id.asc()).all()
        users = session.query(User).order_by(User.created_at.asc(), User.id.asc()).all()
        logger.info("Found %d properties across %d users", len(properties), len(users))

        properties_by_user: Dict[str, List[Property]] = defaultdict(list)
        for prop in properties:
            properties_by_user[prop.user_id].append(prop)

        migrated_count = 0
        skipped_count = 0
        for user in users:
            owner_id, created = _resolve_owner_id(session, user)
            if created:
                logger.info("Created owner %s for user %s", owner_id, user.id)
            else:
                logger.debug("Reusing owner %s for user %s", owner_id, user.id)

            user_migrated = 0
            user_skipped = 0
            for prop in properties_by_user.get(user.id, []):
                if _has_ownership_records(session, prop.id):
                    logger.debug("Property %s already has ownership records, skipping", prop.id)
                    user_skipped += 1
                    continue
                session.add(
                    PropertyOwner(
                        property_id=prop.id,
                        owner_id=owner_id,
                        ownership_percentage=FULL_OWNERSHIP_PERCENTAGE,
                    )
                )
                user_migrated += 1
            session.commit()

            migrated_count += user_migrated
            skipped_count += user_skipped
            if user_migrated:
                logger.info("Migrated %d properties for user %s to owner %s", user_migrated, user.id, owner_id)

        logger.info(
            "Property ownership migration complete: migrated=%d skipped=%d users=%d",
            migrated_count,
            skipped_count,
            len(users),
        )
        return MigrationResult(
            success=True,
            migrated_count=migrated_count,
            skipped_count=skipped_count,
            total_users=len(users),
        )
    except Exception as exc:
        session.rollback()
        logger.exception("Property ownership migration failed")
        return MigrationResult(success=False, error=str(exc) or exc.__class__.__name__)


def check_migration_status(session: Session) -> MigrationStatus:
    """Count properties with and without ownership links. Read-only."""
    try:
        owned = exists().where(PropertyOwner.property_id == Property.id)
        total = session.query(func.count(Property.id)).scalar() or 0
        needs_migration = session.query(func.count(Property.id)).filter(~owned).scalar() or 0
        return MigrationStatus(
            success=True,
            total_properties=total,
            needs_migration=needs_migration,
            already_migrated=total - needs_migration,
        )
    except Exception as exc:
        logger.exception("Error checking migration status")
        return MigrationStatus(success=False, error=str(exc) or exc.__class__.__name__)

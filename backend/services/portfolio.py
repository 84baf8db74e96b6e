"""Read helpers scoped to the signed-in user's portfolio.

Scoping follows the legacy ownership chain: properties by ``Property.user_id``,
tenants through their property, leases through their tenant.
"""

from __future__ import annotations

from typing import List, Tuple

from sqlalchemy.orm import Session

from ..models.models import Lease, Owner, Property, Tenant, User, UserOwner


def get_user_owners(session: Session, user: User) -> List[Tuple[Owner, str]]:
    """Owners the user is linked to, paired with the user's role on each."""
    rows = (
        session.query(Owner, UserOwner.role)
        .join(UserOwner, UserOwner.owner_id == Owner.id)
        .filter(UserOwner.user_id == user.id)
        .order_by(UserOwner.created_at.asc(), UserOwner.id.asc())
        .all()
    )
    return [(owner, role) for owner, role in rows]


def get_user_properties(session: Session, user: User) -> List[Property]:
    return (
        session.query(Property)
        .filter(Property.user_id == user.id)
        .order_by(Property.created_at.asc(), Property.id.asc())
        .all()
    )


def count_properties(session: Session, user: User) -> int:
    return session.query(Property).filter(Property.user_id == user.id).count()


def get_user_tenants(session: Session, user: User) -> List[Tenant]:
    return (
        session.query(Tenant)
        .join(Property, Property.id == Tenant.property_id)
        .filter(Property.user_id == user.id)
        .order_by(Tenant.created_at.asc(), Tenant.id.asc())
        .all()
    )


def count_tenants(session: Session, user: User) -> int:
    return (
        session.query(Tenant)
        .join(Property, Property.id == Tenant.property_id)
        .filter(Property.user_id == user.id)
        .count()
    )


def get_user_leases(session: Session, user: User) -> List[Lease]:
    return (
        session.query(Lease)
        .join(Tenant, Tenant.id == Lease.tenant_id)
        .join(Property, Property.id == Tenant.property_id)
        .filter(Property.user_id == user.id)
        .order_by(Lease.start_date.asc(), Lease.id.asc())
        .all()
    )

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship as orm_relationship

from ..config import Base
from ..constants import INVITATION_PENDING, OWNER_ROLE_VIEWER, OWNER_TYPE_INDIVIDUAL


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    # Identity-provider user id (e.g. user_2abc...)
    id = Column(String(255), primary_key=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    properties = orm_relationship("Property", back_populates="user", cascade="all, delete-orphan")
    owner_links = orm_relationship("UserOwner", back_populates="user", cascade="all, delete-orphan")
    owners = orm_relationship("Owner", secondary="user_owners", viewonly=True)

    @property
    def display_name(self) -> str:
        return self.name or self.email


class Owner(Base):
    __tablename__ = "owners"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False, default=OWNER_TYPE_INDIVIDUAL)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    tax_id = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user_links = orm_relationship("UserOwner", back_populates="owner", cascade="all, delete-orphan")
    property_links = orm_relationship("PropertyOwner", back_populates="owner", cascade="all, delete-orphan")
    invitations = orm_relationship("OwnerInvitation", back_populates="owner", cascade="all, delete-orphan")
    linked_users = orm_relationship("User", secondary="user_owners", viewonly=True)


class UserOwner(Base):
    __tablename__ = "user_owners"
    __table_args__ = (UniqueConstraint("user_id", "owner_id", name="uq_user_owners_user_owner"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = Column(Integer, ForeignKey("owners.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False, default=OWNER_ROLE_VIEWER)
    # The user's default owner; the ownership backfill prefers it over other links.
    is_primary = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = orm_relationship("User", back_populates="owner_links")
    owner = orm_relationship("Owner", back_populates="user_links")


class PropertyOwner(Base):
    __tablename__ = "property_owners"
    __table_args__ = (UniqueConstraint("property_id", "owner_id", name="uq_property_owners_property_owner"),)

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = Column(Integer, ForeignKey("owners.id", ondelete="CASCADE"), nullable=False, index=True)
    ownership_percentage = Column(Float, nullable=False, default=100.0)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    property = orm_relationship("Property", back_populates="owner_links")
    owner = orm_relationship("Owner", back_populates="property_links")


class OwnerInvitation(Base):
    __tablename__ = "owner_invitations"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("owners.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=OWNER_ROLE_VIEWER)
    invited_by = Column(String(255), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    token = Column(String(64), unique=True, index=True, nullable=False)
    status = Column(String(20), nullable=False, default=INVITATION_PENDING)
    expires_at = Column(DateTime, nullable=False)
    accepted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    owner = orm_relationship("Owner", back_populates="invitations")


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)
    # Legacy single-owner column, kept until every property has ownership links.
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    address = Column(String(500), nullable=False)
    acquired_on = Column(Date, nullable=True)
    principal_amount = Column(Numeric(12, 2), nullable=True)
    rate_of_interest = Column(Float, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = orm_relationship("User", back_populates="properties")
    owner_links = orm_relationship("PropertyOwner", back_populates="property", cascade="all, delete-orphan")
    units = orm_relationship("Unit", back_populates="property", cascade="all, delete-orphan")
    tenants = orm_relationship("Tenant", back_populates="property", cascade="all, delete-orphan")


class Unit(Base):
    __tablename__ = "units"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    unit_number = Column(String(50), nullable=False)
    rent_amount = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    property = orm_relationship("Property", back_populates="units")
    tenants = orm_relationship("Tenant", back_populates="unit")


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    # Single-family properties have no units.
    unit_id = Column(Integer, ForeignKey("units.id", ondelete="CASCADE"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    property = orm_relationship("Property", back_populates="tenants")
    unit = orm_relationship("Unit", back_populates="tenants")
    leases = orm_relationship("Lease", back_populates="tenant", cascade="all, delete-orphan")


class Lease(Base):
    __tablename__ = "leases"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    deposit = Column(Numeric(12, 2), nullable=False)
    rent = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    tenant = orm_relationship("Tenant", back_populates="leases")

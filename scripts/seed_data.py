#!/usr/bin/env python
"""
Seed script to populate the database with sample data for local development.

Landlords are created the pre-ownership way (properties keyed by user only), so
the ownership backfill has something to do afterwards.

Usage:
    python scripts/seed_data.py --landlords 3
"""

import argparse
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.auth.jwt import create_access_token  # noqa: E402
from backend.config import Base, SessionLocal, engine  # noqa: E402
from backend.models.models import Lease, Property, Tenant, Unit, User  # noqa: E402


def create_landlord_bundle(session, index: int) -> User:
    user_id = f"user_seed_{index:03d}"
    user = session.get(User, user_id)
    if user:
        return user

    user = User(id=user_id, email=f"landlord{index}@example.com", name=f"Test Landlord {index}")
    session.add(user)
    session.flush()

    prop = Property(
        user_id=user.id,
        address=f"{100 + index} Maple Street",
        acquired_on=date(2020, 1, 1) + timedelta(days=30 * index),
        principal_amount=Decimal("250000.00"),
        rate_of_interest=6.5,
    )
    session.add(prop)
    session.flush()

    unit = Unit(property_id=prop.id, unit_number="1A", rent_amount=Decimal("1450.00"))
    session.add(unit)
    session.flush()

    tenant = Tenant(
        property_id=prop.id,
        unit_id=unit.id,
        name=f"Tenant {index}",
        phone=f"+1555000{index:04d}",
        email=f"tenant{index}@example.com",
    )
    session.add(tenant)
    session.flush()

    today = date.today()
    session.add(
        Lease(
            tenant_id=tenant.id,
            start_date=today - timedelta(days=180),
            end_date=today + timedelta(days=185),
            deposit=Decimal("1450.00"),
            rent=unit.rent_amount,
        )
    )
    return user


def seed_database(landlords: int) -> None:
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        users = [create_landlord_bundle(session, index) for index in range(1, max(landlords, 0) + 1)]
        session.commit()
        print(f"Seed complete. {len(users)} landlord accounts available.")
        for user in users:
            token = create_access_token({"sub": user.id, "email": user.email}, expires_minutes=60 * 24)
            print(f"  {user.email}: Bearer {token}")


def main():
    parser = argparse.ArgumentParser(description="Seed the RentTrackr database with sample data.")
    parser.add_argument("--landlords", type=int, default=3, help="Number of landlord accounts to create")
    args = parser.parse_args()
    seed_database(args.landlords)


if __name__ == "__main__":
    main()

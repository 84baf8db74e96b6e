import sys
from collections.abc import Callable, Generator
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.config import Base  # noqa: E402
import backend.config as app_config  # noqa: E402
import backend.main as app_main  # noqa: E402
from backend.auth.jwt import create_access_token  # noqa: E402
# Import the full models module so all tables register with Base metadata.
from backend.models import models as _all_models  # noqa: E402,F401
from backend.models.models import Lease, Owner, Property, Tenant, User, UserOwner  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _configure_global_test_db(tmp_path_factory):
    """Configure the app-wide SessionLocal/engine so nothing touches the dev database."""
    db_dir = tmp_path_factory.mktemp("globaldb")
    db_path = db_dir / "app.db"
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    app_config.SessionLocal = SessionLocal
    app_config.engine = engine
    app_main.engine = engine
    yield
    engine.dispose()


@pytest.fixture(autouse=True)
def _local_message_output(tmp_path, monkeypatch):
    monkeypatch.setattr(app_config.settings, "messaging_backend", "local")
    monkeypatch.setattr(app_config.settings, "messages_output_dir", str(tmp_path / "messages"))


@pytest.fixture
def db_session(tmp_path) -> Generator[Session, None, None]:
    """Provide a fresh SQLite database for each test."""
    db_path = tmp_path / "test.db"
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def create_user(db_session: Session) -> Callable[..., User]:
    counter = {"value": 0}

    def _create(email: Optional[str] = None, name: Optional[str] = None, user_id: Optional[str] = None) -> User:
        counter["value"] += 1
        user = User(
            id=user_id or f"user_test_{counter['value']:03d}",
            email=email or f"user{counter['value']}@example.com",
            name=name,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _create


@pytest.fixture
def create_property(db_session: Session) -> Callable[..., Property]:
    counter = {"value": 0}

    def _create(user: User, address: Optional[str] = None) -> Property:
        counter["value"] += 1
        prop = Property(user_id=user.id, address=address or f"{counter['value']} Main Street")
        db_session.add(prop)
        db_session.commit()
        return prop

    return _create


@pytest.fixture
def create_tenant(db_session: Session) -> Callable[..., Tenant]:
    def _create(prop: Property, name: str = "Tenant", phone: Optional[str] = "+15551234567") -> Tenant:
        tenant = Tenant(property_id=prop.id, name=name, phone=phone)
        db_session.add(tenant)
        db_session.commit()
        return tenant

    return _create


@pytest.fixture
def create_lease(db_session: Session) -> Callable[..., Lease]:
    def _create(tenant: Tenant, months: int = 12) -> Lease:
        start = date(2025, 1, 1)
        lease = Lease(
            tenant_id=tenant.id,
            start_date=start,
            end_date=start + timedelta(days=30 * months),
            deposit=Decimal("1000.00"),
            rent=Decimal("1000.00"),
        )
        db_session.add(lease)
        db_session.commit()
        return lease

    return _create


@pytest.fixture
def create_owner(db_session: Session) -> Callable[..., Owner]:
    counter = {"value": 0}

    def _create(
        user: Optional[User] = None,
        role: str = "admin",
        is_primary: bool = False,
        name: Optional[str] = None,
    ) -> Owner:
        counter["value"] += 1
        owner = Owner(name=name or f"Owner {counter['value']}", type="individual")
        db_session.add(owner)
        db_session.flush()
        if user is not None:
            db_session.add(UserOwner(user_id=user.id, owner_id=owner.id, role=role, is_primary=is_primary))
        db_session.commit()
        return owner

    return _create


@pytest.fixture
def auth_headers() -> Callable[..., dict]:
    def _headers(user_id: str, email: Optional[str] = None) -> dict:
        claims = {"sub": user_id}
        if email:
            claims["email"] = email
        return {"Authorization": f"Bearer {create_access_token(claims)}"}

    return _headers

from backend.models.models import Owner, PropertyOwner, UserOwner
from backend.services import ownership_migration
from backend.services.ownership_migration import check_migration_status, migrate_properties_to_ownership_model


def _row_counts(session):
    return (
        session.query(Owner).count(),
        session.query(UserOwner).count(),
        session.query(PropertyOwner).count(),
    )


def test_backfill_creates_one_admin_owner_per_user(db_session, create_user, create_property):
    alice = create_user(email="alice@example.com", name="Alice Landlord")
    bob = create_user(email="bob@example.com")
    create_property(alice)
    create_property(alice)
    create_property(bob)

    result = migrate_properties_to_ownership_model(db_session)

    assert result.success is True
    assert result.migrated_count == 3
    assert result.skipped_count == 0
    assert result.total_users == 2

    for user, expected_name in ((alice, "Alice Landlord"), (bob, "bob@example.com")):
        links = db_session.query(UserOwner).filter(UserOwner.user_id == user.id).all()
        assert len(links) == 1
        assert links[0].role == "admin"
        assert links[0].is_primary is True
        owner = db_session.get(Owner, links[0].owner_id)
        assert owner.name == expected_name
        assert owner.type == "individual"
        assert owner.email == user.email

    stakes = db_session.query(PropertyOwner).all()
    assert len(stakes) == 3
    assert all(stake.ownership_percentage == 100.0 for stake in stakes)


def test_backfill_is_idempotent(db_session, create_user, create_property):
    user = create_user()
    create_property(user)
    create_property(user)

    first = migrate_properties_to_ownership_model(db_session)
    counts_after_first = _row_counts(db_session)
    second = migrate_properties_to_ownership_model(db_session)

    assert first.migrated_count == 2
    assert second.success is True
    assert second.migrated_count == 0
    assert second.skipped_count == 2
    assert _row_counts(db_session) == counts_after_first


def test_backfill_skips_properties_with_existing_ownership(db_session, create_user, create_property, create_owner):
    user = create_user()
    owned = create_property(user)
    pending = create_property(user)
    partner = create_owner(name="Partner LLC")
    db_session.add(PropertyOwner(property_id=owned.id, owner_id=partner.id, ownership_percentage=40.0))
    db_session.commit()

    result = migrate_properties_to_ownership_model(db_session)

    assert result.skipped_count == 1
    assert result.migrated_count == 1
    assert db_session.query(PropertyOwner).filter(PropertyOwner.property_id == owned.id).count() == 1
    assert db_session.query(PropertyOwner).filter(PropertyOwner.property_id == pending.id).count() == 1


def test_backfill_prefers_primary_link(db_session, create_user, create_property, create_owner):
    user = create_user()
    create_owner(user, role="admin", name="Older Admin Owner")
    primary = create_owner(user, role="viewer", is_primary=True, name="Primary Owner")
    prop = create_property(user)

    migrate_properties_to_ownership_model(db_session)

    stake = db_session.query(PropertyOwner).filter(PropertyOwner.property_id == prop.id).one()
    assert stake.owner_id == primary.id
    assert db_session.query(Owner).count() == 2


def test_backfill_prefers_admin_link_when_no_primary(db_session, create_user, create_property, create_owner):
    user = create_user()
    create_owner(user, role="viewer", name="Viewer Owner")
    admin_owner = create_owner(user, role="admin", name="Admin Owner")
    prop = create_property(user)

    migrate_properties_to_ownership_model(db_session)

    stake = db_session.query(PropertyOwner).filter(PropertyOwner.property_id == prop.id).one()
    assert stake.owner_id == admin_owner.id


def test_backfill_failure_keeps_earlier_users_and_rolls_back_current(
    db_session, create_user, create_property, monkeypatch
):
    first = create_user(email="first@example.com")
    second = create_user(email="second@example.com")
    create_property(first)
    broken = create_property(second)

    original = ownership_migration._has_ownership_records

    def _flaky(session, property_id):
        if property_id == broken.id:
            raise RuntimeError("database unavailable")
        return original(session, property_id)

    monkeypatch.setattr(ownership_migration, "_has_ownership_records", _flaky)

    result = migrate_properties_to_ownership_model(db_session)

    assert result.success is False
    assert result.error == "database unavailable"
    assert db_session.query(UserOwner).filter(UserOwner.user_id == first.id).count() == 1
    assert db_session.query(UserOwner).filter(UserOwner.user_id == second.id).count() == 0
    assert db_session.query(Owner).count() == 1
    assert db_session.query(PropertyOwner).count() == 1


def test_migration_status_counts(db_session, create_user, create_property):
    user = create_user()
    create_property(user)
    create_property(user)

    before = check_migration_status(db_session)
    assert before.success is True
    assert before.total_properties == 2
    assert before.needs_migration == 2
    assert before.already_migrated == 0

    migrate_properties_to_ownership_model(db_session)
    after = check_migration_status(db_session)
    assert after.needs_migration == 0
    assert after.already_migrated == 2


def test_migration_status_reports_read_failure(db_session, monkeypatch):
    def _boom(*args, **kwargs):
        raise RuntimeError("connection refused")

    monkeypatch.setattr(db_session, "query", _boom)

    status = check_migration_status(db_session)

    assert status.success is False
    assert status.error == "connection refused"

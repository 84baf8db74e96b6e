from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from backend.api.dependencies import get_db
from backend.auth.jwt import get_current_user
from backend.main import app
from backend.models.models import OwnerInvitation, PropertyOwner, UserOwner
from backend.schemas.schemas import InvitationCreate, OwnerCreate, OwnerUpdate
from backend.services import owners as owner_service


def _override_get_db(session):
    def _generator():
        try:
            yield session
        finally:
            pass

    return _generator


def _override_user(user):
    def _provider():
        return user

    return _provider


def test_create_owner_links_creator_as_primary_admin(db_session, create_user):
    user = create_user()

    owner = owner_service.create_owner(db_session, user, OwnerCreate(name="Maple LLC", type="entity"))
    second = owner_service.create_owner(db_session, user, OwnerCreate(name="Second LLC", type="entity"))

    first_link = db_session.query(UserOwner).filter(UserOwner.owner_id == owner.id).one()
    second_link = db_session.query(UserOwner).filter(UserOwner.owner_id == second.id).one()
    assert first_link.role == "admin"
    assert first_link.is_primary is True
    assert second_link.is_primary is False


def test_update_owner_requires_admin(db_session, create_user, create_owner):
    admin = create_user()
    editor = create_user()
    owner = create_owner(admin)
    db_session.add(UserOwner(user_id=editor.id, owner_id=owner.id, role="editor"))
    db_session.commit()

    with pytest.raises(owner_service.PermissionDeniedError):
        owner_service.update_owner(db_session, editor, owner.id, OwnerUpdate(name="Nope"))

    updated = owner_service.update_owner(db_session, admin, owner.id, OwnerUpdate(notes="Quarterly review"))
    assert updated.notes == "Quarterly review"
    assert updated.name.startswith("Owner")


def test_property_percentages_cannot_exceed_full_ownership(db_session, create_user, create_owner, create_property):
    user = create_user()
    first = create_owner(user)
    second = create_owner(user)
    third = create_owner(user)
    prop = create_property(user)

    owner_service.add_property_owner(db_session, user, property_id=prop.id, owner_id=first.id, ownership_percentage=60)
    owner_service.add_property_owner(db_session, user, property_id=prop.id, owner_id=second.id, ownership_percentage=40)

    with pytest.raises(owner_service.ValidationError):
        owner_service.add_property_owner(
            db_session, user, property_id=prop.id, owner_id=third.id, ownership_percentage=0.5
        )
    assert db_session.query(PropertyOwner).filter(PropertyOwner.property_id == prop.id).count() == 2


def test_update_property_owner_excludes_own_share_from_total(db_session, create_user, create_owner, create_property):
    user = create_user()
    first = create_owner(user)
    second = create_owner(user)
    prop = create_property(user)
    link = owner_service.add_property_owner(
        db_session, user, property_id=prop.id, owner_id=first.id, ownership_percentage=50
    )
    owner_service.add_property_owner(db_session, user, property_id=prop.id, owner_id=second.id, ownership_percentage=30)

    updated = owner_service.update_property_owner(db_session, user, link.id, 70)
    assert updated.ownership_percentage == 70

    with pytest.raises(owner_service.ValidationError):
        owner_service.update_property_owner(db_session, user, link.id, 71)


def test_percentage_must_be_positive(db_session, create_user, create_owner, create_property):
    user = create_user()
    owner = create_owner(user)
    prop = create_property(user)

    with pytest.raises(owner_service.ValidationError):
        owner_service.add_property_owner(db_session, user, property_id=prop.id, owner_id=owner.id, ownership_percentage=0)


def test_viewer_cannot_link_properties(db_session, create_user, create_owner, create_property):
    admin = create_user()
    viewer = create_user()
    owner = create_owner(admin)
    db_session.add(UserOwner(user_id=viewer.id, owner_id=owner.id, role="viewer"))
    db_session.commit()
    prop = create_property(viewer)

    with pytest.raises(owner_service.PermissionDeniedError):
        owner_service.add_property_owner(
            db_session, viewer, property_id=prop.id, owner_id=owner.id, ownership_percentage=100
        )


def test_invitation_flow(db_session, create_user, create_owner):
    admin = create_user()
    invitee = create_user(email="invitee@example.com")
    owner = create_owner(admin)

    invitation = owner_service.invite_user_to_owner(
        db_session, admin, owner.id, InvitationCreate(email="invitee@example.com", role="editor")
    )
    assert invitation.status == "pending"
    assert len(invitation.token) == 36

    link = owner_service.accept_invitation(db_session, invitee, invitation.token)
    assert link.role == "editor"
    db_session.refresh(invitation)
    assert invitation.status == "accepted"
    assert invitation.accepted_at is not None

    with pytest.raises(owner_service.ValidationError, match="no longer valid"):
        owner_service.accept_invitation(db_session, invitee, invitation.token)


def test_accept_rejects_existing_member(db_session, create_user, create_owner):
    admin = create_user()
    owner = create_owner(admin)
    invitation = owner_service.invite_user_to_owner(
        db_session, admin, owner.id, InvitationCreate(email="self@example.com")
    )

    with pytest.raises(owner_service.ValidationError, match="already have access"):
        owner_service.accept_invitation(db_session, admin, invitation.token)


def test_expired_invitation_is_marked_expired(db_session, create_user, create_owner):
    admin = create_user()
    invitee = create_user()
    owner = create_owner(admin)
    invitation = owner_service.invite_user_to_owner(
        db_session, admin, owner.id, InvitationCreate(email="late@example.com")
    )

    later = datetime.now(timezone.utc) + timedelta(days=8)
    with pytest.raises(owner_service.ValidationError, match="expired"):
        owner_service.accept_invitation(db_session, invitee, invitation.token, now=later)

    refreshed = db_session.get(OwnerInvitation, invitation.id)
    assert refreshed.status == "expired"
    assert db_session.query(UserOwner).filter(UserOwner.user_id == invitee.id).count() == 0


def test_last_admin_cannot_demote_or_remove_themselves(db_session, create_user, create_owner):
    admin = create_user()
    owner = create_owner(admin)

    with pytest.raises(owner_service.ValidationError, match="last admin"):
        owner_service.update_user_role(db_session, admin, owner.id, admin.id, "viewer")
    with pytest.raises(owner_service.ValidationError, match="last admin"):
        owner_service.remove_user_from_owner(db_session, admin, owner.id, admin.id)


def test_admin_can_step_down_when_another_admin_exists(db_session, create_user, create_owner):
    admin = create_user()
    co_admin = create_user()
    owner = create_owner(admin)
    db_session.add(UserOwner(user_id=co_admin.id, owner_id=owner.id, role="admin"))
    db_session.commit()

    link = owner_service.update_user_role(db_session, admin, owner.id, admin.id, "editor")
    assert link.role == "editor"

    with pytest.raises(owner_service.PermissionDeniedError):
        owner_service.remove_user_from_owner(db_session, admin, owner.id, co_admin.id)


def test_get_owner_users_requires_membership(db_session, create_user, create_owner):
    admin = create_user()
    stranger = create_user()
    owner = create_owner(admin)

    rows = owner_service.get_owner_users(db_session, admin, owner.id)
    assert [(member.id, link.role) for member, link in rows] == [(admin.id, "admin")]

    with pytest.raises(owner_service.PermissionDeniedError):
        owner_service.get_owner_users(db_session, stranger, owner.id)


def test_owner_routes(db_session, create_user, create_property):
    user = create_user()
    prop = create_property(user)
    app.dependency_overrides[get_db] = _override_get_db(db_session)
    app.dependency_overrides[get_current_user] = _override_user(user)
    client = TestClient(app)
    try:
        response = client.post("/owners/", json={"name": "Oak Holdings", "type": "entity"})
        assert response.status_code == 201
        owner_id = response.json()["id"]

        listing = client.get("/owners/")
        assert listing.status_code == 200
        assert listing.json()[0]["role"] == "admin"

        response = client.post(
            "/owners/property-links",
            json={"property_id": prop.id, "owner_id": owner_id, "ownership_percentage": 100},
        )
        assert response.status_code == 201
        link_id = response.json()["id"]

        response = client.get(f"/owners/properties/{prop.id}")
        assert response.status_code == 200
        assert response.json()[0]["ownership_percentage"] == 100
        assert response.json()[0]["property_owner_id"] == link_id

        response = client.patch(f"/owners/property-links/{link_id}", json={"ownership_percentage": 120})
        assert response.status_code == 422

        response = client.patch(f"/owners/{owner_id}/users/{user.id}", json={"role": "viewer"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot remove the last admin"

        response = client.patch("/owners/9999", json={"name": "Ghost"})
        assert response.status_code == 404

        response = client.delete(f"/owners/property-links/{link_id}")
        assert response.status_code == 204
    finally:
        client.close()
        app.dependency_overrides.clear()

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import get_current_user
from ..models.models import Owner, User, UserOwner
from ..schemas.schemas import (
    InvitationCreate,
    InvitationRead,
    OwnerCreate,
    OwnerRead,
    OwnerUpdate,
    OwnerUserRead,
    OwnerWithRole,
    PropertyOwnerCreate,
    PropertyOwnerDetail,
    PropertyOwnerRead,
    PropertyOwnerUpdate,
    UserRoleUpdate,
)
from ..services import owners as owner_service
from ..services.portfolio import get_user_owners

router = APIRouter()


def _http_error(exc: owner_service.OwnershipError) -> HTTPException:
    if isinstance(exc, owner_service.NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, owner_service.PermissionDeniedError):
        return HTTPException(status_code=403, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _owner_with_role(owner: Owner, role: str) -> OwnerWithRole:
    return OwnerWithRole(**OwnerRead.model_validate(owner).model_dump(), role=role)


def _owner_user(member: User, link: UserOwner) -> OwnerUserRead:
    return OwnerUserRead(
        id=member.id,
        email=member.email,
        name=member.name,
        created_at=member.created_at,
        role=link.role,
        user_owner_id=link.id,
    )


@router.get("/", response_model=List[OwnerWithRole])
def list_my_owners(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> List[OwnerWithRole]:
    return [_owner_with_role(owner, role) for owner, role in get_user_owners(db, user)]


@router.post("/", response_model=OwnerRead, status_code=status.HTTP_201_CREATED)
def create_owner(
    payload: OwnerCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Owner:
    return owner_service.create_owner(db, user, payload)


@router.patch("/{owner_id}", response_model=OwnerRead)
def update_owner(
    owner_id: int,
    payload: OwnerUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Owner:
    try:
        return owner_service.update_owner(db, user, owner_id, payload)
    except owner_service.OwnershipError as exc:
        raise _http_error(exc) from exc


@router.get("/{owner_id}/users", response_model=List[OwnerUserRead])
def list_owner_users(
    owner_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> List[OwnerUserRead]:
    try:
        rows = owner_service.get_owner_users(db, user, owner_id)
    except owner_service.OwnershipError as exc:
        raise _http_error(exc) from exc
    return [_owner_user(member, link) for member, link in rows]


@router.patch("/{owner_id}/users/{user_id}", response_model=OwnerUserRead)
def update_user_role(
    owner_id: int,
    user_id: str,
    payload: UserRoleUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> OwnerUserRead:
    try:
        link = owner_service.update_user_role(db, user, owner_id, user_id, payload.role)
    except owner_service.OwnershipError as exc:
        raise _http_error(exc) from exc
    return _owner_user(link.user, link)


@router.delete("/{owner_id}/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_user(
    owner_id: int,
    user_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Response:
    try:
        owner_service.remove_user_from_owner(db, user, owner_id, user_id)
    except owner_service.OwnershipError as exc:
        raise _http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{owner_id}/invitations", response_model=InvitationRead, status_code=status.HTTP_201_CREATED)
def invite_user(
    owner_id: int,
    payload: InvitationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        return owner_service.invite_user_to_owner(db, user, owner_id, payload)
    except owner_service.OwnershipError as exc:
        raise _http_error(exc) from exc


@router.post("/invitations/{token}/accept", response_model=OwnerWithRole)
def accept_invitation(
    token: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> OwnerWithRole:
    try:
        link = owner_service.accept_invitation(db, user, token)
    except owner_service.OwnershipError as exc:
        raise _http_error(exc) from exc
    return _owner_with_role(link.owner, link.role)


@router.get("/properties/{property_id}", response_model=List[PropertyOwnerDetail])
def list_property_owners(
    property_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> List[PropertyOwnerDetail]:
    try:
        rows = owner_service.get_property_owners(db, user, property_id)
    except owner_service.OwnershipError as exc:
        raise _http_error(exc) from exc
    return [
        PropertyOwnerDetail(
            **OwnerRead.model_validate(owner).model_dump(),
            ownership_percentage=link.ownership_percentage,
            property_owner_id=link.id,
        )
        for owner, link in rows
    ]


@router.post("/property-links", response_model=PropertyOwnerRead, status_code=status.HTTP_201_CREATED)
def add_property_owner(
    payload: PropertyOwnerCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        return owner_service.add_property_owner(
            db,
            user,
            property_id=payload.property_id,
            owner_id=payload.owner_id,
            ownership_percentage=payload.ownership_percentage,
        )
    except owner_service.OwnershipError as exc:
        raise _http_error(exc) from exc


@router.patch("/property-links/{property_owner_id}", response_model=PropertyOwnerRead)
def update_property_owner(
    property_owner_id: int,
    payload: PropertyOwnerUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        return owner_service.update_property_owner(db, user, property_owner_id, payload.ownership_percentage)
    except owner_service.OwnershipError as exc:
        raise _http_error(exc) from exc


@router.delete("/property-links/{property_owner_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_property_owner(
    property_owner_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Response:
    try:
        owner_service.remove_property_owner(db, user, property_owner_id)
    except owner_service.OwnershipError as exc:
        raise _http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)

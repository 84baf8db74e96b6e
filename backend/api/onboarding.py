from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import get_optional_user
from ..models.models import User
from ..schemas.schemas import OnboardingStatus
from ..services.onboarding import get_onboarding_status

router = APIRouter()


@router.get("/status", response_model=OnboardingStatus)
def onboarding_status(
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
) -> OnboardingStatus:
    return get_onboarding_status(db, user)

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..constants import ONBOARDING_PATHS
from ..core.errors import UnauthorizedError
from ..models.models import User
from ..schemas.schemas import OnboardingStatus, OnboardingStep
from . import portfolio

logger = logging.getLogger(__name__)


def _lease_cta(first_tenant_id: Optional[int]) -> tuple[str, str]:
    if first_tenant_id is not None:
        return f"{ONBOARDING_PATHS['tenants']}/{first_tenant_id}", "Add Lease"
    return ONBOARDING_PATHS["tenants"], "Add Tenant First"


def _build_steps(
    owner_count: int,
    property_count: int,
    tenant_count: int,
    lease_count: int,
    first_tenant_id: Optional[int] = None,
) -> List[OnboardingStep]:
    lease_href, lease_text = _lease_cta(first_tenant_id)
    return [
        OnboardingStep(
            key="owner",
            title="Add Owner",
            description="Create an owner (you or your LLC) to organize your properties",
            complete=owner_count > 0,
            cta_href=ONBOARDING_PATHS["owner"],
            cta_text="Add Owner",
        ),
        OnboardingStep(
            key="property",
            title="Add Property",
            description="Add your first rental property to start tracking",
            complete=property_count > 0,
            cta_href=ONBOARDING_PATHS["property"],
            cta_text="Add Property",
        ),
        OnboardingStep(
            key="tenant",
            title="Add Tenant",
            description="Add tenants to track leases and payments",
            complete=tenant_count > 0,
            cta_href=ONBOARDING_PATHS["tenant"],
            cta_text="Add Tenant",
        ),
        OnboardingStep(
            key="lease",
            title="Add Lease",
            description="Create a lease for your tenant to enable rent tracking",
            complete=lease_count > 0,
            cta_href=lease_href,
            cta_text=lease_text,
        ),
    ]


def default_onboarding_status(error: Optional[str] = None) -> OnboardingStatus:
    """All-incomplete state returned when the counts cannot be read."""
    return OnboardingStatus(
        owner_count=0,
        property_count=0,
        tenant_count=0,
        lease_count=0,
        steps=_build_steps(0, 0, 0, 0),
        is_complete=False,
        show_welcome=True,
        error=error,
    )


def get_onboarding_status(session: Session, user: Optional[User]) -> OnboardingStatus:
    """Progress through the owner, property, tenant and lease setup milestones.

    Never raises. A missing user or a failed read yields the default state with
    ``error`` set, so callers can tell a failed read apart from a new account.
    """
    try:
        if user is None:
            raise UnauthorizedError()

        owner_count = len(portfolio.get_user_owners(session, user))
        property_count = portfolio.count_properties(session, user)
        tenant_count = portfolio.count_tenants(session, user)
        lease_count = len(portfolio.get_user_leases(session, user))

        first_tenant_id = None
        if tenant_count > 0:
            tenants = portfolio.get_user_tenants(session, user)
            if tenants:
                first_tenant_id = tenants[0].id

        steps = _build_steps(owner_count, property_count, tenant_count, lease_count, first_tenant_id)
        return OnboardingStatus(
            owner_count=owner_count,
            property_count=property_count,
            tenant_count=tenant_count,
            lease_count=lease_count,
            steps=steps,
            is_complete=all(step.complete for step in steps),
            show_welcome=not any((owner_count, property_count, tenant_count, lease_count)),
        )
    except UnauthorizedError as exc:
        logger.info("Onboarding status requested without a session")
        return default_onboarding_status(str(exc))
    except Exception as exc:
        logger.exception("Error fetching onboarding status")
        return default_onboarding_status(str(exc) or exc.__class__.__name__)

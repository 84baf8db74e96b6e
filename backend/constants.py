APP_NAME = "RentTrackr"

DEFAULT_LOCALE = "en"

OWNER_TYPE_INDIVIDUAL = "individual"

OWNER_ROLE_ADMIN = "admin"
OWNER_ROLE_EDITOR = "editor"
OWNER_ROLE_VIEWER = "viewer"

# Roles allowed to add or re-weight a property's ownership links
PROPERTY_LINK_ROLES = {OWNER_ROLE_ADMIN, OWNER_ROLE_EDITOR}

FULL_OWNERSHIP_PERCENTAGE = 100.0

INVITATION_TTL_DAYS = 7
INVITATION_PENDING = "pending"
INVITATION_ACCEPTED = "accepted"
INVITATION_EXPIRED = "expired"

MAX_MESSAGE_LENGTH = 1600

ONBOARDING_PATHS = {
    "owner": "/dashboard/owners",
    "property": "/dashboard/properties/new",
    "tenant": "/dashboard/tenants/new",
    "tenants": "/dashboard/tenants",
}

CORS_ALLOW_ORIGINS = [
    "https://renttrackr.com",
    "https://www.renttrackr.com",
]

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..constants import DEFAULT_LOCALE, MAX_MESSAGE_LENGTH

OwnerType = Literal["individual", "entity"]
OwnerRole = Literal["admin", "editor", "viewer"]


class UserRead(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# --- Ownership migration ---


class MigrationResult(BaseModel):
    success: bool
    migrated_count: int = 0
    skipped_count: int = 0
    total_users: int = 0
    error: Optional[str] = None


class MigrationStatus(BaseModel):
    success: bool
    total_properties: int = 0
    needs_migration: int = 0
    already_migrated: int = 0
    error: Optional[str] = None


# --- Onboarding ---


class OnboardingStep(BaseModel):
    key: Literal["owner", "property", "tenant", "lease"]
    title: str
    description: str
    complete: bool
    cta_href: str
    cta_text: str


class OnboardingStatus(BaseModel):
    owner_count: int
    property_count: int
    tenant_count: int
    lease_count: int
    steps: List[OnboardingStep]
    is_complete: bool
    show_welcome: bool
    # Set when the counts could not be read; distinguishes a failed read from a new account.
    error: Optional[str] = None


# --- Messaging ---


class SendMessageRequest(BaseModel):
    to: str
    message: str
    tenant_name: Optional[str] = None
    locale: str = DEFAULT_LOCALE

    @field_validator("to")
    @classmethod
    def _require_phone(cls, value: str) -> str:
        if not value:
            raise ValueError("Phone number is required")
        return value

    @field_validator("message")
    @classmethod
    def _check_message(cls, value: str) -> str:
        if not value:
            raise ValueError("Message is required")
        if len(value) > MAX_MESSAGE_LENGTH:
            raise ValueError("Message is too long")
        return value

    @field_validator("locale", mode="before")
    @classmethod
    def _default_locale(cls, value: Optional[str]) -> str:
        return value or DEFAULT_LOCALE


class PaymentReminderRequest(BaseModel):
    tenant_phone: str
    tenant_name: str
    amount: float
    due_date: str
    locale: str = DEFAULT_LOCALE
    currency_symbol: str = "$"


class LeaseRenewalReminderRequest(BaseModel):
    tenant_phone: str
    tenant_name: str
    lease_end_date: str
    locale: str = DEFAULT_LOCALE


class SendMessageResult(BaseModel):
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    message_sid: Optional[str] = None


# --- Identity webhook ---


class ClerkEmailAddress(BaseModel):
    id: str
    email_address: str

    model_config = ConfigDict(extra="ignore")


class ClerkUserData(BaseModel):
    id: Optional[str] = None
    email_addresses: List[ClerkEmailAddress] = []
    primary_email_address_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @property
    def primary_email(self) -> Optional[str]:
        for email in self.email_addresses:
            if email.id == self.primary_email_address_id:
                return email.email_address
        return None

    @property
    def full_name(self) -> Optional[str]:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or None


class ClerkWebhookEvent(BaseModel):
    type: str
    data: Dict[str, Any] = {}

    model_config = ConfigDict(extra="ignore")


# --- Owners ---


class OwnerBase(BaseModel):
    name: str = Field(min_length=1)
    type: OwnerType = "individual"
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    tax_id: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class OwnerCreate(OwnerBase):
    pass


class OwnerUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    type: Optional[OwnerType] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    tax_id: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class OwnerRead(OwnerBase):
    id: int
    email: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OwnerWithRole(OwnerRead):
    role: OwnerRole


class PropertyOwnerCreate(BaseModel):
    property_id: int
    owner_id: int
    ownership_percentage: float = Field(gt=0, le=100)


class PropertyOwnerUpdate(BaseModel):
    ownership_percentage: float = Field(gt=0, le=100)


class PropertyOwnerRead(BaseModel):
    id: int
    property_id: int
    owner_id: int
    ownership_percentage: float

    model_config = ConfigDict(from_attributes=True)


class PropertyOwnerDetail(OwnerRead):
    ownership_percentage: float
    property_owner_id: int


class InvitationCreate(BaseModel):
    email: EmailStr
    role: OwnerRole = "viewer"


class InvitationRead(BaseModel):
    id: int
    owner_id: int
    email: str
    role: OwnerRole
    token: str
    status: str
    expires_at: datetime
    accepted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class OwnerUserRead(UserRead):
    role: OwnerRole
    user_owner_id: int


class UserRoleUpdate(BaseModel):
    role: OwnerRole

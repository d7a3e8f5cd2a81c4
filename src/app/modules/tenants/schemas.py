"""Pydantic schemas for tenant operations."""

import base64
import binascii
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from app.core.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_AGENCY_ID_LENGTH,
    MAX_DOMAIN_LENGTH,
    MAX_NAME_LENGTH,
    MAX_PAGE_SIZE,
    MAX_SLUG_LENGTH,
    SLUG_PATTERN,
)
from app.core.utils.text import generate_slug
from app.modules.tenants.models import TenantStatus


# ============================================================
# Provisioning Input
# ============================================================


class AssetUpload(BaseModel):
    """A branding file sent inline as base64."""

    filename: str = Field(..., min_length=1, max_length=255)
    content_base64: str

    @field_validator("content_base64")
    @classmethod
    def valid_base64(cls, v: str) -> str:
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("content_base64 is not valid base64") from e
        return v

    @property
    def content(self) -> bytes:
        return base64.b64decode(self.content_base64)


class CompanyInfo(BaseModel):
    """Company profile collected by the setup wizard."""

    name: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    industry: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None
    phone: str | None = None
    email: EmailStr | None = None
    website: str | None = None
    description: str | None = None
    founded_year: int | None = Field(None, ge=1800, le=2200)
    employee_count: int | None = Field(None, ge=0)
    capital: str | None = None
    tax_number: str | None = None
    tax_office: str | None = None
    registration_number: str | None = None
    mersis_number: str | None = None
    iban: str | None = None
    bank_name: str | None = None
    account_holder: str | None = None


class InitialLocation(BaseModel):
    """First business location created for a new tenant."""

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    code: str | None = None
    type: str = "office"
    address: str | None = None
    city: str | None = None
    country: str | None = None
    postal_code: str | None = None
    phone: str | None = None
    email: EmailStr | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    description: str | None = None


class TenantCreate(BaseModel):
    """Request to provision a new tenant.

    When ``slug`` is omitted it is generated from ``name``.
    """

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    slug: str | None = Field(None, max_length=MAX_SLUG_LENGTH, pattern=SLUG_PATTERN)
    subdomain: str | None = Field(None, max_length=MAX_DOMAIN_LENGTH)
    custom_domain: str | None = Field(None, max_length=MAX_DOMAIN_LENGTH)
    agency_id: str | None = Field(None, max_length=MAX_AGENCY_ID_LENGTH)
    year: int | None = Field(None, ge=2000, le=9999)

    company_info: CompanyInfo | None = None
    initial_location: InitialLocation | None = None
    logo: AssetUpload | None = None
    favicon: AssetUpload | None = None
    pwa_icon: AssetUpload | None = None

    @model_validator(mode="after")
    def default_slug(self) -> "TenantCreate":
        if not self.slug:
            self.slug = generate_slug(self.name, max_length=MAX_SLUG_LENGTH)
        if not self.slug:
            raise ValueError("A slug could not be derived from the tenant name")
        return self

    @field_validator("subdomain", "custom_domain")
    @classmethod
    def lowercase_domain(cls, v: str | None) -> str | None:
        return v.strip().lower() if v else v


class TenantUpdate(BaseModel):
    """Fields that may change after registration. The slug is immutable."""

    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    subdomain: str | None = Field(None, max_length=MAX_DOMAIN_LENGTH)
    custom_domain: str | None = Field(None, max_length=MAX_DOMAIN_LENGTH)
    status: TenantStatus | None = None
    metadata: dict[str, Any] | None = None

    model_config = ConfigDict(extra="forbid")


class TenantListParams(BaseModel):
    """Filters and pagination for listing tenants."""

    agency_id: str | None = None
    status: TenantStatus | None = None
    page: int = Field(1, ge=1)
    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)


# ============================================================
# Responses
# ============================================================


class TenantRead(BaseModel):
    """Registry row as returned by the API."""

    id: UUID
    name: str
    slug: str
    subdomain: str | None = None
    custom_domain: str | None = None
    agency_id: str | None = None
    status: str
    current_db: str
    all_databases: list[str]
    db_name: str
    setup_failed: bool
    provisioning_step: str | None = None
    metadata: dict[str, Any] | None = Field(None, validation_alias="metadata_")
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class TenantListResponse(BaseModel):
    items: list[TenantRead]
    total: int
    page: int
    page_size: int


class AccountCredentials(BaseModel):
    email: str
    username: str
    password: str


class Credentials(BaseModel):
    """Initial logins of a provisioned tenant.

    Generated passwords must be changed on first login.
    """

    access_url: str
    super_admin: AccountCredentials
    tenant_admin: AccountCredentials
    default_user: AccountCredentials


class ProvisionedTenant(BaseModel):
    id: UUID
    slug: str
    name: str
    db_name: str
    current_db: str


class ProvisioningResult(BaseModel):
    """Outcome of a provisioning run.

    A missing ``company_id``, ``export_template_id`` or ``location_id``
    means that step failed; its name is listed in ``enrichment_failures``.
    ``credentials`` is None when a resumed run skipped seeding, since no
    password was (re)issued.
    """

    tenant: ProvisionedTenant
    # carries the connection password; never serialized
    database_url: str | None = Field(None, exclude=True)
    credentials: Credentials | None = None
    company_id: str | None = None
    export_template_id: str | None = None
    location_id: str | None = None
    logo_url: str | None = None
    favicon_url: str | None = None
    pwa_icon_url: str | None = None
    enrichment_failures: list[str] = Field(default_factory=list)


class DatabaseInfo(BaseModel):
    """One yearly generation of a tenant database."""

    tenant_slug: str
    database: str
    year: int | None = None
    is_current: bool


class UserMatch(BaseModel):
    """A user found by a cross-tenant search."""

    tenant_slug: str
    database: str
    user_id: str
    email: str
    username: str
    role: str
    status: str


class SyncOutcome(BaseModel):
    tenant_slug: str
    ok: bool
    created: bool = False
    error: str | None = None


class SyncReport(BaseModel):
    """Per-tenant outcome of a super admin sync."""

    email: str
    username: str
    password: str | None = Field(
        None, description="Generated password of the accounts this sync created"
    )
    outcomes: list[SyncOutcome] = Field(default_factory=list)

    @property
    def failed(self) -> list[str]:
        return [o.tenant_slug for o in self.outcomes if not o.ok]


class ResolveResponse(BaseModel):
    tenant_slug: str | None = None
    source: str | None = None


class CurrentTenantResponse(BaseModel):
    """The tenant resolved for a request and the database serving it."""

    slug: str
    name: str
    current_db: str
    database: str | None


class RotateRequest(BaseModel):
    year: int | None = Field(None, ge=2000, le=9999)


class SetupRequest(BaseModel):
    resume: bool = False


class JobAccepted(BaseModel):
    job_id: str | None = None
    status: str = "queued"

"""Models for the regional administrator directory."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from regions import is_valid_region
from .incident import new_id, utcnow


class AdminPermissions(BaseModel):
    """Descriptive permission flags of a regional admin."""
    read: bool = Field(default=True)
    edit: bool = Field(default=True)
    delete: bool = Field(default=False)


class RegionalAdminCreate(BaseModel):
    """Fields of a regional admin profile."""
    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field(..., alias="fullName", description="Display name")
    email: str = Field(..., description="Contact email")
    phone: str = Field(..., description="Contact phone number")
    region: str = Field(..., description="Region the admin is responsible for")
    permissions: AdminPermissions = Field(default_factory=AdminPermissions)
    notifications_enabled: bool = Field(default=True, alias="notificationsEnabled")
    active: bool = Field(default=True)
    role: Literal["REGIONAL_ADMIN"] = Field(default="REGIONAL_ADMIN")

    @field_validator('full_name', 'phone')
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator('email')
    @classmethod
    def looks_like_email(cls, v):
        if not v or "@" not in v:
            raise ValueError("must be an email address")
        return v

    @field_validator('region')
    @classmethod
    def region_in_registry(cls, v):
        if not is_valid_region(v):
            raise ValueError(f"unknown region {v!r}")
        return v


class RegionalAdmin(RegionalAdminCreate):
    """A persisted regional admin profile."""
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")

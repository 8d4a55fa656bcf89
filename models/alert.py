"""Model for broadcast alerts."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from regions import is_valid_region
from .enums import AlertLevel, AlertScope
from .incident import new_id, utcnow


class AlertCreate(BaseModel):
    """Fields of an alert as entered by an official."""
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., description="Alert headline")
    message: str = Field(..., description="Alert body")
    level: AlertLevel = Field(default=AlertLevel.MEDIUM, description="Severity level")
    active: bool = Field(default=True, description="Whether the alert is currently broadcast")
    scope: AlertScope = Field(default=AlertScope.GLOBAL, description="GLOBAL or REGIONAL")
    region: Optional[str] = Field(default=None, description="Target region for REGIONAL alerts")

    @field_validator('title', 'message')
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v

    @model_validator(mode='after')
    def region_follows_scope(self):
        # GLOBAL alerts never carry a region, whatever the caller supplied
        if self.scope == AlertScope.GLOBAL:
            self.region = None
        elif not is_valid_region(self.region):
            raise ValueError(f"REGIONAL alerts need a known region, got {self.region!r}")
        return self


class Alert(AlertCreate):
    """A persisted alert record."""
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")

    def visible_in(self, region: Optional[str]) -> bool:
        """Whether the alert applies to the given region."""
        return self.scope == AlertScope.GLOBAL or (region is not None and self.region == region)

"""Models for citizen-reported incidents and their comments."""

import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from regions import is_valid_region
from .enums import SUB_TYPES, IncidentStatus, IncidentType

MAX_ATTACHMENT_BYTES = 10 * 1024 * 1024
ATTACHMENT_MEDIA_TYPES = ("image", "video", "audio")

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.*)$", re.DOTALL)
_BASE64 = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def decoded_size(payload: str) -> int:
    """Size in bytes of a Base64 payload once decoded."""
    payload = payload.strip()
    padding = payload.count("=", max(len(payload) - 2, 0))
    return (len(payload) * 3) // 4 - padding


def check_attachment(attachment: str, max_bytes: int = MAX_ATTACHMENT_BYTES) -> str:
    """
    Validate a Base64 data-URL attachment.

    Raises:
        ValueError: On a malformed payload, unsupported media type or oversize
    """
    match = _DATA_URL.match(attachment)
    if not match:
        raise ValueError("attachment must be a base64 data URL")
    media = match.group("mime").split("/")[0]
    if media not in ATTACHMENT_MEDIA_TYPES:
        raise ValueError(f"unsupported attachment type {match.group('mime')}")
    payload = match.group("payload").strip()
    if len(payload) % 4 or not _BASE64.match(payload):
        raise ValueError("attachment payload is not valid base64")
    if decoded_size(payload) > max_bytes:
        raise ValueError(f"attachment exceeds {max_bytes // (1024 * 1024)} MB")
    return attachment


class Comment(BaseModel):
    """A single entry of an incident's comment thread."""
    model_config = ConfigDict(populate_by_name=True)

    author: str = Field(..., description="Display name of the commenter")
    message: str = Field(..., min_length=1, description="Comment text")
    timestamp: datetime = Field(default_factory=utcnow, description="When the comment was added")


class IncidentCreate(BaseModel):
    """Fields supplied by the reporter when creating an incident."""
    model_config = ConfigDict(populate_by_name=True)

    type: IncidentType = Field(..., description="Incident classification")
    sub_type: str = Field(..., alias="subType", description="Sub type scoped by type")
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: Optional[str] = Field(default=None, description="Free-text address")
    region: Optional[str] = Field(default=None, description="Administrative region")
    description: str = Field(..., description="What happened")
    attachments: Optional[List[str]] = Field(default=None, description="Base64 data URLs")
    victim_count: Optional[int] = Field(default=None, alias="victimCount", ge=0)
    danger_level: Optional[int] = Field(default=None, alias="dangerLevel", ge=1, le=5)
    user_id: Optional[str] = Field(default=None, alias="userId", description="Reporting user id")

    @field_validator('sub_type', mode='before')
    @classmethod
    def sub_type_as_string(cls, v):
        if isinstance(v, Enum):
            return v.value
        return v

    @field_validator('description')
    @classmethod
    def description_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("description must not be empty")
        return v

    @field_validator('address')
    @classmethod
    def blank_address_is_absent(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    @field_validator('region')
    @classmethod
    def region_in_registry(cls, v):
        if v is not None and not is_valid_region(v):
            raise ValueError(f"unknown region {v!r}")
        return v

    @field_validator('attachments')
    @classmethod
    def attachments_valid(cls, v):
        if v is None:
            return v
        return [check_attachment(a) for a in v]

    @model_validator(mode='after')
    def sub_type_matches_type(self):
        if self.sub_type not in SUB_TYPES[self.type]:
            raise ValueError(f"sub type {self.sub_type} does not belong to {self.type.value}")
        if self.type == IncidentType.CIVIL_PROBLEM and (
            self.victim_count is not None or self.danger_level is not None
        ):
            raise ValueError("victim count and danger level apply to vital emergencies only")
        return self


class Incident(IncidentCreate):
    """A persisted incident record."""
    id: str = Field(default_factory=new_id, description="Stable unique id")
    status: IncidentStatus = Field(default=IncidentStatus.ALERT_RECEIVED)
    assigned_admin_id: Optional[str] = Field(default=None, alias="assignedAdminId")
    comments: List[Comment] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")

    @property
    def is_resolved(self) -> bool:
        return self.status == IncidentStatus.RESOLVED

    def matches_text(self, text: str) -> bool:
        """Case-insensitive match on description, sub type and address."""
        needle = text.lower()
        return (
            needle in self.description.lower()
            or needle in self.sub_type.lower()
            or (self.address is not None and needle in self.address.lower())
        )

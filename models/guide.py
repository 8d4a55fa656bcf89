"""Model for prevention guides."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import GuideCategory
from .incident import new_id, utcnow


class GuideCreate(BaseModel):
    """Fields of a prevention guide."""
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., description="Guide title")
    body: str = Field(..., description="Guide content")
    category: GuideCategory = Field(default=GuideCategory.OTHER)

    @field_validator('title', 'body')
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v


class Guide(GuideCreate):
    """A persisted guide record."""
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")

"""Model for the actor (session context) performing an operation."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from regions import is_valid_region
from .enums import Role


class Actor(BaseModel):
    """
    The authenticated user on whose behalf an operation runs.

    Passed explicitly to every access-layer call instead of living in
    shared global state.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., description="User id, used as incident provenance")
    full_name: str = Field(default="", description="Display name")
    role: Role = Field(default=Role.CITIZEN)
    region: Optional[str] = Field(default=None, description="Region scope of a regional admin")

    @model_validator(mode='after')
    def regional_admin_has_region(self):
        if self.role == Role.REGIONAL_ADMIN and not is_valid_region(self.region):
            raise ValueError(f"regional admins need a known region, got {self.region!r}")
        return self

    @classmethod
    def citizen(cls, user_id: str, full_name: str = "", region: Optional[str] = None) -> "Actor":
        return cls(user_id=user_id, full_name=full_name, role=Role.CITIZEN, region=region)

    @classmethod
    def regional_admin(cls, user_id: str, region: str, full_name: str = "") -> "Actor":
        return cls(user_id=user_id, full_name=full_name, role=Role.REGIONAL_ADMIN, region=region)

    @classmethod
    def super_admin(cls, user_id: str, full_name: str = "") -> "Actor":
        return cls(user_id=user_id, full_name=full_name, role=Role.SUPER_ADMIN)

    @property
    def is_admin(self) -> bool:
        return self.role in (Role.REGIONAL_ADMIN, Role.SUPER_ADMIN)

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN

    @property
    def is_regional_admin(self) -> bool:
        return self.role == Role.REGIONAL_ADMIN

"""Member data models."""

from typing import Optional
from pydantic import BaseModel, Field


class MemberCreate(BaseModel):
    """Member creation request model."""

    name: str = Field(..., min_length=1, description="Display name")
    quota_percent: float = Field(..., ge=0, description="Share of monthly expenses in percent")
    user_id: Optional[str] = Field(None, description="Registered user this member corresponds to")


class MemberUpdate(BaseModel):
    """Member update request model."""

    member_id: str = Field(..., description="Member to update")
    name: Optional[str] = Field(None, min_length=1, description="Display name")
    quota_percent: Optional[float] = Field(None, ge=0, description="Share of monthly expenses in percent")

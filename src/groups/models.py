"""Group data models."""

from typing import Optional
from pydantic import BaseModel, Field


class GroupCreate(BaseModel):
    """Group creation request model."""

    name: str = Field(..., min_length=1, description="Group name")
    owner_name: Optional[str] = Field(None, description="Display name of the owner's member row")


class Group(BaseModel):
    """Group model."""

    group_id: str
    name: str
    owner_id: str
    quota_version: int = 0
    category_seed_version: int = 0
    created_at: str
    updated_at: str

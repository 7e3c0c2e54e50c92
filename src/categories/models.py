"""Category data models."""

from typing import Optional
from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    """Category creation request model."""

    name: str = Field(..., min_length=1, max_length=50, description="Category name")
    icon: Optional[str] = Field(None, description="Icon identifier")
    color: Optional[str] = Field(None, description="Hex color, e.g. #22c55e")


class Category(BaseModel):
    """Category model."""

    category_id: str
    group_id: str
    name: str
    icon: str
    color: str
    created_at: str

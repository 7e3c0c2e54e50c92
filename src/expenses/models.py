"""Recurring expense data models."""

from typing import Optional, Dict, Any
from pydantic import BaseModel, Field


class RecurringExpenseCreate(BaseModel):
    """Recurring expense creation request model."""

    name: str = Field(..., min_length=1, description="Expense name")
    amount: float = Field(..., ge=0, description="Amount charged each cycle")
    frequency_type: str = Field(..., description="weekly, monthly, yearly, days or months")
    frequency_value: int = Field(1, description="N for every N days/months")
    category_id: Optional[str] = Field(None, description="Category ID")
    day_of_month: Optional[int] = Field(None, description="Day the charge usually occurs")
    is_active: bool = Field(True, description="Whether the expense counts at all")
    start_month: Optional[int] = Field(None, description="First month it applies")
    start_year: Optional[int] = Field(None, description="Year of start_month")
    end_month: Optional[int] = Field(None, description="Last month it applies")
    end_year: Optional[int] = Field(None, description="Year of end_month")


class RecurringExpenseUpdate(BaseModel):
    """Recurring expense update request model."""

    expense_id: str = Field(..., description="Expense to update")
    name: Optional[str] = Field(None, min_length=1, description="Expense name")
    amount: Optional[float] = Field(None, ge=0, description="Amount charged each cycle")
    frequency_type: Optional[str] = Field(None, description="weekly, monthly, yearly, days or months")
    frequency_value: Optional[int] = Field(None, description="N for every N days/months")
    category_id: Optional[str] = Field(None, description="Category ID")
    day_of_month: Optional[int] = Field(None, description="Day the charge usually occurs")
    is_active: Optional[bool] = Field(None, description="Whether the expense counts at all")
    start_month: Optional[int] = Field(None, description="First month it applies")
    start_year: Optional[int] = Field(None, description="Year of start_month")
    end_month: Optional[int] = Field(None, description="Last month it applies")
    end_year: Optional[int] = Field(None, description="Year of end_month")

    def changes(self) -> Dict[str, Any]:
        """Fields present in the request, excluding the expense ID."""
        return self.model_dump(exclude_unset=True, exclude={'expense_id'})


class RecurringExpense(BaseModel):
    """Recurring expense model."""

    group_id: str
    expense_id: str
    category_id: Optional[str] = None
    name: str
    amount: float
    frequency_type: str
    frequency_value: int = 1
    day_of_month: Optional[int] = None
    is_active: bool = True
    start_month: Optional[int] = None
    start_year: Optional[int] = None
    end_month: Optional[int] = None
    end_year: Optional[int] = None
    created_at: str
    updated_at: str

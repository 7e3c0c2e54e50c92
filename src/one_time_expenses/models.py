"""One-time expense data models."""

from typing import Optional, Dict, Any
from pydantic import BaseModel, Field


class OneTimeExpenseCreate(BaseModel):
    """One-time expense creation request model."""

    name: str = Field(..., min_length=1, description="Expense name")
    amount: float = Field(..., ge=0, description="Expense amount")
    date: str = Field(..., description="Expense date (YYYY-MM-DD)")
    month: Optional[int] = Field(None, description="Month the expense is booked in")
    year: Optional[int] = Field(None, description="Year the expense is booked in")
    category_id: Optional[str] = Field(None, description="Category ID")
    expense_id: Optional[str] = Field(None, description="Originating recurring expense")


class OneTimeExpenseUpdate(BaseModel):
    """One-time expense update request model."""

    one_time_expense_id: str = Field(..., description="Expense to update")
    name: Optional[str] = Field(None, min_length=1, description="Expense name")
    amount: Optional[float] = Field(None, ge=0, description="Expense amount")
    date: Optional[str] = Field(None, description="Expense date (YYYY-MM-DD)")
    month: Optional[int] = Field(None, description="Month the expense is booked in")
    year: Optional[int] = Field(None, description="Year the expense is booked in")
    category_id: Optional[str] = Field(None, description="Category ID")
    is_paid: Optional[bool] = Field(None, description="Whether the expense has been paid")
    receipt_text: Optional[str] = Field(None, description="Text extracted from the receipt")

    def changes(self) -> Dict[str, Any]:
        """Fields present in the request, excluding the expense ID."""
        return self.model_dump(exclude_unset=True, exclude={'one_time_expense_id'})

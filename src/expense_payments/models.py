"""Recurring expense payment data models."""

from pydantic import BaseModel, Field


class ExpensePaymentCreate(BaseModel):
    """Recurring expense payment request model."""

    expense_id: str = Field(..., min_length=1, description="Recurring expense ID")
    month: int = Field(..., description="Month the payment covers")
    year: int = Field(..., description="Year the payment covers")
    amount: float = Field(..., ge=0, description="Amount paid")

"""Settlement data models."""

from pydantic import BaseModel, Field


class PaymentCreate(BaseModel):
    """Member settlement payment request model."""

    member_id: str = Field(..., min_length=1, description="Member who paid")
    month: int = Field(..., description="Month the payment covers")
    year: int = Field(..., description="Year the payment covers")
    amount_paid: float = Field(..., ge=0, description="Amount paid")
    is_confirmed: bool = Field(False, description="Whether the owner confirmed receipt")


class PaymentConfirmation(BaseModel):
    """Payment confirmation request model."""

    payment_id: str = Field(..., min_length=1, description="Payment to (un)confirm")
    is_confirmed: bool = Field(..., description="New confirmation state")

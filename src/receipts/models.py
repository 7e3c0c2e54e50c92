"""Receipt data models."""

from pydantic import BaseModel, Field


class ReceiptUploadRequest(BaseModel):
    """Receipt upload request model."""

    one_time_expense_id: str = Field(..., min_length=1, description="Expense the receipt belongs to")
    image_data: str = Field(..., min_length=1, description="Base64-encoded image data")
    content_type: str = Field(default="image/jpeg", description="Image content type")

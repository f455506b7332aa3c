import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

# transactions.amount is a 32-bit INTEGER column
AMOUNT_MIN = -(2**31)
AMOUNT_MAX = 2**31 - 1


class TransactionCreate(BaseModel):
    amount: int = Field(
        ge=AMOUNT_MIN,
        le=AMOUNT_MAX,
        description="Positive for credits, negative for debits",
    )
    description: Optional[str] = Field(default=None, max_length=500)

    model_config = {"str_strip_whitespace": True}

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: int) -> int:
        if v == 0:
            raise ValueError("Amount must be non-zero")
        return v


class TransactionResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    amount: int
    description: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}

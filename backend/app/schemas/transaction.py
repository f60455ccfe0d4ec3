"""Transaction schemas"""
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Literal
from pydantic import BaseModel, field_validator


class TransactionCreate(BaseModel):
    user_id: str
    coin_id: int
    type: Literal["buy", "sell"]
    amount: str
    sol_amount: str

    @field_validator("amount", "sol_amount")
    @classmethod
    def must_be_decimal(cls, value: str) -> str:
        try:
            parsed = Decimal(value)
        except InvalidOperation:
            raise ValueError("must be a decimal string")
        if not parsed.is_finite():
            raise ValueError("must be a finite decimal")
        return value


class TransactionResponse(BaseModel):
    id: int
    user_id: str
    coin_id: int
    type: str
    amount: str
    sol_amount: str
    created_at: datetime

    class Config:
        from_attributes = True

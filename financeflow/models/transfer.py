from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date
from decimal import Decimal

from financeflow.models.transaction import TransactionResponse


class TransferCreate(BaseModel):
    from_account_id: int = Field(..., description="Account the money leaves")
    to_account_id: int = Field(..., description="Account the money arrives in")
    amount: Decimal = Field(..., description="Amount to move, must be positive")
    transfer_date: date = Field(..., description="Date of the transfer")
    description: Optional[str] = Field(None, max_length=500)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class TransferResponse(BaseModel):
    """Both legs of a transfer"""
    outgoing: TransactionResponse
    incoming: TransactionResponse


class TransferSummary(BaseModel):
    """One row per transfer, keyed by the outgoing leg"""
    transfer_id: int
    incoming_id: int
    transfer_date: date
    amount: Decimal
    description: Optional[str]
    from_account_id: int
    from_account_name: str
    to_account_id: int
    to_account_name: str


class TransferDeleteResult(BaseModel):
    deleted_transactions: int
    from_account_id: int
    to_account_id: int
    amount: Decimal

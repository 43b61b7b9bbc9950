from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal

from financeflow.db.core import TransactionType, TransactionStatus, StatusEvent

# ===== TRANSACTION PYDANTIC MODELS =====


class TransactionCreate(BaseModel):
    account_id: int = Field(..., description="Account ID for this transaction")
    amount: Decimal = Field(..., description="Transaction amount, a positive magnitude")
    transaction_type: TransactionType = Field(..., description="income or expense")
    transaction_date: date = Field(..., description="Date of the transaction")
    category_id: Optional[int] = Field(None, description="The ID of the transaction's category")
    description: Optional[str] = Field(None, max_length=500, description="Transaction description")
    status: TransactionStatus = Field(default=TransactionStatus.CONFIRMED, description="confirmed or pending")
    auto_confirm_date: Optional[date] = Field(None, description="Date after which a pending transaction confirms itself")

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v

    @model_validator(mode='after')
    def validate_auto_confirm(self):
        if self.auto_confirm_date is not None and self.status != TransactionStatus.PENDING:
            raise ValueError('auto_confirm_date is only allowed for pending transactions')
        return self


class TransactionUpdate(BaseModel):
    """Update transaction - all fields optional"""
    account_id: Optional[int] = None
    amount: Optional[Decimal] = None
    transaction_type: Optional[TransactionType] = None
    transaction_date: Optional[date] = None
    category_id: Optional[int] = None
    description: Optional[str] = Field(None, max_length=500)
    auto_confirm_date: Optional[date] = None

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return round(v, 2) if v is not None else v

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class TransactionFilter(BaseModel):
    """Filter parameters for transaction queries"""
    account_id: Optional[int] = None
    category_id: Optional[int] = None
    transaction_type: Optional[TransactionType] = None
    status: Optional[TransactionStatus] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    exclude_transfers: bool = False


class TransactionResponse(BaseModel):
    """Transaction data returned to client"""
    id: int
    account_id: int
    category_id: Optional[int]
    amount: Decimal
    transaction_type: TransactionType
    transaction_date: date
    description: Optional[str]
    status: TransactionStatus
    original_amount: Decimal
    pending_amount: Decimal
    cancelled_amount: Decimal
    auto_confirm_date: Optional[date]
    transfer_id: Optional[int]
    counterpart_account_id: Optional[int]
    is_transfer: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class StatusChangeRequest(BaseModel):
    """Body of a partial confirm / partial cancel call"""
    amount: Decimal = Field(..., description="Amount to confirm or cancel")
    note: Optional[str] = Field(None, max_length=500)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class ConfirmRequest(BaseModel):
    note: Optional[str] = Field(None, max_length=500)


class StatusChangeResult(BaseModel):
    """Outcome of a pending-state transition"""
    transaction: TransactionResponse
    amount: Decimal
    remaining_amount: Decimal
    new_status: TransactionStatus
    fully_completed: bool


class StatusHistoryResponse(BaseModel):
    id: int
    transaction_id: int
    status: StatusEvent
    amount: Optional[Decimal]
    note: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class AutoConfirmResult(BaseModel):
    as_of: date
    confirmed_count: int
    confirmed_ids: List[int]
    failed_ids: List[int]

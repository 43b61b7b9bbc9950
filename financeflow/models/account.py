from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict
from datetime import datetime
from decimal import Decimal

from financeflow.db.core import AccountType


# ===== ACCOUNT PYDANTIC MODELS =====

HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


class AccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Account name")
    account_type: AccountType = Field(..., description="Type of account")
    balance: Decimal = Field(default=Decimal("0.00"), description="Opening balance")
    currency: Optional[str] = Field(None, min_length=3, max_length=3, description="ISO currency code")
    color: str = Field(default="#36a2eb", pattern=HEX_COLOR_PATTERN, description="Display color")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v

    @field_validator('balance')
    @classmethod
    def validate_balance(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class AccountUpdate(BaseModel):
    """Update account - all fields optional. The balance is owned by the ledger."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    account_type: Optional[AccountType] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class AccountResponse(BaseModel):
    """Account data returned to client"""
    id: int
    name: str
    account_type: AccountType
    balance: Decimal
    currency: str
    color: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AccountStats(BaseModel):
    """Account statistics"""
    total_accounts: int
    accounts_by_type: Dict[str, int]
    total_balance: Decimal
    total_assets: Decimal
    total_liabilities: Decimal

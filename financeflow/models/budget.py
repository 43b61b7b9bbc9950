from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime, date
from decimal import Decimal

# ===== BUDGET PYDANTIC MODELS =====


class BudgetUpsert(BaseModel):
    category_id: int = Field(..., description="The ID of the category")
    month: date = Field(..., description="Any day of the budget month")
    amount: Decimal = Field(..., ge=0, description="Target amount for the month")

    @field_validator('month')
    @classmethod
    def validate_month(cls, v: date) -> date:
        return v.replace(day=1)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class BudgetResponse(BaseModel):
    id: int
    category_id: int
    month: date
    amount: Decimal
    created_at: datetime
    category_name: Optional[str] = None
    category_icon: Optional[str] = None
    spent: Optional[Decimal] = None
    remaining: Optional[Decimal] = None
    percentage_used: Optional[float] = None
    over_budget: Optional[bool] = None

    class Config:
        from_attributes = True

from pydantic import BaseModel
from typing import Optional
from datetime import date
from decimal import Decimal


class PeriodTotals(BaseModel):
    """Income vs expenses for one month (overview) or one day (trends)"""
    period: date
    income: Decimal
    expenses: Decimal
    transaction_count: int


class CategorySpending(BaseModel):
    category_id: int
    category_name: str
    icon: str
    color: str
    level: int
    parent_id: Optional[int]
    parent_name: Optional[str]
    grandparent_name: Optional[str]
    total: Decimal
    transaction_count: int
    average: Decimal


class CategoryRollup(BaseModel):
    """Totals attributed to a level-1 category and all of its descendants"""
    category_id: int
    category_name: str
    icon: str
    color: str
    total: Decimal
    transaction_count: int


class DashboardSummary(BaseModel):
    total_balance: Decimal
    monthly_income: Decimal
    monthly_expenses: Decimal
    monthly_transaction_count: int
    total_budgets: int
    budgets_over_limit: int

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from financeflow.services import analytics
from financeflow.models import analytics as analytics_models
from financeflow.models.transfer import TransferSummary
from financeflow.db.core import get_db

router = APIRouter(
    prefix="/analytics",
    tags=["analytics"],
)


@router.get("/overview", response_model=List[analytics_models.PeriodTotals])
def read_overview(
    as_of: Optional[date] = None,
    account_id: Optional[int] = None,
    include_transfers: bool = False,
    db: Session = Depends(get_db)
):
    """
    Income and expenses per month over the last twelve months.
    """
    return analytics.get_overview(db, as_of=as_of, account_id=account_id, include_transfers=include_transfers)


@router.get("/trends", response_model=List[analytics_models.PeriodTotals])
def read_trends(
    as_of: Optional[date] = None,
    account_id: Optional[int] = None,
    include_transfers: bool = False,
    db: Session = Depends(get_db)
):
    """
    Income and expenses per day over the last 30 days.
    """
    return analytics.get_trends(db, as_of=as_of, account_id=account_id, include_transfers=include_transfers)


@router.get("/categories", response_model=List[analytics_models.CategorySpending])
def read_category_spending(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    account_id: Optional[int] = None,
    include_transfers: bool = False,
    db: Session = Depends(get_db)
):
    """
    Totals per category for a date range (default: the last month).
    """
    return analytics.get_category_spending(
        db, date_from=date_from, date_to=date_to, account_id=account_id, include_transfers=include_transfers
    )


@router.get("/category-hierarchy", response_model=List[analytics_models.CategoryRollup])
def read_category_hierarchy(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    account_id: Optional[int] = None,
    include_transfers: bool = False,
    db: Session = Depends(get_db)
):
    """
    Totals rolled up to the top-level categories.
    """
    return analytics.get_category_hierarchy(
        db, date_from=date_from, date_to=date_to, account_id=account_id, include_transfers=include_transfers
    )


@router.get("/summary", response_model=analytics_models.DashboardSummary)
def read_summary(
    as_of: Optional[date] = None,
    account_id: Optional[int] = None,
    include_transfers: bool = False,
    db: Session = Depends(get_db)
):
    """
    Dashboard figures: total balance, this month's cash flow and budget status.
    """
    return analytics.get_summary(db, as_of=as_of, account_id=account_id, include_transfers=include_transfers)


@router.get("/transfers", response_model=List[TransferSummary])
def read_transfer_analysis(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    account_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    return analytics.get_transfers(db, date_from=date_from, date_to=date_to, account_id=account_id)

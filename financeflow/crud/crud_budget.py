from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal

from financeflow.db.core import BudgetDB, TransactionDB, CategoryDB, NotFoundError, TransactionType
from financeflow.models.budget import BudgetUpsert, BudgetResponse
from financeflow.logging_config import get_logger

logger = get_logger(__name__)


# ===== UTILITY FUNCTIONS =====

def month_bounds(month: date):
    """First day of the month and first day of the following month"""
    start = month.replace(day=1)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def calculate_category_spending(db: Session, category_id: int, month: date) -> Decimal:
    """Applied expense amount booked on a category during a month"""
    start, end = month_bounds(month)

    transactions = db.query(TransactionDB).filter(
        TransactionDB.category_id == category_id,
        TransactionDB.transaction_type == TransactionType.EXPENSE,
        TransactionDB.transaction_date >= start,
        TransactionDB.transaction_date < end
    ).all()

    return sum((t.applied_amount for t in transactions), Decimal('0.00'))


def _with_spending(db: Session, budget: BudgetDB) -> BudgetResponse:
    spent = calculate_category_spending(db, budget.category_id, budget.month)
    percentage_used = float(spent / budget.amount * 100) if budget.amount > 0 else 0.0

    return BudgetResponse(
        id=budget.id,
        category_id=budget.category_id,
        month=budget.month,
        amount=budget.amount,
        created_at=budget.created_at,
        category_name=budget.category.name,
        category_icon=budget.category.icon,
        spent=spent,
        remaining=budget.amount - spent,
        percentage_used=round(percentage_used, 2),
        over_budget=spent > budget.amount,
    )


# ===== DATABASE OPERATIONS =====

def upsert_db_budget(db: Session, budget_data: BudgetUpsert) -> BudgetDB:
    """Create the budget for a category and month, or replace its amount"""

    category = db.query(CategoryDB).filter(CategoryDB.id == budget_data.category_id).first()
    if not category:
        raise NotFoundError(f"Category with id {budget_data.category_id} not found")

    db_budget = db.query(BudgetDB).filter(
        BudgetDB.category_id == budget_data.category_id,
        BudgetDB.month == budget_data.month
    ).first()

    if db_budget:
        db_budget.amount = budget_data.amount
    else:
        db_budget = BudgetDB(
            category_id=budget_data.category_id,
            month=budget_data.month,
            amount=budget_data.amount,
            created_at=datetime.utcnow()
        )
        db.add(db_budget)

    try:
        db.commit()
        db.refresh(db_budget)
    except IntegrityError:
        db.rollback()
        raise ValueError("Budget upsert failed due to database constraint")

    logger.info(f"Budget for category {db_budget.category_id} in {db_budget.month:%Y-%m} set to {db_budget.amount}")
    return db_budget


def read_db_budget(db: Session, budget_id: int) -> Optional[BudgetDB]:
    """Read a budget by ID"""
    return db.query(BudgetDB).filter(BudgetDB.id == budget_id).first()


def read_db_budgets_for_month(db: Session, month: date) -> List[BudgetResponse]:
    """Read all budgets of a month with their spending"""

    start, _ = month_bounds(month)

    budgets = db.query(BudgetDB).options(joinedload(BudgetDB.category)).filter(
        BudgetDB.month == start
    ).order_by(BudgetDB.category_id).all()

    return [_with_spending(db, budget) for budget in budgets]


def read_db_budget_with_spending(db: Session, budget_id: int) -> BudgetResponse:
    budget = read_db_budget(db, budget_id)
    if not budget:
        raise NotFoundError(f"Budget with id {budget_id} not found")
    return _with_spending(db, budget)


def delete_db_budget(db: Session, budget_id: int) -> bool:
    """Delete a budget by ID"""
    db_budget = read_db_budget(db, budget_id)
    if not db_budget:
        raise NotFoundError(f"Budget with id {budget_id} not found")

    try:
        db.delete(db_budget)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        raise ValueError(f"Failed to delete budget: {str(e)}")


def delete_db_budget_for_month(db: Session, category_id: int, month: date) -> bool:
    """Delete the budget of a category for a month"""
    start, _ = month_bounds(month)

    db_budget = db.query(BudgetDB).filter(
        BudgetDB.category_id == category_id,
        BudgetDB.month == start
    ).first()
    if not db_budget:
        raise NotFoundError(f"No budget for category {category_id} in {start:%Y-%m}")

    return delete_db_budget(db, db_budget.id)

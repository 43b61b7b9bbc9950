from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from financeflow.crud import crud_budget
from financeflow.models import budget as budget_models
from financeflow.db.core import get_db, NotFoundError

router = APIRouter(
    prefix="/budgets",
    tags=["budgets"],
)


@router.post("/", response_model=budget_models.BudgetResponse)
def upsert_budget(
    budget: budget_models.BudgetUpsert,
    db: Session = Depends(get_db)
):
    """
    Set the budget of a category for a month, replacing any existing amount.
    """
    try:
        db_budget = crud_budget.upsert_db_budget(db=db, budget_data=budget)
        return crud_budget.read_db_budget_with_spending(db=db, budget_id=db_budget.id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/", response_model=List[budget_models.BudgetResponse])
def read_budgets(
    month: Optional[date] = None,
    db: Session = Depends(get_db)
):
    """
    Retrieve the budgets of a month (default: the current month) with spending details.
    """
    return crud_budget.read_db_budgets_for_month(db=db, month=month or date.today())


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
def delete_budget_for_month(
    category_id: int,
    month: date,
    db: Session = Depends(get_db)
):
    """
    Delete the budget of a category for the month containing the given date.
    """
    try:
        crud_budget.delete_db_budget_for_month(db=db, category_id=category_id, month=month)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/{budget_id}", response_model=budget_models.BudgetResponse)
def read_budget(
    budget_id: int,
    db: Session = Depends(get_db)
):
    """
    Retrieve a specific budget by its ID, including spending details.
    """
    try:
        return crud_budget.read_db_budget_with_spending(db=db, budget_id=budget_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_budget(
    budget_id: int,
    db: Session = Depends(get_db)
):
    """
    Delete a budget by its ID.
    """
    try:
        crud_budget.delete_db_budget(db=db, budget_id=budget_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

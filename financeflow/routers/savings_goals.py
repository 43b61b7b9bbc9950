from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from financeflow.crud import crud_savings_goal
from financeflow.models import savings_goal as goal_models
from financeflow.db.core import get_db, NotFoundError

router = APIRouter(
    prefix="/savings-goals",
    tags=["savings-goals"],
)


@router.post("/", response_model=goal_models.SavingsGoalResponse, status_code=status.HTTP_201_CREATED)
def create_savings_goal(
    goal: goal_models.SavingsGoalCreate,
    db: Session = Depends(get_db)
):
    try:
        return crud_savings_goal.create_db_savings_goal(db=db, goal_data=goal)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/", response_model=List[goal_models.SavingsGoalResponse])
def read_savings_goals(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    """
    Retrieve all savings goals, newest first.
    """
    return crud_savings_goal.read_db_savings_goals(db=db, skip=skip, limit=limit)


@router.get("/{goal_id}", response_model=goal_models.SavingsGoalResponse)
def read_savings_goal(
    goal_id: int,
    db: Session = Depends(get_db)
):
    db_goal = crud_savings_goal.read_db_savings_goal(db=db, goal_id=goal_id)
    if db_goal is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Savings goal not found")
    return db_goal


@router.put("/{goal_id}", response_model=goal_models.SavingsGoalResponse)
def update_savings_goal(
    goal_id: int,
    goal: goal_models.SavingsGoalUpdate,
    db: Session = Depends(get_db)
):
    try:
        return crud_savings_goal.update_db_savings_goal(db=db, goal_id=goal_id, goal_updates=goal)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_savings_goal(
    goal_id: int,
    db: Session = Depends(get_db)
):
    try:
        crud_savings_goal.delete_db_savings_goal(db=db, goal_id=goal_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

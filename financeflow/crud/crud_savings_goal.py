from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import desc
from typing import Optional, List
from datetime import datetime

from financeflow.db.core import SavingsGoalDB, NotFoundError
from financeflow.models.savings_goal import SavingsGoalCreate, SavingsGoalUpdate


def create_db_savings_goal(db: Session, goal_data: SavingsGoalCreate) -> SavingsGoalDB:
    """Create a new savings goal"""

    db_goal = SavingsGoalDB(
        name=goal_data.name,
        target_amount=goal_data.target_amount,
        current_amount=goal_data.current_amount,
        target_date=goal_data.target_date,
        created_at=datetime.utcnow()
    )

    try:
        db.add(db_goal)
        db.commit()
        db.refresh(db_goal)
        return db_goal
    except IntegrityError:
        db.rollback()
        raise ValueError("Savings goal creation failed due to database constraint")


def read_db_savings_goals(db: Session, skip: int = 0, limit: int = 100) -> List[SavingsGoalDB]:
    """Read all savings goals, newest first"""
    return db.query(SavingsGoalDB).order_by(
        desc(SavingsGoalDB.created_at), desc(SavingsGoalDB.id)
    ).offset(skip).limit(limit).all()


def read_db_savings_goal(db: Session, goal_id: int) -> Optional[SavingsGoalDB]:
    return db.query(SavingsGoalDB).filter(SavingsGoalDB.id == goal_id).first()


def update_db_savings_goal(db: Session, goal_id: int, goal_updates: SavingsGoalUpdate) -> SavingsGoalDB:
    """Update a savings goal"""
    db_goal = read_db_savings_goal(db, goal_id)
    if not db_goal:
        raise NotFoundError(f"Savings goal with id {goal_id} not found")

    update_data = goal_updates.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field != "target_date":
            continue
        setattr(db_goal, field, value)

    try:
        db.commit()
        db.refresh(db_goal)
        return db_goal
    except IntegrityError:
        db.rollback()
        raise ValueError("Savings goal update failed due to database constraint")


def delete_db_savings_goal(db: Session, goal_id: int) -> bool:
    """Delete a savings goal"""
    db_goal = read_db_savings_goal(db, goal_id)
    if not db_goal:
        raise NotFoundError(f"Savings goal with id {goal_id} not found")

    try:
        db.delete(db_goal)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        raise ValueError(f"Failed to delete savings goal: {str(e)}")

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from financeflow.services.setup import run_setup
from financeflow.models.setup import SetupResult
from financeflow.db.core import get_db

router = APIRouter(
    prefix="/setup",
    tags=["setup"],
)


@router.post("/", response_model=SetupResult)
def setup_database(db: Session = Depends(get_db)):
    """
    Create missing tables and seed the default categories and accounts.
    Running it again leaves existing data untouched.
    """
    return run_setup(db)

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from financeflow.crud import crud_account
from financeflow.models import account as account_models
from financeflow.db.core import get_db, NotFoundError, ConflictError, AccountType

router = APIRouter(
    prefix="/accounts",
    tags=["accounts"],
)


@router.post("/", response_model=account_models.AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    account: account_models.AccountCreate,
    db: Session = Depends(get_db)
):
    """
    Create a new account with an opening balance.
    """
    try:
        return crud_account.create_db_account(db=db, account_data=account)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/", response_model=List[account_models.AccountResponse])
def read_accounts(
    account_type: Optional[AccountType] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    """
    Retrieve all accounts, with optional filtering by account type.
    """
    return crud_account.read_db_accounts(db=db, account_type=account_type, skip=skip, limit=limit)


@router.get("/stats", response_model=account_models.AccountStats)
def get_account_statistics(db: Session = Depends(get_db)):
    """
    Get balance statistics across all accounts (total balance, assets, liabilities).
    """
    return crud_account.get_account_stats(db=db)


@router.get("/{account_id}", response_model=account_models.AccountResponse)
def read_account(
    account_id: int,
    db: Session = Depends(get_db)
):
    """
    Retrieve a specific account by its ID.
    """
    db_account = crud_account.read_db_account(db=db, account_id=account_id)
    if db_account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    return db_account


@router.put("/{account_id}", response_model=account_models.AccountResponse)
def update_account(
    account_id: int,
    account: account_models.AccountUpdate,
    db: Session = Depends(get_db)
):
    """
    Update an account. The balance can only be changed through transactions.
    """
    try:
        return crud_account.update_db_account(db=db, account_id=account_id, account_updates=account)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{account_id}", response_model=account_models.AccountResponse)
def delete_account(
    account_id: int,
    db: Session = Depends(get_db)
):
    """
    Delete an account. It can only be deleted if it has no associated transactions.
    """
    db_account = crud_account.read_db_account(db, account_id=account_id)
    if db_account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    deleted = account_models.AccountResponse.model_validate(db_account)

    try:
        crud_account.delete_db_account(db=db, account_id=account_id)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return deleted

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from financeflow.crud import crud_transfer
from financeflow.models import transfer as transfer_models
from financeflow.models.transaction import TransactionResponse
from financeflow.db.core import get_db, NotFoundError

router = APIRouter(
    prefix="/transfers",
    tags=["transfers"],
)


def _to_response(outgoing, incoming) -> transfer_models.TransferResponse:
    return transfer_models.TransferResponse(
        outgoing=TransactionResponse.model_validate(outgoing),
        incoming=TransactionResponse.model_validate(incoming),
    )


@router.post("/", response_model=transfer_models.TransferResponse, status_code=status.HTTP_201_CREATED)
def create_transfer(
    transfer: transfer_models.TransferCreate,
    db: Session = Depends(get_db)
):
    """
    Move money from one account to another. Both legs and both balance
    changes are written together or not at all.
    """
    try:
        outgoing, incoming = crud_transfer.create_db_transfer(db=db, transfer_data=transfer)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _to_response(outgoing, incoming)


@router.get("/", response_model=List[transfer_models.TransferSummary])
def read_transfers(
    account_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    """
    Retrieve transfers, newest first, optionally limited to one account or a date range.
    """
    return crud_transfer.read_db_transfers(
        db=db, account_id=account_id, date_from=date_from, date_to=date_to, skip=skip, limit=limit
    )


@router.get("/{transaction_id}", response_model=transfer_models.TransferResponse)
def read_transfer(
    transaction_id: int,
    db: Session = Depends(get_db)
):
    """
    Retrieve a transfer by the ID of either of its transactions.
    """
    try:
        outgoing, incoming = crud_transfer.read_db_transfer(db=db, transaction_id=transaction_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _to_response(outgoing, incoming)


@router.delete("/{transaction_id}", response_model=transfer_models.TransferDeleteResult)
def delete_transfer(
    transaction_id: int,
    db: Session = Depends(get_db)
):
    """
    Delete a transfer by the ID of either of its transactions and restore both balances.
    """
    try:
        return crud_transfer.delete_db_transfer(db=db, transaction_id=transaction_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

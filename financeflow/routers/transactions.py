from fastapi import APIRouter, HTTPException
from typing import List, Optional
from datetime import date
from fastapi.params import Depends
from sqlalchemy.orm import Session
from financeflow.db.core import NotFoundError, get_db, TransactionType, TransactionStatus
from financeflow.models.transaction import (
    TransactionCreate,
    TransactionUpdate,
    TransactionFilter,
    TransactionResponse,
    StatusChangeRequest,
    ConfirmRequest,
    StatusChangeResult,
    StatusHistoryResponse,
    AutoConfirmResult
)
from financeflow.crud.crud_transaction import (
    create_db_transaction,
    read_db_transaction,
    read_db_transactions,
    update_db_transaction,
    delete_db_transaction,
    read_db_status_history
)
from financeflow.services import pending

router = APIRouter(
    prefix="/transactions",
    tags=["transactions"],
)


@router.post("/", status_code=201)
def create_transaction(transaction: TransactionCreate, db: Session = Depends(get_db)) -> TransactionResponse:
    """
    Create an income or expense transaction, either confirmed or pending.
    """
    try:
        db_transaction = create_db_transaction(db, transaction)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return TransactionResponse.model_validate(db_transaction)


@router.get("/")
def read_transactions(
    account_id: Optional[int] = None,
    category_id: Optional[int] = None,
    transaction_type: Optional[TransactionType] = None,
    status: Optional[TransactionStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    exclude_transfers: bool = False,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
) -> List[TransactionResponse]:
    """
    Retrieve transactions, newest first, with optional filters.
    """
    filters = TransactionFilter(
        account_id=account_id,
        category_id=category_id,
        transaction_type=transaction_type,
        status=status,
        date_from=date_from,
        date_to=date_to,
        exclude_transfers=exclude_transfers
    )
    transactions = read_db_transactions(db, filters=filters, skip=skip, limit=limit)
    return [TransactionResponse.model_validate(t) for t in transactions]


@router.post("/auto-confirm")
def run_auto_confirm(as_of: Optional[date] = None, db: Session = Depends(get_db)) -> AutoConfirmResult:
    """
    Confirm every pending transaction whose auto-confirm date is on or before
    as_of (default: today).
    """
    return pending.auto_confirm(db, as_of=as_of)


@router.get("/{transaction_id}")
def read_transaction(transaction_id: int, db: Session = Depends(get_db)) -> TransactionResponse:
    db_transaction = read_db_transaction(db, transaction_id=transaction_id)
    if not db_transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return TransactionResponse.model_validate(db_transaction)


@router.put("/{transaction_id}")
def update_transaction(transaction_id: int, transaction: TransactionUpdate, db: Session = Depends(get_db)) -> TransactionResponse:
    """
    Update a transaction. Amount, type and account can only change on fully
    confirmed transactions; transfers cannot be edited.
    """
    try:
        db_transaction = update_db_transaction(db, transaction_id, transaction)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return TransactionResponse.model_validate(db_transaction)


@router.delete("/{transaction_id}", status_code=204)
def delete_transaction(transaction_id: int, db: Session = Depends(get_db)):
    """
    Delete a transaction and reverse its effect on the balance. Deleting one
    leg of a transfer removes the whole transfer.
    """
    try:
        delete_db_transaction(db, transaction_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{transaction_id}/history")
def read_transaction_history(transaction_id: int, db: Session = Depends(get_db)) -> List[StatusHistoryResponse]:
    try:
        history = read_db_status_history(db, transaction_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return [StatusHistoryResponse.model_validate(h) for h in history]


@router.post("/{transaction_id}/partial-confirm")
def partial_confirm_transaction(transaction_id: int, request: StatusChangeRequest, db: Session = Depends(get_db)) -> StatusChangeResult:
    """
    Apply part of a pending transaction to its account balance.
    """
    try:
        return pending.partial_confirm(db, transaction_id, request.amount, request.note)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{transaction_id}/partial-cancel")
def partial_cancel_transaction(transaction_id: int, request: StatusChangeRequest, db: Session = Depends(get_db)) -> StatusChangeResult:
    """
    Cancel part of a pending transaction. The account balance is not changed.
    """
    try:
        return pending.partial_cancel(db, transaction_id, request.amount, request.note)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{transaction_id}/confirm")
def confirm_transaction(transaction_id: int, request: Optional[ConfirmRequest] = None, db: Session = Depends(get_db)) -> StatusChangeResult:
    """
    Confirm the whole remaining pending amount of a transaction.
    """
    try:
        return pending.confirm(db, transaction_id, request.note if request else None)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

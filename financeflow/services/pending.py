"""
Pending-transaction state machine.

A pending transaction keeps its not-yet-settled part in ``pending_amount``.
Confirming moves part of it into the account balance, cancelling removes it
from the transaction altogether. Only ``amount - pending_amount`` is ever
reflected in the balance, so every transition keeps

    cancelled_amount + pending_amount <= original_amount
    amount == original_amount - cancelled_amount

Each transition is committed on its own and appends one row to the status
history.
"""
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime, date
from decimal import Decimal

from financeflow.db.core import TransactionDB, TransactionStatusHistoryDB, NotFoundError, TransactionStatus, StatusEvent
from financeflow.models.transaction import StatusChangeResult, TransactionResponse, AutoConfirmResult
from financeflow.crud.crud_account import adjust_account_balance, signed_amount
from financeflow.logging_config import get_logger

logger = get_logger(__name__)

# Remaining pending amounts at or below this are treated as settled
PENDING_EPSILON = Decimal("0.01")
ZERO = Decimal("0.00")


def _get_pending_transaction(db: Session, transaction_id: int) -> TransactionDB:
    transaction = db.query(TransactionDB).filter(TransactionDB.id == transaction_id).first()
    if not transaction:
        raise NotFoundError(f"Transaction with id {transaction_id} not found")
    if transaction.status != TransactionStatus.PENDING:
        raise ValueError(f"Transaction {transaction_id} is not pending (status: {transaction.status.value})")
    return transaction


def _record(db: Session, transaction: TransactionDB, event: StatusEvent, amount: Decimal, note: Optional[str]):
    db.add(TransactionStatusHistoryDB(
        transaction_id=transaction.id,
        status=event,
        amount=amount,
        note=note,
        created_at=datetime.utcnow()
    ))


def _result(transaction: TransactionDB, amount: Decimal) -> StatusChangeResult:
    return StatusChangeResult(
        transaction=TransactionResponse.model_validate(transaction),
        amount=amount,
        remaining_amount=transaction.pending_amount,
        new_status=transaction.status,
        fully_completed=transaction.status != TransactionStatus.PENDING,
    )


def partial_confirm(db: Session, transaction_id: int, amount: Decimal, note: Optional[str] = None) -> StatusChangeResult:
    """Apply part of a pending transaction to its account balance"""

    if amount is None or amount <= 0:
        raise ValueError("Amount must be greater than 0")

    transaction = _get_pending_transaction(db, transaction_id)
    remaining = transaction.pending_amount

    if amount > remaining:
        raise ValueError(f"Amount {amount} exceeds the remaining pending amount {remaining}")

    try:
        applied = amount
        new_pending = remaining - amount

        if new_pending <= PENDING_EPSILON:
            # Settle the rounding residual together with the final confirmation
            applied += new_pending
            new_pending = ZERO
            transaction.status = TransactionStatus.CONFIRMED
            transaction.auto_confirm_date = None

        transaction.pending_amount = new_pending
        transaction.updated_at = datetime.utcnow()
        adjust_account_balance(db, transaction.account, signed_amount(transaction.transaction_type, applied))

        _record(db, transaction, StatusEvent.PARTIAL_CONFIRM, amount,
                note or f"Confirmed {amount} of {remaining} pending")

        db.commit()
        db.refresh(transaction)
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Transaction {transaction_id}: confirmed {applied}, {transaction.pending_amount} still pending "
        f"({transaction.status.value})"
    )
    return _result(transaction, amount)


def partial_cancel(db: Session, transaction_id: int, amount: Decimal, note: Optional[str] = None) -> StatusChangeResult:
    """Drop part of a pending transaction without touching the balance"""

    if amount is None or amount <= 0:
        raise ValueError("Amount must be greater than 0")

    transaction = _get_pending_transaction(db, transaction_id)
    max_cancellable = max(transaction.pending_amount - transaction.cancelled_amount, ZERO)

    if max_cancellable == ZERO:
        raise ValueError("Nothing more can be cancelled on this transaction, it can only be confirmed")
    if amount > max_cancellable:
        raise ValueError(f"Amount {amount} exceeds the cancellable amount {max_cancellable}")

    try:
        cancelled = amount
        new_pending = transaction.pending_amount - amount

        if new_pending <= PENDING_EPSILON:
            cancelled += new_pending
            new_pending = ZERO
            transaction.status = TransactionStatus.CANCELLED
            transaction.auto_confirm_date = None

        transaction.cancelled_amount = transaction.cancelled_amount + cancelled
        transaction.pending_amount = new_pending
        transaction.amount = transaction.original_amount - transaction.cancelled_amount
        transaction.updated_at = datetime.utcnow()

        _record(db, transaction, StatusEvent.PARTIAL_CANCEL, amount,
                note or f"Cancelled {amount}, {new_pending} still pending")

        db.commit()
        db.refresh(transaction)
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Transaction {transaction_id}: cancelled {cancelled}, {transaction.pending_amount} still pending "
        f"({transaction.status.value})"
    )
    return _result(transaction, amount)


def confirm(db: Session, transaction_id: int, note: Optional[str] = None) -> StatusChangeResult:
    """Confirm the whole remaining pending amount"""
    transaction = _get_pending_transaction(db, transaction_id)
    return partial_confirm(db, transaction_id, transaction.pending_amount, note or "Fully confirmed")


def auto_confirm(db: Session, as_of: Optional[date] = None) -> AutoConfirmResult:
    """
    Confirm every pending transaction whose auto_confirm_date has been reached.

    Rows are committed one at a time. A row that fails is rolled back, logged
    and left pending for the next run. Overlapping runs are not guarded
    against; the job is expected to be the only writer while it runs.
    """
    as_of = as_of or date.today()

    due_ids = [
        row.id for row in db.query(TransactionDB.id).filter(
            TransactionDB.status == TransactionStatus.PENDING,
            TransactionDB.auto_confirm_date.isnot(None),
            TransactionDB.auto_confirm_date <= as_of
        ).order_by(TransactionDB.auto_confirm_date, TransactionDB.id).all()
    ]

    logger.info(f"Auto-confirm as of {as_of}: {len(due_ids)} transaction(s) due")

    confirmed_ids = []
    failed_ids = []

    for transaction_id in due_ids:
        try:
            transaction = db.query(TransactionDB).filter(TransactionDB.id == transaction_id).first()
            pending = transaction.pending_amount

            adjust_account_balance(db, transaction.account, signed_amount(transaction.transaction_type, pending))

            transaction.pending_amount = ZERO
            transaction.status = TransactionStatus.CONFIRMED
            transaction.auto_confirm_date = None
            transaction.updated_at = datetime.utcnow()

            _record(db, transaction, StatusEvent.AUTO_CONFIRMED, pending, f"Auto-confirmed on {as_of}")

            db.commit()
            confirmed_ids.append(transaction_id)
            logger.info(f"Auto-confirmed transaction {transaction_id} ({pending})")
        except Exception:
            db.rollback()
            failed_ids.append(transaction_id)
            logger.exception(f"Auto-confirm failed for transaction {transaction_id}")

    return AutoConfirmResult(
        as_of=as_of,
        confirmed_count=len(confirmed_ids),
        confirmed_ids=confirmed_ids,
        failed_ids=failed_ids,
    )

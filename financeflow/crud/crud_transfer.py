from sqlalchemy.orm import Session, joinedload
from sqlalchemy import desc
from typing import Optional, List, Tuple
from datetime import datetime, date
from decimal import Decimal

from financeflow.db.core import AccountDB, TransactionDB, NotFoundError, TransactionType, TransactionStatus
from financeflow.models.transfer import TransferCreate, TransferSummary, TransferDeleteResult
from financeflow.crud.crud_account import adjust_account_balance
from financeflow.logging_config import get_logger

logger = get_logger(__name__)


# ===== UTILITY FUNCTIONS =====

def _transfer_legs(db: Session, transaction: TransactionDB) -> Tuple[TransactionDB, TransactionDB]:
    """Return (outgoing, incoming) for either leg of a transfer."""
    counterpart = None
    if transaction.transfer_id is not None:
        counterpart = db.query(TransactionDB).filter(TransactionDB.id == transaction.transfer_id).first()
    if counterpart is None:
        raise ValueError(f"Transaction {transaction.id} has no linked transfer counterpart")

    if transaction.transaction_type == TransactionType.TRANSFER_OUT:
        return transaction, counterpart
    return counterpart, transaction


def _to_summary(outgoing: TransactionDB, incoming: TransactionDB) -> TransferSummary:
    return TransferSummary(
        transfer_id=outgoing.id,
        incoming_id=incoming.id,
        transfer_date=outgoing.transaction_date,
        amount=outgoing.amount,
        description=outgoing.description,
        from_account_id=outgoing.account_id,
        from_account_name=outgoing.account.name,
        to_account_id=incoming.account_id,
        to_account_name=incoming.account.name,
    )


# ===== DATABASE OPERATIONS =====

def create_db_transfer(db: Session, transfer_data: TransferCreate) -> Tuple[TransactionDB, TransactionDB]:
    """
    Move money between two accounts.

    Inserts a linked transfer_out / transfer_in pair and adjusts both balances
    in a single commit. Nothing is written if any step fails.
    """

    if transfer_data.from_account_id == transfer_data.to_account_id:
        raise ValueError("Source and destination accounts must differ")
    if transfer_data.amount <= 0:
        raise ValueError("Transfer amount must be greater than 0")

    from_account = db.query(AccountDB).filter(AccountDB.id == transfer_data.from_account_id).first()
    if not from_account:
        raise NotFoundError(f"Account with id {transfer_data.from_account_id} not found")

    to_account = db.query(AccountDB).filter(AccountDB.id == transfer_data.to_account_id).first()
    if not to_account:
        raise NotFoundError(f"Account with id {transfer_data.to_account_id} not found")

    amount = transfer_data.amount
    now = datetime.utcnow()

    try:
        outgoing = TransactionDB(
            account_id=from_account.id,
            counterpart_account_id=to_account.id,
            transaction_date=transfer_data.transfer_date,
            amount=amount,
            original_amount=amount,
            pending_amount=Decimal("0.00"),
            cancelled_amount=Decimal("0.00"),
            transaction_type=TransactionType.TRANSFER_OUT,
            status=TransactionStatus.CONFIRMED,
            description=transfer_data.description or f"Transfer to {to_account.name}",
            created_at=now,
            updated_at=now
        )
        db.add(outgoing)
        db.flush()

        incoming = TransactionDB(
            account_id=to_account.id,
            counterpart_account_id=from_account.id,
            transfer_id=outgoing.id,
            transaction_date=transfer_data.transfer_date,
            amount=amount,
            original_amount=amount,
            pending_amount=Decimal("0.00"),
            cancelled_amount=Decimal("0.00"),
            transaction_type=TransactionType.TRANSFER_IN,
            status=TransactionStatus.CONFIRMED,
            description=transfer_data.description or f"Transfer from {from_account.name}",
            created_at=now,
            updated_at=now
        )
        db.add(incoming)
        db.flush()

        outgoing.transfer_id = incoming.id

        adjust_account_balance(db, from_account, -amount)
        adjust_account_balance(db, to_account, amount)

        db.commit()
        db.refresh(outgoing)
        db.refresh(incoming)
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Transfer {outgoing.id}/{incoming.id}: {amount} from account {from_account.id} to account {to_account.id}"
    )
    return outgoing, incoming


def read_db_transfer(db: Session, transaction_id: int) -> Tuple[TransactionDB, TransactionDB]:
    """Read a transfer by the id of either of its legs"""

    transaction = db.query(TransactionDB).filter(TransactionDB.id == transaction_id).first()
    if not transaction or not transaction.is_transfer:
        raise NotFoundError(f"Transfer with id {transaction_id} not found")

    return _transfer_legs(db, transaction)


def read_db_transfers(db: Session, account_id: Optional[int] = None, date_from: Optional[date] = None,
                      date_to: Optional[date] = None, skip: int = 0, limit: int = 100) -> List[TransferSummary]:
    """List transfers, one entry per outgoing leg"""

    query = db.query(TransactionDB).filter(TransactionDB.transaction_type == TransactionType.TRANSFER_OUT)

    if account_id:
        query = query.filter(
            (TransactionDB.account_id == account_id) | (TransactionDB.counterpart_account_id == account_id)
        )
    if date_from:
        query = query.filter(TransactionDB.transaction_date >= date_from)
    if date_to:
        query = query.filter(TransactionDB.transaction_date <= date_to)

    outgoing_legs = query.options(joinedload(TransactionDB.account)).order_by(
        desc(TransactionDB.transaction_date), desc(TransactionDB.id)
    ).offset(skip).limit(limit).all()

    summaries = []
    for outgoing in outgoing_legs:
        incoming = db.query(TransactionDB).options(joinedload(TransactionDB.account)).filter(
            TransactionDB.id == outgoing.transfer_id
        ).first()
        if incoming is None:
            logger.warning(f"Transfer leg {outgoing.id} has no counterpart, skipping")
            continue
        summaries.append(_to_summary(outgoing, incoming))

    return summaries


def delete_db_transfer(db: Session, transaction_id: int) -> TransferDeleteResult:
    """Delete both legs of a transfer and reverse both balance changes"""

    outgoing, incoming = read_db_transfer(db, transaction_id)

    from_account = outgoing.account
    to_account = incoming.account
    amount = outgoing.amount
    leg_ids = (outgoing.id, incoming.id)
    account_ids = (from_account.id, to_account.id)

    try:
        # Break the mutual references before deleting either row
        outgoing.transfer_id = None
        incoming.transfer_id = None
        db.flush()

        adjust_account_balance(db, from_account, amount)
        adjust_account_balance(db, to_account, -incoming.amount)

        db.delete(outgoing)
        db.delete(incoming)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Deleted transfer {leg_ids[0]}/{leg_ids[1]}, restored {amount} to account {account_ids[0]}")

    return TransferDeleteResult(
        deleted_transactions=2,
        from_account_id=account_ids[0],
        to_account_id=account_ids[1],
        amount=amount,
    )

from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError
from sqlalchemy import desc
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from financeflow.db.core import (
    TransactionDB, AccountDB, CategoryDB, TransactionStatusHistoryDB, NotFoundError,
    TransactionType, TransactionStatus, StatusEvent, TRANSFER_TYPES
)
from financeflow.models.transaction import TransactionCreate, TransactionUpdate, TransactionFilter
from financeflow.crud.crud_account import adjust_account_balance, signed_amount
from financeflow.crud.crud_transfer import delete_db_transfer
from financeflow.logging_config import get_logger

logger = get_logger(__name__)

# Fields that change the balance effect of a transaction
LEDGER_FIELDS = ("amount", "transaction_type", "account_id")
CLEARABLE_FIELDS = ("category_id", "auto_confirm_date")


# ===== UTILITY FUNCTIONS =====

def _validate_category(db: Session, category_id: int, transaction_type: TransactionType) -> CategoryDB:
    """Category must exist and be of the same kind as the transaction"""
    category = db.query(CategoryDB).filter(CategoryDB.id == category_id).first()
    if not category:
        raise NotFoundError(f"Category with id {category_id} not found")
    if category.category_type.value != transaction_type.value:
        raise ValueError(
            f"Category '{category.name}' is a {category.category_type.value} category "
            f"and cannot be used for a {transaction_type.value} transaction"
        )
    return category


def _get_account(db: Session, account_id: int) -> AccountDB:
    account = db.query(AccountDB).filter(AccountDB.id == account_id).first()
    if not account:
        raise NotFoundError(f"Account with id {account_id} not found")
    return account


# ===== DATABASE OPERATIONS =====

def create_db_transaction(db: Session, transaction_data: TransactionCreate) -> TransactionDB:
    """
    Create an income or expense transaction.

    A confirmed transaction changes the account balance in the same commit.
    A pending one is recorded with its full amount pending and leaves the
    balance alone until it is confirmed.
    """

    if transaction_data.transaction_type in TRANSFER_TYPES:
        raise ValueError("Transfer transactions cannot be created directly, use /transfers instead")
    if transaction_data.amount <= 0:
        raise ValueError("Transaction amount must be greater than 0")
    if transaction_data.status not in (TransactionStatus.CONFIRMED, TransactionStatus.PENDING):
        raise ValueError("New transactions must be confirmed or pending")

    account = _get_account(db, transaction_data.account_id)

    if transaction_data.category_id:
        _validate_category(db, transaction_data.category_id, transaction_data.transaction_type)

    is_pending = transaction_data.status == TransactionStatus.PENDING
    amount = transaction_data.amount

    db_transaction = TransactionDB(
        account_id=account.id,
        category_id=transaction_data.category_id,
        transaction_date=transaction_data.transaction_date,
        amount=amount,
        transaction_type=transaction_data.transaction_type,
        description=transaction_data.description,
        status=transaction_data.status,
        original_amount=amount,
        pending_amount=amount if is_pending else Decimal("0.00"),
        cancelled_amount=Decimal("0.00"),
        auto_confirm_date=transaction_data.auto_confirm_date if is_pending else None,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow()
    )

    try:
        db.add(db_transaction)
        db.flush()

        if is_pending:
            db.add(TransactionStatusHistoryDB(
                transaction_id=db_transaction.id,
                status=StatusEvent.CREATED_PENDING,
                amount=amount,
                note="Transaction created as pending",
                created_at=datetime.utcnow()
            ))
        else:
            adjust_account_balance(db, account, signed_amount(db_transaction.transaction_type, amount))

        db.commit()
        db.refresh(db_transaction)
    except IntegrityError:
        db.rollback()
        raise ValueError("Transaction creation failed due to database constraint")
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Created {db_transaction.status.value} {db_transaction.transaction_type.value} transaction "
        f"{db_transaction.id} of {amount} on account {account.id}"
    )
    return db_transaction


def read_db_transaction(db: Session, transaction_id: int) -> Optional[TransactionDB]:
    """Read a transaction by ID"""
    return db.query(TransactionDB).filter(TransactionDB.id == transaction_id).options(
        joinedload(TransactionDB.category)
    ).first()


def read_db_transactions(db: Session, filters: Optional[TransactionFilter] = None,
                         skip: int = 0, limit: int = 100) -> List[TransactionDB]:
    """Read transactions with filtering and pagination, newest first"""

    query = db.query(TransactionDB)

    if filters:
        if filters.account_id:
            query = query.filter(TransactionDB.account_id == filters.account_id)

        if filters.category_id:
            query = query.filter(TransactionDB.category_id == filters.category_id)

        if filters.transaction_type:
            query = query.filter(TransactionDB.transaction_type == filters.transaction_type)

        if filters.status:
            query = query.filter(TransactionDB.status == filters.status)

        if filters.date_from:
            query = query.filter(TransactionDB.transaction_date >= filters.date_from)

        if filters.date_to:
            query = query.filter(TransactionDB.transaction_date <= filters.date_to)

        if filters.exclude_transfers:
            query = query.filter(TransactionDB.transaction_type.notin_(TRANSFER_TYPES))

    query = query.order_by(
        desc(TransactionDB.transaction_date), desc(TransactionDB.created_at), desc(TransactionDB.id)
    )

    return query.options(joinedload(TransactionDB.category)).offset(skip).limit(limit).all()


def update_db_transaction(db: Session, transaction_id: int, transaction_updates: TransactionUpdate) -> TransactionDB:
    """
    Update a transaction.

    Descriptive fields (description, category, date) can change on any
    non-transfer row. Amount, type and account can only change on a fully
    confirmed row: the old balance effect is reversed and the new one applied
    in the same commit.
    """

    db_transaction = read_db_transaction(db, transaction_id)
    if not db_transaction:
        raise NotFoundError(f"Transaction with id {transaction_id} not found")

    if db_transaction.is_transfer:
        raise ValueError("Transfers cannot be edited, delete and recreate the transfer instead")

    update_data = transaction_updates.model_dump(exclude_unset=True)
    update_data = {
        field: value for field, value in update_data.items()
        if value is not None or field in CLEARABLE_FIELDS
    }

    ledger_changes = {
        field: update_data[field] for field in LEDGER_FIELDS
        if field in update_data and update_data[field] != getattr(db_transaction, field)
    }

    if ledger_changes and (
        db_transaction.status != TransactionStatus.CONFIRMED or db_transaction.pending_amount != 0
    ):
        raise ValueError("Amount, type and account can only be changed on fully confirmed transactions")

    new_type = ledger_changes.get("transaction_type", db_transaction.transaction_type)
    new_amount = ledger_changes.get("amount", db_transaction.amount)
    new_account_id = ledger_changes.get("account_id", db_transaction.account_id)

    if new_type in TRANSFER_TYPES:
        raise ValueError("Transactions cannot be turned into transfers, use /transfers instead")
    if new_amount <= 0:
        raise ValueError("Transaction amount must be greater than 0")

    new_category_id = update_data.get("category_id", db_transaction.category_id)
    if new_category_id and ("category_id" in update_data or "transaction_type" in ledger_changes):
        _validate_category(db, new_category_id, new_type)

    if update_data.get("auto_confirm_date") is not None and db_transaction.status != TransactionStatus.PENDING:
        raise ValueError("auto_confirm_date can only be set on pending transactions")

    old_account = db_transaction.account
    new_account = _get_account(db, new_account_id) if "account_id" in ledger_changes else old_account

    try:
        if ledger_changes:
            adjust_account_balance(db, old_account, -signed_amount(db_transaction.transaction_type, db_transaction.amount))
            adjust_account_balance(db, new_account, signed_amount(new_type, new_amount))

            db_transaction.original_amount = new_amount
            db_transaction.cancelled_amount = Decimal("0.00")

        for field, value in update_data.items():
            setattr(db_transaction, field, value)

        db_transaction.updated_at = datetime.utcnow()

        db.commit()
        db.refresh(db_transaction)
    except IntegrityError:
        db.rollback()
        raise ValueError("Transaction update failed due to database constraint")
    except Exception:
        db.rollback()
        raise

    if ledger_changes:
        logger.info(f"Updated transaction {transaction_id}, rebalanced: {sorted(ledger_changes)}")
    return db_transaction


def delete_db_transaction(db: Session, transaction_id: int) -> bool:
    """
    Delete a transaction and reverse the part of it applied to the balance.
    Deleting either leg of a transfer deletes the whole transfer.
    """

    db_transaction = read_db_transaction(db, transaction_id)
    if not db_transaction:
        raise NotFoundError(f"Transaction with id {transaction_id} not found")

    if db_transaction.is_transfer:
        delete_db_transfer(db, transaction_id)
        return True

    account = db_transaction.account
    applied = db_transaction.applied_amount

    try:
        if applied:
            adjust_account_balance(db, account, -signed_amount(db_transaction.transaction_type, applied))
        db.delete(db_transaction)
        db.commit()
    except Exception as e:
        db.rollback()
        raise ValueError(f"Failed to delete transaction: {str(e)}")

    logger.info(f"Deleted transaction {transaction_id}, reversed {applied} on account {account.id}")
    return True


def read_db_status_history(db: Session, transaction_id: int) -> List[TransactionStatusHistoryDB]:
    """Read the pending-state history of a transaction, oldest first"""

    if not read_db_transaction(db, transaction_id):
        raise NotFoundError(f"Transaction with id {transaction_id} not found")

    return db.query(TransactionStatusHistoryDB).filter(
        TransactionStatusHistoryDB.transaction_id == transaction_id
    ).order_by(TransactionStatusHistoryDB.id).all()

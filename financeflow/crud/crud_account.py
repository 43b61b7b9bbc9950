from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from financeflow.db.core import (
    AccountDB, TransactionDB, NotFoundError, ConflictError, AccountType, TransactionType, CREDIT_TYPES, DEFAULT_CURRENCY
)
from financeflow.models.account import AccountCreate, AccountUpdate, AccountStats
from financeflow.logging_config import get_logger

logger = get_logger(__name__)

LIABILITY_TYPES = (AccountType.CREDIT,)


# ===== UTILITY FUNCTIONS =====

def signed_amount(transaction_type: TransactionType, amount: Decimal) -> Decimal:
    """Balance effect of a positive amount for the given transaction type."""
    return amount if transaction_type in CREDIT_TYPES else -amount


# ===== DATABASE OPERATIONS =====

def create_db_account(db: Session, account_data: AccountCreate) -> AccountDB:
    """Create a new account with an opening balance"""

    existing_account = db.query(AccountDB).filter(AccountDB.name == account_data.name).first()
    if existing_account:
        raise ValueError(f"Account name '{account_data.name}' already exists")

    db_account = AccountDB(
        name=account_data.name,
        account_type=account_data.account_type,
        balance=account_data.balance,
        currency=account_data.currency or DEFAULT_CURRENCY,
        color=account_data.color,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow()
    )

    try:
        db.add(db_account)
        db.commit()
        db.refresh(db_account)
    except IntegrityError:
        db.rollback()
        raise ValueError("Account creation failed due to database constraint")

    logger.info(f"Created account {db_account.id} '{db_account.name}' with opening balance {db_account.balance}")
    return db_account


def read_db_account(db: Session, account_id: int) -> Optional[AccountDB]:
    """Read an account by ID"""
    return db.query(AccountDB).filter(AccountDB.id == account_id).first()


def read_db_accounts(db: Session, account_type: Optional[AccountType] = None,
                     skip: int = 0, limit: int = 100) -> List[AccountDB]:
    """Read accounts, optionally filtered by account type"""

    query = db.query(AccountDB)

    if account_type:
        query = query.filter(AccountDB.account_type == account_type)

    return query.order_by(AccountDB.name).offset(skip).limit(limit).all()


def update_db_account(db: Session, account_id: int, account_updates: AccountUpdate) -> AccountDB:
    """Update an account's descriptive fields"""

    db_account = read_db_account(db, account_id)
    if not db_account:
        raise NotFoundError(f"Account with id {account_id} not found")

    if account_updates.name and account_updates.name != db_account.name:
        existing_name = db.query(AccountDB).filter(
            AccountDB.name == account_updates.name,
            AccountDB.id != account_id
        ).first()
        if existing_name:
            raise ValueError(f"Account name '{account_updates.name}' already exists")

    update_data = account_updates.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None:
            continue
        setattr(db_account, field, value)

    db_account.updated_at = datetime.utcnow()

    try:
        db.commit()
        db.refresh(db_account)
        return db_account
    except IntegrityError:
        db.rollback()
        raise ValueError("Account update failed due to database constraint")


def delete_db_account(db: Session, account_id: int) -> bool:
    """Delete an account (only if no transaction references it)"""

    db_account = read_db_account(db, account_id)
    if not db_account:
        raise NotFoundError(f"Account with id {account_id} not found")

    in_use = db.query(TransactionDB).filter(
        (TransactionDB.account_id == account_id) | (TransactionDB.counterpart_account_id == account_id)
    ).count()
    if in_use:
        raise ConflictError(f"Cannot delete account {account_id}, it still has {in_use} transaction(s)")

    try:
        db.delete(db_account)
        db.commit()
    except Exception as e:
        db.rollback()
        raise ValueError(f"Failed to delete account: {str(e)}")

    logger.info(f"Deleted account {account_id}")
    return True


def adjust_account_balance(db: Session, account: AccountDB, delta: Decimal) -> AccountDB:
    """
    Add a signed delta to an account's balance.

    Does not commit: ledger operations call this inside their own unit of work
    so the balance change lands together with the transaction rows.
    """
    account.balance = round(account.balance + delta, 2)
    account.updated_at = datetime.utcnow()
    db.add(account)
    return account


def get_account_stats(db: Session) -> AccountStats:
    """Get balance statistics across all accounts"""

    accounts = db.query(AccountDB).all()

    accounts_by_type = {}
    total_balance = Decimal('0.00')
    total_assets = Decimal('0.00')
    total_liabilities = Decimal('0.00')

    for account in accounts:
        account_type = account.account_type.value
        accounts_by_type[account_type] = accounts_by_type.get(account_type, 0) + 1
        total_balance += account.balance

        # Credit accounts carry what is owed as a negative balance
        if account.account_type in LIABILITY_TYPES or account.balance < 0:
            total_liabilities += abs(account.balance)
        else:
            total_assets += account.balance

    return AccountStats(
        total_accounts=len(accounts),
        accounts_by_type=accounts_by_type,
        total_balance=total_balance,
        total_assets=total_assets,
        total_liabilities=total_liabilities,
    )

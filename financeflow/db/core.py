import os
from typing import Optional
from sqlalchemy import create_engine, ForeignKey, Index, UniqueConstraint, Integer, String, Text, DECIMAL, DateTime, Date
from sqlalchemy.types import Enum
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Mapped, relationship, mapped_column
from datetime import datetime, date
from decimal import Decimal
from dotenv import load_dotenv
import enum

load_dotenv()

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///financeflow.db")
DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "EUR")


class NotFoundError(Exception):
    pass


class ConflictError(Exception):
    """Row is still referenced and cannot be removed"""
    pass


class Base(DeclarativeBase):
    pass


class AccountType(str, enum.Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    INVESTMENT = "investment"
    CASH = "cash"


class TransactionType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"


class TransactionStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"


class StatusEvent(str, enum.Enum):
    CREATED_PENDING = "created_pending"
    PARTIAL_CONFIRM = "partial_confirm"
    PARTIAL_CANCEL = "partial_cancel"
    AUTO_CONFIRMED = "auto_confirmed"


class CategoryType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


# Types that add to the owning account's balance; everything else subtracts.
CREDIT_TYPES = (TransactionType.INCOME, TransactionType.TRANSFER_IN)
TRANSFER_TYPES = (TransactionType.TRANSFER_IN, TransactionType.TRANSFER_OUT)


class AccountDB(Base):
    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("name", name="uq_account_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    account_type: Mapped[AccountType] = mapped_column(Enum(AccountType), nullable=False)

    # Running total, only mutated by ledger operations after creation
    balance: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default=DEFAULT_CURRENCY)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#36a2eb")

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    transactions = relationship("TransactionDB", foreign_keys="TransactionDB.account_id", back_populates="account")


class CategoryDB(Base):
    __tablename__ = "categories"

    __table_args__ = (
        Index("idx_categories_parent", "parent_id"),
        Index("idx_categories_type_level", "category_type", "level"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    category_type: Mapped[CategoryType] = mapped_column(Enum(CategoryType), nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#36a2eb")
    icon: Mapped[str] = mapped_column(String(10), nullable=False, default="💰")
    parent_id: Mapped[Optional[int]] = mapped_column(ForeignKey("categories.id", ondelete="CASCADE"))
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationship to self for subcategories
    parent = relationship("CategoryDB", remote_side=[id], back_populates="children")
    children = relationship("CategoryDB", back_populates="parent")

    transactions = relationship("TransactionDB", back_populates="category")
    budgets = relationship("BudgetDB", back_populates="category", cascade="all, delete-orphan")


class TransactionDB(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        Index("idx_transactions_account_date", "account_id", "transaction_date"),
        Index("idx_transactions_date", "transaction_date"),
        Index("idx_transactions_status", "status"),
        Index("idx_transactions_transfer", "transfer_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False)
    category_id: Mapped[Optional[int]] = mapped_column(ForeignKey("categories.id"))

    # Basic Transaction Data
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)  # always a positive magnitude
    transaction_type: Mapped[TransactionType] = mapped_column(Enum(TransactionType), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    # Pending State
    status: Mapped[TransactionStatus] = mapped_column(Enum(TransactionStatus), nullable=False, default=TransactionStatus.CONFIRMED)
    original_amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    pending_amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"))
    cancelled_amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"))
    auto_confirm_date: Mapped[Optional[date]] = mapped_column(Date)

    # Transfer Linkage: id of the counterpart leg and the account on the other side
    transfer_id: Mapped[Optional[int]] = mapped_column(ForeignKey("transactions.id"))
    counterpart_account_id: Mapped[Optional[int]] = mapped_column(ForeignKey("accounts.id"))

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    account = relationship("AccountDB", foreign_keys=[account_id], back_populates="transactions")
    counterpart_account = relationship("AccountDB", foreign_keys=[counterpart_account_id])
    category = relationship("CategoryDB", back_populates="transactions")
    status_history = relationship(
        "TransactionStatusHistoryDB",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionStatusHistoryDB.id",
    )

    @property
    def applied_amount(self) -> Decimal:
        """Portion of the amount currently reflected in the account balance."""
        return self.amount - self.pending_amount

    @property
    def is_transfer(self) -> bool:
        return self.transaction_type in TRANSFER_TYPES


class TransactionStatusHistoryDB(Base):
    """
    Append-only audit trail of pending-state transitions.
    Never read back to rebuild a transaction's state.
    """
    __tablename__ = "transaction_status_history"

    __table_args__ = (
        Index("idx_status_history_transaction", "transaction_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    transaction_id: Mapped[int] = mapped_column(ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[StatusEvent] = mapped_column(Enum(StatusEvent), nullable=False)
    amount: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(15, 2))
    note: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    transaction = relationship("TransactionDB", back_populates="status_history")


class BudgetDB(Base):
    __tablename__ = "budgets"

    __table_args__ = (
        # One target per category and month
        UniqueConstraint("category_id", "month", name="uq_budget_category_month"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    month: Mapped[date] = mapped_column(Date, nullable=False)  # always the first day of the month
    amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    category = relationship("CategoryDB", back_populates="budgets")


class SavingsGoalDB(Base):
    __tablename__ = "savings_goals"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    target_amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    current_amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"))
    target_date: Mapped[Optional[date]] = mapped_column(Date)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


engine = create_engine(DATABASE_URL, echo=os.getenv("SQL_ECHO", "false").lower() == "true")
session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Dependency to get the database session
def get_db():
    database = session_local()
    try:
        yield database
    finally:
        database.close()

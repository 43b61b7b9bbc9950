import sys
import os
import random
from sqlalchemy.orm import Session
from datetime import date, timedelta
from decimal import Decimal
from faker import Faker

# Add the project root to the Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from financeflow.db.core import (
    session_local,
    AccountDB,
    CategoryDB,
    TransactionDB,
    CategoryType,
    TransactionType,
    TransactionStatus,
)
from financeflow.models.transaction import TransactionCreate
from financeflow.models.transfer import TransferCreate
from financeflow.models.budget import BudgetUpsert
from financeflow.models.savings_goal import SavingsGoalCreate
from financeflow.crud.crud_transaction import create_db_transaction
from financeflow.crud.crud_transfer import create_db_transfer
from financeflow.crud.crud_budget import upsert_db_budget
from financeflow.crud.crud_savings_goal import create_db_savings_goal
from financeflow.services.setup import run_setup

fake = Faker()


def random_amount(low: float, high: float) -> Decimal:
    return Decimal(str(round(random.uniform(low, high), 2)))


def seed_database():
    """
    Fills the database with default categories and accounts plus a year of
    sample transactions, transfers, budgets and savings goals.

    Everything goes through the regular ledger operations so account balances
    stay consistent with the transactions.
    """
    db: Session = session_local()

    try:
        run_setup(db)

        if db.query(TransactionDB).count() > 0:
            print("Database appears to be already seeded. Exiting.")
            return

        print("Seeding database with sample data...")

        accounts = db.query(AccountDB).all()
        expense_leaves = db.query(CategoryDB).filter(
            CategoryDB.category_type == CategoryType.EXPENSE, CategoryDB.level >= 2
        ).all()
        income_categories = db.query(CategoryDB).filter(CategoryDB.category_type == CategoryType.INCOME).all()
        checking = accounts[0]
        today = date.today()

        # 1. Monthly salary into the first account
        print("Creating income...")
        for months_back in range(12):
            pay_day = (today.replace(day=1) - timedelta(days=30 * months_back)).replace(day=1)
            create_db_transaction(db, TransactionCreate(
                account_id=checking.id,
                amount=random_amount(2800, 3400),
                transaction_type=TransactionType.INCOME,
                transaction_date=pay_day,
                category_id=random.choice(income_categories).id,
                description=f"Salary {fake.company()}",
            ))

        # 2. Everyday expenses, a few of them still pending
        print("Creating expenses...")
        for _ in range(200):
            is_pending = random.random() < 0.05
            trans_date = fake.date_between(start_date="-1y", end_date="today")
            create_db_transaction(db, TransactionCreate(
                account_id=random.choice(accounts).id,
                amount=random_amount(3, 150),
                transaction_type=TransactionType.EXPENSE,
                transaction_date=trans_date,
                category_id=random.choice(expense_leaves).id,
                description=fake.catch_phrase(),
                status=TransactionStatus.PENDING if is_pending else TransactionStatus.CONFIRMED,
                auto_confirm_date=trans_date + timedelta(days=3) if is_pending else None,
            ))

        # 3. Transfers between accounts
        print("Creating transfers...")
        for _ in range(10):
            source, target = random.sample(accounts, 2)
            create_db_transfer(db, TransferCreate(
                from_account_id=source.id,
                to_account_id=target.id,
                amount=random_amount(50, 500),
                transfer_date=fake.date_between(start_date="-1y", end_date="today"),
            ))

        # 4. Budgets for this month
        print("Creating budgets...")
        for category in random.sample(expense_leaves, min(len(expense_leaves), 8)):
            upsert_db_budget(db, BudgetUpsert(category_id=category.id, month=today, amount=random_amount(50, 400)))

        # 5. Savings goals
        print("Creating savings goals...")
        for name in ("Emergency Fund", "Vacation", fake.word().title()):
            target = random_amount(1000, 10000)
            create_db_savings_goal(db, SavingsGoalCreate(
                name=name,
                target_amount=target,
                current_amount=round(target * Decimal(str(random.uniform(0, 0.8))), 2),
                target_date=fake.date_between(start_date="+3m", end_date="+3y"),
            ))

        print("Seeding complete.")

    except Exception as e:
        print(f"An error occurred: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()

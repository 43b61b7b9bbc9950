"""
Read-only projections over the ledger.

Everything here is aggregated in Python from ORM rows so it behaves the same
on SQLite and PostgreSQL. Only the applied part of a transaction
(``amount - pending_amount``) is counted, and transfers are left out unless
``include_transfers`` is set.
"""
from sqlalchemy.orm import Session, joinedload
from typing import Optional, List, Dict
from datetime import date, timedelta
from decimal import Decimal

from financeflow.db.core import AccountDB, TransactionDB, CategoryDB, BudgetDB, TRANSFER_TYPES, CREDIT_TYPES
from financeflow.models.analytics import PeriodTotals, CategorySpending, CategoryRollup, DashboardSummary
from financeflow.models.transfer import TransferSummary
from financeflow.crud.crud_budget import month_bounds, calculate_category_spending
from financeflow.crud.crud_transfer import read_db_transfers

ZERO = Decimal("0.00")


def _shift_months(day: date, months: int) -> date:
    month_index = day.year * 12 + (day.month - 1) + months
    return date(month_index // 12, month_index % 12 + 1, 1)


def _one_month_back(day: date) -> date:
    first = _shift_months(day, -1)
    _, next_month = month_bounds(first)
    last_day = (next_month - timedelta(days=1)).day
    return first.replace(day=min(day.day, last_day))


def _ledger_rows(db: Session, date_from: Optional[date] = None, date_to: Optional[date] = None,
                 account_id: Optional[int] = None, include_transfers: bool = False) -> List[TransactionDB]:
    query = db.query(TransactionDB)

    if date_from:
        query = query.filter(TransactionDB.transaction_date >= date_from)
    if date_to:
        query = query.filter(TransactionDB.transaction_date <= date_to)
    if account_id:
        query = query.filter(TransactionDB.account_id == account_id)
    if not include_transfers:
        query = query.filter(TransactionDB.transaction_type.notin_(TRANSFER_TYPES))

    return query.all()


def _period_totals(rows: List[TransactionDB], period_of) -> List[PeriodTotals]:
    totals: Dict[date, Dict] = {}

    for row in rows:
        applied = row.applied_amount
        if applied <= 0:
            continue
        bucket = totals.setdefault(period_of(row.transaction_date), {"income": ZERO, "expenses": ZERO, "count": 0})
        if row.transaction_type in CREDIT_TYPES:
            bucket["income"] += applied
        else:
            bucket["expenses"] += applied
        bucket["count"] += 1

    return [
        PeriodTotals(period=period, income=values["income"], expenses=values["expenses"],
                     transaction_count=values["count"])
        for period, values in sorted(totals.items())
    ]


def get_overview(db: Session, as_of: Optional[date] = None, account_id: Optional[int] = None,
                 include_transfers: bool = False) -> List[PeriodTotals]:
    """Income and expenses per month for the twelve months up to as_of"""
    as_of = as_of or date.today()
    date_from = _shift_months(as_of, -11)

    rows = _ledger_rows(db, date_from, as_of, account_id, include_transfers)
    return _period_totals(rows, lambda d: d.replace(day=1))


def get_trends(db: Session, as_of: Optional[date] = None, account_id: Optional[int] = None,
               include_transfers: bool = False) -> List[PeriodTotals]:
    """Income and expenses per day for the last 30 days"""
    as_of = as_of or date.today()
    date_from = as_of - timedelta(days=30)

    rows = _ledger_rows(db, date_from, as_of, account_id, include_transfers)
    return _period_totals(rows, lambda d: d)


def get_category_spending(db: Session, date_from: Optional[date] = None, date_to: Optional[date] = None,
                          account_id: Optional[int] = None, include_transfers: bool = False) -> List[CategorySpending]:
    """
    Totals per category over a date range (default: the last month), with
    the names of the parent and grandparent categories.
    """
    date_to = date_to or date.today()
    date_from = date_from or _one_month_back(date_to)

    rows = [
        row for row in _ledger_rows(db, date_from, date_to, account_id, include_transfers)
        if row.category_id is not None and row.applied_amount > 0
    ]

    grouped: Dict[int, List[Decimal]] = {}
    for row in rows:
        grouped.setdefault(row.category_id, []).append(row.applied_amount)

    categories = {
        category.id: category
        for category in db.query(CategoryDB).options(joinedload(CategoryDB.parent)).filter(
            CategoryDB.id.in_(list(grouped))
        ).all()
    } if grouped else {}

    results = []
    for category_id, amounts in grouped.items():
        category = categories[category_id]
        parent = category.parent
        grandparent = parent.parent if parent is not None else None
        total = sum(amounts, ZERO)

        results.append(CategorySpending(
            category_id=category.id,
            category_name=category.name,
            icon=category.icon,
            color=category.color,
            level=category.level,
            parent_id=category.parent_id,
            parent_name=parent.name if parent is not None else None,
            grandparent_name=grandparent.name if grandparent is not None else None,
            total=total,
            transaction_count=len(amounts),
            average=round(total / len(amounts), 2),
        ))

    results.sort(key=lambda item: (item.level, -item.total))
    return results


def get_category_hierarchy(db: Session, date_from: Optional[date] = None, date_to: Optional[date] = None,
                           account_id: Optional[int] = None, include_transfers: bool = False) -> List[CategoryRollup]:
    """Totals rolled up to each level-1 category"""
    rollups: Dict[int, CategoryRollup] = {}

    for spending in get_category_spending(db, date_from, date_to, account_id, include_transfers):
        root = db.query(CategoryDB).filter(CategoryDB.id == spending.category_id).first()
        while root.parent is not None:
            root = root.parent

        rollup = rollups.get(root.id)
        if rollup is None:
            rollup = rollups[root.id] = CategoryRollup(
                category_id=root.id,
                category_name=root.name,
                icon=root.icon,
                color=root.color,
                total=ZERO,
                transaction_count=0,
            )
        rollup.total += spending.total
        rollup.transaction_count += spending.transaction_count

    return sorted(rollups.values(), key=lambda item: item.total, reverse=True)


def get_summary(db: Session, as_of: Optional[date] = None, account_id: Optional[int] = None,
                include_transfers: bool = False) -> DashboardSummary:
    """Balance, current-month cash flow and budget status"""
    as_of = as_of or date.today()
    month_start, month_end = month_bounds(as_of)

    accounts = db.query(AccountDB)
    if account_id:
        accounts = accounts.filter(AccountDB.id == account_id)
    total_balance = sum((account.balance for account in accounts.all()), ZERO)

    rows = [
        row for row in _ledger_rows(db, month_start, month_end - timedelta(days=1), account_id, include_transfers)
        if row.applied_amount > 0
    ]
    monthly_income = sum((r.applied_amount for r in rows if r.transaction_type in CREDIT_TYPES), ZERO)
    monthly_expenses = sum((r.applied_amount for r in rows if r.transaction_type not in CREDIT_TYPES), ZERO)

    budgets = db.query(BudgetDB).filter(BudgetDB.month == month_start).all()
    over_limit = sum(
        1 for budget in budgets
        if calculate_category_spending(db, budget.category_id, month_start) > budget.amount
    )

    return DashboardSummary(
        total_balance=total_balance,
        monthly_income=monthly_income,
        monthly_expenses=monthly_expenses,
        monthly_transaction_count=len(rows),
        total_budgets=len(budgets),
        budgets_over_limit=over_limit,
    )


def get_transfers(db: Session, date_from: Optional[date] = None, date_to: Optional[date] = None,
                  account_id: Optional[int] = None) -> List[TransferSummary]:
    """Transfers in a date range (default: the last month)"""
    date_to = date_to or date.today()
    date_from = date_from or _one_month_back(date_to)
    return read_db_transfers(db, account_id=account_id, date_from=date_from, date_to=date_to, limit=1000)

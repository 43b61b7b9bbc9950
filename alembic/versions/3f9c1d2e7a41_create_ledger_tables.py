"""create accounts, categories, transactions, budgets and savings goals tables

Revision ID: 3f9c1d2e7a41
Revises:
Create Date: 2026-10-17 09:12:44.518203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c1d2e7a41'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


account_type = sa.Enum('CHECKING', 'SAVINGS', 'CREDIT', 'INVESTMENT', 'CASH', name='accounttype')
category_type = sa.Enum('INCOME', 'EXPENSE', name='categorytype')
transaction_type = sa.Enum('INCOME', 'EXPENSE', 'TRANSFER_IN', 'TRANSFER_OUT', name='transactiontype')
transaction_status = sa.Enum('CONFIRMED', 'PENDING', 'CANCELLED', name='transactionstatus')
status_event = sa.Enum('CREATED_PENDING', 'PARTIAL_CONFIRM', 'PARTIAL_CANCEL', 'AUTO_CONFIRMED', name='statusevent')


def upgrade() -> None:
    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('account_type', account_type, nullable=False),
        sa.Column('balance', sa.DECIMAL(15, 2), nullable=False, server_default='0'),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('color', sa.String(7), nullable=False, server_default='#36a2eb'),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
        sa.UniqueConstraint('name', name='uq_account_name'),
    )
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('category_type', category_type, nullable=False),
        sa.Column('color', sa.String(7), nullable=False, server_default='#36a2eb'),
        sa.Column('icon', sa.String(10), nullable=False, server_default='💰'),
        sa.Column('parent_id', sa.Integer, sa.ForeignKey('categories.id', ondelete='CASCADE'), nullable=True),
        sa.Column('level', sa.Integer, nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_categories_parent', 'categories', ['parent_id'])
    op.create_index('idx_categories_type_level', 'categories', ['category_type', 'level'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('account_id', sa.Integer, sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('category_id', sa.Integer, sa.ForeignKey('categories.id'), nullable=True),
        sa.Column('transaction_date', sa.Date, nullable=False),
        sa.Column('amount', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('transaction_type', transaction_type, nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('status', transaction_status, nullable=False, server_default='CONFIRMED'),
        sa.Column('original_amount', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('pending_amount', sa.DECIMAL(15, 2), nullable=False, server_default='0'),
        sa.Column('cancelled_amount', sa.DECIMAL(15, 2), nullable=False, server_default='0'),
        sa.Column('auto_confirm_date', sa.Date, nullable=True),
        sa.Column('transfer_id', sa.Integer, sa.ForeignKey('transactions.id'), nullable=True),
        sa.Column('counterpart_account_id', sa.Integer, sa.ForeignKey('accounts.id'), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_transactions_account_date', 'transactions', ['account_id', 'transaction_date'])
    op.create_index('idx_transactions_date', 'transactions', ['transaction_date'])
    op.create_index('idx_transactions_status', 'transactions', ['status'])
    op.create_index('idx_transactions_transfer', 'transactions', ['transfer_id'])

    op.create_table(
        'transaction_status_history',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('transaction_id', sa.Integer, sa.ForeignKey('transactions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', status_event, nullable=False),
        sa.Column('amount', sa.DECIMAL(15, 2), nullable=True),
        sa.Column('note', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_status_history_transaction', 'transaction_status_history', ['transaction_id'])

    op.create_table(
        'budgets',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('category_id', sa.Integer, sa.ForeignKey('categories.id', ondelete='CASCADE'), nullable=False),
        sa.Column('month', sa.Date, nullable=False),
        sa.Column('amount', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.UniqueConstraint('category_id', 'month', name='uq_budget_category_month'),
    )

    op.create_table(
        'savings_goals',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('target_amount', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('current_amount', sa.DECIMAL(15, 2), nullable=False, server_default='0'),
        sa.Column('target_date', sa.Date, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
    )


def downgrade() -> None:
    op.drop_table('savings_goals')
    op.drop_table('budgets')
    op.drop_index('idx_status_history_transaction', table_name='transaction_status_history')
    op.drop_table('transaction_status_history')
    op.drop_index('idx_transactions_transfer', table_name='transactions')
    op.drop_index('idx_transactions_status', table_name='transactions')
    op.drop_index('idx_transactions_date', table_name='transactions')
    op.drop_index('idx_transactions_account_date', table_name='transactions')
    op.drop_table('transactions')
    op.drop_index('idx_categories_type_level', table_name='categories')
    op.drop_index('idx_categories_parent', table_name='categories')
    op.drop_table('categories')
    op.drop_table('accounts')

    for enum_type in (status_event, transaction_status, transaction_type, category_type, account_type):
        enum_type.drop(op.get_bind(), checkfirst=True)

"""
First-run setup: create the schema and seed default categories and accounts.

Safe to run repeatedly. Categories are only seeded into an empty category
table and accounts into an empty account table.
"""
from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime
from decimal import Decimal

from financeflow.db.core import Base, AccountDB, CategoryDB, AccountType, CategoryType, DEFAULT_CURRENCY
from financeflow.models.setup import SetupResult
from financeflow.logging_config import get_logger

logger = get_logger(__name__)

# (name, icon, income color, expense color, subcategories)
# Subcategories are (name, icon, sub-subcategories) and take their root's color.
DEFAULT_CATEGORY_TREE = [
    ("Food & Drink", "🍽️", "#22c55e", "#f44336", [
        ("Restaurants & Dining", "🍽️", [
            ("Fast Food", "🍟"), ("Fine Dining", "🍷"), ("Café & Bakery", "☕"), ("Delivery", "🥡"),
        ]),
        ("Groceries", "🛒", [
            ("Supermarket", "🏪"), ("Organic Market", "🌱"), ("Farmers Market", "🥕"), ("Online Delivery", "📦"),
        ]),
        ("Beverages", "🥤", []),
        ("Sweets & Snacks", "🍬", []),
    ]),
    ("Shopping", "🛒", "#16a34a", "#e53e3e", [
        ("Clothing & Fashion", "👕", [
            ("Workwear", "👔"), ("Casual Wear", "👕"), ("Shoes", "👟"), ("Accessories", "👒"),
        ]),
        ("Household Goods", "🧽", []),
        ("Electronics & Appliances", "📱", []),
        ("Sports & Leisure", "⚽", []),
        ("Gifts", "🎁", []),
    ]),
    ("Housing", "🏠", "#059669", "#dc2626", [
        ("Rent & Utilities", "🏠", []),
        ("Electricity & Energy", "💡", []),
        ("Internet & Phone", "🌐", []),
        ("Furniture & Furnishings", "🛏️", []),
        ("Repairs & Maintenance", "🔨", []),
    ]),
    ("Transport", "🚗", "#047857", "#b91c1c", [
        ("Public Transport", "🚇", [
            ("Monthly Pass", "🎫"), ("Single Ticket", "🎟️"), ("Long Distance", "🚆"),
        ]),
        ("Taxi & Ridesharing", "🚕", []),
        ("Bicycle", "🚲", []),
        ("Flights & Travel", "✈️", []),
    ]),
    ("Vehicle", "🚙", "#065f46", "#991b1b", [
        ("Fuel", "⛽", [
            ("Petrol", "⛽"), ("Diesel", "⛽"), ("Electric", "🔌"),
        ]),
        ("Service & Repair", "🔧", []),
        ("Insurance & Taxes", "🛡️", []),
        ("Parking & Tolls", "🅿️", []),
    ]),
    ("Culture & Entertainment", "🎭", "#10b981", "#7f1d1d", [
        ("Streaming & Subscriptions", "📺", [
            ("Netflix", "📺"), ("Spotify", "🎵"), ("YouTube Premium", "📱"), ("Amazon Prime", "📦"),
        ]),
        ("Cinema & Theatre", "🎬", []),
        ("Gaming", "🎮", [
            ("PlayStation", "🎮"), ("Steam", "💻"), ("Mobile Games", "📱"), ("Nintendo", "🎮"),
        ]),
        ("Books & Media", "📚", []),
        ("Events & Concerts", "🎪", []),
    ]),
    ("Communication & Tech", "📱", "#34d399", "#ef4444", [
        ("Mobile", "📱", []),
        ("Software & Apps", "💿", []),
        ("Hardware", "💻", []),
        ("Cloud & Storage", "☁️", []),
    ]),
    ("Financial Expenses", "🏦", "#6ee7b7", "#fca5a5", [
        ("Bank Fees", "🏦", []),
        ("Insurance", "🛡️", [
            ("Health Insurance", "🏥"), ("Car Insurance", "🚗"), ("Home Insurance", "🏠"), ("Disability Insurance", "🛡️"),
        ]),
        ("Loans & Interest", "💳", []),
        ("Taxes & Fees", "🧾", []),
    ]),
    ("Investments", "📈", "#a7f3d0", "#fecaca", [
        ("Stocks & ETFs", "📊", []),
        ("Cryptocurrencies", "₿", []),
        ("Real Estate", "🏘️", []),
        ("Savings Plans", "💰", []),
    ]),
    ("Other", "💰", "#d1fae5", "#fee2e2", [
        ("Health & Medical", "⚕️", []),
        ("Education", "🎓", []),
        ("Donations", "💝", []),
        ("Miscellaneous", "❓", []),
    ]),
]

DEFAULT_ACCOUNTS = [
    ("Checking", AccountType.CHECKING, "#36a2eb"),
    ("Savings", AccountType.SAVINGS, "#22c55e"),
    ("Credit Card", AccountType.CREDIT, "#f44336"),
]


def _add_category(db: Session, name: str, category_type: CategoryType, icon: str, color: str,
                  parent: CategoryDB = None) -> CategoryDB:
    category = CategoryDB(
        name=name,
        category_type=category_type,
        icon=icon,
        color=color,
        parent_id=parent.id if parent is not None else None,
        level=parent.level + 1 if parent is not None else 1,
        created_at=datetime.utcnow()
    )
    db.add(category)
    db.flush()
    return category


def seed_default_categories(db: Session) -> int:
    """Insert the default three-level tree once per category type. Does not commit."""
    created = 0
    for category_type in (CategoryType.INCOME, CategoryType.EXPENSE):
        for name, icon, income_color, expense_color, subcategories in DEFAULT_CATEGORY_TREE:
            color = income_color if category_type == CategoryType.INCOME else expense_color
            root = _add_category(db, name, category_type, icon, color)
            created += 1
            for sub_name, sub_icon, leaves in subcategories:
                sub = _add_category(db, sub_name, category_type, sub_icon, color, root)
                created += 1
                for leaf_name, leaf_icon in leaves:
                    _add_category(db, leaf_name, category_type, leaf_icon, color, sub)
                    created += 1
    return created


def seed_default_accounts(db: Session) -> int:
    """Insert the default accounts with a zero balance. Does not commit."""
    for name, account_type, color in DEFAULT_ACCOUNTS:
        db.add(AccountDB(
            name=name,
            account_type=account_type,
            balance=Decimal("0.00"),
            currency=DEFAULT_CURRENCY,
            color=color,
            created_at=datetime.utcnow(),
            updated_at=datetime.utcnow()
        ))
    return len(DEFAULT_ACCOUNTS)


def run_setup(db: Session) -> SetupResult:
    """Create missing tables and seed defaults into empty tables"""

    Base.metadata.create_all(bind=db.get_bind())

    categories_created = 0
    accounts_created = 0

    try:
        if db.query(CategoryDB).count() == 0:
            categories_created = seed_default_categories(db)
        if db.query(AccountDB).count() == 0:
            accounts_created = seed_default_accounts(db)
        db.commit()
    except Exception:
        db.rollback()
        raise

    levels = dict(db.query(CategoryDB.level, func.count(CategoryDB.id)).group_by(CategoryDB.level).all())

    logger.info(f"Setup complete: {categories_created} categories and {accounts_created} accounts created")

    return SetupResult(
        categories_created=categories_created,
        accounts_created=accounts_created,
        total_categories=sum(levels.values()),
        level_1_categories=levels.get(1, 0),
        level_2_categories=levels.get(2, 0),
        level_3_categories=levels.get(3, 0),
        total_accounts=db.query(AccountDB).count(),
    )

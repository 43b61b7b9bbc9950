import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from financeflow.db.core import Base, get_db, AccountType
from financeflow.main import app
from financeflow.crud.crud_account import create_db_account
from financeflow.models.account import AccountCreate


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        database = session_factory()
        try:
            yield database
        finally:
            database.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_account(client):
    """Create an account through the API and return its JSON"""
    def _make(name: str, balance: str = "0.00", account_type: str = "checking"):
        resp = client.post("/accounts/", json={"name": name, "account_type": account_type, "balance": balance})
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _make


@pytest.fixture
def make_transaction(client):
    """Create a transaction through the API and return its JSON"""
    def _make(account_id: int, amount: str, transaction_type: str = "expense",
              transaction_date: str = "2026-01-15", **extra):
        payload = {
            "account_id": account_id,
            "amount": amount,
            "transaction_type": transaction_type,
            "transaction_date": transaction_date,
        }
        payload.update(extra)
        resp = client.post("/transactions/", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _make


@pytest.fixture
def balance_of(client):
    def _balance(account_id: int) -> Decimal:
        resp = client.get(f"/accounts/{account_id}")
        assert resp.status_code == 200, resp.text
        return Decimal(resp.json()["balance"])
    return _balance


@pytest.fixture
def account_factory(db):
    """Create an account directly through the crud layer"""
    def _make(name: str, balance: str = "0.00", account_type: AccountType = AccountType.CHECKING):
        return create_db_account(db, AccountCreate(name=name, account_type=account_type, balance=Decimal(balance)))
    return _make

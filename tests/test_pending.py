from datetime import date
from decimal import Decimal

import pytest

from financeflow.crud.crud_transaction import create_db_transaction, read_db_transaction
from financeflow.db.core import AccountDB, TransactionStatus, TransactionType, StatusEvent
from financeflow.models.transaction import TransactionCreate
from financeflow.services import pending


def _pending(db, account, amount, transaction_type=TransactionType.EXPENSE, auto_confirm_date=None):
    return create_db_transaction(db, TransactionCreate(
        account_id=account.id,
        amount=Decimal(amount),
        transaction_type=transaction_type,
        transaction_date=date(2026, 1, 5),
        status=TransactionStatus.PENDING,
        auto_confirm_date=auto_confirm_date,
    ))


def _balance(db, account_id):
    db.expire_all()
    return db.query(AccountDB).filter(AccountDB.id == account_id).one().balance


def _assert_amounts_consistent(tx):
    assert tx.amount == tx.original_amount - tx.cancelled_amount
    assert tx.cancelled_amount + tx.pending_amount <= tx.original_amount


def test_partial_confirm_applies_only_the_confirmed_part(db, account_factory):
    account = account_factory("Checking", "500.00")
    tx = _pending(db, account, "100.00")

    result = pending.partial_confirm(db, tx.id, Decimal("40.00"), "first installment")

    assert result.remaining_amount == Decimal("60.00")
    assert result.new_status == TransactionStatus.PENDING
    assert result.fully_completed is False
    assert _balance(db, account.id) == Decimal("460.00")

    history = read_db_transaction(db, tx.id).status_history
    assert [h.status for h in history] == [StatusEvent.CREATED_PENDING, StatusEvent.PARTIAL_CONFIRM]
    assert history[-1].note == "first installment"


def test_partial_confirm_rejects_more_than_remaining(db, account_factory):
    account = account_factory("Checking", "500.00")
    tx = _pending(db, account, "100.00")

    with pytest.raises(ValueError):
        pending.partial_confirm(db, tx.id, Decimal("100.01"))

    assert _balance(db, account.id) == Decimal("500.00")
    assert read_db_transaction(db, tx.id).pending_amount == Decimal("100.00")


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1.00")])
def test_non_positive_amounts_are_rejected(db, account_factory, amount):
    account = account_factory("Checking", "500.00")
    tx = _pending(db, account, "100.00")

    with pytest.raises(ValueError):
        pending.partial_confirm(db, tx.id, amount)
    with pytest.raises(ValueError):
        pending.partial_cancel(db, tx.id, amount)


def test_confirming_down_to_a_cent_settles_the_remainder(db, account_factory):
    account = account_factory("Checking", "500.00")
    tx = _pending(db, account, "100.00")

    result = pending.partial_confirm(db, tx.id, Decimal("99.99"))

    assert result.new_status == TransactionStatus.CONFIRMED
    assert result.remaining_amount == Decimal("0.00")
    assert result.fully_completed is True
    assert _balance(db, account.id) == Decimal("400.00")


def test_partial_cancel_reduces_amount_but_not_balance(db, account_factory):
    account = account_factory("Checking", "500.00")
    tx = _pending(db, account, "100.00")

    result = pending.partial_cancel(db, tx.id, Decimal("30.00"))

    refreshed = read_db_transaction(db, tx.id)
    assert result.new_status == TransactionStatus.PENDING
    assert refreshed.cancelled_amount == Decimal("30.00")
    assert refreshed.pending_amount == Decimal("70.00")
    assert refreshed.amount == Decimal("70.00")
    assert _balance(db, account.id) == Decimal("500.00")
    _assert_amounts_consistent(refreshed)


def test_partial_cancel_limit_accounts_for_earlier_cancellations(db, account_factory):
    account = account_factory("Checking", "500.00")
    tx = _pending(db, account, "100.00")
    pending.partial_cancel(db, tx.id, Decimal("30.00"))

    # 70 pending, 30 already cancelled: at most 40 more can be cancelled
    with pytest.raises(ValueError):
        pending.partial_cancel(db, tx.id, Decimal("50.00"))

    pending.partial_cancel(db, tx.id, Decimal("40.00"))
    refreshed = read_db_transaction(db, tx.id)
    assert refreshed.pending_amount == Decimal("30.00")
    assert refreshed.amount == Decimal("30.00")

    result = pending.confirm(db, tx.id)
    assert result.new_status == TransactionStatus.CONFIRMED
    assert _balance(db, account.id) == Decimal("470.00")
    _assert_amounts_consistent(read_db_transaction(db, tx.id))

def test_cancel_limit_exhausted_leaves_only_confirmation(db, account_factory):
    account = account_factory("Checking", "500.00")
    tx = _pending(db, account, "100.00")
    pending.partial_cancel(db, tx.id, Decimal("60.00"))

    # 40 pending, 60 already cancelled
    with pytest.raises(ValueError, match="can only be confirmed"):
        pending.partial_cancel(db, tx.id, Decimal("40.00"))

    result = pending.confirm(db, tx.id)
    assert result.new_status == TransactionStatus.CONFIRMED
    assert _balance(db, account.id) == Decimal("460.00")



def test_cancelling_everything_marks_transaction_cancelled(db, account_factory):
    account = account_factory("Checking", "500.00")
    tx = _pending(db, account, "100.00")

    result = pending.partial_cancel(db, tx.id, Decimal("100.00"))

    refreshed = read_db_transaction(db, tx.id)
    assert result.new_status == TransactionStatus.CANCELLED
    assert result.fully_completed is True
    assert refreshed.amount == Decimal("0.00")
    assert refreshed.pending_amount == Decimal("0.00")
    assert _balance(db, account.id) == Decimal("500.00")


def test_pending_amount_never_grows_and_applied_part_matches_balance(db, account_factory):
    account = account_factory("Checking", "1000.00")
    tx = _pending(db, account, "200.00", TransactionType.INCOME)

    steps = [
        (pending.partial_confirm, Decimal("50.00")),
        (pending.partial_cancel, Decimal("20.00")),
        (pending.partial_confirm, Decimal("25.00")),
        (pending.partial_cancel, Decimal("10.00")),
    ]

    previous_pending = Decimal("200.00")
    for operation, amount in steps:
        operation(db, tx.id, amount)
        current = read_db_transaction(db, tx.id)
        assert current.pending_amount <= previous_pending
        previous_pending = current.pending_amount
        _assert_amounts_consistent(current)
        assert _balance(db, account.id) == Decimal("1000.00") + current.applied_amount


def test_transitions_require_pending_status(db, account_factory):
    account = account_factory("Checking", "500.00")
    confirmed = create_db_transaction(db, TransactionCreate(
        account_id=account.id, amount=Decimal("10.00"), transaction_type=TransactionType.EXPENSE,
        transaction_date=date(2026, 1, 5),
    ))

    with pytest.raises(ValueError):
        pending.partial_confirm(db, confirmed.id, Decimal("5.00"))
    with pytest.raises(ValueError):
        pending.partial_cancel(db, confirmed.id, Decimal("5.00"))
    with pytest.raises(ValueError):
        pending.confirm(db, confirmed.id)


def test_auto_confirm_only_touches_due_transactions(db, account_factory):
    account = account_factory("Checking", "500.00")
    due = _pending(db, account, "100.00", auto_confirm_date=date(2026, 1, 10))
    on_the_day = _pending(db, account, "20.00", auto_confirm_date=date(2026, 1, 15))
    later = _pending(db, account, "50.00", auto_confirm_date=date(2026, 1, 20))
    manual = _pending(db, account, "5.00")

    result = pending.auto_confirm(db, as_of=date(2026, 1, 15))

    assert result.confirmed_count == 2
    assert sorted(result.confirmed_ids) == sorted([due.id, on_the_day.id])
    assert result.failed_ids == []
    assert _balance(db, account.id) == Decimal("380.00")

    confirmed = read_db_transaction(db, due.id)
    assert confirmed.status == TransactionStatus.CONFIRMED
    assert confirmed.pending_amount == Decimal("0.00")
    assert confirmed.auto_confirm_date is None
    assert confirmed.status_history[-1].status == StatusEvent.AUTO_CONFIRMED

    assert read_db_transaction(db, later.id).status == TransactionStatus.PENDING
    assert read_db_transaction(db, manual.id).status == TransactionStatus.PENDING

    # A second sweep on the same day finds nothing new
    assert pending.auto_confirm(db, as_of=date(2026, 1, 15)).confirmed_count == 0


def test_auto_confirm_after_partial_confirm_applies_only_the_rest(db, account_factory):
    account = account_factory("Checking", "500.00")
    tx = _pending(db, account, "100.00", auto_confirm_date=date(2026, 1, 10))
    pending.partial_confirm(db, tx.id, Decimal("30.00"))

    pending.auto_confirm(db, as_of=date(2026, 1, 10))

    assert _balance(db, account.id) == Decimal("400.00")


def test_auto_confirm_skips_a_failing_row(db, account_factory, monkeypatch):
    account = account_factory("Checking", "500.00")
    broken = _pending(db, account, "13.00", auto_confirm_date=date(2026, 1, 10))
    fine = _pending(db, account, "20.00", auto_confirm_date=date(2026, 1, 10))

    real_adjust = pending.adjust_account_balance

    def flaky_adjust(session, acct, delta):
        if delta == Decimal("-13.00"):
            raise RuntimeError("lock timeout")
        return real_adjust(session, acct, delta)

    monkeypatch.setattr(pending, "adjust_account_balance", flaky_adjust)

    result = pending.auto_confirm(db, as_of=date(2026, 1, 10))

    assert result.confirmed_ids == [fine.id]
    assert result.failed_ids == [broken.id]
    assert read_db_transaction(db, broken.id).status == TransactionStatus.PENDING
    assert _balance(db, account.id) == Decimal("480.00")


def test_deleting_a_partly_confirmed_transaction_reverses_only_the_applied_part(db, account_factory):
    from financeflow.crud.crud_transaction import delete_db_transaction

    account = account_factory("Checking", "500.00")
    tx = _pending(db, account, "100.00")
    pending.partial_confirm(db, tx.id, Decimal("40.00"))

    delete_db_transaction(db, tx.id)

    assert _balance(db, account.id) == Decimal("500.00")


# ===== HTTP =====

def test_pending_endpoints(client, make_account, make_transaction, balance_of):
    account = make_account("Checking", balance="500.00")
    tx = make_transaction(account["id"], "100.00", "expense", status="pending")

    resp = client.post(f"/transactions/{tx['id']}/partial-confirm", json={"amount": "40.00", "note": "part"})
    assert resp.status_code == 200
    assert Decimal(resp.json()["remaining_amount"]) == Decimal("60.00")
    assert balance_of(account["id"]) == Decimal("460.00")

    resp = client.post(f"/transactions/{tx['id']}/partial-cancel", json={"amount": "10.00"})
    assert resp.status_code == 200
    assert Decimal(resp.json()["transaction"]["amount"]) == Decimal("90.00")

    resp = client.post(f"/transactions/{tx['id']}/confirm")
    assert resp.status_code == 200
    assert resp.json()["new_status"] == "confirmed"
    assert balance_of(account["id"]) == Decimal("410.00")

    resp = client.post(f"/transactions/{tx['id']}/confirm")
    assert resp.status_code == 400

    history = client.get(f"/transactions/{tx['id']}/history").json()
    assert [h["status"] for h in history] == [
        "created_pending", "partial_confirm", "partial_cancel", "partial_confirm"
    ]


def test_partial_confirm_on_missing_transaction_returns_404(client):
    resp = client.post("/transactions/999/partial-confirm", json={"amount": "1.00"})

    assert resp.status_code == 404


def test_auto_confirm_endpoint(client, make_account, make_transaction, balance_of):
    account = make_account("Checking", balance="100.00")
    make_transaction(account["id"], "25.00", "income", status="pending", auto_confirm_date="2026-01-10")

    resp = client.post("/transactions/auto-confirm", params={"as_of": "2026-01-31"})

    assert resp.status_code == 200
    assert resp.json()["confirmed_count"] == 1
    assert resp.json()["as_of"] == "2026-01-31"
    assert balance_of(account["id"]) == Decimal("125.00")

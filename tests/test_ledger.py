"""Tests for balance calculation."""

import random
from datetime import date
from decimal import Decimal

from ledgerwise.domain.entities import Account, AccountKind, FlowType, OperationType, Transaction
from ledgerwise.domain.ledger import (
    balance_as_of,
    balance_series,
    current_balance,
    ordered_transactions,
    signed_amount,
    starting_balance,
)


def _txn(txn_id, account_id, day, amount, op, flow, **kwargs):
    return Transaction(
        id=txn_id,
        account_id=account_id,
        date=day,
        amount=Decimal(amount),
        operation_type=op,
        flow=flow,
        **kwargs,
    )


CHECKING = Account(id=1, name="Checking", kind=AccountKind.CHECKING)
LEGACY = Account(id=2, name="Legacy", kind=AccountKind.SAVINGS, opening_balance=Decimal("250.00"))
CARD = Account(id=3, name="Visa", kind=AccountKind.CREDIT_CARD)
ACCOUNTS = [CHECKING, LEGACY, CARD]


def test_signed_amount_normal_account():
    """Inflows add, outflows subtract on normal accounts."""
    income = _txn(1, 1, date(2024, 1, 2), "100", OperationType.INCOME, FlowType.IN)
    expense = _txn(2, 1, date(2024, 1, 3), "40", OperationType.EXPENSE, FlowType.OUT)
    transfer_in = _txn(3, 1, date(2024, 1, 3), "5", OperationType.TRANSFER, FlowType.TRANSFER_IN)
    transfer_out = _txn(4, 1, date(2024, 1, 3), "7", OperationType.TRANSFER, FlowType.TRANSFER_OUT)

    assert signed_amount(income, CHECKING) == Decimal("100")
    assert signed_amount(expense, CHECKING) == Decimal("-40")
    assert signed_amount(transfer_in, CHECKING) == Decimal("5")
    assert signed_amount(transfer_out, CHECKING) == Decimal("-7")


def test_signed_amount_credit_card_ignores_other_operations():
    """A card only moves with expenses and transfers."""
    expense = _txn(1, 3, date(2024, 1, 2), "100", OperationType.EXPENSE, FlowType.OUT)
    payment = _txn(2, 3, date(2024, 1, 5), "40", OperationType.TRANSFER, FlowType.TRANSFER_IN)
    income = _txn(3, 3, date(2024, 1, 6), "9", OperationType.INCOME, FlowType.IN)

    assert signed_amount(expense, CARD) == Decimal("-100")
    assert signed_amount(payment, CARD) == Decimal("40")
    assert signed_amount(income, CARD) == Decimal("0")


def test_credit_card_balance_after_purchase_and_payment():
    """Opening 0, expense 100, transfer 40 leaves -60."""
    txns = [
        _txn(1, 3, date(2024, 1, 2), "100", OperationType.EXPENSE, FlowType.OUT),
        _txn(2, 3, date(2024, 1, 10), "40", OperationType.TRANSFER, FlowType.TRANSFER_IN),
    ]
    assert balance_as_of(3, date(2024, 1, 5), txns, ACCOUNTS) == Decimal("-100")
    assert current_balance(3, txns, ACCOUNTS) == Decimal("-60")


def test_cutoff_is_exclusive():
    """Transactions on the cutoff date are not counted."""
    txns = [
        _txn(1, 1, date(2024, 1, 1), "1000", OperationType.OPENING_BALANCE, FlowType.IN),
        _txn(2, 1, date(2024, 1, 15), "200", OperationType.EXPENSE, FlowType.OUT),
    ]
    assert balance_as_of(1, date(2024, 1, 15), txns, ACCOUNTS) == Decimal("1000")
    assert balance_as_of(1, date(2024, 1, 16), txns, ACCOUNTS) == Decimal("800")
    assert balance_as_of(1, date(2024, 1, 1), txns, ACCOUNTS) == Decimal("0")


def test_opening_transaction_takes_precedence_over_static_field():
    """The static opening balance is ignored once an opening transaction exists."""
    assert starting_balance(LEGACY, []) == Decimal("250.00")

    txns = [_txn(1, 2, date(2024, 1, 1), "300", OperationType.OPENING_BALANCE, FlowType.IN)]
    assert starting_balance(LEGACY, txns) == Decimal("0")
    assert current_balance(2, txns, ACCOUNTS) == Decimal("300")


def test_static_opening_balance_counts_before_any_date():
    assert balance_as_of(2, date(1990, 1, 1), [], ACCOUNTS) == Decimal("250.00")


def test_unknown_account_has_zero_balance():
    assert balance_as_of(99, None, [], ACCOUNTS) == Decimal("0")


def test_other_accounts_are_ignored():
    txns = [
        _txn(1, 1, date(2024, 1, 2), "100", OperationType.INCOME, FlowType.IN),
        _txn(2, 2, date(2024, 1, 2), "999", OperationType.INCOME, FlowType.IN),
    ]
    assert current_balance(1, txns, ACCOUNTS) == Decimal("100")


def test_balance_is_independent_of_input_order():
    """The fold is deterministic for any permutation of the log."""
    txns = [
        _txn(1, 1, date(2024, 1, 1), "1000", OperationType.OPENING_BALANCE, FlowType.IN),
        _txn(2, 1, date(2024, 1, 3), "12.34", OperationType.EXPENSE, FlowType.OUT),
        _txn(3, 1, date(2024, 1, 3), "500", OperationType.INCOME, FlowType.IN),
        _txn(4, 1, date(2024, 2, 1), "75.10", OperationType.INVESTMENT_CONTRIBUTION, FlowType.OUT),
        _txn(5, 1, date(2024, 2, 9), "20", OperationType.YIELD, FlowType.IN),
    ]
    expected = current_balance(1, txns, ACCOUNTS)
    assert expected == Decimal("1432.56")

    rng = random.Random(7)
    for _ in range(10):
        shuffled = list(txns)
        rng.shuffle(shuffled)
        assert current_balance(1, shuffled, ACCOUNTS) == expected
        assert balance_as_of(1, date(2024, 2, 1), shuffled, ACCOUNTS) == Decimal("1487.66")


def test_ordered_transactions_breaks_ties_by_id():
    txns = [
        _txn(3, 1, date(2024, 1, 2), "1", OperationType.INCOME, FlowType.IN),
        _txn(1, 1, date(2024, 1, 2), "1", OperationType.INCOME, FlowType.IN),
        _txn(2, 1, date(2024, 1, 1), "1", OperationType.INCOME, FlowType.IN),
    ]
    assert [t.id for t in ordered_transactions(1, txns)] == [2, 1, 3]


def test_balance_series():
    txns = [
        _txn(1, 1, date(2024, 1, 1), "100", OperationType.OPENING_BALANCE, FlowType.IN),
        _txn(2, 1, date(2024, 2, 1), "30", OperationType.EXPENSE, FlowType.OUT),
    ]
    series = balance_series(1, [date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1)], txns, ACCOUNTS)
    assert series == [
        (date(2024, 1, 1), Decimal("0")),
        (date(2024, 2, 1), Decimal("100")),
        (date(2024, 3, 1), Decimal("70")),
    ]


def test_ledger_service_credit_card_payment(
    ledger_service, transaction_service, sample_account, credit_card
):
    """Paying a card bill is a transfer that raises the card balance."""
    transaction_service.create_transaction(
        account_id=credit_card.id,
        date=date(2024, 1, 5),
        amount=Decimal("100.00"),
        operation_type=OperationType.EXPENSE,
    )
    assert ledger_service.current_balance(credit_card.id) == Decimal("-100.00")

    transaction_service.create_transfer(
        from_account_id=sample_account.id,
        to_account_id=credit_card.id,
        date=date(2024, 1, 20),
        amount=Decimal("40.00"),
    )
    assert ledger_service.current_balance(credit_card.id) == Decimal("-60.00")
    assert ledger_service.current_balance(sample_account.id) == Decimal("960.00")


def test_ledger_service_balances_skip_hidden(ledger_service, account_service, sample_account, credit_card):
    account_service.set_hidden(credit_card.id, True)

    visible = ledger_service.balances()
    assert [acc.name for acc, _ in visible] == ["Checking"]
    assert visible[0][1] == Decimal("1000.00")

    everything = ledger_service.balances(include_hidden=True)
    assert len(everything) == 2

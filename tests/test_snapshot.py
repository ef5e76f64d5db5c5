"""Tests for snapshot export and import."""

import json
from datetime import date, datetime
from decimal import Decimal

import pytest

from ledgerwise.database.factories import create_sqlite_database
from ledgerwise.domain import errors
from ledgerwise.domain.entities import (
    Account,
    AccountKind,
    BillTrackerEntry,
    Category,
    CategoryNature,
    FlowType,
    InsuranceContract,
    Loan,
    LoanStatus,
    OperationType,
    Transaction,
)
from ledgerwise.domain.ledger import LedgerService
from ledgerwise.domain.obligations import BillTrackerService
from ledgerwise.domain.snapshot import (
    SCHEMA_VERSION,
    SECTIONS,
    SnapshotService,
    build_document,
    dumps,
    loads,
    parse_document,
    record_to_dict,
)


@pytest.fixture
def populated_db(temp_db, sample_account, credit_card, sample_categories, active_loan, insurance_service,
                 bill_service, transaction_service):
    """A store with at least one record in every section."""
    transaction_service.create_transaction(
        account_id=credit_card.id,
        date=date(2024, 1, 5),
        amount=Decimal("100.00"),
        operation_type=OperationType.EXPENSE,
        category_id=sample_categories["Groceries"],
    )
    insurance_id = insurance_service.create_contract("Car insurance", 4, Decimal("182.40"), date(2024, 3, 10))
    insurance_service.set_installment_paid(insurance_id, 2)
    bill_service.add_purchase_installments("Laptop", Decimal("100.00"), 3, date(2024, 2, 5))
    return temp_db


@pytest.fixture
def second_db(tmp_path):
    db = create_sqlite_database(database_path=str(tmp_path / "copy.db"))
    db.connect()
    db.initialize_schema()
    yield db
    db.disconnect()


def test_record_to_dict_encodes_values():
    account = Account(id=1, name="Visa", kind=AccountKind.CREDIT_CARD, opening_balance=Decimal("-1.50"),
                      opening_date=date(2024, 1, 2))
    assert record_to_dict(account) == {
        "id": 1,
        "name": "Visa",
        "kind": "credit_card",
        "opening_balance": "-1.50",
        "opening_date": "2024-01-02",
        "hidden": False,
        "created_at": None,
    }


def test_document_shape(populated_db):
    document = SnapshotService(populated_db).export_document()

    assert document["schema_version"] == SCHEMA_VERSION
    assert set(document["data"]) == set(SECTIONS)
    for section in SECTIONS:
        assert document["data"][section], section
        ids = [record["id"] for record in document["data"][section]]
        assert ids == sorted(ids)
    assert document["data"]["insurances"][0]["paid_installments"] == [2]


def test_export_is_deterministic(populated_db):
    service = SnapshotService(populated_db)
    assert service.export_json() == service.export_json()


def test_round_trip_reproduces_store(populated_db, second_db):
    text = SnapshotService(populated_db).export_json()

    counts = SnapshotService(second_db).import_json(text)

    assert counts["bills"] == 3
    assert SnapshotService(second_db).export_json() == text
    assert LedgerService(second_db).balances() == LedgerService(populated_db).balances()
    march = date(2024, 3, 1)
    assert BillTrackerService(second_db).potential_bills(march) == BillTrackerService(
        populated_db
    ).potential_bills(march)


def test_import_replaces_existing_data(populated_db, second_db):
    empty = dumps(build_document())
    SnapshotService(second_db).import_json(empty)
    assert second_db.list_accounts() == []

    SnapshotService(populated_db).import_json(empty)
    assert populated_db.list_accounts() == []
    assert populated_db.list_transactions() == []


def test_parse_document_rejects_bad_input():
    with pytest.raises(errors.ValidationError, match="'data'"):
        parse_document([])
    with pytest.raises(errors.ValidationError, match="schema version"):
        parse_document({"schema_version": "0.1", "data": {}})
    with pytest.raises(errors.ValidationError, match="must be a list"):
        parse_document({"schema_version": SCHEMA_VERSION, "data": {"accounts": {}}})
    with pytest.raises(errors.ValidationError, match="accounts"):
        parse_document({"schema_version": SCHEMA_VERSION, "data": {"accounts": [{"id": 1}]}})
    with pytest.raises(errors.ValidationError, match="Invalid amount"):
        parse_document(
            {
                "schema_version": SCHEMA_VERSION,
                "data": {"accounts": [{"id": 1, "name": "A", "kind": "checking", "opening_balance": "x"}]},
            }
        )


def test_loads_rejects_invalid_json():
    with pytest.raises(errors.ValidationError, match="not valid JSON"):
        loads("{nope")


def test_import_rejects_dangling_references(second_db):
    document = build_document()
    document["data"]["transactions"] = [
        {
            "id": 1,
            "account_id": 5,
            "date": "2024-01-01",
            "amount": "10.00",
            "operation_type": "income",
            "flow": "in",
        }
    ]

    with pytest.raises(errors.ValidationError, match="unknown account"):
        SnapshotService(second_db).import_document(json.loads(json.dumps(document)))


CREATED = datetime(2024, 1, 1, 9, 30)


def _document(**sections):
    return json.loads(dumps(build_document(**sections)))


def _valid_document():
    return _document(
        accounts=[Account(id=1, name="Checking", kind=AccountKind.CHECKING, created_at=CREATED)],
        categories=[
            Category(id=1, name="Rent", nature=CategoryNature.FIXED_EXPENSE, typical_amount=Decimal("1800.00"),
                     created_at=CREATED)
        ],
        transactions=[
            Transaction(id=1, account_id=1, date=date(2024, 1, 5), amount=Decimal("100.00"),
                        operation_type=OperationType.EXPENSE, flow=FlowType.OUT, category_id=1, created_at=CREATED)
        ],
        loans=[
            Loan(id=1, contract="CDC-001", principal=Decimal("10000.00"), status=LoanStatus.ACTIVE,
                 installment_amount=Decimal("945.60"), monthly_rate=Decimal("0.02"), term_months=12,
                 start_date=date(2024, 1, 15), account_id=1, created_at=CREATED)
        ],
        insurances=[
            InsuranceContract(id=1, description="Car insurance", installment_count=4,
                              installment_amount=Decimal("182.40"), start_date=date(2024, 3, 10), created_at=CREATED)
        ],
        bills=[
            BillTrackerEntry(id=1, description="IPTU", due_date=date(2024, 3, 10), expected_amount=Decimal("312.00"),
                             transaction_id=1, suggested_account_id=1, suggested_category_id=1, created_at=CREATED)
        ],
    )


def test_import_normalises_decimals_to_stored_scale(second_db):
    document = _document(
        accounts=[
            Account(id=1, name="Legacy", kind=AccountKind.CHECKING, opening_balance=Decimal("100"),
                    opening_date=date(2024, 1, 1), created_at=CREATED)
        ],
        loans=[
            Loan(id=1, contract="CDC-001", principal=Decimal("10000"), status=LoanStatus.ACTIVE,
                 installment_amount=Decimal("945.6"), monthly_rate=Decimal("0.02"), term_months=12,
                 start_date=date(2024, 1, 15), account_id=1, created_at=CREATED)
        ],
    )
    service = SnapshotService(second_db)

    service.import_document(document)
    exported = service.export_document()

    assert exported["data"]["accounts"][0]["opening_balance"] == "100.00"
    loan = exported["data"]["loans"][0]
    assert (loan["principal"], loan["installment_amount"], loan["monthly_rate"]) == (
        "10000.00",
        "945.60",
        "0.02000000",
    )
    assert exported["data"]["accounts"][0]["created_at"] == "2024-01-01T09:30:00"

    service.import_document(exported)
    assert service.export_document() == exported


def test_import_stamps_missing_created_at(second_db):
    document = _document(accounts=[Account(id=1, name="Checking", kind=AccountKind.CHECKING)])
    assert document["data"]["accounts"][0]["created_at"] is None

    SnapshotService(second_db).import_document(document)

    assert SnapshotService(second_db).export_document()["data"]["accounts"][0]["created_at"] is not None


@pytest.mark.parametrize("amount", ["100.005", "0.004", "NaN", "Infinity"])
def test_import_rejects_amounts_that_lose_digits(second_db, amount):
    document = _valid_document()
    document["data"]["transactions"][0]["amount"] = amount

    with pytest.raises(errors.ValidationError, match="Invalid amount"):
        SnapshotService(second_db).import_document(document)
    assert second_db.list_transactions() == []


def test_import_rejects_rate_beyond_stored_precision():
    document = _valid_document()
    document["data"]["loans"][0]["monthly_rate"] = "0.0123456789"

    with pytest.raises(errors.ValidationError, match="Invalid amount"):
        parse_document(document)


def test_valid_document_imports(second_db):
    counts = SnapshotService(second_db).import_document(_valid_document())
    assert counts == {section: 1 for section in SECTIONS}


@pytest.mark.parametrize(
    "section, field, value, message",
    [
        ("loans", "account_id", 42, "unknown account 42"),
        ("loans", "principal", "-5", "principal"),
        ("loans", "monthly_rate", "-0.5", "monthly rate"),
        ("loans", "installment_amount", "0", "installment amount"),
        ("loans", "paid_installments", 13, "paid installments"),
        ("insurances", "installment_count", 0, "installment count"),
        ("insurances", "paid_installments", [5], "paid installment"),
        ("transactions", "loan_id", 9, "unknown loan 9"),
        ("transactions", "insurance_id", 9, "unknown insurance contract 9"),
        ("transactions", "investment_account_id", 9, "unknown account 9"),
        ("transactions", "flow", "in", "not valid for operation"),
        ("bills", "transaction_id", 77, "unknown transaction 77"),
        ("bills", "suggested_account_id", 8, "unknown account 8"),
        ("bills", "suggested_category_id", 8, "unknown category 8"),
        ("bills", "expected_amount", "-1.00", "expected amount"),
        ("categories", "typical_amount", "-1.00", "typical amount"),
    ],
)
def test_import_validates_every_section(second_db, section, field, value, message):
    document = _valid_document()
    document["data"][section][0][field] = value

    with pytest.raises(errors.ValidationError, match=message):
        SnapshotService(second_db).import_document(document)
    assert second_db.list_accounts() == []
    assert second_db.list_loans() == []


def test_import_rejects_duplicate_ids_and_names(second_db):
    document = _valid_document()
    document["data"]["accounts"].append(dict(document["data"]["accounts"][0], id=2))
    with pytest.raises(errors.ValidationError, match="Duplicate name 'Checking'"):
        SnapshotService(second_db).import_document(document)

    document = _valid_document()
    document["data"]["bills"].append(dict(document["data"]["bills"][0]))
    with pytest.raises(errors.ValidationError, match="Duplicate ID '1'"):
        SnapshotService(second_db).import_document(document)

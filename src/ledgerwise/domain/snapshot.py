"""Export and import of the whole store as one JSON document.

The document holds persisted records only. Balances, schedules and
potential bills are derived again after loading. Output is deterministic:
records are ordered by ID, keys are sorted, decimals are written as strings
and dates in ISO-8601, so exporting a freshly loaded document reproduces it.

Imported amounts are normalised to the stored scale (cents, and eight
places for rates); values that would lose digits are rejected. A record
without ``created_at`` is stamped with the import time.
"""

import json
from dataclasses import fields
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Optional

from ledgerwise.database.base import Database
from ledgerwise.domain import errors
from ledgerwise.domain.entities import (
    Account,
    AccountKind,
    BillSourceType,
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
from ledgerwise.domain.transaction import validate_flow
from ledgerwise.log import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = "1.0"

SECTIONS = ("accounts", "categories", "transactions", "loans", "insurances", "bills")


def _encode(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, frozenset):
        return sorted(value)
    return value


def record_to_dict(record: Any) -> dict[str, Any]:
    """Convert an entity to a JSON-ready dict."""
    return {f.name: _encode(getattr(record, f.name)) for f in fields(record)}


def _decimal(value: Any, step: Decimal) -> Optional[Decimal]:
    """Parse a stored decimal, normalised to the column's scale."""
    if value is None:
        return None
    try:
        number = Decimal(str(value))
        exact = number.is_finite() and number == number.quantize(step)
    except InvalidOperation:
        raise errors.ValidationError(f"Invalid amount '{value}' in snapshot")
    if not exact:
        raise errors.ValidationError(f"Invalid amount '{value}' in snapshot: too many decimal places")
    return number.quantize(step)


def _money(value: Any) -> Optional[Decimal]:
    return _decimal(value, errors.CENT)


def _rate(value: Any) -> Optional[Decimal]:
    return _decimal(value, errors.RATE_STEP)


def _date(value: Any) -> Optional[date]:
    return None if value is None else date.fromisoformat(value)


def _datetime(value: Any) -> Optional[datetime]:
    return None if value is None else datetime.fromisoformat(value)


def _account(raw: dict[str, Any]) -> Account:
    return Account(
        id=raw["id"],
        name=raw["name"],
        kind=AccountKind(raw["kind"]),
        opening_balance=_money(raw.get("opening_balance", "0")),
        opening_date=_date(raw.get("opening_date")),
        hidden=raw.get("hidden", False),
        created_at=_datetime(raw.get("created_at")),
    )


def _category(raw: dict[str, Any]) -> Category:
    return Category(
        id=raw["id"],
        name=raw["name"],
        nature=CategoryNature(raw["nature"]),
        typical_amount=_money(raw.get("typical_amount")),
        created_at=_datetime(raw.get("created_at")),
    )


def _transaction(raw: dict[str, Any]) -> Transaction:
    return Transaction(
        id=raw["id"],
        account_id=raw["account_id"],
        date=_date(raw["date"]),
        amount=_money(raw["amount"]),
        operation_type=OperationType(raw["operation_type"]),
        flow=FlowType(raw["flow"]),
        description=raw.get("description"),
        category_id=raw.get("category_id"),
        loan_id=raw.get("loan_id"),
        installment_number=raw.get("installment_number"),
        insurance_id=raw.get("insurance_id"),
        investment_account_id=raw.get("investment_account_id"),
        transfer_group_id=raw.get("transfer_group_id"),
        created_at=_datetime(raw.get("created_at")),
    )


def _loan(raw: dict[str, Any]) -> Loan:
    return Loan(
        id=raw["id"],
        contract=raw["contract"],
        principal=_money(raw["principal"]),
        status=LoanStatus(raw.get("status", LoanStatus.PENDING_CONFIGURATION.value)),
        installment_amount=_money(raw.get("installment_amount")),
        monthly_rate=_rate(raw.get("monthly_rate")),
        term_months=raw.get("term_months", 0),
        start_date=_date(raw.get("start_date")),
        paid_installments=raw.get("paid_installments", 0),
        account_id=raw.get("account_id"),
        created_at=_datetime(raw.get("created_at")),
    )


def _insurance(raw: dict[str, Any]) -> InsuranceContract:
    return InsuranceContract(
        id=raw["id"],
        description=raw["description"],
        installment_count=raw["installment_count"],
        installment_amount=_money(raw["installment_amount"]),
        start_date=_date(raw["start_date"]),
        paid_installments=frozenset(raw.get("paid_installments", [])),
        active=raw.get("active", True),
        created_at=_datetime(raw.get("created_at")),
    )


def _bill(raw: dict[str, Any]) -> BillTrackerEntry:
    return BillTrackerEntry(
        id=raw["id"],
        description=raw["description"],
        due_date=_date(raw["due_date"]),
        expected_amount=_money(raw["expected_amount"]),
        source_type=BillSourceType(raw.get("source_type", BillSourceType.AD_HOC.value)),
        source_ref=raw.get("source_ref"),
        installment_number=raw.get("installment_number"),
        is_paid=raw.get("is_paid", False),
        payment_date=_date(raw.get("payment_date")),
        transaction_id=raw.get("transaction_id"),
        suggested_account_id=raw.get("suggested_account_id"),
        suggested_category_id=raw.get("suggested_category_id"),
        is_excluded=raw.get("is_excluded", False),
        created_at=_datetime(raw.get("created_at")),
    )


DECODERS: dict[str, Callable[[dict[str, Any]], Any]] = {
    "accounts": _account,
    "categories": _category,
    "transactions": _transaction,
    "loans": _loan,
    "insurances": _insurance,
    "bills": _bill,
}


def build_document(**records: list[Any]) -> dict[str, Any]:
    """Assemble a snapshot document from entity lists keyed by section."""
    data = {
        section: [record_to_dict(r) for r in sorted(records.get(section, []), key=lambda r: r.id)]
        for section in SECTIONS
    }
    return {"schema_version": SCHEMA_VERSION, "data": data}


def parse_document(document: Any) -> dict[str, list[Any]]:
    """Decode a snapshot document into entity lists keyed by section.

    Raises:
        ValidationError: If the document is malformed or of another schema version
    """
    if not isinstance(document, dict) or not isinstance(document.get("data"), dict):
        raise errors.ValidationError("Snapshot must be an object with a 'data' section")
    version = document.get("schema_version")
    if version != SCHEMA_VERSION:
        raise errors.ValidationError(f"Unsupported snapshot schema version '{version}'")

    parsed = {}
    for section in SECTIONS:
        raw_records = document["data"].get(section, [])
        if not isinstance(raw_records, list):
            raise errors.ValidationError(f"Snapshot section '{section}' must be a list")
        try:
            parsed[section] = [DECODERS[section](raw) for raw in raw_records]
        except errors.DomainError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise errors.ValidationError(f"Invalid record in snapshot section '{section}': {e}")
    return parsed


def dumps(document: dict[str, Any]) -> str:
    """Serialize a document deterministically."""
    return json.dumps(document, sort_keys=True, indent=2, ensure_ascii=False) + "\n"


def loads(text: str) -> dict[str, list[Any]]:
    """Parse and decode a serialized document.

    Raises:
        ValidationError: If the text is not valid JSON or not a valid snapshot
    """
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise errors.ValidationError(f"Snapshot is not valid JSON: {e}")
    return parse_document(document)


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise errors.ValidationError(message)


def _require_known(owner: str, field: str, value: Optional[int], known: set[int]) -> None:
    if value is not None and value not in known:
        raise errors.ValidationError(f"{owner} refers to unknown {field} {value}")


def _unique(section: str, values: list[Any], what: str = "ID") -> None:
    seen = set()
    for value in values:
        if value in seen:
            raise errors.ValidationError(f"Duplicate {what} '{value}' in snapshot section '{section}'")
        seen.add(value)


def check_records(parsed: dict[str, list[Any]]) -> None:
    """Apply the rules the services enforce to decoded snapshot records.

    Raises:
        ValidationError: On duplicate IDs or names, out-of-range values, a flow
            that contradicts its operation, or a reference to a missing record
    """
    for section in SECTIONS:
        _unique(section, [r.id for r in parsed[section]])
    _unique("accounts", [a.name for a in parsed["accounts"]], "name")
    _unique("categories", [c.name for c in parsed["categories"]], "name")

    account_ids = {a.id for a in parsed["accounts"]}
    category_ids = {c.id for c in parsed["categories"]}
    loan_ids = {loan.id for loan in parsed["loans"]}
    insurance_ids = {i.id for i in parsed["insurances"]}
    transaction_ids = {t.id for t in parsed["transactions"]}

    for category in parsed["categories"]:
        _require(
            category.typical_amount is None or category.typical_amount >= 0,
            f"Category {category.id}: typical amount must not be negative",
        )

    for loan in parsed["loans"]:
        owner = f"Loan {loan.id}"
        _require(loan.principal > 0, f"{owner}: principal must be greater than zero")
        _require(
            loan.monthly_rate is None or loan.monthly_rate >= 0,
            f"{owner}: monthly rate must not be negative",
        )
        _require(
            loan.installment_amount is None or loan.installment_amount > 0,
            f"{owner}: installment amount must be greater than zero",
        )
        _require(loan.term_months >= 0, f"{owner}: term must not be negative")
        _require(
            0 <= loan.paid_installments and (loan.term_months == 0 or loan.paid_installments <= loan.term_months),
            f"{owner}: paid installments out of range",
        )
        _require_known(owner, "account", loan.account_id, account_ids)

    for contract in parsed["insurances"]:
        owner = f"Insurance contract {contract.id}"
        _require(contract.installment_count > 0, f"{owner}: installment count must be at least one")
        _require(contract.installment_amount > 0, f"{owner}: installment amount must be greater than zero")
        _require(
            all(1 <= n <= contract.installment_count for n in contract.paid_installments),
            f"{owner}: paid installment out of range",
        )

    for txn in parsed["transactions"]:
        owner = f"Transaction {txn.id}"
        _require(txn.amount > 0, f"{owner}: amount must be greater than zero")
        validate_flow(txn.operation_type, txn.flow)
        if txn.account_id not in account_ids:
            raise errors.ValidationError(f"{owner} refers to unknown account {txn.account_id}")
        _require_known(owner, "category", txn.category_id, category_ids)
        _require_known(owner, "loan", txn.loan_id, loan_ids)
        _require_known(owner, "insurance contract", txn.insurance_id, insurance_ids)
        _require_known(owner, "account", txn.investment_account_id, account_ids)

    for bill in parsed["bills"]:
        owner = f"Bill {bill.id}"
        _require(bill.expected_amount >= 0, f"{owner}: expected amount must not be negative")
        _require_known(owner, "transaction", bill.transaction_id, transaction_ids)
        _require_known(owner, "account", bill.suggested_account_id, account_ids)
        _require_known(owner, "category", bill.suggested_category_id, category_ids)


class SnapshotService:
    """Service exporting and importing the store."""

    def __init__(self, db: Database):
        """Initialize snapshot service.

        Args:
            db: Database instance
        """
        self.db = db

    def export_document(self) -> dict[str, Any]:
        """Build the snapshot document of everything stored."""
        return build_document(
            accounts=self.db.list_accounts(),
            categories=self.db.list_categories(),
            transactions=self.db.list_transactions(),
            loans=self.db.list_loans(),
            insurances=self.db.list_insurances(),
            bills=self.db.list_bills(),
        )

    def export_json(self) -> str:
        """Serialized snapshot of everything stored."""
        return dumps(self.export_document())

    def import_document(self, document: Any) -> dict[str, int]:
        """Replace everything stored with a snapshot document.

        Returns:
            Number of records loaded per section

        Raises:
            ValidationError: If the document is invalid
        """
        return self._load(parse_document(document))

    def import_json(self, text: str) -> dict[str, int]:
        """Replace everything stored with a serialized snapshot."""
        return self._load(loads(text))

    def _load(self, parsed: dict[str, list[Any]]) -> dict[str, int]:
        check_records(parsed)
        self.db.load_snapshot(
            accounts=parsed["accounts"],
            categories=parsed["categories"],
            transactions=parsed["transactions"],
            loans=parsed["loans"],
            insurances=parsed["insurances"],
            bills=parsed["bills"],
        )
        counts = {section: len(records) for section, records in parsed.items()}
        logger.info("snapshot.imported", **counts)
        return counts

"""Domain model entities for ledgerwise.

These are pure data classes representing business concepts, independent of
database schema. Derived values (balances, schedules, potential bills) are
built from them by the engine modules and are never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class AccountKind(str, Enum):
    """Kind of account. Determines the sign convention of the ledger."""

    CHECKING = "checking"
    SAVINGS = "savings"
    EMERGENCY_RESERVE = "emergency_reserve"
    FIXED_INCOME = "fixed_income"
    CRYPTO = "crypto"
    FINANCIAL_GOAL = "financial_goal"
    CREDIT_CARD = "credit_card"
    INTERNAL_OFFSET = "internal_offset"


class OperationType(str, Enum):
    """Business operation recorded by a transaction."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"
    INVESTMENT_CONTRIBUTION = "investment_contribution"
    INVESTMENT_WITHDRAWAL = "investment_withdrawal"
    LOAN_PAYMENT = "loan_payment"
    LOAN_DISBURSEMENT = "loan_disbursement"
    VEHICLE_PURCHASE = "vehicle_purchase"
    VEHICLE_SALE = "vehicle_sale"
    YIELD = "yield"
    OPENING_BALANCE = "opening_balance"


class FlowType(str, Enum):
    """Direction of money relative to the transaction's account."""

    IN = "in"
    OUT = "out"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"


class LoanStatus(str, Enum):
    PENDING_CONFIGURATION = "pending_configuration"
    ACTIVE = "active"
    SETTLED = "settled"


class CategoryNature(str, Enum):
    """Accounting nature of a category. Fixed expenses recur monthly."""

    INCOME = "income"
    FIXED_EXPENSE = "fixed_expense"
    VARIABLE_EXPENSE = "variable_expense"
    INVESTMENT = "investment"
    FINANCING = "financing"
    TRANSFER = "transfer"


class BillSourceType(str, Enum):
    """Origin of a bill, projected or user-entered."""

    LOAN_INSTALLMENT = "loan_installment"
    INSURANCE_INSTALLMENT = "insurance_installment"
    FIXED_EXPENSE = "fixed_expense"
    AD_HOC = "ad_hoc"
    PURCHASE_INSTALLMENT = "purchase_installment"


class ReconciliationStatus(str, Enum):
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


# Sources the projector generates bills for
PROJECTED_SOURCES = (
    BillSourceType.LOAN_INSTALLMENT,
    BillSourceType.INSURANCE_INSTALLMENT,
    BillSourceType.FIXED_EXPENSE,
)

BillKey = tuple[BillSourceType, str, Optional[int]]


@dataclass(frozen=True)
class Account:
    """Account domain entity.

    ``opening_balance`` is the legacy static opening value. New accounts carry
    their opening value as an ``opening_balance`` transaction instead, and the
    ledger ignores the static field whenever such a transaction exists.
    """

    id: int
    name: str
    kind: AccountKind
    opening_balance: Decimal = Decimal("0")
    opening_date: Optional[date] = None
    hidden: bool = False
    created_at: Optional[datetime] = None

    @property
    def is_credit_card(self) -> bool:
        return self.kind == AccountKind.CREDIT_CARD


@dataclass(frozen=True)
class Category:
    """Transaction category."""

    id: int
    name: str
    nature: CategoryNature
    typical_amount: Optional[Decimal] = None
    created_at: Optional[datetime] = None

    @property
    def is_fixed(self) -> bool:
        return self.nature == CategoryNature.FIXED_EXPENSE


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity.

    Amounts are non-negative magnitudes; the sign is derived from the
    operation type, the flow and the account kind.
    """

    id: Optional[int]
    account_id: int
    date: date
    amount: Decimal
    operation_type: OperationType
    flow: FlowType
    description: Optional[str] = None
    category_id: Optional[int] = None
    loan_id: Optional[int] = None
    installment_number: Optional[int] = None
    insurance_id: Optional[int] = None
    investment_account_id: Optional[int] = None
    transfer_group_id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class TransactionRevision:
    """Earlier version of a transaction that has since been replaced."""

    id: int
    transaction_id: int
    revised_at: datetime
    previous: Transaction


@dataclass(frozen=True)
class Loan:
    """Fixed-rate loan contract.

    ``monthly_rate`` is a decimal fraction (0.02 for 2% a month).
    ``paid_installments`` is the authoritative count of paid installments.
    """

    id: int
    contract: str
    principal: Decimal
    status: LoanStatus = LoanStatus.PENDING_CONFIGURATION
    installment_amount: Optional[Decimal] = None
    monthly_rate: Optional[Decimal] = None
    term_months: int = 0
    start_date: Optional[date] = None
    paid_installments: int = 0
    account_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_configured(self) -> bool:
        return (
            self.term_months > 0
            and self.start_date is not None
            and self.installment_amount is not None
            and self.monthly_rate is not None
        )


@dataclass(frozen=True)
class InsuranceContract:
    """Insurance contract paid in fixed monthly installments."""

    id: int
    description: str
    installment_count: int
    installment_amount: Decimal
    start_date: date
    paid_installments: frozenset[int] = field(default_factory=frozenset)
    active: bool = True
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class BillTrackerEntry:
    """User-controlled bill for one month.

    Either an ad-hoc bill or an override of a projected bill, matched by
    ``(source_type, source_ref, installment_number)``.
    """

    id: int
    description: str
    due_date: date
    expected_amount: Decimal
    source_type: BillSourceType = BillSourceType.AD_HOC
    source_ref: Optional[str] = None
    installment_number: Optional[int] = None
    is_paid: bool = False
    payment_date: Optional[date] = None
    transaction_id: Optional[int] = None
    suggested_account_id: Optional[int] = None
    suggested_category_id: Optional[int] = None
    is_excluded: bool = False
    created_at: Optional[datetime] = None

    @property
    def key(self) -> BillKey:
        return (self.source_type, self.source_ref or "", self.installment_number)


@dataclass(frozen=True)
class PotentialBill:
    """Projected obligation for one month. Never persisted."""

    source_type: BillSourceType
    source_ref: str
    installment_number: Optional[int]
    due_date: date
    expected_amount: Decimal
    description: str
    is_paid: bool = False
    is_included: bool = False

    @property
    def key(self) -> BillKey:
        return (self.source_type, self.source_ref, self.installment_number)


@dataclass(frozen=True)
class AmortizationItem:
    """One row of a PRICE amortization schedule."""

    installment_number: int
    due_date: date
    installment: Decimal
    interest: Decimal
    amortization: Decimal
    remaining_balance: Decimal


@dataclass(frozen=True)
class LoanSummary:
    """Aggregated figures for a loan, derived from its schedule."""

    loan_id: int
    paid_installments: int
    remaining_installments: int
    outstanding_balance: Decimal
    total_cost: Decimal
    total_interest: Decimal
    interest_paid: Decimal
    interest_remaining: Decimal
    percent_settled: Decimal
    next_due_date: Optional[date]


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of comparing a stated statement balance with the ledger."""

    account_id: int
    opening_balance: Decimal
    income: Decimal
    expense: Decimal
    transfer_in: Decimal
    transfer_out: Decimal
    withdrawals: Decimal
    contributions: Decimal
    calculated_closing: Decimal
    stated_closing: Optional[Decimal]
    divergence: Decimal
    status: ReconciliationStatus

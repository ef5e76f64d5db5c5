"""SQLAlchemy models for the ledgerwise database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class Account(Base):
    """Account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    kind = Column(String, nullable=False)
    opening_balance = Column(Numeric(14, 2), default=0, nullable=False)
    opening_date = Column(Date, nullable=True)
    hidden = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    transactions = relationship(
        "Transaction",
        back_populates="account",
        foreign_keys="Transaction.account_id",
    )


class Category(Base):
    """Category model."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    nature = Column(String, nullable=False)
    typical_amount = Column(Numeric(14, 2), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="category")


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    operation_type = Column(String, nullable=False)
    flow = Column(String, nullable=False)
    description = Column(String, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    loan_id = Column(Integer, ForeignKey("loans.id"), nullable=True)
    installment_number = Column(Integer, nullable=True)
    insurance_id = Column(Integer, ForeignKey("insurance_contracts.id"), nullable=True)
    investment_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    transfer_group_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="transactions", foreign_keys=[account_id])
    category = relationship("Category", back_populates="transactions")


class TransactionRevision(Base):
    """Prior version of a transaction, stored when the transaction is replaced."""

    __tablename__ = "transaction_revisions"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False, index=True)
    revised_at = Column(DateTime, default=utcnow, nullable=False)
    account_id = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    operation_type = Column(String, nullable=False)
    flow = Column(String, nullable=False)
    description = Column(String, nullable=True)
    category_id = Column(Integer, nullable=True)
    loan_id = Column(Integer, nullable=True)
    installment_number = Column(Integer, nullable=True)
    insurance_id = Column(Integer, nullable=True)
    investment_account_id = Column(Integer, nullable=True)
    transfer_group_id = Column(String, nullable=True)


class Loan(Base):
    """Loan contract model."""

    __tablename__ = "loans"

    id = Column(Integer, primary_key=True)
    contract = Column(String, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    principal = Column(Numeric(14, 2), nullable=False)
    installment_amount = Column(Numeric(14, 2), nullable=True)
    monthly_rate = Column(Numeric(12, 8), nullable=True)
    term_months = Column(Integer, default=0, nullable=False)
    start_date = Column(Date, nullable=True)
    status = Column(String, nullable=False)
    paid_installments = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class InsuranceContract(Base):
    """Insurance contract model."""

    __tablename__ = "insurance_contracts"

    id = Column(Integer, primary_key=True)
    description = Column(String, nullable=False)
    installment_count = Column(Integer, nullable=False)
    installment_amount = Column(Numeric(14, 2), nullable=False)
    start_date = Column(Date, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    payments = relationship(
        "InsurancePayment", back_populates="contract", cascade="all, delete-orphan"
    )


class InsurancePayment(Base):
    """Paid installment of an insurance contract."""

    __tablename__ = "insurance_payments"

    id = Column(Integer, primary_key=True)
    insurance_id = Column(Integer, ForeignKey("insurance_contracts.id"), nullable=False)
    installment_number = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("insurance_id", "installment_number", name="uq_insurance_installment"),
    )

    # Relationships
    contract = relationship("InsuranceContract", back_populates="payments")


class BillTrackerEntry(Base):
    """Bill tracker override model."""

    __tablename__ = "bill_tracker"

    id = Column(Integer, primary_key=True)
    description = Column(String, nullable=False)
    due_date = Column(Date, nullable=False)
    expected_amount = Column(Numeric(14, 2), nullable=False)
    source_type = Column(String, nullable=False)
    source_ref = Column(String, nullable=True)
    installment_number = Column(Integer, nullable=True)
    is_paid = Column(Boolean, default=False, nullable=False)
    payment_date = Column(Date, nullable=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)
    suggested_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    suggested_category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    is_excluded = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)

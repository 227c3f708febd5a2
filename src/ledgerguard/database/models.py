"""SQLAlchemy models for the ledgerguard store.

References between records (entry to account, entry to funding source,
account to parent) are plain string columns without foreign keys: the
ledger originates from a document store that never enforced them, and the
integrity engine has to be able to see dangling references.
"""

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
    JSON,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Account(Base):
    """Ledger account model."""

    __tablename__ = "accounts"

    id = Column(String, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    organization_id = Column(String, nullable=True, index=True)
    code = Column(String, nullable=True)
    name = Column(String, nullable=True)
    account_type = Column(String, nullable=True)
    normal_balance = Column(String, nullable=True)
    balance = Column(Numeric(14, 2), nullable=True)
    initial_balance = Column(Numeric(14, 2), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    parent_id = Column(String, nullable=True)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class TransactionGroup(Base):
    """Transaction group model.

    ``embedded_entries`` holds the entries inline as JSON for groups stored
    in the embedded shape; standalone groups keep their entries as rows of
    the ``entries`` table instead.
    """

    __tablename__ = "transaction_groups"

    id = Column(String, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    organization_id = Column(String, nullable=True, index=True)
    group_number = Column(String, nullable=True)
    transaction_date = Column(Date, nullable=True)
    status = Column(String, nullable=True)
    total_amount = Column(Numeric(14, 2), nullable=True)
    description = Column(String, nullable=True)
    funding_type = Column(String, nullable=True)
    linked_transaction_ids = Column(JSON, nullable=True)
    embedded_entries = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    entries = relationship(
        "Entry",
        back_populates="transaction_group",
        cascade="all, delete-orphan",
        order_by="Entry.sequence",
    )


class Entry(Base):
    """Standalone entry model."""

    __tablename__ = "entries"

    id = Column(String, primary_key=True)
    transaction_group_id = Column(String, ForeignKey("transaction_groups.id"), nullable=False)
    account_id = Column(String, nullable=True)
    debit_amount = Column(Numeric(14, 2), default=0, nullable=False)
    credit_amount = Column(Numeric(14, 2), default=0, nullable=False)
    sequence = Column(Integer, default=0, nullable=False)
    description = Column(String, nullable=True)
    source_transaction_id = Column(String, nullable=True)
    funding_path = Column(JSON, nullable=True)

    # Relationships
    transaction_group = relationship("TransactionGroup", back_populates="entries")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)

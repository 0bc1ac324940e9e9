"""SQLAlchemy models for spendtrack database."""

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
    Index,
    create_engine,
    event,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Source(Base):
    """Import channel (bank account, credit card, manual entry)."""

    __tablename__ = "sources"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    type = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="source")


class Unit(Base):
    """Organizational unit model."""

    __tablename__ = "units"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    color = Column(String, nullable=False)
    icon = Column(String, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class Category(Base):
    """Category model with hierarchical structure."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    color = Column(String, nullable=False)
    icon = Column(String, nullable=True)
    monthly_budget = Column(Numeric(12, 2), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    parent = relationship("Category", remote_side=[id], backref="children")
    transactions = relationship("Transaction", back_populates="category")


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    source_id = Column(Integer, ForeignKey("sources.id"), nullable=False)
    unit_id = Column(Integer, ForeignKey("units.id"), nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    source_category = Column(String, nullable=True)
    fingerprint = Column(String(16), nullable=True)
    ignore = Column(Boolean, default=False, nullable=False)
    notes = Column(String, nullable=True)
    # Comma-separated normalized tags
    tags = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Not unique: an explicit override may import a second copy
    __table_args__ = (Index("ix_transactions_fingerprint", "fingerprint"),)

    # Relationships
    source = relationship("Source", back_populates="transactions")
    category = relationship("Category", back_populates="transactions")


class UnitRule(Base):
    """Rule assigning a unit by source or description."""

    __tablename__ = "unit_rules"

    id = Column(Integer, primary_key=True)
    rule_type = Column(String, nullable=False)
    match_type = Column(String, nullable=False)
    pattern = Column(String, nullable=False)
    unit_id = Column(Integer, ForeignKey("units.id"), nullable=False)
    priority = Column(Integer, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class CategoryRule(Base):
    """Rule assigning a category by source category label or description."""

    __tablename__ = "category_rules"

    id = Column(Integer, primary_key=True)
    rule_type = Column(String, nullable=False)
    match_type = Column(String, nullable=False)
    pattern = Column(String, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    priority = Column(Integer, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class ImportLog(Base):
    """Outcome of one committed import."""

    __tablename__ = "import_log"

    id = Column(Integer, primary_key=True)
    source_id = Column(Integer, ForeignKey("sources.id"), nullable=False)
    import_date = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    file_name = Column(String, nullable=True)
    transactions_added = Column(Integer, default=0, nullable=False)
    transactions_skipped = Column(Integer, default=0, nullable=False)
    status = Column(String, nullable=False)
    error_message = Column(String, nullable=True)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    if engine.dialect.name == "sqlite":
        # SQLite ignores foreign keys unless enabled per connection
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)

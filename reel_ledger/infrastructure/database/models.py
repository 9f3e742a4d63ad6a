"""SQLAlchemy ORM models for budget aggregates"""

from sqlalchemy import Column, String, BigInteger, DateTime, Date, Integer, ForeignKey, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class BudgetRecord(Base):
    """Budget header row; version guards concurrent writers"""

    __tablename__ = "budget"

    id = Column(String(64), primary_key=True)
    total_budget_cents = Column(BigInteger, nullable=False)
    allocated_budget_cents = Column(BigInteger, nullable=False)
    remaining_budget_cents = Column(BigInteger, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    last_updated = Column(DateTime(timezone=True), nullable=False)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    categories = relationship(
        "CategoryRecord",
        back_populates="budget",
        cascade="all, delete-orphan",
        order_by="CategoryRecord.position",
    )
    expenses = relationship(
        "ExpenseRecord",
        back_populates="budget",
        cascade="all, delete-orphan",
        order_by="ExpenseRecord.position",
    )


class CategoryRecord(Base):
    """Budget category; position keeps insertion order"""

    __tablename__ = "budget_category"

    budget_id = Column(String(64), ForeignKey("budget.id", ondelete="CASCADE"), primary_key=True)
    id = Column(String(64), primary_key=True)
    position = Column(Integer, nullable=False)
    name = Column(Text, nullable=False)
    allocation_cents = Column(BigInteger, nullable=False)
    spent_cents = Column(BigInteger, nullable=False)
    remaining_cents = Column(BigInteger, nullable=False)
    notes = Column(Text, nullable=False, default="")

    budget = relationship("BudgetRecord", back_populates="categories")


class ExpenseRecord(Base):
    """Expense charged to a category of the same budget"""

    __tablename__ = "budget_expense"

    budget_id = Column(String(64), ForeignKey("budget.id", ondelete="CASCADE"), primary_key=True)
    id = Column(String(64), primary_key=True)
    position = Column(Integer, nullable=False)
    category_id = Column(String(64), nullable=False, index=True)
    description = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    date = Column(Date, nullable=False)
    status = Column(Text, nullable=False, default="pending")
    submitted_by = Column(Text, nullable=False)
    approved_by = Column(Text, nullable=True)
    notes = Column(Text, nullable=False, default="")
    receipt = Column(Text, nullable=True)

    budget = relationship("BudgetRecord", back_populates="expenses")

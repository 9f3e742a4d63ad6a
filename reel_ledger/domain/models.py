"""Domain models - immutable dataclasses representing the production budget"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple


class ExpenseStatus(str, Enum):
    """Approval state of an expense"""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    REIMBURSED = "reimbursed"  # representable, but no operation produces it


@dataclass(frozen=True)
class BudgetCategory:
    """Line of the budget with a fixed allocation"""

    id: str
    name: str
    allocation_cents: int
    spent_cents: int
    remaining_cents: int
    notes: str = ""


@dataclass(frozen=True)
class Expense:
    """Spend charged against a single category"""

    id: str
    category_id: str
    description: str
    amount_cents: int
    date: date
    status: ExpenseStatus
    submitted_by: str
    approved_by: Optional[str] = None
    notes: str = ""
    receipt: Optional[str] = None


@dataclass(frozen=True)
class Budget:
    """Root aggregate: figures, categories and expenses of one production"""

    id: str
    total_budget_cents: int
    allocated_budget_cents: int
    remaining_budget_cents: int
    categories: Tuple[BudgetCategory, ...]
    expenses: Tuple[Expense, ...]
    currency: str
    last_updated: datetime

    def find_category(self, category_id: str) -> Optional[BudgetCategory]:
        return next((c for c in self.categories if c.id == category_id), None)

    def find_expense(self, expense_id: str) -> Optional[Expense]:
        return next((e for e in self.expenses if e.id == expense_id), None)


@dataclass(frozen=True)
class CategoryDraft:
    """Input for creating a category"""

    name: str
    allocation_cents: int
    notes: str = ""


@dataclass(frozen=True)
class ExpenseDraft:
    """Input for submitting an expense"""

    category_id: str
    description: str
    amount_cents: int
    date: Optional[date]
    status: ExpenseStatus = ExpenseStatus.PENDING
    notes: str = ""
    receipt: Optional[str] = None


@dataclass(frozen=True)
class VersionedBudget:
    """Budget as loaded from storage, with its concurrency token"""

    budget: Budget
    version: int

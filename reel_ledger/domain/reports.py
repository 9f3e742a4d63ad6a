"""Read-only figures and views derived from a budget"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from reel_ledger.domain.models import Budget, BudgetCategory, Expense, ExpenseStatus


@dataclass(frozen=True)
class ExpenseFilter:
    """Criteria for narrowing the expense list; None means no constraint"""

    category_id: Optional[str] = None
    status: Optional[ExpenseStatus] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    query: Optional[str] = None


@dataclass(frozen=True)
class CategoryLine:
    """Spend position of a single category"""

    category_id: str
    name: str
    allocation_cents: int
    spent_cents: int
    remaining_cents: int
    spent_percent: int
    expense_count: int


@dataclass(frozen=True)
class BudgetSummary:
    """Headline figures shown on the budget overview"""

    budget_id: str
    currency: str
    total_budget_cents: int
    allocated_budget_cents: int
    remaining_budget_cents: int
    total_spent_cents: int
    utilization_percent: int
    expense_counts: Dict[str, int]
    categories: List[CategoryLine]


def _amount_text(expense: Expense) -> str:
    """Amount in currency units without trailing zeros, so 1250 cents reads 12.5"""
    return format(Decimal(expense.amount_cents) / 100, "f")


def _matches(expense: Expense, criteria: ExpenseFilter) -> bool:
    if criteria.category_id and expense.category_id != criteria.category_id:
        return False
    if criteria.status and expense.status != criteria.status:
        return False
    if criteria.date_from and expense.date < criteria.date_from:
        return False
    if criteria.date_to and expense.date > criteria.date_to:
        return False
    if criteria.query:
        query = criteria.query.lower()
        if not (
            query in expense.description.lower()
            or query in expense.notes.lower()
            or query in _amount_text(expense)
        ):
            return False
    return True


def filter_expenses(budget: Budget, criteria: ExpenseFilter) -> List[Expense]:
    """
    Expenses matching every given criterion, newest first.

    Date bounds are inclusive. The text query matches description, notes or
    the amount in currency units. Same-day expenses keep their insertion order.
    """
    matched = [e for e in budget.expenses if _matches(e, criteria)]
    # sorted() is stable, so same-day expenses stay in insertion order
    return sorted(matched, key=lambda e: e.date, reverse=True)


def total_spent_cents(budget: Budget) -> int:
    """Sum of every expense that has not been rejected"""
    return sum(e.amount_cents for e in budget.expenses if e.status != ExpenseStatus.REJECTED)


def category_spend_percent(category: BudgetCategory) -> int:
    if category.allocation_cents == 0:
        return 0
    return round(category.spent_cents / category.allocation_cents * 100)


def budget_utilization_percent(budget: Budget) -> int:
    """Share of the total budget consumed by non-rejected spend"""
    if budget.total_budget_cents == 0:
        return 0
    return round(total_spent_cents(budget) / budget.total_budget_cents * 100)


def summarize_budget(budget: Budget) -> BudgetSummary:
    expense_counts = {status.value: 0 for status in ExpenseStatus}
    per_category: Dict[str, int] = {}
    for expense in budget.expenses:
        expense_counts[expense.status.value] += 1
        per_category[expense.category_id] = per_category.get(expense.category_id, 0) + 1

    return BudgetSummary(
        budget_id=budget.id,
        currency=budget.currency,
        total_budget_cents=budget.total_budget_cents,
        allocated_budget_cents=budget.allocated_budget_cents,
        remaining_budget_cents=budget.remaining_budget_cents,
        total_spent_cents=total_spent_cents(budget),
        utilization_percent=budget_utilization_percent(budget),
        expense_counts=expense_counts,
        categories=[
            CategoryLine(
                category_id=c.id,
                name=c.name,
                allocation_cents=c.allocation_cents,
                spent_cents=c.spent_cents,
                remaining_cents=c.remaining_cents,
                spent_percent=category_spend_percent(c),
                expense_count=per_category.get(c.id, 0),
            )
            for c in budget.categories
        ],
    )

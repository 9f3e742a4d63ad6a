"""Consistency checks over a budget aggregate"""

from collections import Counter
from typing import List

from reel_ledger.domain.exceptions import LedgerInvariantError
from reel_ledger.domain.models import Budget, ExpenseStatus


def check_invariants(budget: Budget) -> List[str]:
    """
    Collect every way the budget figures fail to add up.

    Holds after any sequence of ledger operations:
    - each category: remaining == allocation - spent
    - allocated budget == sum of category allocations
    - category spent == sum of its non-rejected expenses
    - remaining budget == total + allocated - non-rejected spend
    - ids unique, every expense points at an existing category
    """
    violations = []

    category_ids = Counter(c.id for c in budget.categories)
    for category_id, count in category_ids.items():
        if count > 1:
            violations.append(f"category id {category_id} appears {count} times")

    expense_ids = Counter(e.id for e in budget.expenses)
    for expense_id, count in expense_ids.items():
        if count > 1:
            violations.append(f"expense id {expense_id} appears {count} times")

    for category in budget.categories:
        if category.remaining_cents != category.allocation_cents - category.spent_cents:
            violations.append(
                f"category {category.id}: remaining {category.remaining_cents} != "
                f"allocation {category.allocation_cents} - spent {category.spent_cents}"
            )

    allocation_sum = sum(c.allocation_cents for c in budget.categories)
    if budget.allocated_budget_cents != allocation_sum:
        violations.append(
            f"allocated budget {budget.allocated_budget_cents} != sum of allocations {allocation_sum}"
        )

    # Spend that still counts against allocations
    live_spend: Counter = Counter()
    for expense in budget.expenses:
        if expense.category_id not in category_ids:
            violations.append(f"expense {expense.id} references missing category {expense.category_id}")
        if expense.status != ExpenseStatus.REJECTED:
            live_spend[expense.category_id] += expense.amount_cents

    for category in budget.categories:
        if category.spent_cents != live_spend[category.id]:
            violations.append(
                f"category {category.id}: spent {category.spent_cents} != expenses {live_spend[category.id]}"
            )

    expected_remaining = (
        budget.total_budget_cents + budget.allocated_budget_cents - sum(live_spend.values())
    )
    if budget.remaining_budget_cents != expected_remaining:
        violations.append(
            f"remaining budget {budget.remaining_budget_cents} != expected {expected_remaining}"
        )

    return violations


def assert_invariants(budget: Budget) -> None:
    """
    Raises:
        LedgerInvariantError: If any invariant is violated
    """
    violations = check_invariants(budget)
    if violations:
        raise LedgerInvariantError(violations)

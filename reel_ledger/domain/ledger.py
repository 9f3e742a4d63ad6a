"""Budget ledger - mutation operations that keep budget figures consistent"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional, Tuple

from reel_ledger.domain.models import (
    Budget,
    BudgetCategory,
    CategoryDraft,
    Expense,
    ExpenseDraft,
    ExpenseStatus,
)
from reel_ledger.domain.results import LedgerResult, Ok, Rejected, RejectionReason
from reel_ledger.domain.validation import (
    validate_actor,
    validate_category_draft,
    validate_currency,
    validate_expense_draft,
)
from reel_ledger.utils.clock import utcnow
from reel_ledger.utils.ids import generate_budget_id, generate_id

logger = logging.getLogger(__name__)


def new_budget(
    total_budget_cents: int,
    currency: str = "USD",
    *,
    budget_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Budget:
    """
    Create an empty budget with the given ceiling.

    Remaining budget starts at the total; allocations then add headroom on top.

    Raises:
        ValueError: On a negative total or malformed currency code
    """
    if isinstance(total_budget_cents, bool) or not isinstance(total_budget_cents, int):
        raise ValueError("total_budget_cents must be an integer")
    if total_budget_cents < 0:
        raise ValueError("total_budget_cents must not be negative")
    errors = validate_currency(currency)
    if errors:
        raise ValueError(errors[0])

    return Budget(
        id=budget_id or generate_budget_id(),
        total_budget_cents=total_budget_cents,
        allocated_budget_cents=0,
        remaining_budget_cents=total_budget_cents,
        categories=(),
        expenses=(),
        currency=currency,
        last_updated=now or utcnow(),
    )


def _reject(budget: Budget, reason: RejectionReason, detail: str) -> Rejected:
    logger.debug("Ledger operation rejected", extra={"budget_id": budget.id, "reason": reason.value})
    return Rejected(budget=budget, reason=reason, detail=detail)


def _adjust_category(
    categories: Tuple[BudgetCategory, ...],
    category_id: str,
    spent_delta: int,
) -> Tuple[BudgetCategory, ...]:
    """Move spend on one category, keeping remaining == allocation - spent"""
    return tuple(
        replace(
            c,
            spent_cents=c.spent_cents + spent_delta,
            remaining_cents=c.remaining_cents - spent_delta,
        )
        if c.id == category_id
        else c
        for c in categories
    )


def _update_expense(
    expenses: Tuple[Expense, ...],
    expense_id: str,
    change: Callable[[Expense], Expense],
) -> Tuple[Expense, ...]:
    return tuple(change(e) if e.id == expense_id else e for e in expenses)


def add_category(
    budget: Budget,
    draft: CategoryDraft,
    *,
    new_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> LedgerResult:
    """
    Append a category and add its allocation to the budget.

    Effect:
    - category starts with spent 0 and remaining == allocation
    - allocated budget and remaining budget both grow by the allocation
    """
    errors = validate_category_draft(draft)
    if errors:
        return _reject(budget, RejectionReason.INVALID_INPUT, "; ".join(errors))

    category_id = new_id or generate_id()
    if budget.find_category(category_id) is not None:
        return _reject(budget, RejectionReason.DUPLICATE_ID, f"Category {category_id} already exists")

    category = BudgetCategory(
        id=category_id,
        name=draft.name.strip(),
        allocation_cents=draft.allocation_cents,
        spent_cents=0,
        remaining_cents=draft.allocation_cents,
        notes=draft.notes,
    )

    return Ok(
        replace(
            budget,
            categories=budget.categories + (category,),
            allocated_budget_cents=budget.allocated_budget_cents + category.allocation_cents,
            remaining_budget_cents=budget.remaining_budget_cents + category.allocation_cents,
            last_updated=now or utcnow(),
        )
    )


def add_expense(
    budget: Budget,
    draft: ExpenseDraft,
    *,
    actor_id: str,
    new_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> LedgerResult:
    """
    Append an expense and charge it to its category.

    The submitting actor is recorded as submitted_by (and approved_by when the
    expense is submitted already approved). An unknown category rejects the
    whole operation.
    """
    errors = validate_expense_draft(draft) + validate_actor(actor_id)
    if errors:
        return _reject(budget, RejectionReason.INVALID_INPUT, "; ".join(errors))

    if budget.find_category(draft.category_id) is None:
        return _reject(
            budget,
            RejectionReason.UNKNOWN_CATEGORY,
            f"Category {draft.category_id} does not exist",
        )

    expense_id = new_id or generate_id()
    if budget.find_expense(expense_id) is not None:
        return _reject(budget, RejectionReason.DUPLICATE_ID, f"Expense {expense_id} already exists")

    expense = Expense(
        id=expense_id,
        category_id=draft.category_id,
        description=draft.description.strip(),
        amount_cents=draft.amount_cents,
        date=draft.date,
        status=draft.status,
        submitted_by=actor_id,
        approved_by=actor_id if draft.status == ExpenseStatus.APPROVED else None,
        notes=draft.notes,
        receipt=draft.receipt,
    )

    return Ok(
        replace(
            budget,
            categories=_adjust_category(budget.categories, expense.category_id, expense.amount_cents),
            expenses=budget.expenses + (expense,),
            remaining_budget_cents=budget.remaining_budget_cents - expense.amount_cents,
            last_updated=now or utcnow(),
        )
    )


def delete_category(
    budget: Budget,
    category_id: str,
    *,
    now: Optional[datetime] = None,
) -> LedgerResult:
    """
    Remove a category that no expense refers to.

    The category's unspent headroom leaves the remaining budget with it.
    """
    category = budget.find_category(category_id)
    if category is None:
        return _reject(budget, RejectionReason.NOT_FOUND, f"Category {category_id} does not exist")

    if any(e.category_id == category_id for e in budget.expenses):
        return _reject(
            budget,
            RejectionReason.CATEGORY_HAS_EXPENSES,
            "Cannot delete category with expenses. Reassign or delete the expenses first.",
        )

    return Ok(
        replace(
            budget,
            categories=tuple(c for c in budget.categories if c.id != category_id),
            allocated_budget_cents=budget.allocated_budget_cents - category.allocation_cents,
            remaining_budget_cents=budget.remaining_budget_cents - category.remaining_cents,
            last_updated=now or utcnow(),
        )
    )


def delete_expense(
    budget: Budget,
    expense_id: str,
    *,
    now: Optional[datetime] = None,
) -> LedgerResult:
    """
    Remove an expense, reversing its spend unless it was already rejected.

    Rejection reverses the spend itself, so a rejected expense is dropped
    without touching the sums a second time.
    """
    expense = budget.find_expense(expense_id)
    if expense is None:
        return _reject(budget, RejectionReason.NOT_FOUND, f"Expense {expense_id} does not exist")

    expenses = tuple(e for e in budget.expenses if e.id != expense_id)
    if expense.status == ExpenseStatus.REJECTED:
        return Ok(replace(budget, expenses=expenses, last_updated=now or utcnow()))

    return Ok(
        replace(
            budget,
            categories=_adjust_category(budget.categories, expense.category_id, -expense.amount_cents),
            expenses=expenses,
            remaining_budget_cents=budget.remaining_budget_cents + expense.amount_cents,
            last_updated=now or utcnow(),
        )
    )


def approve_expense(
    budget: Budget,
    expense_id: str,
    *,
    actor_id: str,
    now: Optional[datetime] = None,
) -> LedgerResult:
    """
    Mark a pending expense approved.

    Sums are untouched since the amount was charged at submission. Approving
    an approved expense returns the budget unchanged.
    """
    errors = validate_actor(actor_id)
    if errors:
        return _reject(budget, RejectionReason.INVALID_INPUT, "; ".join(errors))

    expense = budget.find_expense(expense_id)
    if expense is None:
        return _reject(budget, RejectionReason.NOT_FOUND, f"Expense {expense_id} does not exist")

    if expense.status == ExpenseStatus.APPROVED:
        return Ok(budget)
    if expense.status != ExpenseStatus.PENDING:
        return _reject(
            budget,
            RejectionReason.INVALID_TRANSITION,
            f"Expense {expense_id} is {expense.status.value} and cannot be approved",
        )

    return Ok(
        replace(
            budget,
            expenses=_update_expense(
                budget.expenses,
                expense_id,
                lambda e: replace(e, status=ExpenseStatus.APPROVED, approved_by=actor_id),
            ),
            last_updated=now or utcnow(),
        )
    )


def reject_expense(
    budget: Budget,
    expense_id: str,
    *,
    actor_id: str,
    now: Optional[datetime] = None,
) -> LedgerResult:
    """
    Mark a pending expense rejected and give its amount back.

    This is the one status transition that moves the sums: a rejected expense
    no longer counts against its category or the remaining budget. Rejecting a
    rejected expense returns the budget unchanged.
    """
    errors = validate_actor(actor_id)
    if errors:
        return _reject(budget, RejectionReason.INVALID_INPUT, "; ".join(errors))

    expense = budget.find_expense(expense_id)
    if expense is None:
        return _reject(budget, RejectionReason.NOT_FOUND, f"Expense {expense_id} does not exist")

    if expense.status == ExpenseStatus.REJECTED:
        return Ok(budget)
    if expense.status != ExpenseStatus.PENDING:
        return _reject(
            budget,
            RejectionReason.INVALID_TRANSITION,
            f"Expense {expense_id} is {expense.status.value} and cannot be rejected",
        )

    return Ok(
        replace(
            budget,
            categories=_adjust_category(budget.categories, expense.category_id, -expense.amount_cents),
            expenses=_update_expense(
                budget.expenses,
                expense_id,
                lambda e: replace(e, status=ExpenseStatus.REJECTED, approved_by=actor_id),
            ),
            remaining_budget_cents=budget.remaining_budget_cents + expense.amount_cents,
            last_updated=now or utcnow(),
        )
    )

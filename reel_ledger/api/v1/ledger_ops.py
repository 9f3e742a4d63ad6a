"""Shared flow for applying one ledger operation to a stored budget"""

import logging
import time
from typing import Callable, Optional, Tuple

from fastapi import HTTPException, Response
from sqlalchemy.orm import Session

from reel_ledger.api.v1.schemas import BudgetResponse, CategorySchema, ExpenseSchema
from reel_ledger.domain.exceptions import BudgetNotFoundError, ConcurrentModificationError, LedgerInvariantError
from reel_ledger.domain.invariants import assert_invariants
from reel_ledger.domain.models import Budget, Expense, VersionedBudget
from reel_ledger.domain.results import LedgerResult, Rejected, RejectionReason
from reel_ledger.infrastructure.database.repositories import BudgetRepository
from reel_ledger.infrastructure.observability.logging import log_ledger_operation
from reel_ledger.infrastructure.observability.metrics import record_operation, version_conflict_counter

REJECTION_STATUS = {
    RejectionReason.INVALID_INPUT: 422,
    RejectionReason.UNKNOWN_CATEGORY: 422,
    RejectionReason.NOT_FOUND: 404,
    RejectionReason.DUPLICATE_ID: 409,
    RejectionReason.CATEGORY_HAS_EXPENSES: 409,
    RejectionReason.INVALID_TRANSITION: 409,
}


def parse_if_match(if_match: Optional[str]) -> Optional[int]:
    """Read a budget version from an If-Match header ("3", "\"3\"" or W/"3")"""
    if if_match is None:
        return None
    value = if_match.strip()
    if value.startswith("W/"):
        value = value[2:]
    try:
        return int(value.strip('"'))
    except ValueError:
        raise HTTPException(status_code=400, detail="If-Match must carry a budget version")


def budget_response(versioned: VersionedBudget, response: Optional[Response] = None) -> BudgetResponse:
    """Serialize a stored budget, tagging the HTTP response with its version"""
    budget = versioned.budget
    if response is not None:
        response.headers["ETag"] = f'"{versioned.version}"'

    return BudgetResponse(
        id=budget.id,
        version=versioned.version,
        total_budget_cents=budget.total_budget_cents,
        allocated_budget_cents=budget.allocated_budget_cents,
        remaining_budget_cents=budget.remaining_budget_cents,
        currency=budget.currency,
        last_updated=budget.last_updated,
        categories=[
            CategorySchema(
                id=c.id,
                name=c.name,
                allocation_cents=c.allocation_cents,
                spent_cents=c.spent_cents,
                remaining_cents=c.remaining_cents,
                notes=c.notes,
            )
            for c in budget.categories
        ],
        expenses=[expense_schema(e) for e in budget.expenses],
    )


def expense_schema(expense: Expense) -> ExpenseSchema:
    return ExpenseSchema(
        id=expense.id,
        category_id=expense.category_id,
        description=expense.description,
        amount_cents=expense.amount_cents,
        date=expense.date,
        status=expense.status,
        submitted_by=expense.submitted_by,
        approved_by=expense.approved_by,
        notes=expense.notes,
        receipt=expense.receipt,
    )


def load_budget(repo: BudgetRepository, budget_id: str) -> VersionedBudget:
    try:
        return repo.get(budget_id)
    except BudgetNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


def run_ledger_operation(
    operation: str,
    budget_id: str,
    apply: Callable[[Budget], LedgerResult],
    repo: BudgetRepository,
    db: Session,
    request_id: str,
    expected_version: Optional[int] = None,
) -> Tuple[VersionedBudget, bool]:
    """
    Load a budget, apply one ledger operation and persist the result.

    Flow:
    1. Load the budget and its version (404 if missing)
    2. Check the caller's If-Match version, if given (409 on mismatch)
    3. Apply the operation; a rejection maps to an HTTP error with nothing written
    4. Verify invariants and compare-and-swap the new aggregate (409 on conflict)

    Returns:
        Stored budget and whether the operation changed it
    """
    start_time = time.time()
    loaded = load_budget(repo, budget_id)

    if expected_version is not None and expected_version != loaded.version:
        version_conflict_counter.inc()
        raise HTTPException(
            status_code=409,
            detail=f"Budget is at version {loaded.version}, not {expected_version}",
        )

    result = apply(loaded.budget)

    if isinstance(result, Rejected):
        duration_ms = (time.time() - start_time) * 1000
        record_operation(operation, ok=False, reason=result.reason.value)
        log_ledger_operation(request_id, budget_id, operation, "rejected", duration_ms, result.reason.value)
        raise HTTPException(
            status_code=REJECTION_STATUS[result.reason],
            detail={"reason": result.reason.value, "message": result.detail},
        )

    changed = result.budget is not loaded.budget
    stored = loaded
    if changed:
        try:
            assert_invariants(result.budget)
            stored = repo.save(result.budget, loaded.version)
            db.commit()

        except ConcurrentModificationError as e:
            db.rollback()
            version_conflict_counter.inc()
            logging.warning(f"Version conflict: {e}", extra={"request_id": request_id})
            raise HTTPException(status_code=409, detail=str(e))

        except LedgerInvariantError as e:
            db.rollback()
            logging.error(f"Invariant violated by {operation}: {e}", extra={"request_id": request_id})
            raise HTTPException(status_code=500, detail="Internal server error")

        except Exception as e:
            db.rollback()
            logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
            raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    record_operation(operation, ok=True)
    log_ledger_operation(request_id, budget_id, operation, "ok", duration_ms)
    return stored, changed

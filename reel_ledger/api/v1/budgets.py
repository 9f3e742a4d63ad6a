"""Budget endpoints - create a budget, read it back, summarize it"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from reel_ledger.api.dependencies import get_budget_repository, get_request_id
from reel_ledger.api.v1.ledger_ops import budget_response, load_budget
from reel_ledger.api.v1.schemas import (
    BudgetCreateRequest,
    BudgetResponse,
    BudgetSummaryResponse,
    CategoryLineSchema,
)
from reel_ledger.config import settings
from reel_ledger.domain.ledger import new_budget
from reel_ledger.domain.reports import summarize_budget
from reel_ledger.infrastructure.database.repositories import BudgetRepository
from reel_ledger.infrastructure.database.session import get_db
from reel_ledger.infrastructure.observability.metrics import record_operation

router = APIRouter()


@router.post("/budgets", response_model=BudgetResponse, status_code=201)
def create_budget(
    request_body: BudgetCreateRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    repo: BudgetRepository = Depends(get_budget_repository),
):
    """
    Open a budget for a production.

    The total is fixed here; ledger operations never change it.
    """
    request_id = get_request_id(request)

    try:
        budget = new_budget(
            request_body.total_budget_cents,
            request_body.currency or settings.default_currency,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        stored = repo.create(budget)
        db.commit()
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    record_operation("create_budget", ok=True)
    logging.info("Budget created", extra={"request_id": request_id, "budget_id": budget.id})
    return budget_response(stored, response)


@router.get("/budgets/{budget_id}", response_model=BudgetResponse)
def get_budget(
    budget_id: str,
    response: Response,
    repo: BudgetRepository = Depends(get_budget_repository),
):
    """Retrieve the full budget with categories and expenses"""
    return budget_response(load_budget(repo, budget_id), response)


@router.get("/budgets/{budget_id}/summary", response_model=BudgetSummaryResponse)
def get_budget_summary(
    budget_id: str,
    repo: BudgetRepository = Depends(get_budget_repository),
):
    """
    Headline figures for the budget overview.

    Returns:
        Totals, utilization, expense counts by status and per-category spend
    """
    summary = summarize_budget(load_budget(repo, budget_id).budget)

    return BudgetSummaryResponse(
        budget_id=summary.budget_id,
        currency=summary.currency,
        total_budget_cents=summary.total_budget_cents,
        allocated_budget_cents=summary.allocated_budget_cents,
        remaining_budget_cents=summary.remaining_budget_cents,
        total_spent_cents=summary.total_spent_cents,
        utilization_percent=summary.utilization_percent,
        expense_counts=summary.expense_counts,
        categories=[
            CategoryLineSchema(
                category_id=line.category_id,
                name=line.name,
                allocation_cents=line.allocation_cents,
                spent_cents=line.spent_cents,
                remaining_cents=line.remaining_cents,
                spent_percent=line.spent_percent,
                expense_count=line.expense_count,
            )
            for line in summary.categories
        ],
    )

"""Category endpoints - add and delete budget categories"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, Response
from sqlalchemy.orm import Session

from reel_ledger.api.dependencies import get_budget_repository, get_request_id
from reel_ledger.api.v1.ledger_ops import budget_response, parse_if_match, run_ledger_operation
from reel_ledger.api.v1.schemas import BudgetResponse, CategoryCreateRequest
from reel_ledger.domain.ledger import add_category, delete_category
from reel_ledger.domain.models import CategoryDraft
from reel_ledger.infrastructure.database.repositories import BudgetRepository
from reel_ledger.infrastructure.database.session import get_db

router = APIRouter()


@router.post("/budgets/{budget_id}/categories", response_model=BudgetResponse, status_code=201)
def create_category(
    budget_id: str,
    request_body: CategoryCreateRequest,
    request: Request,
    response: Response,
    if_match: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    repo: BudgetRepository = Depends(get_budget_repository),
):
    """
    Add a category; its allocation raises both allocated and remaining budget.

    Returns:
        Updated budget
    """
    draft = CategoryDraft(
        name=request_body.name,
        allocation_cents=request_body.allocation_cents,
        notes=request_body.notes,
    )
    stored, _ = run_ledger_operation(
        "add_category",
        budget_id,
        lambda budget: add_category(budget, draft, new_id=request_body.id),
        repo,
        db,
        get_request_id(request),
        parse_if_match(if_match),
    )
    return budget_response(stored, response)


@router.delete("/budgets/{budget_id}/categories/{category_id}", response_model=BudgetResponse)
def remove_category(
    budget_id: str,
    category_id: str,
    request: Request,
    response: Response,
    if_match: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    repo: BudgetRepository = Depends(get_budget_repository),
):
    """
    Delete a category that has no expenses.

    Returns 409 while any expense, including a rejected one, still refers to it.
    """
    stored, _ = run_ledger_operation(
        "delete_category",
        budget_id,
        lambda budget: delete_category(budget, category_id),
        repo,
        db,
        get_request_id(request),
        parse_if_match(if_match),
    )
    return budget_response(stored, response)

"""Expense endpoints - submit, list, delete, approve and reject expenses"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from reel_ledger.api.dependencies import (
    get_actor_id,
    get_budget_repository,
    get_request_id,
    get_webhook_client,
)
from reel_ledger.api.v1.ledger_ops import (
    budget_response,
    expense_schema,
    load_budget,
    parse_if_match,
    run_ledger_operation,
)
from reel_ledger.api.v1.schemas import BudgetResponse, ExpenseCreateRequest, ExpenseListResponse
from reel_ledger.domain.ledger import add_expense, approve_expense, delete_expense, reject_expense
from reel_ledger.domain.models import ExpenseDraft, ExpenseStatus, VersionedBudget
from reel_ledger.domain.reports import ExpenseFilter, filter_expenses
from reel_ledger.infrastructure.clients.webhook import (
    ExpenseWebhookClient,
    build_expense_event,
    notify_expense_decision,
)
from reel_ledger.infrastructure.database.repositories import BudgetRepository
from reel_ledger.infrastructure.database.session import get_db
from reel_ledger.infrastructure.observability.metrics import expense_amount_histogram

router = APIRouter()


@router.post("/budgets/{budget_id}/expenses", response_model=BudgetResponse, status_code=201)
def create_expense(
    budget_id: str,
    request_body: ExpenseCreateRequest,
    request: Request,
    response: Response,
    actor_id: str = Depends(get_actor_id),
    if_match: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    repo: BudgetRepository = Depends(get_budget_repository),
):
    """
    Submit an expense against a category.

    The amount is charged to the category and the remaining budget at once;
    the X-Actor-Id header is recorded as the submitter.
    """
    draft = ExpenseDraft(
        category_id=request_body.category_id,
        description=request_body.description,
        amount_cents=request_body.amount_cents,
        date=request_body.date,
        status=request_body.status,
        notes=request_body.notes,
        receipt=request_body.receipt,
    )
    stored, _ = run_ledger_operation(
        "add_expense",
        budget_id,
        lambda budget: add_expense(budget, draft, actor_id=actor_id, new_id=request_body.id),
        repo,
        db,
        get_request_id(request),
        parse_if_match(if_match),
    )
    expense_amount_histogram.observe(draft.amount_cents)
    return budget_response(stored, response)


@router.get("/budgets/{budget_id}/expenses", response_model=ExpenseListResponse)
def list_expenses(
    budget_id: str,
    category_id: Optional[str] = Query(None, description="Only this category"),
    status: Optional[ExpenseStatus] = Query(None, description="Only this status"),
    date_from: Optional[date] = Query(None, description="Earliest expense date, inclusive"),
    date_to: Optional[date] = Query(None, description="Latest expense date, inclusive"),
    q: Optional[str] = Query(None, description="Text in description, notes or amount"),
    repo: BudgetRepository = Depends(get_budget_repository),
):
    """
    Search the budget's expenses.

    Returns:
        Matching expenses, newest first
    """
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=400, detail="date_from is after date_to")

    budget = load_budget(repo, budget_id).budget
    criteria = ExpenseFilter(
        category_id=category_id,
        status=status,
        date_from=date_from,
        date_to=date_to,
        query=q,
    )
    return ExpenseListResponse(
        budget_id=budget.id,
        expenses=[expense_schema(e) for e in filter_expenses(budget, criteria)],
    )


@router.delete("/budgets/{budget_id}/expenses/{expense_id}", response_model=BudgetResponse)
def remove_expense(
    budget_id: str,
    expense_id: str,
    request: Request,
    response: Response,
    if_match: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    repo: BudgetRepository = Depends(get_budget_repository),
):
    """Delete an expense and give its amount back unless it was rejected"""
    stored, _ = run_ledger_operation(
        "delete_expense",
        budget_id,
        lambda budget: delete_expense(budget, expense_id),
        repo,
        db,
        get_request_id(request),
        parse_if_match(if_match),
    )
    return budget_response(stored, response)


def _announce_decision(
    background_tasks: BackgroundTasks,
    webhook_client: Optional[ExpenseWebhookClient],
    stored: VersionedBudget,
    expense_id: str,
    actor_id: str,
) -> None:
    if webhook_client is None:
        return
    expense = stored.budget.find_expense(expense_id)
    background_tasks.add_task(
        notify_expense_decision,
        webhook_client,
        build_expense_event(stored.budget, expense, actor_id),
    )


@router.post("/budgets/{budget_id}/expenses/{expense_id}/approve", response_model=BudgetResponse)
def approve(
    budget_id: str,
    expense_id: str,
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    actor_id: str = Depends(get_actor_id),
    if_match: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    repo: BudgetRepository = Depends(get_budget_repository),
    webhook_client: Optional[ExpenseWebhookClient] = Depends(get_webhook_client),
):
    """
    Approve a pending expense.

    Approving twice is harmless; approving a rejected expense returns 409.
    """
    stored, changed = run_ledger_operation(
        "approve_expense",
        budget_id,
        lambda budget: approve_expense(budget, expense_id, actor_id=actor_id),
        repo,
        db,
        get_request_id(request),
        parse_if_match(if_match),
    )
    if changed:
        _announce_decision(background_tasks, webhook_client, stored, expense_id, actor_id)
    return budget_response(stored, response)


@router.post("/budgets/{budget_id}/expenses/{expense_id}/reject", response_model=BudgetResponse)
def reject(
    budget_id: str,
    expense_id: str,
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    actor_id: str = Depends(get_actor_id),
    if_match: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    repo: BudgetRepository = Depends(get_budget_repository),
    webhook_client: Optional[ExpenseWebhookClient] = Depends(get_webhook_client),
):
    """
    Reject a pending expense, returning its amount to the category and budget.

    Rejecting twice is harmless; rejecting an approved expense returns 409.
    """
    stored, changed = run_ledger_operation(
        "reject_expense",
        budget_id,
        lambda budget: reject_expense(budget, expense_id, actor_id=actor_id),
        repo,
        db,
        get_request_id(request),
        parse_if_match(if_match),
    )
    if changed:
        _announce_decision(background_tasks, webhook_client, stored, expense_id, actor_id)
    return budget_response(stored, response)

"""Dependency injection for FastAPI endpoints"""

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from reel_ledger.config import settings
from reel_ledger.infrastructure.clients.webhook import ExpenseWebhookClient
from reel_ledger.infrastructure.database.repositories import BudgetRepository
from reel_ledger.infrastructure.database.session import get_db


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_actor_id(x_actor_id: str = Header(..., alias="X-Actor-Id", min_length=1)) -> str:
    """Identity of the person acting, supplied by the caller or an auth proxy"""
    return x_actor_id.strip()


def get_budget_repository(db: Session = Depends(get_db)) -> BudgetRepository:
    """Provide repository bound to the request's session"""
    return BudgetRepository(db)


def get_webhook_client() -> Optional[ExpenseWebhookClient]:
    """Provide expense webhook client, or None when no webhook is configured"""
    if not settings.expense_webhook_url:
        return None
    return ExpenseWebhookClient(settings.expense_webhook_url)

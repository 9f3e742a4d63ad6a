"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from reel_ledger.domain.models import ExpenseStatus


class BudgetCreateRequest(BaseModel):
    """Request body for POST /v1/budgets"""

    total_budget_cents: int = Field(..., ge=0, description="Budget ceiling in minor units")
    currency: Optional[str] = Field(None, pattern=r"^[A-Z]{3}$", description="ISO 4217 code")


class CategoryCreateRequest(BaseModel):
    """Request body for POST /v1/budgets/{budget_id}/categories"""

    name: str = Field(..., min_length=1, description="Category name, e.g. Camera")
    allocation_cents: int = Field(..., ge=0, description="Amount set aside for the category")
    notes: str = ""
    id: Optional[str] = Field(None, min_length=1, max_length=64, description="Client-chosen id")


class ExpenseCreateRequest(BaseModel):
    """Request body for POST /v1/budgets/{budget_id}/expenses"""

    category_id: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    amount_cents: int = Field(..., gt=0)
    date: date
    status: ExpenseStatus = ExpenseStatus.PENDING
    notes: str = ""
    receipt: Optional[str] = None
    id: Optional[str] = Field(None, min_length=1, max_length=64, description="Client-chosen id")


class CategorySchema(BaseModel):
    """Budget category with its spend figures"""

    id: str
    name: str
    allocation_cents: int
    spent_cents: int
    remaining_cents: int
    notes: str


class ExpenseSchema(BaseModel):
    """Single expense"""

    id: str
    category_id: str
    description: str
    amount_cents: int
    date: date
    status: ExpenseStatus
    submitted_by: str
    approved_by: Optional[str] = None
    notes: str
    receipt: Optional[str] = None


class BudgetResponse(BaseModel):
    """Full budget aggregate with its concurrency version"""

    id: str
    version: int
    total_budget_cents: int
    allocated_budget_cents: int
    remaining_budget_cents: int
    currency: str
    last_updated: datetime
    categories: List[CategorySchema]
    expenses: List[ExpenseSchema]


class ExpenseListResponse(BaseModel):
    """Response for GET /v1/budgets/{budget_id}/expenses"""

    budget_id: str
    expenses: List[ExpenseSchema]


class CategoryLineSchema(BaseModel):
    """Spend position of one category"""

    category_id: str
    name: str
    allocation_cents: int
    spent_cents: int
    remaining_cents: int
    spent_percent: int
    expense_count: int


class BudgetSummaryResponse(BaseModel):
    """Response for GET /v1/budgets/{budget_id}/summary"""

    budget_id: str
    currency: str
    total_budget_cents: int
    allocated_budget_cents: int
    remaining_budget_cents: int
    total_spent_cents: int
    utilization_percent: int
    expense_counts: Dict[str, int]
    categories: List[CategoryLineSchema]

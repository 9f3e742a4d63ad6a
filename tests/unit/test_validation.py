"""Unit tests for draft validation"""

import pytest
from datetime import date
from reel_ledger.domain.models import CategoryDraft, ExpenseDraft, ExpenseStatus
from reel_ledger.domain.validation import (
    validate_actor,
    validate_category_draft,
    validate_currency,
    validate_expense_draft,
)


def test_valid_drafts_have_no_errors():
    assert validate_category_draft(CategoryDraft(name="Camera", allocation_cents=0)) == []
    draft = ExpenseDraft(category_id="cam", description="Lens", amount_cents=1, date=date(2025, 1, 1))
    assert validate_expense_draft(draft) == []


def test_expense_draft_reports_every_problem():
    """Test all failing fields are listed, not just the first"""
    draft = ExpenseDraft(category_id="", description=" ", amount_cents=0, date=None)

    errors = validate_expense_draft(draft)

    assert errors == [
        "category_id is required",
        "description is required",
        "amount_cents must be positive",
        "date is required",
    ]


def test_expense_draft_amount_must_be_integer():
    draft = ExpenseDraft(category_id="cam", description="Lens", amount_cents=12.5, date=date(2025, 1, 1))

    assert validate_expense_draft(draft) == ["amount_cents must be an integer"]


def test_expense_draft_initial_status():
    draft = ExpenseDraft(
        category_id="cam",
        description="Lens",
        amount_cents=10,
        date=date(2025, 1, 1),
        status=ExpenseStatus.REIMBURSED,
    )

    assert validate_expense_draft(draft) == ["expense cannot be submitted as reimbursed"]


@pytest.mark.parametrize("code,valid", [("USD", True), ("EUR", True), ("usd", False), ("US", False), (None, False)])
def test_validate_currency(code, valid):
    assert (validate_currency(code) == []) is valid


@pytest.mark.parametrize("actor_id", ["", "   ", None])
def test_validate_actor_requires_name(actor_id):
    assert validate_actor(actor_id) == ["actor_id is required"]

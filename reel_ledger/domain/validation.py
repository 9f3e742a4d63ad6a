"""Field-level validation for drafts and budget construction"""

import re
from typing import List

from reel_ledger.domain.models import CategoryDraft, ExpenseDraft, ExpenseStatus

CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")

# Statuses an expense may be submitted with
INITIAL_STATUSES = frozenset({ExpenseStatus.PENDING, ExpenseStatus.APPROVED})


def _is_blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_currency(currency: str) -> List[str]:
    if not isinstance(currency, str) or not CURRENCY_CODE.match(currency):
        return [f"currency must be a three-letter ISO 4217 code, got {currency!r}"]
    return []


def validate_actor(actor_id: str) -> List[str]:
    if _is_blank(actor_id):
        return ["actor_id is required"]
    return []


def validate_category_draft(draft: CategoryDraft) -> List[str]:
    """
    Check every field of a category draft.

    Returns:
        List of error messages, empty when the draft is valid
    """
    errors = []
    if _is_blank(draft.name):
        errors.append("name is required")
    if not _is_int(draft.allocation_cents):
        errors.append("allocation_cents must be an integer")
    elif draft.allocation_cents < 0:
        errors.append("allocation_cents must not be negative")
    if not isinstance(draft.notes, str):
        errors.append("notes must be text")
    return errors


def validate_expense_draft(draft: ExpenseDraft) -> List[str]:
    """
    Check every field of an expense draft.

    Requirements:
    - description, category_id and date present
    - amount_cents a positive integer
    - initial status pending or approved (rejection goes through reject_expense)

    Returns:
        List of error messages, empty when the draft is valid
    """
    errors = []
    if _is_blank(draft.category_id):
        errors.append("category_id is required")
    if _is_blank(draft.description):
        errors.append("description is required")
    if not _is_int(draft.amount_cents):
        errors.append("amount_cents must be an integer")
    elif draft.amount_cents <= 0:
        errors.append("amount_cents must be positive")
    if draft.date is None:
        errors.append("date is required")
    if draft.status not in INITIAL_STATUSES:
        errors.append(f"expense cannot be submitted as {getattr(draft.status, 'value', draft.status)}")
    if not isinstance(draft.notes, str):
        errors.append("notes must be text")
    return errors

"""Tagged result returned by every ledger operation"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from reel_ledger.domain.models import Budget


class RejectionReason(str, Enum):
    """Why a ledger operation refused to mutate the budget"""

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    UNKNOWN_CATEGORY = "unknown_category"
    DUPLICATE_ID = "duplicate_id"
    CATEGORY_HAS_EXPENSES = "category_has_expenses"
    INVALID_TRANSITION = "invalid_transition"


@dataclass(frozen=True)
class Ok:
    """Operation applied; budget is the new consistent value"""

    budget: Budget

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    """Operation refused; budget is the unchanged input value"""

    budget: Budget
    reason: RejectionReason
    detail: str

    @property
    def ok(self) -> bool:
        return False


LedgerResult = Union[Ok, Rejected]

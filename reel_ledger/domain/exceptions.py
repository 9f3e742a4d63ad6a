"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class BudgetNotFoundError(DomainException):
    """No stored budget has the requested id"""

    pass


class ConcurrentModificationError(DomainException):
    """Budget was written by someone else since it was read"""

    def __init__(self, budget_id: str, expected_version: int):
        super().__init__(f"Budget {budget_id} is no longer at version {expected_version}")
        self.budget_id = budget_id
        self.expected_version = expected_version


class LedgerInvariantError(DomainException):
    """Budget figures do not add up"""

    def __init__(self, violations: list[str]):
        super().__init__("; ".join(violations))
        self.violations = violations


class WebhookDeliveryError(DomainException):
    """Expense event could not be delivered after all retries"""

    pass

"""Data access layer for budget aggregates"""

from datetime import timezone
from typing import List

from sqlalchemy.orm import Session

from reel_ledger.domain.exceptions import BudgetNotFoundError, ConcurrentModificationError
from reel_ledger.domain.models import Budget, BudgetCategory, Expense, ExpenseStatus, VersionedBudget
from reel_ledger.infrastructure.database.models import BudgetRecord, CategoryRecord, ExpenseRecord


class BudgetRepository:
    """
    Repository storing each budget as one transactional unit.

    Writes replace the whole aggregate and compare-and-swap on the version
    column, so two writers that read the same version cannot both succeed.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, budget: Budget) -> VersionedBudget:
        """Persist a new budget at version 1"""
        record = BudgetRecord(
            id=budget.id,
            total_budget_cents=budget.total_budget_cents,
            allocated_budget_cents=budget.allocated_budget_cents,
            remaining_budget_cents=budget.remaining_budget_cents,
            currency=budget.currency,
            last_updated=budget.last_updated,
            version=1,
        )
        self._flush_detached([record] + self._child_records(budget))
        return VersionedBudget(budget=budget, version=1)

    def get(self, budget_id: str) -> VersionedBudget:
        """
        Load a budget with its categories and expenses.

        Raises:
            BudgetNotFoundError: If no budget has this id
        """
        record = self.db.query(BudgetRecord).filter(BudgetRecord.id == budget_id).first()
        if record is None:
            raise BudgetNotFoundError(f"Budget {budget_id} not found")

        loaded = VersionedBudget(budget=self._to_domain(record), version=record.version)
        # Detach so a later save can insert fresh child rows with the same keys
        self.db.expunge(record)
        return loaded

    def save(self, budget: Budget, expected_version: int) -> VersionedBudget:
        """
        Replace the stored aggregate if it is still at expected_version.

        Raises:
            ConcurrentModificationError: If the stored version moved on
        """
        new_version = expected_version + 1
        updated = (
            self.db.query(BudgetRecord)
            .filter(BudgetRecord.id == budget.id, BudgetRecord.version == expected_version)
            .update(
                {
                    BudgetRecord.total_budget_cents: budget.total_budget_cents,
                    BudgetRecord.allocated_budget_cents: budget.allocated_budget_cents,
                    BudgetRecord.remaining_budget_cents: budget.remaining_budget_cents,
                    BudgetRecord.currency: budget.currency,
                    BudgetRecord.last_updated: budget.last_updated,
                    BudgetRecord.version: new_version,
                },
                synchronize_session=False,
            )
        )
        if updated == 0:
            raise ConcurrentModificationError(budget.id, expected_version)

        self.db.query(CategoryRecord).filter(CategoryRecord.budget_id == budget.id).delete(
            synchronize_session=False
        )
        self.db.query(ExpenseRecord).filter(ExpenseRecord.budget_id == budget.id).delete(
            synchronize_session=False
        )
        self._flush_detached(self._child_records(budget))
        return VersionedBudget(budget=budget, version=new_version)

    def _flush_detached(self, records: List) -> None:
        """Write rows and keep them out of the identity map so the next save can replace them"""
        self.db.add_all(records)
        self.db.flush()
        for record in records:
            if record in self.db:
                self.db.expunge(record)

    @staticmethod
    def _child_records(budget: Budget) -> List:
        categories = [
            CategoryRecord(
                budget_id=budget.id,
                id=c.id,
                position=position,
                name=c.name,
                allocation_cents=c.allocation_cents,
                spent_cents=c.spent_cents,
                remaining_cents=c.remaining_cents,
                notes=c.notes,
            )
            for position, c in enumerate(budget.categories)
        ]
        expenses = [
            ExpenseRecord(
                budget_id=budget.id,
                id=e.id,
                position=position,
                category_id=e.category_id,
                description=e.description,
                amount_cents=e.amount_cents,
                date=e.date,
                status=e.status.value,
                submitted_by=e.submitted_by,
                approved_by=e.approved_by,
                notes=e.notes,
                receipt=e.receipt,
            )
            for position, e in enumerate(budget.expenses)
        ]
        return categories + expenses

    @staticmethod
    def _to_domain(record: BudgetRecord) -> Budget:
        last_updated = record.last_updated
        if last_updated.tzinfo is None:
            # SQLite drops the offset; values are always written in UTC
            last_updated = last_updated.replace(tzinfo=timezone.utc)

        return Budget(
            id=record.id,
            total_budget_cents=record.total_budget_cents,
            allocated_budget_cents=record.allocated_budget_cents,
            remaining_budget_cents=record.remaining_budget_cents,
            categories=tuple(
                BudgetCategory(
                    id=c.id,
                    name=c.name,
                    allocation_cents=c.allocation_cents,
                    spent_cents=c.spent_cents,
                    remaining_cents=c.remaining_cents,
                    notes=c.notes,
                )
                for c in record.categories
            ),
            expenses=tuple(
                Expense(
                    id=e.id,
                    category_id=e.category_id,
                    description=e.description,
                    amount_cents=e.amount_cents,
                    date=e.date,
                    status=ExpenseStatus(e.status),
                    submitted_by=e.submitted_by,
                    approved_by=e.approved_by,
                    notes=e.notes,
                    receipt=e.receipt,
                )
                for e in record.expenses
            ),
            currency=record.currency,
            last_updated=last_updated,
        )

"""
Ledger mutation and retrieval service.

Every read and write is scoped to the caller's user id inside the same
statement that touches the row. Concurrent duplicate submissions are settled
by the unique constraint on ``expenses.idempotency_key``; the service keeps
no locks of its own.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import ConflictResolved, NotFound, ValidationError
from models.models import Expense
from schemas.expenses import ExpenseCreate, ExpenseUpdate, to_money
from services.query_compiler import ExpenseFilter, compile_filter, to_sqlalchemy
from utils.logger import logger

class CreateOutcome(str, Enum):
    CREATED = "created"
    ALREADY_PROCESSED = "already_processed"

@dataclass
class CreateResult:
    expense: Expense
    outcome: CreateOutcome

    @property
    def created(self) -> bool:
        return self.outcome == CreateOutcome.CREATED

class LedgerService:
    """Service for managing expenses owned by authenticated users."""

    def __init__(self, db: Session):
        self.db = db

    def _find_by_key(self, idempotency_key: str) -> Optional[Expense]:
        return self.db.query(Expense).filter(Expense.idempotency_key == idempotency_key).first()

    def _owned(self, owner_id: str, expense_id: str):
        return self.db.query(Expense).filter(
            Expense.id == expense_id,
            Expense.owner_id == owner_id,
        )

    def _replay(self, owner_id: str, existing: Expense) -> CreateResult:
        if existing.owner_id != owner_id:
            # Keys are global; never hand another user's record back
            raise ValidationError.single("idempotencyKey", "Idempotency key has already been used")
        return CreateResult(existing, CreateOutcome.ALREADY_PROCESSED)

    def _insert(self, expense: Expense) -> Expense:
        """Insert ``expense``; raise ConflictResolved if its key was taken meanwhile."""
        self.db.add(expense)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            existing = self._find_by_key(expense.idempotency_key) if expense.idempotency_key else None
            if existing is None:
                # Not a duplicate key, something else is wrong
                raise
            raise ConflictResolved(existing) from e
        self.db.refresh(expense)
        return expense

    def create_expense(self, owner_id: str, data: ExpenseCreate) -> CreateResult:
        """Create an expense, at most once per idempotency key.

        Without a key every call inserts a new row. With a key, an existing
        record is returned unchanged; if two requests race past the lookup the
        loser's insert hits the unique constraint and it returns the winner's
        record instead of an error.
        """
        key = data.idempotency_key
        if key is not None:
            existing = self._find_by_key(key)
            if existing is not None:
                logger.info(f"Idempotent replay for key {key}: expense {existing.id}")
                return self._replay(owner_id, existing)

        expense = Expense(
            owner_id=owner_id,
            amount=data.amount,
            category=data.category,
            description=data.description,
            date=data.date,
            idempotency_key=key,
        )
        try:
            expense = self._insert(expense)
        except ConflictResolved as conflict:
            logger.info(f"Idempotency race on key {key} resolved to expense {conflict.expense.id}")
            return self._replay(owner_id, conflict.expense)

        logger.info(f"Created expense: {expense.id} for user: {owner_id}")
        return CreateResult(expense, CreateOutcome.CREATED)

    def get_expense(self, owner_id: str, expense_id: str) -> Expense:
        expense = self._owned(owner_id, expense_id).first()
        if expense is None:
            raise NotFound()
        return expense

    def update_expense(self, owner_id: str, expense_id: str, data: ExpenseUpdate) -> Expense:
        """Apply the supplied fields in one UPDATE matched on id and owner."""
        changes = data.model_dump(exclude_unset=True)
        if changes:
            matched = self._owned(owner_id, expense_id).update(changes, synchronize_session=False)
            if not matched:
                self.db.rollback()
                raise NotFound()
            self.db.commit()
            logger.info(f"Updated expense: {expense_id} fields: {sorted(changes)}")
        return self.get_expense(owner_id, expense_id)

    def delete_expense(self, owner_id: str, expense_id: str) -> None:
        deleted = self._owned(owner_id, expense_id).delete(synchronize_session=False)
        if not deleted:
            self.db.rollback()
            raise NotFound()
        self.db.commit()
        logger.info(f"Deleted expense: {expense_id}")

    def list_expenses(self, owner_id: str, flt: Optional[ExpenseFilter] = None) -> List[Expense]:
        compiled = compile_filter(owner_id, flt or ExpenseFilter())
        criteria, ordering = to_sqlalchemy(compiled, Expense)
        return self.db.query(Expense).filter(*criteria).order_by(*ordering).all()

    def list_categories(self, owner_id: str) -> List[str]:
        rows = (
            self.db.query(Expense.category)
            .filter(Expense.owner_id == owner_id)
            .distinct()
            .order_by(Expense.category)
            .all()
        )
        return [row[0] for row in rows]

    def summarize(self, owner_id: str, flt: Optional[ExpenseFilter] = None, today: Optional[date] = None) -> Dict:
        """Totals over the filtered set, plus the current month and a per-category split."""
        expenses = self.list_expenses(owner_id, flt)
        today = today or date.today()
        zero = Decimal("0.00")

        amounts = [to_money(expense.amount) for expense in expenses]
        total = sum(amounts, zero)
        monthly_total = sum(
            (to_money(e.amount) for e in expenses if e.date.year == today.year and e.date.month == today.month),
            zero,
        )

        per_category: Dict[str, Decimal] = {}
        for expense in expenses:
            per_category[expense.category] = per_category.get(expense.category, zero) + to_money(expense.amount)

        by_category = [
            {
                "category": category,
                "total": amount,
                "percentage": round(float(amount / total * 100), 1) if total else 0.0,
            }
            for category, amount in sorted(per_category.items(), key=lambda item: (-item[1], item[0]))
        ]

        return {
            "count": len(amounts),
            "total": total,
            "average": to_money(total / len(amounts)) if amounts else zero,
            "highest": max(amounts) if amounts else zero,
            "lowest": min(amounts) if amounts else zero,
            "monthly_total": monthly_total,
            "by_category": by_category,
        }

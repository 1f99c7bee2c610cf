"""
Service-level tests for idempotent create and owner-scoped mutations
"""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError

from core.exceptions import NotFound, ValidationError
from models.models import Expense
from schemas.expenses import ExpenseCreate, ExpenseUpdate
from services.auth_service import AuthService
from services.ledger_service import CreateOutcome, LedgerService
from services.query_compiler import ExpenseFilter


def new_expense(**overrides):
    data = {"amount": "500", "category": "Food", "description": "Lunch", "date": "2024-03-01"}
    data.update(overrides)
    return ExpenseCreate.model_validate(data)


@pytest.fixture
def owner(db):
    return AuthService(db).create_user("Owner", "owner@example.com", "secret123")


@pytest.fixture
def stranger(db):
    return AuthService(db).create_user("Stranger", "stranger@example.com", "secret123")


class TestIdempotentCreate:

    def test_first_call_creates(self, db, owner):
        result = LedgerService(db).create_expense(owner.id, new_expense(idempotencyKey="k1"))

        assert result.created
        assert result.outcome == CreateOutcome.CREATED
        assert result.expense.amount == Decimal("500.00")
        assert result.expense.owner_id == owner.id

    def test_repeated_calls_with_same_key_create_one_record(self, db, owner):
        service = LedgerService(db)
        results = [service.create_expense(owner.id, new_expense(idempotencyKey="k1")) for _ in range(4)]

        assert [r.outcome for r in results] == [CreateOutcome.CREATED] + [CreateOutcome.ALREADY_PROCESSED] * 3
        assert len({r.expense.id for r in results}) == 1
        assert db.query(Expense).count() == 1

    def test_lost_race_returns_the_winning_record(self, db, session_factory, owner):
        winner = LedgerService(db).create_expense(owner.id, new_expense(idempotencyKey="race"))

        # A second request whose lookup ran before the winner committed
        other_session = session_factory()
        racer = LedgerService(other_session)
        real_lookup = racer._find_by_key
        calls = []

        def stale_first_lookup(key):
            calls.append(key)
            return None if len(calls) == 1 else real_lookup(key)

        try:
            with patch.object(racer, "_find_by_key", side_effect=stale_first_lookup):
                result = racer.create_expense(owner.id, new_expense(idempotencyKey="race"))
        finally:
            other_session.close()

        assert calls == ["race", "race"]
        assert result.outcome == CreateOutcome.ALREADY_PROCESSED
        assert result.expense.id == winner.expense.id
        assert db.query(Expense).count() == 1

    def test_integrity_error_without_key_is_not_swallowed(self, db, owner):
        service = LedgerService(db)
        with patch.object(db, "commit", side_effect=IntegrityError("INSERT", {}, Exception("boom"))):
            with pytest.raises(IntegrityError):
                service.create_expense(owner.id, new_expense())

    def test_without_key_there_is_no_dedup(self, db, owner):
        service = LedgerService(db)
        service.create_expense(owner.id, new_expense())
        service.create_expense(owner.id, new_expense())

        assert db.query(Expense).count() == 2

    def test_key_belonging_to_another_owner(self, db, owner, stranger):
        service = LedgerService(db)
        service.create_expense(owner.id, new_expense(idempotencyKey="theirs"))

        with pytest.raises(ValidationError) as excinfo:
            service.create_expense(stranger.id, new_expense(idempotencyKey="theirs"))

        assert excinfo.value.errors[0]["field"] == "idempotencyKey"
        assert db.query(Expense).count() == 1


class TestOwnedMutations:

    def test_update_applies_only_supplied_fields(self, db, owner):
        service = LedgerService(db)
        created = service.create_expense(owner.id, new_expense()).expense

        updated = service.update_expense(
            owner.id, created.id, ExpenseUpdate.model_validate({"category": " Dining ", "date": "2024-03-05"})
        )

        assert updated.category == "Dining"
        assert updated.date == date(2024, 3, 5)
        assert updated.description == "Lunch"
        assert updated.amount == Decimal("500.00")

    def test_update_of_foreign_record_is_not_found_and_leaves_it_alone(self, db, owner, stranger):
        service = LedgerService(db)
        theirs = service.create_expense(owner.id, new_expense()).expense

        with pytest.raises(NotFound):
            service.update_expense(stranger.id, theirs.id, ExpenseUpdate.model_validate({"amount": "1"}))

        db.expire_all()
        assert service.get_expense(owner.id, theirs.id).amount == Decimal("500.00")

    def test_empty_update_of_foreign_record_is_still_not_found(self, db, owner, stranger):
        service = LedgerService(db)
        theirs = service.create_expense(owner.id, new_expense()).expense

        with pytest.raises(NotFound):
            service.update_expense(stranger.id, theirs.id, ExpenseUpdate())

    def test_delete_of_foreign_record_is_not_found(self, db, owner, stranger):
        service = LedgerService(db)
        theirs = service.create_expense(owner.id, new_expense()).expense

        with pytest.raises(NotFound):
            service.delete_expense(stranger.id, theirs.id)

        assert db.query(Expense).count() == 1

    def test_delete_own_record(self, db, owner):
        service = LedgerService(db)
        mine = service.create_expense(owner.id, new_expense()).expense

        service.delete_expense(owner.id, mine.id)

        assert db.query(Expense).count() == 0
        with pytest.raises(NotFound):
            service.get_expense(owner.id, mine.id)


class TestReads:

    def test_categories_are_distinct_sorted_and_owned(self, db, owner, stranger):
        service = LedgerService(db)
        for category in ["Travel", "Food", "Food"]:
            service.create_expense(owner.id, new_expense(category=category))
        service.create_expense(stranger.id, new_expense(category="Rent"))

        assert service.list_categories(owner.id) == ["Food", "Travel"]

    def test_summary_of_empty_ledger(self, db, owner):
        summary = LedgerService(db).summarize(owner.id)

        assert summary["count"] == 0
        assert summary["total"] == Decimal("0.00")
        assert summary["by_category"] == []

    def test_summary_monthly_total_uses_given_today(self, db, owner):
        service = LedgerService(db)
        service.create_expense(owner.id, new_expense(amount="10.10", date="2024-03-01"))
        service.create_expense(owner.id, new_expense(amount="20.20", date="2024-03-31"))
        service.create_expense(owner.id, new_expense(amount="5", date="2024-02-29", category="Misc"))

        summary = service.summarize(owner.id, ExpenseFilter(), today=date(2024, 3, 15))

        assert summary["monthly_total"] == Decimal("30.30")
        assert summary["total"] == Decimal("35.30")
        assert summary["highest"] == Decimal("20.20")
        assert summary["lowest"] == Decimal("5.00")
        assert [c["category"] for c in summary["by_category"]] == ["Food", "Misc"]

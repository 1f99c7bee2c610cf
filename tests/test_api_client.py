"""
End-to-end tests of ExpenseClient against the app, using the FastAPI test
client as the HTTP session
"""

from datetime import date
from unittest.mock import Mock

import pytest

from client.api_client import ExpenseClient
from client.credentials import Credentials
from client.transport import ResilientTransport
from core.exceptions import ApiError, Unauthenticated


@pytest.fixture
def api(client, tmp_path):
    credentials = Credentials(path=str(tmp_path / "credentials.json"))
    transport = ResilientTransport(
        base_url="http://testserver",
        credentials=credentials,
        session=client,
        sleep=Mock(),
    )
    return ExpenseClient(transport=transport)


class TestSession:

    def test_signup_stores_and_persists_credentials(self, api, tmp_path):
        data = api.signup("Asha", "asha@example.com", "secret123")

        assert api.credentials.token == data["token"]
        assert api.credentials.user["email"] == "asha@example.com"
        restored = Credentials.load(str(tmp_path / "credentials.json"))
        assert restored.token == data["token"]

    def test_login_failure_message(self, api):
        api.signup("Asha", "asha@example.com", "secret123")
        api.logout()

        with pytest.raises(Unauthenticated) as excinfo:
            api.login("asha@example.com", "wrong-password")
        assert excinfo.value.message == "Invalid email or password"
        assert not api.credentials.is_authenticated

    def test_validation_errors_are_flattened(self, api):
        with pytest.raises(ApiError) as excinfo:
            api.signup("", "asha@example.com", "123")

        assert excinfo.value.status_code == 400
        assert "Name is required" in excinfo.value.message
        assert "Password must be at least 6 characters" in excinfo.value.message
        assert len(excinfo.value.errors) == 2

    def test_requests_after_logout_are_rejected(self, api):
        api.signup("Asha", "asha@example.com", "secret123")
        api.logout()

        with pytest.raises(Unauthenticated):
            api.list_expenses()


class TestLedger:

    @pytest.fixture(autouse=True)
    def logged_in(self, api):
        api.signup("Asha", "asha@example.com", "secret123")

    def test_full_lifecycle(self, api):
        created = api.create_expense(500, "Food", "Lunch", date(2024, 3, 1))["expense"]

        assert api.get_expense(created["id"]) == created
        updated = api.update_expense(created["id"], amount="42.50", date=date(2024, 3, 2))["expense"]
        assert updated["amount"] == 42.5
        assert updated["date"] == "2024-03-02"

        listed = api.list_expenses(category="Food", start_date=date(2024, 3, 1), end_date=date(2024, 3, 31))
        assert listed["count"] == 1
        assert api.categories() == ["Food"]
        assert api.summary()["total"] == 42.5

        assert api.delete_expense(created["id"]) == {"message": "Expense deleted successfully"}
        with pytest.raises(ApiError) as excinfo:
            api.get_expense(created["id"])
        assert excinfo.value.status_code == 404

    def test_each_submission_gets_its_own_key(self, api):
        api.create_expense(10, "Food", "Snack", "2024-03-01")
        api.create_expense(10, "Food", "Snack", "2024-03-01")

        assert api.list_expenses()["count"] == 2

    def test_explicit_key_deduplicates(self, api):
        first = api.create_expense(10, "Food", "Snack", "2024-03-01", idempotency_key="once")
        second = api.create_expense(10, "Food", "Snack", "2024-03-01", idempotency_key="once")

        assert first["expense"]["id"] == second["expense"]["id"]
        assert second["message"] == "Expense already exists (idempotent response)"

    def test_export_csv_writes_file(self, api, tmp_path):
        api.create_expense(10, "Food", 'Say "cheese"', "2024-03-01")

        text = api.export_csv(directory=str(tmp_path))

        assert text.startswith("\ufeffDate,Category,Description,Amount\n")
        saved = tmp_path / f"expenses-{date.today().isoformat()}.csv"
        assert saved.read_text(encoding="utf-8") == text


class TestCli:

    def test_add_and_list(self, api, capsys):
        from client.cli import main

        api.signup("Asha", "asha@example.com", "secret123")

        assert main(["add", "250", "Food", "Lunch", "2024-03-01"], api=api) == 0
        assert main(["list", "--category", "Food"], api=api) == 0

        output = capsys.readouterr().out
        assert '"count": 1' in output
        assert '"description": "Lunch"' in output

    def test_unauthenticated_exit_code(self, api, capsys):
        from client.cli import main

        assert main(["list"], api=api) == 2
        assert "Run 'login' first." in capsys.readouterr().err

    def test_validation_failure_exit_code(self, api, capsys):
        from client.cli import main

        api.signup("Asha", "asha@example.com", "secret123")

        assert main(["add", "-5", "Food", "Lunch", "2024-03-01"], api=api) == 1
        assert "Amount must be a positive number" in capsys.readouterr().err

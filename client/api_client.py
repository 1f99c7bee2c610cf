import os
import re
import uuid
from datetime import date
from typing import Any, Dict, Optional

import requests

from client.credentials import Credentials
from client.transport import ResilientTransport, error_message
from core.exceptions import ApiError

def _clean_params(**params) -> Dict[str, Any]:
    """Drop empty filters and render dates as ISO strings."""
    cleaned = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        cleaned[key] = value.isoformat() if isinstance(value, date) else value
    return cleaned

def _attachment_filename(response: requests.Response) -> str:
    match = re.search(r'filename="?([^";]+)"?', response.headers.get("Content-Disposition", ""))
    if match:
        return os.path.basename(match.group(1))
    return f"expenses-{date.today().isoformat()}.csv"

class ExpenseClient:
    """Typed wrapper around the expense API."""

    def __init__(self, transport: Optional[ResilientTransport] = None, credentials: Optional[Credentials] = None):
        self.transport = transport or ResilientTransport(credentials=credentials)
        self.credentials = self.transport.credentials

    def _call(self, method: str, path: str, default_error: str, **kwargs) -> requests.Response:
        response = self.transport.request(method, path, **kwargs)
        if response.status_code >= 400:
            try:
                errors = response.json().get("errors") or []
            except (ValueError, AttributeError):
                errors = []
            raise ApiError(response.status_code, error_message(response, default_error), errors)
        return response

    # ===== Auth =====

    def _store_session(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if data.get("token"):
            self.credentials.set(data["token"], data.get("user"))
        return data

    def signup(self, name: str, email: str, password: str) -> Dict[str, Any]:
        response = self._call(
            "POST", "/auth/signup", "Failed to sign up",
            json={"name": name, "email": email, "password": password},
        )
        return self._store_session(response.json())

    def login(self, email: str, password: str) -> Dict[str, Any]:
        response = self._call(
            "POST", "/auth/login", "Failed to log in",
            json={"email": email, "password": password},
        )
        return self._store_session(response.json())

    def logout(self) -> None:
        self.credentials.clear()

    # ===== Expenses =====

    def list_expenses(
        self,
        category: Optional[str] = None,
        sort: str = "date_desc",
        search: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Dict[str, Any]:
        params = _clean_params(category=category, sort=sort, search=search, startDate=start_date, endDate=end_date)
        return self._call("GET", "/expenses", "Failed to fetch expenses", params=params).json()

    def get_expense(self, expense_id: str) -> Dict[str, Any]:
        return self._call("GET", f"/expenses/{expense_id}", "Failed to fetch expense").json()

    def create_expense(
        self,
        amount,
        category: str,
        description: str,
        expense_date,
        idempotency_key: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Submit a new expense.

        One idempotency key is generated per call and reused by every retry,
        so a response lost in transit can never create a second record.
        """
        payload = {
            "amount": str(amount),
            "category": category,
            "description": description,
            "date": expense_date.isoformat() if isinstance(expense_date, date) else expense_date,
            "idempotencyKey": idempotency_key or str(uuid.uuid4()),
        }
        return self._call("POST", "/expenses", "Failed to create expense", json=payload).json()

    def update_expense(self, expense_id: str, **updates) -> Dict[str, Any]:
        payload = {}
        for field in ("amount", "category", "description", "date"):
            if field in updates:
                value = updates[field]
                if field == "amount":
                    value = str(value)
                elif isinstance(value, date):
                    value = value.isoformat()
                payload[field] = value
        return self._call("PUT", f"/expenses/{expense_id}", "Failed to update expense", json=payload).json()

    def delete_expense(self, expense_id: str) -> Dict[str, Any]:
        return self._call("DELETE", f"/expenses/{expense_id}", "Failed to delete expense").json()

    def categories(self):
        return self._call("GET", "/expenses/categories", "Failed to fetch categories").json()["categories"]

    def summary(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Dict[str, Any]:
        params = _clean_params(category=category, search=search, startDate=start_date, endDate=end_date)
        return self._call("GET", "/expenses/summary", "Failed to summarize expenses", params=params).json()

    def export_csv(
        self,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        directory: Optional[str] = None,
    ) -> str:
        """Fetch the CSV export; when ``directory`` is given also save it there."""
        params = _clean_params(category=category, startDate=start_date, endDate=end_date)
        response = self._call(
            "GET", "/expenses/export/csv", "Failed to export expenses",
            params=params, headers={"Accept": "text/csv"},
        )
        text = response.content.decode("utf-8")
        if directory:
            path = os.path.join(directory, _attachment_filename(response))
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(text)
        return text

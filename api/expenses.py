from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Query, Response, status

from core.dependencies import get_current_user, get_ledger_service
from core.exceptions import LedgerError
from schemas.expenses import (
    CategoryListResponse,
    ExpenseCreate,
    ExpenseEnvelope,
    ExpenseListResponse,
    ExpenseResponse,
    ExpenseSummary,
    ExpenseUpdate,
    SortOrder,
)
from services.export_service import export_filename, render_csv
from services.ledger_service import LedgerService
from services.query_compiler import ExpenseFilter
from utils.logger import logger

router = APIRouter()

CREATED_MESSAGE = "Expense created successfully"
REPLAY_MESSAGE = "Expense already exists (idempotent response)"

def _internal_error(service: LedgerService, action: str, e: Exception) -> HTTPException:
    service.db.rollback()
    logger.error(f"{action} error: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action.lower()}"
    )

@router.post("", response_model=ExpenseEnvelope, status_code=status.HTTP_201_CREATED)
def create_expense(
    expense_data: ExpenseCreate,
    response: Response,
    current_user: dict = Depends(get_current_user),
    service: LedgerService = Depends(get_ledger_service),
):
    """Create an expense. Replaying an idempotency key returns the original with 200."""
    try:
        result = service.create_expense(current_user["id"], expense_data)
        if not result.created:
            response.status_code = status.HTTP_200_OK
            return ExpenseEnvelope(message=REPLAY_MESSAGE, expense=ExpenseResponse.model_validate(result.expense))
        return ExpenseEnvelope(message=CREATED_MESSAGE, expense=ExpenseResponse.model_validate(result.expense))

    except (HTTPException, LedgerError):
        raise
    except Exception as e:
        raise _internal_error(service, "Create expense", e)

@router.get("", response_model=ExpenseListResponse)
def list_expenses(
    category: Optional[str] = None,
    sort: SortOrder = SortOrder.DATE_DESC,
    search: Optional[str] = None,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: dict = Depends(get_current_user),
    service: LedgerService = Depends(get_ledger_service),
):
    """List the caller's expenses with optional filtering and sorting."""
    try:
        flt = ExpenseFilter.build(category, search, sort, start_date, end_date)
        expenses = service.list_expenses(current_user["id"], flt)
        return ExpenseListResponse(
            expenses=[ExpenseResponse.model_validate(expense) for expense in expenses],
            count=len(expenses),
        )

    except (HTTPException, LedgerError):
        raise
    except Exception as e:
        raise _internal_error(service, "Fetch expenses", e)

@router.get("/export/csv")
def export_expenses_csv(
    category: Optional[str] = None,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: dict = Depends(get_current_user),
    service: LedgerService = Depends(get_ledger_service),
):
    """Download the caller's expenses as CSV, newest first."""
    try:
        flt = ExpenseFilter.build(category=category, start_date=start_date, end_date=end_date)
        expenses = service.list_expenses(current_user["id"], flt)
        logger.info(f"Exporting {len(expenses)} expenses for user: {current_user['id']}")
        return Response(
            content=render_csv(expenses),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
        )

    except (HTTPException, LedgerError):
        raise
    except Exception as e:
        raise _internal_error(service, "Export expenses", e)

@router.get("/summary", response_model=ExpenseSummary)
def summarize_expenses(
    category: Optional[str] = None,
    search: Optional[str] = None,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: dict = Depends(get_current_user),
    service: LedgerService = Depends(get_ledger_service),
):
    """Totals, extremes and a per-category split over the filtered expenses."""
    try:
        flt = ExpenseFilter.build(category, search, None, start_date, end_date)
        return ExpenseSummary(**service.summarize(current_user["id"], flt))

    except (HTTPException, LedgerError):
        raise
    except Exception as e:
        raise _internal_error(service, "Summarize expenses", e)

@router.get("/categories", response_model=CategoryListResponse)
def list_categories(
    current_user: dict = Depends(get_current_user),
    service: LedgerService = Depends(get_ledger_service),
):
    try:
        return CategoryListResponse(categories=service.list_categories(current_user["id"]))

    except (HTTPException, LedgerError):
        raise
    except Exception as e:
        raise _internal_error(service, "Fetch categories", e)

@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense(
    expense_id: str,
    current_user: dict = Depends(get_current_user),
    service: LedgerService = Depends(get_ledger_service),
):
    """Get a specific expense."""
    try:
        return ExpenseResponse.model_validate(service.get_expense(current_user["id"], expense_id))

    except (HTTPException, LedgerError):
        raise
    except Exception as e:
        raise _internal_error(service, "Get expense", e)

@router.put("/{expense_id}", response_model=ExpenseEnvelope)
def update_expense(
    expense_id: str,
    expense_data: ExpenseUpdate,
    current_user: dict = Depends(get_current_user),
    service: LedgerService = Depends(get_ledger_service),
):
    """Update an expense owned by the caller."""
    try:
        expense = service.update_expense(current_user["id"], expense_id, expense_data)
        return ExpenseEnvelope(
            message="Expense updated successfully",
            expense=ExpenseResponse.model_validate(expense),
        )

    except (HTTPException, LedgerError):
        raise
    except Exception as e:
        raise _internal_error(service, "Update expense", e)

@router.delete("/{expense_id}")
def delete_expense(
    expense_id: str,
    current_user: dict = Depends(get_current_user),
    service: LedgerService = Depends(get_ledger_service),
):
    """Delete an expense owned by the caller."""
    try:
        service.delete_expense(current_user["id"], expense_id)
        return {"message": "Expense deleted successfully"}

    except (HTTPException, LedgerError):
        raise
    except Exception as e:
        raise _internal_error(service, "Delete expense", e)

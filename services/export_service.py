import csv
import io
from datetime import date
from typing import Iterable, Optional

from models.models import Expense
from schemas.expenses import to_money

CSV_HEADER = ["Date", "Category", "Description", "Amount"]
# Byte-order mark so spreadsheet tools pick UTF-8
BOM = "\ufeff"

def render_csv(expenses: Iterable[Expense]) -> str:
    """Render expenses as CSV text in the order given.

    Text columns are always quoted (embedded quotes doubled) and amounts are
    written with two decimals, so identical input gives identical output.
    """
    buffer = io.StringIO()
    buffer.write(BOM)
    csv.writer(buffer, lineterminator="\n").writerow(CSV_HEADER)

    rows = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for expense in expenses:
        rows.writerow([
            expense.date.isoformat(),
            expense.category,
            expense.description,
            to_money(expense.amount),
        ])
    return buffer.getvalue()

def export_filename(today: Optional[date] = None) -> str:
    return f"expenses-{(today or date.today()).isoformat()}.csv"

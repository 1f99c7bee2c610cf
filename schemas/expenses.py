import datetime as dt
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import AliasChoices, BaseModel, Field, PlainSerializer, field_validator

CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("10000000000")  # Numeric(12, 2)

# Decimal in Python, plain JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

def to_money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)

def _check_amount(value: Optional[Decimal]) -> Decimal:
    if value is None:
        raise ValueError("Amount is required")
    if not value.is_finite() or value <= 0:
        raise ValueError("Amount must be a positive number")
    # Bound before quantizing: a huge value overflows the decimal context
    if value >= MAX_AMOUNT:
        raise ValueError("Amount is too large")
    value = to_money(value)
    if value <= 0:
        raise ValueError("Amount must be a positive number")
    if value >= MAX_AMOUNT:
        raise ValueError("Amount is too large")
    return value

def _check_text(value: Optional[str], label: str) -> str:
    if value is None or not value.strip():
        raise ValueError(f"{label} is required")
    return value.strip()

class SortOrder(str, Enum):
    DATE_DESC = "date_desc"
    DATE_ASC = "date_asc"

class ExpenseCreate(BaseModel):
    amount: Decimal
    category: str
    description: str
    date: dt.date
    idempotency_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("idempotencyKey", "request_id", "idempotency_key"),
    )

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, value):
        return _check_amount(value)

    @field_validator("category")
    @classmethod
    def validate_category(cls, value):
        return _check_text(value, "Category")

    @field_validator("description")
    @classmethod
    def validate_description(cls, value):
        return _check_text(value, "Description")

    @field_validator("idempotency_key")
    @classmethod
    def validate_idempotency_key(cls, value):
        if value is not None and not value.strip():
            raise ValueError("Idempotency key must be a non-empty string")
        return value

class ExpenseUpdate(BaseModel):
    """Partial update. Only fields present in the request body are applied."""

    amount: Optional[Decimal] = None
    category: Optional[str] = None
    description: Optional[str] = None
    date: Optional[dt.date] = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, value):
        return _check_amount(value)

    @field_validator("category")
    @classmethod
    def validate_category(cls, value):
        return _check_text(value, "Category")

    @field_validator("description")
    @classmethod
    def validate_description(cls, value):
        return _check_text(value, "Description")

    @field_validator("date")
    @classmethod
    def validate_date(cls, value):
        if value is None:
            raise ValueError("Date is required")
        return value

class ExpenseResponse(BaseModel):
    id: str
    amount: Money
    category: str
    description: str
    date: dt.date
    owner_id: str = Field(alias="ownerId")
    created_at: dt.datetime = Field(alias="createdAt")

    class Config:
        from_attributes = True
        populate_by_name = True

class ExpenseEnvelope(BaseModel):
    message: str
    expense: ExpenseResponse

class ExpenseListResponse(BaseModel):
    expenses: List[ExpenseResponse]
    count: int

class CategoryTotal(BaseModel):
    category: str
    total: Money
    percentage: float

class ExpenseSummary(BaseModel):
    count: int
    total: Money
    average: Money
    highest: Money
    lowest: Money
    monthly_total: Money = Field(alias="monthlyTotal")
    by_category: List[CategoryTotal] = Field(alias="byCategory")

    class Config:
        populate_by_name = True

class CategoryListResponse(BaseModel):
    categories: List[str]

from pydantic import BaseModel, Field, field_validator
from typing import Any, Optional
from datetime import date, datetime
from decimal import Decimal

from app.modules.expenses.rules import (
    EXPENSE_CATEGORIES, MAX_AMOUNT, MAX_DESCRIPTION_LENGTH, MIN_AMOUNT, parse_amount,
)


def _validate_amount(value: Any) -> Decimal:
    amount = parse_amount(value)
    if amount is None:
        raise ValueError("amount must be numeric")
    if amount <= MIN_AMOUNT or amount > MAX_AMOUNT:
        raise ValueError(f"amount must be between R$ {MIN_AMOUNT} and R$ {MAX_AMOUNT}")
    return amount


def _validate_category(value: str) -> str:
    if value not in EXPENSE_CATEGORIES:
        raise ValueError(f"category must be one of: {', '.join(EXPENSE_CATEGORIES)}")
    return value


class ExpenseCreate(BaseModel):
    report_id: str
    expense_date: date
    amount: Decimal
    category: str
    description: Optional[str] = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    establishment: Optional[str] = None
    image_url: str = Field(min_length=1)
    confidence: int = Field(0, ge=0, le=100)

    @field_validator("amount", mode="before")
    @classmethod
    def amount_in_range(cls, value: Any) -> Decimal:
        return _validate_amount(value)

    @field_validator("category")
    @classmethod
    def category_known(cls, value: str) -> str:
        return _validate_category(value)


class ExpenseUpdate(BaseModel):
    expense_date: Optional[date] = None
    amount: Optional[Decimal] = None
    category: Optional[str] = None
    description: Optional[str] = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    establishment: Optional[str] = None
    image_url: Optional[str] = Field(None, min_length=1)
    confidence: Optional[int] = Field(None, ge=0, le=100)

    @field_validator("amount", mode="before")
    @classmethod
    def amount_in_range(cls, value: Any) -> Optional[Decimal]:
        return None if value is None else _validate_amount(value)

    @field_validator("category")
    @classmethod
    def category_known(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _validate_category(value)


class ExpenseResponse(BaseModel):
    id: str
    report_id: str
    user_id: str
    expense_date: date
    amount: float
    original_amount: Optional[float] = None
    applied_limit: Optional[str] = None
    category: str
    description: Optional[str] = None
    establishment: Optional[str] = None
    image_url: str
    confidence: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CategorizeRequest(BaseModel):
    description: str
    amount: Optional[Any] = None
    ai_category: Optional[str] = None


class CategorizeResponse(BaseModel):
    category: str
    confidence: int
    amount: Optional[float] = None
    applied_limit: Optional[str] = None

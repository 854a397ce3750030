from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ReportCreate(BaseModel):
    number: str = Field(min_length=1, max_length=50)
    description: Optional[str] = "Nova Nota de Despesa"


class ReportClose(BaseModel):
    description: Optional[str] = None


class ReportAdvanceUpdate(BaseModel):
    advance_amount: float = Field(ge=0)


class ReportResponse(BaseModel):
    id: str
    user_id: str
    number: str
    description: Optional[str] = None
    status: str
    advance_amount: float = 0.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReportTotal(BaseModel):
    report_id: str
    expense_count: int
    total: float
    advance_amount: float
    balance: float  # total - advance_amount; positive means the company owes the employee

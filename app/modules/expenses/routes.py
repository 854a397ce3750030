from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_user_id
from app.database.supabase_client import get_supabase
from app.modules.expenses.schemas import (
    CategorizeRequest, CategorizeResponse, ExpenseCreate, ExpenseResponse, ExpenseUpdate,
)
from app.modules.expenses.service import ExpenseService
from supabase import Client
from typing import List

router = APIRouter(prefix="/expenses", tags=["expenses"])


def get_expense_service(supabase: Client = Depends(get_supabase)) -> ExpenseService:
    return ExpenseService(supabase)


@router.post("/categorize", response_model=CategorizeResponse)
async def categorize_expense(
    request: CategorizeRequest,
    user_id: str = Depends(get_current_user_id),
    service: ExpenseService = Depends(get_expense_service)
):
    """Suggest a category for a description and apply the category cap to an amount"""
    return service.categorize(request)


@router.post("", response_model=ExpenseResponse, status_code=201)
async def add_expense(
    expense_data: ExpenseCreate,
    user_id: str = Depends(get_current_user_id),
    service: ExpenseService = Depends(get_expense_service)
):
    """Add an expense to an open report"""
    return service.add_expense(expense_data, user_id)


@router.get("/by-report/{report_id}", response_model=List[ExpenseResponse])
async def list_expenses(
    report_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ExpenseService = Depends(get_expense_service)
):
    """List a report's expenses, newest first"""
    return service.list_expenses(report_id, user_id)


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(
    expense_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ExpenseService = Depends(get_expense_service)
):
    return service.get_expense(expense_id, user_id)


@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: str,
    expense_data: ExpenseUpdate,
    user_id: str = Depends(get_current_user_id),
    service: ExpenseService = Depends(get_expense_service)
):
    """Update an expense"""
    return service.update_expense(expense_id, expense_data, user_id)


@router.delete("/{expense_id}", status_code=204)
async def delete_expense(
    expense_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ExpenseService = Depends(get_expense_service)
):
    """Delete an expense"""
    service.delete_expense(expense_id, user_id)
    return None

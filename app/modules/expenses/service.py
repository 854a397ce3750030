from supabase import Client
from app.core.exceptions import InternalError, NotFoundError
from app.database.supabase_client import first_row
from app.modules.expenses.rules import (
    apply_category_limit, categorization_confidence, suggest_category,
)
from app.modules.expenses.schemas import (
    CategorizeRequest, CategorizeResponse, ExpenseCreate, ExpenseResponse, ExpenseUpdate,
)
from app.modules.reports.service import ReportService
from decimal import Decimal
from typing import List
import logging

logger = logging.getLogger(__name__)


class ExpenseService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.reports = ReportService(supabase)

    def add_expense(self, expense_data: ExpenseCreate, user_id: str) -> ExpenseResponse:
        """Add an expense to an open report, capping the amount by category"""
        self.reports.require_open(expense_data.report_id, user_id)

        amount, applied_limit = apply_category_limit(
            expense_data.amount, expense_data.description, expense_data.category
        )
        if applied_limit:
            logger.info(f"Cap {applied_limit} applied: {expense_data.amount} -> {amount}")

        result = self.supabase.table("expenses").insert({
            "report_id": expense_data.report_id,
            "user_id": user_id,
            "expense_date": expense_data.expense_date.isoformat(),
            "amount": float(amount),
            "original_amount": float(expense_data.amount),
            "applied_limit": applied_limit,
            "category": expense_data.category,
            "description": expense_data.description or "Não informado",
            "establishment": expense_data.establishment or "Não informado",
            "image_url": expense_data.image_url,
            "confidence": expense_data.confidence,
        }).execute()
        row = first_row(result)
        if not row:
            raise InternalError("Failed to create expense")
        return ExpenseResponse(**row)

    def list_expenses(self, report_id: str, user_id: str) -> List[ExpenseResponse]:
        self.reports.get_report(report_id, user_id)
        result = self.supabase.table("expenses")\
            .select("*")\
            .eq("report_id", report_id)\
            .eq("user_id", user_id)\
            .order("created_at", desc=True)\
            .execute()
        return [ExpenseResponse(**e) for e in result.data or []]

    def get_expense(self, expense_id: str, user_id: str) -> ExpenseResponse:
        row = first_row(
            self.supabase.table("expenses")
            .select("*")
            .eq("id", expense_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not row:
            raise NotFoundError("Expense not found")
        return ExpenseResponse(**row)

    def update_expense(self, expense_id: str, expense_data: ExpenseUpdate, user_id: str) -> ExpenseResponse:
        """Update an expense of an open report; caps are re-applied to the receipt value"""
        current = self.get_expense(expense_id, user_id)
        self.reports.require_open(current.report_id, user_id)

        changes = expense_data.model_dump(exclude_unset=True, exclude_none=True)
        update_data = {}
        for field in ("category", "description", "establishment", "image_url", "confidence"):
            if field in changes:
                update_data[field] = changes[field]
        if "expense_date" in changes:
            update_data["expense_date"] = changes["expense_date"].isoformat()

        if {"amount", "category", "description"} & changes.keys():
            original = changes.get("amount")
            if original is None:
                base = current.original_amount if current.original_amount is not None else current.amount
                original = Decimal(str(base))
            amount, applied_limit = apply_category_limit(
                original,
                changes.get("description", current.description),
                changes.get("category", current.category),
            )
            update_data.update({
                "amount": float(amount),
                "original_amount": float(original),
                "applied_limit": applied_limit,
            })

        if not update_data:
            return current

        result = self.supabase.table("expenses")\
            .update(update_data)\
            .eq("id", expense_id)\
            .eq("user_id", user_id)\
            .execute()
        row = first_row(result)
        if not row:
            raise NotFoundError("Expense not found")
        return ExpenseResponse(**row)

    def delete_expense(self, expense_id: str, user_id: str) -> None:
        current = self.get_expense(expense_id, user_id)
        self.reports.require_open(current.report_id, user_id)
        self.supabase.table("expenses")\
            .delete()\
            .eq("id", expense_id)\
            .eq("user_id", user_id)\
            .execute()
        logger.info(f"Expense {expense_id} deleted by user {user_id}")

    def categorize(self, request: CategorizeRequest) -> CategorizeResponse:
        """Suggest a category and show what the cap would do to an amount"""
        category = suggest_category(request.description, request.ai_category)
        response = CategorizeResponse(
            category=category,
            confidence=categorization_confidence(request.description, category),
        )
        if request.amount is not None:
            amount, applied_limit = apply_category_limit(request.amount, request.description, category)
            response.amount = float(amount)
            response.applied_limit = applied_limit
        return response

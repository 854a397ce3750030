from supabase import Client
from app.core.exceptions import ConflictError, InternalError, NotFoundError
from app.core.timeutils import utcnow
from app.database.supabase_client import first_row
from app.modules.reports.models import STATUS_CLOSED, STATUS_OPEN
from app.modules.reports.schemas import ReportCreate, ReportResponse, ReportTotal
from typing import List, Optional
from decimal import Decimal
import logging

logger = logging.getLogger(__name__)


class ReportService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_report(self, report_data: ReportCreate, user_id: str) -> ReportResponse:
        """Open a new expense report"""
        result = self.supabase.table("reports").insert({
            "user_id": user_id,
            "number": report_data.number.strip(),
            "description": report_data.description,
            "status": STATUS_OPEN,
            "advance_amount": 0.0,
        }).execute()
        row = first_row(result)
        if not row:
            raise InternalError("Failed to create report")
        logger.info(f"Report {row['id']} opened by user {user_id}")
        return ReportResponse(**row)

    def get_report(self, report_id: str, user_id: str) -> ReportResponse:
        """Get a report owned by user_id"""
        row = first_row(
            self.supabase.table("reports")
            .select("*")
            .eq("id", report_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not row:
            raise NotFoundError("Report not found")
        return ReportResponse(**row)

    def get_open_report(self, user_id: str) -> Optional[ReportResponse]:
        """Most recent open report of the user, if any"""
        row = first_row(
            self.supabase.table("reports")
            .select("*")
            .eq("user_id", user_id)
            .eq("status", STATUS_OPEN)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        return ReportResponse(**row) if row else None

    def list_reports(
        self,
        user_id: str,
        status: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> List[ReportResponse]:
        query = self.supabase.table("reports").select("*").eq("user_id", user_id)
        if status:
            query = query.eq("status", status)
        result = query.order("created_at", desc=True).limit(limit).offset(offset).execute()
        return [ReportResponse(**r) for r in result.data or []]

    def close_report(self, report_id: str, user_id: str, description: Optional[str] = None) -> ReportResponse:
        """Finalize a report; closed reports accept no more expenses"""
        report = self.get_report(report_id, user_id)
        if report.status == STATUS_CLOSED:
            raise ConflictError("Report is already closed")
        update_data = {"status": STATUS_CLOSED, "updated_at": utcnow().isoformat()}
        if description is not None:
            update_data["description"] = description
        return self._update(report_id, user_id, update_data)

    def update_advance(self, report_id: str, user_id: str, advance_amount: float) -> ReportResponse:
        self.get_report(report_id, user_id)
        return self._update(report_id, user_id, {
            "advance_amount": round(advance_amount, 2),
            "updated_at": utcnow().isoformat(),
        })

    def require_open(self, report_id: str, user_id: str) -> ReportResponse:
        report = self.get_report(report_id, user_id)
        if report.status != STATUS_OPEN:
            raise ConflictError("Report is closed and cannot be changed")
        return report

    def report_total(self, report_id: str, user_id: str) -> ReportTotal:
        report = self.get_report(report_id, user_id)
        result = self.supabase.table("expenses")\
            .select("amount")\
            .eq("report_id", report_id)\
            .execute()
        amounts = [Decimal(str(r["amount"])) for r in result.data or []]
        total = sum(amounts, Decimal("0"))
        advance = Decimal(str(report.advance_amount))
        return ReportTotal(
            report_id=report_id,
            expense_count=len(amounts),
            total=float(total),
            advance_amount=float(advance),
            balance=float(total - advance),
        )

    def _update(self, report_id: str, user_id: str, update_data: dict) -> ReportResponse:
        result = self.supabase.table("reports")\
            .update(update_data)\
            .eq("id", report_id)\
            .eq("user_id", user_id)\
            .execute()
        row = first_row(result)
        if not row:
            raise NotFoundError("Report not found")
        return ReportResponse(**row)

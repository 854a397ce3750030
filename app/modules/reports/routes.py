from fastapi import APIRouter, Depends, Query
from app.core.dependencies import get_current_user_id
from app.database.supabase_client import get_supabase
from app.modules.reports.models import STATUS_CLOSED, STATUS_OPEN
from app.modules.reports.schemas import (
    ReportAdvanceUpdate, ReportClose, ReportCreate, ReportResponse, ReportTotal,
)
from app.modules.reports.service import ReportService
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/reports", tags=["reports"])


def get_report_service(supabase: Client = Depends(get_supabase)) -> ReportService:
    return ReportService(supabase)


@router.get("", response_model=List[ReportResponse])
async def list_reports(
    status: Optional[str] = Query(None, pattern=f"^({STATUS_OPEN}|{STATUS_CLOSED})$"),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    service: ReportService = Depends(get_report_service)
):
    """List the current user's reports, newest first"""
    return service.list_reports(user_id, status=status, limit=limit, offset=offset)


@router.post("", response_model=ReportResponse, status_code=201)
async def create_report(
    report_data: ReportCreate,
    user_id: str = Depends(get_current_user_id),
    service: ReportService = Depends(get_report_service)
):
    """Open a new expense report"""
    return service.create_report(report_data, user_id)


@router.get("/open", response_model=Optional[ReportResponse])
async def get_open_report(
    user_id: str = Depends(get_current_user_id),
    service: ReportService = Depends(get_report_service)
):
    """Get the open report, or null when every report is closed"""
    return service.get_open_report(user_id)


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ReportService = Depends(get_report_service)
):
    return service.get_report(report_id, user_id)


@router.post("/{report_id}/close", response_model=ReportResponse)
async def close_report(
    report_id: str,
    close_data: ReportClose,
    user_id: str = Depends(get_current_user_id),
    service: ReportService = Depends(get_report_service)
):
    """Finalize a report"""
    return service.close_report(report_id, user_id, close_data.description)


@router.put("/{report_id}/advance", response_model=ReportResponse)
async def update_advance(
    report_id: str,
    advance_data: ReportAdvanceUpdate,
    user_id: str = Depends(get_current_user_id),
    service: ReportService = Depends(get_report_service)
):
    """Set the cash advance received for the trip"""
    return service.update_advance(report_id, user_id, advance_data.advance_amount)


@router.get("/{report_id}/total", response_model=ReportTotal)
async def get_report_total(
    report_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ReportService = Depends(get_report_service)
):
    """Sum of the report's expenses against its advance"""
    return service.report_total(report_id, user_id)

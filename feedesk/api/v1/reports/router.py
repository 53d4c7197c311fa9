from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.auth.rbac import require_admin
from feedesk.core.enums import ReportType
from feedesk.core.exceptions import ServiceError
from feedesk.db.session import get_db

from .schemas import BusStopReportRow, ClassReportRow, MonthlyReport, SummaryReport
from . import service

router = APIRouter(
    prefix="/api/v1/reports",
    tags=["reports"],
    dependencies=[Depends(require_admin)],
)


@router.get(
    "/{report_type}",
    response_model=Union[List[ClassReportRow], List[BusStopReportRow], MonthlyReport, SummaryReport],
)
async def get_report(
    report_type: ReportType,
    month: Optional[str] = Query(None, description="YYYY-MM, required for the monthly report"),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.build_report(db, report_type, month)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

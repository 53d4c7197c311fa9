"""Fee configuration router: development fees by class and bus stop charges."""

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.auth.dependencies import get_current_user
from feedesk.auth.rbac import require_admin
from feedesk.core.enums import FeeConfigType
from feedesk.core.exceptions import ServiceError
from feedesk.db.session import get_db

from .schemas import BusStopImportResult, FeeScheduleResponse, FeeScheduleUpdate, FeeScheduleUpdateResult
from . import service

router = APIRouter(prefix="/api/v1/fee-config", tags=["fee-config"])


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get(
    "",
    response_model=FeeScheduleResponse,
    dependencies=[Depends(get_current_user)],
)
async def get_fee_config(
    config_type: Optional[FeeConfigType] = Query(None, alias="type"),
    db: AsyncSession = Depends(get_db),
) -> FeeScheduleResponse:
    return await service.get_fee_schedule(db, config_type)


@router.put(
    "",
    response_model=FeeScheduleUpdateResult,
    dependencies=[Depends(require_admin)],
)
async def update_fee_config(
    payload: FeeScheduleUpdate,
    db: AsyncSession = Depends(get_db),
) -> FeeScheduleUpdateResult:
    return await service.update_fee_schedule(db, payload)


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_fee_config_entry(
    config_type: FeeConfigType = Query(..., alias="type"),
    key: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
) -> None:
    deleted = await service.delete_fee_entry(db, config_type, key)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fee entry not found")


@router.post(
    "/bus-stops/import",
    response_model=BusStopImportResult,
    dependencies=[Depends(require_admin)],
)
async def import_bus_stops(
    file: UploadFile = File(..., description="CSV with header `Bus Stop Name,Fee Amount`"),
    db: AsyncSession = Depends(get_db),
) -> BusStopImportResult:
    try:
        return await service.import_bus_stops_csv(db, await file.read())
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/bus-stops/export",
    dependencies=[Depends(require_admin)],
)
async def export_bus_stops(db: AsyncSession = Depends(get_db)) -> Response:
    content = await service.export_bus_stops_csv(db)
    return _csv_response(content, "bus_stops.csv")


@router.get(
    "/bus-stops/sample",
    dependencies=[Depends(get_current_user)],
)
async def download_bus_stops_sample() -> Response:
    return _csv_response(service.sample_bus_stops_csv(), "bus_stops_sample.csv")

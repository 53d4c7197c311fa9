"""Fee configuration service: schedule read/upsert/delete and bus-stop CSV import/export."""

import csv
import io
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.enums import FeeConfigType
from feedesk.core.exceptions import ServiceError
from feedesk.core.models import FeeConfig
from feedesk.fees.schedule import DEFAULT_BUS_STOPS, DEFAULT_DEVELOPMENT_FEES, FeeSchedule, to_amount

from .schemas import BusStopImportResult, FeeScheduleResponse, FeeScheduleUpdate, FeeScheduleUpdateResult

logger = logging.getLogger(__name__)

BUS_STOP_CSV_HEADER = ["Bus Stop Name", "Fee Amount"]
SAMPLE_BUS_STOPS = [
    ("Main Gate", 800),
    ("Market Square", 900),
    ("Railway Station", 1000),
    ("City Center", 850),
]


async def _load_rows(db: AsyncSession, config_type: Optional[FeeConfigType] = None) -> List[FeeConfig]:
    stmt = select(FeeConfig)
    if config_type is not None:
        stmt = stmt.where(FeeConfig.config_type == config_type.value)
    stmt = stmt.order_by(FeeConfig.config_type, FeeConfig.config_key)
    result = await db.execute(stmt)
    return list(result.scalars().all())


def _rows_to_maps(rows: List[FeeConfig]) -> Tuple[Dict[str, Decimal], Dict[str, Decimal]]:
    development: Dict[str, Decimal] = {}
    bus: Dict[str, Decimal] = {}
    for row in rows:
        if row.config_type == FeeConfigType.DEVELOPMENT_FEE.value:
            development[row.config_key] = to_amount(row.config_value)
        elif row.config_type == FeeConfigType.BUS_STOP.value:
            bus[row.config_key] = to_amount(row.config_value)
    return development, bus


async def load_fee_schedule(db: AsyncSession) -> FeeSchedule:
    development, bus = _rows_to_maps(await _load_rows(db))
    return FeeSchedule(development_fees=development, bus_stops=bus)


async def get_fee_schedule(
    db: AsyncSession,
    config_type: Optional[FeeConfigType] = None,
) -> FeeScheduleResponse:
    development, bus = _rows_to_maps(await _load_rows(db, config_type))
    return FeeScheduleResponse(development_fees=development, bus_stops=bus)


async def _upsert(db: AsyncSession, config_type: FeeConfigType, entries: Dict[str, Decimal]) -> int:
    if not entries:
        return 0
    existing = {r.config_key: r for r in await _load_rows(db, config_type)}
    for key, amount in entries.items():
        key = key.strip()
        row = existing.get(key)
        if row is None:
            row = FeeConfig(config_type=config_type.value, config_key=key, config_value=amount)
            db.add(row)
            existing[key] = row
        else:
            row.config_value = amount
    return len(entries)


async def update_fee_schedule(db: AsyncSession, payload: FeeScheduleUpdate) -> FeeScheduleUpdateResult:
    updated = 0
    updated += await _upsert(db, FeeConfigType.DEVELOPMENT_FEE, payload.development_fees or {})
    updated += await _upsert(db, FeeConfigType.BUS_STOP, payload.bus_stops or {})
    await db.commit()
    logger.info("Fee schedule updated: %d entries", updated)
    return FeeScheduleUpdateResult(updated=updated)


async def delete_fee_entry(db: AsyncSession, config_type: FeeConfigType, key: str) -> bool:
    result = await db.execute(
        select(FeeConfig).where(
            FeeConfig.config_type == config_type.value,
            FeeConfig.config_key == key,
        )
    )
    row = result.scalar_one_or_none()
    if not row:
        return False
    await db.delete(row)
    await db.commit()
    logger.info("Deleted fee entry %s/%s", config_type.value, key)
    return True


async def seed_default_schedule(db: AsyncSession) -> int:
    """Insert the default schedule when no entries exist yet. Returns rows created."""
    if await _load_rows(db):
        return 0
    created = 0
    created += await _upsert(db, FeeConfigType.DEVELOPMENT_FEE, DEFAULT_DEVELOPMENT_FEES)
    created += await _upsert(db, FeeConfigType.BUS_STOP, DEFAULT_BUS_STOPS)
    await db.commit()
    return created


# --- Bus stop CSV ---
def _to_csv(rows: List[Tuple[str, object]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(BUS_STOP_CSV_HEADER)
    for name, amount in rows:
        writer.writerow([name, amount])
    return buf.getvalue()


def _csv_amount(value: Decimal) -> str:
    return str(value.quantize(Decimal(1))) if value == value.to_integral_value() else str(value)


def parse_bus_stops_csv(content: str) -> Tuple[Dict[str, Decimal], int]:
    """Parse `Bus Stop Name,Fee Amount` rows. Rows without a name or a positive whole amount are skipped."""
    reader = csv.reader(io.StringIO(content.lstrip("\ufeff")))
    stops: Dict[str, Decimal] = {}
    skipped = 0
    for index, row in enumerate(reader):
        if index == 0:
            continue  # header row
        values = [v.strip() for v in row]
        if not any(values):
            continue
        if len(values) < 2 or not values[0] or not values[1]:
            skipped += 1
            continue
        try:
            amount = int(values[1])
        except ValueError:
            skipped += 1
            continue
        if amount <= 0:
            skipped += 1
            continue
        stops[values[0]] = Decimal(amount)
    return stops, skipped


async def import_bus_stops_csv(db: AsyncSession, content: bytes) -> BusStopImportResult:
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        raise ServiceError("CSV file must be UTF-8 encoded", status.HTTP_400_BAD_REQUEST)
    stops, skipped = parse_bus_stops_csv(text)
    if not stops:
        raise ServiceError("No valid bus stops found in the CSV file", status.HTTP_400_BAD_REQUEST)
    await _upsert(db, FeeConfigType.BUS_STOP, stops)
    await db.commit()
    logger.info("Imported %d bus stops from CSV (%d skipped)", len(stops), skipped)
    return BusStopImportResult(imported=len(stops), skipped=skipped)


async def export_bus_stops_csv(db: AsyncSession) -> str:
    rows = await _load_rows(db, FeeConfigType.BUS_STOP)
    return _to_csv([(r.config_key, _csv_amount(to_amount(r.config_value))) for r in rows])


def sample_bus_stops_csv() -> str:
    return _to_csv(SAMPLE_BUS_STOPS)

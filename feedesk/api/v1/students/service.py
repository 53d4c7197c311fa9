"""Students service: CRUD, CSV/XLSX import, CSV export and fee balance."""

import csv
import io
import logging
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from fastapi import UploadFile, status
from openpyxl import load_workbook
from pydantic import ValidationError
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.api.v1.fee_config.service import load_fee_schedule
from feedesk.auth.rbac import can_access_class, ensure_class_access
from feedesk.auth.schemas import CurrentUser
from feedesk.core.exceptions import ServiceError
from feedesk.core.models import Payment, Student
from feedesk.fees.balance import FeeBalance, calculate_balance

from .schemas import (
    StudentCreate,
    StudentImportFailure,
    StudentImportResponse,
    StudentResponse,
    StudentUpdate,
)

logger = logging.getLogger(__name__)

STUDENT_CSV_HEADER = [
    "Admission No",
    "Name",
    "Mobile",
    "Class",
    "Division",
    "Bus Stop",
    "Bus Number",
    "Trip Number",
]
# normalized header -> StudentCreate field
IMPORT_COLUMNS = {
    "admission_no": "admission_no",
    "name": "name",
    "mobile": "mobile",
    "class": "class_name",
    "division": "division",
    "bus_stop": "bus_stop",
    "bus_number": "bus_number",
    "trip_number": "trip_number",
}
IMPORT_MAX_ROWS = 2000


def _student_to_response(student: Student) -> StudentResponse:
    return StudentResponse.model_validate(student)


def _class_sort_key(student: Student) -> Tuple[int, str, str]:
    try:
        class_no = int(student.class_name)
    except (TypeError, ValueError):
        class_no = 0
    return class_no, student.division, student.name.lower()


async def _get_student(db: AsyncSession, student_id: UUID) -> Student:
    result = await db.execute(select(Student).where(Student.id == student_id))
    student = result.scalar_one_or_none()
    if not student:
        raise ServiceError("Student not found", status.HTTP_404_NOT_FOUND)
    return student


async def _admission_no_taken(
    db: AsyncSession,
    admission_no: str,
    exclude_id: Optional[UUID] = None,
) -> bool:
    stmt = select(Student.id).where(Student.admission_no == admission_no)
    if exclude_id is not None:
        stmt = stmt.where(Student.id != exclude_id)
    result = await db.execute(stmt)
    return result.first() is not None


async def create_student(
    db: AsyncSession,
    current_user: CurrentUser,
    payload: StudentCreate,
) -> StudentResponse:
    ensure_class_access(current_user, payload.class_name, payload.division)
    if await _admission_no_taken(db, payload.admission_no):
        raise ServiceError(
            f"Admission number {payload.admission_no} already exists",
            status.HTTP_409_CONFLICT,
        )
    student = Student(**payload.model_dump())
    db.add(student)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ServiceError(
            f"Admission number {payload.admission_no} already exists",
            status.HTTP_409_CONFLICT,
        )
    await db.refresh(student)
    logger.info("Student %s created by %s", student.admission_no, current_user.username)
    return _student_to_response(student)


async def list_students(
    db: AsyncSession,
    current_user: CurrentUser,
    class_name: Optional[str] = None,
    division: Optional[str] = None,
    search: Optional[str] = None,
) -> List[StudentResponse]:
    """List students. Teachers are always scoped to their own class and division."""
    if not current_user.is_admin:
        if not current_user.class_name or not current_user.division:
            return []
        class_name = current_user.class_name
        division = current_user.division

    stmt = select(Student)
    if class_name:
        stmt = stmt.where(Student.class_name == class_name)
    if division:
        stmt = stmt.where(Student.division == division.upper())
    if search and search.strip():
        term = f"%{search.strip()}%"
        stmt = stmt.where(or_(Student.name.ilike(term), Student.admission_no.ilike(term)))
    result = await db.execute(stmt)
    students = sorted(result.scalars().all(), key=_class_sort_key)
    return [_student_to_response(s) for s in students]


async def get_student(
    db: AsyncSession,
    current_user: CurrentUser,
    student_id: UUID,
) -> StudentResponse:
    student = await _get_student(db, student_id)
    ensure_class_access(current_user, student.class_name, student.division)
    return _student_to_response(student)


async def update_student(
    db: AsyncSession,
    student_id: UUID,
    payload: StudentUpdate,
) -> StudentResponse:
    student = await _get_student(db, student_id)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "admission_no" in data and await _admission_no_taken(db, data["admission_no"], exclude_id=student.id):
        raise ServiceError(
            f"Admission number {data['admission_no']} already exists",
            status.HTTP_409_CONFLICT,
        )
    for field, value in data.items():
        setattr(student, field, value)
    await db.commit()
    await db.refresh(student)
    logger.info("Student %s updated", student.admission_no)
    return _student_to_response(student)


async def delete_student(db: AsyncSession, student_id: UUID) -> None:
    """Delete a student. Their payments stay in the ledger with student_id cleared."""
    student = await _get_student(db, student_id)
    admission_no = student.admission_no
    await db.delete(student)
    await db.commit()
    logger.info("Student %s deleted", admission_no)


async def get_student_balance(
    db: AsyncSession,
    current_user: CurrentUser,
    student_id: UUID,
) -> FeeBalance:
    student = await _get_student(db, student_id)
    ensure_class_access(current_user, student.class_name, student.division)
    result = await db.execute(select(Payment).where(Payment.student_id == student.id))
    ledger = result.scalars().all()
    schedule = await load_fee_schedule(db)
    return calculate_balance(student, ledger, schedule)


# --- Import / export ---
def _norm(value) -> str:
    return (str(value).strip().lower() if value is not None else "").replace(" ", "_")


def _cell_str(row, idx: Optional[int]) -> str:
    if idx is None or idx >= len(row) or row[idx] is None:
        return ""
    value = row[idx]
    # Excel stores numeric cells as float; "7.0" must read back as "7"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _read_rows(filename: str, content: bytes) -> List[list]:
    """Return all rows (header first) from a CSV or XLSX upload. Raises ValueError on unreadable files."""
    if filename.lower().endswith((".xlsx", ".xlsm")):
        try:
            wb = load_workbook(filename=io.BytesIO(content), read_only=True, data_only=True)
        except Exception as e:
            raise ValueError(f"Invalid Excel file: {e}") from e
        ws = wb.worksheets[0] if wb.worksheets else None
        if ws is None:
            raise ValueError("Excel file has no sheets")
        rows = [list(r) for r in ws.iter_rows(values_only=True)]
        wb.close()
        return rows
    if filename.lower().endswith(".csv"):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ValueError("CSV file must be UTF-8 encoded") from e
        return [row for row in csv.reader(io.StringIO(text))]
    raise ValueError("File must be a CSV (.csv) or Excel (.xlsx) file")


def parse_student_rows(rows: List[list]) -> Tuple[List[Tuple[int, StudentCreate]], List[StudentImportFailure]]:
    """Validate data rows against the student export header.

    Returns ``(valid, failed)`` where ``valid`` pairs each StudentCreate with
    its 1-based data row number. Blank rows are ignored.
    """
    if not rows:
        raise ValueError("File has no header row")
    header = [_norm(c) for c in rows[0]]
    col_idx: Dict[str, Optional[int]] = {}
    for column, field in IMPORT_COLUMNS.items():
        col_idx[field] = header.index(column) if column in header else None
    missing = [c for c in ("admission_no", "name", "class", "division") if c not in header]
    if missing:
        raise ValueError(f"Missing required column(s): {', '.join(missing)}. Expected: {','.join(STUDENT_CSV_HEADER)}")

    data_rows = rows[1:]
    if len(data_rows) > IMPORT_MAX_ROWS:
        raise ValueError(f"Maximum {IMPORT_MAX_ROWS} data rows allowed")

    valid: List[Tuple[int, StudentCreate]] = []
    failed: List[StudentImportFailure] = []
    for row_num, row in enumerate(data_rows, start=1):
        if not row or all(c is None or (isinstance(c, str) and not c.strip()) for c in row):
            continue
        values = {field: _cell_str(row, idx) for field, idx in col_idx.items()}
        try:
            valid.append((row_num, StudentCreate(**values)))
        except ValidationError as e:
            reason = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            failed.append(
                StudentImportFailure(
                    row=row_num,
                    admission_no=values["admission_no"],
                    name=values["name"],
                    reason=reason,
                )
            )
    return valid, failed


async def import_students(
    db: AsyncSession,
    current_user: CurrentUser,
    file: UploadFile,
) -> StudentImportResponse:
    """Create students from an uploaded file. Valid rows are created; the rest come back in ``failed``."""
    content = await file.read()
    if not content:
        raise ServiceError("File is empty", status.HTTP_400_BAD_REQUEST)
    try:
        valid, failed = parse_student_rows(_read_rows(file.filename or "", content))
    except ValueError as e:
        raise ServiceError(str(e), status.HTTP_400_BAD_REQUEST)

    existing = set((await db.execute(select(Student.admission_no))).scalars().all())
    created: List[Student] = []
    for row_num, item in valid:
        reason = None
        if not can_access_class(current_user, item.class_name, item.division):
            reason = "You can only manage students of your own class and division"
        elif item.admission_no in existing:
            reason = f"Admission number {item.admission_no} already exists"
        if reason:
            failed.append(
                StudentImportFailure(row=row_num, admission_no=item.admission_no, name=item.name, reason=reason)
            )
            continue
        student = Student(**item.model_dump())
        db.add(student)
        existing.add(item.admission_no)
        created.append(student)

    if not created and not failed:
        raise ServiceError("File has no data rows", status.HTTP_400_BAD_REQUEST)

    await db.commit()
    for student in created:
        await db.refresh(student)
    failed.sort(key=lambda f: f.row)
    logger.info(
        "Student import by %s: %d created, %d failed",
        current_user.username,
        len(created),
        len(failed),
    )
    return StudentImportResponse(
        created=len(created),
        students=[_student_to_response(s) for s in created],
        failed=failed,
    )


async def export_students_csv(
    db: AsyncSession,
    current_user: CurrentUser,
    class_name: Optional[str] = None,
    division: Optional[str] = None,
) -> str:
    students = await list_students(db, current_user, class_name=class_name, division=division)
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(STUDENT_CSV_HEADER)
    for s in students:
        writer.writerow(
            [s.admission_no, s.name, s.mobile, s.class_name, s.division, s.bus_stop, s.bus_number, s.trip_number]
        )
    return buf.getvalue()

"""Students schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from feedesk.fees.schedule import CLASSES, DIVISIONS


def _check_class(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if value not in CLASSES:
        raise ValueError("class must be one of 1-12")
    return value


def _check_division(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip().upper()
    if value not in DIVISIONS:
        raise ValueError("division must be one of A-E")
    return value


class StudentBase(BaseModel):
    admission_no: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    mobile: str = Field("", max_length=20)
    class_name: str
    division: str
    bus_stop: str = Field("", max_length=255)
    bus_number: str = Field("", max_length=50)
    trip_number: str = Field("", max_length=50)

    @field_validator("class_name")
    @classmethod
    def validate_class(cls, v: Optional[str]) -> Optional[str]:
        return _check_class(v)

    @field_validator("division")
    @classmethod
    def validate_division(cls, v: Optional[str]) -> Optional[str]:
        return _check_division(v)


class StudentCreate(StudentBase):
    pass


class StudentUpdate(BaseModel):
    admission_no: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    mobile: Optional[str] = Field(None, max_length=20)
    class_name: Optional[str] = None
    division: Optional[str] = None
    bus_stop: Optional[str] = Field(None, max_length=255)
    bus_number: Optional[str] = Field(None, max_length=50)
    trip_number: Optional[str] = Field(None, max_length=50)

    @field_validator("class_name")
    @classmethod
    def validate_class(cls, v: Optional[str]) -> Optional[str]:
        return _check_class(v)

    @field_validator("division")
    @classmethod
    def validate_division(cls, v: Optional[str]) -> Optional[str]:
        return _check_division(v)


class StudentResponse(StudentBase):
    id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class StudentImportFailure(BaseModel):
    row: int = Field(..., description="1-based data row number (header excluded)")
    admission_no: str = ""
    name: str = ""
    reason: str


class StudentImportResponse(BaseModel):
    created: int
    students: List[StudentResponse]
    failed: List[StudentImportFailure] = Field(default_factory=list)

"""Receipt request schemas. Response shapes live in feedesk.fees.receipt."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from feedesk.core.enums import ReceiptLayoutName


class BulkReceiptRequest(BaseModel):
    """Select payments to print together. All given criteria must match; the date range is inclusive."""

    layout: ReceiptLayoutName = ReceiptLayoutName.A4_9UP
    on_date: Optional[date] = Field(None, alias="date", description="Single day; takes precedence over the range")
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    class_name: Optional[str] = None
    division: Optional[str] = None

    class Config:
        populate_by_name = True

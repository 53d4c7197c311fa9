"""Physical print layouts. Every layout renders the same receipt fields; only size, font and tiling differ."""

from dataclasses import dataclass
from typing import Dict, List

from fastapi import status

from feedesk.core.enums import ReceiptLayoutName
from feedesk.core.exceptions import ServiceError


@dataclass(frozen=True)
class ReceiptLayout:
    name: ReceiptLayoutName
    label: str
    page_width_mm: float
    page_height_mm: float
    font_size_px: int
    per_page: int = 1
    columns: int = 1

    @property
    def rows(self) -> int:
        return -(-self.per_page // self.columns)

    @property
    def tile_width_mm(self) -> float:
        return round(self.page_width_mm / self.columns, 2)

    @property
    def tile_height_mm(self) -> float:
        return round(self.page_height_mm / self.rows, 2)


LAYOUTS: Dict[ReceiptLayoutName, ReceiptLayout] = {
    ReceiptLayoutName.THERMAL_2X3: ReceiptLayout(
        name=ReceiptLayoutName.THERMAL_2X3,
        label="Thermal 2x3 inch",
        page_width_mm=50.8,
        page_height_mm=76.2,
        font_size_px=7,
    ),
    ReceiptLayoutName.CARD_3X5: ReceiptLayout(
        name=ReceiptLayoutName.CARD_3X5,
        label="3x5 inch",
        page_width_mm=76.2,
        page_height_mm=127.0,
        font_size_px=10,
    ),
    ReceiptLayoutName.A6: ReceiptLayout(
        name=ReceiptLayoutName.A6,
        label="A6",
        page_width_mm=105.0,
        page_height_mm=148.0,
        font_size_px=11,
    ),
    ReceiptLayoutName.A4_9UP: ReceiptLayout(
        name=ReceiptLayoutName.A4_9UP,
        label="A4 (9 per sheet)",
        page_width_mm=210.0,
        page_height_mm=297.0,
        font_size_px=8,
        per_page=9,
        columns=3,
    ),
}


def get_layout(name) -> ReceiptLayout:
    try:
        return LAYOUTS[ReceiptLayoutName(name)]
    except ValueError:
        raise ServiceError(f"Unknown receipt layout: {name}", status.HTTP_400_BAD_REQUEST)


def list_layouts() -> List[ReceiptLayout]:
    return list(LAYOUTS.values())

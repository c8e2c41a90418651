"""Data classes for slide records, the active sequence, modules and navigation state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

LAYOUT_TYPES = ("cover", "pdf", "comparison", "standard", "qr")

MODULE_DELIMITER = "："


@dataclass(frozen=True)
class ChartPoint:
    year: str
    cost: float
    label: str = ""


@dataclass(frozen=True)
class RawSlideRecord:
    """One authored slide, as it appears in the catalog."""

    id: int
    module: str
    title: str
    layout_type: str = "standard"
    content: tuple[str, ...] = ()
    data_support: str = ""
    image: Optional[str] = None
    video: Optional[str] = None
    chart_data: Optional[tuple[ChartPoint, ...]] = None


@dataclass
class ActiveSlide:
    """A record placed in the active sequence.

    ``id`` is the 1-based position in the sequence; ``source_id`` keeps the
    catalog id the assets were resolved against.
    """

    id: int
    source_id: int
    module: str
    title: str
    layout_type: str
    content: tuple[str, ...]
    data_support: str
    image: str
    images: Optional[list[str]] = None
    video: Optional[str] = None
    chart_data: Optional[tuple[ChartPoint, ...]] = None
    is_module_start: bool = False


@dataclass(frozen=True)
class Module:
    name: str
    full_name: str
    start_index: int
    color: str


@dataclass(frozen=True)
class NavigationState:
    current_index: int = 0
    direction: int = 0


@dataclass
class SlideCatalog:
    """Validated catalog plus where it came from."""

    records: list[RawSlideRecord] = field(default_factory=list)
    title: str = ""

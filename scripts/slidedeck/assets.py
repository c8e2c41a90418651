"""Asset resolution for slides that do not declare their own image."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from .models import RawSlideRecord

AssetRef = str

COVER_ASSET = "candy_cover.webp"

# Catalog ids at or above this value were shifted by the 11 document pages
# inserted before them when the deck was extended.
LEGACY_SHIFT_FROM_ID = 18
LEGACY_SHIFT = 11

_DEFAULT_DOCUMENT_PAGES = [f"pdf_page_{n:02d}.webp" for n in range(1, 15)]

_DEFAULT_LEGACY = {
    1: "candy_cover.webp",
    2: "candy_rocket.webp",
    7: "zhangji_lecture.webp",
    8: "lecture_hall.webp",
    9: "candy_laptop.webp",
    10: "monet.webp",
    11: "candy_brain.webp",
    12: "candy_data.webp",
    13: "gemini.webp",
    14: "candy_data.webp",
    15: "coding.webp",
    16: "candy_rocket.webp",
    17: "candy_brain.webp",
    18: "candy_laptop.webp",
    19: "coding2.webp",
    20: "candy_cover.webp",
    21: "liziqi.webp",
    22: "meituan.webp",
    23: "xiaomi.webp",
    24: "candy_cover.webp",
    25: "candy_laptop.webp",
    26: "candy_rocket.webp",
    27: "candy_laptop.webp",
    28: "candy_brain.webp",
    29: "candy_data.webp",
    30: "coding2.webp",
    31: "candy_brain.webp",
    32: "candy_rocket.webp",
    33: "liziqi.webp",
}

_DEFAULT_PAIRS = {
    18: ("slide18_top.webp", "slide18_bottom.webp"),
    19: ("lecture_hall.webp", "lecture_closeup.webp"),
    33: ("liziqi.webp", "liziqi.webp"),
}


@dataclass(frozen=True)
class AssetTable:
    """Static lookup tables used to pick default assets.

    ``document_pages`` is indexed positionally from ``document_page_first_id``;
    ``legacy`` is keyed by legacy id; ``pairs`` by catalog id.
    """

    cover: AssetRef = COVER_ASSET
    document_pages: Tuple[AssetRef, ...] = tuple(_DEFAULT_DOCUMENT_PAGES)
    document_page_first_id: int = 4
    legacy: Dict[int, AssetRef] = field(default_factory=lambda: dict(_DEFAULT_LEGACY))
    pairs: Dict[int, Tuple[AssetRef, AssetRef]] = field(default_factory=lambda: dict(_DEFAULT_PAIRS))

    @property
    def document_page_last_id(self) -> int:
        # The range is always 14 pages; ids past a shorter table get the cover.
        return self.document_page_first_id + 13

    def all_refs(self) -> List[AssetRef]:
        """Every distinct asset the table can produce, in first-seen order."""
        refs: List[AssetRef] = [self.cover]
        refs.extend(self.document_pages)
        refs.extend(self.legacy[key] for key in sorted(self.legacy))
        for key in sorted(self.pairs):
            refs.extend(self.pairs[key])
        return list(dict.fromkeys(refs))


DEFAULT_ASSET_TABLE = AssetTable()


def legacy_id(record_id: int) -> int:
    """Map a catalog id back to the numbering used before the document pages existed."""
    if record_id >= LEGACY_SHIFT_FROM_ID:
        return record_id - LEGACY_SHIFT
    return record_id - 1


class AssetResolver:
    """Resolve a record to a concrete asset reference (or a pair of them)."""

    def __init__(self, table: Optional[AssetTable] = None):
        self.table = table or DEFAULT_ASSET_TABLE

    def resolve(self, record: RawSlideRecord) -> Union[AssetRef, List[AssetRef]]:
        pair = self.resolve_pair(record)
        if pair is not None:
            return pair
        return self.resolve_single(record)

    def resolve_single(self, record: RawSlideRecord) -> AssetRef:
        if record.image:
            return record.image

        table = self.table
        if table.document_page_first_id <= record.id <= table.document_page_last_id:
            offset = record.id - table.document_page_first_id
            if offset < len(table.document_pages):
                return table.document_pages[offset]
            return table.cover

        return table.legacy.get(legacy_id(record.id), table.cover)

    def resolve_pair(self, record: RawSlideRecord) -> Optional[List[AssetRef]]:
        pair = self.table.pairs.get(record.id)
        if pair is None:
            return None
        return list(pair)

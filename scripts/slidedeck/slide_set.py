"""Build the active slide sequence from the raw catalog."""

from __future__ import annotations

from typing import Iterable, List, Optional

from .assets import AssetResolver
from .models import ActiveSlide, RawSlideRecord

# Document pages dropped from the reduced (online) deck. Page 4 stays so the
# reduced deck still shows the first page of the document.
REDUCED_OUT_FIRST_ID = 5
REDUCED_OUT_LAST_ID = 17


def is_reduced_out(record_id: int) -> bool:
    return REDUCED_OUT_FIRST_ID <= record_id <= REDUCED_OUT_LAST_ID


def filter_catalog(catalog: Iterable[RawSlideRecord], include_all: bool) -> List[RawSlideRecord]:
    records = list(catalog)
    if include_all:
        return records
    return [r for r in records if not is_reduced_out(r.id)]


class SlideSetBuilder:
    """Turn a catalog into the active sequence for one inclusion mode.

    The sequence is rebuilt wholesale on every call; nothing is cached between
    modes.
    """

    def __init__(self, resolver: Optional[AssetResolver] = None):
        self.resolver = resolver or AssetResolver()

    def build(self, catalog: Iterable[RawSlideRecord], include_all: bool) -> List[ActiveSlide]:
        filtered = filter_catalog(catalog, include_all)

        slides: List[ActiveSlide] = []
        previous: Optional[RawSlideRecord] = None
        for position, record in enumerate(filtered):
            is_module_start = previous is None or record.module != previous.module
            slides.append(
                ActiveSlide(
                    id=position + 1,
                    source_id=record.id,
                    module=record.module,
                    title=record.title,
                    layout_type=record.layout_type,
                    content=record.content,
                    data_support=record.data_support,
                    image=self.resolver.resolve_single(record),
                    images=self.resolver.resolve_pair(record),
                    video=record.video,
                    chart_data=record.chart_data,
                    is_module_start=is_module_start,
                )
            )
            previous = record
        return slides


def build_active_sequence(
    catalog: Iterable[RawSlideRecord],
    include_all: bool,
    resolver: Optional[AssetResolver] = None,
) -> List[ActiveSlide]:
    """Filter, re-index, resolve assets and flag module starts."""
    return SlideSetBuilder(resolver).build(catalog, include_all)

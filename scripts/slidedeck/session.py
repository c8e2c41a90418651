"""Presentation session: the active sequence, its modules and the navigation state."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .assets import AssetResolver, AssetTable
from .models import ActiveSlide, Module, RawSlideRecord
from .modules import DEFAULT_PALETTE, current_module, derive_modules
from .navigation import NavigationController
from .slide_set import SlideSetBuilder

NEXT_KEYS = frozenset({" ", "Space", "ArrowRight", "PageDown"})
PREV_KEYS = frozenset({"ArrowLeft", "PageUp"})


class PresentationSession:
    """Glue between the catalog, the current inclusion mode and navigation.

    Every mode change rebuilds the sequence and the module index from scratch
    and bumps ``generation``, so anything issued against an older sequence can
    tell it is stale.
    """

    def __init__(
        self,
        catalog: Iterable[RawSlideRecord],
        include_all: bool = False,
        *,
        resolver: Optional[AssetResolver] = None,
        palette: Sequence[str] = DEFAULT_PALETTE,
        allow_toggle: bool = True,
        title: str = "",
    ):
        self.title = title
        self.catalog: List[RawSlideRecord] = list(catalog)
        self.builder = SlideSetBuilder(resolver)
        self.palette = tuple(palette)
        self.allow_toggle = allow_toggle
        self.navigation = NavigationController()
        self.generation = 0
        self.include_all = bool(include_all)
        self.slides: List[ActiveSlide] = []
        self.modules: List[Module] = []
        self._rebuild()

    def _rebuild(self) -> None:
        self.slides = self.builder.build(self.catalog, self.include_all)
        self.modules = derive_modules(self.slides, self.palette)
        self.navigation.resize(len(self.slides))
        self.generation += 1

    @property
    def asset_table(self) -> AssetTable:
        return self.builder.resolver.table

    @property
    def total(self) -> int:
        return len(self.slides)

    @property
    def current_index(self) -> int:
        return self.navigation.current_index

    @property
    def current_slide(self) -> Optional[ActiveSlide]:
        if not self.slides:
            return None
        return self.slides[self.navigation.current_index]

    @property
    def current_module(self) -> Optional[Module]:
        return current_module(self.modules, self.navigation.current_index)

    @property
    def counter_text(self) -> str:
        if not self.slides:
            return "0 / 0"
        return f"{self.navigation.current_index + 1} / {self.total}"

    @property
    def progress(self) -> float:
        slide = self.current_slide
        if slide is None:
            return 0.0
        return slide.id / self.total

    def set_include_all(self, include_all: bool) -> bool:
        include_all = bool(include_all)
        if include_all == self.include_all:
            return False
        self.include_all = include_all
        self._rebuild()
        return True

    def toggle(self) -> bool:
        if not self.allow_toggle:
            return False
        return self.set_include_all(not self.include_all)

    def next(self) -> bool:
        return self.navigation.next()

    def prev(self) -> bool:
        return self.navigation.prev()

    def jump(self, target: int) -> bool:
        return self.navigation.jump(target)

    def handle_key(self, key: str) -> bool:
        """Apply a key press; return True when the key is bound (and consumed)."""
        if key in NEXT_KEYS:
            self.navigation.next()
            return True
        if key in PREV_KEYS:
            self.navigation.prev()
            return True
        return False

    def click_module(self, position: int) -> bool:
        if not 0 <= position < len(self.modules):
            return False
        return self.navigation.jump(self.modules[position].start_index)

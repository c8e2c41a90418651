"""Module index derived from the active sequence."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .models import MODULE_DELIMITER, ActiveSlide, Module

DEFAULT_PALETTE = (
    "#FF69B4",  # hot pink
    "#FFE156",  # lemon yellow
    "#00A6FB",  # electric blue
    "#FF9F1C",  # orange
    "#2EC4B6",  # teal
    "#9B5DE5",  # purple
    "#F15BB5",  # pink
)


def short_name(module: str) -> str:
    return (module or "").split(MODULE_DELIMITER)[0]


def module_color(rank: int, palette: Sequence[str] = DEFAULT_PALETTE) -> str:
    return palette[rank % len(palette)]


def derive_modules(slides: Sequence[ActiveSlide], palette: Sequence[str] = DEFAULT_PALETTE) -> List[Module]:
    """Return one module per distinct module string, in order of first appearance.

    A module string that comes back after another module does not get a
    second entry; its anchor stays at the first occurrence.
    """
    modules: List[Module] = []
    seen: set[str] = set()
    for position, slide in enumerate(slides):
        if slide.module in seen:
            continue
        seen.add(slide.module)
        modules.append(
            Module(
                name=short_name(slide.module),
                full_name=slide.module,
                start_index=position,
                color=module_color(len(modules), palette),
            )
        )
    return modules


def current_module(modules: Sequence[Module], current_index: int) -> Optional[Module]:
    """The most recently started module at or before ``current_index``."""
    found: Optional[Module] = None
    for module in modules:
        if module.start_index <= current_index and (found is None or module.start_index > found.start_index):
            found = module
    return found

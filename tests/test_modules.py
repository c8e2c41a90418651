from __future__ import annotations

import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).resolve().parents[1] / "scripts"
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from slidedeck import RawSlideRecord, build_active_sequence, current_module, derive_modules, module_color  # noqa: E402
from slidedeck.modules import DEFAULT_PALETTE, short_name  # noqa: E402


def _sequence(modules: list[str]):
    records = [RawSlideRecord(id=i + 1, module=m, title=f"t{i}") for i, m in enumerate(modules)]
    return build_active_sequence(records, include_all=True)


def test_one_entry_per_distinct_module_in_first_appearance_order() -> None:
    slides = _sequence(["Intro：a", "Intro：a", "Body：b", "Tail：c", "Body：b"])
    modules = derive_modules(slides)
    assert [m.full_name for m in modules] == ["Intro：a", "Body：b", "Tail：c"]
    assert [m.start_index for m in modules] == [0, 2, 3]
    assert [m.name for m in modules] == ["Intro", "Body", "Tail"]


def test_recurring_module_keeps_first_anchor() -> None:
    # "M" at positions 2 and 9, interrupted by "X" at 3-8.
    names = ["A", "A", "M"] + ["X"] * 6 + ["M"]
    slides = _sequence(names)
    modules = derive_modules(slides)

    m_entries = [m for m in modules if m.full_name == "M"]
    assert len(m_entries) == 1
    assert m_entries[0].start_index == 2
    assert slides[9].is_module_start is True


def test_current_module_reports_most_recent_start() -> None:
    names = ["A", "A", "M"] + ["X"] * 6 + ["M"]
    modules = derive_modules(_sequence(names))

    assert current_module(modules, 0).full_name == "A"
    assert current_module(modules, 2).full_name == "M"
    assert current_module(modules, 5).full_name == "X"
    # Position 9 is literally "M" but the latest anchor at or before it is "X".
    assert current_module(modules, 9).full_name == "X"
    assert current_module([], 0) is None


def test_colors_cycle_through_palette_by_rank() -> None:
    names = [f"Module {i}" for i in range(len(DEFAULT_PALETTE) + 2)]
    modules = derive_modules(_sequence(names))
    assert [m.color for m in modules[: len(DEFAULT_PALETTE)]] == list(DEFAULT_PALETTE)
    assert modules[len(DEFAULT_PALETTE)].color == DEFAULT_PALETTE[0]
    assert modules[-1].color == DEFAULT_PALETTE[1]


def test_module_color_is_pure() -> None:
    palette = ("red", "green")
    assert module_color(0, palette) == "red"
    assert module_color(3, palette) == "green"
    assert module_color(3, palette) == module_color(1, palette)


def test_custom_palette_and_empty_sequence() -> None:
    modules = derive_modules(_sequence(["A", "B"]), palette=("#000000",))
    assert [m.color for m in modules] == ["#000000", "#000000"]
    assert derive_modules([]) == []


def test_short_name_without_delimiter_is_whole_string() -> None:
    assert short_name("Opening：Why this talk") == "Opening"
    assert short_name("Plain") == "Plain"

from __future__ import annotations

import struct
import sys
import zlib
from pathlib import Path

import pytest
from PIL import Image
from pptx import Presentation
from pptx.enum.shapes import MSO_SHAPE_TYPE

SCRIPT_DIR = Path(__file__).resolve().parents[1] / "scripts"
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from slidedeck import PresentationSession, RawSlideRecord, validate_catalog_file  # noqa: E402
from slidedeck.models import ChartPoint  # noqa: E402
from slidedeck.render import PptxDeckRenderer, split_numeric_tokens  # noqa: E402

SAMPLE_CATALOG = Path(__file__).resolve().parents[1] / "assets" / "sample_catalog.json"


def _texts(slide) -> list[str]:
    return [shape.text_frame.text for shape in slide.shapes if shape.has_text_frame]


def test_split_numeric_tokens() -> None:
    assert split_numeric_tokens("Participation rose from 35% to 71.5%") == [
        ("Participation rose from ", False),
        ("35%", True),
        (" to ", False),
        ("71.5%", True),
    ]
    assert split_numeric_tokens("") == []
    assert split_numeric_tokens("no numbers") == [("no numbers", False)]


def test_export_has_one_slide_per_active_slide(tmp_path: Path) -> None:
    catalog = validate_catalog_file(SAMPLE_CATALOG)
    session = PresentationSession(catalog.records, include_all=False)
    renderer = PptxDeckRenderer(session.slides, session.modules, assets_dir=tmp_path, title=catalog.title)
    renderer.render()
    saved = renderer.save(str(tmp_path / "out" / "deck.pptx"))

    prs = Presentation(str(saved))
    assert len(prs.slides) == 30
    assert prs.core_properties.title == catalog.title
    assert "Teaching with AI" in _texts(prs.slides[0])
    # No asset files were provided, so every referenced image is reported missing.
    assert "candy_cover.webp" in renderer.missing_assets


def test_images_are_embedded_when_present(tmp_path: Path) -> None:
    Image.new("RGB", (40, 20), (0, 128, 255)).save(tmp_path / "wide.png")
    Image.new("RGB", (10, 40), (255, 128, 0)).save(tmp_path / "tall.png")
    records = [
        RawSlideRecord(id=1, module="Intro：x", title="Cover", layout_type="cover", content=("Sub",), image="wide.png"),
        RawSlideRecord(id=2, module="Intro：x", title="Page", layout_type="pdf", image="tall.png"),
        RawSlideRecord(id=3, module="Body：y", title="QR", layout_type="qr", data_support="Scan 1 code", image="tall.png"),
    ]
    session = PresentationSession(records, include_all=True)
    renderer = PptxDeckRenderer(session.slides, session.modules, assets_dir=tmp_path)
    prs = renderer.render()

    for slide in prs.slides:
        pictures = [s for s in slide.shapes if s.shape_type == MSO_SHAPE_TYPE.PICTURE]
        assert len(pictures) == 1
    assert renderer.missing_assets == []
    assert "#02" in _texts(prs.slides[1])
    assert "Body" in _texts(prs.slides[2])


def test_standard_slide_with_chart_pair_and_pill(tmp_path: Path) -> None:
    records = [
        RawSlideRecord(
            id=3,
            module="Opening：Why",
            title="The cost curve",
            data_support="Fell from 60 to 0.5",
            content=("First paragraph.", "Second paragraph."),
            chart_data=(ChartPoint("2023", 60.0, "$60"), ChartPoint("2025", 0.5, "$0.5")),
        ),
        RawSlideRecord(id=18, module="Practice：Rooms", title="Two rooms"),
    ]
    session = PresentationSession(records, include_all=True)
    prs = PptxDeckRenderer(session.slides, session.modules).render()

    chart_slide, pair_slide = prs.slides
    charts = [s for s in chart_slide.shapes if s.has_chart]
    assert len(charts) == 1
    assert list(charts[0].chart.plots[0].categories) == ["2023", "2025"]
    texts = _texts(chart_slide)
    assert "Opening" in texts
    assert "The cost curve" in texts
    assert any(t.startswith("DATA INSIGHT") for t in texts)

    # Source id 18 resolves to a stacked pair; neither file exists, so two placeholders.
    assert session.slides[1].images == ["slide18_top.webp", "slide18_bottom.webp"]
    assert "Practice" in _texts(pair_slide)


@pytest.mark.parametrize("layout", ["comparison", "standard", "unknown"])
def test_every_layout_renders(layout: str) -> None:
    from slidedeck.models import ActiveSlide

    slide = ActiveSlide(
        id=1,
        source_id=1,
        module="M：x",
        title="Title",
        layout_type=layout,
        content=("left", "right", "insight"),
        data_support="",
        image="none.png",
        video="https://example.com/video" if layout == "standard" else None,
    )
    prs = PptxDeckRenderer([slide]).render()
    assert len(prs.slides) == 1
    assert "Title" in _texts(prs.slides[0])


def test_oversized_image_becomes_placeholder(tmp_path: Path) -> None:
    ihdr = struct.pack(">IIBBBBB", 20000, 20000, 8, 2, 0, 0, 0)

    def chunk(kind: bytes, data: bytes) -> bytes:
        return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", zlib.crc32(kind + data) & 0xFFFFFFFF)

    (tmp_path / "huge.png").write_bytes(b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IEND", b""))
    records = [
        RawSlideRecord(id=1, module="Intro：x", title="Big page", layout_type="pdf", image="huge.png"),
        RawSlideRecord(id=2, module="Intro：x", title="After", layout_type="standard"),
    ]
    session = PresentationSession(records, include_all=True)
    prs = PptxDeckRenderer(session.slides, session.modules, assets_dir=tmp_path).render()

    assert len(prs.slides) == 2
    pictures = [s for s in prs.slides[0].shapes if s.shape_type == MSO_SHAPE_TYPE.PICTURE]
    assert pictures == []
    assert "Big page" in _texts(prs.slides[0])
